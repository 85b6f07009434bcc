import json
import os
from datetime import datetime, timedelta

import pytest

from liveshare_e2e.ui_testing.framework.session_store import (
    FileSessionStore,
    MemorySessionStore,
    SessionBlob,
    current_worker_id,
    get_auth_state_info,
    is_auth_state_expired,
)


STATE = {"cookies": [{"name": "sid", "value": "abc"}], "origins": []}


def age_file(path, hours):
    ts = (datetime.now() - timedelta(hours=hours)).timestamp()
    os.utime(path, (ts, ts))


@pytest.mark.unit
def test_round_trip_and_expiry_threshold(tmp_path):
    store = FileSessionStore(tmp_path, worker_id="")
    now = datetime.now()

    store.save("user-auth", SessionBlob(state=STATE, saved_at=now - timedelta(hours=23)))
    blob = store.load("user-auth")

    assert blob.state == STATE
    assert not store.is_expired(blob, now)
    assert store.is_expired(SessionBlob(state=STATE, saved_at=now - timedelta(hours=25)), now)
    assert store.is_expired(None, now)


@pytest.mark.unit
def test_load_valid_ignores_stale_sessions(tmp_path):
    store = FileSessionStore(tmp_path, worker_id="")
    store.save("user-auth", SessionBlob(state=STATE, saved_at=datetime.now() - timedelta(hours=25)))

    assert store.load("user-auth") is not None
    assert store.load_valid("user-auth") is None


@pytest.mark.unit
def test_workers_write_their_own_file(tmp_path):
    gw0 = FileSessionStore(tmp_path, worker_id="gw0")
    gw1 = FileSessionStore(tmp_path, worker_id="gw1")

    gw0.save("user-auth", SessionBlob(state={"worker": "gw0"}))
    gw1.save("user-auth", SessionBlob(state={"worker": "gw1"}))

    assert (tmp_path / "user-auth.gw0.json").exists()
    assert (tmp_path / "user-auth.gw1.json").exists()
    assert gw0.load("user-auth").state == {"worker": "gw0"}
    assert gw1.load("user-auth").state == {"worker": "gw1"}


@pytest.mark.unit
def test_worker_falls_back_to_shared_file(tmp_path):
    FileSessionStore(tmp_path, worker_id="").save("user-auth", SessionBlob(state=STATE))
    worker = FileSessionStore(tmp_path, worker_id="gw3")

    assert worker.load("user-auth").state == STATE

    worker.save("user-auth", SessionBlob(state={"refreshed": True}))
    assert json.loads((tmp_path / "user-auth.json").read_text()) == STATE


@pytest.mark.unit
def test_keys_and_clear_are_per_worker(tmp_path):
    shared = FileSessionStore(tmp_path, worker_id="")
    worker = FileSessionStore(tmp_path, worker_id="gw0")
    shared.save("user-auth", SessionBlob(state=STATE))
    worker.save("user-auth", SessionBlob(state=STATE))
    worker.save("guest", SessionBlob(state=STATE))

    assert shared.keys() == ["user-auth"]
    assert worker.keys() == ["guest", "user-auth"]
    assert worker.clear() == 2
    assert shared.keys() == ["user-auth"]


@pytest.mark.unit
def test_unreadable_file_is_treated_as_missing(tmp_path):
    (tmp_path / "user-auth.json").write_text("{not json", encoding="utf-8")

    assert FileSessionStore(tmp_path, worker_id="").load("user-auth") is None


@pytest.mark.unit
def test_worker_id_comes_from_xdist(monkeypatch, tmp_path):
    monkeypatch.setenv("PYTEST_XDIST_WORKER", "gw2")
    assert current_worker_id() == "gw2"
    assert FileSessionStore(tmp_path).path_for().name == "user-auth.gw2.json"

    monkeypatch.delenv("PYTEST_XDIST_WORKER")
    assert current_worker_id() is None
    assert FileSessionStore(tmp_path).path_for().name == "user-auth.json"


@pytest.mark.unit
def test_default_root_is_the_auth_artifact_dir(artifact_dirs, monkeypatch):
    monkeypatch.delenv("PYTEST_XDIST_WORKER", raising=False)
    store = FileSessionStore()

    assert store.path_for() == artifact_dirs["auth"] / "user-auth.json"


@pytest.mark.unit
def test_memory_store_isolates_workers():
    gw0 = MemorySessionStore(worker_id="gw0")
    gw1 = MemorySessionStore(worker_id="gw1")
    gw1._blobs = gw0._blobs

    gw0.save("user-auth", SessionBlob(state=STATE))

    assert gw0.load("user-auth").state == STATE
    assert gw1.load("user-auth") is None
    assert gw0.delete("user-auth")
    assert not gw0.delete("user-auth")


@pytest.mark.unit
def test_auth_file_helpers(tmp_path):
    path = tmp_path / "user-auth.json"
    assert is_auth_state_expired(path)
    assert get_auth_state_info(path) == {"exists": False, "path": str(path), "expired": True}

    path.write_text(json.dumps(STATE), encoding="utf-8")
    age_file(path, 23)
    assert not is_auth_state_expired(path)
    assert get_auth_state_info(path)["age_hours"] == pytest.approx(23, abs=0.1)

    age_file(path, 25)
    assert is_auth_state_expired(path)
    assert get_auth_state_info(path)["expired"]
