import json
from datetime import datetime, timedelta

import pytest
from PIL import Image

from liveshare_e2e.ui_testing.framework.global_setup import (
    TEST_IMAGES,
    UPLOAD_IMAGES_DIR,
    generate_test_assets,
    needs_authentication,
    prepare_directories,
    upload_image_paths,
    write_placeholder_image,
)


@pytest.mark.unit
def test_placeholder_image_is_a_solid_colour_png(tmp_path):
    path = write_placeholder_image(tmp_path / "red.png", (255, 0, 0), size=(4, 2))

    with Image.open(path) as img:
        assert img.format == "PNG"
        assert img.size == (4, 2)
        assert img.getcolors() == [(8, (255, 0, 0))]


@pytest.mark.unit
def test_generated_upload_images_open_as_images(tmp_path):
    generate_test_assets(tmp_path)

    for path in upload_image_paths(tmp_path):
        with Image.open(path) as img:
            assert img.mode == "RGB"
            assert img.getpixel((0, 0)) == TEST_IMAGES[path.name]


@pytest.mark.unit
def test_prepare_directories_creates_every_artifact_dir(artifact_dirs):
    created = prepare_directories()

    assert all(path.is_dir() for path in created)
    assert artifact_dirs["assets"] / UPLOAD_IMAGES_DIR in created


@pytest.mark.unit
def test_assets_written_once(tmp_path):
    assets = tmp_path / "assets"

    first = generate_test_assets(assets)
    second = generate_test_assets(assets)

    assert len(first) == len(TEST_IMAGES) + 2
    assert second == []
    sample = json.loads((assets / "sample-test-data.json").read_text(encoding="utf-8"))
    assert [e["name"] for e in sample["events"]] == ["Sample Event 1", "Sample Event 2"]
    assert [p.name for p in upload_image_paths(assets)] == sorted(TEST_IMAGES)


@pytest.mark.unit
def test_existing_asset_is_not_overwritten(tmp_path):
    uploads = tmp_path / UPLOAD_IMAGES_DIR
    uploads.mkdir(parents=True)
    (uploads / "test-image-1.png").write_bytes(b"real photo")

    generate_test_assets(tmp_path)

    assert (uploads / "test-image-1.png").read_bytes() == b"real photo"


@pytest.mark.unit
@pytest.mark.auth
def test_force_auth_always_reauthenticates(tmp_path):
    auth_file = tmp_path / "user-auth.json"
    auth_file.write_text("{}", encoding="utf-8")

    assert needs_authentication(force=True, auth_file=auth_file)


@pytest.mark.unit
@pytest.mark.auth
def test_force_auth_from_environment(tmp_path, monkeypatch):
    auth_file = tmp_path / "user-auth.json"
    auth_file.write_text("{}", encoding="utf-8")
    monkeypatch.setenv("FORCE_AUTH", "true")

    assert needs_authentication(auth_file=auth_file)


@pytest.mark.unit
@pytest.mark.auth
def test_auth_needed_when_file_missing_or_stale(tmp_path):
    auth_file = tmp_path / "user-auth.json"
    assert needs_authentication(force=False, auth_file=auth_file)

    auth_file.write_text("{}", encoding="utf-8")
    assert not needs_authentication(force=False, auth_file=auth_file)
    assert needs_authentication(
        force=False,
        auth_file=auth_file,
        now=datetime.now() + timedelta(hours=25),
    )
