"""
================================================================================
Session Store
================================================================================

Persistence for authenticated browser sessions (Playwright storage state).

Features:
    - load(key) / save(key, blob) / is_expired(blob, now) interface
    - File backend guarded by filelock for cross-process safety
    - Per-worker keys under pytest-xdist so workers never share a file
    - In-memory backend for unit tests and single-process tooling
    - Fixed 24 hour staleness policy based on the save time

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from filelock import FileLock
from loguru import logger

from .artifacts import artifact_dir


# Sessions older than this are treated as logged out
MAX_SESSION_AGE = timedelta(hours=24)

DEFAULT_SESSION_KEY = "user-auth"

# Seconds to wait for another worker holding the lock
LOCK_TIMEOUT = 30


def current_worker_id() -> Optional[str]:
    """pytest-xdist worker id (``gw0``, ``gw1`` ...), or None when not distributed."""
    worker = os.getenv("PYTEST_XDIST_WORKER", "").strip()
    return worker or None


@dataclass
class SessionBlob:
    """
    Opaque storage state plus the moment it was saved.

    ``state`` is exactly what ``BrowserContext.storage_state()`` returns and
    what ``Browser.new_context(storage_state=...)`` accepts.
    """
    state: Dict[str, Any]
    saved_at: datetime = field(default_factory=datetime.now)

    def age(self, now: Optional[datetime] = None) -> timedelta:
        return (now or datetime.now()) - self.saved_at


class SessionStore(ABC):
    """
    Where authenticated sessions live between runs.

    Subclasses implement raw storage; expiry is a fixed policy shared by all
    backends.
    """

    max_age: timedelta = MAX_SESSION_AGE

    def __init__(self, worker_id: Optional[str] = None):
        self.worker_id = worker_id if worker_id is not None else current_worker_id()

    @abstractmethod
    def load(self, key: str = DEFAULT_SESSION_KEY) -> Optional[SessionBlob]:
        """Return the stored blob, or None if nothing was saved under ``key``."""

    @abstractmethod
    def save(self, key: str, blob: SessionBlob) -> None:
        """Store ``blob`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str = DEFAULT_SESSION_KEY) -> bool:
        """Remove ``key``; True if something was removed."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Keys stored for this worker."""

    def clear(self) -> int:
        """Remove every session of this worker; returns how many were removed."""
        removed = 0
        for key in self.keys():
            if self.delete(key):
                removed += 1
        logger.info(f"🧹 Cleared {removed} stored session(s)")
        return removed

    def is_expired(self, blob: Optional[SessionBlob], now: Optional[datetime] = None) -> bool:
        """A missing blob, or one older than ``max_age``, is expired."""
        if blob is None:
            return True
        return blob.age(now) > self.max_age

    def load_valid(self, key: str = DEFAULT_SESSION_KEY, now: Optional[datetime] = None) -> Optional[SessionBlob]:
        """``load`` that treats expired sessions as absent."""
        blob = self.load(key)
        if blob is None:
            return None
        if self.is_expired(blob, now):
            logger.info(f"⌛ Session '{key}' is older than {self.max_age}, ignoring it")
            return None
        return blob


class FileSessionStore(SessionStore):
    """
    JSON files under ``root`` (``auth/`` by default).

    ``user-auth`` maps to ``auth/user-auth.json``; under xdist worker ``gw1``
    it maps to ``auth/user-auth.gw1.json``. ``saved_at`` is the file mtime.

    A worker with no file of its own reads the shared file written by the
    global setup, but only ever writes its own.
    """

    def __init__(self, root: Optional[Union[str, Path]] = None, worker_id: Optional[str] = None):
        super().__init__(worker_id)
        self.root = Path(root) if root else artifact_dir("auth")
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str = DEFAULT_SESSION_KEY) -> Path:
        suffix = f".{self.worker_id}" if self.worker_id else ""
        return self.root / f"{key}{suffix}.json"

    def shared_path_for(self, key: str = DEFAULT_SESSION_KEY) -> Path:
        return self.root / f"{key}.json"

    def _lock_for(self, path: Path) -> FileLock:
        return FileLock(str(path) + ".lock", timeout=LOCK_TIMEOUT)

    def load(self, key: str = DEFAULT_SESSION_KEY) -> Optional[SessionBlob]:
        path = self.path_for(key)
        if self.worker_id and not path.exists():
            path = self.shared_path_for(key)
        with self._lock_for(path):
            if not path.exists():
                return None
            try:
                state = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"⚠️ Ignoring unreadable session file {path}: {e}")
                return None
            saved_at = datetime.fromtimestamp(path.stat().st_mtime)
        return SessionBlob(state=state, saved_at=saved_at)

    def save(self, key: str, blob: SessionBlob) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        with self._lock_for(path):
            tmp_path.write_text(json.dumps(blob.state, indent=2), encoding="utf-8")
            os.replace(tmp_path, path)
            ts = blob.saved_at.timestamp()
            os.utime(path, (ts, ts))
        logger.info(f"💾 Session '{key}' saved to {path}")

    def delete(self, key: str = DEFAULT_SESSION_KEY) -> bool:
        path = self.path_for(key)
        with self._lock_for(path):
            if not path.exists():
                return False
            path.unlink()
        logger.info(f"🗑️ Session '{key}' deleted ({path})")
        return True

    def keys(self) -> List[str]:
        suffix = f".{self.worker_id}.json" if self.worker_id else ".json"
        found = []
        for path in sorted(self.root.glob(f"*{suffix}")):
            stem = path.name[: -len(suffix)]
            # Without a worker id, skip files that belong to a worker
            if not self.worker_id and "." in stem:
                continue
            found.append(stem)
        return found


class MemorySessionStore(SessionStore):
    """Process-local store keyed by ``(worker, key)``."""

    def __init__(self, worker_id: Optional[str] = None):
        super().__init__(worker_id)
        self._blobs: Dict[Tuple[Optional[str], str], SessionBlob] = {}

    def load(self, key: str = DEFAULT_SESSION_KEY) -> Optional[SessionBlob]:
        return self._blobs.get((self.worker_id, key))

    def save(self, key: str, blob: SessionBlob) -> None:
        self._blobs[(self.worker_id, key)] = blob

    def delete(self, key: str = DEFAULT_SESSION_KEY) -> bool:
        return self._blobs.pop((self.worker_id, key), None) is not None

    def keys(self) -> List[str]:
        return sorted(k for worker, k in self._blobs if worker == self.worker_id)


# ================================================================================
# Auth file helpers
# ================================================================================

def default_auth_file() -> Path:
    """``auth/user-auth.json`` under the configured auth directory."""
    return artifact_dir("auth") / f"{DEFAULT_SESSION_KEY}.json"


def is_auth_state_expired(
    path: Optional[Union[str, Path]] = None,
    now: Optional[datetime] = None,
) -> bool:
    """
    True if the auth file is missing or was last written more than 24 hours ago.

    Args:
        path: Auth state file (defaults to auth/user-auth.json)
        now: Reference time (defaults to the current time)
    """
    path = Path(path) if path else default_auth_file()
    if not path.exists():
        return True
    modified = datetime.fromtimestamp(path.stat().st_mtime)
    return (now or datetime.now()) - modified > MAX_SESSION_AGE


def get_auth_state_info(
    path: Optional[Union[str, Path]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Describe an auth state file for logs and reports.

    Returns:
        Dict with exists, path, expired, size, last_modified, age_hours
    """
    path = Path(path) if path else default_auth_file()
    if not path.exists():
        return {"exists": False, "path": str(path), "expired": True}

    stat = path.stat()
    modified = datetime.fromtimestamp(stat.st_mtime)
    age = (now or datetime.now()) - modified
    return {
        "exists": True,
        "path": str(path),
        "expired": age > MAX_SESSION_AGE,
        "size": stat.st_size,
        "last_modified": modified.isoformat(),
        "age_hours": round(age.total_seconds() / 3600, 2),
    }


__all__ = [
    "DEFAULT_SESSION_KEY",
    "FileSessionStore",
    "MAX_SESSION_AGE",
    "MemorySessionStore",
    "SessionBlob",
    "SessionStore",
    "current_worker_id",
    "default_auth_file",
    "get_auth_state_info",
    "is_auth_state_expired",
]
