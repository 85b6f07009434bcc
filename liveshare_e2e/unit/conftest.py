"""
================================================================================
Unit Test Configuration
================================================================================

Browser-free tests of the framework and page objects. Every test gets its own
artifact directories and a clean configuration cache.

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Generator

import pytest

from liveshare_tools.common import reset_config, set_config

from fake_browser import FakePage


ENV_VARS = ("MODE", "ENVIRONMENT", "ENV", "FORCE_AUTH", "HEADLESS", "CREDENTIALS__ENV_PREFIX")


@pytest.fixture(autouse=True)
def artifact_dirs(tmp_path: Path, monkeypatch) -> Generator[Dict[str, Path], None, None]:
    """Point every ``artifacts.<kind>`` directory into tmp_path."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    reset_config()
    dirs = {
        kind: tmp_path / kind
        for kind in ("screenshots", "videos", "results", "auth", "assets")
    }
    for kind, path in dirs.items():
        set_config(f"artifacts.{kind}", str(path))

    yield dirs

    reset_config()


@pytest.fixture
def page() -> FakePage:
    return FakePage()
