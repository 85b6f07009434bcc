"""
Repository-level pytest configuration.

  - Command-line options shared by every suite (--run-e2e, --no-auth-setup)
  - loguru is initialised once per run from the active profile

Credentials are never defaulted here; they come from the environment
(GOOGLE_EMAIL, LIVESHARE_EMAIL, MAILOSAUR_API_KEY, ...).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest
from loguru import logger

from liveshare_tools.common import get_mode, init_logger


def pytest_addoption(parser):
    group = parser.getgroup("liveshare")
    group.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run the browser scenarios against the live app (or set RUN_E2E=true)",
    )
    group.addoption(
        "--no-auth-setup",
        action="store_true",
        default=False,
        help="Skip the login step of the global setup",
    )


def e2e_enabled(config) -> bool:
    return config.getoption("--run-e2e") or os.getenv("RUN_E2E", "false").lower() == "true"


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _init_logging() -> Generator[None, None, None]:
    """
    Configure loguru from the active MODE profile.
    """
    init_logger()
    logger.info(f"🚀 LiveShare suite starting (MODE={get_mode()})")
    yield


def pytest_collection_modifyitems(config, items):
    """Browser scenarios are collected always but only run on request."""
    if e2e_enabled(config):
        return
    skip_e2e = pytest.mark.skip(reason="Browser scenario: pass --run-e2e or set RUN_E2E=true")
    for item in items:
        if "ui_testing" in item.nodeid:
            item.add_marker(skip_e2e)
