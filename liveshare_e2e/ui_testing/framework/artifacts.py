"""
================================================================================
Test Artifacts
================================================================================

Locations of screenshots, videos, auth state and test assets, plus the one
screenshot routine every layer shares.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from loguru import logger
from playwright.async_api import Page

from liveshare_tools.common import get_config
from liveshare_tools.report_tools.allure_utils import attach_png


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent

_DEFAULT_DIRS = {
    "screenshots": "screenshots",
    "videos": "videos",
    "results": "test-results",
    "auth": "auth",
    "assets": "test-assets",
}


def artifact_dir(kind: str, create: bool = True) -> Path:
    """
    Resolve an artifact directory from ``artifacts.<kind>`` config.

    Relative paths are anchored at the project root so runs from any cwd
    write to the same place.
    """
    if kind not in _DEFAULT_DIRS:
        raise ValueError(f"Unknown artifact kind: {kind}")
    path = Path(get_config(f"artifacts.{kind}", _DEFAULT_DIRS[kind]))
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def sanitize_name(value: str) -> str:
    """
    Turn a selector or label into a file-name-safe token.

    Every non-alphanumeric character becomes ``-``:
    ``button:has-text("Join")`` -> ``button-has-text--Join--``.
    """
    return re.sub(r"[^a-zA-Z0-9]", "-", value)


async def capture_screenshot(
    page: Page,
    name: str,
    directory: Optional[Union[str, Path]] = None,
    full_page: bool = True,
    timestamped: bool = False,
    attach_to_allure: bool = True,
) -> Optional[Path]:
    """
    Best-effort screenshot; never raises.

    Args:
        page: Page to capture
        name: File stem (already sanitized by the caller when keyed by selector)
        directory: Output directory, defaults to ``artifacts.screenshots``
        full_page: Capture the full scrollable page
        timestamped: Append a timestamp so repeated captures do not overwrite
        attach_to_allure: Attach the PNG to the current Allure step

    Returns:
        Path of the saved file, or None when the page was closed or capture failed
    """
    if page.is_closed():
        logger.debug(f"📸 Skipping screenshot '{name}': page is closed")
        return None

    target_dir = Path(directory) if directory else artifact_dir("screenshots")
    target_dir.mkdir(parents=True, exist_ok=True)
    if timestamped:
        name = f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    filepath = target_dir / f"{name}.png"

    try:
        await page.screenshot(path=str(filepath), full_page=full_page)
    except Exception as e:
        logger.warning(f"⚠️ Failed to capture screenshot '{name}': {e}")
        return None

    if attach_to_allure:
        attach_png(filepath, name=name)
    logger.debug(f"📸 Screenshot saved: {filepath}")
    return filepath


__all__ = [
    "PROJECT_ROOT",
    "artifact_dir",
    "capture_screenshot",
    "sanitize_name",
]
