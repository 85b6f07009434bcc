"""
================================================================================
Global Setup
================================================================================

Runs once before the UI suite:

    1. Creates the artifact directories (screenshots, videos, results, auth,
       test assets)
    2. Writes placeholder test assets used by the upload scenarios
    3. Logs in and stores the session when none is fresh (or FORCE_AUTH=true)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from loguru import logger
from PIL import Image

from liveshare_tools.common import get_credentials
from liveshare_tools.data_generator.data_factory import sample_test_data

from .artifacts import artifact_dir
from .session_store import get_auth_state_info, is_auth_state_expired


ARTIFACT_KINDS = ("screenshots", "videos", "results", "auth", "assets")

UPLOAD_IMAGES_DIR = "upload-images"

# Solid-colour placeholder images (name -> RGB)
TEST_IMAGES: Dict[str, Tuple[int, int, int]] = {
    "test-image-1.png": (255, 0, 0),
    "test-image-2.png": (0, 255, 0),
    "test-image-3.png": (0, 0, 255),
}

README_TEXT = (
    "This folder contains sample images for upload testing.\n"
    "You can replace these with your own test images if needed.\n"
    "Images should be jpg or png format and less than 5MB in size.\n"
    "Video upload scenarios look for test-video.mp4 next to this file.\n"
)


PLACEHOLDER_SIZE = (800, 800)


def write_placeholder_image(path: Path, rgb: Tuple[int, int, int], size: Tuple[int, int] = PLACEHOLDER_SIZE) -> Path:
    """Save a single-colour image; the format follows the file suffix."""
    Image.new("RGB", size, color=rgb).save(path)
    return path


def prepare_directories() -> List[Path]:
    """Create every artifact directory; returns them in creation order."""
    created = [artifact_dir(kind) for kind in ARTIFACT_KINDS]
    uploads = artifact_dir("assets") / UPLOAD_IMAGES_DIR
    uploads.mkdir(parents=True, exist_ok=True)
    created.append(uploads)
    for path in created:
        logger.debug(f"📁 Directory ready: {path}")
    return created


def generate_test_assets(assets_dir: Optional[Path] = None) -> List[Path]:
    """
    Write placeholder images, a README and sample data if missing.

    Existing files are left alone so real fixtures can replace them.

    Returns:
        Files written by this call
    """
    assets_dir = Path(assets_dir) if assets_dir else artifact_dir("assets")
    uploads = assets_dir / UPLOAD_IMAGES_DIR
    uploads.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    for name, rgb in TEST_IMAGES.items():
        path = uploads / name
        if not path.exists():
            write_placeholder_image(path, rgb)
            written.append(path)

    readme = uploads / "README.txt"
    if not readme.exists():
        readme.write_text(README_TEXT, encoding="utf-8")
        written.append(readme)

    sample_data = assets_dir / "sample-test-data.json"
    if not sample_data.exists():
        sample_data.write_text(json.dumps(sample_test_data(), indent=2), encoding="utf-8")
        written.append(sample_data)

    if written:
        logger.info(f"📸 Generated {len(written)} test asset(s) in {assets_dir}")
    return written


def upload_image_paths(assets_dir: Optional[Path] = None) -> List[Path]:
    """Upload images available to the scenarios, placeholder ones included."""
    assets_dir = Path(assets_dir) if assets_dir else artifact_dir("assets")
    uploads = assets_dir / UPLOAD_IMAGES_DIR
    return sorted(p for p in uploads.glob("*") if p.suffix.lower() in (".png", ".jpg", ".jpeg"))


def needs_authentication(
    force: Optional[bool] = None,
    auth_file: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> bool:
    """
    True when FORCE_AUTH is set or the auth file is missing or older than 24h.

    Args:
        force: Overrides the FORCE_AUTH environment variable
        auth_file: Auth state file (defaults to auth/user-auth.json)
        now: Reference time for the expiry check
    """
    if force is None:
        force = os.getenv("FORCE_AUTH", "false").lower() == "true"
    if force:
        logger.info("🔐 FORCE_AUTH set, re-authenticating")
        return True

    if is_auth_state_expired(auth_file, now):
        info = get_auth_state_info(auth_file, now)
        reason = "missing" if not info["exists"] else f"{info['age_hours']}h old"
        logger.info(f"🔐 Auth state {reason}, authentication required")
        return True

    logger.info("✅ Authentication already exists, skipping auth setup")
    return False


async def ensure_authenticated(
    force: Optional[bool] = None,
    headless: Optional[bool] = None,
    provider: str = "google",
    target_email: str = "",
) -> bool:
    """
    Log in with a fresh browser and store the session when needed.

    Returns:
        True if a usable session exists afterwards

    Raises:
        AuthenticationError: Login failed after every retry
    """
    if not needs_authentication(force):
        return True

    from liveshare_e2e.ui_testing.pages.login_page import LoginPage

    from .auth_flow import AuthenticationController
    from .browser_manager import BrowserManager
    from .session_store import FileSessionStore
    from .token_capture import TokenCapture

    credentials = get_credentials(provider)
    target_email = target_email or credentials.email

    # The global setup owns the shared file, never a worker-specific one
    store = FileSessionStore(worker_id="")
    async with BrowserManager(headless=headless, session_store=store, record_video=False) as manager:
        page = await manager.new_page()
        login_page = LoginPage(page)
        await login_page.navigate(wait_for="domcontentloaded")

        controller = AuthenticationController(
            login_page,
            credentials=credentials,
            session_store=store,
            token_capture=TokenCapture(page),
        )
        result = await controller.authenticate_or_raise(target_email=target_email, provider=provider)
        if result.shortcut:
            await manager.save_session(page.context)

    logger.info("✅ Authentication setup completed successfully")
    return True


async def run_global_setup(authenticate: bool = True, force_auth: Optional[bool] = None) -> None:
    logger.info("🚀 Starting global setup...")
    prepare_directories()
    generate_test_assets()
    if authenticate:
        await ensure_authenticated(force=force_auth)
    logger.info("✅ Global setup completed successfully")


__all__ = [
    "ensure_authenticated",
    "generate_test_assets",
    "needs_authentication",
    "prepare_directories",
    "run_global_setup",
    "upload_image_paths",
    "write_placeholder_image",
]
