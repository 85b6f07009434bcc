"""
================================================================================
OAuth Token Capture
================================================================================

Optional side channel of the login flow: intercepts the OAuth token exchange
(``**/oauth/token``) and persists the access token under auth/tokens/ so API
helpers can reuse it. Whatever happens here never changes the login outcome.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Union

from filelock import FileLock
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Route

from .artifacts import artifact_dir


TOKEN_ROUTE = "**/oauth/token"
TOKEN_FILE_NAME = "auth-token.json"
# Kept out of the auth/ root, where every *.json is a stored session
TOKEN_SUBDIR = "tokens"

# Fields copied from the token endpoint response
TOKEN_FIELDS = ("access_token", "id_token", "token_type", "expires_in", "scope")

DEFAULT_EXPIRES_IN = 3600


def default_token_file() -> Path:
    return artifact_dir("auth") / TOKEN_SUBDIR / TOKEN_FILE_NAME


class TokenCapture:
    """
    Intercepts the token exchange of one page and saves the token.

    Usage:
        capture = TokenCapture(page)
        await capture.install()
        ...  # run the login flow
        token = capture.get_saved_access_token()
    """

    def __init__(self, page: Page, token_file: Optional[Union[str, Path]] = None):
        self.page = page
        self.token_file = Path(token_file) if token_file else default_token_file()
        self.captured: Optional[Dict[str, Any]] = None
        self._installed = False

    async def install(self) -> bool:
        """Register the route handler; False if the page refused it."""
        if self._installed:
            return True
        try:
            await self.page.route(TOKEN_ROUTE, self._handle_route)
        except PlaywrightError as e:
            logger.warning(f"⚠️ Token capture not installed: {e}")
            return False
        self._installed = True
        logger.debug(f"🔑 Token capture listening on {TOKEN_ROUTE}")
        return True

    async def uninstall(self) -> None:
        if not self._installed:
            return
        try:
            await self.page.unroute(TOKEN_ROUTE, self._handle_route)
        except PlaywrightError as e:
            logger.debug(f"Token capture unroute failed: {e}")
        self._installed = False

    async def _handle_route(self, route: Route) -> None:
        try:
            response = await route.fetch()
        except PlaywrightError as e:
            logger.warning(f"⚠️ Token request failed upstream: {e}")
            await route.continue_()
            return

        try:
            body = await response.json()
            if isinstance(body, dict) and body.get("access_token"):
                self.save_access_token(body)
        except (PlaywrightError, ValueError) as e:
            logger.warning(f"⚠️ Could not parse token response: {e}")
        except Exception as e:
            logger.warning(f"⚠️ Could not save captured token to {self.token_file}: {e}")
        finally:
            # The login page is waiting on this response
            await route.fulfill(response=response)

    def save_access_token(self, token_response: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Persist the interesting fields of a token response with an expiry time.

        Returns:
            The record that was written
        """
        now = now or datetime.now()
        record = {k: token_response.get(k) for k in TOKEN_FIELDS}
        expires_in = int(token_response.get("expires_in") or DEFAULT_EXPIRES_IN)
        record["timestamp"] = now.isoformat()
        record["expires_at"] = (now + timedelta(seconds=expires_in)).isoformat()

        self.token_file.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(str(self.token_file) + ".lock"):
            self.token_file.write_text(json.dumps(record, indent=2), encoding="utf-8")

        self.captured = record
        logger.info(f"🔑 Access token captured (expires {record['expires_at']})")
        return record

    def get_saved_access_token(self, now: Optional[datetime] = None) -> Optional[str]:
        """Return the saved access token unless it is missing or expired."""
        return load_access_token(self.token_file, now)


def load_access_token(token_file: Optional[Union[str, Path]] = None, now: Optional[datetime] = None) -> Optional[str]:
    """
    Read a previously captured access token.

    Args:
        token_file: Token file (defaults to auth/tokens/auth-token.json)
        now: Reference time for the expiry check

    Returns:
        The access token, or None if absent, unreadable or expired
    """
    path = Path(token_file) if token_file else default_token_file()
    if not path.exists():
        return None
    try:
        record = json.loads(path.read_text(encoding="utf-8"))
        expires_at = datetime.fromisoformat(record["expires_at"])
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"⚠️ Unreadable token file {path}: {e}")
        return None

    if (now or datetime.now()) >= expires_at:
        logger.info("⌛ Saved access token has expired")
        return None
    return record.get("access_token")


__all__ = [
    "TOKEN_ROUTE",
    "TokenCapture",
    "load_access_token",
]
