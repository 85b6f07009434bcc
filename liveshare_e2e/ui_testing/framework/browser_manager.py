"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for UI automation.

Features:
    - One browser per manager, isolated contexts per test
    - Settings from the MODE profile (browser.type, headless, viewport)
    - Session restore/save through a SessionStore
    - Optional video recording into the configured videos directory

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)
from playwright.async_api import Error as PlaywrightError

from liveshare_tools.common import get_config

from .artifacts import artifact_dir
from .session_store import DEFAULT_SESSION_KEY, FileSessionStore, SessionBlob, SessionStore


BROWSER_TYPES = ("chromium", "firefox", "webkit")


class BrowserManager:
    """
    Manages browser instances and contexts for UI testing.

    Usage:
        async with BrowserManager() as manager:
            page = await manager.new_page()
            await page.goto("https://app.livesharenow.com")

        # Or with a stored session
        async with BrowserManager(restore_auth=True) as manager:
            page = await manager.new_page()
            # Already logged in if auth/user-auth.json is fresh
    """

    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "args": [
            "--ignore-certificate-errors",
        ],
    }

    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        headless: Optional[bool] = None,
        restore_auth: bool = False,
        browser_type: Optional[str] = None,
        session_store: Optional[SessionStore] = None,
        session_key: str = DEFAULT_SESSION_KEY,
        record_video: Optional[bool] = None,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run headless (defaults to browser.headless)
            restore_auth: Seed new contexts with the stored session
            browser_type: 'chromium', 'firefox' or 'webkit' (defaults to browser.type)
            session_store: Session backend (defaults to FileSessionStore)
            session_key: Key of the stored session
            record_video: Record videos (defaults to test.video_on_failure)
        """
        self.headless = get_config("browser.headless", True) if headless is None else headless
        self.browser_type = browser_type or get_config("browser.type", "chromium")
        if self.browser_type not in BROWSER_TYPES:
            raise ValueError(f"Unsupported browser: {self.browser_type}")
        self.restore_auth = restore_auth
        self.session_store = session_store or FileSessionStore()
        self.session_key = session_key
        self.record_video = (
            get_config("test.video_on_failure", False) if record_video is None else record_video
        )

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self.browser_type)

        launch_options = {
            **self.DEFAULT_LAUNCH_OPTIONS,
            "headless": self.headless,
        }
        self._browser = await browser_launcher.launch(**launch_options)
        logger.debug(f"Browser started: {self.browser_type} (headless={self.headless})")

    async def close(self) -> None:
        """Close all contexts and browser."""
        for context in self._contexts:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.debug(f"Context close failed: {e}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    def context_options(self, **options: Any) -> Dict[str, Any]:
        """
        Options for ``Browser.new_context``: defaults, profile viewport,
        video directory and, when restoring, the stored storage state.
        """
        viewport = get_config("browser.viewport", {"width": 1280, "height": 720})
        context_options: Dict[str, Any] = {
            **self.DEFAULT_CONTEXT_OPTIONS,
            "viewport": {"width": int(viewport["width"]), "height": int(viewport["height"])},
        }
        if self.record_video:
            context_options["record_video_dir"] = str(artifact_dir("videos"))

        if self.restore_auth:
            blob = self.session_store.load_valid(self.session_key)
            if blob is not None:
                context_options["storage_state"] = blob.state
                logger.debug(f"Restored session '{self.session_key}'")
            else:
                logger.info(f"ℹ️ No fresh session '{self.session_key}' to restore")

        context_options.update(options)
        return context_options

    async def new_context(self, **options: Any) -> BrowserContext:
        """
        Create new browser context.

        Each context is isolated - separate cookies, localStorage, etc.
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context = await self._browser.new_context(**self.context_options(**options))
        timeout = get_config("test.timeout_ms", 60000)
        context.set_default_timeout(timeout)
        self._contexts.append(context)
        return context

    async def new_page(
        self,
        context: Optional[BrowserContext] = None,
        **context_options: Any,
    ) -> Page:
        """
        Create new page in new or existing context.
        """
        if context is None:
            context = await self.new_context(**context_options)
        return await context.new_page()

    async def save_session(self, context: BrowserContext) -> None:
        """
        Save cookies and localStorage of ``context`` to the session store.
        """
        state = await context.storage_state()
        self.session_store.save(self.session_key, SessionBlob(state=state))

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser


# =============================================================================
# Convenience Functions
# =============================================================================

async def create_authenticated_page(
    headless: Optional[bool] = None,
    target_email: str = "",
    provider: str = "google",
) -> Tuple[BrowserManager, Page]:
    """
    Page with a logged-in session.

    Restores the stored session when it is fresh; otherwise runs the
    authentication controller, which saves the new session.

    Returns:
        Tuple of (BrowserManager, authenticated Page)

    Raises:
        AuthenticationError: Login failed after every retry
    """
    from liveshare_tools.common import get_credentials
    from liveshare_e2e.ui_testing.pages.login_page import LoginPage

    from .auth_flow import AuthenticationController

    manager = BrowserManager(headless=headless, restore_auth=True)
    await manager.start()
    page = await manager.new_page()

    login_page = LoginPage(page)
    await login_page.navigate(wait_for="domcontentloaded")

    controller = AuthenticationController(
        login_page,
        credentials=get_credentials(provider),
        session_store=manager.session_store,
        session_key=manager.session_key,
    )
    try:
        await controller.authenticate_or_raise(target_email=target_email, provider=provider)
    except Exception:
        await manager.close()
        raise
    return manager, page


__all__ = [
    "BROWSER_TYPES",
    "BrowserManager",
    "create_authenticated_page",
]
