"""
================================================================================
Base Page Object
================================================================================

Foundation class for the LiveShare Page Object Model.

Provides:
    - Navigation relative to the MODE profile's base URL
    - Candidate-list element resolution (SmartLocator)
    - Resilient click/fill primitives (ElementActions)
    - Screenshot and debugging utilities
    - Wait strategies
    - API response capture for failure reports

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page, Response
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from liveshare_tools.common import get_base_url

from .artifacts import capture_screenshot
from .element_actions import ActionTarget, ElementActions
from .results import ActionResult
from .retry_policy import BackoffPolicy
from .smart_locator import Resolution, SmartLocator, Target


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class EventListPage(BasePage):
            URL_PATH = "/events"

            async def click_create_event(self) -> bool:
                return bool(await self.safe_click("button.Create-Event"))
    """

    # Override in subclasses
    URL_PATH: str = "/"
    PAGE_TITLE: str = ""

    def __init__(
        self,
        page: Page,
        base_url: str = "",
        retry_policy: Optional[BackoffPolicy] = None,
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object
            base_url: Application base URL (defaults to app.base_url of the MODE profile)
            retry_policy: Backoff policy for the action primitives
        """
        self.page = page
        self.base_url = (base_url or get_base_url()).rstrip("/")
        self.smart = SmartLocator(page)
        self.actions = ElementActions(page, retry_policy=retry_policy)

        self._captured_requests: List[Dict[str, Any]] = []
        self._setup_request_capture()

    def _setup_request_capture(self) -> None:
        """Keep the last API responses for failure reports."""

        async def capture_response(response: Response) -> None:
            if "/api/" not in response.url:
                return
            try:
                body = await response.text()
            except PlaywrightError:
                body = "<unable to read>"

            self._captured_requests.append({
                "timestamp": datetime.now().isoformat(),
                "url": response.url,
                "status": response.status,
                "body": body[:1000],
            })
            if len(self._captured_requests) > 20:
                self._captured_requests.pop(0)

        self.page.on("response", capture_response)

    @property
    def url(self) -> str:
        """Get full page URL."""
        return f"{self.base_url}{self.URL_PATH}"

    async def navigate(self, wait_for: str = "networkidle") -> None:
        """
        Navigate to this page.

        Args:
            wait_for: Wait condition - 'load', 'domcontentloaded', 'networkidle'
        """
        with allure.step(f"Navigate to {self.URL_PATH}"):
            await self.page.goto(self.url, wait_until=wait_for)
            logger.debug(f"Navigated to: {self.url}")

    async def navigate_to(self, path: str, wait_for: str = "networkidle") -> None:
        """
        Navigate to a path relative to the base URL.
        """
        full_url = f"{self.base_url}{path}"
        with allure.step(f"Navigate to {path}"):
            await self.page.goto(full_url, wait_until=wait_for)

    async def wait_for_page_load(self, state: str = "networkidle", timeout: int = 15000) -> None:
        """
        Wait for the page to reach a stable load state.
        """
        await self.page.wait_for_load_state(state, timeout=timeout)

    async def wait_for_page_ready(self, timeout: int = 30000) -> bool:
        """
        DOM ready, a short pause for client rendering, then network idle.

        Network idle never arrives on pages with long-polling, so a timeout
        there is logged and tolerated.

        Returns:
            True if network idle was reached
        """
        await self.page.wait_for_load_state("domcontentloaded", timeout=timeout)
        await self.page.wait_for_timeout(1000)
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout)
            return True
        except PlaywrightError:
            logger.debug("Network did not go idle, continuing")
            return False

    # =========================================================================
    # Resilient Element Interactions
    # =========================================================================

    async def try_multiple_selectors(
        self,
        candidates: Target,
        action: str = "is_visible",
        timeout: Optional[int] = None,
        name: Optional[str] = None,
    ) -> Resolution:
        """
        Resolve the first visible candidate, optionally acting on it.

        Args:
            candidates: Ordered candidates (or a SmartLocator registry key)
            action: "is_visible", "wait_for" or "click"
            timeout: Per-candidate timeout in ms
            name: Display name for logs
        """
        return await self.smart.resolve(candidates, timeout=timeout, action=action, name=name)

    async def safe_click(self, target: ActionTarget, retries: Optional[int] = None, **options: Any) -> ActionResult:
        """Click with visibility checks, forced click and bounded retries."""
        return await self.actions.safe_click(target, retries=retries, **options)

    async def safe_fill(
        self,
        target: ActionTarget,
        value: str,
        retries: Optional[int] = None,
        secret: bool = False,
    ) -> ActionResult:
        """Clear then fill with the same retry contract as ``safe_click``."""
        return await self.actions.safe_fill(target, value, retries=retries, secret=secret)

    async def is_visible(self, target: Target, timeout: int = 2000) -> bool:
        """
        Check if any candidate of the target is visible.
        """
        return await self.smart.is_visible(target, timeout=timeout)

    async def exists(self, selector: str) -> bool:
        """True if the selector matches at least one element (visible or not)."""
        try:
            return await self.page.locator(selector).count() > 0
        except PlaywrightError:
            return False

    async def first_present(self, selectors: Sequence[str]) -> Optional[Locator]:
        """First selector matching anything (visible or not), as a locator."""
        for selector in selectors:
            if await self.exists(selector):
                logger.debug(f"Found element with selector: {selector}")
                return self.page.locator(selector).first
        return None

    async def get_text(self, selector: str, timeout: int = 5000) -> str:
        """
        Text content of the first visible match, or "" if it never shows up.
        """
        resolution = await self.smart.resolve(selector, timeout=timeout)
        if not resolution:
            return ""
        return ((await resolution.locator.text_content()) or "").strip()

    async def click_expecting_new_page(self, target: Locator, timeout: int = 5000) -> Tuple[bool, Optional[Page]]:
        """
        Click while listening for a new tab.

        The listener is registered before the click so a tab that opens
        immediately is not missed.

        Returns:
            (clicked, new_page): new_page is None when nothing opened within
            the timeout; clicked is False when the click itself failed
        """
        clicked = False
        try:
            async with self.page.context.expect_page(timeout=timeout) as page_info:
                await target.click()
                clicked = True
            new_page = await page_info.value
        except PlaywrightTimeoutError:
            if not clicked:
                logger.warning(f"⚠️ Click timed out: {target}")
            return clicked, None
        except PlaywrightError as e:
            logger.warning(f"⚠️ Click failed on {target}: {e}")
            return False, None

        await new_page.wait_for_load_state("domcontentloaded")
        logger.debug(f"New tab opened: {new_page.url}")
        return True, new_page

    # =========================================================================
    # Wait Utilities
    # =========================================================================

    async def wait_for_url(self, url_pattern: str, timeout: int = 10000) -> bool:
        """
        Wait for URL to match pattern.

        Returns:
            False on timeout instead of raising
        """
        with allure.step(f"Wait for URL: {url_pattern}"):
            try:
                await self.page.wait_for_url(url_pattern, timeout=timeout)
                return True
            except PlaywrightError:
                logger.debug(f"URL did not match {url_pattern}: {self.page.url}")
                return False

    async def wait_for_network_idle(self, timeout: int = 5000) -> None:
        """Wait for network to be idle."""
        await self.page.wait_for_load_state("networkidle", timeout=timeout)

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    async def screenshot(
        self,
        name: str,
        full_page: bool = True,
        attach_to_allure: bool = True,
    ) -> Optional[Path]:
        """
        Take screenshot and optionally attach to Allure.

        Skipped (None) when the page is already closed.
        """
        return await capture_screenshot(
            self.page,
            name,
            full_page=full_page,
            timestamped=True,
            attach_to_allure=attach_to_allure,
        )

    async def capture_failure(self, test_name: str) -> None:
        """
        Capture debugging information on test failure.

        Saves:
            - Screenshot
            - API requests log
            - Current URL
        """
        with allure.step("Capture failure details"):
            await self.screenshot(f"failure_{test_name}")

            allure.attach(
                self.page.url,
                name="Current URL",
                attachment_type=allure.attachment_type.TEXT
            )

            if self._captured_requests:
                allure.attach(
                    json.dumps(self._captured_requests[-10:], indent=2),
                    name="Recent API Requests",
                    attachment_type=allure.attachment_type.JSON
                )

    def get_locator_health_report(self) -> str:
        """Get smart locator health report."""
        return self.smart.get_health_report()


__all__ = [
    "BasePage",
    "PageBase",
]

# Many page objects prefer the PageBase name
PageBase = BasePage
