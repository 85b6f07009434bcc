"""
================================================================================
Login Page Object (Async / Playwright)
================================================================================

UI steps of the LiveShare sign-in flows:

  - "Already logged in" probe (ACCESSTOKEN, dashboard and profile indicators)
  - Google OAuth popup: account chooser or email/password form
  - Email/password sign-in on the app itself
  - Page reset between authentication attempts

The retry/backoff state machine that strings these steps together lives in
`liveshare_e2e.ui_testing.framework.auth_flow`.

================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import allure
from loguru import logger
from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError

from liveshare_e2e.ui_testing.framework.artifacts import capture_screenshot
from liveshare_e2e.ui_testing.framework.page_base import PageBase
from liveshare_e2e.ui_testing.framework.smart_locator import SmartLocator


# Google account chooser ("Chọn tài khoản" is the Vietnamese variant)
ACCOUNT_CHOOSER_HEADER = [
    'h1:has-text("Choose an account")',
    'h1:has-text("Chọn tài khoản")',
]
ACCOUNT_ITEMS = 'li[class*="aZvCDf"] div[role="link"]'
ACCOUNT_EMAIL = 'div[class*="yAlK0b"]'

GOOGLE_EMAIL_INPUT = 'input[type="email"]'
GOOGLE_PASSWORD_INPUT = 'input[type="password"]'
GOOGLE_NEXT_BUTTON = 'button:has-text("Next")'

EMAIL_LOGIN_INPUT = ['input[placeholder="Enter Email"]', 'input[type="email"]']
EMAIL_PASSWORD_INPUT = ['input[placeholder="Enter Password"]', 'input[type="password"]']
CONTINUE_BUTTON = 'button:has-text("Continue")'

LOGOUT_OPTION = [
    'button:has-text("Logout")',
    '[role="menuitem"]:has-text("Logout")',
    "text=Logout",
]

HAS_ACCESS_TOKEN = "() => localStorage.getItem('ACCESSTOKEN') !== null"

# Onboarding flags are dropped so a retry starts from a clean welcome flow
RESET_STORAGE = """
() => {
    try {
        localStorage.removeItem('hasCompletedTour');
        localStorage.removeItem('hasSeenWelcome');
        sessionStorage.clear();
    } catch (e) {}
}
"""

READ_TEST_EVENT = """
() => {
    const data = localStorage.getItem('TEST_EVENT_DATA');
    return data ? JSON.parse(data) : null;
}
"""


class LoginPage(PageBase):
    """Login page object (async)."""

    URL_PATH = "/"
    PAGE_TITLE = "LiveShare"

    POPUP_TIMEOUT = 60000
    POPUP_CLOSE_TIMEOUT = 30000
    SETTLE_TIMEOUT = 30000
    DASHBOARD_TIMEOUT = 30000

    @allure.step("Open login page")
    async def open(self) -> "LoginPage":
        await self.navigate()
        await self.wait_for_page_load()
        await self.screenshot("login-page")
        return self

    # =========================================================================
    # Session probe
    # =========================================================================

    async def has_access_token(self) -> bool:
        try:
            return bool(await self.page.evaluate(HAS_ACCESS_TOKEN))
        except PlaywrightError as e:
            logger.debug(f"localStorage not readable: {e}")
            return False

    @allure.step("Check if already logged in")
    async def check_if_already_logged_in(self) -> bool:
        """
        Probe the logged-in indicators without touching the login UI.

        Order: ACCESSTOKEN in localStorage, dashboard content (3 s), then,
        only when no Sign In button is shown, the profile indicators (1 s each).
        """
        logger.info("🔍 Checking if already logged in...")

        if await self.has_access_token():
            logger.info("✅ ACCESSTOKEN found in localStorage - user is logged in")
            return True

        if await self.smart.is_visible("dashboard_indicator", timeout=3000):
            logger.info("✅ Dashboard content visible - user is logged in")
            return True

        if not await self.smart.is_visible("sign_in_button", timeout=1000):
            resolution = await self.smart.resolve("profile_indicator", timeout=1000)
            if resolution:
                logger.info(f"✅ Profile indicator found ({resolution.selector}) - user is logged in")
                return True

        logger.info("❌ No logged-in indicators found")
        return False

    async def get_test_event_data(self) -> Optional[Dict[str, Any]]:
        """Event seeded by the setup scripts under ``TEST_EVENT_DATA``, if any."""
        try:
            data = await self.page.evaluate(READ_TEST_EVENT)
        except PlaywrightError as e:
            logger.debug(f"Could not read TEST_EVENT_DATA: {e}")
            return None
        if data:
            logger.info(f"📊 Found test event data: {data.get('name')} ({data.get('eventCode')})")
        return data

    # =========================================================================
    # Google OAuth
    # =========================================================================

    @allure.step("Click Sign In")
    async def click_sign_in(self, timeout: int = 5000) -> bool:
        """Click the Sign In entry point if it is shown; False when absent."""
        resolution = await self.smart.resolve("sign_in_button", timeout=timeout, action="click")
        if resolution:
            await self.page.wait_for_timeout(2000)
        return resolution.ok

    @allure.step("Open Google sign-in popup")
    async def open_google_popup(self, context: Optional[BrowserContext] = None) -> Page:
        """
        Click the Google provider button and return the popup page.

        The new-page wait is registered before the click.

        Raises:
            ElementNotFoundError: Google button never became visible
            PlaywrightTimeoutError: No popup within POPUP_TIMEOUT
        """
        context = context or self.page.context
        button = await self.smart.locate("google_button", timeout=10000)
        await self.screenshot("before-google-click")

        async with context.expect_page(timeout=self.POPUP_TIMEOUT) as page_info:
            await button.click()
        popup = await page_info.value
        logger.info("🔐 Google popup opened, waiting for load...")

        await popup.wait_for_load_state("domcontentloaded")
        await popup.wait_for_timeout(2000)
        return popup

    async def is_account_chooser(self, popup: Page, timeout: int = 5000) -> bool:
        return await SmartLocator(popup).is_visible(ACCOUNT_CHOOSER_HEADER, timeout=timeout)

    @allure.step("Choose Google account")
    async def choose_account(self, popup: Page, target_email: str = "") -> Optional[str]:
        """
        Pick an account on the chooser screen.

        The first entry whose displayed email contains ``target_email`` wins;
        otherwise the first entry is used.

        Returns:
            The displayed text of the chosen account, or None if the list is empty
        """
        accounts = popup.locator(ACCOUNT_ITEMS)
        count = await accounts.count()
        logger.debug(f"Account chooser lists {count} account(s)")
        if not count:
            return None

        if target_email:
            for i in range(count):
                item = accounts.nth(i)
                email_element = item.locator(ACCOUNT_EMAIL)
                if not await email_element.is_visible():
                    continue
                email = (await email_element.text_content()) or ""
                if target_email in email:
                    logger.info(f"✅ Found target account: {email.strip()}")
                    await item.click()
                    return email.strip()
            logger.warning(f"⚠️ {target_email} not listed, selecting first account")

        first = accounts.first
        text = ""
        try:
            text = ((await first.locator(ACCOUNT_EMAIL).text_content()) or "").strip()
        except PlaywrightError as e:
            logger.debug(f"Could not read first account email: {e}")
        await first.click()
        logger.info(f"Selected first available account {text}")
        return text

    async def submit_password_if_prompted(self, popup: Page, password: str, timeout: int = 3000) -> bool:
        """Handle the password re-prompt that can follow account selection."""
        if not await SmartLocator(popup).is_visible(GOOGLE_PASSWORD_INPUT, timeout=timeout):
            return False
        logger.info("🔐 Password re-prompt after account selection")
        await popup.fill(GOOGLE_PASSWORD_INPUT, password)
        await popup.locator(GOOGLE_NEXT_BUTTON).first.click()
        return True

    @allure.step("Fill Google credentials")
    async def fill_google_credentials(self, popup: Page, email: str, password: str) -> None:
        """
        Email, Next, password, Next on the Google form.

        Raises:
            PlaywrightError: When a field never shows up
        """
        await popup.wait_for_selector(GOOGLE_EMAIL_INPUT, state="visible", timeout=10000)
        await popup.fill(GOOGLE_EMAIL_INPUT, email)
        logger.info("Email filled, clicking next...")
        await popup.locator(GOOGLE_NEXT_BUTTON).first.click()
        await popup.wait_for_timeout(2000)

        await popup.wait_for_selector(GOOGLE_PASSWORD_INPUT, state="visible", timeout=10000)
        await popup.fill(GOOGLE_PASSWORD_INPUT, password)
        logger.info("Password filled, clicking next...")
        await popup.locator(GOOGLE_NEXT_BUTTON).first.click()

    async def wait_for_popup_close(self, popup: Page, timeout: int = POPUP_CLOSE_TIMEOUT) -> bool:
        """False (not an error) if the popup is still open after ``timeout``."""
        if popup.is_closed():
            return True
        try:
            await popup.wait_for_event("close", timeout=timeout)
            return True
        except PlaywrightError:
            logger.warning("⚠️ Popup did not close as expected, continuing...")
            return False

    async def close_popup(self, popup: Optional[Page]) -> None:
        if popup is None or popup.is_closed():
            return
        await capture_screenshot(popup, "popup-error-state")
        try:
            await popup.close()
        except PlaywrightError as e:
            logger.debug(f"Popup close failed: {e}")

    async def wait_for_main_page_settled(self, timeout: int = SETTLE_TIMEOUT) -> bool:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout)
            return True
        except PlaywrightError:
            logger.warning("⚠️ Main page did not reach network idle, continuing...")
            return False

    # =========================================================================
    # Email / password
    # =========================================================================

    @allure.step("Open email sign-in")
    async def open_email_login(self) -> None:
        """
        Sign In (when shown), then "Sign in with Email".

        Raises:
            ElementNotFoundError: The email sign-in button never showed up
        """
        await self.click_sign_in()
        await self.smart.click("email_signin_button", timeout=10000)
        await self.page.wait_for_timeout(2000)

    @allure.step("Fill email credentials")
    async def fill_email_credentials(self, email: str, password: str) -> None:
        """
        Email, Continue, password, Continue.

        Raises:
            ElementNotFoundError: A field or button never showed up
        """
        await self.smart.fill(EMAIL_LOGIN_INPUT, email, timeout=10000)
        await self.smart.click(CONTINUE_BUTTON, timeout=5000)
        await self.page.wait_for_timeout(3000)

        await self.smart.fill(EMAIL_PASSWORD_INPUT, password, timeout=5000)
        await self.screenshot("password-filled")
        await self.smart.click(CONTINUE_BUTTON, timeout=5000)
        await self.page.wait_for_timeout(3000)

    async def wait_for_dashboard(self, timeout: int = DASHBOARD_TIMEOUT) -> bool:
        """
        Dashboard content within ``timeout``; a vanished Sign In button also counts.
        """
        if await self.smart.is_visible("dashboard_indicator", timeout=timeout):
            logger.info("✅ Dashboard content detected - email login successful")
            return True
        if not await self.smart.is_visible("sign_in_button", timeout=2000):
            logger.info("✅ Login elements not visible - assuming login successful")
            return True
        logger.error("❌ Dashboard not detected and login elements still visible")
        await self.screenshot("email-login-failed")
        return False

    @allure.step("Complete email login ({email})")
    async def complete_email_login(self, email: str, password: str) -> bool:
        """
        Whole email/password sign-in in one call.

        Raises:
            ElementNotFoundError: A step of the form could not be found
        """
        logger.info(f"🔐 Starting email login for: {email}")
        await self.open_email_login()
        await self.fill_email_credentials(email, password)
        return await self.wait_for_dashboard()

    # =========================================================================
    # Reset / logout
    # =========================================================================

    @allure.step("Reset page state")
    async def reset_page_state(self) -> None:
        """
        Back to the app root with onboarding flags and sessionStorage cleared.

        Errors are logged and ignored.
        """
        logger.info("🔄 Resetting page state for retry...")
        try:
            await self.page.goto(f"{self.base_url}/")
            try:
                await self.page.wait_for_load_state("networkidle", timeout=10000)
            except PlaywrightError:
                logger.debug("Network did not go idle after reset, continuing")
            await self.page.wait_for_timeout(1000)
            await self.page.evaluate(RESET_STORAGE)
        except PlaywrightError as e:
            logger.warning(f"⚠️ Error resetting page state: {e}")

    @allure.step("Logout")
    async def logout(self) -> bool:
        """Avatar menu, Logout, then wait for the Sign In button."""
        avatar = await self.smart.resolve("avatar_icon", action="click")
        if not avatar:
            logger.error("❌ Avatar icon not found, cannot open account menu")
            return False
        await self.page.wait_for_timeout(1000)

        if not await self.smart.resolve(LOGOUT_OPTION, timeout=3000, action="click"):
            logger.error("❌ Logout option not found")
            return False

        logged_out = await self.smart.is_visible("sign_in_button", timeout=10000)
        if logged_out:
            logger.info("✅ Logged out")
        return logged_out
