"""
================================================================================
Register Page Object (Async / Playwright)
================================================================================

Email sign-up: Create Free Account, terms dialog, the registration form and
the six-box OTP verification.

================================================================================
"""

from __future__ import annotations

import time
from typing import Dict

import allure
from loguru import logger

from liveshare_e2e.ui_testing.framework.page_base import PageBase


CREATE_ACCOUNT_LINK = "text=Create Free Account"

TERMS_DIALOG = "app-terms-dialog"
TERMS_CHECKBOXES = 'app-terms-dialog input[type="checkbox"]'
TERMS_CONTINUE = [
    'app-terms-dialog button:has-text("Continue")',
    'app-terms-dialog button:has-text("OK")',
]

NAME_INPUT = 'input[placeholder="Enter Name"]'
EMAIL_INPUT = 'input[placeholder="Enter Email"]'
PASSWORD_INPUT = 'input[placeholder="Enter Password"]'
CONFIRM_PASSWORD_INPUT = 'input[placeholder="Confirm Password"]'
CREATE_ACCOUNT_BUTTON = 'button:has-text("Create Account")'

OTP_BOXES = ".otp-box"
OTP_LENGTH = 6
CONTINUE_TO_EVENT = 'button:has-text("Continue to the Event")'


class RegisterPage(PageBase):
    """Account registration page object (async)."""

    URL_PATH = "/"

    @staticmethod
    def generate_test_credentials(domain: str = "gmail.com") -> Dict[str, str]:
        timestamp = int(time.time() * 1000)
        return {
            "name": f"auto_user_{timestamp}",
            "email": f"auto_{timestamp}@{domain}",
            "password": "123456!",
        }

    @allure.step("Click Create Free Account")
    async def click_create_account(self) -> bool:
        if not await self.is_visible(CREATE_ACCOUNT_LINK, timeout=10000):
            logger.error("❌ Create Free Account link not visible")
            return False
        result = await self.safe_click(CREATE_ACCOUNT_LINK)
        await self.page.wait_for_timeout(500)
        return result.ok

    @allure.step("Click email sign-up")
    async def click_email_signup(self) -> bool:
        """Email entry button, first visible of the shared email candidates."""
        resolution = await self.try_multiple_selectors("email_signin_button", action="click", timeout=3000)
        if resolution:
            await self.page.wait_for_timeout(500)
        return resolution.ok

    @allure.step("Accept terms and conditions")
    async def handle_terms_and_conditions(self) -> bool:
        """
        Tick every checkbox and continue.

        Returns:
            True if the dialog was shown and accepted, False if it never appeared
        """
        if not await self.is_visible(TERMS_DIALOG, timeout=5000):
            logger.info("ℹ️ No terms dialog shown")
            return False

        checkboxes = self.page.locator(TERMS_CHECKBOXES)
        for i in range(await checkboxes.count()):
            await self.safe_click(checkboxes.nth(i), retries=1)
        await self.screenshot("terms-checked")

        resolution = await self.try_multiple_selectors(TERMS_CONTINUE, action="click", timeout=3000)
        await self.page.wait_for_timeout(500)
        return resolution.ok

    @allure.step("Fill registration form")
    async def fill_registration_form(self, name: str, email: str, password: str) -> bool:
        if not await self.is_visible(NAME_INPUT, timeout=10000):
            logger.error("❌ Registration form not visible")
            return False

        # The form validates on Enter; each field is committed before the next one
        for selector, value, secret in (
            (NAME_INPUT, name, False),
            (EMAIL_INPUT, email, False),
            (PASSWORD_INPUT, password, True),
            (CONFIRM_PASSWORD_INPUT, password, True),
        ):
            if not await self.safe_fill(selector, value, secret=secret):
                return False
            await self.page.keyboard.press("Enter")
            await self.page.wait_for_timeout(1000)

        await self.screenshot("signup-filled")
        logger.info(f"✅ Registration form filled for {email}")
        return True

    @allure.step("Submit registration")
    async def submit_registration(self) -> bool:
        return (await self.safe_click(CREATE_ACCOUNT_BUTTON)).ok

    @allure.step("Fill OTP code")
    async def fill_otp(self, code: str) -> bool:
        """One digit per ``.otp-box``; at most six boxes are filled."""
        boxes = self.page.locator(OTP_BOXES)
        if not await self.actions.is_visible(boxes.first, timeout=10000):
            logger.error("❌ OTP inputs did not appear")
            return False

        for i, digit in enumerate(str(code)[:OTP_LENGTH]):
            if not await self.safe_fill(boxes.nth(i), digit, retries=1):
                return False
        await self.screenshot("otp-filled")
        return True

    @allure.step("Continue to the event")
    async def continue_to_event(self) -> bool:
        if not await self.is_visible(CONTINUE_TO_EVENT, timeout=10000):
            return False
        result = await self.safe_click(CONTINUE_TO_EVENT)
        if result:
            await self.wait_for_page_ready()
        return result.ok

    # =========================================================================
    # Verification
    # =========================================================================

    async def verify_registration_form_visible(self) -> bool:
        for selector in (NAME_INPUT, EMAIL_INPUT, PASSWORD_INPUT, CONFIRM_PASSWORD_INPUT):
            if not await self.is_visible(selector, timeout=2000):
                return False
        return True

    async def verify_email_button_visible(self) -> bool:
        return await self.is_visible("email_signin_button", timeout=3000)
