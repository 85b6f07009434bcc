"""
================================================================================
Registration UI Tests (Async / Playwright)
================================================================================

Email sign-up with a Mailosaur inbox for the verification code. Skipped when
MAILOSAUR_API_KEY / MAILOSAUR_SERVER_ID are not set.

================================================================================
"""

from datetime import datetime, timezone

import allure
import pytest

from liveshare_e2e.ui_testing.pages.login_page import LoginPage
from liveshare_e2e.ui_testing.pages.register_page import RegisterPage
from liveshare_tools.mail_tools import MailosaurClient


@allure.epic("UI Testing")
@allure.feature("Registration")
@pytest.mark.e2e
@pytest.mark.auth
class TestRegistration:
    """Account registration UI test suite (async)."""

    @allure.story("Sign-up Form")
    @allure.title("Create Free Account shows the email sign-up form")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.smoke
    @pytest.mark.asyncio
    async def test_registration_form_visible(self, register_page: RegisterPage):
        await LoginPage(register_page.page).open()
        assert await LoginPage(register_page.page).click_sign_in()

        assert await register_page.click_create_account()
        assert await register_page.verify_email_button_visible()
        assert await register_page.click_email_signup()
        assert await register_page.verify_registration_form_visible()

    @allure.story("Email Verification")
    @allure.title("New account is verified with the emailed OTP")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P1
    @pytest.mark.regression
    @pytest.mark.asyncio
    async def test_register_with_otp(self, register_page: RegisterPage, mailosaur: MailosaurClient):
        credentials = RegisterPage.generate_test_credentials(f"{mailosaur.server_id}.mailosaur.net")
        started = datetime.now(timezone.utc)

        with allure.step("Open the sign-up form"):
            login_page = LoginPage(register_page.page)
            await login_page.open()
            assert await login_page.click_sign_in()
            assert await register_page.click_create_account()
            assert await register_page.click_email_signup()
            # Only shown to first-time visitors
            await register_page.handle_terms_and_conditions()

        with allure.step(f"Register {credentials['email']}"):
            assert await register_page.fill_registration_form(
                credentials["name"], credentials["email"], credentials["password"]
            )
            assert await register_page.submit_registration()

        with allure.step("Enter the emailed code"):
            code = mailosaur.get_otp_code(credentials["email"], received_after=started)
            assert await register_page.fill_otp(code)

        with allure.step("Continue to the app"):
            assert await register_page.continue_to_event()
