"""
================================================================================
Payment Page Object (Async / Playwright)
================================================================================

Stripe hosted checkout, usually the tab opened by
SubscriptionPage.choose_plan_and_click_select. Only Stripe test cards are
ever entered.

================================================================================
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from liveshare_e2e.ui_testing.framework.page_base import PageBase


STRIPE_CHECKOUT_HOST = "checkout.stripe.com"

CARD_NUMBER_INPUT = 'input[id="cardNumber"]'
CARD_EXPIRY_INPUT = 'input[id="cardExpiry"]'
CARD_CVC_INPUT = 'input[id="cardCvc"]'
BILLING_NAME_INPUT = 'input[id="billingName"]'
BILLING_COUNTRY_SELECT = 'select[id="billingCountry"]'
SUBMIT_BUTTON = '[data-testid="hosted-payment-submit-button"]'

# Stripe test cards accept any expiry in the future
TEST_CARD_YEARS_AHEAD = 3


@dataclass
class PaymentDetails:
    card_number: str
    expiration: str
    cvc: str
    cardholder_name: str
    country: str = "US"

    def masked(self) -> dict:
        data = asdict(self)
        data["card_number"] = f"**** {self.card_number[-4:]}"
        data["cvc"] = "***"
        return data


def future_expiry(today: Optional[date] = None, years_ahead: int = TEST_CARD_YEARS_AHEAD) -> str:
    """Card expiry as Stripe's ``MM / YY`` field expects it, in December of a later year."""
    year = (today or date.today()).year + years_ahead
    return f"12 / {year % 100:02d}"


def default_payment_details(today: Optional[date] = None) -> PaymentDetails:
    """Stripe's always-succeeding test Visa."""
    return PaymentDetails(
        card_number="4242 4242 4242 4242",
        expiration=future_expiry(today),
        cvc="123",
        cardholder_name="Test User",
        country="US",
    )


class PaymentPage(PageBase):
    """Stripe checkout page object (async)."""

    FIELD_SETTLE_MS = 1000

    default_payment_details = staticmethod(default_payment_details)

    @allure.step("Verify on Stripe checkout")
    async def verify_on_stripe_checkout_page(self) -> bool:
        on_stripe = STRIPE_CHECKOUT_HOST in (self.page.url or "")
        if on_stripe:
            await self.screenshot("confirmed-stripe-checkout")
        else:
            logger.error(f"❌ Not on Stripe checkout page. Current URL: {self.page.url}")
        return on_stripe

    @allure.step("Wait for Stripe checkout")
    async def wait_for_stripe_checkout_ready(self, timeout: int = 15000) -> bool:
        if not await self.is_visible(CARD_NUMBER_INPUT, timeout=timeout):
            logger.error("❌ Stripe card form did not load")
            await self.screenshot("error-stripe-checkout-wait")
            return False
        # Stripe mounts its field formatters after the input appears
        await self.page.wait_for_timeout(2000)
        return True

    async def verify_stripe_payment_form_ready(self) -> bool:
        for selector in (CARD_NUMBER_INPUT, CARD_EXPIRY_INPUT, CARD_CVC_INPUT, BILLING_NAME_INPUT, SUBMIT_BUTTON):
            if not await self.is_visible(selector, timeout=5000):
                logger.error(f"❌ Stripe form element not visible: {selector}")
                return False
        return True

    @allure.step("Fill payment form")
    async def fill_payment_form(self, details: Optional[PaymentDetails] = None) -> bool:
        details = details or default_payment_details()
        logger.info(f"💳 Filling payment form: {details.masked()}")

        if not await self.wait_for_stripe_checkout_ready():
            return False

        for selector, value, secret in (
            (CARD_NUMBER_INPUT, details.card_number, True),
            (CARD_EXPIRY_INPUT, details.expiration, False),
            (CARD_CVC_INPUT, details.cvc, True),
            (BILLING_NAME_INPUT, details.cardholder_name, False),
        ):
            if not await self.safe_fill(selector, value, secret=secret):
                await self.screenshot("error-fill-stripe-payment-form")
                return False
            await self.page.wait_for_timeout(self.FIELD_SETTLE_MS)

        # Stripe preselects the country from geo-IP; the select is absent for some locales
        if await self.exists(BILLING_COUNTRY_SELECT):
            try:
                await self.page.locator(BILLING_COUNTRY_SELECT).first.select_option(details.country)
            except PlaywrightError as e:
                logger.warning(f"⚠️ Could not select billing country {details.country}: {e}")

        await self.screenshot("stripe-form-filled")
        return True

    @allure.step("Submit payment")
    async def submit_payment(self) -> bool:
        submit = self.page.locator(SUBMIT_BUTTON).first
        if not await self.actions.is_visible(submit, timeout=10000):
            return False
        try:
            if await submit.is_disabled():
                await self.page.wait_for_timeout(2000)
        except PlaywrightError as e:
            logger.debug(f"Could not read submit button state: {e}")
        result = await self.safe_click(submit)
        if result:
            await self.page.wait_for_timeout(3000)
            await self.screenshot("stripe-payment-submitted")
        return result.ok

    @allure.step("Complete payment")
    async def complete_payment_flow(self, details: Optional[PaymentDetails] = None) -> bool:
        """
        Fill and submit the checkout form.

        Refuses to type card details anywhere but a checkout.stripe.com URL.
        """
        if not await self.verify_on_stripe_checkout_page():
            return False
        if not await self.fill_payment_form(details):
            return False
        if not await self.submit_payment():
            logger.error("❌ Failed to submit payment")
            return False
        logger.info("✅ Payment submitted")
        return True
