"""
================================================================================
Subscription UI Tests (Async / Playwright)
================================================================================

Plan upgrade from an owned event through Stripe test checkout.

The checkout may open in a new tab or redirect the current one; the payment
form is only ever filled on checkout.stripe.com with the Stripe test card.

================================================================================
"""

import allure
import pytest

from liveshare_e2e.ui_testing.pages.payment_page import PaymentPage
from liveshare_e2e.ui_testing.pages.subscription_page import (
    NAV_FAILED,
    NAV_NEW_PAGE,
    NAV_SAME,
    SubscriptionPage,
)


@allure.epic("UI Testing")
@allure.feature("Subscription")
@pytest.mark.e2e
@pytest.mark.payment
class TestSubscription:
    """Subscription and payment UI test suite (async)."""

    @allure.story("Plans")
    @allure.title("Upgrade opens the plan grid")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P1
    @pytest.mark.smoke
    @pytest.mark.asyncio
    async def test_plan_grid_opens(self, opened_event, subscription_page: SubscriptionPage):
        assert await subscription_page.navigate_to_subscription()

    @allure.story("Checkout")
    @allure.title("Selecting PremiumPlus leads to Stripe checkout")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P1
    @pytest.mark.regression
    @pytest.mark.asyncio
    async def test_premium_plus_checkout(self, opened_event, subscription_page: SubscriptionPage):
        assert await subscription_page.navigate_to_subscription()

        with allure.step("Select PremiumPlus"):
            navigation, checkout = await subscription_page.choose_plan_and_click_select("PremiumPlus")
            allure.attach(
                f"{navigation}: {checkout.url}",
                name="Plan navigation",
                attachment_type=allure.attachment_type.TEXT,
            )

        assert navigation != NAV_FAILED, "PremiumPlus plan could not be selected"
        if navigation == NAV_SAME:
            pytest.skip("Plan selection did not lead to checkout in this environment")

        payment = PaymentPage(checkout)
        with allure.step("Pay with the Stripe test card"):
            assert await payment.complete_payment_flow()

        if navigation == NAV_NEW_PAGE:
            await checkout.close()

        with allure.step("Verify upgrade confirmation"):
            assert await subscription_page.verify_subscription_success()
            await subscription_page.close_subscription_dialog()
