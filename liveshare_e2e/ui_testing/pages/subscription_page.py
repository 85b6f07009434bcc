"""
================================================================================
Subscription Page Object (Async / Playwright)
================================================================================

Plan upgrade from an event: Upgrade -> plan grid -> Select. Selecting a plan
may open Stripe checkout in a new tab, redirect the current tab, or do
nothing visible; ``choose_plan_and_click_select`` reports which.

================================================================================
"""

from __future__ import annotations

import re
from typing import Tuple

import allure
from loguru import logger
from playwright.async_api import Page

from liveshare_e2e.ui_testing.framework.page_base import PageBase


UPGRADE_BUTTON = 'div.d-flex:has-text("Upgrade")'
GRID_BUTTON = 'button:has(mat-icon:text("window"))'
SETTINGS_BUTTON = 'button:has(mat-icon:text("settings"))'
MORE_OPTIONS_BUTTON = 'button:has(mat-icon:text("more_vert"))'

PLAN_NAMES = ".options .plan-name"
PLAN_CARD = '.options:has(.plan-name:has-text("{}"))'
PLAN_SELECT = 'div.d-flex:has-text("Select")'

SUCCESS_CONTAINER = "app-video-purchase"
CLOSE_BUTTON = "text=close"

# Navigation outcomes of a plan selection
NAV_NEW_PAGE = "new_page"
NAV_REDIRECT = "redirect"
NAV_SAME = "same"
NAV_FAILED = "failed"


class SubscriptionPage(PageBase):
    """Plan selection page object (async)."""

    NEW_PAGE_TIMEOUT = 5000

    @allure.step("Verify event toolbar for upgrade")
    async def verify_ui_loaded(self) -> bool:
        for selector in (UPGRADE_BUTTON, GRID_BUTTON, SETTINGS_BUTTON, MORE_OPTIONS_BUTTON):
            if not await self.is_visible(selector, timeout=10000):
                logger.warning(f"⚠️ Not visible: {selector}")
                return False
        return True

    @allure.step("Navigate to subscription plans")
    async def navigate_to_subscription(self) -> bool:
        if not await self.verify_ui_loaded():
            await self.screenshot("error-navigation-subscription")
            return False
        result = await self.safe_click(UPGRADE_BUTTON)
        if result:
            await self.page.wait_for_timeout(1000)
        return result.ok

    @allure.step("Choose plan '{plan}' and click Select")
    async def choose_plan_and_click_select(self, plan: str) -> Tuple[str, Page]:
        """
        Click Select on the named plan card.

        Returns:
            (navigation_type, page): ``new_page`` with the new tab,
            ``redirect`` or ``same`` with this page, ``failed`` with this
            page if the card or its button is missing
        """
        if not await self.is_visible(PLAN_NAMES, timeout=15000):
            logger.error("❌ Plan grid did not load")
            return NAV_FAILED, self.page

        card = self.page.locator(PLAN_CARD.format(plan)).first
        select = card.locator(PLAN_SELECT).first
        if not await self.actions.is_visible(select, timeout=10000):
            logger.error(f"❌ Select button not visible for plan '{plan}'")
            await self.screenshot("error-choose-plan-select")
            return NAV_FAILED, self.page

        url_before = self.page.url
        clicked, new_page = await self.click_expecting_new_page(select, timeout=self.NEW_PAGE_TIMEOUT)
        if not clicked:
            logger.error(f"❌ Select click failed for plan '{plan}'")
            return NAV_FAILED, self.page

        slug = re.sub(r"\s+", "-", plan).lower()
        if new_page is not None:
            logger.info(f"✅ Plan '{plan}' opened a new page: {new_page.url}")
            await self.screenshot(f"plan-selected-{slug}")
            return NAV_NEW_PAGE, new_page

        await self.page.wait_for_timeout(2000)
        navigation = NAV_REDIRECT if self.page.url != url_before else NAV_SAME
        logger.info(f"ℹ️ Plan '{plan}' selection navigation: {navigation}")
        await self.screenshot(f"plan-selected-{slug}")
        return navigation, self.page

    @allure.step("Verify subscription success")
    async def verify_subscription_success(self) -> bool:
        return await self.is_visible(SUCCESS_CONTAINER, timeout=30000)

    @allure.step("Close subscription dialog")
    async def close_subscription_dialog(self) -> bool:
        if not await self.is_visible(CLOSE_BUTTON, timeout=10000):
            return False
        result = await self.safe_click(CLOSE_BUTTON)
        await self.page.wait_for_timeout(2000)
        return result.ok
