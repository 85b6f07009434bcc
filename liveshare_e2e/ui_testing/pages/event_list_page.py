"""
================================================================================
Event List Page Object (Async / Playwright)
================================================================================

The /events dashboard: My Events / Joined Events tabs, event cards, the
Create Event button and the profile (avatar) menu.

================================================================================
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator

from liveshare_e2e.ui_testing.framework.page_base import PageBase
from liveshare_e2e.ui_testing.framework.smart_locator import EscalationResult, by_role, css


EVENTS_HEADING = '.navbar-center span.heading:has-text("EVENTS")'
TAB_GROUP = "mat-tab-group"
MY_EVENTS_TAB = 'div[role="tab"]:has-text("My Events")'
JOINED_EVENTS_TAB = 'div[role="tab"]:has-text("Joined Events")'
EVENT_CARDS = ".event-card-event"
CREATE_EVENT_BUTTON = "button.Create-Event.btn.btn-circle.btn-lg"

# Inside one event card
CARD_DATE = "span.text-xs"
CARD_NAME = "span.text-lg.leading-5"
CARD_MENU = 'button:has(mat-icon:text("more_vert"))'
CARD_PREMIUM_PLUS = 'button.btn-xs.btn-info:has-text("PremiumPlus")'
CARD_HOSTED_BY = ".text-right"
CARD_HOST_NAME = ".whitespace-nowrap.font-bold"
EVENT_CODE_PATTERN = re.compile(r"^[A-Z0-9]+$")

# Raw DOM queries for the in-page click when no avatar candidate is clickable
AVATAR_SCRIPT_QUERIES = [
    "div.avatar",
    "img.profile-image",
    'div[aria-haspopup="menu"]',
    "#app-topnav img",
    ".navbar-end .profile .avatar",
    ".profile",
]

ACCOUNT_MENU_OPTIONS = ["My Account", "Delete Account", "Subscription", "Branding", "Logout"]

PROFILE_PATH = "/profile"


class EventListPage(PageBase):
    """Events dashboard page object (async)."""

    URL_PATH = "/events"
    PAGE_TITLE = "Events"

    def event_card(self, index: int = 0) -> Locator:
        return self.page.locator(EVENT_CARDS).nth(index)

    @allure.step("Go to events page")
    async def go_to_events_page(self) -> bool:
        """Open /events and wait for the EVENTS heading."""
        await self.navigate()
        return await self.is_visible(EVENTS_HEADING, timeout=30000)

    @allure.step("Wait for events to load")
    async def wait_for_events_to_load(self, timeout: int = 30000) -> bool:
        return await self.is_visible(EVENT_CARDS, timeout=timeout)

    async def get_event_count(self) -> int:
        return await self.page.locator(EVENT_CARDS).count()

    @allure.step("Read event card {index}")
    async def get_event_info(self, index: int = 0) -> Dict[str, Any]:
        """
        Fields shown on one card.

        Returns:
            Dict with date, name, code, host_name, has_premium_plus
        """
        card = self.event_card(index)

        async def text_of(locator: Locator) -> str:
            try:
                return ((await locator.first.text_content(timeout=5000)) or "").strip()
            except PlaywrightError:
                return ""

        info = {
            "date": await text_of(card.locator(CARD_DATE)),
            "name": await text_of(card.locator(CARD_NAME)),
            "code": await text_of(card.locator("span").filter(has_text=EVENT_CODE_PATTERN)),
            "host_name": await text_of(card.locator(CARD_HOST_NAME)),
            "has_premium_plus": await card.locator(CARD_PREMIUM_PLUS).first.is_visible(),
        }
        logger.debug(f"Event card {index}: {info}")
        return info

    @allure.step("Open event #{index}")
    async def click_event_by_index(self, index: int = 0) -> bool:
        result = await self.safe_click(self.event_card(index))
        if result:
            await self.wait_for_page_ready()
        return result.ok

    @allure.step("Open event '{name}'")
    async def click_event_by_name(self, name: str) -> bool:
        card = self.page.locator(EVENT_CARDS).filter(has_text=name).first
        result = await self.safe_click(card)
        if result:
            await self.wait_for_page_ready()
        return result.ok

    @allure.step("Open event with code {code}")
    async def click_event_by_code(self, code: str) -> bool:
        card = self.page.locator(EVENT_CARDS).filter(has_text=code).first
        result = await self.safe_click(card)
        if result:
            await self.wait_for_page_ready()
        return result.ok

    async def open_event_menu(self, index: int = 0) -> bool:
        return (await self.safe_click(self.event_card(index).locator(CARD_MENU).first)).ok

    @allure.step("Click Create Event")
    async def click_create_event(self) -> bool:
        return (await self.safe_click(CREATE_EVENT_BUTTON)).ok

    @allure.step("Switch to Joined Events")
    async def switch_to_joined_events(self) -> bool:
        result = await self.safe_click(JOINED_EVENTS_TAB)
        await self.page.wait_for_timeout(1000)
        return result.ok

    @allure.step("Switch to My Events")
    async def switch_to_my_events(self) -> bool:
        result = await self.safe_click(MY_EVENTS_TAB)
        await self.page.wait_for_timeout(1000)
        return result.ok

    # =========================================================================
    # Verification
    # =========================================================================

    @allure.step("Verify events page loaded")
    async def verify_events_page_loaded(self) -> Dict[str, bool]:
        """Visibility of heading, tabs and the Create Event button."""
        checks = {
            "heading": EVENTS_HEADING,
            "tabs": TAB_GROUP,
            "my_events_tab": MY_EVENTS_TAB,
            "joined_events_tab": JOINED_EVENTS_TAB,
            "create_event_button": CREATE_EVENT_BUTTON,
        }
        return {name: await self.is_visible(selector, timeout=5000) for name, selector in checks.items()}

    async def verify_event_card_elements(self, index: int = 0) -> Dict[str, bool]:
        card = self.event_card(index)
        parts = {
            "date": CARD_DATE,
            "name": CARD_NAME,
            "menu": CARD_MENU,
            "hosted_by": CARD_HOSTED_BY,
        }
        result = {}
        for name, selector in parts.items():
            result[name] = await self.actions.is_visible(card.locator(selector).first, timeout=3000)
        return result

    async def verify_profile_avatar_visible(self) -> bool:
        return await self.is_visible("profile_indicator", timeout=5000)

    # =========================================================================
    # Avatar / account menu
    # =========================================================================

    async def _on_profile_route(self) -> bool:
        url = self.page.url or ""
        return "/profile" in url or "/account" in url

    @allure.step("Click avatar icon")
    async def click_avatar_icon(self) -> EscalationResult:
        """
        Open the account menu.

        Avatar candidates first, then an in-page script click, then a
        navigation to /profile that only counts when the URL confirms it.
        """
        result = await self.smart.click_with_escalation(
            "avatar_icon",
            script_queries=AVATAR_SCRIPT_QUERIES,
            fallback_url=f"{self.base_url}{PROFILE_PATH}",
            verify=self._on_profile_route,
            timeout=2000,
        )
        if result:
            logger.info(f"✅ Avatar opened via {result.strategy.value} ({result.detail})")
            await self.page.wait_for_timeout(1000)
        else:
            logger.error("❌ Could not open the avatar menu")
        return result

    async def visible_account_menu_items(self, timeout: int = 1500) -> List[str]:
        """
        Account menu options currently shown.

        Tried as role=button, then role=menuitem, then plain text; the first
        kind that finds anything wins.
        """
        strategies = [
            lambda name: by_role("button", name),
            lambda name: by_role("menuitem", name),
            lambda name: css(f'button:has-text("{name}"), a:has-text("{name}")'),
        ]
        for build in strategies:
            found = [
                name for name in ACCOUNT_MENU_OPTIONS
                if await self.smart.is_visible(build(name), timeout=timeout)
            ]
            if found:
                return found
        return []

    @allure.step("Verify an account menu item is visible")
    async def verify_any_account_menu_item_visible(self) -> bool:
        """Any account option visible, or already on a /profile or /account route."""
        if await self._on_profile_route():
            logger.info("✅ Already on the profile route")
            return True
        found = await self.visible_account_menu_items()
        if found:
            logger.info(f"✅ Account menu shows: {', '.join(found)}")
            await self.screenshot("account-menu")
        else:
            logger.warning("⚠️ No account menu option visible")
        return bool(found)
