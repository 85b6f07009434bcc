"""
================================================================================
SnapQuest Page Object (Async / Playwright)
================================================================================

The participant side of a joined event: the Joined Events tab of the
dashboard, joining from the non-dashboard home page, and what a joined
guest can do inside the event (grid view, share, button links, details,
LiveView, gift codes, image upload).

Joining itself reuses JoinEventPage's candidate lists; this page adds the
dashboard entry point and the checks around it.

================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator

from liveshare_e2e.ui_testing.framework.results import ActionResult
from liveshare_e2e.ui_testing.pages.event_detail_page import follow_live_view
from liveshare_e2e.ui_testing.pages.join_event_page import (
    CODE_INPUT,
    IMAGE_FILE_INPUT,
    FilePath,
    JoinEventPage,
)


NON_DASHBOARD_PATH = "/?brand=null"

JOINED_EVENTS_TAB = 'div.mat-tab-label:has-text("Joined Events")'
EVENT_CARDS = [".event-card-event", "div.event-card", ".flex.pt-8", "div.mat-card"]

# Controls that must not appear inside an event that is already joined
IN_EVENT_JOIN_BUTTONS = [
    'button:has-text("Join")',
    'button:has-text("Join Event")',
    ".Create-Event",
]

GRID_BUTTON = [
    'button:has(mat-icon:text("window"))',
    'button:has(mat-icon:text("grid_view"))',
    'button:has(mat-icon:text("grid_on"))',
]
GRID_LAYOUTS = [".grid-container", ".gallery-grid", '[class*="grid"]']

SHARE_BUTTON = [
    'button:has(mat-icon:text("share"))',
    'button.btn-circle:has(mat-icon:text("share"))',
    'button[aria-label="Share"]',
]
SHARE_DIALOGS = [
    'div[role="dialog"]',
    ".share-dialog",
    ".share-options",
    '.dialog-content:has-text("Share")',
]
# Headless Chromium has no navigator.share; the stub records the call instead
INSTALL_SHARE_SPY = """
() => {
    window._shareAPICalled = false;
    navigator.share = () => {
        window._shareAPICalled = true;
        return Promise.resolve();
    };
}
"""
SHARE_SPY_CALLED = "() => window._shareAPICalled === true"

BUTTON_LINKS = {
    "button_link_1": ["a.menu-button1"],
    "button_link_2": ["a.menu-button2"],
}

DETAILS_HEADER = [
    'mat-panel-title:has-text("Details")',
    ".eventdetailHeader",
    'mat-expansion-panel-header:has-text("Details")',
]
DETAILS_EXPANDED = "mat-expansion-panel.mat-expanded"
CONTACT_SECTION = '.flex.items-start:has(mat-icon:text("phone"))'
SAFETY_SECTION = '.flex.items-start:has(mat-icon:text("route"))'

MORE_BUTTON = 'button:has(mat-icon:text("more_vert"))'
LIVE_VIEW_BUTTON = 'button:has-text("LiveView")'

REDEEM_BUTTON = [
    'button:has-text("Redeem Gift Code")',
    'button:has(mat-icon:text("redeem"))',
]
GIFT_CODE_INPUT = [
    'input[placeholder*="gift code" i]',
    'input[placeholder*="code" i]',
]
GIFT_SUBMIT_BUTTON = [
    'button:has-text("Submit")',
    'button:has-text("Redeem")',
]

EVENT_IMAGES = "img.views, .image-wrapper img"
QUEST_ADD_BUTTON = [
    "button.menu-button",
    "button.quest-btn",
    'button:has(mat-icon:text("add"))',
]
QUEST_PHOTO_BUTTON = 'button:has(mat-icon:text("insert_photo"))'
QUEST_FILE_INPUT = [IMAGE_FILE_INPUT, "#file-input"]


class SnapQuestPage(JoinEventPage):
    """Joined-event participant flows (async)."""

    URL_PATH = "/events"

    # =========================================================================
    # Joined events
    # =========================================================================

    @allure.step("Open Joined Events tab")
    async def open_joined_events(self) -> bool:
        if not await self.is_visible(JOINED_EVENTS_TAB, timeout=3000):
            await self.navigate()
        result = await self.safe_click(JOINED_EVENTS_TAB)
        if result:
            await self.page.wait_for_timeout(2000)
        return result.ok

    async def _event_cards(self, text: str = "") -> Optional[Locator]:
        """First card selector that matches anything, optionally filtered by text."""
        for selector in EVENT_CARDS:
            cards = self.page.locator(selector)
            if text:
                cards = cards.filter(has_text=text)
            try:
                if await cards.count() > 0:
                    return cards
            except PlaywrightError as e:
                logger.debug(f"Card selector {selector} failed: {e}")
        return None

    @allure.step("Select first joined event")
    async def select_first_joined_event(self) -> bool:
        """
        Open the first card on the Joined Events tab.

        Returns:
            False when the account has not joined any event
        """
        if not await self.open_joined_events():
            return False
        cards = await self._event_cards()
        if cards is None:
            logger.warning("⚠️ No joined events listed")
            return False
        result = await self.safe_click(cards.first)
        if result:
            await self.wait_for_page_ready()
        return result.ok

    @allure.step("Count joined events with code {code}")
    async def count_joined_events(self, code: str) -> int:
        if not await self.open_joined_events():
            return 0
        cards = await self._event_cards(code)
        count = await cards.count() if cards is not None else 0
        logger.info(f"Joined Events lists {count} card(s) for {code}")
        return count

    # =========================================================================
    # Joining
    # =========================================================================

    @allure.step("Join {code} from the non-dashboard home page")
    async def join_from_non_dashboard(self, code: str) -> bool:
        await self.navigate_to(NON_DASHBOARD_PATH)
        if not await self.open_join_dialog():
            logger.error("❌ Join button not found on the non-dashboard page")
            return False
        return await self.join_by_code(code)

    @allure.step("Join {code} twice")
    async def verify_duplicate_join_prevention(self, code: str) -> Dict[str, Any]:
        """
        Join the same event twice, then count its cards on Joined Events.

        Returns:
            {"joins": [bool, bool], "count": n, "unique": count == 1}
        """
        joins = [await self.join_from_non_dashboard(code) for _ in range(2)]
        count = await self.count_joined_events(code)
        result = {"joins": joins, "count": count, "unique": count == 1}
        if not result["unique"]:
            logger.error(f"❌ Event {code} listed {count} time(s) after joining twice")
        return result

    @allure.step("Check joined event offers no join controls")
    async def event_offers_join(self) -> bool:
        """True if a joined event still shows a join button together with a code input."""
        join = await self.try_multiple_selectors(IN_EVENT_JOIN_BUTTONS, timeout=1000)
        if not join:
            return False
        return await self.is_visible(CODE_INPUT, timeout=1000)

    # =========================================================================
    # In-event features
    # =========================================================================

    @allure.step("Switch to grid view")
    async def switch_to_grid_view(self) -> bool:
        resolution = await self.try_multiple_selectors(GRID_BUTTON, action="click", timeout=5000)
        if not resolution:
            logger.error("❌ Grid view button not found")
            return False
        await self.page.wait_for_timeout(2000)
        return await self.is_visible(GRID_LAYOUTS, timeout=3000)

    @allure.step("Share event")
    async def share_event(self) -> Dict[str, bool]:
        """
        Click Share with navigator.share stubbed.

        Sharing works when the native API was called or a share dialog opened.
        """
        checks = {"clicked": False, "native_share": False, "dialog": False}
        try:
            await self.page.evaluate(INSTALL_SHARE_SPY)
        except PlaywrightError as e:
            logger.debug(f"navigator.share stub not installed: {e}")

        resolution = await self.try_multiple_selectors(SHARE_BUTTON, action="click", timeout=5000)
        checks["clicked"] = resolution.ok
        if not resolution:
            return checks
        await self.page.wait_for_timeout(2000)

        try:
            checks["native_share"] = bool(await self.page.evaluate(SHARE_SPY_CALLED))
        except PlaywrightError as e:
            logger.debug(f"Could not read the share stub: {e}")
        checks["dialog"] = await self.is_visible(SHARE_DIALOGS, timeout=2000)
        logger.info(f"Share: {checks}")
        return checks

    @allure.step("Verify button links")
    async def verify_button_links(self) -> Dict[str, Dict[str, Any]]:
        """
        Text, href and target of each configured button link.

        A link is ``valid`` when it has an href and opens in a new tab.
        """
        links = {}
        for name, candidates in BUTTON_LINKS.items():
            resolution = await self.try_multiple_selectors(candidates, timeout=3000)
            if not resolution:
                links[name] = {"found": False, "valid": False}
                continue
            link = resolution.locator
            href = await link.get_attribute("href")
            target = await link.get_attribute("target")
            links[name] = {
                "found": True,
                "text": ((await link.text_content()) or "").strip(),
                "href": href,
                "target": target,
                "valid": bool(href) and target == "_blank",
            }
        logger.info(f"Button links: {links}")
        return links

    @allure.step("Verify Details panel")
    async def verify_details_panel(self) -> Dict[str, bool]:
        header = await self.try_multiple_selectors(DETAILS_HEADER, timeout=5000)
        checks = {"found": header.ok, "expanded": False, "contact": False, "safety": False}
        if not header:
            return checks

        if not await self.exists(DETAILS_EXPANDED):
            await self.safe_click(header.locator)
            await self.page.wait_for_timeout(2000)
        checks["expanded"] = await self.exists(DETAILS_EXPANDED)
        checks["contact"] = await self.is_visible(CONTACT_SECTION, timeout=3000)
        checks["safety"] = await self.is_visible(SAFETY_SECTION, timeout=3000)
        logger.info(f"Details panel: {checks}")
        return checks

    @allure.step("Open LiveView from the more menu")
    async def open_live_view(self) -> Dict[str, Any]:
        if not await self.safe_click(MORE_BUTTON):
            return {"opened": False, "new_tab": False, "url": self.page.url}
        await self.page.wait_for_timeout(1000)
        trigger = self.page.locator(LIVE_VIEW_BUTTON).first
        if not await self.actions.is_visible(trigger, timeout=5000):
            logger.warning("⚠️ LiveView is not offered for this event")
            return {"opened": False, "new_tab": False, "url": self.page.url}
        return await follow_live_view(self, trigger)

    @allure.step("Redeem gift code")
    async def redeem_gift_code(self, code: str) -> Dict[str, bool]:
        """The gift code entry sits either in the top bar or behind the more menu."""
        checks = {"opened": False, "filled": False, "submitted": False}
        resolution = await self.try_multiple_selectors(REDEEM_BUTTON, action="click", timeout=2000)
        if not resolution and await self.safe_click(MORE_BUTTON, retries=1):
            await self.page.wait_for_timeout(1000)
            resolution = await self.try_multiple_selectors(REDEEM_BUTTON, action="click", timeout=3000)
        if not resolution:
            logger.warning("⚠️ Redeem Gift Code not offered")
            return checks
        await self.page.wait_for_timeout(1000)

        code_input = await self.try_multiple_selectors(GIFT_CODE_INPUT, action="wait_for", timeout=5000)
        checks["opened"] = code_input.ok
        if not code_input:
            return checks
        checks["filled"] = (await self.safe_fill(code_input.locator, code)).ok
        if checks["filled"]:
            submit = await self.try_multiple_selectors(GIFT_SUBMIT_BUTTON, action="click", timeout=3000)
            checks["submitted"] = submit.ok
            await self.page.wait_for_timeout(2000)
        logger.info(f"Redeem gift code: {checks}")
        return checks

    async def image_count(self) -> int:
        try:
            return await self.page.locator(EVENT_IMAGES).count()
        except PlaywrightError:
            return 0

    @allure.step("Upload quest image")
    async def upload_quest_image(self, path: FilePath) -> ActionResult:
        """
        Add button, then the photo entry when it shows, then the hidden image
        input. The input takes the file whether or not a picker opened.
        """
        add = await self.try_multiple_selectors(QUEST_ADD_BUTTON, action="click", timeout=5000)
        if add:
            await self.page.wait_for_timeout(1000)
            if await self.is_visible(QUEST_PHOTO_BUTTON, timeout=1000):
                await self.safe_click(QUEST_PHOTO_BUTTON, retries=1)
        else:
            logger.warning("⚠️ Add button not found, trying the file input directly")

        file_input = await self.first_present(QUEST_FILE_INPUT) or self.page.locator(QUEST_FILE_INPUT[0]).first
        return await self.actions.upload_files(file_input, path)
