"""
================================================================================
Image Detail Page Object (Async / Playwright)
================================================================================

Single photo view inside an event: pin, gift, search/crop, and the ellipsis
menu with Edit and Delete. Delete is never confirmed; the dialog is
cancelled so shared event data stays intact.

================================================================================
"""

from __future__ import annotations

from typing import Dict

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from liveshare_e2e.ui_testing.framework.page_base import PageBase
from liveshare_e2e.ui_testing.framework.results import StateChangeResult


IMAGE_SELECTORS = [
    ".d-flex.justify-content-center.image-wrapper.photo.relative",
    ".image-wrapper.photo",
    ".views",
    "img.views",
    ".image-container img",
    ".grid-container img",
    ".gallery-grid img",
    ".grid-component img",
]

PIN_ICON = 'mat-icon:text("push_pin")'
PINNED_INDICATORS = ["mat-icon.text-orange-600", ".pinned-indicator"]

SEARCH_BUTTON_SELECTORS = [
    'button:has(mat-icon:text("search"))',
    'button:has(mat-icon:text("zoom_in"))',
    'button:has(mat-icon:text("crop"))',
    "button.search-button",
    ".search-icon",
    '.btn-ghost:has(mat-icon:text("crop"))',
    ".text-right .btn-ghost",
]

ELLIPSIS_BUTTON = 'button.mat-menu-trigger[tabindex="0"]:has(mat-icon:has-text("more_vert"))'
MENU_SELECTORS = [
    ".mat-menu-content",
    ".dropdown-content",
    ".menu-content",
    ".cdk-overlay-pane",
    ".mat-menu-panel",
]

EDIT_OPTION = [
    'button.mat-menu-item:has-text("Edit")',
    '.mat-menu-content button:has-text("Edit")',
]
EDIT_WINDOW_SELECTORS = [
    ".dialog-content",
    ".edit-dialog",
    'input[placeholder*="Title"]',
    'input[placeholder*="Caption"]',
    ".edit-div",
    '.caption-text:has-text("Title")',
    '.caption-text:has-text("Caption")',
]
TITLE_FIELD = ['input[placeholder*="Title"]', ".title-field"]
CAPTION_FIELD = ['input[placeholder*="Caption"]', 'textarea[placeholder*="Caption"]', ".caption-field"]

DELETE_OPTION = [
    'button.mat-menu-item:has-text("Delete")',
    '.mat-menu-content button:has-text("Delete")',
]
DELETE_CONFIRM_SELECTORS = [
    ".confirmation-dialog",
    '.mat-dialog-container:has-text("Delete")',
    'div:has-text("Are you sure")',
    '.dialog-content:has-text("Delete")',
    '.mat-dialog-content:has-text("Delete")',
]
CANCEL_SELECTORS = [
    'button:has-text("Cancel")',
    'button:has-text("No")',
    '.mat-button-base:has-text("Cancel")',
    '.mat-dialog-actions button:not(:has-text("Delete"))',
]


class ImageDetailPage(PageBase):
    """Image detail view page object (async)."""

    SETTLE_MS = 2000

    @allure.step("Open first image")
    async def click_first_image(self) -> bool:
        image = await self.first_present(IMAGE_SELECTORS)
        if image is None:
            logger.error("❌ Could not find any images in the event detail page")
            return False
        await image.click()
        await self.page.wait_for_timeout(self.SETTLE_MS)
        await self.screenshot("image-detail-view")
        return True

    @allure.step("Open event '{event_name}' and its first image")
    async def navigate_to_event_and_image(self, event_name: str) -> bool:
        """
        Open the named event from the list (any event as fallback), then its first image.
        """
        await self.wait_for_page_ready()
        event_selectors = [
            f'.event-card-event:has-text("{event_name}")',
            f'.event-name-event:has-text("{event_name}")',
            f'.event-card:has-text("{event_name}")',
            f'div.mat-card:has-text("{event_name}")',
        ]
        event = await self.first_present(event_selectors)
        if event is None:
            logger.warning(f"⚠️ Could not find {event_name}, clicking first available event")
            event = await self.first_present([".event-card-event", ".event-card", "div.mat-card"])
        if event is None:
            logger.error("❌ Could not find any events to click")
            return False

        await event.click()
        await self.page.wait_for_timeout(3000)
        return await self.click_first_image()

    # =========================================================================
    # Toggles
    # =========================================================================

    async def _icon_class(self) -> str:
        icon = self.page.locator(PIN_ICON).first
        try:
            return (await icon.get_attribute("class", timeout=1000)) or ""
        except PlaywrightError:
            return ""

    @allure.step("Click pin button")
    async def click_pin_button(self) -> StateChangeResult:
        """
        Toggle pin and report whether it took effect.

        The button class is the primary signal, the icon class the second; an
        orange pin icon or a pinned indicator also counts.
        """
        resolution = await self.smart.resolve("pin_button", timeout=5000)
        if not resolution:
            return StateChangeResult(found=False)

        icon_before = await self._icon_class()
        result = await self.actions.click_and_detect_change(
            resolution.locator, settle_ms=self.SETTLE_MS, description="pin button"
        )
        if result.found and not result.changed:
            if icon_before != await self._icon_class():
                result.changed = True
            else:
                for selector in PINNED_INDICATORS:
                    if await self.exists(selector):
                        logger.info(f"✅ Pinned state shown by {selector}")
                        result.changed = True
                        result.extra["indicator"] = selector
                        break

        await self.screenshot("after-pin-click")
        return result

    @allure.step("Click gift button")
    async def click_gift_button(self) -> StateChangeResult:
        """Gift is not expected to change state; ``changed`` is normally False."""
        resolution = await self.smart.resolve("gift_button", timeout=5000)
        if not resolution:
            return StateChangeResult(found=False)
        result = await self.actions.click_and_detect_change(
            resolution.locator, settle_ms=self.SETTLE_MS, description="gift button"
        )
        if result.changed:
            logger.warning("⚠️ UNEXPECTED BEHAVIOR: Gift button changed state when clicked")
        await self.screenshot("after-gift-click")
        return result

    @allure.step("Click search/crop button")
    async def click_search_button(self) -> StateChangeResult:
        button = await self.first_present(SEARCH_BUTTON_SELECTORS)
        if button is None:
            logger.warning("⚠️ Search/crop button not found in the interface")
            return StateChangeResult(found=False)
        result = await self.actions.click_and_detect_change(
            button, settle_ms=self.SETTLE_MS, description="search/crop button"
        )
        await self.screenshot("after-search-click")
        return result

    # =========================================================================
    # Ellipsis menu
    # =========================================================================

    @allure.step("Click ellipsis button")
    async def click_ellipsis_button(self) -> bool:
        """Open the more_vert menu; True if a menu panel appeared."""
        if not await self.safe_click(ELLIPSIS_BUTTON, retries=1):
            return False
        await self.page.wait_for_timeout(self.SETTLE_MS)
        menu = await self.first_present(MENU_SELECTORS)
        return menu is not None

    @allure.step("Click Edit option")
    async def click_edit_option(self) -> bool:
        """True if the edit window appeared."""
        if not await self.try_multiple_selectors(EDIT_OPTION, action="click", timeout=5000):
            return False
        await self.page.wait_for_timeout(self.SETTLE_MS)
        await self.screenshot("edit-window")
        return await self.first_present(EDIT_WINDOW_SELECTORS) is not None

    async def verify_edit_fields(self) -> Dict[str, bool]:
        return {
            "title": await self.is_visible(TITLE_FIELD, timeout=2000),
            "caption": await self.is_visible(CAPTION_FIELD, timeout=2000),
        }

    @allure.step("Click Delete option (cancelled)")
    async def click_delete_option(self) -> bool:
        """
        Open the delete confirmation and cancel it.

        Returns:
            True if the confirmation dialog appeared
        """
        if not await self.try_multiple_selectors(DELETE_OPTION, action="click", timeout=5000):
            return False
        await self.page.wait_for_timeout(self.SETTLE_MS)
        await self.screenshot("delete-confirmation")

        dialog = await self.first_present(DELETE_CONFIRM_SELECTORS)
        if dialog is None:
            return False

        cancel = await self.first_present(CANCEL_SELECTORS)
        if cancel is not None:
            await cancel.click()
            logger.info("ℹ️ Delete dialog cancelled")
        else:
            logger.warning("⚠️ No cancel button on the delete dialog")
        return True
