"""
================================================================================
Event Creation Page Object (Async / Playwright)
================================================================================

The create-event wizard opened from the events dashboard:

    add -> type -> name -> date -> Next -> theme -> Launch Event

================================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from liveshare_e2e.ui_testing.framework.page_base import PageBase


ADD_EVENT_BUTTON = [
    'button:has-text("add")',
    "button.Create-Event.btn.btn-circle.btn-lg",
]
EVENT_TYPE_SELECT = ["select.select-bordered", 'select[role="combobox"]']
EVENT_NAME_INPUT = 'input[placeholder="Event Name"]'

DATE_INPUT = 'input[placeholder="Choose Event Date"]'
CALENDAR_PERIOD_BUTTON = ".mat-calendar-period-button"
CALENDAR_CELL = '.mat-calendar-body-cell-content:text-is("{}")'

NEXT_BUTTON = ['button.event-btn:text("Next")', 'button:has-text("Next")']
THEME_OPTION = [
    ".theme-card",
    '.container input[type="radio"]',
    ".theme-section .theme-card",
]
LAUNCH_EVENT_BUTTON = ["button.launch-button", 'button.event-btn:text("Launch Event")']
BACK_BUTTON = 'button:has-text("arrow_back_ios_new")'

MY_EVENTS_TAB = 'div.mat-tab-label-content:has-text("My Events")'
PREMIUM_PLUS_BADGE = 'button.btn.btn-xs.btn-info:has-text("PremiumPlus")'


class EventCreationPage(PageBase):
    """Create-event wizard page object (async)."""

    URL_PATH = "/events"

    @allure.step("Open the create-event form")
    async def open_creation_form(self) -> bool:
        resolution = await self.try_multiple_selectors(ADD_EVENT_BUTTON, action="click", timeout=10000)
        if not resolution:
            logger.error("❌ Add event button not found")
            return False
        await self.page.wait_for_timeout(1000)
        await self.screenshot("add-event-clicked")
        return True

    @allure.step("Select event type '{label}'")
    async def select_event_type(self, label: str) -> bool:
        resolution = await self.try_multiple_selectors(EVENT_TYPE_SELECT, action="wait_for", timeout=10000)
        if not resolution:
            return False
        try:
            await resolution.locator.select_option(label=label)
        except PlaywrightError as e:
            logger.error(f"❌ Event type '{label}' not selectable: {e}")
            return False
        await self.page.wait_for_timeout(500)
        return True

    @allure.step("Fill event name")
    async def fill_event_name(self, name: str) -> bool:
        return (await self.safe_fill(EVENT_NAME_INPUT, name)).ok

    @allure.step("Pick event date {date:%Y-%m-%d}")
    async def set_event_date(self, date: datetime) -> bool:
        """
        Walk the material calendar: multi-year view, year, month, day.

        Month cells are labelled with upper-case abbreviations (``MAY``).
        """
        if not await self.safe_click(DATE_INPUT):
            return False
        if not await self.safe_click(CALENDAR_PERIOD_BUTTON):
            return False
        for label in (str(date.year), date.strftime("%b").upper(), str(date.day)):
            if not await self.safe_click(CALENDAR_CELL.format(label)):
                logger.error(f"❌ Calendar cell '{label}' not clickable")
                return False
        await self.page.wait_for_timeout(500)
        return True

    @allure.step("Click Next")
    async def proceed_to_next(self) -> bool:
        resolution = await self.try_multiple_selectors(NEXT_BUTTON, action="click", timeout=10000)
        if resolution:
            await self.page.wait_for_timeout(1000)
        return resolution.ok

    @allure.step("Choose theme")
    async def choose_theme(self) -> bool:
        resolution = await self.try_multiple_selectors(THEME_OPTION, action="click", timeout=10000)
        return resolution.ok

    @allure.step("Launch event")
    async def launch_event(self) -> bool:
        resolution = await self.try_multiple_selectors(LAUNCH_EVENT_BUTTON, action="click", timeout=10000)
        if resolution:
            await self.page.wait_for_timeout(3000)
            await self.screenshot("event-launched")
        return resolution.ok

    @allure.step("Create event")
    async def start_event_creation(self, event: Dict[str, Any]) -> bool:
        """
        Run the whole wizard.

        Args:
            event: Payload from LiveShareDataFactory.create_event_data
                (name, type, date)

        Returns:
            True if every step succeeded; stops at the first failed step
        """
        logger.info(f"🎯 Creating event '{event['name']}'")
        steps = [
            ("open form", lambda: self.open_creation_form()),
            ("type", lambda: self.select_event_type(event.get("type", "Anniversary"))),
            ("name", lambda: self.fill_event_name(event["name"])),
            ("date", lambda: self.set_event_date(event["date"])),
            ("next", lambda: self.proceed_to_next()),
            ("theme", lambda: self.choose_theme()),
            ("launch", lambda: self.launch_event()),
        ]
        for step, run in steps:
            if not await run():
                logger.error(f"❌ Event creation failed at step: {step}")
                await self.screenshot("error-event-creation")
                return False

        logger.info(f"✅ Event '{event['name']}' created")
        return True

    @allure.step("Navigate back to events")
    async def navigate_back_to_events(self) -> bool:
        result = await self.safe_click(BACK_BUTTON)
        if not result:
            return False
        await self.page.wait_for_timeout(2000)
        return await self.is_visible(MY_EVENTS_TAB, timeout=10000)

    @allure.step("Verify PremiumPlus badge")
    async def verify_premium_plus_badge(self) -> bool:
        visible = await self.is_visible(PREMIUM_PLUS_BADGE, timeout=10000)
        if visible:
            await self.screenshot("premium-plus-verified")
        else:
            logger.warning("⚠️ PremiumPlus badge not visible")
        return visible
