"""
================================================================================
Event Settings Page Object (Async / Playwright)
================================================================================

The "Personalize Options" dialog of an event. Options are tiles; a tile is
enabled when its class list contains ``selected-option``. Simple toggles flip
on click, while options such as Event Name open their own dialog with a
separate Save button.

Which options a tile grid offers depends on the event's plan; the
``configure_settings_for_plan`` / ``enable_simple_toggles_for_plan`` pair
walks the options of one plan tier.

================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator

from liveshare_e2e.ui_testing.framework.page_base import PageBase


SETTINGS_DIALOG = "mat-dialog-container app-personalize"
DIALOG_TITLE = f'{SETTINGS_DIALOG} h1:has-text("Personalize Options")'
TOPNAV_SETTINGS_BUTTON = 'app-event-detail .navbar-end button:has(mat-icon:text("settings"))'
FOOTER = f"{SETTINGS_DIALOG} div.mt-auto.flex"
OPTION_TILE = f"{SETTINGS_DIALOG} div.options"
SELECTED_CLASS = "selected-option"

# Per-option dialogs, keyed by their h1 title
OPTION_DIALOG = 'mat-dialog-container:has(h1[mat-dialog-title]:has-text("{}"))'
DIALOG_SAVE_BUTTON = '.mat-dialog-actions .btn:has-text("Save")'
CANCEL_BUTTON = '.mt-auto .btn:has-text("Cancel")'

NAME_DIALOG = OPTION_DIALOG.format("Name")
NAME_INPUT = 'input[type="text"][placeholder="Name"]'

DATE_DIALOG = OPTION_DIALOG.format("Event Date")
DATE_INPUT = 'input[type="text"][placeholder="Event Date"]'

CONTACT_DIALOG = OPTION_DIALOG.format("Contact")
CONTACT_EMAIL_INPUT = 'input[type="text"][placeholder="Email"]'
CONTACT_PHONE_INPUT = 'input[type="text"][placeholder="Phone"]'

LOCATION_DIALOG = OPTION_DIALOG.format("Location")
LOCATION_INPUT = 'input[type="text"][placeholder*="Location"], textarea[placeholder*="Location"]'

LINK_URL_INPUT = 'input[type="text"][placeholder="URL"]'

PASSCODE_DIALOG = 'mat-dialog-container:has(h1:has-text("Passcode"), h1:has-text("Access"))'
PASSCODE_INPUT = 'input[type="text"], input[type="password"], input[placeholder*="passcode" i]'

MANAGER_DIALOG = 'mat-dialog-container:has(h1:has-text("Event Manager"), h1:has-text("Add Manager"))'
MANAGER_EMAIL_INPUT = 'input[type="email"], input[placeholder*="email" i]'
MANAGER_SAVE_BUTTON = '.mat-dialog-actions .btn:has-text("Save"), .mat-dialog-actions .btn:has-text("Add")'

HEADER_PHOTO_DIALOG = OPTION_DIALOG.format("Event Header Photo")
HEADER_PHOTO_INPUT = 'input[type="file"]#popupBg'
CROP_DIALOG = 'mat-dialog-container app-crop-header:has(h1:has-text("Crop Image"))'
CROP_DONE_BUTTON = '.mat-dialog-actions button.btn:has-text("Done")'

KEEPSAKE_DIALOG = 'mat-dialog-container app-keepsake-welcome-popup:has(.header:has-text("KeepSake"))'
KEEPSAKE_MESSAGE_INPUT = "textarea.textarea"
KEEPSAKE_UNLOCK_INPUT = 'input[placeholder="MM/DD/YYYY"]'
KEEPSAKE_ENABLE_BUTTON = 'button.btn:has-text("Enable")'

HUNT_DIALOG = 'mat-dialog-container app-scavenger-hunt-dialog:has(h1:has-text("Scavenger Hunt"))'
HUNT_CHECKBOX = 'mat-checkbox input[type="checkbox"]'
HUNT_SAVE_BUTTON = '.mat-dialog-actions button.btn:has-text("Save")'
# Heading text as the app spells it
HUNT_CONFIRM_DIALOG = 'mat-dialog-container:has(h2:has-text("No tempates Selected?"))'
HUNT_CONFIRM_BUTTON = '.mat-dialog-actions button.btn:has-text("Yes")'

# Options that flip on click without a configuration dialog
SIMPLE_TOGGLES = [
    "Allow sharing via Facebook",
    "Allow Guest Download",
    "Allow posting without login",
    "Force Login",
    "Enable Photo Gifts",
    "Popularity Badges",
    "LiveView Slideshow",
    "Then And Now",
    "Sponsor",
    "Prize",
]

PLAN_TIERS = ["STANDARD", "PREMIUM", "PREMIUM_PLUS"]

# Toggles a tier adds on top of the tiers below it
TIER_TOGGLES = {
    "STANDARD": [],
    "PREMIUM": [
        "Allow sharing via Facebook",
        "Allow Guest Download",
        "Allow posting without login",
    ],
    "PREMIUM_PLUS": [
        "LiveView Slideshow",
        "Then And Now",
        "Sponsor",
        "Prize",
    ],
}

EVENT_DATE_FORMAT = "%m/%d/%Y"

FilePath = Union[str, Path]


def normalize_plan(plan: str) -> str:
    """
    ``Premium+``, ``PremiumPlus`` and ``premium plus`` all read PREMIUM_PLUS.

    Raises:
        ValueError: Not a plan tier with settings
    """
    key = plan.strip().upper().replace("+", "_PLUS")
    key = re.sub(r"[\s-]+", "_", key).replace("PREMIUMPLUS", "PREMIUM_PLUS")
    key = re.sub(r"_+", "_", key)
    if key not in PLAN_TIERS:
        raise ValueError(f"Unknown plan: {plan}. Expected one of {PLAN_TIERS}")
    return key


def toggles_for_plan(plan: str) -> List[str]:
    """Every simple toggle available up to and including ``plan``'s tier."""
    tier = PLAN_TIERS.index(normalize_plan(plan))
    return [label for name in PLAN_TIERS[: tier + 1] for label in TIER_TOGGLES[name]]


def format_event_date(value: Union[str, date]) -> str:
    """Dates are typed as MM/DD/YYYY; strings pass through untouched."""
    if isinstance(value, date):
        return value.strftime(EVENT_DATE_FORMAT)
    return value


@dataclass
class PlanSettings:
    """Values typed into the option dialogs by ``configure_settings_for_plan``."""
    event_name: str = ""
    event_date: Union[str, date] = field(default_factory=date.today)
    location: str = "Test Location - Automated"
    email: str = "test@example.com"
    phone: str = "+1-555-0100"
    button_links: Sequence[Tuple[str, str]] = (
        ("Website", "https://example.com"),
        ("RSVP", "https://rsvp.example.com"),
    )
    passcode: str = "TEST1234"
    keepsake_message: str = "Welcome to our special event! This message will be unlocked on the event date."
    keepsake_unlock: Union[str, date] = field(default_factory=lambda: date.today() + timedelta(days=7))


class EventSettingsPage(PageBase):
    """Personalize Options dialog page object (async)."""

    TOGGLE_SETTLE_MS = 300

    def option(self, label: str) -> Locator:
        """Option tile whose label span contains ``label``."""
        return self.page.locator(OPTION_TILE).filter(
            has=self.page.locator("span", has_text=label)
        ).first

    @allure.step("Open settings")
    async def open_settings(self) -> bool:
        """Open the dialog from the event top bar unless it is already open."""
        if await self.is_visible(SETTINGS_DIALOG, timeout=1000):
            return True
        if not await self.safe_click(TOPNAV_SETTINGS_BUTTON):
            logger.error("❌ Settings button not found on the event page")
            return False
        loaded = await self.is_visible(DIALOG_TITLE, timeout=15000)
        if loaded:
            logger.info("✅ Personalize Options dialog open")
        return loaded

    async def is_option_enabled(self, label: str) -> bool:
        """
        True if the tile's class list contains ``selected-option``.

        Raises:
            PlaywrightError: The option tile never appeared
        """
        tile = self.option(label)
        await tile.wait_for(state="visible", timeout=10000)
        classes = (await tile.get_attribute("class")) or ""
        return SELECTED_CLASS in classes.split()

    @allure.step("Set option '{label}' to {enabled}")
    async def set_option(self, label: str, enabled: bool = True) -> bool:
        """
        Bring a simple toggle to the wanted state.

        Returns:
            True if the option ends in the wanted state
        """
        try:
            current = await self.is_option_enabled(label)
        except PlaywrightError as e:
            logger.error(f"❌ Option '{label}' not found: {e}")
            return False

        if current == enabled:
            logger.debug(f"Option '{label}' already {'on' if enabled else 'off'}")
            return True

        if not await self.safe_click(self.option(label)):
            return False
        await self.page.wait_for_timeout(self.TOGGLE_SETTLE_MS)

        try:
            now = await self.is_option_enabled(label)
        except PlaywrightError:
            return False
        if now != enabled:
            logger.warning(f"⚠️ Option '{label}' did not switch {'on' if enabled else 'off'}")
        return now == enabled

    async def set_options(self, labels: Iterable[str], enabled: bool = True) -> Dict[str, bool]:
        return {label: await self.set_option(label, enabled) for label in labels}

    # =========================================================================
    # Option dialogs
    # =========================================================================

    async def _open_option_dialog(self, label: str, dialog_selector: str) -> Optional[Locator]:
        if not await self.safe_click(self.option(label)):
            return None
        await self.page.wait_for_timeout(1000)

        dialog = self.page.locator(dialog_selector).first
        if not await self.actions.is_visible(dialog, timeout=10000):
            logger.error(f"❌ '{label}' dialog did not open")
            return None
        return dialog

    async def _edit_option_dialog(
        self,
        label: str,
        dialog_selector: str,
        fields: Sequence[Tuple[str, str]],
        save_selector: str = DIALOG_SAVE_BUTTON,
        secret: bool = False,
    ) -> bool:
        """
        Click an option tile, fill its dialog and press that dialog's Save.

        Args:
            label: Option tile label
            dialog_selector: The option's own dialog
            fields: (input selector inside the dialog, value) pairs, filled in order
            save_selector: Confirm button inside the dialog
            secret: Mask the values in logs
        """
        dialog = await self._open_option_dialog(label, dialog_selector)
        if dialog is None:
            return False

        for selector, value in fields:
            if not await self.safe_fill(dialog.locator(selector).first, value, secret=secret):
                return False
            await self.page.wait_for_timeout(300)

        if not await self.safe_click(dialog.locator(save_selector).first):
            return False
        await self.page.wait_for_timeout(1500)
        return True

    @allure.step("Change event name to '{name}'")
    async def change_event_name(self, name: str) -> bool:
        """Open the Event Name option dialog, replace the name and save that dialog."""
        changed = await self._edit_option_dialog("Event Name", NAME_DIALOG, [(NAME_INPUT, name)])
        if changed:
            logger.info(f"✅ Event name changed to '{name}'")
        return changed

    @allure.step("Change event date to '{value}'")
    async def change_event_date(self, value: Union[str, date]) -> bool:
        typed = format_event_date(value)
        changed = await self._edit_option_dialog("Event Date", DATE_DIALOG, [(DATE_INPUT, typed)])
        if changed:
            logger.info(f"✅ Event date changed to {typed}")
        return changed

    @allure.step("Update contact")
    async def update_contact(self, email: str, phone: str) -> bool:
        return await self._edit_option_dialog(
            "Contact",
            CONTACT_DIALOG,
            [(CONTACT_EMAIL_INPUT, email), (CONTACT_PHONE_INPUT, phone)],
        )

    @allure.step("Update location to '{location}'")
    async def update_location(self, location: str) -> bool:
        return await self._edit_option_dialog("Location", LOCATION_DIALOG, [(LOCATION_INPUT, location)])

    @allure.step("Configure Button Link #{number}")
    async def configure_button_link(self, number: int, name: str, url: str) -> bool:
        """
        Name and target of one of the two event button links.

        Raises:
            ValueError: ``number`` is not 1 or 2
        """
        if number not in (1, 2):
            raise ValueError(f"Button link number must be 1 or 2, got {number}")
        label = f"Button Link #{number}"
        return await self._edit_option_dialog(
            label,
            OPTION_DIALOG.format(label),
            [(NAME_INPUT, name), (LINK_URL_INPUT, url)],
        )

    @allure.step("Set access passcode")
    async def set_access_passcode(self, passcode: str) -> bool:
        return await self._edit_option_dialog(
            "Require Access Passcode",
            PASSCODE_DIALOG,
            [(PASSCODE_INPUT, passcode)],
            secret=True,
        )

    @allure.step("Add event manager {email}")
    async def add_event_manager(self, email: str) -> bool:
        """
        Raises:
            ValueError: ``email`` has no ``@``
        """
        if "@" not in email:
            raise ValueError(f"Not an email address: {email!r}")
        added = await self._edit_option_dialog(
            "Add Event Managers",
            MANAGER_DIALOG,
            [(MANAGER_EMAIL_INPUT, email)],
            save_selector=MANAGER_SAVE_BUTTON,
        )
        if added:
            logger.info(f"✅ Event manager {email} added")
        return added

    @allure.step("Configure KeepSake welcome")
    async def configure_keepsake_welcome(self, message: str, unlock: Union[str, date]) -> bool:
        return await self._edit_option_dialog(
            "KeepSake",
            KEEPSAKE_DIALOG,
            [(KEEPSAKE_MESSAGE_INPUT, message), (KEEPSAKE_UNLOCK_INPUT, format_event_date(unlock))],
            save_selector=KEEPSAKE_ENABLE_BUTTON,
        )

    @allure.step("Upload event header photo")
    async def upload_event_header_photo(self, path: FilePath) -> bool:
        """Upload, accept the crop dialog when it shows, then save."""
        dialog = await self._open_option_dialog("Event Header Photo", HEADER_PHOTO_DIALOG)
        if dialog is None:
            return False
        if not await self.actions.upload_files(dialog.locator(HEADER_PHOTO_INPUT).first, path):
            return False
        await self.page.wait_for_timeout(2000)

        crop = self.page.locator(CROP_DIALOG).first
        if await self.actions.is_visible(crop, timeout=2000):
            logger.debug("Accepting crop dialog")
            if not await self.safe_click(crop.locator(CROP_DONE_BUTTON).first):
                return False
            await self.page.wait_for_timeout(1500)

        saved = await self.safe_click(dialog.locator(DIALOG_SAVE_BUTTON).first)
        await self.page.wait_for_timeout(1500)
        return saved.ok

    @allure.step("Configure Scavenger Hunt (enable={enable})")
    async def configure_scavenger_hunt(self, enable: bool = True) -> bool:
        """
        Save the hunt dialog. Saving without templates asks for confirmation,
        which is accepted when it appears.
        """
        dialog = await self._open_option_dialog("Scavenger Hunt", HUNT_DIALOG)
        if dialog is None:
            return False

        checkbox = dialog.locator(HUNT_CHECKBOX).first
        try:
            checked = await checkbox.is_checked()
        except PlaywrightError:
            checked = False
        if checked != enable:
            await self.safe_click(checkbox)
            await self.page.wait_for_timeout(300)

        if not await self.safe_click(dialog.locator(HUNT_SAVE_BUTTON).first):
            return False
        confirm = self.page.locator(HUNT_CONFIRM_DIALOG).first
        if await self.actions.is_visible(confirm, timeout=3000):
            if not await self.safe_click(confirm.locator(HUNT_CONFIRM_BUTTON).first):
                return False
        await self.page.wait_for_timeout(1500)
        return True

    # =========================================================================
    # Plan matrices
    # =========================================================================

    @allure.step("Enable simple toggles for {plan}")
    async def enable_simple_toggles_for_plan(self, plan: str) -> Dict[str, Any]:
        results = await self.set_options(toggles_for_plan(plan), enabled=True)
        failed = [label for label, ok in results.items() if not ok]
        summary = {"enabled": len(results) - len(failed), "failed": failed, "success": not failed}
        logger.info(f"📊 Toggles for {plan}: {summary}")
        return summary

    @allure.step("Configure settings for {plan}")
    async def configure_settings_for_plan(self, plan: str, settings: Optional[PlanSettings] = None) -> Dict[str, Any]:
        """
        Walk the dialog-based options of a plan tier.

        Every tier sets name, date, location and contact. STANDARD and up
        add both button links, PREMIUM and up the access passcode, and
        PREMIUM_PLUS the KeepSake welcome and the scavenger hunt.

        Returns:
            {"configured": n, "failed": [option names], "success": bool}
        """
        tier = PLAN_TIERS.index(normalize_plan(plan))
        settings = settings or PlanSettings()
        event_name = settings.event_name or f"{plan} Event {date.today():%Y%m%d}"

        steps = [
            ("Event Name", lambda: self.change_event_name(event_name)),
            ("Event Date", lambda: self.change_event_date(settings.event_date)),
            ("Location", lambda: self.update_location(settings.location)),
            ("Contact", lambda: self.update_contact(settings.email, settings.phone)),
        ]
        for number, (name, url) in enumerate(settings.button_links[:2], start=1):
            steps.append((f"Button Link #{number}", lambda n=number, a=name, u=url: self.configure_button_link(n, a, u)))
        if tier >= PLAN_TIERS.index("PREMIUM"):
            steps.append(("Require Access Passcode", lambda: self.set_access_passcode(settings.passcode)))
        if tier >= PLAN_TIERS.index("PREMIUM_PLUS"):
            steps.append((
                "KeepSake",
                lambda: self.configure_keepsake_welcome(settings.keepsake_message, settings.keepsake_unlock),
            ))
            steps.append(("Scavenger Hunt", lambda: self.configure_scavenger_hunt(True)))

        failed = []
        for name, step in steps:
            if not await step():
                failed.append(name)
        summary = {"configured": len(steps) - len(failed), "failed": failed, "success": not failed}
        logger.info(f"📊 Settings for {plan}: {summary}")
        return summary

    # =========================================================================
    # Save / close
    # =========================================================================

    @allure.step("Save settings")
    async def save_settings(self) -> bool:
        """Main dialog Save (not the per-option dialog Save)."""
        save = self.page.locator(FOOTER).get_by_text("Save", exact=True)
        result = await self.safe_click(save)
        if result:
            await self.page.wait_for_timeout(2000)
            logger.info("✅ Settings saved")
        return result.ok

    @allure.step("Close settings")
    async def close_settings(self) -> bool:
        """Cancel the dialog; a dialog that is already gone counts as closed."""
        if await self.is_visible(CANCEL_BUTTON, timeout=1000):
            if not await self.safe_click(CANCEL_BUTTON):
                return False
            await self.page.wait_for_timeout(1000)
        return True
