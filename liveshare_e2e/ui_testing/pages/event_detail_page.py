"""
================================================================================
Event Detail Page Object (Async / Playwright)
================================================================================

A single event: header image and name, the top bar (back, grid view, share,
settings, more options), the plus (compose) menu, the gallery grid views,
the Event Details summary dialog and the flows behind each more options
item (keepsakes, download, LiveView, gift codes, Live Help, FAQs).

================================================================================
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator

from liveshare_e2e.ui_testing.framework.page_base import PageBase


TOP_NAV = "app-event-detail app-topnav"
EVENT_IMAGE = ".event-image img"
EVENT_NAME = "span.event-name-event"
EVENT_DATE = "span.date-event"

BACK_BUTTON = '.navbar-start button:has(mat-icon:text("arrow_back_ios_new"))'
SHARE_BUTTON = 'button:has(mat-icon:text("share"))'
SETTINGS_BUTTON = 'button:has(mat-icon:text("settings"))'
MORE_OPTIONS_BUTTON = 'button:has(mat-icon:text("more_vert"))'
GRID_VIEW_BUTTON = (
    'button:has(mat-icon:text("window")), button:has(mat-icon:text("grid_view")), '
    'button:has(mat-icon:text("grid_on")), button:has(mat-icon:text("horizontal_split"))'
)

DETAILS_PANEL_HEADER = 'mat-panel-title.eventdetailHeader:has-text("Details")'
DETAILS_PANEL_EXPANDED = "mat-expansion-panel.mat-expanded"

ADD_BUTTON = 'button.menu-button:has(mat-icon:text("add"))'
PLUS_FEATURES = {
    "then_and_now": 'button:has-text("Then & Now")',
    "keepsake": 'button:has-text("KeepSake")',
    "clue": 'button:has-text("Clue")',
    "sponsor": 'button:has-text("Sponsor")',
    "prize": 'button:has-text("Prize")',
    "message": 'button:has-text("Message")',
    "photos": 'button:has-text("Photos")',
    "videos": 'button:has-text("Videos")',
}

MENU_PANEL = '.mat-menu-panel[role="menu"], div[role="menu"].mat-menu-panel'
MENU_ITEMS = {
    "view_keepsakes": "View Keepsakes",
    "download_all_photos": "Download All Photos",
    "live_view": "LiveView",
    "redeem_gift_code": "Redeem Gift Code",
    "live_help": "Live Help",
    "faqs": "FAQs",
    "details": "Details",
    "logout": "Logout",
}

GRID_VIEWS = {
    "2x2": "2x2 View",
    "3x3": "3x3 View",
    "timeline": "Timeline View",
}
GRID_ICONS = ["window", "grid_on", "horizontal_split"]
GRID_CONTAINER = ".image-container.grid-container"
VERTICAL_CONTAINER = ".vertical-container"
IMAGE_WRAPPERS = ".image-wrapper.photo"
PHOTO_DETAILS = ".photo-detail"
STYLE_WIDTH = re.compile(r"width:\s*([0-9.]+)px")

SHARE_DIALOG_TITLE = "div.mat-dialog-title"
SHARE_QR_CODE = "img#qrcode"
SHARE_EVENT_CODE = "span#event-code"
CLOSE_BUTTON = 'button:has(mat-icon:text("close"))'

SUMMARY_DIALOG = "app-event-summary-dialog"
SUMMARY_ROWS = {
    "plan": "Plan",
    "created_date": "Created Date",
    "event_date": "Event Date",
    "last_viewed_date": "Last Viewed Date",
    "number_of_posts": "Number of Posts",
    "number_of_guests": "Number of Guests",
    "number_of_viewers": "Number of Viewers",
    "active_until": "Event Active until",
    "daily_backup_limit": "Daily backup limit",
}

SUMMARY_CLOSE_BUTTON = f"{SUMMARY_DIALOG} button[mat-dialog-close]"
SUMMARY_ACTIONS = {
    "upgrade": f'{SUMMARY_DIALOG} button:has-text("Upgrade")',
    "view_guests": f'{SUMMARY_DIALOG} button:has-text("View")',
    "extend": f'{SUMMARY_DIALOG} button:has-text("Extend")',
}

REDEEM_DIALOG = '.mat-dialog-container:has-text("Redeem")'
REDEEM_CODE_INPUT = '.mat-dialog-container input[placeholder*="code" i]'
REDEEM_SUBMIT_BUTTON = '.mat-dialog-container button:has-text("Redeem")'

CHAT_BOX = ".chat-box, app-chat, .live-help-chat"
CHAT_INPUT = 'input[placeholder*="message"], textarea[placeholder*="message"]'

LIVE_VIEW_INDICATORS = [
    ".liveview-mode",
    ".slideshow-mode",
    '[class*="liveview"]',
    '[class*="slideshow"]',
    ".fullscreen-view",
]
SUPPORT_URL_HINTS = ("support.livesharenow.com", "faq", "help")


def parse_style_width(style: Optional[str]) -> Optional[float]:
    """Pixel width from an inline style (``width: 214.5px``), or None."""
    match = STYLE_WIDTH.search(style or "")
    return float(match.group(1)) if match else None


def menu_item(label: str) -> str:
    return f'button[role="menuitem"]:has-text("{label}"), .mat-menu-item:has-text("{label}")'


def is_support_url(url: str) -> bool:
    return any(hint in (url or "").lower() for hint in SUPPORT_URL_HINTS)


async def follow_live_view(view: PageBase, trigger: Locator, timeout: int = 10000) -> Dict[str, Any]:
    """
    Click a LiveView control and report where the slideshow went.

    LiveView opens a new tab on most plans and switches the current tab into
    slideshow mode on others. A new tab is closed once its URL is read.

    Returns:
        {"opened", "new_tab", "url"}
    """
    url_before = view.page.url
    clicked, live_page = await view.click_expecting_new_page(trigger, timeout=timeout)
    if not clicked:
        return {"opened": False, "new_tab": False, "url": url_before}

    if live_page is not None:
        url = live_page.url
        await live_page.close()
        logger.info(f"✅ LiveView opened in a new tab: {url}")
        return {"opened": True, "new_tab": True, "url": url}

    await view.page.wait_for_timeout(2000)
    in_place = view.page.url != url_before or await view.is_visible(LIVE_VIEW_INDICATORS, timeout=3000)
    if in_place:
        logger.info(f"✅ LiveView opened in this tab: {view.page.url}")
    else:
        logger.warning("⚠️ LiveView did not open (disabled for this plan?)")
    return {"opened": in_place, "new_tab": False, "url": view.page.url}


class EventDetailPage(PageBase):
    """Event detail page object (async)."""

    @allure.step("Wait for event detail to load")
    async def wait_for_event_detail_to_load(self, timeout: int = 30000) -> bool:
        if not await self.is_visible(EVENT_IMAGE, timeout=timeout):
            logger.warning("⚠️ Event header image not visible")
            return False
        return await self.is_visible(EVENT_NAME, timeout=15000)

    async def get_event_info(self) -> Dict[str, Any]:
        return {
            "name": await self.get_text(EVENT_NAME),
            "date": await self.get_text(EVENT_DATE),
            "has_image": await self.is_visible(EVENT_IMAGE),
        }

    @allure.step("Verify event detail loaded")
    async def verify_event_detail_loaded(self) -> Dict[str, bool]:
        checks = {
            "image": EVENT_IMAGE,
            "name": EVENT_NAME,
            "date": EVENT_DATE,
            "top_nav": TOP_NAV,
        }
        return {name: await self.is_visible(selector, timeout=5000) for name, selector in checks.items()}

    @allure.step("Verify navigation buttons")
    async def verify_navigation_buttons(self) -> Dict[str, bool]:
        checks = {
            "back": BACK_BUTTON,
            "share": SHARE_BUTTON,
            "settings": SETTINGS_BUTTON,
            "more_options": MORE_OPTIONS_BUTTON,
        }
        return {name: await self.is_visible(selector, timeout=5000) for name, selector in checks.items()}

    @allure.step("Expand Details panel")
    async def expand_details_panel(self) -> bool:
        if await self.exists(DETAILS_PANEL_EXPANDED):
            return True
        result = await self.safe_click(DETAILS_PANEL_HEADER)
        await self.page.wait_for_timeout(1000)
        return result.ok

    # =========================================================================
    # Plus menu
    # =========================================================================

    @allure.step("Open plus menu")
    async def open_plus_menu(self) -> bool:
        result = await self.safe_click(ADD_BUTTON)
        if result:
            await self.page.wait_for_timeout(2000)
        return result.ok

    @allure.step("Verify plus menu features")
    async def verify_all_plus_icon_features(self) -> Dict[str, bool]:
        """
        Visibility of every compose feature. Which ones show depends on the
        event's plan, so the caller decides which must be present.
        """
        features = {}
        for name, selector in PLUS_FEATURES.items():
            features[name] = await self.is_visible(selector, timeout=1000)
        logger.info(f"Plus menu features: {features}")
        await self.screenshot("plus-menu-features")
        return features

    # =========================================================================
    # More options menu
    # =========================================================================

    @allure.step("Open more options menu")
    async def open_more_options_menu(self) -> bool:
        if not await self.safe_click(MORE_OPTIONS_BUTTON):
            return False
        await self.page.wait_for_timeout(1500)
        opened = await self.is_visible(MENU_PANEL, timeout=10000)
        if opened:
            logger.info("✅ More options menu opened")
        return opened

    @allure.step("Verify menu panel UI")
    async def verify_menu_panel_ui(self) -> Dict[str, bool]:
        if not await self.is_visible(MENU_PANEL, timeout=10000):
            logger.error("❌ Menu panel not visible")
            return {name: False for name in MENU_ITEMS}
        items = {name: await self.is_visible(menu_item(label), timeout=500) for name, label in MENU_ITEMS.items()}
        logger.info(f"Menu items visibility: {items}")
        return items

    @allure.step("Click menu item '{name}'")
    async def click_menu_item(self, name: str) -> bool:
        """``name`` is a MENU_ITEMS key, e.g. ``details``."""
        result = await self.safe_click(menu_item(MENU_ITEMS[name]))
        if result:
            await self.page.wait_for_timeout(2000)
        return result.ok

    async def get_event_details_info(self) -> Dict[str, str]:
        """Rows of the Event Details summary dialog; missing rows read ``---``."""
        details = {}
        for key, label in SUMMARY_ROWS.items():
            cell = self.page.locator(f'{SUMMARY_DIALOG} table tr:has-text("{label}") td').first
            try:
                details[key] = ((await cell.text_content(timeout=2000)) or "").strip() or "---"
            except PlaywrightError:
                details[key] = "---"
        logger.debug(f"Event details: {details}")
        return details

    @allure.step("Close dialog")
    async def close_dialog(self) -> bool:
        result = await self.safe_click(CLOSE_BUTTON)
        await self.page.wait_for_timeout(1000)
        return result.ok

    async def choose_more_option(self, name: str) -> bool:
        """Open the more options menu and click ``MENU_ITEMS[name]``."""
        if not await self.open_more_options_menu():
            return False
        return await self.click_menu_item(name)

    def _menu_locator(self, name: str) -> Locator:
        return self.page.locator(menu_item(MENU_ITEMS[name])).first

    @allure.step("Verify Event Details dialog")
    async def verify_event_details_dialog(self) -> Dict[str, Any]:
        """
        Open Details from the menu, read its rows and action buttons, close it.

        Returns:
            {"opened", "fields", "actions", "closed"}; only "opened" when the
            dialog never showed up
        """
        if not await self.choose_more_option("details"):
            return {"opened": False}
        if not await self.is_visible(SUMMARY_DIALOG, timeout=10000):
            logger.error("❌ Event Details dialog did not open")
            return {"opened": False}

        info: Dict[str, Any] = {
            "opened": True,
            "fields": await self.get_event_details_info(),
            "actions": {
                name: await self.is_visible(selector, timeout=1000)
                for name, selector in SUMMARY_ACTIONS.items()
            },
        }
        await self.safe_click(SUMMARY_CLOSE_BUTTON)
        await self.page.wait_for_timeout(1500)
        info["closed"] = not await self.is_visible(SUMMARY_DIALOG, timeout=1000)
        logger.info(f"Event Details dialog: {info}")
        return info

    # =========================================================================
    # More options flows
    # =========================================================================

    @allure.step("View keepsakes")
    async def view_keepsakes(self) -> Dict[str, Any]:
        """Keepsakes open either as their own route or as a dialog on this one."""
        url_before = self.page.url
        clicked = await self.choose_more_option("view_keepsakes")
        if clicked:
            await self.page.wait_for_timeout(2000)
        result = {"clicked": clicked, "navigated": clicked and self.page.url != url_before, "url": self.page.url}
        logger.info(f"View Keepsakes: {result}")
        return result

    @allure.step("Download all photos")
    async def download_all_photos(self, timeout: int = 30000) -> Optional[str]:
        """
        Start the bulk download.

        Returns:
            Suggested file name of the download, or None if none started
        """
        if not await self.open_more_options_menu():
            return None
        item = self._menu_locator("download_all_photos")
        try:
            async with self.page.expect_download(timeout=timeout) as download_info:
                await item.click()
            download = await download_info.value
        except PlaywrightError as e:
            logger.warning(f"⚠️ No download started: {e}")
            return None
        logger.info(f"✅ Download started: {download.suggested_filename}")
        return download.suggested_filename

    @allure.step("Open LiveView")
    async def open_live_view(self) -> Dict[str, Any]:
        if not await self.open_more_options_menu():
            return {"opened": False, "new_tab": False, "url": self.page.url}
        return await follow_live_view(self, self._menu_locator("live_view"))

    @allure.step("Redeem gift code")
    async def redeem_gift_code(self, code: str, submit: bool = True) -> Dict[str, bool]:
        """
        Enter ``code`` in the Redeem Gift Code dialog.

        Test codes are rejected by the backend, so only the dialog mechanics
        are reported. The dialog is closed if it is still open afterwards.
        """
        checks = {"dialog": False, "filled": False, "submitted": False}
        if not await self.choose_more_option("redeem_gift_code"):
            return checks

        checks["dialog"] = await self.is_visible(REDEEM_DIALOG, timeout=10000)
        if not checks["dialog"]:
            logger.error("❌ Redeem Gift Code dialog did not open")
            return checks

        checks["filled"] = (await self.safe_fill(REDEEM_CODE_INPUT, code)).ok
        if checks["filled"] and submit:
            checks["submitted"] = (await self.safe_click(REDEEM_SUBMIT_BUTTON)).ok
            await self.page.wait_for_timeout(2000)

        if await self.is_visible(REDEEM_DIALOG, timeout=1000):
            await self.close_dialog()
        logger.info(f"Redeem gift code: {checks}")
        return checks

    @allure.step("Open Live Help")
    async def open_live_help(self) -> Dict[str, bool]:
        checks = {"clicked": await self.choose_more_option("live_help"), "chat_box": False, "chat_input": False}
        if checks["clicked"]:
            checks["chat_box"] = await self.is_visible(CHAT_BOX, timeout=10000)
            checks["chat_input"] = await self.is_visible(CHAT_INPUT, timeout=2000)
        logger.info(f"Live Help: {checks}")
        return checks

    @allure.step("Open FAQs")
    async def open_faqs(self) -> Optional[str]:
        """URL of the FAQ tab (closed afterwards), or None if no tab opened."""
        if not await self.open_more_options_menu():
            return None
        _, faq_page = await self.click_expecting_new_page(self._menu_locator("faqs"), timeout=10000)
        if faq_page is None:
            logger.warning("⚠️ FAQs did not open a new tab")
            return None
        url = faq_page.url
        await faq_page.close()
        if not is_support_url(url):
            logger.warning(f"⚠️ FAQs tab is not a support page: {url}")
        return url

    # =========================================================================
    # Share
    # =========================================================================

    @allure.step("Verify share dialog")
    async def verify_share_dialog(self) -> Dict[str, bool]:
        """Open share, check title, QR code and event code, then close it."""
        if not await self.safe_click(SHARE_BUTTON):
            return {"opened": False}
        await self.page.wait_for_timeout(2000)
        checks = {
            "opened": True,
            "title": await self.is_visible(SHARE_DIALOG_TITLE, timeout=5000),
            "qr_code": await self.is_visible(SHARE_QR_CODE, timeout=5000),
            "event_code": await self.is_visible(SHARE_EVENT_CODE, timeout=5000),
        }
        await self.close_dialog()
        return checks

    # =========================================================================
    # Grid views
    # =========================================================================

    async def current_grid_icon(self) -> str:
        for icon in GRID_ICONS:
            if await self.is_visible(f'button mat-icon:text("{icon}")', timeout=500):
                return icon
        return "unknown"

    @allure.step("Select grid view {kind}")
    async def select_grid_view(self, kind: str) -> bool:
        """
        Switch the gallery layout.

        Args:
            kind: "2x2", "3x3" or "timeline"
        """
        if kind not in GRID_VIEWS:
            raise ValueError(f"Unknown grid view: {kind}. Expected one of {list(GRID_VIEWS)}")

        if not await self.safe_click(GRID_VIEW_BUTTON):
            return False
        await self.page.wait_for_timeout(1000)
        result = await self.safe_click(f'button[role="menuitem"]:has-text("{GRID_VIEWS[kind]}")')
        if result:
            # Layout transition
            await self.page.wait_for_timeout(2000)
        return result.ok

    async def image_wrapper_widths(self) -> List[float]:
        widths = []
        wrappers = self.page.locator(IMAGE_WRAPPERS)
        for i in range(await wrappers.count()):
            width = parse_style_width(await wrappers.nth(i).get_attribute("style"))
            if width is not None:
                widths.append(width)
        return widths

    @allure.step("Read grid layout info")
    async def get_grid_layout_info(self) -> Dict[str, Any]:
        info = {
            "current_icon": await self.current_grid_icon(),
            "grid_container_visible": await self.is_visible(GRID_CONTAINER, timeout=1000),
            "vertical_container_visible": await self.is_visible(VERTICAL_CONTAINER, timeout=1000),
            "image_wrapper_count": await self.page.locator(IMAGE_WRAPPERS).count(),
            "photo_detail_count": await self.page.locator(PHOTO_DETAILS).count(),
            "image_widths": await self.image_wrapper_widths(),
        }
        logger.info(f"📊 Grid layout: {info}")
        return info

    # =========================================================================
    # Navigation out of the event
    # =========================================================================

    @allure.step("Open image #{index}")
    async def open_image(self, index: int = 0) -> bool:
        result = await self.safe_click(self.page.locator(IMAGE_WRAPPERS).nth(index))
        if result:
            await self.page.wait_for_timeout(2000)
        return result.ok

    @allure.step("Open event settings")
    async def open_settings(self) -> bool:
        result = await self.safe_click(SETTINGS_BUTTON)
        if result:
            await self.page.wait_for_timeout(1000)
        return result.ok

    @allure.step("Go back")
    async def click_back(self) -> bool:
        return (await self.safe_click(BACK_BUTTON)).ok
