"""
================================================================================
Join Event Page Object (Async / Playwright)
================================================================================

Joining an event by its code from the home page, posting as a guest, and
the plus (compose) menu uploads: photos, videos and Then & Now pairs.

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Union

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from liveshare_e2e.ui_testing.framework.page_base import PageBase
from liveshare_e2e.ui_testing.framework.results import ActionResult


# Home page join controls
JOIN_BUTTON = [
    "button.color-blue",
    'span.btn-text:has-text("Join")',
    "div.bottom-div button",
    'button:has-text("Join")',
]
CODE_INPUT = [
    "input.inputLogin",
    'input[placeholder*="Unique ID"]',
    'input[placeholder*="code" i]',
    'input[placeholder*="ID" i]',
    "input.input-bordered",
]
JOIN_CONFIRM_BUTTON = [
    'button:has-text("Join An Event")',
    "button.inputLogin",
    'button:has-text("Join Event")',
]

# Event detail top bar
EVENT_NAME = ".event-name-event, .event-name"
DETAILS_HEADER = 'mat-panel-title:has-text("Details"), .eventdetailHeader'
GRID_VIEW_BUTTON = (
    'button:has(mat-icon:text("window")), button:has(mat-icon:text("grid_view")), '
    'button:has(mat-icon:text("grid_on"))'
)
SHARE_BUTTON = 'button:has(mat-icon:text("share"))'
MORE_MENU_BUTTON = 'button:has(mat-icon:text("more_vert"))'

# Guest login
MENU_LOGIN_ITEM = 'div.mat-menu-content button:has-text("Login"), button:has-text("Login")'
GUEST_DIALOG = "#guest-login-dialog"
NICKNAME_INPUT = [
    '#guest-login-dialog input[placeholder="Enter a Nickname"]',
    'input[placeholder*="Nickname"]',
]
POST_AS_GUEST_BUTTON = '#guest-login-dialog button:has-text("Post as Guest")'
GUEST_BUTTON_ENABLED = """
() => {
    const btn = document.querySelector('#guest-login-dialog button');
    return btn && !btn.hasAttribute('disabled');
}
"""

# Plus (compose) menu
PLUS_MENU_BUTTON = [
    'button.menu-button:has(mat-icon:text("add"))',
    "button.menu-button",
    'button:has(mat-icon:text("add"))',
]
THEN_AND_NOW_BUTTON = 'button:has-text("Then & Now")'
MESSAGE_BUTTON = 'button:has-text("Message")'
PHOTOS_BUTTON = 'button:has(mat-icon:text("insert_photo")), button:has-text("Photos")'
VIDEOS_BUTTON = 'button:has(mat-icon:text("videocam")), button:has-text("Videos")'
IMAGE_FILE_INPUT = 'input#file-input[accept*="image"], input[type="file"][accept*="image"]'
VIDEO_FILE_INPUT = 'input[type="file"][accept*="video"]'

# Then & Now dialog
THEN_NOW_DIALOG = "app-then-and-now"
THEN_BOX = "app-then-and-now .selection-box.then"
NOW_BOX = "app-then-and-now .selection-box.now"
THEN_NOW_FILE_INPUT = (
    'app-then-and-now input#file-input[accept*="image"], '
    'app-then-and-now input[type="file"][accept*="image"]'
)
THEN_NOW_POST_BUTTON = 'app-then-and-now button:has-text("POST")'

# Message composer
POST_MESSAGE_DIALOG = "app-post-message"
CAPTION_INPUT = [
    'app-post-message input[placeholder*="caption" i]',
    "app-post-message textarea",
]
POST_SUBMIT_BUTTON = 'app-post-message button:has-text("POST")'

FilePath = Union[str, Path]


class JoinEventPage(PageBase):
    """Join-by-code, guest posting and uploads (async)."""

    URL_PATH = "/"

    @allure.step("Go to home page")
    async def go_home(self) -> None:
        await self.navigate()

    @allure.step("Open join dialog")
    async def open_join_dialog(self) -> bool:
        resolution = await self.try_multiple_selectors(JOIN_BUTTON, action="click", timeout=15000)
        if resolution:
            await self.page.wait_for_timeout(1000)
        return resolution.ok

    @allure.step("Join event with code {code}")
    async def join_by_code(self, code: str) -> bool:
        """
        Type the event code and confirm.

        Returns:
            True once the confirm button was clicked and the page settled
        """
        code_input = await self.try_multiple_selectors(CODE_INPUT, action="wait_for", timeout=15000)
        if not code_input:
            logger.error("❌ Event code input not found")
            return False
        if not await self.safe_fill(code_input.locator, code):
            return False

        confirm = await self.try_multiple_selectors(JOIN_CONFIRM_BUTTON, action="click", timeout=10000)
        if not confirm:
            logger.error("❌ Join confirm button not found")
            return False
        await self.wait_for_page_ready()
        logger.info(f"✅ Joined event {code}")
        return True

    @allure.step("Verify event UI")
    async def verify_event_ui(self, expected_name_like: str = "") -> Dict[str, bool]:
        """
        Top bar buttons and Details panel of a joined event.

        ``name`` is only checked when ``expected_name_like`` is given
        (case-insensitive substring).
        """
        checks = {
            "grid_view_button": await self.is_visible(GRID_VIEW_BUTTON, timeout=10000),
            "share_button": await self.is_visible(SHARE_BUTTON, timeout=5000),
            "more_menu_button": await self.is_visible(MORE_MENU_BUTTON, timeout=5000),
            "details_header": await self.is_visible(DETAILS_HEADER, timeout=5000),
        }
        if expected_name_like:
            name = await self.get_text(EVENT_NAME)
            checks["name"] = expected_name_like.lower() in name.lower()
        logger.info(f"Event UI checks: {checks}")
        return checks

    # =========================================================================
    # Guest posting
    # =========================================================================

    @allure.step("Post as guest '{nickname}'")
    async def post_as_guest(self, nickname: str = "Auto Guest", message: str = "") -> bool:
        """
        Log in through the guest dialog, then optionally post a message.
        """
        if not await self.safe_click(MORE_MENU_BUTTON):
            return False
        await self.page.wait_for_timeout(500)
        if await self.is_visible(MENU_LOGIN_ITEM, timeout=1000):
            await self.safe_click(MENU_LOGIN_ITEM)
            await self.page.wait_for_timeout(500)

        if not await self.is_visible(GUEST_DIALOG, timeout=15000):
            logger.error("❌ Guest login dialog did not open")
            return False

        nickname_input = await self.try_multiple_selectors(NICKNAME_INPUT, action="wait_for", timeout=5000)
        if not nickname_input or not await self.safe_fill(nickname_input.locator, nickname):
            return False

        try:
            await self.page.wait_for_function(GUEST_BUTTON_ENABLED, timeout=5000)
        except PlaywrightError:
            logger.debug("Post as Guest button still disabled, clicking anyway")

        if not await self.safe_click(POST_AS_GUEST_BUTTON):
            return False
        logger.info(f"✅ Logged in as guest '{nickname}'")

        if message:
            return await self.post_message(message)
        return True

    @allure.step("Post message")
    async def post_message(self, message: str) -> bool:
        if not await self.open_plus_menu():
            return False
        if not await self.safe_click(MESSAGE_BUTTON):
            return False
        if not await self.is_visible(POST_MESSAGE_DIALOG, timeout=10000):
            logger.error("❌ Message composer did not open")
            return False

        caption = await self.try_multiple_selectors(CAPTION_INPUT, action="wait_for", timeout=5000)
        if not caption or not await self.safe_fill(caption.locator, message):
            return False
        return (await self.safe_click(POST_SUBMIT_BUTTON)).ok

    # =========================================================================
    # Plus menu uploads
    # =========================================================================

    @allure.step("Open plus menu")
    async def open_plus_menu(self) -> bool:
        resolution = await self.try_multiple_selectors(PLUS_MENU_BUTTON, action="click", timeout=10000)
        if resolution:
            await self.page.wait_for_timeout(500)
        return resolution.ok

    async def _upload_from_plus(self, button: str, file_input: str, path: FilePath) -> ActionResult:
        if not await self.open_plus_menu():
            logger.warning("⚠️ Plus menu not available, trying the file input directly")
        # The button may open a native picker; the hidden input takes the file either way
        if await self.is_visible(button, timeout=1000):
            await self.safe_click(button, retries=1)
        return await self.actions.upload_files(self.page.locator(file_input).first, path)

    @allure.step("Upload photo from plus menu")
    async def upload_photo_from_plus(self, path: FilePath) -> ActionResult:
        return await self._upload_from_plus(PHOTOS_BUTTON, IMAGE_FILE_INPUT, path)

    @allure.step("Upload video from plus menu")
    async def upload_video_from_plus(self, path: FilePath) -> ActionResult:
        return await self._upload_from_plus(VIDEOS_BUTTON, VIDEO_FILE_INPUT, path)

    @allure.step("Upload Then & Now pair")
    async def upload_then_and_now(self, then_path: FilePath, now_path: FilePath, post: bool = False) -> bool:
        """
        Fill both boxes of the Then & Now dialog.

        Args:
            then_path: Image for the THEN box
            now_path: Image for the NOW box
            post: Also press POST
        """
        if not await self.open_plus_menu():
            return False
        if not await self.safe_click(THEN_AND_NOW_BUTTON):
            return False
        if not await self.is_visible(THEN_NOW_DIALOG, timeout=10000):
            logger.error("❌ Then & Now dialog did not open")
            return False

        file_input = self.page.locator(THEN_NOW_FILE_INPUT).first
        for box, path in ((THEN_BOX, then_path), (NOW_BOX, now_path)):
            await self.safe_click(box)
            if not await self.actions.upload_files(file_input, path):
                return False
            await self.page.wait_for_timeout(1000)

        await self.screenshot("then-and-now-filled")
        if post:
            return (await self.safe_click(THEN_NOW_POST_BUTTON)).ok
        return True
