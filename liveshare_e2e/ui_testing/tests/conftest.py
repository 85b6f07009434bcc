"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for the browser scenarios, providing fixtures
for browser management, page objects, and test setup/teardown.

Key Features:
- Global setup once per run (directories, test assets, stored login)
- Browser and page lifecycle management per test
- Page Object fixtures for the LiveShare pages
- Screenshot capture on failure

Every fixture is function-scoped: one BrowserManager per test keeps the
Playwright objects on the event loop of the test that uses them.

================================================================================
"""

import asyncio
import os
from pathlib import Path
from typing import AsyncGenerator, Generator, List

import allure
import pytest
from filelock import FileLock
from loguru import logger
from playwright.async_api import Page

from liveshare_e2e.ui_testing.framework.artifacts import artifact_dir, capture_screenshot
from liveshare_e2e.ui_testing.framework.auth_flow import AuthenticationController
from liveshare_e2e.ui_testing.framework.browser_manager import BrowserManager
from liveshare_e2e.ui_testing.framework.global_setup import run_global_setup, upload_image_paths
from liveshare_e2e.ui_testing.pages.event_creation_page import EventCreationPage
from liveshare_e2e.ui_testing.pages.event_detail_page import EventDetailPage
from liveshare_e2e.ui_testing.pages.event_list_page import EventListPage
from liveshare_e2e.ui_testing.pages.event_settings_page import EventSettingsPage
from liveshare_e2e.ui_testing.pages.image_detail_page import ImageDetailPage
from liveshare_e2e.ui_testing.pages.join_event_page import JoinEventPage
from liveshare_e2e.ui_testing.pages.login_page import LoginPage
from liveshare_e2e.ui_testing.pages.register_page import RegisterPage
from liveshare_e2e.ui_testing.pages.snapquest_page import SnapQuestPage
from liveshare_e2e.ui_testing.pages.subscription_page import SubscriptionPage
from liveshare_tools.common import get_credentials
from liveshare_tools.data_generator.data_factory import LiveShareDataFactory
from liveshare_tools.mail_tools import MailosaurClient


# ================================================================================
# Global Setup
# ================================================================================

@pytest.fixture(scope="session", autouse=True)
def global_setup(request) -> Generator[None, None, None]:
    """
    Directories, placeholder assets and a stored login, once per run.

    xdist workers serialize on a lock file; the first one logs in, the
    others find a fresh session and skip authentication.
    """
    lock = FileLock(str(artifact_dir("auth") / "global-setup.lock"))
    with lock:
        asyncio.run(run_global_setup(authenticate=not request.config.getoption("--no-auth-setup")))
    yield


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture
async def browser_manager() -> AsyncGenerator[BrowserManager, None]:
    """
    Browser manager with the stored session restored into new contexts.
    """
    async with BrowserManager(restore_auth=True) as manager:
        yield manager


@pytest.fixture
async def page(request, browser_manager: BrowserManager) -> AsyncGenerator[Page, None]:
    """
    Page in a fresh context carrying the stored session.

    A screenshot is saved and attached when the test body failed.
    """
    page = await browser_manager.new_page()
    yield page

    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        await capture_screenshot(page, f"failure-{request.node.name}", timestamped=True)
        allure.attach(page.url, name="Current URL", attachment_type=allure.attachment_type.TEXT)


@pytest.fixture
async def guest_page(browser_manager: BrowserManager) -> Page:
    """Page in a context without any stored session."""
    return await browser_manager.new_page(storage_state=None)


@pytest.fixture
async def authenticated_page(page: Page, browser_manager: BrowserManager) -> Page:
    """
    Page with a logged-in session.

    The restored session normally short-circuits the controller; otherwise
    it logs in and refreshes the stored session.
    """
    login_page = LoginPage(page)
    await login_page.navigate(wait_for="domcontentloaded")

    controller = AuthenticationController(
        login_page,
        credentials=get_credentials("google"),
        session_store=browser_manager.session_store,
        session_key=browser_manager.session_key,
    )
    await controller.authenticate_or_raise()
    return page


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def login_page(page: Page) -> LoginPage:
    """
    Provides LoginPage instance.

    Use this fixture for tests that drive the sign-in flow themselves.
    """
    return LoginPage(page)


@pytest.fixture
def event_list_page(authenticated_page: Page) -> EventListPage:
    return EventListPage(authenticated_page)


@pytest.fixture
def event_detail_page(authenticated_page: Page) -> EventDetailPage:
    return EventDetailPage(authenticated_page)


@pytest.fixture
def event_creation_page(authenticated_page: Page) -> EventCreationPage:
    return EventCreationPage(authenticated_page)


@pytest.fixture
def event_settings_page(authenticated_page: Page) -> EventSettingsPage:
    return EventSettingsPage(authenticated_page)


@pytest.fixture
def image_detail_page(authenticated_page: Page) -> ImageDetailPage:
    return ImageDetailPage(authenticated_page)


@pytest.fixture
def subscription_page(authenticated_page: Page) -> SubscriptionPage:
    return SubscriptionPage(authenticated_page)


@pytest.fixture
async def opened_event(event_list_page: EventListPage) -> Page:
    """
    Authenticated page showing the first event of My Events.

    Skips when the account owns no event.
    """
    assert await event_list_page.go_to_events_page(), "Events page did not load"
    if not await event_list_page.wait_for_events_to_load():
        pytest.skip("Account has no events")
    assert await event_list_page.click_event_by_index(0), "Could not open the first event"
    return event_list_page.page


@pytest.fixture
def join_event_page(guest_page: Page) -> JoinEventPage:
    """
    Provides JoinEventPage on an anonymous page.

    Joining by code is what guests do, so no stored session is loaded.
    """
    return JoinEventPage(guest_page)


@pytest.fixture
def register_page(guest_page: Page) -> RegisterPage:
    return RegisterPage(guest_page)


@pytest.fixture
def snapquest_page(authenticated_page: Page) -> SnapQuestPage:
    """
    Provides SnapQuestPage on a logged-in page.

    Joined Events only lists events for a signed-in account.
    """
    return SnapQuestPage(authenticated_page)


@pytest.fixture
async def joined_event(snapquest_page: SnapQuestPage) -> SnapQuestPage:
    """SnapQuestPage showing the first joined event; skips when there is none."""
    if not await snapquest_page.select_first_joined_event():
        pytest.skip("Account has not joined any event")
    return snapquest_page


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Keep each phase report on the item.

    The ``page`` fixture reads ``rep_call`` during teardown to decide on the
    failure screenshot.
    """
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


# ================================================================================
# Utility Fixtures
# ================================================================================

@pytest.fixture
def data_factory() -> LiveShareDataFactory:
    return LiveShareDataFactory()


@pytest.fixture
def upload_images() -> List[Path]:
    """Placeholder (or real) upload images written by the global setup."""
    images = upload_image_paths()
    if not images:
        pytest.skip("No upload images in test-assets/upload-images")
    return images


@pytest.fixture
def event_code() -> str:
    """
    Code of an existing event to join.

    Set LIVESHARE_EVENT_CODE for the target environment.
    """
    code = os.getenv("LIVESHARE_EVENT_CODE", "")
    if not code:
        pytest.skip("LIVESHARE_EVENT_CODE not set")
    return code


@pytest.fixture
def mailosaur() -> Generator[MailosaurClient, None, None]:
    """Mailosaur inbox, or skip when MAILOSAUR_API_KEY / MAILOSAUR_SERVER_ID are missing."""
    client = MailosaurClient.from_env()
    if client is None:
        pytest.skip("Mailosaur environment variables not set")
    with client:
        yield client
    logger.debug("📧 Mailosaur client closed")
