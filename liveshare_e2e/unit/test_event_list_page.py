import allure
import pytest

from liveshare_e2e.ui_testing.framework.smart_locator import ClickStrategy, SmartLocator
from liveshare_e2e.ui_testing.pages.event_list_page import (
    CARD_DATE,
    CARD_NAME,
    EVENT_CARDS,
    EventListPage,
)

from fake_browser import FakeElement, FakePage, role_key


AVATAR_CANDIDATES = SmartLocator.LOCATORS["avatar_icon"]


@allure.feature("Event List")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_avatar_click_uses_candidate_list_first(page: FakePage):
    avatar = page.add(AVATAR_CANDIDATES[2])[0]

    result = await EventListPage(page).click_avatar_icon()

    assert result.strategy is ClickStrategy.LOCATOR
    assert avatar.clicks == 1
    assert not result.weak


@allure.feature("Event List")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_avatar_click_escalates_to_script(page: FakePage):
    page.scripts["dispatchEvent"] = "div.avatar"

    result = await EventListPage(page).click_avatar_icon()

    assert result.strategy is ClickStrategy.SCRIPT
    assert result.detail == "div.avatar"
    assert page.visited == []


@allure.feature("Event List")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_avatar_navigation_fallback_is_verified_by_url(page: FakePage):
    result = await EventListPage(page).click_avatar_icon()

    assert result.strategy is ClickStrategy.NAVIGATION
    assert result.weak and result.verified
    assert page.visited[-1].endswith("/profile")


@allure.feature("Event List")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_avatar_navigation_to_wrong_route_fails(page: FakePage):
    def bounce(url):
        page.url = "https://app.livesharenow.com/events"

    page.on_goto = bounce

    result = await EventListPage(page).click_avatar_icon()

    assert result.strategy is ClickStrategy.NONE
    assert not result


@allure.feature("Event List")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_account_menu_items_fall_back_to_menuitem_role(page: FakePage):
    page.add(role_key("menuitem", "My Account"))
    page.add(role_key("menuitem", "Logout"))

    items = await EventListPage(page).visible_account_menu_items(timeout=100)

    assert items == ["My Account", "Logout"]


@allure.feature("Event List")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_profile_route_counts_as_account_menu(page: FakePage):
    page.url = "https://app.livesharenow.com/profile"

    assert await EventListPage(page).verify_any_account_menu_item_visible()


@allure.feature("Event List")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_event_card_info_tolerates_missing_fields(page: FakePage):
    page.add(f"{EVENT_CARDS}#0 >> {CARD_DATE}", FakeElement(text=" 12/24/2025 "))
    page.add(f"{EVENT_CARDS}#0 >> {CARD_NAME}", FakeElement(text="Auto Test Event"))

    info = await EventListPage(page).get_event_info(0)

    assert info["date"] == "12/24/2025"
    assert info["name"] == "Auto Test Event"
    assert info["host_name"] == ""
    assert info["has_premium_plus"] is False
