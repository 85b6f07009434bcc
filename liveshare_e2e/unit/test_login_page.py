import allure
import pytest

from liveshare_e2e.ui_testing.pages.login_page import (
    ACCOUNT_EMAIL,
    ACCOUNT_ITEMS,
    RESET_STORAGE,
    LoginPage,
)

from fake_browser import FakeElement, FakePage


def add_accounts(popup: FakePage, emails):
    items = popup.add(ACCOUNT_ITEMS, *[FakeElement() for _ in emails])
    for index, email in enumerate(emails):
        popup.add(f"{ACCOUNT_ITEMS}#{index} >> {ACCOUNT_EMAIL}", FakeElement(text=f" {email} "))
    return items


@allure.feature("Authentication")
@allure.story("Account chooser")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_chooser_selects_target_account_at_any_position(page: FakePage):
    popup = FakePage(url="https://accounts.google.com/")
    items = add_accounts(popup, ["first@example.com", "other@example.com", "qa@example.com"])

    chosen = await LoginPage(page).choose_account(popup, "qa@example.com")

    assert chosen == "qa@example.com"
    assert [item.clicks for item in items] == [0, 0, 1]


@allure.feature("Authentication")
@allure.story("Account chooser")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_chooser_falls_back_to_first_account(page: FakePage):
    popup = FakePage(url="https://accounts.google.com/")
    items = add_accounts(popup, ["first@example.com", "other@example.com"])

    chosen = await LoginPage(page).choose_account(popup, "qa@example.com")

    assert chosen == "first@example.com"
    assert items[0].clicks == 1


@allure.feature("Authentication")
@allure.story("Account chooser")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_chooser_returns_none(page: FakePage):
    popup = FakePage(url="https://accounts.google.com/")

    assert await LoginPage(page).choose_account(popup, "qa@example.com") is None


@allure.feature("Authentication")
@allure.story("Session check")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_access_token_means_logged_in(page: FakePage):
    page.scripts["ACCESSTOKEN"] = True

    assert await LoginPage(page).check_if_already_logged_in()
    # localStorage answered, so no element was queried
    assert not any(call[0] == "wait_for" for call in page.calls)


@allure.feature("Authentication")
@allure.story("Session check")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_profile_indicator_counts_only_without_sign_in_button(page: FakePage):
    page.add("div.profile-image")
    login_page = LoginPage(page)
    assert await login_page.check_if_already_logged_in()

    page.add('button:has-text("Sign In")')
    assert not await login_page.check_if_already_logged_in()


@allure.feature("Authentication")
@allure.story("Session check")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_nothing_visible_means_logged_out(page: FakePage):
    assert not await LoginPage(page).check_if_already_logged_in()


@allure.feature("Authentication")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_reset_page_state_clears_onboarding_flags(page: FakePage):
    login_page = LoginPage(page, base_url="https://staging.livesharenow.com")

    await login_page.reset_page_state()

    assert page.visited == ["https://staging.livesharenow.com/"]
    assert ("evaluate", RESET_STORAGE) in page.calls


@allure.feature("Authentication")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_popup_skips_closed_pages(page: FakePage):
    popup = FakePage()
    popup.closed = True

    await LoginPage(page).close_popup(popup)
    await LoginPage(page).close_popup(None)

    assert popup.screenshots == []
