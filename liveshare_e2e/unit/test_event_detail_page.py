import allure
import pytest

from liveshare_e2e.ui_testing.pages.event_detail_page import (
    CHAT_BOX,
    IMAGE_WRAPPERS,
    LIVE_VIEW_INDICATORS,
    MENU_ITEMS,
    MENU_PANEL,
    MORE_OPTIONS_BUTTON,
    PLUS_FEATURES,
    REDEEM_CODE_INPUT,
    REDEEM_DIALOG,
    REDEEM_SUBMIT_BUTTON,
    SUMMARY_ACTIONS,
    SUMMARY_CLOSE_BUTTON,
    SUMMARY_DIALOG,
    EventDetailPage,
    is_support_url,
    menu_item,
    parse_style_width,
)

from fake_browser import FakeDownload, FakeElement, FakePage


def add_more_options(page: FakePage, name: str, on_click=None) -> FakeElement:
    """More options button, its open menu panel and one item of it."""
    page.add(MORE_OPTIONS_BUTTON)
    page.add(MENU_PANEL)
    return page.add(menu_item(MENU_ITEMS[name]), FakeElement(on_click=on_click))[0]


@pytest.mark.unit
@pytest.mark.parametrize(
    "style, expected",
    [
        ("width: 214.5px; height: 214.5px;", 214.5),
        ("height: 100px;width:320px", 320.0),
        ("height: 100px", None),
        (None, None),
    ],
)
def test_parse_style_width(style, expected):
    assert parse_style_width(style) == expected


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_image_widths_skip_wrappers_without_width(page: FakePage):
    page.add(
        IMAGE_WRAPPERS,
        FakeElement(attrs={"style": "width: 150px;"}),
        FakeElement(attrs={}),
        FakeElement(attrs={"style": "width: 152.25px;"}),
    )

    assert await EventDetailPage(page).image_wrapper_widths() == [150.0, 152.25]


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_unknown_grid_view_is_rejected(page: FakePage):
    with pytest.raises(ValueError):
        await EventDetailPage(page).select_grid_view("4x4")


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_plus_menu_reports_each_feature(page: FakePage):
    page.add(PLUS_FEATURES["photos"])
    page.add(PLUS_FEATURES["message"])

    features = await EventDetailPage(page).verify_all_plus_icon_features()

    assert set(features) == set(PLUS_FEATURES)
    assert {name for name, shown in features.items() if shown} == {"photos", "message"}


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_menu_panel_items(page: FakePage):
    page.add(MENU_PANEL)
    page.add(menu_item(MENU_ITEMS["details"]))
    page.add(menu_item(MENU_ITEMS["logout"]))

    items = await EventDetailPage(page).verify_menu_panel_ui()

    assert items["details"] and items["logout"]
    assert not items["faqs"]


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_menu_panel_missing_marks_every_item_absent(page: FakePage):
    items = await EventDetailPage(page).verify_menu_panel_ui()

    assert set(items) == set(MENU_ITEMS)
    assert not any(items.values())


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_event_details_rows_default_to_dashes(page: FakePage):
    page.add(f'{SUMMARY_DIALOG} table tr:has-text("Plan") td', FakeElement(text=" PremiumPlus "))
    page.add(f'{SUMMARY_DIALOG} table tr:has-text("Number of Posts") td', FakeElement(text=""))

    details = await EventDetailPage(page).get_event_details_info()

    assert details["plan"] == "PremiumPlus"
    assert details["number_of_posts"] == "---"
    assert details["event_date"] == "---"


@pytest.mark.unit
@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://support.livesharenow.com/en/", True),
        ("https://livesharenow.com/FAQ", True),
        ("https://app.livesharenow.com/events", False),
        ("", False),
    ],
)
def test_is_support_url(url, expected):
    assert is_support_url(url) is expected


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_event_details_dialog_is_read_and_closed(page: FakePage):
    add_more_options(page, "details")
    page.add(SUMMARY_DIALOG)
    page.add(f'{SUMMARY_DIALOG} table tr:has-text("Plan") td', FakeElement(text="Premium"))
    page.add(SUMMARY_ACTIONS["upgrade"])
    page.add(SUMMARY_CLOSE_BUTTON, FakeElement(on_click=lambda _: page.remove(SUMMARY_DIALOG)))

    info = await EventDetailPage(page).verify_event_details_dialog()

    assert info["opened"] and info["closed"]
    assert info["fields"]["plan"] == "Premium"
    assert info["fields"]["event_date"] == "---"
    assert info["actions"] == {"upgrade": True, "view_guests": False, "extend": False}


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_event_details_dialog_that_never_opens(page: FakePage):
    add_more_options(page, "details")

    assert await EventDetailPage(page).verify_event_details_dialog() == {"opened": False}


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_view_keepsakes_reports_navigation(page: FakePage):
    def go_to_keepsakes(_):
        page.url = "https://app.livesharenow.com/keepsakes/EJBHAQ"

    add_more_options(page, "view_keepsakes", on_click=go_to_keepsakes)

    result = await EventDetailPage(page).view_keepsakes()

    assert result["clicked"] and result["navigated"]
    assert result["url"].endswith("/keepsakes/EJBHAQ")


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_download_all_photos_returns_file_name(page: FakePage):
    add_more_options(
        page,
        "download_all_photos",
        on_click=lambda _: page.pending_downloads.append(FakeDownload("event-photos.zip")),
    )

    assert await EventDetailPage(page).download_all_photos() == "event-photos.zip"


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_download_that_never_starts_is_none(page: FakePage):
    item = add_more_options(page, "download_all_photos")

    assert await EventDetailPage(page).download_all_photos() is None
    assert item.clicks == 1


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_live_view_switching_this_tab(page: FakePage):
    add_more_options(page, "live_view", on_click=lambda _: page.add(LIVE_VIEW_INDICATORS[1]))

    result = await EventDetailPage(page).open_live_view()

    assert result == {"opened": True, "new_tab": False, "url": page.url}


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_live_view_that_does_nothing(page: FakePage):
    add_more_options(page, "live_view")

    result = await EventDetailPage(page).open_live_view()

    assert not result["opened"]


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_redeem_gift_code_dialog(page: FakePage):
    add_more_options(page, "redeem_gift_code")
    page.add(REDEEM_DIALOG)
    code_input = page.add(REDEEM_CODE_INPUT)[0]
    page.add(REDEEM_SUBMIT_BUTTON, FakeElement(on_click=lambda _: page.remove(REDEEM_DIALOG)))

    checks = await EventDetailPage(page).redeem_gift_code("TEST12345")

    assert checks == {"dialog": True, "filled": True, "submitted": True}
    assert code_input.value == "TEST12345"


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_redeem_gift_code_can_stop_before_submit(page: FakePage):
    add_more_options(page, "redeem_gift_code")
    page.add(REDEEM_DIALOG)
    page.add(REDEEM_CODE_INPUT)
    submit = page.add(REDEEM_SUBMIT_BUTTON)[0]
    page.add('button:has(mat-icon:text("close"))', FakeElement(on_click=lambda _: page.remove(REDEEM_DIALOG)))

    checks = await EventDetailPage(page).redeem_gift_code("TEST12345", submit=False)

    assert checks == {"dialog": True, "filled": True, "submitted": False}
    assert submit.clicks == 0


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_live_help_opens_chat(page: FakePage):
    add_more_options(page, "live_help")
    page.add(CHAT_BOX)

    checks = await EventDetailPage(page).open_live_help()

    assert checks == {"clicked": True, "chat_box": True, "chat_input": False}


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_faqs_tab_url_is_returned_and_tab_closed(page: FakePage):
    faq = FakePage(url="https://support.livesharenow.com/en/collections/faq")
    add_more_options(page, "faqs", on_click=lambda _: page.context.pending_pages.append(faq))

    url = await EventDetailPage(page).open_faqs()

    assert url == faq.url
    assert faq.closed


@allure.feature("Event Detail")
@pytest.mark.unit
@pytest.mark.event
@pytest.mark.asyncio
async def test_faqs_without_new_tab(page: FakePage):
    add_more_options(page, "faqs")

    assert await EventDetailPage(page).open_faqs() is None
