"""
================================================================================
Event Detail UI Tests (Async / Playwright)
================================================================================

Inside an owned event: header, top bar, plus menu, more-options menu and the
gallery grid views.

================================================================================
"""

import allure
import pytest

from liveshare_e2e.ui_testing.pages.event_detail_page import EventDetailPage


@allure.epic("UI Testing")
@allure.feature("Event Detail")
@pytest.mark.e2e
@pytest.mark.event
class TestEventDetail:
    """Event detail UI test suite (async)."""

    @allure.story("Page Load")
    @allure.title("Event detail shows header and navigation buttons")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P0
    @pytest.mark.smoke
    @pytest.mark.asyncio
    async def test_event_detail_loaded(self, opened_event):
        detail = EventDetailPage(opened_event)

        assert await detail.wait_for_event_detail_to_load()
        loaded = await detail.verify_event_detail_loaded()
        buttons = await detail.verify_navigation_buttons()

        assert loaded["name"] and loaded["top_nav"]
        assert buttons["back"] and buttons["settings"]

    @allure.story("Plus Menu")
    @allure.title("Plus menu offers compose features")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.regression
    @pytest.mark.asyncio
    async def test_plus_menu_features(self, opened_event):
        detail = EventDetailPage(opened_event)

        with allure.step("Open the plus menu"):
            assert await detail.open_plus_menu()

        with allure.step("Check features"):
            features = await detail.verify_all_plus_icon_features()
            assert any(features.values()), f"No compose feature visible: {features}"

    @allure.story("More Options")
    @allure.title("More options menu lists event actions")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.regression
    @pytest.mark.asyncio
    async def test_more_options_menu(self, opened_event):
        detail = EventDetailPage(opened_event)

        assert await detail.open_more_options_menu()
        items = await detail.verify_menu_panel_ui()

        assert items["details"], f"Menu items: {items}"

    @allure.story("Grid Views")
    @allure.title("Gallery switches between 2x2, 3x3 and timeline")
    @allure.severity(allure.severity_level.MINOR)
    @pytest.mark.P2
    @pytest.mark.asyncio
    async def test_grid_views(self, opened_event):
        detail = EventDetailPage(opened_event)
        if not await detail.image_wrapper_widths():
            pytest.skip("Event has no images to lay out")

        for kind in ("3x3", "2x2", "timeline"):
            with allure.step(f"Select {kind}"):
                assert await detail.select_grid_view(kind)
                allure.attach(
                    str(await detail.get_grid_layout_info()),
                    name=f"Layout {kind}",
                    attachment_type=allure.attachment_type.TEXT,
                )
