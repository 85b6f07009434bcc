import allure
import pytest

from liveshare_e2e.ui_testing.framework.artifacts import sanitize_name
from liveshare_e2e.ui_testing.framework.element_actions import ElementActions
from liveshare_e2e.ui_testing.framework.results import Outcome
from liveshare_e2e.ui_testing.framework.retry_policy import BackoffPolicy
from liveshare_e2e.ui_testing.framework.smart_locator import css

from fake_browser import FakeElement, FakePage, toggle_class


SAVE = 'button:has-text("Save")'


def make_actions(page: FakePage, **kwargs) -> ElementActions:
    policy = kwargs.pop("retry_policy", BackoffPolicy.fixed(1000, max_retries=3))
    return ElementActions(page, retry_policy=policy, visibility_timeout=5000, settle_ms=500, **kwargs)


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_safe_click_on_missing_element_uses_exactly_r_attempts(page: FakePage, artifact_dirs):
    actions = make_actions(page)

    result = await actions.safe_click(SAVE, retries=4)

    assert not result
    assert result.outcome is Outcome.NOT_FOUND
    assert result.attempts == 4
    assert page.calls.count(("wait_for", SAVE)) == 4
    # fixed 1000 ms pause between attempts, none after the last
    assert page.waits == [1000, 1000, 1000]


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_exhausted_click_writes_screenshot_named_after_selector(page: FakePage, artifact_dirs):
    actions = make_actions(page)

    result = await actions.safe_click(SAVE, retries=2)

    expected = f"click-failure-{sanitize_name(SAVE)}"
    assert result.screenshot is not None
    assert result.screenshot.stem == expected
    assert result.screenshot.parent == artifact_dirs["screenshots"]
    assert result.screenshot.exists()


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_no_screenshot_when_page_is_closed(page: FakePage):
    page.closed = True

    result = await make_actions(page).safe_click(SAVE, retries=1)

    assert not result
    assert result.screenshot is None


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_hidden_element_reports_not_actionable(page: FakePage):
    page.add(SAVE, FakeElement(visible=False))

    result = await make_actions(page).safe_click(SAVE, retries=2)

    assert result.outcome is Outcome.NOT_ACTIONABLE
    assert page.elements[SAVE][0].clicks == 0


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_safe_click_scrolls_settles_and_forces(page: FakePage):
    button = page.add(SAVE)[0]

    result = await make_actions(page).safe_click(SAVE)

    assert result.ok
    assert result.attempts == 1
    assert button.click_options == [{"force": True}]
    assert page.waits == [500]


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_click_succeeds_once_element_appears(page: FakePage):
    actions = make_actions(page)
    appeared = []

    async def appear_after_first_pause(ms):
        page.waits.append(ms)
        if not appeared:
            appeared.extend(page.add(SAVE))

    page.wait_for_timeout = appear_after_first_pause

    result = await actions.safe_click(SAVE, retries=3)

    assert result.ok
    assert result.attempts == 2
    assert appeared[0].clicks == 1


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_click_error_becomes_result_not_exception(page: FakePage):
    page.add(SAVE, FakeElement(click_error="Element is detached from the DOM"))

    result = await make_actions(page).safe_click(SAVE, retries=2)

    assert result.outcome is Outcome.NOT_ACTIONABLE
    assert "detached" in result.error


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_safe_fill_clears_before_filling(page: FakePage):
    field = page.add('input[type="text"]', FakeElement())[0]
    field.value = "old value"

    result = await make_actions(page).safe_fill('input[type="text"]', "new value")

    assert result.ok
    assert field.cleared == 1
    assert field.value == "new value"


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_locator_spec_targets_are_built_on_the_page(page: FakePage):
    field = page.add("#name")[0]

    result = await make_actions(page).safe_fill(css("#name"), "Event")

    assert result.ok
    assert field.value == "Event"


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_click_and_detect_change(page: FakePage):
    toggle = page.add("#pin", FakeElement(attrs={"class": "btn"}, on_click=toggle_class("active")))[0]

    result = await make_actions(page).click_and_detect_change("#pin", settle_ms=2000)

    assert result.found and result.changed
    assert result.before == "btn"
    assert result.after == "btn active"
    assert toggle.clicks == 1
    assert 2000 in page.waits


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_click_and_detect_change_on_missing_element(page: FakePage):
    result = await make_actions(page).click_and_detect_change("#pin", timeout=100)

    assert not result.found
    assert not result.changed


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_of_missing_file_never_touches_the_page(page: FakePage, tmp_path):
    file_input = page.add('input[type="file"]', FakeElement(visible=False))[0]

    result = await make_actions(page).upload_files('input[type="file"]', tmp_path / "nope.png")

    assert result.outcome is Outcome.ERROR
    assert "nope.png" in result.error
    assert file_input.files == []


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_to_hidden_file_input(page: FakePage, tmp_path):
    photo = tmp_path / "photo.png"
    photo.write_bytes(b"png")
    file_input = page.add('input[type="file"]', FakeElement(visible=False))[0]

    result = await make_actions(page).upload_files('input[type="file"]', [photo])

    assert result.ok
    assert file_input.files == [str(photo)]


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
async def test_default_budget_comes_from_the_policy(page: FakePage, artifact_dirs):
    result = await make_actions(page).safe_fill("#name", "x")

    assert result.attempts == 3


@allure.feature("Element Actions")
@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("retries", [0, -1])
async def test_empty_attempt_budget_is_rejected(page: FakePage, retries):
    page.add(SAVE)
    actions = make_actions(page)

    with pytest.raises(ValueError):
        await actions.safe_click(SAVE, retries=retries)
    with pytest.raises(ValueError):
        await actions.safe_fill(SAVE, "x", retries=retries)

    assert page.calls == []
