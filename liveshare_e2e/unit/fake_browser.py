"""
================================================================================
In-memory stand-ins for the Playwright async objects used by the UI layer
================================================================================

Only the calls made by the framework and page objects are modelled. Elements
are registered under a locator key; the key of a locator is derived from how
it was built, so tests can register against the same expression the page
object uses:

    page = FakePage()
    page.add('button:has-text("Join")', FakeElement())
    page.add(settings.option("Force Login"), FakeElement(attrs={"class": "options"}))

Time is virtual: visibility timeouts and ``wait_for_timeout`` advance
``page.clock_ms`` instead of sleeping.

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class FakeElement:
    """One DOM element as seen through a locator."""

    def __init__(
        self,
        visible: bool = True,
        text: str = "",
        attrs: Optional[Dict[str, str]] = None,
        on_click: Optional[Callable[["FakeElement"], None]] = None,
        click_error: Optional[str] = None,
        disabled: bool = False,
    ):
        self.visible = visible
        self.text = text
        self.attrs = dict(attrs or {})
        self.on_click = on_click
        self.click_error = click_error
        self.disabled = disabled
        self.clicks = 0
        self.click_options: List[Dict[str, Any]] = []
        self.value = ""
        self.cleared = 0
        self.files: List[str] = []
        self.selected: List[str] = []
        self.pressed: List[str] = []


def toggle_class(name: str) -> Callable[[FakeElement], None]:
    """Click side effect that flips ``name`` in the element's class list."""

    def _toggle(element: FakeElement) -> None:
        classes = (element.attrs.get("class") or "").split()
        if name in classes:
            classes.remove(name)
        else:
            classes.append(name)
        element.attrs["class"] = " ".join(classes)

    return _toggle


class FakeLocator:
    def __init__(self, page: "FakePage", key: str, index: Optional[int] = None):
        self._page = page
        self.key = key
        self.index = index

    def __repr__(self) -> str:
        return f"<FakeLocator {self.key}#{self.index}>"

    # --- building ---------------------------------------------------------

    def _child_key(self, suffix: str) -> str:
        base = self.key if self.index is None else f"{self.key}#{self.index}"
        return f"{base} >> {suffix}"

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self._page, self.key, 0)

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self._page, self.key, index)

    def locator(self, selector: str, has_text: Optional[str] = None) -> "FakeLocator":
        key = selector if has_text is None else f"{selector} |text={has_text}"
        return FakeLocator(self._page, self._child_key(key))

    def filter(self, has_text: Any = None, has: Optional["FakeLocator"] = None) -> "FakeLocator":
        key = self.key
        if has_text is not None:
            key = f"{key} |text={has_text}"
        if has is not None:
            key = f"{key} |has={has.key}"
        return FakeLocator(self._page, key)

    def get_by_role(self, role: str, name: Optional[str] = None, exact: bool = False) -> "FakeLocator":
        return FakeLocator(self._page, self._child_key(role_key(role, name)))

    def get_by_text(self, text: str, exact: bool = False) -> "FakeLocator":
        return FakeLocator(self._page, self._child_key(f"text={text}"))

    # --- state ------------------------------------------------------------

    def _elements(self) -> List[FakeElement]:
        return self._page.elements.get(self.key, [])

    def _element(self) -> Optional[FakeElement]:
        elements = self._elements()
        index = self.index or 0
        return elements[index] if index < len(elements) else None

    def _require(self, timeout: Optional[float] = None) -> FakeElement:
        element = self._element()
        if element is None:
            self._page.advance(timeout or 0)
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.key}")
        return element

    async def count(self) -> int:
        self._page.calls.append(("count", self.key))
        return len(self._elements())

    async def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        self._page.calls.append(("wait_for", self.key))
        element = self._element()
        if element is None or (state == "visible" and not element.visible):
            self._page.advance(timeout or 0)
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.key}")

    async def is_visible(self) -> bool:
        element = self._element()
        return bool(element and element.visible)

    async def is_disabled(self) -> bool:
        return self._require().disabled

    async def is_checked(self) -> bool:
        return self._require().attrs.get("checked") == "true"

    async def text_content(self, timeout: Optional[float] = None) -> Optional[str]:
        return self._require(timeout).text

    async def get_attribute(self, name: str, timeout: Optional[float] = None) -> Optional[str]:
        return self._require(timeout).attrs.get(name)

    # --- actions ----------------------------------------------------------

    async def scroll_into_view_if_needed(self, timeout: Optional[float] = None) -> None:
        self._require(timeout)

    async def click(self, **options: Any) -> None:
        element = self._require(options.get("timeout"))
        if element.click_error:
            raise PlaywrightError(element.click_error)
        element.clicks += 1
        element.click_options.append(options)
        self._page.calls.append(("click", self.key))
        if element.on_click:
            element.on_click(element)

    async def clear(self) -> None:
        element = self._require()
        element.value = ""
        element.cleared += 1

    async def fill(self, value: str) -> None:
        self._require().value = value

    async def press(self, key: str) -> None:
        self._require().pressed.append(key)

    async def set_input_files(self, files: List[str]) -> None:
        self._require().files = list(files)

    async def select_option(self, value: Optional[str] = None, label: Optional[str] = None) -> List[str]:
        element = self._require()
        element.selected.append(label or value or "")
        return element.selected


def role_key(role: str, name: Optional[str] = None) -> str:
    """Locator key produced by ``get_by_role``."""
    return f"role={role}[name={name!r}]" if name else f"role={role}"


class FakeKeyboard:
    def __init__(self):
        self.pressed: List[str] = []

    async def press(self, key: str) -> None:
        self.pressed.append(key)


class FakeDownload:
    def __init__(self, suggested_filename: str = "photos.zip"):
        self.suggested_filename = suggested_filename


class FakeEventInfo:
    def __init__(self, event: str):
        self._event = event
        self._result: Any = None

    @property
    def value(self):
        return self._value()

    async def _value(self) -> Any:
        if self._result is None:
            raise PlaywrightTimeoutError(f"Timeout exceeded while waiting for event \"{self._event}\"")
        return self._result


class FakeExpectEvent:
    """``async with page.expect_<event>() as info`` over a queue of pending results."""

    def __init__(self, pending: List[Any], event: str):
        self._pending = pending
        self._info = FakeEventInfo(event)

    async def __aenter__(self) -> FakeEventInfo:
        return self._info

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            return
        if not self._pending:
            raise PlaywrightTimeoutError(f"Timeout exceeded while waiting for event \"{self._info._event}\"")
        self._info._result = self._pending.pop(0)


class FakeContext:
    def __init__(self, state: Optional[Dict[str, Any]] = None):
        self.state = state if state is not None else {"cookies": [], "origins": []}
        self.pending_pages: List["FakePage"] = []
        self.storage_state_error: Optional[str] = None

    def expect_page(self, timeout: Optional[float] = None) -> FakeExpectEvent:
        return FakeExpectEvent(self.pending_pages, "page")

    async def storage_state(self) -> Dict[str, Any]:
        if self.storage_state_error:
            raise PlaywrightError(self.storage_state_error)
        return self.state


class FakePage:
    """
    Page double with a registry of elements and a virtual clock.

    ``scripts`` maps a substring of an evaluated script to its result (or to
    a callable receiving the script argument).
    """

    def __init__(self, url: str = "https://app.livesharenow.com/", context: Optional[FakeContext] = None):
        self.url = url
        self.context = context or FakeContext()
        self.elements: Dict[str, List[FakeElement]] = {}
        self.scripts: Dict[str, Any] = {}
        self.keyboard = FakeKeyboard()
        self.clock_ms = 0.0
        self.waits: List[float] = []
        self.visited: List[str] = []
        self.screenshots: List[Path] = []
        self.calls: List[tuple] = []
        self.handlers: Dict[str, List[Callable]] = {}
        self.closed = False
        self.goto_error: Optional[str] = None
        self.on_goto: Optional[Callable[[str], None]] = None
        self.pending_downloads: List[FakeDownload] = []

    # --- registry ---------------------------------------------------------

    def add(self, target: Union[str, FakeLocator], *elements: FakeElement) -> List[FakeElement]:
        key = target.key if isinstance(target, FakeLocator) else target
        elements = elements or (FakeElement(),)
        self.elements.setdefault(key, []).extend(elements)
        return list(elements)

    def remove(self, target: Union[str, FakeLocator]) -> None:
        key = target.key if isinstance(target, FakeLocator) else target
        self.elements.pop(key, None)

    def advance(self, ms: float) -> None:
        self.clock_ms += ms

    # --- locators ---------------------------------------------------------

    def locator(self, selector: str, has_text: Optional[str] = None) -> FakeLocator:
        key = selector if has_text is None else f"{selector} |text={has_text}"
        return FakeLocator(self, key)

    def get_by_role(self, role: str, name: Optional[str] = None, exact: bool = False) -> FakeLocator:
        return FakeLocator(self, role_key(role, name))

    def get_by_text(self, text: str, exact: bool = False) -> FakeLocator:
        return FakeLocator(self, f"text={text}")

    # --- page API ---------------------------------------------------------

    def expect_download(self, timeout: Optional[float] = None) -> FakeExpectEvent:
        return FakeExpectEvent(self.pending_downloads, "download")

    def on(self, event: str, handler: Callable) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", script))
        for fragment, result in self.scripts.items():
            if fragment in script:
                return result(arg) if callable(result) else result
        return None

    async def wait_for_timeout(self, ms: float) -> None:
        self.waits.append(ms)
        self.advance(ms)

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        self.calls.append(("load_state", state))

    async def wait_for_function(self, script: str, timeout: Optional[float] = None) -> None:
        self.calls.append(("wait_for_function", script))

    async def wait_for_url(self, pattern: str, timeout: Optional[float] = None) -> None:
        if pattern not in self.url:
            self.advance(timeout or 0)
            raise PlaywrightTimeoutError(f"Timeout waiting for URL {pattern}")

    async def goto(self, url: str, wait_until: Optional[str] = None, **options: Any) -> None:
        if self.goto_error:
            raise PlaywrightError(self.goto_error)
        self.visited.append(url)
        self.url = url
        if self.on_goto:
            self.on_goto(url)

    async def screenshot(self, path: Optional[str] = None, full_page: bool = False) -> bytes:
        data = b"\x89PNG fake"
        if path:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            Path(path).write_bytes(data)
            self.screenshots.append(Path(path))
        return data

    def screenshot_names(self) -> List[str]:
        return [p.stem for p in self.screenshots]


__all__ = [
    "FakeContext",
    "FakeDownload",
    "FakeElement",
    "FakeLocator",
    "FakePage",
    "role_key",
    "toggle_class",
]
