# ================================================================================
# Element Actions Module
# ================================================================================
#
# Resilient click / fill / upload primitives for a flaky, animating UI.
#
# Key Features:
#   - Visibility probe per attempt, hidden vs. missing reported separately
#   - Best-effort scroll-into-view and a short settle pause
#   - Forced clicks past transient overlays
#   - Bounded retries driven by a shared BackoffPolicy
#   - Diagnostic screenshot keyed by the sanitized selector on exhaustion
#   - Results instead of exceptions: callers always get an ActionResult
#
# Usage:
#   actions = ElementActions(page)
#   if not await actions.safe_click('button:has-text("Join")'):
#       ...
#
# ================================================================================

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Sequence, Tuple, Union

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .artifacts import capture_screenshot, sanitize_name
from .results import ActionResult, Outcome, StateChangeResult, worst_outcome
from .retry_policy import BackoffPolicy, get_retry_policy
from .smart_locator import LocatorSpec


ActionTarget = Union[str, LocatorSpec, Locator]


class ElementActions:
    """
    Retrying element interactions that degrade to results, never exceptions.

    Each ``safe_click`` attempt:
        1. waits for the target to be visible (``visibility_timeout``)
        2. if not visible: pauses ``policy.delay_ms(attempt)`` and retries
        3. scrolls it into view (errors ignored) and settles ``settle_ms``
        4. clicks with ``force=True``

    After ``retries`` failed attempts a screenshot named
    ``click-failure-<sanitized selector>`` is written and a falsy
    ActionResult is returned.

    Example:
        actions = ElementActions(page)
        result = await actions.safe_click("#save", description="Save button")
        assert result, result.outcome
    """

    DEFAULT_VISIBILITY_TIMEOUT = 5000
    DEFAULT_SETTLE_MS = 500

    def __init__(
        self,
        page: Page,
        retry_policy: Optional[BackoffPolicy] = None,
        visibility_timeout: int = DEFAULT_VISIBILITY_TIMEOUT,
        settle_ms: int = DEFAULT_SETTLE_MS,
        screenshot_dir: Optional[Path] = None,
    ):
        """
        Initialize ElementActions with a Playwright page.

        Args:
            page: Playwright Page object
            retry_policy: Delay between attempts (defaults to the "action" preset)
            visibility_timeout: Per-attempt visibility wait in milliseconds
            settle_ms: Pause between scrolling and clicking (200-500 ms works)
            screenshot_dir: Where failure screenshots go (defaults to config)
        """
        self.page = page
        self.retry_policy = retry_policy or get_retry_policy("action")
        self.visibility_timeout = visibility_timeout
        self.settle_ms = settle_ms
        self.screenshot_dir = screenshot_dir

    # =========================================================================
    # Primitives
    # =========================================================================

    async def safe_click(
        self,
        target: ActionTarget,
        retries: Optional[int] = None,
        description: str = "",
        **click_options: Any,
    ) -> ActionResult:
        """
        Click an element with visibility checks and bounded retries.

        Args:
            target: Selector, LocatorSpec or Locator
            retries: Attempt budget (defaults to the policy's max_retries)
            description: Name used in logs and the failure screenshot
            **click_options: Extra Playwright click options

        Returns:
            ActionResult; truthy only if the click went through

        Raises:
            ValueError: retries below 1
        """
        retries = self._attempt_budget(retries)
        locator = self._get_locator(target)
        description = description or self._describe(target)
        options = {"force": True, **click_options}

        with allure.step(f"Safe click: {description}"):
            return await self._run_with_retries(
                "click",
                locator,
                description,
                retries,
                lambda: locator.click(**options),
            )

    async def safe_fill(
        self,
        target: ActionTarget,
        value: str,
        retries: Optional[int] = None,
        description: str = "",
        secret: bool = False,
    ) -> ActionResult:
        """
        Clear and fill an input with the same retry contract as ``safe_click``.

        Args:
            target: Selector, LocatorSpec or Locator
            value: Text to enter
            retries: Attempt budget
            description: Name used in logs and the failure screenshot
            secret: Mask the value in logs and the report step
        """
        retries = self._attempt_budget(retries)
        locator = self._get_locator(target)
        description = description or self._describe(target)
        shown = "*" * len(value) if secret else value

        async def _fill() -> None:
            await locator.clear()
            await locator.fill(value)

        with allure.step(f"Safe fill: {description} = {shown}"):
            return await self._run_with_retries("fill", locator, description, retries, _fill)

    async def click_and_detect_change(
        self,
        target: ActionTarget,
        attribute: str = "class",
        settle_ms: int = 2000,
        timeout: int = DEFAULT_VISIBILITY_TIMEOUT,
        description: str = "",
    ) -> StateChangeResult:
        """
        Click a toggle-style control and report whether an attribute changed.

        Args:
            target: Selector, LocatorSpec or Locator
            attribute: Attribute compared before/after (class by default)
            settle_ms: Wait after the click before re-reading
            timeout: Visibility wait before the click
            description: Name used in logs

        Returns:
            StateChangeResult with found/changed
        """
        locator = self._get_locator(target)
        description = description or self._describe(target)

        with allure.step(f"Click and detect change: {description}"):
            outcome, _ = await self._wait_visible(locator, timeout)
            if outcome is not Outcome.OK:
                logger.warning(f"⚠️ '{description}' not visible ({outcome.value}); nothing clicked")
                return StateChangeResult(found=False, extra={"outcome": outcome.value})

            try:
                before = await locator.get_attribute(attribute)
                await locator.click()
                await self.page.wait_for_timeout(settle_ms)
                after = await locator.get_attribute(attribute)
            except PlaywrightError as e:
                logger.warning(f"⚠️ Click on '{description}' failed: {e}")
                return StateChangeResult(found=True, changed=False, extra={"error": str(e)[:200]})

            changed = before != after
            logger.info(f"{'✅' if changed else 'ℹ️'} '{description}' {attribute}: {before!r} -> {after!r}")
            return StateChangeResult(found=True, changed=changed, before=before, after=after)

    async def upload_files(
        self,
        target: ActionTarget,
        paths: Union[str, Path, Sequence[Union[str, Path]]],
        description: str = "",
    ) -> ActionResult:
        """
        Hand local files to a (possibly hidden) file input.

        Args:
            target: The ``input[type=file]`` element
            paths: One path or several
            description: Name used in logs
        """
        if isinstance(paths, (str, Path)):
            paths = [paths]
        files = [Path(p) for p in paths]
        description = description or self._describe(target)
        result = ActionResult(outcome=Outcome.OK, target=description, attempts=1)

        missing = [str(p) for p in files if not p.exists()]
        if missing:
            result.outcome = Outcome.ERROR
            result.error = f"Files not found: {', '.join(missing)}"
            logger.error(f"❌ {result.error}")
            return result

        locator = self._get_locator(target)
        with allure.step(f"Upload {len(files)} file(s) via {description}"):
            try:
                await locator.set_input_files([str(p) for p in files])
            except PlaywrightTimeoutError as e:
                result.outcome = Outcome.NOT_FOUND
                result.error = str(e)[:200]
            except PlaywrightError as e:
                result.outcome = Outcome.NOT_ACTIONABLE
                result.error = str(e)[:200]

        if result:
            logger.info(f"✅ Uploaded {[p.name for p in files]} via {description}")
        else:
            logger.error(f"❌ Upload via {description} failed: {result.error}")
        return result

    async def is_visible(self, target: ActionTarget, timeout: int = 2000) -> bool:
        """True if the element becomes visible within the timeout."""
        outcome, _ = await self._wait_visible(self._get_locator(target), timeout)
        return outcome is Outcome.OK

    # =========================================================================
    # Internals
    # =========================================================================

    def _attempt_budget(self, retries: Optional[int]) -> int:
        if retries is None:
            return self.retry_policy.max_retries
        if retries < 1:
            raise ValueError(f"retries must be >= 1, got {retries}")
        return retries

    async def _run_with_retries(self, kind, locator, description, retries, action) -> ActionResult:
        result = ActionResult(outcome=Outcome.NOT_FOUND, target=description)
        outcomes = []

        for attempt in range(1, retries + 1):
            result.attempts = attempt
            outcome, error = await self._attempt(locator, action)
            if outcome is Outcome.OK:
                result.outcome = Outcome.OK
                result.error = None
                logger.debug(f"✅ {kind} '{description}' succeeded on attempt {attempt}")
                return result

            outcomes.append(outcome)
            result.error = error
            logger.warning(
                f"⚠️ {kind.capitalize()} attempt {attempt}/{retries} on '{description}' "
                f"failed: {outcome.value}"
            )
            if attempt < retries:
                await self._pause(self.retry_policy.delay_ms(attempt))

        result.outcome = worst_outcome(*outcomes)
        result.screenshot = await capture_screenshot(
            self.page,
            f"{kind}-failure-{sanitize_name(description)}",
            directory=self.screenshot_dir,
        )
        logger.error(
            f"❌ {kind.capitalize()} on '{description}' failed after {retries} attempts "
            f"({result.outcome.value})"
        )
        return result

    async def _attempt(self, locator: Locator, action) -> Tuple[Outcome, Optional[str]]:
        try:
            outcome, error = await self._wait_visible(locator, self.visibility_timeout)
            if outcome is not Outcome.OK:
                return outcome, error

            try:
                await locator.scroll_into_view_if_needed(timeout=self.visibility_timeout)
            except PlaywrightError as e:
                logger.debug(f"Scroll into view skipped: {e}")
            await self.page.wait_for_timeout(self.settle_ms)

            await action()
            return Outcome.OK, None
        except PlaywrightError as e:
            return Outcome.NOT_ACTIONABLE, str(e)[:200]
        except Exception as e:
            logger.opt(exception=e).debug("Unexpected error during element action")
            return Outcome.ERROR, f"{type(e).__name__}: {e}"

    async def _wait_visible(self, locator: Locator, timeout: int) -> Tuple[Outcome, Optional[str]]:
        try:
            await locator.wait_for(state="visible", timeout=timeout)
            return Outcome.OK, None
        except PlaywrightTimeoutError as e:
            try:
                hidden_match = await locator.count() > 0
            except PlaywrightError:
                hidden_match = False
            return (Outcome.NOT_ACTIONABLE if hidden_match else Outcome.NOT_FOUND), str(e)[:200]
        except PlaywrightError as e:
            return Outcome.ERROR, str(e)[:200]

    async def _pause(self, ms: int) -> None:
        try:
            await self.page.wait_for_timeout(ms)
        except PlaywrightError as e:
            logger.debug(f"Pause interrupted: {e}")

    def _get_locator(self, target: ActionTarget) -> Locator:
        """
        Get a Locator from a selector, LocatorSpec or Locator.
        """
        if isinstance(target, str):
            return self.page.locator(target).first
        if isinstance(target, LocatorSpec):
            return target.build(self.page)
        return target

    @staticmethod
    def _describe(target: ActionTarget) -> str:
        if isinstance(target, str):
            return target
        if isinstance(target, LocatorSpec):
            return target.describe()
        return str(target)


__all__ = [
    "ActionTarget",
    "ElementActions",
]
