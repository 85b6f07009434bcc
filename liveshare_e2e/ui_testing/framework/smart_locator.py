"""
================================================================================
Smart Locator with Candidate Fallbacks
================================================================================

Resolves one logical UI target ("the avatar icon", "the pin button") to a
concrete, currently-visible element despite markup drift between app
releases.

    - Ordered candidate lists (CSS, role + accessible name, text)
    - Strictly sequential probing, first visible match wins
    - Per-candidate visibility timeout, so worst case is N x timeout
    - Hidden matches reported apart from missing ones
    - In-page script click and URL navigation as last-resort escalations
    - Fallback usage analytics for selector maintenance

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .results import Outcome, worst_outcome


class ElementNotFoundError(Exception):
    """Raised by the strict helpers when every candidate fails."""
    pass


# ================================================================================
# Candidate locators
# ================================================================================

@dataclass(frozen=True)
class LocatorSpec:
    """
    One candidate way of finding an element.

    Exactly one of ``selector``, ``role`` or ``text`` is set. ``name`` is the
    accessible name used together with ``role``.
    """
    selector: Optional[str] = None
    role: Optional[str] = None
    name: Optional[str] = None
    text: Optional[str] = None
    exact: bool = False

    def __post_init__(self) -> None:
        kinds = [k for k in (self.selector, self.role, self.text) if k]
        if len(kinds) != 1:
            raise ValueError("LocatorSpec needs exactly one of selector, role or text")

    @classmethod
    def coerce(cls, value: Union[str, "LocatorSpec"]) -> "LocatorSpec":
        if isinstance(value, LocatorSpec):
            return value
        if isinstance(value, str):
            return cls(selector=value)
        raise TypeError(f"Cannot build a LocatorSpec from {value!r}")

    def build(self, scope: Union[Page, Locator], first: bool = True) -> Locator:
        """Create the Playwright locator under ``scope`` (page, popup or parent locator)."""
        if self.selector:
            locator = scope.locator(self.selector)
        elif self.role:
            if self.name:
                locator = scope.get_by_role(self.role, name=self.name, exact=self.exact)
            else:
                locator = scope.get_by_role(self.role)
        else:
            locator = scope.get_by_text(self.text, exact=self.exact)
        return locator.first if first else locator

    def describe(self) -> str:
        if self.selector:
            return self.selector
        if self.role:
            return f"role={self.role}[name={self.name!r}]" if self.name else f"role={self.role}"
        return f"text={self.text!r}"


def css(selector: str) -> LocatorSpec:
    return LocatorSpec(selector=selector)


def by_role(role: str, name: Optional[str] = None, exact: bool = False) -> LocatorSpec:
    return LocatorSpec(role=role, name=name, exact=exact)


def by_text(text: str, exact: bool = False) -> LocatorSpec:
    return LocatorSpec(text=text, exact=exact)


CandidateInput = Union[str, LocatorSpec]
Target = Union[str, LocatorSpec, Sequence[CandidateInput]]


# ================================================================================
# Results
# ================================================================================

@dataclass
class Resolution:
    """
    Outcome of resolving a candidate list.

    Attributes:
        outcome: ok / not_found / not_actionable / error
        locator: The resolved locator (first visible match) when ok
        matched: Which candidate matched
        index: Position of the matched candidate (0 = preferred)
        failures: Per-candidate outcome for candidates that did not win
        attempted: Candidates probed, in order
    """
    outcome: Outcome
    locator: Optional[Locator] = None
    matched: Optional[LocatorSpec] = None
    index: Optional[int] = None
    failures: Dict[str, Outcome] = field(default_factory=dict)
    attempted: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def selector(self) -> Optional[str]:
        return self.matched.describe() if self.matched else None

    @property
    def used_fallback(self) -> bool:
        return bool(self.index)

    def __bool__(self) -> bool:
        return self.ok


class ClickStrategy(str, Enum):
    """Which escalation step produced the click."""

    LOCATOR = "locator"
    SCRIPT = "script"
    NAVIGATION = "navigation"
    NONE = "none"


@dataclass
class EscalationResult:
    """
    Result of ``click_with_escalation``.

    ``weak`` marks the URL-navigation fallback, which does not prove the
    element was ever clicked. ``verified`` says whether a post-navigation
    check confirmed the expected state.
    """
    strategy: ClickStrategy
    detail: Optional[str] = None
    weak: bool = False
    verified: bool = False
    resolution: Optional[Resolution] = None

    @property
    def ok(self) -> bool:
        return self.strategy is not ClickStrategy.NONE

    def __bool__(self) -> bool:
        return self.ok


@dataclass
class LocatorHealth:
    """
    Tracks locator health and usage statistics.

    Attributes:
        element_name: Human-readable element name
        primary_selector: The preferred candidate
        used_fallback: Whether a later candidate was used
        fallback_index: Position of the candidate used (if any)
        fallback_selector: The candidate used (if any)
    """
    element_name: str
    primary_selector: str
    used_fallback: bool = False
    fallback_index: Optional[int] = None
    fallback_selector: Optional[str] = None


# Dispatches a synthetic click on the first raw DOM query that matches.
SCRIPT_CLICK = """
(queries) => {
    for (const query of queries) {
        const element = document.querySelector(query);
        if (element) {
            element.dispatchEvent(new MouseEvent('click', {
                bubbles: true,
                cancelable: true,
                view: window,
            }));
            return query;
        }
    }
    return null;
}
"""


class SmartLocator:
    """
    Candidate-list element resolver.

    Usage:
        >>> smart = SmartLocator(page)
        >>> resolution = await smart.resolve("avatar_icon")
        >>> if resolution:
        ...     await resolution.locator.click()
        >>> await smart.resolve(["#missing", 'button:has-text("Join")'], action="click")

    Configuration:
        Shared targets live in the LOCATORS registry as ordered candidate
        lists. Page objects pass their own lists for page-specific targets.
    """

    DEFAULT_TIMEOUT = 1500
    WAIT_FOR_TIMEOUT = 5000
    SETTLE_MS = 500

    ACTIONS = ("is_visible", "wait_for", "click")

    LOCATORS: Dict[str, List[CandidateInput]] = {
        # Authentication entry points
        "sign_in_button": [
            'button:has-text("Sign In")',
            'button:has-text("Login")',
            ".login-button",
        ],
        "google_button": [
            '[aria-label*="Google"]',
            '[class*="google"]',
            'button:has-text("Google")',
        ],
        "email_signin_button": [
            'button:has-text("Sign in with Email")',
            '.btn-soicial:has-text("Email")',
            'button:has-text("Email")',
        ],

        # Logged-in indicators
        "dashboard_indicator": [
            '.flex.pt-8, div.event-card, div.mat-card, [data-testid="dashboard"], .event-card-event',
        ],
        "profile_indicator": [
            "div.mat-menu-trigger.avatar",
            "div.profile-image",
            "img.profile-image",
            ".profile div.avatar",
            "div.navbar-end .avatar",
        ],

        # Profile menu trigger
        "avatar_icon": [
            "div.mat-menu-trigger.avatar",
            "div.profile-image",
            "img.profile-image",
            'div[aria-haspopup="menu"]',
            'div.avatar[aria-haspopup="menu"]',
            ".profile div.avatar",
            "div.w-8.rounded-full",
            "#app-topnav img",
            ".navbar-end .profile .avatar",
            ".navbar-end .profile-image",
        ],

        # Image detail toggles
        "pin_button": ['button:has(mat-icon:text("push_pin"))'],
        "gift_button": ['button:has(mat-icon:text("redeem"))'],
    }

    def __init__(
        self,
        page: Page,
        timeout: int = DEFAULT_TIMEOUT,
        settle_ms: int = SETTLE_MS,
    ):
        """
        Initialize SmartLocator with a Playwright page.

        Args:
            page: Page (or popup) to resolve elements in
            timeout: Default per-candidate visibility timeout in ms
            settle_ms: Pause between scroll-into-view and click
        """
        self.page = page
        self.timeout = timeout
        self.settle_ms = settle_ms
        self._health_records: List[LocatorHealth] = []
        self._fallback_used: Dict[str, LocatorHealth] = {}

    def candidates_for(self, target: Target) -> List[LocatorSpec]:
        """
        Expand a target into an ordered candidate list.

        A string that names a LOCATORS entry expands to that entry; any other
        string is treated as a single selector.
        """
        if isinstance(target, LocatorSpec):
            return [target]
        if isinstance(target, str):
            if target in self.LOCATORS:
                return [LocatorSpec.coerce(c) for c in self.LOCATORS[target]]
            return [LocatorSpec(selector=target)]
        return [LocatorSpec.coerce(c) for c in target]

    @staticmethod
    def _display_name(target: Target, candidates: List[LocatorSpec]) -> str:
        if isinstance(target, str):
            return target
        return candidates[0].describe() if candidates else "custom_element"

    async def resolve(
        self,
        target: Target,
        timeout: Optional[int] = None,
        action: str = "is_visible",
        name: Optional[str] = None,
    ) -> Resolution:
        """
        Resolve a target to its first visible candidate.

        Candidates are probed one at a time; a candidate that only matches
        hidden elements is skipped as not actionable.

        Args:
            target: LOCATORS key, single selector/spec, or ordered candidate list
            timeout: Per-candidate visibility timeout in ms
            action: "is_visible" (probe only), "wait_for" (longer default
                timeout) or "click" (scroll, settle, force-click the match)
            name: Display name for logs and the health report

        Returns:
            Resolution describing the match or why nothing matched
        """
        if action not in self.ACTIONS:
            raise ValueError(f"Unsupported action: {action}")

        candidates = self.candidates_for(target)
        display_name = name or self._display_name(target, candidates)
        if timeout is None:
            timeout = self.WAIT_FOR_TIMEOUT if action == "wait_for" else self.timeout

        resolution = Resolution(outcome=Outcome.NOT_FOUND)
        if not candidates:
            logger.warning(f"⚠️ No candidates defined for '{display_name}'")
            return resolution

        for index, spec in enumerate(candidates):
            description = spec.describe()
            resolution.attempted.append(description)

            outcome, locator, error = await self._probe(spec, timeout)
            if outcome is Outcome.OK and action == "click":
                outcome, error = await self._click(locator, timeout)

            if outcome is not Outcome.OK:
                resolution.failures[description] = outcome
                resolution.error = error
                logger.debug(f"Candidate {index + 1}/{len(candidates)} for '{display_name}' -> {outcome.value}")
                continue

            resolution.outcome = Outcome.OK
            resolution.locator = locator
            resolution.matched = spec
            resolution.index = index
            resolution.error = None
            self._record_health(display_name, candidates[0], spec, index)
            return resolution

        resolution.outcome = worst_outcome(*resolution.failures.values())
        logger.warning(
            f"⚠️ No visible candidate for '{display_name}' "
            f"({len(candidates)} tried, outcome={resolution.outcome.value})"
        )
        return resolution

    async def _probe(self, spec: LocatorSpec, timeout: int):
        """Wait for one candidate to become visible."""
        try:
            locator = spec.build(self.page)
            await locator.wait_for(state="visible", timeout=timeout)
            return Outcome.OK, locator, None
        except PlaywrightTimeoutError as e:
            try:
                count = await spec.build(self.page, first=False).count()
            except PlaywrightError:
                count = 0
            outcome = Outcome.NOT_ACTIONABLE if count else Outcome.NOT_FOUND
            return outcome, None, str(e).splitlines()[0] if str(e) else "timeout"
        except PlaywrightError as e:
            return Outcome.ERROR, None, str(e)[:200]

    async def _click(self, locator: Locator, timeout: int):
        try:
            await locator.scroll_into_view_if_needed(timeout=timeout)
        except PlaywrightError as e:
            logger.debug(f"Scroll into view skipped: {e}")
        try:
            await self.page.wait_for_timeout(self.settle_ms)
            await locator.click(force=True, timeout=timeout)
            return Outcome.OK, None
        except PlaywrightError as e:
            return Outcome.NOT_ACTIONABLE, str(e)[:200]

    def _record_health(self, display_name: str, primary: LocatorSpec, used: LocatorSpec, index: int) -> None:
        health = LocatorHealth(
            element_name=display_name,
            primary_selector=primary.describe(),
            used_fallback=index > 0,
            fallback_index=index if index > 0 else None,
            fallback_selector=used.describe() if index > 0 else None,
        )
        self._health_records.append(health)
        if index > 0:
            logger.warning(f"⚠️ Element '{display_name}' used fallback #{index}: {used.describe()}")
            self._fallback_used[display_name] = health
        else:
            logger.debug(f"✅ Element '{display_name}' found: {used.describe()}")

    # =========================================================================
    # Escalations
    # =========================================================================

    async def click_via_script(self, queries: Sequence[str]) -> Optional[str]:
        """
        Click the first raw ``document.querySelector`` hit from inside the page.

        The synthetic event skips Playwright's actionability checks, which is
        what gets clicks through overlays that intercept pointer events.

        Returns:
            The query that matched, or None
        """
        if not queries:
            return None
        try:
            matched = await self.page.evaluate(SCRIPT_CLICK, list(queries))
        except PlaywrightError as e:
            logger.warning(f"⚠️ Script click failed: {e}")
            return None
        if matched:
            logger.info(f"✅ Script click dispatched on: {matched}")
        return matched

    async def click_with_escalation(
        self,
        target: Target,
        script_queries: Sequence[str] = (),
        fallback_url: Optional[str] = None,
        verify: Optional[Callable[[], Awaitable[bool]]] = None,
        timeout: Optional[int] = None,
        name: Optional[str] = None,
    ) -> EscalationResult:
        """
        Click a target: candidate list, then script click, then navigation.

        Args:
            target: Candidates for the structural click
            script_queries: Raw DOM queries for the in-page script click
            fallback_url: Route to open when nothing could be clicked
                (reserved for auth/avatar flows)
            verify: Coroutine confirming the post-navigation state; when
                given, navigation only counts if it returns True
            timeout: Per-candidate visibility timeout
            name: Display name for logs

        Returns:
            EscalationResult naming the strategy that worked
        """
        resolution = await self.resolve(target, timeout=timeout, action="click", name=name)
        if resolution:
            return EscalationResult(ClickStrategy.LOCATOR, resolution.selector, resolution=resolution)

        matched = await self.click_via_script(script_queries)
        if matched:
            await self.page.wait_for_timeout(self.settle_ms)
            return EscalationResult(ClickStrategy.SCRIPT, matched, resolution=resolution)

        if fallback_url:
            logger.warning(f"⚠️ Falling back to direct navigation: {fallback_url} (weak guarantee)")
            try:
                await self.page.goto(fallback_url, wait_until="domcontentloaded")
            except PlaywrightError as e:
                logger.error(f"❌ Fallback navigation failed: {e}")
                return EscalationResult(ClickStrategy.NONE, resolution=resolution)

            if verify is None:
                return EscalationResult(
                    ClickStrategy.NAVIGATION, fallback_url, weak=True, resolution=resolution
                )
            if await verify():
                return EscalationResult(
                    ClickStrategy.NAVIGATION, fallback_url, weak=True, verified=True, resolution=resolution
                )
            logger.error(f"❌ Navigation to {fallback_url} did not reach the expected state")

        return EscalationResult(ClickStrategy.NONE, resolution=resolution)

    # =========================================================================
    # Strict helpers
    # =========================================================================

    async def locate(self, target: Target, timeout: Optional[int] = None, name: Optional[str] = None) -> Locator:
        """
        Resolve a target or raise.

        Raises:
            ElementNotFoundError: When no candidate is visible
        """
        resolution = await self.resolve(target, timeout=timeout, name=name)
        if not resolution:
            details = "\n".join(f"  - {sel}: {outcome.value}" for sel, outcome in resolution.failures.items())
            raise ElementNotFoundError(
                f"❌ All candidates failed for '{name or target}':\n{details}"
            )
        return resolution.locator

    async def click(self, target: Target, timeout: Optional[int] = None, **kwargs: Any) -> None:
        locator = await self.locate(target, timeout=timeout)
        await locator.click(**kwargs)

    async def fill(self, target: Target, value: str, timeout: Optional[int] = None, **kwargs: Any) -> None:
        locator = await self.locate(target, timeout=timeout)
        await locator.fill(value, **kwargs)

    async def get_text(self, target: Target, timeout: Optional[int] = None) -> str:
        locator = await self.locate(target, timeout=timeout)
        return (await locator.text_content()) or ""

    async def is_visible(self, target: Target, timeout: Optional[int] = None) -> bool:
        """True if any candidate becomes visible within the timeout."""
        return (await self.resolve(target, timeout=timeout)).ok

    # =========================================================================
    # Maintenance
    # =========================================================================

    def get_health_report(self) -> str:
        """
        Generate locator health report.

        Lists targets that needed a fallback candidate, which are the ones
        whose preferred selector has drifted.
        """
        if not self._fallback_used:
            return "✅ All elements used primary locators. No maintenance needed."

        report_lines = [
            "⚠️ Locator Health Report - Fallbacks Used:",
            "",
        ]
        for element_name, health in self._fallback_used.items():
            report_lines.extend([
                f"  [{element_name}]",
                f"    Failed primary: {health.primary_selector}",
                f"    Used #{health.fallback_index}: {health.fallback_selector}",
                "",
            ])
        return "\n".join(report_lines)

    @classmethod
    def register_locator(cls, element_name: str, candidates: Sequence[CandidateInput]) -> None:
        """
        Register (or replace) a named candidate list at runtime.
        """
        cls.LOCATORS[element_name] = list(candidates)
        logger.debug(f"Registered new locator: {element_name}")


__all__ = [
    "ClickStrategy",
    "ElementNotFoundError",
    "EscalationResult",
    "LocatorHealth",
    "LocatorSpec",
    "Resolution",
    "SmartLocator",
    "by_role",
    "by_text",
    "css",
]
