"""
================================================================================
Authentication Flow Controller
================================================================================

Establishes a logged-in LiveShare session through Google OAuth or
email/password, retrying the whole flow with backoff.

States:

    CheckingSession -> ChoosingProvider -> AccountChooser | CredentialForm
                    -> Submitting -> Verifying -> Authenticated | Failed

    - A visible logged-in indicator in CheckingSession goes straight to
      Authenticated, so a valid stored session never opens the popup.
    - Exceptions inside an attempt count as a failed attempt; the shortcut
      is re-checked afterwards because login sometimes wins the race.
    - Failed is only reached once the retry budget is spent.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from liveshare_tools.common import Credentials

from .retry_policy import BackoffPolicy, get_retry_policy
from .session_store import DEFAULT_SESSION_KEY, SessionBlob, SessionStore
from .token_capture import TokenCapture

if TYPE_CHECKING:
    from liveshare_e2e.ui_testing.pages.login_page import LoginPage


class AuthenticationError(Exception):
    """Raised by ``authenticate_or_raise`` when every attempt failed."""

    def __init__(self, message: str, result: Optional["AuthResult"] = None):
        super().__init__(message)
        self.result = result


class AuthState(str, Enum):
    CHECKING_SESSION = "checking_session"
    CHOOSING_PROVIDER = "choosing_provider"
    ACCOUNT_CHOOSER = "account_chooser"
    CREDENTIAL_FORM = "credential_form"
    SUBMITTING = "submitting"
    VERIFYING = "verifying"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


PROVIDERS = ("google", "email")


@dataclass
class AuthResult:
    """
    Outcome of one ``authenticate`` call.

    Attributes:
        success: Session established
        attempts: Full-flow attempts used (0 when the shortcut hit first)
        state: Final state (AUTHENTICATED or FAILED)
        history: Every state visited, in order
        shortcut: Success came from the already-logged-in probe
        weak_fallback: Success came from direct navigation after the budget
        delays_ms: Backoff waits performed between attempts
        error: Last error seen
    """
    success: bool = False
    attempts: int = 0
    state: AuthState = AuthState.CHECKING_SESSION
    history: List[AuthState] = field(default_factory=list)
    shortcut: bool = False
    weak_fallback: bool = False
    delays_ms: List[int] = field(default_factory=list)
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "attempts": self.attempts,
            "state": self.state.value,
            "history": [s.value for s in self.history],
            "shortcut": self.shortcut,
            "weak_fallback": self.weak_fallback,
            "delays_ms": self.delays_ms,
            "error": self.error,
        }


class AuthenticationController:
    """
    Retry/backoff state machine around the LoginPage steps.

    Usage:
        controller = AuthenticationController(
            LoginPage(page),
            credentials=get_credentials("google"),
            session_store=FileSessionStore(),
        )
        result = await controller.authenticate(target_email="qa@example.com")
        assert result, result.error
    """

    AUTHENTICATED_PATH = "/events"

    def __init__(
        self,
        login_page: "LoginPage",
        credentials: Optional[Credentials] = None,
        retry_policy: Optional[BackoffPolicy] = None,
        session_store: Optional[SessionStore] = None,
        session_key: str = DEFAULT_SESSION_KEY,
        token_capture: Optional[TokenCapture] = None,
        allow_navigation_fallback: bool = False,
    ):
        """
        Args:
            login_page: Page object driving the UI steps
            credentials: Provider credentials (email/password)
            retry_policy: Backoff between attempts (defaults to the "auth" preset)
            session_store: Where the storage state goes after a real login
            session_key: Key used in the session store
            token_capture: Optional OAuth token interception
            allow_navigation_fallback: Try direct navigation to the
                authenticated route once the retry budget is spent
        """
        self.login_page = login_page
        self.credentials = credentials
        self.retry_policy = retry_policy or get_retry_policy("auth")
        self.session_store = session_store
        self.session_key = session_key
        self.token_capture = token_capture
        self.allow_navigation_fallback = allow_navigation_fallback
        self._popup: Optional[Page] = None
        self._result = AuthResult()

    @property
    def page(self) -> Page:
        return self.login_page.page

    @property
    def max_retries(self) -> int:
        return self.retry_policy.max_retries

    def _transition(self, state: AuthState) -> None:
        self._result.state = state
        self._result.history.append(state)
        logger.debug(f"🔐 Auth state -> {state.value}")

    # =========================================================================
    # Public API
    # =========================================================================

    async def authenticate(self, target_email: str = "", provider: Optional[str] = None) -> AuthResult:
        """
        Run the flow until a session exists or the retry budget is spent.

        Args:
            target_email: Account to pick on the Google chooser (substring match)
            provider: "google" or "email" (defaults to the credentials' provider)

        Returns:
            AuthResult, truthy on success. Never raises for flow failures.
        """
        provider = provider or (self.credentials.provider if self.credentials else "google")
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown auth provider: {provider}")

        self._result = result = AuthResult()
        logger.info(f"🔐 Starting {provider} authentication with {self.max_retries} retry attempts")

        with allure.step(f"Authenticate via {provider}"):
            self._transition(AuthState.CHECKING_SESSION)
            if await self.login_page.check_if_already_logged_in():
                logger.info("✅ Already logged in - authentication successful")
                result.shortcut = True
                return await self._succeed(persist=False)

            if provider == "email" and not (self.credentials and self.credentials.is_complete):
                result.error = "Email login needs LIVESHARE_EMAIL and LIVESHARE_PASSWORD"
                logger.error(f"❌ {result.error}")
                return self._fail()

            if self.token_capture:
                await self.token_capture.install()
            try:
                return await self._run_attempts(provider, target_email)
            finally:
                if self.token_capture:
                    await self.token_capture.uninstall()

    async def authenticate_or_raise(self, target_email: str = "", provider: Optional[str] = None) -> AuthResult:
        """
        ``authenticate`` for callers that want an exception.

        Raises:
            AuthenticationError: The flow ended in FAILED
        """
        result = await self.authenticate(target_email=target_email, provider=provider)
        if not result:
            raise AuthenticationError(
                f"Authentication failed after {result.attempts} attempt(s): {result.error}",
                result=result,
            )
        return result

    # =========================================================================
    # Retry loop
    # =========================================================================

    async def _run_attempts(self, provider: str, target_email: str) -> AuthResult:
        result = self._result

        for attempt in range(1, self.max_retries + 1):
            result.attempts = attempt
            logger.info(f"🔄 Authentication attempt {attempt}/{self.max_retries}")

            try:
                if provider == "google":
                    success = await self._google_attempt(target_email)
                else:
                    success = await self._email_attempt()
            except Exception as e:
                result.error = f"{type(e).__name__}: {e}"
                logger.warning(f"❌ Authentication error on attempt {attempt}: {result.error}")
                await self.login_page.screenshot(f"auth-failure-attempt-{attempt}")
                await self._discard_popup()
                success = False

            if not success:
                self._transition(AuthState.CHECKING_SESSION)
                success = await self.login_page.check_if_already_logged_in()
                if success:
                    logger.info("✅ User appears to be logged in despite the failed attempt")

            if success:
                logger.info(f"✅ Authentication successful on attempt {attempt}")
                return await self._succeed(persist=True)

            if attempt < self.max_retries:
                await self.login_page.reset_page_state()
                delay = self.retry_policy.delay_ms(attempt)
                result.delays_ms.append(delay)
                logger.info(f"⏳ Waiting {delay}ms before retry attempt {attempt + 1}")
                await self._pause(delay)

        logger.error(f"❌ All {self.max_retries} authentication attempts failed. Last error: {result.error}")

        if self.allow_navigation_fallback and await self._navigation_fallback():
            result.weak_fallback = True
            return await self._succeed(persist=True)

        return self._fail()

    async def _google_attempt(self, target_email: str) -> bool:
        lp = self.login_page
        password = self.credentials.password if self.credentials else ""

        self._transition(AuthState.CHOOSING_PROVIDER)
        await lp.click_sign_in()
        self._popup = popup = await lp.open_google_popup()

        if await lp.is_account_chooser(popup):
            self._transition(AuthState.ACCOUNT_CHOOSER)
            chosen = await lp.choose_account(popup, target_email)
            if chosen is None:
                self._result.error = "Account chooser listed no accounts"
                await self._discard_popup()
                return False
            await lp.submit_password_if_prompted(popup, password)
        else:
            self._transition(AuthState.CREDENTIAL_FORM)
            email = self.credentials.email if self.credentials else ""
            await lp.fill_google_credentials(popup, email, password)

        self._transition(AuthState.SUBMITTING)
        await lp.wait_for_popup_close(popup)
        self._popup = None

        self._transition(AuthState.VERIFYING)
        await lp.wait_for_main_page_settled()
        if not await lp.check_if_already_logged_in():
            logger.warning("⚠️ No logged-in indicator after Google sign-in, continuing")
        return True

    async def _email_attempt(self) -> bool:
        lp = self.login_page

        self._transition(AuthState.CHOOSING_PROVIDER)
        await lp.open_email_login()

        self._transition(AuthState.CREDENTIAL_FORM)
        await lp.fill_email_credentials(self.credentials.email, self.credentials.password)

        self._transition(AuthState.SUBMITTING)
        self._transition(AuthState.VERIFYING)
        success = await lp.wait_for_dashboard()
        if not success:
            self._result.error = "Dashboard not reached after email sign-in"
        return success

    async def _navigation_fallback(self) -> bool:
        """
        Open the authenticated route directly and re-probe the indicators.

        Only counts when the probe passes afterwards.
        """
        url = f"{self.login_page.base_url}{self.AUTHENTICATED_PATH}"
        logger.warning(f"⚠️ Falling back to direct navigation: {url} (weak guarantee)")
        try:
            await self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            logger.error(f"❌ Fallback navigation failed: {e}")
            return False

        self._transition(AuthState.VERIFYING)
        if await self.login_page.check_if_already_logged_in():
            return True
        logger.error("❌ Fallback navigation did not reach a logged-in page")
        return False

    # =========================================================================
    # Terminal states
    # =========================================================================

    async def _succeed(self, persist: bool) -> AuthResult:
        result = self._result
        result.success = True
        result.error = None
        self._transition(AuthState.AUTHENTICATED)
        if persist:
            await self.save_session()
        return result

    def _fail(self) -> AuthResult:
        self._result.success = False
        self._transition(AuthState.FAILED)
        return self._result

    async def save_session(self) -> bool:
        """Persist the context storage state; failures never undo the login."""
        if self.session_store is None:
            return False
        try:
            state = await self.page.context.storage_state()
            self.session_store.save(self.session_key, SessionBlob(state=state))
            return True
        except (PlaywrightError, OSError) as e:
            logger.warning(f"⚠️ Could not persist session: {e}")
            return False

    async def _discard_popup(self) -> None:
        popup, self._popup = self._popup, None
        await self.login_page.close_popup(popup)

    async def _pause(self, ms: int) -> None:
        try:
            await self.page.wait_for_timeout(ms)
        except PlaywrightError as e:
            logger.debug(f"Retry pause interrupted: {e}")


__all__ = [
    "AuthResult",
    "AuthState",
    "AuthenticationController",
    "AuthenticationError",
]
