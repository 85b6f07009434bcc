"""
================================================================================
UI Testing Framework
================================================================================

Resilient Playwright layer for the LiveShare web app.

Components:
    - smart_locator: candidate-list element resolution with escalations
    - element_actions: retrying click/fill/upload primitives
    - retry_policy: shared backoff policy presets
    - auth_flow: authentication retry state machine
    - session_store: persisted browser sessions (file / memory)
    - token_capture: OAuth token interception
    - page_base: base page object for common operations
    - browser_manager: browser lifecycle management
    - global_setup: directories, test assets and the shared login

Author: Automation Team
License: MIT
================================================================================
"""

from .results import ActionResult, Outcome, StateChangeResult
from .retry_policy import BackoffPolicy, get_retry_policy
from .smart_locator import (
    ClickStrategy,
    ElementNotFoundError,
    LocatorSpec,
    SmartLocator,
    by_role,
    by_text,
    css,
)
from .element_actions import ElementActions
from .session_store import FileSessionStore, MemorySessionStore, SessionBlob, SessionStore
from .auth_flow import AuthenticationController, AuthenticationError, AuthResult, AuthState
from .page_base import BasePage
from .browser_manager import BrowserManager

__all__ = [
    "ActionResult",
    "AuthResult",
    "AuthState",
    "AuthenticationController",
    "AuthenticationError",
    "BackoffPolicy",
    "BasePage",
    "BrowserManager",
    "ClickStrategy",
    "ElementActions",
    "ElementNotFoundError",
    "FileSessionStore",
    "LocatorSpec",
    "MemorySessionStore",
    "Outcome",
    "SessionBlob",
    "SessionStore",
    "SmartLocator",
    "StateChangeResult",
    "by_role",
    "by_text",
    "css",
    "get_retry_policy",
]
