"""
================================================================================
Action and Resolution Results
================================================================================

Result types returned by the resilient UI layer instead of bare booleans.

Every result is truthy only on success, so ``if await page.safe_click(...)``
keeps working, while callers that care can tell "not found" apart from
"found but blocked" and from an unexpected error.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class Outcome(str, Enum):
    """Why an element lookup or action ended the way it did."""

    OK = "ok"
    NOT_FOUND = "not_found"
    NOT_ACTIONABLE = "not_actionable"
    ERROR = "error"


def worst_outcome(*outcomes: Outcome) -> Outcome:
    """
    Combine per-attempt outcomes into the most informative failure.

    ``error`` beats ``not_actionable`` beats ``not_found``; ``ok`` only wins
    when nothing else is present.
    """
    order = [Outcome.ERROR, Outcome.NOT_ACTIONABLE, Outcome.NOT_FOUND]
    for candidate in order:
        if candidate in outcomes:
            return candidate
    return Outcome.OK


@dataclass
class ActionResult:
    """
    Result of a click / fill / upload primitive.

    Attributes:
        outcome: Final outcome after all attempts
        target: Human-readable description of the target
        attempts: Number of attempts actually performed
        error: Last error message, if any
        screenshot: Diagnostic screenshot captured on exhaustion
    """
    outcome: Outcome
    target: str = ""
    attempts: int = 0
    error: Optional[str] = None
    screenshot: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    def __bool__(self) -> bool:
        return self.ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "target": self.target,
            "attempts": self.attempts,
            "error": self.error,
            "screenshot": str(self.screenshot) if self.screenshot else None,
        }


@dataclass
class StateChangeResult:
    """
    Result of clicking a toggle-style control.

    ``changed`` compares an attribute (usually ``class``) before and after
    the click.
    """
    found: bool
    changed: bool = False
    before: Optional[str] = None
    after: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"found": self.found, "changed": self.changed}


__all__ = [
    "ActionResult",
    "Outcome",
    "StateChangeResult",
    "worst_outcome",
]
