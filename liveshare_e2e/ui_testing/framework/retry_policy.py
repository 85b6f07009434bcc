# ================================================================================
# Retry Policy Module
# ================================================================================
#
# A single backoff policy object (attempt -> delay) shared by the resilient
# action primitives and the authentication flow controller.
#
# Key Features:
#   - Linear (base * attempt), fixed and exponential strategies
#   - Optional delay cap
#   - Named presets with config overrides (retry.<name>.* in YAML)
#
# Usage:
#   policy = get_retry_policy("auth")
#   await page.wait_for_timeout(policy.delay_ms(attempt))
#
# ================================================================================

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Optional

from loguru import logger

from liveshare_tools.common import get_config


STRATEGIES = ("linear", "fixed", "exponential")


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Delay between attempts of a retried operation.

    Attributes:
        base_ms: Base delay in milliseconds
        strategy: "linear" (base * attempt), "fixed" (base) or
            "exponential" (base * multiplier ** (attempt - 1))
        multiplier: Growth factor for the exponential strategy
        max_ms: Upper bound applied to every computed delay
        max_retries: Attempt budget for callers that own a retry loop
    """
    base_ms: int = 1000
    strategy: str = "linear"
    multiplier: float = 2.0
    max_ms: Optional[int] = None
    max_retries: int = 3

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown backoff strategy: {self.strategy}")
        if self.base_ms < 0:
            raise ValueError("base_ms must be >= 0")
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")

    def delay_ms(self, attempt: int) -> int:
        """
        Delay to wait after the given (1-based) failed attempt.

        Args:
            attempt: Attempt number, starting at 1

        Returns:
            Delay in milliseconds
        """
        attempt = max(attempt, 1)
        if self.strategy == "fixed":
            delay = float(self.base_ms)
        elif self.strategy == "exponential":
            delay = self.base_ms * (self.multiplier ** (attempt - 1))
        else:
            delay = float(self.base_ms * attempt)

        if self.max_ms is not None:
            delay = min(delay, self.max_ms)
        return int(delay)

    @classmethod
    def linear(cls, base_ms: int, **kwargs) -> "BackoffPolicy":
        return cls(base_ms=base_ms, strategy="linear", **kwargs)

    @classmethod
    def fixed(cls, base_ms: int, **kwargs) -> "BackoffPolicy":
        return cls(base_ms=base_ms, strategy="fixed", **kwargs)

    @classmethod
    def exponential(cls, base_ms: int, multiplier: float = 2.0, **kwargs) -> "BackoffPolicy":
        return cls(base_ms=base_ms, strategy="exponential", multiplier=multiplier, **kwargs)


# Pre-configured policies for common scenarios
RETRY_POLICIES: Dict[str, BackoffPolicy] = {
    "default": BackoffPolicy.linear(1000),

    # Click/fill primitives: fixed pause between visibility probes
    "action": BackoffPolicy.fixed(1000, max_retries=3),

    # Whole authentication flow: 3s, 6s, 9s ...
    "auth": BackoffPolicy.linear(3000, max_retries=3),

    # Waiting for OAuth/checkout popups to settle
    "popup": BackoffPolicy.exponential(500, multiplier=2.0, max_ms=4000, max_retries=4),
}


def get_retry_policy(name: str) -> BackoffPolicy:
    """
    Get the backoff policy for a scenario, applying YAML overrides.

    Args:
        name: Scenario name (e.g., "action", "auth")

    Returns:
        BackoffPolicy for the scenario, or default if not found
    """
    policy = RETRY_POLICIES.get(name, RETRY_POLICIES["default"])
    overrides = get_config(f"retry.{name}", None)
    if not isinstance(overrides, dict):
        return policy

    allowed = {"base_ms", "strategy", "multiplier", "max_ms", "max_retries"}
    changes = {k: v for k, v in overrides.items() if k in allowed and v is not None}
    if not changes:
        return policy

    for key in ("base_ms", "max_ms", "max_retries"):
        if key in changes:
            changes[key] = int(changes[key])
    if "multiplier" in changes:
        changes["multiplier"] = float(changes["multiplier"])

    logger.debug(f"Retry policy '{name}' overridden from config: {changes}")
    return replace(policy, **changes)


__all__ = [
    "BackoffPolicy",
    "RETRY_POLICIES",
    "get_retry_policy",
]
