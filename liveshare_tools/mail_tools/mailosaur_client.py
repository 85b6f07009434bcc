"""
================================================================================
Mailosaur OTP Client
================================================================================

Minimal client for the Mailosaur REST API, used by the registration and
subscription scenarios to read the email verification code.

    - Basic auth with the API key as username
    - Disposable addresses ``auto_<ms>@<server>.mailosaur.net``
    - ``POST /api/messages/await`` long-poll until the message arrives
    - Scenarios skip (not fail) when the inbox is not configured

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
import time
from datetime import datetime
from typing import Any, Dict, Optional

import allure
import httpx
from loguru import logger

from liveshare_tools.common import get_config


API_KEY_ENV = "MAILOSAUR_API_KEY"
SERVER_ID_ENV = "MAILOSAUR_SERVER_ID"

DEFAULT_BASE_URL = "https://mailosaur.com"
DEFAULT_TIMEOUT_SECONDS = 60


class MailosaurError(Exception):
    """Message missing, no code in it, or the API refused the request."""
    pass


class MailosaurClient:
    """
    Waits for verification emails and extracts their codes.

    Usage:
        client = MailosaurClient.from_env()
        if client is None:
            pytest.skip("Mailosaur environment variables not set")
        email = client.generate_email()
        ...  # submit the signup form with `email`
        code = client.get_otp_code(email)
    """

    def __init__(
        self,
        api_key: str,
        server_id: str,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            api_key: Mailosaur API key
            server_id: Mailosaur server (inbox) id
            base_url: API root (defaults to mailosaur.base_url)
            timeout_seconds: How long to wait for a message (defaults to
                mailosaur.timeout_seconds)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        if not api_key or not server_id:
            raise MailosaurError("Both api_key and server_id are required")
        self.api_key = api_key
        self.server_id = server_id
        self.base_url = (base_url or get_config("mailosaur.base_url", DEFAULT_BASE_URL)).rstrip("/")
        self.timeout_seconds = float(
            timeout_seconds or get_config("mailosaur.timeout_seconds", DEFAULT_TIMEOUT_SECONDS)
        )
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=(self.api_key, ""),
            # The await call blocks server-side for up to timeout_seconds
            timeout=httpx.Timeout(self.timeout_seconds + 10),
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> Optional["MailosaurClient"]:
        """Client from MAILOSAUR_API_KEY / MAILOSAUR_SERVER_ID, or None if unset."""
        api_key = os.getenv(API_KEY_ENV, "")
        server_id = os.getenv(SERVER_ID_ENV, "")
        if not api_key or not server_id:
            logger.info("ℹ️ Mailosaur not configured, dependent scenarios will be skipped")
            return None
        return cls(api_key, server_id)

    def __enter__(self) -> "MailosaurClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def generate_email(self, prefix: str = "auto") -> str:
        """Unique address on this server: ``<prefix>_<epoch ms>@<server>.mailosaur.net``."""
        return f"{prefix}_{int(time.time() * 1000)}@{self.server_id}.mailosaur.net"

    def wait_for_message(
        self,
        sent_to: str,
        received_after: Optional[datetime] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Block until a message sent to ``sent_to`` arrives.

        Raises:
            MailosaurError: Nothing arrived in time or the API call failed
        """
        timeout_ms = int((timeout_seconds or self.timeout_seconds) * 1000)
        params: Dict[str, Any] = {"server": self.server_id, "timeout": timeout_ms}
        if received_after is not None:
            params["receivedAfter"] = received_after.isoformat()

        logger.info(f"📧 Waiting for email to {sent_to} (up to {timeout_ms} ms)")
        try:
            response = self._client.post("/api/messages/await", params=params, json={"sentTo": sent_to})
        except httpx.HTTPError as e:
            raise MailosaurError(f"Mailosaur request failed: {e}") from e

        if response.status_code >= 400:
            raise MailosaurError(f"Mailosaur returned {response.status_code}: {response.text[:300]}")

        try:
            message = response.json()
        except ValueError as e:
            raise MailosaurError(f"Mailosaur returned invalid JSON: {e}") from e

        allure.attach(
            json.dumps({"to": sent_to, "subject": message.get("subject")}, indent=2),
            name="Mailosaur message",
            attachment_type=allure.attachment_type.JSON,
        )
        return message

    def get_otp_code(self, sent_to: str, received_after: Optional[datetime] = None) -> str:
        """
        Verification code of the newest message sent to ``sent_to``.

        Raises:
            MailosaurError: The message holds no code
        """
        message = self.wait_for_message(sent_to, received_after=received_after)
        return extract_code(message)


def extract_code(message: Dict[str, Any]) -> str:
    """
    First code Mailosaur detected in the HTML body (``html.codes[0].value``).

    Raises:
        MailosaurError: No code present
    """
    codes = (message.get("html") or {}).get("codes") or []
    if not codes or not codes[0].get("value"):
        raise MailosaurError(f"No verification code in message '{message.get('subject', '')}'")
    code = str(codes[0]["value"])
    logger.info(f"📧 Received OTP code: {code}")
    return code


__all__ = [
    "MailosaurClient",
    "MailosaurError",
    "extract_code",
]
