"""Inbox helpers for email verification codes."""

from .mailosaur_client import MailosaurClient, MailosaurError, extract_code

__all__ = [
    "MailosaurClient",
    "MailosaurError",
    "extract_code",
]
