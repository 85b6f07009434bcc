"""
================================================================================
LiveShare Test Data Factory
================================================================================

Unique names and payloads for the UI scenarios: events, users, guest
nicknames, settings and the sample data written by the global setup.

Features:
- Collision-free names (short random id + timestamp tail)
- Reproducible output with a seed
- Event defaults taken from the active MODE profile (test_data.event)

================================================================================
"""

import random
import string
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import uuid4

from liveshare_tools.common import get_config


EVENT_TYPES = ["Anniversary", "Birthday", "Wedding", "Graduation", "Party"]

PLANS = ["Free", "Premium", "PremiumPlus"]


class LiveShareDataFactory:
    """
    Factory for LiveShare UI test data.

    Usage:
        factory = LiveShareDataFactory()
        event = factory.create_event_data()
        # {"name": "Auto Test Event_k3x9qa_123456", "type": "Anniversary", ...}
    """

    PREFIX = "auto"

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Random seed for reproducible data generation
        """
        self._random = random.Random(seed)

    def generate_random_string(self, length: int = 10) -> str:
        chars = string.ascii_letters + string.digits
        return "".join(self._random.choice(chars) for _ in range(length))

    def create_unique_name(self, base_name: str) -> str:
        """``<base>_<6 random chars>_<last 6 digits of epoch ms>``."""
        unique_id = "".join(self._random.choice(string.ascii_lowercase + string.digits) for _ in range(6))
        timestamp = str(int(datetime.now().timestamp() * 1000))[-6:]
        return f"{base_name}_{unique_id}_{timestamp}"

    def create_names(self, base_name: str, count: int, unique: bool = False) -> List[str]:
        if unique:
            return [self.create_unique_name(base_name) for _ in range(count)]
        return [base_name if i == 0 else f"{base_name}_{i + 1}" for i in range(count)]

    def create_edited_name(self, base_name: str, unique: bool = False) -> str:
        return f"{self.create_unique_name(base_name) if unique else base_name}_edited"

    def create_event_data(
        self,
        base_name: Optional[str] = None,
        unique: bool = True,
        days_ahead: int = 7,
        event_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Event payload for EventCreationPage.start_event_creation.

        Args:
            base_name: Name stem (defaults to test_data.event.name)
            unique: Append a unique suffix
            days_ahead: Event date offset from today
            event_type: Event type option label (defaults to test_data.event.type)
        """
        defaults = get_config("test_data.event", {}) or {}
        base_name = base_name or defaults.get("name", "Test Event")
        name = self.create_unique_name(base_name) if unique else base_name
        date = datetime.now() + timedelta(days=days_ahead)
        return {
            "name": name,
            "type": event_type or defaults.get("type", EVENT_TYPES[0]),
            "description": defaults.get("description", f"Automated test event: {name}"),
            "date": date,
            "day": date.day,
            "edited_name": self.create_edited_name(name),
            "tags": ["automation", "test", "e2e"],
        }

    def create_user_data(self, base_name: str = "Test User", unique: bool = True) -> Dict[str, Any]:
        name = self.create_unique_name(base_name) if unique else base_name
        slug = "".join(name.lower().split())
        return {
            "name": name,
            "email": f"{slug}@test.com",
            "password": f"Pw!{self.generate_random_string(12)}",
            "edited_name": self.create_edited_name(name),
        }

    def create_guest_nickname(self) -> str:
        return f"Guest {self.generate_random_string(4)}"

    def create_guest_message(self) -> str:
        return f"Automated message {uuid4().hex[:8]}"

    def create_gift_code(self) -> str:
        """Well-formed but unissued code; the backend rejects it."""
        return "TEST" + "".join(self._random.choice(string.ascii_uppercase + string.digits) for _ in range(8))

    def create_settings_data(self) -> Dict[str, Any]:
        return {
            "theme": "dark",
            "language": "en",
            "notifications": True,
            "edited_theme": "light",
            "edited_language": "vi",
            "edited_notifications": False,
        }


def sample_test_data() -> Dict[str, Any]:
    """Static sample data shipped in test-assets/sample-test-data.json."""
    return {
        "events": [
            {
                "name": "Sample Event 1",
                "description": "This is a sample event for testing",
                "tags": ["sample", "test"],
            },
            {
                "name": "Sample Event 2",
                "description": "Another sample event for testing",
                "tags": ["sample", "test", "demo"],
            },
        ],
        "users": [
            {"name": "Test User 1", "email": "testuser1@example.com"},
            {"name": "Test User 2", "email": "testuser2@example.com"},
        ],
    }


__all__ = [
    "EVENT_TYPES",
    "LiveShareDataFactory",
    "PLANS",
    "sample_test_data",
]
