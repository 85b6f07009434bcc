"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for LiveShare pages.

Each page class encapsulates:
    - Element locators (ordered candidate lists where the DOM varies)
    - Page-specific actions returning booleans or structured results
    - Verification methods

Author: Automation Team
License: MIT
================================================================================
"""

from .login_page import LoginPage
from .event_list_page import EventListPage
from .event_detail_page import EventDetailPage
from .image_detail_page import ImageDetailPage
from .join_event_page import JoinEventPage
from .snapquest_page import SnapQuestPage
from .event_creation_page import EventCreationPage
from .event_settings_page import EventSettingsPage
from .register_page import RegisterPage
from .subscription_page import SubscriptionPage
from .payment_page import PaymentDetails, PaymentPage, default_payment_details

__all__ = [
    "EventCreationPage",
    "EventDetailPage",
    "EventListPage",
    "EventSettingsPage",
    "ImageDetailPage",
    "JoinEventPage",
    "LoginPage",
    "PaymentDetails",
    "PaymentPage",
    "RegisterPage",
    "SnapQuestPage",
    "SubscriptionPage",
    "default_payment_details",
]
