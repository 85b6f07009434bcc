"""
================================================================================
LiveShare Tools
================================================================================

Support utilities shared by the LiveShare E2E suites.

Modules:
    - common: Configuration profiles, credentials and logging
    - report_tools: Allure attachment helpers and report generation
    - mail_tools: Mailosaur inbox client for OTP retrieval
    - data_generator: Unique names, users and payment fixtures

Example:
    from liveshare_tools.common import get_config, init_logger
    from liveshare_tools.mail_tools import MailosaurClient

    init_logger()
    client = MailosaurClient.from_env()
    if client:
        code = client.get_otp_code(client.generate_email())

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
    "mail_tools",
    "data_generator",
]
