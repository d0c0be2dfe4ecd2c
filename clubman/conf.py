"""
Clubman configuration.

Usage in settings.py:
    CLUBMAN = {
        "VISIT_COOLDOWN_MINUTES": 60,
        "OTP_TTL_MINUTES": 10,
        "NOTIFIER_BACKEND": "myproject.sms.TwilioNotifier",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class ClubmanSettings:
    """Clubman configuration settings."""

    # Pure visits (no spend) are throttled per customer
    VISIT_COOLDOWN_MINUTES: int = 60

    # One-time passwords
    OTP_TTL_MINUTES: int = 10
    OTP_BYPASS_CODE: str = ""  # empty = no bypass
    EXPOSE_OTP_CODE: bool = False

    # Redemption codes
    REDEMPTION_CODE_LENGTH: int = 8
    REDEMPTION_CODE_ATTEMPTS: int = 5

    # Actor recorded when staff id is missing
    SYSTEM_ACTOR: str = "SYSTEM"

    # Session adapter key
    SESSION_KEY: str = "clubman_token"

    # OTP delivery backend (dotted path to a Notifier)
    NOTIFIER_BACKEND: str = "clubman.adapters.notifier.LoggingNotifier"

    DEFAULT_CUSTOMER_NAME: str = "Cliente"

    # Notifications returned per feed request
    NOTIFICATION_FEED_LIMIT: int = 20


def get_clubman_settings() -> ClubmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "CLUBMAN", {})
    return ClubmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_clubman_settings(), name)


clubman_settings = _LazySettings()
