"""Notifier protocol for OTP delivery."""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """
    Delivers one-time passwords to customers (SMS, WhatsApp, ...).

    Configuration in settings.py:
        CLUBMAN = {
            "NOTIFIER_BACKEND": "clubman.adapters.notifier.LoggingNotifier",
        }
    """

    def send_otp(self, phone: str, code: str, expires_at: datetime) -> None:
        """
        Send ``code`` to ``phone``.

        Args:
            phone: Normalized phone
            code: Six-digit code
            expires_at: When the code stops being accepted
        """
        ...
