"""Default Notifier: logs OTPs instead of sending them."""

import logging
from datetime import datetime

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """
    Adapter that implements Notifier by writing to the log.

    Suitable for development only. Production deployments point
    CLUBMAN["NOTIFIER_BACKEND"] at a real SMS/WhatsApp adapter.
    """

    def send_otp(self, phone: str, code: str, expires_at: datetime) -> None:
        logger.info("OTP for %s: %s (expires %s)", phone, code, expires_at.isoformat())
