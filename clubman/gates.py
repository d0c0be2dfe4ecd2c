"""
Clubman Gates - Rate and idempotency rules.

G1: VisitCooldown - Pure visits are throttled per customer
G2: SingleUnlock - A ladder reward is unlocked at most once per customer
G3: SingleDelivery - A redemption code is delivered at most once
G4: PhoneUniqueness - (program, phone) belongs to one customer
G5: OtpValidity - OTP exists, is fresh and matches

Gates check state and raise GateError. The indivisible writes that back
G1 and G3 under concurrency live in the services (conditional updates).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.utils import timezone

from clubman.conf import clubman_settings
from clubman.exceptions import ClubmanError

logger = logging.getLogger(__name__)


class GateError(ClubmanError):
    """Gate validation error."""

    def __init__(
        self,
        gate_name: str,
        code: str,
        message: str | None = None,
        details: dict | None = None,
    ):
        self.gate_name = gate_name
        self.details = details or {}
        super().__init__(code, message=message, **self.details)


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


# =============================================================================
# Gates
# =============================================================================


class Gates:
    """Clubman validation gates."""

    # =========================================================================
    # G1: Visit Cooldown
    # =========================================================================

    @classmethod
    def cooldown_cutoff(cls, now: datetime | None = None) -> datetime:
        """Latest last_visit_date that still allows a pure visit."""
        now = now or timezone.now()
        return now - timedelta(minutes=clubman_settings.VISIT_COOLDOWN_MINUTES)

    @classmethod
    def visit_cooldown(
        cls,
        last_visit_date: datetime | None,
        is_points_transaction: bool,
        now: datetime | None = None,
    ) -> GateResult:
        """
        G1: A visit without spend needs VISIT_COOLDOWN_MINUTES since the last one.

        Points transactions are exempt: customers may spend several times a day.

        Raises:
            GateError: VISIT_COOLDOWN
        """
        if is_points_transaction or last_visit_date is None:
            return GateResult(True, "G1_VisitCooldown")

        now = now or timezone.now()
        if last_visit_date > cls.cooldown_cutoff(now):
            minutes = clubman_settings.VISIT_COOLDOWN_MINUTES
            elapsed = int((now - last_visit_date).total_seconds() // 60)
            raise GateError(
                "G1_VisitCooldown",
                "VISIT_COOLDOWN",
                details={"elapsed_minutes": elapsed, "cooldown_minutes": minutes},
            )

        return GateResult(True, "G1_VisitCooldown")

    @classmethod
    def check_visit_cooldown(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.visit_cooldown(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G2: Single Unlock
    # =========================================================================

    @classmethod
    def single_unlock(cls, customer_id: int, reward) -> GateResult:
        """
        G2: Visits-costed rewards and the welcome gift are claimed once.

        Points-mode rewards are a wallet purchase and may repeat.
        Callers hold the customer row lock, which serializes this check.

        Raises:
            GateError: REWARD_ALREADY_UNLOCKED
        """
        from clubman.models import Redemption

        if reward.is_points_mode and not reward.is_welcome_gift:
            return GateResult(True, "G2_SingleUnlock", "Points reward (repeatable)")

        existing = Redemption.objects.filter(customer_id=customer_id, reward=reward).first()
        if existing:
            raise GateError(
                "G2_SingleUnlock",
                "REWARD_ALREADY_UNLOCKED",
                details={
                    "redemption_code": existing.redemption_code,
                    "status": existing.status,
                },
            )

        return GateResult(True, "G2_SingleUnlock")

    @classmethod
    def check_single_unlock(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.single_unlock(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G3: Single Delivery
    # =========================================================================

    @classmethod
    def single_delivery(cls, redemption) -> GateResult:
        """
        G3: A REDEEMED redemption is terminal.

        Raises:
            GateError: REWARD_ALREADY_REDEEMED
        """
        if redemption.is_redeemed:
            raise GateError(
                "G3_SingleDelivery",
                "REWARD_ALREADY_REDEEMED",
                details={
                    "redeemed_at": (
                        redemption.redeemed_at.isoformat() if redemption.redeemed_at else None
                    ),
                },
            )

        return GateResult(True, "G3_SingleDelivery")

    @classmethod
    def check_single_delivery(cls, redemption) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.single_delivery(redemption)
            return True
        except GateError:
            return False

    # =========================================================================
    # G4: Phone Uniqueness
    # =========================================================================

    @classmethod
    def phone_uniqueness(
        cls,
        program_id: int,
        phone_normalized: str,
        exclude_customer_id: int | None = None,
    ) -> GateResult:
        """
        G4: (program, phone) cannot belong to another customer.

        Raises:
            GateError: PHONE_TAKEN
        """
        from clubman.models import Customer

        query = Customer.objects.filter(program_id=program_id, phone=phone_normalized)
        if exclude_customer_id:
            query = query.exclude(pk=exclude_customer_id)

        if query.exists():
            raise GateError(
                "G4_PhoneUniqueness",
                "PHONE_TAKEN",
                details={"phone": phone_normalized},
            )

        return GateResult(True, "G4_PhoneUniqueness")

    @classmethod
    def check_phone_uniqueness(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.phone_uniqueness(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G5: OTP Validity
    # =========================================================================

    @classmethod
    def otp_validity(cls, customer, code: str, now: datetime | None = None) -> GateResult:
        """
        G5: A pending, unexpired OTP must match the submitted code.

        OTP_BYPASS_CODE, when configured, is accepted in place of the real
        code. It is meant for demo environments only.

        Raises:
            GateError: OTP_NOT_REQUESTED, OTP_EXPIRED, OTP_INVALID
        """
        now = now or timezone.now()

        if not customer.otp_code or not customer.otp_expires_at:
            raise GateError("G5_OtpValidity", "OTP_NOT_REQUESTED")

        if now > customer.otp_expires_at:
            raise GateError("G5_OtpValidity", "OTP_EXPIRED")

        code = (code or "").strip()
        if code == customer.otp_code:
            return GateResult(True, "G5_OtpValidity")

        bypass = clubman_settings.OTP_BYPASS_CODE
        if bypass and code == bypass:
            logger.warning(
                "G5_OtpValidity: OTP bypass code used for customer %s. "
                "Unset CLUBMAN['OTP_BYPASS_CODE'] outside demo environments.",
                customer.pk,
            )
            return GateResult(True, "G5_OtpValidity", "Bypass code accepted")

        raise GateError("G5_OtpValidity", "OTP_INVALID")

    @classmethod
    def check_otp_validity(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.otp_validity(*args, **kwargs)
            return True
        except GateError:
            return False
