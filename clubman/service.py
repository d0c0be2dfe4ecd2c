"""
Clubman public API.

Every operation returns a result dataclass (clubman.results) and never
raises: domain errors become failed results with a user-facing message,
store faults are logged and reported as SYSTEM_ERROR.

STAFF (scanning):
    LoyaltyService.validate_scan(token)
    LoyaltyService.log_visit(staff_id, token, rating, comment, spend_amount)
    LoyaltyService.redeem(staff_id, code)

CUSTOMER:
    LoyaltyService.unlock_reward(customer_id, reward_id)
    LoyaltyService.claim_welcome_gift(customer_id)
    LoyaltyService.customer_status(program_id, token)
    LoyaltyService.member_programs(external_user_id)
    LoyaltyService.notification_feed(program_id, customer_id)
    LoyaltyService.mark_notifications_read(customer_id)

IDENTITY:
    LoyaltyService.register / authenticate / send_otp / verify_otp
    LoyaltyService.update_profile / current_session / logout

OWNER:
    LoyaltyService.credit_adjustment / sync_welcome_gift / record_referral
    LoyaltyService.send_notification(program_id, title, message)
"""

import logging
from datetime import date
from decimal import Decimal

from django.db import DatabaseError

from clubman.conf import clubman_settings
from clubman.exceptions import ClubmanError
from clubman.protocols.session import SessionStore
from clubman.results import (
    AuthResult,
    FeedResult,
    GrantResult,
    MembershipsResult,
    NotificationResult,
    OtpResult,
    RedeemResult,
    Result,
    ScanResult,
    StatusResult,
    UnlockResult,
    VisitResult,
)
from clubman.services import identity, ledger, notifications, program, redemption, rules

logger = logging.getLogger(__name__)


class LoyaltyService:
    """
    Clubman public API.

    Uses @classmethod for extensibility, like the other service classes.
    """

    @classmethod
    def _call(cls, result_cls, fn, *args, **kwargs):
        """Run ``fn``; return (value, None) or (None, failed result)."""
        try:
            return fn(*args, **kwargs), None
        except ClubmanError as e:
            logger.info("%s rejected: %s", fn.__name__, e.code)
            return None, result_cls.failure(e)
        except DatabaseError:
            logger.exception("%s failed", fn.__name__)
            return None, result_cls.failure(ClubmanError("SYSTEM_ERROR"))

    # ======================================================================
    # STAFF
    # ======================================================================

    @classmethod
    def validate_scan(cls, token: str) -> ScanResult:
        preview, failed = cls._call(ScanResult, ledger.validate_scan, token)
        if failed:
            return failed
        return ScanResult(**preview)

    @classmethod
    def log_visit(
        cls,
        staff_id: str,
        token: str,
        rating: int | None = None,
        comment: str = "",
        spend_amount: Decimal | None = None,
    ) -> VisitResult:
        summary, failed = cls._call(
            VisitResult,
            ledger.log_visit,
            staff_id,
            token,
            rating=rating,
            comment=comment,
            spend_amount=spend_amount,
        )
        if failed:
            return failed
        return VisitResult(**summary)

    @classmethod
    def redeem(cls, staff_id: str, code: str, evidence_ref: str = "") -> RedeemResult:
        delivered, failed = cls._call(
            RedeemResult,
            redemption.redeem,
            staff_id,
            code,
            evidence_ref=evidence_ref,
        )
        if failed:
            return failed
        return RedeemResult(**delivered)

    # ======================================================================
    # CUSTOMER
    # ======================================================================

    @classmethod
    def _unlocked(cls, claim) -> UnlockResult:
        return UnlockResult(
            redemption_id=claim.pk,
            redemption_code=claim.redemption_code,
            reward_name=claim.reward.name,
            points_spent=claim.points_spent,
        )

    @classmethod
    def unlock_reward(cls, customer_id: int, reward_id: int) -> UnlockResult:
        claim, failed = cls._call(UnlockResult, redemption.unlock, customer_id, reward_id)
        if failed:
            return failed
        return cls._unlocked(claim)

    @classmethod
    def claim_welcome_gift(cls, customer_id: int) -> UnlockResult:
        claim, failed = cls._call(UnlockResult, redemption.claim_welcome_gift, customer_id)
        if failed:
            return failed
        return cls._unlocked(claim)

    @classmethod
    def customer_status(cls, program_id: int, token: str) -> StatusResult:
        card, failed = cls._call(StatusResult, identity.status, program_id, token)
        if failed:
            return failed
        return StatusResult(**card)

    @classmethod
    def member_programs(cls, external_user_id: str) -> MembershipsResult:
        cards, failed = cls._call(MembershipsResult, identity.member_programs, external_user_id)
        if failed:
            return failed
        return MembershipsResult(memberships=cards)

    @classmethod
    def notification_feed(cls, program_id: int, customer_id: int) -> FeedResult:
        feed, failed = cls._call(FeedResult, notifications.feed, program_id, customer_id)
        if failed:
            return failed
        return FeedResult(**feed)

    @classmethod
    def mark_notifications_read(cls, customer_id: int) -> Result:
        _, failed = cls._call(Result, notifications.mark_read, customer_id)
        return failed or Result()

    # ======================================================================
    # IDENTITY
    # ======================================================================

    @classmethod
    def register(
        cls,
        program_id: int,
        phone: str,
        name: str | None = None,
        email: str | None = None,
    ) -> AuthResult:
        resolved, failed = cls._call(
            AuthResult, identity.resolve, program_id, phone, name=name, email=email
        )
        if failed:
            return failed
        customer, created = resolved
        return AuthResult(customer_id=customer.pk, token=customer.token, created=created)

    @classmethod
    def authenticate(
        cls,
        program_id: int,
        phone: str,
        session: SessionStore,
        **profile,
    ) -> AuthResult:
        resolved, failed = cls._call(
            AuthResult, identity.authenticate, program_id, phone, session, **profile
        )
        if failed:
            return failed
        customer, created = resolved
        return AuthResult(customer_id=customer.pk, token=customer.token, created=created)

    @classmethod
    def send_otp(cls, program_id: int, phone: str) -> OtpResult:
        sent, failed = cls._call(OtpResult, identity.send_otp, program_id, phone)
        if failed:
            return failed
        customer, code = sent
        return OtpResult(
            message="Code sent",
            expires_at=customer.otp_expires_at,
            dev_code=code if clubman_settings.EXPOSE_OTP_CODE else None,
        )

    @classmethod
    def verify_otp(
        cls,
        program_id: int,
        phone: str,
        code: str,
        session: SessionStore | None = None,
    ) -> AuthResult:
        customer, failed = cls._call(
            AuthResult, identity.verify_otp, program_id, phone, code, session=session
        )
        if failed:
            return failed
        return AuthResult(customer_id=customer.pk, token=customer.token)

    @classmethod
    def update_profile(
        cls,
        token: str,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        photo_url: str | None = None,
        birthday: date | None = None,
    ) -> AuthResult:
        customer, failed = cls._call(
            AuthResult,
            identity.update_profile,
            token,
            name=name,
            email=email,
            phone=phone,
            photo_url=photo_url,
            birthday=birthday,
        )
        if failed:
            return failed
        return AuthResult(customer_id=customer.pk, token=customer.token)

    @classmethod
    def current_session(cls, session: SessionStore) -> AuthResult:
        customer, failed = cls._call(AuthResult, identity.current_customer, session)
        if failed:
            return failed
        if customer is None:
            return AuthResult.failure(ClubmanError("CUSTOMER_NOT_FOUND"))
        return AuthResult(customer_id=customer.pk, token=customer.token)

    @classmethod
    def logout(cls, session: SessionStore) -> Result:
        identity.logout(session)
        return Result()

    # ======================================================================
    # OWNER
    # ======================================================================

    @classmethod
    def credit_adjustment(
        cls,
        customer_id: int,
        staff_id: str,
        visits: int = 0,
        points: int = 0,
        reason: str = "",
    ) -> VisitResult:
        summary, failed = cls._call(
            VisitResult,
            ledger.credit_adjustment,
            customer_id,
            staff_id,
            visits=visits,
            points=points,
            reason=reason,
        )
        if failed:
            return failed
        return VisitResult(**summary)

    @classmethod
    def sync_welcome_gift(cls, program_id: int) -> Result:
        _, failed = cls._call(Result, program.sync_welcome_gift, program_id)
        return failed or Result()

    @classmethod
    def record_referral(cls, customer_id: int, metadata: dict | None = None) -> GrantResult:
        granted, failed = cls._call(GrantResult, rules.record_referral, customer_id, metadata)
        if failed:
            return failed
        return GrantResult(granted_codes=[r.redemption_code for r in granted])

    @classmethod
    def send_notification(cls, program_id: int, title: str, message: str) -> NotificationResult:
        sent, failed = cls._call(NotificationResult, notifications.send, program_id, title, message)
        if failed:
            return failed
        return NotificationResult(notification_id=sent.pk, created_at=sent.created_at)
