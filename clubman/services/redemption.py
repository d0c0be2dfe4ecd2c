"""Reward unlock and redemption state machine.

States: (none) -> PENDING -> REDEEMED (terminal).

unlock():  lock customer, check floor + duplicate, optionally spend
           points, insert PENDING redemption. One transaction.
redeem():  conditional UPDATE ... WHERE status = PENDING. Zero rows
           updated means another terminal delivered it first.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from clubman.conf import clubman_settings
from clubman.exceptions import ClubmanError
from clubman.gates import GateError, Gates
from clubman.models import (
    GIFT_SENTINEL,
    Customer,
    EventType,
    LoyaltyEvent,
    Redemption,
    RedemptionSource,
    RedemptionStatus,
    Reward,
)
from clubman.signals import reward_redeemed, reward_unlocked
from clubman.utils import new_redemption_code, normalize_redemption_code

logger = logging.getLogger(__name__)


def _lock_customer(customer_id: int) -> Customer:
    try:
        return (
            Customer.objects.select_for_update(of=("self",))
            .select_related("program")
            .get(pk=customer_id)
        )
    except Customer.DoesNotExist:
        raise ClubmanError("CUSTOMER_NOT_FOUND", customer_id=customer_id)


def _get_reward(reward_id: int, program_id: int) -> Reward:
    try:
        return Reward.objects.get(pk=reward_id, program_id=program_id)
    except Reward.DoesNotExist:
        raise ClubmanError("REWARD_NOT_FOUND", reward_id=reward_id)


def create_redemption(
    customer: Customer,
    reward: Reward,
    source: str = RedemptionSource.UNLOCK,
    points_spent: int = 0,
) -> Redemption:
    """
    Insert a PENDING redemption with a fresh unique code.

    Retries on code collision up to REDEMPTION_CODE_ATTEMPTS.
    Callers own the surrounding transaction and eligibility checks.
    """
    attempts = clubman_settings.REDEMPTION_CODE_ATTEMPTS
    length = clubman_settings.REDEMPTION_CODE_LENGTH

    for attempt in range(1, attempts + 1):
        code = new_redemption_code(length)
        try:
            with transaction.atomic():
                redemption = Redemption.objects.create(
                    program_id=customer.program_id,
                    customer=customer,
                    reward=reward,
                    status=RedemptionStatus.PENDING,
                    redemption_code=code,
                    source=source,
                    points_spent=points_spent,
                )
            break
        except IntegrityError:
            if attempt == attempts or not Redemption.objects.filter(redemption_code=code).exists():
                raise
            logger.warning("Redemption code collision (%s), retrying", code)

    LoyaltyEvent.objects.create(
        program_id=customer.program_id,
        customer=customer,
        event_type=EventType.REWARD_UNLOCKED,
        metadata={
            "reward_id": reward.pk,
            "redemption_code": redemption.redemption_code,
            "source": str(source),
            "points_spent": points_spent,
        },
    )
    reward_unlocked.send(sender=Redemption, redemption=redemption)
    return redemption


def _claim_gift(customer: Customer, reward: Reward | None) -> Redemption:
    program = customer.program
    if not program.enable_first_visit_gift or reward is None or not reward.is_active:
        raise ClubmanError("GIFT_UNAVAILABLE")

    Gates.single_unlock(customer.pk, reward)
    return create_redemption(customer, reward, source=RedemptionSource.WELCOME_GIFT)


def unlock(customer_id: int, reward_id: int) -> Redemption:
    """
    Unlock a reward for a customer, producing a PENDING redemption.

    - The visits floor (cost_in_visits) applies in both cost modes.
    - Visits-mode rewards are a cumulative ladder: unlockable once,
      nothing is consumed.
    - Points-mode rewards spend current_points (never total_points).
    - The welcome gift follows claim_welcome_gift() rules instead.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND, REWARD_NOT_FOUND, REWARD_INACTIVE,
            NOT_ENOUGH_VISITS, NOT_ENOUGH_POINTS, REWARD_ALREADY_UNLOCKED,
            GIFT_UNAVAILABLE
    """
    with transaction.atomic():
        customer = _lock_customer(customer_id)
        reward = _get_reward(reward_id, customer.program_id)

        if reward.is_welcome_gift:
            redemption = _claim_gift(customer, reward)
        else:
            if not reward.is_active:
                raise ClubmanError("REWARD_INACTIVE", reward_id=reward.pk)

            if customer.current_visits < reward.cost_in_visits:
                raise ClubmanError(
                    "NOT_ENOUGH_VISITS",
                    required=reward.cost_in_visits,
                    current=customer.current_visits,
                )

            Gates.single_unlock(customer.pk, reward)

            points_spent = 0
            if reward.is_points_mode:
                cost = reward.cost_in_points
                spent = Customer.objects.filter(
                    pk=customer.pk,
                    current_points__gte=cost,
                ).update(
                    current_points=F("current_points") - cost,
                    updated_at=timezone.now(),
                )
                if not spent:
                    raise ClubmanError(
                        "NOT_ENOUGH_POINTS",
                        required=cost,
                        current=customer.current_points,
                    )
                points_spent = cost

            redemption = create_redemption(
                customer,
                reward,
                source=RedemptionSource.UNLOCK,
                points_spent=points_spent,
            )

    logger.info(
        "Reward %s unlocked by customer %s (code %s)",
        reward.pk,
        customer.pk,
        redemption.redemption_code,
    )
    return redemption


def claim_welcome_gift(customer_id: int) -> Redemption:
    """
    Claim the program's welcome gift.

    No visits/points cost; gated by Program.enable_first_visit_gift and the
    gift reward's is_active. At most one per customer.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND, GIFT_UNAVAILABLE, REWARD_ALREADY_UNLOCKED
    """
    with transaction.atomic():
        customer = _lock_customer(customer_id)
        reward = Reward.objects.filter(
            program_id=customer.program_id,
            description=GIFT_SENTINEL,
            is_active=True,
        ).first()
        redemption = _claim_gift(customer, reward)

    logger.info("Welcome gift claimed by customer %s", customer.pk)
    return redemption


def redeem(staff_id: str, code: str, evidence_ref: str = "") -> dict:
    """
    Deliver a redemption: PENDING -> REDEEMED, exactly once.

    Args:
        staff_id: Staff delivering the reward (SYSTEM_ACTOR when empty)
        code: Redemption code as scanned or typed ("R:" prefix allowed)
        evidence_ref: Optional evidence reference (photo URL, ticket id)

    Returns:
        Dict with reward_name and customer_name

    Raises:
        ClubmanError: CODE_REQUIRED, REDEMPTION_NOT_FOUND, REWARD_ALREADY_REDEEMED
    """
    normalized = normalize_redemption_code(code)
    if not normalized:
        raise ClubmanError("CODE_REQUIRED")

    actor = staff_id or clubman_settings.SYSTEM_ACTOR

    with transaction.atomic():
        try:
            redemption = Redemption.objects.select_related("reward", "customer").get(
                redemption_code=normalized
            )
        except Redemption.DoesNotExist:
            raise ClubmanError("REDEMPTION_NOT_FOUND", redemption_code=normalized)

        Gates.single_delivery(redemption)

        now = timezone.now()
        delivered = Redemption.objects.filter(
            pk=redemption.pk,
            status=RedemptionStatus.PENDING,
        ).update(
            status=RedemptionStatus.REDEEMED,
            staff_id=actor,
            redeemed_at=now,
            evidence_ref=evidence_ref or "",
        )
        if not delivered:
            raise GateError("G3_SingleDelivery", "REWARD_ALREADY_REDEEMED")

        redemption.status = RedemptionStatus.REDEEMED
        redemption.staff_id = actor
        redemption.redeemed_at = now
        redemption.evidence_ref = evidence_ref or ""

        LoyaltyEvent.objects.create(
            program_id=redemption.program_id,
            customer_id=redemption.customer_id,
            event_type=EventType.REWARD_REDEEMED,
            metadata={
                "reward_id": redemption.reward_id,
                "redemption_code": redemption.redemption_code,
                "staff_id": actor,
            },
        )

    logger.info("Redemption %s delivered by %s", redemption.redemption_code, actor)
    reward_redeemed.send(sender=Redemption, redemption=redemption, staff_id=actor)

    return {
        "reward_name": redemption.reward.name,
        "customer_name": redemption.customer.display_name,
    }
