"""Rule evaluation - grants rewards when program rules fire."""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from clubman.exceptions import ClubmanError
from clubman.gates import Gates
from clubman.models import (
    Customer,
    EventType,
    LoyaltyEvent,
    Redemption,
    RedemptionSource,
    RedemptionStatus,
    Reward,
    Rule,
    RuleTrigger,
)
from clubman.rules import RuleContext
from clubman.services.redemption import create_redemption

logger = logging.getLogger(__name__)


def _grant_blocked(customer: Customer, reward: Reward) -> bool:
    """Ladder rewards are held once ever; points rewards once at a time."""
    if not Gates.check_single_unlock(customer.pk, reward):
        return True
    return Redemption.objects.filter(
        customer=customer,
        reward=reward,
        status=RedemptionStatus.PENDING,
    ).exists()


def process_event(
    customer: Customer,
    trigger: str,
    amount: Decimal | None = None,
    now: datetime | None = None,
) -> list[Redemption]:
    """
    Evaluate active rules for ``trigger`` and grant their rewards.

    The triggering event must already be logged, so frequency conditions
    count it. Must run inside the caller's transaction.

    Returns:
        Redemptions granted by firing rules
    """
    now = now or timezone.now()
    granted = []

    rules = Rule.objects.filter(
        program_id=customer.program_id,
        trigger=trigger,
        is_active=True,
    ).select_related("reward")

    for rule in rules:
        condition = rule.condition

        recent = 0
        if condition.needs_history:
            events = LoyaltyEvent.objects.filter(customer=customer, event_type=trigger)
            if condition.days:
                events = events.filter(created_at__gte=now - timedelta(days=condition.days))
            recent = events.count()

        if not condition.is_met(RuleContext(now=now, amount=amount, recent_events=recent)):
            continue

        reward = rule.reward
        if reward is None or not reward.is_active:
            logger.debug("Rule %s fired without an active reward", rule.pk)
            continue
        if _grant_blocked(customer, reward):
            continue

        granted.append(create_redemption(customer, reward, source=RedemptionSource.RULE))
        logger.info("Rule %s granted reward %s to customer %s", rule.pk, reward.pk, customer.pk)

    return granted


def record_referral(customer_id: int, metadata: dict | None = None) -> list[Redemption]:
    """
    Log a referral by ``customer_id`` and run REFERRAL rules.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND
    """
    with transaction.atomic():
        try:
            customer = Customer.objects.select_for_update().get(pk=customer_id)
        except Customer.DoesNotExist:
            raise ClubmanError("CUSTOMER_NOT_FOUND", customer_id=customer_id)

        LoyaltyEvent.objects.create(
            program_id=customer.program_id,
            customer=customer,
            event_type=EventType.REFERRAL,
            metadata=metadata or {},
        )
        return process_event(customer, RuleTrigger.REFERRAL)
