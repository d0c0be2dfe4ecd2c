"""Ledger engine - applies visits and spend to customer counters.

Every mutation runs in one transaction with the customer row locked.
Counters change through F() expressions; a pure visit additionally
requires last_visit_date to still be outside the cooldown window at
write time, so two racing scans cannot both be credited.
"""

import logging
from decimal import ROUND_FLOOR, Decimal, InvalidOperation

from django.db import transaction
from django.db.models import ExpressionWrapper, F, FloatField, Q
from django.utils import timezone

from clubman.conf import clubman_settings
from clubman.exceptions import ClubmanError
from clubman.gates import GateError, Gates
from clubman.models import Customer, EventType, LoyaltyEvent, RuleTrigger, Visit
from clubman.services import rules as rules_service
from clubman.services import tiers
from clubman.services.identity import get_by_token
from clubman.signals import visit_logged

logger = logging.getLogger(__name__)


def points_for(spend_amount: Decimal, points_percentage: int) -> int:
    """floor(spend * percentage / 100)."""
    if not points_percentage or spend_amount <= 0:
        return 0
    earned = spend_amount * points_percentage / Decimal(100)
    return int(earned.to_integral_value(rounding=ROUND_FLOOR))


def validate_scan(token: str) -> dict:
    """
    Preview what a scan would act on, without mutating anything.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND
    """
    customer = get_by_token(token)
    return {
        "customer_name": customer.name or clubman_settings.DEFAULT_CUSTOMER_NAME,
        "program_type": str(customer.program.program_type),
        "program_id": customer.program_id,
    }


def _to_spend(spend_amount) -> Decimal:
    try:
        amount = Decimal(str(spend_amount))
    except InvalidOperation:
        raise ClubmanError("INVALID_SPEND")
    if not amount.is_finite() or amount < 0:
        raise ClubmanError("INVALID_SPEND")
    return amount


def _summary(customer: Customer, points_earned: int) -> dict:
    return {
        "new_visits": customer.current_visits,
        "new_points": customer.current_points,
        "points_earned": points_earned,
        "tier_name": customer.tier.name if customer.tier_id else None,
    }


def log_visit(
    staff_id: str,
    token: str,
    rating: int | None = None,
    comment: str = "",
    spend_amount: Decimal | None = None,
) -> dict:
    """
    Apply exactly one visit to the customer behind ``token``.

    A spend amount makes it a points transaction: it earns points, still
    counts as a visit, and is exempt from the cooldown.

    Args:
        staff_id: Staff actor performing the scan
        token: Customer access token
        rating: Optional 1-5 rating
        comment: Optional comment stored on the visit
        spend_amount: Optional spend

    Returns:
        Dict with new_visits, new_points, points_earned, tier_name

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND, VISIT_COOLDOWN, INVALID_RATING, INVALID_SPEND
    """
    if rating is not None and (
        isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5
    ):
        raise ClubmanError("INVALID_RATING", rating=rating)

    is_points_transaction = spend_amount is not None
    amount = _to_spend(spend_amount) if is_points_transaction else Decimal("0")
    now = timezone.now()

    with transaction.atomic():
        customer = get_by_token(token, for_update=True)
        program = customer.program

        Gates.visit_cooldown(customer.last_visit_date, is_points_transaction, now=now)

        points_earned = points_for(amount, program.points_percentage) if is_points_transaction else 0

        updates = {
            "total_visits": F("total_visits") + 1,
            "current_visits": F("current_visits") + 1,
            "last_visit_date": now,
            "updated_at": now,
        }
        if points_earned:
            updates["total_points"] = F("total_points") + points_earned
            updates["current_points"] = F("current_points") + points_earned
        if rating is not None:
            # Running mean, no per-sample history
            updates["average_rating"] = ExpressionWrapper(
                (F("average_rating") * F("rating_count") + rating) / (F("rating_count") + 1),
                output_field=FloatField(),
            )
            updates["rating_count"] = F("rating_count") + 1

        qs = Customer.objects.filter(pk=customer.pk)
        if not is_points_transaction:
            qs = qs.filter(
                Q(last_visit_date__isnull=True)
                | Q(last_visit_date__lte=Gates.cooldown_cutoff(now))
            )
        if qs.update(**updates) == 0:
            raise GateError("G1_VisitCooldown", "VISIT_COOLDOWN")

        customer.refresh_from_db()

        visit = Visit.objects.create(
            program=program,
            customer=customer,
            staff_id=staff_id or clubman_settings.SYSTEM_ACTOR,
            rating=rating,
            comment=comment or "",
            spend_amount=amount,
            points_earned=points_earned,
        )

        if is_points_transaction:
            trigger = RuleTrigger.SPEND
            LoyaltyEvent.objects.create(
                program=program,
                customer=customer,
                event_type=EventType.SPEND,
                metadata={
                    "visit_id": visit.pk,
                    "amount": str(amount),
                    "points_earned": points_earned,
                },
            )
        else:
            trigger = RuleTrigger.VISIT
            LoyaltyEvent.objects.create(
                program=program,
                customer=customer,
                event_type=EventType.VISIT,
                metadata={"visit_id": visit.pk},
            )

        tiers.evaluate(customer)
        rules_service.process_event(
            customer,
            trigger,
            amount=amount if is_points_transaction else None,
            now=now,
        )

    logger.info(
        "Visit logged: customer=%s staff=%s points=%s",
        customer.pk,
        visit.staff_id,
        points_earned,
    )
    visit_logged.send(
        sender=Customer,
        customer=customer,
        visit=visit,
        points_earned=points_earned,
    )
    return _summary(customer, points_earned)


def credit_adjustment(
    customer_id: int,
    staff_id: str,
    visits: int = 0,
    points: int = 0,
    reason: str = "",
) -> dict:
    """
    Administrative correction: credit visits and/or points.

    Deltas must be non-negative so lifetime totals stay monotonic.
    Both total_* and current_* move; last_visit_date does not.

    Raises:
        ClubmanError: INVALID_ADJUSTMENT, CUSTOMER_NOT_FOUND
    """
    if visits < 0 or points < 0 or (visits == 0 and points == 0):
        raise ClubmanError("INVALID_ADJUSTMENT", visits=visits, points=points)

    with transaction.atomic():
        try:
            customer = Customer.objects.select_for_update().get(pk=customer_id)
        except Customer.DoesNotExist:
            raise ClubmanError("CUSTOMER_NOT_FOUND", customer_id=customer_id)

        Customer.objects.filter(pk=customer.pk).update(
            total_visits=F("total_visits") + visits,
            current_visits=F("current_visits") + visits,
            total_points=F("total_points") + points,
            current_points=F("current_points") + points,
            updated_at=timezone.now(),
        )
        customer.refresh_from_db()

        LoyaltyEvent.objects.create(
            program_id=customer.program_id,
            customer=customer,
            event_type=EventType.ADJUSTMENT,
            metadata={
                "visits": visits,
                "points": points,
                "reason": reason,
                "staff_id": staff_id or clubman_settings.SYSTEM_ACTOR,
            },
        )
        tiers.evaluate(customer)

    logger.info("Adjustment on customer %s: +%s visits, +%s points", customer.pk, visits, points)
    return _summary(customer, points)
