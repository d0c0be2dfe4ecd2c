"""Tier evaluator - the only writer of Customer.tier.

Tiers are walked in ascending ``order``; every qualifying tier overwrites
the candidate, so the last (highest) qualifying tier wins. Configurations
must grow stricter with ``order`` for this to mean "highest tier reached".

Upgrade-only: a customer is never moved to a tier ranked below the one
they hold.
"""

import logging
from collections.abc import Iterable

from clubman.models import Customer, EventType, LoyaltyEvent, Tier
from clubman.signals import tier_changed

logger = logging.getLogger(__name__)


def eligible_tier(tiers: Iterable[Tier], total_visits: int, total_points: int) -> Tier | None:
    """Highest-order tier met by the totals, or None."""
    best = None
    for tier in sorted(tiers, key=lambda t: (t.order, t.pk or 0)):
        if tier.is_met_by(total_visits, total_points):
            best = tier
    return best


def _ranks_above(candidate: Tier, current: Tier | None) -> bool:
    if current is None:
        return True
    return (candidate.order, candidate.pk) > (current.order, current.pk)


def evaluate(customer: Customer) -> Tier | None:
    """
    Recompute and apply the customer's tier.

    Must run inside the transaction that changed the totals, on a
    refreshed row, so it sees post-mutation values.

    Returns:
        The newly applied Tier, or None when nothing changed.
    """
    tiers = list(Tier.objects.filter(program_id=customer.program_id))
    best = eligible_tier(tiers, customer.total_visits, customer.total_points)

    if best is None or best.pk == customer.tier_id:
        return None

    current = next((t for t in tiers if t.pk == customer.tier_id), None)
    if not _ranks_above(best, current):
        return None

    previous_id = customer.tier_id
    Customer.objects.filter(pk=customer.pk).update(tier=best)
    customer.tier = best

    LoyaltyEvent.objects.create(
        program_id=customer.program_id,
        customer=customer,
        event_type=EventType.TIER_UP,
        metadata={"new_tier_id": best.pk, "previous_tier_id": previous_id},
    )
    logger.info("Customer %s reached tier %s", customer.pk, best.name)

    tier_changed.send(
        sender=Customer,
        customer=customer,
        tier=best,
        previous_tier=current,
    )
    return best
