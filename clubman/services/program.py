"""Program operations that write reward rows."""

import logging

from django.db import transaction

from clubman.exceptions import ClubmanError
from clubman.models import GIFT_SENTINEL, Program, Reward

logger = logging.getLogger(__name__)


def sync_welcome_gift(program_id: int) -> Reward | None:
    """
    Mirror the program's welcome-gift toggle and text into its gift reward.

    Enabled: the oldest gift reward is renamed and activated, created if
    missing; any other gift reward is deactivated. Disabled: every gift
    reward is deactivated. Gift rewards are never deleted since
    redemptions may reference them.

    Returns:
        The active gift reward, or None when the gift is disabled

    Raises:
        ClubmanError: PROGRAM_NOT_FOUND
    """
    with transaction.atomic():
        try:
            program = Program.objects.select_for_update().get(pk=program_id)
        except Program.DoesNotExist:
            raise ClubmanError("PROGRAM_NOT_FOUND", program_id=program_id)

        gifts = Reward.objects.filter(program=program, description=GIFT_SENTINEL).order_by("pk")

        if not program.enable_first_visit_gift:
            gifts.filter(is_active=True).update(is_active=False)
            logger.info("Welcome gift disabled for program %s", program.pk)
            return None

        name = program.first_visit_gift_text or "Regalo de bienvenida"
        gift = gifts.first()

        # Deactivate extras first so the one-active-gift constraint holds
        extras = gifts.filter(is_active=True)
        if gift is not None:
            extras = extras.exclude(pk=gift.pk)
        extras.update(is_active=False)

        if gift is None:
            gift = Reward.objects.create(
                program=program,
                name=name,
                description=GIFT_SENTINEL,
                cost_in_visits=0,
                cost_in_points=0,
            )
        else:
            gift.name = name
            gift.is_active = True
            gift.cost_in_visits = 0
            gift.cost_in_points = 0
            gift.save(update_fields=["name", "is_active", "cost_in_visits", "cost_in_points", "updated_at"])

        logger.info("Welcome gift synced for program %s (reward %s)", program.pk, gift.pk)
        return gift
