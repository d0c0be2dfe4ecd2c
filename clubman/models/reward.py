"""Reward model: program catalog entries."""

from django.db import models
from django.utils.translation import gettext_lazy as _

# Reserved description marking the program's welcome gift
GIFT_SENTINEL = "__SYSTEM_GIFT__"


class Reward(models.Model):
    """
    Reward that customers can unlock.

    Cost modes are exclusive:
    - Points mode (cost_in_points > 0): spends current_points.
    - Visits mode (cost_in_points == 0): milestone on a cumulative ladder,
      unlockable once per customer, consumes nothing.

    cost_in_visits acts as a visits floor in both modes.
    """

    program = models.ForeignKey(
        "clubman.Program",
        on_delete=models.CASCADE,
        related_name="rewards",
        verbose_name=_("programa"),
    )
    name = models.CharField(_("nombre"), max_length=200)
    description = models.TextField(_("descripción"), blank=True)
    cost_in_visits = models.PositiveIntegerField(_("costo en visitas"), default=0)
    cost_in_points = models.PositiveIntegerField(_("costo en puntos"), default=0)
    validity_days = models.PositiveIntegerField(_("vigencia (días)"), null=True, blank=True)
    is_active = models.BooleanField(_("activo"), default=True)
    created_at = models.DateTimeField(_("creado en"), auto_now_add=True)
    updated_at = models.DateTimeField(_("actualizado en"), auto_now=True)

    class Meta:
        verbose_name = _("premio")
        verbose_name_plural = _("premios")
        ordering = ["program", "cost_in_visits", "cost_in_points"]
        constraints = [
            models.UniqueConstraint(
                fields=["program"],
                condition=models.Q(description=GIFT_SENTINEL, is_active=True),
                name="clubman_one_active_gift_per_program",
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def is_points_mode(self) -> bool:
        return self.cost_in_points > 0

    @property
    def is_welcome_gift(self) -> bool:
        return self.description == GIFT_SENTINEL
