"""Tier model: ordered status thresholds."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Tier(models.Model):
    """
    Status tier within a program.

    Tiers are evaluated in ascending ``order``. A threshold of 0 means
    "not required", so a tier with both thresholds at 0 matches every
    customer (base tier).
    """

    program = models.ForeignKey(
        "clubman.Program",
        on_delete=models.CASCADE,
        related_name="tiers",
        verbose_name=_("programa"),
    )
    name = models.CharField(_("nombre"), max_length=100)
    order = models.PositiveIntegerField(_("orden"), default=0)
    required_visits = models.PositiveIntegerField(_("visitas requeridas"), default=0)
    required_points = models.PositiveIntegerField(_("puntos requeridos"), default=0)
    color = models.CharField(_("color"), max_length=20, blank=True)
    benefits = models.TextField(_("beneficios"), blank=True)
    created_at = models.DateTimeField(_("creado en"), auto_now_add=True)

    class Meta:
        verbose_name = _("nivel")
        verbose_name_plural = _("niveles")
        ordering = ["program", "order", "pk"]

    def __str__(self):
        return f"{self.name} (#{self.order})"

    def is_met_by(self, total_visits: int, total_points: int) -> bool:
        """Both configured thresholds must be reached; 0 skips a threshold."""
        visits_ok = self.required_visits == 0 or total_visits >= self.required_visits
        points_ok = self.required_points == 0 or total_points >= self.required_points
        return visits_ok and points_ok
