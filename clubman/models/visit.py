"""Visit model: append-only scan log."""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class Visit(models.Model):
    """
    Immutable record of one accepted staff scan.

    Backs the customer's cumulative counters as an audit trail.
    Rows are never modified or deleted.
    """

    program = models.ForeignKey(
        "clubman.Program",
        on_delete=models.PROTECT,
        related_name="visits",
        verbose_name=_("programa"),
    )
    customer = models.ForeignKey(
        "clubman.Customer",
        on_delete=models.PROTECT,
        related_name="visits",
        verbose_name=_("cliente"),
    )
    staff_id = models.CharField(_("staff"), max_length=100, blank=True)

    rating = models.PositiveSmallIntegerField(_("calificación"), null=True, blank=True)
    comment = models.TextField(_("comentario"), blank=True)
    spend_amount = models.DecimalField(
        _("consumo"),
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
    )
    points_earned = models.PositiveIntegerField(_("puntos ganados"), default=0)

    visit_date = models.DateTimeField(_("fecha"), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _("visita")
        verbose_name_plural = _("visitas")
        ordering = ["-visit_date"]
        indexes = [
            models.Index(fields=["customer", "-visit_date"], name="clubman_visit_cust_date_idx"),
        ]

    def __str__(self):
        return f"{self.customer_id} @ {self.visit_date:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Visits are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Visits are append-only")
