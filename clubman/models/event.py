"""LoyaltyEvent model: immutable lifecycle log per customer."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class EventType(models.TextChoices):
    VISIT = "VISIT", _("Visita")
    SPEND = "SPEND", _("Consumo")
    REFERRAL = "REFERRAL", _("Referido")
    TIER_UP = "TIER_UP", _("Subió de nivel")
    ADJUSTMENT = "ADJUSTMENT", _("Ajuste")
    REWARD_UNLOCKED = "REWARD_UNLOCKED", _("Premio desbloqueado")
    REWARD_REDEEMED = "REWARD_REDEEMED", _("Premio entregado")


class LoyaltyEvent(models.Model):
    """
    Append-only record of a ledger lifecycle event.

    Rules read recent events of their trigger type to evaluate
    frequency conditions ("2 visits in 7 days").
    """

    program = models.ForeignKey(
        "clubman.Program",
        on_delete=models.PROTECT,
        related_name="events",
        verbose_name=_("programa"),
    )
    customer = models.ForeignKey(
        "clubman.Customer",
        on_delete=models.PROTECT,
        related_name="events",
        verbose_name=_("cliente"),
    )
    event_type = models.CharField(
        _("tipo"),
        max_length=30,
        choices=EventType.choices,
        db_index=True,
    )
    metadata = models.JSONField(_("metadatos"), default=dict, blank=True)
    created_at = models.DateTimeField(_("creado en"), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _("evento de lealtad")
        verbose_name_plural = _("eventos de lealtad")
        ordering = ["-created_at", "-pk"]
        indexes = [
            models.Index(
                fields=["customer", "event_type", "-created_at"],
                name="clubman_event_cust_type_idx",
            ),
        ]

    def __str__(self):
        return f"[{self.event_type}] {self.customer_id}"
