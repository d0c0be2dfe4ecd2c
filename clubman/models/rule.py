"""Rule model: event-triggered reward grants."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class RuleTrigger(models.TextChoices):
    VISIT = "VISIT", _("Visita")
    SPEND = "SPEND", _("Consumo")
    REFERRAL = "REFERRAL", _("Referido")


class Rule(models.Model):
    """
    Program rule: when ``trigger`` happens and ``conditions`` hold,
    the linked reward is granted as a pending redemption.

    ``conditions`` is stored as JSON and read back through
    ``condition`` as a typed value (see clubman.rules).
    """

    program = models.ForeignKey(
        "clubman.Program",
        on_delete=models.CASCADE,
        related_name="rules",
        verbose_name=_("programa"),
    )
    name = models.CharField(_("nombre"), max_length=200)
    description = models.TextField(_("descripción"), blank=True)
    trigger = models.CharField(_("disparador"), max_length=20)
    conditions = models.JSONField(_("condiciones"), default=dict, blank=True)
    reward = models.ForeignKey(
        "clubman.Reward",
        on_delete=models.SET_NULL,
        related_name="rules",
        null=True,
        blank=True,
        verbose_name=_("premio"),
    )
    is_active = models.BooleanField(_("activa"), default=True)
    created_at = models.DateTimeField(_("creada en"), auto_now_add=True)

    class Meta:
        verbose_name = _("regla")
        verbose_name_plural = _("reglas")
        ordering = ["program", "pk"]

    def __str__(self):
        return f"{self.name} [{self.trigger}]"

    @property
    def condition(self):
        from clubman.rules import parse_condition

        return parse_condition(self.trigger, self.conditions)
