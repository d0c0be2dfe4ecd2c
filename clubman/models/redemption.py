"""Redemption model: single-use reward claims."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class RedemptionStatus(models.TextChoices):
    PENDING = "PENDING", _("Pendiente")
    REDEEMED = "REDEEMED", _("Entregado")


class RedemptionSource(models.TextChoices):
    UNLOCK = "UNLOCK", _("Desbloqueo")
    WELCOME_GIFT = "WELCOME_GIFT", _("Regalo de bienvenida")
    RULE = "RULE", _("Regla")


class Redemption(models.Model):
    """
    One reward claim by one customer.

    Lifecycle: PENDING -> REDEEMED (terminal). ``redemption_code`` is
    globally unique because staff scan a bare code with no program
    context. The status transition is a conditional update, see
    clubman.services.redemption.redeem().
    """

    program = models.ForeignKey(
        "clubman.Program",
        on_delete=models.PROTECT,
        related_name="redemptions",
        verbose_name=_("programa"),
    )
    customer = models.ForeignKey(
        "clubman.Customer",
        on_delete=models.PROTECT,
        related_name="redemptions",
        verbose_name=_("cliente"),
    )
    reward = models.ForeignKey(
        "clubman.Reward",
        on_delete=models.PROTECT,
        related_name="redemptions",
        verbose_name=_("premio"),
    )

    status = models.CharField(
        _("estado"),
        max_length=20,
        choices=RedemptionStatus.choices,
        default=RedemptionStatus.PENDING,
        db_index=True,
    )
    redemption_code = models.CharField(_("código"), max_length=16, unique=True)
    source = models.CharField(
        _("origen"),
        max_length=20,
        choices=RedemptionSource.choices,
        default=RedemptionSource.UNLOCK,
    )
    points_spent = models.PositiveIntegerField(_("puntos usados"), default=0)

    # Set on delivery
    staff_id = models.CharField(_("entregado por"), max_length=100, blank=True)
    redeemed_at = models.DateTimeField(_("entregado en"), null=True, blank=True)
    evidence_ref = models.CharField(_("evidencia"), max_length=500, blank=True)

    created_at = models.DateTimeField(_("creado en"), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _("canje")
        verbose_name_plural = _("canjes")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "reward"], name="clubman_redemp_cust_rew_idx"),
        ]

    def __str__(self):
        return f"{self.redemption_code} [{self.status}]"

    @property
    def is_redeemed(self) -> bool:
        return self.status == RedemptionStatus.REDEEMED
