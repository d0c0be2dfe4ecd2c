"""Customer model (one row per program + phone).

Counters:
    total_visits / total_points
        Lifetime accumulation. Never decrease.
    current_visits / current_points
        Spendable or ladder-relevant balance. Visit logging increments both
        families; points-mode redemption decrements current_points only;
        visits-mode redemption touches neither.

tier is written only by clubman.services.tiers.evaluate().
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Customer(models.Model):
    """
    Loyalty member of one program.

    Created lazily on first authentication or first staff scan. Never
    hard-deleted. ``token`` is the durable access credential behind
    magic links and cards: once issued it never changes.
    """

    program = models.ForeignKey(
        "clubman.Program",
        on_delete=models.PROTECT,
        related_name="customers",
        verbose_name=_("programa"),
    )

    # Natural key (program, phone)
    phone = models.CharField(_("teléfono"), max_length=30)
    token = models.CharField(
        _("token de acceso"),
        max_length=64,
        unique=True,
        null=True,
        blank=True,
        editable=False,
    )

    # Profile (filled as captured)
    name = models.CharField(_("nombre"), max_length=200, blank=True)
    email = models.EmailField(_("email"), blank=True)
    photo_url = models.CharField(_("foto"), max_length=500, blank=True)
    birthday = models.DateField(_("cumpleaños"), null=True, blank=True)
    external_user_id = models.CharField(
        _("usuario externo"),
        max_length=100,
        blank=True,
        db_index=True,
    )
    is_phone_verified = models.BooleanField(_("teléfono verificado"), default=False)

    # Ledger
    total_visits = models.PositiveIntegerField(_("visitas totales"), default=0)
    current_visits = models.PositiveIntegerField(_("visitas actuales"), default=0)
    total_points = models.PositiveIntegerField(_("puntos totales"), default=0)
    current_points = models.PositiveIntegerField(_("puntos actuales"), default=0)
    average_rating = models.FloatField(_("calificación promedio"), default=0.0)
    rating_count = models.PositiveIntegerField(_("calificaciones"), default=0)
    last_visit_date = models.DateTimeField(_("última visita"), null=True, blank=True)
    last_notification_read_at = models.DateTimeField(
        _("notificaciones leídas en"),
        null=True,
        blank=True,
    )

    tier = models.ForeignKey(
        "clubman.Tier",
        on_delete=models.SET_NULL,
        related_name="customers",
        null=True,
        blank=True,
        verbose_name=_("nivel"),
    )

    # One-time password (cleared after verification)
    otp_code = models.CharField(_("código OTP"), max_length=6, blank=True)
    otp_expires_at = models.DateTimeField(_("OTP expira"), null=True, blank=True)

    created_at = models.DateTimeField(_("creado en"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("actualizado en"), auto_now=True)

    class Meta:
        verbose_name = _("cliente")
        verbose_name_plural = _("clientes")
        ordering = ["-last_visit_date", "pk"]
        constraints = [
            models.UniqueConstraint(
                fields=["program", "phone"],
                name="clubman_customer_program_phone",
            ),
        ]

    def __str__(self):
        return f"{self.display_name} ({self.phone})"

    @property
    def display_name(self) -> str:
        return self.name or self.phone

    def save(self, *args, **kwargs):
        # Same normalization on every write path
        if self.phone:
            from clubman.utils import normalize_phone

            self.phone = normalize_phone(self.phone)

        if self.email:
            self.email = self.email.lower().strip()

        super().save(*args, **kwargs)
