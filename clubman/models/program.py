"""Program model (tenant-owned loyalty configuration)."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ProgramType(models.TextChoices):
    POINTS = "POINTS", _("Puntos")
    VISITS = "VISITS", _("Visitas")


class Program(models.Model):
    """
    Loyalty program owned by a business (tenant).

    Owns rewards, tiers, rules and promotions. A program with
    points_percentage > 0 accrues points on spend; otherwise it is a
    pure visit ladder.
    """

    owner_ref = models.CharField(
        _("propietario"),
        max_length=100,
        db_index=True,
        help_text=_("ID externo del negocio dueño del programa"),
    )
    business_name = models.CharField(_("nombre del negocio"), max_length=200)
    description = models.TextField(_("descripción"), blank=True)

    points_percentage = models.PositiveIntegerField(
        _("porcentaje de puntos"),
        default=0,
        help_text=_("Puntos ganados por cada 100 de consumo (0 = sin puntos)"),
    )

    # Welcome gift
    enable_first_visit_gift = models.BooleanField(_("regalo de bienvenida"), default=False)
    first_visit_gift_text = models.CharField(
        _("texto del regalo"),
        max_length=200,
        blank=True,
    )

    # Display
    theme_color = models.CharField(_("color"), max_length=20, blank=True)
    logo_url = models.CharField(_("logo"), max_length=500, blank=True)
    card_design = models.JSONField(_("diseño de tarjeta"), default=dict, blank=True)

    is_active = models.BooleanField(_("activo"), default=True)
    created_at = models.DateTimeField(_("creado en"), auto_now_add=True)
    updated_at = models.DateTimeField(_("actualizado en"), auto_now=True)

    class Meta:
        verbose_name = _("programa de lealtad")
        verbose_name_plural = _("programas de lealtad")
        ordering = ["business_name"]

    def __str__(self):
        return self.business_name

    @property
    def program_type(self) -> str:
        if self.points_percentage > 0:
            return ProgramType.POINTS
        return ProgramType.VISITS


class Promotion(models.Model):
    """Image-based promotion shown on the customer card."""

    program = models.ForeignKey(
        Program,
        on_delete=models.CASCADE,
        related_name="promotions",
        verbose_name=_("programa"),
    )
    image_url = models.CharField(_("imagen"), max_length=500)
    title = models.CharField(_("título"), max_length=200, blank=True)
    description = models.TextField(_("descripción"), blank=True)
    terms = models.TextField(_("términos"), blank=True)
    is_active = models.BooleanField(_("activa"), default=True)
    created_at = models.DateTimeField(_("creada en"), auto_now_add=True)

    class Meta:
        verbose_name = _("promoción")
        verbose_name_plural = _("promociones")
        ordering = ["-created_at"]

    def __str__(self):
        return self.title or self.image_url
