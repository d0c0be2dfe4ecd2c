"""Notification model: program-wide broadcast messages."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Notification(models.Model):
    """
    Message an owner broadcasts to every customer of a program.

    Read state is per customer and coarse: a notification is unread when
    it was created after Customer.last_notification_read_at.
    """

    program = models.ForeignKey(
        "clubman.Program",
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name=_("programa"),
    )
    title = models.CharField(_("título"), max_length=200)
    message = models.TextField(_("mensaje"))
    created_at = models.DateTimeField(_("creada en"), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _("notificación")
        verbose_name_plural = _("notificaciones")
        ordering = ["-created_at", "-pk"]

    def __str__(self):
        return self.title
