from django.apps import AppConfig


class ClubmanConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clubman"
    verbose_name = "Clubman - Programa de Lealtad"
