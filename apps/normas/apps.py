from django.apps import AppConfig


class NormasConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.normas"
    label = "normas"
    verbose_name = "Normas jurídicas"
