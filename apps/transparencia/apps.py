from django.apps import AppConfig


class TransparenciaConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.transparencia"
    label = "transparencia"
    verbose_name = "Transparência"
