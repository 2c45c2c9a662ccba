from django.apps import AppConfig


class ParlamentaresConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.parlamentares"
    label = "parlamentares"
    verbose_name = "Parlamentares"
