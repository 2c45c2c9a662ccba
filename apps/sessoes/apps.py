from django.apps import AppConfig


class SessoesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.sessoes"
    label = "sessoes"
    verbose_name = "Sessões legislativas"
