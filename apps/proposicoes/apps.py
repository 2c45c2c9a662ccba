from django.apps import AppConfig


class ProposicoesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.proposicoes"
    label = "proposicoes"
    verbose_name = "Proposições"
