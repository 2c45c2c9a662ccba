from django.apps import AppConfig


class ParticipacaoConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.participacao"
    label = "participacao"
    verbose_name = "Participação cidadã"
