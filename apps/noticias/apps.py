from django.apps import AppConfig


class NoticiasConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.noticias"
    label = "noticias"
    verbose_name = "Notícias"
