from django.contrib import admin

from .models import AuditoriaEvento, TransparenciaEventoPublico


@admin.register(AuditoriaEvento)
class AuditoriaEventoAdmin(admin.ModelAdmin):
    list_display = ("modulo", "evento", "entidade", "entidade_id", "usuario", "tenant", "criado_em")
    list_filter = ("modulo", "tenant")
    search_fields = ("evento", "entidade", "entidade_id", "observacao")
    readonly_fields = ("antes", "depois", "criado_em")


@admin.register(TransparenciaEventoPublico)
class TransparenciaEventoPublicoAdmin(admin.ModelAdmin):
    list_display = ("titulo", "modulo", "tipo_evento", "publico", "tenant", "data_evento")
    list_filter = ("modulo", "publico", "tenant")
    search_fields = ("titulo", "referencia")
