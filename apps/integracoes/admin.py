from django.contrib import admin

from .models import IntegrationToken


@admin.register(IntegrationToken)
class IntegrationTokenAdmin(admin.ModelAdmin):
    list_display = ("nome", "prefixo", "ativo", "ultimo_uso_em", "tenant")
    list_filter = ("ativo", "tenant")
    search_fields = ("nome", "prefixo")
    readonly_fields = ("prefixo", "token_hash", "ultimo_uso_em", "ultimo_uso_ip", "ultimo_uso_agente")
