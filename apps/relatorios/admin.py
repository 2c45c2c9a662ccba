from django.contrib import admin

from .models import ExecucaoRelatorio, RelatorioAgendado


@admin.register(RelatorioAgendado)
class RelatorioAgendadoAdmin(admin.ModelAdmin):
    list_display = ("nome", "tipo", "frequencia", "formato", "ativo", "proxima_execucao", "tenant")
    list_filter = ("tipo", "frequencia", "ativo", "tenant")
    search_fields = ("nome",)


@admin.register(ExecucaoRelatorio)
class ExecucaoRelatorioAdmin(admin.ModelAdmin):
    list_display = ("relatorio", "status", "tempo_execucao_ms", "executado_em")
    list_filter = ("status",)
    readonly_fields = ("arquivo", "erro", "tempo_execucao_ms", "executado_por", "executado_em")
