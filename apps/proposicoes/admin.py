from django.contrib import admin

from .models import Emenda, ProcessoSancao, Proposicao, Tramitacao, VotoEmenda


class TramitacaoInline(admin.TabularInline):
    model = Tramitacao
    extra = 0
    readonly_fields = ("data", "usuario")


class EmendaInline(admin.TabularInline):
    model = Emenda
    fk_name = "proposicao"
    extra = 0
    fields = ("numero", "tipo", "autor", "status")
    readonly_fields = ("numero",)


@admin.register(Proposicao)
class ProposicaoAdmin(admin.ModelAdmin):
    list_display = ("identificacao", "titulo", "status", "regime", "autor", "tenant")
    list_filter = ("tipo", "status", "regime", "ano", "tenant")
    search_fields = ("titulo", "ementa", "numero")
    inlines = [TramitacaoInline, EmendaInline]


class VotoEmendaInline(admin.TabularInline):
    model = VotoEmenda
    extra = 0


@admin.register(Emenda)
class EmendaAdmin(admin.ModelAdmin):
    list_display = ("identificacao", "tipo", "status", "autor")
    list_filter = ("tipo", "status")
    search_fields = ("justificativa", "texto_novo")
    inlines = [VotoEmendaInline]


@admin.register(ProcessoSancao)
class ProcessoSancaoAdmin(admin.ModelAdmin):
    list_display = ("proposicao", "situacao", "prazo_sancao", "prazo_apreciacao", "numero_lei")
    list_filter = ("situacao", "veto_tipo")
