from django.contrib import admin

from .models import Comissao, MembroComissao, Parecer, PresencaReuniao, ReuniaoComissao


class MembroComissaoInline(admin.TabularInline):
    model = MembroComissao
    extra = 0


@admin.register(Comissao)
class ComissaoAdmin(admin.ModelAdmin):
    list_display = ("nome", "sigla", "tipo", "ativa", "tenant")
    list_filter = ("tipo", "ativa", "tenant")
    search_fields = ("nome", "sigla")
    inlines = [MembroComissaoInline]


class PresencaReuniaoInline(admin.TabularInline):
    model = PresencaReuniao
    extra = 0


@admin.register(ReuniaoComissao)
class ReuniaoComissaoAdmin(admin.ModelAdmin):
    list_display = ("numero", "ano", "comissao", "data", "status", "ata_aprovada")
    list_filter = ("status", "tipo")
    inlines = [PresencaReuniaoInline]


@admin.register(Parecer)
class ParecerAdmin(admin.ModelAdmin):
    list_display = ("proposicao", "comissao", "relator", "tipo", "status")
    list_filter = ("status", "tipo")
