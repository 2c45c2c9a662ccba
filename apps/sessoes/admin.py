from django.contrib import admin

from .models import (
    ConfiguracaoNomenclatura,
    ConfiguracaoQuorum,
    PautaItem,
    PresencaSessao,
    SequenciaNumeracao,
    Sessao,
    Voto,
)


class PautaItemInline(admin.TabularInline):
    model = PautaItem
    extra = 0
    fields = ("ordem", "secao", "titulo", "proposicao", "status", "turno_atual")
    raw_id_fields = ("proposicao",)


class PresencaInline(admin.TabularInline):
    model = PresencaSessao
    extra = 0


@admin.register(Sessao)
class SessaoAdmin(admin.ModelAdmin):
    list_display = ("titulo", "tipo", "numero", "data", "status", "tenant")
    list_filter = ("tipo", "status", "tenant")
    search_fields = ("titulo", "descricao")
    date_hierarchy = "data"
    inlines = [PautaItemInline, PresencaInline]


@admin.register(Voto)
class VotoAdmin(admin.ModelAdmin):
    list_display = ("proposicao", "parlamentar", "turno", "voto", "sessao", "registrado_em")
    list_filter = ("voto", "turno")


@admin.register(ConfiguracaoQuorum)
class ConfiguracaoQuorumAdmin(admin.ModelAdmin):
    list_display = ("nome", "aplicacao", "tipo_quorum", "base_calculo", "ativo", "tenant")
    list_filter = ("aplicacao", "tipo_quorum", "ativo")


admin.site.register(ConfiguracaoNomenclatura)
admin.site.register(SequenciaNumeracao)
