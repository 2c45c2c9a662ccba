from django.contrib import admin

from .models import AlteracaoNorma, NormaJuridica, VersaoNorma


class VersaoNormaInline(admin.TabularInline):
    model = VersaoNorma
    extra = 0
    readonly_fields = ("versao", "data_versao", "usuario")


@admin.register(NormaJuridica)
class NormaJuridicaAdmin(admin.ModelAdmin):
    list_display = ("tipo", "numero", "ano", "situacao", "data_publicacao", "tenant")
    list_filter = ("tipo", "situacao", "tenant")
    search_fields = ("ementa", "assunto")
    inlines = [VersaoNormaInline]


@admin.register(AlteracaoNorma)
class AlteracaoNormaAdmin(admin.ModelAdmin):
    list_display = ("norma_alterada", "norma_alteradora", "tipo_alteracao", "data_alteracao")
    list_filter = ("tipo_alteracao",)
