from django.contrib import admin

from .models import CategoriaPublicacao, Publicacao


@admin.register(CategoriaPublicacao)
class CategoriaPublicacaoAdmin(admin.ModelAdmin):
    list_display = ("nome", "ordem", "ativa", "tenant")
    list_filter = ("ativa", "tenant")


@admin.register(Publicacao)
class PublicacaoAdmin(admin.ModelAdmin):
    list_display = ("titulo", "tipo", "numero", "ano", "publicada", "visualizacoes", "tenant")
    list_filter = ("tipo", "publicada", "ano", "tenant")
    search_fields = ("titulo", "descricao", "numero")
    readonly_fields = ("visualizacoes", "publicada_em")
