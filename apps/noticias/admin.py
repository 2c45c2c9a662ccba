from django.contrib import admin

from .models import Noticia


@admin.register(Noticia)
class NoticiaAdmin(admin.ModelAdmin):
    list_display = ("titulo", "categoria", "destaque", "publicada", "publicada_em", "tenant")
    list_filter = ("categoria", "publicada", "destaque", "tenant")
    search_fields = ("titulo", "resumo", "slug")
