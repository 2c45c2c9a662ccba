from django.contrib import admin

from .models import Tenant
from .services import limpar_cache_tenants


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("nome", "slug", "subdominio", "dominio", "plano", "ativo")
    list_filter = ("plano", "ativo", "estado")
    search_fields = ("nome", "slug", "dominio", "subdominio", "cidade")

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        limpar_cache_tenants()
