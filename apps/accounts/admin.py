from django.contrib import admin

from .models import Profile, SegundoFator, UserManagementAudit


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "tenant", "parlamentar", "ativo", "bloqueado")
    list_filter = ("role", "ativo", "bloqueado", "tenant")
    search_fields = ("user__username", "user__email", "user__first_name", "user__last_name")


@admin.register(SegundoFator)
class SegundoFatorAdmin(admin.ModelAdmin):
    list_display = ("user", "habilitado", "confirmado_em", "ultima_verificacao_em")
    list_filter = ("habilitado",)
    search_fields = ("user__username",)
    exclude = ("secret_enc", "backup_codes")


@admin.register(UserManagementAudit)
class UserManagementAuditAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action", "actor", "target", "tenant")
    list_filter = ("action", "created_at")
    search_fields = ("actor__username", "target__username", "details")
