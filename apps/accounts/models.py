from __future__ import annotations

from django.conf import settings
from django.db import models


class Profile(models.Model):
    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Admin (Sistema)"
        SECRETARIA = "SECRETARIA", "Secretaria legislativa"
        OPERADOR = "OPERADOR", "Operador do painel"
        EDITOR = "EDITOR", "Editor de conteúdo"
        PARLAMENTAR = "PARLAMENTAR", "Parlamentar"
        LEITURA = "LEITURA", "Somente leitura"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.LEITURA)

    # escopo
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="profiles",
    )
    parlamentar = models.OneToOneField(
        "parlamentares.Parlamentar",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="perfil_usuario",
    )

    telefone = models.CharField(max_length=30, blank=True, default="")
    ativo = models.BooleanField(default=True)
    bloqueado = models.BooleanField(default=False)
    must_change_password = models.BooleanField(default=True)
    ultimo_acesso_em = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Perfil"
        verbose_name_plural = "Perfis"
        indexes = [
            models.Index(fields=["tenant", "role"]),
        ]

    def __str__(self) -> str:
        return f"{self.user} ({self.role})"


class SegundoFator(models.Model):
    """TOTP (RFC 6238) do usuário; segredo cifrado com Fernet."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="segundo_fator",
    )
    secret_enc = models.TextField(blank=True, default="")
    habilitado = models.BooleanField(default=False)
    backup_codes = models.JSONField(default=list, blank=True)
    ultimo_passo = models.BigIntegerField(null=True, blank=True)
    confirmado_em = models.DateTimeField(null=True, blank=True)
    ultima_verificacao_em = models.DateTimeField(null=True, blank=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Autenticação em dois fatores"
        verbose_name_plural = "Autenticação em dois fatores"

    def __str__(self) -> str:
        return f"2FA • {self.user} • {'ativo' if self.habilitado else 'inativo'}"


class UserManagementAudit(models.Model):
    class Action(models.TextChoices):
        CREATE = "CREATE", "Criação"
        UPDATE = "UPDATE", "Atualização"
        ACTIVATE = "ACTIVATE", "Ativação"
        DEACTIVATE = "DEACTIVATE", "Desativação"
        BLOCK = "BLOCK", "Bloqueio"
        UNBLOCK = "UNBLOCK", "Desbloqueio"
        RESET_PASSWORD = "RESET_PASSWORD", "Reset de senha"
        ENABLE_2FA = "ENABLE_2FA", "Ativação de 2FA"
        DISABLE_2FA = "DISABLE_2FA", "Desativação de 2FA"

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="accounts_audit",
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="accounts_audit_actions",
    )
    target = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="accounts_audit_targets",
    )
    action = models.CharField(max_length=30, choices=Action.choices)
    details = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Auditoria de usuário"
        verbose_name_plural = "Auditoria de usuários"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["target", "created_at"]),
            models.Index(fields=["action", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.get_action_display()} • {self.target} • {self.created_at:%d/%m/%Y %H:%M}"
