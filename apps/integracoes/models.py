from __future__ import annotations

from django.conf import settings
from django.db import models


class IntegrationToken(models.Model):
    class Permissao(models.TextChoices):
        SESSOES = "sessoes.read", "Sessões"
        PROPOSICOES = "proposicoes.read", "Proposições"
        PARLAMENTARES = "parlamentares.read", "Parlamentares"
        NORMAS = "normas.read", "Normas jurídicas"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="tokens_integracao")
    nome = models.CharField(max_length=140)
    descricao = models.TextField(blank=True, default="")
    prefixo = models.CharField(max_length=16, db_index=True)
    token_hash = models.CharField(max_length=64, unique=True)
    permissoes = models.JSONField(default=list, blank=True)
    ativo = models.BooleanField(default=True)

    ultimo_uso_em = models.DateTimeField(null=True, blank=True)
    ultimo_uso_ip = models.GenericIPAddressField(null=True, blank=True)
    ultimo_uso_agente = models.CharField(max_length=255, blank=True, default="")

    criado_por = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tokens_integracao_criados",
    )
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Token de integração"
        verbose_name_plural = "Tokens de integração"
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "nome"], name="uniq_integracao_token_tenant_nome"),
        ]

    def __str__(self) -> str:
        return f"{self.nome} ({self.prefixo}…)"

    def permite(self, permissao: str) -> bool:
        return permissao in (self.permissoes or [])
