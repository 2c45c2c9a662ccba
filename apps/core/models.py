# apps/core/models.py
from __future__ import annotations

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class AuditoriaEvento(models.Model):
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="auditoria_eventos",
    )
    modulo = models.CharField(max_length=40)
    evento = models.CharField(max_length=80)
    entidade = models.CharField(max_length=80)
    entidade_id = models.CharField(max_length=40)
    antes = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    depois = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    observacao = models.CharField(max_length=200, blank=True, default="")
    usuario = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="auditoria_eventos",
    )
    criado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Evento de auditoria"
        verbose_name_plural = "Eventos de auditoria"
        ordering = ["-criado_em", "-id"]
        indexes = [
            models.Index(fields=["tenant", "modulo", "criado_em"]),
            models.Index(fields=["entidade", "entidade_id"]),
            models.Index(fields=["evento", "criado_em"]),
        ]

    def __str__(self) -> str:
        return f"{self.modulo}:{self.evento} • {self.entidade}#{self.entidade_id}"


class TransparenciaEventoPublico(models.Model):
    class Modulo(models.TextChoices):
        SESSOES = "SESSOES", "Sessões"
        PROPOSICOES = "PROPOSICOES", "Proposições"
        COMISSOES = "COMISSOES", "Comissões"
        NORMAS = "NORMAS", "Normas jurídicas"
        PARTICIPACAO = "PARTICIPACAO", "Participação cidadã"
        TRANSPARENCIA = "TRANSPARENCIA", "Transparência"
        INTEGRACOES = "INTEGRACOES", "Integrações"
        OUTROS = "OUTROS", "Outros"

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="transparencia_eventos",
    )
    modulo = models.CharField(max_length=20, choices=Modulo.choices, default=Modulo.OUTROS)
    tipo_evento = models.CharField(max_length=80)
    titulo = models.CharField(max_length=220)
    descricao = models.TextField(blank=True, default="")
    referencia = models.CharField(max_length=120, blank=True, default="")
    data_evento = models.DateTimeField(default=timezone.now)
    dados = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    publico = models.BooleanField(default=True)
    publicado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Evento de transparencia"
        verbose_name_plural = "Eventos de transparencia"
        ordering = ["-data_evento", "-id"]
        indexes = [
            models.Index(fields=["tenant", "modulo", "data_evento"]),
            models.Index(fields=["tipo_evento", "data_evento"]),
            models.Index(fields=["publico", "data_evento"]),
        ]

    def __str__(self) -> str:
        return f"{self.get_modulo_display()} • {self.tipo_evento} • {self.titulo}"
