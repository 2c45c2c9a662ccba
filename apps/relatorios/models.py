from __future__ import annotations

from django.conf import settings
from django.db import models


class RelatorioAgendado(models.Model):
    class Tipo(models.TextChoices):
        PRODUCAO_LEGISLATIVA = "PRODUCAO_LEGISLATIVA", "Produção legislativa"
        PRESENCA_SESSOES = "PRESENCA_SESSOES", "Presença nas sessões"
        VOTACOES = "VOTACOES", "Votações"
        TRAMITACAO = "TRAMITACAO", "Tramitação"
        COMISSOES = "COMISSOES", "Comissões"
        TRANSPARENCIA = "TRANSPARENCIA", "Transparência"

    class Frequencia(models.TextChoices):
        DIARIO = "DIARIO", "Diário"
        SEMANAL = "SEMANAL", "Semanal"
        QUINZENAL = "QUINZENAL", "Quinzenal"
        MENSAL = "MENSAL", "Mensal"
        TRIMESTRAL = "TRIMESTRAL", "Trimestral"
        SEMESTRAL = "SEMESTRAL", "Semestral"
        ANUAL = "ANUAL", "Anual"

    class Formato(models.TextChoices):
        CSV = "CSV", "CSV"
        PDF = "PDF", "PDF"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="relatorios_agendados")
    nome = models.CharField(max_length=160)
    descricao = models.TextField(blank=True, default="")
    tipo = models.CharField(max_length=30, choices=Tipo.choices)
    filtros = models.JSONField(default=dict, blank=True)
    frequencia = models.CharField(max_length=12, choices=Frequencia.choices, default=Frequencia.MENSAL)
    formato = models.CharField(max_length=4, choices=Formato.choices, default=Formato.PDF)
    destinatarios = models.JSONField(default=list, blank=True)
    ativo = models.BooleanField(default=True)
    proxima_execucao = models.DateTimeField(null=True, blank=True)
    ultima_execucao = models.DateTimeField(null=True, blank=True)

    criado_por = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="relatorios_agendados",
    )
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Relatório agendado"
        verbose_name_plural = "Relatórios agendados"
        ordering = ["nome"]
        indexes = [models.Index(fields=["ativo", "proxima_execucao"])]

    def __str__(self) -> str:
        return self.nome


class ExecucaoRelatorio(models.Model):
    class Status(models.TextChoices):
        SUCESSO = "SUCESSO", "Sucesso"
        ERRO = "ERRO", "Erro"

    relatorio = models.ForeignKey(RelatorioAgendado, on_delete=models.CASCADE, related_name="execucoes")
    status = models.CharField(max_length=10, choices=Status.choices)
    arquivo = models.CharField(max_length=255, blank=True, default="")
    erro = models.TextField(blank=True, default="")
    tempo_execucao_ms = models.PositiveIntegerField(default=0)
    executado_por = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="relatorios_executados",
    )
    executado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Execução de relatório"
        verbose_name_plural = "Execuções de relatório"
        ordering = ["-executado_em", "-id"]
        indexes = [models.Index(fields=["relatorio", "executado_em"])]

    def __str__(self) -> str:
        return f"{self.relatorio.nome} - {self.get_status_display()}"
