from django.conf import settings
from django.db import models
from django.utils import timezone


class NormaJuridica(models.Model):
    class Tipo(models.TextChoices):
        LEI_ORDINARIA = "LEI_ORDINARIA", "Lei Ordinária"
        LEI_COMPLEMENTAR = "LEI_COMPLEMENTAR", "Lei Complementar"
        DECRETO_LEGISLATIVO = "DECRETO_LEGISLATIVO", "Decreto Legislativo"
        RESOLUCAO = "RESOLUCAO", "Resolução"
        EMENDA_LEI_ORGANICA = "EMENDA_LEI_ORGANICA", "Emenda à Lei Orgânica"
        PORTARIA = "PORTARIA", "Portaria"

    class Situacao(models.TextChoices):
        VIGENTE = "VIGENTE", "Vigente"
        REVOGADA = "REVOGADA", "Revogada"
        REVOGADA_PARCIALMENTE = "REVOGADA_PARCIALMENTE", "Revogada parcialmente"
        COM_ALTERACOES = "COM_ALTERACOES", "Com alterações"
        SUSPENSA = "SUSPENSA", "Suspensa"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="normas")
    tipo = models.CharField(max_length=30, choices=Tipo.choices)
    numero = models.PositiveIntegerField()
    ano = models.PositiveIntegerField()
    data = models.DateField(default=timezone.localdate)
    data_publicacao = models.DateField(null=True, blank=True)
    data_vigencia = models.DateField(null=True, blank=True)
    ementa = models.TextField()
    texto = models.TextField()
    texto_compilado = models.TextField(blank=True, default="")
    assunto = models.CharField(max_length=200, blank=True, default="")
    situacao = models.CharField(max_length=30, choices=Situacao.choices, default=Situacao.VIGENTE)
    proposicao_origem = models.OneToOneField(
        "proposicoes.Proposicao",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="norma",
    )

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Norma jurídica"
        verbose_name_plural = "Normas jurídicas"
        ordering = ["-ano", "-numero"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "tipo", "numero", "ano"], name="uniq_norma_numero"),
        ]
        indexes = [
            models.Index(fields=["tenant", "tipo", "ano"]),
            models.Index(fields=["tenant", "situacao"]),
        ]

    def __str__(self) -> str:
        return self.identificacao

    @property
    def identificacao(self) -> str:
        return f"{self.get_tipo_display()} nº {self.numero}/{self.ano}"


class VersaoNorma(models.Model):
    norma = models.ForeignKey(NormaJuridica, on_delete=models.CASCADE, related_name="versoes")
    versao = models.PositiveIntegerField()
    texto_completo = models.TextField()
    motivo_alteracao = models.CharField(max_length=255, blank=True, default="")
    data_versao = models.DateTimeField(default=timezone.now)
    usuario = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        verbose_name = "Versão de norma"
        verbose_name_plural = "Versões de norma"
        ordering = ["-versao"]
        constraints = [
            models.UniqueConstraint(fields=["norma", "versao"], name="uniq_versao_norma"),
        ]

    def __str__(self) -> str:
        return f"{self.norma} • v{self.versao}"


class AlteracaoNorma(models.Model):
    class Tipo(models.TextChoices):
        REVOGACAO = "REVOGACAO", "Revogação"
        REVOGACAO_PARCIAL = "REVOGACAO_PARCIAL", "Revogação parcial"
        ALTERACAO = "ALTERACAO", "Alteração"
        ACRESCIMO = "ACRESCIMO", "Acréscimo"
        NOVA_REDACAO = "NOVA_REDACAO", "Nova redação"

    norma_alterada = models.ForeignKey(NormaJuridica, on_delete=models.CASCADE, related_name="alteracoes_recebidas")
    norma_alteradora = models.ForeignKey(
        NormaJuridica,
        on_delete=models.CASCADE,
        related_name="alteracoes_realizadas",
    )
    tipo_alteracao = models.CharField(max_length=20, choices=Tipo.choices)
    artigo_alterado = models.CharField(max_length=40, blank=True, default="")
    descricao = models.TextField(blank=True, default="")
    data_alteracao = models.DateField(default=timezone.localdate)

    class Meta:
        verbose_name = "Alteração de norma"
        verbose_name_plural = "Alterações de norma"
        ordering = ["-data_alteracao", "-id"]

    def __str__(self) -> str:
        return f"{self.norma_alteradora} → {self.norma_alterada} ({self.get_tipo_alteracao_display()})"
