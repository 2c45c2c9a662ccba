from django.core.validators import FileExtensionValidator, RegexValidator
from django.db import models
from django.utils import timezone

EXTENSOES_DOCUMENTO = ["pdf", "doc", "docx", "odt", "xls", "xlsx", "ods", "csv", "zip"]


def publicacao_upload_to(instance, filename: str) -> str:
    return f"transparencia/{instance.tenant_id}/{timezone.now():%Y/%m}/{filename}"


class CategoriaPublicacao(models.Model):
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="categorias_publicacao")
    nome = models.CharField(max_length=120)
    descricao = models.CharField(max_length=255, blank=True, default="")
    cor = models.CharField(
        max_length=7,
        default="#0f172a",
        validators=[RegexValidator(r"^#[0-9a-fA-F]{6}$", "Informe uma cor hexadecimal (#RRGGBB).")],
    )
    ativa = models.BooleanField(default=True)
    ordem = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "Categoria de publicação"
        verbose_name_plural = "Categorias de publicação"
        ordering = ["ordem", "nome"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "nome"], name="uniq_categoria_publicacao_nome"),
        ]

    def __str__(self) -> str:
        return self.nome


class Publicacao(models.Model):
    class Tipo(models.TextChoices):
        LEI = "LEI", "Lei"
        DECRETO = "DECRETO", "Decreto"
        PORTARIA = "PORTARIA", "Portaria"
        RESOLUCAO = "RESOLUCAO", "Resolução"
        EDITAL = "EDITAL", "Edital"
        RELATORIO = "RELATORIO", "Relatório"
        LOA = "LOA", "Lei Orçamentária Anual"
        LDO = "LDO", "Lei de Diretrizes Orçamentárias"
        PPA = "PPA", "Plano Plurianual"
        RGF = "RGF", "Relatório de Gestão Fiscal"
        RREO = "RREO", "Relatório Resumido da Execução Orçamentária"
        OUTRO = "OUTRO", "Outro"

    class AutorTipo(models.TextChoices):
        PARLAMENTAR = "PARLAMENTAR", "Parlamentar"
        COMISSAO = "COMISSAO", "Comissão"
        ORGAO = "ORGAO", "Órgão"
        OUTRO = "OUTRO", "Outro"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="publicacoes")
    tipo = models.CharField(max_length=20, choices=Tipo.choices)
    numero = models.CharField(max_length=20, blank=True, default="")
    ano = models.PositiveIntegerField()
    data = models.DateField(default=timezone.localdate)
    titulo = models.CharField(max_length=255)
    descricao = models.TextField(blank=True, default="")
    conteudo = models.TextField(blank=True, default="")
    arquivo = models.FileField(
        upload_to=publicacao_upload_to,
        blank=True,
        validators=[FileExtensionValidator(EXTENSOES_DOCUMENTO)],
    )
    link = models.URLField(blank=True, default="")
    publicada = models.BooleanField(default=False)
    publicada_em = models.DateTimeField(null=True, blank=True)
    visualizacoes = models.PositiveIntegerField(default=0)
    categoria = models.ForeignKey(
        CategoriaPublicacao,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="publicacoes",
    )
    autor_tipo = models.CharField(max_length=20, choices=AutorTipo.choices, default=AutorTipo.ORGAO)
    autor_nome = models.CharField(max_length=180, blank=True, default="")
    parlamentar = models.ForeignKey(
        "parlamentares.Parlamentar",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="publicacoes",
    )

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Publicação"
        verbose_name_plural = "Publicações"
        ordering = ["-data", "-id"]
        indexes = [
            models.Index(fields=["tenant", "tipo", "ano"]),
            models.Index(fields=["tenant", "publicada", "data"]),
        ]

    def __str__(self) -> str:
        if self.numero:
            return f"{self.get_tipo_display()} nº {self.numero}/{self.ano} • {self.titulo}"
        return self.titulo
