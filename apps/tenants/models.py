from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models

_cor_hex = RegexValidator(r"^#[0-9a-fA-F]{6}$", "Informe a cor no formato #RRGGBB.")


class Tenant(models.Model):
    class Plano(models.TextChoices):
        BASICO = "BASICO", "Básico"
        PROFISSIONAL = "PROFISSIONAL", "Profissional"
        ENTERPRISE = "ENTERPRISE", "Enterprise"

    slug = models.SlugField("Slug", max_length=90, unique=True)
    nome = models.CharField("Nome da câmara", max_length=180)
    sigla = models.CharField(max_length=20, blank=True, default="")
    cnpj = models.CharField("CNPJ", max_length=18, blank=True, default="")
    dominio = models.CharField(
        "Domínio próprio",
        max_length=190,
        unique=True,
        null=True,
        blank=True,
        help_text="Opcional. Ex.: www.camaraexemplo.sp.leg.br",
    )
    subdominio = models.CharField(
        "Subdomínio",
        max_length=90,
        unique=True,
        null=True,
        blank=True,
        help_text="Usado no domínio público: subdominio.camaras.leg.br",
    )
    logo_url = models.URLField(blank=True, default="")
    favicon_url = models.URLField(blank=True, default="")
    cor_primaria = models.CharField(max_length=7, default="#1e40af", validators=[_cor_hex])
    cor_secundaria = models.CharField(max_length=7, default="#3b82f6", validators=[_cor_hex])
    cidade = models.CharField(max_length=120, blank=True, default="")
    estado = models.CharField("UF", max_length=2, blank=True, default="")
    plano = models.CharField(max_length=20, choices=Plano.choices, default=Plano.BASICO)
    ativo = models.BooleanField(default=True)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Câmara"
        verbose_name_plural = "Câmaras"
        ordering = ["nome"]
        indexes = [
            models.Index(fields=["ativo", "nome"]),
        ]

    def __str__(self) -> str:
        return self.nome

    @property
    def dominio_publico(self) -> str:
        if self.dominio:
            return self.dominio
        root = (getattr(settings, "CAMARA_PUBLIC_ROOT_DOMAIN", "") or "").strip().lower().strip(".")
        sub = (self.subdominio or self.slug or "").strip().lower()
        if not sub or not root:
            return ""
        return f"{sub}.{root}"
