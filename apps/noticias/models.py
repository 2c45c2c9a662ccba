from django.conf import settings
from django.db import models
from django.utils.text import slugify


class Noticia(models.Model):
    class Categoria(models.TextChoices):
        GERAL = "GERAL", "Geral"
        LEGISLATIVO = "LEGISLATIVO", "Legislativo"
        SESSOES = "SESSOES", "Sessões"
        COMISSOES = "COMISSOES", "Comissões"
        TRANSPARENCIA = "TRANSPARENCIA", "Transparência"
        PARTICIPACAO = "PARTICIPACAO", "Participação cidadã"
        INSTITUCIONAL = "INSTITUCIONAL", "Institucional"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="noticias")
    titulo = models.CharField(max_length=220)
    slug = models.SlugField(max_length=240, blank=True, default="")
    resumo = models.TextField(blank=True, default="")
    conteudo = models.TextField(blank=True, default="")
    categoria = models.CharField(max_length=20, choices=Categoria.choices, default=Categoria.GERAL)
    imagem = models.ImageField(upload_to="noticias/", blank=True, null=True)
    destaque = models.BooleanField(default=False)
    publicada = models.BooleanField(default=False)
    publicada_em = models.DateTimeField(null=True, blank=True)
    autor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="noticias_publicadas",
    )
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Notícia"
        verbose_name_plural = "Notícias"
        ordering = ["-publicada_em", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "slug"], name="uniq_noticia_tenant_slug"),
        ]
        indexes = [
            models.Index(fields=["tenant", "publicada", "publicada_em"]),
            models.Index(fields=["categoria", "publicada"]),
        ]

    def save(self, *args, **kwargs):
        base = slugify(self.titulo or "noticia").strip("-") or "noticia"
        if not self.slug:
            self.slug = base
        self.slug = slugify(self.slug).strip("-") or base
        candidate = self.slug[:240]
        i = 2
        qs = type(self).objects.filter(tenant=self.tenant).exclude(pk=self.pk)
        while qs.filter(slug=candidate).exists():
            suffix = f"-{i}"
            candidate = f"{base[: max(1, 240 - len(suffix))]}{suffix}"
            i += 1
        self.slug = candidate
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.titulo
