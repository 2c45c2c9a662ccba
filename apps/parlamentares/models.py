import logging
from io import BytesIO

from django.core.files.base import ContentFile
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

FOTO_LADO = 512


class Legislatura(models.Model):
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="legislaturas")
    numero = models.PositiveIntegerField()
    ano_inicio = models.PositiveIntegerField()
    ano_fim = models.PositiveIntegerField()
    ativa = models.BooleanField(default=False)
    descricao = models.TextField(blank=True, default="")

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Legislatura"
        verbose_name_plural = "Legislaturas"
        ordering = ["-numero"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "numero"], name="uniq_legislatura_tenant_numero"),
            models.UniqueConstraint(
                fields=["tenant"],
                condition=models.Q(ativa=True),
                name="uniq_legislatura_ativa_por_tenant",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.numero}ª Legislatura ({self.ano_inicio}-{self.ano_fim})"


class PeriodoLegislatura(models.Model):
    legislatura = models.ForeignKey(Legislatura, on_delete=models.CASCADE, related_name="periodos")
    numero = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(4)])
    data_inicio = models.DateField()
    data_fim = models.DateField(null=True, blank=True)
    descricao = models.CharField(max_length=120, blank=True, default="")

    class Meta:
        verbose_name = "Período da legislatura"
        verbose_name_plural = "Períodos da legislatura"
        ordering = ["legislatura", "numero"]
        constraints = [
            models.UniqueConstraint(fields=["legislatura", "numero"], name="uniq_periodo_legislatura"),
        ]

    def __str__(self) -> str:
        return f"{self.numero}º Período • {self.legislatura}"


class Parlamentar(models.Model):
    class Cargo(models.TextChoices):
        VEREADOR = "VEREADOR", "Vereador(a)"
        PRESIDENTE = "PRESIDENTE", "Presidente"
        VICE_PRESIDENTE = "VICE_PRESIDENTE", "Vice-presidente"
        PRIMEIRO_SECRETARIO = "PRIMEIRO_SECRETARIO", "1º Secretário(a)"
        SEGUNDO_SECRETARIO = "SEGUNDO_SECRETARIO", "2º Secretário(a)"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="parlamentares")
    nome = models.CharField(max_length=180)
    apelido = models.CharField("Nome parlamentar", max_length=120, blank=True, default="")
    partido = models.CharField(max_length=30, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    telefone = models.CharField(max_length=40, blank=True, default="")
    biografia = models.TextField(blank=True, default="")
    foto = models.ImageField(upload_to="parlamentares/", blank=True, null=True, verbose_name="Foto")
    cargo = models.CharField(max_length=30, choices=Cargo.choices, default=Cargo.VEREADOR)
    ativo = models.BooleanField(default=True)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Parlamentar"
        verbose_name_plural = "Parlamentares"
        ordering = ["nome"]
        indexes = [
            models.Index(fields=["tenant", "ativo"]),
            models.Index(fields=["tenant", "partido"]),
        ]

    def __str__(self) -> str:
        return self.apelido or self.nome

    @property
    def nome_exibicao(self) -> str:
        return self.apelido or self.nome

    def save(self, *args, **kwargs):
        foto_nova = bool(self.foto) and not getattr(self.foto, "_committed", True)
        super().save(*args, **kwargs)

        # Crop quadrado + resize da foto enviada
        if foto_nova:
            try:
                self.foto.open()
                img = Image.open(self.foto)
                img = img.convert("RGB")

                w, h = img.size
                side = min(w, h)
                left = (w - side) // 2
                top = (h - side) // 2
                img = img.crop((left, top, left + side, top + side))
                img = img.resize((FOTO_LADO, FOTO_LADO), Image.LANCZOS)

                buf = BytesIO()
                img.save(buf, format="JPEG", quality=88, optimize=True)

                file_name = self.foto.name.rsplit("/", 1)[-1].rsplit(".", 1)[0] + ".jpg"
                self.foto.save(file_name, ContentFile(buf.getvalue()), save=False)
                super().save(update_fields=["foto"])
            except (UnidentifiedImageError, OSError):
                logger.warning("Foto inválida para o parlamentar %s", self.pk)


class Mandato(models.Model):
    parlamentar = models.ForeignKey(Parlamentar, on_delete=models.CASCADE, related_name="mandatos")
    legislatura = models.ForeignKey(Legislatura, on_delete=models.PROTECT, related_name="mandatos")
    numero_votos = models.PositiveIntegerField(default=0)
    data_inicio = models.DateField()
    data_fim = models.DateField(null=True, blank=True)
    ativo = models.BooleanField(default=True)

    class Meta:
        verbose_name = "Mandato"
        verbose_name_plural = "Mandatos"
        ordering = ["-data_inicio"]
        constraints = [
            models.UniqueConstraint(fields=["parlamentar", "legislatura"], name="uniq_mandato_legislatura"),
        ]

    def __str__(self) -> str:
        return f"{self.parlamentar} • {self.legislatura}"


class MesaDiretora(models.Model):
    legislatura = models.ForeignKey(Legislatura, on_delete=models.CASCADE, related_name="mesas")
    periodo = models.ForeignKey(
        PeriodoLegislatura,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="mesas",
    )
    ativa = models.BooleanField(default=True)
    descricao = models.CharField(max_length=200, blank=True, default="")

    class Meta:
        verbose_name = "Mesa diretora"
        verbose_name_plural = "Mesas diretoras"
        ordering = ["-legislatura__numero", "-periodo__numero"]

    def __str__(self) -> str:
        if self.periodo_id:
            return f"Mesa diretora • {self.periodo}"
        return f"Mesa diretora • {self.legislatura}"


class MembroMesa(models.Model):
    class Cargo(models.TextChoices):
        PRESIDENTE = "PRESIDENTE", "Presidente"
        VICE_PRESIDENTE = "VICE_PRESIDENTE", "Vice-presidente"
        PRIMEIRO_SECRETARIO = "PRIMEIRO_SECRETARIO", "1º Secretário(a)"
        SEGUNDO_SECRETARIO = "SEGUNDO_SECRETARIO", "2º Secretário(a)"

    mesa = models.ForeignKey(MesaDiretora, on_delete=models.CASCADE, related_name="membros")
    parlamentar = models.ForeignKey(Parlamentar, on_delete=models.PROTECT, related_name="cargos_mesa")
    cargo = models.CharField(max_length=30, choices=Cargo.choices)
    data_inicio = models.DateField(null=True, blank=True)
    data_fim = models.DateField(null=True, blank=True)
    ativo = models.BooleanField(default=True)

    class Meta:
        verbose_name = "Membro da mesa"
        verbose_name_plural = "Membros da mesa"
        ordering = ["mesa", "cargo"]
        constraints = [
            models.UniqueConstraint(fields=["mesa", "cargo"], name="uniq_cargo_por_mesa"),
        ]

    def __str__(self) -> str:
        return f"{self.get_cargo_display()} • {self.parlamentar}"
