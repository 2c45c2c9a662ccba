from django.db import models
from django.utils import timezone


class Comissao(models.Model):
    class Tipo(models.TextChoices):
        PERMANENTE = "PERMANENTE", "Permanente"
        TEMPORARIA = "TEMPORARIA", "Temporária"
        ESPECIAL = "ESPECIAL", "Especial"
        INQUERITO = "INQUERITO", "Parlamentar de Inquérito"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="comissoes")
    nome = models.CharField(max_length=180)
    sigla = models.CharField(max_length=20, blank=True, default="")
    tipo = models.CharField(max_length=20, choices=Tipo.choices, default=Tipo.PERMANENTE)
    descricao = models.TextField(blank=True, default="")
    ativa = models.BooleanField(default=True)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Comissão"
        verbose_name_plural = "Comissões"
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "nome"], name="uniq_comissao_nome_tenant"),
        ]

    def __str__(self) -> str:
        return f"{self.sigla} • {self.nome}" if self.sigla else self.nome

    def save(self, *args, **kwargs):
        self.sigla = (self.sigla or "").strip().upper()
        super().save(*args, **kwargs)


class MembroComissao(models.Model):
    class Cargo(models.TextChoices):
        PRESIDENTE = "PRESIDENTE", "Presidente"
        VICE_PRESIDENTE = "VICE_PRESIDENTE", "Vice-presidente"
        RELATOR = "RELATOR", "Relator"
        MEMBRO = "MEMBRO", "Membro"

    comissao = models.ForeignKey(Comissao, on_delete=models.CASCADE, related_name="membros")
    parlamentar = models.ForeignKey(
        "parlamentares.Parlamentar",
        on_delete=models.CASCADE,
        related_name="comissoes",
    )
    cargo = models.CharField(max_length=20, choices=Cargo.choices, default=Cargo.MEMBRO)
    data_inicio = models.DateField(default=timezone.localdate)
    data_fim = models.DateField(null=True, blank=True)
    ativo = models.BooleanField(default=True)

    class Meta:
        verbose_name = "Membro de comissão"
        verbose_name_plural = "Membros de comissão"
        ordering = ["comissao", "cargo", "parlamentar__nome"]
        constraints = [
            models.UniqueConstraint(fields=["comissao", "parlamentar"], name="uniq_membro_comissao"),
        ]

    def __str__(self) -> str:
        return f"{self.parlamentar} • {self.get_cargo_display()}"


class ReuniaoComissao(models.Model):
    class Tipo(models.TextChoices):
        ORDINARIA = "ORDINARIA", "Ordinária"
        EXTRAORDINARIA = "EXTRAORDINARIA", "Extraordinária"
        ESPECIAL = "ESPECIAL", "Especial"

    class Status(models.TextChoices):
        AGENDADA = "AGENDADA", "Agendada"
        CONVOCADA = "CONVOCADA", "Convocada"
        EM_ANDAMENTO = "EM_ANDAMENTO", "Em andamento"
        SUSPENSA = "SUSPENSA", "Suspensa"
        CONCLUIDA = "CONCLUIDA", "Concluída"
        CANCELADA = "CANCELADA", "Cancelada"

    comissao = models.ForeignKey(Comissao, on_delete=models.CASCADE, related_name="reunioes")
    numero = models.PositiveIntegerField()
    ano = models.PositiveIntegerField()
    tipo = models.CharField(max_length=20, choices=Tipo.choices, default=Tipo.ORDINARIA)
    data = models.DateTimeField()
    local = models.CharField(max_length=200, blank=True, default="")
    motivo_convocacao = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AGENDADA)
    quorum_minimo = models.PositiveIntegerField(default=2)
    observacoes = models.TextField(blank=True, default="")
    ata = models.TextField(blank=True, default="")
    ata_aprovada = models.BooleanField(default=False)
    ata_aprovada_em = models.DateTimeField(null=True, blank=True)
    iniciada_em = models.DateTimeField(null=True, blank=True)
    encerrada_em = models.DateTimeField(null=True, blank=True)
    motivo_cancelamento = models.CharField(max_length=500, blank=True, default="")

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Reunião de comissão"
        verbose_name_plural = "Reuniões de comissão"
        ordering = ["-data", "-numero"]
        constraints = [
            models.UniqueConstraint(fields=["comissao", "numero", "ano"], name="uniq_reuniao_numero"),
        ]

    def __str__(self) -> str:
        return f"{self.numero}ª Reunião {self.get_tipo_display()} • {self.comissao}"


class PresencaReuniao(models.Model):
    reuniao = models.ForeignKey(ReuniaoComissao, on_delete=models.CASCADE, related_name="presencas")
    membro = models.ForeignKey(MembroComissao, on_delete=models.CASCADE, related_name="presencas")
    presente = models.BooleanField(default=True)
    justificativa = models.CharField(max_length=255, blank=True, default="")
    registrado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Presença em reunião"
        verbose_name_plural = "Presenças em reunião"
        constraints = [
            models.UniqueConstraint(fields=["reuniao", "membro"], name="uniq_presenca_reuniao"),
        ]

    def __str__(self) -> str:
        return f"{self.membro} • {'presente' if self.presente else 'ausente'}"


class Parecer(models.Model):
    class Tipo(models.TextChoices):
        FAVORAVEL = "FAVORAVEL", "Favorável"
        CONTRARIO = "CONTRARIO", "Contrário"
        FAVORAVEL_COM_EMENDAS = "FAVORAVEL_COM_EMENDAS", "Favorável com emendas"
        PELA_INCONSTITUCIONALIDADE = "PELA_INCONSTITUCIONALIDADE", "Pela inconstitucionalidade"

    class Status(models.TextChoices):
        RASCUNHO = "RASCUNHO", "Rascunho"
        EM_VOTACAO = "EM_VOTACAO", "Em votação"
        APROVADO_COMISSAO = "APROVADO_COMISSAO", "Aprovado pela comissão"
        REJEITADO_COMISSAO = "REJEITADO_COMISSAO", "Rejeitado pela comissão"
        EMITIDO = "EMITIDO", "Emitido"

    comissao = models.ForeignKey(Comissao, on_delete=models.CASCADE, related_name="pareceres")
    proposicao = models.ForeignKey(
        "proposicoes.Proposicao",
        on_delete=models.CASCADE,
        related_name="pareceres",
    )
    relator = models.ForeignKey(
        "parlamentares.Parlamentar",
        on_delete=models.PROTECT,
        related_name="pareceres_relatados",
    )
    reuniao = models.ForeignKey(
        ReuniaoComissao,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="pareceres",
    )
    tipo = models.CharField(max_length=30, choices=Tipo.choices)
    fundamentacao = models.TextField()
    conclusao = models.TextField(blank=True, default="")
    emendas = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.RASCUNHO)
    votos_favor = models.PositiveIntegerField(default=0)
    votos_contra = models.PositiveIntegerField(default=0)
    votos_abstencao = models.PositiveIntegerField(default=0)
    data_votacao = models.DateTimeField(null=True, blank=True)
    data_emissao = models.DateTimeField(null=True, blank=True)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Parecer"
        verbose_name_plural = "Pareceres"
        ordering = ["-criado_em", "-id"]

    def __str__(self) -> str:
        return f"Parecer {self.get_tipo_display()} • {self.proposicao}"
