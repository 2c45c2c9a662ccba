from django.conf import settings
from django.core.validators import MinLengthValidator
from django.db import models
from django.utils import timezone


class Proposicao(models.Model):
    class Tipo(models.TextChoices):
        PROJETO_LEI = "PROJETO_LEI", "Projeto de Lei"
        PROJETO_LEI_COMPLEMENTAR = "PROJETO_LEI_COMPLEMENTAR", "Projeto de Lei Complementar"
        PROJETO_RESOLUCAO = "PROJETO_RESOLUCAO", "Projeto de Resolução"
        PROJETO_DECRETO_LEGISLATIVO = "PROJETO_DECRETO_LEGISLATIVO", "Projeto de Decreto Legislativo"
        PROJETO_EMENDA_LEI_ORGANICA = "PROJETO_EMENDA_LEI_ORGANICA", "Proposta de Emenda à Lei Orgânica"
        INDICACAO = "INDICACAO", "Indicação"
        REQUERIMENTO = "REQUERIMENTO", "Requerimento"
        MOCAO = "MOCAO", "Moção"
        VOTO_PESAR = "VOTO_PESAR", "Voto de Pesar"
        VOTO_APLAUSO = "VOTO_APLAUSO", "Voto de Aplauso"
        VETO = "VETO", "Veto"

    class Status(models.TextChoices):
        APRESENTADA = "APRESENTADA", "Apresentada"
        EM_TRAMITACAO = "EM_TRAMITACAO", "Em tramitação"
        AGUARDANDO_PAUTA = "AGUARDANDO_PAUTA", "Aguardando pauta"
        EM_PAUTA = "EM_PAUTA", "Em pauta"
        APROVADA = "APROVADA", "Aprovada"
        REJEITADA = "REJEITADA", "Rejeitada"
        ARQUIVADA = "ARQUIVADA", "Arquivada"
        VETADA = "VETADA", "Vetada"
        TRANSFORMADA_EM_NORMA = "TRANSFORMADA_EM_NORMA", "Transformada em norma"

    class Regime(models.TextChoices):
        NORMAL = "NORMAL", "Normal"
        URGENCIA = "URGENCIA", "Urgência"

    class Resultado(models.TextChoices):
        APROVADA = "APROVADA", "Aprovada"
        REJEITADA = "REJEITADA", "Rejeitada"
        EMPATE = "EMPATE", "Empate"

    SIGLAS = {
        Tipo.PROJETO_LEI: "PL",
        Tipo.PROJETO_LEI_COMPLEMENTAR: "PLC",
        Tipo.PROJETO_RESOLUCAO: "PR",
        Tipo.PROJETO_DECRETO_LEGISLATIVO: "PDL",
        Tipo.PROJETO_EMENDA_LEI_ORGANICA: "PELO",
        Tipo.INDICACAO: "IND",
        Tipo.REQUERIMENTO: "REQ",
        Tipo.MOCAO: "MOC",
        Tipo.VOTO_PESAR: "VP",
        Tipo.VOTO_APLAUSO: "VA",
        Tipo.VETO: "VET",
    }

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="proposicoes")
    tipo = models.CharField(max_length=40, choices=Tipo.choices)
    numero = models.CharField(max_length=10)
    ano = models.PositiveIntegerField()
    titulo = models.CharField(max_length=255, validators=[MinLengthValidator(5)])
    ementa = models.TextField(validators=[MinLengthValidator(10)])
    texto = models.TextField(blank=True, default="")
    justificativa = models.TextField(blank=True, default="")
    autor = models.ForeignKey(
        "parlamentares.Parlamentar",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="proposicoes",
    )
    status = models.CharField(max_length=30, choices=Status.choices, default=Status.APRESENTADA)
    regime = models.CharField(max_length=10, choices=Regime.choices, default=Regime.NORMAL)
    data_apresentacao = models.DateField(default=timezone.localdate)
    data_votacao = models.DateTimeField(null=True, blank=True)
    resultado = models.CharField(max_length=10, choices=Resultado.choices, blank=True, default="")
    sessao_votacao = models.ForeignKey(
        "sessoes.Sessao",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proposicoes_votadas",
    )
    prazo_emendas = models.DateField(null=True, blank=True)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Proposição"
        verbose_name_plural = "Proposições"
        ordering = ["-ano", "-numero"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "tipo", "numero", "ano"], name="uniq_proposicao_numero"),
        ]
        indexes = [
            models.Index(fields=["tenant", "status"]),
            models.Index(fields=["tenant", "tipo", "ano"]),
        ]

    def __str__(self) -> str:
        return self.identificacao

    @property
    def sigla(self) -> str:
        return self.SIGLAS.get(self.tipo, self.tipo[:3])

    @property
    def identificacao(self) -> str:
        return f"{self.sigla} {self.numero}/{self.ano}"


class Tramitacao(models.Model):
    proposicao = models.ForeignKey(Proposicao, on_delete=models.CASCADE, related_name="tramitacoes")
    data = models.DateTimeField(default=timezone.now)
    unidade = models.CharField(max_length=160)
    acao = models.CharField(max_length=160)
    status = models.CharField(max_length=30, choices=Proposicao.Status.choices, blank=True, default="")
    observacoes = models.TextField(blank=True, default="")
    usuario = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tramitacoes",
    )

    class Meta:
        verbose_name = "Tramitação"
        verbose_name_plural = "Tramitações"
        ordering = ["-data", "-id"]

    def __str__(self) -> str:
        return f"{self.proposicao} • {self.acao}"


class Emenda(models.Model):
    class Tipo(models.TextChoices):
        ADITIVA = "ADITIVA", "Aditiva"
        MODIFICATIVA = "MODIFICATIVA", "Modificativa"
        SUPRESSIVA = "SUPRESSIVA", "Supressiva"
        SUBSTITUTIVA = "SUBSTITUTIVA", "Substitutiva"
        EMENDA_DE_REDACAO = "EMENDA_DE_REDACAO", "De redação"

    class Status(models.TextChoices):
        APRESENTADA = "APRESENTADA", "Apresentada"
        EM_ANALISE = "EM_ANALISE", "Em análise"
        APROVADA = "APROVADA", "Aprovada"
        REJEITADA = "REJEITADA", "Rejeitada"
        PREJUDICADA = "PREJUDICADA", "Prejudicada"
        RETIRADA = "RETIRADA", "Retirada"
        AGLUTINADA = "AGLUTINADA", "Aglutinada"

    class Parecer(models.TextChoices):
        FAVORAVEL = "FAVORAVEL", "Favorável"
        CONTRARIO = "CONTRARIO", "Contrário"
        FAVORAVEL_COM_RESSALVAS = "FAVORAVEL_COM_RESSALVAS", "Favorável com ressalvas"

    proposicao = models.ForeignKey(Proposicao, on_delete=models.CASCADE, related_name="emendas")
    autor = models.ForeignKey("parlamentares.Parlamentar", on_delete=models.PROTECT, related_name="emendas")
    coautores = models.ManyToManyField("parlamentares.Parlamentar", blank=True, related_name="emendas_coautoria")
    tipo = models.CharField(max_length=20, choices=Tipo.choices)
    numero = models.PositiveIntegerField()
    ano = models.PositiveIntegerField()
    artigo = models.CharField(max_length=20, blank=True, default="")
    paragrafo = models.CharField(max_length=20, blank=True, default="")
    inciso = models.CharField(max_length=20, blank=True, default="")
    alinea = models.CharField(max_length=20, blank=True, default="")
    texto_original = models.TextField(blank=True, default="")
    texto_novo = models.TextField(blank=True, default="")
    justificativa = models.TextField()
    turno_apresentacao = models.PositiveSmallIntegerField(default=1)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.APRESENTADA)

    parecer_comissao = models.CharField(max_length=160, blank=True, default="")
    parecer_tipo = models.CharField(max_length=30, choices=Parecer.choices, blank=True, default="")
    parecer_texto = models.TextField(blank=True, default="")

    aglutinada_em = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="emendas_aglutinadas",
    )
    data_votacao = models.DateTimeField(null=True, blank=True)
    votos_sim = models.PositiveIntegerField(default=0)
    votos_nao = models.PositiveIntegerField(default=0)
    votos_abstencao = models.PositiveIntegerField(default=0)
    motivo = models.CharField(max_length=500, blank=True, default="")

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Emenda"
        verbose_name_plural = "Emendas"
        ordering = ["proposicao_id", "numero"]
        constraints = [
            models.UniqueConstraint(fields=["proposicao", "numero"], name="uniq_emenda_numero"),
        ]

    def __str__(self) -> str:
        return self.identificacao

    @property
    def identificacao(self) -> str:
        return f"Emenda {self.numero:03d} ao {self.proposicao.identificacao}"

    @property
    def referencia(self) -> str:
        partes = [
            f"Art. {self.artigo}" if self.artigo else "",
            f"§ {self.paragrafo}" if self.paragrafo else "",
            f"Inc. {self.inciso}" if self.inciso else "",
            f"Alínea {self.alinea}" if self.alinea else "",
        ]
        return ", ".join(p for p in partes if p) or "Texto geral"


class VotoEmenda(models.Model):
    class Opcao(models.TextChoices):
        SIM = "SIM", "Sim"
        NAO = "NAO", "Não"
        ABSTENCAO = "ABSTENCAO", "Abstenção"
        AUSENTE = "AUSENTE", "Ausente"

    emenda = models.ForeignKey(Emenda, on_delete=models.CASCADE, related_name="votos")
    parlamentar = models.ForeignKey("parlamentares.Parlamentar", on_delete=models.CASCADE, related_name="votos_emenda")
    voto = models.CharField(max_length=10, choices=Opcao.choices)
    registrado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Voto em emenda"
        verbose_name_plural = "Votos em emendas"
        constraints = [
            models.UniqueConstraint(fields=["emenda", "parlamentar"], name="uniq_voto_emenda"),
        ]

    def __str__(self) -> str:
        return f"{self.parlamentar} • {self.voto}"


class ProcessoSancao(models.Model):
    """Fase pós-aprovação: envio ao Executivo, sanção ou veto, apreciação e promulgação."""

    class Situacao(models.TextChoices):
        ENVIADA_EXECUTIVO = "ENVIADA_EXECUTIVO", "Enviada ao Executivo"
        SANCIONADA = "SANCIONADA", "Sancionada"
        VETADA = "VETADA", "Vetada"
        VETO_PARCIAL = "VETO_PARCIAL", "Veto parcial"
        VETO_MANTIDO = "VETO_MANTIDO", "Veto mantido"
        VETO_REJEITADO = "VETO_REJEITADO", "Veto rejeitado"
        PROMULGADA = "PROMULGADA", "Promulgada"

    class TipoVeto(models.TextChoices):
        TOTAL = "TOTAL", "Total"
        PARCIAL = "PARCIAL", "Parcial"

    class MotivoVeto(models.TextChoices):
        INCONSTITUCIONALIDADE = "INCONSTITUCIONALIDADE", "Inconstitucionalidade"
        INTERESSE_PUBLICO = "INTERESSE_PUBLICO", "Contrariedade ao interesse público"

    proposicao = models.OneToOneField(Proposicao, on_delete=models.CASCADE, related_name="processo_sancao")
    situacao = models.CharField(max_length=20, choices=Situacao.choices, default=Situacao.ENVIADA_EXECUTIVO)

    enviada_em = models.DateField(null=True, blank=True)
    prazo_sancao = models.DateField(null=True, blank=True)
    sancionada_em = models.DateField(null=True, blank=True)
    sancao_tacita = models.BooleanField(default=False)
    numero_lei = models.CharField(max_length=20, blank=True, default="")

    veto_tipo = models.CharField(max_length=10, choices=TipoVeto.choices, blank=True, default="")
    veto_motivo = models.CharField(max_length=30, choices=MotivoVeto.choices, blank=True, default="")
    veto_razoes = models.TextField(blank=True, default="")
    dispositivos_vetados = models.JSONField(default=list, blank=True)
    vetada_em = models.DateField(null=True, blank=True)
    prazo_apreciacao = models.DateField(null=True, blank=True)

    votos_sim = models.PositiveIntegerField(default=0)
    votos_nao = models.PositiveIntegerField(default=0)
    votos_abstencao = models.PositiveIntegerField(default=0)
    votos_necessarios = models.PositiveIntegerField(default=0)
    apreciada_em = models.DateField(null=True, blank=True)
    promulgada_em = models.DateField(null=True, blank=True)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Processo de sanção"
        verbose_name_plural = "Processos de sanção"
        ordering = ["-criado_em"]

    def __str__(self) -> str:
        return f"{self.proposicao} • {self.get_situacao_display()}"
