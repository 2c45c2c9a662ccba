from django.db import models
from django.utils import timezone

TEMPLATE_TITULO_PADRAO = "{{numero_sessao}}ª {{tipo_sessao}} do {{periodo}} da {{legislatura}}ª Legislatura"


class Sessao(models.Model):
    class Tipo(models.TextChoices):
        ORDINARIA = "ORDINARIA", "Sessão Ordinária"
        EXTRAORDINARIA = "EXTRAORDINARIA", "Sessão Extraordinária"
        ESPECIAL = "ESPECIAL", "Sessão Especial"
        SOLENE = "SOLENE", "Sessão Solene"

    class Status(models.TextChoices):
        AGENDADA = "AGENDADA", "Agendada"
        CONVOCADA = "CONVOCADA", "Convocada"
        EM_ANDAMENTO = "EM_ANDAMENTO", "Em andamento"
        SUSPENSA = "SUSPENSA", "Suspensa"
        CONCLUIDA = "CONCLUIDA", "Concluída"
        CANCELADA = "CANCELADA", "Cancelada"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="sessoes")
    legislatura = models.ForeignKey(
        "parlamentares.Legislatura",
        on_delete=models.PROTECT,
        related_name="sessoes",
    )
    periodo = models.ForeignKey(
        "parlamentares.PeriodoLegislatura",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sessoes",
    )
    numero = models.PositiveIntegerField()
    tipo = models.CharField(max_length=20, choices=Tipo.choices, default=Tipo.ORDINARIA)
    titulo = models.CharField(max_length=255, blank=True, default="")
    data = models.DateField()
    # derivado de data, sustenta a unicidade do número
    ano = models.PositiveIntegerField(editable=False, db_index=True, default=0)
    horario = models.TimeField(null=True, blank=True)
    local = models.CharField(max_length=200, blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AGENDADA)
    finalizada = models.BooleanField(default=False)
    item_atual = models.ForeignKey(
        "sessoes.PautaItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    ata = models.TextField(blank=True, default="")
    descricao = models.TextField(blank=True, default="")
    tempo_total_real = models.PositiveIntegerField(default=0)
    iniciada_em = models.DateTimeField(null=True, blank=True)
    finalizada_em = models.DateTimeField(null=True, blank=True)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Sessão"
        verbose_name_plural = "Sessões"
        ordering = ["-data", "-numero"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "tipo", "numero", "legislatura", "ano"],
                name="uniq_sessao_numero",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "status"]),
            models.Index(fields=["tenant", "data"]),
        ]

    def save(self, *args, **kwargs):
        if self.data:
            self.ano = self.data.year
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "data" in update_fields:
                kwargs["update_fields"] = {*update_fields, "ano"}
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.titulo or f"{self.numero}ª {self.get_tipo_display()}"

    @property
    def encerrada(self) -> bool:
        return self.status in {self.Status.CONCLUIDA, self.Status.CANCELADA}


class PautaItem(models.Model):
    class Secao(models.TextChoices):
        EXPEDIENTE = "EXPEDIENTE", "Expediente"
        ORDEM_DO_DIA = "ORDEM_DO_DIA", "Ordem do Dia"
        COMUNICACOES = "COMUNICACOES", "Comunicações"
        HONRAS = "HONRAS", "Honras"

    class Status(models.TextChoices):
        PENDENTE = "PENDENTE", "Pendente"
        EM_DISCUSSAO = "EM_DISCUSSAO", "Em discussão"
        EM_VOTACAO = "EM_VOTACAO", "Em votação"
        APROVADO = "APROVADO", "Aprovado"
        REJEITADO = "REJEITADO", "Rejeitado"
        RETIRADO = "RETIRADO", "Retirado"
        ADIADO = "ADIADO", "Adiado"
        CONCLUIDO = "CONCLUIDO", "Concluído"

    class ResultadoTurno(models.TextChoices):
        APROVADA = "APROVADA", "Aprovada"
        REJEITADA = "REJEITADA", "Rejeitada"
        EMPATE = "EMPATE", "Empate"
        SEM_QUORUM = "SEM_QUORUM", "Sem quórum"

    sessao = models.ForeignKey(Sessao, on_delete=models.CASCADE, related_name="pauta")
    secao = models.CharField(max_length=20, choices=Secao.choices, default=Secao.ORDEM_DO_DIA)
    ordem = models.PositiveIntegerField(default=1)
    titulo = models.CharField(max_length=255)
    descricao = models.TextField(blank=True, default="")
    proposicao = models.ForeignKey(
        "proposicoes.Proposicao",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="itens_pauta",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDENTE)

    # tempos em segundos
    tempo_estimado = models.PositiveIntegerField(null=True, blank=True)
    tempo_acumulado = models.PositiveIntegerField(default=0)
    tempo_real = models.PositiveIntegerField(null=True, blank=True)
    iniciado_em = models.DateTimeField(null=True, blank=True)
    finalizado_em = models.DateTimeField(null=True, blank=True)

    # turnos
    turno_atual = models.PositiveSmallIntegerField(default=1)
    turno_final = models.PositiveSmallIntegerField(default=1)
    resultado_turno1 = models.CharField(max_length=12, choices=ResultadoTurno.choices, blank=True, default="")
    resultado_turno2 = models.CharField(max_length=12, choices=ResultadoTurno.choices, blank=True, default="")
    data_votacao_turno1 = models.DateTimeField(null=True, blank=True)
    data_votacao_turno2 = models.DateTimeField(null=True, blank=True)
    intersticio = models.BooleanField(default=False)
    prazo_intersticio = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Item da pauta"
        verbose_name_plural = "Itens da pauta"
        ordering = ["sessao", "ordem", "id"]
        indexes = [
            models.Index(fields=["sessao", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.ordem}. {self.titulo}"

    def votos_registrados(self) -> bool:
        if not self.proposicao_id:
            return False
        return Voto.objects.filter(sessao_id=self.sessao_id, proposicao_id=self.proposicao_id).exists()


class PresencaSessao(models.Model):
    sessao = models.ForeignKey(Sessao, on_delete=models.CASCADE, related_name="presencas")
    parlamentar = models.ForeignKey(
        "parlamentares.Parlamentar",
        on_delete=models.CASCADE,
        related_name="presencas_sessao",
    )
    presente = models.BooleanField(default=True)
    justificativa = models.CharField(max_length=255, blank=True, default="")
    registrado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Presença em sessão"
        verbose_name_plural = "Presenças em sessão"
        constraints = [
            models.UniqueConstraint(fields=["sessao", "parlamentar"], name="uniq_presenca_sessao"),
        ]

    def __str__(self) -> str:
        return f"{self.parlamentar} • {'presente' if self.presente else 'ausente'}"


class Voto(models.Model):
    class Opcao(models.TextChoices):
        SIM = "SIM", "Sim"
        NAO = "NAO", "Não"
        ABSTENCAO = "ABSTENCAO", "Abstenção"
        AUSENTE = "AUSENTE", "Ausente"

    proposicao = models.ForeignKey("proposicoes.Proposicao", on_delete=models.CASCADE, related_name="votos")
    parlamentar = models.ForeignKey("parlamentares.Parlamentar", on_delete=models.CASCADE, related_name="votos")
    sessao = models.ForeignKey(Sessao, on_delete=models.CASCADE, related_name="votos")
    turno = models.PositiveSmallIntegerField(default=1)
    voto = models.CharField(max_length=10, choices=Opcao.choices)
    registrado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Voto"
        verbose_name_plural = "Votos"
        constraints = [
            models.UniqueConstraint(fields=["proposicao", "parlamentar", "turno"], name="uniq_voto_turno"),
        ]
        indexes = [
            models.Index(fields=["sessao", "proposicao", "turno"]),
        ]

    def __str__(self) -> str:
        return f"{self.parlamentar} • {self.voto}"


class ConfiguracaoNomenclatura(models.Model):
    tenant = models.OneToOneField("tenants.Tenant", on_delete=models.CASCADE, related_name="nomenclatura_sessoes")
    template_titulo = models.CharField(max_length=255, default=TEMPLATE_TITULO_PADRAO)
    numeracao_sequencial = models.BooleanField(default=True)
    resetar_por_ano = models.BooleanField(default=True)
    resetar_por_legislatura = models.BooleanField(default=True)
    quantidade_periodos = models.PositiveSmallIntegerField(default=4)
    nome_periodo = models.CharField(max_length=40, default="Período")
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Nomenclatura de sessões"
        verbose_name_plural = "Nomenclatura de sessões"

    def __str__(self) -> str:
        return f"Nomenclatura • {self.tenant}"


class SequenciaNumeracao(models.Model):
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="sequencias_sessao")
    tipo_sessao = models.CharField(max_length=20, choices=Sessao.Tipo.choices)
    # 0 quando a numeração não reinicia por legislatura/ano
    legislatura = models.PositiveIntegerField(default=0)
    ano = models.PositiveIntegerField(default=0)
    ultimo_numero = models.PositiveIntegerField(default=0)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Sequência de numeração"
        verbose_name_plural = "Sequências de numeração"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "tipo_sessao", "legislatura", "ano"],
                name="uniq_sequencia_sessao",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.tipo_sessao} • leg {self.legislatura} • {self.ano} • {self.ultimo_numero}"

    @property
    def proximo_numero(self) -> int:
        return self.ultimo_numero + 1


class ConfiguracaoQuorum(models.Model):
    class Aplicacao(models.TextChoices):
        INSTALACAO_SESSAO = "INSTALACAO_SESSAO", "Instalação de sessão"
        VOTACAO_SIMPLES = "VOTACAO_SIMPLES", "Votação simples"
        VOTACAO_ABSOLUTA = "VOTACAO_ABSOLUTA", "Votação absoluta"
        VOTACAO_QUALIFICADA = "VOTACAO_QUALIFICADA", "Votação qualificada"
        VOTACAO_URGENCIA = "VOTACAO_URGENCIA", "Regime de urgência"
        VOTACAO_COMISSAO = "VOTACAO_COMISSAO", "Votação em comissão"
        DERRUBADA_VETO = "DERRUBADA_VETO", "Derrubada de veto"

    class TipoQuorum(models.TextChoices):
        MAIORIA_SIMPLES = "MAIORIA_SIMPLES", "Maioria simples"
        MAIORIA_ABSOLUTA = "MAIORIA_ABSOLUTA", "Maioria absoluta"
        DOIS_TERCOS = "DOIS_TERCOS", "Dois terços"
        TRES_QUINTOS = "TRES_QUINTOS", "Três quintos"
        UNANIMIDADE = "UNANIMIDADE", "Unanimidade"

    class Base(models.TextChoices):
        PRESENTES = "PRESENTES", "Presentes"
        TOTAL_MEMBROS = "TOTAL_MEMBROS", "Total de membros"
        TOTAL_MANDATOS = "TOTAL_MANDATOS", "Total de mandatos"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="configuracoes_quorum")
    nome = models.CharField(max_length=120)
    descricao = models.CharField(max_length=255, blank=True, default="")
    aplicacao = models.CharField(max_length=30, choices=Aplicacao.choices)
    tipo_quorum = models.CharField(max_length=20, choices=TipoQuorum.choices, default=TipoQuorum.MAIORIA_SIMPLES)
    base_calculo = models.CharField(max_length=20, choices=Base.choices, default=Base.PRESENTES)
    percentual_minimo = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    numero_minimo = models.PositiveIntegerField(null=True, blank=True)
    permitir_abstencao = models.BooleanField(default=True)
    abstencao_conta_contra = models.BooleanField(default=False)
    requerer_votacao_nominal = models.BooleanField(default=False)
    mensagem_aprovacao = models.CharField(max_length=160, blank=True, default="")
    mensagem_rejeicao = models.CharField(max_length=160, blank=True, default="")
    ativo = models.BooleanField(default=True)
    ordem = models.PositiveSmallIntegerField(default=0)

    class Meta:
        verbose_name = "Configuração de quórum"
        verbose_name_plural = "Configurações de quórum"
        ordering = ["ordem", "nome"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "aplicacao"], name="uniq_quorum_aplicacao"),
        ]

    def __str__(self) -> str:
        return f"{self.nome} ({self.get_tipo_quorum_display()})"
