from django.db import models
from django.db.models import Q


class ConsultaPublica(models.Model):
    class Status(models.TextChoices):
        RASCUNHO = "RASCUNHO", "Rascunho"
        ABERTA = "ABERTA", "Aberta"
        ENCERRADA = "ENCERRADA", "Encerrada"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="consultas")
    titulo = models.CharField(max_length=255)
    descricao = models.TextField()
    data_inicio = models.DateTimeField()
    data_fim = models.DateTimeField()
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.RASCUNHO)
    proposicao = models.ForeignKey(
        "proposicoes.Proposicao",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consultas",
    )
    permitir_anonimo = models.BooleanField(default=True)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Consulta pública"
        verbose_name_plural = "Consultas públicas"
        ordering = ["-data_inicio", "-id"]
        indexes = [models.Index(fields=["tenant", "status"])]

    def __str__(self) -> str:
        return self.titulo


class PerguntaConsulta(models.Model):
    class Tipo(models.TextChoices):
        TEXTO_LIVRE = "TEXTO_LIVRE", "Texto livre"
        MULTIPLA_ESCOLHA = "MULTIPLA_ESCOLHA", "Múltipla escolha"
        ESCALA = "ESCALA", "Escala (1 a 5)"
        SIM_NAO = "SIM_NAO", "Sim/Não"

    consulta = models.ForeignKey(ConsultaPublica, on_delete=models.CASCADE, related_name="perguntas")
    enunciado = models.CharField(max_length=500)
    tipo = models.CharField(max_length=20, choices=Tipo.choices, default=Tipo.TEXTO_LIVRE)
    opcoes = models.JSONField(default=list, blank=True)
    obrigatoria = models.BooleanField(default=False)
    ordem = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "Pergunta"
        verbose_name_plural = "Perguntas"
        ordering = ["ordem", "id"]

    def __str__(self) -> str:
        return self.enunciado


class ParticipacaoConsulta(models.Model):
    consulta = models.ForeignKey(ConsultaPublica, on_delete=models.CASCADE, related_name="participacoes")
    nome = models.CharField(max_length=180, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    cpf_hash = models.CharField(max_length=64, blank=True, default="", db_index=True)
    bairro = models.CharField(max_length=120, blank=True, default="")
    criado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Participação"
        verbose_name_plural = "Participações"
        ordering = ["-criado_em"]
        constraints = [
            models.UniqueConstraint(
                fields=["consulta", "cpf_hash"],
                condition=~Q(cpf_hash=""),
                name="uniq_participacao_consulta_cpf",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.consulta_id} • {self.nome or 'Anônimo'}"


class RespostaConsulta(models.Model):
    participacao = models.ForeignKey(ParticipacaoConsulta, on_delete=models.CASCADE, related_name="respostas")
    pergunta = models.ForeignKey(PerguntaConsulta, on_delete=models.CASCADE, related_name="respostas")
    resposta = models.TextField()

    class Meta:
        verbose_name = "Resposta"
        verbose_name_plural = "Respostas"
        constraints = [
            models.UniqueConstraint(fields=["participacao", "pergunta"], name="uniq_resposta_pergunta"),
        ]


class SugestaoLegislativa(models.Model):
    class Status(models.TextChoices):
        PENDENTE = "PENDENTE", "Pendente"
        EM_ANALISE = "EM_ANALISE", "Em análise"
        ACEITA = "ACEITA", "Aceita"
        RECUSADA = "RECUSADA", "Recusada"
        CONVERTIDA = "CONVERTIDA", "Convertida em proposição"

    class Categoria(models.TextChoices):
        SAUDE = "SAUDE", "Saúde"
        EDUCACAO = "EDUCACAO", "Educação"
        INFRAESTRUTURA = "INFRAESTRUTURA", "Infraestrutura"
        MEIO_AMBIENTE = "MEIO_AMBIENTE", "Meio ambiente"
        SEGURANCA = "SEGURANCA", "Segurança"
        CULTURA = "CULTURA", "Cultura e lazer"
        ASSISTENCIA_SOCIAL = "ASSISTENCIA_SOCIAL", "Assistência social"
        OUTROS = "OUTROS", "Outros"

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="sugestoes")
    titulo = models.CharField(max_length=255)
    descricao = models.TextField()
    justificativa = models.TextField()
    categoria = models.CharField(max_length=20, choices=Categoria.choices, default=Categoria.OUTROS)

    autor_nome = models.CharField(max_length=180)
    autor_email = models.EmailField()
    autor_cpf_hash = models.CharField(max_length=64, db_index=True)
    autor_bairro = models.CharField(max_length=120, blank=True, default="")

    status = models.CharField(max_length=12, choices=Status.choices, default=Status.PENDENTE)
    motivo_recusa = models.TextField(blank=True, default="")
    parlamentar_responsavel = models.ForeignKey(
        "parlamentares.Parlamentar",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sugestoes",
    )
    proposicao = models.ForeignKey(
        "proposicoes.Proposicao",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sugestoes",
    )
    total_apoios = models.PositiveIntegerField(default=0)

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Sugestão legislativa"
        verbose_name_plural = "Sugestões legislativas"
        ordering = ["-total_apoios", "-criado_em"]
        indexes = [models.Index(fields=["tenant", "status"])]

    def __str__(self) -> str:
        return self.titulo


class ApoioSugestao(models.Model):
    sugestao = models.ForeignKey(SugestaoLegislativa, on_delete=models.CASCADE, related_name="apoios")
    nome = models.CharField(max_length=180)
    email = models.EmailField(blank=True, default="")
    cpf_hash = models.CharField(max_length=64)
    criado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Apoio"
        verbose_name_plural = "Apoios"
        constraints = [
            models.UniqueConstraint(fields=["sugestao", "cpf_hash"], name="uniq_apoio_sugestao_cpf"),
        ]
