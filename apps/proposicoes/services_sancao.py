from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos
from apps.core.services_auditoria import registrar_auditoria
from apps.core.services_transparencia import publicar_evento_transparencia
from apps.sessoes.services_quorum import (
    Aplicacao,
    Base,
    TipoQuorum,
    calcular_resultado_votacao,
    obter_configuracao,
)
from apps.sessoes.services_turnos import adicionar_dias_uteis

from .models import ProcessoSancao, Proposicao, Tramitacao
from .services import MODULO

logger = logging.getLogger(__name__)

Situacao = ProcessoSancao.Situacao

PRAZO_SANCAO_DIAS_UTEIS = 15
PRAZO_APRECIACAO_DIAS = 30
DIAS_URGENCIA = 7
PRAZO_COMUNICACAO = timedelta(hours=48)
MIN_RAZOES_VETO = 50

# demais tipos (resolução, decreto legislativo) são promulgados pela Câmara
TIPOS_COM_SANCAO = {
    Proposicao.Tipo.PROJETO_LEI,
    Proposicao.Tipo.PROJETO_LEI_COMPLEMENTAR,
}
TIPOS_PROMULGACAO_DIRETA = {
    Proposicao.Tipo.PROJETO_RESOLUCAO,
    Proposicao.Tipo.PROJETO_DECRETO_LEGISLATIVO,
    Proposicao.Tipo.PROJETO_EMENDA_LEI_ORGANICA,
}


def _registrar(processo: ProcessoSancao, *, evento: str, unidade: str, acao: str, usuario=None, antes=None, observacoes=""):
    proposicao = processo.proposicao
    Tramitacao.objects.create(
        proposicao=proposicao,
        unidade=unidade,
        acao=acao,
        status=proposicao.status,
        observacoes=observacoes,
        usuario=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    registrar_auditoria(
        tenant=proposicao.tenant,
        modulo=MODULO,
        evento=evento,
        entidade="ProcessoSancao",
        entidade_id=processo.pk,
        usuario=usuario,
        antes=antes,
        depois={"situacao": processo.situacao, "proposicao": proposicao.status},
    )
    publicar_evento_transparencia(
        tenant=proposicao.tenant,
        modulo=MODULO,
        tipo_evento=evento,
        titulo=f"{proposicao.identificacao}: {acao}",
        descricao=proposicao.ementa,
        referencia=proposicao.identificacao,
        dados={"proposicaoId": proposicao.pk, "situacao": processo.situacao, "numeroLei": processo.numero_lei},
    )
    logger.info("Proposição %s: %s", proposicao.identificacao, acao)


def _mudar_status(proposicao: Proposicao, status: str) -> None:
    proposicao.status = status
    proposicao.save(update_fields=["status", "atualizado_em"])


def _exigir_situacao(processo: ProcessoSancao, *situacoes: str) -> None:
    if processo.situacao not in situacoes:
        raise Conflito(f"Operação não permitida com o processo {processo.get_situacao_display().lower()}")


def _exigir_numero_lei(numero_lei: str) -> str:
    numero_lei = (numero_lei or "").strip()
    if not numero_lei:
        raise DadosInvalidos("Informe o número da lei", details={"numero_lei": ["Campo obrigatório."]})
    return numero_lei


def obter_processo(proposicao: Proposicao) -> ProcessoSancao | None:
    return ProcessoSancao.objects.filter(proposicao=proposicao).first()


@transaction.atomic
def enviar_ao_executivo(proposicao: Proposicao, *, data_envio=None, usuario=None) -> tuple[ProcessoSancao, str]:
    proposicao = Proposicao.objects.select_for_update().get(pk=proposicao.pk)
    if proposicao.status != Proposicao.Status.APROVADA:
        raise Conflito("Somente proposições aprovadas podem ser enviadas ao Executivo")
    if proposicao.tipo not in TIPOS_COM_SANCAO:
        raise Conflito("Este tipo de proposição é promulgado pela Câmara, sem sanção")
    if ProcessoSancao.objects.filter(proposicao=proposicao).exists():
        raise Conflito("Proposição já foi enviada ao Executivo")

    data_envio = data_envio or timezone.localdate()
    processo = ProcessoSancao.objects.create(
        proposicao=proposicao,
        situacao=Situacao.ENVIADA_EXECUTIVO,
        enviada_em=data_envio,
        prazo_sancao=adicionar_dias_uteis(data_envio, PRAZO_SANCAO_DIAS_UTEIS),
    )

    aviso = ""
    if proposicao.data_votacao:
        limite = timezone.localtime(proposicao.data_votacao) + PRAZO_COMUNICACAO
        if data_envio > limite.date():
            aviso = "Envio realizado após 48 horas da votação"

    _registrar(
        processo,
        evento="PROPOSICAO_ENVIADA_SANCAO",
        unidade="Poder Executivo",
        acao="Enviada para sanção",
        usuario=usuario,
        observacoes=f"Prazo para sanção: {processo.prazo_sancao:%d/%m/%Y}",
    )
    return processo, aviso


@transaction.atomic
def sancionar(processo: ProcessoSancao, *, numero_lei: str, data_sancao=None, usuario=None) -> ProcessoSancao:
    _exigir_situacao(processo, Situacao.ENVIADA_EXECUTIVO)
    numero_lei = _exigir_numero_lei(numero_lei)
    antes = {"situacao": processo.situacao}
    processo.situacao = Situacao.SANCIONADA
    processo.sancionada_em = data_sancao or timezone.localdate()
    processo.numero_lei = numero_lei
    processo.save()
    _registrar(
        processo,
        evento="PROPOSICAO_SANCIONADA",
        unidade="Poder Executivo",
        acao=f"Sancionada (Lei nº {processo.numero_lei})",
        usuario=usuario,
        antes=antes,
    )
    return processo


@transaction.atomic
def registrar_sancao_tacita(processo: ProcessoSancao, *, hoje=None, usuario=None) -> ProcessoSancao:
    """Silêncio do Executivo após o prazo importa sanção; a Câmara promulga em seguida."""
    _exigir_situacao(processo, Situacao.ENVIADA_EXECUTIVO)
    hoje = hoje or timezone.localdate()
    if processo.prazo_sancao and hoje <= processo.prazo_sancao:
        raise Conflito("O prazo para sanção ainda não terminou")

    antes = {"situacao": processo.situacao}
    processo.situacao = Situacao.SANCIONADA
    processo.sancao_tacita = True
    processo.sancionada_em = hoje
    processo.save()
    _registrar(
        processo,
        evento="PROPOSICAO_SANCAO_TACITA",
        unidade="Poder Executivo",
        acao="Sanção tácita",
        usuario=usuario,
        antes=antes,
    )
    return processo


@transaction.atomic
def vetar(
    processo: ProcessoSancao,
    *,
    tipo: str,
    motivo: str,
    razoes: str,
    dispositivos: list | None = None,
    data_veto=None,
    usuario=None,
) -> tuple[ProcessoSancao, str]:
    _exigir_situacao(processo, Situacao.ENVIADA_EXECUTIVO)
    razoes = (razoes or "").strip()
    if len(razoes) < MIN_RAZOES_VETO:
        raise DadosInvalidos(
            "As razões do veto devem ter ao menos 50 caracteres",
            details={"razoes": ["Fundamente o veto."]},
        )
    dispositivos = [d for d in (dispositivos or []) if str(d).strip()]
    if tipo == ProcessoSancao.TipoVeto.PARCIAL and not dispositivos:
        raise DadosInvalidos(
            "Veto parcial exige os dispositivos vetados",
            details={"dispositivos": ["Informe ao menos um dispositivo."]},
        )

    data_veto = data_veto or timezone.localdate()
    antes = {"situacao": processo.situacao}
    processo.situacao = Situacao.VETADA if tipo == ProcessoSancao.TipoVeto.TOTAL else Situacao.VETO_PARCIAL
    processo.veto_tipo = tipo
    processo.veto_motivo = motivo
    processo.veto_razoes = razoes
    processo.dispositivos_vetados = dispositivos if tipo == ProcessoSancao.TipoVeto.PARCIAL else []
    processo.vetada_em = data_veto
    processo.prazo_apreciacao = data_veto + timedelta(days=PRAZO_APRECIACAO_DIAS)
    processo.save()
    _mudar_status(processo.proposicao, Proposicao.Status.VETADA)

    aviso = ""
    if processo.prazo_sancao and data_veto > processo.prazo_sancao:
        aviso = "Veto comunicado após o prazo de sanção"
    _registrar(
        processo,
        evento="PROPOSICAO_VETADA",
        unidade="Poder Executivo",
        acao="Veto total" if tipo == ProcessoSancao.TipoVeto.TOTAL else "Veto parcial",
        usuario=usuario,
        antes=antes,
        observacoes=f"{processo.get_veto_motivo_display()}. Razões comunicadas em até 48 horas.",
    )
    return processo, aviso


def calcular_prazo_apreciacao(processo: ProcessoSancao, hoje=None) -> dict:
    if processo.prazo_apreciacao is None:
        return {"prazoFinal": None, "diasRestantes": None, "vencido": False, "urgente": False}
    hoje = hoje or timezone.localdate()
    restantes = (processo.prazo_apreciacao - hoje).days
    return {
        "prazoFinal": processo.prazo_apreciacao,
        "diasRestantes": restantes,
        "vencido": restantes < 0,
        "urgente": 0 <= restantes <= DIAS_URGENCIA,
    }


def _config_derrubada(tenant):
    config = obter_configuracao(tenant, Aplicacao.DERRUBADA_VETO)
    if config.pk is None:
        # sem cadastro: maioria absoluta dos membros da Câmara
        config.tipo_quorum = TipoQuorum.MAIORIA_ABSOLUTA
        config.base_calculo = Base.TOTAL_MEMBROS
        config.mensagem_aprovacao = "Veto derrubado"
        config.mensagem_rejeicao = "Veto mantido"
    return config


@transaction.atomic
def apreciar_veto(
    processo: ProcessoSancao,
    *,
    sim: int,
    nao: int,
    abstencao: int = 0,
    presentes: int | None = None,
    usuario=None,
) -> tuple[ProcessoSancao, dict]:
    """
    Votação do veto em plenário. Votos SIM derrubam o veto.

    Veto derrubado segue para promulgação pelo Presidente da Câmara.
    Veto total mantido arquiva a proposição; o parcial mantém o restante aprovado.
    """
    _exigir_situacao(processo, Situacao.VETADA, Situacao.VETO_PARCIAL)
    proposicao = processo.proposicao
    presentes = presentes if presentes is not None else sim + nao + abstencao

    config = _config_derrubada(proposicao.tenant)
    resultado = calcular_resultado_votacao(config, sim=sim, nao=nao, abstencao=abstencao, presentes=presentes)

    antes = {"situacao": processo.situacao}
    processo.votos_sim = sim
    processo.votos_nao = nao
    processo.votos_abstencao = abstencao
    processo.votos_necessarios = resultado["quorum"]["votosNecessarios"]
    processo.apreciada_em = timezone.localdate()

    if resultado["aprovado"]:
        processo.situacao = Situacao.VETO_REJEITADO
        _mudar_status(proposicao, Proposicao.Status.APROVADA)
        evento, acao = "VETO_DERRUBADO", "Veto derrubado"
    else:
        parcial = processo.veto_tipo == ProcessoSancao.TipoVeto.PARCIAL
        processo.situacao = Situacao.VETO_MANTIDO
        _mudar_status(proposicao, Proposicao.Status.APROVADA if parcial else Proposicao.Status.ARQUIVADA)
        evento, acao = "VETO_MANTIDO", "Veto mantido"
    processo.save()

    _registrar(
        processo,
        evento=evento,
        unidade="Plenário",
        acao=acao,
        usuario=usuario,
        antes=antes,
        observacoes=resultado["detalhes"],
    )
    return processo, resultado


@transaction.atomic
def promulgar(proposicao: Proposicao, *, numero_lei: str, data_promulgacao=None, usuario=None) -> ProcessoSancao:
    numero_lei = _exigir_numero_lei(numero_lei)
    processo = obter_processo(proposicao)

    if processo is None:
        if proposicao.tipo not in TIPOS_PROMULGACAO_DIRETA or proposicao.status != Proposicao.Status.APROVADA:
            raise Conflito("Proposição não está apta à promulgação")
        processo = ProcessoSancao.objects.create(proposicao=proposicao, situacao=Situacao.PROMULGADA)
        antes = None
    else:
        pode = processo.situacao == Situacao.VETO_REJEITADO or (
            processo.situacao == Situacao.SANCIONADA and processo.sancao_tacita
        )
        if not pode:
            raise Conflito("Proposição não está apta à promulgação")
        antes = {"situacao": processo.situacao}

    processo.situacao = Situacao.PROMULGADA
    processo.numero_lei = numero_lei
    processo.promulgada_em = data_promulgacao or timezone.localdate()
    processo.save()
    _registrar(
        processo,
        evento="PROPOSICAO_PROMULGADA",
        unidade="Presidência da Câmara",
        acao=f"Promulgada (nº {numero_lei})",
        usuario=usuario,
        antes=antes,
    )
    return processo


def vetos_pendentes(tenant, hoje=None):
    processos = (
        ProcessoSancao.objects.filter(
            proposicao__tenant=tenant,
            situacao__in=[Situacao.VETADA, Situacao.VETO_PARCIAL],
        )
        .select_related("proposicao")
        .order_by("prazo_apreciacao")
    )
    return [(p, calcular_prazo_apreciacao(p, hoje)) for p in processos]
