from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos
from apps.core.services_auditoria import registrar_auditoria
from apps.core.services_transparencia import publicar_evento_transparencia
from apps.proposicoes.models import Proposicao

from . import services as controle
from . import services_quorum as quorum
from . import services_turnos as turnos
from .models import PautaItem, PresencaSessao, Sessao, Voto

logger = logging.getLogger(__name__)

SEM_QUORUM = PautaItem.ResultadoTurno.SEM_QUORUM
APROVADA = PautaItem.ResultadoTurno.APROVADA
REJEITADA = PautaItem.ResultadoTurno.REJEITADA
EMPATE = PautaItem.ResultadoTurno.EMPATE

# tipo de quórum de deliberação por aplicação configurável
QUORUM_POR_APLICACAO = {
    quorum.Aplicacao.VOTACAO_QUALIFICADA: "QUALIFICADA",
    quorum.Aplicacao.VOTACAO_ABSOLUTA: "ABSOLUTA",
    quorum.Aplicacao.VOTACAO_URGENCIA: "ABSOLUTA",
    quorum.Aplicacao.DERRUBADA_VETO: "ABSOLUTA",
}


def deve_ser_votacao_nominal(tipo_quorum: str, tipo_proposicao: str, solicitado: bool = False) -> dict:
    if (tipo_quorum or "").upper() == "QUALIFICADA":
        return {"nominal": True, "motivo": "Quórum qualificado exige votação nominal"}
    if tipo_proposicao == Proposicao.Tipo.PROJETO_EMENDA_LEI_ORGANICA:
        return {"nominal": True, "motivo": "Emenda à Lei Orgânica exige votação nominal"}
    if tipo_proposicao == Proposicao.Tipo.VETO:
        return {"nominal": True, "motivo": "Apreciação de veto exige votação nominal"}
    if solicitado:
        return {"nominal": True, "motivo": "Votação nominal solicitada pelo Plenário"}
    return {"nominal": False, "motivo": "Votação simbólica permitida"}


def verificar_impedimento(parlamentar, proposicao: Proposicao) -> dict:
    if proposicao.autor_id and proposicao.autor_id == parlamentar.pk:
        return {
            "impedido": False,
            "aviso": "Parlamentar é autor da proposição. Pode votar, mas há possível conflito de interesse.",
        }
    return {"impedido": False, "aviso": ""}


def _turno_do_item(sessao: Sessao, proposicao: Proposicao) -> int:
    item = sessao.pauta.filter(proposicao=proposicao).order_by("-id").first()
    return item.turno_atual if item else 1


@transaction.atomic
def registrar_voto(*, sessao: Sessao, proposicao: Proposicao, parlamentar, voto: str, turno: int | None = None, usuario=None) -> tuple[Voto, dict]:
    if voto not in Voto.Opcao.values:
        raise DadosInvalidos("Opção de voto inválida")
    if proposicao.tenant_id != sessao.tenant_id:
        raise DadosInvalidos("Proposição não pertence a esta câmara")
    if parlamentar.tenant_id != sessao.tenant_id or not parlamentar.ativo:
        raise DadosInvalidos("Parlamentar não encontrado ou inativo")
    if sessao.status != Sessao.Status.EM_ANDAMENTO:
        raise Conflito("A sessão deve estar em andamento para registrar votos")
    if not PresencaSessao.objects.filter(sessao=sessao, parlamentar=parlamentar, presente=True).exists():
        raise Conflito("Parlamentar deve estar presente na sessão para votar")

    turno = turno or _turno_do_item(sessao, proposicao)
    registro, criado = Voto.objects.update_or_create(
        proposicao=proposicao,
        parlamentar=parlamentar,
        turno=turno,
        defaults={"sessao": sessao, "voto": voto, "registrado_em": timezone.now()},
    )
    impedimento = verificar_impedimento(parlamentar, proposicao)
    registrar_auditoria(
        tenant=sessao.tenant,
        modulo="SESSOES",
        evento="VOTO_REGISTRADO" if criado else "VOTO_ALTERADO",
        entidade="Voto",
        entidade_id=registro.pk,
        usuario=usuario,
        depois={"proposicao": proposicao.pk, "parlamentar": parlamentar.pk, "turno": turno, "voto": voto},
    )
    logger.info("Voto %s registrado: proposição %s, turno %s", registro.pk, proposicao.pk, turno)
    return registro, impedimento


def contar_votos(proposicao: Proposicao, turno: int = 1) -> dict:
    contagem = {opcao: 0 for opcao in Voto.Opcao.values}
    for valor in Voto.objects.filter(proposicao=proposicao, turno=turno).values_list("voto", flat=True):
        contagem[valor] += 1
    return {
        "sim": contagem[Voto.Opcao.SIM],
        "nao": contagem[Voto.Opcao.NAO],
        "abstencao": contagem[Voto.Opcao.ABSTENCAO],
        "ausente": contagem[Voto.Opcao.AUSENTE],
        "total": sum(contagem.values()),
    }


def apurar_resultado(proposicao: Proposicao, turno: int = 1, *, sessao: Sessao | None = None) -> dict:
    sessao = sessao or proposicao.sessao_votacao
    if sessao is None:
        ultimo = Voto.objects.filter(proposicao=proposicao, turno=turno).select_related("sessao").first()
        sessao = ultimo.sessao if ultimo else None
    legislatura = sessao.legislatura if sessao else None

    votos = contar_votos(proposicao, turno)
    total = quorum.total_membros(proposicao.tenant, legislatura)
    presentes = total - votos["ausente"]
    if sessao is not None:
        presentes = controle.total_presentes(sessao)

    aplicacao = quorum.determinar_aplicacao_quorum(
        proposicao.tipo,
        urgencia=proposicao.regime == Proposicao.Regime.URGENCIA,
    )
    config = quorum.obter_configuracao(proposicao.tenant, aplicacao)
    tipo_quorum = QUORUM_POR_APLICACAO.get(aplicacao, "SIMPLES")
    situacao = quorum.calcular_quorum(tipo_quorum, total, presentes)
    detalhe = quorum.calcular_resultado_votacao(
        config,
        sim=votos["sim"],
        nao=votos["nao"],
        abstencao=votos["abstencao"],
        presentes=presentes,
        legislatura=legislatura,
    )

    if not situacao["temQuorum"]:
        resultado = SEM_QUORUM
    elif votos["sim"] == votos["nao"]:
        resultado = EMPATE
    elif detalhe["aprovado"] and votos["sim"] > votos["nao"]:
        resultado = APROVADA
    else:
        resultado = REJEITADA

    return {
        "resultado": resultado,
        "turno": turno,
        "votos": votos,
        "quorum": situacao,
        "aplicacao": aplicacao,
        "mensagem": detalhe["mensagem"] if resultado in {APROVADA, REJEITADA} else PautaItem.ResultadoTurno(resultado).label,
        "detalhes": detalhe,
        "votacaoNominal": deve_ser_votacao_nominal(
            tipo_quorum, proposicao.tipo, quorum.requer_votacao_nominal(config)
        ),
    }


def atualizar_resultado_proposicao(proposicao: Proposicao, resultado: str, *, sessao: Sessao | None = None, usuario=None) -> Proposicao:
    if resultado == SEM_QUORUM:
        return proposicao

    if resultado == APROVADA:
        proposicao.status = Proposicao.Status.APROVADA
    elif resultado == REJEITADA:
        proposicao.status = Proposicao.Status.REJEITADA
    proposicao.resultado = resultado
    proposicao.data_votacao = timezone.now()
    if sessao is not None:
        proposicao.sessao_votacao = sessao
    proposicao.save(update_fields=["status", "resultado", "data_votacao", "sessao_votacao", "atualizado_em"])

    publicar_evento_transparencia(
        tenant=proposicao.tenant,
        modulo="PROPOSICOES",
        tipo_evento="PROPOSICAO_VOTADA",
        titulo=f"{proposicao.identificacao}: {Proposicao.Resultado(resultado).label}",
        descricao=proposicao.ementa,
        referencia=f"proposicao:{proposicao.pk}",
        dados={"proposicaoId": proposicao.pk, "resultado": resultado, "sessaoId": getattr(sessao, "pk", None)},
    )
    registrar_auditoria(
        tenant=proposicao.tenant,
        modulo="PROPOSICOES",
        evento="PROPOSICAO_VOTADA",
        entidade="Proposicao",
        entidade_id=proposicao.pk,
        usuario=usuario,
        depois={"resultado": resultado, "status": proposicao.status},
    )
    return proposicao


@transaction.atomic
def encerrar_votacao_item(sessao: Sessao, item: PautaItem, *, usuario=None) -> dict:
    """Apura o turno corrente do item e aplica o resultado ao item e à proposição."""
    if item.status != PautaItem.Status.EM_VOTACAO:
        raise Conflito("O item não está em votação")
    if item.proposicao_id is None:
        raise DadosInvalidos("Item da pauta não possui proposição vinculada")

    proposicao = item.proposicao
    apuracao = apurar_resultado(proposicao, item.turno_atual, sessao=sessao)
    resultado = apuracao["resultado"]
    turno = turnos.registrar_resultado_turno(item, resultado)

    if turno["intersticio"]:
        if item.iniciado_em:
            controle.pausar_item(sessao, item, usuario=usuario)
        if sessao.item_atual_id == item.pk:
            sessao.item_atual = None
            sessao.save(update_fields=["item_atual", "atualizado_em"])
    else:
        controle.finalizar_item(sessao, item, resultado=item.status, usuario=usuario)
        atualizar_resultado_proposicao(proposicao, resultado, sessao=sessao, usuario=usuario)

    logger.info("Votação do item %s encerrada: %s (turno %s)", item.pk, resultado, turno["turno"])
    return {"apuracao": apuracao, "turno": turno}


def montar_painel(sessao: Sessao) -> dict:
    from .serializers import pauta_item_to_dict, sessao_resumo, voto_to_dict

    presencas = list(sessao.presencas.select_related("parlamentar").order_by("parlamentar__nome"))
    presentes = sum(1 for p in presencas if p.presente)
    total = quorum.total_membros(sessao.tenant, sessao.legislatura)

    item = sessao.item_atual
    votacao = None
    if item is not None and item.proposicao_id:
        votos = (
            Voto.objects.filter(proposicao_id=item.proposicao_id, turno=item.turno_atual)
            .select_related("parlamentar")
            .order_by("parlamentar__nome")
        )
        votacao = {
            "proposicaoId": item.proposicao_id,
            "turno": item.turno_atual,
            "emVotacao": item.status == PautaItem.Status.EM_VOTACAO,
            "placar": contar_votos(item.proposicao, item.turno_atual),
            "votos": [voto_to_dict(v) for v in votos],
        }

    return {
        "sessao": sessao_resumo(sessao),
        "itemAtual": pauta_item_to_dict(item) if item is not None else None,
        "presenca": {
            "totalMembros": total,
            "presentes": presentes,
            "ausentes": max(total - presentes, 0),
            "parlamentares": [
                {
                    "id": p.parlamentar_id,
                    "nome": p.parlamentar.nome_exibicao,
                    "partido": p.parlamentar.partido,
                    "presente": p.presente,
                }
                for p in presencas
            ],
        },
        "quorumInstalacao": quorum.verificar_quorum_instalacao(
            sessao.tenant, presentes=presentes, legislatura=sessao.legislatura
        ),
        "votacao": votacao,
        "atualizadoEm": timezone.now(),
    }
