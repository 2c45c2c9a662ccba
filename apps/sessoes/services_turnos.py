from __future__ import annotations

import math
from datetime import timedelta

from django.utils import timezone

from apps.core.api import Conflito

from .models import PautaItem

# Matérias votadas em dois turnos, com interstício em dias úteis
CONFIGURACAO_TURNOS = {
    "PROJETO_RESOLUCAO": {"turnos": 2, "intersticio_dias": 1},
    "PROJETO_DECRETO_LEGISLATIVO": {"turnos": 2, "intersticio_dias": 1},
    "PROJETO_LEI_COMPLEMENTAR": {"turnos": 2, "intersticio_dias": 1},
    "PROJETO_EMENDA_LEI_ORGANICA": {"turnos": 2, "intersticio_dias": 1},
}
TURNO_UNICO = {"turnos": 1, "intersticio_dias": 0}

APROVADA = PautaItem.ResultadoTurno.APROVADA
REJEITADA = PautaItem.ResultadoTurno.REJEITADA


def configuracao_turnos(tipo_proposicao: str | None) -> dict:
    return CONFIGURACAO_TURNOS.get(tipo_proposicao or "", TURNO_UNICO)


def configurar_turnos(item: PautaItem) -> PautaItem:
    """
    Define os turnos do item novo. Se a proposição aguarda interstício em
    outra sessão, o item herda o 1º turno e o item anterior é encerrado.
    """
    tipo = item.proposicao.tipo if item.proposicao_id else None
    item.turno_atual = 1
    item.turno_final = configuracao_turnos(tipo)["turnos"]
    if not item.proposicao_id:
        return item

    anterior = (
        PautaItem.objects.filter(proposicao_id=item.proposicao_id, intersticio=True)
        .exclude(sessao_id=item.sessao_id)
        .order_by("-id")
        .first()
    )
    if anterior is not None:
        item.resultado_turno1 = anterior.resultado_turno1
        item.data_votacao_turno1 = anterior.data_votacao_turno1
        item.intersticio = True
        item.prazo_intersticio = anterior.prazo_intersticio
        anterior.intersticio = False
        anterior.status = PautaItem.Status.CONCLUIDO
        anterior.save(update_fields=["intersticio", "status"])
    return item


def adicionar_dias_uteis(inicio, dias: int):
    atual = inicio
    restantes = dias
    while restantes > 0:
        atual += timedelta(days=1)
        if atual.weekday() < 5:
            restantes -= 1
    return atual


def registrar_resultado_turno(item: PautaItem, resultado: str, *, agora=None) -> dict:
    """
    Grava o resultado do turno corrente e define o próximo estado do item.

    Aprovação em 1º turno de matéria com dois turnos devolve o item para
    PENDENTE e abre o prazo de interstício.
    """
    agora = agora or timezone.now()
    tipo = item.proposicao.tipo if item.proposicao_id else None
    config = configuracao_turnos(tipo)
    item.turno_final = config["turnos"]

    if item.turno_atual <= 1:
        item.resultado_turno1 = resultado
        item.data_votacao_turno1 = agora
        if resultado == APROVADA and config["turnos"] == 2:
            dias = config["intersticio_dias"]
            item.intersticio = True
            item.prazo_intersticio = adicionar_dias_uteis(agora, dias)
            item.status = PautaItem.Status.PENDENTE
            mensagem = (
                f"Aprovado em 1º turno. Aguarde interstício de {dias} dia(s) "
                "para votação em 2º turno."
            )
        elif resultado == REJEITADA:
            item.status = PautaItem.Status.REJEITADO
            mensagem = "Matéria rejeitada em 1º turno."
        elif resultado == APROVADA:
            item.status = PautaItem.Status.APROVADO
            mensagem = "Matéria aprovada em turno único."
        else:
            item.status = PautaItem.Status.CONCLUIDO
            mensagem = f"Votação em 1º turno encerrada: {PautaItem.ResultadoTurno(resultado).label}."
    else:
        item.resultado_turno2 = resultado
        item.data_votacao_turno2 = agora
        item.intersticio = False
        if resultado == APROVADA:
            item.status = PautaItem.Status.APROVADO
            mensagem = "Matéria aprovada em 2º turno."
        elif resultado == REJEITADA:
            item.status = PautaItem.Status.REJEITADO
            mensagem = "Matéria rejeitada em 2º turno."
        else:
            item.status = PautaItem.Status.CONCLUIDO
            mensagem = f"Votação em 2º turno encerrada: {PautaItem.ResultadoTurno(resultado).label}."

    item.save()
    return {
        "turno": item.turno_atual,
        "resultado": resultado,
        "status": item.status,
        "intersticio": item.intersticio,
        "prazoIntersticio": item.prazo_intersticio if item.intersticio else None,
        "mensagem": mensagem,
        "votacaoConcluida": not item.intersticio,
    }


def pode_iniciar_segundo_turno(item: PautaItem, *, agora=None) -> tuple[bool, str]:
    agora = agora or timezone.now()
    if not item.intersticio:
        return False, "Item não está em interstício"
    if item.resultado_turno1 != APROVADA:
        return False, "Item não foi aprovado em 1º turno"
    if item.prazo_intersticio is None:
        return False, "Prazo de interstício não definido"
    if agora < item.prazo_intersticio:
        horas = math.ceil((item.prazo_intersticio - agora).total_seconds() / 3600)
        return False, f"Aguarde {horas} hora(s) para completar o interstício"
    return True, "Interstício cumprido, pode iniciar 2º turno"


def iniciar_segundo_turno(item: PautaItem, *, agora=None) -> PautaItem:
    pode, motivo = pode_iniciar_segundo_turno(item, agora=agora)
    if not pode:
        raise Conflito(motivo)
    item.turno_atual = 2
    item.intersticio = False
    item.status = PautaItem.Status.EM_VOTACAO
    item.iniciado_em = agora or timezone.now()
    item.finalizado_em = None
    item.save(update_fields=["turno_atual", "intersticio", "status", "iniciado_em", "finalizado_em"])
    return item
