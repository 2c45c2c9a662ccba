from __future__ import annotations

from apps.parlamentares.serializers import parlamentar_resumo
from apps.proposicoes.serializers import proposicao_resumo


def sessao_resumo(s) -> dict:
    return {
        "id": s.pk,
        "numero": s.numero,
        "tipo": s.tipo,
        "tipoLabel": s.get_tipo_display(),
        "titulo": s.titulo,
        "data": s.data,
        "horario": s.horario,
        "local": s.local,
        "status": s.status,
        "statusLabel": s.get_status_display(),
        "finalizada": s.finalizada,
    }


def pauta_item_to_dict(item) -> dict:
    return {
        "id": item.pk,
        "sessaoId": item.sessao_id,
        "secao": item.secao,
        "secaoLabel": item.get_secao_display(),
        "ordem": item.ordem,
        "titulo": item.titulo,
        "descricao": item.descricao,
        "proposicao": proposicao_resumo(item.proposicao) if item.proposicao_id else None,
        "status": item.status,
        "statusLabel": item.get_status_display(),
        "tempoEstimado": item.tempo_estimado,
        "tempoAcumulado": item.tempo_acumulado,
        "tempoReal": item.tempo_real,
        "iniciadoEm": item.iniciado_em,
        "finalizadoEm": item.finalizado_em,
        "turnoAtual": item.turno_atual,
        "turnoFinal": item.turno_final,
        "resultadoTurno1": item.resultado_turno1,
        "resultadoTurno2": item.resultado_turno2,
        "dataVotacaoTurno1": item.data_votacao_turno1,
        "dataVotacaoTurno2": item.data_votacao_turno2,
        "intersticio": item.intersticio,
        "prazoIntersticio": item.prazo_intersticio,
    }


def presenca_to_dict(p) -> dict:
    return {
        "id": p.pk,
        "parlamentar": parlamentar_resumo(p.parlamentar),
        "presente": p.presente,
        "justificativa": p.justificativa,
        "registradoEm": p.registrado_em,
    }


def voto_to_dict(v) -> dict:
    return {
        "id": v.pk,
        "proposicaoId": v.proposicao_id,
        "sessaoId": v.sessao_id,
        "parlamentar": parlamentar_resumo(v.parlamentar),
        "turno": v.turno,
        "voto": v.voto,
        "votoLabel": v.get_voto_display(),
        "registradoEm": v.registrado_em,
    }


def sessao_to_dict(s, *, completo: bool = False) -> dict:
    data = sessao_resumo(s)
    data.update(
        {
            "legislaturaId": s.legislatura_id,
            "legislaturaNumero": s.legislatura.numero,
            "periodoId": s.periodo_id,
            "periodoNumero": s.periodo.numero if s.periodo_id else None,
            "itemAtualId": s.item_atual_id,
            "descricao": s.descricao,
            "ata": s.ata,
            "tempoTotalReal": s.tempo_total_real,
            "iniciadaEm": s.iniciada_em,
            "finalizadaEm": s.finalizada_em,
            "criadoEm": s.criado_em,
            "atualizadoEm": s.atualizado_em,
        }
    )
    if completo:
        data["pauta"] = [pauta_item_to_dict(i) for i in s.pauta.select_related("proposicao__autor")]
        data["presencas"] = [presenca_to_dict(p) for p in s.presencas.select_related("parlamentar")]
    return data


def nomenclatura_to_dict(c) -> dict:
    return {
        "templateTitulo": c.template_titulo,
        "numeracaoSequencial": c.numeracao_sequencial,
        "resetarPorAno": c.resetar_por_ano,
        "resetarPorLegislatura": c.resetar_por_legislatura,
        "quantidadePeriodos": c.quantidade_periodos,
        "nomePeriodo": c.nome_periodo,
        "atualizadoEm": c.atualizado_em,
    }


def quorum_to_dict(c) -> dict:
    return {
        "id": c.pk,
        "nome": c.nome,
        "descricao": c.descricao,
        "aplicacao": c.aplicacao,
        "aplicacaoLabel": c.get_aplicacao_display(),
        "tipoQuorum": c.tipo_quorum,
        "tipoQuorumLabel": c.get_tipo_quorum_display(),
        "baseCalculo": c.base_calculo,
        "percentualMinimo": float(c.percentual_minimo) if c.percentual_minimo is not None else None,
        "numeroMinimo": c.numero_minimo,
        "permitirAbstencao": c.permitir_abstencao,
        "abstencaoContaContra": c.abstencao_conta_contra,
        "requererVotacaoNominal": c.requerer_votacao_nominal,
        "mensagemAprovacao": c.mensagem_aprovacao,
        "mensagemRejeicao": c.mensagem_rejeicao,
        "ativo": c.ativo,
        "ordem": c.ordem,
    }
