from __future__ import annotations


def _autor(p) -> dict | None:
    if not p.autor_id:
        return None
    return {"id": p.autor_id, "nome": p.autor.nome_exibicao, "partido": p.autor.partido}


def proposicao_resumo(p) -> dict:
    return {
        "id": p.pk,
        "tipo": p.tipo,
        "tipoLabel": p.get_tipo_display(),
        "numero": p.numero,
        "ano": p.ano,
        "identificacao": p.identificacao,
        "titulo": p.titulo,
        "ementa": p.ementa,
        "status": p.status,
        "regime": p.regime,
        "dataApresentacao": p.data_apresentacao,
        "autor": _autor(p),
    }


def tramitacao_to_dict(t) -> dict:
    return {
        "id": t.pk,
        "data": t.data,
        "unidade": t.unidade,
        "acao": t.acao,
        "status": t.status,
        "observacoes": t.observacoes,
        "usuarioId": t.usuario_id,
    }


def proposicao_to_dict(p, *, com_tramitacoes: bool = False) -> dict:
    data = proposicao_resumo(p)
    data.update(
        {
            "texto": p.texto,
            "justificativa": p.justificativa,
            "statusLabel": p.get_status_display(),
            "dataVotacao": p.data_votacao,
            "resultado": p.resultado or None,
            "sessaoVotacaoId": p.sessao_votacao_id,
            "prazoEmendas": p.prazo_emendas,
            "criadoEm": p.criado_em,
            "atualizadoEm": p.atualizado_em,
        }
    )
    if com_tramitacoes:
        data["tramitacoes"] = [tramitacao_to_dict(t) for t in p.tramitacoes.all()]
    return data


def emenda_to_dict(e) -> dict:
    return {
        "id": e.pk,
        "proposicaoId": e.proposicao_id,
        "numero": e.numero,
        "ano": e.ano,
        "identificacao": e.identificacao,
        "tipo": e.tipo,
        "tipoLabel": e.get_tipo_display(),
        "status": e.status,
        "referencia": e.referencia,
        "artigo": e.artigo,
        "paragrafo": e.paragrafo,
        "inciso": e.inciso,
        "alinea": e.alinea,
        "textoOriginal": e.texto_original,
        "textoNovo": e.texto_novo,
        "justificativa": e.justificativa,
        "turnoApresentacao": e.turno_apresentacao,
        "autor": {"id": e.autor_id, "nome": e.autor.nome_exibicao, "partido": e.autor.partido},
        "coautores": [{"id": c.pk, "nome": c.nome_exibicao} for c in e.coautores.all()],
        "parecer": {
            "comissao": e.parecer_comissao,
            "tipo": e.parecer_tipo or None,
            "texto": e.parecer_texto,
        },
        "aglutinadaEm": e.aglutinada_em_id,
        "votacao": {
            "data": e.data_votacao,
            "sim": e.votos_sim,
            "nao": e.votos_nao,
            "abstencao": e.votos_abstencao,
        },
        "motivo": e.motivo,
        "criadoEm": e.criado_em,
    }


def voto_emenda_to_dict(v) -> dict:
    return {
        "id": v.pk,
        "emendaId": v.emenda_id,
        "parlamentar": {"id": v.parlamentar_id, "nome": v.parlamentar.nome_exibicao},
        "voto": v.voto,
        "registradoEm": v.registrado_em,
    }


def processo_sancao_to_dict(s, prazo: dict | None = None) -> dict:
    data = {
        "id": s.pk,
        "proposicaoId": s.proposicao_id,
        "situacao": s.situacao,
        "situacaoLabel": s.get_situacao_display(),
        "enviadaEm": s.enviada_em,
        "prazoSancao": s.prazo_sancao,
        "sancionadaEm": s.sancionada_em,
        "sancaoTacita": s.sancao_tacita,
        "numeroLei": s.numero_lei or None,
        "veto": None,
        "apreciacao": None,
        "promulgadaEm": s.promulgada_em,
    }
    if s.veto_tipo:
        data["veto"] = {
            "tipo": s.veto_tipo,
            "motivo": s.veto_motivo,
            "razoes": s.veto_razoes,
            "dispositivos": s.dispositivos_vetados,
            "data": s.vetada_em,
            "prazoApreciacao": s.prazo_apreciacao,
        }
    if s.apreciada_em:
        data["apreciacao"] = {
            "data": s.apreciada_em,
            "sim": s.votos_sim,
            "nao": s.votos_nao,
            "abstencao": s.votos_abstencao,
            "votosNecessarios": s.votos_necessarios,
        }
    if prazo is not None:
        data["prazo"] = prazo
    return data
