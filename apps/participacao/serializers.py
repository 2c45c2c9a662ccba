from __future__ import annotations


def pergunta_to_dict(p) -> dict:
    return {
        "id": p.pk,
        "enunciado": p.enunciado,
        "tipo": p.tipo,
        "opcoes": p.opcoes or [],
        "obrigatoria": p.obrigatoria,
        "ordem": p.ordem,
    }


def consulta_to_dict(c, *, com_perguntas: bool = False) -> dict:
    data = {
        "id": c.pk,
        "titulo": c.titulo,
        "descricao": c.descricao,
        "dataInicio": c.data_inicio,
        "dataFim": c.data_fim,
        "status": c.status,
        "permitirAnonimo": c.permitir_anonimo,
        "proposicao": (
            {"id": c.proposicao_id, "identificacao": c.proposicao.identificacao} if c.proposicao_id else None
        ),
        "totalParticipacoes": getattr(c, "total_participacoes", None),
    }
    if data["totalParticipacoes"] is None:
        data["totalParticipacoes"] = c.participacoes.count()
    if com_perguntas:
        data["perguntas"] = [pergunta_to_dict(p) for p in c.perguntas.all()]
    return data


def sugestao_to_dict(s, *, admin: bool = False) -> dict:
    data = {
        "id": s.pk,
        "titulo": s.titulo,
        "descricao": s.descricao,
        "justificativa": s.justificativa,
        "categoria": s.categoria,
        "status": s.status,
        "autorNome": s.autor_nome,
        "bairro": s.autor_bairro,
        "totalApoios": s.total_apoios,
        "parlamentarResponsavel": (
            {"id": s.parlamentar_responsavel_id, "nome": s.parlamentar_responsavel.nome_exibicao}
            if s.parlamentar_responsavel_id
            else None
        ),
        "proposicao": (
            {"id": s.proposicao_id, "identificacao": s.proposicao.identificacao} if s.proposicao_id else None
        ),
        "criadoEm": s.criado_em,
    }
    if admin:
        data["autorEmail"] = s.autor_email
        data["motivoRecusa"] = s.motivo_recusa
    return data
