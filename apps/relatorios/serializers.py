from __future__ import annotations


def execucao_to_dict(e) -> dict:
    return {
        "id": e.pk,
        "status": e.status,
        "arquivo": e.arquivo.rsplit("/", 1)[-1] if e.arquivo else "",
        "erro": e.erro,
        "tempoExecucaoMs": e.tempo_execucao_ms,
        "executadoPor": e.executado_por.username if e.executado_por_id else None,
        "executadoEm": e.executado_em,
    }


def relatorio_to_dict(r) -> dict:
    return {
        "id": r.pk,
        "nome": r.nome,
        "descricao": r.descricao,
        "tipo": r.tipo,
        "tipoDisplay": r.get_tipo_display(),
        "filtros": r.filtros or {},
        "frequencia": r.frequencia,
        "formato": r.formato,
        "destinatarios": r.destinatarios or [],
        "ativo": r.ativo,
        "proximaExecucao": r.proxima_execucao,
        "ultimaExecucao": r.ultima_execucao,
        "criadoEm": r.criado_em,
    }
