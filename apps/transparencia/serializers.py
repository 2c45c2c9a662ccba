from __future__ import annotations


def categoria_to_dict(c) -> dict:
    return {
        "id": c.pk,
        "nome": c.nome,
        "descricao": c.descricao,
        "cor": c.cor,
        "ativa": c.ativa,
        "ordem": c.ordem,
    }


def publicacao_to_dict(p, *, completo: bool = False) -> dict:
    data = {
        "id": p.pk,
        "tipo": p.tipo,
        "tipoLabel": p.get_tipo_display(),
        "numero": p.numero,
        "ano": p.ano,
        "data": p.data,
        "titulo": p.titulo,
        "descricao": p.descricao,
        "arquivoUrl": p.arquivo.url if p.arquivo else "",
        "link": p.link,
        "publicada": p.publicada,
        "visualizacoes": p.visualizacoes,
        "categoria": {"id": p.categoria_id, "nome": p.categoria.nome, "cor": p.categoria.cor} if p.categoria_id else None,
        "autor": {"tipo": p.autor_tipo, "nome": p.autor_nome, "parlamentarId": p.parlamentar_id},
    }
    if completo:
        data["conteudo"] = p.conteudo
        data["publicadaEm"] = p.publicada_em
    return data


def evento_to_dict(e) -> dict:
    return {
        "id": e.pk,
        "modulo": e.modulo,
        "tipoEvento": e.tipo_evento,
        "titulo": e.titulo,
        "descricao": e.descricao,
        "referencia": e.referencia,
        "dataEvento": e.data_evento,
        "dados": e.dados,
    }
