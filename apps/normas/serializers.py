from __future__ import annotations


def norma_resumo(n) -> dict:
    return {
        "id": n.pk,
        "tipo": n.tipo,
        "tipoLabel": n.get_tipo_display(),
        "numero": n.numero,
        "ano": n.ano,
        "identificacao": n.identificacao,
        "data": n.data,
        "dataPublicacao": n.data_publicacao,
        "ementa": n.ementa,
        "situacao": n.situacao,
        "situacaoLabel": n.get_situacao_display(),
    }


def versao_to_dict(v, *, com_texto: bool = False) -> dict:
    data = {
        "versao": v.versao,
        "motivoAlteracao": v.motivo_alteracao,
        "dataVersao": v.data_versao,
    }
    if com_texto:
        data["textoCompleto"] = v.texto_completo
    return data


def alteracao_to_dict(a) -> dict:
    return {
        "id": a.pk,
        "tipoAlteracao": a.tipo_alteracao,
        "normaAlterada": {"id": a.norma_alterada_id, "identificacao": a.norma_alterada.identificacao},
        "normaAlteradora": {"id": a.norma_alteradora_id, "identificacao": a.norma_alteradora.identificacao},
        "artigoAlterado": a.artigo_alterado,
        "descricao": a.descricao,
        "dataAlteracao": a.data_alteracao,
    }


def norma_to_dict(n, *, completo: bool = False) -> dict:
    data = norma_resumo(n)
    data.update(
        {
            "dataVigencia": n.data_vigencia,
            "assunto": n.assunto,
            "texto": n.texto,
            "textoCompilado": n.texto_compilado,
            "proposicaoOrigemId": n.proposicao_origem_id,
        }
    )
    if completo:
        data["versoes"] = [versao_to_dict(v) for v in n.versoes.all()]
        data["alteracoesRecebidas"] = [
            alteracao_to_dict(a) for a in n.alteracoes_recebidas.select_related("norma_alterada", "norma_alteradora")
        ]
        data["alteracoesRealizadas"] = [
            alteracao_to_dict(a) for a in n.alteracoes_realizadas.select_related("norma_alterada", "norma_alteradora")
        ]
    return data
