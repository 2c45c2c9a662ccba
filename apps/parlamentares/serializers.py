from __future__ import annotations


def _foto_url(parlamentar) -> str:
    return parlamentar.foto.url if parlamentar.foto else ""


def parlamentar_resumo(p) -> dict:
    return {
        "id": p.pk,
        "nome": p.nome,
        "apelido": p.apelido,
        "nomeExibicao": p.nome_exibicao,
        "partido": p.partido,
        "cargo": p.cargo,
        "fotoUrl": _foto_url(p),
    }


def parlamentar_to_dict(p) -> dict:
    data = parlamentar_resumo(p)
    data.update(
        {
            "email": p.email,
            "telefone": p.telefone,
            "biografia": p.biografia,
            "cargoLabel": p.get_cargo_display(),
            "ativo": p.ativo,
            "criadoEm": p.criado_em,
            "atualizadoEm": p.atualizado_em,
        }
    )
    return data


def periodo_to_dict(periodo) -> dict:
    return {
        "id": periodo.pk,
        "numero": periodo.numero,
        "dataInicio": periodo.data_inicio,
        "dataFim": periodo.data_fim,
        "descricao": periodo.descricao,
    }


def legislatura_to_dict(leg, *, com_periodos: bool = False) -> dict:
    data = {
        "id": leg.pk,
        "numero": leg.numero,
        "anoInicio": leg.ano_inicio,
        "anoFim": leg.ano_fim,
        "ativa": leg.ativa,
        "descricao": leg.descricao,
    }
    if com_periodos:
        data["periodos"] = [periodo_to_dict(p) for p in leg.periodos.all()]
    return data


def mandato_to_dict(m) -> dict:
    return {
        "id": m.pk,
        "parlamentarId": m.parlamentar_id,
        "legislaturaId": m.legislatura_id,
        "numeroVotos": m.numero_votos,
        "dataInicio": m.data_inicio,
        "dataFim": m.data_fim,
        "ativo": m.ativo,
    }


def mesa_to_dict(mesa) -> dict:
    return {
        "id": mesa.pk,
        "legislaturaId": mesa.legislatura_id,
        "periodoId": mesa.periodo_id,
        "ativa": mesa.ativa,
        "descricao": mesa.descricao,
        "membros": [
            {
                "id": m.pk,
                "cargo": m.cargo,
                "cargoLabel": m.get_cargo_display(),
                "ativo": m.ativo,
                "parlamentar": parlamentar_resumo(m.parlamentar),
            }
            for m in mesa.membros.all()
        ],
    }
