from __future__ import annotations


def membro_to_dict(m) -> dict:
    return {
        "id": m.pk,
        "parlamentar": {"id": m.parlamentar_id, "nome": m.parlamentar.nome_exibicao, "partido": m.parlamentar.partido},
        "cargo": m.cargo,
        "cargoLabel": m.get_cargo_display(),
        "dataInicio": m.data_inicio,
        "dataFim": m.data_fim,
        "ativo": m.ativo,
    }


def comissao_to_dict(c, *, com_membros: bool = False) -> dict:
    data = {
        "id": c.pk,
        "nome": c.nome,
        "sigla": c.sigla,
        "tipo": c.tipo,
        "tipoLabel": c.get_tipo_display(),
        "descricao": c.descricao,
        "ativa": c.ativa,
    }
    if com_membros:
        data["membros"] = [membro_to_dict(m) for m in c.membros.select_related("parlamentar").filter(ativo=True)]
    return data


def reuniao_to_dict(r, *, completo: bool = False) -> dict:
    data = {
        "id": r.pk,
        "comissao": {"id": r.comissao_id, "nome": r.comissao.nome, "sigla": r.comissao.sigla},
        "numero": r.numero,
        "ano": r.ano,
        "tipo": r.tipo,
        "data": r.data,
        "local": r.local,
        "status": r.status,
        "statusLabel": r.get_status_display(),
        "quorumMinimo": r.quorum_minimo,
        "ataAprovada": r.ata_aprovada,
    }
    if completo:
        data.update(
            {
                "motivoConvocacao": r.motivo_convocacao,
                "observacoes": r.observacoes,
                "ata": r.ata,
                "ataAprovadaEm": r.ata_aprovada_em,
                "iniciadaEm": r.iniciada_em,
                "encerradaEm": r.encerrada_em,
                "presencas": [
                    {
                        "membroId": p.membro_id,
                        "parlamentar": p.membro.parlamentar.nome_exibicao,
                        "presente": p.presente,
                        "justificativa": p.justificativa,
                    }
                    for p in r.presencas.select_related("membro__parlamentar")
                ],
                "pareceres": [parecer_to_dict(p) for p in r.pareceres.select_related("proposicao", "relator")],
            }
        )
    return data


def parecer_to_dict(p) -> dict:
    return {
        "id": p.pk,
        "comissaoId": p.comissao_id,
        "proposicao": {"id": p.proposicao_id, "identificacao": p.proposicao.identificacao},
        "relator": {"id": p.relator_id, "nome": p.relator.nome_exibicao},
        "reuniaoId": p.reuniao_id,
        "tipo": p.tipo,
        "tipoLabel": p.get_tipo_display(),
        "fundamentacao": p.fundamentacao,
        "conclusao": p.conclusao,
        "emendas": p.emendas,
        "status": p.status,
        "votos": {"favor": p.votos_favor, "contra": p.votos_contra, "abstencao": p.votos_abstencao},
        "dataVotacao": p.data_votacao,
        "dataEmissao": p.data_emissao,
    }
