from __future__ import annotations


def token_to_dict(t, *, token_plain: str | None = None) -> dict:
    data = {
        "id": t.pk,
        "nome": t.nome,
        "descricao": t.descricao,
        "prefixo": t.prefixo,
        "permissoes": t.permissoes or [],
        "ativo": t.ativo,
        "ultimoUsoEm": t.ultimo_uso_em,
        "ultimoUsoIp": t.ultimo_uso_ip or "",
        "ultimoUsoAgente": t.ultimo_uso_agente,
        "criadoEm": t.criado_em,
    }
    if token_plain:
        # exibido uma única vez
        data["token"] = token_plain
    return data
