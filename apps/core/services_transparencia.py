from __future__ import annotations

from .models import TransparenciaEventoPublico


def publicar_evento_transparencia(
    *,
    tenant,
    modulo: str,
    tipo_evento: str,
    titulo: str,
    descricao: str = "",
    referencia: str = "",
    dados=None,
    publico: bool = True,
    data_evento=None,
):
    modulo = (modulo or TransparenciaEventoPublico.Modulo.OUTROS).upper()
    if modulo not in TransparenciaEventoPublico.Modulo.values:
        modulo = TransparenciaEventoPublico.Modulo.OUTROS

    create_kwargs = {
        "tenant": tenant,
        "modulo": modulo,
        "tipo_evento": (tipo_evento or "")[:80],
        "titulo": (titulo or "")[:220],
        "descricao": descricao or "",
        "referencia": (referencia or "")[:120],
        "dados": dict(dados or {}),
        "publico": bool(publico),
    }
    if data_evento is not None:
        create_kwargs["data_evento"] = data_evento

    return TransparenciaEventoPublico.objects.create(**create_kwargs)
