from __future__ import annotations

import logging

from .models import AuditoriaEvento

logger = logging.getLogger(__name__)


def registrar_auditoria(
    *,
    tenant,
    modulo: str,
    evento: str,
    entidade: str,
    entidade_id,
    usuario=None,
    antes=None,
    depois=None,
    observacao: str = "",
):
    if usuario is not None and not getattr(usuario, "is_authenticated", False):
        usuario = None

    logger.info(
        "auditoria %s:%s %s#%s",
        (modulo or "").upper(),
        evento,
        entidade,
        entidade_id,
    )
    return AuditoriaEvento.objects.create(
        tenant=tenant,
        modulo=(modulo or "").upper()[:40],
        evento=(evento or "")[:80],
        entidade=(entidade or "")[:80],
        entidade_id=str(entidade_id),
        usuario=usuario,
        antes=antes or {},
        depois=depois or {},
        observacao=(observacao or "")[:200],
    )
