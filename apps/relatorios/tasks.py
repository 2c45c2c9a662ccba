from __future__ import annotations

from celery import shared_task

from .services import executar_pendentes


@shared_task(name="relatorios.executar_relatorios_pendentes")
def executar_relatorios_pendentes() -> int:
    return executar_pendentes()
