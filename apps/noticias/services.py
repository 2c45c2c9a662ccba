from __future__ import annotations

import logging

from django.utils import timezone

from apps.core.services_auditoria import registrar_auditoria

from .models import Noticia

logger = logging.getLogger(__name__)

MODULO = "NOTICIAS"


def _carimbar_publicacao(noticia: Noticia, publicada_antes: bool):
    if noticia.publicada and not publicada_antes and not noticia.publicada_em:
        noticia.publicada_em = timezone.now()


def criar_noticia(*, tenant, dados: dict, usuario=None) -> Noticia:
    noticia = Noticia(tenant=tenant, **dados)
    if getattr(usuario, "is_authenticated", False):
        noticia.autor = usuario
    _carimbar_publicacao(noticia, False)
    noticia.save()
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="NOTICIA_CRIADA",
        entidade="Noticia",
        entidade_id=noticia.pk,
        usuario=usuario,
        depois={"titulo": noticia.titulo, "publicada": noticia.publicada},
    )
    return noticia


def atualizar_noticia(noticia: Noticia, dados: dict, *, usuario=None) -> Noticia:
    publicada_antes = noticia.publicada
    for campo, valor in dados.items():
        setattr(noticia, campo, valor)
    _carimbar_publicacao(noticia, publicada_antes)
    noticia.save()
    registrar_auditoria(
        tenant=noticia.tenant,
        modulo=MODULO,
        evento="NOTICIA_ATUALIZADA",
        entidade="Noticia",
        entidade_id=noticia.pk,
        usuario=usuario,
        depois={"campos": sorted(dados)},
    )
    return noticia


def excluir_noticia(noticia: Noticia, *, usuario=None) -> None:
    tenant, pk, titulo = noticia.tenant, noticia.pk, noticia.titulo
    if noticia.imagem:
        noticia.imagem.delete(save=False)
    noticia.delete()
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="NOTICIA_EXCLUIDA",
        entidade="Noticia",
        entidade_id=pk,
        usuario=usuario,
        antes={"titulo": titulo},
    )


def atualizar_imagem(noticia: Noticia, arquivo) -> Noticia:
    if noticia.imagem:
        noticia.imagem.delete(save=False)
    noticia.imagem = arquivo
    noticia.save()
    return noticia


def publicadas(tenant):
    return Noticia.objects.filter(tenant=tenant, publicada=True, publicada_em__lte=timezone.now())
