from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos
from apps.core.services_auditoria import registrar_auditoria
from apps.tenants.models import Tenant

from .models import Proposicao, Tramitacao

logger = logging.getLogger(__name__)

MODULO = "PROPOSICOES"

STATUS_FINAIS = {
    Proposicao.Status.ARQUIVADA,
    Proposicao.Status.TRANSFORMADA_EM_NORMA,
}
STATUS_VOTADOS = {
    Proposicao.Status.APROVADA,
    Proposicao.Status.REJEITADA,
    Proposicao.Status.VETADA,
}



def _bloquear_camara(tenant) -> None:
    Tenant.objects.select_for_update().get(pk=tenant.pk)


@transaction.atomic
def proximo_numero(tenant, tipo: str, ano: int) -> str:
    """
    Próximo número (3 dígitos) para o tipo/ano.

    A linha da câmara fica bloqueada até o fim da transação, então duas
    criações simultâneas não recebem o mesmo número.
    """
    _bloquear_camara(tenant)
    numeros = Proposicao.objects.filter(tenant=tenant, tipo=tipo, ano=ano).values_list("numero", flat=True)
    maior = max((int(n) for n in numeros if (n or "").isdigit()), default=0)
    return str(maior + 1).zfill(3)


@transaction.atomic
def criar_proposicao(*, tenant, dados: dict, usuario=None) -> Proposicao:
    dados = dict(dados)
    data_apresentacao = dados.get("data_apresentacao") or timezone.localdate()
    dados["data_apresentacao"] = data_apresentacao
    dados["ano"] = dados.get("ano") or data_apresentacao.year

    autor = dados.get("autor")
    if autor is not None and not autor.ativo:
        raise DadosInvalidos("O autor informado não está ativo")

    if dados.get("numero"):
        _bloquear_camara(tenant)
        if Proposicao.objects.filter(
            tenant=tenant, tipo=dados["tipo"], numero=dados["numero"], ano=dados["ano"]
        ).exists():
            raise Conflito("Já existe uma proposição com este número no ano")
    else:
        dados["numero"] = proximo_numero(tenant, dados["tipo"], dados["ano"])

    try:
        with transaction.atomic():
            proposicao = Proposicao.objects.create(tenant=tenant, **dados)
    except IntegrityError:
        raise Conflito("Já existe uma proposição com este número no ano")
    Tramitacao.objects.create(
        proposicao=proposicao,
        unidade="Protocolo",
        acao="Apresentação",
        status=proposicao.status,
        usuario=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="PROPOSICAO_CRIADA",
        entidade="Proposicao",
        entidade_id=proposicao.pk,
        usuario=usuario,
        depois={"identificacao": proposicao.identificacao},
    )
    logger.info("Proposição %s criada na câmara %s", proposicao.identificacao, tenant.pk)
    return proposicao


def atualizar_proposicao(proposicao: Proposicao, dados: dict, *, usuario=None) -> Proposicao:
    if proposicao.status in STATUS_FINAIS:
        raise Conflito("Proposição não pode ser editada no status atual")

    chave = (
        dados.get("tipo", proposicao.tipo),
        dados.get("numero") or proposicao.numero,
        dados.get("ano") or proposicao.ano,
    )
    if chave != (proposicao.tipo, proposicao.numero, proposicao.ano):
        if (
            Proposicao.objects.filter(tenant=proposicao.tenant, tipo=chave[0], numero=chave[1], ano=chave[2])
            .exclude(pk=proposicao.pk)
            .exists()
        ):
            raise Conflito("Já existe uma proposição com este número no ano")

    antes = {"titulo": proposicao.titulo, "status": proposicao.status}
    for campo, valor in dados.items():
        if campo in {"numero", "ano"} and not valor:
            continue
        setattr(proposicao, campo, valor)
    try:
        with transaction.atomic():
            proposicao.save()
    except IntegrityError:
        raise Conflito("Já existe uma proposição com este número no ano")
    registrar_auditoria(
        tenant=proposicao.tenant,
        modulo=MODULO,
        evento="PROPOSICAO_ATUALIZADA",
        entidade="Proposicao",
        entidade_id=proposicao.pk,
        usuario=usuario,
        antes=antes,
        depois={"campos": sorted(dados)},
    )
    return proposicao


def excluir_proposicao(proposicao: Proposicao, *, usuario=None) -> None:
    if proposicao.status != Proposicao.Status.APRESENTADA:
        raise Conflito("Somente proposições apresentadas podem ser excluídas")
    tenant, pk, identificacao = proposicao.tenant, proposicao.pk, proposicao.identificacao
    proposicao.delete()
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="PROPOSICAO_EXCLUIDA",
        entidade="Proposicao",
        entidade_id=pk,
        usuario=usuario,
        antes={"identificacao": identificacao},
    )


@transaction.atomic
def tramitar(proposicao: Proposicao, *, unidade: str, acao: str, status: str = "", observacoes: str = "", usuario=None) -> Tramitacao:
    if proposicao.status in STATUS_FINAIS:
        raise Conflito("Proposição encerrada não pode tramitar")

    status_anterior = proposicao.status
    if status:
        proposicao.status = status
    elif proposicao.status == Proposicao.Status.APRESENTADA:
        proposicao.status = Proposicao.Status.EM_TRAMITACAO
    proposicao.save(update_fields=["status", "atualizado_em"])

    tramitacao = Tramitacao.objects.create(
        proposicao=proposicao,
        unidade=unidade,
        acao=acao,
        status=proposicao.status,
        observacoes=observacoes,
        usuario=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    registrar_auditoria(
        tenant=proposicao.tenant,
        modulo=MODULO,
        evento="PROPOSICAO_TRAMITADA",
        entidade="Proposicao",
        entidade_id=proposicao.pk,
        usuario=usuario,
        antes={"status": status_anterior},
        depois={"status": proposicao.status, "unidade": unidade, "acao": acao},
    )
    return tramitacao


def arquivar(proposicao: Proposicao, *, motivo: str, usuario=None) -> Proposicao:
    if proposicao.status in STATUS_FINAIS:
        raise Conflito("Proposição já está encerrada")
    tramitar(
        proposicao,
        unidade="Arquivo",
        acao="Arquivamento",
        status=Proposicao.Status.ARQUIVADA,
        observacoes=motivo,
        usuario=usuario,
    )
    proposicao.refresh_from_db()
    return proposicao


def marcar_em_pauta(proposicao: Proposicao) -> None:
    if proposicao.status in STATUS_FINAIS | STATUS_VOTADOS:
        return
    proposicao.status = Proposicao.Status.EM_PAUTA
    proposicao.save(update_fields=["status", "atualizado_em"])


def estatisticas(tenant, ano: int | None = None) -> dict:
    qs = Proposicao.objects.filter(tenant=tenant)
    if ano:
        qs = qs.filter(ano=ano)
    por_status = {r["status"]: r["total"] for r in qs.values("status").annotate(total=Count("id")).order_by()}
    por_tipo = {r["tipo"]: r["total"] for r in qs.values("tipo").annotate(total=Count("id")).order_by()}
    return {"total": sum(por_status.values()), "porStatus": por_status, "porTipo": por_tipo}
