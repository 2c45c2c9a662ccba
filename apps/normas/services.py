from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Max, Q
from django.utils import timezone

from apps.core.api import Conflito
from apps.core.services_auditoria import registrar_auditoria
from apps.core.services_transparencia import publicar_evento_transparencia
from apps.proposicoes.models import ProcessoSancao, Proposicao
from apps.tenants.models import Tenant

from .models import AlteracaoNorma, NormaJuridica, VersaoNorma

logger = logging.getLogger(__name__)

MODULO = "NORMAS"

SITUACAO_POR_ALTERACAO = {
    AlteracaoNorma.Tipo.REVOGACAO: NormaJuridica.Situacao.REVOGADA,
    AlteracaoNorma.Tipo.REVOGACAO_PARCIAL: NormaJuridica.Situacao.REVOGADA_PARCIALMENTE,
    AlteracaoNorma.Tipo.ALTERACAO: NormaJuridica.Situacao.COM_ALTERACOES,
    AlteracaoNorma.Tipo.ACRESCIMO: NormaJuridica.Situacao.COM_ALTERACOES,
    AlteracaoNorma.Tipo.NOVA_REDACAO: NormaJuridica.Situacao.COM_ALTERACOES,
}

TIPO_NORMA_POR_PROPOSICAO = {
    Proposicao.Tipo.PROJETO_LEI: NormaJuridica.Tipo.LEI_ORDINARIA,
    Proposicao.Tipo.PROJETO_LEI_COMPLEMENTAR: NormaJuridica.Tipo.LEI_COMPLEMENTAR,
    Proposicao.Tipo.PROJETO_DECRETO_LEGISLATIVO: NormaJuridica.Tipo.DECRETO_LEGISLATIVO,
    Proposicao.Tipo.PROJETO_RESOLUCAO: NormaJuridica.Tipo.RESOLUCAO,
    Proposicao.Tipo.PROJETO_EMENDA_LEI_ORGANICA: NormaJuridica.Tipo.EMENDA_LEI_ORGANICA,
}


def _numero_em_uso(tenant, tipo, numero, ano, *, exclude_id=None) -> bool:
    qs = NormaJuridica.objects.filter(tenant=tenant, tipo=tipo, numero=numero, ano=ano)
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


@transaction.atomic
def proximo_numero(tenant, tipo: str, ano: int) -> int:
    # bloqueia a câmara até o fim da transação
    Tenant.objects.select_for_update().get(pk=tenant.pk)
    atual = NormaJuridica.objects.filter(tenant=tenant, tipo=tipo, ano=ano).aggregate(m=Max("numero"))["m"]
    return (atual or 0) + 1


def _publicar(norma: NormaJuridica):
    publicar_evento_transparencia(
        tenant=norma.tenant,
        modulo=MODULO,
        tipo_evento="NORMA_PUBLICADA",
        titulo=f"{norma.identificacao} publicada",
        descricao=norma.ementa[:500],
        referencia=f"norma:{norma.pk}",
        dados={
            "normaId": norma.pk,
            "tipo": norma.tipo,
            "numero": norma.numero,
            "ano": norma.ano,
            "proposicaoOrigemId": norma.proposicao_origem_id,
        },
    )


@transaction.atomic
def criar_norma(*, tenant, dados: dict, usuario=None) -> NormaJuridica:
    dados = dict(dados)
    data = dados.get("data") or timezone.localdate()
    dados["data"] = data
    dados["ano"] = dados.get("ano") or data.year
    if not dados.get("numero"):
        dados["numero"] = proximo_numero(tenant, dados["tipo"], dados["ano"])
    elif _numero_em_uso(tenant, dados["tipo"], dados["numero"], dados["ano"]):
        raise Conflito("Já existe uma norma com este número no ano")

    try:
        with transaction.atomic():
            norma = NormaJuridica.objects.create(tenant=tenant, **dados)
    except IntegrityError:
        raise Conflito("Já existe uma norma com este número no ano")
    VersaoNorma.objects.create(
        norma=norma,
        versao=1,
        texto_completo=norma.texto,
        motivo_alteracao="Texto original",
        usuario=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="NORMA_CRIADA",
        entidade="NormaJuridica",
        entidade_id=norma.pk,
        usuario=usuario,
        depois={"identificacao": norma.identificacao},
    )
    if norma.data_publicacao:
        _publicar(norma)
    logger.info("Norma %s criada na câmara %s", norma.identificacao, tenant.pk)
    return norma


@transaction.atomic
def atualizar_norma(norma: NormaJuridica, dados: dict, *, motivo: str = "", usuario=None) -> NormaJuridica:
    chave = (dados.get("tipo", norma.tipo), dados.get("numero") or norma.numero, dados.get("ano") or norma.ano)
    if chave != (norma.tipo, norma.numero, norma.ano) and _numero_em_uso(norma.tenant, *chave, exclude_id=norma.pk):
        raise Conflito("Já existe uma norma com este número no ano")

    texto_anterior = norma.texto
    publicada_antes = bool(norma.data_publicacao)
    for campo, valor in dados.items():
        if campo in {"numero", "ano"} and not valor:
            continue
        setattr(norma, campo, valor)
    try:
        with transaction.atomic():
            norma.save()
    except IntegrityError:
        raise Conflito("Já existe uma norma com este número no ano")

    # texto alterado gera nova versão
    if "texto" in dados and dados["texto"] != texto_anterior:
        ultima = norma.versoes.aggregate(m=Max("versao"))["m"] or 0
        VersaoNorma.objects.create(
            norma=norma,
            versao=ultima + 1,
            texto_completo=norma.texto,
            motivo_alteracao=motivo or "Atualização de texto",
            usuario=usuario if getattr(usuario, "is_authenticated", False) else None,
        )

    registrar_auditoria(
        tenant=norma.tenant,
        modulo=MODULO,
        evento="NORMA_ATUALIZADA",
        entidade="NormaJuridica",
        entidade_id=norma.pk,
        usuario=usuario,
        depois={"campos": sorted(dados)},
    )
    if norma.data_publicacao and not publicada_antes:
        _publicar(norma)
    return norma


@transaction.atomic
def registrar_alteracao(*, norma_alterada: NormaJuridica, norma_alteradora: NormaJuridica, tipo_alteracao: str, artigo_alterado: str = "", descricao: str = "", usuario=None) -> AlteracaoNorma:
    if norma_alterada.pk == norma_alteradora.pk:
        raise Conflito("Uma norma não pode alterar a si mesma")
    if norma_alterada.situacao == NormaJuridica.Situacao.REVOGADA:
        raise Conflito("Norma revogada não pode receber alterações")

    alteracao = AlteracaoNorma.objects.create(
        norma_alterada=norma_alterada,
        norma_alteradora=norma_alteradora,
        tipo_alteracao=tipo_alteracao,
        artigo_alterado=artigo_alterado or "",
        descricao=descricao or "",
    )
    situacao_anterior = norma_alterada.situacao
    norma_alterada.situacao = SITUACAO_POR_ALTERACAO[tipo_alteracao]
    norma_alterada.save(update_fields=["situacao", "atualizado_em"])

    registrar_auditoria(
        tenant=norma_alterada.tenant,
        modulo=MODULO,
        evento="NORMA_ALTERADA",
        entidade="NormaJuridica",
        entidade_id=norma_alterada.pk,
        usuario=usuario,
        antes={"situacao": situacao_anterior},
        depois={"situacao": norma_alterada.situacao, "alteradora": norma_alteradora.pk, "tipo": tipo_alteracao},
    )
    logger.info(
        "Norma %s alterada por %s (%s)", norma_alterada.pk, norma_alteradora.pk, tipo_alteracao
    )
    return alteracao


@transaction.atomic
def converter_proposicao_em_norma(proposicao: Proposicao, *, numero: int | None = None, data_publicacao=None, tipo: str = "", usuario=None) -> NormaJuridica:
    if proposicao.status != Proposicao.Status.APROVADA:
        raise Conflito("Somente proposições aprovadas podem ser convertidas em norma")
    processo = ProcessoSancao.objects.filter(proposicao=proposicao).first()
    if processo is not None and processo.situacao == ProcessoSancao.Situacao.ENVIADA_EXECUTIVO:
        raise Conflito("Proposição aguarda sanção do Executivo")
    if NormaJuridica.objects.filter(proposicao_origem=proposicao).exists():
        raise Conflito("Proposição já foi convertida em norma")

    tipo = tipo or TIPO_NORMA_POR_PROPOSICAO.get(proposicao.tipo)
    if not tipo:
        raise Conflito("Tipo de proposição não gera norma jurídica")

    data_publicacao = data_publicacao or timezone.localdate()
    norma = criar_norma(
        tenant=proposicao.tenant,
        dados={
            "tipo": tipo,
            "numero": numero,
            "ano": data_publicacao.year,
            "data": data_publicacao,
            "data_publicacao": data_publicacao,
            "ementa": proposicao.ementa or proposicao.titulo,
            "texto": proposicao.texto or proposicao.ementa,
            "proposicao_origem": proposicao,
        },
        usuario=usuario,
    )

    proposicao.status = Proposicao.Status.TRANSFORMADA_EM_NORMA
    proposicao.save(update_fields=["status", "atualizado_em"])
    registrar_auditoria(
        tenant=proposicao.tenant,
        modulo="PROPOSICOES",
        evento="PROPOSICAO_TRANSFORMADA_EM_NORMA",
        entidade="Proposicao",
        entidade_id=proposicao.pk,
        usuario=usuario,
        depois={"normaId": norma.pk},
    )
    return norma


def buscar(tenant, termo: str, *, limite: int = 20):
    termo = (termo or "").strip()
    if not termo:
        return []
    return list(
        NormaJuridica.objects.filter(tenant=tenant)
        .filter(
            Q(ementa__icontains=termo)
            | Q(texto__icontains=termo)
            | Q(texto_compilado__icontains=termo)
            | Q(assunto__icontains=termo)
        )
        .order_by("-ano", "-numero")[:limite]
    )


def estatisticas(tenant, ano: int | None = None) -> dict:
    ano = ano or timezone.localdate().year
    qs = NormaJuridica.objects.filter(tenant=tenant, ano=ano)
    por_tipo = {r["tipo"]: r["total"] for r in qs.values("tipo").annotate(total=Count("id")).order_by()}
    por_situacao = {r["situacao"]: r["total"] for r in qs.values("situacao").annotate(total=Count("id")).order_by()}
    return {"ano": ano, "total": sum(por_tipo.values()), "porTipo": por_tipo, "porSituacao": por_situacao}
