from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos
from apps.core.services_auditoria import registrar_auditoria
from apps.core.services_transparencia import publicar_evento_transparencia

from .models import CategoriaPublicacao, Publicacao

logger = logging.getLogger(__name__)

MODULO = "TRANSPARENCIA"

TIPOS_LRF = (
    Publicacao.Tipo.LOA,
    Publicacao.Tipo.LDO,
    Publicacao.Tipo.PPA,
    Publicacao.Tipo.RGF,
    Publicacao.Tipo.RREO,
)

CSV_HEADERS = ["Tipo", "Número", "Ano", "Data", "Título", "Categoria", "Autor", "Publicada", "Visualizações"]


# =========================
# Categorias
# =========================
def criar_categoria(*, tenant, dados: dict) -> CategoriaPublicacao:
    if CategoriaPublicacao.objects.filter(tenant=tenant, nome__iexact=dados["nome"]).exists():
        raise Conflito("Já existe uma categoria com este nome")
    return CategoriaPublicacao.objects.create(tenant=tenant, **dados)


def atualizar_categoria(categoria: CategoriaPublicacao, dados: dict) -> CategoriaPublicacao:
    nome = dados.get("nome")
    if nome and (
        CategoriaPublicacao.objects.filter(tenant=categoria.tenant, nome__iexact=nome)
        .exclude(pk=categoria.pk)
        .exists()
    ):
        raise Conflito("Já existe uma categoria com este nome")
    for campo, valor in dados.items():
        setattr(categoria, campo, valor)
    categoria.save()
    return categoria


def excluir_categoria(categoria: CategoriaPublicacao) -> None:
    if categoria.publicacoes.exists():
        raise Conflito("Categoria possui publicações vinculadas")
    categoria.delete()


# =========================
# Publicações
# =========================
def _resolver_autor(dados: dict) -> dict:
    autor_tipo = dados.get("autor_tipo")
    parlamentar = dados.get("parlamentar")
    if autor_tipo == Publicacao.AutorTipo.PARLAMENTAR:
        if parlamentar is None:
            raise DadosInvalidos("Informe o parlamentar autor", details={"parlamentar": ["Campo obrigatório."]})
        dados["autor_nome"] = parlamentar.nome_exibicao
    elif autor_tipo:
        dados["parlamentar"] = None
    return dados


def _divulgar(publicacao: Publicacao):
    publicar_evento_transparencia(
        tenant=publicacao.tenant,
        modulo=MODULO,
        tipo_evento="PUBLICACAO_DIVULGADA",
        titulo=str(publicacao)[:220],
        descricao=publicacao.descricao[:500],
        referencia=f"publicacao:{publicacao.pk}",
        dados={"publicacaoId": publicacao.pk, "tipo": publicacao.tipo, "ano": publicacao.ano},
    )


@transaction.atomic
def criar_publicacao(*, tenant, dados: dict, usuario=None) -> Publicacao:
    dados = _resolver_autor(dict(dados))
    dados["ano"] = dados.get("ano") or dados["data"].year
    publicacao = Publicacao.objects.create(tenant=tenant, **dados)
    if publicacao.publicada:
        publicacao.publicada_em = timezone.now()
        publicacao.save(update_fields=["publicada_em"])
        _divulgar(publicacao)
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="PUBLICACAO_CRIADA",
        entidade="Publicacao",
        entidade_id=publicacao.pk,
        usuario=usuario,
        depois={"tipo": publicacao.tipo, "titulo": publicacao.titulo, "publicada": publicacao.publicada},
    )
    return publicacao


@transaction.atomic
def atualizar_publicacao(publicacao: Publicacao, dados: dict, *, usuario=None) -> Publicacao:
    dados = _resolver_autor(dict(dados))
    publicada_antes = publicacao.publicada
    for campo, valor in dados.items():
        setattr(publicacao, campo, valor)
    if publicacao.publicada and not publicada_antes:
        publicacao.publicada_em = timezone.now()
    publicacao.save()
    if publicacao.publicada and not publicada_antes:
        _divulgar(publicacao)
    registrar_auditoria(
        tenant=publicacao.tenant,
        modulo=MODULO,
        evento="PUBLICACAO_ATUALIZADA",
        entidade="Publicacao",
        entidade_id=publicacao.pk,
        usuario=usuario,
        depois={"campos": sorted(dados)},
    )
    return publicacao


def excluir_publicacao(publicacao: Publicacao, *, usuario=None) -> None:
    tenant, pk, titulo = publicacao.tenant, publicacao.pk, publicacao.titulo
    if publicacao.arquivo:
        publicacao.arquivo.delete(save=False)
    publicacao.delete()
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="PUBLICACAO_EXCLUIDA",
        entidade="Publicacao",
        entidade_id=pk,
        usuario=usuario,
        antes={"titulo": titulo},
    )


def anexar_arquivo(publicacao: Publicacao, arquivo) -> Publicacao:
    if publicacao.arquivo:
        publicacao.arquivo.delete(save=False)
    publicacao.arquivo = arquivo
    publicacao.save()
    return publicacao


def registrar_visualizacao(publicacao: Publicacao) -> int:
    Publicacao.objects.filter(pk=publicacao.pk).update(visualizacoes=F("visualizacoes") + 1)
    publicacao.refresh_from_db(fields=["visualizacoes"])
    return publicacao.visualizacoes


# =========================
# Consultas
# =========================
def publicadas(tenant):
    return Publicacao.objects.filter(tenant=tenant, publicada=True).select_related("categoria")


def documentos_lrf(tenant, ano: int | None = None) -> dict:
    qs = publicadas(tenant).filter(tipo__in=TIPOS_LRF)
    if ano:
        qs = qs.filter(ano=ano)
    grupos = {tipo.value: [] for tipo in TIPOS_LRF}
    for publicacao in qs.order_by("-ano", "-data"):
        grupos[publicacao.tipo].append(publicacao)
    return grupos


def recentes(tenant, limite: int = 5):
    return list(publicadas(tenant).order_by("-publicada_em", "-data")[:limite])


def anos_disponiveis(tenant) -> list[int]:
    return list(publicadas(tenant).values_list("ano", flat=True).distinct().order_by("-ano"))


def estatisticas(tenant) -> dict:
    qs = Publicacao.objects.filter(tenant=tenant)
    por_tipo = {r["tipo"]: r["total"] for r in qs.values("tipo").annotate(total=Count("id")).order_by()}
    total = sum(por_tipo.values())
    publicadas_total = qs.filter(publicada=True).count()
    return {
        "total": total,
        "publicadas": publicadas_total,
        "rascunhos": total - publicadas_total,
        "porTipo": por_tipo,
        "totalVisualizacoes": qs.aggregate(s=Sum("visualizacoes"))["s"] or 0,
    }


def linhas_csv(publicacoes) -> list[list]:
    return [
        [
            p.get_tipo_display(),
            p.numero,
            p.ano,
            p.data.strftime("%d/%m/%Y"),
            p.titulo,
            p.categoria.nome if p.categoria_id else "",
            p.autor_nome,
            "Sim" if p.publicada else "Não",
            p.visualizacoes,
        ]
        for p in publicacoes
    ]
