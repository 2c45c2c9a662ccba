from __future__ import annotations

from django.db.models import Q
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    api_success,
    api_view,
    bind_form,
    obter_ou_404,
    paginate,
    parse_int,
    read_json,
    somente_enviados,
    tenant_da_requisicao,
    validate_form,
)
from apps.core.decorators import check_perm, require_perm
from apps.proposicoes.models import Proposicao

from . import services
from .forms import AlteracaoForm, ConverterProposicaoForm, MotivoVersaoForm, NormaForm
from .models import NormaJuridica
from .serializers import alteracao_to_dict, norma_resumo, norma_to_dict, versao_to_dict


def _filtrar(request, qs):
    tipo = (request.GET.get("tipo") or "").strip().upper()
    if tipo:
        qs = qs.filter(tipo=tipo)
    situacao = (request.GET.get("situacao") or "").strip().upper()
    if situacao:
        qs = qs.filter(situacao=situacao)
    ano = parse_int(request.GET.get("ano"))
    if ano:
        qs = qs.filter(ano=ano)
    numero = parse_int(request.GET.get("numero"))
    if numero:
        qs = qs.filter(numero=numero)
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(ementa__icontains=q) | Q(assunto__icontains=q) | Q(texto__icontains=q))
    return qs


@require_http_methods(["GET", "POST"])
@require_perm("normas.view", "normas.manage")
@api_view
def norma_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "normas.manage")
        dados = validate_form(NormaForm(data=read_json(request), tenant=tenant))
        norma = services.criar_norma(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(norma_to_dict(norma), message="Norma cadastrada", status=201)

    items, meta = paginate(request, _filtrar(request, NormaJuridica.objects.filter(tenant=tenant)))
    return api_success([norma_resumo(n) for n in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH"])
@require_perm("normas.view", "normas.manage")
@api_view
def norma_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    norma = obter_ou_404(NormaJuridica.objects.filter(tenant=tenant), "Norma", pk=pk)

    if request.method == "GET":
        return api_success(norma_to_dict(norma, completo=True))

    check_perm(request, "normas.manage")
    payload = read_json(request)
    motivo = validate_form(MotivoVersaoForm(data=payload))["motivo"]
    dados = validate_form(bind_form(NormaForm, payload, instance=norma, tenant=tenant))
    norma = services.atualizar_norma(norma, somente_enviados(dados, payload), motivo=motivo, usuario=request.user)
    return api_success(norma_to_dict(norma), message="Norma atualizada")


@require_GET
@require_perm("normas.view")
@api_view
def norma_versao(request, pk: int, versao: int):
    tenant = tenant_da_requisicao(request)
    norma = obter_ou_404(NormaJuridica.objects.filter(tenant=tenant), "Norma", pk=pk)
    v = obter_ou_404(norma.versoes.all(), "Versão", versao=versao)
    return api_success(versao_to_dict(v, com_texto=True))


@require_POST
@require_perm("normas.manage")
@api_view
def norma_alteracao(request, pk: int):
    tenant = tenant_da_requisicao(request)
    norma = obter_ou_404(NormaJuridica.objects.filter(tenant=tenant), "Norma", pk=pk)
    dados = validate_form(AlteracaoForm(data=read_json(request), tenant=tenant))
    alteracao = services.registrar_alteracao(norma_alterada=norma, usuario=request.user, **dados)
    return api_success(alteracao_to_dict(alteracao), message="Alteração registrada", status=201)


@require_POST
@require_perm("normas.manage")
@api_view
def converter_proposicao(request, proposicao_id: int):
    tenant = tenant_da_requisicao(request)
    proposicao = obter_ou_404(Proposicao.objects.filter(tenant=tenant), "Proposição", pk=proposicao_id)
    dados = validate_form(ConverterProposicaoForm(data=read_json(request)))
    norma = services.converter_proposicao_em_norma(
        proposicao,
        numero=dados["numero"],
        data_publicacao=dados["data_publicacao"],
        tipo=dados["tipo"],
        usuario=request.user,
    )
    return api_success(norma_to_dict(norma), message="Proposição convertida em norma", status=201)


@require_GET
@require_perm("normas.view")
@api_view
def norma_estatisticas(request):
    tenant = tenant_da_requisicao(request)
    return api_success(services.estatisticas(tenant, parse_int(request.GET.get("ano"))))


# =========================
# PÚBLICO
# =========================
@require_GET
@api_view
def publico_normas(request):
    tenant = tenant_da_requisicao(request)
    qs = _filtrar(request, NormaJuridica.objects.filter(tenant=tenant, data_publicacao__isnull=False))
    items, meta = paginate(request, qs)
    return api_success([norma_resumo(n) for n in items], meta=meta)


@require_GET
@api_view
def publico_norma_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    norma = obter_ou_404(
        NormaJuridica.objects.filter(tenant=tenant, data_publicacao__isnull=False), "Norma", pk=pk
    )
    return api_success(norma_to_dict(norma, completo=True))


@require_GET
@api_view
def publico_normas_busca(request):
    tenant = tenant_da_requisicao(request)
    limite = min(parse_int(request.GET.get("limite"), 20) or 20, 100)
    return api_success([norma_resumo(n) for n in services.buscar(tenant, request.GET.get("q"), limite=limite)])
