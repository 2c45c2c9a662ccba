from __future__ import annotations

from django.db.models import Q
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    DadosInvalidos,
    api_success,
    api_view,
    bind_form,
    form_errors,
    obter_ou_404,
    paginate,
    parse_bool,
    parse_int,
    read_json,
    somente_enviados,
    tenant_da_requisicao,
    validate_form,
)
from apps.core.decorators import check_perm, require_perm
from apps.core.exports import export_csv
from apps.core.models import TransparenciaEventoPublico

from . import services
from .forms import ArquivoPublicacaoForm, CategoriaPublicacaoForm, PublicacaoForm
from .models import CategoriaPublicacao, Publicacao
from .serializers import categoria_to_dict, evento_to_dict, publicacao_to_dict


def _filtrar(request, qs):
    tipo = (request.GET.get("tipo") or "").strip().upper()
    if tipo:
        qs = qs.filter(tipo=tipo)
    ano = parse_int(request.GET.get("ano"))
    if ano:
        qs = qs.filter(ano=ano)
    categoria = parse_int(request.GET.get("categoria"))
    if categoria:
        qs = qs.filter(categoria_id=categoria)
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(titulo__icontains=q) | Q(descricao__icontains=q) | Q(numero__icontains=q))
    return qs


# =========================
# CATEGORIAS
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("transparencia.view", "transparencia.manage")
@api_view
def categoria_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "transparencia.manage")
        dados = validate_form(CategoriaPublicacaoForm(data=read_json(request), tenant=tenant))
        categoria = services.criar_categoria(tenant=tenant, dados=dados)
        return api_success(categoria_to_dict(categoria), message="Categoria criada", status=201)

    qs = CategoriaPublicacao.objects.filter(tenant=tenant)
    if not parse_bool(request.GET.get("incluirInativas")):
        qs = qs.filter(ativa=True)
    return api_success([categoria_to_dict(c) for c in qs])


@require_http_methods(["PUT", "PATCH", "DELETE"])
@require_perm("transparencia.manage")
@api_view
def categoria_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    categoria = obter_ou_404(CategoriaPublicacao.objects.filter(tenant=tenant), "Categoria", pk=pk)

    if request.method == "DELETE":
        services.excluir_categoria(categoria)
        return api_success(None, message="Categoria removida")

    payload = read_json(request)
    dados = validate_form(bind_form(CategoriaPublicacaoForm, payload, instance=categoria, tenant=tenant))
    categoria = services.atualizar_categoria(categoria, somente_enviados(dados, payload))
    return api_success(categoria_to_dict(categoria), message="Categoria atualizada")


# =========================
# PUBLICAÇÕES
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("transparencia.view", "transparencia.manage")
@api_view
def publicacao_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "transparencia.manage")
        dados = validate_form(PublicacaoForm(data=read_json(request), tenant=tenant))
        publicacao = services.criar_publicacao(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(publicacao_to_dict(publicacao), message="Publicação cadastrada", status=201)

    qs = _filtrar(request, Publicacao.objects.filter(tenant=tenant).select_related("categoria"))
    publicada = parse_bool(request.GET.get("publicada"))
    if publicada is not None:
        qs = qs.filter(publicada=publicada)
    items, meta = paginate(request, qs)
    return api_success([publicacao_to_dict(p) for p in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("transparencia.view", "transparencia.manage")
@api_view
def publicacao_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    publicacao = obter_ou_404(Publicacao.objects.filter(tenant=tenant).select_related("categoria"), "Publicação", pk=pk)

    if request.method == "GET":
        return api_success(publicacao_to_dict(publicacao, completo=True))

    check_perm(request, "transparencia.manage")

    if request.method == "DELETE":
        services.excluir_publicacao(publicacao, usuario=request.user)
        return api_success(None, message="Publicação removida")

    payload = read_json(request)
    dados = validate_form(bind_form(PublicacaoForm, payload, instance=publicacao, tenant=tenant))
    publicacao = services.atualizar_publicacao(publicacao, somente_enviados(dados, payload), usuario=request.user)
    return api_success(publicacao_to_dict(publicacao, completo=True), message="Publicação atualizada")


@require_POST
@require_perm("transparencia.manage")
@api_view
def publicacao_arquivo(request, pk: int):
    tenant = tenant_da_requisicao(request)
    publicacao = obter_ou_404(Publicacao.objects.filter(tenant=tenant), "Publicação", pk=pk)
    form = ArquivoPublicacaoForm(request.POST, request.FILES)
    if not form.is_valid():
        raise DadosInvalidos(details=form_errors(form))
    publicacao = services.anexar_arquivo(publicacao, form.cleaned_data["arquivo"])
    return api_success(publicacao_to_dict(publicacao, completo=True), message="Arquivo anexado")


@require_GET
@require_perm("transparencia.view")
@api_view
def publicacao_estatisticas(request):
    tenant = tenant_da_requisicao(request)
    return api_success(services.estatisticas(tenant))


@require_GET
@require_perm("transparencia.view")
@api_view
def publicacao_exportar_csv(request):
    tenant = tenant_da_requisicao(request)
    qs = _filtrar(request, Publicacao.objects.filter(tenant=tenant).select_related("categoria"))
    filename = f"publicacoes_{tenant.slug}_{timezone.localdate():%Y%m%d}.csv"
    return export_csv(filename, services.CSV_HEADERS, services.linhas_csv(qs))


# =========================
# PÚBLICO
# =========================
@require_GET
@api_view
def publico_publicacoes(request):
    tenant = tenant_da_requisicao(request)
    items, meta = paginate(request, _filtrar(request, services.publicadas(tenant)))
    return api_success([publicacao_to_dict(p) for p in items], meta=meta)


@require_GET
@api_view
def publico_publicacao_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    publicacao = obter_ou_404(services.publicadas(tenant), "Publicação", pk=pk)
    services.registrar_visualizacao(publicacao)
    return api_success(publicacao_to_dict(publicacao, completo=True))


@require_GET
@api_view
def publico_lrf(request):
    tenant = tenant_da_requisicao(request)
    grupos = services.documentos_lrf(tenant, parse_int(request.GET.get("ano")))
    return api_success({tipo: [publicacao_to_dict(p) for p in itens] for tipo, itens in grupos.items()})


@require_GET
@api_view
def publico_recentes(request):
    tenant = tenant_da_requisicao(request)
    limite = min(parse_int(request.GET.get("limite"), 5) or 5, 50)
    return api_success([publicacao_to_dict(p) for p in services.recentes(tenant, limite)])


@require_GET
@api_view
def publico_anos(request):
    tenant = tenant_da_requisicao(request)
    return api_success(services.anos_disponiveis(tenant))


@require_GET
@api_view
def publico_categorias(request):
    tenant = tenant_da_requisicao(request)
    qs = CategoriaPublicacao.objects.filter(tenant=tenant, ativa=True)
    return api_success([categoria_to_dict(c) for c in qs])


@require_GET
@api_view
def publico_eventos(request):
    tenant = tenant_da_requisicao(request)
    qs = TransparenciaEventoPublico.objects.filter(tenant=tenant, publico=True)
    modulo = (request.GET.get("modulo") or "").strip().upper()
    if modulo:
        qs = qs.filter(modulo=modulo)
    items, meta = paginate(request, qs)
    return api_success([evento_to_dict(e) for e in items], meta=meta)
