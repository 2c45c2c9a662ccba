from __future__ import annotations

from django.db.models import Q
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
    read_json,
    somente_enviados,
    tenant_da_requisicao,
    validate_form,
)
from apps.core.decorators import check_perm, require_perm

from . import services
from .forms import ImagemNoticiaForm, NoticiaForm
from .models import Noticia
from .serializers import noticia_to_dict


def _filtrar(request, qs):
    categoria = (request.GET.get("categoria") or "").strip().upper()
    if categoria:
        qs = qs.filter(categoria=categoria)
    if parse_bool(request.GET.get("destaque")):
        qs = qs.filter(destaque=True)
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(titulo__icontains=q) | Q(resumo__icontains=q))
    return qs


@require_http_methods(["GET", "POST"])
@require_perm("noticias.view", "noticias.manage")
@api_view
def noticia_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "noticias.manage")
        dados = validate_form(NoticiaForm(data=read_json(request), tenant=tenant))
        noticia = services.criar_noticia(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(noticia_to_dict(noticia, completo=True), message="Notícia criada", status=201)

    qs = _filtrar(request, Noticia.objects.filter(tenant=tenant))
    publicada = parse_bool(request.GET.get("publicada"))
    if publicada is not None:
        qs = qs.filter(publicada=publicada)
    items, meta = paginate(request, qs)
    return api_success([noticia_to_dict(n) for n in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("noticias.view", "noticias.manage")
@api_view
def noticia_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    noticia = obter_ou_404(Noticia.objects.filter(tenant=tenant).select_related("autor"), "Notícia", pk=pk)

    if request.method == "GET":
        return api_success(noticia_to_dict(noticia, completo=True))

    check_perm(request, "noticias.manage")

    if request.method == "DELETE":
        services.excluir_noticia(noticia, usuario=request.user)
        return api_success(None, message="Notícia removida")

    payload = read_json(request)
    dados = validate_form(bind_form(NoticiaForm, payload, instance=noticia, tenant=tenant))
    noticia = services.atualizar_noticia(noticia, somente_enviados(dados, payload), usuario=request.user)
    return api_success(noticia_to_dict(noticia, completo=True), message="Notícia atualizada")


@require_POST
@require_perm("noticias.manage")
@api_view
def noticia_imagem(request, pk: int):
    tenant = tenant_da_requisicao(request)
    noticia = obter_ou_404(Noticia.objects.filter(tenant=tenant), "Notícia", pk=pk)
    form = ImagemNoticiaForm(request.POST, request.FILES)
    if not form.is_valid():
        raise DadosInvalidos(details=form_errors(form))
    noticia = services.atualizar_imagem(noticia, form.cleaned_data["imagem"])
    return api_success(noticia_to_dict(noticia), message="Imagem atualizada")


# =========================
# PÚBLICO
# =========================
@require_GET
@api_view
def publico_noticias(request):
    tenant = tenant_da_requisicao(request)
    items, meta = paginate(request, _filtrar(request, services.publicadas(tenant)), default_limit=10)
    return api_success([noticia_to_dict(n) for n in items], meta=meta)


@require_GET
@api_view
def publico_noticia_detail(request, slug: str):
    tenant = tenant_da_requisicao(request)
    noticia = obter_ou_404(services.publicadas(tenant).select_related("autor"), "Notícia", slug=slug)
    return api_success(noticia_to_dict(noticia, completo=True))
