from __future__ import annotations

from django.db.models import Q
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    NaoEncontrado,
    api_success,
    api_view,
    bind_form,
    paginate,
    read_json,
    validate_form,
)
from apps.core.decorators import require_perm

from . import services
from .forms import TenantForm
from .serializers import tenant_publico, tenant_to_dict


@require_GET
@api_view
def tenant_atual(request):
    tenant = getattr(request, "tenant", None)
    if tenant is None:
        raise NaoEncontrado("Câmara")
    return api_success(tenant_publico(tenant))


@require_http_methods(["GET", "POST"])
@require_perm("tenants.manage")
@api_view
def tenant_list(request):
    if request.method == "POST":
        form = TenantForm(data=read_json(request))
        dados = validate_form(form)
        tenant = services.criar_tenant(dados)
        return api_success(tenant_to_dict(tenant), message="Câmara criada com sucesso", status=201)

    qs = services.Tenant.objects.all().order_by("nome")
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(nome__icontains=q) | Q(slug__icontains=q) | Q(cidade__icontains=q))
    if request.GET.get("ativo") in {"true", "false"}:
        qs = qs.filter(ativo=request.GET["ativo"] == "true")
    items, meta = paginate(request, qs)
    return api_success([tenant_to_dict(t) for t in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("tenants.manage")
@api_view
def tenant_detail(request, pk: int):
    tenant = services.buscar_tenant_por_id(pk, incluir_inativos=True)
    if tenant is None:
        raise NaoEncontrado("Câmara")

    if request.method == "GET":
        return api_success(tenant_to_dict(tenant))

    if request.method == "DELETE":
        tenant = services.desativar_tenant(pk)
        return api_success(tenant_to_dict(tenant), message="Câmara desativada")

    payload = read_json(request)
    form = bind_form(TenantForm, payload, instance=tenant)
    dados = validate_form(form)
    dados = {k: v for k, v in dados.items() if k in payload}
    tenant = services.atualizar_tenant(pk, dados)
    return api_success(tenant_to_dict(tenant), message="Câmara atualizada")


@require_POST
@require_perm("tenants.manage")
@api_view
def tenant_cache_limpar(request):
    services.limpar_cache_tenants()
    return api_success(None, message="Cache de câmaras limpo")
