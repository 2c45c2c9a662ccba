from __future__ import annotations

from django.db.models import Q
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    Conflito,
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
from .forms import (
    FotoParlamentarForm,
    LegislaturaForm,
    MandatoForm,
    MembroMesaForm,
    MesaDiretoraForm,
    ParlamentarForm,
    PeriodoLegislaturaForm,
)
from .models import Legislatura, Mandato, MesaDiretora, Parlamentar
from .serializers import (
    legislatura_to_dict,
    mandato_to_dict,
    mesa_to_dict,
    parlamentar_resumo,
    parlamentar_to_dict,
    periodo_to_dict,
)


# =========================
# PARLAMENTARES
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("parlamentares.view", "parlamentares.manage")
@api_view
def parlamentar_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "parlamentares.manage")
        dados = validate_form(ParlamentarForm(data=read_json(request), tenant=tenant))
        parlamentar = services.criar_parlamentar(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(parlamentar_to_dict(parlamentar), message="Parlamentar cadastrado", status=201)

    qs = Parlamentar.objects.filter(tenant=tenant)
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(nome__icontains=q) | Q(apelido__icontains=q) | Q(partido__icontains=q))
    ativo = parse_bool(request.GET.get("ativo"))
    if ativo is not None:
        qs = qs.filter(ativo=ativo)
    partido = (request.GET.get("partido") or "").strip().upper()
    if partido:
        qs = qs.filter(partido=partido)

    items, meta = paginate(request, qs.order_by("nome"))
    return api_success([parlamentar_to_dict(p) for p in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("parlamentares.view", "parlamentares.manage")
@api_view
def parlamentar_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    parlamentar = obter_ou_404(Parlamentar.objects.filter(tenant=tenant), "Parlamentar", pk=pk)

    if request.method == "GET":
        data = parlamentar_to_dict(parlamentar)
        data["mandatos"] = [mandato_to_dict(m) for m in parlamentar.mandatos.all()]
        data["estatisticas"] = services.estatisticas_parlamentar(parlamentar)
        return api_success(data)

    check_perm(request, "parlamentares.manage")

    if request.method == "DELETE":
        parlamentar = services.desativar_parlamentar(parlamentar, usuario=request.user)
        return api_success(parlamentar_to_dict(parlamentar), message="Parlamentar desativado")

    payload = read_json(request)
    dados = validate_form(bind_form(ParlamentarForm, payload, instance=parlamentar, tenant=tenant))
    parlamentar = services.atualizar_parlamentar(parlamentar, somente_enviados(dados, payload), usuario=request.user)
    return api_success(parlamentar_to_dict(parlamentar), message="Parlamentar atualizado")


@require_POST
@require_perm("parlamentares.manage")
@api_view
def parlamentar_foto(request, pk: int):
    tenant = tenant_da_requisicao(request)
    parlamentar = obter_ou_404(Parlamentar.objects.filter(tenant=tenant), "Parlamentar", pk=pk)
    form = FotoParlamentarForm(request.POST, request.FILES)
    if not form.is_valid():
        raise DadosInvalidos(details=form_errors(form))
    parlamentar = services.atualizar_foto(parlamentar, form.cleaned_data["foto"])
    return api_success(parlamentar_to_dict(parlamentar), message="Foto atualizada")


@require_GET
@require_perm("parlamentares.view")
@api_view
def parlamentar_ativos(request):
    tenant = tenant_da_requisicao(request)
    return api_success([parlamentar_resumo(p) for p in services.listar_parlamentares_ativos(tenant)])


@require_POST
@require_perm("parlamentares.manage")
@api_view
def mandato_create(request):
    tenant = tenant_da_requisicao(request)
    dados = validate_form(MandatoForm(data=read_json(request), tenant=tenant))
    mandato = services.criar_mandato(dados)
    return api_success(mandato_to_dict(mandato), message="Mandato registrado", status=201)


@require_http_methods(["PUT", "PATCH", "DELETE"])
@require_perm("parlamentares.manage")
@api_view
def mandato_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    mandato = obter_ou_404(Mandato.objects.filter(parlamentar__tenant=tenant), "Mandato", pk=pk)
    if request.method == "DELETE":
        mandato.delete()
        return api_success(None, message="Mandato removido")

    payload = read_json(request)
    dados = validate_form(bind_form(MandatoForm, payload, instance=mandato, tenant=tenant))
    for campo, valor in somente_enviados(dados, payload).items():
        setattr(mandato, campo, valor)
    mandato.save()
    return api_success(mandato_to_dict(mandato), message="Mandato atualizado")


# =========================
# LEGISLATURAS
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("parlamentares.view", "parlamentares.manage")
@api_view
def legislatura_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "parlamentares.manage")
        dados = validate_form(LegislaturaForm(data=read_json(request), tenant=tenant))
        legislatura = services.criar_legislatura(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(legislatura_to_dict(legislatura), message="Legislatura criada", status=201)

    qs = Legislatura.objects.filter(tenant=tenant).prefetch_related("periodos")
    return api_success([legislatura_to_dict(l, com_periodos=True) for l in qs])


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("parlamentares.view", "parlamentares.manage")
@api_view
def legislatura_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    legislatura = obter_ou_404(Legislatura.objects.filter(tenant=tenant), "Legislatura", pk=pk)

    if request.method == "GET":
        return api_success(legislatura_to_dict(legislatura, com_periodos=True))

    check_perm(request, "parlamentares.manage")

    if request.method == "DELETE":
        if legislatura.mandatos.exists() or legislatura.sessoes.exists():
            raise Conflito("Legislatura possui mandatos ou sessões vinculadas")
        legislatura.delete()
        return api_success(None, message="Legislatura removida")

    payload = read_json(request)
    dados = validate_form(bind_form(LegislaturaForm, payload, instance=legislatura, tenant=tenant))
    legislatura = services.atualizar_legislatura(legislatura, somente_enviados(dados, payload), usuario=request.user)
    return api_success(legislatura_to_dict(legislatura), message="Legislatura atualizada")


@require_POST
@require_perm("parlamentares.manage")
@api_view
def legislatura_ativar(request, pk: int):
    tenant = tenant_da_requisicao(request)
    legislatura = obter_ou_404(Legislatura.objects.filter(tenant=tenant), "Legislatura", pk=pk)
    legislatura = services.ativar_legislatura(legislatura, usuario=request.user)
    return api_success(legislatura_to_dict(legislatura), message="Legislatura ativada")


@require_POST
@require_perm("parlamentares.manage")
@api_view
def periodo_create(request, pk: int):
    tenant = tenant_da_requisicao(request)
    legislatura = obter_ou_404(Legislatura.objects.filter(tenant=tenant), "Legislatura", pk=pk)
    dados = validate_form(PeriodoLegislaturaForm(data=read_json(request), tenant=tenant))
    periodo = services.criar_periodo(legislatura, dados)
    return api_success(periodo_to_dict(periodo), message="Período criado", status=201)


# =========================
# MESA DIRETORA
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("parlamentares.view", "parlamentares.manage")
@api_view
def mesa_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "parlamentares.manage")
        payload = read_json(request)
        dados = validate_form(MesaDiretoraForm(data=payload, tenant=tenant))
        membros = []
        for item in payload.get("membros") or []:
            membros.append(validate_form(MembroMesaForm(data=item, tenant=tenant)))
        mesa = services.criar_mesa(dados, membros=membros, usuario=request.user)
        return api_success(mesa_to_dict(mesa), message="Mesa diretora criada", status=201)

    qs = MesaDiretora.objects.filter(legislatura__tenant=tenant).prefetch_related("membros__parlamentar")
    legislatura_id = request.GET.get("legislatura")
    if legislatura_id:
        qs = qs.filter(legislatura_id=legislatura_id)
    return api_success([mesa_to_dict(m) for m in qs])


@require_POST
@require_perm("parlamentares.manage")
@api_view
def mesa_membro_create(request, pk: int):
    tenant = tenant_da_requisicao(request)
    mesa = obter_ou_404(MesaDiretora.objects.filter(legislatura__tenant=tenant), "Mesa diretora", pk=pk)
    dados = validate_form(MembroMesaForm(data=read_json(request), tenant=tenant))
    services.adicionar_membro_mesa(mesa, dados)
    return api_success(mesa_to_dict(mesa), message="Membro adicionado", status=201)


# =========================
# PÚBLICO
# =========================
@require_GET
@api_view
def publico_parlamentares(request):
    tenant = tenant_da_requisicao(request)
    return api_success([parlamentar_resumo(p) for p in services.listar_parlamentares_ativos(tenant)])


@require_GET
@api_view
def publico_parlamentar_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    parlamentar = obter_ou_404(Parlamentar.objects.filter(tenant=tenant, ativo=True), "Parlamentar", pk=pk)
    data = parlamentar_resumo(parlamentar)
    data["biografia"] = parlamentar.biografia
    data["email"] = parlamentar.email
    data["estatisticas"] = services.estatisticas_parlamentar(parlamentar)
    return api_success(data)


@require_GET
@api_view
def publico_mesa_diretora(request):
    tenant = tenant_da_requisicao(request)
    mesa = services.mesa_atual(tenant)
    return api_success(mesa_to_dict(mesa) if mesa else None)
