from __future__ import annotations

from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    DadosInvalidos,
    api_success,
    api_view,
    bind_form,
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

from . import services
from .forms import (
    AtaForm,
    ComissaoForm,
    MembroComissaoForm,
    MotivoForm,
    ParecerForm,
    PresencaReuniaoForm,
    ReuniaoForm,
    VotacaoParecerForm,
)
from .models import Comissao, MembroComissao, Parecer, ReuniaoComissao
from .serializers import comissao_to_dict, membro_to_dict, parecer_to_dict, reuniao_to_dict


def _comissao(tenant, pk):
    return obter_ou_404(Comissao.objects.filter(tenant=tenant), "Comissão", pk=pk)


def _reuniao(tenant, pk):
    return obter_ou_404(
        ReuniaoComissao.objects.filter(comissao__tenant=tenant).select_related("comissao"), "Reunião", pk=pk
    )


# =========================
# COMISSÕES
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("comissoes.view", "comissoes.manage")
@api_view
def comissao_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "comissoes.manage")
        dados = validate_form(ComissaoForm(data=read_json(request), tenant=tenant))
        comissao = services.criar_comissao(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(comissao_to_dict(comissao), message="Comissão criada", status=201)

    qs = Comissao.objects.filter(tenant=tenant)
    tipo = (request.GET.get("tipo") or "").strip().upper()
    if tipo:
        qs = qs.filter(tipo=tipo)
    ativa = parse_bool(request.GET.get("ativa"))
    if ativa is not None:
        qs = qs.filter(ativa=ativa)
    return api_success([comissao_to_dict(c) for c in qs])


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("comissoes.view", "comissoes.manage")
@api_view
def comissao_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    comissao = _comissao(tenant, pk)

    if request.method == "GET":
        data = comissao_to_dict(comissao, com_membros=True)
        data["estatisticas"] = services.estatisticas(comissao, parse_int(request.GET.get("ano")) or timezone.localdate().year)
        return api_success(data)

    check_perm(request, "comissoes.manage")

    if request.method == "DELETE":
        comissao = services.atualizar_comissao(comissao, {"ativa": False}, usuario=request.user)
        return api_success(comissao_to_dict(comissao), message="Comissão desativada")

    payload = read_json(request)
    dados = validate_form(bind_form(ComissaoForm, payload, instance=comissao, tenant=tenant))
    comissao = services.atualizar_comissao(comissao, somente_enviados(dados, payload), usuario=request.user)
    return api_success(comissao_to_dict(comissao), message="Comissão atualizada")


@require_POST
@require_perm("comissoes.manage")
@api_view
def membro_create(request, pk: int):
    tenant = tenant_da_requisicao(request)
    comissao = _comissao(tenant, pk)
    dados = validate_form(MembroComissaoForm(data=read_json(request), tenant=tenant))
    membro = services.adicionar_membro(comissao, dados)
    return api_success(membro_to_dict(membro), message="Membro adicionado", status=201)


@require_http_methods(["DELETE"])
@require_perm("comissoes.manage")
@api_view
def membro_detail(request, pk: int, membro_id: int):
    tenant = tenant_da_requisicao(request)
    comissao = _comissao(tenant, pk)
    membro = obter_ou_404(MembroComissao.objects.filter(comissao=comissao), "Membro", pk=membro_id)
    membro = services.desligar_membro(membro)
    return api_success(membro_to_dict(membro), message="Membro desligado")


# =========================
# REUNIÕES
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("comissoes.view", "comissoes.manage")
@api_view
def reuniao_list(request, pk: int):
    tenant = tenant_da_requisicao(request)
    comissao = _comissao(tenant, pk)

    if request.method == "POST":
        check_perm(request, "comissoes.manage")
        dados = validate_form(ReuniaoForm(data=read_json(request)))
        reuniao = services.criar_reuniao(comissao, dados, usuario=request.user)
        return api_success(reuniao_to_dict(reuniao), message="Reunião agendada", status=201)

    qs = comissao.reunioes.select_related("comissao")
    status = (request.GET.get("status") or "").strip().upper()
    if status:
        qs = qs.filter(status=status)
    ano = parse_int(request.GET.get("ano"))
    if ano:
        qs = qs.filter(ano=ano)
    items, meta = paginate(request, qs)
    return api_success([reuniao_to_dict(r) for r in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("comissoes.view", "comissoes.manage")
@api_view
def reuniao_detail(request, reuniao_id: int):
    tenant = tenant_da_requisicao(request)
    reuniao = _reuniao(tenant, reuniao_id)

    if request.method == "GET":
        data = reuniao_to_dict(reuniao, completo=True)
        data["quorum"] = services.verificar_quorum(reuniao)
        return api_success(data)

    check_perm(request, "comissoes.manage")

    if request.method == "DELETE":
        services.excluir_reuniao(reuniao, usuario=request.user)
        return api_success(None, message="Reunião excluída")

    payload = read_json(request)
    dados = validate_form(bind_form(ReuniaoForm, payload, instance=reuniao))
    for campo, valor in somente_enviados(dados, payload).items():
        setattr(reuniao, campo, valor)
    reuniao.save()
    return api_success(reuniao_to_dict(reuniao), message="Reunião atualizada")


@require_GET
@require_perm("comissoes.view")
@api_view
def reuniao_proximas(request):
    tenant = tenant_da_requisicao(request)
    limite = min(parse_int(request.GET.get("limite"), 5) or 5, 50)
    return api_success([reuniao_to_dict(r) for r in services.proximas_reunioes(tenant, limite=limite)])


_ACOES_REUNIAO = {
    "convocar": ("Reunião convocada", lambda r, d, u: services.convocar_reuniao(r, usuario=u)),
    "iniciar": ("Reunião iniciada", lambda r, d, u: services.iniciar_reuniao(r, usuario=u)),
    "suspender": ("Reunião suspensa", lambda r, d, u: services.suspender_reuniao(r, motivo=d["motivo"], usuario=u)),
    "retomar": ("Reunião retomada", lambda r, d, u: services.retomar_reuniao(r, usuario=u)),
    "encerrar": ("Reunião encerrada", lambda r, d, u: services.encerrar_reuniao(r, usuario=u)),
    "cancelar": ("Reunião cancelada", lambda r, d, u: services.cancelar_reuniao(r, motivo=d["motivo"], usuario=u)),
    "aprovar-ata": ("Ata aprovada", lambda r, d, u: services.aprovar_ata(r, usuario=u)),
}


@require_POST
@require_perm("comissoes.manage")
@api_view
def reuniao_acao(request, reuniao_id: int, acao: str):
    tenant = tenant_da_requisicao(request)
    reuniao = _reuniao(tenant, reuniao_id)
    if acao not in _ACOES_REUNIAO:
        raise DadosInvalidos(f"Ação inválida: {acao}")
    mensagem, executar = _ACOES_REUNIAO[acao]
    dados = validate_form(MotivoForm(data=read_json(request)))
    reuniao = executar(reuniao, dados, request.user)
    return api_success(reuniao_to_dict(reuniao), message=mensagem)


@require_POST
@require_perm("comissoes.manage")
@api_view
def reuniao_presencas(request, reuniao_id: int):
    tenant = tenant_da_requisicao(request)
    reuniao = _reuniao(tenant, reuniao_id)
    payload = read_json(request)
    registros = payload.get("presencas") if isinstance(payload.get("presencas"), list) else [payload]
    for item in registros:
        dados = validate_form(PresencaReuniaoForm(data=item))
        membro = obter_ou_404(reuniao.comissao.membros.all(), "Membro", pk=dados["membro"])
        services.registrar_presenca(
            reuniao, membro, presente=dados["presente"], justificativa=dados["justificativa"]
        )
    return api_success(services.verificar_quorum(reuniao), message="Presenças registradas")


@require_http_methods(["PUT"])
@require_perm("comissoes.manage")
@api_view
def reuniao_ata(request, reuniao_id: int):
    tenant = tenant_da_requisicao(request)
    reuniao = _reuniao(tenant, reuniao_id)
    dados = validate_form(AtaForm(data=read_json(request)))
    reuniao = services.salvar_ata(reuniao, dados["ata"], usuario=request.user)
    return api_success(reuniao_to_dict(reuniao, completo=True), message="Ata salva")


@require_POST
@require_perm("comissoes.manage")
@api_view
def reuniao_votar_parecer(request, reuniao_id: int):
    tenant = tenant_da_requisicao(request)
    reuniao = _reuniao(tenant, reuniao_id)
    dados = validate_form(VotacaoParecerForm(data=read_json(request)))
    parecer = obter_ou_404(reuniao.comissao.pareceres.all(), "Parecer", pk=dados["parecer"])
    parecer = services.votar_parecer(
        reuniao,
        parecer,
        favor=dados["favor"],
        contra=dados["contra"],
        abstencao=dados["abstencao"] or 0,
        usuario=request.user,
    )
    return api_success(parecer_to_dict(parecer), message="Parecer votado")


# =========================
# PARECERES
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("comissoes.view", "comissoes.manage")
@api_view
def parecer_list(request, pk: int):
    tenant = tenant_da_requisicao(request)
    comissao = _comissao(tenant, pk)

    if request.method == "POST":
        check_perm(request, "comissoes.manage")
        dados = validate_form(ParecerForm(data=read_json(request), tenant=tenant))
        parecer = services.criar_parecer(comissao, dados, usuario=request.user)
        return api_success(parecer_to_dict(parecer), message="Parecer cadastrado", status=201)

    qs = comissao.pareceres.select_related("proposicao", "relator")
    status = (request.GET.get("status") or "").strip().upper()
    if status:
        qs = qs.filter(status=status)
    items, meta = paginate(request, qs)
    return api_success([parecer_to_dict(p) for p in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH"])
@require_perm("comissoes.view", "comissoes.manage")
@api_view
def parecer_detail(request, parecer_id: int):
    tenant = tenant_da_requisicao(request)
    parecer = obter_ou_404(
        Parecer.objects.filter(comissao__tenant=tenant).select_related("proposicao", "relator"),
        "Parecer",
        pk=parecer_id,
    )
    if request.method == "GET":
        return api_success(parecer_to_dict(parecer))

    check_perm(request, "comissoes.manage")
    payload = read_json(request)
    dados = validate_form(bind_form(ParecerForm, payload, instance=parecer, tenant=tenant))
    parecer = services.atualizar_parecer(parecer, somente_enviados(dados, payload))
    return api_success(parecer_to_dict(parecer), message="Parecer atualizado")


@require_POST
@require_perm("comissoes.manage")
@api_view
def parecer_emitir(request, parecer_id: int):
    tenant = tenant_da_requisicao(request)
    parecer = obter_ou_404(Parecer.objects.filter(comissao__tenant=tenant), "Parecer", pk=parecer_id)
    parecer = services.emitir_parecer(parecer, usuario=request.user)
    return api_success(parecer_to_dict(parecer), message="Parecer emitido")


# =========================
# PÚBLICO
# =========================
@require_GET
@api_view
def publico_comissoes(request):
    tenant = tenant_da_requisicao(request)
    qs = Comissao.objects.filter(tenant=tenant, ativa=True)
    return api_success([comissao_to_dict(c, com_membros=True) for c in qs])


@require_GET
@api_view
def publico_reunioes(request):
    tenant = tenant_da_requisicao(request)
    qs = (
        ReuniaoComissao.objects.filter(comissao__tenant=tenant, comissao__ativa=True)
        .exclude(status=ReuniaoComissao.Status.CANCELADA)
        .select_related("comissao")
    )
    comissao_id = parse_int(request.GET.get("comissao"))
    if comissao_id:
        qs = qs.filter(comissao_id=comissao_id)
    items, meta = paginate(request, qs)
    return api_success([reuniao_to_dict(r) for r in items], meta=meta)
