from __future__ import annotations

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    NaoEncontrado,
    api_success,
    api_view,
    bind_form,
    obter_ou_404,
    paginate,
    read_json,
    somente_enviados,
    tenant_da_requisicao,
    validate_form,
)
from apps.core.decorators import check_perm, require_perm

from . import services
from .forms import (
    ApoioForm,
    ConsultaForm,
    ConverterSugestaoForm,
    ModeracaoForm,
    ParticipacaoForm,
    PerguntaForm,
    RemoverApoioForm,
    SugestaoForm,
)
from .models import ConsultaPublica, PerguntaConsulta, SugestaoLegislativa
from .serializers import consulta_to_dict, pergunta_to_dict, sugestao_to_dict


def _consulta(request, pk):
    tenant = tenant_da_requisicao(request)
    return obter_ou_404(ConsultaPublica.objects.filter(tenant=tenant), "Consulta", pk=pk)


def _sugestao(request, pk, qs=None):
    tenant = tenant_da_requisicao(request)
    qs = qs if qs is not None else SugestaoLegislativa.objects.filter(tenant=tenant)
    return obter_ou_404(qs.select_related("parlamentar_responsavel", "proposicao"), "Sugestão", pk=pk)


# =========================
# CONSULTAS (gestão)
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("participacao.view", "participacao.manage")
@api_view
def consulta_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "participacao.manage")
        dados = validate_form(ConsultaForm(data=read_json(request), tenant=tenant))
        consulta = services.criar_consulta(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(consulta_to_dict(consulta, com_perguntas=True), message="Consulta criada", status=201)

    qs = ConsultaPublica.objects.filter(tenant=tenant).select_related("proposicao")
    status = (request.GET.get("status") or "").strip().upper()
    if status:
        qs = qs.filter(status=status)
    items, meta = paginate(request, qs)
    return api_success([consulta_to_dict(c) for c in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("participacao.view", "participacao.manage")
@api_view
def consulta_detail(request, pk: int):
    consulta = _consulta(request, pk)

    if request.method == "GET":
        return api_success(consulta_to_dict(consulta, com_perguntas=True))

    check_perm(request, "participacao.manage")

    if request.method == "DELETE":
        services.excluir_consulta(consulta)
        return api_success(None, message="Consulta removida")

    payload = read_json(request)
    dados = validate_form(bind_form(ConsultaForm, payload, instance=consulta, tenant=consulta.tenant))
    consulta = services.atualizar_consulta(consulta, somente_enviados(dados, payload))
    return api_success(consulta_to_dict(consulta, com_perguntas=True), message="Consulta atualizada")


@require_POST
@require_perm("participacao.manage")
@api_view
def consulta_perguntas(request, pk: int):
    consulta = _consulta(request, pk)
    dados = validate_form(PerguntaForm(data=read_json(request)))
    pergunta = services.adicionar_pergunta(consulta, dados)
    return api_success(pergunta_to_dict(pergunta), message="Pergunta adicionada", status=201)


@require_http_methods(["PUT", "PATCH", "DELETE"])
@require_perm("participacao.manage")
@api_view
def pergunta_detail(request, pk: int, pergunta_id: int):
    consulta = _consulta(request, pk)
    pergunta = obter_ou_404(PerguntaConsulta.objects.filter(consulta=consulta), "Pergunta", pk=pergunta_id)

    if request.method == "DELETE":
        services.remover_pergunta(pergunta)
        return api_success(None, message="Pergunta removida")

    payload = read_json(request)
    dados = validate_form(bind_form(PerguntaForm, payload, instance=pergunta))
    pergunta = services.atualizar_pergunta(pergunta, somente_enviados(dados, payload))
    return api_success(pergunta_to_dict(pergunta), message="Pergunta atualizada")


@require_POST
@require_perm("participacao.manage")
@api_view
def consulta_publicar(request, pk: int):
    consulta = services.publicar_consulta(_consulta(request, pk), usuario=request.user)
    return api_success(consulta_to_dict(consulta), message="Consulta publicada")


@require_POST
@require_perm("participacao.manage")
@api_view
def consulta_encerrar(request, pk: int):
    consulta = services.encerrar_consulta(_consulta(request, pk), usuario=request.user)
    return api_success(consulta_to_dict(consulta), message="Consulta encerrada")


@require_GET
@require_perm("participacao.view")
@api_view
def consulta_resultados(request, pk: int):
    return api_success(services.resultados(_consulta(request, pk)))


# =========================
# SUGESTÕES (gestão)
# =========================
@require_GET
@require_perm("participacao.view")
@api_view
def sugestao_list(request):
    tenant = tenant_da_requisicao(request)
    qs = SugestaoLegislativa.objects.filter(tenant=tenant).select_related("parlamentar_responsavel", "proposicao")
    status = (request.GET.get("status") or "").strip().upper()
    if status:
        qs = qs.filter(status=status)
    categoria = (request.GET.get("categoria") or "").strip().upper()
    if categoria:
        qs = qs.filter(categoria=categoria)
    items, meta = paginate(request, qs)
    return api_success([sugestao_to_dict(s, admin=True) for s in items], meta=meta)


@require_GET
@require_perm("participacao.view")
@api_view
def sugestao_detail(request, pk: int):
    return api_success(sugestao_to_dict(_sugestao(request, pk), admin=True))


@require_POST
@require_perm("participacao.manage")
@api_view
def sugestao_moderar(request, pk: int):
    sugestao = _sugestao(request, pk)
    dados = validate_form(ModeracaoForm(data=read_json(request), tenant=sugestao.tenant))
    sugestao = services.moderar_sugestao(sugestao, usuario=request.user, **dados)
    return api_success(sugestao_to_dict(sugestao, admin=True), message="Sugestão moderada")


@require_POST
@require_perm("participacao.manage")
@api_view
def sugestao_converter(request, pk: int):
    sugestao = _sugestao(request, pk)
    dados = validate_form(ConverterSugestaoForm(data=read_json(request), tenant=sugestao.tenant))
    proposicao = services.converter_em_proposicao(sugestao, tipo=dados["tipo"], autor=dados.get("autor"), usuario=request.user)
    return api_success(
        {"sugestao": sugestao_to_dict(sugestao, admin=True), "proposicaoId": proposicao.pk, "identificacao": proposicao.identificacao},
        message="Sugestão convertida em proposição",
        status=201,
    )


@require_GET
@require_perm("participacao.view")
@api_view
def participacao_estatisticas(request):
    return api_success(services.estatisticas(tenant_da_requisicao(request)))


# =========================
# PÚBLICO
# =========================
@require_GET
@api_view
def publico_consultas(request):
    tenant = tenant_da_requisicao(request)
    return api_success([consulta_to_dict(c) for c in services.consultas_abertas(tenant)])


@require_GET
@api_view
def publico_consulta_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    qs = ConsultaPublica.objects.filter(tenant=tenant).exclude(status=ConsultaPublica.Status.RASCUNHO)
    consulta = obter_ou_404(qs, "Consulta", pk=pk)
    return api_success(consulta_to_dict(consulta, com_perguntas=True))


@csrf_exempt
@require_POST
@api_view
def publico_consulta_participar(request, pk: int):
    tenant = tenant_da_requisicao(request)
    qs = ConsultaPublica.objects.filter(tenant=tenant).exclude(status=ConsultaPublica.Status.RASCUNHO)
    consulta = obter_ou_404(qs, "Consulta", pk=pk)
    dados = validate_form(ParticipacaoForm(data=read_json(request)))
    participacao = services.participar(consulta, **dados)
    return api_success({"id": participacao.pk}, message="Participação registrada", status=201)


@require_GET
@api_view
def publico_consulta_resultados(request, pk: int):
    tenant = tenant_da_requisicao(request)
    qs = ConsultaPublica.objects.filter(tenant=tenant, status=ConsultaPublica.Status.ENCERRADA)
    return api_success(services.resultados(obter_ou_404(qs, "Consulta", pk=pk)))


@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_view
def publico_sugestoes(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        dados = validate_form(SugestaoForm(data=read_json(request)))
        cpf = dados.pop("cpf")
        sugestao = services.criar_sugestao(tenant=tenant, dados=dados, cpf=cpf)
        return api_success({"id": sugestao.pk, "status": sugestao.status}, message="Sugestão enviada para análise", status=201)

    qs = services.sugestoes_publicas(tenant).select_related("parlamentar_responsavel", "proposicao")
    items, meta = paginate(request, qs)
    return api_success([sugestao_to_dict(s) for s in items], meta=meta)


@require_GET
@api_view
def publico_sugestao_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    return api_success(sugestao_to_dict(_sugestao(request, pk, services.sugestoes_publicas(tenant))))


@csrf_exempt
@require_http_methods(["POST", "DELETE"])
@api_view
def publico_sugestao_apoio(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sugestao = _sugestao(request, pk, services.sugestoes_publicas(tenant))
    payload = read_json(request)

    if request.method == "DELETE":
        dados = validate_form(RemoverApoioForm(data=payload))
        sugestao = services.remover_apoio(sugestao, cpf=dados["cpf"])
        return api_success({"totalApoios": sugestao.total_apoios}, message="Apoio removido")

    dados = validate_form(ApoioForm(data=payload))
    services.apoiar_sugestao(sugestao, **dados)
    return api_success({"totalApoios": sugestao.total_apoios}, message="Apoio registrado", status=201)
