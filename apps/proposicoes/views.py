from __future__ import annotations

from django.db.models import Q
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    AcessoNegado,
    NaoEncontrado,
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
from apps.core.rbac import can, get_profile

from . import services, services_emendas, services_sancao
from .forms import (
    AglutinarEmendasForm,
    ApreciacaoVetoForm,
    ArquivarForm,
    EmendaForm,
    MotivoEmendaForm,
    ParecerEmendaForm,
    ProposicaoForm,
    SancaoForm,
    TramitacaoForm,
    VetoForm,
    VotoEmendaForm,
)
from .models import Emenda, Proposicao, VotoEmenda
from .serializers import (
    emenda_to_dict,
    processo_sancao_to_dict,
    proposicao_resumo,
    proposicao_to_dict,
    tramitacao_to_dict,
    voto_emenda_to_dict,
)


def _filtrar(request, qs):
    status = (request.GET.get("status") or "").strip().upper()
    if status:
        qs = qs.filter(status=status)
    tipo = (request.GET.get("tipo") or "").strip().upper()
    if tipo:
        qs = qs.filter(tipo=tipo)
    autor = parse_int(request.GET.get("autor"))
    if autor:
        qs = qs.filter(autor_id=autor)
    ano = parse_int(request.GET.get("ano"))
    if ano:
        qs = qs.filter(ano=ano)
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(titulo__icontains=q) | Q(ementa__icontains=q) | Q(numero__icontains=q))
    return qs


@require_http_methods(["GET", "POST"])
@require_perm("proposicoes.view", "proposicoes.manage")
@api_view
def proposicao_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "proposicoes.manage")
        dados = validate_form(ProposicaoForm(data=read_json(request), tenant=tenant))
        proposicao = services.criar_proposicao(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(proposicao_to_dict(proposicao), message="Proposição cadastrada", status=201)

    qs = _filtrar(request, Proposicao.objects.filter(tenant=tenant).select_related("autor"))
    items, meta = paginate(request, qs)
    return api_success([proposicao_resumo(p) for p in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("proposicoes.view", "proposicoes.manage")
@api_view
def proposicao_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    proposicao = obter_ou_404(Proposicao.objects.filter(tenant=tenant).select_related("autor"), "Proposição", pk=pk)

    if request.method == "GET":
        return api_success(proposicao_to_dict(proposicao, com_tramitacoes=True))

    check_perm(request, "proposicoes.manage")

    if request.method == "DELETE":
        services.excluir_proposicao(proposicao, usuario=request.user)
        return api_success(None, message="Proposição excluída")

    payload = read_json(request)
    dados = validate_form(bind_form(ProposicaoForm, payload, instance=proposicao, tenant=tenant))
    proposicao = services.atualizar_proposicao(proposicao, somente_enviados(dados, payload), usuario=request.user)
    return api_success(proposicao_to_dict(proposicao), message="Proposição atualizada")


@require_POST
@require_perm("proposicoes.manage")
@api_view
def proposicao_tramitar(request, pk: int):
    tenant = tenant_da_requisicao(request)
    proposicao = obter_ou_404(Proposicao.objects.filter(tenant=tenant), "Proposição", pk=pk)
    dados = validate_form(TramitacaoForm(data=read_json(request)))
    tramitacao = services.tramitar(proposicao, usuario=request.user, **dados)
    return api_success(tramitacao_to_dict(tramitacao), message="Tramitação registrada", status=201)


@require_POST
@require_perm("proposicoes.manage")
@api_view
def proposicao_arquivar(request, pk: int):
    tenant = tenant_da_requisicao(request)
    proposicao = obter_ou_404(Proposicao.objects.filter(tenant=tenant), "Proposição", pk=pk)
    dados = validate_form(ArquivarForm(data=read_json(request)))
    proposicao = services.arquivar(proposicao, motivo=dados["motivo"], usuario=request.user)
    return api_success(proposicao_to_dict(proposicao), message="Proposição arquivada")


@require_GET
@require_perm("proposicoes.view")
@api_view
def proposicao_estatisticas(request):
    tenant = tenant_da_requisicao(request)
    return api_success(services.estatisticas(tenant, parse_int(request.GET.get("ano"))))


# =========================
# EMENDAS
# =========================
def _proposicao(request, pk: int) -> Proposicao:
    return obter_ou_404(Proposicao.objects.filter(tenant=tenant_da_requisicao(request)), "Proposição", pk=pk)


def _emenda(request, emenda_id: int) -> Emenda:
    qs = Emenda.objects.filter(proposicao__tenant=tenant_da_requisicao(request)).select_related("proposicao", "autor")
    return obter_ou_404(qs, "Emenda", pk=emenda_id)


@require_http_methods(["GET", "POST"])
@require_perm("proposicoes.view", "proposicoes.manage")
@api_view
def emenda_list(request, pk: int):
    proposicao = _proposicao(request, pk)

    if request.method == "POST":
        check_perm(request, "proposicoes.manage")
        form = EmendaForm(data=read_json(request), tenant=proposicao.tenant)
        emenda = services_emendas.criar_emenda(proposicao, validate_form(form), usuario=request.user)
        return api_success(emenda_to_dict(emenda), message="Emenda apresentada", status=201)

    emendas = proposicao.emendas.select_related("autor").prefetch_related("coautores")
    status = (request.GET.get("status") or "").strip().upper()
    if status:
        emendas = emendas.filter(status=status)
    return api_success([emenda_to_dict(e) for e in emendas])


@require_http_methods(["GET", "PATCH"])
@require_perm("proposicoes.view", "proposicoes.manage")
@api_view
def emenda_detail(request, emenda_id: int):
    emenda = _emenda(request, emenda_id)
    if request.method == "PATCH":
        check_perm(request, "proposicoes.manage")
        dados = validate_form(ParecerEmendaForm(data=read_json(request)))
        emenda = services_emendas.registrar_parecer_emenda(emenda, dados, usuario=request.user)
        return api_success(emenda_to_dict(emenda), message="Parecer registrado")
    return api_success(emenda_to_dict(emenda))


@require_http_methods(["GET", "POST"])
@require_perm("proposicoes.view", "proposicoes.manage", "sessoes.votar", "sessoes.operar")
@api_view
def emenda_votos(request, emenda_id: int):
    emenda = _emenda(request, emenda_id)

    if request.method == "POST":
        dados = validate_form(VotoEmendaForm(data=read_json(request), tenant=emenda.proposicao.tenant))
        parlamentar = dados["parlamentar"]
        if not (can(request.user, "proposicoes.manage") or can(request.user, "sessoes.operar")):
            check_perm(request, "sessoes.votar")
            profile = get_profile(request.user)
            if profile is None or profile.parlamentar_id != parlamentar.pk:
                raise AcessoNegado("Parlamentar só pode registrar o próprio voto")
        voto = services_emendas.votar_emenda(emenda, parlamentar=parlamentar, voto=dados["voto"], usuario=request.user)
        return api_success(voto_emenda_to_dict(voto), message="Voto registrado", status=201)

    votos = VotoEmenda.objects.filter(emenda=emenda).select_related("parlamentar").order_by("parlamentar__nome")
    return api_success([voto_emenda_to_dict(v) for v in votos])


@require_GET
@require_perm("proposicoes.view")
@api_view
def emenda_apurar(request, emenda_id: int):
    return api_success(services_emendas.apurar_votacao_emenda(_emenda(request, emenda_id)))


@require_POST
@require_perm("proposicoes.manage")
@api_view
def emenda_finalizar(request, emenda_id: int):
    emenda = services_emendas.finalizar_votacao_emenda(_emenda(request, emenda_id), usuario=request.user)
    return api_success(emenda_to_dict(emenda), message="Votação da emenda encerrada")


@require_POST
@require_perm("proposicoes.manage")
@api_view
def emenda_retirar(request, emenda_id: int):
    dados = validate_form(MotivoEmendaForm(data=read_json(request)))
    emenda = services_emendas.retirar_emenda(_emenda(request, emenda_id), motivo=dados["motivo"], usuario=request.user)
    return api_success(emenda_to_dict(emenda), message="Emenda retirada")


@require_POST
@require_perm("proposicoes.manage")
@api_view
def emenda_prejudicar(request, emenda_id: int):
    dados = validate_form(MotivoEmendaForm(data=read_json(request)))
    emenda = services_emendas.prejudicar_emenda(_emenda(request, emenda_id), motivo=dados["motivo"], usuario=request.user)
    return api_success(emenda_to_dict(emenda), message="Emenda declarada prejudicada")


@require_POST
@require_perm("proposicoes.manage")
@api_view
def emendas_aglutinar(request, pk: int):
    proposicao = _proposicao(request, pk)
    form = AglutinarEmendasForm(data=read_json(request), tenant=proposicao.tenant, proposicao=proposicao)
    dados = validate_form(form)
    emendas = list(dados.pop("emendas"))
    nova = services_emendas.aglutinar_emendas(proposicao, emendas, dados, usuario=request.user)
    return api_success(emenda_to_dict(nova), message="Emendas aglutinadas", status=201)


@require_GET
@require_perm("proposicoes.view")
@api_view
def emendas_consolidado(request, pk: int):
    return api_success(services_emendas.texto_consolidado(_proposicao(request, pk)))


@require_GET
@require_perm("proposicoes.view")
@api_view
def emendas_estatisticas(request, pk: int):
    return api_success(services_emendas.estatisticas_emendas(_proposicao(request, pk)))


@require_GET
@require_perm("proposicoes.view")
@api_view
def emendas_prazo(request, pk: int):
    return api_success(services_emendas.verificar_prazo_emendas(_proposicao(request, pk)))


# =========================
# SANÇÃO E VETO
# =========================
def _processo(request, pk: int):
    proposicao = _proposicao(request, pk)
    processo = services_sancao.obter_processo(proposicao)
    if processo is None:
        raise NaoEncontrado("Processo de sanção")
    return processo


@require_GET
@require_perm("proposicoes.view")
@api_view
def sancao_detail(request, pk: int):
    processo = _processo(request, pk)
    return api_success(processo_sancao_to_dict(processo, services_sancao.calcular_prazo_apreciacao(processo)))


@require_POST
@require_perm("proposicoes.manage")
@api_view
def sancao_enviar(request, pk: int):
    processo, aviso = services_sancao.enviar_ao_executivo(_proposicao(request, pk), usuario=request.user)
    data = processo_sancao_to_dict(processo)
    data["aviso"] = aviso or None
    return api_success(data, message="Proposição enviada ao Executivo", status=201)


@require_POST
@require_perm("proposicoes.manage")
@api_view
def sancao_sancionar(request, pk: int):
    dados = validate_form(SancaoForm(data=read_json(request)))
    processo = services_sancao.sancionar(
        _processo(request, pk),
        numero_lei=dados["numero_lei"],
        data_sancao=dados.get("data"),
        usuario=request.user,
    )
    return api_success(processo_sancao_to_dict(processo), message="Sanção registrada")


@require_POST
@require_perm("proposicoes.manage")
@api_view
def sancao_tacita(request, pk: int):
    processo = services_sancao.registrar_sancao_tacita(_processo(request, pk), usuario=request.user)
    return api_success(processo_sancao_to_dict(processo), message="Sanção tácita registrada")


@require_POST
@require_perm("proposicoes.manage")
@api_view
def sancao_vetar(request, pk: int):
    dados = validate_form(VetoForm(data=read_json(request)))
    processo, aviso = services_sancao.vetar(
        _processo(request, pk),
        tipo=dados["tipo"],
        motivo=dados["motivo"],
        razoes=dados["razoes"],
        dispositivos=dados.get("dispositivos"),
        data_veto=dados.get("data"),
        usuario=request.user,
    )
    data = processo_sancao_to_dict(processo, services_sancao.calcular_prazo_apreciacao(processo))
    data["aviso"] = aviso or None
    return api_success(data, message="Veto registrado")


@require_POST
@require_perm("proposicoes.manage")
@api_view
def sancao_apreciar_veto(request, pk: int):
    dados = validate_form(ApreciacaoVetoForm(data=read_json(request)))
    processo, resultado = services_sancao.apreciar_veto(
        _processo(request, pk),
        sim=dados["sim"],
        nao=dados["nao"],
        abstencao=dados.get("abstencao") or 0,
        presentes=dados.get("presentes"),
        usuario=request.user,
    )
    data = processo_sancao_to_dict(processo)
    data["resultado"] = resultado
    return api_success(data, message=resultado["mensagem"])


@require_POST
@require_perm("proposicoes.manage")
@api_view
def sancao_promulgar(request, pk: int):
    dados = validate_form(SancaoForm(data=read_json(request)))
    processo = services_sancao.promulgar(
        _proposicao(request, pk),
        numero_lei=dados["numero_lei"],
        data_promulgacao=dados.get("data"),
        usuario=request.user,
    )
    return api_success(processo_sancao_to_dict(processo), message="Proposição promulgada")


@require_GET
@require_perm("proposicoes.view")
@api_view
def vetos_pendentes(request):
    tenant = tenant_da_requisicao(request)
    data = []
    for processo, prazo in services_sancao.vetos_pendentes(tenant):
        item = processo_sancao_to_dict(processo, prazo)
        item["proposicao"] = proposicao_resumo(processo.proposicao)
        data.append(item)
    return api_success(data)


# =========================
# PÚBLICO
# =========================
@require_GET
@api_view
def publico_proposicoes(request):
    tenant = tenant_da_requisicao(request)
    qs = _filtrar(request, Proposicao.objects.filter(tenant=tenant).select_related("autor"))
    items, meta = paginate(request, qs)
    return api_success([proposicao_resumo(p) for p in items], meta=meta)


@require_GET
@api_view
def publico_proposicao_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    proposicao = obter_ou_404(Proposicao.objects.filter(tenant=tenant).select_related("autor"), "Proposição", pk=pk)
    data = proposicao_to_dict(proposicao, com_tramitacoes=True)
    for t in data["tramitacoes"]:
        t.pop("usuarioId", None)
    return api_success(data)
