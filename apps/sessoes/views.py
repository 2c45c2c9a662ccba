from __future__ import annotations

from django.db.models import Q
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    AcessoNegado,
    Conflito,
    DadosInvalidos,
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
from apps.proposicoes.models import Proposicao

from . import services, services_nomenclatura, services_quorum, services_turnos, services_votacao
from .forms import (
    CancelarSessaoForm,
    ConfiguracaoQuorumForm,
    FinalizarItemForm,
    NomenclaturaForm,
    PautaItemForm,
    PresencaForm,
    ResetarNumeracaoForm,
    SessaoForm,
    SimularQuorumForm,
    VotoForm,
)
from .models import ConfiguracaoQuorum, PautaItem, Sessao, Voto
from .serializers import (
    nomenclatura_to_dict,
    pauta_item_to_dict,
    presenca_to_dict,
    quorum_to_dict,
    sessao_resumo,
    sessao_to_dict,
    voto_to_dict,
)


def _sessoes(tenant):
    return Sessao.objects.filter(tenant=tenant).select_related("legislatura", "periodo")


def _filtrar(request, qs):
    status = (request.GET.get("status") or "").strip().upper()
    if status:
        qs = qs.filter(status=status)
    tipo = (request.GET.get("tipo") or "").strip().upper()
    if tipo:
        qs = qs.filter(tipo=tipo)
    ano = parse_int(request.GET.get("ano"))
    if ano:
        qs = qs.filter(data__year=ano)
    legislatura = parse_int(request.GET.get("legislatura"))
    if legislatura:
        qs = qs.filter(legislatura_id=legislatura)
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(titulo__icontains=q) | Q(descricao__icontains=q) | Q(local__icontains=q))
    return qs


def _pode_operar(request) -> None:
    if not (can(request.user, "sessoes.operar") or can(request.user, "sessoes.manage")):
        raise AcessoNegado()


# =========================
# SESSÕES
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("sessoes.view", "sessoes.manage")
@api_view
def sessao_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "sessoes.manage")
        dados = validate_form(SessaoForm(data=read_json(request), tenant=tenant))
        sessao = services.criar_sessao(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(sessao_to_dict(sessao), message="Sessão cadastrada", status=201)

    items, meta = paginate(request, _filtrar(request, _sessoes(tenant)))
    return api_success([sessao_resumo(s) for s in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("sessoes.view", "sessoes.manage")
@api_view
def sessao_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)

    if request.method == "GET":
        return api_success(sessao_to_dict(sessao, completo=True))

    check_perm(request, "sessoes.manage")

    if request.method == "DELETE":
        services.excluir_sessao(sessao, usuario=request.user)
        return api_success(None, message="Sessão excluída")

    payload = read_json(request)
    dados = validate_form(bind_form(SessaoForm, payload, instance=sessao, tenant=tenant))
    sessao = services.atualizar_sessao(sessao, somente_enviados(dados, payload), usuario=request.user)
    return api_success(sessao_to_dict(sessao), message="Sessão atualizada")


@require_POST
@require_perm("sessoes.manage", "sessoes.operar")
@api_view
def sessao_acao(request, pk: int, acao: str):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)

    if acao == "convocar":
        check_perm(request, "sessoes.manage")
        sessao = services.convocar_sessao(sessao, usuario=request.user)
        mensagem = "Sessão convocada"
    elif acao == "cancelar":
        check_perm(request, "sessoes.manage")
        dados = validate_form(CancelarSessaoForm(data=read_json(request)))
        sessao = services.cancelar_sessao(sessao, motivo=dados.get("motivo") or "", usuario=request.user)
        mensagem = "Sessão cancelada"
    elif acao == "iniciar":
        sessao = services.iniciar_sessao(sessao, usuario=request.user)
        mensagem = "Sessão iniciada"
    elif acao == "suspender":
        sessao = services.suspender_sessao(sessao, usuario=request.user)
        mensagem = "Sessão suspensa"
    elif acao == "retomar":
        sessao = services.retomar_sessao(sessao, usuario=request.user)
        mensagem = "Sessão retomada"
    elif acao == "finalizar":
        sessao = services.finalizar_sessao(sessao, usuario=request.user)
        mensagem = "Sessão finalizada"
    else:
        raise DadosInvalidos("Ação inválida")

    return api_success(sessao_to_dict(sessao), message=mensagem)


@require_GET
@require_perm("sessoes.view")
@api_view
def sessao_quorum_instalacao(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)
    return api_success(
        services_quorum.verificar_quorum_instalacao(
            tenant,
            presentes=services.total_presentes(sessao),
            legislatura=sessao.legislatura,
        )
    )


@require_GET
@require_perm("sessoes.view")
@api_view
def sessao_painel(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant).select_related("item_atual__proposicao"), "Sessão", pk=pk)
    return api_success(services_votacao.montar_painel(sessao))


# =========================
# PRESENÇAS
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("sessoes.view", "sessoes.manage", "sessoes.operar")
@api_view
def presenca_list(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)

    if request.method == "POST":
        _pode_operar(request)
        payload = read_json(request)
        lote = payload.get("presencas")
        if lote is None:
            lote = [payload]
        if not isinstance(lote, list):
            raise DadosInvalidos("Informe uma lista de presenças")
        registros = [validate_form(PresencaForm(data=item, tenant=tenant)) for item in lote]
        presencas = services.registrar_presencas(sessao, registros, usuario=request.user)
        return api_success([presenca_to_dict(p) for p in presencas], message="Presenças registradas")

    presencas = sessao.presencas.select_related("parlamentar").order_by("parlamentar__nome")
    return api_success([presenca_to_dict(p) for p in presencas])


# =========================
# PAUTA
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("sessoes.view", "sessoes.manage")
@api_view
def pauta_list(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)

    if request.method == "POST":
        check_perm(request, "sessoes.manage")
        dados = validate_form(PautaItemForm(data=read_json(request), tenant=tenant))
        item = services.adicionar_item(sessao, dados, usuario=request.user)
        return api_success(pauta_item_to_dict(item), message="Item adicionado à pauta", status=201)

    itens = sessao.pauta.select_related("proposicao__autor")
    secao = (request.GET.get("secao") or "").strip().upper()
    if secao:
        itens = itens.filter(secao=secao)
    return api_success([pauta_item_to_dict(i) for i in itens])


@require_POST
@require_perm("sessoes.manage")
@api_view
def pauta_reordenar(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)
    ids = read_json(request).get("itens")
    if not isinstance(ids, list) or not all(isinstance(i, int) for i in ids):
        raise DadosInvalidos("Informe a lista de ids dos itens em 'itens'")
    itens = services.reordenar_pauta(sessao, ids, usuario=request.user)
    return api_success([pauta_item_to_dict(i) for i in itens], message="Pauta reordenada")


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("sessoes.view", "sessoes.manage")
@api_view
def pauta_item_detail(request, pk: int, item_id: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)
    item = services.obter_item(sessao, item_id)

    if request.method == "GET":
        data = pauta_item_to_dict(item)
        pode, motivo = services_turnos.pode_iniciar_segundo_turno(item)
        data["segundoTurno"] = {"pode": pode, "motivo": motivo}
        return api_success(data)

    check_perm(request, "sessoes.manage")

    if request.method == "DELETE":
        services.remover_item(sessao, item, usuario=request.user)
        return api_success(None, message="Item removido da pauta")

    if item.status != PautaItem.Status.PENDENTE:
        raise Conflito("Somente itens pendentes podem ser editados")
    payload = read_json(request)
    dados = validate_form(bind_form(PautaItemForm, payload, instance=item, tenant=tenant))
    for campo, valor in somente_enviados(dados, payload).items():
        setattr(item, campo, valor)
    item.save()
    return api_success(pauta_item_to_dict(item), message="Item atualizado")


@require_POST
@require_perm("sessoes.manage", "sessoes.operar")
@api_view
def pauta_item_acao(request, pk: int, item_id: int, acao: str):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)
    item = services.obter_item(sessao, item_id)
    usuario = request.user

    if acao == "encerrar-votacao":
        resultado = services_votacao.encerrar_votacao_item(sessao, item, usuario=usuario)
        item.refresh_from_db()
        resultado["item"] = pauta_item_to_dict(item)
        return api_success(resultado, message=resultado["turno"]["mensagem"])

    if acao == "iniciar":
        item = services.iniciar_item(sessao, item, usuario=usuario)
    elif acao == "pausar":
        item = services.pausar_item(sessao, item, usuario=usuario)
    elif acao == "retomar":
        item = services.retomar_item(sessao, item, usuario=usuario)
    elif acao == "iniciar-votacao":
        item = services.iniciar_votacao(sessao, item, usuario=usuario)
    elif acao == "finalizar":
        dados = validate_form(FinalizarItemForm(data=read_json(request)))
        resultado = dados.get("resultado") or PautaItem.Status.CONCLUIDO
        item = services.finalizar_item(sessao, item, resultado=resultado, usuario=usuario)
    elif acao == "adiar":
        item = services.adiar_item(sessao, item, usuario=usuario)
    elif acao == "retirar":
        item = services.retirar_item(sessao, item, usuario=usuario)
    elif acao == "segundo-turno":
        if sessao.status != Sessao.Status.EM_ANDAMENTO:
            raise Conflito("A sessão deve estar em andamento para iniciar o 2º turno")
        item = services_turnos.iniciar_segundo_turno(item)
        sessao.item_atual = item
        sessao.save(update_fields=["item_atual", "atualizado_em"])
    else:
        raise DadosInvalidos("Ação inválida")

    return api_success(pauta_item_to_dict(item))


# =========================
# VOTAÇÃO
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("sessoes.view", "sessoes.votar", "sessoes.operar")
@api_view
def voto_list(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)

    if request.method == "POST":
        dados = validate_form(VotoForm(data=read_json(request), tenant=tenant))
        parlamentar = dados["parlamentar"]
        if not can(request.user, "sessoes.operar"):
            check_perm(request, "sessoes.votar")
            profile = get_profile(request.user)
            if profile is None or profile.parlamentar_id != parlamentar.pk:
                raise AcessoNegado("Parlamentar só pode registrar o próprio voto")
        voto, impedimento = services_votacao.registrar_voto(
            sessao=sessao,
            proposicao=dados["proposicao"],
            parlamentar=parlamentar,
            voto=dados["voto"],
            turno=dados.get("turno"),
            usuario=request.user,
        )
        data = voto_to_dict(voto)
        data["aviso"] = impedimento["aviso"]
        return api_success(data, message="Voto registrado", status=201)

    votos = Voto.objects.filter(sessao=sessao).select_related("parlamentar")
    proposicao = parse_int(request.GET.get("proposicao"))
    if proposicao:
        votos = votos.filter(proposicao_id=proposicao)
    turno = parse_int(request.GET.get("turno"))
    if turno:
        votos = votos.filter(turno=turno)
    return api_success([voto_to_dict(v) for v in votos.order_by("proposicao_id", "turno", "parlamentar__nome")])


@require_GET
@require_perm("sessoes.view")
@api_view
def sessao_apuracao(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)
    proposicao_id = parse_int(request.GET.get("proposicao"))
    if not proposicao_id:
        raise DadosInvalidos("Informe a proposição", details={"proposicao": ["Campo obrigatório."]})
    proposicao = obter_ou_404(Proposicao.objects.filter(tenant=tenant), "Proposição", pk=proposicao_id)
    turno = parse_int(request.GET.get("turno"), 1)
    return api_success(services_votacao.apurar_resultado(proposicao, turno, sessao=sessao))


# =========================
# QUÓRUM CONFIGURÁVEL
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("sessoes.view", "sessoes.manage")
@api_view
def quorum_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "sessoes.manage")
        dados = validate_form(ConfiguracaoQuorumForm(data=read_json(request), tenant=tenant))
        if ConfiguracaoQuorum.objects.filter(tenant=tenant, aplicacao=dados["aplicacao"]).exists():
            raise Conflito("Já existe configuração de quórum para esta aplicação")
        config = ConfiguracaoQuorum.objects.create(tenant=tenant, **dados)
        return api_success(quorum_to_dict(config), message="Configuração criada", status=201)

    return api_success([quorum_to_dict(c) for c in ConfiguracaoQuorum.objects.filter(tenant=tenant)])


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("sessoes.view", "sessoes.manage")
@api_view
def quorum_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    config = obter_ou_404(ConfiguracaoQuorum.objects.filter(tenant=tenant), "Configuração de quórum", pk=pk)

    if request.method == "GET":
        return api_success(quorum_to_dict(config))

    check_perm(request, "sessoes.manage")

    if request.method == "DELETE":
        config.delete()
        return api_success(None, message="Configuração removida")

    payload = read_json(request)
    dados = validate_form(bind_form(ConfiguracaoQuorumForm, payload, instance=config, tenant=tenant))
    dados = somente_enviados(dados, payload)
    aplicacao = dados.get("aplicacao", config.aplicacao)
    if (
        aplicacao != config.aplicacao
        and ConfiguracaoQuorum.objects.filter(tenant=tenant, aplicacao=aplicacao).exists()
    ):
        raise Conflito("Já existe configuração de quórum para esta aplicação")
    for campo, valor in dados.items():
        setattr(config, campo, valor)
    config.save()
    return api_success(quorum_to_dict(config), message="Configuração atualizada")


@require_POST
@require_perm("sessoes.manage")
@api_view
def quorum_padrao(request):
    tenant = tenant_da_requisicao(request)
    criadas = services_quorum.criar_configuracoes_padrao(tenant)
    return api_success(
        [quorum_to_dict(c) for c in criadas],
        message=f"{len(criadas)} configuração(ões) padrão criada(s)",
        status=201 if criadas else 200,
    )


@require_POST
@require_perm("sessoes.view")
@api_view
def quorum_simular(request):
    tenant = tenant_da_requisicao(request)
    dados = validate_form(SimularQuorumForm(data=read_json(request)))
    config = services_quorum.obter_configuracao(tenant, dados["aplicacao"])
    legislatura_id = parse_int(request.GET.get("legislatura"))
    legislatura = tenant.legislaturas.filter(pk=legislatura_id).first() if legislatura_id else None
    return api_success(
        services_quorum.calcular_resultado_votacao(
            config,
            sim=dados["sim"],
            nao=dados["nao"],
            abstencao=dados.get("abstencao") or 0,
            presentes=dados["presentes"],
            legislatura=legislatura,
        )
    )


# =========================
# NOMENCLATURA
# =========================
@require_http_methods(["GET", "PUT", "PATCH"])
@require_perm("sessoes.view", "sessoes.manage")
@api_view
def nomenclatura_config(request):
    tenant = tenant_da_requisicao(request)
    config = services_nomenclatura.obter_configuracao(tenant)

    if request.method == "GET":
        return api_success(nomenclatura_to_dict(config))

    check_perm(request, "sessoes.manage")
    payload = read_json(request)
    dados = validate_form(bind_form(NomenclaturaForm, payload, instance=config, tenant=tenant))
    config = services_nomenclatura.atualizar_configuracao(tenant, somente_enviados(dados, payload))
    return api_success(nomenclatura_to_dict(config), message="Configuração atualizada")


@require_GET
@require_perm("sessoes.view")
@api_view
def nomenclatura_preview(request):
    tenant = tenant_da_requisicao(request)
    tipo = (request.GET.get("tipo") or Sessao.Tipo.ORDINARIA).upper()
    if tipo not in Sessao.Tipo.values:
        raise DadosInvalidos("Tipo de sessão inválido")
    legislatura = parse_int(request.GET.get("legislatura"))
    ano = parse_int(request.GET.get("ano"))
    if not legislatura or not ano:
        raise DadosInvalidos("Informe legislatura e ano")
    numero = parse_int(request.GET.get("numero")) or services_nomenclatura.proximo_numero_sessao(
        tenant, tipo, legislatura, ano, consumir=False
    )
    titulo = services_nomenclatura.gerar_titulo_sessao(
        tenant, tipo, legislatura, numero, periodo=parse_int(request.GET.get("periodo")), ano=ano
    )
    return api_success({"numero": numero, "titulo": titulo})


@require_GET
@require_perm("sessoes.view")
@api_view
def nomenclatura_estatisticas(request):
    tenant = tenant_da_requisicao(request)
    return api_success(services_nomenclatura.estatisticas(tenant))


@require_POST
@require_perm("sessoes.manage")
@api_view
def nomenclatura_resetar(request):
    tenant = tenant_da_requisicao(request)
    dados = validate_form(ResetarNumeracaoForm(data=read_json(request)))
    total = services_nomenclatura.resetar_numeracao(
        tenant,
        tipo=dados.get("tipo") or None,
        legislatura=dados.get("legislatura"),
        ano=dados.get("ano"),
    )
    return api_success({"sequencias": total}, message="Numeração reiniciada")


# =========================
# PÚBLICO
# =========================
@require_GET
@api_view
def publico_sessoes(request):
    tenant = tenant_da_requisicao(request)
    qs = _filtrar(request, _sessoes(tenant).exclude(status=Sessao.Status.CANCELADA))
    items, meta = paginate(request, qs)
    return api_success([sessao_resumo(s) for s in items], meta=meta)


@require_GET
@api_view
def publico_sessao_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant), "Sessão", pk=pk)
    data = sessao_to_dict(sessao, completo=True)
    if sessao.status == Sessao.Status.CONCLUIDA:
        data["votos"] = [
            voto_to_dict(v)
            for v in Voto.objects.filter(sessao=sessao).select_related("parlamentar").order_by("proposicao_id", "turno")
        ]
    return api_success(data)


@require_GET
@api_view
def publico_painel(request, pk: int):
    tenant = tenant_da_requisicao(request)
    sessao = obter_ou_404(_sessoes(tenant).select_related("item_atual__proposicao"), "Sessão", pk=pk)
    return api_success(services_votacao.montar_painel(sessao))
