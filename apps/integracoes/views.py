from __future__ import annotations

from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
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
from apps.normas.models import NormaJuridica
from apps.normas.serializers import norma_resumo
from apps.parlamentares.models import Parlamentar
from apps.parlamentares.serializers import parlamentar_resumo
from apps.proposicoes.models import Proposicao
from apps.proposicoes.serializers import proposicao_resumo
from apps.sessoes.models import Sessao
from apps.sessoes.serializers import sessao_resumo

from . import services
from .forms import IntegrationTokenForm
from .models import IntegrationToken
from .serializers import token_to_dict


# =========================
# TOKENS (gestão)
# =========================
@require_http_methods(["GET", "POST"])
@require_perm("integracoes.view", "integracoes.manage")
@api_view
def token_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "integracoes.manage")
        dados = validate_form(IntegrationTokenForm(data=read_json(request)))
        token, plain = services.criar_token(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(
            token_to_dict(token, token_plain=plain),
            message="Token criado. Copie e armazene com segurança: ele não será exibido novamente.",
            status=201,
        )

    qs = IntegrationToken.objects.filter(tenant=tenant)
    return api_success([token_to_dict(t) for t in qs])


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("integracoes.view", "integracoes.manage")
@api_view
def token_detail(request, pk: int):
    tenant = tenant_da_requisicao(request)
    token = obter_ou_404(IntegrationToken.objects.filter(tenant=tenant), "Token", pk=pk)

    if request.method == "GET":
        return api_success(token_to_dict(token))

    check_perm(request, "integracoes.manage")

    if request.method == "DELETE":
        services.excluir_token(token, usuario=request.user)
        return api_success(None, message="Token removido")

    payload = read_json(request)
    dados = validate_form(bind_form(IntegrationTokenForm, payload, instance=token))
    token = services.atualizar_token(token, somente_enviados(dados, payload), usuario=request.user)
    return api_success(token_to_dict(token), message="Token atualizado")


@require_POST
@require_perm("integracoes.manage")
@api_view
def token_rotacionar(request, pk: int):
    tenant = tenant_da_requisicao(request)
    token = obter_ou_404(IntegrationToken.objects.filter(tenant=tenant), "Token", pk=pk)
    plain = services.rotacionar_token(token, usuario=request.user)
    return api_success(token_to_dict(token, token_plain=plain), message="Token regenerado")


# =========================
# API DE DADOS (Bearer)
# =========================
def _dados_sessoes(request, tenant):
    qs = Sessao.objects.filter(tenant=tenant).exclude(status=Sessao.Status.CANCELADA).select_related("legislatura", "periodo")
    ano = parse_int(request.GET.get("ano"))
    if ano:
        qs = qs.filter(data__year=ano)
    return qs.order_by("-data", "-numero"), sessao_resumo


def _dados_proposicoes(request, tenant):
    qs = Proposicao.objects.filter(tenant=tenant).select_related("autor")
    ano = parse_int(request.GET.get("ano"))
    if ano:
        qs = qs.filter(ano=ano)
    status = (request.GET.get("status") or "").strip().upper()
    if status:
        qs = qs.filter(status=status)
    return qs, proposicao_resumo


def _dados_parlamentares(request, tenant):
    return Parlamentar.objects.filter(tenant=tenant, ativo=True).order_by("nome"), parlamentar_resumo


def _dados_normas(request, tenant):
    qs = NormaJuridica.objects.filter(tenant=tenant, data_publicacao__isnull=False)
    ano = parse_int(request.GET.get("ano"))
    if ano:
        qs = qs.filter(ano=ano)
    return qs, norma_resumo


RECURSOS = {
    "sessoes": (IntegrationToken.Permissao.SESSOES, _dados_sessoes),
    "proposicoes": (IntegrationToken.Permissao.PROPOSICOES, _dados_proposicoes),
    "parlamentares": (IntegrationToken.Permissao.PARLAMENTARES, _dados_parlamentares),
    "normas": (IntegrationToken.Permissao.NORMAS, _dados_normas),
}


@require_GET
@api_view
def dados_recurso(request, recurso: str):
    if recurso not in RECURSOS:
        raise NaoEncontrado("Recurso")
    permissao, montar = RECURSOS[recurso]
    token = services.autenticar_token(
        services.extrair_bearer(request),
        permissao=permissao,
        ip=request.META.get("REMOTE_ADDR", ""),
        agente=request.META.get("HTTP_USER_AGENT", ""),
    )
    qs, serializer = montar(request, token.tenant)
    items, meta = paginate(request, qs)
    return api_success([serializer(obj) for obj in items], meta=meta)
