from __future__ import annotations

import logging

from django.db import connection, DatabaseError
from django.db.models import Count, Q
from django.utils import timezone
from django.views.decorators.http import require_GET

from apps.comissoes.models import Comissao
from apps.normas.models import NormaJuridica
from apps.noticias.models import Noticia
from apps.parlamentares.models import Parlamentar
from apps.participacao.models import ConsultaPublica, SugestaoLegislativa
from apps.proposicoes.models import Proposicao
from apps.sessoes.models import Sessao, Voto
from apps.sessoes.serializers import sessao_resumo

from .api import api_error, api_success, api_view, paginate, parse_int, tenant_da_requisicao
from .decorators import require_login, require_perm
from .exports import export_csv
from .models import AuditoriaEvento
from .rbac import get_profile

logger = logging.getLogger(__name__)

PROPOSICOES_PENDENTES = (
    Proposicao.Status.APRESENTADA,
    Proposicao.Status.EM_TRAMITACAO,
    Proposicao.Status.AGUARDANDO_PAUTA,
    Proposicao.Status.EM_PAUTA,
)


@require_GET
def health(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        logger.exception("Health check: banco indisponível")
        return api_error(request, "Banco de dados indisponível", status=503)
    return api_success({"status": "ok", "timestamp": timezone.now()})


def _contagens(qs, campo: str) -> dict:
    return {r[campo]: r["total"] for r in qs.values(campo).annotate(total=Count("id")).order_by()}


@require_GET
@require_login
@api_view
def dashboard(request):
    tenant = tenant_da_requisicao(request)
    hoje = timezone.localdate()

    sessoes = Sessao.objects.filter(tenant=tenant)
    proposicoes = Proposicao.objects.filter(tenant=tenant)

    proxima = (
        sessoes.filter(status__in=[Sessao.Status.AGENDADA, Sessao.Status.CONVOCADA], data__gte=hoje)
        .order_by("data", "horario")
        .first()
    )
    em_andamento = sessoes.filter(status=Sessao.Status.EM_ANDAMENTO).first()

    data = {
        "parlamentares": {
            "total": Parlamentar.objects.filter(tenant=tenant).count(),
            "ativos": Parlamentar.objects.filter(tenant=tenant, ativo=True).count(),
        },
        "sessoes": {
            "total": sessoes.count(),
            "ano": sessoes.filter(data__year=hoje.year).count(),
            "porStatus": _contagens(sessoes, "status"),
            "proxima": sessao_resumo(proxima) if proxima else None,
            "emAndamento": sessao_resumo(em_andamento) if em_andamento else None,
        },
        "proposicoes": {
            "total": proposicoes.count(),
            "ano": proposicoes.filter(ano=hoje.year).count(),
            "pendentes": proposicoes.filter(status__in=PROPOSICOES_PENDENTES).count(),
            "porStatus": _contagens(proposicoes, "status"),
            "porTipo": _contagens(proposicoes.filter(ano=hoje.year), "tipo"),
        },
        "comissoes": {
            "ativas": Comissao.objects.filter(tenant=tenant, ativa=True).count(),
        },
        "normas": {
            "total": NormaJuridica.objects.filter(tenant=tenant).count(),
            "ano": NormaJuridica.objects.filter(tenant=tenant, ano=hoje.year).count(),
        },
        "participacao": {
            "consultasAbertas": ConsultaPublica.objects.filter(
                tenant=tenant, status=ConsultaPublica.Status.ABERTA
            ).count(),
            "sugestoesPendentes": SugestaoLegislativa.objects.filter(
                tenant=tenant, status=SugestaoLegislativa.Status.PENDENTE
            ).count(),
        },
        "noticias": {
            "publicadas": Noticia.objects.filter(tenant=tenant, publicada=True).count(),
        },
        "votacoesHoje": Voto.objects.filter(sessao__tenant=tenant, registrado_em__date=hoje).count(),
    }

    # Parlamentar vinculado ao perfil vê a própria produção
    profile = get_profile(request.user)
    if profile and profile.parlamentar_id:
        minhas = proposicoes.filter(autor_id=profile.parlamentar_id)
        data["meuMandato"] = {
            "proposicoes": minhas.count(),
            "aprovadas": minhas.filter(status=Proposicao.Status.APROVADA).count(),
            "emTramitacao": minhas.filter(status__in=PROPOSICOES_PENDENTES).count(),
            "presencas": profile.parlamentar.presencas_sessao.filter(
                presente=True, sessao__data__year=hoje.year
            ).count(),
        }

    return api_success(data)


# =========================
# Auditoria
# =========================
def _auditoria_to_dict(e) -> dict:
    return {
        "id": e.pk,
        "modulo": e.modulo,
        "evento": e.evento,
        "entidade": e.entidade,
        "entidadeId": e.entidade_id,
        "antes": e.antes,
        "depois": e.depois,
        "observacao": e.observacao,
        "usuario": e.usuario.username if e.usuario_id else None,
        "criadoEm": e.criado_em,
    }


def _filtrar_auditoria(request, qs):
    for param, campo in (("modulo", "modulo"), ("evento", "evento"), ("entidade", "entidade")):
        valor = (request.GET.get(param) or "").strip()
        if valor:
            qs = qs.filter(**{f"{campo}__iexact": valor})
    entidade_id = (request.GET.get("entidadeId") or "").strip()
    if entidade_id:
        qs = qs.filter(entidade_id=entidade_id)
    usuario = parse_int(request.GET.get("usuario"))
    if usuario:
        qs = qs.filter(usuario_id=usuario)
    inicio = (request.GET.get("dataInicio") or "").strip()
    if inicio:
        qs = qs.filter(criado_em__date__gte=inicio)
    fim = (request.GET.get("dataFim") or "").strip()
    if fim:
        qs = qs.filter(criado_em__date__lte=fim)
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(observacao__icontains=q) | Q(evento__icontains=q))
    return qs


@require_GET
@require_perm("configuracoes.view")
@api_view
def auditoria_list(request):
    tenant = tenant_da_requisicao(request)
    qs = _filtrar_auditoria(request, AuditoriaEvento.objects.filter(tenant=tenant).select_related("usuario"))

    if (request.GET.get("formato") or "").lower() == "csv":
        headers = ["Data", "Módulo", "Evento", "Entidade", "ID", "Usuário", "Observação"]
        rows = [
            [
                timezone.localtime(e.criado_em).strftime("%d/%m/%Y %H:%M"),
                e.modulo,
                e.evento,
                e.entidade,
                e.entidade_id,
                e.usuario.username if e.usuario_id else "",
                e.observacao,
            ]
            for e in qs[:5000]
        ]
        return export_csv(f"auditoria_{tenant.slug}_{timezone.localdate():%Y%m%d}.csv", headers, rows)

    items, meta = paginate(request, qs, default_limit=50)
    return api_success([_auditoria_to_dict(e) for e in items], meta=meta)
