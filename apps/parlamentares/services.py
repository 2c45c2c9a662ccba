from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, Q

from apps.core.api import Conflito, NaoEncontrado
from apps.core.services_auditoria import registrar_auditoria

from .models import Legislatura, Mandato, MembroMesa, MesaDiretora, Parlamentar, PeriodoLegislatura

logger = logging.getLogger(__name__)

MODULO = "PARLAMENTARES"


# =========================
# Legislaturas
# =========================
def legislatura_ativa(tenant):
    return Legislatura.objects.filter(tenant=tenant, ativa=True).first()


@transaction.atomic
def criar_legislatura(*, tenant, dados: dict, usuario=None) -> Legislatura:
    if Legislatura.objects.filter(tenant=tenant, numero=dados["numero"]).exists():
        raise Conflito("Já existe uma legislatura com este número")
    if dados.get("ativa"):
        Legislatura.objects.filter(tenant=tenant, ativa=True).update(ativa=False)

    legislatura = Legislatura.objects.create(tenant=tenant, **dados)
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="LEGISLATURA_CRIADA",
        entidade="Legislatura",
        entidade_id=legislatura.pk,
        usuario=usuario,
        depois={"numero": legislatura.numero, "ativa": legislatura.ativa},
    )
    return legislatura


@transaction.atomic
def atualizar_legislatura(legislatura: Legislatura, dados: dict, *, usuario=None) -> Legislatura:
    numero = dados.get("numero")
    if (
        numero is not None
        and Legislatura.objects.filter(tenant=legislatura.tenant, numero=numero).exclude(pk=legislatura.pk).exists()
    ):
        raise Conflito("Já existe uma legislatura com este número")
    if dados.get("ativa") and not legislatura.ativa:
        Legislatura.objects.filter(tenant=legislatura.tenant, ativa=True).update(ativa=False)

    for campo, valor in dados.items():
        setattr(legislatura, campo, valor)
    legislatura.save()
    registrar_auditoria(
        tenant=legislatura.tenant,
        modulo=MODULO,
        evento="LEGISLATURA_ATUALIZADA",
        entidade="Legislatura",
        entidade_id=legislatura.pk,
        usuario=usuario,
        depois={k: str(v) for k, v in dados.items()},
    )
    return legislatura


@transaction.atomic
def ativar_legislatura(legislatura: Legislatura, *, usuario=None) -> Legislatura:
    """Só uma legislatura ativa por câmara."""
    Legislatura.objects.filter(tenant=legislatura.tenant, ativa=True).exclude(pk=legislatura.pk).update(ativa=False)
    legislatura.ativa = True
    legislatura.save(update_fields=["ativa", "atualizado_em"])
    registrar_auditoria(
        tenant=legislatura.tenant,
        modulo=MODULO,
        evento="LEGISLATURA_ATIVADA",
        entidade="Legislatura",
        entidade_id=legislatura.pk,
        usuario=usuario,
    )
    logger.info("Legislatura %s ativada na câmara %s", legislatura.numero, legislatura.tenant_id)
    return legislatura


def criar_periodo(legislatura: Legislatura, dados: dict) -> PeriodoLegislatura:
    if legislatura.periodos.filter(numero=dados["numero"]).exists():
        raise Conflito("Este período já está cadastrado na legislatura")
    return PeriodoLegislatura.objects.create(legislatura=legislatura, **dados)


def periodo_vigente(legislatura: Legislatura | None, data):
    if legislatura is None or data is None:
        return None
    return (
        legislatura.periodos.filter(data_inicio__lte=data)
        .filter(Q(data_fim__isnull=True) | Q(data_fim__gte=data))
        .order_by("-numero")
        .first()
    )


# =========================
# Parlamentares
# =========================
def listar_parlamentares_ativos(tenant):
    return Parlamentar.objects.filter(tenant=tenant, ativo=True).order_by("nome")


def criar_parlamentar(*, tenant, dados: dict, usuario=None) -> Parlamentar:
    parlamentar = Parlamentar.objects.create(tenant=tenant, **dados)
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="PARLAMENTAR_CRIADO",
        entidade="Parlamentar",
        entidade_id=parlamentar.pk,
        usuario=usuario,
        depois={"nome": parlamentar.nome, "partido": parlamentar.partido},
    )
    return parlamentar


def atualizar_parlamentar(parlamentar: Parlamentar, dados: dict, *, usuario=None) -> Parlamentar:
    antes = {campo: getattr(parlamentar, campo) for campo in dados}
    for campo, valor in dados.items():
        setattr(parlamentar, campo, valor)
    parlamentar.save()
    registrar_auditoria(
        tenant=parlamentar.tenant,
        modulo=MODULO,
        evento="PARLAMENTAR_ATUALIZADO",
        entidade="Parlamentar",
        entidade_id=parlamentar.pk,
        usuario=usuario,
        antes=antes,
        depois=dados,
    )
    return parlamentar


def desativar_parlamentar(parlamentar: Parlamentar, *, usuario=None) -> Parlamentar:
    parlamentar.ativo = False
    parlamentar.save(update_fields=["ativo", "atualizado_em"])
    parlamentar.mandatos.filter(ativo=True).update(ativo=False)
    registrar_auditoria(
        tenant=parlamentar.tenant,
        modulo=MODULO,
        evento="PARLAMENTAR_DESATIVADO",
        entidade="Parlamentar",
        entidade_id=parlamentar.pk,
        usuario=usuario,
    )
    return parlamentar


def atualizar_foto(parlamentar: Parlamentar, arquivo) -> Parlamentar:
    parlamentar.foto = arquivo
    parlamentar.save()
    return parlamentar


def criar_mandato(dados: dict) -> Mandato:
    parlamentar, legislatura = dados["parlamentar"], dados["legislatura"]
    if Mandato.objects.filter(parlamentar=parlamentar, legislatura=legislatura).exists():
        raise Conflito("O parlamentar já possui mandato nesta legislatura")
    return Mandato.objects.create(**dados)


def estatisticas_parlamentar(parlamentar: Parlamentar) -> dict:
    from apps.proposicoes.models import Proposicao
    from apps.sessoes.models import PresencaSessao, Sessao, Voto

    proposicoes = Proposicao.objects.filter(tenant=parlamentar.tenant, autor=parlamentar)
    por_status = {
        row["status"]: row["total"]
        for row in proposicoes.values("status").annotate(total=Count("id")).order_by()
    }

    presencas = PresencaSessao.objects.filter(
        parlamentar=parlamentar,
        sessao__status=Sessao.Status.CONCLUIDA,
    )
    total_sessoes = presencas.count()
    presentes = presencas.filter(presente=True).count()
    percentual = round(presentes * 100 / total_sessoes, 1) if total_sessoes else 0.0

    return {
        "proposicoes": {
            "total": sum(por_status.values()),
            "aprovadas": por_status.get("APROVADA", 0) + por_status.get("TRANSFORMADA_EM_NORMA", 0),
            "porStatus": por_status,
        },
        "presenca": {
            "sessoes": total_sessoes,
            "presentes": presentes,
            "ausentes": total_sessoes - presentes,
            "percentual": percentual,
        },
        "votos": Voto.objects.filter(parlamentar=parlamentar).count(),
    }


# =========================
# Mesa diretora
# =========================
def mesa_atual(tenant):
    return (
        MesaDiretora.objects.filter(legislatura__tenant=tenant, ativa=True)
        .select_related("legislatura", "periodo")
        .prefetch_related("membros__parlamentar")
        .order_by("-legislatura__numero", "-periodo__numero")
        .first()
    )


@transaction.atomic
def criar_mesa(dados: dict, *, membros: list[dict] | None = None, usuario=None) -> MesaDiretora:
    legislatura = dados["legislatura"]
    if dados.get("ativa", True):
        MesaDiretora.objects.filter(legislatura=legislatura, ativa=True).update(ativa=False)
    mesa = MesaDiretora.objects.create(**dados)
    for membro in membros or []:
        adicionar_membro_mesa(mesa, membro)
    registrar_auditoria(
        tenant=legislatura.tenant,
        modulo=MODULO,
        evento="MESA_CRIADA",
        entidade="MesaDiretora",
        entidade_id=mesa.pk,
        usuario=usuario,
        depois={"membros": len(membros or [])},
    )
    return mesa


def adicionar_membro_mesa(mesa: MesaDiretora, dados: dict) -> MembroMesa:
    if mesa.membros.filter(cargo=dados["cargo"]).exists():
        raise Conflito("Este cargo já está ocupado na mesa diretora")
    parlamentar = dados["parlamentar"]
    if parlamentar.tenant_id != mesa.legislatura.tenant_id:
        raise NaoEncontrado("Parlamentar")
    return MembroMesa.objects.create(mesa=mesa, **dados)
