from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, Max, Q
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos
from apps.core.services_auditoria import registrar_auditoria
from apps.proposicoes.models import Proposicao

from .models import Comissao, MembroComissao, Parecer, PresencaReuniao, ReuniaoComissao

logger = logging.getLogger(__name__)

MODULO = "COMISSOES"

S = ReuniaoComissao.Status


def _auditar(reuniao: ReuniaoComissao, evento: str, usuario=None, **extra):
    registrar_auditoria(
        tenant=reuniao.comissao.tenant,
        modulo=MODULO,
        evento=evento,
        entidade="ReuniaoComissao",
        entidade_id=reuniao.pk,
        usuario=usuario,
        depois={"status": reuniao.status, **extra},
    )


# =========================
# Comissões e membros
# =========================
def criar_comissao(*, tenant, dados: dict, usuario=None) -> Comissao:
    if Comissao.objects.filter(tenant=tenant, nome__iexact=dados["nome"]).exists():
        raise Conflito("Já existe uma comissão com este nome")
    comissao = Comissao.objects.create(tenant=tenant, **dados)
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="COMISSAO_CRIADA",
        entidade="Comissao",
        entidade_id=comissao.pk,
        usuario=usuario,
        depois={"nome": comissao.nome, "tipo": comissao.tipo},
    )
    return comissao


def atualizar_comissao(comissao: Comissao, dados: dict, *, usuario=None) -> Comissao:
    nome = dados.get("nome")
    if (
        nome
        and Comissao.objects.filter(tenant=comissao.tenant, nome__iexact=nome).exclude(pk=comissao.pk).exists()
    ):
        raise Conflito("Já existe uma comissão com este nome")
    for campo, valor in dados.items():
        setattr(comissao, campo, valor)
    comissao.save()
    registrar_auditoria(
        tenant=comissao.tenant,
        modulo=MODULO,
        evento="COMISSAO_ATUALIZADA",
        entidade="Comissao",
        entidade_id=comissao.pk,
        usuario=usuario,
        depois={"campos": sorted(dados)},
    )
    return comissao


def adicionar_membro(comissao: Comissao, dados: dict) -> MembroComissao:
    parlamentar = dados["parlamentar"]
    if not parlamentar.ativo:
        raise DadosInvalidos("O parlamentar informado não está ativo")
    if MembroComissao.objects.filter(comissao=comissao, parlamentar=parlamentar).exists():
        raise Conflito("Parlamentar já é membro desta comissão")
    if dados.get("cargo") == MembroComissao.Cargo.PRESIDENTE and comissao.membros.filter(
        cargo=MembroComissao.Cargo.PRESIDENTE, ativo=True
    ).exists():
        raise Conflito("A comissão já possui presidente ativo")
    return MembroComissao.objects.create(comissao=comissao, **dados)


def desligar_membro(membro: MembroComissao) -> MembroComissao:
    membro.ativo = False
    membro.data_fim = membro.data_fim or timezone.localdate()
    membro.save(update_fields=["ativo", "data_fim"])
    return membro


# =========================
# Reuniões
# =========================
@transaction.atomic
def proximo_numero_reuniao(comissao: Comissao, ano: int) -> int:
    # a linha da comissão serializa a numeração das reuniões
    Comissao.objects.select_for_update().get(pk=comissao.pk)
    atual = ReuniaoComissao.objects.filter(comissao=comissao, ano=ano).aggregate(m=Max("numero"))["m"]
    return (atual or 0) + 1


@transaction.atomic
def criar_reuniao(comissao: Comissao, dados: dict, *, usuario=None) -> ReuniaoComissao:
    if not comissao.ativa:
        raise Conflito("Comissão inativa não pode agendar reuniões")
    ano = dados["data"].year
    reuniao = ReuniaoComissao.objects.create(
        comissao=comissao,
        numero=proximo_numero_reuniao(comissao, ano),
        ano=ano,
        **dados,
    )
    _auditar(reuniao, "REUNIAO_CRIADA", usuario, numero=reuniao.numero)
    return reuniao


def excluir_reuniao(reuniao: ReuniaoComissao, *, usuario=None) -> None:
    if reuniao.status not in {S.AGENDADA, S.CANCELADA}:
        raise Conflito("Apenas reuniões agendadas ou canceladas podem ser excluídas")
    _auditar(reuniao, "REUNIAO_EXCLUIDA", usuario)
    reuniao.delete()


def convocar_reuniao(reuniao: ReuniaoComissao, *, usuario=None) -> ReuniaoComissao:
    if reuniao.status != S.AGENDADA:
        raise Conflito("Apenas reuniões agendadas podem ser convocadas")
    reuniao.status = S.CONVOCADA
    reuniao.save(update_fields=["status", "atualizado_em"])
    _auditar(reuniao, "REUNIAO_CONVOCADA", usuario)
    return reuniao


def verificar_quorum(reuniao: ReuniaoComissao) -> dict:
    presentes = reuniao.presencas.filter(presente=True).count()
    return {
        "atingido": presentes >= reuniao.quorum_minimo,
        "presentes": presentes,
        "minimo": reuniao.quorum_minimo,
    }


def iniciar_reuniao(reuniao: ReuniaoComissao, *, usuario=None) -> ReuniaoComissao:
    if reuniao.status not in {S.AGENDADA, S.CONVOCADA}:
        raise Conflito("Reunião não pode ser iniciada")
    quorum = verificar_quorum(reuniao)
    if not quorum["atingido"]:
        raise Conflito(
            f"Quórum insuficiente. Mínimo: {quorum['minimo']}, Presentes: {quorum['presentes']}",
            details=quorum,
        )
    reuniao.status = S.EM_ANDAMENTO
    reuniao.iniciada_em = timezone.now()
    reuniao.save(update_fields=["status", "iniciada_em", "atualizado_em"])
    _auditar(reuniao, "REUNIAO_INICIADA", usuario, presentes=quorum["presentes"])
    logger.info("Reunião %s da comissão %s iniciada", reuniao.numero, reuniao.comissao_id)
    return reuniao


def suspender_reuniao(reuniao: ReuniaoComissao, *, motivo: str = "", usuario=None) -> ReuniaoComissao:
    if reuniao.status != S.EM_ANDAMENTO:
        raise Conflito("Apenas reuniões em andamento podem ser suspensas")
    reuniao.status = S.SUSPENSA
    if motivo:
        reuniao.observacoes = f"{reuniao.observacoes}\nSuspensão: {motivo}".strip()
    reuniao.save(update_fields=["status", "observacoes", "atualizado_em"])
    _auditar(reuniao, "REUNIAO_SUSPENSA", usuario, motivo=motivo)
    return reuniao


def retomar_reuniao(reuniao: ReuniaoComissao, *, usuario=None) -> ReuniaoComissao:
    if reuniao.status != S.SUSPENSA:
        raise Conflito("Apenas reuniões suspensas podem ser retomadas")
    reuniao.status = S.EM_ANDAMENTO
    reuniao.save(update_fields=["status", "atualizado_em"])
    _auditar(reuniao, "REUNIAO_RETOMADA", usuario)
    return reuniao


def encerrar_reuniao(reuniao: ReuniaoComissao, *, usuario=None) -> ReuniaoComissao:
    if reuniao.status != S.EM_ANDAMENTO:
        raise Conflito("Apenas reuniões em andamento podem ser encerradas")
    reuniao.status = S.CONCLUIDA
    reuniao.encerrada_em = timezone.now()
    reuniao.save(update_fields=["status", "encerrada_em", "atualizado_em"])
    _auditar(reuniao, "REUNIAO_ENCERRADA", usuario)
    logger.info("Reunião %s da comissão %s encerrada", reuniao.numero, reuniao.comissao_id)
    return reuniao


def cancelar_reuniao(reuniao: ReuniaoComissao, *, motivo: str = "", usuario=None) -> ReuniaoComissao:
    if reuniao.status == S.CONCLUIDA:
        raise Conflito("Reuniões concluídas não podem ser canceladas")
    reuniao.status = S.CANCELADA
    reuniao.motivo_cancelamento = motivo or ""
    reuniao.save(update_fields=["status", "motivo_cancelamento", "atualizado_em"])
    _auditar(reuniao, "REUNIAO_CANCELADA", usuario, motivo=motivo)
    return reuniao


def registrar_presenca(reuniao: ReuniaoComissao, membro: MembroComissao, *, presente=True, justificativa="") -> PresencaReuniao:
    if reuniao.status in {S.CONCLUIDA, S.CANCELADA}:
        raise Conflito("Não é possível registrar presença em reunião encerrada")
    if membro.comissao_id != reuniao.comissao_id:
        raise DadosInvalidos("Membro não pertence à comissão da reunião")
    if not membro.ativo:
        raise DadosInvalidos("Membro desligado da comissão")
    presenca, _ = PresencaReuniao.objects.update_or_create(
        reuniao=reuniao,
        membro=membro,
        defaults={"presente": presente, "justificativa": justificativa or ""},
    )
    return presenca


def salvar_ata(reuniao: ReuniaoComissao, texto: str, *, usuario=None) -> ReuniaoComissao:
    if reuniao.ata_aprovada:
        raise Conflito("Ata já aprovada não pode ser alterada")
    reuniao.ata = texto
    reuniao.save(update_fields=["ata", "atualizado_em"])
    _auditar(reuniao, "REUNIAO_ATA_SALVA", usuario)
    return reuniao


def aprovar_ata(reuniao: ReuniaoComissao, *, usuario=None) -> ReuniaoComissao:
    if not (reuniao.ata or "").strip():
        raise DadosInvalidos("Ata não foi redigida")
    if reuniao.status != S.CONCLUIDA:
        raise Conflito("Ata só pode ser aprovada após a conclusão da reunião")
    reuniao.ata_aprovada = True
    reuniao.ata_aprovada_em = timezone.now()
    reuniao.save(update_fields=["ata_aprovada", "ata_aprovada_em", "atualizado_em"])
    _auditar(reuniao, "REUNIAO_ATA_APROVADA", usuario)
    return reuniao


# =========================
# Pareceres
# =========================
def criar_parecer(comissao: Comissao, dados: dict, *, usuario=None) -> Parecer:
    relator = dados["relator"]
    if not comissao.membros.filter(parlamentar=relator, ativo=True).exists():
        raise DadosInvalidos("O relator deve ser membro ativo da comissão")
    parecer = Parecer.objects.create(comissao=comissao, **dados)
    registrar_auditoria(
        tenant=comissao.tenant,
        modulo=MODULO,
        evento="PARECER_CRIADO",
        entidade="Parecer",
        entidade_id=parecer.pk,
        usuario=usuario,
        depois={"proposicao": parecer.proposicao_id, "tipo": parecer.tipo},
    )
    return parecer


def atualizar_parecer(parecer: Parecer, dados: dict) -> Parecer:
    if parecer.status != Parecer.Status.RASCUNHO:
        raise Conflito("Somente pareceres em rascunho podem ser editados")
    for campo, valor in dados.items():
        setattr(parecer, campo, valor)
    parecer.save()
    return parecer


def _comissao_de_legislacao(comissao: Comissao) -> bool:
    return comissao.sigla in {"CLJ", "CCJ"} or "legisla" in comissao.nome.lower()


@transaction.atomic
def votar_parecer(reuniao: ReuniaoComissao, parecer: Parecer, *, favor: int, contra: int, abstencao: int = 0, usuario=None) -> Parecer:
    if reuniao.status != S.EM_ANDAMENTO:
        raise Conflito("Votação só pode ocorrer com reunião em andamento")
    if parecer.comissao_id != reuniao.comissao_id:
        raise DadosInvalidos("Parecer não pertence à comissão da reunião")
    if parecer.status not in {Parecer.Status.RASCUNHO, Parecer.Status.EM_VOTACAO}:
        raise Conflito("Parecer já foi votado")

    parecer.reuniao = reuniao
    parecer.votos_favor = favor
    parecer.votos_contra = contra
    parecer.votos_abstencao = abstencao
    parecer.data_votacao = timezone.now()
    parecer.status = Parecer.Status.APROVADO_COMISSAO if favor > contra else Parecer.Status.REJEITADO_COMISSAO
    parecer.save()

    # parecer aprovado na comissão de legislação libera a proposição para pauta
    proposicao = parecer.proposicao
    if (
        parecer.status == Parecer.Status.APROVADO_COMISSAO
        and _comissao_de_legislacao(reuniao.comissao)
        and proposicao.status in {Proposicao.Status.APRESENTADA, Proposicao.Status.EM_TRAMITACAO}
    ):
        proposicao.status = Proposicao.Status.AGUARDANDO_PAUTA
        proposicao.save(update_fields=["status", "atualizado_em"])

    registrar_auditoria(
        tenant=reuniao.comissao.tenant,
        modulo=MODULO,
        evento="PARECER_VOTADO",
        entidade="Parecer",
        entidade_id=parecer.pk,
        usuario=usuario,
        depois={"status": parecer.status, "favor": favor, "contra": contra, "abstencao": abstencao},
    )
    return parecer


def emitir_parecer(parecer: Parecer, *, usuario=None) -> Parecer:
    if parecer.status != Parecer.Status.APROVADO_COMISSAO:
        raise Conflito("Apenas pareceres aprovados pela comissão podem ser emitidos")
    parecer.status = Parecer.Status.EMITIDO
    parecer.data_emissao = timezone.now()
    parecer.save(update_fields=["status", "data_emissao", "atualizado_em"])
    registrar_auditoria(
        tenant=parecer.comissao.tenant,
        modulo=MODULO,
        evento="PARECER_EMITIDO",
        entidade="Parecer",
        entidade_id=parecer.pk,
        usuario=usuario,
    )
    return parecer


# =========================
# Consultas
# =========================
def proximas_reunioes(tenant, *, comissao=None, limite: int = 5):
    qs = ReuniaoComissao.objects.filter(
        comissao__tenant=tenant,
        status__in=[S.AGENDADA, S.CONVOCADA],
        data__gte=timezone.now(),
    ).select_related("comissao")
    if comissao is not None:
        qs = qs.filter(comissao=comissao)
    return list(qs.order_by("data")[:limite])


def estatisticas(comissao: Comissao, ano: int) -> dict:
    reunioes = ReuniaoComissao.objects.filter(comissao=comissao, ano=ano)
    agg = reunioes.aggregate(
        total=Count("id"),
        realizadas=Count("id", filter=Q(status=S.CONCLUIDA)),
        canceladas=Count("id", filter=Q(status=S.CANCELADA)),
    )
    return {
        "totalReunioes": agg["total"],
        "reunioesRealizadas": agg["realizadas"],
        "reunioesCanceladas": agg["canceladas"],
        "totalPareceresVotados": Parecer.objects.filter(reuniao__in=reunioes).count(),
    }
