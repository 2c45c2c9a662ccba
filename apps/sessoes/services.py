from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import Max, Sum
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos, NaoEncontrado
from apps.core.services_auditoria import registrar_auditoria
from apps.core.services_transparencia import publicar_evento_transparencia
from apps.parlamentares.services import periodo_vigente
from apps.proposicoes.services import marcar_em_pauta

from . import services_nomenclatura as nomenclatura
from . import services_quorum as quorum
from . import services_turnos as turnos
from .models import PautaItem, PresencaSessao, Sessao

logger = logging.getLogger(__name__)

MODULO = "SESSOES"
SESSAO_DUPLICADA = "Já existe uma sessão com este número para o tipo, legislatura e ano"

ITENS_INICIAVEIS = {PautaItem.Status.PENDENTE, PautaItem.Status.ADIADO, PautaItem.Status.EM_DISCUSSAO}
ITENS_ENCERRADOS = {
    PautaItem.Status.APROVADO,
    PautaItem.Status.REJEITADO,
    PautaItem.Status.RETIRADO,
    PautaItem.Status.CONCLUIDO,
}
RESULTADOS_ITEM = {
    PautaItem.Status.CONCLUIDO,
    PautaItem.Status.APROVADO,
    PautaItem.Status.REJEITADO,
    PautaItem.Status.RETIRADO,
    PautaItem.Status.ADIADO,
}


def _audit(sessao: Sessao, evento: str, usuario=None, **extra):
    registrar_auditoria(
        tenant=sessao.tenant,
        modulo=MODULO,
        evento=evento,
        entidade="Sessao",
        entidade_id=sessao.pk,
        usuario=usuario,
        depois={"status": sessao.status, **extra},
    )


def _segundos_desde(inicio) -> int:
    if inicio is None:
        return 0
    return max(0, int((timezone.now() - inicio).total_seconds()))


def _exigir_em_andamento(sessao: Sessao, acao: str) -> None:
    if sessao.status != Sessao.Status.EM_ANDAMENTO:
        raise Conflito(f"A sessão deve estar em andamento para {acao}")


# =========================
# Cadastro
# =========================
@transaction.atomic
def criar_sessao(*, tenant, dados: dict, usuario=None) -> Sessao:
    dados = dict(dados)
    legislatura = dados["legislatura"]
    data = dados["data"]
    ano = data.year
    tipo = dados.get("tipo") or Sessao.Tipo.ORDINARIA
    dados["tipo"] = tipo

    if not dados.get("periodo"):
        dados["periodo"] = periodo_vigente(legislatura, data)

    numero = dados.get("numero")
    if numero:
        if Sessao.objects.filter(
            tenant=tenant, tipo=tipo, numero=numero, legislatura=legislatura, ano=ano
        ).exists():
            raise Conflito(SESSAO_DUPLICADA)
        nomenclatura.registrar_numero_manual(tenant, tipo, legislatura.numero, ano, numero)
    else:
        dados["numero"] = nomenclatura.proximo_numero_sessao(tenant, tipo, legislatura.numero, ano)

    if not dados.get("titulo"):
        periodo = dados.get("periodo")
        dados["titulo"] = nomenclatura.gerar_titulo_sessao(
            tenant,
            tipo,
            legislatura.numero,
            dados["numero"],
            periodo=periodo.numero if periodo else None,
            ano=ano,
        )

    try:
        with transaction.atomic():
            sessao = Sessao.objects.create(tenant=tenant, **dados)
    except IntegrityError:
        raise Conflito(SESSAO_DUPLICADA)
    _audit(sessao, "SESSAO_CRIADA", usuario, numero=sessao.numero, titulo=sessao.titulo)
    logger.info("Sessão %s criada na câmara %s", sessao.pk, tenant.pk)
    return sessao


def atualizar_sessao(sessao: Sessao, dados: dict, *, usuario=None) -> Sessao:
    if sessao.encerrada or sessao.finalizada:
        raise Conflito("Sessão encerrada não pode ser editada")

    novo_numero = dados.get("numero") or sessao.numero
    novo_tipo = dados.get("tipo") or sessao.tipo
    nova_data = dados.get("data") or sessao.data
    legislatura = dados.get("legislatura") or sessao.legislatura
    if (novo_numero, novo_tipo, nova_data.year, legislatura.pk) != (
        sessao.numero,
        sessao.tipo,
        sessao.data.year,
        sessao.legislatura_id,
    ):
        if (
            Sessao.objects.filter(
                tenant=sessao.tenant,
                tipo=novo_tipo,
                numero=novo_numero,
                legislatura=legislatura,
                ano=nova_data.year,
            )
            .exclude(pk=sessao.pk)
            .exists()
        ):
            raise Conflito(SESSAO_DUPLICADA)

    for campo, valor in dados.items():
        if campo == "numero" and not valor:
            continue
        setattr(sessao, campo, valor)
    try:
        with transaction.atomic():
            sessao.save()
    except IntegrityError:
        raise Conflito(SESSAO_DUPLICADA)
    _audit(sessao, "SESSAO_ATUALIZADA", usuario, campos=sorted(dados))
    return sessao


def cancelar_sessao(sessao: Sessao, *, motivo: str = "", usuario=None) -> Sessao:
    if sessao.status == Sessao.Status.CONCLUIDA or sessao.finalizada:
        raise Conflito("Sessão finalizada não pode ser cancelada")
    if sessao.status == Sessao.Status.CANCELADA:
        return sessao
    sessao.status = Sessao.Status.CANCELADA
    sessao.item_atual = None
    sessao.save(update_fields=["status", "item_atual", "atualizado_em"])
    _audit(sessao, "SESSAO_CANCELADA", usuario, motivo=motivo)
    return sessao


def excluir_sessao(sessao: Sessao, *, usuario=None) -> None:
    if sessao.status not in {Sessao.Status.AGENDADA, Sessao.Status.CANCELADA}:
        raise Conflito("Somente sessões agendadas ou canceladas podem ser excluídas")
    tenant, pk, titulo = sessao.tenant, sessao.pk, sessao.titulo
    sessao.delete()
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="SESSAO_EXCLUIDA",
        entidade="Sessao",
        entidade_id=pk,
        usuario=usuario,
        antes={"titulo": titulo},
    )


# =========================
# Controle da sessão
# =========================
def convocar_sessao(sessao: Sessao, *, usuario=None) -> Sessao:
    if sessao.status != Sessao.Status.AGENDADA:
        raise Conflito("Somente sessões agendadas podem ser convocadas")
    sessao.status = Sessao.Status.CONVOCADA
    sessao.save(update_fields=["status", "atualizado_em"])
    _audit(sessao, "SESSAO_CONVOCADA", usuario)
    return sessao


def total_presentes(sessao: Sessao) -> int:
    return sessao.presencas.filter(presente=True).count()


def proximo_item_pendente(sessao: Sessao) -> PautaItem | None:
    return (
        sessao.pauta.filter(status__in=[PautaItem.Status.PENDENTE, PautaItem.Status.ADIADO])
        .order_by("ordem", "id")
        .first()
    )


@transaction.atomic
def iniciar_sessao(sessao: Sessao, *, usuario=None, verificar_quorum: bool = True) -> Sessao:
    if sessao.status == Sessao.Status.CONCLUIDA or sessao.finalizada:
        raise Conflito("Sessão já finalizada não pode ser iniciada")
    if sessao.status == Sessao.Status.CANCELADA:
        raise Conflito("Sessão cancelada não pode ser iniciada")
    if sessao.status == Sessao.Status.EM_ANDAMENTO:
        return sessao

    if verificar_quorum:
        verificacao = quorum.verificar_quorum_instalacao(
            sessao.tenant,
            presentes=total_presentes(sessao),
            legislatura=sessao.legislatura,
        )
        if not verificacao["ok"]:
            raise Conflito(verificacao["mensagem"], details=verificacao)

    sessao.status = Sessao.Status.EM_ANDAMENTO
    sessao.iniciada_em = sessao.iniciada_em or timezone.now()
    sessao.item_atual = proximo_item_pendente(sessao)
    sessao.save(update_fields=["status", "iniciada_em", "item_atual", "atualizado_em"])
    _audit(sessao, "SESSAO_INICIADA", usuario)
    logger.info("Sessão %s iniciada", sessao.pk)
    return sessao


def suspender_sessao(sessao: Sessao, *, usuario=None) -> Sessao:
    if sessao.status != Sessao.Status.EM_ANDAMENTO:
        raise Conflito("Somente sessões em andamento podem ser suspensas")
    item = sessao.item_atual
    if item is not None and item.iniciado_em:
        _acumular_tempo(item)
        item.save(update_fields=["tempo_acumulado", "iniciado_em"])
    sessao.status = Sessao.Status.SUSPENSA
    sessao.save(update_fields=["status", "atualizado_em"])
    _audit(sessao, "SESSAO_SUSPENSA", usuario)
    return sessao


def retomar_sessao(sessao: Sessao, *, usuario=None) -> Sessao:
    if sessao.status != Sessao.Status.SUSPENSA:
        raise Conflito("Sessão não está suspensa")
    sessao.status = Sessao.Status.EM_ANDAMENTO
    sessao.save(update_fields=["status", "atualizado_em"])
    _audit(sessao, "SESSAO_RETOMADA", usuario)
    return sessao


def _tempo_total(sessao: Sessao) -> int:
    agregado = sessao.pauta.aggregate(total=Sum("tempo_acumulado"))
    return int(agregado["total"] or 0)


@transaction.atomic
def finalizar_sessao(sessao: Sessao, *, usuario=None) -> Sessao:
    if sessao.status == Sessao.Status.CANCELADA:
        raise Conflito("Sessão cancelada não pode ser finalizada")
    if sessao.status == Sessao.Status.CONCLUIDA and sessao.finalizada:
        return sessao

    item = sessao.item_atual
    if item is not None and item.iniciado_em:
        _acumular_tempo(item)
        item.save(update_fields=["tempo_acumulado", "iniciado_em"])

    sessao.status = Sessao.Status.CONCLUIDA
    sessao.finalizada = True
    sessao.finalizada_em = timezone.now()
    sessao.item_atual = None
    sessao.tempo_total_real = _tempo_total(sessao)
    sessao.save(
        update_fields=["status", "finalizada", "finalizada_em", "item_atual", "tempo_total_real", "atualizado_em"]
    )

    itens = list(sessao.pauta.values_list("status", flat=True))
    publicar_evento_transparencia(
        tenant=sessao.tenant,
        modulo="SESSOES",
        tipo_evento="SESSAO_CONCLUIDA",
        titulo=f"{sessao} concluída",
        descricao=f"Sessão realizada em {sessao.data:%d/%m/%Y} com {len(itens)} item(ns) na pauta.",
        referencia=f"sessao:{sessao.pk}",
        dados={
            "sessaoId": sessao.pk,
            "numero": sessao.numero,
            "tipo": sessao.tipo,
            "data": sessao.data.isoformat(),
            "presentes": total_presentes(sessao),
            "itensAprovados": itens.count(PautaItem.Status.APROVADO),
            "itensRejeitados": itens.count(PautaItem.Status.REJEITADO),
        },
    )
    _audit(sessao, "SESSAO_FINALIZADA", usuario, tempoTotalReal=sessao.tempo_total_real)
    logger.info("Sessão %s finalizada", sessao.pk)
    return sessao


# =========================
# Presença
# =========================
def registrar_presenca(sessao: Sessao, parlamentar, *, presente: bool = True, justificativa: str = "", usuario=None) -> PresencaSessao:
    if sessao.encerrada or sessao.finalizada:
        raise Conflito("Não é possível alterar presenças para sessões finalizadas ou canceladas")
    if parlamentar.tenant_id != sessao.tenant_id or not parlamentar.ativo:
        raise DadosInvalidos("Parlamentar não encontrado ou inativo")

    presenca, _ = PresencaSessao.objects.update_or_create(
        sessao=sessao,
        parlamentar=parlamentar,
        defaults={"presente": presente, "justificativa": "" if presente else justificativa},
    )
    _audit(sessao, "PRESENCA_REGISTRADA", usuario, parlamentar=parlamentar.pk, presente=presente)
    return presenca


@transaction.atomic
def registrar_presencas(sessao: Sessao, registros: list[dict], *, usuario=None) -> list[PresencaSessao]:
    return [
        registrar_presenca(
            sessao,
            r["parlamentar"],
            presente=r.get("presente", True),
            justificativa=r.get("justificativa") or "",
            usuario=usuario,
        )
        for r in registros
    ]


# =========================
# Pauta
# =========================
def obter_item(sessao: Sessao, item_id) -> PautaItem:
    item = sessao.pauta.select_related("proposicao").filter(pk=item_id).first()
    if item is None:
        raise NaoEncontrado("Item", message="Item inválido para a sessão informada")
    return item


@transaction.atomic
def adicionar_item(sessao: Sessao, dados: dict, *, usuario=None) -> PautaItem:
    if sessao.encerrada or sessao.finalizada:
        raise Conflito("Não é possível alterar a pauta de sessões finalizadas ou canceladas")

    dados = dict(dados)
    proposicao = dados.get("proposicao")
    if proposicao is not None:
        if sessao.pauta.filter(proposicao=proposicao).exists():
            raise Conflito("Proposição já está na pauta desta sessão")
        if not dados.get("titulo"):
            dados["titulo"] = f"{proposicao.identificacao} - {proposicao.titulo}"[:255]
        if not dados.get("descricao"):
            dados["descricao"] = proposicao.ementa

    if not dados.get("titulo"):
        raise DadosInvalidos("Informe o título do item ou uma proposição", details={"titulo": ["Campo obrigatório."]})

    if not dados.get("ordem"):
        maior = sessao.pauta.aggregate(m=Max("ordem"))["m"] or 0
        dados["ordem"] = maior + 1

    item = PautaItem(sessao=sessao, **dados)
    turnos.configurar_turnos(item)
    item.save()

    if proposicao is not None:
        marcar_em_pauta(proposicao)
    _audit(sessao, "PAUTA_ITEM_ADICIONADO", usuario, item=item.pk)
    return item


@transaction.atomic
def reordenar_pauta(sessao: Sessao, ids: list[int], *, usuario=None) -> list[PautaItem]:
    itens = {i.pk: i for i in sessao.pauta.all()}
    if set(ids) != set(itens):
        raise DadosInvalidos("A lista deve conter todos os itens da pauta desta sessão")
    for ordem, pk in enumerate(ids, start=1):
        item = itens[pk]
        if item.ordem != ordem:
            item.ordem = ordem
            item.save(update_fields=["ordem"])
    _audit(sessao, "PAUTA_REORDENADA", usuario, ordem=ids)
    return sorted(itens.values(), key=lambda i: i.ordem)


def remover_item(sessao: Sessao, item: PautaItem, *, usuario=None) -> None:
    if item.status in {PautaItem.Status.EM_DISCUSSAO, PautaItem.Status.EM_VOTACAO} or item.iniciado_em:
        raise Conflito("Item em andamento não pode ser removido")
    if item.votos_registrados():
        raise Conflito("Item com votos registrados não pode ser removido")
    if sessao.item_atual_id == item.pk:
        sessao.item_atual = None
        sessao.save(update_fields=["item_atual", "atualizado_em"])
    item_id = item.pk
    item.delete()
    _audit(sessao, "PAUTA_ITEM_REMOVIDO", usuario, item=item_id)


def _acumular_tempo(item: PautaItem) -> None:
    item.tempo_acumulado = (item.tempo_acumulado or 0) + _segundos_desde(item.iniciado_em)
    item.iniciado_em = None


def _definir_item_atual(sessao: Sessao, item: PautaItem | None) -> None:
    sessao.item_atual = item
    sessao.save(update_fields=["item_atual", "atualizado_em"])


@transaction.atomic
def iniciar_item(sessao: Sessao, item: PautaItem, *, usuario=None) -> PautaItem:
    _exigir_em_andamento(sessao, "iniciar um item")
    if item.status not in ITENS_INICIAVEIS:
        raise Conflito("Item não pode ser iniciado no estado atual")

    atual = sessao.item_atual
    if atual is not None and atual.pk != item.pk and atual.iniciado_em:
        _acumular_tempo(atual)
        atual.save(update_fields=["tempo_acumulado", "iniciado_em"])

    item.status = PautaItem.Status.EM_DISCUSSAO
    item.iniciado_em = timezone.now()
    item.save(update_fields=["status", "iniciado_em"])
    _definir_item_atual(sessao, item)
    _audit(sessao, "PAUTA_ITEM_INICIADO", usuario, item=item.pk)
    return item


def pausar_item(sessao: Sessao, item: PautaItem, *, usuario=None) -> PautaItem:
    if not item.iniciado_em:
        raise Conflito("Item ainda não foi iniciado")
    _acumular_tempo(item)
    item.save(update_fields=["tempo_acumulado", "iniciado_em"])
    _audit(sessao, "PAUTA_ITEM_PAUSADO", usuario, item=item.pk, tempoAcumulado=item.tempo_acumulado)
    return item


def retomar_item(sessao: Sessao, item: PautaItem, *, usuario=None) -> PautaItem:
    _exigir_em_andamento(sessao, "retomar um item")
    if item.status in ITENS_ENCERRADOS:
        raise Conflito("Item não pode ser retomado no estado atual")
    if item.iniciado_em:
        return item

    if item.status != PautaItem.Status.EM_VOTACAO:
        item.status = PautaItem.Status.EM_DISCUSSAO
    item.iniciado_em = timezone.now()
    item.save(update_fields=["status", "iniciado_em"])
    _definir_item_atual(sessao, item)
    return item


def iniciar_votacao(sessao: Sessao, item: PautaItem, *, usuario=None) -> PautaItem:
    _exigir_em_andamento(sessao, "iniciar a votação")
    if not item.iniciado_em:
        raise Conflito("O item precisa estar em discussão antes de iniciar a votação")
    item.status = PautaItem.Status.EM_VOTACAO
    item.save(update_fields=["status"])
    _audit(sessao, "VOTACAO_INICIADA", usuario, item=item.pk, turno=item.turno_atual)
    return item


@transaction.atomic
def finalizar_item(sessao: Sessao, item: PautaItem, *, resultado: str = PautaItem.Status.CONCLUIDO, usuario=None) -> PautaItem:
    if resultado not in RESULTADOS_ITEM:
        raise DadosInvalidos("Resultado inválido para o item")
    if item.finalizado_em is not None and item.status == resultado:
        return item

    _acumular_tempo(item)
    item.tempo_real = item.tempo_acumulado
    item.status = resultado
    item.finalizado_em = timezone.now()
    item.save(update_fields=["tempo_acumulado", "tempo_real", "iniciado_em", "status", "finalizado_em"])

    if sessao.item_atual_id == item.pk:
        sessao.item_atual = None
    sessao.tempo_total_real = _tempo_total(sessao)
    sessao.save(update_fields=["item_atual", "tempo_total_real", "atualizado_em"])
    _audit(sessao, "PAUTA_ITEM_FINALIZADO", usuario, item=item.pk, resultado=resultado, tempoReal=item.tempo_real)
    return item


def adiar_item(sessao: Sessao, item: PautaItem, *, usuario=None) -> PautaItem:
    if item.status in ITENS_ENCERRADOS:
        raise Conflito("Item encerrado não pode ser adiado")
    _acumular_tempo(item)
    item.status = PautaItem.Status.ADIADO
    item.save(update_fields=["tempo_acumulado", "iniciado_em", "status"])
    if sessao.item_atual_id == item.pk:
        _definir_item_atual(sessao, None)
    _audit(sessao, "PAUTA_ITEM_ADIADO", usuario, item=item.pk)
    return item


def retirar_item(sessao: Sessao, item: PautaItem, *, usuario=None) -> PautaItem:
    if item.status in ITENS_ENCERRADOS:
        raise Conflito("Item encerrado não pode ser retirado de pauta")
    return finalizar_item(sessao, item, resultado=PautaItem.Status.RETIRADO, usuario=usuario)
