from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, Max
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos
from apps.core.services_auditoria import registrar_auditoria

from .models import Emenda, Proposicao, VotoEmenda
from .services import MODULO, STATUS_FINAIS, STATUS_VOTADOS

logger = logging.getLogger(__name__)

# emendas que ainda podem ser votadas, retiradas ou aglutinadas
STATUS_ABERTOS = {Emenda.Status.APRESENTADA, Emenda.Status.EM_ANALISE}


def _auditar(emenda: Emenda, evento: str, usuario=None, antes=None, depois=None) -> None:
    registrar_auditoria(
        tenant=emenda.proposicao.tenant,
        modulo=MODULO,
        evento=evento,
        entidade="Emenda",
        entidade_id=emenda.pk,
        usuario=usuario,
        antes=antes,
        depois=depois,
    )


def _exigir_aberta(emenda: Emenda) -> None:
    if emenda.status not in STATUS_ABERTOS:
        raise Conflito(f"Emenda {emenda.get_status_display().lower()} não admite esta operação")


def verificar_prazo_emendas(proposicao: Proposicao, hoje=None) -> dict:
    hoje = hoje or timezone.localdate()
    prazo = proposicao.prazo_emendas
    aberta = proposicao.status not in STATUS_FINAIS | STATUS_VOTADOS
    vencido = prazo is not None and hoje > prazo
    return {
        "prazoDeterminado": prazo is not None,
        "prazo": prazo,
        "prazoVencido": vencido,
        "podeCadastrar": aberta and not vencido,
    }


def _validar_textos(dados: dict) -> None:
    tipo = dados["tipo"]
    erros = {}
    if tipo in {Emenda.Tipo.SUPRESSIVA, Emenda.Tipo.MODIFICATIVA} and not dados.get("texto_original"):
        erros["texto_original"] = ["Informe o texto que será alterado ou suprimido."]
    if tipo != Emenda.Tipo.SUPRESSIVA and not dados.get("texto_novo"):
        erros["texto_novo"] = ["Informe o texto proposto."]
    if erros:
        raise DadosInvalidos("Dados da emenda incompletos", details=erros)


@transaction.atomic
def criar_emenda(proposicao: Proposicao, dados: dict, *, usuario=None) -> Emenda:
    # a linha da proposição serializa a numeração das emendas
    proposicao = Proposicao.objects.select_for_update().get(pk=proposicao.pk)

    prazo = verificar_prazo_emendas(proposicao)
    if proposicao.status in STATUS_FINAIS | STATUS_VOTADOS:
        raise Conflito("Proposição não admite emendas no status atual")
    if prazo["prazoVencido"]:
        raise Conflito("Prazo para apresentação de emendas encerrado")

    dados = dict(dados)
    coautores = list(dados.pop("coautores", None) or [])
    autor = dados["autor"]
    if not autor.ativo or autor.tenant_id != proposicao.tenant_id:
        raise DadosInvalidos("O autor informado não está ativo")
    coautores = [c for c in coautores if c.pk != autor.pk]
    _validar_textos(dados)

    atual = Emenda.objects.filter(proposicao=proposicao).aggregate(m=Max("numero"))["m"]
    emenda = Emenda.objects.create(
        proposicao=proposicao,
        numero=(atual or 0) + 1,
        ano=timezone.localdate().year,
        **dados,
    )
    if coautores:
        emenda.coautores.set(coautores)

    _auditar(emenda, "EMENDA_APRESENTADA", usuario, depois={"numero": emenda.numero, "tipo": emenda.tipo})
    logger.info("Emenda %s apresentada à proposição %s", emenda.numero, proposicao.pk)
    return emenda


def registrar_parecer_emenda(emenda: Emenda, dados: dict, *, usuario=None) -> Emenda:
    _exigir_aberta(emenda)
    antes = {"status": emenda.status, "parecer_tipo": emenda.parecer_tipo}
    for campo in ("parecer_comissao", "parecer_tipo", "parecer_texto"):
        if campo in dados:
            setattr(emenda, campo, dados[campo] or "")
    emenda.status = Emenda.Status.EM_ANALISE
    emenda.save()
    _auditar(emenda, "EMENDA_PARECER", usuario, antes=antes, depois={"parecer_tipo": emenda.parecer_tipo})
    return emenda


def votar_emenda(emenda: Emenda, *, parlamentar, voto: str, usuario=None) -> VotoEmenda:
    _exigir_aberta(emenda)
    if not parlamentar.ativo or parlamentar.tenant_id != emenda.proposicao.tenant_id:
        raise DadosInvalidos("Parlamentar não pode votar nesta emenda")

    registro, criado = VotoEmenda.objects.update_or_create(
        emenda=emenda,
        parlamentar=parlamentar,
        defaults={"voto": voto, "registrado_em": timezone.now()},
    )
    _auditar(
        emenda,
        "EMENDA_VOTO_REGISTRADO" if criado else "EMENDA_VOTO_ALTERADO",
        usuario,
        depois={"parlamentar": parlamentar.pk, "voto": voto},
    )
    return registro


def apurar_votacao_emenda(emenda: Emenda) -> dict:
    contagem = {r["voto"]: r["total"] for r in emenda.votos.values("voto").annotate(total=Count("id")).order_by()}
    sim = contagem.get(VotoEmenda.Opcao.SIM, 0)
    nao = contagem.get(VotoEmenda.Opcao.NAO, 0)
    abstencao = contagem.get(VotoEmenda.Opcao.ABSTENCAO, 0)
    # maioria simples dos votantes
    aprovada = sim > nao
    return {
        "sim": sim,
        "nao": nao,
        "abstencao": abstencao,
        "ausente": contagem.get(VotoEmenda.Opcao.AUSENTE, 0),
        "total": sum(contagem.values()),
        "resultado": Emenda.Status.APROVADA if aprovada else Emenda.Status.REJEITADA,
    }


@transaction.atomic
def finalizar_votacao_emenda(emenda: Emenda, *, usuario=None) -> Emenda:
    _exigir_aberta(emenda)
    apuracao = apurar_votacao_emenda(emenda)
    if apuracao["total"] == 0:
        raise Conflito("Nenhum voto registrado para a emenda")

    antes = {"status": emenda.status}
    emenda.votos_sim = apuracao["sim"]
    emenda.votos_nao = apuracao["nao"]
    emenda.votos_abstencao = apuracao["abstencao"]
    emenda.status = apuracao["resultado"]
    emenda.data_votacao = timezone.now()
    emenda.save()
    _auditar(emenda, "EMENDA_VOTADA", usuario, antes=antes, depois={"status": emenda.status})
    return emenda


def _encerrar(emenda: Emenda, status: str, motivo: str, evento: str, usuario=None) -> Emenda:
    _exigir_aberta(emenda)
    antes = {"status": emenda.status}
    emenda.status = status
    emenda.motivo = (motivo or "")[:500]
    emenda.save(update_fields=["status", "motivo", "atualizado_em"])
    _auditar(emenda, evento, usuario, antes=antes, depois={"status": status, "motivo": emenda.motivo})
    return emenda


def retirar_emenda(emenda: Emenda, *, motivo: str = "", usuario=None) -> Emenda:
    return _encerrar(emenda, Emenda.Status.RETIRADA, motivo, "EMENDA_RETIRADA", usuario)


def prejudicar_emenda(emenda: Emenda, *, motivo: str, usuario=None) -> Emenda:
    if not (motivo or "").strip():
        raise DadosInvalidos("Informe o motivo", details={"motivo": ["Campo obrigatório."]})
    return _encerrar(emenda, Emenda.Status.PREJUDICADA, motivo, "EMENDA_PREJUDICADA", usuario)


@transaction.atomic
def aglutinar_emendas(proposicao: Proposicao, emendas: list, dados: dict, *, usuario=None) -> Emenda:
    """
    Funde emendas abertas em uma nova emenda substitutiva.

    As originais ficam AGLUTINADA e apontam para a nova.
    """
    if len(emendas) < 2:
        raise DadosInvalidos("Informe ao menos duas emendas para aglutinar")
    if any(e.proposicao_id != proposicao.pk for e in emendas):
        raise DadosInvalidos("Uma ou mais emendas não pertencem à proposição")
    for emenda in emendas:
        _exigir_aberta(emenda)

    nova = criar_emenda(
        proposicao,
        {**dados, "tipo": Emenda.Tipo.SUBSTITUTIVA},
        usuario=usuario,
    )
    Emenda.objects.filter(pk__in=[e.pk for e in emendas]).update(
        status=Emenda.Status.AGLUTINADA,
        aglutinada_em=nova,
        atualizado_em=timezone.now(),
    )
    _auditar(nova, "EMENDAS_AGLUTINADAS", usuario, depois={"origens": sorted(e.numero for e in emendas)})
    return nova


def texto_consolidado(proposicao: Proposicao) -> dict:
    aprovadas = (
        Emenda.objects.filter(proposicao=proposicao, status=Emenda.Status.APROVADA, aglutinada_em__isnull=True)
        .select_related("autor")
        .order_by("artigo", "paragrafo", "inciso", "numero")
    )
    alteracoes = [
        {
            "emendaId": e.pk,
            "numero": e.numero,
            "tipo": e.tipo,
            "referencia": e.referencia,
            "textoOriginal": e.texto_original,
            "textoNovo": e.texto_novo,
            "autor": e.autor.nome_exibicao,
        }
        for e in aprovadas
    ]
    return {
        "proposicaoId": proposicao.pk,
        "identificacao": proposicao.identificacao,
        "textoOriginal": proposicao.texto,
        "totalEmendasAprovadas": len(alteracoes),
        "alteracoes": alteracoes,
    }


def estatisticas_emendas(proposicao: Proposicao) -> dict:
    qs = Emenda.objects.filter(proposicao=proposicao)
    por_status = {r["status"]: r["total"] for r in qs.values("status").annotate(total=Count("id")).order_by()}
    por_tipo = {r["tipo"]: r["total"] for r in qs.values("tipo").annotate(total=Count("id")).order_by()}
    return {"total": sum(por_status.values()), "porStatus": por_status, "porTipo": por_tipo}
