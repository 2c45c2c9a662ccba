from __future__ import annotations

import logging
from collections import Counter

from django.db import IntegrityError, transaction
from django.db.models import Count, F
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos, NaoEncontrado
from apps.core.security.cripto import cpf_hash, cpf_valido
from apps.core.services_auditoria import registrar_auditoria
from apps.core.services_transparencia import publicar_evento_transparencia
from apps.proposicoes.services import criar_proposicao

from .models import (
    ApoioSugestao,
    ConsultaPublica,
    ParticipacaoConsulta,
    PerguntaConsulta,
    RespostaConsulta,
    SugestaoLegislativa,
)

logger = logging.getLogger(__name__)

MODULO = "PARTICIPACAO"

BAIRRO_NAO_INFORMADO = "Não informado"
RESPOSTAS_SIM_NAO = {"SIM", "NAO"}
ESCALA = range(1, 6)


def _hash_cpf_obrigatorio(cpf: str) -> str:
    if not cpf_valido(cpf):
        raise DadosInvalidos("CPF inválido", details={"cpf": ["Informe um CPF válido."]})
    return cpf_hash(cpf)


# =========================
# Consultas públicas
# =========================
def criar_consulta(*, tenant, dados: dict, usuario=None) -> ConsultaPublica:
    consulta = ConsultaPublica.objects.create(tenant=tenant, status=ConsultaPublica.Status.RASCUNHO, **dados)
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="CONSULTA_CRIADA",
        entidade="ConsultaPublica",
        entidade_id=consulta.pk,
        usuario=usuario,
        depois={"titulo": consulta.titulo},
    )
    return consulta


def atualizar_consulta(consulta: ConsultaPublica, dados: dict) -> ConsultaPublica:
    if consulta.status == ConsultaPublica.Status.ENCERRADA:
        raise Conflito("Consultas encerradas não podem ser editadas")
    for campo, valor in dados.items():
        setattr(consulta, campo, valor)
    if consulta.data_fim <= consulta.data_inicio:
        raise DadosInvalidos("Período inválido", details={"data_fim": ["Deve ser posterior ao início."]})
    consulta.save()
    return consulta


def excluir_consulta(consulta: ConsultaPublica) -> None:
    if consulta.status != ConsultaPublica.Status.RASCUNHO:
        raise Conflito("Somente consultas em rascunho podem ser excluídas")
    consulta.delete()


def _exigir_rascunho(consulta: ConsultaPublica):
    if consulta.status != ConsultaPublica.Status.RASCUNHO:
        raise Conflito("Perguntas só podem ser alteradas enquanto a consulta está em rascunho")


def adicionar_pergunta(consulta: ConsultaPublica, dados: dict) -> PerguntaConsulta:
    _exigir_rascunho(consulta)
    if not dados.get("ordem"):
        dados = {**dados, "ordem": consulta.perguntas.count() + 1}
    return PerguntaConsulta.objects.create(consulta=consulta, **dados)


def atualizar_pergunta(pergunta: PerguntaConsulta, dados: dict) -> PerguntaConsulta:
    _exigir_rascunho(pergunta.consulta)
    for campo, valor in dados.items():
        setattr(pergunta, campo, valor)
    pergunta.save()
    return pergunta


def remover_pergunta(pergunta: PerguntaConsulta) -> None:
    _exigir_rascunho(pergunta.consulta)
    pergunta.delete()


@transaction.atomic
def publicar_consulta(consulta: ConsultaPublica, *, usuario=None) -> ConsultaPublica:
    if consulta.status != ConsultaPublica.Status.RASCUNHO:
        raise Conflito("Somente consultas em rascunho podem ser publicadas")
    if not consulta.perguntas.exists():
        raise DadosInvalidos("Adicione ao menos uma pergunta antes de publicar")
    consulta.status = ConsultaPublica.Status.ABERTA
    consulta.save(update_fields=["status", "atualizado_em"])
    publicar_evento_transparencia(
        tenant=consulta.tenant,
        modulo=MODULO,
        tipo_evento="CONSULTA_ABERTA",
        titulo=consulta.titulo[:220],
        descricao=f"Participação até {timezone.localtime(consulta.data_fim):%d/%m/%Y %H:%M}",
        referencia=f"consulta:{consulta.pk}",
        dados={"consultaId": consulta.pk},
    )
    registrar_auditoria(
        tenant=consulta.tenant,
        modulo=MODULO,
        evento="CONSULTA_PUBLICADA",
        entidade="ConsultaPublica",
        entidade_id=consulta.pk,
        usuario=usuario,
    )
    logger.info("Consulta %s publicada", consulta.pk)
    return consulta


def encerrar_consulta(consulta: ConsultaPublica, *, usuario=None) -> ConsultaPublica:
    if consulta.status != ConsultaPublica.Status.ABERTA:
        raise Conflito("Somente consultas abertas podem ser encerradas")
    consulta.status = ConsultaPublica.Status.ENCERRADA
    consulta.save(update_fields=["status", "atualizado_em"])
    registrar_auditoria(
        tenant=consulta.tenant,
        modulo=MODULO,
        evento="CONSULTA_ENCERRADA",
        entidade="ConsultaPublica",
        entidade_id=consulta.pk,
        usuario=usuario,
        depois={"participacoes": consulta.participacoes.count()},
    )
    return consulta


def consultas_abertas(tenant):
    agora = timezone.now()
    return (
        ConsultaPublica.objects.filter(
            tenant=tenant,
            status=ConsultaPublica.Status.ABERTA,
            data_inicio__lte=agora,
            data_fim__gte=agora,
        )
        .annotate(total_participacoes=Count("participacoes", distinct=True))
        .order_by("data_fim")
    )


def _validar_resposta(pergunta: PerguntaConsulta, valor: str) -> str | None:
    if pergunta.tipo == PerguntaConsulta.Tipo.MULTIPLA_ESCOLHA and valor not in (pergunta.opcoes or []):
        return "Opção inválida."
    if pergunta.tipo == PerguntaConsulta.Tipo.SIM_NAO and valor.upper() not in RESPOSTAS_SIM_NAO:
        return "Responda SIM ou NAO."
    if pergunta.tipo == PerguntaConsulta.Tipo.ESCALA:
        try:
            if int(valor) not in ESCALA:
                return "Informe um valor de 1 a 5."
        except ValueError:
            return "Informe um valor de 1 a 5."
    return None


@transaction.atomic
def participar(consulta: ConsultaPublica, *, respostas: list, nome="", email="", cpf="", bairro="") -> ParticipacaoConsulta:
    """
    Registra a participação de um cidadão.
    `respostas` é uma lista de {"pergunta": id, "resposta": texto}.
    Um CPF participa uma única vez por consulta.
    """
    if consulta.status != ConsultaPublica.Status.ABERTA:
        raise Conflito("Consulta não está aberta para participação")

    agora = timezone.now()
    if agora < consulta.data_inicio or agora > consulta.data_fim:
        raise Conflito("Consulta fora do período de participação")

    hash_ = ""
    if cpf:
        hash_ = _hash_cpf_obrigatorio(cpf)
    elif not consulta.permitir_anonimo:
        raise DadosInvalidos("Informe o CPF para participar", details={"cpf": ["Campo obrigatório."]})

    if hash_ and consulta.participacoes.filter(cpf_hash=hash_).exists():
        raise Conflito("Você já participou desta consulta")

    perguntas = {p.pk: p for p in consulta.perguntas.all()}
    valores = {}
    erros = {}
    for item in respostas or []:
        pergunta_id = item.get("pergunta") if isinstance(item, dict) else None
        try:
            pergunta = perguntas[int(pergunta_id)]
        except (KeyError, TypeError, ValueError):
            raise DadosInvalidos("Pergunta inválida", details={"pergunta": [str(pergunta_id)]})
        valor = str(item.get("resposta") or "").strip()
        if not valor:
            continue
        erro = _validar_resposta(pergunta, valor)
        if erro:
            erros[str(pergunta.pk)] = [erro]
        else:
            valores[pergunta.pk] = valor.upper() if pergunta.tipo == PerguntaConsulta.Tipo.SIM_NAO else valor

    for pergunta in perguntas.values():
        if pergunta.obrigatoria and pergunta.pk not in valores and str(pergunta.pk) not in erros:
            erros[str(pergunta.pk)] = ["Resposta obrigatória."]
    if erros:
        raise DadosInvalidos("Respostas inválidas", details=erros)

    try:
        with transaction.atomic():
            participacao = ParticipacaoConsulta.objects.create(
                consulta=consulta,
                nome=(nome or "").strip(),
                email=(email or "").strip(),
                cpf_hash=hash_,
                bairro=(bairro or "").strip(),
            )
    except IntegrityError:
        raise Conflito("Você já participou desta consulta")

    RespostaConsulta.objects.bulk_create(
        [RespostaConsulta(participacao=participacao, pergunta_id=pk, resposta=valor) for pk, valor in valores.items()]
    )
    logger.info("Participação %s registrada na consulta %s", participacao.pk, consulta.pk)
    return participacao


def resultados(consulta: ConsultaPublica) -> dict:
    total_participacoes = consulta.participacoes.count()

    por_pergunta = []
    for pergunta in consulta.perguntas.all():
        valores = list(pergunta.respostas.values_list("resposta", flat=True))
        total = len(valores)
        contagem = [
            {
                "resposta": resposta,
                "quantidade": quantidade,
                "percentual": round(quantidade * 100 / total, 1) if total else 0,
            }
            for resposta, quantidade in Counter(valores).most_common()
        ]
        por_pergunta.append(
            {
                "perguntaId": pergunta.pk,
                "enunciado": pergunta.enunciado,
                "tipo": pergunta.tipo,
                "totalRespostas": total,
                "contagem": contagem,
            }
        )

    bairros = Counter()
    for bairro in consulta.participacoes.values_list("bairro", flat=True):
        bairros[bairro or BAIRRO_NAO_INFORMADO] += 1

    return {
        "consulta": {
            "id": consulta.pk,
            "titulo": consulta.titulo,
            "status": consulta.status,
            "dataInicio": consulta.data_inicio,
            "dataFim": consulta.data_fim,
        },
        "totalParticipacoes": total_participacoes,
        "resultadosPorPergunta": por_pergunta,
        "participacoesPorBairro": [{"bairro": b, "quantidade": q} for b, q in bairros.most_common()],
    }


# =========================
# Sugestões legislativas
# =========================
def criar_sugestao(*, tenant, dados: dict, cpf: str) -> SugestaoLegislativa:
    hash_ = _hash_cpf_obrigatorio(cpf)
    if SugestaoLegislativa.objects.filter(
        tenant=tenant, autor_cpf_hash=hash_, status=SugestaoLegislativa.Status.PENDENTE
    ).exists():
        raise Conflito("Você já possui uma sugestão aguardando análise")
    sugestao = SugestaoLegislativa.objects.create(
        tenant=tenant,
        autor_cpf_hash=hash_,
        status=SugestaoLegislativa.Status.PENDENTE,
        **dados,
    )
    logger.info("Sugestão legislativa %s criada na câmara %s", sugestao.pk, tenant.pk)
    return sugestao


def moderar_sugestao(
    sugestao: SugestaoLegislativa,
    *,
    status: str,
    motivo_recusa: str = "",
    parlamentar_responsavel=None,
    usuario=None,
) -> SugestaoLegislativa:
    if sugestao.status == SugestaoLegislativa.Status.CONVERTIDA:
        raise Conflito("Sugestão já convertida em proposição")
    if status == SugestaoLegislativa.Status.RECUSADA and not (motivo_recusa or "").strip():
        raise DadosInvalidos("Informe o motivo da recusa", details={"motivo_recusa": ["Campo obrigatório."]})

    antes = sugestao.status
    sugestao.status = status
    sugestao.motivo_recusa = (motivo_recusa or "").strip() if status == SugestaoLegislativa.Status.RECUSADA else ""
    if parlamentar_responsavel is not None:
        sugestao.parlamentar_responsavel = parlamentar_responsavel
    sugestao.save()
    registrar_auditoria(
        tenant=sugestao.tenant,
        modulo=MODULO,
        evento="SUGESTAO_MODERADA",
        entidade="SugestaoLegislativa",
        entidade_id=sugestao.pk,
        usuario=usuario,
        antes={"status": antes},
        depois={"status": status},
    )
    return sugestao


@transaction.atomic
def apoiar_sugestao(sugestao: SugestaoLegislativa, *, nome: str, cpf: str, email: str = "") -> ApoioSugestao:
    if sugestao.status != SugestaoLegislativa.Status.ACEITA:
        raise Conflito("Sugestão não está aberta para apoio")
    hash_ = _hash_cpf_obrigatorio(cpf)
    if sugestao.apoios.filter(cpf_hash=hash_).exists():
        raise Conflito("Você já apoiou esta sugestão")
    try:
        with transaction.atomic():
            apoio = ApoioSugestao.objects.create(sugestao=sugestao, nome=nome.strip(), email=(email or "").strip(), cpf_hash=hash_)
    except IntegrityError:
        raise Conflito("Você já apoiou esta sugestão")
    SugestaoLegislativa.objects.filter(pk=sugestao.pk).update(total_apoios=F("total_apoios") + 1)
    sugestao.refresh_from_db(fields=["total_apoios"])
    return apoio


@transaction.atomic
def remover_apoio(sugestao: SugestaoLegislativa, *, cpf: str) -> SugestaoLegislativa:
    apoio = sugestao.apoios.filter(cpf_hash=cpf_hash(cpf)).first() if cpf_valido(cpf) else None
    if apoio is None:
        raise NaoEncontrado("Apoio")
    apoio.delete()
    SugestaoLegislativa.objects.filter(pk=sugestao.pk, total_apoios__gt=0).update(total_apoios=F("total_apoios") - 1)
    sugestao.refresh_from_db(fields=["total_apoios"])
    return sugestao


@transaction.atomic
def converter_em_proposicao(sugestao: SugestaoLegislativa, *, tipo: str, autor=None, usuario=None):
    if sugestao.status == SugestaoLegislativa.Status.CONVERTIDA:
        raise Conflito("Sugestão já convertida em proposição")
    if sugestao.status == SugestaoLegislativa.Status.RECUSADA:
        raise Conflito("Sugestões recusadas não podem ser convertidas")

    proposicao = criar_proposicao(
        tenant=sugestao.tenant,
        dados={
            "tipo": tipo,
            "titulo": sugestao.titulo,
            "ementa": sugestao.descricao,
            "texto": f"{sugestao.descricao}\n\nJUSTIFICATIVA:\n{sugestao.justificativa}",
            "justificativa": sugestao.justificativa,
            "autor": autor or sugestao.parlamentar_responsavel,
        },
        usuario=usuario,
    )
    sugestao.status = SugestaoLegislativa.Status.CONVERTIDA
    sugestao.proposicao = proposicao
    sugestao.save(update_fields=["status", "proposicao", "atualizado_em"])
    publicar_evento_transparencia(
        tenant=sugestao.tenant,
        modulo=MODULO,
        tipo_evento="SUGESTAO_CONVERTIDA",
        titulo=f"Sugestão cidadã convertida em {proposicao.identificacao}",
        descricao=sugestao.titulo[:500],
        referencia=f"sugestao:{sugestao.pk}",
        dados={"sugestaoId": sugestao.pk, "proposicaoId": proposicao.pk},
    )
    logger.info("Sugestão %s convertida em %s", sugestao.pk, proposicao.identificacao)
    return proposicao


def sugestoes_publicas(tenant):
    return SugestaoLegislativa.objects.filter(
        tenant=tenant,
        status__in=[SugestaoLegislativa.Status.ACEITA, SugestaoLegislativa.Status.CONVERTIDA],
    )


def estatisticas(tenant) -> dict:
    sugestoes = SugestaoLegislativa.objects.filter(tenant=tenant)
    por_status = {s.value: 0 for s in SugestaoLegislativa.Status}
    for row in sugestoes.values("status").annotate(total=Count("id")).order_by():
        por_status[row["status"]] = row["total"]
    por_categoria = {
        row["categoria"]: row["total"] for row in sugestoes.values("categoria").annotate(total=Count("id")).order_by()
    }
    consultas = ConsultaPublica.objects.filter(tenant=tenant)
    return {
        "sugestoes": {
            "total": sum(por_status.values()),
            "porStatus": por_status,
            "porCategoria": por_categoria,
            "maisApoiadas": list(
                sugestoes.filter(status=SugestaoLegislativa.Status.ACEITA)
                .order_by("-total_apoios")
                .values("id", "titulo", "total_apoios")[:5]
            ),
        },
        "consultas": {
            "total": consultas.count(),
            "abertas": consultas.filter(status=ConsultaPublica.Status.ABERTA).count(),
            "participacoes": ParticipacaoConsulta.objects.filter(consulta__tenant=tenant).count(),
        },
    }
