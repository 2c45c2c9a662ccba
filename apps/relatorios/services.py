from __future__ import annotations

import calendar
import logging
import time
from datetime import timedelta
from pathlib import Path

from django.conf import settings
from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.comissoes.models import Comissao
from apps.core.api import DadosInvalidos
from apps.core.exports import render_csv, render_pdf_table
from apps.core.services_auditoria import registrar_auditoria
from apps.parlamentares.models import Parlamentar
from apps.proposicoes.models import Proposicao, Tramitacao
from apps.sessoes.models import Sessao, Voto
from apps.transparencia.models import Publicacao

from .models import ExecucaoRelatorio, RelatorioAgendado

logger = logging.getLogger(__name__)

MODULO = "RELATORIOS"

_DIAS = {
    RelatorioAgendado.Frequencia.DIARIO: 1,
    RelatorioAgendado.Frequencia.SEMANAL: 7,
    RelatorioAgendado.Frequencia.QUINZENAL: 15,
}
_MESES = {
    RelatorioAgendado.Frequencia.MENSAL: 1,
    RelatorioAgendado.Frequencia.TRIMESTRAL: 3,
    RelatorioAgendado.Frequencia.SEMESTRAL: 6,
    RelatorioAgendado.Frequencia.ANUAL: 12,
}


# =========================
# Agenda
# =========================
def _somar_meses(dt, meses: int):
    mes = dt.month - 1 + meses
    ano = dt.year + mes // 12
    mes = mes % 12 + 1
    dia = min(dt.day, calendar.monthrange(ano, mes)[1])
    return dt.replace(year=ano, month=mes, day=dia)


def calcular_proxima_execucao(frequencia: str, base=None):
    """
    Próxima execução a partir de `base` (default: agora).
    Meses curtos ajustam o dia: 31/01 + 1 mês = 28/02 (ou 29/02).
    """
    base = base or timezone.now()
    if frequencia in _DIAS:
        return base + timedelta(days=_DIAS[frequencia])
    if frequencia in _MESES:
        return _somar_meses(base, _MESES[frequencia])
    raise DadosInvalidos(f"Frequência não suportada: {frequencia}")


def criar_relatorio(*, tenant, dados: dict, usuario=None) -> RelatorioAgendado:
    relatorio = RelatorioAgendado(tenant=tenant, **dados)
    if getattr(usuario, "is_authenticated", False):
        relatorio.criado_por = usuario
    if relatorio.proxima_execucao is None:
        relatorio.proxima_execucao = calcular_proxima_execucao(relatorio.frequencia)
    relatorio.save()
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="RELATORIO_AGENDADO",
        entidade="RelatorioAgendado",
        entidade_id=relatorio.pk,
        usuario=usuario,
        depois={"nome": relatorio.nome, "tipo": relatorio.tipo, "frequencia": relatorio.frequencia},
    )
    return relatorio


def atualizar_relatorio(relatorio: RelatorioAgendado, dados: dict) -> RelatorioAgendado:
    frequencia_antes = relatorio.frequencia
    for campo, valor in dados.items():
        setattr(relatorio, campo, valor)
    if relatorio.frequencia != frequencia_antes and "proxima_execucao" not in dados:
        relatorio.proxima_execucao = calcular_proxima_execucao(relatorio.frequencia, relatorio.ultima_execucao)
    relatorio.save()
    return relatorio


def pendentes(agora=None):
    agora = agora or timezone.now()
    return RelatorioAgendado.objects.filter(
        ativo=True,
        tenant__ativo=True,
        proxima_execucao__lte=agora,
    ).select_related("tenant")


# =========================
# Geração de dados
# =========================
def _ano(filtros: dict) -> int:
    try:
        return int((filtros or {}).get("ano") or timezone.localdate().year)
    except (TypeError, ValueError):
        raise DadosInvalidos("Filtro 'ano' inválido")


def _producao_legislativa(tenant, ano: int) -> dict:
    qs = Proposicao.objects.filter(tenant=tenant, ano=ano).select_related("autor")
    por_tipo = {r["tipo"]: r["total"] for r in qs.values("tipo").annotate(total=Count("id")).order_by()}
    por_status = {r["status"]: r["total"] for r in qs.values("status").annotate(total=Count("id")).order_by()}
    linhas = [
        [
            p.identificacao,
            p.titulo,
            p.autor.nome_exibicao if p.autor_id else "",
            p.get_status_display(),
            p.data_apresentacao.strftime("%d/%m/%Y"),
        ]
        for p in qs.order_by("tipo", "numero")
    ]
    return {
        "titulo": f"Produção Legislativa - {ano}",
        "cabecalhos": ["Proposição", "Título", "Autor", "Situação", "Apresentação"],
        "linhas": linhas,
        "resumo": {"ano": ano, "total": len(linhas), "porTipo": por_tipo, "porStatus": por_status},
    }


def _presenca_sessoes(tenant, ano: int) -> dict:
    sessoes = Sessao.objects.filter(tenant=tenant, data__year=ano, status=Sessao.Status.CONCLUIDA)
    filtro = Q(presencas_sessao__sessao__in=sessoes)
    parlamentares = (
        Parlamentar.objects.filter(tenant=tenant)
        .annotate(
            presentes=Count("presencas_sessao", filter=filtro & Q(presencas_sessao__presente=True)),
            ausentes=Count("presencas_sessao", filter=filtro & Q(presencas_sessao__presente=False)),
        )
        .filter(Q(presentes__gt=0) | Q(ausentes__gt=0))
    )
    ranking = []
    for p in parlamentares:
        total = p.presentes + p.ausentes
        percentual = round(p.presentes * 100 / total, 1) if total else 0
        ranking.append([p.nome_exibicao, p.partido, p.presentes, p.ausentes, percentual])
    ranking.sort(key=lambda linha: (-linha[4], linha[0]))
    return {
        "titulo": f"Presença nas Sessões - {ano}",
        "cabecalhos": ["Parlamentar", "Partido", "Presenças", "Ausências", "Percentual (%)"],
        "linhas": ranking,
        "resumo": {"ano": ano, "totalSessoes": sessoes.count()},
    }


def _votacoes(tenant, ano: int) -> dict:
    votos = Voto.objects.filter(sessao__tenant=tenant, sessao__data__year=ano)
    agregados = (
        votos.values("proposicao_id", "turno", "sessao__numero")
        .annotate(
            sim=Count("id", filter=Q(voto=Voto.Opcao.SIM)),
            nao=Count("id", filter=Q(voto=Voto.Opcao.NAO)),
            abstencao=Count("id", filter=Q(voto=Voto.Opcao.ABSTENCAO)),
        )
        .order_by("proposicao_id", "turno")
    )
    proposicoes = Proposicao.objects.in_bulk([a["proposicao_id"] for a in agregados])
    linhas = [
        [
            proposicoes[a["proposicao_id"]].identificacao,
            f"{a['sessao__numero']}ª",
            a["turno"],
            a["sim"],
            a["nao"],
            a["abstencao"],
        ]
        for a in agregados
    ]
    por_voto = {r["voto"]: r["total"] for r in votos.values("voto").annotate(total=Count("id")).order_by()}
    return {
        "titulo": f"Votações - {ano}",
        "cabecalhos": ["Proposição", "Sessão", "Turno", "Sim", "Não", "Abstenção"],
        "linhas": linhas,
        "resumo": {"ano": ano, "totalVotos": sum(por_voto.values()), "porVoto": por_voto},
    }


def _tramitacao(tenant, ano: int) -> dict:
    qs = Tramitacao.objects.filter(proposicao__tenant=tenant, data__year=ano).select_related("proposicao")
    por_unidade = {r["unidade"]: r["total"] for r in qs.values("unidade").annotate(total=Count("id")).order_by()}
    linhas = [
        [
            timezone.localtime(t.data).strftime("%d/%m/%Y %H:%M"),
            t.proposicao.identificacao,
            t.unidade,
            t.acao,
            t.get_status_display() if t.status else "",
        ]
        for t in qs.order_by("data", "id")
    ]
    return {
        "titulo": f"Tramitação - {ano}",
        "cabecalhos": ["Data", "Proposição", "Unidade", "Ação", "Situação"],
        "linhas": linhas,
        "resumo": {"ano": ano, "total": len(linhas), "porUnidade": por_unidade},
    }


def _comissoes(tenant, ano: int) -> dict:
    comissoes = (
        Comissao.objects.filter(tenant=tenant)
        .annotate(
            reunioes_ano=Count("reunioes", filter=Q(reunioes__ano=ano), distinct=True),
            pareceres_ano=Count("pareceres", filter=Q(pareceres__criado_em__year=ano), distinct=True),
        )
        .order_by("nome")
    )
    linhas = [[c.nome, c.sigla, c.reunioes_ano, c.pareceres_ano, "Sim" if c.ativa else "Não"] for c in comissoes]
    return {
        "titulo": f"Comissões - {ano}",
        "cabecalhos": ["Comissão", "Sigla", "Reuniões", "Pareceres", "Ativa"],
        "linhas": linhas,
        "resumo": {
            "ano": ano,
            "totalComissoes": len(linhas),
            "totalPareceres": sum(linha[3] for linha in linhas),
        },
    }


def _transparencia(tenant, ano: int) -> dict:
    agregados = (
        Publicacao.objects.filter(tenant=tenant, ano=ano, publicada=True)
        .values("tipo")
        .annotate(total=Count("id"), visualizacoes=Sum("visualizacoes"))
        .order_by("tipo")
    )
    rotulos = dict(Publicacao.Tipo.choices)
    linhas = [[rotulos.get(a["tipo"], a["tipo"]), a["total"], a["visualizacoes"] or 0] for a in agregados]
    return {
        "titulo": f"Transparência - {ano}",
        "cabecalhos": ["Tipo", "Publicações", "Visualizações"],
        "linhas": linhas,
        "resumo": {"ano": ano, "totalPublicacoes": sum(linha[1] for linha in linhas)},
    }


GERADORES = {
    RelatorioAgendado.Tipo.PRODUCAO_LEGISLATIVA: _producao_legislativa,
    RelatorioAgendado.Tipo.PRESENCA_SESSOES: _presenca_sessoes,
    RelatorioAgendado.Tipo.VOTACOES: _votacoes,
    RelatorioAgendado.Tipo.TRAMITACAO: _tramitacao,
    RelatorioAgendado.Tipo.COMISSOES: _comissoes,
    RelatorioAgendado.Tipo.TRANSPARENCIA: _transparencia,
}


def gerar_dados_relatorio(tenant, tipo: str, filtros: dict | None = None) -> dict:
    gerador = GERADORES.get(tipo)
    if gerador is None:
        raise DadosInvalidos(f"Tipo de relatório não suportado: {tipo}")
    return gerador(tenant, _ano(filtros or {}))


# =========================
# Execução
# =========================
def _diretorio(tenant) -> Path:
    base = Path(settings.RELATORIOS_DIR) / tenant.slug
    base.mkdir(parents=True, exist_ok=True)
    return base


def caminho_arquivo(execucao: ExecucaoRelatorio) -> Path:
    return Path(settings.RELATORIOS_DIR) / execucao.arquivo


def renderizar(relatorio: RelatorioAgendado, dados: dict) -> bytes:
    if relatorio.formato == RelatorioAgendado.Formato.CSV:
        return render_csv(dados["cabecalhos"], dados["linhas"])
    return render_pdf_table(
        title=dados["titulo"],
        subtitle=relatorio.tenant.nome,
        headers=dados["cabecalhos"],
        rows=dados["linhas"],
        filtros=relatorio.descricao,
        printed_by="agendamento",
    )


def executar_relatorio(relatorio: RelatorioAgendado, *, usuario=None, agendado: bool = False) -> ExecucaoRelatorio:
    """
    Gera o arquivo do relatório e registra a execução.
    Falhas viram execução com status ERRO; a exceção não é propagada.
    """
    started = time.monotonic()
    execucao = ExecucaoRelatorio(
        relatorio=relatorio,
        executado_por=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    try:
        dados = gerar_dados_relatorio(relatorio.tenant, relatorio.tipo, relatorio.filtros)
        conteudo = renderizar(relatorio, dados)
        nome = f"{relatorio.pk}_{timezone.now():%Y%m%d%H%M%S}.{relatorio.formato.lower()}"
        (_diretorio(relatorio.tenant) / nome).write_bytes(conteudo)
        execucao.arquivo = f"{relatorio.tenant.slug}/{nome}"
        execucao.status = ExecucaoRelatorio.Status.SUCESSO
    except Exception as exc:
        execucao.status = ExecucaoRelatorio.Status.ERRO
        execucao.erro = str(exc)
        logger.exception("Falha ao gerar o relatório %s", relatorio.pk)

    execucao.tempo_execucao_ms = int((time.monotonic() - started) * 1000)
    execucao.save()

    relatorio.ultima_execucao = timezone.now()
    campos = ["ultima_execucao", "atualizado_em"]
    if agendado:
        relatorio.proxima_execucao = calcular_proxima_execucao(relatorio.frequencia, relatorio.ultima_execucao)
        campos.append("proxima_execucao")
    relatorio.save(update_fields=campos)

    registrar_auditoria(
        tenant=relatorio.tenant,
        modulo=MODULO,
        evento="RELATORIO_EXECUTADO" if execucao.status == ExecucaoRelatorio.Status.SUCESSO else "RELATORIO_ERRO",
        entidade="ExecucaoRelatorio",
        entidade_id=execucao.pk,
        usuario=usuario,
        depois={"relatorio": relatorio.pk, "status": execucao.status, "erro": execucao.erro[:400]},
    )
    return execucao


def executar_pendentes(agora=None) -> int:
    total = 0
    for relatorio in pendentes(agora):
        executar_relatorio(relatorio, agendado=True)
        total += 1
    if total:
        logger.info("%s relatório(s) agendado(s) executado(s)", total)
    return total
