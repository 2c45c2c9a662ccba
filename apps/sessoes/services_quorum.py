from __future__ import annotations

import math
from decimal import Decimal

from django.db import transaction

from apps.parlamentares.models import Mandato, Parlamentar

from .models import ConfiguracaoQuorum

Aplicacao = ConfiguracaoQuorum.Aplicacao
TipoQuorum = ConfiguracaoQuorum.TipoQuorum
Base = ConfiguracaoQuorum.Base

CONFIGURACOES_PADRAO = [
    {
        "aplicacao": Aplicacao.INSTALACAO_SESSAO,
        "nome": "Quórum de instalação",
        "descricao": "Presença mínima para abertura da sessão",
        "tipo_quorum": TipoQuorum.MAIORIA_ABSOLUTA,
        "base_calculo": Base.TOTAL_MEMBROS,
    },
    {
        "aplicacao": Aplicacao.VOTACAO_SIMPLES,
        "nome": "Votação por maioria simples",
        "descricao": "Maioria dos presentes",
        "tipo_quorum": TipoQuorum.MAIORIA_SIMPLES,
        "base_calculo": Base.PRESENTES,
    },
    {
        "aplicacao": Aplicacao.VOTACAO_ABSOLUTA,
        "nome": "Votação por maioria absoluta",
        "descricao": "Maioria dos membros da Câmara",
        "tipo_quorum": TipoQuorum.MAIORIA_ABSOLUTA,
        "base_calculo": Base.TOTAL_MEMBROS,
    },
    {
        "aplicacao": Aplicacao.VOTACAO_QUALIFICADA,
        "nome": "Votação qualificada",
        "descricao": "Dois terços dos membros da Câmara",
        "tipo_quorum": TipoQuorum.DOIS_TERCOS,
        "base_calculo": Base.TOTAL_MEMBROS,
        "requerer_votacao_nominal": True,
    },
    {
        "aplicacao": Aplicacao.VOTACAO_URGENCIA,
        "nome": "Regime de urgência",
        "descricao": "Maioria absoluta para matérias em urgência",
        "tipo_quorum": TipoQuorum.MAIORIA_ABSOLUTA,
        "base_calculo": Base.TOTAL_MEMBROS,
    },
    {
        "aplicacao": Aplicacao.VOTACAO_COMISSAO,
        "nome": "Votação em comissão",
        "descricao": "Maioria dos membros presentes da comissão",
        "tipo_quorum": TipoQuorum.MAIORIA_SIMPLES,
        "base_calculo": Base.PRESENTES,
    },
    {
        "aplicacao": Aplicacao.DERRUBADA_VETO,
        "nome": "Derrubada de veto",
        "descricao": "Maioria absoluta para rejeitar veto do Executivo",
        "tipo_quorum": TipoQuorum.MAIORIA_ABSOLUTA,
        "base_calculo": Base.TOTAL_MEMBROS,
        "requerer_votacao_nominal": True,
        "mensagem_aprovacao": "Veto derrubado",
        "mensagem_rejeicao": "Veto mantido",
    },
]

TIPOS_QUALIFICADOS = {"PROJETO_EMENDA_LEI_ORGANICA", "PROJETO_LEI_COMPLEMENTAR"}
TIPOS_ABSOLUTOS = {"PROJETO_LEI", "PROJETO_RESOLUCAO", "PROJETO_DECRETO_LEGISLATIVO"}


# =========================
# Quórum simplificado (SIMPLES / ABSOLUTA / QUALIFICADA)
# =========================
def calcular_quorum(tipo: str, total: int, presentes: int) -> dict:
    tipo = (tipo or "SIMPLES").upper()
    if tipo == "ABSOLUTA":
        necessario = total // 2 + 1
        minimo_aprovacao = necessario
    elif tipo == "QUALIFICADA":
        necessario = math.ceil(total * 2 / 3)
        minimo_aprovacao = necessario
    else:
        necessario = total // 2 + 1
        minimo_aprovacao = presentes // 2 + 1

    return {
        "tipo": tipo,
        "total": total,
        "presentes": presentes,
        "necessario": necessario,
        "minimoAprovacao": minimo_aprovacao,
        "temQuorum": presentes >= necessario,
    }


# =========================
# Quórum configurável
# =========================
@transaction.atomic
def criar_configuracoes_padrao(tenant) -> list[ConfiguracaoQuorum]:
    criadas = []
    for ordem, padrao in enumerate(CONFIGURACOES_PADRAO, start=1):
        dados = dict(padrao)
        aplicacao = dados.pop("aplicacao")
        config, created = ConfiguracaoQuorum.objects.get_or_create(
            tenant=tenant,
            aplicacao=aplicacao,
            defaults={**dados, "ordem": ordem},
        )
        if created:
            criadas.append(config)
    return criadas


def obter_configuracao(tenant, aplicacao: str) -> ConfiguracaoQuorum:
    config = ConfiguracaoQuorum.objects.filter(tenant=tenant, aplicacao=aplicacao, ativo=True).first()
    if config is not None:
        return config
    # sem configuração cadastrada: maioria simples dos presentes
    return ConfiguracaoQuorum(
        tenant=tenant,
        aplicacao=aplicacao,
        nome="Padrão",
        tipo_quorum=TipoQuorum.MAIORIA_SIMPLES,
        base_calculo=Base.PRESENTES,
        mensagem_aprovacao="Aprovado",
        mensagem_rejeicao="Rejeitado por não atingir quórum",
    )


def total_membros(tenant, legislatura=None) -> int:
    parlamentares = Parlamentar.objects.filter(tenant=tenant, ativo=True)
    if legislatura is None:
        return parlamentares.count()
    mandatos = Mandato.objects.filter(legislatura=legislatura)
    if not mandatos.exists():
        return parlamentares.count()
    return parlamentares.filter(mandatos__legislatura=legislatura, mandatos__ativo=True).distinct().count()


def total_mandatos(legislatura) -> int:
    if legislatura is None:
        return 0
    return Mandato.objects.filter(legislatura=legislatura).count()


def total_base(config: ConfiguracaoQuorum, *, presentes: int, legislatura=None) -> int:
    if config.base_calculo == Base.TOTAL_MEMBROS:
        return total_membros(config.tenant, legislatura)
    if config.base_calculo == Base.TOTAL_MANDATOS:
        return total_mandatos(legislatura) or total_membros(config.tenant, legislatura)
    return presentes


def calcular_votos_necessarios(tipo_quorum: str, base: int) -> int:
    if tipo_quorum == TipoQuorum.DOIS_TERCOS:
        return math.ceil(base * 2 / 3)
    if tipo_quorum == TipoQuorum.TRES_QUINTOS:
        return math.ceil(base * 3 / 5)
    if tipo_quorum == TipoQuorum.UNANIMIDADE:
        return base
    return base // 2 + 1


def calcular_resultado_votacao(
    config: ConfiguracaoQuorum,
    *,
    sim: int,
    nao: int,
    abstencao: int = 0,
    presentes: int,
    legislatura=None,
) -> dict:
    base = total_base(config, presentes=presentes, legislatura=legislatura)
    necessarios = calcular_votos_necessarios(config.tipo_quorum, base)
    contra = nao + (abstencao if config.abstencao_conta_contra else 0)

    tipo = config.tipo_quorum
    if tipo == TipoQuorum.MAIORIA_SIMPLES:
        aprovado = sim > contra
        detalhes = f"Maioria simples: {sim} votos favoráveis contra {contra} contrários"
    elif tipo == TipoQuorum.UNANIMIDADE:
        aprovado = presentes > 0 and sim == presentes and nao == 0 and abstencao == 0
        detalhes = f"Unanimidade: {sim} de {presentes} presentes votaram favoravelmente"
    else:
        aprovado = sim >= necessarios
        detalhes = f"{config.get_tipo_quorum_display()}: {sim} votos favoráveis de {necessarios} necessários (base {base})"

    if not aprovado and config.percentual_minimo is not None and base > 0:
        aprovado = Decimal(sim * 100) / Decimal(base) >= config.percentual_minimo
    if not aprovado and config.numero_minimo is not None:
        aprovado = sim >= config.numero_minimo

    if aprovado:
        mensagem = config.mensagem_aprovacao or "Aprovado"
    else:
        mensagem = config.mensagem_rejeicao or "Rejeitado por não atingir quórum"

    return {
        "aprovado": aprovado,
        "mensagem": mensagem,
        "detalhes": detalhes,
        "votos": {"sim": sim, "nao": nao, "abstencao": abstencao, "contra": contra, "presentes": presentes},
        "quorum": {
            "votosNecessarios": necessarios,
            "totalBase": base,
            "percentualAtingido": round(sim * 100 / base, 2) if base else 0.0,
        },
        "requererVotacaoNominal": requer_votacao_nominal(config),
    }


def verificar_quorum_instalacao(tenant, *, presentes: int, legislatura=None) -> dict:
    config = ConfiguracaoQuorum.objects.filter(
        tenant=tenant, aplicacao=Aplicacao.INSTALACAO_SESSAO, ativo=True
    ).first()
    if config is None:
        config = ConfiguracaoQuorum(
            tenant=tenant,
            aplicacao=Aplicacao.INSTALACAO_SESSAO,
            nome="Quórum de instalação",
            tipo_quorum=TipoQuorum.MAIORIA_ABSOLUTA,
            base_calculo=Base.TOTAL_MEMBROS,
        )
    base = total_base(config, presentes=presentes, legislatura=legislatura)
    necessarios = calcular_votos_necessarios(config.tipo_quorum, base)
    if config.numero_minimo is not None:
        necessarios = max(necessarios, config.numero_minimo)
    ok = presentes >= necessarios
    return {
        "ok": ok,
        "presentes": presentes,
        "necessarios": necessarios,
        "totalBase": base,
        "mensagem": "Quórum de instalação atingido"
        if ok
        else f"Quórum insuficiente: {presentes} presentes de {necessarios} necessários",
    }


def determinar_aplicacao_quorum(
    tipo_proposicao: str,
    *,
    urgencia: bool = False,
    veto: bool = False,
    comissao: bool = False,
) -> str:
    if veto or tipo_proposicao == "VETO":
        return Aplicacao.DERRUBADA_VETO
    if comissao:
        return Aplicacao.VOTACAO_COMISSAO
    if urgencia:
        return Aplicacao.VOTACAO_URGENCIA
    if tipo_proposicao in TIPOS_QUALIFICADOS:
        return Aplicacao.VOTACAO_QUALIFICADA
    if tipo_proposicao in TIPOS_ABSOLUTOS:
        return Aplicacao.VOTACAO_ABSOLUTA
    return Aplicacao.VOTACAO_SIMPLES


def requer_votacao_nominal(config: ConfiguracaoQuorum) -> bool:
    return bool(
        config.requerer_votacao_nominal
        or config.aplicacao in {Aplicacao.VOTACAO_QUALIFICADA, Aplicacao.DERRUBADA_VETO}
    )
