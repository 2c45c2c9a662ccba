from __future__ import annotations

import logging
import re

from django.db import transaction
from django.db.models import F

from apps.core.api import DadosInvalidos

from .models import ConfiguracaoNomenclatura, SequenciaNumeracao, Sessao

logger = logging.getLogger(__name__)

PLACEHOLDERS_VALIDOS = {"numero_sessao", "tipo_sessao", "legislatura", "periodo", "ano"}
_PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-zA-Z_]+)\s*\}\}")


def formatar_ordinal(numero: int, *, feminino: bool = True) -> str:
    return f"{numero}ª" if feminino else f"{numero}º"


def obter_configuracao(tenant) -> ConfiguracaoNomenclatura:
    config, _ = ConfiguracaoNomenclatura.objects.get_or_create(tenant=tenant)
    return config


def validar_template(template: str) -> None:
    if not (template or "").strip():
        raise DadosInvalidos("Template do título não pode ser vazio")
    for nome in _PLACEHOLDER_RE.findall(template):
        if nome not in PLACEHOLDERS_VALIDOS:
            raise DadosInvalidos(f"Placeholder inválido: {{{{{nome}}}}}")


def atualizar_configuracao(tenant, dados: dict) -> ConfiguracaoNomenclatura:
    config = obter_configuracao(tenant)
    if "template_titulo" in dados:
        validar_template(dados["template_titulo"])
    for campo, valor in dados.items():
        setattr(config, campo, valor)
    config.save()
    return config


def _chave_sequencia(config: ConfiguracaoNomenclatura, legislatura: int, ano: int) -> tuple[int, int]:
    return (
        legislatura if config.resetar_por_legislatura else 0,
        ano if config.resetar_por_ano else 0,
    )


@transaction.atomic
def proximo_numero_sessao(tenant, tipo: str, legislatura: int, ano: int, *, consumir: bool = True) -> int:
    """
    Devolve o próximo número da sequência (tenant, tipo, legislatura, ano).

    A linha da sequência fica bloqueada até o fim da transação; com
    ``consumir=False`` apenas consulta o número sem incrementar.
    """
    config = obter_configuracao(tenant)
    leg, ano_chave = _chave_sequencia(config, legislatura, ano)

    SequenciaNumeracao.objects.get_or_create(
        tenant=tenant, tipo_sessao=tipo, legislatura=leg, ano=ano_chave
    )
    sequencia = SequenciaNumeracao.objects.select_for_update().get(
        tenant=tenant, tipo_sessao=tipo, legislatura=leg, ano=ano_chave
    )
    if not consumir:
        return sequencia.proximo_numero

    SequenciaNumeracao.objects.filter(pk=sequencia.pk).update(ultimo_numero=F("ultimo_numero") + 1)
    sequencia.refresh_from_db(fields=["ultimo_numero"])
    return sequencia.ultimo_numero


def registrar_numero_manual(tenant, tipo: str, legislatura: int, ano: int, numero: int) -> None:
    """Avança a sequência quando a sessão recebe um número informado manualmente."""
    config = obter_configuracao(tenant)
    leg, ano_chave = _chave_sequencia(config, legislatura, ano)
    with transaction.atomic():
        sequencia, _ = SequenciaNumeracao.objects.select_for_update().get_or_create(
            tenant=tenant, tipo_sessao=tipo, legislatura=leg, ano=ano_chave
        )
        if numero > sequencia.ultimo_numero:
            sequencia.ultimo_numero = numero
            sequencia.save(update_fields=["ultimo_numero", "atualizado_em"])


def nome_tipo_sessao(tipo: str) -> str:
    try:
        return Sessao.Tipo(tipo).label
    except ValueError:
        return tipo


def gerar_titulo_sessao(tenant, tipo: str, legislatura: int, numero: int, periodo: int | None = None, ano: int | None = None) -> str:
    config = obter_configuracao(tenant)
    template = config.template_titulo

    if periodo:
        texto_periodo = f"{formatar_ordinal(periodo, feminino=False)} {config.nome_periodo}"
    else:
        texto_periodo = ""
        template = template.replace(" do {{periodo}}", "")

    valores = {
        "numero_sessao": str(numero),
        "tipo_sessao": nome_tipo_sessao(tipo),
        "legislatura": str(legislatura),
        "periodo": texto_periodo,
        "ano": str(ano or ""),
    }
    return _PLACEHOLDER_RE.sub(lambda m: valores.get(m.group(1), m.group(0)), template).strip()


def resetar_numeracao(tenant, tipo: str | None = None, legislatura: int | None = None, ano: int | None = None) -> int:
    qs = SequenciaNumeracao.objects.filter(tenant=tenant)
    if tipo:
        qs = qs.filter(tipo_sessao=tipo)
    if legislatura is not None:
        qs = qs.filter(legislatura=legislatura)
    if ano is not None:
        qs = qs.filter(ano=ano)
    total = qs.update(ultimo_numero=0)
    logger.info("Numeração de sessões reiniciada (%s sequências) na câmara %s", total, tenant.pk)
    return total


def estatisticas(tenant) -> dict:
    sequencias = list(SequenciaNumeracao.objects.filter(tenant=tenant).order_by("tipo_sessao", "-ano"))
    por_tipo: dict[str, int] = {}
    proximos: dict[str, int] = {}
    for seq in sequencias:
        por_tipo[seq.tipo_sessao] = por_tipo.get(seq.tipo_sessao, 0) + 1
        chave = f"{seq.tipo_sessao}-{seq.legislatura}-{seq.ano}"
        proximos[chave] = seq.proximo_numero
    return {
        "totalSequencias": len(sequencias),
        "sequenciasPorTipo": por_tipo,
        "proximosNumeros": proximos,
    }
