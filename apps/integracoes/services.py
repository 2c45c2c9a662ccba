from __future__ import annotations

import logging
import secrets

from django.utils import timezone

from apps.core.api import AcessoNegado, Conflito, NaoAutenticado
from apps.core.security.cripto import sha256_hex
from apps.core.services_auditoria import registrar_auditoria
from apps.core.services_transparencia import publicar_evento_transparencia

from .models import IntegrationToken

logger = logging.getLogger(__name__)

MODULO = "INTEGRACOES"
TOKEN_PREFIX = "cml_"
PREFIXO_LEN = 12


def _gerar_token() -> tuple[str, str, str]:
    """Retorna (token em claro, prefixo, hash). Só o hash é persistido."""
    plain = f"{TOKEN_PREFIX}{secrets.token_urlsafe(32)}"
    return plain, plain[:PREFIXO_LEN], sha256_hex(plain)


def _nome_em_uso(tenant, nome: str, exclude_pk=None) -> bool:
    qs = IntegrationToken.objects.filter(tenant=tenant, nome__iexact=nome)
    if exclude_pk:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


def criar_token(*, tenant, dados: dict, usuario=None) -> tuple[IntegrationToken, str]:
    if _nome_em_uso(tenant, dados["nome"]):
        raise Conflito("Já existe um token com este nome")
    plain, prefixo, token_hash = _gerar_token()
    token = IntegrationToken.objects.create(
        tenant=tenant,
        prefixo=prefixo,
        token_hash=token_hash,
        criado_por=usuario if getattr(usuario, "is_authenticated", False) else None,
        **dados,
    )
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="TOKEN_CRIADO",
        entidade="IntegrationToken",
        entidade_id=token.pk,
        usuario=usuario,
        depois={"nome": token.nome, "permissoes": token.permissoes, "prefixo": prefixo},
    )
    publicar_evento_transparencia(
        tenant=tenant,
        modulo=MODULO,
        tipo_evento="TOKEN_CRIADO",
        titulo=f"Token de integração {token.nome} cadastrado",
        descricao=", ".join(token.permissoes),
        referencia=prefixo,
        dados={"permissoes": token.permissoes},
        publico=False,
    )
    logger.info("Token de integração %s criado na câmara %s", prefixo, tenant.pk)
    return token, plain


def atualizar_token(token: IntegrationToken, dados: dict, *, usuario=None) -> IntegrationToken:
    nome = dados.get("nome")
    if nome and _nome_em_uso(token.tenant, nome, exclude_pk=token.pk):
        raise Conflito("Já existe um token com este nome")
    antes = {"ativo": token.ativo, "permissoes": token.permissoes}
    for campo, valor in dados.items():
        setattr(token, campo, valor)
    token.save()
    registrar_auditoria(
        tenant=token.tenant,
        modulo=MODULO,
        evento="TOKEN_ATUALIZADO",
        entidade="IntegrationToken",
        entidade_id=token.pk,
        usuario=usuario,
        antes=antes,
        depois={"ativo": token.ativo, "permissoes": token.permissoes},
    )
    return token


def excluir_token(token: IntegrationToken, *, usuario=None) -> None:
    tenant, pk, prefixo = token.tenant, token.pk, token.prefixo
    token.delete()
    registrar_auditoria(
        tenant=tenant,
        modulo=MODULO,
        evento="TOKEN_EXCLUIDO",
        entidade="IntegrationToken",
        entidade_id=pk,
        usuario=usuario,
        antes={"prefixo": prefixo},
    )


def rotacionar_token(token: IntegrationToken, *, usuario=None) -> str:
    plain, prefixo, token_hash = _gerar_token()
    antigo = token.prefixo
    token.prefixo = prefixo
    token.token_hash = token_hash
    token.save(update_fields=["prefixo", "token_hash", "atualizado_em"])
    registrar_auditoria(
        tenant=token.tenant,
        modulo=MODULO,
        evento="TOKEN_ROTACIONADO",
        entidade="IntegrationToken",
        entidade_id=token.pk,
        usuario=usuario,
        antes={"prefixo": antigo},
        depois={"prefixo": prefixo},
    )
    logger.info("Token de integração %s rotacionado para %s", antigo, prefixo)
    return plain


def extrair_bearer(request) -> str:
    header = request.META.get("HTTP_AUTHORIZATION", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return value.strip()


def autenticar_token(raw: str, *, permissao: str | None = None, ip: str = "", agente: str = "") -> IntegrationToken:
    """
    Valida o token em claro contra o hash salvo.
    Token ausente, desconhecido ou inativo: 401. Sem a permissão pedida: 403.
    """
    raw = (raw or "").strip()
    if not raw:
        raise NaoAutenticado("Token de integração não informado")

    token = (
        IntegrationToken.objects.select_related("tenant")
        .filter(token_hash=sha256_hex(raw), ativo=True)
        .first()
    )
    if token is None or not token.tenant.ativo:
        raise NaoAutenticado("Token de integração inválido")
    if permissao and not token.permite(permissao):
        raise AcessoNegado("Token sem permissão para este recurso")

    agora = timezone.now()
    IntegrationToken.objects.filter(pk=token.pk).update(
        ultimo_uso_em=agora,
        ultimo_uso_ip=ip or None,
        ultimo_uso_agente=(agente or "")[:255],
    )
    token.ultimo_uso_em = agora
    return token
