"""
Resolução de câmara (tenant) por host e operações de cadastro.

As buscas por identificador ficam memoizadas no cache do Django por
CAMARA_TENANT_CACHE_TTL segundos. A invalidação usa um contador de geração:
qualquer escrita incrementa a geração e todas as chaves antigas deixam de ser lidas.
"""
from __future__ import annotations

import ipaddress
import logging

from django.conf import settings
from django.core.cache import cache
from django.utils.text import slugify

from apps.core.api import Conflito, DadosInvalidos, NaoEncontrado

from .models import Tenant

logger = logging.getLogger(__name__)

TIPOS_IDENTIFICADOR = ("domain", "subdomain", "slug", "default")

_GERACAO_KEY = "tenants:geracao"
_MISS = "__sem_tenant__"


# =========================
# Host -> identificador
# =========================
def normalizar_host(raw_host: str) -> str:
    host = (raw_host or "").strip().lower()
    if "," in host:
        host = host.split(",", 1)[0].strip()
    if host.startswith("[") and "]" in host:
        return host[1: host.index("]")]
    if host.count(":") == 1:
        host = host.split(":", 1)[0].strip()
    return host.strip(".")


def normalizar_slug(valor: str) -> str:
    return slugify(valor or "").strip("-")[:90]


def _eh_ip(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _default_slug() -> str:
    return (getattr(settings, "CAMARA_DEFAULT_TENANT_SLUG", "") or "").strip().lower()


def identificar_host(hostname: str) -> tuple[str, str]:
    """
    Retorna (tipo, identificador):
      - host do app, localhost ou IP -> ("default", slug padrão)
      - <sub>.<dominio raiz> -> ("subdomain", sub)
      - qualquer outro -> ("domain", host)
    """
    host = normalizar_host(hostname)
    app_hosts = {normalizar_host(h) for h in (getattr(settings, "CAMARA_APP_HOSTS", []) or []) if h}
    if not host or host in app_hosts or host == "localhost" or _eh_ip(host):
        return "default", _default_slug()

    root = (getattr(settings, "CAMARA_PUBLIC_ROOT_DOMAIN", "") or "").strip().lower().strip(".")
    if root:
        if host in {root, f"www.{root}"}:
            return "default", _default_slug()
        suffix = f".{root}"
        if host.endswith(suffix):
            sub = host[: -len(suffix)].strip(".")
            reserved = {
                s.strip().lower()
                for s in (getattr(settings, "CAMARA_RESERVED_SUBDOMAINS", []) or [])
                if s and s.strip()
            }
            if sub and "." not in sub and sub not in reserved:
                return "subdomain", sub
            return "default", _default_slug()

    return "domain", host


# =========================
# Cache
# =========================
def _geracao() -> int:
    geracao = cache.get(_GERACAO_KEY)
    if geracao is None:
        geracao = 1
        cache.add(_GERACAO_KEY, geracao, timeout=None)
    return int(geracao)


def _cache_key(tipo: str, identificador: str) -> str:
    return f"tenants:{_geracao()}:{tipo}:{identificador}"


def limpar_cache_tenants() -> None:
    try:
        cache.incr(_GERACAO_KEY)
    except ValueError:
        cache.set(_GERACAO_KEY, 2, timeout=None)


def _ttl() -> int:
    return int(getattr(settings, "CAMARA_TENANT_CACHE_TTL", 300) or 300)


def buscar_tenant(tipo: str, identificador: str) -> Tenant | None:
    if tipo not in TIPOS_IDENTIFICADOR:
        raise ValueError(f"Tipo de identificador inválido: {tipo}")
    identificador = (identificador or "").strip().lower()
    if not identificador:
        return None

    key = _cache_key(tipo, identificador)
    cached = cache.get(key)
    if cached == _MISS:
        return None
    if cached is not None:
        return cached

    qs = Tenant.objects.filter(ativo=True)
    if tipo == "domain":
        tenant = qs.filter(dominio__iexact=identificador).first()
    elif tipo == "subdomain":
        tenant = qs.filter(subdominio__iexact=identificador).first()
    else:
        tenant = qs.filter(slug=identificador).first()

    logger.debug("tenant cache miss %s:%s -> %s", tipo, identificador, getattr(tenant, "slug", None))
    cache.set(key, tenant if tenant is not None else _MISS, timeout=_ttl())
    return tenant


def resolver_tenant_por_host(hostname: str) -> Tenant | None:
    tipo, identificador = identificar_host(hostname)

    tenant = buscar_tenant(tipo, identificador)

    if tenant is None and tipo != "default":
        tenant = buscar_tenant("slug", normalizar_slug(identificador))

    if tenant is None:
        tenant = buscar_tenant("default", _default_slug())

    return tenant


# =========================
# Consultas
# =========================
def buscar_tenant_por_id(tenant_id, incluir_inativos: bool = False) -> Tenant | None:
    qs = Tenant.objects.all()
    if not incluir_inativos:
        qs = qs.filter(ativo=True)
    return qs.filter(pk=tenant_id).first()


def listar_tenants_ativos():
    return Tenant.objects.filter(ativo=True).order_by("nome")


def slug_existe(slug: str, excluir_id=None) -> bool:
    qs = Tenant.objects.filter(slug=normalizar_slug(slug))
    if excluir_id:
        qs = qs.exclude(pk=excluir_id)
    return qs.exists()


def dominio_existe(dominio: str, excluir_id=None) -> bool:
    qs = Tenant.objects.filter(dominio__iexact=(dominio or "").strip())
    if excluir_id:
        qs = qs.exclude(pk=excluir_id)
    return qs.exists()


def subdominio_existe(subdominio: str, excluir_id=None) -> bool:
    qs = Tenant.objects.filter(subdominio__iexact=(subdominio or "").strip())
    if excluir_id:
        qs = qs.exclude(pk=excluir_id)
    return qs.exists()


# =========================
# Escrita
# =========================
def _checar_unicidade(dados: dict, excluir_id=None) -> None:
    if dados.get("slug") and slug_existe(dados["slug"], excluir_id):
        raise Conflito("Já existe uma câmara com este slug")
    if dados.get("dominio") and dominio_existe(dados["dominio"], excluir_id):
        raise Conflito("Já existe uma câmara com este domínio")
    if dados.get("subdominio") and subdominio_existe(dados["subdominio"], excluir_id):
        raise Conflito("Já existe uma câmara com este subdomínio")


def _normalizar_dados(dados: dict) -> dict:
    dados = dict(dados)
    if "slug" in dados:
        dados["slug"] = normalizar_slug(dados["slug"])
    for campo in ("dominio", "subdominio"):
        if campo in dados:
            dados[campo] = normalizar_host(dados[campo] or "") or None
    if dados.get("estado"):
        dados["estado"] = dados["estado"].strip().upper()
    return dados


def criar_tenant(dados: dict) -> Tenant:
    dados = _normalizar_dados(dados)
    if not dados.get("slug"):
        dados["slug"] = normalizar_slug(dados.get("nome", ""))
    if not dados.get("slug"):
        raise DadosInvalidos("Informe o slug ou o nome da câmara")
    _checar_unicidade(dados)

    tenant = Tenant.objects.create(**dados)
    limpar_cache_tenants()
    logger.info("Câmara criada: %s", tenant.slug)
    return tenant


def atualizar_tenant(tenant_id, dados: dict) -> Tenant:
    tenant = buscar_tenant_por_id(tenant_id, incluir_inativos=True)
    if tenant is None:
        raise NaoEncontrado("Câmara")

    dados = _normalizar_dados(dados)
    _checar_unicidade(dados, excluir_id=tenant.pk)
    for campo, valor in dados.items():
        setattr(tenant, campo, valor)
    tenant.save()
    limpar_cache_tenants()
    return tenant


def desativar_tenant(tenant_id) -> Tenant:
    tenant = buscar_tenant_por_id(tenant_id, incluir_inativos=True)
    if tenant is None:
        raise NaoEncontrado("Câmara")
    tenant.ativo = False
    tenant.save(update_fields=["ativo", "atualizado_em"])
    limpar_cache_tenants()
    logger.info("Câmara desativada: %s", tenant.slug)
    return tenant
