# apps/core/middleware.py
from __future__ import annotations

import logging

from django.conf import settings
from django.urls import Resolver404, resolve

from apps.core.api import AcessoNegado, NaoAutenticado, api_error
from apps.tenants.services import normalizar_host, resolver_tenant_por_host
from .rbac import (
    can,
    PERM_ACCOUNTS,
    PERM_COMISSOES,
    PERM_INTEGRACOES,
    PERM_NORMAS,
    PERM_NOTICIAS,
    PERM_PARLAMENTARES,
    PERM_PARTICIPACAO,
    PERM_PROPOSICOES,
    PERM_RELATORIOS,
    PERM_SESSOES,
    PERM_TENANTS,
    PERM_TRANSPARENCIA,
)

logger = logging.getLogger(__name__)


class TenantHostMiddleware:
    """
    Resolve a câmara pelo host:
      <subdominio>.camaras.leg.br, domínio próprio ou tenant padrão.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.tenant = None
        request.tenant_host = ""

        path = request.path or ""
        static_url = getattr(settings, "STATIC_URL", "/static/")
        media_url = getattr(settings, "MEDIA_URL", "/media/")
        if path.startswith(static_url) or path.startswith(media_url):
            return self.get_response(request)

        host = normalizar_host(
            request.META.get("HTTP_X_FORWARDED_HOST")
            or request.META.get("HTTP_HOST")
            or ""
        )
        request.tenant_host = host
        if host:
            request.tenant = resolver_tenant_por_host(host)
            if request.tenant is None:
                logger.debug("Nenhuma câmara resolvida para o host %s", host)

        return self.get_response(request)


class RBACMiddleware:
    """
    Bloqueio real (backend) por namespace de URL.
    Rotas públicas e de autenticação passam direto.
    """

    # namespace -> perm macro
    NS_TO_PERM = {
        "tenants": PERM_TENANTS,
        "accounts": PERM_ACCOUNTS,
        "parlamentares": PERM_PARLAMENTARES,
        "sessoes": PERM_SESSOES,
        "proposicoes": PERM_PROPOSICOES,
        "comissoes": PERM_COMISSOES,
        "normas": PERM_NORMAS,
        "transparencia": PERM_TRANSPARENCIA,
        "participacao": PERM_PARTICIPACAO,
        "noticias": PERM_NOTICIAS,
        "integracoes": PERM_INTEGRACOES,
        "relatorios": PERM_RELATORIOS,
    }

    PUBLIC_URL_NAMES = {
        "auth:login",
        "auth:logout",
        "core:health",
        "tenant_atual",
    }
    PUBLIC_PATH_PREFIXES = (
        "/api/publico/",
        "/api/integracoes/dados/",
    )

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ""
        static_url = getattr(settings, "STATIC_URL", "/static/")
        media_url = getattr(settings, "MEDIA_URL", "/media/")

        if path.startswith(static_url) or path.startswith(media_url):
            return self.get_response(request)

        if path.startswith("/admin/") or not path.startswith("/api/"):
            return self.get_response(request)

        if any(path.startswith(prefix) for prefix in self.PUBLIC_PATH_PREFIXES):
            return self.get_response(request)

        try:
            match = resolve(path)
        except Resolver404:
            return self.get_response(request)

        if match.view_name in self.PUBLIC_URL_NAMES:
            return self.get_response(request)

        if not request.user.is_authenticated:
            return api_error(request, NaoAutenticado.default_message, status=401)

        required = self.NS_TO_PERM.get(match.namespace or "")
        if required and not can(request.user, required):
            return api_error(request, AcessoNegado.default_message, status=403)

        return self.get_response(request)
