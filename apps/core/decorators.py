# apps/core/decorators.py
from __future__ import annotations

from functools import wraps

from apps.core.api import AcessoNegado, NaoAutenticado, api_error
from apps.core.rbac import can


def require_perm(*perms: str):
    """
    Decorator RBAC para rotas JSON:
    - se não logado: 401
    - se logado e sem nenhuma das perms: 403
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            user = getattr(request, "user", None)

            if not user or not user.is_authenticated:
                return api_error(request, NaoAutenticado.default_message, status=401)

            if not any(can(user, perm) for perm in perms):
                return api_error(request, AcessoNegado.default_message, status=403)

            return view_func(request, *args, **kwargs)

        return _wrapped
    return decorator


def require_login(view_func):
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return api_error(request, NaoAutenticado.default_message, status=401)
        return view_func(request, *args, **kwargs)

    return _wrapped


def check_perm(request, perm: str) -> None:
    """Para views que misturam leitura e escrita na mesma rota."""
    if not can(getattr(request, "user", None), perm):
        raise AcessoNegado()
