# apps/core/rbac.py
from __future__ import annotations


# =========================
# PERFIL / ADMIN
# =========================
def get_profile(user):
    if not user or not getattr(user, "is_authenticated", False):
        return None
    return getattr(user, "profile", None)


def is_admin(user) -> bool:
    p = get_profile(user)
    return bool(
        getattr(user, "is_superuser", False)
        or getattr(user, "is_staff", False)
        or (p and getattr(p, "role", None) == "ADMIN")
    )


# =========================
# PERMISSÕES (macro = área)
# =========================
PERM_TENANTS = "tenants"
PERM_ACCOUNTS = "accounts"
PERM_PARLAMENTARES = "parlamentares"
PERM_SESSOES = "sessoes"
PERM_PROPOSICOES = "proposicoes"
PERM_COMISSOES = "comissoes"
PERM_NORMAS = "normas"
PERM_TRANSPARENCIA = "transparencia"
PERM_PARTICIPACAO = "participacao"
PERM_NOTICIAS = "noticias"
PERM_INTEGRACOES = "integracoes"
PERM_RELATORIOS = "relatorios"
PERM_CONFIGURACOES = "configuracoes"

ALL_PERMS = {
    PERM_TENANTS,
    PERM_ACCOUNTS,
    PERM_PARLAMENTARES,
    PERM_SESSOES,
    PERM_PROPOSICOES,
    PERM_COMISSOES,
    PERM_NORMAS,
    PERM_TRANSPARENCIA,
    PERM_PARTICIPACAO,
    PERM_NOTICIAS,
    PERM_INTEGRACOES,
    PERM_RELATORIOS,
    PERM_CONFIGURACOES,
}

_LEGISLATIVO_VIEW = {
    "parlamentares.view",
    "sessoes.view",
    "proposicoes.view",
    "comissoes.view",
    "normas.view",
}

# Perms finas por role
ROLE_PERMS_FINE = {
    "ADMIN": {f"{p}.view" for p in ALL_PERMS} | {f"{p}.manage" for p in ALL_PERMS},
    "SECRETARIA": _LEGISLATIVO_VIEW
    | {
        "parlamentares.manage",
        "sessoes.manage",
        "sessoes.operar",
        "proposicoes.manage",
        "comissoes.manage",
        "normas.manage",
        "transparencia.view",
        "transparencia.manage",
        "participacao.view",
        "participacao.manage",
        "noticias.view",
        "relatorios.view",
        "relatorios.manage",
        "accounts.view",
        "accounts.manage",
        "integracoes.view",
        "integracoes.manage",
        "configuracoes.view",
        "configuracoes.manage",
    },
    "OPERADOR": _LEGISLATIVO_VIEW
    | {
        "sessoes.operar",
        "relatorios.view",
    },
    "EDITOR": _LEGISLATIVO_VIEW
    | {
        "noticias.view",
        "noticias.manage",
        "transparencia.view",
        "transparencia.manage",
        "participacao.view",
        "participacao.manage",
    },
    "PARLAMENTAR": _LEGISLATIVO_VIEW
    | {
        "sessoes.votar",
        "participacao.view",
        "relatorios.view",
    },
    "LEITURA": _LEGISLATIVO_VIEW | {"relatorios.view", "transparencia.view"},
}


def _macro_from_fine(perm: str) -> str | None:
    """
    'sessoes.manage' -> 'sessoes'
    """
    if not perm or "." not in perm:
        return None
    return perm.split(".", 1)[0]


def get_user_perms(user) -> set[str]:
    """
    Set com perms finas ('sessoes.manage') e as macros correspondentes ('sessoes').
    """
    if not user or not getattr(user, "is_authenticated", False):
        return set()

    if is_admin(user):
        fine = set(ROLE_PERMS_FINE["ADMIN"]) | {"sessoes.operar", "sessoes.votar"}
        return fine | set(ALL_PERMS)

    p = get_profile(user)
    if not p or not getattr(p, "ativo", True) or getattr(p, "bloqueado", False):
        return set()

    role = getattr(p, "role", None) or "LEITURA"
    fine_perms = set(ROLE_PERMS_FINE.get(role, set()))
    perms = set(fine_perms)
    for fp in fine_perms:
        m = _macro_from_fine(fp)
        if m:
            perms.add(m)
    return perms


def can(user, perm: str) -> bool:
    """
    - perm macro ('sessoes'): qualquer perm fina da área
    - perm fina ('sessoes.manage'): precisa da perm exata
    """
    return perm in get_user_perms(user)
