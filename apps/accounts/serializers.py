from __future__ import annotations

from apps.core.rbac import get_user_perms


def usuario_to_dict(user, *, incluir_perms: bool = False) -> dict:
    p = getattr(user, "profile", None)
    data = {
        "id": user.pk,
        "username": user.username,
        "nome": user.get_full_name() or user.username,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "role": getattr(p, "role", None),
        "tenantId": getattr(p, "tenant_id", None),
        "parlamentarId": getattr(p, "parlamentar_id", None),
        "telefone": getattr(p, "telefone", ""),
        "ativo": bool(p and p.ativo),
        "bloqueado": bool(p and p.bloqueado),
        "mustChangePassword": bool(p and p.must_change_password),
        "ultimoAcessoEm": getattr(p, "ultimo_acesso_em", None),
        # segundo_fator ausente levanta RelatedObjectDoesNotExist (AttributeError)
        "is2faEnabled": bool(getattr(getattr(user, "segundo_fator", None), "habilitado", False)),
    }
    if incluir_perms:
        data["permissoes"] = sorted(p for p in get_user_perms(user) if "." in p)
    return data


def auditoria_usuario_to_dict(a) -> dict:
    return {
        "id": a.pk,
        "action": a.action,
        "actionLabel": a.get_action_display(),
        "actorId": a.actor_id,
        "targetId": a.target_id,
        "details": a.details,
        "createdAt": a.created_at,
    }
