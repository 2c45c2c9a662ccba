from __future__ import annotations

import logging
import secrets

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.core.api import AcessoNegado, Conflito, DadosInvalidos
from apps.core.exports import qr_data_uri
from apps.core.rbac import get_profile, is_admin
from apps.core.security import decrypt_secret, encrypt_secret, sha256_hex

from . import totp
from .models import Profile, SegundoFator, UserManagementAudit

logger = logging.getLogger(__name__)

User = get_user_model()

QTD_BACKUP_CODES = 8

_ROLE_ALLOWED_BY_MANAGER = {
    "SECRETARIA": {"SECRETARIA", "OPERADOR", "EDITOR", "PARLAMENTAR", "LEITURA"},
}


# =========================
# Auditoria
# =========================
def _audit(actor, target, action: str, details: str = "", tenant=None):
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None
    if tenant is None:
        profile = getattr(target, "profile", None)
        tenant = getattr(profile, "tenant", None)
    UserManagementAudit.objects.create(
        tenant=tenant,
        actor=actor,
        target=target,
        action=action,
        details=details[:500],
    )


# =========================
# 2FA
# =========================
def _dispositivo(user) -> SegundoFator:
    obj, _ = SegundoFator.objects.get_or_create(user=user)
    return obj


def status_2fa(user) -> dict:
    obj = SegundoFator.objects.filter(user=user).first()
    return {
        "enabled": bool(obj and obj.habilitado),
        "lastVerifiedAt": obj.ultima_verificacao_em if obj else None,
        "backupCodesRestantes": len(obj.backup_codes) if obj and obj.habilitado else 0,
    }


def iniciar_configuracao_2fa(user) -> dict:
    obj = _dispositivo(user)
    if obj.habilitado:
        raise Conflito("A autenticação em dois fatores já está ativa")

    segredo = totp.gerar_segredo()
    obj.secret_enc = encrypt_secret(segredo)
    obj.ultimo_passo = None
    obj.save(update_fields=["secret_enc", "ultimo_passo", "atualizado_em"])

    emissor = getattr(settings, "CAMARA_2FA_ISSUER", "Portal Legislativo")
    conta = user.email or user.username
    uri = totp.otpauth_uri(segredo, conta, emissor)
    return {"secret": segredo, "otpauth": uri, "qrcode": qr_data_uri(uri)}


def _gerar_backup_codes() -> list[str]:
    return [f"{secrets.token_hex(2)}-{secrets.token_hex(2)}".upper() for _ in range(QTD_BACKUP_CODES)]


def _normalizar_backup(codigo: str) -> str:
    return (codigo or "").strip().upper()


def _aceitar_totp(obj: SegundoFator, codigo: str) -> bool:
    segredo = decrypt_secret(obj.secret_enc)
    passo = totp.verificar_codigo(segredo, codigo, ultimo_passo=obj.ultimo_passo)
    if passo is None:
        return False
    obj.ultimo_passo = passo
    obj.ultima_verificacao_em = timezone.now()
    return True


def confirmar_2fa(user, codigo: str, actor=None) -> list[str]:
    obj = SegundoFator.objects.filter(user=user).first()
    if not obj or not obj.secret_enc:
        raise DadosInvalidos("Inicie a configuração do 2FA antes de confirmar")
    if obj.habilitado:
        raise Conflito("A autenticação em dois fatores já está ativa")
    if not _aceitar_totp(obj, codigo):
        raise DadosInvalidos("Código de verificação inválido")

    codigos = _gerar_backup_codes()
    obj.backup_codes = [sha256_hex(c) for c in codigos]
    obj.habilitado = True
    obj.confirmado_em = timezone.now()
    obj.save()
    _audit(actor or user, user, UserManagementAudit.Action.ENABLE_2FA)
    logger.info("2FA habilitado para usuário %s", user.pk)
    return codigos


def verificar_segundo_fator(user, codigo: str) -> bool:
    """Aceita código TOTP ou um backup code (consumido no uso)."""
    obj = SegundoFator.objects.filter(user=user, habilitado=True).first()
    if not obj:
        return True

    if _aceitar_totp(obj, codigo):
        obj.save(update_fields=["ultimo_passo", "ultima_verificacao_em", "atualizado_em"])
        return True

    hashed = sha256_hex(_normalizar_backup(codigo))
    if hashed in (obj.backup_codes or []):
        obj.backup_codes = [c for c in obj.backup_codes if c != hashed]
        obj.ultima_verificacao_em = timezone.now()
        obj.save(update_fields=["backup_codes", "ultima_verificacao_em", "atualizado_em"])
        logger.info("Backup code consumido pelo usuário %s", user.pk)
        return True
    return False


def requer_segundo_fator(user) -> bool:
    return SegundoFator.objects.filter(user=user, habilitado=True).exists()


def desativar_2fa(user, codigo: str, actor=None) -> None:
    obj = SegundoFator.objects.filter(user=user, habilitado=True).first()
    if not obj:
        raise Conflito("A autenticação em dois fatores não está ativa")
    if not verificar_segundo_fator(user, codigo):
        raise DadosInvalidos("Código de verificação inválido")

    obj.habilitado = False
    obj.secret_enc = ""
    obj.backup_codes = []
    obj.ultimo_passo = None
    obj.save()
    _audit(actor or user, user, UserManagementAudit.Action.DISABLE_2FA)
    logger.info("2FA desativado para usuário %s", user.pk)


# =========================
# Gestão de usuários
# =========================
def can_manage_users(user) -> bool:
    if is_admin(user):
        return True
    p = get_profile(user)
    return bool(p and p.ativo and p.role in _ROLE_ALLOWED_BY_MANAGER)


def roles_permitidos(actor) -> set[str]:
    if is_admin(actor):
        return set(Profile.Role.values)
    p = get_profile(actor)
    return set(_ROLE_ALLOWED_BY_MANAGER.get(getattr(p, "role", ""), set()))


def escopo_usuarios(actor, tenant):
    qs = User.objects.select_related("profile", "profile__tenant", "profile__parlamentar").order_by("id")
    if is_admin(actor) and tenant is None:
        return qs
    return qs.filter(profile__tenant=tenant)


def _checar_role(actor, role: str):
    if role not in roles_permitidos(actor):
        raise AcessoNegado("Você não pode atribuir esta função")


def _senha_temporaria() -> str:
    return secrets.token_urlsafe(9)


@transaction.atomic
def criar_usuario(*, tenant, dados: dict, actor) -> tuple:
    _checar_role(actor, dados["role"])
    username = dados["username"].strip()
    if User.objects.filter(username__iexact=username).exists():
        raise Conflito("Já existe um usuário com este login")
    email = (dados.get("email") or "").strip()
    if email and User.objects.filter(email__iexact=email).exists():
        raise Conflito("Já existe um usuário com este e-mail")

    senha = _senha_temporaria()
    user = User.objects.create_user(
        username=username,
        email=email,
        password=senha,
        first_name=dados.get("first_name", ""),
        last_name=dados.get("last_name", ""),
    )
    profile = user.profile
    profile.tenant = tenant
    profile.role = dados["role"]
    profile.parlamentar = dados.get("parlamentar")
    profile.telefone = dados.get("telefone", "")
    profile.ativo = dados.get("ativo", True)
    profile.must_change_password = True
    profile.save()

    _audit(actor, user, UserManagementAudit.Action.CREATE, f"role={profile.role}", tenant=tenant)
    return user, senha


@transaction.atomic
def atualizar_usuario(*, user, dados: dict, actor):
    profile = user.profile
    if "role" in dados and dados["role"] != profile.role:
        _checar_role(actor, dados["role"])
        _checar_role(actor, profile.role)

    email = dados.get("email")
    if email and User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
        raise Conflito("Já existe um usuário com este e-mail")

    alterados = []
    for campo in ("first_name", "last_name", "email"):
        if campo in dados and getattr(user, campo) != dados[campo]:
            setattr(user, campo, dados[campo])
            alterados.append(campo)
    user.save()

    for campo in ("role", "parlamentar", "telefone"):
        if campo in dados and getattr(profile, campo) != dados[campo]:
            setattr(profile, campo, dados[campo])
            alterados.append(campo)
    profile.save()

    _audit(actor, user, UserManagementAudit.Action.UPDATE, ", ".join(alterados))
    return user


def alternar_ativo(*, user, actor):
    if user.pk == getattr(actor, "pk", None):
        raise Conflito("Você não pode desativar o próprio usuário")
    profile = user.profile
    profile.ativo = not profile.ativo
    profile.save(update_fields=["ativo"])
    user.is_active = profile.ativo and not profile.bloqueado
    user.save(update_fields=["is_active"])
    action = UserManagementAudit.Action.ACTIVATE if profile.ativo else UserManagementAudit.Action.DEACTIVATE
    _audit(actor, user, action)
    return user


def alternar_bloqueio(*, user, actor):
    if user.pk == getattr(actor, "pk", None):
        raise Conflito("Você não pode bloquear o próprio usuário")
    profile = user.profile
    profile.bloqueado = not profile.bloqueado
    profile.save(update_fields=["bloqueado"])
    user.is_active = profile.ativo and not profile.bloqueado
    user.save(update_fields=["is_active"])
    action = UserManagementAudit.Action.BLOCK if profile.bloqueado else UserManagementAudit.Action.UNBLOCK
    _audit(actor, user, action)
    return user


def resetar_senha(*, user, actor) -> str:
    senha = _senha_temporaria()
    user.set_password(senha)
    user.save(update_fields=["password"])
    profile = user.profile
    profile.must_change_password = True
    profile.save(update_fields=["must_change_password"])
    _audit(actor, user, UserManagementAudit.Action.RESET_PASSWORD)
    return senha
