from __future__ import annotations

import base64
import hashlib
import hmac
import os

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


def _setting(name: str, env_name: str) -> str:
    return (getattr(settings, name, "") or os.getenv(env_name) or "").strip()


def normalize_cpf(value: str | None) -> str:
    return "".join(ch for ch in (value or "") if ch.isdigit())


def mask_cpf(value: str | None) -> str:
    digits = normalize_cpf(value)
    if len(digits) != 11:
        return ""
    return f"***.***.***-{digits[-2:]}"


def cpf_valido(value: str | None) -> bool:
    digits = normalize_cpf(value)
    if len(digits) != 11 or digits == digits[0] * 11:
        return False
    for size in (9, 10):
        total = sum(int(d) * w for d, w in zip(digits[:size], range(size + 1, 1, -1)))
        dv = (total * 10) % 11 % 10
        if dv != int(digits[size]):
            return False
    return True


def cpf_hash(value: str | None, key: str | None = None) -> str:
    """HMAC-SHA256 do CPF: permite deduplicar participações sem guardar o número."""
    digits = normalize_cpf(value)
    if not digits:
        return ""

    hash_key = (key or _setting("CPF_HASH_KEY", "DJANGO_CPF_HASH_KEY")).strip()
    if not hash_key:
        raise ImproperlyConfigured("Defina DJANGO_CPF_HASH_KEY para gerar hash de CPF.")

    return hmac.new(hash_key.encode("utf-8"), digits.encode("utf-8"), hashlib.sha256).hexdigest()


def _fernet_from_key(key: str | None = None) -> Fernet:
    enc_key = (key or _setting("CPF_ENCRYPTION_KEY", "DJANGO_CPF_ENCRYPTION_KEY")).strip()
    if not enc_key:
        raise ImproperlyConfigured("Defina DJANGO_CPF_ENCRYPTION_KEY para cifrar dados sensíveis.")

    fernet_key = base64.urlsafe_b64encode(hashlib.sha256(enc_key.encode("utf-8")).digest())
    return Fernet(fernet_key)


def encrypt_secret(value: str | None, key: str | None = None) -> str:
    raw = (value or "").strip()
    if not raw:
        return ""
    return _fernet_from_key(key).encrypt(raw.encode("utf-8")).decode("utf-8")


def decrypt_secret(value: str | None, key: str | None = None) -> str:
    token = (value or "").strip()
    if not token:
        return ""

    try:
        return _fernet_from_key(key).decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken as exc:
        raise ValueError("Segredo criptografado inválido ou chave incorreta.") from exc


def sha256_hex(value: str) -> str:
    return hashlib.sha256((value or "").encode("utf-8")).hexdigest()
