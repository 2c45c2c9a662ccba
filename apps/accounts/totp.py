"""
TOTP (RFC 6238) com HMAC-SHA1, 6 dígitos e passo de 30 segundos,
compatível com Google Authenticator, Authy e similares.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import struct
import time
from urllib.parse import quote, urlencode

STEP_SECONDS = 30
DIGITS = 6


def gerar_segredo() -> str:
    return base64.b32encode(secrets.token_bytes(20)).decode("ascii").rstrip("=")


def _decode_secret(secret: str) -> bytes:
    raw = (secret or "").strip().replace(" ", "").upper()
    padding = "=" * (-len(raw) % 8)
    return base64.b32decode(raw + padding)


def passo_atual(for_time: float | None = None) -> int:
    return int((time.time() if for_time is None else for_time) // STEP_SECONDS)


def codigo_para_passo(secret: str, passo: int) -> str:
    digest = hmac.new(_decode_secret(secret), struct.pack(">Q", passo), hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    binary = struct.unpack(">I", digest[offset: offset + 4])[0] & 0x7FFFFFFF
    return str(binary % (10 ** DIGITS)).zfill(DIGITS)


def gerar_codigo(secret: str, for_time: float | None = None) -> str:
    return codigo_para_passo(secret, passo_atual(for_time))


def verificar_codigo(
    secret: str,
    codigo: str,
    *,
    for_time: float | None = None,
    janela: int = 1,
    ultimo_passo: int | None = None,
) -> int | None:
    """
    Retorna o passo aceito ou None.
    Passos <= ultimo_passo são recusados (código já usado).
    """
    codigo = "".join(ch for ch in (codigo or "") if ch.isdigit())
    if len(codigo) != DIGITS:
        return None

    atual = passo_atual(for_time)
    for delta in range(-janela, janela + 1):
        passo = atual + delta
        if ultimo_passo is not None and passo <= ultimo_passo:
            continue
        if hmac.compare_digest(codigo_para_passo(secret, passo), codigo):
            return passo
    return None


def otpauth_uri(secret: str, conta: str, emissor: str) -> str:
    label = quote(f"{emissor}:{conta}")
    params = urlencode({"secret": secret, "issuer": emissor, "digits": DIGITS, "period": STEP_SECONDS})
    return f"otpauth://totp/{label}?{params}"
