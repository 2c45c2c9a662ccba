from __future__ import annotations

import os
from datetime import timedelta

from django.core.cache import cache
from django.utils import timezone


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
        return value if value > 0 else default
    except ValueError:
        return default


MAX_ATTEMPTS_PER_LOGIN = _env_int("DJANGO_LOGIN_MAX_ATTEMPTS_PER_LOGIN", 5)
MAX_ATTEMPTS_PER_IP = _env_int("DJANGO_LOGIN_MAX_ATTEMPTS_PER_IP", 25)
LOCK_MINUTES = _env_int("DJANGO_LOGIN_LOCK_MINUTES", 10)


def _login_key(ip: str, login: str) -> str:
    return f"loginlock:{ip}:{(login or '').strip().lower()}"


def _ip_key(ip: str) -> str:
    return f"loginlock:ip:{ip}"


def _locked_until(data: dict | None):
    if not data:
        return None
    locked_until = data.get("locked_until")
    if locked_until and locked_until > timezone.now():
        return locked_until
    return None


def _register_on_key(key: str, max_attempts: int):
    data = cache.get(key) or {"count": 0, "locked_until": None}
    data["count"] += 1
    if data["count"] >= max_attempts:
        data["locked_until"] = timezone.now() + timedelta(minutes=LOCK_MINUTES)
    cache.set(key, data, timeout=LOCK_MINUTES * 60)


def is_locked(ip: str, login: str) -> bool:
    return lock_remaining_seconds(ip, login) > 0


def lock_remaining_seconds(ip: str, login: str) -> int:
    candidates = [
        _locked_until(cache.get(_login_key(ip, login))),
        _locked_until(cache.get(_ip_key(ip))),
    ]
    until = max((c for c in candidates if c), default=None)
    if until is None:
        return 0
    return max(int((until - timezone.now()).total_seconds()), 1)


def register_failure(ip: str, login: str):
    _register_on_key(_login_key(ip, login), MAX_ATTEMPTS_PER_LOGIN)
    _register_on_key(_ip_key(ip), MAX_ATTEMPTS_PER_IP)


def reset(ip: str, login: str):
    cache.delete(_login_key(ip, login))
    cache.delete(_ip_key(ip))
