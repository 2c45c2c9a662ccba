import os

os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DJANGO_DEBUG", "true")
os.environ.setdefault("DJANGO_CPF_HASH_KEY", "hash-key-tests")
os.environ.setdefault("DJANGO_CPF_ENCRYPTION_KEY", "enc-key-tests")

from .settings import *  # noqa

# Os apps locais não versionam migrações; em testes o schema vem direto dos models.
MIGRATION_MODULES = {
    "core": None,
    "tenants": None,
    "accounts": None,
    "parlamentares": None,
    "proposicoes": None,
    "sessoes": None,
    "comissoes": None,
    "normas": None,
    "transparencia": None,
    "participacao": None,
    "noticias": None,
    "integracoes": None,
    "relatorios": None,
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "test-cache",
    }
}

SECURE_SSL_REDIRECT = False
CAMARA_PUBLIC_ROOT_DOMAIN = "camaras.leg.br"
CAMARA_APP_HOSTS = ["app.camaras.leg.br", "testserver", "127.0.0.1", "localhost"]
CAMARA_DEFAULT_TENANT_SLUG = ""
ALLOWED_HOSTS = [".camaras.leg.br", "testserver", "localhost", "127.0.0.1", ".example.org"]

CELERY_TASK_ALWAYS_EAGER = True
RELATORIOS_DIR = BASE_DIR / "media" / "test-relatorios"
