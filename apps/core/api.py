from __future__ import annotations

import copy
import json
import logging
from functools import wraps

from django.core.exceptions import PermissionDenied, ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db.models.fields.files import FieldFile
from django.forms.models import model_to_dict
from django.http import Http404, JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


# =========================
# Erros de aplicação
# =========================
class AppError(Exception):
    status_code = 500
    default_message = "Erro interno do servidor"

    def __init__(self, message: str | None = None, *, details=None, status_code: int | None = None):
        self.message = message or self.default_message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class DadosInvalidos(AppError):
    status_code = 400
    default_message = "Dados inválidos"


class NaoAutenticado(AppError):
    status_code = 401
    default_message = "Autenticação necessária"


class AcessoNegado(AppError):
    status_code = 403
    default_message = "Você não tem permissão para executar esta ação"


class NaoEncontrado(AppError):
    status_code = 404
    default_message = "Recurso não encontrado"

    def __init__(self, recurso: str = "Recurso", *, message: str | None = None, details=None):
        super().__init__(message or f"{recurso} não encontrado(a)", details=details)


class Conflito(AppError):
    status_code = 409
    default_message = "Conflito com o estado atual do recurso"


class MuitasTentativas(AppError):
    status_code = 429
    default_message = "Muitas tentativas. Aguarde alguns minutos e tente novamente."


# =========================
# Envelopes
# =========================
def api_success(data=None, *, message: str = "", meta: dict | None = None, status: int = 200) -> JsonResponse:
    payload = {"success": True, "data": data}
    if message:
        payload["message"] = message
    if meta is not None:
        payload["meta"] = meta
    return JsonResponse(payload, status=status, encoder=DjangoJSONEncoder)


def api_error(request, message: str, *, status: int, details=None) -> JsonResponse:
    payload = {
        "success": False,
        "error": message,
        "details": details,
        "timestamp": timezone.now().isoformat(),
        "path": getattr(request, "path", ""),
    }
    return JsonResponse(payload, status=status, encoder=DjangoJSONEncoder)


def api_view(view_func):
    """
    Converte erros de domínio em envelopes JSON.
    Exceções desconhecidas viram 500 genérico (com log).
    """

    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except AppError as exc:
            if exc.status_code >= 500:
                logger.error("Erro de aplicação em %s: %s", request.path, exc.message)
            return api_error(request, exc.message, status=exc.status_code, details=exc.details)
        except Http404 as exc:
            return api_error(request, str(exc) or "Recurso não encontrado", status=404)
        except PermissionDenied as exc:
            return api_error(request, str(exc) or AcessoNegado.default_message, status=403)
        except ValidationError as exc:
            details = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
            return api_error(request, "Dados inválidos", status=400, details=details)
        except Exception:
            logger.exception("Erro inesperado em %s %s", request.method, request.path)
            return api_error(request, AppError.default_message, status=500)

    return _wrapped


# =========================
# Entrada
# =========================
def read_json(request) -> dict:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DadosInvalidos("JSON inválido no corpo da requisição") from exc
    if not isinstance(data, dict):
        raise DadosInvalidos("O corpo da requisição deve ser um objeto JSON")
    return data


def form_errors(form) -> dict:
    return {field: [e["message"] for e in errors] for field, errors in form.errors.get_json_data().items()}


def validate_form(form):
    if not form.is_valid():
        raise DadosInvalidos(details=form_errors(form))
    return form.cleaned_data


def parse_int(value, default: int | None = None) -> int | None:
    raw = str(value if value is not None else "").strip()
    if not raw.lstrip("-").isdigit():
        return default
    return int(raw)


def paginate(request, qs, *, default_limit: int = 20):
    """
    Retorna (itens, meta) usando ?page= e ?limit= (limite máximo 100).
    """
    page = max(parse_int(request.GET.get("page"), 1) or 1, 1)
    limit = parse_int(request.GET.get("limit"), default_limit) or default_limit
    limit = min(max(limit, 1), MAX_LIMIT)

    total = qs.count()
    offset = (page - 1) * limit
    items = list(qs[offset: offset + limit])
    total_pages = (total + limit - 1) // limit if total else 0
    meta = {"total": total, "page": page, "limit": limit, "totalPages": total_pages}
    return items, meta


# =========================
# Tenant da requisição
# =========================
def tenant_da_requisicao(request, *, required: bool = True):
    """
    Ordem: host da requisição; ?tenant= (somente admin); câmara do perfil.
    """
    from apps.core.rbac import get_profile, is_admin
    from apps.tenants.models import Tenant

    tenant = getattr(request, "tenant", None)
    user = getattr(request, "user", None)

    if tenant is None and user is not None and is_admin(user):
        tenant_id = parse_int(request.GET.get("tenant"))
        if tenant_id:
            tenant = Tenant.objects.filter(pk=tenant_id, ativo=True).first()

    if tenant is None:
        profile = get_profile(user)
        if profile and profile.tenant_id:
            tenant = Tenant.objects.filter(pk=profile.tenant_id, ativo=True).first()

    if tenant is not None and user is not None and getattr(user, "is_authenticated", False) and not is_admin(user):
        profile = get_profile(user)
        if profile and profile.tenant_id and profile.tenant_id != tenant.pk:
            raise AcessoNegado("Usuário não pertence a esta câmara")

    if tenant is None and required:
        raise NaoEncontrado("Câmara")
    return tenant


def bind_form(form_class, payload: dict, *, instance=None, **form_kwargs):
    """
    Instancia o ModelForm para criação ou atualização parcial:
    campos ausentes no payload mantêm o valor atual da instância.

    O form recebe uma cópia da instância: `is_valid()` aplica os dados
    validados no objeto, e os serviços comparam o estado anterior.
    """

    data = dict(payload or {})
    if instance is not None:
        current = model_to_dict(instance, fields=list(form_class._meta.fields or []))
        current = {k: v for k, v in current.items() if not isinstance(v, FieldFile)}
        for key, value in current.items():
            if isinstance(value, list):
                current[key] = [getattr(v, "pk", v) for v in value]
        data = {**current, **data}
        instance = copy.copy(instance)
    return form_class(data=data, instance=instance, **form_kwargs)


def obter_ou_404(qs, recurso: str, **lookup):
    obj = qs.filter(**lookup).first()
    if obj is None:
        raise NaoEncontrado(recurso)
    return obj


def parse_bool(value) -> bool | None:
    raw = str(value if value is not None else "").strip().lower()
    if raw in {"1", "true", "sim", "yes"}:
        return True
    if raw in {"0", "false", "nao", "não", "no"}:
        return False
    return None


def somente_enviados(dados: dict, payload: dict) -> dict:
    """Atualização parcial: mantém só os campos presentes no payload."""
    return {k: v for k, v in dados.items() if k in payload}
