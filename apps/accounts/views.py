from __future__ import annotations

import logging

from django.contrib.auth import authenticate, get_user_model, login, logout, update_session_auth_hash
from django.db.models import Q
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    AcessoNegado,
    DadosInvalidos,
    MuitasTentativas,
    NaoAutenticado,
    NaoEncontrado,
    api_error,
    api_success,
    api_view,
    paginate,
    read_json,
    tenant_da_requisicao,
    validate_form,
)
from apps.core.decorators import require_login, require_perm
from apps.core.rbac import is_admin

from . import services
from .forms import AlterarSenhaForm, CodigoForm, LoginForm, UsuarioCreateForm, UsuarioUpdateForm
from .security import is_locked, lock_remaining_seconds, register_failure, reset
from .serializers import auditoria_usuario_to_dict, usuario_to_dict

logger = logging.getLogger(__name__)

User = get_user_model()


def _client_ip(request) -> str:
    return request.META.get("REMOTE_ADDR", "0.0.0.0")


def _resolver_username(login_ou_email: str) -> str:
    if "@" in login_ou_email:
        user = User.objects.filter(email__iexact=login_ou_email).only("username").first()
        if user:
            return user.username
    return login_ou_email


# =========================
# AUTENTICAÇÃO
# =========================
@require_POST
@api_view
def login_view(request):
    dados = validate_form(LoginForm(data=read_json(request)))
    identificador = dados["username"].strip()

    ip = _client_ip(request)
    if is_locked(ip, identificador):
        raise MuitasTentativas(details={"retryAfter": lock_remaining_seconds(ip, identificador)})

    user = authenticate(request, username=_resolver_username(identificador), password=dados["password"])
    if user is None:
        register_failure(ip, identificador)
        raise NaoAutenticado("Credenciais inválidas")

    p = getattr(user, "profile", None)
    if p and (not p.ativo or p.bloqueado):
        raise AcessoNegado("Usuário inativo ou bloqueado")

    if services.requer_segundo_fator(user):
        codigo = (dados.get("codigo") or "").strip()
        if not codigo:
            return api_error(
                request,
                "Informe o código de autenticação em dois fatores",
                status=401,
                details={"requires2FA": True},
            )
        if not services.verificar_segundo_fator(user, codigo):
            register_failure(ip, identificador)
            raise NaoAutenticado("Código de verificação inválido")

    reset(ip, identificador)
    login(request, user)
    if p:
        p.ultimo_acesso_em = timezone.now()
        p.save(update_fields=["ultimo_acesso_em"])
    logger.info("Login do usuário %s", user.pk)
    return api_success(usuario_to_dict(user, incluir_perms=True), message="Login realizado com sucesso")


@require_POST
@api_view
def logout_view(request):
    logout(request)
    return api_success(None, message="Sessão encerrada")


@require_GET
@require_login
@api_view
def me(request):
    return api_success(usuario_to_dict(request.user, incluir_perms=True))


@require_POST
@require_login
@api_view
def alterar_senha(request):
    form = AlterarSenhaForm(data=read_json(request), user=request.user)
    dados = validate_form(form)

    request.user.set_password(dados["password1"])
    request.user.save()

    p = getattr(request.user, "profile", None)
    if p:
        p.must_change_password = False
        p.save(update_fields=["must_change_password"])

    update_session_auth_hash(request, request.user)
    return api_success(None, message="Senha alterada com sucesso")


# =========================
# 2FA
# =========================
@require_GET
@require_login
@api_view
def dois_fatores_status(request):
    return api_success(services.status_2fa(request.user))


@require_POST
@require_login
@api_view
def dois_fatores_setup(request):
    return api_success(services.iniciar_configuracao_2fa(request.user))


@require_POST
@require_login
@api_view
def dois_fatores_verificar(request):
    dados = validate_form(CodigoForm(data=read_json(request)))
    codigos = services.confirmar_2fa(request.user, dados["codigo"])
    return api_success({"backupCodes": codigos}, message="Autenticação em dois fatores ativada")


@require_POST
@require_login
@api_view
def dois_fatores_desativar(request):
    dados = validate_form(CodigoForm(data=read_json(request)))
    services.desativar_2fa(request.user, dados["codigo"])
    return api_success(None, message="Autenticação em dois fatores desativada")


# =========================
# GESTÃO DE USUÁRIOS (RBAC)
# =========================
def _tenant_gestao(request):
    return tenant_da_requisicao(request, required=not is_admin(request.user))


def _get_usuario(request, pk: int):
    tenant = _tenant_gestao(request)
    user = services.escopo_usuarios(request.user, tenant).filter(pk=pk).first()
    if user is None:
        raise NaoEncontrado("Usuário")
    return user


@require_http_methods(["GET", "POST"])
@require_perm("accounts.manage")
@api_view
def usuarios_list(request):
    tenant = _tenant_gestao(request)

    if request.method == "POST":
        form = UsuarioCreateForm(data=read_json(request), tenant=tenant)
        dados = validate_form(form)
        user, senha = services.criar_usuario(tenant=tenant, dados=dados, actor=request.user)
        data = usuario_to_dict(user)
        data["senhaTemporaria"] = senha
        return api_success(data, message="Usuário criado com sucesso", status=201)

    qs = services.escopo_usuarios(request.user, tenant)
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(
            Q(username__icontains=q)
            | Q(first_name__icontains=q)
            | Q(last_name__icontains=q)
            | Q(email__icontains=q)
        )
    role = (request.GET.get("role") or "").strip().upper()
    if role:
        qs = qs.filter(profile__role=role)
    status = (request.GET.get("status") or "").strip().lower()
    if status == "ativos":
        qs = qs.filter(profile__ativo=True, profile__bloqueado=False)
    elif status == "inativos":
        qs = qs.filter(profile__ativo=False)
    elif status == "bloqueados":
        qs = qs.filter(profile__bloqueado=True)

    items, meta = paginate(request, qs)
    return api_success([usuario_to_dict(u) for u in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH"])
@require_perm("accounts.manage")
@api_view
def usuario_detail(request, pk: int):
    user = _get_usuario(request, pk)
    if request.method == "GET":
        return api_success(usuario_to_dict(user))

    payload = read_json(request)
    p = user.profile
    base = {
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": p.role,
        "parlamentar": p.parlamentar_id,
        "telefone": p.telefone,
    }
    form = UsuarioUpdateForm(data={**base, **payload}, tenant=p.tenant)
    dados = validate_form(form)
    dados = {k: v for k, v in dados.items() if k in payload}
    if not dados:
        raise DadosInvalidos("Nenhum campo para atualizar")
    user = services.atualizar_usuario(user=user, dados=dados, actor=request.user)
    return api_success(usuario_to_dict(user), message="Usuário atualizado")


@require_POST
@require_perm("accounts.manage")
@api_view
def usuario_toggle_ativo(request, pk: int):
    user = services.alternar_ativo(user=_get_usuario(request, pk), actor=request.user)
    return api_success(usuario_to_dict(user), message="Status atualizado")


@require_POST
@require_perm("accounts.manage")
@api_view
def usuario_toggle_bloqueio(request, pk: int):
    user = services.alternar_bloqueio(user=_get_usuario(request, pk), actor=request.user)
    return api_success(usuario_to_dict(user), message="Bloqueio atualizado")


@require_POST
@require_perm("accounts.manage")
@api_view
def usuario_reset_senha(request, pk: int):
    senha = services.resetar_senha(user=_get_usuario(request, pk), actor=request.user)
    return api_success({"senhaTemporaria": senha}, message="Senha redefinida")


@require_GET
@require_perm("accounts.manage")
@api_view
def usuario_auditoria(request, pk: int):
    user = _get_usuario(request, pk)
    items, meta = paginate(request, user.accounts_audit_targets.all())
    return api_success([auditoria_usuario_to_dict(a) for a in items], meta=meta)
