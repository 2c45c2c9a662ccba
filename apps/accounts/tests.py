import json
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse

from apps.accounts import security as login_security
from apps.accounts import totp
from apps.accounts.models import SegundoFator, UserManagementAudit
from apps.core.security import decrypt_secret
from apps.tenants.models import Tenant


User = get_user_model()


def _make_user(username, *, role="LEITURA", tenant=None, password="Senha@123", **profile_fields):
    user = User.objects.create_user(username=username, password=password, email=f"{username}@camara.test")
    profile = user.profile
    profile.role = role
    profile.tenant = tenant
    profile.ativo = True
    profile.must_change_password = False
    for key, value in profile_fields.items():
        setattr(profile, key, value)
    profile.save()
    return user


class TotpTestCase(TestCase):
    def test_rfc6238_reference_vector(self):
        # segredo "12345678901234567890" em base32
        secret = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
        self.assertEqual(totp.gerar_codigo(secret, for_time=59), "287082")
        self.assertEqual(totp.gerar_codigo(secret, for_time=1111111109), "081804")

    def test_window_and_replay(self):
        secret = totp.gerar_segredo()
        agora = 1_700_000_000
        anterior = totp.codigo_para_passo(secret, totp.passo_atual(agora) - 1)
        passo = totp.verificar_codigo(secret, anterior, for_time=agora)
        self.assertEqual(passo, totp.passo_atual(agora) - 1)
        self.assertIsNone(totp.verificar_codigo(secret, anterior, for_time=agora, ultimo_passo=passo))
        self.assertIsNone(totp.verificar_codigo(secret, "12", for_time=agora))


class LoginViewTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.user = _make_user("login_security")

    def tearDown(self):
        cache.clear()

    def _login(self, **payload):
        return self.client.post(reverse("auth:login"), data=json.dumps(payload), content_type="application/json")

    def test_login_ok_returns_user_and_perms(self):
        response = self._login(username="login_security", password="Senha@123")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["username"], "login_security")
        self.assertIn("sessoes.view", body["data"]["permissoes"])

    def test_login_by_email(self):
        response = self._login(username="login_security@camara.test", password="Senha@123")
        self.assertEqual(response.status_code, 200)

    def test_invalid_credentials(self):
        response = self._login(username="login_security", password="errada")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Credenciais inválidas")
        self.assertFalse(response.json()["success"])

    @patch.object(login_security, "MAX_ATTEMPTS_PER_LOGIN", 2)
    @patch.object(login_security, "MAX_ATTEMPTS_PER_IP", 2)
    def test_login_is_locked_after_failed_attempts(self):
        self._login(username="login_security", password="errada")
        self._login(username="login_security", password="errada")
        response = self._login(username="login_security", password="Senha@123")
        self.assertEqual(response.status_code, 429)
        self.assertIn("retryAfter", response.json()["details"])

    def test_me_requires_login(self):
        response = self.client.get(reverse("auth:me"))
        self.assertEqual(response.status_code, 401)

    def test_force_password_change_blocks_api(self):
        p = self.user.profile
        p.must_change_password = True
        p.save()
        self.client.force_login(self.user)

        response = self.client.get(reverse("parlamentares:parlamentar_list"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["details"]["code"], "PASSWORD_CHANGE_REQUIRED")

        response = self.client.post(
            reverse("auth:alterar_senha"),
            data=json.dumps(
                {"senha_atual": "Senha@123", "password1": "NovaSenha#2026", "password2": "NovaSenha#2026"}
            ),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        p.refresh_from_db()
        self.assertFalse(p.must_change_password)

    def test_alterar_senha_rejects_mismatch(self):
        self.client.force_login(self.user)
        response = self.client.post(
            reverse("auth:alterar_senha"),
            data=json.dumps({"senha_atual": "Senha@123", "password1": "NovaSenha#2026", "password2": "Outra#2026"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("password2", response.json()["details"])


class DoisFatoresTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.user = _make_user("dois_fatores")
        self.client.force_login(self.user)

    def tearDown(self):
        cache.clear()

    def _post(self, name, payload=None):
        return self.client.post(reverse(name), data=json.dumps(payload or {}), content_type="application/json")

    def _codigo_atual(self):
        device = SegundoFator.objects.get(user=self.user)
        return totp.gerar_codigo(decrypt_secret(device.secret_enc))

    def test_setup_verify_and_login_with_code(self):
        response = self._post("auth:2fa_setup")
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertTrue(data["otpauth"].startswith("otpauth://totp/"))
        self.assertTrue(data["qrcode"].startswith("data:image/png;base64,"))

        response = self._post("auth:2fa_verificar", {"codigo": self._codigo_atual()})
        self.assertEqual(response.status_code, 200)
        backup = response.json()["data"]["backupCodes"]
        self.assertEqual(len(backup), 8)

        device = SegundoFator.objects.get(user=self.user)
        self.assertTrue(device.habilitado)
        self.assertNotIn(backup[0], device.backup_codes)
        self.assertTrue(
            UserManagementAudit.objects.filter(target=self.user, action=UserManagementAudit.Action.ENABLE_2FA).exists()
        )

        self.client.logout()
        response = self._post("auth:login", {"username": "dois_fatores", "password": "Senha@123"})
        self.assertEqual(response.status_code, 401)
        self.assertTrue(response.json()["details"]["requires2FA"])

        # backup code vale uma única vez
        response = self._post("auth:login", {"username": "dois_fatores", "password": "Senha@123", "codigo": backup[0]})
        self.assertEqual(response.status_code, 200)
        self.client.logout()
        response = self._post("auth:login", {"username": "dois_fatores", "password": "Senha@123", "codigo": backup[0]})
        self.assertEqual(response.status_code, 401)

    def test_verify_with_wrong_code(self):
        self._post("auth:2fa_setup")
        response = self._post("auth:2fa_verificar", {"codigo": "12345"})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(SegundoFator.objects.get(user=self.user).habilitado)

    def test_status_and_disable(self):
        self._post("auth:2fa_setup")
        backup = self._post("auth:2fa_verificar", {"codigo": self._codigo_atual()}).json()["data"]["backupCodes"]

        status = self.client.get(reverse("auth:2fa_status")).json()["data"]
        self.assertTrue(status["enabled"])

        response = self._post("auth:2fa_desativar", {"codigo": backup[1]})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(SegundoFator.objects.get(user=self.user).habilitado)


class UsuariosApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.outro = Tenant.objects.create(slug="caxias", nome="Câmara de Caxias", subdominio="caxias")
        self.gestor = _make_user("gestor", role="SECRETARIA", tenant=self.tenant)
        self.client.force_login(self.gestor)

    def test_create_user_returns_temporary_password(self):
        response = self.client.post(
            reverse("accounts:usuarios_list"),
            data=json.dumps({"username": "novo", "first_name": "Novo", "role": "EDITOR"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertTrue(data["senhaTemporaria"])
        self.assertEqual(data["tenantId"], self.tenant.pk)

        novo = User.objects.get(username="novo")
        self.assertTrue(novo.profile.must_change_password)
        self.assertTrue(UserManagementAudit.objects.filter(target=novo, action="CREATE").exists())

    def test_manager_cannot_create_admin(self):
        response = self.client.post(
            reverse("accounts:usuarios_list"),
            data=json.dumps({"username": "root2", "first_name": "Root", "role": "ADMIN"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 403)

    def test_duplicate_username_conflicts(self):
        _make_user("existente", tenant=self.tenant)
        response = self.client.post(
            reverse("accounts:usuarios_list"),
            data=json.dumps({"username": "EXISTENTE", "first_name": "X", "role": "LEITURA"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 409)

    def test_list_is_scoped_to_tenant(self):
        _make_user("local", tenant=self.tenant)
        _make_user("fora", tenant=self.outro)
        response = self.client.get(reverse("accounts:usuarios_list"))
        usernames = {u["username"] for u in response.json()["data"]}
        self.assertIn("local", usernames)
        self.assertNotIn("fora", usernames)

    def test_toggle_bloqueio_creates_audit(self):
        alvo = _make_user("alvo", tenant=self.tenant)
        response = self.client.post(reverse("accounts:usuario_toggle_bloqueio", args=[alvo.pk]))
        self.assertEqual(response.status_code, 200)
        alvo.refresh_from_db()
        self.assertTrue(alvo.profile.bloqueado)
        self.assertFalse(alvo.is_active)
        self.assertTrue(
            UserManagementAudit.objects.filter(target=alvo, action=UserManagementAudit.Action.BLOCK).exists()
        )

    def test_other_tenant_user_is_not_found(self):
        fora = _make_user("fora2", tenant=self.outro)
        response = self.client.post(reverse("accounts:usuario_reset_senha", args=[fora.pk]))
        self.assertEqual(response.status_code, 404)

    def test_reader_gets_forbidden(self):
        leitor = _make_user("leitor", tenant=self.tenant)
        self.client.force_login(leitor)
        response = self.client.get(reverse("accounts:usuarios_list"))
        self.assertEqual(response.status_code, 403)
