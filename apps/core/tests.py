import json
from datetime import date

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.core.cache import cache
from django.http import HttpResponse
from django.test import RequestFactory, TestCase
from django.urls import reverse

from apps.core.api import (
    Conflito,
    DadosInvalidos,
    NaoEncontrado,
    api_success,
    api_view,
    paginate,
    parse_bool,
    parse_int,
    read_json,
)
from apps.core.exports import render_csv
from apps.core.middleware import RBACMiddleware
from apps.core.models import AuditoriaEvento, TransparenciaEventoPublico
from apps.core.rbac import can
from apps.core.security.cripto import cpf_hash, cpf_valido, decrypt_secret, encrypt_secret, mask_cpf
from apps.core.services_auditoria import registrar_auditoria
from apps.core.services_transparencia import publicar_evento_transparencia
from apps.parlamentares.models import Legislatura, Parlamentar
from apps.proposicoes.models import Proposicao
from apps.sessoes.models import Sessao
from apps.tenants.models import Tenant


User = get_user_model()


def _make_user(username, *, role="SECRETARIA", tenant=None, parlamentar=None):
    user = User.objects.create_user(username=username, password="Senha@123")
    profile = user.profile
    profile.role = role
    profile.tenant = tenant
    profile.parlamentar = parlamentar
    profile.must_change_password = False
    profile.save()
    return user


class RBACTestCase(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = RBACMiddleware(lambda req: HttpResponse("ok"))

    def test_fine_and_macro_permissions_depend_on_role(self):
        editor = _make_user("editor_t", role="EDITOR")
        leitura = _make_user("leitura_t", role="LEITURA")
        operador = _make_user("operador_t", role="OPERADOR")

        self.assertTrue(can(editor, "noticias.manage"))
        self.assertFalse(can(editor, "sessoes.manage"))
        self.assertTrue(can(leitura, "sessoes"))
        self.assertFalse(can(leitura, "noticias"))
        self.assertTrue(can(operador, "sessoes.operar"))
        self.assertFalse(can(operador, "sessoes.votar"))

    def test_blocked_profile_loses_every_permission(self):
        user = _make_user("bloqueado_t")
        user.profile.bloqueado = True
        user.profile.save(update_fields=["bloqueado"])
        self.assertFalse(can(user, "sessoes.view"))

    def test_superuser_is_admin(self):
        admin = User.objects.create_superuser(username="root_t", password="x", email="root@camara.leg.br")
        self.assertTrue(can(admin, "tenants.manage"))
        self.assertTrue(can(admin, "sessoes.votar"))

    def test_middleware_returns_401_for_anonymous_api_calls(self):
        request = self.factory.get("/api/sessoes/")
        request.user = AnonymousUser()
        response = self.middleware(request)
        self.assertEqual(response.status_code, 401)
        self.assertFalse(json.loads(response.content)["success"])

    def test_middleware_blocks_namespace_without_permission(self):
        request = self.factory.get("/api/noticias/")
        request.user = _make_user("leitura_mw", role="LEITURA")
        self.assertEqual(self.middleware(request).status_code, 403)

    def test_middleware_allows_public_routes(self):
        for path in ("/api/publico/sessoes/", "/api/integracoes/dados/sessoes/", "/api/health/", "/api/auth/login/"):
            request = self.factory.get(path)
            request.user = AnonymousUser()
            self.assertEqual(self.middleware(request).status_code, 200, path)

    def test_middleware_allows_static_paths(self):
        request = self.factory.get("/static/css/app.css")
        request.user = AnonymousUser()
        self.assertEqual(self.middleware(request).status_code, 200)


class ApiHelpersTestCase(TestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def test_error_envelope(self):
        @api_view
        def view(request):
            raise Conflito("Já existe", details={"campo": "numero"})

        response = view(self.factory.get("/api/x/"))
        body = json.loads(response.content)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(body["error"], "Já existe")
        self.assertEqual(body["details"], {"campo": "numero"})
        self.assertEqual(body["path"], "/api/x/")

    def test_not_found_message_and_unexpected_error(self):
        self.assertEqual(str(NaoEncontrado("Sessão")), "Sessão não encontrado(a)")

        @api_view
        def view(request):
            raise RuntimeError("boom")

        with self.assertLogs("apps.core.api", level="ERROR"):
            response = view(self.factory.get("/api/x/"))
        self.assertEqual(response.status_code, 500)
        self.assertNotIn("boom", response.content.decode())

    def test_success_envelope_with_meta(self):
        body = json.loads(api_success([1], message="ok", meta={"total": 1}).content)
        self.assertEqual(body, {"success": True, "data": [1], "message": "ok", "meta": {"total": 1}})

    def test_read_json_rejects_invalid_body(self):
        request = self.factory.post("/api/x/", data="{nao-json", content_type="application/json")
        with self.assertRaises(DadosInvalidos):
            read_json(request)

    def test_paginate_caps_limit(self):
        tenant = Tenant.objects.create(slug="pag", nome="Câmara Pag")
        AuditoriaEvento.objects.bulk_create(
            AuditoriaEvento(tenant=tenant, modulo="X", evento="E", entidade="T", entidade_id=str(i))
            for i in range(5)
        )
        request = self.factory.get("/api/x/", {"page": "2", "limit": "2"})
        items, meta = paginate(request, AuditoriaEvento.objects.order_by("id"))
        self.assertEqual(len(items), 2)
        self.assertEqual(meta, {"total": 5, "page": 2, "limit": 2, "totalPages": 3})

        _, meta = paginate(self.factory.get("/api/x/", {"limit": "1000"}), AuditoriaEvento.objects.all())
        self.assertEqual(meta["limit"], 100)

    def test_parsers(self):
        self.assertEqual(parse_int("12"), 12)
        self.assertEqual(parse_int("x", 3), 3)
        self.assertTrue(parse_bool("sim"))
        self.assertFalse(parse_bool("false"))
        self.assertIsNone(parse_bool(None))


class CriptoExportsTestCase(TestCase):
    def test_cpf_validation_and_mask(self):
        self.assertTrue(cpf_valido("529.982.247-25"))
        self.assertFalse(cpf_valido("529.982.247-24"))
        self.assertFalse(cpf_valido("111.111.111-11"))
        self.assertEqual(mask_cpf("52998224725"), "***.***.***-25")

    def test_cpf_hash_ignores_formatting(self):
        self.assertEqual(cpf_hash("529.982.247-25"), cpf_hash("52998224725"))
        self.assertNotEqual(cpf_hash("529.982.247-25"), cpf_hash("111.444.777-35"))
        self.assertEqual(cpf_hash(""), "")

    def test_secret_encryption(self):
        token = encrypt_secret("segredo", key="chave")
        self.assertEqual(decrypt_secret(token, key="chave"), "segredo")
        with self.assertRaises(ValueError):
            decrypt_secret(token, key="outra")

    def test_csv_has_bom_and_semicolon(self):
        conteudo = render_csv(["Nome", "Total"], [["Ana", 2], ["Bruno", None]]).decode("utf-8")
        self.assertEqual(conteudo, "\ufeffNome;Total\r\nAna;2\r\nBruno;\r\n")


class AuditoriaTransparenciaServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def test_audit_ignores_anonymous_user(self):
        evento = registrar_auditoria(
            tenant=self.tenant,
            modulo="sessoes",
            evento="SESSAO_CRIADA",
            entidade="Sessao",
            entidade_id=10,
            usuario=AnonymousUser(),
            depois={"numero": 1},
        )
        self.assertEqual(evento.modulo, "SESSOES")
        self.assertEqual(evento.entidade_id, "10")
        self.assertIsNone(evento.usuario)

    def test_unknown_module_falls_back_to_outros(self):
        evento = publicar_evento_transparencia(
            tenant=self.tenant,
            modulo="financeiro",
            tipo_evento="PAGAMENTO",
            titulo="Pagamento",
        )
        self.assertEqual(evento.modulo, TransparenciaEventoPublico.Modulo.OUTROS)


class CoreApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def tearDown(self):
        cache.clear()

    def test_health_is_public(self):
        response = self.client.get(reverse("core:health"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "ok")

    def test_dashboard_counts_tenant_data(self):
        legislatura = Legislatura.objects.create(tenant=self.tenant, numero=20, ano_inicio=2025, ano_fim=2028)
        autor = Parlamentar.objects.create(tenant=self.tenant, nome="Ana Souza")
        Sessao.objects.create(
            tenant=self.tenant,
            legislatura=legislatura,
            numero=1,
            data=date(2099, 2, 1),
            status=Sessao.Status.AGENDADA,
        )
        Proposicao.objects.create(
            tenant=self.tenant,
            tipo=Proposicao.Tipo.INDICACAO,
            numero="1",
            ano=2026,
            titulo="Indica reforma da praça",
            ementa="Indica ao Executivo a reforma da praça central.",
            autor=autor,
        )
        outra = Tenant.objects.create(slug="outra", nome="Outra Câmara")
        Parlamentar.objects.create(tenant=outra, nome="Fora")

        self.client.force_login(_make_user("vereadora", role="PARLAMENTAR", tenant=self.tenant, parlamentar=autor))
        response = self.client.get(reverse("core:dashboard"))
        self.assertEqual(response.status_code, 200, response.content)
        data = response.json()["data"]
        self.assertEqual(data["parlamentares"]["total"], 1)
        self.assertEqual(data["sessoes"]["proxima"]["numero"], 1)
        self.assertEqual(data["proposicoes"]["pendentes"], 1)
        self.assertEqual(data["meuMandato"]["proposicoes"], 1)

    def test_dashboard_requires_login(self):
        self.assertEqual(self.client.get(reverse("core:dashboard")).status_code, 401)

    def test_audit_list_filters_and_permissions(self):
        registrar_auditoria(tenant=self.tenant, modulo="SESSOES", evento="A", entidade="Sessao", entidade_id=1)
        registrar_auditoria(tenant=self.tenant, modulo="NORMAS", evento="B", entidade="Norma", entidade_id=2)

        self.client.force_login(_make_user("secretaria", tenant=self.tenant))
        response = self.client.get(reverse("core:auditoria_list"), {"modulo": "normas"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["meta"]["total"], 1)
        self.assertEqual(response.json()["data"][0]["evento"], "B")

        response = self.client.get(reverse("core:auditoria_list"), {"formato": "csv"})
        self.assertEqual(response["Content-Type"], "text/csv; charset=utf-8")

        self.client.force_login(_make_user("editor", role="EDITOR", tenant=self.tenant))
        self.assertEqual(self.client.get(reverse("core:auditoria_list")).status_code, 403)
