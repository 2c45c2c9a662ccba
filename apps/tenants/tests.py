import json

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.core.api import Conflito, DadosInvalidos
from apps.tenants import services
from apps.tenants.models import Tenant


User = get_user_model()


class IdentificarHostTestCase(TestCase):
    def test_normalizes_port_case_and_forwarded_list(self):
        self.assertEqual(services.normalizar_host("SaoLuis.Camaras.Leg.BR:8000"), "saoluis.camaras.leg.br")
        self.assertEqual(services.normalizar_host("a.example.org, proxy.local"), "a.example.org")
        self.assertEqual(services.normalizar_host("[::1]:8000"), "::1")

    def test_host_types(self):
        self.assertEqual(services.identificar_host("saoluis.camaras.leg.br"), ("subdomain", "saoluis"))
        self.assertEqual(services.identificar_host("www.camaraexemplo.sp.leg.br"), ("domain", "www.camaraexemplo.sp.leg.br"))
        self.assertEqual(services.identificar_host("localhost:8000"), ("default", ""))
        self.assertEqual(services.identificar_host("10.0.0.5"), ("default", ""))
        self.assertEqual(services.identificar_host("camaras.leg.br"), ("default", ""))

    @override_settings(CAMARA_RESERVED_SUBDOMAINS=["app", "www"], CAMARA_DEFAULT_TENANT_SLUG="padrao")
    def test_reserved_and_nested_subdomains_use_default(self):
        self.assertEqual(services.identificar_host("app.camaras.leg.br"), ("default", "padrao"))
        self.assertEqual(services.identificar_host("a.b.camaras.leg.br"), ("default", "padrao"))

    def test_normalizar_slug(self):
        self.assertEqual(services.normalizar_slug("Câmara de São Luís"), "camara-de-sao-luis")
        self.assertEqual(services.normalizar_slug(""), "")


class ResolverTenantTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(
            slug="sao-luis",
            nome="Câmara de São Luís",
            subdominio="saoluis",
            dominio="www.camarasaoluis.ma.leg.br",
        )

    def tearDown(self):
        cache.clear()

    def test_resolves_by_subdomain_domain_and_slug(self):
        self.assertEqual(services.resolver_tenant_por_host("saoluis.camaras.leg.br"), self.tenant)
        self.assertEqual(services.resolver_tenant_por_host("www.camarasaoluis.ma.leg.br"), self.tenant)
        self.assertEqual(services.resolver_tenant_por_host("sao-luis.camaras.leg.br"), self.tenant)
        self.assertIsNone(services.resolver_tenant_por_host("inexistente.camaras.leg.br"))

    @override_settings(CAMARA_DEFAULT_TENANT_SLUG="sao-luis")
    def test_falls_back_to_default_tenant(self):
        self.assertEqual(services.resolver_tenant_por_host("localhost"), self.tenant)
        self.assertEqual(services.resolver_tenant_por_host("inexistente.camaras.leg.br"), self.tenant)

    def test_lookup_is_memoized_including_misses(self):
        services.buscar_tenant("subdomain", "saoluis")
        self.assertIsNone(services.buscar_tenant("subdomain", "outra"))

        with self.assertNumQueries(0):
            self.assertEqual(services.buscar_tenant("subdomain", "saoluis"), self.tenant)
            self.assertIsNone(services.buscar_tenant("subdomain", "outra"))

    def test_writes_invalidate_cache(self):
        self.assertEqual(services.buscar_tenant("subdomain", "saoluis"), self.tenant)
        services.desativar_tenant(self.tenant.pk)
        self.assertIsNone(services.buscar_tenant("subdomain", "saoluis"))

        outra = services.criar_tenant({"nome": "Câmara de Outra Cidade", "subdominio": "outra"})
        self.assertEqual(services.buscar_tenant("subdomain", "outra"), outra)

    def test_invalid_identifier_type(self):
        with self.assertRaises(ValueError):
            services.buscar_tenant("cnpj", "123")

    def test_inactive_tenants_are_hidden_by_default(self):
        services.desativar_tenant(self.tenant.pk)
        self.assertIsNone(services.buscar_tenant_por_id(self.tenant.pk))
        self.assertEqual(services.buscar_tenant_por_id(self.tenant.pk, incluir_inativos=True), self.tenant)
        self.assertEqual(list(services.listar_tenants_ativos()), [])


class TenantServicesTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = services.criar_tenant({"slug": "Sao Luis", "nome": "Câmara de São Luís", "subdominio": "SaoLuis"})

    def tearDown(self):
        cache.clear()

    def test_create_normalizes_fields(self):
        self.assertEqual(self.tenant.slug, "sao-luis")
        self.assertEqual(self.tenant.subdominio, "saoluis")
        self.assertEqual(self.tenant.dominio_publico, "saoluis.camaras.leg.br")

    def test_uniqueness_conflicts(self):
        with self.assertRaises(Conflito):
            services.criar_tenant({"slug": "sao-luis", "nome": "Duplicada"})
        with self.assertRaises(Conflito):
            services.criar_tenant({"nome": "Outra", "subdominio": "saoluis"})
        self.assertTrue(services.subdominio_existe("saoluis"))
        self.assertFalse(services.subdominio_existe("saoluis", excluir_id=self.tenant.pk))

    def test_slug_required(self):
        with self.assertRaises(DadosInvalidos):
            services.criar_tenant({"nome": "!!!"})

    def test_update_keeps_own_identifiers(self):
        tenant = services.atualizar_tenant(self.tenant.pk, {"subdominio": "saoluis", "estado": "ma"})
        self.assertEqual(tenant.estado, "MA")


class TenantApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.admin = User.objects.create_superuser(username="admin", password="x", email="admin@camaras.leg.br")
        self.admin.profile.must_change_password = False
        self.admin.profile.save(update_fields=["must_change_password"])

    def tearDown(self):
        cache.clear()

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def test_current_tenant_is_public(self):
        response = self.client.get(reverse("tenant_atual"), HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["data"]["slug"], "sao-luis")
        self.assertNotIn("plano", response.json()["data"])

        response = self.client.get(reverse("tenant_atual"), HTTP_HOST="nenhuma.camaras.leg.br")
        self.assertEqual(response.status_code, 404)

    def test_admin_crud(self):
        self.client.force_login(self.admin)
        response = self._post(reverse("tenants:list"), {"nome": "Câmara de Imperatriz", "subdominio": "imperatriz"})
        self.assertEqual(response.status_code, 201, response.content)
        pk = response.json()["data"]["id"]
        self.assertEqual(response.json()["data"]["slug"], "camara-de-imperatriz")

        response = self._post(reverse("tenants:list"), {"nome": "Outra", "subdominio": "imperatriz"})
        self.assertEqual(response.status_code, 409)

        response = self.client.patch(
            reverse("tenants:detail", args=[pk]),
            data=json.dumps({"cor_primaria": "#000000"}),
            content_type="application/json",
        )
        self.assertEqual(response.json()["data"]["corPrimaria"], "#000000")
        self.assertEqual(response.json()["data"]["subdominio"], "imperatriz")

        response = self.client.delete(reverse("tenants:detail", args=[pk]))
        self.assertFalse(response.json()["data"]["ativo"])

        response = self.client.get(reverse("tenants:list"), {"ativo": "true"})
        self.assertEqual(response.json()["meta"]["total"], 1)

    def test_invalid_color(self):
        self.client.force_login(self.admin)
        response = self._post(reverse("tenants:list"), {"nome": "Câmara X", "cor_primaria": "azul"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("cor_primaria", response.json()["details"])

    def test_non_admin_is_forbidden(self):
        user = User.objects.create_user(username="secretaria", password="x")
        user.profile.role = "SECRETARIA"
        user.profile.tenant = self.tenant
        user.profile.must_change_password = False
        user.profile.save()
        self.client.force_login(user)
        self.assertEqual(self.client.get(reverse("tenants:list")).status_code, 403)
