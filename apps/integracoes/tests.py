import json

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse

from apps.core.api import AcessoNegado, NaoAutenticado
from apps.core.models import AuditoriaEvento, TransparenciaEventoPublico
from apps.integracoes import services
from apps.integracoes.models import IntegrationToken
from apps.parlamentares.models import Parlamentar
from apps.tenants.models import Tenant


User = get_user_model()


def _make_user(username, *, role="SECRETARIA", tenant=None):
    user = User.objects.create_user(username=username, password="Senha@123")
    profile = user.profile
    profile.role = role
    profile.tenant = tenant
    profile.must_change_password = False
    profile.save()
    return user


class IntegracoesServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def test_plain_token_is_never_stored(self):
        token, plain = services.criar_token(
            tenant=self.tenant, dados={"nome": "Portal de dados", "permissoes": ["sessoes.read"]}
        )
        self.assertTrue(plain.startswith("cml_"))
        self.assertEqual(token.prefixo, plain[:12])
        self.assertNotEqual(token.token_hash, plain)
        self.assertEqual(len(token.token_hash), 64)
        self.assertTrue(
            AuditoriaEvento.objects.filter(tenant=self.tenant, modulo="INTEGRACOES", evento="TOKEN_CRIADO").exists()
        )
        self.assertTrue(
            TransparenciaEventoPublico.objects.filter(
                modulo=TransparenciaEventoPublico.Modulo.INTEGRACOES, tipo_evento="TOKEN_CRIADO", publico=False
            ).exists()
        )

    def test_authentication_and_permissions(self):
        token, plain = services.criar_token(
            tenant=self.tenant, dados={"nome": "Portal de dados", "permissoes": ["sessoes.read"]}
        )
        autenticado = services.autenticar_token(plain, permissao="sessoes.read", ip="10.0.0.1")
        self.assertEqual(autenticado.pk, token.pk)
        token.refresh_from_db()
        self.assertIsNotNone(token.ultimo_uso_em)
        self.assertEqual(token.ultimo_uso_ip, "10.0.0.1")

        with self.assertRaises(AcessoNegado):
            services.autenticar_token(plain, permissao="normas.read")
        with self.assertRaises(NaoAutenticado):
            services.autenticar_token("cml_desconhecido")

        services.atualizar_token(token, {"ativo": False})
        with self.assertRaises(NaoAutenticado):
            services.autenticar_token(plain)

    def test_rotation_invalidates_previous_token(self):
        token, antigo = services.criar_token(
            tenant=self.tenant, dados={"nome": "ERP", "permissoes": ["normas.read"]}
        )
        novo = services.rotacionar_token(token)
        self.assertNotEqual(novo, antigo)
        with self.assertRaises(NaoAutenticado):
            services.autenticar_token(antigo)
        self.assertEqual(services.autenticar_token(novo).pk, token.pk)


class IntegracoesApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.client.force_login(_make_user("secretaria", tenant=self.tenant))

    def tearDown(self):
        cache.clear()

    def _criar(self, payload):
        return self.client.post(
            reverse("integracoes:token_list"), data=json.dumps(payload), content_type="application/json"
        )

    def test_create_validates_permissions_and_returns_token_once(self):
        response = self._criar({"nome": "Sem permissões", "permissoes": []})
        self.assertEqual(response.status_code, 400)
        response = self._criar({"nome": "Inválida", "permissoes": ["sessoes.write"]})
        self.assertEqual(response.status_code, 400)
        self.assertIn("permissoes", response.json()["details"])

        response = self._criar({"nome": "Portal", "permissoes": ["parlamentares.read", "sessoes.read"]})
        self.assertEqual(response.status_code, 201, response.content)
        self.assertIn("token", response.json()["data"])

        response = self.client.get(reverse("integracoes:token_list"))
        self.assertNotIn("token", response.json()["data"][0])

    def test_bearer_data_api(self):
        Parlamentar.objects.create(tenant=self.tenant, nome="Maria da Silva", apelido="Maria")
        plain = self._criar({"nome": "Portal", "permissoes": ["parlamentares.read"]}).json()["data"]["token"]
        self.client.logout()

        response = self.client.get("/api/integracoes/dados/parlamentares/")
        self.assertEqual(response.status_code, 401)

        response = self.client.get("/api/integracoes/dados/parlamentares/", HTTP_AUTHORIZATION=f"Bearer {plain}")
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["meta"]["total"], 1)

        response = self.client.get("/api/integracoes/dados/normas/", HTTP_AUTHORIZATION=f"Bearer {plain}")
        self.assertEqual(response.status_code, 403)

        response = self.client.get("/api/integracoes/dados/financeiro/", HTTP_AUTHORIZATION=f"Bearer {plain}")
        self.assertEqual(response.status_code, 404)

    def test_reader_cannot_manage_tokens(self):
        self.client.force_login(_make_user("leitura", role="LEITURA", tenant=self.tenant))
        response = self.client.get(reverse("integracoes:token_list"))
        self.assertEqual(response.status_code, 403)
