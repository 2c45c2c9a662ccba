import json
import shutil
import tempfile
from datetime import date
from io import BytesIO

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from PIL import Image

from apps.core.api import Conflito
from apps.parlamentares import services
from apps.parlamentares.models import Legislatura, Mandato, Parlamentar
from apps.proposicoes.models import Proposicao
from apps.tenants.models import Tenant


User = get_user_model()

MEDIA_TMP = tempfile.mkdtemp()


def _make_user(username, *, role="SECRETARIA", tenant=None):
    user = User.objects.create_user(username=username, password="Senha@123")
    profile = user.profile
    profile.role = role
    profile.tenant = tenant
    profile.must_change_password = False
    profile.save()
    return user


def _png(width=800, height=400) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color=(30, 64, 175)).save(buf, format="PNG")
    return buf.getvalue()


class ParlamentaresServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def test_only_one_active_legislatura(self):
        primeira = services.criar_legislatura(
            tenant=self.tenant, dados={"numero": 18, "ano_inicio": 2021, "ano_fim": 2024, "ativa": True}
        )
        segunda = services.criar_legislatura(
            tenant=self.tenant, dados={"numero": 19, "ano_inicio": 2025, "ano_fim": 2028, "ativa": True}
        )
        primeira.refresh_from_db()
        self.assertFalse(primeira.ativa)
        self.assertEqual(services.legislatura_ativa(self.tenant), segunda)

        services.ativar_legislatura(primeira)
        segunda.refresh_from_db()
        self.assertFalse(segunda.ativa)

        with self.assertRaises(Conflito):
            services.criar_legislatura(tenant=self.tenant, dados={"numero": 19, "ano_inicio": 2025, "ano_fim": 2028})

    def test_periodo_vigente(self):
        legislatura = Legislatura.objects.create(tenant=self.tenant, numero=19, ano_inicio=2025, ano_fim=2028)
        services.criar_periodo(legislatura, {"numero": 1, "data_inicio": date(2025, 1, 1), "data_fim": date(2025, 12, 31)})
        services.criar_periodo(legislatura, {"numero": 2, "data_inicio": date(2026, 1, 1), "data_fim": None})
        self.assertEqual(services.periodo_vigente(legislatura, date(2025, 6, 1)).numero, 1)
        self.assertEqual(services.periodo_vigente(legislatura, date(2026, 6, 1)).numero, 2)
        self.assertIsNone(services.periodo_vigente(legislatura, date(2024, 6, 1)))
        with self.assertRaises(Conflito):
            services.criar_periodo(legislatura, {"numero": 2, "data_inicio": date(2026, 1, 1)})

    def test_mandato_is_unique_per_legislatura(self):
        legislatura = Legislatura.objects.create(tenant=self.tenant, numero=19, ano_inicio=2025, ano_fim=2028)
        parlamentar = Parlamentar.objects.create(tenant=self.tenant, nome="Maria Souza")
        dados = {"parlamentar": parlamentar, "legislatura": legislatura, "data_inicio": date(2025, 1, 1)}
        services.criar_mandato(dados)
        with self.assertRaises(Conflito):
            services.criar_mandato(dados)

    def test_statistics_count_authored_proposicoes(self):
        parlamentar = Parlamentar.objects.create(tenant=self.tenant, nome="João Lima")
        for numero, status in (("001", "APROVADA"), ("002", "EM_TRAMITACAO")):
            Proposicao.objects.create(
                tenant=self.tenant,
                tipo="PROJETO_LEI",
                numero=numero,
                ano=2026,
                titulo="Projeto qualquer",
                ementa="Ementa suficientemente longa",
                autor=parlamentar,
                status=status,
            )
        stats = services.estatisticas_parlamentar(parlamentar)
        self.assertEqual(stats["proposicoes"]["total"], 2)
        self.assertEqual(stats["proposicoes"]["aprovadas"], 1)
        self.assertEqual(stats["presenca"]["percentual"], 0.0)
        self.assertEqual(stats["votos"], 0)


@override_settings(MEDIA_ROOT=MEDIA_TMP)
class ParlamentaresApiTestCase(TestCase):
    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_TMP, ignore_errors=True)

    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.outro = Tenant.objects.create(slug="caxias", nome="Câmara de Caxias", subdominio="caxias")
        self.user = _make_user("secretaria", tenant=self.tenant)
        self.client.force_login(self.user)

    def tearDown(self):
        cache.clear()

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def test_create_list_and_partial_update(self):
        response = self._post(reverse("parlamentares:parlamentar_list"), {"nome": "Ana Costa", "partido": " pt "})
        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["partido"], "PT")
        self.assertTrue(data["ativo"])

        url = reverse("parlamentares:parlamentar_detail", kwargs={"pk": data["id"]})
        response = self.client.patch(url, data=json.dumps({"apelido": "Aninha"}), content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["nome"], "Ana Costa")
        self.assertEqual(response.json()["data"]["nomeExibicao"], "Aninha")

        response = self.client.get(reverse("parlamentares:parlamentar_list"), {"q": "ana"})
        self.assertEqual(response.json()["meta"]["total"], 1)

    def test_missing_name_is_400(self):
        response = self._post(reverse("parlamentares:parlamentar_list"), {"partido": "PT"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("nome", response.json()["details"])

    def test_delete_deactivates(self):
        parlamentar = Parlamentar.objects.create(tenant=self.tenant, nome="Carlos Dias")
        response = self.client.delete(reverse("parlamentares:parlamentar_detail", kwargs={"pk": parlamentar.pk}))
        self.assertEqual(response.status_code, 200)
        parlamentar.refresh_from_db()
        self.assertFalse(parlamentar.ativo)

    def test_other_tenant_is_not_found(self):
        alheio = Parlamentar.objects.create(tenant=self.outro, nome="Fora da Câmara")
        response = self.client.get(reverse("parlamentares:parlamentar_detail", kwargs={"pk": alheio.pk}))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Parlamentar não encontrado(a)")

    def test_photo_is_cropped_to_square(self):
        parlamentar = Parlamentar.objects.create(tenant=self.tenant, nome="Paula Reis")
        foto = SimpleUploadedFile("paula.png", _png(), content_type="image/png")
        response = self.client.post(
            reverse("parlamentares:parlamentar_foto", kwargs={"pk": parlamentar.pk}), {"foto": foto}
        )
        self.assertEqual(response.status_code, 200)
        parlamentar.refresh_from_db()
        self.assertTrue(parlamentar.foto.name.endswith(".jpg"))
        with Image.open(parlamentar.foto.path) as img:
            self.assertEqual(img.size, (512, 512))

    def test_legislatura_delete_blocked_by_mandatos(self):
        legislatura = Legislatura.objects.create(tenant=self.tenant, numero=19, ano_inicio=2025, ano_fim=2028)
        parlamentar = Parlamentar.objects.create(tenant=self.tenant, nome="Rita Alves")
        Mandato.objects.create(parlamentar=parlamentar, legislatura=legislatura, data_inicio=date(2025, 1, 1))
        response = self.client.delete(reverse("parlamentares:legislatura_detail", kwargs={"pk": legislatura.pk}))
        self.assertEqual(response.status_code, 409)

    def test_mesa_with_members(self):
        legislatura = Legislatura.objects.create(
            tenant=self.tenant, numero=19, ano_inicio=2025, ano_fim=2028, ativa=True
        )
        presidente = Parlamentar.objects.create(tenant=self.tenant, nome="Pedro Melo")
        response = self._post(
            reverse("parlamentares:mesa_list"),
            {
                "legislatura": legislatura.pk,
                "membros": [{"parlamentar": presidente.pk, "cargo": "PRESIDENTE", "data_inicio": "2025-01-01"}],
            },
        )
        self.assertEqual(response.status_code, 201, response.content)

        self.client.logout()
        response = self.client.get("/api/publico/mesa-diretora/", HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["data"]["membros"]), 1)

    def test_reading_role_cannot_write(self):
        self.client.force_login(_make_user("leitor", role="LEITURA", tenant=self.tenant))
        response = self._post(reverse("parlamentares:parlamentar_list"), {"nome": "Não Pode"})
        self.assertEqual(response.status_code, 403)

    def test_public_list_shows_only_active(self):
        Parlamentar.objects.create(tenant=self.tenant, nome="Ativo")
        Parlamentar.objects.create(tenant=self.tenant, nome="Inativo", ativo=False)
        Parlamentar.objects.create(tenant=self.outro, nome="Outra Câmara")
        self.client.logout()
        response = self.client.get("/api/publico/parlamentares/", HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual([p["nome"] for p in response.json()["data"]], ["Ativo"])
