import json
from datetime import date

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.core.api import Conflito, DadosInvalidos
from apps.core.models import TransparenciaEventoPublico
from apps.parlamentares.models import Parlamentar
from apps.tenants.models import Tenant
from apps.transparencia import services
from apps.transparencia.models import CategoriaPublicacao, Publicacao


User = get_user_model()


def _make_user(username, *, role="SECRETARIA", tenant=None):
    user = User.objects.create_user(username=username, password="Senha@123")
    profile = user.profile
    profile.role = role
    profile.tenant = tenant
    profile.must_change_password = False
    profile.save()
    return user


class TransparenciaServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def _publicacao(self, **extra):
        dados = {
            "tipo": Publicacao.Tipo.PORTARIA,
            "data": date(2026, 2, 10),
            "titulo": "Portaria de nomeação",
            "autor_tipo": Publicacao.AutorTipo.ORGAO,
            "autor_nome": "Mesa Diretora",
        }
        dados.update(extra)
        return services.criar_publicacao(tenant=self.tenant, dados=dados)

    def test_year_defaults_to_date_and_draft_is_not_announced(self):
        publicacao = self._publicacao()
        self.assertEqual(publicacao.ano, 2026)
        self.assertIsNone(publicacao.publicada_em)
        self.assertFalse(TransparenciaEventoPublico.objects.filter(tipo_evento="PUBLICACAO_DIVULGADA").exists())

    def test_first_publication_announces_event_once(self):
        publicacao = self._publicacao()
        services.atualizar_publicacao(publicacao, {"publicada": True})
        self.assertIsNotNone(publicacao.publicada_em)
        services.atualizar_publicacao(publicacao, {"titulo": "Portaria de nomeação retificada"})
        eventos = TransparenciaEventoPublico.objects.filter(
            tipo_evento="PUBLICACAO_DIVULGADA", referencia=f"publicacao:{publicacao.pk}"
        )
        self.assertEqual(eventos.count(), 1)

    def test_parlamentar_author_requires_parlamentar(self):
        with self.assertRaises(DadosInvalidos):
            self._publicacao(autor_tipo=Publicacao.AutorTipo.PARLAMENTAR)

        parlamentar = Parlamentar.objects.create(tenant=self.tenant, nome="Maria da Silva", apelido="Maria")
        publicacao = self._publicacao(autor_tipo=Publicacao.AutorTipo.PARLAMENTAR, parlamentar=parlamentar)
        self.assertEqual(publicacao.autor_nome, parlamentar.nome_exibicao)

        services.atualizar_publicacao(publicacao, {"autor_tipo": Publicacao.AutorTipo.COMISSAO})
        self.assertIsNone(publicacao.parlamentar)

    def test_category_with_publications_cannot_be_removed(self):
        categoria = services.criar_categoria(tenant=self.tenant, dados={"nome": "Orçamento"})
        with self.assertRaises(Conflito):
            services.criar_categoria(tenant=self.tenant, dados={"nome": "orçamento"})
        self._publicacao(categoria=categoria)
        with self.assertRaises(Conflito):
            services.excluir_categoria(categoria)

    def test_lrf_groups_and_statistics(self):
        self._publicacao(tipo=Publicacao.Tipo.LOA, titulo="LOA 2026", publicada=True)
        self._publicacao(tipo=Publicacao.Tipo.RGF, titulo="RGF 1º quadrimestre", publicada=True)
        self._publicacao(tipo=Publicacao.Tipo.RGF, titulo="RGF 2º quadrimestre")

        grupos = services.documentos_lrf(self.tenant, 2026)
        self.assertEqual(len(grupos["LOA"]), 1)
        self.assertEqual(len(grupos["RGF"]), 1)
        self.assertEqual(grupos["PPA"], [])

        stats = services.estatisticas(self.tenant)
        self.assertEqual((stats["total"], stats["publicadas"], stats["rascunhos"]), (3, 2, 1))
        self.assertEqual(stats["porTipo"], {"LOA": 1, "RGF": 2})
        self.assertEqual(services.anos_disponiveis(self.tenant), [2026])

    def test_view_counter(self):
        publicacao = self._publicacao(publicada=True)
        services.registrar_visualizacao(publicacao)
        self.assertEqual(services.registrar_visualizacao(publicacao), 2)


class TransparenciaApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.client.force_login(_make_user("editor", role="EDITOR", tenant=self.tenant))

    def tearDown(self):
        cache.clear()

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def test_create_and_filter_publications(self):
        response = self._post(
            reverse("transparencia:publicacao_list"),
            {"tipo": "EDITAL", "data": "2026-04-01", "titulo": "Edital de concurso", "publicada": True},
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["data"]["ano"], 2026)

        self._post(
            reverse("transparencia:publicacao_list"),
            {"tipo": "PORTARIA", "data": "2025-05-01", "titulo": "Portaria antiga"},
        )
        response = self.client.get(reverse("transparencia:publicacao_list"), {"tipo": "edital"})
        self.assertEqual(response.json()["meta"]["total"], 1)
        response = self.client.get(reverse("transparencia:publicacao_list"), {"publicada": "false"})
        self.assertEqual(response.json()["data"][0]["titulo"], "Portaria antiga")

    def test_short_title_is_rejected(self):
        response = self._post(
            reverse("transparencia:publicacao_list"),
            {"tipo": "EDITAL", "titulo": "Ed"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("titulo", response.json()["details"])

    @override_settings(MEDIA_ROOT="/tmp/camara-test-media")
    def test_file_upload_checks_extension(self):
        publicacao = Publicacao.objects.create(
            tenant=self.tenant, tipo=Publicacao.Tipo.RELATORIO, ano=2026, titulo="Relatório anual"
        )
        url = reverse("transparencia:publicacao_arquivo", kwargs={"pk": publicacao.pk})
        response = self.client.post(url, {"arquivo": SimpleUploadedFile("script.exe", b"MZ")})
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            url, {"arquivo": SimpleUploadedFile("relatorio.pdf", b"%PDF-1.4", content_type="application/pdf")}
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.assertTrue(response.json()["data"]["arquivoUrl"].endswith(".pdf"))

    def test_csv_export(self):
        Publicacao.objects.create(tenant=self.tenant, tipo=Publicacao.Tipo.LEI, ano=2026, titulo="Lei do orçamento")
        response = self.client.get(reverse("transparencia:publicacao_exportar_csv"))
        self.assertEqual(response.status_code, 200)
        self.assertIn("text/csv", response["Content-Type"])
        self.assertIn("Lei do orçamento", response.content.decode("utf-8-sig"))

    def test_reader_cannot_manage(self):
        self.client.force_login(_make_user("leitura", role="LEITURA", tenant=self.tenant))
        response = self.client.get(reverse("transparencia:publicacao_list"))
        self.assertEqual(response.status_code, 200)
        response = self._post(reverse("transparencia:categoria_list"), {"nome": "Licitações"})
        self.assertEqual(response.status_code, 403)

    def test_public_portal(self):
        categoria = CategoriaPublicacao.objects.create(tenant=self.tenant, nome="Orçamento")
        publicada = Publicacao.objects.create(
            tenant=self.tenant, tipo=Publicacao.Tipo.LOA, ano=2026, titulo="LOA 2026", publicada=True, categoria=categoria
        )
        Publicacao.objects.create(tenant=self.tenant, tipo=Publicacao.Tipo.LDO, ano=2026, titulo="LDO rascunho")
        self.client.logout()

        response = self.client.get("/api/publico/transparencia/publicacoes/", HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["meta"]["total"], 1)

        response = self.client.get(
            f"/api/publico/transparencia/publicacoes/{publicada.pk}/", HTTP_HOST="saoluis.camaras.leg.br"
        )
        self.assertEqual(response.json()["data"]["visualizacoes"], 1)

        response = self.client.get("/api/publico/transparencia/lrf/", HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual(len(response.json()["data"]["LOA"]), 1)
        self.assertEqual(response.json()["data"]["LDO"], [])

    def test_patch_publish_stamps_date_and_announces_once(self):
        response = self._post(
            reverse("transparencia:publicacao_list"),
            {"tipo": "PORTARIA", "data": "2026-02-10", "titulo": "Portaria de nomeação"},
        )
        pk = response.json()["data"]["id"]
        url = reverse("transparencia:publicacao_detail", kwargs={"pk": pk})

        response = self.client.patch(url, data=json.dumps({"publicada": True}), content_type="application/json")
        self.assertEqual(response.status_code, 200, response.content)
        publicacao = Publicacao.objects.get(pk=pk)
        self.assertTrue(publicacao.publicada)
        self.assertIsNotNone(publicacao.publicada_em)

        self.client.patch(
            url, data=json.dumps({"titulo": "Portaria de nomeação retificada"}), content_type="application/json"
        )
        eventos = TransparenciaEventoPublico.objects.filter(tipo_evento="PUBLICACAO_DIVULGADA", referencia=f"publicacao:{pk}")
        self.assertEqual(eventos.count(), 1)
        self.assertEqual(Publicacao.objects.get(pk=pk).publicada_em, publicacao.publicada_em)
