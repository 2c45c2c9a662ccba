import json
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.noticias import services
from apps.noticias.models import Noticia
from apps.tenants.models import Tenant


User = get_user_model()


def _make_user(username, *, role="EDITOR", tenant=None):
    user = User.objects.create_user(username=username, password="Senha@123")
    profile = user.profile
    profile.role = role
    profile.tenant = tenant
    profile.must_change_password = False
    profile.save()
    return user


class NoticiaModelTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def test_slug_is_unique_per_tenant(self):
        a = Noticia.objects.create(tenant=self.tenant, titulo="Sessão solene")
        b = Noticia.objects.create(tenant=self.tenant, titulo="Sessão Solene")
        self.assertEqual(a.slug, "sessao-solene")
        self.assertEqual(b.slug, "sessao-solene-2")

        outro = Tenant.objects.create(slug="imperatriz", nome="Câmara de Imperatriz", subdominio="imperatriz")
        c = Noticia.objects.create(tenant=outro, titulo="Sessão solene")
        self.assertEqual(c.slug, "sessao-solene")

    def test_publication_timestamp_set_once(self):
        noticia = services.criar_noticia(tenant=self.tenant, dados={"titulo": "Rascunho"})
        self.assertIsNone(noticia.publicada_em)
        services.atualizar_noticia(noticia, {"publicada": True})
        carimbo = noticia.publicada_em
        self.assertIsNotNone(carimbo)
        services.atualizar_noticia(noticia, {"resumo": "Atualizado"})
        self.assertEqual(noticia.publicada_em, carimbo)


class NoticiasApiTestCase(TestCase):
    HOST = "saoluis.camaras.leg.br"

    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def tearDown(self):
        cache.clear()

    def test_editor_creates_and_secretaria_only_reads(self):
        self.client.force_login(_make_user("editor", tenant=self.tenant))
        response = self.client.post(
            reverse("noticias:noticia_list"),
            data=json.dumps({"titulo": "Câmara aprova orçamento", "resumo": "LOA aprovada", "publicada": True}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["data"]["slug"], "camara-aprova-orcamento")
        self.assertEqual(response.json()["data"]["autor"], "editor")

        self.client.force_login(_make_user("secretaria", role="SECRETARIA", tenant=self.tenant))
        response = self.client.get(reverse("noticias:noticia_list"))
        self.assertEqual(response.status_code, 200)
        response = self.client.post(
            reverse("noticias:noticia_list"),
            data=json.dumps({"titulo": "Outra notícia"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 403)

    def test_public_listing_and_detail_by_slug(self):
        services.criar_noticia(tenant=self.tenant, dados={"titulo": "Publicada", "publicada": True})
        services.criar_noticia(tenant=self.tenant, dados={"titulo": "Rascunho"})
        services.criar_noticia(
            tenant=self.tenant,
            dados={"titulo": "Agendada", "publicada": True, "publicada_em": timezone.now() + timedelta(days=2)},
        )

        response = self.client.get("/api/publico/noticias/", HTTP_HOST=self.HOST)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([n["slug"] for n in response.json()["data"]], ["publicada"])

        response = self.client.get("/api/publico/noticias/publicada/", HTTP_HOST=self.HOST)
        self.assertEqual(response.json()["data"]["titulo"], "Publicada")
        response = self.client.get("/api/publico/noticias/rascunho/", HTTP_HOST=self.HOST)
        self.assertEqual(response.status_code, 404)

    def test_patch_publish_stamps_publication_time(self):
        self.client.force_login(_make_user("editor", tenant=self.tenant))
        response = self.client.post(
            reverse("noticias:noticia_list"),
            data=json.dumps({"titulo": "Audiência pública do orçamento"}),
            content_type="application/json",
        )
        pk = response.json()["data"]["id"]
        self.assertIsNone(Noticia.objects.get(pk=pk).publicada_em)

        response = self.client.patch(
            reverse("noticias:noticia_detail", kwargs={"pk": pk}),
            data=json.dumps({"publicada": True}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.assertIsNotNone(Noticia.objects.get(pk=pk).publicada_em)

        response = self.client.get("/api/publico/noticias/", HTTP_HOST=self.HOST)
        self.assertEqual([n["id"] for n in response.json()["data"]], [pk])
