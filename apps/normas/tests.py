import json
from datetime import date

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse

from apps.core.api import Conflito
from apps.core.models import TransparenciaEventoPublico
from apps.normas import services
from apps.normas.models import AlteracaoNorma, NormaJuridica
from apps.proposicoes.models import ProcessoSancao, Proposicao
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


class NormasServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def _norma(self, **extra):
        dados = {
            "tipo": NormaJuridica.Tipo.LEI_ORDINARIA,
            "data": date(2026, 3, 2),
            "ementa": "Dispõe sobre a coleta seletiva.",
            "texto": "Art. 1º Fica instituída a coleta seletiva.",
        }
        dados.update(extra)
        return services.criar_norma(tenant=self.tenant, dados=dados)

    def test_first_version_and_numbering(self):
        primeira = self._norma()
        segunda = self._norma()
        self.assertEqual((primeira.numero, segunda.numero), (1, 2))
        self.assertEqual(primeira.ano, 2026)
        self.assertEqual(list(primeira.versoes.values_list("versao", flat=True)), [1])
        with self.assertRaises(Conflito):
            self._norma(numero=2)

    def test_new_version_only_when_text_changes(self):
        norma = self._norma()
        services.atualizar_norma(norma, {"ementa": "Nova ementa da norma."})
        self.assertEqual(norma.versoes.count(), 1)
        services.atualizar_norma(norma, {"texto": "Art. 1º Texto novo."}, motivo="Correção")
        versao = norma.versoes.first()
        self.assertEqual(versao.versao, 2)
        self.assertEqual(versao.motivo_alteracao, "Correção")
        self.assertEqual(versao.texto_completo, "Art. 1º Texto novo.")

    def test_alteration_sets_situacao(self):
        alterada = self._norma()
        alteradora = self._norma()
        services.registrar_alteracao(
            norma_alterada=alterada, norma_alteradora=alteradora, tipo_alteracao=AlteracaoNorma.Tipo.ACRESCIMO
        )
        alterada.refresh_from_db()
        self.assertEqual(alterada.situacao, NormaJuridica.Situacao.COM_ALTERACOES)

        services.registrar_alteracao(
            norma_alterada=alterada, norma_alteradora=alteradora, tipo_alteracao=AlteracaoNorma.Tipo.REVOGACAO
        )
        alterada.refresh_from_db()
        self.assertEqual(alterada.situacao, NormaJuridica.Situacao.REVOGADA)

        with self.assertRaises(Conflito):
            services.registrar_alteracao(
                norma_alterada=alterada, norma_alteradora=alteradora, tipo_alteracao=AlteracaoNorma.Tipo.ALTERACAO
            )

    def test_convert_approved_proposicao(self):
        proposicao = Proposicao.objects.create(
            tenant=self.tenant,
            tipo=Proposicao.Tipo.PROJETO_LEI,
            numero="004",
            ano=2026,
            titulo="Coleta seletiva",
            ementa="Institui a coleta seletiva no município.",
            status=Proposicao.Status.EM_TRAMITACAO,
        )
        with self.assertRaises(Conflito):
            services.converter_proposicao_em_norma(proposicao)

        proposicao.status = Proposicao.Status.APROVADA
        proposicao.save()
        norma = services.converter_proposicao_em_norma(proposicao, numero=15, data_publicacao=date(2026, 6, 1))
        self.assertEqual(norma.tipo, NormaJuridica.Tipo.LEI_ORDINARIA)
        self.assertEqual((norma.numero, norma.ano), (15, 2026))
        self.assertEqual(norma.texto, proposicao.ementa)
        proposicao.refresh_from_db()
        self.assertEqual(proposicao.status, Proposicao.Status.TRANSFORMADA_EM_NORMA)
        self.assertTrue(
            TransparenciaEventoPublico.objects.filter(tipo_evento="NORMA_PUBLICADA", referencia=f"norma:{norma.pk}").exists()
        )

    def test_conversion_waits_for_pending_sanction(self):
        proposicao = Proposicao.objects.create(
            tenant=self.tenant,
            tipo=Proposicao.Tipo.PROJETO_LEI,
            numero="005",
            ano=2026,
            titulo="Arborização urbana",
            ementa="Institui o plano de arborização urbana.",
            status=Proposicao.Status.APROVADA,
        )
        processo = ProcessoSancao.objects.create(proposicao=proposicao)
        with self.assertRaisesMessage(Conflito, "Proposição aguarda sanção do Executivo"):
            services.converter_proposicao_em_norma(proposicao)

        processo.situacao = ProcessoSancao.Situacao.SANCIONADA
        processo.save()
        norma = services.converter_proposicao_em_norma(proposicao, numero=16)
        self.assertEqual(norma.proposicao_origem_id, proposicao.pk)

    def test_statistics_and_search(self):
        self._norma()
        self._norma(tipo=NormaJuridica.Tipo.RESOLUCAO, texto="Regimento interno da câmara.")
        stats = services.estatisticas(self.tenant, 2026)
        self.assertEqual(stats["total"], 2)
        self.assertEqual(stats["porSituacao"], {"VIGENTE": 2})
        self.assertEqual(len(services.buscar(self.tenant, "regimento")), 1)
        self.assertEqual(services.buscar(self.tenant, "  "), [])


class NormasApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.client.force_login(_make_user("secretaria", tenant=self.tenant))

    def tearDown(self):
        cache.clear()

    def test_create_update_and_version_detail(self):
        response = self.client.post(
            reverse("normas:norma_list"),
            data=json.dumps(
                {
                    "tipo": "LEI_ORDINARIA",
                    "data": "2026-03-02",
                    "data_publicacao": "2026-03-03",
                    "ementa": "Dispõe sobre a coleta seletiva.",
                    "texto": "Art. 1º Texto original.",
                }
            ),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 201, response.content)
        pk = response.json()["data"]["id"]

        response = self.client.patch(
            reverse("normas:norma_detail", kwargs={"pk": pk}),
            data=json.dumps({"texto": "Art. 1º Texto consolidado.", "motivo": "Consolidação"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)

        response = self.client.get(reverse("normas:norma_versao", kwargs={"pk": pk, "versao": 2}))
        self.assertEqual(response.json()["data"]["textoCompleto"], "Art. 1º Texto consolidado.")
        response = self.client.get(reverse("normas:norma_versao", kwargs={"pk": pk, "versao": 9}))
        self.assertEqual(response.status_code, 404)

    def test_public_listing_hides_unpublished(self):
        services.criar_norma(
            tenant=self.tenant,
            dados={"tipo": "PORTARIA", "ementa": "Portaria interna.", "texto": "Texto"},
        )
        services.criar_norma(
            tenant=self.tenant,
            dados={
                "tipo": "LEI_ORDINARIA",
                "ementa": "Lei publicada.",
                "texto": "Texto",
                "data_publicacao": date(2026, 1, 5),
            },
        )
        self.client.logout()
        response = self.client.get("/api/publico/normas/", HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual(response.json()["meta"]["total"], 1)
        self.assertEqual(response.json()["data"][0]["ementa"], "Lei publicada.")

    def test_patch_publication_date_publishes_once(self):
        response = self.client.post(
            reverse("normas:norma_list"),
            data=json.dumps(
                {
                    "tipo": "LEI_ORDINARIA",
                    "data": "2026-03-02",
                    "ementa": "Dispõe sobre a coleta seletiva.",
                    "texto": "Art. 1º Texto original.",
                }
            ),
            content_type="application/json",
        )
        pk = response.json()["data"]["id"]
        eventos = TransparenciaEventoPublico.objects.filter(tipo_evento="NORMA_PUBLICADA", referencia=f"norma:{pk}")
        self.assertFalse(eventos.exists())

        for ementa in ("Dispõe sobre a coleta seletiva.", "Dispõe sobre a coleta seletiva e dá outras providências."):
            response = self.client.patch(
                reverse("normas:norma_detail", kwargs={"pk": pk}),
                data=json.dumps({"data_publicacao": "2026-03-05", "ementa": ementa}),
                content_type="application/json",
            )
            self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(eventos.count(), 1)
        self.assertEqual(NormaJuridica.objects.get(pk=pk).versoes.count(), 1)
