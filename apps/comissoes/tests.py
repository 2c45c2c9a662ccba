import json
from datetime import datetime

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.comissoes import services
from apps.comissoes.models import Comissao, MembroComissao, Parecer, ReuniaoComissao
from apps.core.api import Conflito, DadosInvalidos
from apps.parlamentares.models import Parlamentar
from apps.proposicoes.models import Proposicao
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


class ComissoesBaseTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.comissao = Comissao.objects.create(
            tenant=self.tenant, nome="Comissão de Legislação e Justiça", sigla="clj"
        )
        self.membros = []
        for i, cargo in enumerate(("PRESIDENTE", "RELATOR", "MEMBRO")):
            parlamentar = Parlamentar.objects.create(tenant=self.tenant, nome=f"Vereador {i}")
            self.membros.append(MembroComissao.objects.create(comissao=self.comissao, parlamentar=parlamentar, cargo=cargo))
        self.proposicao = Proposicao.objects.create(
            tenant=self.tenant,
            tipo="PROJETO_LEI",
            numero="001",
            ano=2026,
            titulo="Projeto de teste",
            ementa="Ementa suficientemente longa",
            status="EM_TRAMITACAO",
        )

    def tearDown(self):
        cache.clear()

    def _reuniao(self, **extra):
        dados = {"data": timezone.make_aware(datetime(2026, 5, 12, 9, 0)), "quorum_minimo": 2}
        dados.update(extra)
        return services.criar_reuniao(self.comissao, dados)

    def _presentes(self, reuniao, quantidade):
        for membro in self.membros[:quantidade]:
            services.registrar_presenca(reuniao, membro)


class ReuniaoServicesTestCase(ComissoesBaseTestCase):
    def test_meetings_are_numbered_per_year(self):
        primeira = self._reuniao()
        segunda = self._reuniao()
        outro_ano = self._reuniao(data=timezone.make_aware(datetime(2027, 2, 1, 9, 0)))
        self.assertEqual((primeira.numero, segunda.numero, outro_ano.numero), (1, 2, 1))
        self.assertEqual(self.comissao.sigla, "CLJ")

    def test_start_requires_minimum_quorum(self):
        reuniao = self._reuniao()
        self._presentes(reuniao, 1)
        with self.assertRaisesMessage(Conflito, "Quórum insuficiente. Mínimo: 2, Presentes: 1"):
            services.iniciar_reuniao(reuniao)

        self._presentes(reuniao, 2)
        reuniao = services.iniciar_reuniao(reuniao)
        self.assertEqual(reuniao.status, ReuniaoComissao.Status.EM_ANDAMENTO)
        self.assertIsNotNone(reuniao.iniciada_em)

    def test_state_machine(self):
        reuniao = self._reuniao()
        services.convocar_reuniao(reuniao)
        with self.assertRaises(Conflito):
            services.convocar_reuniao(reuniao)
        with self.assertRaises(Conflito):
            services.suspender_reuniao(reuniao)

        self._presentes(reuniao, 3)
        services.iniciar_reuniao(reuniao)
        services.suspender_reuniao(reuniao, motivo="Intervalo")
        services.retomar_reuniao(reuniao)
        services.encerrar_reuniao(reuniao)
        self.assertEqual(reuniao.status, ReuniaoComissao.Status.CONCLUIDA)

        with self.assertRaisesMessage(Conflito, "Reuniões concluídas não podem ser canceladas"):
            services.cancelar_reuniao(reuniao)
        with self.assertRaises(Conflito):
            services.registrar_presenca(reuniao, self.membros[0])

    def test_only_scheduled_or_cancelled_can_be_deleted(self):
        reuniao = self._reuniao()
        services.convocar_reuniao(reuniao)
        with self.assertRaises(Conflito):
            services.excluir_reuniao(reuniao)
        services.cancelar_reuniao(reuniao, motivo="Feriado")
        services.excluir_reuniao(reuniao)
        self.assertFalse(ReuniaoComissao.objects.exists())

    def test_minutes_approval(self):
        reuniao = self._reuniao()
        self._presentes(reuniao, 2)
        services.iniciar_reuniao(reuniao)
        with self.assertRaisesMessage(DadosInvalidos, "Ata não foi redigida"):
            services.aprovar_ata(reuniao)
        services.salvar_ata(reuniao, "Aberta a reunião, foram lidos os expedientes.")
        with self.assertRaisesMessage(Conflito, "Ata só pode ser aprovada após a conclusão da reunião"):
            services.aprovar_ata(reuniao)
        services.encerrar_reuniao(reuniao)
        reuniao = services.aprovar_ata(reuniao)
        self.assertTrue(reuniao.ata_aprovada)
        with self.assertRaises(Conflito):
            services.salvar_ata(reuniao, "Outro texto")


class ParecerServicesTestCase(ComissoesBaseTestCase):
    def _parecer(self):
        return services.criar_parecer(
            self.comissao,
            {
                "proposicao": self.proposicao,
                "relator": self.membros[1].parlamentar,
                "tipo": Parecer.Tipo.FAVORAVEL,
                "fundamentacao": "Projeto constitucional e conveniente.",
            },
        )

    def test_relator_must_be_member(self):
        estranho = Parlamentar.objects.create(tenant=self.tenant, nome="Fora da Comissão")
        with self.assertRaises(DadosInvalidos):
            services.criar_parecer(
                self.comissao,
                {
                    "proposicao": self.proposicao,
                    "relator": estranho,
                    "tipo": Parecer.Tipo.CONTRARIO,
                    "fundamentacao": "Texto",
                },
            )

    def test_vote_only_in_running_meeting(self):
        parecer = self._parecer()
        reuniao = self._reuniao()
        with self.assertRaisesMessage(Conflito, "Votação só pode ocorrer com reunião em andamento"):
            services.votar_parecer(reuniao, parecer, favor=2, contra=0)

    def test_approved_opinion_releases_proposicao_and_can_be_issued(self):
        parecer = self._parecer()
        with self.assertRaises(Conflito):
            services.emitir_parecer(parecer)

        reuniao = self._reuniao()
        self._presentes(reuniao, 3)
        services.iniciar_reuniao(reuniao)
        parecer = services.votar_parecer(reuniao, parecer, favor=2, contra=1)
        self.assertEqual(parecer.status, Parecer.Status.APROVADO_COMISSAO)
        self.proposicao.refresh_from_db()
        self.assertEqual(self.proposicao.status, Proposicao.Status.AGUARDANDO_PAUTA)

        parecer = services.emitir_parecer(parecer)
        self.assertEqual(parecer.status, Parecer.Status.EMITIDO)
        self.assertIsNotNone(parecer.data_emissao)

    def test_tie_rejects_opinion(self):
        parecer = self._parecer()
        reuniao = self._reuniao()
        self._presentes(reuniao, 2)
        services.iniciar_reuniao(reuniao)
        parecer = services.votar_parecer(reuniao, parecer, favor=1, contra=1, abstencao=1)
        self.assertEqual(parecer.status, Parecer.Status.REJEITADO_COMISSAO)
        self.proposicao.refresh_from_db()
        self.assertEqual(self.proposicao.status, Proposicao.Status.EM_TRAMITACAO)


class ComissoesApiTestCase(ComissoesBaseTestCase):
    def setUp(self):
        super().setUp()
        self.client.force_login(_make_user("secretaria", tenant=self.tenant))

    def _post(self, url, payload=None):
        return self.client.post(url, data=json.dumps(payload or {}), content_type="application/json")

    def test_meeting_flow_over_api(self):
        response = self._post(
            reverse("comissoes:reuniao_list", kwargs={"pk": self.comissao.pk}),
            {"data": "2026-05-12T09:00:00", "local": "Sala das Comissões"},
        )
        self.assertEqual(response.status_code, 201, response.content)
        reuniao_id = response.json()["data"]["id"]

        response = self._post(reverse("comissoes:reuniao_acao", kwargs={"reuniao_id": reuniao_id, "acao": "iniciar"}))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["details"]["presentes"], 0)

        response = self._post(
            reverse("comissoes:reuniao_presencas", kwargs={"reuniao_id": reuniao_id}),
            {"presencas": [{"membro": m.pk} for m in self.membros]},
        )
        self.assertTrue(response.json()["data"]["atingido"])

        response = self._post(reverse("comissoes:reuniao_acao", kwargs={"reuniao_id": reuniao_id, "acao": "iniciar"}))
        self.assertEqual(response.json()["data"]["status"], "EM_ANDAMENTO")

        response = self._post(reverse("comissoes:reuniao_acao", kwargs={"reuniao_id": reuniao_id, "acao": "pular"}))
        self.assertEqual(response.status_code, 400)

    def test_member_must_be_unique(self):
        url = reverse("comissoes:membro_create", kwargs={"pk": self.comissao.pk})
        response = self._post(url, {"parlamentar": self.membros[2].parlamentar_id})
        self.assertEqual(response.status_code, 409)

    def test_reading_role_cannot_create(self):
        self.client.force_login(_make_user("leitor", role="LEITURA", tenant=self.tenant))
        response = self._post(reverse("comissoes:comissao_list"), {"nome": "Comissão de Saúde"})
        self.assertEqual(response.status_code, 403)
        response = self.client.get(reverse("comissoes:comissao_list"))
        self.assertEqual(response.status_code, 200)

    def test_public_listing(self):
        Comissao.objects.create(tenant=self.tenant, nome="Comissão extinta", ativa=False)
        self.client.logout()
        response = self.client.get("/api/publico/comissoes/", HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(len(data), 1)
        self.assertEqual(len(data[0]["membros"]), 3)
