import json
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos, NaoEncontrado
from apps.core.models import TransparenciaEventoPublico
from apps.participacao import services
from apps.participacao.models import ConsultaPublica, PerguntaConsulta, SugestaoLegislativa
from apps.proposicoes.models import Proposicao
from apps.tenants.models import Tenant


User = get_user_model()

CPF_A = "529.982.247-25"
CPF_B = "111.444.777-35"


def _make_user(username, *, role="SECRETARIA", tenant=None):
    user = User.objects.create_user(username=username, password="Senha@123")
    profile = user.profile
    profile.role = role
    profile.tenant = tenant
    profile.must_change_password = False
    profile.save()
    return user


def _consulta_aberta(tenant, **extra):
    agora = timezone.now()
    consulta = ConsultaPublica.objects.create(
        tenant=tenant,
        titulo="Plano diretor",
        descricao="Consulta sobre a revisão do plano diretor.",
        data_inicio=agora - timedelta(days=1),
        data_fim=agora + timedelta(days=10),
        **extra,
    )
    PerguntaConsulta.objects.create(
        consulta=consulta, enunciado="Você apoia a revisão?", tipo=PerguntaConsulta.Tipo.SIM_NAO, obrigatoria=True, ordem=1
    )
    PerguntaConsulta.objects.create(
        consulta=consulta,
        enunciado="Qual a prioridade?",
        tipo=PerguntaConsulta.Tipo.MULTIPLA_ESCOLHA,
        opcoes=["Mobilidade", "Habitação", "Meio ambiente"],
        ordem=2,
    )
    services.publicar_consulta(consulta)
    return consulta


class ConsultaServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def _respostas(self, consulta, sim_nao="SIM", prioridade="Mobilidade"):
        p1, p2 = consulta.perguntas.all()
        return [{"pergunta": p1.pk, "resposta": sim_nao}, {"pergunta": p2.pk, "resposta": prioridade}]

    def test_publish_requires_questions_and_announces(self):
        agora = timezone.now()
        vazia = ConsultaPublica.objects.create(
            tenant=self.tenant, titulo="Sem perguntas", descricao="x", data_inicio=agora, data_fim=agora + timedelta(days=1)
        )
        with self.assertRaises(DadosInvalidos):
            services.publicar_consulta(vazia)

        consulta = _consulta_aberta(self.tenant)
        self.assertEqual(consulta.status, ConsultaPublica.Status.ABERTA)
        self.assertTrue(
            TransparenciaEventoPublico.objects.filter(tipo_evento="CONSULTA_ABERTA", referencia=f"consulta:{consulta.pk}").exists()
        )
        with self.assertRaises(Conflito):
            services.adicionar_pergunta(consulta, {"enunciado": "Nova?", "tipo": "TEXTO_LIVRE"})

    def test_participation_rules(self):
        consulta = _consulta_aberta(self.tenant)
        services.participar(consulta, respostas=self._respostas(consulta), cpf=CPF_A, bairro="Centro")

        with self.assertRaisesMessage(Conflito, "Você já participou desta consulta"):
            services.participar(consulta, respostas=self._respostas(consulta), cpf="52998224725")

        p1, _ = consulta.perguntas.all()
        with self.assertRaises(DadosInvalidos) as ctx:
            services.participar(consulta, respostas=[], cpf=CPF_B)
        self.assertIn(str(p1.pk), ctx.exception.details)

        with self.assertRaises(DadosInvalidos):
            services.participar(consulta, respostas=self._respostas(consulta, prioridade="Esporte"), cpf=CPF_B)

        services.encerrar_consulta(consulta)
        with self.assertRaisesMessage(Conflito, "Consulta não está aberta para participação"):
            services.participar(consulta, respostas=self._respostas(consulta), cpf=CPF_B)

    def test_period_and_anonymous_rules(self):
        consulta = _consulta_aberta(self.tenant, permitir_anonimo=False)
        with self.assertRaises(DadosInvalidos):
            services.participar(consulta, respostas=self._respostas(consulta))

        consulta.data_fim = timezone.now() - timedelta(minutes=1)
        consulta.save()
        with self.assertRaisesMessage(Conflito, "Consulta fora do período de participação"):
            services.participar(consulta, respostas=self._respostas(consulta), cpf=CPF_A)

    def test_results_with_percentages_and_neighbourhoods(self):
        consulta = _consulta_aberta(self.tenant)
        services.participar(consulta, respostas=self._respostas(consulta, "SIM"), cpf=CPF_A, bairro="Centro")
        services.participar(consulta, respostas=self._respostas(consulta, "sim"), cpf=CPF_B, bairro="Centro")
        services.participar(consulta, respostas=self._respostas(consulta, "NAO", "Habitação"))

        resultado = services.resultados(consulta)
        self.assertEqual(resultado["totalParticipacoes"], 3)
        sim_nao = resultado["resultadosPorPergunta"][0]
        self.assertEqual(sim_nao["contagem"][0], {"resposta": "SIM", "quantidade": 2, "percentual": 66.7})
        self.assertEqual(sim_nao["contagem"][1]["percentual"], 33.3)
        self.assertEqual(
            resultado["participacoesPorBairro"],
            [{"bairro": "Centro", "quantidade": 2}, {"bairro": "Não informado", "quantidade": 1}],
        )


class SugestaoServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def _sugestao(self, cpf=CPF_A):
        return services.criar_sugestao(
            tenant=self.tenant,
            dados={
                "titulo": "Ciclovia na avenida",
                "descricao": "Construção de ciclovia na avenida principal.",
                "justificativa": "Mobilidade e segurança dos ciclistas.",
                "autor_nome": "João",
                "autor_email": "joao@example.com",
            },
            cpf=cpf,
        )

    def test_create_validates_cpf_and_pending_limit(self):
        with self.assertRaises(DadosInvalidos):
            self._sugestao(cpf="123")
        sugestao = self._sugestao()
        self.assertEqual(sugestao.status, SugestaoLegislativa.Status.PENDENTE)
        self.assertNotIn("52998224725", sugestao.autor_cpf_hash)
        with self.assertRaises(Conflito):
            self._sugestao()

    def test_refusal_requires_reason(self):
        sugestao = self._sugestao()
        with self.assertRaises(DadosInvalidos):
            services.moderar_sugestao(sugestao, status=SugestaoLegislativa.Status.RECUSADA)
        services.moderar_sugestao(sugestao, status=SugestaoLegislativa.Status.RECUSADA, motivo_recusa="Fora da competência")
        self.assertEqual(sugestao.motivo_recusa, "Fora da competência")

    def test_support_once_per_cpf(self):
        sugestao = self._sugestao()
        with self.assertRaises(Conflito):
            services.apoiar_sugestao(sugestao, nome="Ana", cpf=CPF_B)

        services.moderar_sugestao(sugestao, status=SugestaoLegislativa.Status.ACEITA)
        services.apoiar_sugestao(sugestao, nome="Ana", cpf=CPF_B)
        self.assertEqual(sugestao.total_apoios, 1)
        with self.assertRaisesMessage(Conflito, "Você já apoiou esta sugestão"):
            services.apoiar_sugestao(sugestao, nome="Ana", cpf=CPF_B)

        services.remover_apoio(sugestao, cpf=CPF_B)
        self.assertEqual(sugestao.total_apoios, 0)
        with self.assertRaises(NaoEncontrado):
            services.remover_apoio(sugestao, cpf=CPF_B)

    def test_convert_into_proposicao(self):
        sugestao = self._sugestao()
        services.moderar_sugestao(sugestao, status=SugestaoLegislativa.Status.ACEITA)
        proposicao = services.converter_em_proposicao(sugestao, tipo=Proposicao.Tipo.INDICACAO)
        self.assertEqual(sugestao.status, SugestaoLegislativa.Status.CONVERTIDA)
        self.assertEqual(proposicao.titulo, sugestao.titulo)
        self.assertIn("JUSTIFICATIVA:", proposicao.texto)
        with self.assertRaises(Conflito):
            services.converter_em_proposicao(sugestao, tipo=Proposicao.Tipo.INDICACAO)

        stats = services.estatisticas(self.tenant)
        self.assertEqual(stats["sugestoes"]["porStatus"]["CONVERTIDA"], 1)
        self.assertEqual(stats["sugestoes"]["total"], 1)


class ParticipacaoApiTestCase(TestCase):
    HOST = "saoluis.camaras.leg.br"

    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")

    def tearDown(self):
        cache.clear()

    def _post(self, url, payload, **extra):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json", **extra)

    def test_manage_consulta_lifecycle(self):
        self.client.force_login(_make_user("editor", role="EDITOR", tenant=self.tenant))
        agora = timezone.now()
        response = self._post(
            reverse("participacao:consulta_list"),
            {
                "titulo": "Orçamento participativo",
                "descricao": "Prioridades para o orçamento.",
                "data_inicio": agora.isoformat(),
                "data_fim": (agora - timedelta(days=1)).isoformat(),
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("data_fim", response.json()["details"])

        response = self._post(
            reverse("participacao:consulta_list"),
            {
                "titulo": "Orçamento participativo",
                "descricao": "Prioridades para o orçamento.",
                "data_inicio": (agora - timedelta(hours=1)).isoformat(),
                "data_fim": (agora + timedelta(days=7)).isoformat(),
            },
        )
        self.assertEqual(response.status_code, 201, response.content)
        pk = response.json()["data"]["id"]

        response = self._post(
            reverse("participacao:consulta_perguntas", kwargs={"pk": pk}),
            {"enunciado": "Qual área?", "tipo": "MULTIPLA_ESCOLHA", "opcoes": ["Saúde"]},
        )
        self.assertEqual(response.status_code, 400)
        response = self._post(
            reverse("participacao:consulta_perguntas", kwargs={"pk": pk}),
            {"enunciado": "Qual área?", "tipo": "MULTIPLA_ESCOLHA", "opcoes": ["Saúde", "Educação"], "obrigatoria": True},
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["data"]["ordem"], 1)

        response = self._post(reverse("participacao:consulta_publicar", kwargs={"pk": pk}), {})
        self.assertEqual(response.json()["data"]["status"], "ABERTA")

    def test_public_participation_flow(self):
        consulta = _consulta_aberta(self.tenant)
        p1, p2 = consulta.perguntas.all()

        response = self.client.get("/api/publico/participacao/consultas/", HTTP_HOST=self.HOST)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["data"]), 1)

        url = f"/api/publico/participacao/consultas/{consulta.pk}/participar/"
        payload = {"cpf": CPF_A, "respostas": [{"pergunta": p1.pk, "resposta": "SIM"}]}
        response = self._post(url, payload, HTTP_HOST=self.HOST)
        self.assertEqual(response.status_code, 201, response.content)
        response = self._post(url, payload, HTTP_HOST=self.HOST)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "Você já participou desta consulta")

        response = self.client.get(f"/api/publico/participacao/consultas/{consulta.pk}/resultados/", HTTP_HOST=self.HOST)
        self.assertEqual(response.status_code, 404)

    def test_public_suggestions_and_support(self):
        response = self._post(
            "/api/publico/participacao/sugestoes/",
            {
                "titulo": "Praça no bairro",
                "descricao": "Revitalização da praça do bairro.",
                "justificativa": "Área de lazer abandonada.",
                "autor_nome": "Maria",
                "autor_email": "maria@example.com",
                "cpf": CPF_A,
            },
            HTTP_HOST=self.HOST,
        )
        self.assertEqual(response.status_code, 201, response.content)
        pk = response.json()["data"]["id"]

        response = self.client.get("/api/publico/participacao/sugestoes/", HTTP_HOST=self.HOST)
        self.assertEqual(response.json()["meta"]["total"], 0)

        self.client.force_login(_make_user("secretaria", tenant=self.tenant))
        response = self._post(reverse("participacao:sugestao_moderar", kwargs={"pk": pk}), {"status": "ACEITA"})
        self.assertEqual(response.status_code, 200, response.content)
        self.client.logout()

        url = f"/api/publico/participacao/sugestoes/{pk}/apoio/"
        response = self._post(url, {"nome": "José", "cpf": CPF_B}, HTTP_HOST=self.HOST)
        self.assertEqual(response.json()["data"]["totalApoios"], 1)
        response = self._post(url, {"nome": "José", "cpf": CPF_B}, HTTP_HOST=self.HOST)
        self.assertEqual(response.json()["error"], "Você já apoiou esta sugestão")
