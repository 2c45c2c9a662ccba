import json
import shutil
from datetime import date, datetime, timedelta
from unittest import mock

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.core.api import DadosInvalidos
from apps.parlamentares.models import Legislatura, Parlamentar
from apps.proposicoes.models import Proposicao
from apps.relatorios import services
from apps.relatorios.models import ExecucaoRelatorio, RelatorioAgendado
from apps.relatorios.tasks import executar_relatorios_pendentes
from apps.sessoes.models import PresencaSessao, Sessao, Voto
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


class ProximaExecucaoTestCase(TestCase):
    def test_day_based_frequencies(self):
        base = timezone.make_aware(datetime(2026, 1, 10, 8, 0))
        F = RelatorioAgendado.Frequencia
        self.assertEqual(services.calcular_proxima_execucao(F.DIARIO, base).day, 11)
        self.assertEqual(services.calcular_proxima_execucao(F.SEMANAL, base).day, 17)
        self.assertEqual(services.calcular_proxima_execucao(F.QUINZENAL, base).day, 25)

    def test_month_based_frequencies_clamp_day(self):
        base = timezone.make_aware(datetime(2026, 1, 31, 8, 0))
        F = RelatorioAgendado.Frequencia
        self.assertEqual(services.calcular_proxima_execucao(F.MENSAL, base).date(), date(2026, 2, 28))
        self.assertEqual(services.calcular_proxima_execucao(F.TRIMESTRAL, base).date(), date(2026, 4, 30))
        self.assertEqual(services.calcular_proxima_execucao(F.SEMESTRAL, base).date(), date(2026, 7, 31))
        self.assertEqual(services.calcular_proxima_execucao(F.ANUAL, base).date(), date(2027, 1, 31))

        dezembro = timezone.make_aware(datetime(2026, 12, 15, 8, 0))
        self.assertEqual(services.calcular_proxima_execucao(F.MENSAL, dezembro).date(), date(2027, 1, 15))

    def test_unknown_frequency(self):
        with self.assertRaises(DadosInvalidos):
            services.calcular_proxima_execucao("HORARIO")


class RelatoriosServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.legislatura = Legislatura.objects.create(tenant=self.tenant, numero=20, ano_inicio=2025, ano_fim=2028)
        self.ana = Parlamentar.objects.create(tenant=self.tenant, nome="Ana Souza", partido="ABC")
        self.bruno = Parlamentar.objects.create(tenant=self.tenant, nome="Bruno Lima", partido="XYZ")

    def tearDown(self):
        shutil.rmtree(settings.RELATORIOS_DIR, ignore_errors=True)

    def _sessao(self, numero, **extra):
        dados = {
            "tenant": self.tenant,
            "legislatura": self.legislatura,
            "numero": numero,
            "data": date(2026, 3, numero),
            "status": Sessao.Status.CONCLUIDA,
        }
        dados.update(extra)
        return Sessao.objects.create(**dados)

    def _proposicao(self, numero="1", **extra):
        dados = {
            "tenant": self.tenant,
            "tipo": Proposicao.Tipo.PROJETO_LEI,
            "numero": numero,
            "ano": 2026,
            "titulo": "Institui o programa municipal",
            "ementa": "Institui o programa municipal de hortas comunitárias.",
            "autor": self.ana,
        }
        dados.update(extra)
        return Proposicao.objects.create(**dados)

    def test_attendance_report_ranks_by_percentage(self):
        s1, s2 = self._sessao(1), self._sessao(2)
        self._sessao(3, status=Sessao.Status.AGENDADA)
        PresencaSessao.objects.create(sessao=s1, parlamentar=self.ana, presente=True)
        PresencaSessao.objects.create(sessao=s2, parlamentar=self.ana, presente=True)
        PresencaSessao.objects.create(sessao=s1, parlamentar=self.bruno, presente=True)
        PresencaSessao.objects.create(sessao=s2, parlamentar=self.bruno, presente=False)

        dados = services.gerar_dados_relatorio(self.tenant, RelatorioAgendado.Tipo.PRESENCA_SESSOES, {"ano": 2026})
        self.assertEqual(dados["resumo"]["totalSessoes"], 2)
        self.assertEqual(dados["linhas"][0], ["Ana Souza", "ABC", 2, 0, 100.0])
        self.assertEqual(dados["linhas"][1], ["Bruno Lima", "XYZ", 1, 1, 50.0])

    def test_production_and_votes_reports(self):
        proposicao = self._proposicao()
        self._proposicao(numero="2", tipo=Proposicao.Tipo.INDICACAO, status=Proposicao.Status.APROVADA)
        sessao = self._sessao(4)
        Voto.objects.create(proposicao=proposicao, parlamentar=self.ana, sessao=sessao, voto=Voto.Opcao.SIM)
        Voto.objects.create(proposicao=proposicao, parlamentar=self.bruno, sessao=sessao, voto=Voto.Opcao.NAO)

        producao = services.gerar_dados_relatorio(self.tenant, RelatorioAgendado.Tipo.PRODUCAO_LEGISLATIVA, {"ano": 2026})
        self.assertEqual(producao["resumo"]["total"], 2)
        self.assertEqual(producao["resumo"]["porTipo"], {"PROJETO_LEI": 1, "INDICACAO": 1})

        votacoes = services.gerar_dados_relatorio(self.tenant, RelatorioAgendado.Tipo.VOTACOES, {"ano": 2026})
        self.assertEqual(votacoes["resumo"]["totalVotos"], 2)
        self.assertEqual(votacoes["linhas"][0][3:], [1, 1, 0])

    def test_unknown_type_and_bad_year(self):
        with self.assertRaises(DadosInvalidos):
            services.gerar_dados_relatorio(self.tenant, "ORCAMENTO", {})
        with self.assertRaises(DadosInvalidos):
            services.gerar_dados_relatorio(self.tenant, RelatorioAgendado.Tipo.VOTACOES, {"ano": "dois mil"})

    def test_execution_writes_csv_and_records_success(self):
        self._proposicao()
        relatorio = services.criar_relatorio(
            tenant=self.tenant,
            dados={"nome": "Produção mensal", "tipo": RelatorioAgendado.Tipo.PRODUCAO_LEGISLATIVA, "formato": "CSV", "filtros": {"ano": 2026}},
        )
        self.assertIsNotNone(relatorio.proxima_execucao)

        execucao = services.executar_relatorio(relatorio)
        self.assertEqual(execucao.status, ExecucaoRelatorio.Status.SUCESSO)
        conteudo = services.caminho_arquivo(execucao).read_bytes().decode("utf-8")
        self.assertTrue(conteudo.startswith("\ufeffProposição;Título"))
        self.assertIn("Institui o programa municipal", conteudo)
        relatorio.refresh_from_db()
        self.assertIsNotNone(relatorio.ultima_execucao)

    def test_failure_is_recorded_as_error(self):
        relatorio = services.criar_relatorio(
            tenant=self.tenant,
            dados={"nome": "Votações", "tipo": RelatorioAgendado.Tipo.VOTACOES, "formato": "CSV"},
        )
        with mock.patch.object(services, "renderizar", side_effect=RuntimeError("disco cheio")):
            execucao = services.executar_relatorio(relatorio)
        self.assertEqual(execucao.status, ExecucaoRelatorio.Status.ERRO)
        self.assertEqual(execucao.erro, "disco cheio")
        self.assertEqual(execucao.arquivo, "")

    def test_pending_task_runs_due_reports_and_reschedules(self):
        agora = timezone.now()
        vencido = services.criar_relatorio(
            tenant=self.tenant,
            dados={
                "nome": "Tramitação",
                "tipo": RelatorioAgendado.Tipo.TRAMITACAO,
                "formato": "CSV",
                "frequencia": "SEMANAL",
                "proxima_execucao": agora - timedelta(hours=1),
            },
        )
        services.criar_relatorio(
            tenant=self.tenant,
            dados={"nome": "Futuro", "tipo": RelatorioAgendado.Tipo.COMISSOES, "formato": "CSV"},
        )
        services.criar_relatorio(
            tenant=self.tenant,
            dados={
                "nome": "Inativo",
                "tipo": RelatorioAgendado.Tipo.COMISSOES,
                "formato": "CSV",
                "ativo": False,
                "proxima_execucao": agora - timedelta(days=1),
            },
        )

        self.assertEqual(executar_relatorios_pendentes(), 1)
        vencido.refresh_from_db()
        self.assertGreater(vencido.proxima_execucao, agora + timedelta(days=6))
        self.assertEqual(vencido.execucoes.count(), 1)
        self.assertEqual(executar_relatorios_pendentes(), 0)


class RelatoriosApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.client.force_login(_make_user("secretaria", tenant=self.tenant))

    def tearDown(self):
        cache.clear()
        shutil.rmtree(settings.RELATORIOS_DIR, ignore_errors=True)

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def test_schedule_execute_and_download(self):
        response = self._post(
            reverse("relatorios:list"),
            {"nome": "Transparência anual", "tipo": "TRANSPARENCIA", "formato": "CSV", "frequencia": "ANUAL"},
        )
        self.assertEqual(response.status_code, 201, response.content)
        pk = response.json()["data"]["id"]

        response = self.client.post(reverse("relatorios:executar", args=[pk]))
        self.assertEqual(response.status_code, 201, response.content)
        execucao_id = response.json()["data"]["id"]

        response = self.client.get(reverse("relatorios:execucao_list", args=[pk]))
        self.assertEqual(response.json()["meta"]["total"], 1)

        response = self.client.get(reverse("relatorios:execucao_download", args=[pk, execucao_id]))
        self.assertEqual(response.status_code, 200)
        self.assertIn("attachment", response["Content-Disposition"])
        self.assertTrue(b"".join(response.streaming_content).startswith("\ufeffTipo;".encode("utf-8")))

    def test_invalid_recipients_are_rejected(self):
        response = self._post(
            reverse("relatorios:list"),
            {"nome": "Votações", "tipo": "VOTACOES", "destinatarios": ["nao-e-email"]},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("destinatarios", response.json()["details"])

    def test_preview_returns_json(self):
        response = self._post(reverse("relatorios:gerar"), {"tipo": "COMISSOES", "ano": 2026})
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["data"]["titulo"], "Comissões - 2026")

    def test_reader_cannot_schedule(self):
        self.client.force_login(_make_user("leitor", role="LEITURA", tenant=self.tenant))
        response = self._post(reverse("relatorios:list"), {"nome": "X", "tipo": "VOTACOES"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.get(reverse("relatorios:tipos")).status_code, 200)

    def test_patch_frequency_reschedules_next_run(self):
        response = self._post(
            reverse("relatorios:list"),
            {"nome": "Transparência anual", "tipo": "TRANSPARENCIA", "frequencia": "ANUAL"},
        )
        pk = response.json()["data"]["id"]
        anual = RelatorioAgendado.objects.get(pk=pk).proxima_execucao
        self.assertGreater(anual, timezone.now() + timedelta(days=300))

        response = self.client.patch(
            reverse("relatorios:detail", args=[pk]),
            data=json.dumps({"frequencia": "DIARIO"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200, response.content)
        relatorio = RelatorioAgendado.objects.get(pk=pk)
        self.assertEqual(relatorio.frequencia, RelatorioAgendado.Frequencia.DIARIO)
        self.assertLess(relatorio.proxima_execucao, timezone.now() + timedelta(days=2))

        response = self.client.patch(
            reverse("relatorios:detail", args=[pk]),
            data=json.dumps({"nome": "Transparência diária"}),
            content_type="application/json",
        )
        self.assertEqual(RelatorioAgendado.objects.get(pk=pk).proxima_execucao, relatorio.proxima_execucao)
