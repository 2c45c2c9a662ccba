import json
from datetime import date, datetime, timedelta

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.core.api import Conflito, DadosInvalidos, NaoEncontrado
from apps.core.models import TransparenciaEventoPublico
from apps.parlamentares.models import Legislatura, Parlamentar, PeriodoLegislatura
from apps.proposicoes.models import Proposicao
from apps.sessoes import services, services_nomenclatura, services_quorum, services_turnos, services_votacao
from apps.sessoes.models import ConfiguracaoQuorum, PautaItem, Sessao, Voto
from apps.tenants.models import Tenant


User = get_user_model()


def _make_user(username, *, role="ADMIN", tenant=None, **profile_fields):
    user = User.objects.create_user(username=username, password="Senha@123")
    profile = user.profile
    profile.role = role
    profile.tenant = tenant
    profile.must_change_password = False
    for key, value in profile_fields.items():
        setattr(profile, key, value)
    profile.save()
    return user


class SessoesBaseTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.legislatura = Legislatura.objects.create(
            tenant=self.tenant, numero=19, ano_inicio=2025, ano_fim=2028, ativa=True
        )
        self.parlamentares = [
            Parlamentar.objects.create(tenant=self.tenant, nome=f"Vereador {i}", partido="ABC")
            for i in range(1, 6)
        ]

    def tearDown(self):
        cache.clear()

    def _sessao(self, **extra):
        dados = {"legislatura": self.legislatura, "data": date(2026, 3, 2), "tipo": Sessao.Tipo.ORDINARIA}
        dados.update(extra)
        return services.criar_sessao(tenant=self.tenant, dados=dados)

    def _proposicao(self, tipo=Proposicao.Tipo.PROJETO_LEI, numero="001", **extra):
        return Proposicao.objects.create(
            tenant=self.tenant,
            tipo=tipo,
            numero=numero,
            ano=2026,
            titulo="Projeto de teste",
            ementa="Dispõe sobre um assunto de teste.",
            **extra,
        )

    def _presentes(self, sessao, quantidade):
        for parlamentar in self.parlamentares[:quantidade]:
            services.registrar_presenca(sessao, parlamentar, presente=True)

    def _em_votacao(self, sessao, proposicao):
        item = services.adicionar_item(sessao, {"proposicao": proposicao})
        services.iniciar_item(sessao, item)
        return services.iniciar_votacao(sessao, item)

    def _votar(self, sessao, proposicao, votos):
        for parlamentar, voto in zip(self.parlamentares, votos):
            services_votacao.registrar_voto(sessao=sessao, proposicao=proposicao, parlamentar=parlamentar, voto=voto)


class NomenclaturaTestCase(SessoesBaseTestCase):
    def test_sequence_increments_per_tipo(self):
        self.assertEqual(services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2026), 1)
        self.assertEqual(services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2026), 2)
        self.assertEqual(services_nomenclatura.proximo_numero_sessao(self.tenant, "SOLENE", 19, 2026), 1)
        self.assertEqual(services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2027), 1)

    def test_peek_does_not_consume(self):
        services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2026)
        self.assertEqual(
            services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2026, consumir=False), 2
        )
        self.assertEqual(services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2026), 2)

    def test_without_yearly_reset_sequence_spans_years(self):
        services_nomenclatura.atualizar_configuracao(self.tenant, {"resetar_por_ano": False})
        services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2026)
        self.assertEqual(services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2027), 2)

    def test_title_with_and_without_period(self):
        self.assertEqual(
            services_nomenclatura.gerar_titulo_sessao(self.tenant, "ORDINARIA", 19, 1),
            "1ª Sessão Ordinária da 19ª Legislatura",
        )
        self.assertEqual(
            services_nomenclatura.gerar_titulo_sessao(self.tenant, "EXTRAORDINARIA", 19, 3, periodo=2),
            "3ª Sessão Extraordinária do 2º Período da 19ª Legislatura",
        )

    def test_invalid_placeholder_is_rejected(self):
        with self.assertRaises(DadosInvalidos) as ctx:
            services_nomenclatura.validar_template("{{numero_sessao}} {{foo}}")
        self.assertEqual(ctx.exception.message, "Placeholder inválido: {{foo}}")

    def test_reset_and_statistics(self):
        services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2026)
        services_nomenclatura.proximo_numero_sessao(self.tenant, "SOLENE", 19, 2026)
        stats = services_nomenclatura.estatisticas(self.tenant)
        self.assertEqual(stats["totalSequencias"], 2)
        self.assertEqual(stats["proximosNumeros"]["ORDINARIA-19-2026"], 2)

        self.assertEqual(services_nomenclatura.resetar_numeracao(self.tenant, tipo="ORDINARIA"), 1)
        self.assertEqual(services_nomenclatura.proximo_numero_sessao(self.tenant, "ORDINARIA", 19, 2026), 1)
        self.assertEqual(services_nomenclatura.proximo_numero_sessao(self.tenant, "SOLENE", 19, 2026), 2)


class QuorumTestCase(SessoesBaseTestCase):
    def test_calcular_quorum(self):
        simples = services_quorum.calcular_quorum("SIMPLES", 9, 5)
        self.assertEqual(simples["necessario"], 5)
        self.assertEqual(simples["minimoAprovacao"], 3)
        self.assertTrue(simples["temQuorum"])

        qualificada = services_quorum.calcular_quorum("QUALIFICADA", 9, 5)
        self.assertEqual(qualificada["necessario"], 6)
        self.assertFalse(qualificada["temQuorum"])

    def test_votos_necessarios(self):
        T = ConfiguracaoQuorum.TipoQuorum
        self.assertEqual(services_quorum.calcular_votos_necessarios(T.MAIORIA_ABSOLUTA, 9), 5)
        self.assertEqual(services_quorum.calcular_votos_necessarios(T.DOIS_TERCOS, 9), 6)
        self.assertEqual(services_quorum.calcular_votos_necessarios(T.TRES_QUINTOS, 9), 6)
        self.assertEqual(services_quorum.calcular_votos_necessarios(T.UNANIMIDADE, 9), 9)

    def test_default_configurations_are_created_once(self):
        criadas = services_quorum.criar_configuracoes_padrao(self.tenant)
        self.assertEqual(len(criadas), 7)
        self.assertEqual(services_quorum.criar_configuracoes_padrao(self.tenant), [])
        veto = ConfiguracaoQuorum.objects.get(tenant=self.tenant, aplicacao="DERRUBADA_VETO")
        self.assertTrue(veto.requerer_votacao_nominal)
        self.assertEqual(veto.mensagem_rejeicao, "Veto mantido")

    def test_simple_majority_with_abstention_counting_against(self):
        config = services_quorum.obter_configuracao(self.tenant, "VOTACAO_SIMPLES")
        resultado = services_quorum.calcular_resultado_votacao(config, sim=3, nao=2, abstencao=2, presentes=7)
        self.assertTrue(resultado["aprovado"])
        self.assertEqual(resultado["mensagem"], "Aprovado")

        config.abstencao_conta_contra = True
        resultado = services_quorum.calcular_resultado_votacao(config, sim=3, nao=2, abstencao=2, presentes=7)
        self.assertFalse(resultado["aprovado"])
        self.assertEqual(resultado["mensagem"], "Rejeitado por não atingir quórum")

    def test_two_thirds_over_total_members(self):
        services_quorum.criar_configuracoes_padrao(self.tenant)
        config = services_quorum.obter_configuracao(self.tenant, "VOTACAO_QUALIFICADA")
        resultado = services_quorum.calcular_resultado_votacao(config, sim=3, nao=0, presentes=5)
        self.assertEqual(resultado["quorum"]["totalBase"], 5)
        self.assertEqual(resultado["quorum"]["votosNecessarios"], 4)
        self.assertFalse(resultado["aprovado"])
        self.assertTrue(resultado["requererVotacaoNominal"])

    def test_determinar_aplicacao(self):
        self.assertEqual(services_quorum.determinar_aplicacao_quorum("PROJETO_LEI", veto=True), "DERRUBADA_VETO")
        self.assertEqual(services_quorum.determinar_aplicacao_quorum("PROJETO_LEI", comissao=True), "VOTACAO_COMISSAO")
        self.assertEqual(services_quorum.determinar_aplicacao_quorum("PROJETO_LEI", urgencia=True), "VOTACAO_URGENCIA")
        self.assertEqual(
            services_quorum.determinar_aplicacao_quorum("PROJETO_EMENDA_LEI_ORGANICA"), "VOTACAO_QUALIFICADA"
        )
        self.assertEqual(services_quorum.determinar_aplicacao_quorum("PROJETO_LEI"), "VOTACAO_ABSOLUTA")
        self.assertEqual(services_quorum.determinar_aplicacao_quorum("INDICACAO"), "VOTACAO_SIMPLES")

    def test_nominal_and_impedimento(self):
        self.assertTrue(services_votacao.deve_ser_votacao_nominal("QUALIFICADA", "PROJETO_LEI")["nominal"])
        self.assertTrue(services_votacao.deve_ser_votacao_nominal("SIMPLES", "VETO")["nominal"])
        self.assertEqual(
            services_votacao.deve_ser_votacao_nominal("SIMPLES", "INDICACAO")["motivo"],
            "Votação simbólica permitida",
        )
        autor = self.parlamentares[0]
        proposicao = self._proposicao(autor=autor)
        impedimento = services_votacao.verificar_impedimento(autor, proposicao)
        self.assertFalse(impedimento["impedido"])
        self.assertIn("conflito de interesse", impedimento["aviso"])


class SessaoControleTestCase(SessoesBaseTestCase):
    def test_create_numbers_and_titles(self):
        primeira = self._sessao()
        segunda = self._sessao(data=date(2026, 3, 9))
        self.assertEqual((primeira.numero, segunda.numero), (1, 2))
        self.assertEqual(primeira.titulo, "1ª Sessão Ordinária da 19ª Legislatura")

        with self.assertRaises(Conflito):
            self._sessao(numero=2)

    def test_session_number_is_unique_in_database(self):
        sessao = self._sessao()
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Sessao.objects.create(
                    tenant=self.tenant,
                    legislatura=self.legislatura,
                    tipo=sessao.tipo,
                    numero=sessao.numero,
                    data=date(2026, 8, 3),
                )
        outra_ano = Sessao.objects.create(
            tenant=self.tenant, legislatura=self.legislatura, tipo=sessao.tipo, numero=sessao.numero, data=date(2027, 2, 1)
        )
        self.assertEqual((sessao.ano, outra_ano.ano), (2026, 2027))

    def test_update_to_taken_number_conflicts(self):
        self._sessao()
        segunda = self._sessao(data=date(2026, 3, 9))
        with self.assertRaises(Conflito):
            services.atualizar_sessao(segunda, {"numero": 1})
        segunda.refresh_from_db()
        self.assertEqual(segunda.numero, 2)

    def test_period_is_resolved_from_date(self):
        PeriodoLegislatura.objects.create(
            legislatura=self.legislatura, numero=2, data_inicio=date(2026, 2, 1), data_fim=date(2026, 12, 31)
        )
        sessao = self._sessao()
        self.assertEqual(sessao.periodo.numero, 2)
        self.assertEqual(sessao.titulo, "1ª Sessão Ordinária do 2º Período da 19ª Legislatura")

    def test_start_requires_installation_quorum(self):
        sessao = self._sessao()
        with self.assertRaises(Conflito):
            services.iniciar_sessao(sessao)
        self._presentes(sessao, 3)
        sessao = services.iniciar_sessao(sessao)
        self.assertEqual(sessao.status, Sessao.Status.EM_ANDAMENTO)
        self.assertIsNotNone(sessao.iniciada_em)
        # idempotente
        self.assertEqual(services.iniciar_sessao(sessao).status, Sessao.Status.EM_ANDAMENTO)

    def test_start_points_current_item_to_first_pending(self):
        sessao = self._sessao()
        primeiro = services.adicionar_item(sessao, {"titulo": "Leitura do expediente"})
        services.adicionar_item(sessao, {"titulo": "Segundo item"})
        self._presentes(sessao, 3)
        sessao = services.iniciar_sessao(sessao)
        self.assertEqual(sessao.item_atual_id, primeiro.pk)

    def test_cancelled_or_finished_session_cannot_start(self):
        sessao = self._sessao()
        services.cancelar_sessao(sessao)
        with self.assertRaisesMessage(Conflito, "Sessão cancelada não pode ser iniciada"):
            services.iniciar_sessao(sessao)
        with self.assertRaisesMessage(Conflito, "Sessão cancelada não pode ser finalizada"):
            services.finalizar_sessao(sessao)

        outra = self._sessao()
        self._presentes(outra, 3)
        services.iniciar_sessao(outra)
        services.finalizar_sessao(outra)
        with self.assertRaisesMessage(Conflito, "Sessão já finalizada não pode ser iniciada"):
            services.iniciar_sessao(outra)

    def test_finish_publishes_event_and_blocks_presence(self):
        sessao = self._sessao()
        self._presentes(sessao, 3)
        services.iniciar_sessao(sessao)
        sessao = services.finalizar_sessao(sessao)
        self.assertTrue(sessao.finalizada)
        self.assertIsNone(sessao.item_atual)
        self.assertTrue(
            TransparenciaEventoPublico.objects.filter(
                tenant=self.tenant, modulo="SESSOES", tipo_evento="SESSAO_CONCLUIDA"
            ).exists()
        )
        with self.assertRaises(Conflito):
            services.registrar_presenca(sessao, self.parlamentares[4], presente=True)

    def test_suspend_and_resume(self):
        sessao = self._sessao()
        with self.assertRaises(Conflito):
            services.suspender_sessao(sessao)
        self._presentes(sessao, 3)
        services.iniciar_sessao(sessao)
        self.assertEqual(services.suspender_sessao(sessao).status, Sessao.Status.SUSPENSA)
        self.assertEqual(services.retomar_sessao(sessao).status, Sessao.Status.EM_ANDAMENTO)

    def test_delete_only_scheduled_or_cancelled(self):
        sessao = self._sessao()
        sessao.status = Sessao.Status.CONVOCADA
        sessao.save()
        with self.assertRaises(Conflito):
            services.excluir_sessao(sessao)
        services.cancelar_sessao(sessao)
        services.excluir_sessao(sessao)
        self.assertFalse(Sessao.objects.filter(pk=sessao.pk).exists())


class PautaTestCase(SessoesBaseTestCase):
    def setUp(self):
        super().setUp()
        self.sessao = self._sessao()
        self._presentes(self.sessao, 3)

    def test_item_requires_session_in_progress(self):
        item = services.adicionar_item(self.sessao, {"titulo": "Item"})
        with self.assertRaisesMessage(Conflito, "A sessão deve estar em andamento para iniciar um item"):
            services.iniciar_item(self.sessao, item)

    def test_pause_accumulates_seconds(self):
        services.iniciar_sessao(self.sessao)
        item = services.adicionar_item(self.sessao, {"titulo": "Item"})
        services.iniciar_item(self.sessao, item)
        item.iniciado_em = timezone.now() - timedelta(seconds=30)
        item.save()

        item = services.pausar_item(self.sessao, item)
        self.assertGreaterEqual(item.tempo_acumulado, 30)
        self.assertIsNone(item.iniciado_em)
        with self.assertRaisesMessage(Conflito, "Item ainda não foi iniciado"):
            services.pausar_item(self.sessao, item)
        with self.assertRaisesMessage(Conflito, "O item precisa estar em discussão antes de iniciar a votação"):
            services.iniciar_votacao(self.sessao, item)

        item = services.retomar_item(self.sessao, item)
        self.assertEqual(item.status, PautaItem.Status.EM_DISCUSSAO)
        item = services.finalizar_item(self.sessao, item, resultado=PautaItem.Status.CONCLUIDO)
        self.assertEqual(item.tempo_real, item.tempo_acumulado)
        self.assertIsNotNone(item.finalizado_em)
        self.sessao.refresh_from_db()
        self.assertIsNone(self.sessao.item_atual)
        self.assertGreaterEqual(self.sessao.tempo_total_real, 30)

    def test_add_proposicao_marks_it_em_pauta(self):
        proposicao = self._proposicao()
        item = services.adicionar_item(self.sessao, {"proposicao": proposicao})
        proposicao.refresh_from_db()
        self.assertEqual(proposicao.status, Proposicao.Status.EM_PAUTA)
        self.assertTrue(item.titulo.startswith("PL 001/2026"))
        with self.assertRaises(Conflito):
            services.adicionar_item(self.sessao, {"proposicao": proposicao})

    def test_reorder_and_remove(self):
        a = services.adicionar_item(self.sessao, {"titulo": "A"})
        b = services.adicionar_item(self.sessao, {"titulo": "B"})
        self.assertEqual((a.ordem, b.ordem), (1, 2))
        itens = services.reordenar_pauta(self.sessao, [b.pk, a.pk])
        self.assertEqual([i.pk for i in itens], [b.pk, a.pk])
        with self.assertRaises(DadosInvalidos):
            services.reordenar_pauta(self.sessao, [a.pk])
        services.remover_item(self.sessao, a)
        self.assertEqual(self.sessao.pauta.count(), 1)

    def test_adiar_and_retirar(self):
        services.iniciar_sessao(self.sessao)
        a = services.adicionar_item(self.sessao, {"titulo": "A"})
        b = services.adicionar_item(self.sessao, {"titulo": "B"})
        services.iniciar_item(self.sessao, a)
        a = services.adiar_item(self.sessao, a)
        self.assertEqual(a.status, PautaItem.Status.ADIADO)
        self.sessao.refresh_from_db()
        self.assertIsNone(self.sessao.item_atual)
        b = services.retirar_item(self.sessao, b)
        self.assertEqual(b.status, PautaItem.Status.RETIRADO)
        with self.assertRaises(Conflito):
            services.iniciar_item(self.sessao, b)

    def test_wrong_item_for_session(self):
        outra = self._sessao()
        item = services.adicionar_item(outra, {"titulo": "Outro"})
        with self.assertRaisesMessage(NaoEncontrado, "Item inválido para a sessão informada"):
            services.obter_item(self.sessao, item.pk)


class VotacaoTestCase(SessoesBaseTestCase):
    def setUp(self):
        super().setUp()
        self.sessao = self._sessao()
        self._presentes(self.sessao, 4)
        services.iniciar_sessao(self.sessao)

    def test_vote_requires_presence_and_running_session(self):
        proposicao = self._proposicao()
        ausente = self.parlamentares[4]
        with self.assertRaisesMessage(Conflito, "Parlamentar deve estar presente na sessão para votar"):
            services_votacao.registrar_voto(
                sessao=self.sessao, proposicao=proposicao, parlamentar=ausente, voto="SIM"
            )
        ausente.ativo = False
        ausente.save()
        with self.assertRaisesMessage(DadosInvalidos, "Parlamentar não encontrado ou inativo"):
            services_votacao.registrar_voto(
                sessao=self.sessao, proposicao=proposicao, parlamentar=ausente, voto="SIM"
            )

    def test_vote_is_upserted_per_turn(self):
        proposicao = self._proposicao()
        parlamentar = self.parlamentares[0]
        services_votacao.registrar_voto(sessao=self.sessao, proposicao=proposicao, parlamentar=parlamentar, voto="SIM")
        services_votacao.registrar_voto(sessao=self.sessao, proposicao=proposicao, parlamentar=parlamentar, voto="NAO")
        self.assertEqual(Voto.objects.filter(proposicao=proposicao).count(), 1)
        self.assertEqual(Voto.objects.get(proposicao=proposicao).voto, "NAO")

    def test_approval_updates_item_and_proposicao(self):
        proposicao = self._proposicao()
        item = self._em_votacao(self.sessao, proposicao)
        self._votar(self.sessao, proposicao, ["SIM", "SIM", "SIM", "NAO"])

        resultado = services_votacao.encerrar_votacao_item(self.sessao, item)
        self.assertEqual(resultado["apuracao"]["resultado"], "APROVADA")
        self.assertEqual(resultado["turno"]["mensagem"], "Matéria aprovada em turno único.")

        item.refresh_from_db()
        proposicao.refresh_from_db()
        self.assertEqual(item.status, PautaItem.Status.APROVADO)
        self.assertIsNotNone(item.tempo_real)
        self.assertEqual(proposicao.status, Proposicao.Status.APROVADA)
        self.assertEqual(proposicao.resultado, "APROVADA")
        self.assertEqual(proposicao.sessao_votacao_id, self.sessao.pk)
        self.assertTrue(
            TransparenciaEventoPublico.objects.filter(tipo_evento="PROPOSICAO_VOTADA").exists()
        )

    def test_tie(self):
        proposicao = self._proposicao()
        item = self._em_votacao(self.sessao, proposicao)
        self._votar(self.sessao, proposicao, ["SIM", "SIM", "NAO", "NAO"])
        resultado = services_votacao.encerrar_votacao_item(self.sessao, item)
        self.assertEqual(resultado["apuracao"]["resultado"], "EMPATE")
        proposicao.refresh_from_db()
        self.assertEqual(proposicao.resultado, "EMPATE")
        self.assertEqual(proposicao.status, Proposicao.Status.EM_PAUTA)

    def test_without_quorum(self):
        sessao = self._sessao()
        self._presentes(sessao, 2)
        services.iniciar_sessao(sessao, verificar_quorum=False)
        proposicao = self._proposicao()
        self._votar(sessao, proposicao, ["SIM", "SIM"])
        apuracao = services_votacao.apurar_resultado(proposicao, 1, sessao=sessao)
        self.assertEqual(apuracao["resultado"], "SEM_QUORUM")

    def test_two_turns_with_intersticio(self):
        proposicao = self._proposicao(tipo=Proposicao.Tipo.PROJETO_RESOLUCAO)
        item = self._em_votacao(self.sessao, proposicao)
        self.assertEqual(item.turno_final, 2)
        self._votar(self.sessao, proposicao, ["SIM", "SIM", "SIM", "NAO"])

        resultado = services_votacao.encerrar_votacao_item(self.sessao, item)
        self.assertTrue(resultado["turno"]["intersticio"])
        self.assertTrue(resultado["turno"]["mensagem"].startswith("Aprovado em 1º turno."))
        item.refresh_from_db()
        proposicao.refresh_from_db()
        self.assertEqual(item.status, PautaItem.Status.PENDENTE)
        self.assertEqual(item.resultado_turno1, "APROVADA")
        self.assertEqual(proposicao.status, Proposicao.Status.EM_PAUTA)

        pode, motivo = services_turnos.pode_iniciar_segundo_turno(item)
        self.assertFalse(pode)
        self.assertTrue(motivo.startswith("Aguarde"))
        with self.assertRaises(Conflito):
            services_turnos.iniciar_segundo_turno(item)

        depois = item.prazo_intersticio + timedelta(minutes=1)
        self.assertEqual(
            services_turnos.pode_iniciar_segundo_turno(item, agora=depois),
            (True, "Interstício cumprido, pode iniciar 2º turno"),
        )
        item = services_turnos.iniciar_segundo_turno(item, agora=depois)
        self.assertEqual((item.turno_atual, item.status), (2, PautaItem.Status.EM_VOTACAO))

        self._votar(self.sessao, proposicao, ["SIM", "SIM", "SIM", "SIM"])
        self.assertEqual(Voto.objects.filter(proposicao=proposicao, turno=2).count(), 4)
        resultado = services_votacao.encerrar_votacao_item(self.sessao, item)
        self.assertEqual(resultado["turno"]["mensagem"], "Matéria aprovada em 2º turno.")
        proposicao.refresh_from_db()
        self.assertEqual(proposicao.status, Proposicao.Status.APROVADA)

    def test_rejection_in_first_turn_is_final(self):
        proposicao = self._proposicao(tipo=Proposicao.Tipo.PROJETO_RESOLUCAO)
        item = self._em_votacao(self.sessao, proposicao)
        self._votar(self.sessao, proposicao, ["NAO", "NAO", "NAO", "SIM"])
        resultado = services_votacao.encerrar_votacao_item(self.sessao, item)
        self.assertEqual(resultado["turno"]["mensagem"], "Matéria rejeitada em 1º turno.")
        proposicao.refresh_from_db()
        self.assertEqual(proposicao.status, Proposicao.Status.REJEITADA)

    def test_business_days_skip_weekend(self):
        sexta = timezone.make_aware(datetime(2026, 10, 16, 18, 0))
        segunda = services_turnos.adicionar_dias_uteis(sexta, 1)
        self.assertEqual(segunda.date(), date(2026, 10, 19))


class SessoesApiTestCase(SessoesBaseTestCase):
    def setUp(self):
        super().setUp()
        self.admin = _make_user("secretaria", role="SECRETARIA", tenant=self.tenant)
        self.client.force_login(self.admin)

    def _post(self, name, payload=None, **kwargs):
        return self.client.post(
            reverse(name, kwargs=kwargs), data=json.dumps(payload or {}), content_type="application/json"
        )

    def test_create_and_list(self):
        response = self._post(
            "sessoes:sessao_list",
            {"legislatura": self.legislatura.pk, "data": "2026-03-02", "tipo": "ORDINARIA"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["numero"], 1)

        response = self.client.get(reverse("sessoes:sessao_list"))
        self.assertEqual(response.json()["meta"]["total"], 1)

    def test_full_flow_and_panel(self):
        sessao = self._sessao()
        proposicao = self._proposicao()
        self._post(
            "sessoes:presenca_list",
            {"presencas": [{"parlamentar": p.pk} for p in self.parlamentares[:3]]},
            pk=sessao.pk,
        )
        self.assertEqual(self._post("sessoes:sessao_acao", pk=sessao.pk, acao="iniciar").status_code, 200)

        response = self._post("sessoes:pauta_list", {"proposicao": proposicao.pk}, pk=sessao.pk)
        self.assertEqual(response.status_code, 201)
        item_id = response.json()["data"]["id"]

        for acao in ("iniciar", "iniciar-votacao"):
            response = self._post("sessoes:pauta_item_acao", pk=sessao.pk, item_id=item_id, acao=acao)
            self.assertEqual(response.status_code, 200, response.content)

        for parlamentar in self.parlamentares[:3]:
            response = self._post(
                "sessoes:voto_list",
                {"proposicao": proposicao.pk, "parlamentar": parlamentar.pk, "voto": "SIM"},
                pk=sessao.pk,
            )
            self.assertEqual(response.status_code, 201)

        painel = self.client.get(reverse("sessoes:sessao_painel", kwargs={"pk": sessao.pk})).json()["data"]
        self.assertEqual(painel["presenca"]["presentes"], 3)
        self.assertEqual(painel["votacao"]["placar"]["sim"], 3)

        response = self._post("sessoes:pauta_item_acao", pk=sessao.pk, item_id=item_id, acao="encerrar-votacao")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["apuracao"]["resultado"], "APROVADA")

        response = self._post("sessoes:sessao_acao", pk=sessao.pk, acao="finalizar")
        self.assertEqual(response.json()["data"]["status"], "CONCLUIDA")

    def test_invalid_action_and_missing_quorum(self):
        sessao = self._sessao()
        response = self._post("sessoes:sessao_acao", pk=sessao.pk, acao="iniciar")
        self.assertEqual(response.status_code, 409)
        self.assertIn("necessarios", response.json()["details"])
        response = self._post("sessoes:sessao_acao", pk=sessao.pk, acao="explodir")
        self.assertEqual(response.status_code, 400)

    def test_reading_role_cannot_create(self):
        leitor = _make_user("leitor", role="LEITURA", tenant=self.tenant)
        self.client.force_login(leitor)
        response = self._post("sessoes:sessao_list", {"legislatura": self.legislatura.pk, "data": "2026-03-02"})
        self.assertEqual(response.status_code, 403)

    def test_parlamentar_votes_only_for_self(self):
        sessao = self._sessao()
        self._presentes(sessao, 3)
        services.iniciar_sessao(sessao)
        proposicao = self._proposicao()
        vereador = _make_user("vereador", role="PARLAMENTAR", tenant=self.tenant, parlamentar=self.parlamentares[0])
        self.client.force_login(vereador)

        outro = self._post(
            "sessoes:voto_list",
            {"proposicao": proposicao.pk, "parlamentar": self.parlamentares[1].pk, "voto": "SIM"},
            pk=sessao.pk,
        )
        self.assertEqual(outro.status_code, 403)
        proprio = self._post(
            "sessoes:voto_list",
            {"proposicao": proposicao.pk, "parlamentar": self.parlamentares[0].pk, "voto": "SIM"},
            pk=sessao.pk,
        )
        self.assertEqual(proprio.status_code, 201)

    def test_nomenclature_endpoints(self):
        response = self.client.put(
            reverse("sessoes:nomenclatura_config"),
            data=json.dumps({"template_titulo": "{{numero_sessao}}ª {{invalido}}"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)
        response = self.client.get(
            reverse("sessoes:nomenclatura_preview"), {"tipo": "SOLENE", "legislatura": 19, "ano": 2026}
        )
        self.assertEqual(response.json()["data"]["titulo"], "1ª Sessão Solene da 19ª Legislatura")

    def test_quorum_endpoints(self):
        response = self._post("sessoes:quorum_padrao")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.json()["data"]), 7)
        response = self._post(
            "sessoes:quorum_simular",
            {"aplicacao": "VOTACAO_SIMPLES", "sim": 3, "nao": 1, "presentes": 4},
        )
        self.assertTrue(response.json()["data"]["aprovado"])

    def test_anonymous_gets_401(self):
        self.client.logout()
        response = self.client.get(reverse("sessoes:sessao_list"))
        self.assertEqual(response.status_code, 401)

    def test_public_listing_by_host(self):
        self._sessao()
        cancelada = self._sessao()
        services.cancelar_sessao(cancelada)
        self.client.logout()
        response = self.client.get("/api/publico/sessoes/", HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["meta"]["total"], 1)

    def test_patch_to_taken_number_conflicts(self):
        self._sessao()
        segunda = self._sessao(data=date(2026, 3, 9))
        url = reverse("sessoes:sessao_detail", kwargs={"pk": segunda.pk})

        response = self.client.patch(url, data=json.dumps({"numero": 1}), content_type="application/json")
        self.assertEqual(response.status_code, 409, response.content)
        segunda.refresh_from_db()
        self.assertEqual(segunda.numero, 2)

        response = self.client.patch(url, data=json.dumps({"local": "Plenário"}), content_type="application/json")
        self.assertEqual(response.status_code, 200, response.content)
