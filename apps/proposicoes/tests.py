import json
from datetime import date

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse

from apps.core.api import Conflito, DadosInvalidos
from apps.core.models import AuditoriaEvento, TransparenciaEventoPublico
from apps.parlamentares.models import Parlamentar
from apps.proposicoes import services, services_emendas, services_sancao
from apps.proposicoes.models import Emenda, ProcessoSancao, Proposicao, VotoEmenda
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


class ProposicoesServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.autor = Parlamentar.objects.create(tenant=self.tenant, nome="Maria Souza")

    def _criar(self, **extra):
        dados = {
            "tipo": Proposicao.Tipo.PROJETO_LEI,
            "titulo": "Programa municipal",
            "ementa": "Institui o programa municipal de hortas comunitárias.",
            "autor": self.autor,
            "data_apresentacao": date(2026, 4, 10),
        }
        dados.update(extra)
        return services.criar_proposicao(tenant=self.tenant, dados=dados)

    def test_number_is_generated_per_tipo_and_year(self):
        primeira = self._criar()
        segunda = self._criar()
        requerimento = self._criar(tipo=Proposicao.Tipo.REQUERIMENTO)
        self.assertEqual((primeira.numero, segunda.numero, requerimento.numero), ("001", "002", "001"))
        self.assertEqual(primeira.ano, 2026)
        self.assertEqual(primeira.identificacao, "PL 001/2026")
        self.assertEqual(primeira.tramitacoes.count(), 1)

    def test_duplicate_number_conflicts(self):
        self._criar(numero="010")
        with self.assertRaises(Conflito):
            self._criar(numero="010")

    def test_inactive_author_is_rejected(self):
        self.autor.ativo = False
        self.autor.save()
        with self.assertRaises(DadosInvalidos):
            self._criar()

    def test_tramitar_moves_out_of_apresentada(self):
        proposicao = self._criar()
        services.tramitar(proposicao, unidade="Comissão de Justiça", acao="Encaminhada para parecer")
        proposicao.refresh_from_db()
        self.assertEqual(proposicao.status, Proposicao.Status.EM_TRAMITACAO)
        self.assertEqual(proposicao.tramitacoes.count(), 2)
        self.assertTrue(
            AuditoriaEvento.objects.filter(evento="PROPOSICAO_TRAMITADA", entidade_id=str(proposicao.pk)).exists()
        )

    def test_archived_is_final(self):
        proposicao = self._criar()
        proposicao = services.arquivar(proposicao, motivo="Autor retirou")
        self.assertEqual(proposicao.status, Proposicao.Status.ARQUIVADA)
        with self.assertRaisesMessage(Conflito, "Proposição não pode ser editada no status atual"):
            services.atualizar_proposicao(proposicao, {"titulo": "Outro título"})
        with self.assertRaises(Conflito):
            services.tramitar(proposicao, unidade="Plenário", acao="Leitura")

    def test_only_presented_can_be_deleted(self):
        proposicao = self._criar()
        services.tramitar(proposicao, unidade="Plenário", acao="Leitura")
        with self.assertRaisesMessage(Conflito, "Somente proposições apresentadas podem ser excluídas"):
            services.excluir_proposicao(proposicao)

    def test_statistics(self):
        self._criar()
        self._criar(tipo=Proposicao.Tipo.INDICACAO)
        stats = services.estatisticas(self.tenant, 2026)
        self.assertEqual(stats["total"], 2)
        self.assertEqual(stats["porTipo"]["INDICACAO"], 1)
        self.assertEqual(stats["porStatus"]["APRESENTADA"], 2)


class ProposicoesApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.autor = Parlamentar.objects.create(tenant=self.tenant, nome="Maria Souza")
        self.client.force_login(_make_user("secretaria", tenant=self.tenant))

    def tearDown(self):
        cache.clear()

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def _payload(self, **extra):
        payload = {
            "tipo": "PROJETO_LEI",
            "titulo": "Programa municipal",
            "ementa": "Institui o programa municipal de hortas comunitárias.",
            "autor": self.autor.pk,
        }
        payload.update(extra)
        return payload

    def test_create_and_filter(self):
        response = self._post(reverse("proposicoes:proposicao_list"), self._payload(numero="7"))
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["data"]["numero"], "007")

        self._post(reverse("proposicoes:proposicao_list"), self._payload(tipo="INDICACAO"))
        response = self.client.get(reverse("proposicoes:proposicao_list"), {"tipo": "indicacao"})
        self.assertEqual(response.json()["meta"]["total"], 1)

    def test_validation_errors(self):
        response = self._post(reverse("proposicoes:proposicao_list"), self._payload(titulo="abc", numero="12a"))
        self.assertEqual(response.status_code, 400)
        details = response.json()["details"]
        self.assertIn("titulo", details)
        self.assertIn("numero", details)

    def test_tramitar_and_detail(self):
        proposicao = services.criar_proposicao(
            tenant=self.tenant,
            dados={"tipo": "PROJETO_LEI", "titulo": "Programa municipal", "ementa": "Ementa suficientemente longa"},
        )
        response = self._post(
            reverse("proposicoes:proposicao_tramitar", kwargs={"pk": proposicao.pk}),
            {"unidade": "Comissão de Finanças", "acao": "Parecer solicitado"},
        )
        self.assertEqual(response.status_code, 201)
        detail = self.client.get(reverse("proposicoes:proposicao_detail", kwargs={"pk": proposicao.pk})).json()
        self.assertEqual(len(detail["data"]["tramitacoes"]), 2)

    def test_public_listing_and_detail(self):
        proposicao = services.criar_proposicao(
            tenant=self.tenant,
            dados={"tipo": "PROJETO_LEI", "titulo": "Programa municipal", "ementa": "Ementa suficientemente longa"},
        )
        self.client.logout()
        response = self.client.get("/api/publico/proposicoes/", HTTP_HOST="saoluis.camaras.leg.br")
        self.assertEqual(response.json()["meta"]["total"], 1)
        response = self.client.get(
            f"/api/publico/proposicoes/{proposicao.pk}/", HTTP_HOST="saoluis.camaras.leg.br"
        )
        self.assertEqual(response.status_code, 200)
        self.assertNotIn("usuarioId", response.json()["data"]["tramitacoes"][0])

    def test_patch_to_taken_number_conflicts(self):
        self._post(reverse("proposicoes:proposicao_list"), self._payload(numero="1"))
        response = self._post(reverse("proposicoes:proposicao_list"), self._payload(numero="2"))
        segunda = response.json()["data"]["id"]

        response = self.client.patch(
            reverse("proposicoes:proposicao_detail", kwargs={"pk": segunda}),
            data=json.dumps({"numero": "001"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 409, response.content)
        self.assertEqual(Proposicao.objects.get(pk=segunda).numero, "002")

        response = self.client.patch(
            reverse("proposicoes:proposicao_detail", kwargs={"pk": segunda}),
            data=json.dumps({"titulo": "Programa municipal revisto"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["data"]["numero"], "002")


class EmendasServicesTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.autor = Parlamentar.objects.create(tenant=self.tenant, nome="Maria Souza")
        self.outro = Parlamentar.objects.create(tenant=self.tenant, nome="João Lima")
        self.terceiro = Parlamentar.objects.create(tenant=self.tenant, nome="Ana Prado")
        self.proposicao = services.criar_proposicao(
            tenant=self.tenant,
            dados={
                "tipo": Proposicao.Tipo.PROJETO_LEI,
                "titulo": "Programa municipal",
                "ementa": "Institui o programa municipal de hortas comunitárias.",
                "texto": "Art. 1º Fica instituído o programa.",
                "autor": self.autor,
            },
        )

    def _emenda(self, **extra):
        dados = {
            "autor": self.autor,
            "tipo": Emenda.Tipo.MODIFICATIVA,
            "artigo": "1",
            "texto_original": "Fica instituído o programa.",
            "texto_novo": "Fica instituído o programa permanente.",
            "justificativa": "Garante continuidade.",
        }
        dados.update(extra)
        return services_emendas.criar_emenda(self.proposicao, dados)

    def test_numbers_are_sequential_per_proposicao(self):
        primeira = self._emenda()
        segunda = self._emenda(coautores=[self.outro, self.autor])
        self.assertEqual((primeira.numero, segunda.numero), (1, 2))
        self.assertEqual(list(segunda.coautores.all()), [self.outro])
        self.assertTrue(primeira.identificacao.startswith("Emenda 001 ao PL 001/"))
        self.assertTrue(AuditoriaEvento.objects.filter(evento="EMENDA_APRESENTADA").exists())

    def test_texts_required_by_type(self):
        with self.assertRaises(DadosInvalidos) as ctx:
            self._emenda(tipo=Emenda.Tipo.SUPRESSIVA, texto_original="", texto_novo="")
        self.assertIn("texto_original", ctx.exception.details)
        with self.assertRaises(DadosInvalidos) as ctx:
            self._emenda(tipo=Emenda.Tipo.ADITIVA, texto_original="", texto_novo="")
        self.assertIn("texto_novo", ctx.exception.details)
        emenda = self._emenda(tipo=Emenda.Tipo.SUPRESSIVA, texto_novo="")
        self.assertEqual(emenda.status, Emenda.Status.APRESENTADA)

    def test_deadline_and_final_status_block_new_amendments(self):
        self.proposicao.prazo_emendas = date(2026, 5, 1)
        self.proposicao.save()
        prazo = services_emendas.verificar_prazo_emendas(self.proposicao, hoje=date(2026, 5, 2))
        self.assertTrue(prazo["prazoVencido"])
        self.assertFalse(prazo["podeCadastrar"])

        self.proposicao.prazo_emendas = None
        self.proposicao.status = Proposicao.Status.APROVADA
        self.proposicao.save()
        with self.assertRaisesMessage(Conflito, "Proposição não admite emendas no status atual"):
            self._emenda()

    def test_vote_is_replaced_and_simple_majority_decides(self):
        emenda = self._emenda()
        services_emendas.votar_emenda(emenda, parlamentar=self.autor, voto=VotoEmenda.Opcao.NAO)
        services_emendas.votar_emenda(emenda, parlamentar=self.autor, voto=VotoEmenda.Opcao.SIM)
        services_emendas.votar_emenda(emenda, parlamentar=self.outro, voto=VotoEmenda.Opcao.SIM)
        services_emendas.votar_emenda(emenda, parlamentar=self.terceiro, voto=VotoEmenda.Opcao.ABSTENCAO)
        self.assertEqual(emenda.votos.count(), 3)

        apuracao = services_emendas.apurar_votacao_emenda(emenda)
        self.assertEqual((apuracao["sim"], apuracao["nao"], apuracao["abstencao"]), (2, 0, 1))

        emenda = services_emendas.finalizar_votacao_emenda(emenda)
        self.assertEqual(emenda.status, Emenda.Status.APROVADA)
        self.assertEqual(emenda.votos_sim, 2)
        self.assertIsNotNone(emenda.data_votacao)
        with self.assertRaises(Conflito):
            services_emendas.votar_emenda(emenda, parlamentar=self.outro, voto=VotoEmenda.Opcao.NAO)

    def test_finalize_without_votes_conflicts(self):
        with self.assertRaisesMessage(Conflito, "Nenhum voto registrado para a emenda"):
            services_emendas.finalizar_votacao_emenda(self._emenda())

    def test_withdraw_and_prejudice(self):
        retirada = services_emendas.retirar_emenda(self._emenda())
        self.assertEqual(retirada.status, Emenda.Status.RETIRADA)
        with self.assertRaises(DadosInvalidos):
            services_emendas.prejudicar_emenda(self._emenda(), motivo=" ")
        prejudicada = services_emendas.prejudicar_emenda(self._emenda(), motivo="Matéria já disciplinada")
        self.assertEqual(prejudicada.status, Emenda.Status.PREJUDICADA)
        with self.assertRaises(Conflito):
            services_emendas.retirar_emenda(prejudicada)

    def test_merge_creates_substitutive_and_links_originals(self):
        a, b = self._emenda(), self._emenda(artigo="2")
        nova = services_emendas.aglutinar_emendas(
            self.proposicao,
            [a, b],
            {"autor": self.outro, "texto_novo": "Redação conjunta.", "justificativa": "Aglutinação."},
        )
        self.assertEqual(nova.tipo, Emenda.Tipo.SUBSTITUTIVA)
        self.assertEqual(nova.numero, 3)
        a.refresh_from_db()
        self.assertEqual((a.status, a.aglutinada_em_id), (Emenda.Status.AGLUTINADA, nova.pk))

        outra = services.criar_proposicao(
            tenant=self.tenant,
            dados={"tipo": Proposicao.Tipo.PROJETO_LEI, "titulo": "Outra matéria", "ementa": "Ementa suficientemente longa"},
        )
        estranha = services_emendas.criar_emenda(
            outra,
            {"autor": self.autor, "tipo": Emenda.Tipo.ADITIVA, "texto_novo": "Novo artigo.", "justificativa": "x"},
        )
        with self.assertRaisesMessage(DadosInvalidos, "Uma ou mais emendas não pertencem à proposição"):
            services_emendas.aglutinar_emendas(
                self.proposicao, [self._emenda(), estranha], {"autor": self.autor, "texto_novo": "y", "justificativa": "z"}
            )

    def test_consolidated_text_lists_approved_in_article_order(self):
        segunda = self._emenda(artigo="2")
        primeira = self._emenda(artigo="1", paragrafo="1")
        rejeitada = self._emenda(artigo="1")
        for emenda, voto in ((segunda, "SIM"), (primeira, "SIM"), (rejeitada, "NAO")):
            services_emendas.votar_emenda(emenda, parlamentar=self.autor, voto=voto)
            services_emendas.finalizar_votacao_emenda(emenda)

        consolidado = services_emendas.texto_consolidado(self.proposicao)
        self.assertEqual(consolidado["totalEmendasAprovadas"], 2)
        self.assertEqual([a["emendaId"] for a in consolidado["alteracoes"]], [primeira.pk, segunda.pk])
        self.assertEqual(consolidado["alteracoes"][0]["referencia"], "Art. 1, § 1")

        stats = services_emendas.estatisticas_emendas(self.proposicao)
        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["porStatus"], {"APROVADA": 2, "REJEITADA": 1})


class SancaoVetoTestCase(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        for nome in ("Ana", "Bruno", "Carla", "Davi", "Elisa"):
            Parlamentar.objects.create(tenant=self.tenant, nome=nome)
        self.proposicao = self._aprovada(Proposicao.Tipo.PROJETO_LEI)

    def _aprovada(self, tipo):
        proposicao = services.criar_proposicao(
            tenant=self.tenant,
            dados={"tipo": tipo, "titulo": "Programa municipal", "ementa": "Ementa suficientemente longa"},
        )
        Proposicao.objects.filter(pk=proposicao.pk).update(status=Proposicao.Status.APROVADA)
        proposicao.refresh_from_db()
        return proposicao

    def _enviar(self):
        processo, _aviso = services_sancao.enviar_ao_executivo(self.proposicao, data_envio=date(2026, 10, 16))
        return processo

    def _vetar(self, processo, tipo="TOTAL", **extra):
        dados = {
            "tipo": tipo,
            "motivo": ProcessoSancao.MotivoVeto.INTERESSE_PUBLICO,
            "razoes": "O projeto cria despesa sem indicação da fonte de custeio correspondente.",
            "data_veto": date(2026, 10, 20),
        }
        dados.update(extra)
        processo, _aviso = services_sancao.vetar(processo, **dados)
        return processo

    def test_send_requires_approved_law_project(self):
        processo = self._enviar()
        self.assertEqual(processo.prazo_sancao, date(2026, 11, 6))
        self.assertTrue(
            TransparenciaEventoPublico.objects.filter(tipo_evento="PROPOSICAO_ENVIADA_SANCAO").exists()
        )
        with self.assertRaisesMessage(Conflito, "Proposição já foi enviada ao Executivo"):
            self._enviar()

        resolucao = self._aprovada(Proposicao.Tipo.PROJETO_RESOLUCAO)
        with self.assertRaises(Conflito):
            services_sancao.enviar_ao_executivo(resolucao)

    def test_sanction_keeps_proposicao_approved_for_conversion(self):
        processo = self._enviar()
        with self.assertRaises(DadosInvalidos):
            services_sancao.sancionar(processo, numero_lei=" ")
        processo = services_sancao.sancionar(processo, numero_lei="1.234")
        self.assertEqual(processo.situacao, ProcessoSancao.Situacao.SANCIONADA)
        self.proposicao.refresh_from_db()
        self.assertEqual(self.proposicao.status, Proposicao.Status.APROVADA)
        with self.assertRaises(Conflito):
            services_sancao.sancionar(processo, numero_lei="1.234")

    def test_tacit_sanction_only_after_deadline_then_promulgation(self):
        processo = self._enviar()
        with self.assertRaisesMessage(Conflito, "O prazo para sanção ainda não terminou"):
            services_sancao.registrar_sancao_tacita(processo, hoje=date(2026, 11, 6))
        processo = services_sancao.registrar_sancao_tacita(processo, hoje=date(2026, 11, 9))
        self.assertTrue(processo.sancao_tacita)
        processo = services_sancao.promulgar(self.proposicao, numero_lei="1.235")
        self.assertEqual(processo.situacao, ProcessoSancao.Situacao.PROMULGADA)

    def test_veto_validation(self):
        processo = self._enviar()
        with self.assertRaises(DadosInvalidos):
            self._vetar(processo, razoes="Curto demais")
        with self.assertRaises(DadosInvalidos) as ctx:
            self._vetar(processo, tipo="PARCIAL")
        self.assertIn("dispositivos", ctx.exception.details)

    def test_veto_deadline_is_thirty_days_and_urgent_in_last_week(self):
        processo = self._vetar(self._enviar())
        self.proposicao.refresh_from_db()
        self.assertEqual(self.proposicao.status, Proposicao.Status.VETADA)
        self.assertEqual(processo.prazo_apreciacao, date(2026, 11, 19))

        prazo = services_sancao.calcular_prazo_apreciacao(processo, hoje=date(2026, 11, 14))
        self.assertEqual((prazo["diasRestantes"], prazo["urgente"], prazo["vencido"]), (5, True, False))
        prazo = services_sancao.calcular_prazo_apreciacao(processo, hoje=date(2026, 11, 20))
        self.assertTrue(prazo["vencido"])

        pendentes = services_sancao.vetos_pendentes(self.tenant, hoje=date(2026, 11, 14))
        self.assertEqual([p.pk for p, _prazo in pendentes], [processo.pk])

    def test_veto_overridden_by_absolute_majority(self):
        processo = self._vetar(self._enviar())
        processo, resultado = services_sancao.apreciar_veto(processo, sim=3, nao=2)
        self.assertTrue(resultado["aprovado"])
        self.assertEqual(resultado["quorum"]["votosNecessarios"], 3)
        self.assertEqual(resultado["mensagem"], "Veto derrubado")
        self.assertEqual(processo.situacao, ProcessoSancao.Situacao.VETO_REJEITADO)
        self.proposicao.refresh_from_db()
        self.assertEqual(self.proposicao.status, Proposicao.Status.APROVADA)

        processo = services_sancao.promulgar(self.proposicao, numero_lei="1.236")
        self.assertEqual(processo.numero_lei, "1.236")

    def test_total_veto_upheld_archives(self):
        processo = self._vetar(self._enviar())
        processo, resultado = services_sancao.apreciar_veto(processo, sim=2, nao=1, abstencao=1)
        self.assertFalse(resultado["aprovado"])
        self.assertEqual(processo.situacao, ProcessoSancao.Situacao.VETO_MANTIDO)
        self.proposicao.refresh_from_db()
        self.assertEqual(self.proposicao.status, Proposicao.Status.ARQUIVADA)
        with self.assertRaises(Conflito):
            services_sancao.promulgar(self.proposicao, numero_lei="1.237")

    def test_partial_veto_upheld_keeps_rest_approved(self):
        processo = self._vetar(self._enviar(), tipo="PARCIAL", dispositivos=["Art. 3º"])
        self.assertEqual(processo.dispositivos_vetados, ["Art. 3º"])
        services_sancao.apreciar_veto(processo, sim=1, nao=4)
        self.proposicao.refresh_from_db()
        self.assertEqual(self.proposicao.status, Proposicao.Status.APROVADA)

    def test_resolution_is_promulgated_without_sanction(self):
        resolucao = self._aprovada(Proposicao.Tipo.PROJETO_RESOLUCAO)
        processo = services_sancao.promulgar(resolucao, numero_lei="12")
        self.assertEqual(processo.situacao, ProcessoSancao.Situacao.PROMULGADA)
        with self.assertRaises(Conflito):
            services_sancao.promulgar(self.proposicao, numero_lei="13")


class EmendasSancaoApiTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.tenant = Tenant.objects.create(slug="sao-luis", nome="Câmara de São Luís", subdominio="saoluis")
        self.autor = Parlamentar.objects.create(tenant=self.tenant, nome="Maria Souza")
        self.outro = Parlamentar.objects.create(tenant=self.tenant, nome="João Lima")
        self.proposicao = services.criar_proposicao(
            tenant=self.tenant,
            dados={"tipo": "PROJETO_LEI", "titulo": "Programa municipal", "ementa": "Ementa suficientemente longa"},
        )
        self.secretaria = _make_user("secretaria", tenant=self.tenant)
        self.client.force_login(self.secretaria)

    def tearDown(self):
        cache.clear()

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def _criar_emenda(self):
        response = self._post(
            reverse("proposicoes:emenda_list", kwargs={"pk": self.proposicao.pk}),
            {
                "autor": self.autor.pk,
                "coautores": [self.outro.pk],
                "tipo": "ADITIVA",
                "artigo": "2",
                "texto_novo": "Art. 2º-A O programa será avaliado anualmente.",
                "justificativa": "Avaliação periódica.",
            },
        )
        self.assertEqual(response.status_code, 201, response.content)
        return response.json()["data"]

    def test_create_list_and_register_opinion(self):
        emenda = self._criar_emenda()
        self.assertEqual(emenda["numero"], 1)
        self.assertEqual(emenda["turnoApresentacao"], 1)
        self.assertEqual(emenda["referencia"], "Art. 2")
        self.assertEqual(len(emenda["coautores"]), 1)

        response = self.client.get(reverse("proposicoes:emenda_list", kwargs={"pk": self.proposicao.pk}))
        self.assertEqual(len(response.json()["data"]), 1)

        response = self.client.patch(
            reverse("proposicoes:emenda_detail", kwargs={"emenda_id": emenda["id"]}),
            data=json.dumps({"parecer_tipo": "FAVORAVEL", "parecer_comissao": "CLJ"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["data"]["status"], "EM_ANALISE")

    def test_parlamentar_votes_only_for_self(self):
        emenda = self._criar_emenda()
        vereador = _make_user("vereador", role="PARLAMENTAR", tenant=self.tenant)
        vereador.profile.parlamentar = self.autor
        vereador.profile.save()
        self.client.force_login(vereador)
        url = reverse("proposicoes:emenda_votos", kwargs={"emenda_id": emenda["id"]})

        response = self._post(url, {"parlamentar": self.outro.pk, "voto": "SIM"})
        self.assertEqual(response.status_code, 403)
        response = self._post(url, {"parlamentar": self.autor.pk, "voto": "SIM"})
        self.assertEqual(response.status_code, 201, response.content)

        response = self._post(reverse("proposicoes:emenda_finalizar", kwargs={"emenda_id": emenda["id"]}), {})
        self.assertEqual(response.status_code, 403)

        self.client.force_login(self.secretaria)
        response = self._post(reverse("proposicoes:emenda_finalizar", kwargs={"emenda_id": emenda["id"]}), {})
        self.assertEqual(response.json()["data"]["status"], "APROVADA")

    def test_sanction_flow_endpoints(self):
        Proposicao.objects.filter(pk=self.proposicao.pk).update(status=Proposicao.Status.APROVADA)
        kwargs = {"pk": self.proposicao.pk}

        response = self.client.get(reverse("proposicoes:sancao_detail", kwargs=kwargs))
        self.assertEqual(response.status_code, 404)

        response = self._post(reverse("proposicoes:sancao_enviar", kwargs=kwargs), {})
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["data"]["situacao"], "ENVIADA_EXECUTIVO")

        response = self._post(
            reverse("proposicoes:sancao_vetar", kwargs=kwargs),
            {"tipo": "PARCIAL", "motivo": "INCONSTITUCIONALIDADE", "razoes": "x" * 60},
        )
        self.assertEqual(response.status_code, 400)

        response = self._post(
            reverse("proposicoes:sancao_vetar", kwargs=kwargs),
            {"tipo": "TOTAL", "motivo": "INCONSTITUCIONALIDADE", "razoes": "Vício de iniciativa: matéria reservada ao Chefe do Executivo."},
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["data"]["prazo"]["diasRestantes"], 30)

        response = self.client.get(reverse("proposicoes:vetos_pendentes"))
        self.assertEqual(len(response.json()["data"]), 1)

        response = self._post(reverse("proposicoes:sancao_apreciar_veto", kwargs=kwargs), {"sim": 2, "nao": 0})
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["message"], "Veto derrubado")

        response = self._post(reverse("proposicoes:sancao_promulgar", kwargs=kwargs), {"numero_lei": "1.500"})
        self.assertEqual(response.json()["data"]["situacao"], "PROMULGADA")
