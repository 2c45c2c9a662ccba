"""
Rotas públicas (sem login), resolvidas pela câmara do host.
"""
from django.urls import path

from apps.comissoes import views as comissoes_views
from apps.normas import views as normas_views
from apps.noticias import views as noticias_views
from apps.parlamentares import views as parlamentares_views
from apps.participacao import views as participacao_views
from apps.proposicoes import views as proposicoes_views
from apps.sessoes import views as sessoes_views
from apps.tenants import views as tenants_views
from apps.transparencia import views as transparencia_views

app_name = "publico"

urlpatterns = [
    path("tenant/", tenants_views.tenant_atual, name="tenant"),

    # parlamentares
    path("parlamentares/", parlamentares_views.publico_parlamentares, name="parlamentares"),
    path("parlamentares/<int:pk>/", parlamentares_views.publico_parlamentar_detail, name="parlamentar_detail"),
    path("mesa-diretora/", parlamentares_views.publico_mesa_diretora, name="mesa_diretora"),

    # sessões / proposições
    path("sessoes/", sessoes_views.publico_sessoes, name="sessoes"),
    path("sessoes/<int:pk>/", sessoes_views.publico_sessao_detail, name="sessao_detail"),
    path("sessoes/<int:pk>/painel/", sessoes_views.publico_painel, name="sessao_painel"),
    path("proposicoes/", proposicoes_views.publico_proposicoes, name="proposicoes"),
    path("proposicoes/<int:pk>/", proposicoes_views.publico_proposicao_detail, name="proposicao_detail"),

    # comissões / normas
    path("comissoes/", comissoes_views.publico_comissoes, name="comissoes"),
    path("comissoes/reunioes/", comissoes_views.publico_reunioes, name="comissoes_reunioes"),
    path("normas/", normas_views.publico_normas, name="normas"),
    path("normas/busca/", normas_views.publico_normas_busca, name="normas_busca"),
    path("normas/<int:pk>/", normas_views.publico_norma_detail, name="norma_detail"),

    # transparência
    path("transparencia/publicacoes/", transparencia_views.publico_publicacoes, name="publicacoes"),
    path("transparencia/publicacoes/<int:pk>/", transparencia_views.publico_publicacao_detail, name="publicacao_detail"),
    path("transparencia/lrf/", transparencia_views.publico_lrf, name="lrf"),
    path("transparencia/recentes/", transparencia_views.publico_recentes, name="publicacoes_recentes"),
    path("transparencia/anos/", transparencia_views.publico_anos, name="publicacoes_anos"),
    path("transparencia/categorias/", transparencia_views.publico_categorias, name="publicacoes_categorias"),
    path("eventos/", transparencia_views.publico_eventos, name="eventos"),

    # participação cidadã
    path("participacao/consultas/", participacao_views.publico_consultas, name="consultas"),
    path("participacao/consultas/<int:pk>/", participacao_views.publico_consulta_detail, name="consulta_detail"),
    path(
        "participacao/consultas/<int:pk>/participar/",
        participacao_views.publico_consulta_participar,
        name="consulta_participar",
    ),
    path(
        "participacao/consultas/<int:pk>/resultados/",
        participacao_views.publico_consulta_resultados,
        name="consulta_resultados",
    ),
    path("participacao/sugestoes/", participacao_views.publico_sugestoes, name="sugestoes"),
    path("participacao/sugestoes/<int:pk>/", participacao_views.publico_sugestao_detail, name="sugestao_detail"),
    path("participacao/sugestoes/<int:pk>/apoio/", participacao_views.publico_sugestao_apoio, name="sugestao_apoio"),

    # notícias
    path("noticias/", noticias_views.publico_noticias, name="noticias"),
    path("noticias/<slug:slug>/", noticias_views.publico_noticia_detail, name="noticia_detail"),
]
