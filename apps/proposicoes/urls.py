from django.urls import path

from . import views

app_name = "proposicoes"

urlpatterns = [
    path("", views.proposicao_list, name="proposicao_list"),
    path("estatisticas/", views.proposicao_estatisticas, name="proposicao_estatisticas"),
    path("vetos/pendentes/", views.vetos_pendentes, name="vetos_pendentes"),
    path("<int:pk>/", views.proposicao_detail, name="proposicao_detail"),
    path("<int:pk>/tramitar/", views.proposicao_tramitar, name="proposicao_tramitar"),
    path("<int:pk>/arquivar/", views.proposicao_arquivar, name="proposicao_arquivar"),
    # emendas
    path("<int:pk>/emendas/", views.emenda_list, name="emenda_list"),
    path("<int:pk>/emendas/aglutinar/", views.emendas_aglutinar, name="emendas_aglutinar"),
    path("<int:pk>/emendas/consolidado/", views.emendas_consolidado, name="emendas_consolidado"),
    path("<int:pk>/emendas/estatisticas/", views.emendas_estatisticas, name="emendas_estatisticas"),
    path("<int:pk>/emendas/prazo/", views.emendas_prazo, name="emendas_prazo"),
    path("emendas/<int:emenda_id>/", views.emenda_detail, name="emenda_detail"),
    path("emendas/<int:emenda_id>/votos/", views.emenda_votos, name="emenda_votos"),
    path("emendas/<int:emenda_id>/apurar/", views.emenda_apurar, name="emenda_apurar"),
    path("emendas/<int:emenda_id>/finalizar/", views.emenda_finalizar, name="emenda_finalizar"),
    path("emendas/<int:emenda_id>/retirar/", views.emenda_retirar, name="emenda_retirar"),
    path("emendas/<int:emenda_id>/prejudicar/", views.emenda_prejudicar, name="emenda_prejudicar"),
    # sanção e veto
    path("<int:pk>/sancao/", views.sancao_detail, name="sancao_detail"),
    path("<int:pk>/sancao/enviar/", views.sancao_enviar, name="sancao_enviar"),
    path("<int:pk>/sancao/sancionar/", views.sancao_sancionar, name="sancao_sancionar"),
    path("<int:pk>/sancao/tacita/", views.sancao_tacita, name="sancao_tacita"),
    path("<int:pk>/sancao/vetar/", views.sancao_vetar, name="sancao_vetar"),
    path("<int:pk>/sancao/apreciar-veto/", views.sancao_apreciar_veto, name="sancao_apreciar_veto"),
    path("<int:pk>/sancao/promulgar/", views.sancao_promulgar, name="sancao_promulgar"),
]
