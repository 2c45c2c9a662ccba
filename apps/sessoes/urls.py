from django.urls import path

from . import views

app_name = "sessoes"

urlpatterns = [
    path("", views.sessao_list, name="sessao_list"),
    # configurações (antes de <int:pk>)
    path("quorum/", views.quorum_list, name="quorum_list"),
    path("quorum/padrao/", views.quorum_padrao, name="quorum_padrao"),
    path("quorum/simular/", views.quorum_simular, name="quorum_simular"),
    path("quorum/<int:pk>/", views.quorum_detail, name="quorum_detail"),
    path("nomenclatura/", views.nomenclatura_config, name="nomenclatura_config"),
    path("nomenclatura/preview/", views.nomenclatura_preview, name="nomenclatura_preview"),
    path("nomenclatura/estatisticas/", views.nomenclatura_estatisticas, name="nomenclatura_estatisticas"),
    path("nomenclatura/resetar/", views.nomenclatura_resetar, name="nomenclatura_resetar"),
    # sessão
    path("<int:pk>/", views.sessao_detail, name="sessao_detail"),
    path("<int:pk>/painel/", views.sessao_painel, name="sessao_painel"),
    path("<int:pk>/quorum-instalacao/", views.sessao_quorum_instalacao, name="sessao_quorum_instalacao"),
    path("<int:pk>/presencas/", views.presenca_list, name="presenca_list"),
    path("<int:pk>/votos/", views.voto_list, name="voto_list"),
    path("<int:pk>/apuracao/", views.sessao_apuracao, name="sessao_apuracao"),
    path("<int:pk>/pauta/", views.pauta_list, name="pauta_list"),
    path("<int:pk>/pauta/reordenar/", views.pauta_reordenar, name="pauta_reordenar"),
    path("<int:pk>/pauta/<int:item_id>/", views.pauta_item_detail, name="pauta_item_detail"),
    path("<int:pk>/pauta/<int:item_id>/<slug:acao>/", views.pauta_item_acao, name="pauta_item_acao"),
    path("<int:pk>/<slug:acao>/", views.sessao_acao, name="sessao_acao"),
]
