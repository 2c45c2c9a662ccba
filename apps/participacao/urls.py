from django.urls import path

from . import views

app_name = "participacao"

urlpatterns = [
    path("estatisticas/", views.participacao_estatisticas, name="estatisticas"),

    path("consultas/", views.consulta_list, name="consulta_list"),
    path("consultas/<int:pk>/", views.consulta_detail, name="consulta_detail"),
    path("consultas/<int:pk>/perguntas/", views.consulta_perguntas, name="consulta_perguntas"),
    path("consultas/<int:pk>/perguntas/<int:pergunta_id>/", views.pergunta_detail, name="pergunta_detail"),
    path("consultas/<int:pk>/publicar/", views.consulta_publicar, name="consulta_publicar"),
    path("consultas/<int:pk>/encerrar/", views.consulta_encerrar, name="consulta_encerrar"),
    path("consultas/<int:pk>/resultados/", views.consulta_resultados, name="consulta_resultados"),

    path("sugestoes/", views.sugestao_list, name="sugestao_list"),
    path("sugestoes/<int:pk>/", views.sugestao_detail, name="sugestao_detail"),
    path("sugestoes/<int:pk>/moderar/", views.sugestao_moderar, name="sugestao_moderar"),
    path("sugestoes/<int:pk>/converter/", views.sugestao_converter, name="sugestao_converter"),
]
