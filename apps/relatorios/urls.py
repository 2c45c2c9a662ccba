from django.urls import path

from . import views

app_name = "relatorios"

urlpatterns = [
    path("", views.relatorio_list, name="list"),
    path("tipos/", views.relatorio_tipos, name="tipos"),
    path("gerar/", views.relatorio_gerar, name="gerar"),
    path("<int:pk>/", views.relatorio_detail, name="detail"),
    path("<int:pk>/executar/", views.relatorio_executar, name="executar"),
    path("<int:pk>/execucoes/", views.execucao_list, name="execucao_list"),
    path("<int:pk>/execucoes/<int:execucao_id>/download/", views.execucao_download, name="execucao_download"),
]
