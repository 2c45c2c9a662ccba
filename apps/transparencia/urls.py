from django.urls import path

from . import views

app_name = "transparencia"

urlpatterns = [
    path("publicacoes/", views.publicacao_list, name="publicacao_list"),
    path("publicacoes/estatisticas/", views.publicacao_estatisticas, name="publicacao_estatisticas"),
    path("publicacoes/exportar.csv", views.publicacao_exportar_csv, name="publicacao_exportar_csv"),
    path("publicacoes/<int:pk>/", views.publicacao_detail, name="publicacao_detail"),
    path("publicacoes/<int:pk>/arquivo/", views.publicacao_arquivo, name="publicacao_arquivo"),

    path("categorias/", views.categoria_list, name="categoria_list"),
    path("categorias/<int:pk>/", views.categoria_detail, name="categoria_detail"),
]
