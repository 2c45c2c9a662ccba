from django.urls import path

from . import views

app_name = "normas"

urlpatterns = [
    path("", views.norma_list, name="norma_list"),
    path("estatisticas/", views.norma_estatisticas, name="norma_estatisticas"),
    path("converter/<int:proposicao_id>/", views.converter_proposicao, name="converter_proposicao"),
    path("<int:pk>/", views.norma_detail, name="norma_detail"),
    path("<int:pk>/versoes/<int:versao>/", views.norma_versao, name="norma_versao"),
    path("<int:pk>/alteracoes/", views.norma_alteracao, name="norma_alteracao"),
]
