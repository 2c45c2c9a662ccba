from django.urls import path

from . import views

app_name = "integracoes"

urlpatterns = [
    path("tokens/", views.token_list, name="token_list"),
    path("tokens/<int:pk>/", views.token_detail, name="token_detail"),
    path("tokens/<int:pk>/rotacionar/", views.token_rotacionar, name="token_rotacionar"),
    path("dados/<slug:recurso>/", views.dados_recurso, name="dados_recurso"),
]
