from django.urls import path

from . import views

app_name = "parlamentares"

urlpatterns = [
    path("", views.parlamentar_list, name="parlamentar_list"),
    path("ativos/", views.parlamentar_ativos, name="parlamentar_ativos"),
    path("<int:pk>/", views.parlamentar_detail, name="parlamentar_detail"),
    path("<int:pk>/foto/", views.parlamentar_foto, name="parlamentar_foto"),

    path("mandatos/", views.mandato_create, name="mandato_create"),
    path("mandatos/<int:pk>/", views.mandato_detail, name="mandato_detail"),

    path("legislaturas/", views.legislatura_list, name="legislatura_list"),
    path("legislaturas/<int:pk>/", views.legislatura_detail, name="legislatura_detail"),
    path("legislaturas/<int:pk>/ativar/", views.legislatura_ativar, name="legislatura_ativar"),
    path("legislaturas/<int:pk>/periodos/", views.periodo_create, name="periodo_create"),

    path("mesa-diretora/", views.mesa_list, name="mesa_list"),
    path("mesa-diretora/<int:pk>/membros/", views.mesa_membro_create, name="mesa_membro_create"),
]
