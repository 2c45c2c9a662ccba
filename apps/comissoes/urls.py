from django.urls import path

from . import views

app_name = "comissoes"

urlpatterns = [
    path("", views.comissao_list, name="comissao_list"),
    path("<int:pk>/", views.comissao_detail, name="comissao_detail"),
    path("<int:pk>/membros/", views.membro_create, name="membro_create"),
    path("<int:pk>/membros/<int:membro_id>/", views.membro_detail, name="membro_detail"),
    path("<int:pk>/reunioes/", views.reuniao_list, name="reuniao_list"),
    path("<int:pk>/pareceres/", views.parecer_list, name="parecer_list"),

    path("reunioes/proximas/", views.reuniao_proximas, name="reuniao_proximas"),
    path("reunioes/<int:reuniao_id>/", views.reuniao_detail, name="reuniao_detail"),
    path("reunioes/<int:reuniao_id>/presencas/", views.reuniao_presencas, name="reuniao_presencas"),
    path("reunioes/<int:reuniao_id>/ata/", views.reuniao_ata, name="reuniao_ata"),
    path("reunioes/<int:reuniao_id>/votar-parecer/", views.reuniao_votar_parecer, name="reuniao_votar_parecer"),
    path("reunioes/<int:reuniao_id>/<slug:acao>/", views.reuniao_acao, name="reuniao_acao"),

    path("pareceres/<int:parecer_id>/", views.parecer_detail, name="parecer_detail"),
    path("pareceres/<int:parecer_id>/emitir/", views.parecer_emitir, name="parecer_emitir"),
]
