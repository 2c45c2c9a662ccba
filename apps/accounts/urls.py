from django.urls import path

from . import views

app_name = "accounts"

urlpatterns = [
    path("", views.usuarios_list, name="usuarios_list"),
    path("<int:pk>/", views.usuario_detail, name="usuario_detail"),
    path("<int:pk>/toggle-ativo/", views.usuario_toggle_ativo, name="usuario_toggle_ativo"),
    path("<int:pk>/toggle-bloqueio/", views.usuario_toggle_bloqueio, name="usuario_toggle_bloqueio"),
    path("<int:pk>/reset-senha/", views.usuario_reset_senha, name="usuario_reset_senha"),
    path("<int:pk>/auditoria/", views.usuario_auditoria, name="usuario_auditoria"),
]
