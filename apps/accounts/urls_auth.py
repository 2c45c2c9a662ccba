from django.urls import path

from . import views

app_name = "auth"

urlpatterns = [
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),
    path("me/", views.me, name="me"),
    path("alterar-senha/", views.alterar_senha, name="alterar_senha"),

    path("2fa/", views.dois_fatores_status, name="2fa_status"),
    path("2fa/setup/", views.dois_fatores_setup, name="2fa_setup"),
    path("2fa/verificar/", views.dois_fatores_verificar, name="2fa_verificar"),
    path("2fa/desativar/", views.dois_fatores_desativar, name="2fa_desativar"),
]
