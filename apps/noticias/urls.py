from django.urls import path

from . import views

app_name = "noticias"

urlpatterns = [
    path("", views.noticia_list, name="noticia_list"),
    path("<int:pk>/", views.noticia_detail, name="noticia_detail"),
    path("<int:pk>/imagem/", views.noticia_imagem, name="noticia_imagem"),
]
