from django.urls import path

from . import views

app_name = "tenants"

urlpatterns = [
    path("", views.tenant_list, name="list"),
    path("<int:pk>/", views.tenant_detail, name="detail"),
    path("cache/limpar/", views.tenant_cache_limpar, name="cache_limpar"),
]
