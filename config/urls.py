from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

from apps.tenants import views as tenants_views

urlpatterns = [
    path("admin/", admin.site.urls),

    path("api/auth/", include(("apps.accounts.urls_auth", "auth"), namespace="auth")),
    path("api/usuarios/", include(("apps.accounts.urls", "accounts"), namespace="accounts")),
    path("api/tenants/", include(("apps.tenants.urls", "tenants"), namespace="tenants")),
    path("api/tenant/", tenants_views.tenant_atual, name="tenant_atual"),
    path("api/publico/", include(("config.urls_publico", "publico"), namespace="publico")),

    path("api/parlamentares/", include(("apps.parlamentares.urls", "parlamentares"), namespace="parlamentares")),
    path("api/sessoes/", include(("apps.sessoes.urls", "sessoes"), namespace="sessoes")),
    path("api/proposicoes/", include(("apps.proposicoes.urls", "proposicoes"), namespace="proposicoes")),
    path("api/comissoes/", include(("apps.comissoes.urls", "comissoes"), namespace="comissoes")),
    path("api/normas/", include(("apps.normas.urls", "normas"), namespace="normas")),
    path("api/transparencia/", include(("apps.transparencia.urls", "transparencia"), namespace="transparencia")),
    path("api/participacao/", include(("apps.participacao.urls", "participacao"), namespace="participacao")),
    path("api/noticias/", include(("apps.noticias.urls", "noticias"), namespace="noticias")),
    path("api/integracoes/", include(("apps.integracoes.urls", "integracoes"), namespace="integracoes")),
    path("api/relatorios/", include(("apps.relatorios.urls", "relatorios"), namespace="relatorios")),

    # health, dashboard, auditoria
    path("api/", include(("apps.core.urls", "core"), namespace="core")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
