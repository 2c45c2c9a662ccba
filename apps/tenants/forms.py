from __future__ import annotations

from apps.core.forms import PayloadModelForm

from .models import Tenant


class TenantForm(PayloadModelForm):
    class Meta:
        model = Tenant
        fields = [
            "slug",
            "nome",
            "sigla",
            "cnpj",
            "dominio",
            "subdominio",
            "logo_url",
            "favicon_url",
            "cor_primaria",
            "cor_secundaria",
            "cidade",
            "estado",
            "plano",
            "ativo",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["slug"].required = False

    def validate_unique(self):
        # slug/domínio/subdomínio são checados no serviço (409).
        pass
