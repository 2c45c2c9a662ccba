# apps/core/forms.py
from __future__ import annotations

from django import forms
from django.core.exceptions import FieldDoesNotExist


class PayloadModelForm(forms.ModelForm):
    """
    ModelForm alimentado por JSON.
    Campos ausentes do payload com default no model não são obrigatórios
    e recebem o default (booleanos inclusive).

    Com `tenant=`, os querysets de FK ficam restritos à câmara:
    models com campo `tenant` filtram direto; os demais usam `tenant_lookups`.
    """

    tenant_lookups: dict[str, str] = {}

    def __init__(self, *args, tenant=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.tenant = tenant
        self._defaults = {}

        if tenant is not None:
            self._restringir_querysets(tenant)

        if not self.is_bound:
            return
        for name, field in self.fields.items():
            if name in self.data:
                continue
            try:
                model_field = self._meta.model._meta.get_field(name)
            except FieldDoesNotExist:
                continue
            if model_field.has_default():
                field.required = False
                self._defaults[name] = model_field.get_default()

    def _restringir_querysets(self, tenant):
        for name, field in self.fields.items():
            qs = getattr(field, "queryset", None)
            if qs is None:
                continue
            lookup = self.tenant_lookups.get(name)
            if lookup is None:
                try:
                    qs.model._meta.get_field("tenant")
                except FieldDoesNotExist:
                    continue
                lookup = "tenant"
            field.queryset = qs.filter(**{lookup: tenant})

    def clean(self):
        cleaned = super().clean()
        for name, default in self._defaults.items():
            if name not in self._errors:
                cleaned[name] = default
        return cleaned
