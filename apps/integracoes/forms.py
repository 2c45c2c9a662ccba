from __future__ import annotations

from django import forms

from apps.core.forms import PayloadModelForm

from .models import IntegrationToken


class IntegrationTokenForm(PayloadModelForm):
    class Meta:
        model = IntegrationToken
        fields = ["nome", "descricao", "permissoes", "ativo"]

    def clean_nome(self):
        return (self.cleaned_data.get("nome") or "").strip()

    def clean_permissoes(self):
        permissoes = self.cleaned_data.get("permissoes") or []
        if not isinstance(permissoes, list) or not permissoes:
            raise forms.ValidationError("Selecione ao menos uma permissão para o token.")
        validas = set(IntegrationToken.Permissao.values)
        invalidas = [p for p in permissoes if p not in validas]
        if invalidas:
            raise forms.ValidationError(f"Permissões inválidas: {', '.join(map(str, invalidas))}.")
        return sorted(set(permissoes))
