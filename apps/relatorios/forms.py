from __future__ import annotations

from django import forms
from django.core.validators import validate_email

from apps.core.forms import PayloadModelForm

from .models import RelatorioAgendado


class RelatorioAgendadoForm(PayloadModelForm):
    class Meta:
        model = RelatorioAgendado
        fields = ["nome", "descricao", "tipo", "filtros", "frequencia", "formato", "destinatarios", "ativo"]

    def clean_filtros(self):
        filtros = self.cleaned_data.get("filtros") or {}
        if not isinstance(filtros, dict):
            raise forms.ValidationError("Filtros devem ser um objeto.")
        ano = filtros.get("ano")
        if ano not in (None, ""):
            try:
                filtros["ano"] = int(ano)
            except (TypeError, ValueError):
                raise forms.ValidationError("Ano inválido.")
        return filtros

    def clean_destinatarios(self):
        destinatarios = self.cleaned_data.get("destinatarios") or []
        if not isinstance(destinatarios, list):
            raise forms.ValidationError("Informe uma lista de e-mails.")
        limpos = []
        for email in destinatarios:
            email = str(email).strip().lower()
            try:
                validate_email(email)
            except forms.ValidationError:
                raise forms.ValidationError(f"E-mail inválido: {email}")
            if email not in limpos:
                limpos.append(email)
        return limpos


class GerarRelatorioForm(forms.Form):
    tipo = forms.ChoiceField(choices=RelatorioAgendado.Tipo.choices)
    ano = forms.IntegerField(required=False, min_value=1900, max_value=2100)
