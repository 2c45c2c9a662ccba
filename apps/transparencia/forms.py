from __future__ import annotations

from django import forms
from django.core.validators import FileExtensionValidator

from apps.core.forms import PayloadModelForm

from .models import EXTENSOES_DOCUMENTO, CategoriaPublicacao, Publicacao


class CategoriaPublicacaoForm(PayloadModelForm):
    class Meta:
        model = CategoriaPublicacao
        fields = ["nome", "descricao", "cor", "ativa", "ordem"]

    def clean_nome(self):
        return (self.cleaned_data.get("nome") or "").strip()


class PublicacaoForm(PayloadModelForm):
    class Meta:
        model = Publicacao
        fields = [
            "tipo",
            "numero",
            "ano",
            "data",
            "titulo",
            "descricao",
            "conteudo",
            "link",
            "publicada",
            "categoria",
            "autor_tipo",
            "autor_nome",
            "parlamentar",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["ano"].required = False
        self.fields["categoria"].queryset = self.fields["categoria"].queryset.filter(ativa=True)

    def clean_titulo(self):
        titulo = (self.cleaned_data.get("titulo") or "").strip()
        if len(titulo) < 3:
            raise forms.ValidationError("O título deve ter ao menos 3 caracteres.")
        return titulo


class ArquivoPublicacaoForm(forms.Form):
    arquivo = forms.FileField(validators=[FileExtensionValidator(EXTENSOES_DOCUMENTO)])
