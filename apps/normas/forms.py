from __future__ import annotations

from django import forms

from apps.core.forms import PayloadModelForm

from .models import AlteracaoNorma, NormaJuridica


class NormaForm(PayloadModelForm):
    class Meta:
        model = NormaJuridica
        fields = [
            "tipo",
            "numero",
            "ano",
            "data",
            "data_publicacao",
            "data_vigencia",
            "ementa",
            "texto",
            "texto_compilado",
            "assunto",
            "situacao",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # número e ano são gerados quando omitidos
        self.fields["numero"].required = False
        self.fields["ano"].required = False

    def clean(self):
        cleaned = super().clean()
        publicacao, vigencia = cleaned.get("data_publicacao"), cleaned.get("data_vigencia")
        if publicacao and vigencia and vigencia < publicacao:
            self.add_error("data_vigencia", "A vigência não pode ser anterior à publicação.")
        return cleaned


class AlteracaoForm(forms.Form):
    norma_alteradora = forms.ModelChoiceField(queryset=NormaJuridica.objects.all())
    tipo_alteracao = forms.ChoiceField(choices=AlteracaoNorma.Tipo.choices)
    artigo_alterado = forms.CharField(max_length=40, required=False)
    descricao = forms.CharField(required=False)

    def __init__(self, *args, tenant=None, **kwargs):
        super().__init__(*args, **kwargs)
        if tenant is not None:
            self.fields["norma_alteradora"].queryset = NormaJuridica.objects.filter(tenant=tenant)


class ConverterProposicaoForm(forms.Form):
    tipo = forms.ChoiceField(choices=NormaJuridica.Tipo.choices, required=False)
    numero = forms.IntegerField(min_value=1, required=False)
    data_publicacao = forms.DateField(required=False)


class MotivoVersaoForm(forms.Form):
    motivo = forms.CharField(max_length=255, required=False)
