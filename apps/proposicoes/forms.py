from __future__ import annotations

from django import forms

from apps.core.forms import PayloadModelForm

from .models import Emenda, ProcessoSancao, Proposicao, VotoEmenda


class ProposicaoForm(PayloadModelForm):
    class Meta:
        model = Proposicao
        fields = [
            "tipo",
            "numero",
            "ano",
            "titulo",
            "ementa",
            "texto",
            "justificativa",
            "autor",
            "regime",
            "data_apresentacao",
            "prazo_emendas",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # número e ano são gerados quando omitidos
        self.fields["numero"].required = False
        self.fields["ano"].required = False

    def clean_numero(self):
        numero = (self.cleaned_data.get("numero") or "").strip()
        if numero and not numero.isdigit():
            raise forms.ValidationError("O número deve conter apenas dígitos.")
        return numero.zfill(3) if numero else ""

    def clean_titulo(self):
        return (self.cleaned_data.get("titulo") or "").strip()


class TramitacaoForm(forms.Form):
    unidade = forms.CharField(max_length=160)
    acao = forms.CharField(max_length=160)
    status = forms.ChoiceField(choices=Proposicao.Status.choices, required=False)
    observacoes = forms.CharField(required=False)


class ArquivarForm(forms.Form):
    motivo = forms.CharField(max_length=500)


class EmendaForm(PayloadModelForm):
    class Meta:
        model = Emenda
        fields = [
            "autor",
            "coautores",
            "tipo",
            "artigo",
            "paragrafo",
            "inciso",
            "alinea",
            "texto_original",
            "texto_novo",
            "justificativa",
            "turno_apresentacao",
        ]

    def clean_justificativa(self):
        return (self.cleaned_data.get("justificativa") or "").strip()


class ParecerEmendaForm(forms.Form):
    parecer_comissao = forms.CharField(max_length=160, required=False)
    parecer_tipo = forms.ChoiceField(choices=Emenda.Parecer.choices)
    parecer_texto = forms.CharField(required=False)


class VotoEmendaForm(PayloadModelForm):
    class Meta:
        model = VotoEmenda
        fields = ["parlamentar", "voto"]


class MotivoEmendaForm(forms.Form):
    motivo = forms.CharField(max_length=500, required=False)


class AglutinarEmendasForm(EmendaForm):
    emendas = forms.ModelMultipleChoiceField(queryset=Emenda.objects.all())

    class Meta(EmendaForm.Meta):
        fields = [f for f in EmendaForm.Meta.fields if f != "tipo"]

    def __init__(self, *args, proposicao=None, **kwargs):
        super().__init__(*args, **kwargs)
        if proposicao is not None:
            self.fields["emendas"].queryset = Emenda.objects.filter(proposicao__tenant=proposicao.tenant)


class SancaoForm(forms.Form):
    numero_lei = forms.CharField(max_length=20)
    data = forms.DateField(required=False)


class VetoForm(forms.Form):
    tipo = forms.ChoiceField(choices=ProcessoSancao.TipoVeto.choices)
    motivo = forms.ChoiceField(choices=ProcessoSancao.MotivoVeto.choices)
    razoes = forms.CharField()
    dispositivos = forms.JSONField(required=False)
    data = forms.DateField(required=False)

    def clean_dispositivos(self):
        dispositivos = self.cleaned_data.get("dispositivos") or []
        if not isinstance(dispositivos, list):
            raise forms.ValidationError("Informe uma lista de dispositivos.")
        return dispositivos


class ApreciacaoVetoForm(forms.Form):
    sim = forms.IntegerField(min_value=0)
    nao = forms.IntegerField(min_value=0)
    abstencao = forms.IntegerField(min_value=0, required=False)
    presentes = forms.IntegerField(min_value=0, required=False)
