from __future__ import annotations

from django import forms

from apps.core.forms import PayloadModelForm

from .models import Comissao, MembroComissao, Parecer, ReuniaoComissao


class ComissaoForm(PayloadModelForm):
    class Meta:
        model = Comissao
        fields = ["nome", "sigla", "tipo", "descricao", "ativa"]

    def clean_nome(self):
        return (self.cleaned_data.get("nome") or "").strip()


class MembroComissaoForm(PayloadModelForm):
    class Meta:
        model = MembroComissao
        fields = ["parlamentar", "cargo", "data_inicio", "data_fim"]

    def clean(self):
        cleaned = super().clean()
        inicio, fim = cleaned.get("data_inicio"), cleaned.get("data_fim")
        if inicio and fim and fim < inicio:
            self.add_error("data_fim", "A data final deve ser posterior à inicial.")
        return cleaned


class ReuniaoForm(PayloadModelForm):
    class Meta:
        model = ReuniaoComissao
        fields = ["tipo", "data", "local", "motivo_convocacao", "quorum_minimo", "observacoes"]

    def clean_quorum_minimo(self):
        valor = self.cleaned_data.get("quorum_minimo")
        if valor is not None and valor < 1:
            raise forms.ValidationError("O quórum mínimo deve ser ao menos 1.")
        return valor


class MotivoForm(forms.Form):
    motivo = forms.CharField(max_length=500, required=False)


class PresencaReuniaoForm(forms.Form):
    membro = forms.IntegerField(min_value=1)
    presente = forms.BooleanField(required=False)
    justificativa = forms.CharField(max_length=255, required=False)

    def clean(self):
        cleaned = super().clean()
        if "presente" not in self.data:
            cleaned["presente"] = True
        return cleaned


class AtaForm(forms.Form):
    ata = forms.CharField()


class ParecerForm(PayloadModelForm):
    class Meta:
        model = Parecer
        fields = ["proposicao", "relator", "tipo", "fundamentacao", "conclusao", "emendas"]

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("tipo") == Parecer.Tipo.FAVORAVEL_COM_EMENDAS and not (cleaned.get("emendas") or "").strip():
            self.add_error("emendas", "Informe as emendas propostas.")
        return cleaned


class VotacaoParecerForm(forms.Form):
    parecer = forms.IntegerField(min_value=1)
    favor = forms.IntegerField(min_value=0)
    contra = forms.IntegerField(min_value=0)
    abstencao = forms.IntegerField(min_value=0, required=False)
