from __future__ import annotations

from django import forms

from apps.core.forms import PayloadModelForm
from apps.parlamentares.models import Parlamentar
from apps.proposicoes.models import Proposicao

from .models import ConsultaPublica, PerguntaConsulta, SugestaoLegislativa


class ConsultaForm(PayloadModelForm):
    class Meta:
        model = ConsultaPublica
        fields = ["titulo", "descricao", "data_inicio", "data_fim", "proposicao", "permitir_anonimo"]

    def clean(self):
        cleaned = super().clean()
        inicio, fim = cleaned.get("data_inicio"), cleaned.get("data_fim")
        if inicio and fim and fim <= inicio:
            self.add_error("data_fim", "Deve ser posterior ao início.")
        return cleaned


class PerguntaForm(PayloadModelForm):
    class Meta:
        model = PerguntaConsulta
        fields = ["enunciado", "tipo", "opcoes", "obrigatoria", "ordem"]

    def clean_opcoes(self):
        opcoes = self.cleaned_data.get("opcoes") or []
        if not isinstance(opcoes, list) or not all(isinstance(o, str) and o.strip() for o in opcoes):
            raise forms.ValidationError("Informe uma lista de opções em texto.")
        return [o.strip() for o in opcoes]

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("tipo") == PerguntaConsulta.Tipo.MULTIPLA_ESCOLHA and len(cleaned.get("opcoes") or []) < 2:
            self.add_error("opcoes", "Perguntas de múltipla escolha precisam de ao menos 2 opções.")
        return cleaned


class ParticipacaoForm(forms.Form):
    nome = forms.CharField(max_length=180, required=False)
    email = forms.EmailField(required=False)
    cpf = forms.CharField(max_length=14, required=False)
    bairro = forms.CharField(max_length=120, required=False)
    respostas = forms.JSONField(required=False)

    def clean_respostas(self):
        respostas = self.cleaned_data.get("respostas") or []
        if not isinstance(respostas, list):
            raise forms.ValidationError("Envie a lista de respostas.")
        return respostas


class SugestaoForm(PayloadModelForm):
    cpf = forms.CharField(max_length=14)

    class Meta:
        model = SugestaoLegislativa
        fields = ["titulo", "descricao", "justificativa", "categoria", "autor_nome", "autor_email", "autor_bairro"]

    def clean_titulo(self):
        titulo = (self.cleaned_data.get("titulo") or "").strip()
        if len(titulo) < 5:
            raise forms.ValidationError("O título deve ter ao menos 5 caracteres.")
        return titulo

    def clean_descricao(self):
        descricao = (self.cleaned_data.get("descricao") or "").strip()
        if len(descricao) < 10:
            raise forms.ValidationError("A descrição deve ter ao menos 10 caracteres.")
        return descricao


class ModeracaoForm(forms.Form):
    STATUS_MODERACAO = [
        (SugestaoLegislativa.Status.EM_ANALISE, "Em análise"),
        (SugestaoLegislativa.Status.ACEITA, "Aceita"),
        (SugestaoLegislativa.Status.RECUSADA, "Recusada"),
    ]

    status = forms.ChoiceField(choices=STATUS_MODERACAO)
    motivo_recusa = forms.CharField(required=False)
    parlamentar_responsavel = forms.ModelChoiceField(queryset=Parlamentar.objects.none(), required=False)

    def __init__(self, *args, tenant=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["parlamentar_responsavel"].queryset = Parlamentar.objects.filter(tenant=tenant, ativo=True)


class ApoioForm(forms.Form):
    nome = forms.CharField(max_length=180)
    email = forms.EmailField(required=False)
    cpf = forms.CharField(max_length=14)


class RemoverApoioForm(forms.Form):
    cpf = forms.CharField(max_length=14)


class ConverterSugestaoForm(forms.Form):
    tipo = forms.ChoiceField(choices=Proposicao.Tipo.choices)
    autor = forms.ModelChoiceField(queryset=Parlamentar.objects.none(), required=False)

    def __init__(self, *args, tenant=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["autor"].queryset = Parlamentar.objects.filter(tenant=tenant, ativo=True)
