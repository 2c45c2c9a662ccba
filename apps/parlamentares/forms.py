from __future__ import annotations

from django import forms

from apps.core.forms import PayloadModelForm

from .models import Legislatura, Mandato, MembroMesa, MesaDiretora, Parlamentar, PeriodoLegislatura


class LegislaturaForm(PayloadModelForm):
    class Meta:
        model = Legislatura
        fields = ["numero", "ano_inicio", "ano_fim", "ativa", "descricao"]

    def clean(self):
        cleaned = super().clean()
        inicio, fim = cleaned.get("ano_inicio"), cleaned.get("ano_fim")
        if inicio and fim and fim < inicio:
            self.add_error("ano_fim", "O ano final deve ser maior ou igual ao inicial.")
        return cleaned


class PeriodoLegislaturaForm(PayloadModelForm):
    class Meta:
        model = PeriodoLegislatura
        fields = ["numero", "data_inicio", "data_fim", "descricao"]

    def clean(self):
        cleaned = super().clean()
        inicio, fim = cleaned.get("data_inicio"), cleaned.get("data_fim")
        if inicio and fim and fim < inicio:
            self.add_error("data_fim", "A data final deve ser posterior à inicial.")
        return cleaned


class ParlamentarForm(PayloadModelForm):
    class Meta:
        model = Parlamentar
        fields = ["nome", "apelido", "partido", "email", "telefone", "biografia", "cargo", "ativo"]

    def clean_partido(self):
        return (self.cleaned_data.get("partido") or "").strip().upper()


class FotoParlamentarForm(forms.Form):
    foto = forms.ImageField()


class MandatoForm(PayloadModelForm):
    tenant_lookups = {"parlamentar": "tenant", "legislatura": "tenant"}

    class Meta:
        model = Mandato
        fields = ["parlamentar", "legislatura", "numero_votos", "data_inicio", "data_fim", "ativo"]


class MesaDiretoraForm(PayloadModelForm):
    tenant_lookups = {"periodo": "legislatura__tenant"}

    class Meta:
        model = MesaDiretora
        fields = ["legislatura", "periodo", "ativa", "descricao"]

    def clean(self):
        cleaned = super().clean()
        legislatura, periodo = cleaned.get("legislatura"), cleaned.get("periodo")
        if legislatura and periodo and periodo.legislatura_id != legislatura.pk:
            self.add_error("periodo", "O período não pertence à legislatura informada.")
        return cleaned


class MembroMesaForm(PayloadModelForm):
    class Meta:
        model = MembroMesa
        fields = ["parlamentar", "cargo", "data_inicio", "data_fim", "ativo"]
