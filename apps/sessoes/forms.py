from __future__ import annotations

from django import forms

from apps.core.api import DadosInvalidos
from apps.core.forms import PayloadModelForm
from apps.parlamentares.models import Parlamentar
from apps.proposicoes.models import Proposicao

from . import services_nomenclatura
from .models import ConfiguracaoNomenclatura, ConfiguracaoQuorum, PautaItem, Sessao, Voto


class SessaoForm(PayloadModelForm):
    tenant_lookups = {"periodo": "legislatura__tenant"}

    class Meta:
        model = Sessao
        fields = [
            "legislatura",
            "periodo",
            "numero",
            "tipo",
            "titulo",
            "data",
            "horario",
            "local",
            "descricao",
            "ata",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # número vem da sequência quando omitido
        self.fields["numero"].required = False

    def clean(self):
        cleaned = super().clean()
        legislatura = cleaned.get("legislatura")
        periodo = cleaned.get("periodo")
        if legislatura and periodo and periodo.legislatura_id != legislatura.pk:
            self.add_error("periodo", "O período não pertence à legislatura informada.")
        return cleaned


class CancelarSessaoForm(forms.Form):
    motivo = forms.CharField(max_length=500, required=False)


class PautaItemForm(PayloadModelForm):
    class Meta:
        model = PautaItem
        fields = ["secao", "ordem", "titulo", "descricao", "proposicao", "tempo_estimado"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["titulo"].required = False
        self.fields["ordem"].required = False
        # sem ordem informada o item vai para o fim da pauta
        self._defaults.pop("ordem", None)


class FinalizarItemForm(forms.Form):
    resultado = forms.ChoiceField(
        choices=[
            (s.value, s.label)
            for s in (
                PautaItem.Status.CONCLUIDO,
                PautaItem.Status.APROVADO,
                PautaItem.Status.REJEITADO,
                PautaItem.Status.RETIRADO,
                PautaItem.Status.ADIADO,
            )
        ],
        required=False,
    )


class _TenantForm(forms.Form):
    def __init__(self, *args, tenant=None, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            qs = getattr(field, "queryset", None)
            if qs is not None and tenant is not None:
                field.queryset = qs.filter(tenant=tenant)


class PresencaForm(_TenantForm):
    parlamentar = forms.ModelChoiceField(queryset=Parlamentar.objects.filter(ativo=True))
    presente = forms.BooleanField(required=False)
    justificativa = forms.CharField(max_length=255, required=False)

    def clean(self):
        cleaned = super().clean()
        # presença é o padrão quando o campo não vem no payload
        if "presente" not in self.data:
            cleaned["presente"] = True
        return cleaned


class VotoForm(_TenantForm):
    proposicao = forms.ModelChoiceField(queryset=Proposicao.objects.all())
    parlamentar = forms.ModelChoiceField(queryset=Parlamentar.objects.all())
    voto = forms.ChoiceField(choices=Voto.Opcao.choices)
    turno = forms.IntegerField(min_value=1, max_value=2, required=False)


class ConfiguracaoQuorumForm(PayloadModelForm):
    class Meta:
        model = ConfiguracaoQuorum
        fields = [
            "nome",
            "descricao",
            "aplicacao",
            "tipo_quorum",
            "base_calculo",
            "percentual_minimo",
            "numero_minimo",
            "permitir_abstencao",
            "abstencao_conta_contra",
            "requerer_votacao_nominal",
            "mensagem_aprovacao",
            "mensagem_rejeicao",
            "ativo",
            "ordem",
        ]

    def clean_percentual_minimo(self):
        valor = self.cleaned_data.get("percentual_minimo")
        if valor is not None and not (0 < valor <= 100):
            raise forms.ValidationError("Percentual deve estar entre 0 e 100.")
        return valor


class SimularQuorumForm(forms.Form):
    aplicacao = forms.ChoiceField(choices=ConfiguracaoQuorum.Aplicacao.choices)
    sim = forms.IntegerField(min_value=0)
    nao = forms.IntegerField(min_value=0)
    abstencao = forms.IntegerField(min_value=0, required=False)
    presentes = forms.IntegerField(min_value=0)


class NomenclaturaForm(PayloadModelForm):
    class Meta:
        model = ConfiguracaoNomenclatura
        fields = [
            "template_titulo",
            "numeracao_sequencial",
            "resetar_por_ano",
            "resetar_por_legislatura",
            "quantidade_periodos",
            "nome_periodo",
        ]

    def clean_template_titulo(self):
        template = (self.cleaned_data.get("template_titulo") or "").strip()
        try:
            services_nomenclatura.validar_template(template)
        except DadosInvalidos as exc:
            raise forms.ValidationError(exc.message)
        return template


class ResetarNumeracaoForm(forms.Form):
    tipo = forms.ChoiceField(choices=Sessao.Tipo.choices, required=False)
    legislatura = forms.IntegerField(min_value=0, required=False)
    ano = forms.IntegerField(min_value=0, required=False)
