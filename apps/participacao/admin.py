from django.contrib import admin

from .models import ApoioSugestao, ConsultaPublica, ParticipacaoConsulta, PerguntaConsulta, SugestaoLegislativa


class PerguntaInline(admin.TabularInline):
    model = PerguntaConsulta
    extra = 0


@admin.register(ConsultaPublica)
class ConsultaPublicaAdmin(admin.ModelAdmin):
    list_display = ("titulo", "status", "data_inicio", "data_fim", "tenant")
    list_filter = ("status", "tenant")
    search_fields = ("titulo",)
    inlines = [PerguntaInline]


@admin.register(ParticipacaoConsulta)
class ParticipacaoConsultaAdmin(admin.ModelAdmin):
    list_display = ("consulta", "nome", "bairro", "criado_em")
    list_filter = ("consulta__tenant",)
    exclude = ("cpf_hash",)


@admin.register(SugestaoLegislativa)
class SugestaoLegislativaAdmin(admin.ModelAdmin):
    list_display = ("titulo", "status", "categoria", "total_apoios", "tenant")
    list_filter = ("status", "categoria", "tenant")
    search_fields = ("titulo", "autor_nome")
    exclude = ("autor_cpf_hash",)


@admin.register(ApoioSugestao)
class ApoioSugestaoAdmin(admin.ModelAdmin):
    list_display = ("sugestao", "nome", "criado_em")
    exclude = ("cpf_hash",)
