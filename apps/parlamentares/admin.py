from django.contrib import admin

from .models import Legislatura, Mandato, MembroMesa, MesaDiretora, Parlamentar, PeriodoLegislatura


class PeriodoLegislaturaInline(admin.TabularInline):
    model = PeriodoLegislatura
    extra = 0


@admin.register(Legislatura)
class LegislaturaAdmin(admin.ModelAdmin):
    list_display = ("numero", "ano_inicio", "ano_fim", "ativa", "tenant")
    list_filter = ("ativa", "tenant")
    inlines = [PeriodoLegislaturaInline]


class MandatoInline(admin.TabularInline):
    model = Mandato
    extra = 0


@admin.register(Parlamentar)
class ParlamentarAdmin(admin.ModelAdmin):
    list_display = ("nome", "apelido", "partido", "cargo", "ativo", "tenant")
    list_filter = ("ativo", "cargo", "partido", "tenant")
    search_fields = ("nome", "apelido", "email")
    inlines = [MandatoInline]


class MembroMesaInline(admin.TabularInline):
    model = MembroMesa
    extra = 0


@admin.register(MesaDiretora)
class MesaDiretoraAdmin(admin.ModelAdmin):
    list_display = ("legislatura", "periodo", "ativa")
    list_filter = ("ativa",)
    inlines = [MembroMesaInline]
