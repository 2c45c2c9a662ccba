from __future__ import annotations

from django.http import FileResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.api import (
    DadosInvalidos,
    NaoEncontrado,
    api_success,
    api_view,
    bind_form,
    obter_ou_404,
    paginate,
    parse_bool,
    read_json,
    somente_enviados,
    tenant_da_requisicao,
    validate_form,
)
from apps.core.decorators import check_perm, require_perm

from . import services
from .forms import GerarRelatorioForm, RelatorioAgendadoForm
from .models import ExecucaoRelatorio, RelatorioAgendado
from .serializers import execucao_to_dict, relatorio_to_dict


def _relatorio(request, pk):
    tenant = tenant_da_requisicao(request)
    return obter_ou_404(RelatorioAgendado.objects.filter(tenant=tenant).select_related("tenant"), "Relatório", pk=pk)


@require_http_methods(["GET", "POST"])
@require_perm("relatorios.view", "relatorios.manage")
@api_view
def relatorio_list(request):
    tenant = tenant_da_requisicao(request)

    if request.method == "POST":
        check_perm(request, "relatorios.manage")
        dados = validate_form(RelatorioAgendadoForm(data=read_json(request)))
        relatorio = services.criar_relatorio(tenant=tenant, dados=dados, usuario=request.user)
        return api_success(relatorio_to_dict(relatorio), message="Relatório agendado", status=201)

    qs = RelatorioAgendado.objects.filter(tenant=tenant)
    tipo = (request.GET.get("tipo") or "").strip().upper()
    if tipo:
        qs = qs.filter(tipo=tipo)
    ativo = parse_bool(request.GET.get("ativo"))
    if ativo is not None:
        qs = qs.filter(ativo=ativo)
    items, meta = paginate(request, qs)
    return api_success([relatorio_to_dict(r) for r in items], meta=meta)


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@require_perm("relatorios.view", "relatorios.manage")
@api_view
def relatorio_detail(request, pk: int):
    relatorio = _relatorio(request, pk)

    if request.method == "GET":
        return api_success(relatorio_to_dict(relatorio))

    check_perm(request, "relatorios.manage")

    if request.method == "DELETE":
        relatorio.delete()
        return api_success(None, message="Relatório removido")

    payload = read_json(request)
    dados = validate_form(bind_form(RelatorioAgendadoForm, payload, instance=relatorio))
    relatorio = services.atualizar_relatorio(relatorio, somente_enviados(dados, payload))
    return api_success(relatorio_to_dict(relatorio), message="Relatório atualizado")


@require_GET
@require_perm("relatorios.view")
@api_view
def relatorio_tipos(request):
    return api_success(
        {
            "tipos": [{"value": v, "label": l} for v, l in RelatorioAgendado.Tipo.choices],
            "frequencias": [{"value": v, "label": l} for v, l in RelatorioAgendado.Frequencia.choices],
            "formatos": [{"value": v, "label": l} for v, l in RelatorioAgendado.Formato.choices],
        }
    )


@require_POST
@require_perm("relatorios.view")
@api_view
def relatorio_gerar(request):
    """Prévia em JSON, sem gravar arquivo nem execução."""
    tenant = tenant_da_requisicao(request)
    dados = validate_form(GerarRelatorioForm(data=read_json(request)))
    filtros = {"ano": dados["ano"]} if dados.get("ano") else {}
    return api_success(services.gerar_dados_relatorio(tenant, dados["tipo"], filtros))


@require_POST
@require_perm("relatorios.manage")
@api_view
def relatorio_executar(request, pk: int):
    execucao = services.executar_relatorio(_relatorio(request, pk), usuario=request.user)
    if execucao.status == ExecucaoRelatorio.Status.ERRO:
        raise DadosInvalidos("Falha ao gerar o relatório", details={"execucao": execucao_to_dict(execucao)})
    return api_success(execucao_to_dict(execucao), message="Relatório gerado", status=201)


@require_GET
@require_perm("relatorios.view")
@api_view
def execucao_list(request, pk: int):
    relatorio = _relatorio(request, pk)
    items, meta = paginate(request, relatorio.execucoes.select_related("executado_por"))
    return api_success([execucao_to_dict(e) for e in items], meta=meta)


@require_GET
@require_perm("relatorios.view")
@api_view
def execucao_download(request, pk: int, execucao_id: int):
    relatorio = _relatorio(request, pk)
    execucao = obter_ou_404(
        relatorio.execucoes.filter(status=ExecucaoRelatorio.Status.SUCESSO),
        "Execução",
        pk=execucao_id,
    )
    caminho = services.caminho_arquivo(execucao)
    if not execucao.arquivo or not caminho.is_file():
        raise NaoEncontrado("Arquivo")
    content_type = "text/csv" if caminho.suffix == ".csv" else "application/pdf"
    return FileResponse(caminho.open("rb"), as_attachment=True, filename=caminho.name, content_type=content_type)
