from __future__ import annotations

import base64
import csv
import hashlib
from io import BytesIO, StringIO

import qrcode
from django.http import HttpResponse
from django.template.loader import render_to_string
from django.utils import timezone


def render_csv(headers: list[str], rows: list[list]) -> bytes:
    buf = StringIO()
    # BOM para Excel abrir UTF-8 certo
    buf.write("\ufeff")
    w = csv.writer(buf, delimiter=";")
    w.writerow(headers)
    for r in rows:
        w.writerow(["" if v is None else v for v in r])
    return buf.getvalue().encode("utf-8")


def export_csv(filename: str, headers: list[str], rows: list[list]):
    response = HttpResponse(render_csv(headers, rows), content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    response["X-Content-Type-Options"] = "nosniff"
    return response


def _make_report_hash(title: str, headers: list[str], rows: list[list], user_str: str, dt_str: str) -> str:
    # Hash curto para identificar o relatório impresso
    raw = f"{title}|{user_str}|{dt_str}|{headers}|{rows}".encode("utf-8", errors="ignore")
    return hashlib.sha256(raw).hexdigest()[:16].upper()


def qr_data_uri(text: str) -> str:
    img = qrcode.make(text)
    buf = BytesIO()
    img.save(buf, format="PNG")
    b64 = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/png;base64,{b64}"


def render_pdf_table(
    *,
    title: str,
    headers: list[str],
    rows: list[list],
    subtitle: str = "",
    filtros: str = "",
    printed_by: str = "sistema",
    base_url: str | None = None,
) -> bytes:
    """
    PDF institucional via WeasyPrint: cabeçalho, metadados de emissão,
    filtros, tabela e rodapé com hash do relatório e QR Code.
    Template: templates/core/relatorios/pdf/table.html
    """
    from weasyprint import HTML

    printed_at_str = timezone.localtime().strftime("%d/%m/%Y %H:%M")
    report_hash = _make_report_hash(title, headers, rows, printed_by, printed_at_str)

    context = {
        "title": title,
        "subtitle": subtitle,
        "filtros": filtros,
        "printed_at": printed_at_str,
        "printed_by": printed_by,
        "headers": headers,
        "rows": rows,
        "report_hash": report_hash,
        "qr_data_uri": qr_data_uri(f"CAMARA|{title}|{printed_at_str}|{printed_by}|{report_hash}"),
    }
    html = render_to_string("core/relatorios/pdf/table.html", context)
    return HTML(string=html, base_url=base_url).write_pdf()


def export_pdf_table(
    request,
    *,
    filename: str,
    title: str,
    headers: list[str],
    rows: list[list],
    subtitle: str = "",
    filtros: str = "",
):
    pdf_bytes = render_pdf_table(
        title=title,
        headers=headers,
        rows=rows,
        subtitle=subtitle,
        filtros=filtros,
        printed_by=getattr(request.user, "username", "") or "—",
        # base_url resolve assets relativos (css/imagens)
        base_url=request.build_absolute_uri("/"),
    )
    resp = HttpResponse(pdf_bytes, content_type="application/pdf")
    resp["Content-Disposition"] = f'attachment; filename="{filename}"'
    resp["X-Content-Type-Options"] = "nosniff"
    return resp
