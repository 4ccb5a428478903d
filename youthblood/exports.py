# youthblood/exports.py
"""
Downloads of the blood requests a viewer can see. Spreadsheet and PDF rows
are tinted by urgency so emergencies stand out when printed.
"""
import csv
import io

from django.http import HttpResponse
from django.utils import timezone

from .models import Urgency

EXPORT_FORMATS = ("csv", "xlsx", "pdf")
FILENAME = "blood-requests"

REQUEST_HEADERS = [
    "Patient", "Blood group", "Units", "Urgency", "Status",
    "Hospital", "Location", "Needed by", "Requested by", "Requester email",
]

# row tints, matching the urgency badges on the list page
URGENCY_FILLS = {
    Urgency.EMERGENCY.value: "FEE2E2",
    Urgency.URGENT.value: "FFEDD5",
    Urgency.NORMAL.value: "FFFFFF",
}
HEADER_FILL = "DC2626"


def request_rows(blood_requests):
    return [
        [
            r.patient_name,
            r.blood_group,
            r.required_units if r.required_units is not None else "",
            r.urgency,
            r.status,
            r.hospital_name,
            r.location,
            r.needed_date.isoformat() if r.needed_date else "",
            r.requested_by,
            r.requester_email,
        ]
        for r in blood_requests
    ]


def _fill_for(urgency):
    return URGENCY_FILLS.get((urgency or "").lower(), URGENCY_FILLS[Urgency.NORMAL.value])


def _attachment(content, content_type, ext):
    resp = HttpResponse(content, content_type=content_type)
    resp["Content-Disposition"] = f'attachment; filename="{FILENAME}.{ext}"'
    return resp


def _as_csv(blood_requests):
    resp = _attachment(b"", "text/csv", "csv")
    writer = csv.writer(resp)
    writer.writerow(REQUEST_HEADERS)
    writer.writerows(request_rows(blood_requests))
    return resp


def _as_xlsx(blood_requests, scope):
    from openpyxl import Workbook
    from openpyxl.styles import Font, PatternFill

    wb = Workbook()
    ws = wb.active
    ws.title = "Blood requests"
    ws.append([scope])
    ws["A1"].font = Font(bold=True, size=13)
    ws.append(REQUEST_HEADERS)
    for cell in ws[2]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill("solid", fgColor=HEADER_FILL)
    for item, row in zip(blood_requests, request_rows(blood_requests)):
        ws.append(row)
        fill = PatternFill("solid", fgColor=_fill_for(item.urgency))
        for cell in ws[ws.max_row]:
            cell.fill = fill
    ws.freeze_panes = "A3"

    buf = io.BytesIO()
    wb.save(buf)
    return _attachment(
        buf.getvalue(),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "xlsx",
    )


def _as_pdf(blood_requests, scope):
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4), title=scope)
    styles = getSampleStyleSheet()
    generated = timezone.localtime().strftime("%d %b %Y %H:%M")
    elems = [
        Paragraph(scope, styles["Title"]),
        Paragraph(f"{len(blood_requests)} request(s), generated {generated}", styles["Normal"]),
        Spacer(1, 12),
    ]

    rows = [[str(c) for c in row] for row in request_rows(blood_requests)]
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(f"#{HEADER_FILL}")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
    ]
    for index, item in enumerate(blood_requests, start=1):
        style.append(("BACKGROUND", (0, index), (-1, index), colors.HexColor(f"#{_fill_for(item.urgency)}")))
        if (item.urgency or "").lower() == Urgency.EMERGENCY:
            style.append(("FONTNAME", (0, index), (-1, index), "Helvetica-Bold"))

    table = Table([REQUEST_HEADERS] + rows, repeatRows=1)
    table.setStyle(TableStyle(style))
    elems.append(table)
    doc.build(elems)
    return _attachment(buf.getvalue(), "application/pdf", "pdf")


def export_requests(blood_requests, fmt, scope):
    """Render ``blood_requests`` as a csv, xlsx or pdf download titled ``scope``."""
    fmt = (fmt or "csv").lower()
    if fmt == "xlsx":
        return _as_xlsx(blood_requests, scope)
    if fmt == "pdf":
        return _as_pdf(blood_requests, scope)
    return _as_csv(blood_requests)
