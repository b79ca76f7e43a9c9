"""
M77 AG Proposal Quote Sheet
===========================
One-page (more if the service list is long) PDF rendering of a stored
proposal: customer, job details, priced service lines and totals.

Currency values are printed exactly as stored; nothing is recomputed.
"""

import logging

from reportlab.lib.pagesizes import letter
from reportlab.lib.colors import Color, HexColor
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

log = logging.getLogger("m77ag.pdf")

FILL    = Color(0.85, 0.91, 0.80)      # pale field green, header fill
BORDER  = Color(0.24, 0.40, 0.18)      # dark green borders
BLACK   = HexColor("#000000")
GRAY    = HexColor("#555555")
BRAND   = HexColor("#2f4f1f")
ALT_ROW = Color(0.96, 0.97, 0.95)

COMPANY = {
    "name":    "M77 AG",
    "tagline": "Custom Farming Services",
}

W, H  = letter
ML    = 36        # left margin
MR    = W - 36    # right edge
ROW_H = 18
BOTTOM = 90       # keep clear for the totals block


def _s(val) -> str:
    return "" if val is None else str(val)


def generate_proposal_pdf(proposal: dict, output) -> dict:
    """Render a proposal to output (a path or a binary file-like object).

    proposal keys: id, timestamp, operation_name, email, phone, fields, acres,
    crop_type, start_date, finish_date, services[{name, rate, cost}],
    subtotal, discount, total, status, notes
    """
    pid = proposal.get("id")
    services = proposal.get("services") or []
    log.info("Generating quote sheet for proposal %s (%d services)", pid, len(services),
             extra={"proposal_id": pid})

    c = canvas.Canvas(output, pagesize=letter)
    c.setTitle(f"M77 AG Proposal #{pid}")
    c.setAuthor(COMPANY["name"])

    # y measured from the top of the page
    def Y(top_y):
        return H - top_y

    def text(x, yt, txt, font="Helvetica", size=9, color=BLACK, align="left"):
        c.setFont(font, size)
        c.setFillColor(color)
        if align == "right":
            c.drawRightString(x, Y(yt), _s(txt))
        elif align == "center":
            c.drawCentredString(x, Y(yt), _s(txt))
        else:
            c.drawString(x, Y(yt), _s(txt))

    def box(x, yt, w, h, fill=None):
        if fill is not None:
            c.setFillColor(fill)
            c.rect(x, Y(yt) - h, w, h, fill=1, stroke=0)
        c.setStrokeColor(BORDER)
        c.setLineWidth(0.5)
        c.rect(x, Y(yt) - h, w, h, fill=0, stroke=1)

    cols = [(ML, 300, "SERVICE"), (ML + 300, 120, "RATE"), (ML + 420, MR - ML - 420, "COST")]

    def table_header(yt):
        for x, w, label in cols:
            box(x, yt, w, ROW_H, fill=FILL)
            text(x + 5, yt + 12, label, "Helvetica-Bold", 9)
        return yt + ROW_H

    # ── Header ────────────────────────────────────────────────────────────────
    text(ML, 60, COMPANY["name"], "Helvetica-Bold", 20, BRAND)
    text(ML, 76, COMPANY["tagline"], "Helvetica-Oblique", 9, GRAY)
    text(MR, 60, "PROPOSAL", "Helvetica-Bold", 20, BLACK, "right")

    c.setStrokeColor(BORDER)
    c.setLineWidth(1.5)
    c.line(ML, Y(86), MR, Y(86))

    box(MR - 200, 96, 80, 20, fill=FILL)
    text(MR - 195, 110, "PROPOSAL #", "Helvetica-Bold", 9)
    box(MR - 120, 96, 120, 20)
    text(MR - 6, 110, pid, "Helvetica-Bold", 11, BLACK, "right")
    box(MR - 200, 116, 80, 20, fill=FILL)
    text(MR - 195, 130, "DATE", "Helvetica-Bold", 9)
    box(MR - 120, 116, 120, 20)
    text(MR - 6, 130, proposal.get("timestamp"), "Helvetica", 9, BLACK, "right")

    # ── Customer ──────────────────────────────────────────────────────────────
    text(ML, 110, "Prepared for:", "Helvetica-Bold", 10)
    text(ML, 124, proposal.get("operation_name"), "Helvetica", 10)
    text(ML, 137, proposal.get("email"), "Helvetica", 9)
    if proposal.get("phone"):
        text(ML, 150, proposal.get("phone"), "Helvetica", 9)

    # ── Job details bar ───────────────────────────────────────────────────────
    details = [
        ("FIELDS", proposal.get("fields")),
        ("ACRES", proposal.get("acres")),
        ("CROP", proposal.get("crop_type")),
        ("START", proposal.get("start_date")),
        ("FINISH", proposal.get("finish_date")),
    ]
    bar_y = 170
    col_w = (MR - ML) / len(details)
    for i, (label, val) in enumerate(details):
        x = ML + i * col_w
        box(x, bar_y, col_w, 14, fill=FILL)
        text(x + col_w / 2, bar_y + 10, label, "Helvetica-Bold", 8, BLACK, "center")
        box(x, bar_y + 14, col_w, 18)
        text(x + col_w / 2, bar_y + 27, val, "Helvetica", 9, BLACK, "center")

    # ── Service lines ─────────────────────────────────────────────────────────
    yt = table_header(bar_y + 50)
    pages = 1
    for i, svc in enumerate(services):
        if Y(yt) - ROW_H < BOTTOM:
            c.showPage()
            pages += 1
            text(ML, 40, f"Proposal #{pid} (continued)", "Helvetica-Bold", 10)
            yt = table_header(50)
        svc = svc if isinstance(svc, dict) else {"name": svc}
        fill = ALT_ROW if i % 2 else None
        values = (svc.get("name"), svc.get("rate"), svc.get("cost"))
        for (x, w, _), val in zip(cols, values):
            box(x, yt, w, ROW_H, fill=fill)
        text(cols[0][0] + 5, yt + 12, values[0], "Helvetica", 9)
        text(cols[1][0] + cols[1][1] - 5, yt + 12, values[1], "Helvetica", 9, BLACK, "right")
        text(MR - 5, yt + 12, values[2], "Helvetica", 9, BLACK, "right")
        yt += ROW_H

    if not services:
        box(ML, yt, MR - ML, ROW_H)
        text(ML + 5, yt + 12, "No services listed", "Helvetica-Oblique", 9, GRAY)
        yt += ROW_H

    # ── Totals ────────────────────────────────────────────────────────────────
    ty = yt + 10
    for label, key, font in (("Subtotal", "subtotal", "Helvetica"),
                             ("Discount", "discount", "Helvetica"),
                             ("TOTAL", "total", "Helvetica-Bold")):
        box(MR - 200, ty, 90, ROW_H, fill=FILL)
        text(MR - 195, ty + 12, label, "Helvetica-Bold", 9)
        box(MR - 110, ty, 110, ROW_H)
        text(MR - 5, ty + 12, proposal.get(key), font, 10, BLACK, "right")
        ty += ROW_H

    # ── Status / notes ────────────────────────────────────────────────────────
    text(ML, yt + 22, f"Status: {_s(proposal.get('status')).upper()}", "Helvetica-Bold", 9)
    notes = proposal.get("notes")
    if notes:
        ny = yt + 36
        for line in simpleSplit(_s(notes), "Helvetica", 9, MR - ML - 220)[:6]:
            text(ML, ny, line, "Helvetica", 9, GRAY)
            ny += 11

    c.showPage()
    c.save()
    return {"ok": True, "proposal_id": pid, "services": len(services), "pages": pages}
