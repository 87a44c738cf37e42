"""PDF emitter: draws the Page Flow Engine's instructions onto a reportlab canvas.

Pagination is decided entirely by ``layout.layout_resume``; this module only
converts top-down instruction coordinates into PDF user space (origin at the
bottom-left) and writes one complete US Letter document.
"""

import io
import logging

from reportlab.lib.colors import HexColor
from reportlab.pdfgen import canvas

from truthlock.layout import LayoutResult, LineOp, RectOp, TextOp, layout_resume
from truthlock.resume_schema import ResumeData
from truthlock.themes import ThemeConfig

logger = logging.getLogger(__name__)

PDF_CREATOR = "truthlock"


def _draw_text(c, op: TextOp, page_h: float):
    c.setFillColor(HexColor(op.color))
    if op.char_space:
        text = c.beginText(op.x, page_h - op.y)
        text.setFont(op.font, op.size)
        text.setCharSpace(op.char_space)
        text.textOut(op.text)
        c.drawText(text)
    else:
        c.setFont(op.font, op.size)
        c.drawString(op.x, page_h - op.y, op.text)


def _draw_line(c, op: LineOp, page_h: float):
    c.setStrokeColor(HexColor(op.color))
    c.setLineWidth(op.thickness)
    c.line(op.x1, page_h - op.y1, op.x2, page_h - op.y2)


def _draw_rect(c, op: RectOp, page_h: float):
    c.setFillColor(HexColor(op.color))
    bottom = page_h - op.y - op.height
    if op.radius:
        c.roundRect(op.x, bottom, op.width, op.height, op.radius, stroke=0, fill=1)
    else:
        c.rect(op.x, bottom, op.width, op.height, stroke=0, fill=1)


def draw_layout(layout: LayoutResult, theme: ThemeConfig, resume: ResumeData) -> bytes:
    """Render an already computed layout to PDF bytes."""
    page_w = theme.layout.page_width
    page_h = theme.layout.page_height
    name = resume.personal_info.name

    buffer = io.BytesIO()
    # invariant=1 drops creation dates and random IDs so identical input gives identical bytes
    c = canvas.Canvas(buffer, pagesize=(page_w, page_h), invariant=1)
    c.setTitle(f"{name} - Resume")
    c.setAuthor(name)
    c.setSubject(f"Resume of {name}")
    c.setCreator(PDF_CREATOR)

    for ops in layout.pages:
        for op in ops:
            if isinstance(op, RectOp):
                _draw_rect(c, op, page_h)
            elif isinstance(op, LineOp):
                _draw_line(c, op, page_h)
            elif isinstance(op, TextOp):
                _draw_text(c, op, page_h)
        c.showPage()
    c.save()
    return buffer.getvalue()


def render_pdf(resume: ResumeData, theme: ThemeConfig, measure=None) -> bytes:
    """Lay out and render ``resume`` as a single PDF document.

    Args:
        resume: Validated resume data.
        theme: Resolved theme.
        measure: Optional width measure forwarded to the layout engine.

    Returns:
        Complete PDF file contents.
    """
    layout = layout_resume(resume, theme, measure)
    pdf_bytes = draw_layout(layout, theme, resume)
    logger.info("PDF rendered: %d page(s), %d bytes", layout.page_count, len(pdf_bytes))
    return pdf_bytes


def write_pdf(resume: ResumeData, theme: ThemeConfig, output_path: str) -> LayoutResult:
    """Render to ``output_path``; returns the layout so callers can read warnings."""
    layout = layout_resume(resume, theme)
    with open(output_path, "wb") as f:
        f.write(draw_layout(layout, theme, resume))
    logger.info("PDF saved to %s (%d page(s))", output_path, layout.page_count)
    return layout
