"""DOCX emitter: same structure and theme constants as the PDF, expressed as
named paragraph styles. Word processors paginate DOCX themselves, so this
emitter walks the resume directly instead of consuming page instructions.
"""

import io
import logging

from truthlock.layout import (
    CONTACT_SEPARATOR,
    SECTION_TITLES,
    SKILL_SEPARATOR,
    contact_parts,
    degree_line,
    format_date_range,
    visible_bullets,
)
from truthlock.resume_schema import ResumeData
from truthlock.themes import ThemeConfig, format_section_header, is_bold

logger = logging.getLogger(__name__)

STYLE_NAME = "Resume Name"
STYLE_CONTACT = "Resume Contact"
STYLE_SECTION_HEADER = "Resume Section Header"
STYLE_JOB_TITLE = "Resume Job Title"
STYLE_COMPANY = "Resume Company"
STYLE_BULLET = "Resume Bullet"
STYLE_BODY = "Resume Body"

# w:pPr children that must follow w:pBdr in schema order
_PBDR_SUCCESSORS = (
    "w:shd", "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap",
    "w:overflowPunct", "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN",
    "w:bidi", "w:adjustRightInd", "w:snapToGrid", "w:spacing", "w:ind",
    "w:contextualSpacing", "w:mirrorIndents", "w:suppressOverlap", "w:jc",
    "w:textDirection", "w:textAlignment", "w:textboxTightWrap",
    "w:outlineLvl", "w:divId", "w:cnfStyle", "w:rPr", "w:sectPr", "w:pPrChange",
)


def _rgb(color: str):
    from docx.shared import RGBColor
    return RGBColor.from_string(color.lstrip("#").upper())


def _add_style(doc, name: str, theme: ThemeConfig, size: float, color: str,
               bold: bool = False, space_before: float = 0, space_after: float = 0):
    from docx.enum.style import WD_STYLE_TYPE
    from docx.shared import Pt

    style = doc.styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)
    style.base_style = doc.styles["Normal"]
    style.quick_style = True
    style.font.name = theme.typography.fonts.primary
    style.font.size = Pt(size)
    style.font.bold = bold
    style.font.color.rgb = _rgb(color)
    fmt = style.paragraph_format
    fmt.space_before = Pt(space_before)
    fmt.space_after = Pt(space_after)
    fmt.line_spacing = theme.spacing.line_height
    return style


def _add_bottom_border(style, thickness: float, color: str, gap: float):
    """Underline rule under every paragraph of ``style`` (pBdr on the style's pPr)."""
    from docx.oxml.ns import qn

    pPr = style.element.get_or_add_pPr()
    pBdr = pPr.makeelement(qn("w:pBdr"), {})
    bottom = pBdr.makeelement(qn("w:bottom"), {
        qn("w:val"): "single",
        # border size is in eighths of a point
        qn("w:sz"): str(max(2, int(round(thickness * 8)))),
        qn("w:space"): str(int(round(gap))),
        qn("w:color"): color.lstrip("#").upper(),
    })
    pBdr.append(bottom)
    pPr.insert_element_before(pBdr, *_PBDR_SUCCESSORS)


def _build_styles(doc, theme: ThemeConfig):
    from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_TAB_ALIGNMENT
    from docx.shared import Pt

    sizes = theme.typography.sizes
    weights = theme.typography.weights
    spacing = theme.spacing
    colors = theme.colors
    header = theme.sections.header

    style = _add_style(doc, STYLE_NAME, theme, sizes.name, colors.text.primary, bold=is_bold(weights.name))
    style.paragraph_format.alignment = WD_ALIGN_PARAGRAPH.CENTER

    style = _add_style(doc, STYLE_CONTACT, theme, sizes.contact, colors.text.secondary,
                       space_before=spacing.name_to_contact)
    style.paragraph_format.alignment = WD_ALIGN_PARAGRAPH.CENTER

    style = _add_style(doc, STYLE_SECTION_HEADER, theme, sizes.section_header, colors.primary,
                       bold=is_bold(weights.section_header),
                       space_before=spacing.section_gap, space_after=spacing.header_to_content)
    style.font.all_caps = header.uppercase
    style.paragraph_format.keep_with_next = True
    if header.underline.enabled and header.underline.thickness > 0:
        _add_bottom_border(style, header.underline.thickness, header.underline.color, header.underline.gap)

    style = _add_style(doc, STYLE_JOB_TITLE, theme, sizes.job_title, colors.text.primary,
                       bold=is_bold(weights.job_title))
    style.paragraph_format.keep_with_next = True
    style.paragraph_format.tab_stops.add_tab_stop(Pt(theme.content_width), WD_TAB_ALIGNMENT.RIGHT)

    style = _add_style(doc, STYLE_COMPANY, theme, sizes.body, colors.accent, bold=is_bold(weights.company))
    style.paragraph_format.keep_with_next = True

    indent = theme.layout.bullet_indent
    style = _add_style(doc, STYLE_BULLET, theme, sizes.body, colors.text.primary, space_after=spacing.bullet_gap)
    style.paragraph_format.left_indent = Pt(indent)
    style.paragraph_format.first_line_indent = Pt(-indent)

    _add_style(doc, STYLE_BODY, theme, sizes.body, colors.text.primary)


def _add_date_run(paragraph, text: str, theme: ThemeConfig):
    from docx.shared import Pt

    paragraph.add_run("\t")
    run = paragraph.add_run(text)
    run.bold = False
    run.font.size = Pt(theme.typography.sizes.date)
    run.font.color.rgb = _rgb(theme.colors.text.secondary)


def _add_bullet(doc, text: str, theme: ThemeConfig):
    from docx.shared import Pt

    bullet = theme.elements.bullet
    p = doc.add_paragraph(style=STYLE_BULLET)
    run = p.add_run(bullet.symbol)
    run.font.size = Pt(bullet.size)
    run.font.color.rgb = _rgb(bullet.color)
    p.add_run("\t" + text)
    return p


def build_document(resume: ResumeData, theme: ThemeConfig):
    """Build a python-docx Document for ``resume`` using ``theme``."""
    from docx import Document
    from docx.shared import Pt

    doc = Document()

    section = doc.sections[0]
    margin = theme.spacing.page_margin
    section.page_width = Pt(theme.layout.page_width)
    section.page_height = Pt(theme.layout.page_height)
    section.top_margin = Pt(margin.top)
    section.bottom_margin = Pt(margin.bottom)
    section.left_margin = Pt(margin.left)
    section.right_margin = Pt(margin.right)

    _build_styles(doc, theme)

    info = resume.personal_info
    props = doc.core_properties
    props.title = f"{info.name} - Resume"
    props.author = info.name
    props.subject = f"Resume of {info.name}"

    doc.add_paragraph(info.name, style=STYLE_NAME)
    contact = CONTACT_SEPARATOR.join(contact_parts(info))
    if contact:
        doc.add_paragraph(contact, style=STYLE_CONTACT)

    headers = []

    def add_section_header(key):
        # all_caps on the style handles display; keep the stored text in the same case as the PDF
        p = doc.add_paragraph(format_section_header(theme, SECTION_TITLES[key]), style=STYLE_SECTION_HEADER)
        if not headers:
            # first section sits contact_to_summary below the contact block, as in the PDF
            p.paragraph_format.space_before = Pt(theme.spacing.contact_to_summary)
        headers.append(p)

    summary = (resume.summary or "").strip()
    if summary:
        add_section_header("summary")
        doc.add_paragraph(" ".join(summary.split()), style=STYLE_BODY)

    if resume.work_experience:
        add_section_header("experience")
        max_bullets = theme.layout.max_bullets_per_role
        for idx, job in enumerate(resume.work_experience):
            p = doc.add_paragraph(style=STYLE_JOB_TITLE)
            if idx > 0:
                p.paragraph_format.space_before = Pt(theme.spacing.job_gap)
            p.add_run(job.title)
            dates = format_date_range(job.start_date, job.end_date)
            if dates:
                _add_date_run(p, dates, theme)
            doc.add_paragraph(job.company, style=STYLE_COMPANY)
            for text in visible_bullets(job, max_bullets):
                _add_bullet(doc, text, theme)

    if resume.education:
        add_section_header("education")
        for idx, edu in enumerate(resume.education):
            p = doc.add_paragraph(style=STYLE_JOB_TITLE)
            if idx > 0:
                p.paragraph_format.space_before = Pt(theme.spacing.bullet_gap)
            run = p.add_run(degree_line(edu))
            run.bold = True
            run.font.size = Pt(theme.typography.sizes.body)
            if (edu.graduation_date or "").strip():
                _add_date_run(p, edu.graduation_date.strip(), theme)
            p = doc.add_paragraph(edu.institution, style=STYLE_BODY)
            for run in p.runs:
                run.font.color.rgb = _rgb(theme.colors.text.secondary)

    skills = [s.strip() for s in resume.skills if s and s.strip()]
    if skills:
        add_section_header("skills")
        doc.add_paragraph(SKILL_SEPARATOR.join(skills), style=STYLE_BODY)

    certs = [c.strip() for c in (resume.certifications or ()) if c and c.strip()]
    if certs:
        add_section_header("certifications")
        for cert in certs:
            _add_bullet(doc, cert, theme)

    return doc


def render_docx(resume: ResumeData, theme: ThemeConfig) -> bytes:
    buffer = io.BytesIO()
    build_document(resume, theme).save(buffer)
    return buffer.getvalue()


def write_docx(resume: ResumeData, theme: ThemeConfig, output_path: str):
    build_document(resume, theme).save(output_path)
    logger.info("DOCX saved to %s", output_path)
