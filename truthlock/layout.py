"""Page Flow Engine: paginates a ResumeData into positioned draw instructions.

The engine walks the fixed section order (name/contact, summary, experience,
education, skills, certifications) with a vertical cursor per page. Every
block asks for its full height before it is placed; when the block would cross
``page_height - bottom_margin`` the engine starts a new page and places the
block there. The output is backend-agnostic: each page is an ordered list of
``TextOp`` / ``LineOp`` / ``RectOp`` with coordinates in points measured from
the top-left corner of the page. Text ``y`` is the baseline.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from reportlab.pdfbase import pdfmetrics

from truthlock.errors import LAYOUT_OVERFLOW
from truthlock.resume_schema import LESS_RELEVANT_MARKER, Education, PersonalInfo, ResumeData, WorkExperience
from truthlock.text_wrap import wrap
from truthlock.themes import ThemeConfig, format_section_header, is_bold, line_height

logger = logging.getLogger(__name__)

SECTION_TITLES = {
    "summary": "Professional Summary",
    "experience": "Work Experience",
    "education": "Education",
    "skills": "Skills",
    "certifications": "Certifications",
}

DATE_SEPARATOR = " - "
CONTACT_SEPARATOR = " | "
SKILL_SEPARATOR = ", "
CONTINUED_TOP = "(Continued)"
CONTINUED_BOTTOM = "Continued..."
TITLE_DATE_GUTTER = 12  # min room between a wrapped title and its right-aligned date


# --- Instructions ---

@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str
    size: float
    color: str
    role: str = "body"
    char_space: float = 0


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    thickness: float
    color: str
    role: str = "rule"


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    color: str
    radius: float = 0
    role: str = "name_card"


@dataclass(frozen=True)
class PageBreak:
    page: int  # index of the page that was started
    cursor_y: float
    required: float
    bottom_limit: float


@dataclass
class LayoutResult:
    pages: List[list]
    sections: List[str]
    breaks: List[PageBreak]
    warnings: List[dict]
    final_y: float

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def text_ops(self, page: Optional[int] = None, role: Optional[str] = None) -> list:
        """All TextOps, optionally filtered by page index and/or role."""
        selected = self.pages if page is None else [self.pages[page]]
        return [
            op for ops in selected for op in ops
            if isinstance(op, TextOp) and (role is None or op.role == role)
        ]


# --- Cursor and state machine ---

class FlowState(Enum):
    AT_TOP = "at_top"
    IN_SECTION = "in_section"
    NEEDS_BREAK = "needs_break"
    DONE = "done"


@dataclass
class PageCursor:
    page: int
    y: float
    top: float
    bottom_limit: float

    @property
    def usable_height(self) -> float:
        return self.bottom_limit - self.top


class PageFlow:
    """Mutable pagination state for one render. Never shared between renders."""

    def __init__(self, theme: ThemeConfig, measure, running_title: str = ""):
        margin = theme.spacing.page_margin
        self.theme = theme
        self.measure = measure
        self.running_title = running_title
        self.cursor = PageCursor(
            page=0,
            y=margin.top,
            top=margin.top,
            bottom_limit=theme.layout.page_height - margin.bottom,
        )
        self.state = FlowState.AT_TOP
        self.pending_gap = 0.0
        self.pages = [[]]
        self.sections = []
        self.breaks = []
        self.warnings = []

    # --- primitives ---

    def emit(self, op):
        self.pages[self.cursor.page].append(op)

    def gap(self, amount: float):
        """Queue vertical space before the next block. Dropped at a page top."""
        self.pending_gap = amount

    def reserve(self, height: float, label: str) -> bool:
        """Make room for a block of ``height`` points, breaking the page if needed.

        Returns True when a page break happened.
        """
        gap = 0.0 if self.state is FlowState.AT_TOP else self.pending_gap
        self.pending_gap = 0.0
        required = gap + height

        if self.cursor.y + required <= self.cursor.bottom_limit:
            self.cursor.y += gap
            self.state = FlowState.IN_SECTION
            return False

        if self.state is FlowState.AT_TOP:
            # Nothing placed on this page yet; a new page would not help.
            self.overflow(f"{label} needs {height:.1f}pt but a page holds {self.cursor.usable_height:.1f}pt")
            self.state = FlowState.IN_SECTION
            return False

        self.state = FlowState.NEEDS_BREAK
        self.breaks.append(PageBreak(
            page=self.cursor.page + 1,
            cursor_y=self.cursor.y,
            required=required,
            bottom_limit=self.cursor.bottom_limit,
        ))
        self._new_page()
        if height > self.cursor.usable_height:
            self.overflow(f"{label} needs {height:.1f}pt but a page holds {self.cursor.usable_height:.1f}pt")
        self.state = FlowState.IN_SECTION
        return True

    def overflow(self, message: str):
        logger.warning("Layout overflow: %s", message)
        self.warnings.append({"kind": LAYOUT_OVERFLOW, "message": message})

    def text_line(self, text: str, x: float, font: str, size: float, color: str,
                  role: str, char_space: float = 0) -> float:
        """Place one line of text at the cursor and advance. Returns the baseline."""
        self.reserve(line_height(self.theme, size), role)
        baseline = self.cursor.y + size
        self.emit(TextOp(x, baseline, text, font, size, color, role, char_space))
        self.cursor.y += line_height(self.theme, size)
        return baseline

    def finish(self) -> LayoutResult:
        self.state = FlowState.DONE
        max_pages = self.theme.layout.max_pages
        if len(self.pages) > max_pages:
            self.overflow(f"document runs {len(self.pages)} pages, configured maximum is {max_pages}")
        return LayoutResult(
            pages=self.pages,
            sections=self.sections,
            breaks=self.breaks,
            warnings=self.warnings,
            final_y=self.cursor.y,
        )

    def _new_page(self):
        theme = self.theme
        markers = theme.layout.continuation_markers
        if markers:
            size = theme.typography.sizes.contact
            font = theme.typography.fonts.pdf_regular
            width = self.measure(CONTINUED_BOTTOM, font, size)
            self.emit(TextOp(
                theme.content_left + theme.content_width - width,
                self.cursor.bottom_limit + size + 4,
                CONTINUED_BOTTOM, font, size, theme.colors.text.light, "marker",
            ))
        self.pages.append([])
        self.cursor.page += 1
        self.cursor.y = self.cursor.top
        self.state = FlowState.AT_TOP
        if markers:
            label = f"{self.running_title} {CONTINUED_TOP}".strip()
            size = theme.typography.sizes.contact
            self.emit(TextOp(
                theme.content_left, max(size, self.cursor.top - 6), label,
                theme.typography.fonts.pdf_regular, size, theme.colors.text.light, "marker",
            ))


# --- Shared content helpers (also used by the DOCX emitter) ---

def display_bullet(text: str) -> str:
    """Bullet text as shown on the page: marker removed, whitespace collapsed."""
    return " ".join((text or "").replace(LESS_RELEVANT_MARKER, " ").split())


def visible_bullets(entry: WorkExperience, max_bullets: int) -> list:
    shown = [display_bullet(b) for b in entry.bullets]
    return [b for b in shown if b][:max_bullets]


def format_date_range(start: str, end: str) -> str:
    return DATE_SEPARATOR.join(part for part in ((start or "").strip(), (end or "").strip()) if part)


def contact_parts(info: PersonalInfo) -> list:
    parts = (info.email, info.phone, info.location, info.linked_in)
    return [p.strip() for p in parts if p and p.strip()]


def degree_line(edu: Education) -> str:
    degree = (edu.degree or "").strip()
    study = (edu.field or "").strip()
    if degree and study:
        return f"{degree} in {study}"
    return degree or study


def _default_measure(text: str, font: str, size: float) -> float:
    return pdfmetrics.stringWidth(text, font, size)


# --- Section renderers ---

class _ResumeLayout:
    def __init__(self, resume: ResumeData, theme: ThemeConfig, measure):
        self.resume = resume
        self.theme = theme
        self.measure = measure
        self.flow = PageFlow(theme, measure, running_title=resume.personal_info.name)
        fonts = theme.typography.fonts
        self.regular = fonts.pdf_regular
        self.bold = fonts.pdf_bold
        self.sizes = theme.typography.sizes
        self.left = theme.content_left
        self.width = theme.content_width

    def font_for(self, weight: str) -> str:
        return self.bold if is_bold(weight) else self.regular

    def lh(self, size: float) -> float:
        return line_height(self.theme, size)

    def wrap_text(self, text: str, font: str, size: float, max_width: float) -> list:
        return wrap(text, lambda s: self.measure(s, font, size), max_width)

    def run(self) -> LayoutResult:
        self.name_block()
        self.summary()
        self.experience()
        self.education()
        self.skills()
        self.certifications()
        return self.flow.finish()

    # --- blocks ---

    def name_block(self):
        theme = self.theme
        flow = self.flow
        card = theme.elements.name_card
        pad = card.padding
        pad_top, pad_right, pad_bottom, pad_left = (
            (pad.top, pad.right, pad.bottom, pad.left) if card.enabled else (0, 0, 0, 0)
        )
        inner_left = self.left + pad_left
        inner_width = self.width - pad_left - pad_right

        name_font = self.font_for(theme.typography.weights.name)
        name_size = self.sizes.name
        contact_size = self.sizes.contact
        info = self.resume.personal_info
        name_lines = self.wrap_text(info.name, name_font, name_size, inner_width)
        contact = CONTACT_SEPARATOR.join(contact_parts(info))
        contact_lines = self.wrap_text(contact, self.regular, contact_size, inner_width)

        height = pad_top + len(name_lines) * self.lh(name_size) + pad_bottom
        if contact_lines:
            height += theme.spacing.name_to_contact + len(contact_lines) * self.lh(contact_size)

        flow.reserve(height, "name block")
        if card.enabled:
            flow.emit(RectOp(self.left, flow.cursor.y, self.width, height, card.background, card.border_radius))
        flow.cursor.y += pad_top
        for line in name_lines:
            x = inner_left + (inner_width - self.measure(line, name_font, name_size)) / 2
            flow.text_line(line, x, name_font, name_size, theme.colors.text.primary, "name")
        if contact_lines:
            flow.cursor.y += theme.spacing.name_to_contact
            for line in contact_lines:
                x = inner_left + (inner_width - self.measure(line, self.regular, contact_size)) / 2
                flow.text_line(line, x, self.regular, contact_size, theme.colors.text.secondary, "contact")
        flow.cursor.y += pad_bottom
        flow.sections.append("name")
        flow.gap(theme.spacing.contact_to_summary)

    def section_header(self, key: str, keep_with: float):
        """Header text plus optional underline, kept on the page with ``keep_with`` points of content."""
        theme = self.theme
        flow = self.flow
        header = theme.sections.header
        size = self.sizes.section_header
        font = self.font_for(theme.typography.weights.section_header)
        above = theme.spacing.section_header_above
        below = theme.spacing.header_to_content

        flow.reserve(above + self.lh(size) + below + keep_with, f"{key} header")
        flow.cursor.y += above
        baseline = flow.cursor.y + size
        flow.emit(TextOp(
            self.left, baseline, format_section_header(theme, SECTION_TITLES[key]),
            font, size, theme.colors.primary, "section_header", header.letter_spacing,
        ))
        if header.underline.enabled and header.underline.thickness > 0:
            rule_y = baseline + header.underline.gap
            flow.emit(LineOp(
                self.left, rule_y, self.left + self.width, rule_y,
                header.underline.thickness, header.underline.color, "section_rule",
            ))
        flow.cursor.y += self.lh(size) + below
        flow.sections.append(key)

    def bullet(self, text: str, role: str):
        theme = self.theme
        flow = self.flow
        indent = theme.layout.bullet_indent
        size = self.sizes.body
        lines = self.wrap_text(text, self.regular, size, self.width - indent)
        if len(lines) * self.lh(size) > flow.cursor.usable_height:
            flow.overflow(f"{role} of {len(text)} chars is taller than a page; flowing across pages")
        symbol = theme.elements.bullet
        for i, line in enumerate(lines):
            if i == 0:
                flow.reserve(self.lh(size), role)
                flow.emit(TextOp(
                    self.left, flow.cursor.y + size, symbol.symbol,
                    self.regular, symbol.size, symbol.color, "bullet_symbol",
                ))
            flow.text_line(line, self.left + indent, self.regular, size, theme.colors.text.primary, role)

    def summary(self):
        text = (self.resume.summary or "").strip()
        if not text:
            return
        size = self.sizes.body
        lines = self.wrap_text(text, self.regular, size, self.width)
        self.section_header("summary", self.lh(size))
        for line in lines:
            self.flow.text_line(line, self.left, self.regular, size, self.theme.colors.text.primary, "summary")
        self.flow.gap(self.theme.spacing.section_gap)

    def _entry_parts(self, entry: WorkExperience):
        sizes = self.sizes
        title_font = self.font_for(self.theme.typography.weights.job_title)
        date_text = format_date_range(entry.start_date, entry.end_date)
        date_width = self.measure(date_text, self.regular, sizes.date) if date_text else 0
        title_width = self.width - (date_width + TITLE_DATE_GUTTER if date_text else 0)
        title_lines = self.wrap_text(entry.title, title_font, sizes.job_title, title_width) or [""]
        company_font = self.font_for(self.theme.typography.weights.company)
        company_lines = self.wrap_text(entry.company, company_font, sizes.body, self.width)
        bullets = visible_bullets(entry, self.theme.layout.max_bullets_per_role)
        min_height = len(title_lines) * self.lh(sizes.job_title) + len(company_lines) * self.lh(sizes.body)
        if bullets:
            min_height += self.lh(sizes.body)
        return title_font, title_lines, date_text, date_width, company_font, company_lines, bullets, min_height

    def experience(self):
        entries = self.resume.work_experience
        if not entries:
            return
        theme = self.theme
        flow = self.flow
        sizes = self.sizes
        colors = theme.colors

        for idx, entry in enumerate(entries):
            (title_font, title_lines, date_text, date_width,
             company_font, company_lines, bullets, min_height) = self._entry_parts(entry)
            if idx == 0:
                self.section_header("experience", min_height)
            else:
                flow.gap(theme.spacing.job_gap)
            broke = flow.reserve(min_height, f"entry '{entry.title}' at {entry.company}")
            if idx > 0 and not broke and theme.elements.job_separator:
                rule_y = flow.cursor.y - theme.spacing.job_gap / 2
                flow.emit(LineOp(self.left, rule_y, self.left + self.width, rule_y, 0.5, colors.divider, "job_rule"))

            for i, line in enumerate(title_lines):
                baseline = flow.text_line(line, self.left, title_font, sizes.job_title, colors.text.primary, "job_title")
                if i == 0 and date_text:
                    flow.emit(TextOp(
                        self.left + self.width - date_width, baseline, date_text,
                        self.regular, sizes.date, colors.text.secondary, "date",
                    ))
            for line in company_lines:
                flow.text_line(line, self.left, company_font, sizes.body, colors.accent, "company")
            for b_idx, text in enumerate(bullets):
                if b_idx > 0:
                    flow.gap(theme.spacing.bullet_gap)
                self.bullet(text, "bullet")
        flow.gap(theme.spacing.section_gap)

    def education(self):
        entries = self.resume.education
        if not entries:
            return
        theme = self.theme
        flow = self.flow
        size = self.sizes.body
        colors = theme.colors

        for idx, edu in enumerate(entries):
            date_text = (edu.graduation_date or "").strip()
            date_width = self.measure(date_text, self.regular, self.sizes.date) if date_text else 0
            degree_width = self.width - (date_width + TITLE_DATE_GUTTER if date_text else 0)
            degree_lines = self.wrap_text(degree_line(edu), self.bold, size, degree_width)
            institution_lines = self.wrap_text(edu.institution, self.regular, size, self.width)
            height = (len(degree_lines) + len(institution_lines)) * self.lh(size)
            if idx == 0:
                self.section_header("education", height)
            else:
                flow.gap(theme.spacing.bullet_gap)
            flow.reserve(height, "education entry")
            for i, line in enumerate(degree_lines):
                baseline = flow.text_line(line, self.left, self.bold, size, colors.text.primary, "degree")
                if i == 0 and date_text:
                    flow.emit(TextOp(
                        self.left + self.width - date_width, baseline, date_text,
                        self.regular, self.sizes.date, colors.text.secondary, "date",
                    ))
            if not degree_lines and date_text:
                flow.text_line(date_text, self.left + self.width - date_width, self.regular,
                               self.sizes.date, colors.text.secondary, "date")
            for line in institution_lines:
                flow.text_line(line, self.left, self.regular, size, colors.text.secondary, "institution")
        flow.gap(theme.spacing.section_gap)

    def skills(self):
        skills = [s.strip() for s in self.resume.skills if s and s.strip()]
        if not skills:
            return
        size = self.sizes.body
        lines = self.wrap_text(SKILL_SEPARATOR.join(skills), self.regular, size, self.width)
        self.section_header("skills", self.lh(size))
        for line in lines:
            self.flow.text_line(line, self.left, self.regular, size, self.theme.colors.text.primary, "skills")
        self.flow.gap(self.theme.spacing.section_gap)

    def certifications(self):
        certs = [c.strip() for c in (self.resume.certifications or ()) if c and c.strip()]
        if not certs:
            return
        self.section_header("certifications", self.lh(self.sizes.body))
        for idx, cert in enumerate(certs):
            if idx > 0:
                self.flow.gap(self.theme.spacing.bullet_gap)
            self.bullet(cert, "certification")
        self.flow.gap(self.theme.spacing.section_gap)


def layout_resume(resume: ResumeData, theme: ThemeConfig, measure=None) -> LayoutResult:
    """Paginate ``resume`` with ``theme``.

    Args:
        resume: Validated resume data.
        theme: Resolved theme (see ``themes.resolve``).
        measure: Optional ``measure(text, font_name, font_size) -> width`` callable.
            Defaults to reportlab's metrics for the theme's PDF fonts.

    Returns:
        LayoutResult with per-page instructions, emitted section order,
        recorded page breaks and non-fatal warnings.
    """
    result = _ResumeLayout(resume, theme, measure or _default_measure).run()
    logger.info("Laid out resume for %s: %d page(s), sections=%s",
                resume.personal_info.name, result.page_count, ",".join(result.sections))
    return result
