"""Visual QA Scorer: advisory heuristics over resume *data* (not rendered output).

Checks:
- Required fields: name, contact info (email or phone), at least one skill
- Entry completeness for every work / education record
- Bullet length outliers (>200 chars wrap awkwardly)
- Characters the standard PDF fonts cannot draw (control chars, non-cp1252)
- Estimated page count against the configured maximum

The score never blocks export; callers show it as a badge.
"""

import logging
import unicodedata
from dataclasses import dataclass, field
from typing import List, Optional

from truthlock.layout import display_bullet
from truthlock.resume_schema import ResumeData
from truthlock.themes import ThemeConfig, line_height, resolve

logger = logging.getLogger(__name__)

MAX_BULLET_CHARS = 200
MAX_NAME_CHARS = 100
MAX_BULLETS_PER_ROLE_QA = 8

# Average glyph width as a fraction of the font size (Helvetica body text)
AVG_CHAR_WIDTH_EM = 0.5

# Deduction per issue, by rule
PENALTIES = {
    "missing_name": 25,
    "missing_contact": 15,
    "missing_skills": 10,
    "missing_experience": 10,
    "incomplete_entry": 5,
    "long_bullet": 2,
    "long_name": 3,
    "too_many_bullets": 3,
    "bad_characters": 4,
    "too_long": 10,
}

STATUS_THRESHOLDS = (
    (95, "Excellent"),
    (85, "Good"),
    (75, "Fair"),
)


@dataclass
class QAReport:
    overall: int
    issues: List[str] = field(default_factory=list)
    rules: List[str] = field(default_factory=list)
    estimated_pages: float = 0.0

    @property
    def status(self) -> str:
        return quality_status(self.overall)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "status": self.status,
            "issues": list(self.issues),
            "rules": list(self.rules),
            "estimated_pages": self.estimated_pages,
        }


def quality_status(overall: float) -> str:
    for threshold, label in STATUS_THRESHOLDS:
        if overall >= threshold:
            return label
    return "Needs Improvement"


def _unrenderable(text: str) -> list:
    """Characters that would break the built-in PDF fonts."""
    bad = []
    for ch in text or "":
        if unicodedata.category(ch) in ("Cc", "Cf", "Co", "Cs") and ch not in "\n\t":
            bad.append(ch)
            continue
        try:
            ch.encode("cp1252")
        except UnicodeEncodeError:
            bad.append(ch)
    return bad


def _lines_for(text: str, chars_per_line: int) -> int:
    if not text:
        return 0
    return max(1, -(-len(text) // chars_per_line))


def estimate_pages(resume: ResumeData, theme: ThemeConfig) -> float:
    """Rough page count: estimated line heights summed over the theme's usable page height."""
    sizes = theme.typography.sizes
    spacing = theme.spacing
    body_lh = line_height(theme, sizes.body)
    chars_per_line = max(20, int(theme.content_width / (sizes.body * AVG_CHAR_WIDTH_EM)))
    bullet_chars = max(
        20, int((theme.content_width - theme.layout.bullet_indent) / (sizes.body * AVG_CHAR_WIDTH_EM))
    )
    header_h = spacing.section_header_above + line_height(theme, sizes.section_header) + spacing.header_to_content

    height = line_height(theme, sizes.name) + line_height(theme, sizes.contact) + spacing.contact_to_summary
    sections = 0
    if resume.summary:
        sections += 1
        height += header_h + _lines_for(resume.summary, chars_per_line) * body_lh
    if resume.work_experience:
        sections += 1
        height += header_h
        for job in resume.work_experience:
            height += line_height(theme, sizes.job_title) + body_lh + spacing.job_gap
            for bullet in list(job.bullets)[:theme.layout.max_bullets_per_role]:
                height += _lines_for(display_bullet(bullet), bullet_chars) * body_lh + spacing.bullet_gap
    if resume.education:
        sections += 1
        height += header_h + len(resume.education) * (2 * body_lh + spacing.bullet_gap)
    if resume.skills:
        sections += 1
        height += header_h + _lines_for(", ".join(resume.skills), chars_per_line) * body_lh
    if resume.certifications:
        sections += 1
        height += header_h + len(resume.certifications) * (body_lh + spacing.bullet_gap)
    height += max(0, sections - 1) * spacing.section_gap

    margin = spacing.page_margin
    usable = theme.layout.page_height - margin.top - margin.bottom
    return round(height / usable, 2)


def score(resume: ResumeData, theme: Optional[ThemeConfig] = None, max_pages: Optional[int] = None) -> QAReport:
    """Score resume data 0-100 with itemized issues.

    Args:
        resume: Resume to inspect.
        theme: Geometry for the page estimate (defaults to "professional").
        max_pages: Page limit (defaults to the theme's ``layout.max_pages``).

    Returns:
        QAReport. Advisory only.
    """
    theme = theme or resolve()
    max_pages = max_pages or theme.layout.max_pages
    issues = []
    rules = []

    def flag(rule: str, message: str):
        issues.append(message)
        rules.append(rule)

    # --- Required fields ---
    info = resume.personal_info
    name = (info.name or "").strip()
    if not name:
        flag("missing_name", "Name is missing")
    elif len(name) > MAX_NAME_CHARS:
        flag("long_name", f"Name is unusually long ({len(name)} chars)")
    if not (info.email or "").strip() and not (info.phone or "").strip():
        flag("missing_contact", "No contact information (email or phone)")
    if not [s for s in resume.skills if s.strip()]:
        flag("missing_skills", "Skills section is empty")
    if not resume.work_experience:
        flag("missing_experience", "No work experience entries")

    # --- Entry completeness ---
    for i, job in enumerate(resume.work_experience, 1):
        label = f"Experience #{i}"
        for attr, title in (("title", "a title"), ("company", "a company"), ("start_date", "a start date"), ("end_date", "an end date")):
            if not (getattr(job, attr) or "").strip():
                flag("incomplete_entry", f"{label} is missing {title}")
        bullets = [display_bullet(b) for b in job.bullets]
        if not any(bullets):
            flag("incomplete_entry", f"{label} has no bullet points")
        if len(bullets) > MAX_BULLETS_PER_ROLE_QA:
            flag("too_many_bullets", f"{label} has {len(bullets)} bullets (more than {MAX_BULLETS_PER_ROLE_QA})")
        for j, bullet in enumerate(bullets, 1):
            if len(bullet) > MAX_BULLET_CHARS:
                flag("long_bullet", f"{label} bullet {j} is {len(bullet)} chars (over {MAX_BULLET_CHARS})")

    for i, edu in enumerate(resume.education, 1):
        label = f"Education #{i}"
        if not (edu.institution or "").strip():
            flag("incomplete_entry", f"{label} is missing an institution")
        for attr, title in (("degree", "a degree"), ("field", "a field of study"), ("graduation_date", "a graduation date")):
            if not (getattr(edu, attr) or "").strip():
                flag("incomplete_entry", f"{label} is missing {title}")

    # --- Characters ---
    texts = [info.name, info.email, info.phone, info.location, info.linked_in, resume.summary]
    for job in resume.work_experience:
        texts.extend([job.title, job.company, job.start_date, job.end_date, *job.bullets])
    for edu in resume.education:
        texts.extend([edu.institution, edu.degree, edu.field, edu.graduation_date])
    texts.extend(resume.skills)
    texts.extend(resume.certifications or ())
    bad = sorted({ch for t in texts if t for ch in _unrenderable(t)})
    if bad:
        shown = ", ".join(f"U+{ord(ch):04X}" for ch in bad[:5])
        flag("bad_characters", f"{len(bad)} character(s) may not render in PDF fonts ({shown})")

    # --- Length ---
    pages = estimate_pages(resume, theme)
    if pages > max_pages:
        flag("too_long", f"Estimated {pages:.1f} pages exceeds the {max_pages}-page maximum")

    overall = max(0, min(100, 100 - sum(PENALTIES[r] for r in rules)))
    report = QAReport(overall=overall, issues=issues, rules=rules, estimated_pages=pages)
    logger.info("Visual QA: %d/100 (%s), %d issue(s)", overall, report.status, len(issues))
    return report
