"""Final output generation.

Writes the resume package for one validated resume:
1. Resume PDF (reportlab canvas, paginated by the layout engine)
2. Resume DOCX (python-docx named styles)
3. qa_report.json
4. validation_report.json (when the resume came through the tailoring pipeline)
5. format_warnings.json (layout warnings + ATS parseability check)

Output saved to: {output_dir}/{Name}_{theme}_{date}_{HHMMSS}/
"""

import json
import logging
import os
import re
from datetime import datetime
from typing import Optional

from truthlock.docx_export import write_docx
from truthlock.pdf_export import write_pdf
from truthlock.resume_schema import ResumeData
from truthlock.text_extract import ats_parseability_check
from truthlock.themes import merge_theme, resolve
from truthlock.validator import ValidationReport
from truthlock.visual_qa import QAReport, score

logger = logging.getLogger(__name__)


def _slug(text: str) -> str:
    return re.sub(r"[^\w]+", "_", text).strip("_") or "Candidate"


def _write_json(folder: str, filename: str, data) -> str:
    path = os.path.join(folder, filename)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path


def generate_output(
    resume: ResumeData,
    theme_name: str,
    output_dir: str,
    validation_report: Optional[ValidationReport] = None,
    qa_report: Optional[QAReport] = None,
    output_suffix: Optional[str] = None,
    max_pages: Optional[int] = None,
) -> str:
    """Generate the full resume package.

    Args:
        resume: Validated resume (already passed the fabrication guard if tailored)
        theme_name: Preset name; unknown names fall back to "professional"
        output_dir: Base output directory
        validation_report: Optional report from ``validator.check``
        qa_report: Optional precomputed Visual QA report (computed if omitted)
        output_suffix: Optional folder suffix. If None, uses HHMMSS.
        max_pages: Page limit overriding the theme's ``layout.max_pages``

    Returns:
        Path to the output folder
    """
    theme = resolve(theme_name)
    if max_pages:
        theme = merge_theme(theme, {"layout": {"max_pages": max_pages}})
    name_slug = _slug(resume.personal_info.name)
    date_str = datetime.now().strftime("%Y-%m-%d")
    suffix = output_suffix or datetime.now().strftime("%H%M%S")
    out_folder = os.path.join(output_dir, f"{name_slug}_{theme.name}_{date_str}_{suffix}")
    os.makedirs(out_folder, exist_ok=True)

    # --- 1. PDF ---
    pdf_filename = f"{name_slug}_Resume.pdf"
    pdf_path = os.path.join(out_folder, pdf_filename)
    try:
        layout = write_pdf(resume, theme, pdf_path)
    except Exception as e:
        logger.error("PDF generation failed: %s", e)
        raise

    # --- 2. DOCX ---
    docx_filename = f"{name_slug}_Resume.docx"
    try:
        write_docx(resume, theme, os.path.join(out_folder, docx_filename))
    except Exception as e:
        logger.error("DOCX generation failed: %s", e)
        # the PDF is the primary artifact; carry on without the DOCX

    # --- 3. qa_report.json ---
    qa = qa_report or score(resume, theme)
    _write_json(out_folder, "qa_report.json", qa.to_dict())

    # --- 4. validation_report.json ---
    if validation_report is not None:
        _write_json(out_folder, "validation_report.json", validation_report.to_dict())

    # --- 5. format_warnings.json ---
    _write_json(out_folder, "format_warnings.json", {
        "theme": theme.name,
        "page_count": layout.page_count,
        "max_pages": theme.layout.max_pages,
        "layout_warnings": layout.warnings,
        "ats_parseability": ats_parseability_check(pdf_path, resume),
    })

    logger.info("Resume package saved to: %s", out_folder)
    logger.info("  PDF: %s (%d page(s))", pdf_filename, layout.page_count)
    logger.info("  DOCX: %s", docx_filename)
    logger.info("  QA: %d/100 (%s)", qa.overall, qa.status)
    return out_folder
