"""PDF text extraction (pdfplumber): reading uploaded resumes and checking that
rendered resumes stay machine-readable for ATS parsers."""

import io
import logging

import pdfplumber

from truthlock.layout import SECTION_TITLES
from truthlock.resume_schema import ResumeData

logger = logging.getLogger(__name__)

MIN_EXTRACTABLE_CHARS = 50


def _open(source):
    if isinstance(source, (bytes, bytearray)):
        return pdfplumber.open(io.BytesIO(source))
    return pdfplumber.open(source)


def extract_text(source) -> str:
    """Extract all text from a PDF given as a path or raw bytes. Pages are joined by blank lines."""
    text_parts = []
    with _open(source) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
    return "\n\n".join(text_parts)


def ats_parseability_check(source, resume: ResumeData) -> dict:
    """Extract text from a rendered PDF and verify an ATS could read it back."""
    result = {
        "text_extractable": False,
        "total_chars": 0,
        "page_count": 0,
        "name_found": False,
        "sections_found": [],
        "issues": [],
    }
    try:
        with _open(source) as pdf:
            result["page_count"] = len(pdf.pages)
            full_text = "\n".join((page.extract_text() or "") for page in pdf.pages)
    except Exception as e:
        logger.error("PDF parse error during ATS check: %s", e)
        result["issues"].append(f"PDF parse error: {e}")
        return result

    lowered = full_text.lower()
    result["total_chars"] = len(full_text)
    result["text_extractable"] = len(full_text.strip()) > MIN_EXTRACTABLE_CHARS
    if not result["text_extractable"]:
        result["issues"].append("Too little text could be extracted")

    result["name_found"] = resume.personal_info.name.lower() in lowered
    if not result["name_found"]:
        result["issues"].append("Candidate name not found in extracted text")

    expected = ["summary"] if resume.summary else []
    if resume.work_experience:
        expected.append("experience")
    if resume.education:
        expected.append("education")
    if resume.skills:
        expected.append("skills")
    if resume.certifications:
        expected.append("certifications")
    for key in expected:
        title = SECTION_TITLES[key]
        if title.lower() in lowered:
            result["sections_found"].append(title)
        else:
            result["issues"].append(f"Section '{title}' not found in extracted text")

    return result
