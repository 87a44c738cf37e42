"""Tests for the PDF and DOCX emitters and PDF text extraction."""

import io

import pdfplumber
import pytest
from conftest import make_resume

from truthlock.docx_export import (
    STYLE_BULLET,
    STYLE_COMPANY,
    STYLE_CONTACT,
    STYLE_JOB_TITLE,
    STYLE_NAME,
    STYLE_SECTION_HEADER,
    build_document,
    render_docx,
)
from truthlock.layout import layout_resume
from truthlock.pdf_export import render_pdf, write_pdf
from truthlock.text_extract import ats_parseability_check, extract_text
from truthlock.themes import resolve


def _pdf_pages(pdf_bytes):
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        return len(pdf.pages), pdf.metadata, [p.width for p in pdf.pages], [p.height for p in pdf.pages]


class TestPdfExport:
    def test_single_complete_pdf(self, original, professional):
        pdf_bytes = render_pdf(original, professional)
        assert pdf_bytes.startswith(b"%PDF")
        assert pdf_bytes.rstrip().endswith(b"%%EOF")

    def test_small_resume_is_one_letter_page(self, small_resume, professional):
        count, _, widths, heights = _pdf_pages(render_pdf(small_resume, professional))
        assert count == 1
        assert widths == [612]
        assert heights == [792]

    def test_page_count_matches_layout(self, professional):
        resume = make_resume(jobs=10, bullets_per_job=5)
        count, _, _, _ = _pdf_pages(render_pdf(resume, professional))
        assert count == layout_resume(resume, professional).page_count
        assert count > 1

    def test_document_properties(self, original, professional):
        _, metadata, _, _ = _pdf_pages(render_pdf(original, professional))
        assert metadata.get("Title") == "Sarah Johnson - Resume"
        assert metadata.get("Author") == "Sarah Johnson"
        assert metadata.get("Subject") == "Resume of Sarah Johnson"

    @pytest.mark.parametrize("preset", ["classic", "professional", "modern"])
    def test_byte_identical_on_rerender(self, original, preset):
        theme = resolve(preset)
        assert render_pdf(original, theme) == render_pdf(original, theme)

    def test_write_pdf_returns_layout(self, original, professional, tmp_path):
        path = tmp_path / "resume.pdf"
        layout = write_pdf(original, professional, str(path))
        assert path.exists()
        assert layout.page_count >= 1


class TestTextExtraction:
    def test_rendered_text_is_extractable(self, original, professional):
        text = extract_text(render_pdf(original, professional))
        assert "Sarah Johnson" in text
        assert "WORK EXPERIENCE" in text
        assert "TechCorp Inc." in text
        assert "[LESS_RELEVANT]" not in text

    def test_ats_check_passes_for_rendered_resume(self, original, professional):
        result = ats_parseability_check(render_pdf(original, professional), original)
        assert result["text_extractable"]
        assert result["name_found"]
        assert result["issues"] == [], result["issues"]
        assert "Work Experience" in result["sections_found"]
        assert "Certifications" in result["sections_found"]

    def test_ats_check_reports_unreadable_input(self, original):
        result = ats_parseability_check(b"not a pdf", original)
        assert not result["text_extractable"]
        assert result["issues"]


class TestDocxExport:
    @pytest.fixture
    def document(self, original, professional):
        from docx import Document

        return Document(io.BytesIO(render_docx(original, professional)))

    def test_named_styles_present(self, document):
        names = {s.name for s in document.styles}
        for style in (STYLE_NAME, STYLE_CONTACT, STYLE_SECTION_HEADER, STYLE_JOB_TITLE, STYLE_COMPANY, STYLE_BULLET):
            assert style in names, style

    def test_paragraph_structure(self, document):
        paragraphs = document.paragraphs
        assert paragraphs[0].style.name == STYLE_NAME
        assert paragraphs[0].text == "Sarah Johnson"
        assert paragraphs[1].style.name == STYLE_CONTACT
        assert "sarah.johnson@email.com | (555) 123-4567" in paragraphs[1].text
        headers = [p.text for p in paragraphs if p.style.name == STYLE_SECTION_HEADER]
        assert headers == ["PROFESSIONAL SUMMARY", "WORK EXPERIENCE", "EDUCATION", "SKILLS", "CERTIFICATIONS"]

    def test_job_title_carries_tabbed_date(self, document):
        titles = [p for p in document.paragraphs if p.style.name == STYLE_JOB_TITLE]
        assert titles[0].text == "Senior Software Engineer\t2021-01 - Present"

    def test_bullets_follow_policy(self, document, professional):
        bullets = [p.text for p in document.paragraphs if p.style.name == STYLE_BULLET]
        # 5 + 4 + 3 job bullets, 2 certifications
        assert len(bullets) == 14
        assert all(b.startswith(professional.elements.bullet.symbol + "\t") for b in bullets)

    def test_page_setup_and_properties(self, document, professional):
        from docx.shared import Pt

        section = document.sections[0]
        assert section.page_width == Pt(612)
        assert section.page_height == Pt(792)
        assert section.left_margin == Pt(professional.spacing.page_margin.left)
        assert document.core_properties.title == "Sarah Johnson - Resume"
        assert document.core_properties.author == "Sarah Johnson"

    def test_section_header_border_follows_theme(self, original):
        from docx.oxml.ns import qn

        with_rule = build_document(original, resolve("professional")).styles[STYLE_SECTION_HEADER]
        without_rule = build_document(original, resolve("classic")).styles[STYLE_SECTION_HEADER]
        assert with_rule.element.pPr.find(qn("w:pBdr")) is not None
        assert without_rule.element.pPr.find(qn("w:pBdr")) is None

    def test_less_relevant_marker_hidden(self, tailored_dict, professional):
        from docx import Document

        from truthlock.resume_schema import ResumeData

        resume = ResumeData.model_validate(tailored_dict)
        doc = Document(io.BytesIO(render_docx(resume, professional)))
        assert all("[LESS_RELEVANT]" not in p.text for p in doc.paragraphs)

    def test_first_header_spaced_from_contact_block(self, document, professional):
        from docx.shared import Pt

        headers = [p for p in document.paragraphs if p.style.name == STYLE_SECTION_HEADER]
        assert headers[0].paragraph_format.space_before == Pt(professional.spacing.contact_to_summary)
        # later headers inherit section_gap from the style
        assert headers[1].paragraph_format.space_before is None
        assert document.styles[STYLE_SECTION_HEADER].paragraph_format.space_before == Pt(professional.spacing.section_gap)
