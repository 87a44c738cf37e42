"""Tests for visual_qa.py: advisory scoring over resume data."""

import pytest
from conftest import make_resume

from truthlock.resume_schema import ResumeData
from truthlock.themes import resolve
from truthlock.visual_qa import (
    MAX_BULLET_CHARS,
    PENALTIES,
    estimate_pages,
    quality_status,
    score,
)


class TestCleanResume:
    def test_sample_scores_full_marks(self, original):
        report = score(original)
        assert report.overall == 100, report.issues
        assert report.status == "Excellent"
        assert report.issues == []

    def test_estimate_is_stable_and_positive(self, original, professional):
        first = estimate_pages(original, professional)
        assert first == estimate_pages(original, professional)
        assert 0 < first <= professional.layout.max_pages

    def test_to_dict_shape(self, small_resume):
        data = score(small_resume).to_dict()
        assert set(data) == {"overall", "status", "issues", "rules", "estimated_pages"}


class TestRequiredFields:
    def test_missing_contact_and_skills(self):
        resume = make_resume(skills=[])
        resume = ResumeData.model_validate({**resume.to_dict(), "personalInfo": {"name": "No Contact", "email": ""}})
        report = score(resume)
        assert set(report.rules) == {"missing_contact", "missing_skills"}
        assert report.overall == 100 - PENALTIES["missing_contact"] - PENALTIES["missing_skills"]
        assert report.status == "Fair"

    def test_missing_experience(self):
        resume = ResumeData.model_validate({
            "personalInfo": {"name": "Fresh Grad", "email": "grad@example.com"},
            "skills": ["SQL"],
        })
        assert score(resume).rules == ["missing_experience"]

    def test_incomplete_entry(self):
        resume = ResumeData.model_validate({
            "personalInfo": {"name": "P", "email": "p@example.com"},
            "workExperience": [{"company": "Acme", "title": "", "startDate": "2020-01", "endDate": "2021-01", "bullets": []}],
            "skills": ["Go"],
        })
        report = score(resume)
        assert report.rules.count("incomplete_entry") == 2
        assert any("missing a title" in issue for issue in report.issues)
        assert any("no bullet points" in issue for issue in report.issues)

    def test_missing_end_date(self):
        resume = ResumeData.model_validate({
            "personalInfo": {"name": "P", "email": "p@example.com"},
            "workExperience": [{"company": "Acme", "title": "Dev", "startDate": "2020-01", "endDate": " ", "bullets": ["Shipped it"]}],
            "skills": ["Go"],
        })
        report = score(resume)
        assert report.rules == ["incomplete_entry"]
        assert "Experience #1 is missing an end date" in report.issues

    def test_incomplete_education(self):
        resume = make_resume(education=[{"institution": "State University", "degree": "MBA"}])
        report = score(resume)
        assert report.rules == ["incomplete_entry", "incomplete_entry"]
        assert "Education #1 is missing a field of study" in report.issues
        assert "Education #1 is missing a graduation date" in report.issues
        assert report.overall == 100 - 2 * PENALTIES["incomplete_entry"]


class TestContentChecks:
    def test_long_bullet_flagged(self):
        report = score(make_resume(bullets_per_job=1, bullet_text="x" * (MAX_BULLET_CHARS + 50)))
        assert report.rules == ["long_bullet"]
        assert "bullet 1" in report.issues[0]

    def test_marker_not_counted_in_length(self):
        text = "[LESS_RELEVANT] " + "y" * (MAX_BULLET_CHARS - 10)
        assert score(make_resume(bullets_per_job=1, bullet_text=text)).rules == []

    def test_too_many_bullets(self):
        assert "too_many_bullets" in score(make_resume(bullets_per_job=9)).rules

    @pytest.mark.parametrize("bad", ["\x07", "\U0001F680", "\u200b"])
    def test_unrenderable_characters(self, bad):
        report = score(make_resume(bullets_per_job=1, bullet_text=f"Launched rocket {bad}"))
        assert report.rules == ["bad_characters"]
        assert f"U+{ord(bad):04X}" in report.issues[0]

    def test_cp1252_punctuation_is_fine(self):
        resume = make_resume(bullets_per_job=1, bullet_text="Cut costs — by 20% • café")
        assert score(resume).rules == []

    def test_too_long(self):
        resume = make_resume(jobs=14, bullets_per_job=5)
        report = score(resume)
        assert "too_long" in report.rules
        assert report.estimated_pages > 2

    def test_max_pages_override(self):
        resume = make_resume(jobs=14, bullets_per_job=5)
        assert "too_long" not in score(resume, max_pages=10).rules

    def test_score_never_negative(self):
        resume = ResumeData.model_validate({
            "personalInfo": {"name": "\x07" * 120, "email": ""},
            "workExperience": [
                {"company": "", "title": "", "startDate": "", "endDate": "", "bullets": ["z" * 300] * 12}
                for _ in range(6)
            ],
        })
        assert score(resume, resolve("classic")).overall == 0


class TestStatus:
    @pytest.mark.parametrize("overall,label", [
        (100, "Excellent"), (95, "Excellent"), (94, "Good"), (85, "Good"),
        (84, "Fair"), (75, "Fair"), (74, "Needs Improvement"), (0, "Needs Improvement"),
    ])
    def test_thresholds(self, overall, label):
        assert quality_status(overall) == label
