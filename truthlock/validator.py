"""Fabrication Guard: reconciles a tailored resume against the original.

The tailored side usually arrives as the raw dict parsed from the rewrite
oracle (camelCase keys, possibly with dropped fields); a ResumeData is also
accepted. The original is always a validated ResumeData.

Outcomes:
    - Fatal violations raise a ``ValidationError`` subclass (IdentityMismatch,
      FabricatedEntry, FabricatedCertification, DateTampering,
      UnknownExperience, UnknownEducation).
    - Recoverable drift is repaired from the original and recorded as an issue
      (MissingField, SkillRejected, TitleRestored, CredentialRestored).
"""

import difflib
import logging
import re
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from truthlock.errors import (
    CREDENTIAL_RESTORED,
    MISSING_FIELD,
    SKILL_REJECTED,
    TITLE_RESTORED,
    DateTampering,
    FabricatedCertification,
    FabricatedEntry,
    IdentityMismatch,
    UnknownEducation,
    UnknownExperience,
    ValidationError,
)
from truthlock.resume_schema import LESS_RELEVANT_MARKER, ResumeData

logger = logging.getLogger(__name__)

OPEN_ENDED_DATES = ("present", "current", "now", "ongoing")
EDUCATION_PLACEHOLDER = {"degree": "Degree", "field": "General Studies", "graduationDate": "N/A"}
TITLE_SIMILARITY_THRESHOLD = 0.75
SENIORITY_WORDS = frozenset({
    "senior", "sr", "lead", "principal", "staff", "head", "chief",
    "director", "vp", "vice", "president", "manager", "executive",
})
# Shortest normalized skill allowed to match by substring ("c" must not match "docker")
MIN_SUBSTRING_CHARS = 3
# Academic rank implied by a degree word or abbreviation
DEGREE_LEVELS = {
    "associate": 1, "aa": 1, "aas": 1,
    "bachelor": 2, "ba": 2, "bs": 2, "bsc": 2, "beng": 2, "bba": 2,
    "master": 3, "ma": 3, "ms": 3, "msc": 3, "meng": 3, "mba": 3,
    "doctor": 4, "doctorate": 4, "phd": 4, "md": 4, "jd": 4, "edd": 4,
}
_INITIALS_SKIP = frozenset({"of", "in", "and", "the"})
IDENTITY_FIELDS = ("name", "email")
CONTACT_FIELDS = ("phone", "location", "linkedIn")

_DASH_VARIANTS = re.compile("[‐‑‒–—―−﹘﹣－]")
_APIS = re.compile(r"\bapis\b")


@dataclass
class ValidationIssue:
    field: str
    reason: str
    kind: str


@dataclass
class ValidationReport:
    is_valid: bool
    repaired_resume: Optional[ResumeData]
    rejected_skills: List[str] = field(default_factory=list)
    errors: List[ValidationIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "repairedResume": self.repaired_resume.to_dict() if self.repaired_resume else None,
            "rejectedSkills": list(self.rejected_skills),
            "errors": [asdict(e) for e in self.errors],
        }


# --- Normalization helpers ---

def normalize_skill(skill: str) -> str:
    """Canonical form for skill comparison.

    Lowercase, trim, collapse whitespace, unify dash variants to "-", fold
    "apis" to "api", then strip one trailing "s".
    """
    text = _DASH_VARIANTS.sub("-", (skill or "").lower())
    text = " ".join(text.split())
    text = _APIS.sub("api", text)
    if len(text) > 1 and text.endswith("s"):
        text = text[:-1]
    return text


def _compact(text: str) -> str:
    return re.sub(r"[-\s]+", "", text)


def skill_matches(candidate: str, originals: list, strict: bool = False) -> bool:
    """True if normalized ``candidate`` matches any normalized original skill.

    Relations: exact, substring either way, dash/space-stripped equality.
    ``strict`` keeps only exact equality.
    """
    if not candidate:
        return False
    if strict:
        return candidate in originals
    compact = _compact(candidate)
    for original in originals:
        if not original:
            continue
        if candidate == original:
            return True
        shorter, longer = sorted((candidate, original), key=len)
        if len(shorter) >= MIN_SUBSTRING_CHARS and shorter in longer:
            return True
        if compact == _compact(original):
            return True
    return False


def _text(value) -> str:
    if value is None:
        return ""
    return value.strip() if isinstance(value, str) else str(value).strip()


def _norm_name(value) -> str:
    return " ".join(_text(value).casefold().split())


def _is_open_ended(date: str) -> bool:
    value = _text(date).lower()
    return not value or value in OPEN_ENDED_DATES


def titles_similar(tailored: str, original: str) -> bool:
    """A rewritten title is acceptable only when it stays very close to the original.

    Adding a seniority word the original did not have is never similar.
    """
    a, b = _norm_name(tailored), _norm_name(original)
    if a == b:
        return True
    a_tokens = set(re.findall(r"[a-z0-9]+", a))
    b_tokens = set(re.findall(r"[a-z0-9]+", b))
    if (a_tokens - b_tokens) & SENIORITY_WORDS and not b_tokens & SENIORITY_WORDS:
        return False
    return difflib.SequenceMatcher(None, a, b).ratio() >= TITLE_SIMILARITY_THRESHOLD


def degree_level(text: str) -> Optional[int]:
    """Highest academic rank named in ``text`` ("B.S." -> 2, "Master of Arts" -> 3), or None."""
    tokens = re.findall(r"[a-z0-9]+", _norm_name(text).replace(".", ""))
    levels = [DEGREE_LEVELS.get(t, DEGREE_LEVELS.get(t.rstrip("s"))) for t in tokens]
    levels = [lvl for lvl in levels if lvl]
    return max(levels) if levels else None


def _initials(text: str) -> str:
    words = re.findall(r"[a-z0-9]+", _norm_name(text))
    return "".join(w[0] for w in words if w not in _INITIALS_SKIP)


def credentials_similar(tailored: str, original: str) -> bool:
    """Degree / field-of-study rewording check.

    Abbreviations of the original are fine ("B.S." for "Bachelor of Science",
    "CS" for "Computer Science"); a different academic rank never is.
    """
    tailored_level, original_level = degree_level(tailored), degree_level(original)
    if tailored_level and tailored_level != original_level:
        return False
    if titles_similar(tailored, original):
        return True
    letters = re.sub(r"[^a-z0-9]", "", _norm_name(tailored))
    original_letters = re.sub(r"[^a-z0-9]", "", _norm_name(original))
    return len(letters) >= 2 and (letters == _initials(original) or original_letters == _initials(tailored))


def _bullet_key(text: str) -> str:
    return " ".join(_text(text).replace(LESS_RELEVANT_MARKER, " ").lower().split())


def dropped_bullets(tailored: list, originals: list) -> list:
    """Original bullets the rewrite left out, one per missing slot.

    The originals that least resemble any tailored bullet are taken, in their
    original order.
    """
    missing = len(originals) - len(tailored)
    if missing <= 0:
        return []
    if not tailored:
        return list(originals)
    keys = [_bullet_key(t) for t in tailored]

    def best_match(i):
        key = _bullet_key(originals[i])
        return max(difflib.SequenceMatcher(None, key, k).ratio() for k in keys)

    ranked = sorted(range(len(originals)), key=lambda i: (best_match(i), i))
    return [originals[i] for i in sorted(ranked[:missing])]


def _as_dict(tailored) -> dict:
    if isinstance(tailored, ResumeData):
        return tailored.to_dict()
    if isinstance(tailored, dict):
        return tailored
    raise TypeError(f"tailored resume must be a dict or ResumeData, got {type(tailored).__name__}")


# --- Guard ---

class _Guard:
    """One reconciliation pass. Holds the issues collected along the way."""

    def __init__(self, original: ResumeData, strict_skills: bool = False):
        self.orig = original.to_dict()
        self.strict_skills = strict_skills
        self.issues = []
        self.rejected_skills = []

    def note(self, kind: str, field_path: str, reason: str):
        logger.warning("%s at %s: %s", kind, field_path, reason)
        self.issues.append(ValidationIssue(field=field_path, reason=reason, kind=kind))

    def run(self, tailored) -> ResumeData:
        data = _as_dict(tailored)
        repaired = {
            "personalInfo": self.personal_info(data.get("personalInfo")),
            "workExperience": self.work_experience(data.get("workExperience")),
            "education": self.education(data.get("education")),
            "skills": self.skills(data.get("skills")),
        }
        summary = self.summary(data.get("summary"))
        if summary is not None:
            repaired["summary"] = summary
        certifications = self.certifications(data.get("certifications"))
        if certifications is not None:
            repaired["certifications"] = certifications
        return ResumeData.model_validate(repaired)

    # --- personal info ---

    def personal_info(self, tailored) -> dict:
        original = self.orig["personalInfo"]
        tailored = tailored if isinstance(tailored, dict) else {}

        for key in IDENTITY_FIELDS:
            path = f"personalInfo.{key}"
            value = tailored.get(key)
            if not _text(value):
                if original.get(key):
                    self.note(MISSING_FIELD, path, "missing from rewrite; restored from original")
                continue
            if _text(value) != _text(original.get(key)):
                raise IdentityMismatch(
                    f"{path} changed from {original.get(key)!r} to {value!r}", field=path,
                )

        for key in CONTACT_FIELDS:
            path = f"personalInfo.{key}"
            value = _text(tailored.get(key))
            if original.get(key) and not value:
                self.note(MISSING_FIELD, path, "missing from rewrite; restored from original")
            elif value and value != original.get(key):
                logger.warning("Discarding rewritten %s %r; contact details come from the original", path, value)

        return dict(original)

    def summary(self, tailored) -> Optional[str]:
        if _text(tailored):
            return tailored.strip()
        original = self.orig.get("summary")
        if original:
            self.note(MISSING_FIELD, "summary", "missing from rewrite; restored from original")
        return original

    # --- work experience ---

    def work_experience(self, tailored) -> list:
        originals = self.orig.get("workExperience", [])
        if not isinstance(tailored, list):
            if originals:
                self.note(MISSING_FIELD, "workExperience", "missing from rewrite; restored all original entries")
            return list(originals)
        if len(tailored) > len(originals):
            raise FabricatedEntry(
                f"workExperience has {len(tailored)} entries but the original has {len(originals)}",
                field="workExperience",
            )

        used = set()
        repaired = []
        for i, entry in enumerate(tailored):
            path = f"workExperience[{i}]"
            if not isinstance(entry, dict):
                raise UnknownExperience(f"{path} is not an object", field=path)
            idx = self._match_job(entry, i, originals, used, path)
            used.add(idx)
            repaired.append(self._repair_job(entry, originals[idx], path))
        return repaired

    def _match_job(self, entry: dict, position: int, originals: list, used: set, path: str) -> int:
        company = _norm_name(entry.get("company"))
        start = _text(entry.get("startDate"))

        def first(predicate):
            hits = [j for j, o in enumerate(originals) if predicate(o)]
            unused = [j for j in hits if j not in used]
            return (unused or hits or [None])[0]

        if company:
            idx = None
            if start:
                idx = first(lambda o: _norm_name(o["company"]) == company and o["startDate"] == start)
            if idx is None:
                idx = first(lambda o: _norm_name(o["company"]) == company)
            if idx is None:
                raise UnknownExperience(
                    f"{path}.company {entry.get('company')!r} does not appear in the original resume",
                    field=f"{path}.company",
                )
        else:
            idx = first(lambda o: o["startDate"] == start) if start else None
            if idx is None:
                free = [j for j in range(len(originals)) if j not in used]
                idx = position if position not in used else (free or [None])[0]
            if idx is None:
                raise UnknownExperience(f"{path} has no company and matches no original entry", field=path)

        if idx in used:
            raise FabricatedEntry(
                f"{path} duplicates original entry at {originals[idx]['company']!r}", field=path,
            )
        return idx

    def _repair_job(self, entry: dict, original: dict, path: str) -> dict:
        if not _text(entry.get("company")):
            self.note(MISSING_FIELD, f"{path}.company", "missing from rewrite; restored from original")

        title = _text(entry.get("title"))
        if not title:
            self.note(MISSING_FIELD, f"{path}.title", "missing from rewrite; restored from original")
            title = original["title"]
        elif not titles_similar(title, original["title"]):
            self.note(TITLE_RESTORED, f"{path}.title",
                      f"{title!r} is not close enough to {original['title']!r}; original kept")
            title = original["title"]

        start = _text(entry.get("startDate"))
        if not start:
            self.note(MISSING_FIELD, f"{path}.startDate", "missing from rewrite; restored from original")
            start = original["startDate"]
        elif start != _text(original["startDate"]):
            raise DateTampering(
                f"{path}.startDate changed from {original['startDate']!r} to {start!r}",
                field=f"{path}.startDate",
            )

        end = _text(entry.get("endDate"))
        if not end:
            if original["endDate"]:
                self.note(MISSING_FIELD, f"{path}.endDate", "missing from rewrite; restored from original")
            end = original["endDate"]
        elif end != _text(original["endDate"]):
            if not (_is_open_ended(original["endDate"]) and _is_open_ended(end)):
                raise DateTampering(
                    f"{path}.endDate changed from {original['endDate']!r} to {end!r}",
                    field=f"{path}.endDate",
                )
            end = original["endDate"]

        # Bullets are reworded or marked [LESS_RELEVANT], never added or dropped
        original_bullets = list(original.get("bullets", []))
        bullets = entry.get("bullets")
        bullets = [b for b in bullets if _text(b)] if isinstance(bullets, list) else []
        if len(bullets) > len(original_bullets):
            raise FabricatedEntry(
                f"{path}.bullets has {len(bullets)} bullets but the original has {len(original_bullets)}",
                field=f"{path}.bullets",
            )
        if not bullets:
            if original_bullets:
                self.note(MISSING_FIELD, f"{path}.bullets", "missing from rewrite; restored from original")
            bullets = original_bullets
        elif len(bullets) < len(original_bullets):
            self.note(MISSING_FIELD, f"{path}.bullets",
                      f"{len(original_bullets) - len(bullets)} bullet(s) dropped by rewrite; restored from original")
            bullets = bullets + dropped_bullets(bullets, original_bullets)

        return {
            "company": original["company"],
            "title": title,
            "startDate": start,
            "endDate": end,
            "bullets": [b if isinstance(b, str) else str(b) for b in bullets],
        }

    # --- education ---

    def education(self, tailored) -> list:
        originals = self.orig.get("education", [])
        if not isinstance(tailored, list):
            if originals:
                self.note(MISSING_FIELD, "education", "missing from rewrite; restored all original entries")
            return list(originals)
        if len(tailored) > len(originals):
            raise FabricatedEntry(
                f"education has {len(tailored)} entries but the original has {len(originals)}",
                field="education",
            )

        used = set()
        repaired = []
        for i, entry in enumerate(tailored):
            path = f"education[{i}]"
            if not isinstance(entry, dict):
                raise UnknownEducation(f"{path} is not an object", field=path)
            idx = self._match_school(entry, i, originals, used, path)
            used.add(idx)
            repaired.append(self._repair_school(entry, originals[idx], path))
        return repaired

    def _match_school(self, entry: dict, position: int, originals: list, used: set, path: str) -> int:
        institution = _norm_name(entry.get("institution"))
        if institution:
            hits = [
                j for j, o in enumerate(originals)
                if _norm_name(o.get("institution")) and (
                    institution == _norm_name(o.get("institution"))
                    or institution in _norm_name(o.get("institution"))
                    or _norm_name(o.get("institution")) in institution
                )
            ]
            if not hits:
                raise UnknownEducation(
                    f"{path}.institution {entry.get('institution')!r} does not appear in the original resume",
                    field=f"{path}.institution",
                )
            unused = [j for j in hits if j not in used]
            if not unused:
                raise FabricatedEntry(f"{path} duplicates an original education entry", field=path)
            return unused[0]

        self.note(MISSING_FIELD, f"{path}.institution", "missing from rewrite; matched by position")
        if position not in used:
            return position
        return [j for j in range(len(originals)) if j not in used][0]

    def _repair_school(self, entry: dict, original: dict, path: str) -> dict:
        repaired = {"institution": original["institution"]}
        for key in ("degree", "field", "graduationDate"):
            value = _text(entry.get(key))
            known = _text(original.get(key))
            if key == "graduationDate" and value and known and value != known:
                raise DateTampering(
                    f"{path}.graduationDate changed from {known!r} to {value!r}",
                    field=f"{path}.graduationDate",
                )
            if value and known and key != "graduationDate" and not credentials_similar(value, known):
                self.note(CREDENTIAL_RESTORED, f"{path}.{key}",
                          f"{value!r} is not a rewording of {known!r}; original kept")
                repaired[key] = known
            elif value and known:
                repaired[key] = value
            elif known:
                self.note(MISSING_FIELD, f"{path}.{key}", "missing from rewrite; restored from original")
                repaired[key] = known
            else:
                self.note(MISSING_FIELD, f"{path}.{key}", "not in the original; using placeholder")
                repaired[key] = EDUCATION_PLACEHOLDER[key]
        return repaired

    # --- skills / certifications ---

    def skills(self, tailored) -> list:
        originals = list(self.orig.get("skills", []))
        if not isinstance(tailored, list):
            if originals:
                self.note(MISSING_FIELD, "skills", "missing from rewrite; restored from original")
            return originals

        normalized_originals = [normalize_skill(s) for s in originals]
        kept = []
        seen = set()
        for raw in tailored:
            if not _text(raw):
                continue
            skill = _text(raw)
            normalized = normalize_skill(skill)
            if not skill_matches(normalized, normalized_originals, self.strict_skills):
                self.rejected_skills.append(skill)
                self.note(SKILL_REJECTED, "skills", f"{skill!r} does not match any original skill")
                continue
            if normalized not in seen:
                seen.add(normalized)
                kept.append(skill)

        if not kept and originals:
            self.note(MISSING_FIELD, "skills", "no usable skills left after filtering; restored original list")
            return originals
        return kept

    def certifications(self, tailored) -> Optional[list]:
        originals = self.orig.get("certifications")
        if not isinstance(tailored, list):
            if originals:
                self.note(MISSING_FIELD, "certifications", "missing from rewrite; restored from original")
            return originals

        lookup = {_text(c).casefold(): c for c in originals or []}
        repaired = []
        for i, cert in enumerate(tailored):
            key = _text(cert).casefold()
            if not key:
                continue
            if key not in lookup:
                raise FabricatedCertification(
                    f"certification {cert!r} does not match any original certification",
                    field=f"certifications[{i}]",
                )
            if lookup[key] not in repaired:
                repaired.append(lookup[key])
        return repaired


# --- Public API ---

def validate(tailored, original: ResumeData, strict_skills: bool = False) -> ResumeData:
    """Return a repaired, truth-locked copy of ``tailored``.

    Args:
        tailored: Oracle output as a dict (camelCase keys) or a ResumeData.
        original: The source-of-truth resume.
        strict_skills: Accept only exact normalized skill matches.

    Returns:
        ResumeData safe to hand to the emitters.

    Raises:
        ValidationError: (subclass) for violations that cannot be repaired.
    """
    return _Guard(original, strict_skills).run(tailored)


def check(tailored, original: ResumeData, strict_skills: bool = False) -> ValidationReport:
    """Like ``validate`` but reports instead of raising on truth-lock violations."""
    guard = _Guard(original, strict_skills)
    try:
        repaired = guard.run(tailored)
    except ValidationError as e:
        logger.error("Tailored resume rejected (%s): %s", e.kind, e.message)
        errors = guard.issues + [ValidationIssue(field=e.field, reason=e.message, kind=e.kind)]
        return ValidationReport(False, None, guard.rejected_skills, errors)
    return ValidationReport(True, repaired, guard.rejected_skills, guard.issues)
