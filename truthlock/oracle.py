"""Rewrite oracle boundary (Anthropic Messages API).

The oracle is a black box that returns *unvalidated* text. This module:
1. Calls the model with the truth-lock rewrite prompt (with retry on
   transient 429/529/overloaded errors; the core never retries).
2. Strips Markdown code fences and parses the JSON, telling a response cut off
   by the token limit apart from one that is simply malformed.
3. Hands the parsed dict to the Fabrication Guard.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

import anthropic

from truthlock import config
from truthlock.errors import MalformedJSON, OracleError, TruncatedResponse
from truthlock.resume_schema import ResumeData
from truthlock.validator import ValidationReport, check

logger = logging.getLogger(__name__)

# Backoff delays in seconds: 5s, 10s, 20s
RETRY_DELAYS = [5, 10, 20]
MAX_RETRIES = 3

RETRY_HINT = "Try again, or shorten the resume / job description."

REWRITE_PROMPT = """You tailor resumes to a job description under a strict truth-lock.

You MAY:
- Reword bullets and the summary using the job description's vocabulary.
- Reorder bullets within a role and reorder skills.
- Mark a bullet that is weakly relevant by prefixing it with [LESS_RELEVANT] (never delete bullets).

You MUST NOT:
- Change the name, email, phone, location or LinkedIn.
- Change any company name, start date or end date.
- Change a job title beyond minor wording (no added seniority).
- Add jobs, education entries, skills or certifications that are not in the original.

Return ONLY a JSON object with exactly the original's shape:
{"personalInfo": {...}, "summary": "...", "workExperience": [{"company", "title", "startDate", "endDate", "bullets"}],
 "education": [{"institution", "degree", "field", "graduationDate"}], "skills": [...], "certifications": [...]}"""

STRUCTURE_PROMPT = """Convert the resume text below into JSON with this shape and nothing else:
{"personalInfo": {"name", "email", "phone", "location", "linkedIn"}, "summary": "...",
 "workExperience": [{"company", "title", "startDate", "endDate", "bullets": [...]}],
 "education": [{"institution", "degree", "field", "graduationDate"}], "skills": [...], "certifications": [...]}
Copy values verbatim. Use "Present" for a current role's end date. Omit fields that are absent; never invent values."""


@dataclass
class OracleReply:
    text: str
    stop_reason: Optional[str] = None


# --- Retry ---

def _is_retryable_error(exc: Exception) -> bool:
    """True for transient API failures (rate limit, overload, 5xx, connection)."""
    if isinstance(exc, (anthropic.RateLimitError, anthropic.InternalServerError, anthropic.APIConnectionError)):
        return True
    status = getattr(exc, "status_code", None)
    if status in (429, 529):
        return True
    msg = str(exc).lower()
    return "overloaded" in msg or "rate limit" in msg or "rate_limit" in msg


def messages_create_with_retry(client, sleep=time.sleep, **kwargs):
    """client.messages.create with backoff (5s, 10s, 20s) on transient errors.

    Non-retryable errors, and the last transient one, are re-raised.
    """
    for attempt in range(MAX_RETRIES + 1):
        try:
            return client.messages.create(**kwargs)
        except Exception as e:
            if attempt >= MAX_RETRIES or not _is_retryable_error(e):
                raise
            delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
            logger.warning(
                "Anthropic API transient error (attempt %d/%d): %s. Retrying in %ds...",
                attempt + 1, MAX_RETRIES + 1, str(e)[:200], delay,
            )
            sleep(delay)


def _call(client, prompt: str, max_tokens: int) -> OracleReply:
    client = client or anthropic.Anthropic()
    try:
        message = messages_create_with_retry(
            client,
            model=config.CLAUDE_MODEL,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
    except Exception as e:
        logger.error("Oracle call failed: %s", e)
        raise OracleError(f"Rewrite service unavailable: {e}") from e
    text = "".join(getattr(block, "text", "") for block in message.content)
    return OracleReply(text=text, stop_reason=getattr(message, "stop_reason", None))


# --- Response parsing ---

def _extract_json_from_response(response_text: str) -> str:
    """Strip markdown code fences if present and return the JSON string."""
    text = (response_text or "").strip()
    if text.startswith("```"):
        lines = text.split("\n")[1:]
        json_lines = []
        for line in lines:
            if line.strip() == "```":
                break
            json_lines.append(line)
        return "\n".join(json_lines).strip()
    return text


def _unbalanced(text: str) -> bool:
    """True if braces/brackets (outside string literals) never close, i.e. the text was cut off."""
    depth = 0
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
    return depth > 0 or in_string


def parse_tailored_response(response_text: str, stop_reason: Optional[str] = None) -> dict:
    """Parse oracle text into a resume dict.

    Raises:
        TruncatedResponse: output hit the token limit or its braces never close.
        MalformedJSON: anything else that is not a JSON object.
    """
    json_str = _extract_json_from_response(response_text)
    if not json_str:
        raise MalformedJSON(f"Rewrite returned an empty response. {RETRY_HINT}")
    try:
        result = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse oracle output as JSON: %s", e)
        logger.error("Response preview: %s", json_str[:800])
        if stop_reason == "max_tokens" or _unbalanced(json_str):
            raise TruncatedResponse(
                f"Rewrite was cut off before the JSON finished. {RETRY_HINT}"
            ) from e
        raise MalformedJSON(f"Rewrite returned invalid JSON ({e.msg}). {RETRY_HINT}") from e

    # Unwrap if the model returned {"resume": {...}}
    if isinstance(result, dict) and isinstance(result.get("resume"), dict) and "personalInfo" not in result:
        result = result["resume"]
    if not isinstance(result, dict):
        raise MalformedJSON(f"Rewrite returned {type(result).__name__}, expected a JSON object. {RETRY_HINT}")
    return result


# --- Public API ---

def rewrite(original: ResumeData, job_description: str, match_analysis: Optional[dict] = None,
            client=None, max_tokens: Optional[int] = None) -> OracleReply:
    """Ask the model for a tailored version of ``original``. Output is NOT validated."""
    prompt = (
        f"{REWRITE_PROMPT}\n\n---\n\nJOB DESCRIPTION:\n{job_description.strip()}\n\n"
        f"---\n\nORIGINAL RESUME (JSON):\n{json.dumps(original.to_dict(), indent=2)}"
    )
    if match_analysis:
        prompt += f"\n\n---\n\nMATCH ANALYSIS:\n{json.dumps(match_analysis, indent=2)}"
    logger.info("Requesting tailored rewrite for %s...", original.personal_info.name)
    reply = _call(client, prompt, max_tokens or config.ORACLE_MAX_TOKENS)
    if reply.stop_reason == "max_tokens":
        logger.warning("Rewrite stopped at the token limit (%d chars returned)", len(reply.text))
    return reply


def tailor_resume(original: ResumeData, job_description: str, match_analysis: Optional[dict] = None,
                  client=None, strict_skills: bool = False) -> ValidationReport:
    """rewrite -> parse -> truth-lock check.

    Oracle failures raise (OracleError and its subclasses); truth-lock
    violations come back as an invalid ValidationReport.
    """
    reply = rewrite(original, job_description, match_analysis, client=client)
    tailored = parse_tailored_response(reply.text, reply.stop_reason)
    report = check(tailored, original, strict_skills=strict_skills)
    if report.rejected_skills:
        logger.info("Rejected %d skill(s) not in the original: %s",
                    len(report.rejected_skills), ", ".join(report.rejected_skills))
    return report


def structure_resume(raw_text: str, client=None) -> ResumeData:
    """Turn extracted resume text into ResumeData (values copied, not invented)."""
    if not (raw_text or "").strip():
        raise ValueError("No resume text to structure.")
    reply = _call(client, f"{STRUCTURE_PROMPT}\n\n---\n\n{raw_text.strip()}", config.ORACLE_MAX_TOKENS)
    data = parse_tailored_response(reply.text, reply.stop_reason)
    return ResumeData.model_validate(data)
