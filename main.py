"""Truth-locked resume tailoring: command-line orchestrator.

Usage:
    python main.py render --resume resume.json [--theme modern] [--out output/]
    python main.py validate --original resume.json --tailored tailored.json
    python main.py score --resume resume.json [--theme classic]
    python main.py tailor --resume resume.json --jd-file jd.txt [--theme professional]
    python main.py extract --pdf uploaded.pdf [--structure]
"""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from truthlock import config  # noqa: E402
from truthlock.errors import TruthLockError  # noqa: E402

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("truthlock")


def _load_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_render(args) -> int:
    from truthlock.generator import generate_output
    from truthlock.resume_schema import ResumeData

    resume = ResumeData.from_json_file(args.resume)
    out_folder = generate_output(resume, args.theme, args.out, max_pages=config.MAX_PAGES)
    print(out_folder)
    return 0


def cmd_validate(args) -> int:
    from truthlock.resume_schema import ResumeData
    from truthlock.validator import check

    original = ResumeData.from_json_file(args.original)
    report = check(_load_json(args.tailored), original, strict_skills=args.strict_skills)
    _print_json(report.to_dict())
    return 0 if report.is_valid else 1


def cmd_score(args) -> int:
    from truthlock.resume_schema import ResumeData
    from truthlock.themes import resolve
    from truthlock.visual_qa import score

    report = score(ResumeData.from_json_file(args.resume), resolve(args.theme), max_pages=config.MAX_PAGES)
    _print_json(report.to_dict())
    return 0


def cmd_tailor(args) -> int:
    from truthlock.generator import generate_output
    from truthlock.oracle import tailor_resume
    from truthlock.resume_schema import ResumeData

    original = ResumeData.from_json_file(args.resume)
    with open(args.jd_file, "r", encoding="utf-8") as f:
        jd_text = f.read()

    report = tailor_resume(original, jd_text, strict_skills=args.strict_skills)
    if not report.is_valid:
        fatal = report.errors[-1]
        logger.error("Tailored resume rejected [%s]: %s", fatal.kind, fatal.reason)
        _print_json(report.to_dict())
        return 1
    out_folder = generate_output(report.repaired_resume, args.theme, args.out,
                                 validation_report=report, max_pages=config.MAX_PAGES)
    print(out_folder)
    return 0


def cmd_extract(args) -> int:
    from truthlock.text_extract import extract_text

    text = extract_text(args.pdf)
    if not args.structure:
        print(text)
        return 0
    from truthlock.oracle import structure_resume

    _print_json(structure_resume(text).to_dict())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Truth-locked resume tailoring and rendering")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("render", help="Render a resume JSON to PDF + DOCX")
    p.add_argument("--resume", required=True, help="Path to resume JSON")
    p.add_argument("--theme", default=config.DEFAULT_THEME, help="classic | professional | modern")
    p.add_argument("--out", default=config.OUTPUT_DIR, help="Output directory")
    p.set_defaults(func=cmd_render)

    p = sub.add_parser("validate", help="Check a tailored resume against the original")
    p.add_argument("--original", required=True)
    p.add_argument("--tailored", required=True)
    p.add_argument("--strict-skills", action="store_true", help="Exact normalized skill matches only")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("score", help="Visual QA score for a resume JSON")
    p.add_argument("--resume", required=True)
    p.add_argument("--theme", default=config.DEFAULT_THEME)
    p.set_defaults(func=cmd_score)

    p = sub.add_parser("tailor", help="Rewrite for a job description, validate, render")
    p.add_argument("--resume", required=True)
    p.add_argument("--jd-file", required=True, help="Path to job description text file")
    p.add_argument("--theme", default=config.DEFAULT_THEME)
    p.add_argument("--out", default=config.OUTPUT_DIR)
    p.add_argument("--strict-skills", action="store_true")
    p.set_defaults(func=cmd_tailor)

    p = sub.add_parser("extract", help="Extract text from a resume PDF")
    p.add_argument("--pdf", required=True)
    p.add_argument("--structure", action="store_true", help="Structure the text into resume JSON via the oracle")
    p.set_defaults(func=cmd_extract)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except TruthLockError as e:
        logger.error("%s: %s", e.kind, e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
