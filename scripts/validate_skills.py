#!/usr/bin/env python3
"""
Skills Validator - Skill Validator CLI

Validates skill directories (SKILL.md + references/) before they are packaged
by the skills CLI: frontmatter, naming rules, size budgets, and the link graph
between SKILL.md and references/.

Usage:
    uv run python scripts/validate_skills.py                       # every skill in skills/
    uv run python scripts/validate_skills.py skills/react-hooks    # one skill
    uv run python scripts/validate_skills.py skills/react-hooks/references/state.md
    uv run python scripts/validate_skills.py --skill react-hooks --verbose
    uv run python scripts/validate_skills.py --fix --json

Exit codes:
    0 - No errors (warnings allowed)
    1 - Errors found, or invalid invocation (missing path, unknown skill, bad config)
"""

from __future__ import annotations

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import NoReturn

from skills_config import ConfigError, ValidatorConfig, load_config
from skills_frontmatter import normalize_tags
from skills_rules import RULE_IDS, check_description_overlap, run_rules
from skills_scanner import (
    REFERENCES_DIR,
    SKILL_FILE,
    SKILLS_DIR,
    SkillEntry,
    SkillNotFoundError,
    list_skill_dirs,
    read_skill,
    resolve_skill_dirs,
)
from skills_validation_common import (
    EXIT_ERROR,
    ValidationFinding,
    ValidationReport,
    colorize,
    format_finding,
    format_summary_line,
    use_color,
)
from skills_xref import check_cross_references


def validate_skill(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """Run the rule table and the cross-reference linker on one skill."""
    return run_rules(entry, config) + check_cross_references(entry)


def _read_and_validate(skill_dir: Path, config: ValidatorConfig) -> tuple[SkillEntry, list[ValidationFinding]]:
    entry = read_skill(skill_dir)
    return entry, validate_skill(entry, config)


def validate_skill_dirs(skill_dirs: list[Path], config: ValidatorConfig, jobs: int = 1) -> ValidationReport:
    """Validate skill directories and collect one report.

    Skills are independent, so with jobs > 1 they are validated in a thread
    pool; results are merged in input order so the report does not depend on
    scheduling.
    """
    if jobs > 1 and len(skill_dirs) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            results = list(executor.map(lambda d: _read_and_validate(d, config), skill_dirs))
    else:
        results = [_read_and_validate(d, config) for d in skill_dirs]

    report = ValidationReport()
    for entry, findings in results:
        report.add_skill(entry.name, findings)

    if len(results) > 1:
        report.extend(check_description_overlap([entry for entry, _ in results], config))
    return report


def apply_tag_fixes(skill_dirs: list[Path]) -> list[Path]:
    """Collapse multi-line tag arrays in SKILL.md and references/*.md in place.

    Returns:
        Files that were rewritten
    """
    fixed: list[Path] = []
    for skill_dir in skill_dirs:
        candidates = [skill_dir / SKILL_FILE]
        refs_dir = skill_dir / REFERENCES_DIR
        if refs_dir.is_dir():
            candidates.extend(sorted(refs_dir.glob("*.md")))
        for path in candidates:
            if not path.is_file():
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                continue
            new_content, changed = normalize_tags(content)
            if changed:
                path.write_text(new_content, encoding="utf-8")
                fixed.append(path)
    return fixed


# =============================================================================
# Report Output
# =============================================================================


def print_results(report: ValidationReport, verbose: bool = False, color: bool = False) -> None:
    """Print validation results in human-readable format."""
    if report.skills_scanned > 1:
        print(f"Validating {report.skills_scanned} skill(s)...\n")

    for name in report.skill_names:
        findings = report.findings_for(name)
        errors = sum(1 for f in findings if f.is_error)
        warnings = len(findings) - errors

        if errors:
            print(colorize(f"x {name}: FAILED", "error", color))
        elif warnings:
            print(f"  {name}: valid ({warnings} warning(s))")
        else:
            print(colorize(f"  {name}: passed", "passed", color))

        for finding in findings:
            print(f"    {format_finding(finding, color)}")

    if verbose:
        print("\nRules:")
        print(f"  {'rule':<28} {'pass':>5} {'warn':>5} {'fail':>5}")
        for rule_id, counts in report.rule_tally(RULE_IDS).items():
            print(f"  {rule_id:<28} {counts['pass']:>5} {counts['warn']:>5} {counts['fail']:>5}")

    failed = report.failed_skills()
    print()
    if failed:
        print(colorize(f"x {len(failed)} skill(s) failed: {', '.join(failed)}", "error", color))
    print(format_summary_line(report))


def print_json(report: ValidationReport) -> None:
    """Print validation results as JSON."""
    print(report.to_json())


class UsageError(Exception):
    """Raised for invalid command line arguments."""


class ValidatorArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_parser() -> ValidatorArgumentParser:
    parser = ValidatorArgumentParser(description="Validate skill directories (SKILL.md + references/)")
    parser.add_argument(
        "paths",
        nargs="*",
        help="Skill directories, directories of skills, or files inside a skill (default: every skill in --root)",
    )
    parser.add_argument("--root", default=SKILLS_DIR, help="Skills root directory (default: skills)")
    parser.add_argument("--skill", metavar="NAME", help="Validate only the named skill under --root")
    parser.add_argument("--config", metavar="FILE", help="TOML config file (default: .skills-validator.toml)")
    parser.add_argument("--fix", action="store_true", help="Collapse multi-line tag arrays before validating")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show per-rule pass/warn/fail counts")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument("--jobs", "-j", type=int, default=1, help="Validate skills in N worker threads")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        if args.jobs < 1:
            parser.error("--jobs must be at least 1")
        if args.skill and args.paths:
            parser.error("--skill cannot be combined with path arguments")
    except UsageError as e:
        parser.print_usage(sys.stderr)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        config = load_config(Path(args.config) if args.config else None)
        root = Path(args.root)
        if args.skill:
            skill_dirs = list_skill_dirs(root, args.skill)
        else:
            skill_dirs = resolve_skill_dirs(args.paths, root)
    except (ConfigError, SkillNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.fix:
        for path in apply_tag_fixes(skill_dirs):
            print(f"Fixed multi-line tags: {path}", file=sys.stderr)

    report = validate_skill_dirs(skill_dirs, config, jobs=args.jobs)

    if args.json:
        print_json(report)
    else:
        print_results(report, verbose=args.verbose, color=use_color(sys.stdout, disabled=args.no_color))

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
