#!/usr/bin/env python3
"""
Skills Validator - Common Module

Shared validation infrastructure for the skill validator.
This module contains:
- Type definitions (Severity, ValidationFinding, ValidationReport)
- Exit codes
- Terminal formatting (colors, finding lines, summary line)

All validator modules import from this module to ensure consistency.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from typing import Literal, TextIO

# =============================================================================
# Type Definitions
# =============================================================================

# Finding severity levels
# - error: fails the run (non-zero exit code)
# - warning: always reported, never changes the exit code
Severity = Literal["error", "warning"]

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No errors (warnings allowed)
EXIT_ERROR = 1  # Errors found, or invalid invocation

# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ValidationFinding:
    """Single rule violation.

    Attributes:
        skill_name: Directory name of the skill the finding belongs to
        severity: "error" or "warning"
        rule_id: Identifier of the rule that produced the finding
        message: Human-readable description
        file: Optional path relative to the skill directory
        line: Optional 1-based line number in the file
    """

    skill_name: str
    severity: Severity
    rule_id: str
    message: str
    file: str | None = None
    line: int | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def to_dict(self) -> dict[str, str | int]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, str | int] = {
            "skill": self.skill_name,
            "severity": self.severity,
            "rule": self.rule_id,
            "message": self.message,
        }
        if self.file is not None:
            result["file"] = self.file
        if self.line is not None:
            result["line"] = self.line
        return result


def error(
    skill_name: str, rule_id: str, message: str, file: str | None = None, line: int | None = None
) -> ValidationFinding:
    """Build an error-severity finding."""
    return ValidationFinding(skill_name, "error", rule_id, message, file, line)


def warning(
    skill_name: str, rule_id: str, message: str, file: str | None = None, line: int | None = None
) -> ValidationFinding:
    """Build a warning-severity finding."""
    return ValidationFinding(skill_name, "warning", rule_id, message, file, line)


@dataclass
class ValidationReport:
    """Aggregate result of one validation run.

    Findings are collected eagerly (the run never stops at the first error)
    and are only ever appended, never mutated.
    """

    findings: list[ValidationFinding] = field(default_factory=list)
    skill_names: list[str] = field(default_factory=list)

    def add_skill(self, skill_name: str, findings: list[ValidationFinding]) -> None:
        """Record one scanned skill together with its findings."""
        self.skill_names.append(skill_name)
        self.findings.extend(findings)

    def extend(self, findings: list[ValidationFinding]) -> None:
        """Append findings that do not belong to a single scan step (cross-skill checks)."""
        self.findings.extend(findings)

    def merge(self, other: ValidationReport) -> None:
        """Merge results from another report into this one."""
        self.skill_names.extend(other.skill_names)
        self.findings.extend(other.findings)

    @property
    def skills_scanned(self) -> int:
        return len(self.skill_names)

    @property
    def error_count(self) -> int:
        return sum(1 for f in self.findings if f.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self.findings if not f.is_error)

    @property
    def exit_code(self) -> int:
        """Exit code: only errors fail the run, warnings never do."""
        return EXIT_ERROR if self.error_count else EXIT_OK

    def findings_for(self, skill_name: str) -> list[ValidationFinding]:
        """Get all findings of one skill, in report order."""
        return [f for f in self.findings if f.skill_name == skill_name]

    def failed_skills(self) -> list[str]:
        """Names of skills with at least one error, in scan order."""
        failed = {f.skill_name for f in self.findings if f.is_error}
        return [name for name in self.skill_names if name in failed]

    def rule_tally(self, rule_ids: list[str]) -> dict[str, dict[str, int]]:
        """Count, per rule, how many scanned skills passed, warned or failed it.

        A skill fails a rule if the rule produced at least one error for it,
        warns if it produced only warnings, and passes otherwise.
        """
        worst: dict[tuple[str, str], Severity] = {}
        for f in self.findings:
            key = (f.rule_id, f.skill_name)
            if worst.get(key) != "error":
                worst[key] = f.severity

        all_rules = list(rule_ids) + sorted({f.rule_id for f in self.findings} - set(rule_ids))
        tally: dict[str, dict[str, int]] = {}
        for rule_id in all_rules:
            counts = {"pass": 0, "warn": 0, "fail": 0}
            for name in self.skill_names:
                level = worst.get((rule_id, name))
                if level == "error":
                    counts["fail"] += 1
                elif level == "warning":
                    counts["warn"] += 1
                else:
                    counts["pass"] += 1
            tally[rule_id] = counts
        return tally

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "skills_scanned": self.skills_scanned,
            "errors": self.error_count,
            "warnings": self.warning_count,
            "exit_code": self.exit_code,
            "failed_skills": self.failed_skills(),
            "findings": [f.to_dict() for f in self.findings],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert report to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# =============================================================================
# Color Formatting (for terminal output)
# =============================================================================

# ANSI color codes
COLORS = {
    "error": "\033[91m",  # Red
    "warning": "\033[93m",  # Yellow
    "passed": "\033[92m",  # Green
    "info": "\033[90m",  # Gray
    "RESET": "\033[0m",
    "BOLD": "\033[1m",
}


def use_color(stream: TextIO | None = None, disabled: bool = False) -> bool:
    """Decide whether ANSI colors should be written to the stream.

    Colors are off when disabled explicitly, when NO_COLOR is set, or when the
    stream is not a terminal, so piped output stays byte-stable.
    """
    if disabled or os.environ.get("NO_COLOR"):
        return False
    stream = stream or sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


def colorize(text: str, level: str, enabled: bool = True) -> str:
    """Apply color to text based on level."""
    if not enabled:
        return text
    color = COLORS.get(level, "")
    return f"{color}{text}{COLORS['RESET']}"


def format_finding(finding: ValidationFinding, color: bool = False) -> str:
    """Format a single finding for terminal output."""
    tag = colorize(f"[{finding.severity.upper()}]", finding.severity, color)
    text = f"{tag} {finding.rule_id}: {finding.message}"
    if finding.file:
        location = finding.file
        if finding.line:
            location += f":{finding.line}"
        text += f" ({location})"
    return text


def format_summary_line(report: ValidationReport) -> str:
    """Final summary line: 'N skills, E errors, W warnings'."""
    return f"{report.skills_scanned} skills, {report.error_count} errors, {report.warning_count} warnings"
