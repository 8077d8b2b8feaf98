#!/usr/bin/env python3
"""Tests for skills_validation_common.py - findings, reports and formatting."""

import io
import json

import pytest

from skills_validation_common import (
    EXIT_ERROR,
    EXIT_OK,
    ValidationReport,
    colorize,
    error,
    format_finding,
    format_summary_line,
    use_color,
    warning,
)


class TestExitCode:
    """Exit code is 0 exactly when the report holds no errors."""

    def test_empty_report(self) -> None:
        report = ValidationReport()
        assert report.exit_code == EXIT_OK

    def test_warnings_only(self) -> None:
        report = ValidationReport()
        report.add_skill("react-hooks", [warning("react-hooks", "description-trigger", "no trigger")])
        assert report.warning_count == 1
        assert report.exit_code == EXIT_OK

    def test_any_error_fails(self) -> None:
        report = ValidationReport()
        report.add_skill("react-hooks", [warning("react-hooks", "description-trigger", "no trigger")])
        report.add_skill("vue-router", [error("vue-router", "name-format", "bad name")])
        assert report.error_count == 1
        assert report.exit_code == EXIT_ERROR
        assert report.failed_skills() == ["vue-router"]


class TestReport:
    """Tests for report aggregation."""

    def test_findings_for_keeps_order(self) -> None:
        report = ValidationReport()
        first = error("react-hooks", "name-format", "a")
        second = warning("react-hooks", "description-trigger", "b")
        report.add_skill("react-hooks", [first, second])
        report.add_skill("vue-router", [])
        assert report.findings_for("react-hooks") == [first, second]
        assert report.findings_for("vue-router") == []
        assert report.skills_scanned == 2

    def test_merge(self) -> None:
        a, b = ValidationReport(), ValidationReport()
        a.add_skill("react-hooks", [])
        b.add_skill("vue-router", [error("vue-router", "name-format", "x")])
        a.merge(b)
        assert a.skill_names == ["react-hooks", "vue-router"]
        assert a.error_count == 1

    def test_rule_tally(self) -> None:
        """Each skill counts once per rule, with its worst severity."""
        report = ValidationReport()
        report.add_skill(
            "react-hooks",
            [
                warning("react-hooks", "skill-line-budget", "long"),
                error("react-hooks", "reference-orphaned", "a"),
                error("react-hooks", "reference-orphaned", "b"),
            ],
        )
        report.add_skill("vue-router", [warning("vue-router", "reference-orphaned", "c")])
        tally = report.rule_tally(["skill-line-budget", "reference-orphaned", "name-format"])
        assert tally == {
            "skill-line-budget": {"pass": 1, "warn": 1, "fail": 0},
            "reference-orphaned": {"pass": 0, "warn": 1, "fail": 1},
            "name-format": {"pass": 2, "warn": 0, "fail": 0},
        }

    def test_to_json(self) -> None:
        report = ValidationReport()
        report.add_skill("react-hooks", [error("react-hooks", "reference-dangling", "dangling", "SKILL.md", 12)])
        data = json.loads(report.to_json())
        assert data["skills_scanned"] == 1
        assert data["errors"] == 1
        assert data["exit_code"] == 1
        assert data["failed_skills"] == ["react-hooks"]
        assert data["findings"] == [
            {
                "skill": "react-hooks",
                "severity": "error",
                "rule": "reference-dangling",
                "message": "dangling",
                "file": "SKILL.md",
                "line": 12,
            }
        ]

    def test_optional_location_omitted(self) -> None:
        assert "file" not in error("react-hooks", "name-format", "x").to_dict()


class TestFormatting:
    """Tests for terminal output helpers."""

    def test_format_finding_with_location(self) -> None:
        finding = error("react-hooks", "skill-line-budget", "no code", "SKILL.md", 14)
        assert format_finding(finding) == "[ERROR] skill-line-budget: no code (SKILL.md:14)"

    def test_format_finding_without_location(self) -> None:
        finding = warning("react-hooks", "description-overlap", "similar")
        assert format_finding(finding) == "[WARNING] description-overlap: similar"

    def test_summary_line(self) -> None:
        report = ValidationReport()
        report.add_skill("react-hooks", [error("react-hooks", "name-format", "x")])
        report.add_skill("vue-router", [warning("vue-router", "description-trigger", "y")])
        assert format_summary_line(report) == "2 skills, 1 errors, 1 warnings"

    def test_colorize(self) -> None:
        assert colorize("x", "error", enabled=False) == "x"
        assert colorize("x", "error").startswith("\033[91m")

    def test_no_color_for_pipes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert use_color(io.StringIO()) is False

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        class Tty(io.StringIO):
            def isatty(self) -> bool:
                return True

        monkeypatch.delenv("NO_COLOR", raising=False)
        assert use_color(Tty()) is True
        assert use_color(Tty(), disabled=True) is False
        monkeypatch.setenv("NO_COLOR", "1")
        assert use_color(Tty()) is False
