#!/usr/bin/env python3
"""
Skills Validator - Structural Rule Checker

Every rule is a pure function of (SkillEntry, ValidatorConfig) returning the
findings it produced. Rules never touch the filesystem and never look at each
other's results, so they can run in any order.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from skills_config import ValidatorConfig
from skills_scanner import SKILL_FILE, SkillEntry
from skills_validation_common import ValidationFinding, error, warning
from skills_xref import FENCE_CLOSE, FENCE_OPEN, TEXT, iter_markdown_lines

Rule = Callable[[SkillEntry, ValidatorConfig], list[ValidationFinding]]

# =============================================================================
# Patterns and Word Lists
# =============================================================================

RE_SKILL_NAME = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
RE_XML_TAG = re.compile(r"<[a-zA-Z/][^>]*>")
RE_TRIGGER_PHRASE = re.compile(r"\buse\s+(?:when|for)\b", re.IGNORECASE)
RE_WORD = re.compile(r"[a-z]+")
RE_SECTION_HEADING = re.compile(r"^##\s+(.+?)\s*#*\s*$")

# Openings that address the reader instead of describing the skill
FIRST_PERSON_OPENERS = frozenset({"i", "you", "we"})

# Phrases that say nothing about when a skill applies
VAGUE_PATTERNS = [
    (re.compile(r"\bhelps?\s+with\b"), "helps with"),
    (re.compile(r"\bworks?\s+with\b"), "works with"),
    (re.compile(r"\bassists?\s+with\b"), "assists with"),
    (re.compile(r"\bfor\s+working\s+with\b"), "for working with"),
    (re.compile(r"\bhandles?\b"), "handles"),
    (re.compile(r"\bmanages?\b"), "manages"),
]

# Words that carry no trigger meaning in a description
COMMON_WORDS = frozenset(
    """
    use when for the and or to in on with this that is are be been being have has had do does did
    will would could should may might must shall can need about into through during before after
    above below from up down out off over under again further then once here there all each few
    more most other some such no nor not only own same so than too very just also now of a an as
    at by if it its any how what which who whom these those am was were you your they them their
    we our i me my he she him her his hers skill skills best practices patterns creating building
    implementing working handling managing using
    """.split()
)

# =============================================================================
# Naming Rules
# =============================================================================


def check_skill_file(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """SKILL.md must exist."""
    if entry.has_skill_file:
        return []
    return [error(entry.name, "skill-file-missing", "missing SKILL.md", SKILL_FILE)]


def check_name_length(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    if len(entry.name) >= config.min_name_length:
        return []
    return [
        error(
            entry.name,
            "name-length",
            f"directory name '{entry.name}' is too short ({len(entry.name)} chars, min "
            f"{config.min_name_length}); use a descriptive name, not an abbreviation",
        )
    ]


def check_name_reserved(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """Directory name must not be a CLI command/flag token or contain a reserved word."""
    name = entry.name.lower()
    if name in config.reserved_names:
        return [error(entry.name, "name-reserved", f"directory name '{entry.name}' is a reserved CLI command")]
    if name.startswith("-"):
        return [error(entry.name, "name-reserved", f"directory name '{entry.name}' looks like a CLI flag")]
    return [
        error(entry.name, "name-reserved", f"directory name '{entry.name}' contains reserved word '{word}'")
        for word in sorted(config.reserved_words)
        if word in name
    ]


def check_name_format(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    findings = []
    if not RE_SKILL_NAME.match(entry.name):
        findings.append(
            error(
                entry.name,
                "name-format",
                f"directory name '{entry.name}' must use lowercase letters, digits and single hyphens",
            )
        )
    if len(entry.name) > config.max_name_length:
        findings.append(
            error(
                entry.name,
                "name-format",
                f"directory name exceeds {config.max_name_length} characters ({len(entry.name)} chars)",
            )
        )
    return findings


# =============================================================================
# Frontmatter Rules
# =============================================================================


def check_frontmatter(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """Report parse failures of SKILL.md and of every reference file."""
    findings = []
    sources = [(SKILL_FILE, entry.frontmatter_error)] + [(r.path, r.frontmatter_error) for r in entry.references]
    for file, fm_error in sources:
        if fm_error is None:
            continue
        message = fm_error.message
        if fm_error.fixable:
            message += " (run with --fix to collapse it)"
        findings.append(error(entry.name, fm_error.rule_id, message, file, fm_error.line))
    return findings


def check_name_mismatch(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    fm = entry.frontmatter
    if fm is None or fm.name == entry.name:
        return []
    return [
        error(
            entry.name,
            "frontmatter-name-mismatch",
            f"frontmatter name '{fm.name}' does not match directory name '{entry.name}'",
            SKILL_FILE,
        )
    ]


def check_unknown_fields(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    if entry.frontmatter is None:
        return []
    return [
        warning(
            entry.name,
            "frontmatter-unknown-field",
            f"unknown frontmatter field '{key}' (may be ignored by the skills CLI)",
            SKILL_FILE,
        )
        for key in entry.frontmatter.extra_fields
    ]


def check_description(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """Description drives agent discovery: bounded length, plain text, explicit triggers."""
    fm = entry.frontmatter
    if fm is None:
        return []

    findings = []
    if len(fm.description) > config.max_description_length:
        findings.append(
            error(
                entry.name,
                "description-length",
                f"description exceeds {config.max_description_length} characters ({len(fm.description)} chars)",
                SKILL_FILE,
            )
        )
    for field_name, value in (("name", fm.name), ("description", fm.description)):
        if RE_XML_TAG.search(value):
            findings.append(
                error(entry.name, "description-xml", f"'{field_name}' must not contain XML tags", SKILL_FILE)
            )
    if not RE_TRIGGER_PHRASE.search(fm.description):
        findings.append(
            warning(
                entry.name,
                "description-trigger",
                "description should include a trigger phrase like 'Use when...' or 'Use for...'",
                SKILL_FILE,
            )
        )
    return findings


def check_description_quality(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """Third-person voice, specific wording, and enough keywords after 'Use for'."""
    fm = entry.frontmatter
    if fm is None:
        return []

    findings = []
    desc = fm.description.lower()
    words = desc.split()
    if words and words[0] in FIRST_PERSON_OPENERS:
        findings.append(
            warning(
                entry.name,
                "description-voice",
                "description should use third-person voice ('Extracts text from PDFs', not 'I help you')",
                SKILL_FILE,
            )
        )
    for pattern, term in VAGUE_PATTERNS:
        if pattern.search(desc):
            findings.append(
                warning(
                    entry.name,
                    "description-vague",
                    f"vague term '{term}' in description; name specific triggers instead",
                    SKILL_FILE,
                )
            )
    if "use for" in desc:
        triggers = extract_trigger_words(desc.split("use for", 1)[1])
        if len(triggers) < config.min_trigger_words:
            findings.append(
                warning(
                    entry.name,
                    "description-trigger-density",
                    f"only {len(triggers)} keywords after 'Use for' (min {config.min_trigger_words})",
                    SKILL_FILE,
                )
            )
    return findings


# =============================================================================
# Size and Content Rules
# =============================================================================


def check_skill_line_budget(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    count = entry.line_count
    if count > config.skill_max_lines:
        return [
            error(
                entry.name,
                "skill-line-budget",
                f"SKILL.md is {count} lines (max {config.skill_max_lines}); split details into references/",
                SKILL_FILE,
            )
        ]
    if count > config.skill_target_lines:
        return [
            warning(
                entry.name,
                "skill-line-budget",
                f"SKILL.md is {count} lines (target ~{config.skill_target_lines})",
                SKILL_FILE,
            )
        ]
    return []


def check_skill_code_blocks(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """SKILL.md is an index; code belongs in reference files.

    Reported under skill-line-budget, the hard half of the SKILL.md size rule.
    """
    findings = []
    open_line: int | None = None
    for offset, _line, kind in iter_markdown_lines(entry.body):
        if kind == FENCE_OPEN:
            open_line = entry.body_start_line + offset
            findings.append(
                error(
                    entry.name,
                    "skill-line-budget",
                    "SKILL.md must not contain code blocks; move examples to references/",
                    SKILL_FILE,
                    open_line,
                )
            )
        elif kind == FENCE_CLOSE:
            open_line = None
    if open_line is not None:
        findings.append(
            error(
                entry.name,
                "skill-line-budget",
                f"unclosed code block starting at line {open_line}",
                SKILL_FILE,
                open_line,
            )
        )
    return findings


def check_required_sections(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """Every SKILL.md carries the standard `## ...` sections outside code blocks."""
    if not entry.has_skill_file:
        return []

    headings = set()
    for _offset, line, kind in iter_markdown_lines(entry.body):
        match = RE_SECTION_HEADING.match(line) if kind == TEXT else None
        if match:
            headings.add(match.group(1).lower())
    return [
        warning(entry.name, "skill-required-section", f"missing '## {section}' section", SKILL_FILE)
        for section in config.required_sections
        if not any(heading.startswith(section.lower()) for heading in headings)
    ]


def check_reference_line_budget(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    return [
        error(
            entry.name,
            "reference-line-budget",
            f"{ref.name} is {ref.line_count} lines (max {config.reference_max_lines})",
            ref.path,
        )
        for ref in entry.references
        if ref.line_count > config.reference_max_lines
    ]


def check_cli_excluded(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """Files the skills CLI silently drops would go missing after install."""
    candidates = list(entry.top_level_files) + sorted(entry.reference_listing)
    findings = []
    for path in candidates:
        name = path.rsplit("/", 1)[-1]
        if config.is_cli_excluded(name):
            findings.append(
                error(
                    entry.name,
                    "filename-cli-excluded",
                    f"'{path}' is excluded by the skills CLI during installation",
                    path,
                )
            )
    return findings


def check_scripts_executable(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    return [
        warning(entry.name, "script-not-executable", f"script not executable: {s.path} (run chmod +x)", s.path)
        for s in entry.scripts
        if not s.executable
    ]


# =============================================================================
# Rule Table
# =============================================================================

RULES: list[Rule] = [
    check_skill_file,
    check_name_length,
    check_name_reserved,
    check_name_format,
    check_frontmatter,
    check_name_mismatch,
    check_unknown_fields,
    check_description,
    check_description_quality,
    check_skill_line_budget,
    check_skill_code_blocks,
    check_required_sections,
    check_reference_line_budget,
    check_cli_excluded,
    check_scripts_executable,
]

# Every rule id a finding can carry, in report order
RULE_IDS = [
    "skill-file-missing",
    "name-length",
    "name-reserved",
    "name-format",
    "frontmatter-malformed",
    "frontmatter-missing-field",
    "frontmatter-tags-format",
    "frontmatter-name-mismatch",
    "frontmatter-unknown-field",
    "description-length",
    "description-xml",
    "description-trigger",
    "description-voice",
    "description-vague",
    "description-trigger-density",
    "skill-line-budget",
    "skill-required-section",
    "reference-line-budget",
    "filename-cli-excluded",
    "script-not-executable",
    "reference-dangling",
    "reference-orphaned",
    "description-overlap",
]


def run_rules(entry: SkillEntry, config: ValidatorConfig) -> list[ValidationFinding]:
    """Apply the whole rule table to one skill."""
    findings: list[ValidationFinding] = []
    for rule in RULES:
        findings.extend(rule(entry, config))
    return findings


# =============================================================================
# Cross-Skill Checks
# =============================================================================


def extract_trigger_words(description: str) -> set[str]:
    return {w for w in RE_WORD.findall(description.lower()) if w not in COMMON_WORDS}


def check_description_overlap(entries: list[SkillEntry], config: ValidatorConfig) -> list[ValidationFinding]:
    """Warn about skill pairs whose descriptions would trigger on the same requests.

    Similarity is the Jaccard index of the trigger words of both descriptions;
    the warning is attributed to the first skill of the pair.
    """
    described = [(e.name, extract_trigger_words(e.frontmatter.description)) for e in entries if e.frontmatter]
    findings = []
    for i, (name1, words1) in enumerate(described):
        if not words1:
            continue
        for name2, words2 in described[i + 1 :]:
            if not words2:
                continue
            common = words1 & words2
            similarity = len(common) / len(words1 | words2)
            if similarity >= config.description_overlap_threshold:
                findings.append(
                    warning(
                        name1,
                        "description-overlap",
                        f"description is similar to '{name2}' ({round(similarity * 100)}% overlap, "
                        f"common: {', '.join(sorted(common)[:5])})",
                        SKILL_FILE,
                    )
                )
    return findings
