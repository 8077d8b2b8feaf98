#!/usr/bin/env python3
"""
Skills Validator - Frontmatter Parser

Parses the YAML header delimited by `---` fences at the top of SKILL.md and
reference files into typed values.

The skills packager only understands tag arrays written on a single line:

    tags: [react, hooks, "state management"]

Block sequences (`tags:` followed by `- item` lines) and flow sequences spread
over several lines are rejected with a fixable error; `normalize_tags()`
rewrites them into the single-line form.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import yaml

FENCE = "---"

# SKILL.md fields described by the skills packager
SKILL_FIELDS = {"name", "description", "tags", "license", "metadata"}

# Fields understood by the assistants that load skills; tolerated without a warning
AGENT_FIELDS = {
    "allowed-tools",
    "argument-hint",
    "compatibility",
    "context",
    "agent",
    "disable-model-invocation",
    "hooks",
    "model",
    "user-invocable",
}

# Top-level `tags:` key in the frontmatter block
RE_TAGS_KEY = re.compile(r"^tags\s*:(.*)$")

# One item of a single-line tag array: double quoted, single quoted, or plain
_TAG_ITEM = r"""(?:"(?:[^"\\\n]|\\.)*"|'(?:[^'\n]|'')*'|[^\s\[\]{},"'#][^\[\]{},\n]*?)"""

# Whole value of a single-line tag array, with an optional trailing comment
RE_SINGLE_LINE_TAGS = re.compile(rf"^\[\s*(?:{_TAG_ITEM}(?:\s*,\s*{_TAG_ITEM})*\s*,?\s*)?\](?:\s+#.*)?$")

# Tags that can be written without quotes
RE_PLAIN_TAG = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.+/#-]*(?: [A-Za-z0-9_.+/#-]+)*$")

# Plain scalars YAML would not read back as strings
YAML_KEYWORDS = {"true", "false", "yes", "no", "on", "off", "null", "~"}


class FrontmatterError(Exception):
    """Frontmatter could not be turned into a typed value.

    Attributes:
        rule_id: Rule reported for the failure
        message: Human-readable description
        line: 1-based line in the file where the problem was found
        fixable: True when normalize_tags() can repair the file
    """

    def __init__(self, rule_id: str, message: str, line: int | None = None, fixable: bool = False) -> None:
        super().__init__(message)
        self.rule_id = rule_id
        self.message = message
        self.line = line
        self.fixable = fixable


@dataclass(frozen=True)
class SkillFrontmatter:
    """Frontmatter of a SKILL.md file."""

    name: str
    description: str
    tags: tuple[str, ...] = ()
    license: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    extra_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReferenceFrontmatter:
    """Frontmatter of a references/*.md file."""

    title: str
    description: str
    tags: tuple[str, ...]


class TagsEntry(NamedTuple):
    """Position of the `tags` entry inside the frontmatter block (0-based, inclusive)."""

    start: int
    end: int

    @property
    def is_multiline(self) -> bool:
        return self.end > self.start


# =============================================================================
# Splitting and tag syntax
# =============================================================================


def split_frontmatter(content: str) -> tuple[str, str, int]:
    """Split a markdown file into its frontmatter and body.

    Returns:
        Tuple of (frontmatter_text, body, body_start_line) where body_start_line
        is the 1-based line number of the first body line

    Raises:
        FrontmatterError: the file does not start with a fence or the closing fence is missing
    """
    lines = content.lstrip("\ufeff").splitlines()
    if not lines or lines[0].strip() != FENCE:
        raise FrontmatterError("frontmatter-malformed", "malformed frontmatter: file must start with ---", line=1)

    for idx in range(1, len(lines)):
        if lines[idx].strip() == FENCE:
            return "\n".join(lines[1:idx]), "\n".join(lines[idx + 1 :]), idx + 2

    raise FrontmatterError("frontmatter-malformed", "malformed frontmatter: missing closing ---", line=1)


def find_tags_entry(fm_lines: list[str]) -> TagsEntry | None:
    """Locate the top-level `tags` entry, including any continuation lines."""
    for idx, line in enumerate(fm_lines):
        match = RE_TAGS_KEY.match(line)
        if not match:
            continue
        value = match.group(1).strip()

        if value.startswith("["):
            depth = value.count("[") - value.count("]")
            end = idx
            while depth > 0 and end + 1 < len(fm_lines):
                end += 1
                depth += fm_lines[end].count("[") - fm_lines[end].count("]")
            return TagsEntry(idx, end)

        if value and not value.startswith("#"):
            return TagsEntry(idx, idx)

        # Empty value: the entry continues over indented, `- item`, or bracket lines
        end = idx
        for nxt in range(idx + 1, len(fm_lines)):
            following = fm_lines[nxt]
            if following.strip() and following[0] not in " \t-[]":
                break
            if following.strip():
                end = nxt
        return TagsEntry(idx, end)
    return None


def render_tag(tag: str) -> str:
    """Render one tag as an item of a single-line flow array."""
    if RE_PLAIN_TAG.match(tag) and tag.lower() not in YAML_KEYWORDS and " #" not in tag:
        return tag
    return json.dumps(tag, ensure_ascii=False)


def normalize_tags(content: str) -> tuple[str, bool]:
    """Collapse a multi-line tag array into `tags: [a, b, c]`.

    Args:
        content: Full markdown file content

    Returns:
        Tuple of (new_content, changed). Content that has no multi-line tags,
        or whose tags cannot be read as a list of scalars, is returned unchanged.
    """
    try:
        fm_text, _body, _line = split_frontmatter(content)
    except FrontmatterError:
        return content, False

    fm_lines = fm_text.splitlines()
    entry = find_tags_entry(fm_lines)
    if entry is None or not entry.is_multiline:
        return content, False

    try:
        loaded = yaml.safe_load("\n".join(fm_lines[entry.start : entry.end + 1]))
    except yaml.YAMLError:
        return content, False
    tags = loaded.get("tags") if isinstance(loaded, dict) else None
    if not isinstance(tags, list) or not all(_is_scalar(t) for t in tags):
        return content, False

    lines = content.splitlines(keepends=True)
    newline = "\r\n" if lines[0].endswith("\r\n") else "\n"
    collapsed = f"tags: [{', '.join(render_tag(str(t)) for t in tags)}]{newline}"

    # Frontmatter line N is file line N + 1 (after the opening fence)
    start, end = entry.start + 1, entry.end + 1
    return "".join(lines[:start] + [collapsed] + lines[end + 1 :]), True


# =============================================================================
# Typed parsing
# =============================================================================


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def load_frontmatter(content: str) -> tuple[dict[str, Any], str, int]:
    """Parse the frontmatter mapping.

    Returns:
        Tuple of (frontmatter_dict, body, body_start_line)

    Raises:
        FrontmatterError: malformed fences or YAML, or a multi-line tag array
    """
    fm_text, body, body_line = split_frontmatter(content)

    fm_lines = fm_text.splitlines()
    entry = find_tags_entry(fm_lines)
    if entry is not None and entry.is_multiline:
        raise FrontmatterError(
            "frontmatter-tags-format",
            "tags must be a single-line array (tags: [a, b, c]), found multi-line syntax",
            line=entry.start + 2,
            fixable=True,
        )

    try:
        data = yaml.safe_load(fm_text)
    except yaml.YAMLError as e:
        line = None
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line = mark.line + 2
        problem = getattr(e, "problem", None) or "invalid YAML"
        raise FrontmatterError("frontmatter-malformed", f"malformed frontmatter: {problem}", line=line) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError("frontmatter-malformed", "malformed frontmatter: expected a mapping of fields", line=2)

    if entry is not None and isinstance(data.get("tags"), list):
        value = fm_lines[entry.start].split(":", 1)[1].strip()
        if not RE_SINGLE_LINE_TAGS.match(value):
            raise FrontmatterError(
                "frontmatter-malformed",
                "malformed frontmatter: tags must be written as [a, b, c]",
                line=entry.start + 2,
            )

    return data, body, body_line


def _required_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise FrontmatterError("frontmatter-missing-field", f"missing required frontmatter field: {key}", line=1)
    if not isinstance(value, str):
        raise FrontmatterError(
            "frontmatter-malformed",
            f"malformed frontmatter: '{key}' must be a string, got {type(value).__name__}",
            line=1,
        )
    return value.strip()


def _tags(data: dict[str, Any], required: bool) -> tuple[str, ...]:
    value = data.get("tags")
    if value is None or value == []:
        if required:
            raise FrontmatterError("frontmatter-missing-field", "missing required frontmatter field: tags", line=1)
        return ()
    if not isinstance(value, list) or not all(_is_scalar(t) for t in value):
        raise FrontmatterError(
            "frontmatter-malformed", "malformed frontmatter: 'tags' must be a list of strings", line=1
        )
    return tuple(str(t).strip() for t in value)


def parse_skill_frontmatter(content: str) -> tuple[SkillFrontmatter, str, int]:
    """Parse SKILL.md frontmatter.

    Returns:
        Tuple of (frontmatter, body, body_start_line)

    Raises:
        FrontmatterError: on any structural problem
    """
    data, body, body_line = load_frontmatter(content)

    name = _required_str(data, "name")
    description = _required_str(data, "description")
    tags = _tags(data, required=False)

    license_value = data.get("license")
    if license_value is not None and not isinstance(license_value, str):
        raise FrontmatterError("frontmatter-malformed", "malformed frontmatter: 'license' must be a string", line=1)

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict) or not all(
        isinstance(k, str) and (_is_scalar(v) or v is None) for k, v in metadata.items()
    ):
        raise FrontmatterError(
            "frontmatter-malformed",
            "malformed frontmatter: 'metadata' must map names to single values",
            line=1,
        )

    extra = tuple(str(key) for key in data if key not in SKILL_FIELDS and key not in AGENT_FIELDS)

    frontmatter = SkillFrontmatter(
        name=name,
        description=description,
        tags=tags,
        license=license_value,
        metadata={k: "" if v is None else str(v) for k, v in metadata.items()},
        extra_fields=extra,
    )
    return frontmatter, body, body_line


def parse_reference_frontmatter(content: str) -> ReferenceFrontmatter:
    """Parse reference file frontmatter (title, description and tags are required)."""
    data, _body, _line = load_frontmatter(content)
    return ReferenceFrontmatter(
        title=_required_str(data, "title"),
        description=_required_str(data, "description"),
        tags=_tags(data, required=True),
    )
