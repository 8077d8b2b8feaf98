#!/usr/bin/env python3
"""
Skills Validator - Cross-Reference Linker

Checks that the links in SKILL.md and the files in references/ agree in both
directions:
1. Every link to references/... must point at a file that exists (no dangling links)
2. Every references/*.md file must be linked from SKILL.md (no orphans)

A reference file that exists but is not linked yet is an orphan; there is no
grace period for content that is still being merged.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterator
from dataclasses import dataclass
from urllib.parse import unquote

from skills_scanner import REFERENCES_DIR, SKILL_FILE, SkillEntry
from skills_validation_common import ValidationFinding, error

# =============================================================================
# Regex Patterns for Link Detection
# =============================================================================

# Inline markdown link: [text](target "optional title")
RE_INLINE_LINK = re.compile(r"\[(?:[^\]\\]|\\.)*\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'(][^)]*)?\s*\)")

# Reference-style link definition: [label]: target
RE_LINK_DEFINITION = re.compile(r"^\s{0,3}\[[^\]]+\]:\s*<?([^\s>]+)>?")

# Opening or closing code fence: the marker run and whatever follows it
RE_FENCE = re.compile(r"^\s*(`{3,}|~{3,})(.*)$")

# Kinds of markdown lines yielded by iter_markdown_lines()
TEXT, FENCE_OPEN, CODE, FENCE_CLOSE = "text", "fence-open", "code", "fence-close"


@dataclass(frozen=True)
class ReferenceLink:
    """A link from SKILL.md into references/."""

    target: str  # normalized, e.g. "references/hooks.md"
    line: int


def normalize_link_target(raw: str) -> str | None:
    """Normalize a link target relative to the skill directory.

    Returns:
        The references/... path, or None for links that leave references/
        (URLs, anchors, other directories)
    """
    target = raw.strip()
    if not target or target.startswith("#") or re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*:", target):
        return None
    target = unquote(target.split("#", 1)[0].split("?", 1)[0])
    if not target:
        return None
    target = posixpath.normpath(target)
    if target.startswith(f"{REFERENCES_DIR}/"):
        return target
    return None


def iter_markdown_lines(text: str) -> Iterator[tuple[int, str, str]]:
    """Yield (offset, line, kind) for every line, tracking fenced code blocks.

    A fence is closed only by a run of the same character that is at least as
    long as the opening run and carries no info string, so a ~~~ line inside a
    ``` block is code.
    """
    fence: str | None = None
    for offset, line in enumerate(text.splitlines()):
        match = RE_FENCE.match(line)
        if fence is None:
            if match:
                fence = match.group(1)
                yield offset, line, FENCE_OPEN
            else:
                yield offset, line, TEXT
            continue

        if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence) and not match.group(2).strip():
            fence = None
            yield offset, line, FENCE_CLOSE
        else:
            yield offset, line, CODE


def extract_reference_links(body: str, start_line: int = 1) -> list[ReferenceLink]:
    """Extract links into references/ from a markdown body, in document order.

    Links inside fenced code blocks are not links and are skipped.
    """
    links: list[ReferenceLink] = []
    for offset, line, kind in iter_markdown_lines(body):
        if kind != TEXT:
            continue

        targets = [m.group(1) for m in RE_INLINE_LINK.finditer(line)]
        definition = RE_LINK_DEFINITION.match(line)
        if definition:
            targets.append(definition.group(1))

        for raw in targets:
            target = normalize_link_target(raw)
            if target is not None:
                links.append(ReferenceLink(target, start_line + offset))
    return links


def check_cross_references(entry: SkillEntry) -> list[ValidationFinding]:
    """Report dangling links and orphaned reference files for one skill."""
    if not entry.has_skill_file:
        return []

    findings: list[ValidationFinding] = []
    links = extract_reference_links(entry.body, entry.body_start_line)
    linked = {link.target for link in links}

    reported: set[str] = set()
    for link in links:
        if link.target in entry.reference_listing or link.target in reported:
            continue
        reported.add(link.target)
        findings.append(
            error(
                entry.name,
                "reference-dangling",
                f"dangling reference link: {link.target}",
                SKILL_FILE,
                link.line,
            )
        )

    for ref in entry.references:
        if ref.path not in linked:
            findings.append(
                error(entry.name, "reference-orphaned", f"orphaned reference file: {ref.path}", ref.path)
            )

    return findings
