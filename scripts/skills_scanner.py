#!/usr/bin/env python3
"""
Skills Validator - Skill Directory Scanner

Walks a skills root and reads every skill into an immutable SkillEntry. All
filesystem access of a validation run happens here; the rule checker and the
cross-reference linker only look at the entries.

Layout:
    skills/<name>/SKILL.md
    skills/<name>/references/<topic>.md
    skills/<name>/scripts/<tool>.py|.sh
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from skills_frontmatter import (
    FrontmatterError,
    ReferenceFrontmatter,
    SkillFrontmatter,
    parse_reference_frontmatter,
    parse_skill_frontmatter,
)

SKILLS_DIR = "skills"
SKILL_FILE = "SKILL.md"
REFERENCES_DIR = "references"
SCRIPTS_DIR = "scripts"
SCRIPT_SUFFIXES = {".py", ".sh"}


class SkillNotFoundError(Exception):
    """Raised when a requested skill or path does not resolve to any skill directory."""


@dataclass(frozen=True)
class ReferenceFile:
    """One markdown file under references/."""

    path: str  # relative to the skill directory, e.g. "references/hooks.md"
    content: str
    line_count: int
    frontmatter: ReferenceFrontmatter | None
    frontmatter_error: FrontmatterError | None

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ScriptFile:
    path: str
    executable: bool


@dataclass(frozen=True)
class SkillEntry:
    """One skill directory, as read at the start of the run."""

    name: str
    path: Path
    content: str | None
    frontmatter: SkillFrontmatter | None
    frontmatter_error: FrontmatterError | None
    body: str
    body_start_line: int
    references: tuple[ReferenceFile, ...]
    reference_listing: frozenset[str]
    top_level_files: tuple[str, ...]
    scripts: tuple[ScriptFile, ...]

    @property
    def skill_file_path(self) -> Path:
        return self.path / SKILL_FILE

    @property
    def has_skill_file(self) -> bool:
        return self.content is not None

    @property
    def line_count(self) -> int:
        return len(self.content.splitlines()) if self.content is not None else 0


def _read_text(path: Path) -> tuple[str | None, FrontmatterError | None]:
    """Read a UTF-8 file; decoding problems become frontmatter errors instead of aborting the run."""
    try:
        return path.read_text(encoding="utf-8"), None
    except UnicodeDecodeError as e:
        return None, FrontmatterError("frontmatter-malformed", f"file is not valid UTF-8: {e.reason}")


def _read_reference(skill_path: Path, file_path: Path) -> ReferenceFile:
    rel = file_path.relative_to(skill_path).as_posix()
    content, read_error = _read_text(file_path)
    if content is None:
        return ReferenceFile(rel, "", 0, None, read_error)

    try:
        frontmatter, fm_error = parse_reference_frontmatter(content), None
    except FrontmatterError as e:
        frontmatter, fm_error = None, e
    return ReferenceFile(rel, content, len(content.splitlines()), frontmatter, fm_error)


def read_skill(skill_path: Path) -> SkillEntry:
    """Read one skill directory into a SkillEntry."""
    skill_file = skill_path / SKILL_FILE

    content: str | None = None
    frontmatter: SkillFrontmatter | None = None
    fm_error: FrontmatterError | None = None
    body, body_line = "", 1
    if skill_file.is_file():
        content, fm_error = _read_text(skill_file)
        if content is None:
            content = ""
        else:
            try:
                frontmatter, body, body_line = parse_skill_frontmatter(content)
            except FrontmatterError as e:
                fm_error = e
                body = content

    refs_dir = skill_path / REFERENCES_DIR
    references: list[ReferenceFile] = []
    listing: set[str] = set()
    if refs_dir.is_dir():
        for file_path in sorted(refs_dir.rglob("*")):
            if not file_path.is_file():
                continue
            listing.add(file_path.relative_to(skill_path).as_posix())
            # Only top-level markdown files are reference documents; `_` files are drafts the CLI drops
            if file_path.parent == refs_dir and file_path.suffix == ".md" and not file_path.name.startswith("_"):
                references.append(_read_reference(skill_path, file_path))

    scripts_dir = skill_path / SCRIPTS_DIR
    scripts: list[ScriptFile] = []
    if scripts_dir.is_dir():
        for script in sorted(scripts_dir.iterdir()):
            if script.is_file() and script.suffix in SCRIPT_SUFFIXES:
                scripts.append(ScriptFile(f"{SCRIPTS_DIR}/{script.name}", os.access(script, os.X_OK)))

    top_level = tuple(sorted(p.name for p in skill_path.iterdir() if p.is_file()))

    return SkillEntry(
        name=skill_path.name,
        path=skill_path,
        content=content,
        frontmatter=frontmatter,
        frontmatter_error=fm_error,
        body=body,
        body_start_line=body_line,
        references=tuple(references),
        reference_listing=frozenset(listing),
        top_level_files=top_level,
        scripts=tuple(scripts),
    )


def is_skill_candidate(path: Path) -> bool:
    """Subdirectories of a skills root that are treated as skills."""
    return path.is_dir() and not path.name.startswith((".", "_"))


def list_skill_dirs(root: Path, name: str | None = None) -> list[Path]:
    """Enumerate the skill directories under a root directory.

    Args:
        root: Skills root (usually skills/)
        name: Optional single skill name to validate

    Returns:
        Skill directories in sorted order

    Raises:
        SkillNotFoundError: root is not a directory, or `name` matches no directory
    """
    if not root.is_dir():
        raise SkillNotFoundError(f"Skills root is not a directory: {root}")

    dirs = [d for d in sorted(root.iterdir()) if is_skill_candidate(d)]
    if name is not None:
        dirs = [d for d in dirs if d.name == name]
        if not dirs:
            raise SkillNotFoundError(f"No skill named '{name}' under {root}")
    return dirs


def scan_skills(root: Path, name: str | None = None) -> list[SkillEntry]:
    """Read every skill under a root directory, in sorted directory order."""
    return [read_skill(d) for d in list_skill_dirs(root, name)]


def _skill_dir_for_file(file_path: Path) -> Path | None:
    parent = file_path.parent
    if parent.name == REFERENCES_DIR:
        parent = parent.parent
    if (parent / SKILL_FILE).is_file():
        return parent
    return None


def resolve_skill_dirs(paths: list[str], root: Path) -> list[Path]:
    """Map CLI path arguments to skill directories.

    - no paths: every skill under root
    - a skill directory (contains SKILL.md)
    - the skills root: every skill directory, with or without SKILL.md
    - any other directory: its subdirectories that contain SKILL.md
    - a markdown file inside a skill (SKILL.md or references/x.md), as passed by pre-commit hooks

    Raises:
        SkillNotFoundError: a path does not exist, or nothing resolves to a skill
    """
    if not paths:
        skill_dirs = list_skill_dirs(root)
        if not skill_dirs:
            raise SkillNotFoundError("No skills found to validate")
        return skill_dirs

    resolved: set[Path] = set()
    for arg in paths:
        path = Path(arg).resolve()
        if not path.exists():
            raise SkillNotFoundError(f"Path does not exist: {arg}")

        if path.is_file():
            if path.suffix == ".md":
                skill_dir = _skill_dir_for_file(path)
                if skill_dir is not None:
                    resolved.add(skill_dir)
        elif (path / SKILL_FILE).is_file() or path.parent.name == SKILLS_DIR:
            resolved.add(path)
        elif path == root.resolve() or path.name == SKILLS_DIR:
            resolved.update(list_skill_dirs(path))
        else:
            # Outside a skills root only directories holding a SKILL.md are skills
            resolved.update(d for d in path.iterdir() if is_skill_candidate(d) and (d / SKILL_FILE).is_file())

    if not resolved:
        raise SkillNotFoundError("No skills found to validate")
    return sorted(resolved)
