"""Shared fixtures: build skill trees under tmp_path."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


def reference_text(title: str, total_lines: int = 12, tags: str = "[react, hooks]") -> str:
    """A valid reference file with exactly `total_lines` lines."""
    header = [
        "---",
        f"title: {title}",
        f"description: Notes on {title}",
        f"tags: {tags}",
        "---",
        "",
        f"# {title}",
        "",
    ]
    filler = [f"Detail line {i}" for i in range(max(total_lines - len(header), 0))]
    return "\n".join(header + filler) + "\n"


def skill_text(
    name: str,
    description: str | None = None,
    links: list[str] | None = None,
    extra_frontmatter: str = "",
    extra_body: str = "",
) -> str:
    """A SKILL.md whose References section links the given reference files."""
    description = description or f"Use when working with {name}."
    lines = ["---", f"name: {name}", f"description: {description}"]
    if extra_frontmatter:
        lines.append(extra_frontmatter.rstrip("\n"))
    lines += ["---", "", f"# {name}", "", "Short overview of the skill.", ""]
    if extra_body:
        lines += [extra_body.rstrip("\n"), ""]
    lines += ["## Common Mistakes", "", "- Skipping the reference files.", ""]
    lines += ["## Delegation", "", "- Neighbouring topics belong to their own skills.", ""]
    if links:
        lines += ["## References", ""]
        lines += [f"- [{link}](references/{link})" for link in links]
    return "\n".join(lines) + "\n"


MakeSkill = Callable[..., Path]


@pytest.fixture
def skills_root(tmp_path: Path) -> Path:
    root = tmp_path / "skills"
    root.mkdir()
    return root


@pytest.fixture
def make_skill(skills_root: Path) -> MakeSkill:
    """Create a skill directory.

    Args (keyword):
        frontmatter_name: name written into SKILL.md (default: directory name)
        references: mapping of filename -> content (str) or line count (int)
        linked: reference filenames linked from SKILL.md (default: all of them)
        skill_md: full SKILL.md content, overriding everything else
    """

    def _make(
        name: str,
        *,
        frontmatter_name: str | None = None,
        description: str | None = None,
        references: dict[str, str | int] | None = None,
        linked: list[str] | None = None,
        extra_frontmatter: str = "",
        extra_body: str = "",
        skill_md: str | None = None,
    ) -> Path:
        skill_dir = skills_root / name
        skill_dir.mkdir(parents=True)
        references = references or {}

        if references:
            refs_dir = skill_dir / "references"
            refs_dir.mkdir()
            for filename, spec in references.items():
                if isinstance(spec, int):
                    content = reference_text(filename.removesuffix(".md").title(), spec)
                else:
                    content = spec
                (refs_dir / filename).write_text(content, encoding="utf-8")

        if skill_md is None:
            skill_md = skill_text(
                frontmatter_name or name,
                description=description,
                links=list(references) if linked is None else linked,
                extra_frontmatter=extra_frontmatter,
                extra_body=extra_body,
            )
        (skill_dir / "SKILL.md").write_text(skill_md, encoding="utf-8")
        return skill_dir

    return _make
