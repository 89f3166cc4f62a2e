"""SKILL.md frontmatter parsing and description excerpts."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import yaml

from skillstore.utils.validation import DESCRIPTION_MAX

MARKER_FILE = "SKILL.md"
EXCERPT_MAX = 200


def is_marker_file(path: str) -> bool:
    """True for a SKILL.md at the folder root (any case), never a nested one."""
    return path.lower() == MARKER_FILE.lower()


def parse_skill_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML frontmatter from a SKILL.md file.

    Returns (metadata_dict, body_after_frontmatter).
    """
    match = re.match(r"^---\s*\n(.*?)\n---\s*\n?(.*)", content, re.DOTALL)
    if not match:
        return {}, content

    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}

    return meta, match.group(2)


def first_content_line(body: str) -> str | None:
    """First non-empty line that isn't a heading, cut to 200 chars."""
    for line in body.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        if len(trimmed) > EXCERPT_MAX:
            return trimmed[: EXCERPT_MAX - 3] + "..."
        return trimmed
    return None


@dataclass
class SkillMetadata:
    name: str | None = None
    description: str | None = None


def read_skill_metadata(content: str) -> SkillMetadata:
    """Name and description declared by a SKILL.md.

    Frontmatter ``description`` wins; otherwise the first body line is used.
    """
    meta, body = parse_skill_frontmatter(content)

    name = meta.get("name")
    name = str(name).strip() if name is not None else ""

    description = meta.get("description")
    description = str(description).strip() if description is not None else ""
    if len(description) > DESCRIPTION_MAX:
        description = description[:DESCRIPTION_MAX].strip()
    if not description:
        description = first_content_line(body) or ""

    return SkillMetadata(name=name or None, description=description or None)
