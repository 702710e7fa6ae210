"""Parse skill documents (SKILL.md files).

A skill document may start with a front matter block::

    ---
    name: my-skill
    description:
      Folded values continue on lines
      indented by at least two spaces.
    license: MIT
    ---

    # My Skill

    ## Dependencies
    - other-skill

Front matter is a restricted ``key: value`` format, not YAML. Only
``name``, ``description``, ``license``, ``compatibility`` and
``allowed-tools`` are read; other keys are ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List

from .models import SkillMetadata

DESCRIPTION_LIMIT = 200

_FRONTMATTER = re.compile(r"^---\r?\n([\s\S]*?)\r?\n---(?:\r?\n([\s\S]*))?$")
_KEY_LINE = re.compile(r"^(\w+(?:-\w+)*):\s*(.*)$")
_H1 = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_DEPENDENCIES = re.compile(r"^##\s*Dependencies[ \t]*\r?\n([\s\S]*?)(?=^##|\Z)", re.IGNORECASE | re.MULTILINE)
_BULLET = re.compile(r"^[-*]\s+(.+)")

METADATA_KEYS: Dict[str, str] = {
    "name": "name",
    "description": "description",
    "license": "license",
    "compatibility": "compatibility",
    "allowed-tools": "allowed_tools",
}


@dataclass
class ParsedDocument:
    metadata: SkillMetadata
    body: str


def _apply(metadata: SkillMetadata, key: str, value: str) -> None:
    field_name = METADATA_KEYS.get(key)
    if field_name:
        setattr(metadata, field_name, value)


def parse_frontmatter_block(block: str) -> SkillMetadata:
    """Parse the lines between the ``---`` delimiters."""
    metadata = SkillMetadata()
    current_key = ""
    folded: List[str] = []

    def flush() -> None:
        if current_key and folded:
            _apply(metadata, current_key, " ".join(folded).strip())

    for raw in block.split("\n"):
        line = raw.rstrip("\r")
        match = _KEY_LINE.match(line)
        if match:
            flush()
            folded = []
            current_key = match.group(1)
            value = match.group(2).strip()
            if value:
                _apply(metadata, current_key, value)
                current_key = ""
        elif current_key and line.startswith("  "):
            stripped = line.strip()
            if stripped:
                folded.append(stripped)

    flush()
    return metadata


def parse_skill_document(text: str) -> ParsedDocument:
    """Split ``text`` into front matter metadata and body.

    Without a front matter block the metadata is empty and the body is the
    whole document.
    """
    match = _FRONTMATTER.match(text)
    if not match:
        return ParsedDocument(metadata=SkillMetadata(), body=text)
    return ParsedDocument(
        metadata=parse_frontmatter_block(match.group(1)),
        body=match.group(2) or "",
    )


def extract_name(text: str, fallback: str) -> str:
    """Front matter ``name``, else the first ``# Title`` line, else ``fallback``."""
    parsed = parse_skill_document(text)
    if parsed.metadata.name:
        return parsed.metadata.name
    heading = _H1.search(parsed.body)
    if heading:
        return heading.group(1).strip()
    return fallback


def extract_description(text: str) -> str:
    """Front matter ``description``, else the first plain line of the body."""
    parsed = parse_skill_document(text)
    if parsed.metadata.description:
        return parsed.metadata.description
    for line in parsed.body.split("\n"):
        trimmed = line.strip()
        if trimmed and not trimmed.startswith("#") and not trimmed.startswith("---"):
            return trimmed[:DESCRIPTION_LIMIT]
    return ""


def extract_dependencies(text: str) -> List[str]:
    """Bullet items listed under a ``## Dependencies`` heading."""
    section = _DEPENDENCIES.search(text)
    if not section:
        return []
    deps: List[str] = []
    for line in section.group(1).split("\n"):
        match = _BULLET.match(line.strip())
        if match:
            deps.append(match.group(1).strip())
    return deps
