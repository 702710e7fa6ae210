"""Recover a skill record from a command argument."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Optional

from ..core.global_paths import expand_home
from .models import SkillRecord


def _inside(path: str, root: str) -> bool:
    try:
        relative = os.path.relpath(os.path.abspath(path), os.path.abspath(expand_home(root)))
    except ValueError:
        # different drives on Windows
        return False
    return not relative.startswith("..") and not os.path.isabs(relative)


def _unwrap(arg: Any) -> Optional[SkillRecord]:
    if isinstance(arg, SkillRecord):
        return arg
    if isinstance(arg, Mapping):
        inner = arg.get("skill")
        if isinstance(inner, SkillRecord):
            return inner
    elif isinstance(getattr(arg, "skill", None), SkillRecord):
        return arg.skill
    if isinstance(arg, (list, tuple)) and len(arg) == 1 and isinstance(arg[0], SkillRecord):
        return arg[0]
    return None


def extract_skill(arg: Any, *, workspace_root: str, global_root: str) -> Optional[SkillRecord]:
    """Return the skill record carried by ``arg``, if it is a trusted one.

    Accepted shapes, tried in order: a record, an object or mapping whose
    ``skill`` holds a record, a one-element list or tuple of a record. The
    record must live inside the workspace or the global library.
    """
    record = _unwrap(arg)
    if record is None:
        return None
    if _inside(record.path, workspace_root) or _inside(record.path, global_root):
        return record
    return None
