# eldercare/engine/completion.py
from __future__ import annotations

import math
from typing import Any, Mapping

from .sections import BASIC_PROGRESS_FIELDS, SECTION_ORDER, SectionKey, get_required_fields
from .state import SectionData


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_field_done(value: Any) -> bool:
    """
    A required field counts as filled when:
    - list/tuple/set: non-empty
    - bool or number: present at all (False and 0 are answers)
    - string: has non-whitespace content
    - anything else non-null: present
    """
    if value is None:
        return False
    if isinstance(value, (list, tuple, set)):
        return len(value) > 0
    if isinstance(value, (bool, int, float)):
        return True
    if isinstance(value, str):
        return value.strip() != ""
    return True


def section_completion(key: SectionKey | str, section: SectionData) -> int:
    """0..100 for one section, from its required-field list."""
    required = get_required_fields(key)
    if not required:
        return 100 if section.data else 0

    done = sum(1 for name in required if is_field_done(section.data.get(name)))
    return _round_half_up(100 * done / len(required))


def overall_completion(sections: Mapping[SectionKey, SectionData]) -> int:
    """Plain mean of per-section completion; every section weighs the same."""
    if not sections:
        return 0
    total = sum(section_completion(key, sections[key]) for key in SECTION_ORDER if key in sections)
    return _round_half_up(total / len(sections))


def basic_section_progress(basic: SectionData) -> int:
    """
    Page-1 progress bar. Stricter than ``section_completion``: dates and
    client must be non-blank strings, reasons must be a non-empty list.
    """
    data = basic.data
    done = 0
    for name in BASIC_PROGRESS_FIELDS[:3]:
        value = data.get(name)
        if isinstance(value, str) and value.strip() != "":
            done += 1
    reasons = data.get(BASIC_PROGRESS_FIELDS[3])
    if isinstance(reasons, list) and len(reasons) > 0:
        done += 1
    return _round_half_up(100 * done / len(BASIC_PROGRESS_FIELDS))
