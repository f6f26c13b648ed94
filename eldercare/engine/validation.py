# eldercare/engine/validation.py
from __future__ import annotations

from typing import Dict, List, Mapping

from .sections import CONSULTATION_REASONS_FIELD, SECTION_ORDER, SectionKey, get_required_fields
from .state import SectionData, ValidationError

CONSULTATION_REASONS_MESSAGE = "At least one reason for consultation must be selected"


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def validate_section(key: SectionKey | str, section: SectionData) -> List[ValidationError]:
    """
    Required-field check for one section. Pure: no progress bookkeeping
    happens here (see ``AssessmentSession.refresh_basic_progress``).
    """
    errors: List[ValidationError] = []
    for name in get_required_fields(key):
        value = section.data.get(name)

        if name == CONSULTATION_REASONS_FIELD:
            if not isinstance(value, list) or len(value) == 0:
                errors.append(ValidationError(name, CONSULTATION_REASONS_MESSAGE))
            continue

        if _is_blank(value):
            errors.append(ValidationError(name, f"{name.replace('_', ' ')} is required"))

    return errors


def validate_all(sections: Mapping[SectionKey, SectionData]) -> Dict[str, List[ValidationError]]:
    """Only sections with at least one error appear in the result."""
    out: Dict[str, List[ValidationError]] = {}
    for key in SECTION_ORDER:
        if key not in sections:
            continue
        errors = validate_section(key, sections[key])
        if errors:
            out[key.value] = errors
    return out
