# eldercare/engine/state.py
"""
In-memory assessment aggregate and its reducer.

Every transition is a pure function of (state, action): the previous state
is never mutated, a new ``AssessmentFormState`` is returned. I/O lives in
``persistence.py``; it dispatches actions before and after awaiting the
store.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from .sections import CLIENT_ID_FIELD, SECTION_ORDER, SectionKey, owning_section

Status = Literal["draft", "complete"]
Mode = Literal["edit", "view", "print"]
Severity = Literal["error", "warning"]
AuditAction = Literal["create", "update", "delete", "submit", "save"]

SECTION_INDEX_FIELD = "section_fields"

# top-level keys of a stored record that are not form fields
RECORD_META_FIELDS = frozenset({"id", "client_id", "created_by", "status", "created_at", "updated_at"})


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str
    severity: Severity = "error"


@dataclass(frozen=True)
class AuditEntry:
    id: str
    timestamp: datetime
    user_id: str
    action: AuditAction
    description: str
    section: Optional[str] = None
    field: Optional[str] = None
    old_value: Any = None
    new_value: Any = None


@dataclass(frozen=True)
class SectionData:
    is_complete: bool = False
    is_valid: bool = True
    last_updated: datetime = field(default_factory=_now)
    data: Dict[str, Any] = field(default_factory=dict)
    validation_errors: List[ValidationError] = field(default_factory=list)
    completion_percentage: int = 0


@dataclass(frozen=True)
class AssessmentMetadata:
    auto_save_enabled: bool = True
    last_auto_save: Optional[datetime] = None
    total_time_spent: int = 0
    session_start_time: datetime = field(default_factory=_now)
    completion_percentage: int = 0


@dataclass(frozen=True)
class AssessmentData:
    id: str = ""
    version: int = 1
    last_modified: datetime = field(default_factory=_now)
    sections: Dict[SectionKey, SectionData] = field(default_factory=lambda: empty_sections())
    status: Status = "draft"
    audit: List[AuditEntry] = field(default_factory=list)
    client_id: str = ""
    created_by: str = ""
    completed_by: Optional[str] = None
    metadata: AssessmentMetadata = field(default_factory=AssessmentMetadata)


@dataclass(frozen=True)
class AssessmentFormState:
    data: AssessmentData = field(default_factory=AssessmentData)
    current_section: SectionKey = SectionKey.BASIC
    is_loading: bool = False
    is_saving: bool = False
    has_unsaved_changes: bool = False
    validation_errors: Dict[str, List[ValidationError]] = field(default_factory=dict)
    mode: Mode = "edit"


# -------------------------
# Construction / hydration
# -------------------------
def empty_sections() -> Dict[SectionKey, SectionData]:
    return {key: SectionData() for key in SECTION_ORDER}


def new_assessment(user_id: str, auto_save_enabled: bool = True) -> AssessmentData:
    """Brand-new draft for the current user; id stays empty until the first create."""
    return AssessmentData(
        created_by=user_id,
        metadata=AssessmentMetadata(auto_save_enabled=auto_save_enabled),
    )


def new_audit_entry(user_id: str, action: AuditAction, description: str, **extra: Any) -> AuditEntry:
    return AuditEntry(
        id=uuid.uuid4().hex,
        timestamp=_now(),
        user_id=user_id,
        action=action,
        description=description,
        **extra,
    )


def split_record(fields: Dict[str, Any]) -> Dict[SectionKey, Dict[str, Any]]:
    """
    Put a flat persisted field map back into per-section maps.

    Uses the ``section_fields`` index written at save time when present,
    and falls back to ``owning_section`` for anything it does not cover.
    """
    index = fields.get(SECTION_INDEX_FIELD) or {}
    owner: Dict[str, SectionKey] = {}
    if isinstance(index, dict):
        for key, names in index.items():
            try:
                section = SectionKey(key)
            except ValueError:
                continue
            for name in names or []:
                owner[name] = section

    out: Dict[SectionKey, Dict[str, Any]] = {key: {} for key in SECTION_ORDER}
    for name, value in fields.items():
        if name == SECTION_INDEX_FIELD:
            continue
        out[owner.get(name) or owning_section(name)][name] = value
    return out


def hydrate_assessment(
    record: Dict[str, Any],
    auto_save_enabled: bool = True,
) -> AssessmentData:
    """Build an aggregate from a flat stored record; every section gets its fields back."""
    fields = {k: v for k, v in record.items() if k not in RECORD_META_FIELDS}
    per_section = split_record(fields)
    now = _now()
    sections = {
        key: SectionData(last_updated=now, data=per_section[key])
        for key in SECTION_ORDER
    }
    updated_at = record.get("updated_at")
    status = record.get("status") or "draft"
    return AssessmentData(
        id=str(record.get("id") or ""),
        last_modified=updated_at if isinstance(updated_at, datetime) else now,
        sections=sections,
        status="complete" if status == "complete" else "draft",
        client_id=str(record.get("client_id") or ""),
        created_by=str(record.get("created_by") or ""),
        metadata=AssessmentMetadata(auto_save_enabled=auto_save_enabled),
    )


# -------------------------
# Actions
# -------------------------
@dataclass(frozen=True)
class SetLoading:
    value: bool


@dataclass(frozen=True)
class SetSaving:
    value: bool


@dataclass(frozen=True)
class SetCurrentSection:
    section: SectionKey


@dataclass(frozen=True)
class UpdateSection:
    """Partial merge of SectionData attributes (``data`` replaces the whole field map)."""
    section: SectionKey
    changes: Dict[str, Any]


@dataclass(frozen=True)
class SetSectionProgress:
    """Derived progress figure only; not an edit, so the unsaved flag is left alone."""
    section: SectionKey
    percentage: int


@dataclass(frozen=True)
class UpdateField:
    section: SectionKey
    field: str
    value: Any


@dataclass(frozen=True)
class SetValidationErrors:
    errors: Dict[str, List[ValidationError]]


@dataclass(frozen=True)
class SetUnsavedChanges:
    value: bool


@dataclass(frozen=True)
class SetMode:
    mode: Mode


@dataclass(frozen=True)
class InitializeAssessment:
    data: AssessmentData


@dataclass(frozen=True)
class AddAuditEntry:
    entry: AuditEntry


@dataclass(frozen=True)
class AutoSaveSuccess:
    at: datetime


@dataclass(frozen=True)
class UpdateProgress:
    percentage: int


@dataclass(frozen=True)
class AssignRemoteId:
    """Result of a successful persist: adopt the remote id without touching edit flags."""
    id: str
    client_id: str
    status: Status


_SECTION_ATTRS = {
    "is_complete", "is_valid", "data", "validation_errors", "completion_percentage",
}


def _touch_section(state: AssessmentFormState, key: SectionKey, section: SectionData) -> AssessmentFormState:
    now = _now()
    sections = dict(state.data.sections)
    sections[key] = replace(section, last_updated=now)
    data = replace(state.data, sections=sections, last_modified=now)
    return replace(state, data=data, has_unsaved_changes=True)


def reduce(state: AssessmentFormState, action: Any) -> AssessmentFormState:
    if isinstance(action, SetLoading):
        return replace(state, is_loading=action.value)

    if isinstance(action, SetSaving):
        return replace(state, is_saving=action.value)

    if isinstance(action, SetCurrentSection):
        return replace(state, current_section=SectionKey(action.section))

    if isinstance(action, UpdateSection):
        key = SectionKey(action.section)
        unknown = set(action.changes) - _SECTION_ATTRS
        if unknown:
            raise ValueError(f"Unknown section attributes: {sorted(unknown)}")
        changes = dict(action.changes)
        if "data" in changes:
            changes["data"] = dict(changes["data"] or {})
        if "validation_errors" in changes:
            changes["validation_errors"] = list(changes["validation_errors"] or [])
        section = replace(state.data.sections[key], **changes)
        return _touch_section(state, key, section)

    if isinstance(action, SetSectionProgress):
        key = SectionKey(action.section)
        sections = dict(state.data.sections)
        sections[key] = replace(sections[key], completion_percentage=int(action.percentage))
        return replace(state, data=replace(state.data, sections=sections))

    if isinstance(action, UpdateField):
        key = SectionKey(action.section)
        current = state.data.sections[key]
        section = replace(current, data={**current.data, action.field: action.value})
        new_state = _touch_section(state, key, section)
        if key is SectionKey.BASIC and action.field == CLIENT_ID_FIELD:
            client_id = "" if action.value is None else str(action.value)
            new_state = replace(new_state, data=replace(new_state.data, client_id=client_id))
        return new_state

    if isinstance(action, SetValidationErrors):
        return replace(state, validation_errors={k: list(v) for k, v in action.errors.items()})

    if isinstance(action, SetUnsavedChanges):
        return replace(state, has_unsaved_changes=action.value)

    if isinstance(action, SetMode):
        if action.mode not in ("edit", "view", "print"):
            raise ValueError(f"Unknown mode: {action.mode}")
        return replace(state, mode=action.mode)

    if isinstance(action, InitializeAssessment):
        return replace(state, data=action.data, has_unsaved_changes=False, validation_errors={})

    if isinstance(action, AddAuditEntry):
        return replace(state, data=replace(state.data, audit=[*state.data.audit, action.entry]))

    if isinstance(action, AutoSaveSuccess):
        metadata = replace(state.data.metadata, last_auto_save=action.at)
        return replace(state, data=replace(state.data, metadata=metadata))

    if isinstance(action, UpdateProgress):
        metadata = replace(state.data.metadata, completion_percentage=int(action.percentage))
        return replace(state, data=replace(state.data, metadata=metadata))

    if isinstance(action, AssignRemoteId):
        data = replace(state.data, id=action.id, client_id=action.client_id, status=action.status)
        return replace(state, data=data)

    return state
