# eldercare/engine/persistence.py
"""
Save / load orchestration between the reducer and the remote store.

The store is only ever seen through three coroutines:

- ``fetch_by_id(id) -> dict | None``
- ``create(record) -> str`` (always a fresh id)
- ``update(id, record) -> None`` (raises on failure)

Saves are serialized by an ``asyncio.Lock`` so a manual save and a
debounced auto-save can never both issue a create for the same draft.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union

from ..errors import (
    IncompleteAssessmentError,
    MissingIdentityError,
    PersistenceFailure,
    UserInputError,
)
from ..logging_config import log_event, log_failure, log_warning
from .sections import CLIENT_ID_FIELD, SECTION_ORDER, SectionKey
from .state import (
    SECTION_INDEX_FIELD,
    AddAuditEntry,
    AssessmentData,
    AssessmentFormState,
    AssignRemoteId,
    InitializeAssessment,
    SectionData,
    SetLoading,
    SetSaving,
    SetUnsavedChanges,
    SetValidationErrors,
    hydrate_assessment,
    new_assessment,
    new_audit_entry,
)
from .validation import validate_all

NO_CLIENT_MESSAGE = "Please select a client before saving the assessment"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str = "user"


def can_access(user: Optional[CurrentUser], created_by: Optional[str]) -> bool:
    """Owners see their own assessments; admins see every assessment."""
    if user is None or not user.id:
        return False
    return user.role == ADMIN_ROLE or created_by == user.id


class AssessmentStore(Protocol):
    async def fetch_by_id(self, assessment_id: str) -> Optional[Dict[str, Any]]: ...

    async def create(self, record: Dict[str, Any]) -> str: ...

    async def update(self, assessment_id: str, record: Dict[str, Any]) -> None: ...


# -------------------------
# Save outcomes
# -------------------------
@dataclass(frozen=True)
class Created:
    id: str
    kind: str = "created"


@dataclass(frozen=True)
class Updated:
    id: str
    kind: str = "updated"


@dataclass(frozen=True)
class Recreated:
    """Update failed, a new record was created instead; the aggregate now points at ``id``."""
    id: str
    previous_id: str
    reason: str = ""
    kind: str = "recreated"


@dataclass(frozen=True)
class Failed:
    error: BaseException
    kind: str = "failed"


SaveOutcome = Union[Created, Updated, Recreated]


# -------------------------
# Record shaping
# -------------------------
def flatten_sections(sections: Mapping[SectionKey, SectionData]) -> Dict[str, Any]:
    """One flat field map; on a name collision the later section in form order wins."""
    flat: Dict[str, Any] = {}
    for key in SECTION_ORDER:
        section = sections.get(key)
        if section is None:
            continue
        flat.update(section.data)
    return flat


def section_index(sections: Mapping[SectionKey, SectionData]) -> Dict[str, list]:
    return {
        key.value: sorted(sections[key].data)
        for key in SECTION_ORDER
        if key in sections and sections[key].data
    }


def resolve_client_id(data: AssessmentData) -> str:
    if data.client_id and data.client_id.strip():
        return data.client_id.strip()
    value = data.sections[SectionKey.BASIC].data.get(CLIENT_ID_FIELD)
    if isinstance(value, str):
        return value.strip()
    return ""


def build_record(data: AssessmentData, client_id: str, status: str) -> Dict[str, Any]:
    return {
        "client_id": client_id,
        "created_by": data.created_by,
        "status": status,
        **flatten_sections(data.sections),
        SECTION_INDEX_FIELD: section_index(data.sections),
    }


class PersistenceCoordinator:
    def __init__(
        self,
        store: AssessmentStore,
        user: Optional[CurrentUser],
        get_state: Callable[[], AssessmentFormState],
        dispatch: Callable[[Any], Any],
    ):
        self.store = store
        self.user = user
        self._get_state = get_state
        self._dispatch = dispatch
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """After this, late save/load results are no longer written back into state."""
        self._closed = True

    def _apply(self, action) -> None:
        if not self._closed:
            self._dispatch(action)

    async def _create(self, record: Dict[str, Any]) -> str:
        try:
            new_id = await self.store.create(record)
        except Exception as e:
            log_failure("CREATE_FAILED", {"client_id": record.get("client_id"), "error": str(e)})
            raise PersistenceFailure(f"Could not create assessment: {e}") from e
        if not new_id:
            log_failure("CREATE_NO_ID", {"client_id": record.get("client_id")})
            raise PersistenceFailure("Store did not return an id for the new assessment")
        return str(new_id)

    async def save(self, status: str = "draft") -> SaveOutcome:
        if status not in ("draft", "complete"):
            raise ValueError(f"Unknown status: {status}")
        if self.user is None or not self.user.id:
            raise MissingIdentityError("No user available for saving assessment")

        async with self._lock:
            state = self._get_state()
            data = state.data

            client_id = resolve_client_id(data)
            if not client_id:
                raise UserInputError(NO_CLIENT_MESSAGE)

            if status == "complete":
                errors = validate_all(data.sections)
                if errors:
                    self._apply(SetValidationErrors(errors))
                    raise IncompleteAssessmentError(
                        "Assessment has missing required fields and cannot be completed",
                        {k: [e.message for e in v] for k, v in errors.items()},
                    )

            # never complete -> draft
            effective = "complete" if "complete" in (status, data.status) else "draft"
            record = build_record(data, client_id, effective)
            sections_at_save = data.sections

            self._apply(SetSaving(True))
            try:
                if data.id:
                    try:
                        await self.store.update(data.id, record)
                        outcome: SaveOutcome = Updated(data.id)
                    except Exception as e:
                        log_warning("UPDATE_FAILED", "update failed, creating a new record", {
                            "assessment_id": data.id,
                            "error": str(e),
                        })
                        new_id = await self._create(record)
                        outcome = Recreated(new_id, data.id, str(e))
                else:
                    outcome = Created(await self._create(record))
            finally:
                self._apply(SetSaving(False))

            if self._closed:
                log_event("SAVE_DETACHED", "save finished after session teardown", {"assessment_id": outcome.id})
                return outcome

            self._apply(AssignRemoteId(outcome.id, client_id, effective))

            if isinstance(outcome, Recreated):
                self._apply(AddAuditEntry(new_audit_entry(
                    self.user.id,
                    "create",
                    f"Update of {outcome.previous_id} failed; saved as new assessment {outcome.id}",
                )))

            description = "Assessment draft saved" if effective == "draft" else "Assessment completed"
            self._apply(AddAuditEntry(new_audit_entry(self.user.id, "save", description)))

            # edits that landed while the store call was pending are still unsaved
            if self._get_state().data.sections is sections_at_save:
                self._apply(SetUnsavedChanges(False))

            log_event(f"SAVE_{outcome.kind.upper()}", description, {
                "assessment_id": outcome.id,
                "client_id": client_id,
                "status": effective,
            })
            return outcome

    async def load(self, assessment_id: Optional[str], auto_save_enabled: bool = True) -> AssessmentData:
        """
        Hydrate ``assessment_id`` or start a fresh draft. A missing record or a
        store error falls back to an empty draft rather than leaving the form
        stuck in the loading state.
        """
        user_id = self.user.id if self.user else ""
        if not assessment_id:
            data = new_assessment(user_id, auto_save_enabled)
            self._apply(InitializeAssessment(data))
            return data

        self._apply(SetLoading(True))
        try:
            data = None
            try:
                record = await self.store.fetch_by_id(assessment_id)
                if record is not None and not can_access(self.user, record.get("created_by")):
                    # another user's assessment is treated as missing
                    log_warning("LOAD_FORBIDDEN", "assessment belongs to another user, starting empty", {
                        "assessment_id": assessment_id,
                        "user_id": user_id,
                    })
                elif record is None:
                    log_warning("LOAD_NOT_FOUND", "assessment not found, starting empty", {
                        "assessment_id": assessment_id,
                    })
                else:
                    data = hydrate_assessment(record, auto_save_enabled)
            except Exception as e:
                log_failure("LOAD_FAILED", {"assessment_id": assessment_id, "error": str(e)})

            if data is None:
                data = new_assessment(user_id, auto_save_enabled)
            self._apply(InitializeAssessment(data))
            return data
        finally:
            self._apply(SetLoading(False))
