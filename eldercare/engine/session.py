# eldercare/engine/session.py
"""
One open assessment form.

The session is the handle the presentation layer holds: it owns the
state, runs every transition through ``reduce``, and wires the auto-save
scheduler and the persistence coordinator. Nothing here is process-global;
whoever opens a session passes it where it is needed and closes it.
"""
from __future__ import annotations

import uuid
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import UserInputError
from ..logging_config import log_event
from ..settings import get_settings
from .autosave import AutoSaveScheduler
from .completion import basic_section_progress, overall_completion, section_completion
from .gds import score_depression
from .persistence import AssessmentStore, CurrentUser, PersistenceCoordinator, SaveOutcome
from .sections import SectionKey, next_section, previous_section
from .slums import score_cognitive
from .state import (
    AssessmentFormState,
    AutoSaveSuccess,
    InitializeAssessment,
    SetCurrentSection,
    SetMode,
    SetSectionProgress,
    SetValidationErrors,
    UpdateField,
    UpdateProgress,
    UpdateSection,
    ValidationError,
    new_assessment,
    reduce,
)
from .validation import validate_all, validate_section

EXPORT_FORMATS = ("json", "pdf", "print")


def to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {(k.value if isinstance(k, Enum) else k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, BaseException):
        return str(value)
    return value


class AssessmentSession:
    def __init__(
        self,
        store: AssessmentStore,
        user: Optional[CurrentUser],
        quiet_period: Optional[float] = None,
        auto_save_enabled: Optional[bool] = None,
    ):
        settings = get_settings()
        self.id = uuid.uuid4().hex
        self.user = user
        self.auto_save_enabled = settings.AUTOSAVE_ENABLED if auto_save_enabled is None else auto_save_enabled
        self._state = AssessmentFormState(
            data=new_assessment(user.id if user else "", self.auto_save_enabled),
        )
        self.coordinator = PersistenceCoordinator(store, user, self._get_state, self.dispatch)
        self.scheduler = AutoSaveScheduler(
            self._auto_save,
            self._get_state,
            quiet_period=settings.AUTOSAVE_QUIET_SECONDS if quiet_period is None else quiet_period,
        )
        self._closed = False

    # -------------------------
    # state plumbing
    # -------------------------
    def _get_state(self) -> AssessmentFormState:
        return self._state

    @property
    def state(self) -> AssessmentFormState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def dispatch(self, action) -> AssessmentFormState:
        before = self._state
        self._state = reduce(before, action)
        edited = isinstance(action, (UpdateField, UpdateSection))
        if edited or self._state.has_unsaved_changes != before.has_unsaved_changes:
            self.scheduler.notify()
        return self._state

    async def open(self, assessment_id: Optional[str] = None) -> AssessmentFormState:
        await self.coordinator.load(assessment_id, self.auto_save_enabled)
        return self._state

    def _require_editable(self) -> None:
        if self._closed:
            raise UserInputError("This assessment session has been closed")
        if self._state.mode != "edit":
            raise UserInputError(f"Assessment is read-only in {self._state.mode} mode")

    # -------------------------
    # edits / navigation
    # -------------------------
    def update_field(self, section: SectionKey | str, field: str, value: Any) -> AssessmentFormState:
        self._require_editable()
        return self.dispatch(UpdateField(SectionKey(section), field, value))

    def update_section(self, section: SectionKey | str, changes: Dict[str, Any]) -> AssessmentFormState:
        self._require_editable()
        return self.dispatch(UpdateSection(SectionKey(section), changes))

    def set_current_section(self, section: SectionKey | str) -> AssessmentFormState:
        return self.dispatch(SetCurrentSection(SectionKey(section)))

    def next_section(self) -> AssessmentFormState:
        target = next_section(self._state.current_section)
        if target is None:
            return self._state
        return self.set_current_section(target)

    def previous_section(self) -> AssessmentFormState:
        target = previous_section(self._state.current_section)
        if target is None:
            return self._state
        return self.set_current_section(target)

    def set_mode(self, mode: str) -> AssessmentFormState:
        return self.dispatch(SetMode(mode))

    # -------------------------
    # validation / progress
    # -------------------------
    def validate_section(self, section: SectionKey | str) -> List[ValidationError]:
        key = SectionKey(section)
        errors = validate_section(key, self._state.data.sections[key])
        merged = dict(self._state.validation_errors)
        if errors:
            merged[key.value] = errors
        else:
            merged.pop(key.value, None)
        self.dispatch(SetValidationErrors(merged))
        return errors

    def refresh_basic_progress(self) -> int:
        """Store the page-1 progress figure on the basic section. Separate from validation."""
        pct = basic_section_progress(self._state.data.sections[SectionKey.BASIC])
        self.dispatch(SetSectionProgress(SectionKey.BASIC, pct))
        return pct

    def validate_all(self) -> Dict[str, List[ValidationError]]:
        errors = validate_all(self._state.data.sections)
        self.dispatch(SetValidationErrors(errors))
        return errors

    def section_completion(self, section: SectionKey | str) -> int:
        key = SectionKey(section)
        return section_completion(key, self._state.data.sections[key])

    def refresh_completion(self) -> int:
        pct = overall_completion(self._state.data.sections)
        self.dispatch(UpdateProgress(pct))
        return pct

    def scores(self) -> Dict[str, Any]:
        sections = self._state.data.sections
        return {
            "cognitive": score_cognitive(sections[SectionKey.SLUMS].data),
            "depression": score_depression(sections[SectionKey.MENTAL].data),
        }

    # -------------------------
    # persistence
    # -------------------------
    async def save(self, status: str = "draft") -> SaveOutcome:
        return await self.coordinator.save(status)

    async def _auto_save(self) -> SaveOutcome:
        outcome = await self.coordinator.save("draft")
        if not self._closed:
            self.dispatch(AutoSaveSuccess(datetime.now(timezone.utc)))
        return outcome

    def reset_form(self) -> AssessmentFormState:
        data = new_assessment(self.user.id if self.user else "", self.auto_save_enabled)
        return self.dispatch(InitializeAssessment(data))

    # -------------------------
    # read side
    # -------------------------
    def snapshot(self) -> Dict[str, Any]:
        state = self._state
        data = state.data
        return {
            "session_id": self.id,
            "current_section": state.current_section.value,
            "is_loading": state.is_loading,
            "is_saving": state.is_saving,
            "has_unsaved_changes": state.has_unsaved_changes,
            "mode": state.mode,
            "validation_errors": to_jsonable(state.validation_errors),
            "assessment": {
                "id": data.id,
                "version": data.version,
                "status": data.status,
                "client_id": data.client_id,
                "created_by": data.created_by,
                "last_modified": data.last_modified.isoformat(),
                "metadata": to_jsonable(data.metadata),
                "audit": to_jsonable(data.audit),
                "sections": {
                    key.value: {
                        **to_jsonable(section),
                        "completion": section_completion(key, section),
                    }
                    for key, section in data.sections.items()
                },
            },
            "overall_completion": overall_completion(data.sections),
        }

    def export_data(self, format: str = "json") -> Dict[str, Any]:
        if format not in EXPORT_FORMATS:
            raise UserInputError(f"Unsupported export format: {format}")
        # pdf/print rendering happens outside this service; callers get the same payload
        log_event("EXPORT", f"Exporting assessment data in {format} format", {
            "session_id": self.id,
            "assessment_id": self._state.data.id,
        })
        return {"format": format, **self.snapshot(), "scores": to_jsonable(self.scores())}

    def close(self) -> None:
        """Teardown: cancel the pending timer and detach any in-flight save."""
        if self._closed:
            return
        self._closed = True
        self.scheduler.close()
        self.coordinator.close()
        log_event("SESSION_CLOSED", "assessment session closed", {
            "session_id": self.id,
            "assessment_id": self._state.data.id,
            "unsaved": self._state.has_unsaved_changes,
        })
