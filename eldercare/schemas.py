# eldercare/schemas.py
from __future__ import annotations

from typing import Optional, List, Any, Literal, Dict

from pydantic import BaseModel, Field, ConfigDict

from .engine.sections import SectionKey


class SessionOpen(BaseModel):
    assessment_id: Optional[str] = Field(None, description="Reopen a persisted assessment; omit for a new draft")


class FieldUpdate(BaseModel):
    section: SectionKey
    field: str = Field(..., min_length=1, max_length=128)
    value: Any = None


class SectionUpdate(BaseModel):
    """Subset of SectionData attributes to merge into one section."""
    data: Optional[Dict[str, Any]] = None
    is_complete: Optional[bool] = None
    is_valid: Optional[bool] = None
    completion_percentage: Optional[int] = Field(None, ge=0, le=100)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Navigate(BaseModel):
    section: Optional[SectionKey] = None
    direction: Optional[Literal["next", "previous"]] = None


class SaveRequest(BaseModel):
    status: Literal["draft", "complete"] = "draft"


class ModeRequest(BaseModel):
    mode: Literal["edit", "view", "print"]


class ValidationErrorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field: str
    message: str
    severity: Literal["error", "warning"] = "error"


class SectionValidation(BaseModel):
    section: SectionKey
    errors: List[ValidationErrorOut] = Field(default_factory=list)
    completion: int
    basic_progress: Optional[int] = None


class SaveResponse(BaseModel):
    outcome: Literal["created", "updated", "recreated"]
    assessment_id: str
    previous_id: Optional[str] = None
    status: Literal["draft", "complete"]
    has_unsaved_changes: bool


class CognitiveScoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    max_score: int
    interpretation: str
    education_level: Optional[str] = None
    items: Dict[str, int] = Field(default_factory=dict)
    invalid_items: List[str] = Field(default_factory=list)


class DepressionScoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    answered: int
    max_score: int
    interpretation: str
    is_complete: bool


class ScoresResponse(BaseModel):
    cognitive: CognitiveScoreOut
    depression: DepressionScoreOut
