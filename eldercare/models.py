# eldercare/models.py
from __future__ import annotations

import enum
import json
import uuid

from sqlalchemy import (
    Column,
    String,
    Enum as SAEnum,
    DateTime,
)
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator, TEXT

from .db import Base


# -------------------------
# SQLite-safe JSON object
# -------------------------
class JsonDict(TypeDecorator):
    impl = TEXT
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return "{}"
        if isinstance(value, dict):
            return json.dumps(value, ensure_ascii=False, default=str)
        if isinstance(value, str):
            s = value.strip()
            return s if s else "{}"
        return "{}"

    def process_result_value(self, value, dialect):
        if not value:
            return {}
        try:
            parsed = json.loads(value)
            return parsed if isinstance(parsed, dict) else {}
        except ValueError:
            return {}


class StatusEnum(str, enum.Enum):
    DRAFT = "draft"
    COMPLETE = "complete"


def _uuid() -> str:
    return str(uuid.uuid4())


class AssessmentRecord(Base):
    """One persisted assessment: section boundaries are gone, fields are flat."""

    __tablename__ = "assessments"

    id = Column(String, primary_key=True, default=_uuid)

    client_id = Column(String, nullable=False, index=True)
    created_by = Column(String, nullable=False, index=True)
    status = Column(SAEnum(StatusEnum), nullable=False, default=StatusEnum.DRAFT)

    # flat field map (plus the section_fields index)
    fields = Column(JsonDict, default=dict, nullable=False)

    app_version = Column(String, nullable=True)
    schema_version = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
