# eldercare/repository.py
"""
SQLAlchemy-backed assessment store.

Implements the three coroutines the persistence coordinator needs. The
database work is synchronous, so each call runs in a worker thread.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from . import models
from .db import SessionLocal
from .errors import RecordNotFound
from .settings import get_settings

settings = get_settings()

_COLUMNS = ("client_id", "created_by", "status")


def _split(record: Dict[str, Any]) -> tuple[dict, dict]:
    columns = {k: record.get(k) for k in _COLUMNS}
    fields = {k: v for k, v in record.items() if k not in _COLUMNS and k != "id"}
    return columns, fields


def _status(value: Any) -> models.StatusEnum:
    try:
        return models.StatusEnum(value)
    except ValueError:
        return models.StatusEnum.DRAFT


def to_record(obj: models.AssessmentRecord) -> Dict[str, Any]:
    """Flat record: form fields plus id / client_id / created_by / status / timestamps."""
    return {
        **(obj.fields or {}),
        "id": obj.id,
        "client_id": obj.client_id,
        "created_by": obj.created_by,
        "status": obj.status.value if obj.status else models.StatusEnum.DRAFT.value,
        "created_at": obj.created_at,
        "updated_at": obj.updated_at,
    }


class SqlAssessmentStore:
    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    # ---------- sync bodies ----------
    def _fetch(self, assessment_id: str) -> Optional[Dict[str, Any]]:
        db: Session = self._session_factory()
        try:
            obj = db.get(models.AssessmentRecord, assessment_id)
            return to_record(obj) if obj else None
        finally:
            db.close()

    def _create(self, record: Dict[str, Any]) -> str:
        columns, fields = _split(record)
        obj = models.AssessmentRecord(
            client_id=str(columns["client_id"] or ""),
            created_by=str(columns["created_by"] or ""),
            status=_status(columns["status"]),
            fields=fields,
            app_version=settings.APP_VERSION,
            schema_version=settings.SCHEMA_VERSION,
        )
        db: Session = self._session_factory()
        try:
            db.add(obj)
            db.commit()
            db.refresh(obj)
            return obj.id
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _update(self, assessment_id: str, record: Dict[str, Any]) -> None:
        columns, fields = _split(record)
        db: Session = self._session_factory()
        try:
            obj = db.get(models.AssessmentRecord, assessment_id)
            if obj is None:
                raise RecordNotFound(f"Assessment {assessment_id} not found")
            if columns["client_id"]:
                obj.client_id = str(columns["client_id"])
            if columns["created_by"]:
                obj.created_by = str(columns["created_by"])
            if columns["status"]:
                obj.status = _status(columns["status"])
            # partial update: keys not sent keep their stored value
            obj.fields = {**(obj.fields or {}), **fields}
            obj.app_version = settings.APP_VERSION
            obj.schema_version = settings.SCHEMA_VERSION
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ---------- store protocol ----------
    async def fetch_by_id(self, assessment_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._fetch, assessment_id)

    async def create(self, record: Dict[str, Any]) -> str:
        return await asyncio.to_thread(self._create, record)

    async def update(self, assessment_id: str, record: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._update, assessment_id, record)
