# eldercare/routes/assessments.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models
from ..db import get_db
from ..engine.persistence import ADMIN_ROLE, CurrentUser, can_access
from ..errors import RecordNotFound
from ..identity import require_user
from ..repository import to_record

router = APIRouter(prefix="/assessments", tags=["assessments"])


# -------------------------
# RAW PERSISTED RECORD
# -------------------------
@router.get("/{assessment_id}")
def get_assessment(
    assessment_id: str,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    obj = db.get(models.AssessmentRecord, assessment_id)
    # someone else's record looks exactly like a missing one
    if not obj or not can_access(user, obj.created_by):
        raise RecordNotFound(f"Assessment {assessment_id} not found")
    return to_record(obj)


@router.get("/")
def list_assessments(
    client_id: str | None = None,
    status: models.StatusEnum | None = None,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    q = db.query(models.AssessmentRecord)
    if client_id:
        q = q.filter(models.AssessmentRecord.client_id == client_id)
    if status:
        q = q.filter(models.AssessmentRecord.status == status)
    # non-admins only see their own work
    if user.role != ADMIN_ROLE:
        q = q.filter(models.AssessmentRecord.created_by == user.id)

    rows = q.order_by(models.AssessmentRecord.created_at.desc()).all()
    return [
        {
            "id": r.id,
            "client_id": r.client_id,
            "created_by": r.created_by,
            "status": r.status.value,
            "created_at": r.created_at,
            "updated_at": r.updated_at,
        }
        for r in rows
    ]
