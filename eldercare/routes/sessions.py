# eldercare/routes/sessions.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import HTMLResponse

from .. import schemas
from ..engine.persistence import CurrentUser, Recreated
from ..engine.sections import SectionKey
from ..identity import require_user
from ..printable import render_printable
from ..sessions import SessionRegistry, get_registry
from ..settings import get_settings

router = APIRouter(prefix="/sessions", tags=["sessions"])
settings = get_settings()


# -------------------------
# OPEN / READ / CLOSE
# -------------------------
@router.post("/", status_code=201)
async def open_session(
    body: schemas.SessionOpen,
    response: Response,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    response.headers["X-App-Version"] = settings.APP_VERSION
    session = await registry.open(user, body.assessment_id)
    return session.snapshot()


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    return registry.get(session_id, user).snapshot()


@router.delete("/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    registry.get(session_id, user)
    registry.close(session_id)
    return Response(status_code=204)


# -------------------------
# EDITS / NAVIGATION
# -------------------------
@router.patch("/{session_id}/fields")
async def update_field(
    session_id: str,
    body: schemas.FieldUpdate,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    session.update_field(body.section, body.field, body.value)
    return session.snapshot()


@router.patch("/{session_id}/sections/{section}")
async def update_section(
    session_id: str,
    section: SectionKey,
    body: schemas.SectionUpdate,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    session.update_section(section, body.changes())
    return session.snapshot()


@router.post("/{session_id}/navigate")
async def navigate(
    session_id: str,
    body: schemas.Navigate,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    if body.section is not None:
        session.set_current_section(body.section)
    elif body.direction == "next":
        session.next_section()
    elif body.direction == "previous":
        session.previous_section()
    return {"current_section": session.state.current_section.value}


@router.post("/{session_id}/mode")
async def set_mode(
    session_id: str,
    body: schemas.ModeRequest,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    session.set_mode(body.mode)
    return {"mode": session.state.mode}


@router.post("/{session_id}/reset")
async def reset_form(
    session_id: str,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    session.reset_form()
    return session.snapshot()


# -------------------------
# VALIDATION / SCORES
# -------------------------
@router.get("/{session_id}/validation/{section}", response_model=schemas.SectionValidation)
async def validate_section(
    session_id: str,
    section: SectionKey,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    errors = session.validate_section(section)
    basic_progress = session.refresh_basic_progress() if section is SectionKey.BASIC else None
    return schemas.SectionValidation(
        section=section,
        errors=[schemas.ValidationErrorOut.model_validate(e) for e in errors],
        completion=session.section_completion(section),
        basic_progress=basic_progress,
    )


@router.post("/{session_id}/validation")
async def validate_all(
    session_id: str,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    errors = session.validate_all()
    return {
        "errors": {
            key: [schemas.ValidationErrorOut.model_validate(e).model_dump() for e in items]
            for key, items in errors.items()
        },
        "error_count": sum(len(items) for items in errors.values()),
        "overall_completion": session.refresh_completion(),
    }


@router.get("/{session_id}/scores", response_model=schemas.ScoresResponse)
async def scores(
    session_id: str,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    result = registry.get(session_id, user).scores()
    return schemas.ScoresResponse(
        cognitive=schemas.CognitiveScoreOut.model_validate(result["cognitive"]),
        depression=schemas.DepressionScoreOut.model_validate(result["depression"]),
    )


# -------------------------
# SAVE / EXPORT
# -------------------------
@router.post("/{session_id}/save", response_model=schemas.SaveResponse)
async def save(
    session_id: str,
    body: schemas.SaveRequest,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    outcome = await session.save(body.status)
    state = session.state
    return schemas.SaveResponse(
        outcome=outcome.kind,
        assessment_id=outcome.id,
        previous_id=outcome.previous_id if isinstance(outcome, Recreated) else None,
        status=state.data.status,
        has_unsaved_changes=state.has_unsaved_changes,
    )


@router.get("/{session_id}/export")
async def export_data(
    session_id: str,
    format: str = Query("json"),
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    return registry.get(session_id, user).export_data(format)


@router.get("/{session_id}/print", response_class=HTMLResponse)
async def print_view(
    session_id: str,
    user: CurrentUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(session_id, user)
    html = render_printable(session)
    return HTMLResponse(content=html)
