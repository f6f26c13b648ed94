from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarHTTP
import logging

logger = logging.getLogger("eldercare")


class AssessmentError(Exception):
    """Base class for everything the assessment engine raises on purpose."""

    error_code = "ASSESSMENT_ERROR"
    status_code = 500


class UserInputError(AssessmentError):
    """Something the person filling the form must fix (shown to them verbatim)."""

    error_code = "USER_INPUT"
    status_code = 400


class IncompleteAssessmentError(UserInputError):
    error_code = "INCOMPLETE_ASSESSMENT"

    def __init__(self, message: str, errors: dict | None = None):
        super().__init__(message)
        self.errors = errors or {}


class MissingIdentityError(AssessmentError):
    error_code = "NO_CURRENT_USER"
    status_code = 401


class PersistenceFailure(AssessmentError):
    error_code = "PERSISTENCE_FAILURE"
    status_code = 502


class RecordNotFound(AssessmentError):
    error_code = "RECORD_NOT_FOUND"
    status_code = 404


class SessionNotFound(AssessmentError):
    error_code = "SESSION_NOT_FOUND"
    status_code = 404


def install_error_handlers(app):
    @app.exception_handler(StarHTTP)
    async def http_exc(_: Request, exc: StarHTTP):
        return JSONResponse({"error": f"HTTP_{exc.status_code}", "detail": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(AssessmentError)
    async def assessment_exc(_: Request, exc: AssessmentError):
        body = {"error": exc.error_code, "detail": str(exc)}
        if isinstance(exc, IncompleteAssessmentError):
            body["validation_errors"] = exc.errors
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code}: {exc}")
        return JSONResponse(body, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled(_: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse({"error": "INTERNAL_ERROR", "detail": "Unexpected error"}, status_code=500)
