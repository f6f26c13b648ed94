# eldercare/main.py
from fastapi import FastAPI
from contextlib import asynccontextmanager

from .db import Base, engine
from . import models  # noqa: F401  (registers tables on Base.metadata)
from .errors import install_error_handlers
from .repository import SqlAssessmentStore
from .routes import assessments, sessions as session_routes
from .sessions import SessionRegistry
from .settings import get_settings

settings = get_settings()


def _ensure_db_ready() -> None:
    # guaranteed schema init for pytest + local runs
    Base.metadata.create_all(bind=engine)


_ensure_db_ready()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _ensure_db_ready()
    yield
    # teardown: no auto-save timer may outlive the app
    app.state.sessions.close_all()


app = FastAPI(title="ElderCare Assessment API", version=settings.APP_VERSION, lifespan=lifespan)
app.state.sessions = SessionRegistry(SqlAssessmentStore())

install_error_handlers(app)

app.include_router(session_routes.router)
app.include_router(assessments.router)


@app.get("/")
def health():
    return {
        "status": "ok",
        "service": "eldercare-assessments",
        "version": settings.APP_VERSION,
        "env": settings.ENV,
    }
