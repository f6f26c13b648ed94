# eldercare/tests/conftest.py
import asyncio
import os
import sys

# Point the app at a throwaway database before anything imports settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_eldercare.db")
os.environ.setdefault("AUTOSAVE_QUIET_SECONDS", "30")

sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pytest

from eldercare.engine.persistence import CurrentUser
from eldercare.engine.session import AssessmentSession


class FakeStore:
    """In-memory stand-in for the remote document store, with call counters."""

    def __init__(self, fail_update=False, fail_create=False, delay=0.0):
        self.records = {}
        self.creates = 0
        self.updates = 0
        self.fetches = 0
        self.fail_update = fail_update
        self.fail_create = fail_create
        self.fail_fetch = False
        self.delay = delay

    @property
    def calls(self):
        return self.creates + self.updates + self.fetches

    async def fetch_by_id(self, assessment_id):
        self.fetches += 1
        if self.fail_fetch:
            raise ConnectionError("store offline")
        rec = self.records.get(assessment_id)
        return None if rec is None else {**rec, "id": assessment_id}

    async def create(self, record):
        self.creates += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_create:
            raise ConnectionError("create rejected")
        new_id = f"rec-{self.creates}"
        self.records[new_id] = dict(record)
        return new_id

    async def update(self, assessment_id, record):
        self.updates += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_update or assessment_id not in self.records:
            raise LookupError(f"no document {assessment_id}")
        self.records[assessment_id] = {**self.records[assessment_id], **record}


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def user():
    return CurrentUser(id="nurse-1", role="assessor")


@pytest.fixture
def session(store, user):
    s = AssessmentSession(store, user, quiet_period=30, auto_save_enabled=False)
    yield s
    s.close()


def _fill_basic(session, client_id="client-42"):
    session.update_field("basic", "clientId", client_id)
    session.update_field("basic", "assessmentDate", "2026-10-01")
    session.update_field("basic", "completionDate", "2026-10-02")
    session.update_field("basic", "consultationReasons", ["memory"])


@pytest.fixture
def fill_basic():
    return _fill_basic


def _fill_all(session, client_id="client-42"):
    """Every required field of every section, so the form can be completed."""
    from eldercare.engine.sections import CONSULTATION_REASONS_FIELD, REQUIRED_FIELDS

    _fill_basic(session, client_id)
    for key, names in REQUIRED_FIELDS.items():
        for name in names:
            if key.value == "basic" or name == CONSULTATION_REASONS_FIELD:
                continue
            session.update_field(key, name, "yes")


@pytest.fixture
def fill_all():
    return _fill_all
