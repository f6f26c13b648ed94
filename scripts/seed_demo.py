# scripts/seed_demo.py
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from eldercare.db import Base, SessionLocal, engine
from eldercare import models
from eldercare.engine.sections import SectionKey
from eldercare.settings import get_settings

settings = get_settings()


def _demo_fields(i):
    basic = {
        "clientId": f"demo-client-{i}",
        "assessmentDate": "2026-10-01",
        "completionDate": "2026-10-02" if i % 2 == 0 else "",
        "consultationReasons": ["memory"] if i % 3 else ["falls", "medication"],
    }
    mental = {f"gds_q{n}": (n + i) % 2 == 0 for n in range(1, 16)}
    slums = {
        "cognitive_education_level": "High School Graduate" if i % 2 == 0 else "Less than High School",
        "slums_q1_score": 1,
        "slums_q2_score": 1,
        "slums_q7_score": i % 6,
    }
    return {
        **basic,
        **slums,
        **mental,
        "section_fields": {
            SectionKey.BASIC.value: sorted(basic),
            SectionKey.SLUMS.value: sorted(slums),
            SectionKey.MENTAL.value: sorted(mental),
        },
    }


def seed_demo():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(models.AssessmentRecord).first():
            print("Assessments already present, nothing to seed.")
            return
        db.add_all([
            models.AssessmentRecord(
                client_id=f"demo-client-{i}",
                created_by="demo-nurse",
                status=models.StatusEnum.DRAFT,
                fields=_demo_fields(i),
                app_version=settings.APP_VERSION,
                schema_version=settings.SCHEMA_VERSION,
            )
            for i in range(6)
        ])
        db.commit()
        print("Seeded demo assessments.")
    finally:
        db.close()


if __name__ == "__main__":
    seed_demo()
