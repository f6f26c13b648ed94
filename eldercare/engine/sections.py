# eldercare/engine/sections.py
from __future__ import annotations

import enum


class SectionKey(str, enum.Enum):
    BASIC = "basic"
    MEDICAL = "medical"
    HEALTH_SYMPTOMS = "health_symptoms"
    FUNCTIONAL = "functional"
    COGNITIVE = "cognitive"
    SLUMS = "slums"
    MENTAL = "mental"
    SAFETY = "safety"
    DIRECTIVES = "directives"
    PSYCHOSOCIAL = "psychosocial"
    HOBBIES = "hobbies"
    PROVIDERS = "providers"
    CARE_PLAN = "care_plan"
    SERVICES = "services"
    SUMMARY = "summary"


# navigation order == declaration order
SECTION_ORDER: tuple[SectionKey, ...] = tuple(SectionKey)

CLIENT_ID_FIELD = "clientId"
CONSULTATION_REASONS_FIELD = "consultationReasons"


REQUIRED_FIELDS: dict[SectionKey, list[str]] = {
    SectionKey.BASIC: ["clientId", "assessmentDate", "completionDate", "consultationReasons"],
    SectionKey.MEDICAL: ["allergies", "currentMedications", "primaryCarePhysicianName"],
    SectionKey.HEALTH_SYMPTOMS: ["nutrition_status", "pain_level", "medication_adherence", "sleep_quality"],
    SectionKey.FUNCTIONAL: [
        "adl_bathing", "adl_dressing", "adl_toileting", "adl_transferring", "adl_continence", "adl_feeding",
        "iadl_phone", "iadl_shopping", "iadl_food_prep", "iadl_housekeeping", "iadl_laundry",
        "iadl_transportation", "iadl_medications", "iadl_finances",
    ],
    SectionKey.COGNITIVE: ["memory_concerns", "others_concerns", "significant_dates", "disorientation"],
    SectionKey.SLUMS: [
        "cognitive_education_level", "slums_q1_day_answer", "slums_q2_year_answer", "slums_q3_state_answer",
        "slums_q5_spent_answer", "slums_q5_left_answer", "slums_q6_animals_count", "slums_q7_objects_recalled",
        "slums_q8_649_answer", "slums_q8_8537_answer", "slums_q9_clock_drawing", "slums_q10_triangle_drawing",
        "slums_q11_name_answer", "slums_q11_work_answer", "slums_q11_when_answer", "slums_q11_state_answer",
    ],
    SectionKey.MENTAL: [f"gds_q{i}" for i in range(1, 16)],
    SectionKey.SAFETY: ["home_types", "floor_plan", "safety_concerns_identified"],
    SectionKey.DIRECTIVES: ["has_poa", "has_living_will", "has_advance_directives"],
    SectionKey.PSYCHOSOCIAL: ["regular_support_providers", "adequate_support", "main_social_supports"],
    SectionKey.HOBBIES: ["enjoy_for_fun", "current_hobbies", "social_preference"],
    SectionKey.PROVIDERS: [],
    SectionKey.CARE_PLAN: [],
    SectionKey.SERVICES: ["services_requested", "priority_level"],
    SectionKey.SUMMARY: ["additional_comments", "assessment_completion_date"],
}

# The page-1 progress bar counts exactly these, in this order.
BASIC_PROGRESS_FIELDS = ("clientId", "assessmentDate", "completionDate", "consultationReasons")

# Used to put fields back into their section when a record has no section index.
FIELD_PREFIXES: dict[str, SectionKey] = {
    "slums_": SectionKey.SLUMS,
    "cognitive_": SectionKey.SLUMS,
    "gds_": SectionKey.MENTAL,
    "mental_": SectionKey.MENTAL,
    "adl_": SectionKey.FUNCTIONAL,
    "iadl_": SectionKey.FUNCTIONAL,
    "functional_": SectionKey.FUNCTIONAL,
    "safety_": SectionKey.SAFETY,
    "home_": SectionKey.SAFETY,
    "directive_": SectionKey.DIRECTIVES,
    "poa_": SectionKey.DIRECTIVES,
    "psychosocial_": SectionKey.PSYCHOSOCIAL,
    "hobby_": SectionKey.HOBBIES,
    "provider_": SectionKey.PROVIDERS,
    "care_plan_": SectionKey.CARE_PLAN,
    "service_": SectionKey.SERVICES,
    "services_": SectionKey.SERVICES,
    "summary_": SectionKey.SUMMARY,
}

_REQUIRED_OWNER: dict[str, SectionKey] = {
    field: key for key, fields in REQUIRED_FIELDS.items() for field in fields
}


def get_required_fields(key: SectionKey | str) -> list[str]:
    return REQUIRED_FIELDS.get(SectionKey(key), [])


def owning_section(field: str) -> SectionKey:
    """
    Best-effort owner of a flat field name.

    Required-field table first, then prefix rules; everything else is
    treated as basic information.
    """
    if field in _REQUIRED_OWNER:
        return _REQUIRED_OWNER[field]
    for prefix, key in FIELD_PREFIXES.items():
        if field.startswith(prefix):
            return key
    return SectionKey.BASIC


def next_section(key: SectionKey | str) -> SectionKey | None:
    idx = SECTION_ORDER.index(SectionKey(key))
    if idx + 1 >= len(SECTION_ORDER):
        return None
    return SECTION_ORDER[idx + 1]


def previous_section(key: SectionKey | str) -> SectionKey | None:
    idx = SECTION_ORDER.index(SectionKey(key))
    if idx == 0:
        return None
    return SECTION_ORDER[idx - 1]
