# eldercare/printable.py
"""Printable HTML view of one assessment (the form's ``print`` mode)."""
from __future__ import annotations

from datetime import datetime, timezone

from jinja2 import Template

from .engine.sections import SECTION_ORDER
from .engine.session import AssessmentSession, to_jsonable

SECTION_TITLES = {
    "basic": "Basic Information",
    "medical": "Medical History",
    "health_symptoms": "Health Symptoms",
    "functional": "Functional Assessment",
    "cognitive": "Cognitive Screening",
    "slums": "SLUMS Examination",
    "mental": "Geriatric Depression Scale",
    "safety": "Home Safety",
    "directives": "Advance Directives",
    "psychosocial": "Psychosocial",
    "hobbies": "Hobbies and Interests",
    "providers": "Care Providers",
    "care_plan": "Care Plan",
    "services": "Care Services",
    "summary": "Final Summary",
}

TEMPLATE = Template(
    r"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>Assessment {{ assessment.id or "(unsaved draft)" }}</title>
  <style>
    body { font-family: Georgia, serif; margin: 32px; color: #1f2933; }
    h1 { font-size: 22px; margin-bottom: 4px; }
    .meta { font-size: 12px; color: #6b7280; margin-bottom: 18px; }
    .scores { display: flex; gap: 24px; margin-bottom: 18px; }
    .score { border: 1px solid #e2e8f0; padding: 8px 12px; }
    h2 { font-size: 16px; border-bottom: 1px solid #e2e8f0; padding-bottom: 2px; margin-top: 22px; }
    table { border-collapse: collapse; width: 100%; font-size: 13px; }
    td { padding: 3px 6px; vertical-align: top; border-bottom: 1px dotted #e2e8f0; }
    td.k { width: 38%; color: #6b7280; }
    .empty { color: #9ca3af; font-style: italic; }
    @media print { body { margin: 12mm; } }
  </style>
</head>
<body>
  <h1>Elder Care Assessment</h1>
  <div class="meta">
    Client {{ assessment.client_id or "-" }} | Status {{ assessment.status }} |
    Completion {{ completion }}% | Printed {{ printed_at }}
  </div>

  <div class="scores">
    <div class="score"><b>SLUMS</b> {{ scores.cognitive.total }}/{{ scores.cognitive.max_score }}<br>{{ scores.cognitive.interpretation }}</div>
    <div class="score"><b>GDS-15</b> {{ scores.depression.total }}/{{ scores.depression.max_score }}<br>{{ scores.depression.interpretation }}</div>
  </div>

  {% for section in sections %}
  <h2>{{ section.title }}</h2>
  {% if section.fields %}
  <table>
    {% for name, value in section.fields %}
    <tr><td class="k">{{ name }}</td><td>{{ value }}</td></tr>
    {% endfor %}
  </table>
  {% else %}
  <div class="empty">No answers recorded.</div>
  {% endif %}
  {% endfor %}
</body>
</html>
""",
    autoescape=True,
)


def _display(value) -> str:
    if value is True:
        return "Yes"
    if value is False:
        return "No"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return "" if value is None else str(value)


def render_printable(session: AssessmentSession) -> str:
    data = session.state.data
    sections = [
        {
            "title": SECTION_TITLES.get(key.value, key.value),
            "fields": [(name, _display(value)) for name, value in sorted(data.sections[key].data.items())],
        }
        for key in SECTION_ORDER
    ]
    snapshot = session.snapshot()
    return TEMPLATE.render(
        assessment=snapshot["assessment"],
        completion=snapshot["overall_completion"],
        scores=to_jsonable(session.scores()),
        sections=sections,
        printed_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
    )
