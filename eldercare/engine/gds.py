# eldercare/engine/gds.py
"""
GDS-15 (Geriatric Depression Scale, short form) scoring.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

MAX_SCORE = 15

NORMAL = "Normal"
MILD = "Mild depression suggested"
MODERATE_SEVERE = "Moderate to severe depression suggested"

# item number -> (question, answer that counts towards depression)
GDS_ITEMS: dict[int, tuple[str, bool]] = {
    1: ("Are you basically satisfied with your life?", False),
    2: ("Have you dropped many of your activities and interests?", True),
    3: ("Do you feel that your life is empty?", True),
    4: ("Do you often get bored?", True),
    5: ("Are you in good spirits most of the time?", False),
    6: ("Are you afraid that something bad is going to happen to you?", True),
    7: ("Do you feel happy most of the time?", False),
    8: ("Do you often feel helpless?", True),
    9: ("Do you prefer to stay at home, rather than going out and doing new things?", True),
    10: ("Do you feel you have more problems with memory than most people?", True),
    11: ("Do you think it is wonderful to be alive?", False),
    12: ("Do you feel pretty worthless the way you are now?", True),
    13: ("Do you feel full of energy?", False),
    14: ("Do you feel that your situation is hopeless?", True),
    15: ("Do you think that most people are better off than you are?", True),
}


def item_field(number: int) -> str:
    return f"gds_q{number}"


@dataclass
class DepressionScore:
    """
    ``total`` is always read against the 15-point scale, even when only a
    few items are answered; check ``answered`` / ``is_complete`` before
    treating a low total as reassuring.
    """
    total: int
    answered: int
    max_score: int
    interpretation: str
    is_complete: bool


def interpret_depression(total: int) -> str:
    if total <= 5:
        return NORMAL
    if total <= 9:
        return MILD
    return MODERATE_SEVERE


def score_depression(data: Mapping[str, Any]) -> DepressionScore:
    total = 0
    answered = 0
    for number, (_, indicative) in GDS_ITEMS.items():
        response = data.get(item_field(number))
        # only real yes/no answers count; unanswered items are skipped
        if not isinstance(response, bool):
            continue
        answered += 1
        if response is indicative:
            total += 1

    return DepressionScore(
        total=total,
        answered=answered,
        max_score=MAX_SCORE,
        interpretation=interpret_depression(total),
        is_complete=answered == len(GDS_ITEMS),
    )
