from typing import Iterable, Optional

from insights.commons.codes import (
    T_SCORE_CODE,
    T_SCORE_MIN_AGE,
    VERIOSTEO_CODES,
    Z_SCORE_CODE,
    Z_SCORE_MAX_AGE,
    Z_SCORE_MIN_AGE,
)
from insights.commons.status import badge_text, value_status
from insights.commons.values import format_value

from .base import _matching_code
from .models import Category, ClassifiedItem, Component


def score_applies(code: str, patient_age: Optional[int]) -> bool:
    """T-score is read for ages >= 50, Z-score for 20..49. Unknown age shows both."""
    if patient_age is None:
        return True
    if code == T_SCORE_CODE:
        return patient_age >= T_SCORE_MIN_AGE
    if code == Z_SCORE_CODE:
        return Z_SCORE_MIN_AGE <= patient_age <= Z_SCORE_MAX_AGE
    return True


def process_veriosteo(
    components: Iterable[Component], category: Category, patient_age: Optional[int] = None
) -> None:
    """VeriOsteo OP: bone density scores, age gated, keeping the raw number for thresholds."""
    for comp in components:
        code = _matching_code(comp, VERIOSTEO_CODES)
        if not code or not score_applies(code, patient_age):
            continue

        name = comp.name
        if (name, code) in category.items:
            continue

        unit = comp.unit
        answer = comp.answer_code
        raw = comp.raw_number
        status = value_status(code, comp.display_value, answer, raw)
        category.add(
            ClassifiedItem(
                name=name,
                value=format_value(comp.display_value, unit),
                unit=unit,
                code=code,
                value_concept_code=answer,
                numeric_value=raw,
                status=status,
                badge=badge_text(status, code, answer, raw),
            )
        )
