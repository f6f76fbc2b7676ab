from typing import Iterable, Optional

from insights.commons.codes import VERISEE_CODES
from insights.commons.status import badge_text, value_status
from insights.commons.values import format_value

from .base import _matching_code
from .models import Category, ClassifiedItem, Component


def process_verisee(
    components: Iterable[Component], category: Category, patient_age: Optional[int] = None
) -> None:
    """VeriSee DR: one item per eye, graded by the coded answer.

    Components without 71490-7 / 71491-5 are ignored. ``patient_age`` is
    accepted for a uniform rule signature; retinopathy grading is not age gated.
    """
    for comp in components:
        code = _matching_code(comp, VERISEE_CODES)
        if not code:
            continue

        name = comp.name
        if (name, code) in category.items:
            continue

        unit = comp.unit
        answer = comp.answer_code
        status = value_status(code, comp.display_value, answer)
        category.add(
            ClassifiedItem(
                name=name,
                value=format_value(comp.display_value, unit),
                unit=unit,
                code=code,
                value_concept_code=answer,
                status=status,
                badge=badge_text(status, code, answer),
            )
        )
