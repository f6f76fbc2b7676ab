from datetime import date
from typing import Optional

from insights.parsers.models import UNSET, parse_fhir_datetime


def calculate_age(birth_date: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Whole years since ``birth_date``; None if missing, unparseable or in the future."""
    born = parse_fhir_datetime(birth_date)
    if born is None:
        return None
    born = born.date()
    today = today or date.today()
    if born > today:
        return None
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def display_age(birth_date: Optional[str], today: Optional[date] = None) -> str:
    age = calculate_age(birth_date, today)
    return UNSET if age is None else f"{age} 歲"
