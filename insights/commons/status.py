from typing import Any, Optional

from insights.commons.codes import (
    BADGE_TEXT,
    REFERENCE_RANGES,
    T_SCORE_CODE,
    T_SCORE_THRESHOLD,
    VERISEE_CODES,
    VERISEE_REFERRAL_CODES,
    Z_SCORE_CODE,
    Z_SCORE_THRESHOLD,
)
from insights.commons.values import to_number
from insights.parsers.models import Status

_SCORE_THRESHOLDS = {
    T_SCORE_CODE: T_SCORE_THRESHOLD,
    Z_SCORE_CODE: Z_SCORE_THRESHOLD,
}


def _score_is_low(code: str, numeric_value: Any) -> bool:
    score = to_number(numeric_value)
    return score is not None and score <= _SCORE_THRESHOLDS[code]


def value_status(
    code: str,
    value: Any = None,
    coded_answer_code: str = "",
    numeric_value: Optional[Any] = None,
) -> Status:
    """Severity of one result; first matching rule wins.

    1. VeriSee DR codes with a coded answer: referral answers are critical.
    2. T-score / Z-score with a raw number: critical at or below threshold.
    3. Reference range by code: outside the range is a warning, at or past
       the 30% band around it is critical. Unknown codes and non-numeric
       values are normal.
    """
    if code in VERISEE_CODES and coded_answer_code:
        return "critical" if coded_answer_code in VERISEE_REFERRAL_CODES else "normal"

    if code in _SCORE_THRESHOLDS and numeric_value is not None:
        return "critical" if _score_is_low(code, numeric_value) else "normal"

    rng = REFERENCE_RANGES.get(code)
    num = to_number(value)
    if rng is None or num is None:
        return "normal"
    if num <= rng.critical_low or num >= rng.critical_high:
        return "critical"
    if num < rng.low or num > rng.high:
        return "warning"
    return "normal"


def badge_text(
    status: Status,
    code: str,
    coded_answer_code: str = "",
    numeric_value: Optional[Any] = None,
) -> str:
    # DR labels follow the answer code alone, even when status fell through to a range
    if code in VERISEE_CODES:
        if coded_answer_code in VERISEE_REFERRAL_CODES:
            return BADGE_TEXT["referral"]
        return BADGE_TEXT["follow_up"]

    if code in _SCORE_THRESHOLDS and numeric_value is not None:
        if _score_is_low(code, numeric_value):
            return BADGE_TEXT["abnormal"]
        return BADGE_TEXT["no_abnormal"]

    return BADGE_TEXT.get(status, BADGE_TEXT["normal"])
