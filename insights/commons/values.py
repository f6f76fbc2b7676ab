import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Optional

from insights.parsers.models import UNSET, ObservationValue

INTEGER_UNITS = frozenset({"%", "bpm", "/min"})
CELSIUS_UNITS = frozenset({"°C", "degC", "Cel"})

_NUMERIC = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class ExtractedValue:
    value: Any
    unit: str = ""
    coded_answer_code: str = ""


def extract_value(source) -> ExtractedValue:
    """Displayable (value, unit, coded answer code) of an observation or component.

    ``source`` is a raw resource dict, an ``ObservationValue`` or anything
    with a ``value`` attribute holding one. Precedence follows
    ``ObservationValue.from_resource``: quantity, coded answer, string,
    integer, boolean (是/否), interpretation; nothing populated gives the
    ``--`` sentinel.
    """
    if isinstance(source, dict):
        val = ObservationValue.from_resource(source)
    elif isinstance(source, ObservationValue):
        val = source
    else:
        val = source.value

    if val.kind == "quantity":
        return ExtractedValue(val.number, val.unit)
    if val.kind == "coded":
        return ExtractedValue(val.text, coded_answer_code=val.code)
    if val.kind in ("string", "interpretation"):
        return ExtractedValue(val.text)
    if val.kind == "integer":
        return ExtractedValue(val.number)
    if val.kind == "boolean":
        return ExtractedValue("是" if val.flag else "否")
    return ExtractedValue(UNSET)


def to_number(value: Any) -> Optional[float]:
    """Float for numbers and numeric strings; None for anything else (bools, NaN, inf included)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str) and _NUMERIC.fullmatch(value.strip()):
        num = float(value.strip())
    else:
        return None
    return num if math.isfinite(num) else None


def _fixed(num: float, places: int) -> str:
    # half away from zero on the exact binary value
    exp = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = 400
        return format(Decimal(num).quantize(exp, rounding=ROUND_HALF_UP), "f")


def format_value(value: Any, unit: str = "") -> str:
    """Render a value for display.

    Strings pass through untouched. Numbers get a precision by unit first
    (%, bpm, /min -> integer; Celsius -> 1 decimal) and by magnitude
    otherwise (>=100 -> 0, >=10 -> 1, else 2 decimals).
    """
    if value is None or value == UNSET:
        return UNSET
    if isinstance(value, str):
        return value

    num = to_number(value)
    if num is None:
        return str(value)

    if unit in INTEGER_UNITS:
        return str(math.floor(num + 0.5))
    if unit in CELSIUS_UNITS:
        return _fixed(num, 1)
    if abs(num) >= 100:
        return _fixed(num, 0)
    if abs(num) >= 10:
        return _fixed(num, 1)
    return _fixed(num, 2)
