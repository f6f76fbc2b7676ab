from datetime import date
from typing import Dict, Optional

from insights.commons.age import calculate_age
from insights.commons.codes import GENDER_LABELS
from insights.parsers.models import UNSET, PatientSummary, _first

NOT_RECORDED = "未登錄"
NOT_LABELLED = "未標註"


def _name(res: Dict) -> str:
    name = _first(res.get("name"))
    if name.get("text"):
        return name["text"]
    # Taiwanese order: family then given names, no separator
    joined = (name.get("family") or "") + "".join(name.get("given") or [])
    return joined or "未知姓名"


def _phone(res: Dict) -> str:
    for tel in res.get("telecom") or []:
        if isinstance(tel, dict) and tel.get("system") == "phone" and tel.get("value"):
            return tel["value"]
    return NOT_RECORDED


def _address(res: Dict) -> str:
    addr = _first(res.get("address"))
    if addr.get("text"):
        return addr["text"]
    return ((addr.get("city") or "") + "".join(addr.get("line") or [])) or NOT_RECORDED


def parse_patient(res: Optional[Dict], today: Optional[date] = None) -> PatientSummary:
    res = res or {}
    gender = res.get("gender")
    birth_date = res.get("birthDate")
    age = calculate_age(birth_date, today)
    return PatientSummary(
        id=res.get("id") or "未知",
        name=_name(res),
        gender=gender,
        gender_label=GENDER_LABELS.get(gender) or gender or NOT_LABELLED,
        birth_date=birth_date,
        age=age,
        age_display=UNSET if age is None else f"{age} 歲",
        phone=_phone(res),
        address=_address(res),
    )
