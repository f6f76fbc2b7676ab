# ===============================
# File: insights/parsers/models.py
# ===============================
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple

UNSET = "--"  # sentinel shown when an observation carries no value
UNKNOWN_ITEM = "未知項目"

Status = Literal["normal", "warning", "critical"]
ValueKind = Literal["quantity", "coded", "string", "integer", "boolean", "interpretation", "unset"]

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _first(items) -> Dict:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def coding_codes(concept: Optional[Dict]) -> List[str]:
    """All non-empty codes of a CodeableConcept, in coding order."""
    codings = (concept or {}).get("coding") or []
    return [c["code"] for c in codings if isinstance(c, dict) and c.get("code")]


def concept_name(concept: Optional[Dict]) -> str:
    concept = concept or {}
    return _first(concept.get("coding")).get("display") or concept.get("text") or UNKNOWN_ITEM


def stringify_number(value: Any) -> str:
    """Plain text form of a raw FHIR number (integral floats drop the ``.0``)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_fhir_datetime(raw: Optional[str]) -> Optional[datetime]:
    """Parse a FHIR date/dateTime (YYYY, YYYY-MM, YYYY-MM-DD or full instant).

    Naive values are taken as UTC so every result compares with every other.
    Returns None when the value is missing or unparseable.
    """
    if not raw or not isinstance(raw, str):
        return None
    text = raw.strip()
    if len(text) == 4 and text.isdigit():
        text += "-01-01"
    elif len(text) == 7 and text[4] == "-":
        text += "-01"
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class ObservationValue:
    """Tagged variant over the FHIR ``value[x]`` choice.

    ``from_resource`` probes the slots in a fixed precedence order:
    quantity, coded answer, string, integer, boolean, interpretation.
    The first populated slot wins; none populated gives ``kind="unset"``.
    """

    kind: ValueKind = "unset"
    number: Any = None
    unit: str = ""
    text: Optional[str] = None
    code: str = ""
    flag: Optional[bool] = None

    @classmethod
    def from_resource(cls, res: Dict) -> "ObservationValue":
        qty = res.get("valueQuantity")
        if isinstance(qty, dict) and qty.get("value") is not None:
            return cls(kind="quantity", number=qty["value"], unit=qty.get("unit") or "")

        concept = res.get("valueCodeableConcept")
        if isinstance(concept, dict):
            coding = _first(concept.get("coding"))
            return cls(
                kind="coded",
                text=concept.get("text") or coding.get("display") or UNSET,
                code=coding.get("code") or "",
            )

        if res.get("valueString"):
            return cls(kind="string", text=res["valueString"])

        if res.get("valueInteger") is not None:
            return cls(kind="integer", number=res["valueInteger"])

        if res.get("valueBoolean") is not None:
            return cls(kind="boolean", flag=bool(res["valueBoolean"]))

        interp = _first(res.get("interpretation"))
        if interp:
            return cls(
                kind="interpretation",
                text=interp.get("text") or _first(interp.get("coding")).get("display") or UNSET,
            )

        return cls()


@dataclass
class Component:
    code: Dict
    quantity: Dict = field(default_factory=dict)
    concept: Optional[Dict] = None

    @property
    def codes(self) -> List[str]:
        return coding_codes(self.code)

    @property
    def name(self) -> str:
        return concept_name(self.code)

    @property
    def raw_number(self) -> Any:
        return self.quantity.get("value")

    @property
    def unit(self) -> str:
        return self.quantity.get("unit") or ""

    @property
    def answer_code(self) -> str:
        return _first((self.concept or {}).get("coding")).get("code") or ""

    @property
    def display_value(self) -> str:
        """Coded answer text, else its display, else the quantity as text, else the sentinel."""
        concept = self.concept or {}
        text = concept.get("text") or _first(concept.get("coding")).get("display")
        if text:
            return text
        if self.raw_number is not None:
            return stringify_number(self.raw_number) or UNSET
        return UNSET

    @classmethod
    def from_resource(cls, comp: Dict) -> "Component":
        qty = comp.get("valueQuantity")
        concept = comp.get("valueCodeableConcept")
        return cls(
            code=comp.get("code") or {},
            quantity=qty if isinstance(qty, dict) else {},
            concept=concept if isinstance(concept, dict) else None,
        )


@dataclass
class Observation:
    code: Dict
    value: ObservationValue
    categories: List[str] = field(default_factory=list)
    effective: Optional[datetime] = None
    device_ref: Optional[str] = None
    components: Optional[List[Component]] = None  # None when the resource has no "component"
    raw: Dict = None

    @property
    def codes(self) -> List[str]:
        return coding_codes(self.code)

    @property
    def primary_code(self) -> str:
        return _first(self.code.get("coding")).get("code") or ""

    @property
    def name(self) -> str:
        return concept_name(self.code)

    @property
    def device_id(self) -> Optional[str]:
        if not self.device_ref:
            return None
        return self.device_ref.replace("Device/", "", 1)

    @property
    def sort_key(self) -> datetime:
        return self.effective or _EARLIEST

    @classmethod
    def from_resource(cls, res: Dict) -> "Observation":
        categories: List[str] = []
        for cat in res.get("category") or []:
            if isinstance(cat, dict):
                categories.extend(coding_codes(cat))

        comps = res.get("component")
        components = None
        if isinstance(comps, list):
            components = [Component.from_resource(c) for c in comps if isinstance(c, dict)]

        device = res.get("device")
        return cls(
            code=res.get("code") or {},
            value=ObservationValue.from_resource(res),
            categories=categories,
            effective=parse_fhir_datetime(res.get("effectiveDateTime")),
            device_ref=device.get("reference") if isinstance(device, dict) else None,
            components=components,
            raw=res,
        )


@dataclass
class Device:
    id: str
    name: str = ""

    @classmethod
    def from_resource(cls, res: Dict) -> "Device":
        return cls(id=res.get("id") or "", name=_first(res.get("deviceName")).get("name") or "")


@dataclass(frozen=True)
class ClassifiedItem:
    name: str
    value: str
    unit: str
    code: str
    value_concept_code: str = ""
    numeric_value: Any = None
    status: Status = "normal"
    badge: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name, self.code)

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "code": self.code,
            "value_concept_code": self.value_concept_code,
            "numeric_value": self.numeric_value,
            "status": self.status,
            "badge": self.badge,
        }


@dataclass
class Category:
    key: str
    title: str
    icon: str
    icon_class: str
    items: Dict[Tuple[str, str], ClassifiedItem] = field(default_factory=dict)

    def add(self, item: ClassifiedItem) -> bool:
        """Insert if the (name, code) key is new. Returns False on duplicates."""
        if item.key in self.items:
            return False
        self.items[item.key] = item
        return True

    @property
    def item_list(self) -> List[ClassifiedItem]:
        return list(self.items.values())

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "icon": self.icon,
            "icon_class": self.icon_class,
            "items": [i.to_dict() for i in self.items.values()],
        }


@dataclass
class PatientSummary:
    id: str
    name: str
    gender: Optional[str]
    gender_label: str
    birth_date: Optional[str]
    age: Optional[int]
    age_display: str
    phone: str
    address: str

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender,
            "gender_label": self.gender_label,
            "birth_date": self.birth_date,
            "age": self.age,
            "age_display": self.age_display,
            "phone": self.phone,
            "address": self.address,
        }
