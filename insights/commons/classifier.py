from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from insights.commons.codes import (
    IMAGING_CODES,
    LAB_CODES,
    VERIOSTEO_DEVICE,
    VERISEE_DEVICE,
    VITAL_CODES,
)
from insights.commons.logger import logger
from insights.commons.status import badge_text, value_status
from insights.commons.values import extract_value, format_value
from insights.parsers.base import DeviceRule, detect_device_rule
from insights.parsers.models import Category, ClassifiedItem, Observation
from insights.parsers.verisee import process_verisee
from insights.parsers.veriosteo import process_veriosteo

# key -> (title, icon, icon class), in display order
CATEGORY_META: Tuple[Tuple[str, str, str, str], ...] = (
    ("vital_signs", "生命徵象", "❤️", "vital"),
    ("laboratory", "實驗室檢驗", "🔬", "lab"),
    ("imaging", "影像檢驗", "📷", "imaging"),
    ("verisee", "VeriSee DR (Acer Medical)", "👁️", "verisee"),
    ("veriosteo", "VeriOsteo OP (Acer Medical)", "🦴", "veriosteo"),
    ("other", "其他觀察紀錄", "📊", "other"),
)

DEVICE_RULES: Tuple[DeviceRule, ...] = (
    DeviceRule(VERISEE_DEVICE, "verisee", process_verisee),
    DeviceRule(VERIOSTEO_DEVICE, "veriosteo", process_veriosteo),
)

# FHIR observation-category code -> (category key, LOINC list), checked in order
STANDARD_ROUTES: Tuple[Tuple[str, str, frozenset], ...] = (
    ("vital-signs", "vital_signs", VITAL_CODES),
    ("laboratory", "laboratory", LAB_CODES),
    ("imaging", "imaging", IMAGING_CODES),
)


def new_categories() -> Dict[str, Category]:
    return {key: Category(key, title, icon, icon_cls) for key, title, icon, icon_cls in CATEGORY_META}


def standard_category(obs: Observation) -> str:
    """Explicit category coding first, then LOINC list membership, else ``other``."""
    for fhir_code, key, _ in STANDARD_ROUTES:
        if fhir_code in obs.categories:
            return key
    codes = obs.codes
    for _, key, loinc in STANDARD_ROUTES:
        if any(c in loinc for c in codes):
            return key
    return "other"


def classify_standard(obs: Observation) -> ClassifiedItem:
    ext = extract_value(obs)
    shown = format_value(ext.value, ext.unit)
    code = obs.primary_code
    status = value_status(code, shown, ext.coded_answer_code)
    return ClassifiedItem(
        name=obs.name,
        value=shown,
        unit=ext.unit,
        code=code,
        value_concept_code=ext.coded_answer_code,
        status=status,
        badge=badge_text(status, code, ext.coded_answer_code),
    )


class ObservationClassifier:
    """Routes observations into display categories.

    Device rule sets run first and short-circuit; everything else goes
    through the standard category path. Within a category, only the first
    item per (name, code) is kept, and observations are visited newest
    first, so the survivor is always the latest one.
    """

    def __init__(self, rules: Sequence[DeviceRule] = DEVICE_RULES):
        self.rules = tuple(rules)

    @staticmethod
    def _observations(entries: Iterable) -> List[Observation]:
        out: List[Observation] = []
        for entry in entries or []:
            if isinstance(entry, Observation):
                out.append(entry)
                continue
            res = entry.get("resource") if isinstance(entry, dict) else None
            if not isinstance(res, dict):
                continue
            out.append(Observation.from_resource(res))
        return out

    def classify(
        self,
        observations: Iterable,
        device_names: Optional[Mapping[str, str]] = None,
        patient_age: Optional[int] = None,
    ) -> Dict[str, Category]:
        """Classify bundle entries (``{"resource": {...}}``) or parsed observations."""
        device_names = device_names or {}
        categories = new_categories()

        # sorted() is stable: equal timestamps keep their input order
        ordered = sorted(self._observations(observations), key=lambda o: o.sort_key, reverse=True)

        for obs in ordered:
            device_name = device_names.get(obs.device_id) if obs.device_id else None
            rule = detect_device_rule(self.rules, device_name, obs)
            if rule:
                rule.process(obs.components, categories[rule.category_key], patient_age)
                continue

            if obs.device_id and not device_name:
                logger.debug(f"Device/{obs.device_id} has no resolved name; using standard categories")

            item = classify_standard(obs)
            categories[standard_category(obs)].add(item)

        return categories

    def to_payload(self, categories: Mapping[str, Category]) -> Dict:
        return {key: cat.to_dict() for key, cat in categories.items()}
