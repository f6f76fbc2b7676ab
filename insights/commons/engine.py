from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

from insights.commons.classifier import ObservationClassifier
from insights.commons.types import Settings
from insights.parsers.models import Category
from insights.parsers.patient import parse_patient


class InsightsEngine:
    """Engine facade that loads config and exposes classify/summary methods.

    Accepts a YAML path, an already loaded dict or nothing (defaults).
    """

    def __init__(self, config_path_or_obj: Any = None):
        if isinstance(config_path_or_obj, str):
            with open(config_path_or_obj, "r", encoding="utf-8") as f:
                self.cfg = yaml.safe_load(f) or {}
        elif isinstance(config_path_or_obj, dict):
            self.cfg = config_path_or_obj
        else:
            self.cfg = {}

        self.settings = Settings.from_dict(self.cfg)
        self.classifier = ObservationClassifier()

    def classify(
        self,
        entries: Iterable,
        device_names: Optional[Mapping[str, str]] = None,
        patient_age: Optional[int] = None,
    ) -> Dict[str, Category]:
        return self.classifier.classify(entries, device_names, patient_age)

    def build_summary(
        self,
        patient: Optional[Dict],
        bundle: Optional[Dict],
        device_names: Optional[Mapping[str, str]] = None,
        today: Optional[date] = None,
    ) -> Dict:
        """Patient card data plus classified categories, JSON serialisable."""
        summary = parse_patient(patient, today)
        entries = (bundle or {}).get("entry") or []
        categories = self.classify(entries, device_names, summary.age)
        return {
            "patient": summary.to_dict(),
            "patient_age": summary.age,
            "devices": dict(device_names or {}),
            "categories": self.classifier.to_payload(categories),
            "generated_at": datetime.now().isoformat(timespec="seconds"),
        }
