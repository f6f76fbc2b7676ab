# insights/services/summary_service.py
import json
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import requests
from pydantic import ValidationError

from insights.commons.logger import logger
from insights.helpers.fhir_transport import BundleFileSource
from insights.helpers.router import SummaryRouter
from insights.validation.validators import validate_bundle_or_raise, validate_patient_or_raise


def generate_output_filename(patient_id: Optional[str], origin: str = "fhir", extension: str = "json") -> str:
    """
    Output name with a sortable timestamp, e.g.
    - 20250821-170605-123456_p123_fhir.json
    - 20250821-170605-123456_unknown_file.json
    """
    ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    safe_id = re.sub(r"[^a-zA-Z0-9_\-]", "_", patient_id or "unknown")
    return f"{ts}_{safe_id}_{origin}.{extension}"


class SummaryService:
    def __init__(self, router: SummaryRouter):
        self.router = router
        self.paths = router.paths
        Path(self.paths.archive).mkdir(parents=True, exist_ok=True)
        Path(self.paths.error).mkdir(parents=True, exist_ok=True)

    def _write_error(self, record: Dict, name: str) -> Path:
        errp = Path(self.paths.error) / name
        errp.write_text(json.dumps(record, ensure_ascii=False, indent=2, default=str), encoding="utf-8")
        return errp

    def process_record(self, record: Dict, origin: str) -> Optional[Dict]:
        """Validate, classify and archive one fetched record.

        Returns the summary, or None when the record was moved to the error folder.
        """
        patient_id = (record.get("patient") or {}).get("id")
        self.router.archive_raw("recv", record, tag=origin)
        try:
            validate_bundle_or_raise(record.get("bundle"))
            if record.get("patient") is not None:
                validate_patient_or_raise(record["patient"])
            summary = self.router.build_summary(record)
        except ValidationError as ve:
            errp = self._write_error(record, generate_output_filename(patient_id, origin))
            logger.error(f"Validation failed for patient {patient_id}: {ve}. Moved to {errp}")
            return None
        except Exception as ex:
            errp = self._write_error(record, generate_output_filename(patient_id, origin))
            logger.exception(f"Error building summary: {ex}. Moved to {errp}")
            return None

        out = Path(self.paths.archive) / generate_output_filename(patient_id, origin)
        out.write_text(json.dumps(summary, ensure_ascii=False, indent=2), encoding="utf-8")
        counts = {k: len(c["items"]) for k, c in summary["categories"].items() if c["items"]}
        logger.info(f"Summary written to {out} {counts}")
        return summary

    def run_remote(self, patient_id: str) -> Optional[Dict]:
        try:
            record = self.router.fetch_record(patient_id)
        except requests.RequestException as ex:
            logger.error(f"FHIR fetch failed for patient {patient_id}: {ex}")
            raise
        bundle = record["bundle"] if isinstance(record["bundle"], dict) else {}
        logger.info(
            f"Fetched patient {patient_id}: "
            f"{len(bundle.get('entry') or [])} observation(s), {len(record['devices'])} device(s)"
        )
        return self.process_record(record, origin="fhir")

    def run_file(
        self, bundle_path: str, patient_path: Optional[str] = None, devices_path: Optional[str] = None
    ) -> Optional[Dict]:
        record = BundleFileSource().load(bundle_path, patient_path, devices_path)
        return self.process_record(record, origin="file")
