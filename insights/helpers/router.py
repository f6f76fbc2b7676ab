import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from insights.commons.engine import InsightsEngine
from insights.helpers.fhir_transport import FHIRClient, device_ids

NO_DATA = "目前沒有可顯示的檢查結果"
STATUS_MARK = {"normal": "·", "warning": "!", "critical": "‼"}


def render_text(summary: Dict) -> str:
    """Plain-text rendering of a summary payload: patient line, then non-empty sections."""
    p = summary.get("patient") or {}
    lines: List[str] = [
        f"{p.get('name', '')} ({p.get('id', '')})  {p.get('gender_label', '')}  "
        f"{p.get('birth_date') or '未標註'}  {p.get('age_display', '--')}",
        f"電話 {p.get('phone', '')}  地址 {p.get('address', '')}",
        "",
    ]

    has_data = False
    for cat in (summary.get("categories") or {}).values():
        items = cat.get("items") or []
        if not items:
            continue
        has_data = True
        lines.append(f"{cat['icon']} {cat['title']} ({len(items)} 項)")
        for it in items:
            mark = STATUS_MARK.get(it["status"], " ")
            unit = f" {it['unit']}" if it["unit"] else ""
            lines.append(f"  {mark} {it['name']}: {it['value']}{unit}  [{it['badge']}]")
        lines.append("")

    if not has_data:
        lines.append(NO_DATA)
    return "\n".join(lines).rstrip() + "\n"


class SummaryRouter:
    def __init__(self, engine: InsightsEngine, client: Optional[FHIRClient] = None):
        self.engine = engine
        self.client = client
        self.paths = engine.settings.paths

    def archive_raw(self, direction: str, payload: Dict, tag: str) -> Path:
        base = Path(self.paths.logs_root) / "raw" / direction
        base.mkdir(parents=True, exist_ok=True)
        name = f'{datetime.now().strftime("%Y%m%d_%H%M%S_%f")}_{tag}.json'
        path = base / name
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        return path

    # FHIR server -> raw payloads
    def fetch_record(self, patient_id: str) -> Dict:
        if self.client is None:
            raise RuntimeError("No FHIR client configured")
        fhir = self.engine.settings.fhir
        patient = self.client.get_patient(patient_id)
        bundle = self.client.get_observations(patient_id, fhir.observation_count)
        devices = self.client.resolve_devices(device_ids(bundle))
        return {"patient": patient, "bundle": bundle, "devices": devices}

    # raw payloads -> summary dict
    def build_summary(self, record: Dict) -> Dict:
        return self.engine.build_summary(
            record.get("patient"), record.get("bundle"), record.get("devices")
        )
