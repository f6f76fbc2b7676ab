import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import requests

from insights.commons.logger import logger
from insights.parsers.models import Device


def device_ids(bundle: Dict) -> List[str]:
    """Unique device ids referenced by the bundle's observations, in first-seen order."""
    seen: Set[str] = set()
    out: List[str] = []
    for entry in (bundle or {}).get("entry") or []:
        res = entry.get("resource") if isinstance(entry, dict) else None
        ref = ((res or {}).get("device") or {}).get("reference")
        if not ref:
            continue
        dev_id = ref.replace("Device/", "", 1)
        if dev_id not in seen:
            seen.add(dev_id)
            out.append(dev_id)
    return out


class FHIRClient:
    """Minimal read-only FHIR R4 client over a requests Session."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token: Optional[str] = None,
        max_workers: int = 4,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_workers = max_workers
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/fhir+json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def get(self, resource_path: str, params: Optional[Dict] = None) -> Dict:
        response = self.session.get(
            f"{self.base_url}/{resource_path}", params=params, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def get_patient(self, patient_id: str) -> Dict:
        return self.get(f"Patient/{patient_id}")

    def get_observations(self, patient_id: str, count: int = 50) -> Dict:
        return self.get(
            "Observation", params={"patient": patient_id, "_count": count, "_sort": "-date"}
        )

    def get_device(self, device_id: str) -> Device:
        return Device.from_resource(self.get(f"Device/{device_id}"))

    def resolve_devices(self, ids: Iterable[str]) -> Dict[str, str]:
        """Device id -> device name, looked up in parallel.

        A failed lookup is logged and left out of the result; the other
        lookups carry on.
        """
        unique = list(dict.fromkeys(i for i in ids if i))
        names: Dict[str, str] = {}
        if not unique:
            return names

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(unique))) as pool:
            futures = {pool.submit(self.get_device, dev_id): dev_id for dev_id in unique}
            for future in as_completed(futures):
                dev_id = futures[future]
                try:
                    names[dev_id] = future.result().name
                except (requests.RequestException, ValueError, AttributeError) as ex:
                    logger.warning(f"Failed to fetch Device/{dev_id}: {ex}")
        return names


class BundleFileSource:
    """Reads exported Patient / Bundle / device-name JSON files from disk."""

    @staticmethod
    def _load(path: Optional[str]):
        if not path:
            return None
        return json.loads(Path(path).read_text(encoding="utf-8"))

    def load(
        self,
        bundle_path: str,
        patient_path: Optional[str] = None,
        devices_path: Optional[str] = None,
    ) -> Dict:
        devices = self._load(devices_path) or {}
        if isinstance(devices, list):
            # list of Device resources instead of an id -> name map
            devices = {d.id: d.name for d in (Device.from_resource(r) for r in devices)}
        return {
            "patient": self._load(patient_path),
            "bundle": self._load(bundle_path),
            "devices": devices,
        }
