# flake8: noqa

import pytest
import requests

from insights.commons.engine import InsightsEngine
from insights.helpers.fhir_transport import FHIRClient, device_ids
from insights.helpers.router import SummaryRouter, render_text

BASE = "https://fhir.example.org/R4"

PATIENT = {"resourceType": "Patient", "id": "p9", "birthDate": "1950-01-01", "gender": "male"}

BUNDLE = {
    "resourceType": "Bundle",
    "entry": [
        {
            "resource": {
                "resourceType": "Observation",
                "code": {"coding": [{"code": "80948-3"}]},
                "device": {"reference": "Device/op-1"},
                "component": [
                    {"code": {"coding": [{"code": "38267-1", "display": "T-score"}]}, "valueQuantity": {"value": -1.0}}
                ],
            }
        },
        {"resource": {"resourceType": "Observation", "code": {"coding": [{"code": "x"}]}, "device": {"reference": "Device/down"}}},
        {"resource": {"resourceType": "Observation", "code": {"coding": [{"code": "y"}]}, "device": {"reference": "Device/op-1"}}},
        {"resource": {"resourceType": "Observation", "code": {"coding": [{"code": "z"}]}}},
    ],
}

RESOURCES = {
    "Patient/p9": PATIENT,
    "Observation": BUNDLE,
    "Device/op-1": {"resourceType": "Device", "id": "op-1", "deviceName": [{"name": "VeriOsteo OP", "type": "user-friendly-name"}]},
    "Device/dr-1": {"resourceType": "Device", "id": "dr-1", "deviceName": [{"name": "VeriSee DR"}]},
    "Device/noname": {"resourceType": "Device", "id": "noname"},
}


class FakeResponse:
    def __init__(self, status, data=None):
        self.status_code = status
        self._data = data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        return self._data


class FakeSession:
    def __init__(self, resources):
        self.resources = resources
        self.headers = {}
        self.calls = []

    def get(self, url, params=None, timeout=None):
        path = url[len(BASE) + 1:]
        self.calls.append((path, params, timeout))
        if path == "Device/timeout":
            raise requests.ConnectionError("connection reset")
        if path in self.resources:
            return FakeResponse(200, self.resources[path])
        return FakeResponse(404, {"resourceType": "OperationOutcome"})


def make_client(**kw):
    return FHIRClient(BASE + "/", session=FakeSession(RESOURCES), **kw)


def test_device_ids_unique_in_order():
    assert device_ids(BUNDLE) == ["op-1", "down"]
    assert device_ids({}) == []


def test_headers_and_observation_query():
    client = make_client(token="abc", timeout=3)
    client.get_observations("p9", count=20)
    assert client.session.headers["Authorization"] == "Bearer abc"
    path, params, timeout = client.session.calls[-1]
    assert path == "Observation"
    assert params == {"patient": "p9", "_count": 20, "_sort": "-date"}
    assert timeout == 3


def test_resolve_devices_isolates_failures():
    client = make_client(max_workers=3)
    names = client.resolve_devices(["op-1", "down", "timeout", "dr-1", "op-1", "noname"])
    assert names == {"op-1": "VeriOsteo OP", "dr-1": "VeriSee DR", "noname": ""}
    fetched = [c[0] for c in client.session.calls]
    assert fetched.count("Device/op-1") == 1


def test_resolve_devices_empty():
    assert make_client().resolve_devices([]) == {}


def test_missing_patient_raises():
    with pytest.raises(requests.HTTPError):
        make_client().get_patient("nope")


def test_router_fetch_and_summary():
    router = SummaryRouter(InsightsEngine({"fhir": {"observation_count": 10}}), make_client())
    record = router.fetch_record("p9")
    assert record["devices"] == {"op-1": "VeriOsteo OP"}

    summary = router.build_summary(record)
    cats = summary["categories"]
    # failed device lookup: the observation is classified the standard way
    assert [i["code"] for i in cats["other"]["items"]] == ["x", "y", "z"]
    (t_score,) = cats["veriosteo"]["items"]
    assert t_score["badge"] == "未發現明顯異常"

    text = render_text(summary)
    assert "VeriOsteo OP (Acer Medical) (1 項)" in text
    assert "T-score: -1" in text


def test_render_text_without_items():
    summary = InsightsEngine().build_summary(PATIENT, {"resourceType": "Bundle"})
    assert "目前沒有可顯示的檢查結果" in render_text(summary)
