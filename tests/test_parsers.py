# flake8: noqa

from datetime import date

import pytest

from insights.commons.classifier import new_categories
from insights.parsers.models import Component
from insights.parsers.patient import parse_patient
from insights.parsers.veriosteo import process_veriosteo, score_applies
from insights.parsers.verisee import process_verisee


def comp(code, display=None, **value):
    coding = {"system": "http://loinc.org", "code": code}
    if display:
        coding["display"] = display
    return Component.from_resource({"code": {"coding": [coding]}, **value})


DR_COMPONENTS = [
    comp("71490-7", "Left eye DR", valueCodeableConcept={"coding": [{"code": "LA18645-4", "display": "Moderate NPDR"}]}),
    comp("71491-5", "Right eye DR", valueCodeableConcept={"text": "No apparent retinopathy", "coding": [{"code": "LA18643-9"}]}),
    comp("8867-4", "Heart rate", valueQuantity={"value": 80, "unit": "bpm"}),
    comp("71490-7", "Left eye DR", valueCodeableConcept={"coding": [{"code": "LA18643-9", "display": "None"}]}),
]

BONE_COMPONENTS = [
    comp("38267-1", "T-score", valueQuantity={"value": -2.5, "unit": "SD"}),
    comp("85394-5", "Z-score", valueQuantity={"value": -1.0, "unit": "SD"}),
]


def test_verisee_grades_each_eye():
    cat = new_categories()["verisee"]
    process_verisee(DR_COMPONENTS, cat)
    items = cat.item_list
    assert [i.code for i in items] == ["71490-7", "71491-5"]

    left, right = items
    assert left.value == "Moderate NPDR"
    assert left.value_concept_code == "LA18645-4"
    assert (left.status, left.badge) == ("critical", "建議轉診")
    assert right.value == "No apparent retinopathy"
    assert (right.status, right.badge) == ("normal", "定期追蹤")


def test_verisee_first_component_per_key_wins():
    cat = new_categories()["verisee"]
    process_verisee(DR_COMPONENTS, cat)
    assert cat.items[("Left eye DR", "71490-7")].value == "Moderate NPDR"


def test_verisee_component_without_display_or_value():
    cat = new_categories()["verisee"]
    process_verisee([Component.from_resource({"code": {"coding": [{"code": "71491-5"}]}})], cat)
    (item,) = cat.item_list
    assert item.name == "未知項目"
    assert item.value == "--"
    assert item.badge == "定期追蹤"


@pytest.mark.parametrize(
    "age,expected",
    [
        (50, {"38267-1"}),
        (49, {"85394-5"}),
        (20, {"85394-5"}),
        (19, set()),
        (80, {"38267-1"}),
        (None, {"38267-1", "85394-5"}),
    ],
)
def test_veriosteo_age_gate(age, expected):
    cat = new_categories()["veriosteo"]
    process_veriosteo(BONE_COMPONENTS, cat, age)
    assert {i.code for i in cat.item_list} == expected


def test_veriosteo_keeps_raw_number():
    cat = new_categories()["veriosteo"]
    process_veriosteo(BONE_COMPONENTS, cat, 60)
    (t_score,) = cat.item_list
    assert t_score.numeric_value == -2.5
    assert t_score.value == "-2.5"
    assert t_score.unit == "SD"
    assert (t_score.status, t_score.badge) == ("critical", "疑似異常")


def test_score_applies_boundaries():
    assert score_applies("38267-1", 50) and not score_applies("38267-1", 49)
    assert score_applies("85394-5", 20) and score_applies("85394-5", 49)
    assert not score_applies("85394-5", 19) and not score_applies("85394-5", 50)


PATIENT = {
    "resourceType": "Patient",
    "id": "p-001",
    "gender": "female",
    "birthDate": "1962-03-08",
    "name": [{"family": "王", "given": ["小", "明"]}],
    "telecom": [{"system": "email", "value": "a@b.tw"}, {"system": "phone", "value": "0912-345-678"}],
    "address": [{"city": "台北市", "line": ["信義路五段7號"]}],
}


def test_patient_summary():
    p = parse_patient(PATIENT, date(2024, 3, 8))
    assert p.id == "p-001"
    assert p.name == "王小明"
    assert p.gender_label == "女性"
    assert p.age == 62
    assert p.age_display == "62 歲"
    assert p.phone == "0912-345-678"
    assert p.address == "台北市信義路五段7號"


def test_patient_fallbacks():
    p = parse_patient({}, date(2024, 1, 1))
    assert p.id == "未知"
    assert p.name == "未知姓名"
    assert p.gender_label == "未標註"
    assert p.age is None and p.age_display == "--"
    assert p.phone == "未登錄"
    assert p.address == "未登錄"


def test_patient_name_text_and_unmapped_gender():
    p = parse_patient({"name": [{"text": "陳大文"}], "gender": "nonbinary"})
    assert p.name == "陳大文"
    assert p.gender_label == "nonbinary"
