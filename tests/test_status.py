# flake8: noqa

import pytest

from insights.commons.codes import REFERENCE_RANGES
from insights.commons.status import badge_text, value_status

HEART_RATE = "8867-4"
T_SCORE = "38267-1"
Z_SCORE = "85394-5"
DR_LEFT = "71490-7"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("100", "normal"),
        ("60", "normal"),
        ("101", "warning"),
        ("129", "warning"),
        ("130", "critical"),
        ("59", "warning"),
        ("43", "warning"),
        ("42", "critical"),
        (72, "normal"),
    ],
)
def test_heart_rate_reference_range(value, expected):
    assert value_status(HEART_RATE, value) == expected


def test_generic_badges():
    assert badge_text("normal", HEART_RATE) == "正常"
    assert badge_text("warning", HEART_RATE) == "偏離"
    assert badge_text("critical", HEART_RATE) == "異常"


def test_non_numeric_and_unknown_codes_are_normal():
    assert value_status(HEART_RATE, "--") == "normal"
    assert value_status(HEART_RATE, "abc") == "normal"
    assert value_status("1234-5", "999") == "normal"
    assert value_status("", None) == "normal"


def test_critical_band_edges():
    rng = REFERENCE_RANGES[HEART_RATE]
    assert rng.critical_low == 42.0
    assert rng.critical_high == 130.0


@pytest.mark.parametrize(
    "code,score,status,badge",
    [
        (T_SCORE, -2.5, "critical", "疑似異常"),
        (T_SCORE, -2.499, "normal", "未發現明顯異常"),
        (T_SCORE, -3.1, "critical", "疑似異常"),
        (Z_SCORE, -2.0, "critical", "疑似異常"),
        (Z_SCORE, -1.999, "normal", "未發現明顯異常"),
        (Z_SCORE, 0.4, "normal", "未發現明顯異常"),
    ],
)
def test_bone_density_thresholds(code, score, status, badge):
    got = value_status(code, str(score), "", score)
    assert got == status
    assert badge_text(got, code, "", score) == badge


def test_unparseable_score_is_normal():
    assert value_status(T_SCORE, "n/a", "", "n/a") == "normal"
    assert badge_text("normal", T_SCORE, "", "n/a") == "未發現明顯異常"


def test_score_without_raw_number_uses_generic_path():
    assert value_status(T_SCORE, "-3.0") == "normal"
    assert badge_text("normal", T_SCORE) == "正常"


def test_retinopathy_referral_and_follow_up():
    assert value_status(DR_LEFT, "Moderate", "LA18645-4") == "critical"
    assert badge_text("critical", DR_LEFT, "LA18645-4") == "建議轉診"
    assert value_status(DR_LEFT, "None", "LA18643-9") == "normal"
    assert badge_text("normal", DR_LEFT, "LA18643-9") == "定期追蹤"


def test_retinopathy_badge_ignores_status():
    # no coded answer: status falls through to ranges, the label still reads follow-up
    assert value_status(DR_LEFT, "--", "") == "normal"
    assert badge_text("critical", DR_LEFT, "") == "定期追蹤"
