"""LOINC code tables, reference ranges and badge texts.

Hand-curated clinical constants. They are built once at import and exposed
as read-only structures; nothing here is meant to come from configuration.

VeriSee DR (diabetic retinopathy), LOINC 71490-7 left eye / 71491-5 right eye.
Answer codes:
  LA18643-9 no apparent retinopathy     -> follow-up (normal)
  LA18644-7 mild non-proliferative      -> follow-up (normal)
  LA18645-4 moderate non-proliferative  -> referral (critical)
  LA18646-2 severe non-proliferative    -> referral (critical)
  LA18648-8 proliferative retinopathy   -> referral (critical)

VeriOsteo OP (bone density):
  T-score 38267-1 shown for age >= 50, critical at <= -2.5
  Z-score 85394-5 shown for age 20..49, critical at <= -2.0
"""
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

VERISEE_DEVICE = "VeriSee DR"
VERISEE_CODES = ("71490-7", "71491-5")
VERISEE_REFERRAL_CODES = frozenset({"LA18645-4", "LA18646-2", "LA18648-8"})
VERISEE_FOLLOW_UP_CODES = frozenset({"LA18643-9", "LA18644-7"})

VERIOSTEO_DEVICE = "VeriOsteo OP"
T_SCORE_CODE = "38267-1"
Z_SCORE_CODE = "85394-5"
VERIOSTEO_CODES = (T_SCORE_CODE, Z_SCORE_CODE)
T_SCORE_THRESHOLD = -2.5
Z_SCORE_THRESHOLD = -2.0
T_SCORE_MIN_AGE = 50
Z_SCORE_MIN_AGE = 20
Z_SCORE_MAX_AGE = 49

VITAL_CODES = frozenset({
    "8867-4", "9279-1", "8310-5", "2708-6", "85354-9",
    "8480-6", "8462-4", "29463-7", "8302-2", "39156-5",
})
LAB_CODES = frozenset({
    "2339-0", "718-7", "6690-2", "777-3", "2160-0",
    "3094-0", "1742-6", "1920-8", "2093-3", "2571-8",
})
# Radiology / CT / MRI / X-ray / ultrasound findings
IMAGING_CODES = frozenset({
    "18748-4", "18747-6", "18746-8", "24725-9", "30746-2",
    "24566-7", "36643-5", "42148-7", "44136-0", "24558-4",
})

CRITICAL_LOW_FACTOR = Decimal("0.7")
CRITICAL_HIGH_FACTOR = Decimal("1.3")


@dataclass(frozen=True)
class ReferenceRange:
    low: float
    high: float

    @property
    def critical_low(self) -> float:
        return float(Decimal(str(self.low)) * CRITICAL_LOW_FACTOR)

    @property
    def critical_high(self) -> float:
        return float(Decimal(str(self.high)) * CRITICAL_HIGH_FACTOR)


REFERENCE_RANGES = MappingProxyType({
    "8867-4": ReferenceRange(60, 100),     # heart rate (bpm)
    "9279-1": ReferenceRange(12, 20),      # respiratory rate (/min)
    "8310-5": ReferenceRange(36.1, 37.2),  # body temperature (°C)
    "2708-6": ReferenceRange(95, 100),     # oxygen saturation (%)
    "8480-6": ReferenceRange(90, 140),     # systolic BP (mmHg)
    "8462-4": ReferenceRange(60, 90),      # diastolic BP (mmHg)
    "2339-0": ReferenceRange(70, 100),     # glucose (mg/dL)
    "718-7": ReferenceRange(12, 17),       # hemoglobin (g/dL)
    "6690-2": ReferenceRange(4, 11),       # WBC (10^3/uL)
    "777-3": ReferenceRange(150, 400),     # platelets (10^3/uL)
    "2160-0": ReferenceRange(0.6, 1.2),    # creatinine (mg/dL)
})

BADGE_TEXT = MappingProxyType({
    "normal": "正常",
    "warning": "偏離",
    "critical": "異常",
    "referral": "建議轉診",
    "follow_up": "定期追蹤",
    "abnormal": "疑似異常",
    "no_abnormal": "未發現明顯異常",
})

GENDER_LABELS = MappingProxyType({
    "male": "男性",
    "female": "女性",
    "other": "其他",
    "unknown": "未知",
})
