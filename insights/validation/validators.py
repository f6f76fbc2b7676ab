# insights/validation/validators.py
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class BundleEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    resource: Optional[Dict[str, Any]] = None


class ObservationBundle(BaseModel):
    model_config = ConfigDict(extra="allow")

    resourceType: Literal["Bundle"]
    entry: List[BundleEntry] = []

    @field_validator("entry", mode="before")
    @classmethod
    def _entry_is_list(cls, v):
        # searches with no match omit "entry" or send null
        return [] if v is None else v


class PatientResource(BaseModel):
    model_config = ConfigDict(extra="allow")

    resourceType: Literal["Patient"] = "Patient"
    id: Optional[str] = None
    birthDate: Optional[str] = None
    gender: Optional[str] = None
    name: List[Dict[str, Any]] = []
    telecom: List[Dict[str, Any]] = []
    address: List[Dict[str, Any]] = []


def validate_bundle_or_raise(bundle: Any) -> ObservationBundle:
    """Raise ValidationError unless ``bundle`` is a Bundle whose entries are objects."""
    return ObservationBundle.model_validate(bundle)


def validate_patient_or_raise(patient: Any) -> PatientResource:
    """Raise ValidationError unless ``patient`` looks like a Patient resource."""
    return PatientResource.model_validate(patient)
