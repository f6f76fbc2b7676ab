from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

class PathsCfg(BaseModel):
    logs_root: str = "logs"
    archive: str = "out/archive"
    error: str = "out/error"

class FhirCfg(BaseModel):
    base_url: str = ""
    timeout_sec: float = 10.0
    observation_count: int = Field(50, gt=0)
    device_workers: int = Field(4, gt=0)
    token: Optional[str] = None

class Settings(BaseModel):
    paths: PathsCfg = Field(default_factory=PathsCfg)
    fhir: FhirCfg = Field(default_factory=FhirCfg)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Settings":
        return cls.model_validate(data or {})
