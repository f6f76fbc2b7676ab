from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from .models import Category, Component, Observation


def _matching_code(comp: Component, codes: Sequence[str]) -> Optional[str]:
    """First code of the component's codings that belongs to ``codes``."""
    return next((c for c in comp.codes if c in codes), None)


@dataclass(frozen=True)
class DeviceRule:
    """Component processor bound to one device name and one output category."""

    device_name: str
    category_key: str
    process: Callable[[Iterable[Component], Category, Optional[int]], None]

    def applies(self, device_name: Optional[str], obs: Observation) -> bool:
        return device_name == self.device_name and obs.components is not None


def detect_device_rule(
    rules: Iterable[DeviceRule], device_name: Optional[str], obs: Observation
) -> Optional[DeviceRule]:
    """Return the device rule for this observation, or None for the standard path."""
    if not device_name:
        return None
    return next((r for r in rules if r.applies(device_name, obs)), None)
