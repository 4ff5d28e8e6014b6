from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

from policy_engine.core.types import CycleType, Segment
from policy_engine.features.catalog.types import Policy
from policy_engine.features.combinations.types import PinnedAttributes
from policy_engine.features.cycle_rules.types import CycleTypeResolution

CYCLE_TYPE = "cycle_type"
RESIDENT_TYPE_FIELD = "resident_type"
MEMBER_TYPE_FIELD = "member_type"


@dataclass(frozen=True, slots=True)
class SelectionState:
    """
    What the user form currently holds. Owned by the caller, never stored by
    the engine; every operation returns a new instance.
    """

    segment: Segment | str
    cycle_type: CycleType
    speed: str | None = None
    data_volume: str | None = None
    device_count: int | None = None
    resident_type: str | None = None
    member_type: str | None = None
    editing: bool = False

    def pins(self) -> PinnedAttributes:
        return PinnedAttributes(
            speed=self.speed, data_volume=self.data_volume, device_count=self.device_count
        )

    def replace(self, **changes: Any) -> SelectionState:
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True, slots=True)
class FormOptions:
    cycle: CycleTypeResolution
    speeds: list[str]
    data_volumes: list[str]
    device_counts: list[int]
    fallbacks: frozenset[str] = field(default_factory=frozenset)

    def as_dict(self) -> dict[str, Any]:
        return {
            "cycle": self.cycle.as_dict(),
            "speeds": self.speeds,
            "data_volumes": self.data_volumes,
            "device_counts": self.device_counts,
            "fallbacks": sorted(self.fallbacks),
        }


@dataclass(frozen=True, slots=True)
class PolicySubmission:
    policy_id: str
    cycle_type: CycleType
    policy: Policy | None = None  # matching catalog row, if the site has one

    @property
    def in_catalog(self) -> bool:
        return self.policy is not None
