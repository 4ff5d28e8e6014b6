from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from policy_engine.core.types import CycleType, Segment

RESIDENT_TYPE = "residentType"
MEMBER_TYPE = "memberType"


@dataclass(frozen=True, slots=True)
class DerivedCycleRule:
    """One-way mapping from a secondary classifier to the cycle type."""

    attribute: str
    state_field: str
    mapping: MappingProxyType[str, CycleType]
    initial: str

    def values(self) -> tuple[str, ...]:
        return tuple(self.mapping)


DERIVED_CYCLE_RULES: MappingProxyType[Segment, DerivedCycleRule] = MappingProxyType(
    {
        Segment.CO_LIVING: DerivedCycleRule(
            attribute=RESIDENT_TYPE,
            state_field="resident_type",
            mapping=MappingProxyType(
                {"Long-Term": CycleType.MONTHLY, "Short-Term": CycleType.DAILY}
            ),
            initial="Long-Term",
        ),
        Segment.CO_WORKING: DerivedCycleRule(
            attribute=MEMBER_TYPE,
            state_field="member_type",
            mapping=MappingProxyType(
                {"Permanent": CycleType.MONTHLY, "Temporary": CycleType.DAILY}
            ),
            initial="Permanent",
        ),
    }
)
