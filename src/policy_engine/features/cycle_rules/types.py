from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from policy_engine.core.types import CycleType, Segment

BOTH_CYCLES: tuple[CycleType, ...] = (CycleType.DAILY, CycleType.MONTHLY)


@dataclass(frozen=True, slots=True)
class CycleRule:
    """
    Which cycle types a segment offers and who decides the active one.

    site_configured: allowed collapses to the site's provisioned cycle type
    (or `allowed[0]` when the site has none).
    derived_from: the cycle type follows a secondary attribute instead of
    being chosen directly.
    """

    allowed: tuple[CycleType, ...] = BOTH_CYCLES
    editable_on_create: bool = True
    editable_on_edit: bool = True
    site_configured: bool = False
    derived_from: str | None = None


GENERIC_RULE = CycleRule()


@dataclass(frozen=True, slots=True)
class CycleRuleTable:
    rules: MappingProxyType[Segment, CycleRule]
    fallback: CycleRule = GENERIC_RULE

    def get(self, segment: Segment) -> CycleRule:
        return self.rules.get(segment, self.fallback)


DEFAULT_CYCLE_RULES = CycleRuleTable(
    rules=MappingProxyType(
        {
            Segment.ENTERPRISE: GENERIC_RULE,
            Segment.OFFICE: GENERIC_RULE,
            Segment.CO_LIVING: CycleRule(
                editable_on_create=False, editable_on_edit=False, derived_from="residentType"
            ),
            Segment.CO_WORKING: CycleRule(
                editable_on_create=False, editable_on_edit=False, derived_from="memberType"
            ),
            # an existing guest keeps the cycle type it was created with
            Segment.HOTEL: CycleRule(editable_on_create=True, editable_on_edit=False),
            Segment.PG: CycleRule(
                allowed=(CycleType.MONTHLY,), editable_on_create=False, editable_on_edit=False
            ),
            Segment.MISCELLANEOUS: CycleRule(
                allowed=(CycleType.MONTHLY,),
                editable_on_create=False,
                editable_on_edit=False,
                site_configured=True,
            ),
        }
    )
)


@dataclass(frozen=True, slots=True)
class SiteOverrides:
    data_cycle_type: CycleType | None = None


@dataclass(frozen=True, slots=True)
class CycleTypeResolution:
    allowed: tuple[CycleType, ...]
    editable: bool
    derived_from: str | None = None

    @property
    def default_cycle_type(self) -> CycleType:
        return self.allowed[0]

    def as_dict(self) -> dict:
        return {
            "allowed": [c.value for c in self.allowed],
            "editable": self.editable,
            "derived_from": self.derived_from,
        }
