from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from policy_engine.core.errors import InvalidPolicyAttribute
from policy_engine.core.types import (
    CONNECTION_TYPE,
    DIMENSIONS,
    CycleType,
    Segment,
    coerce_device_count,
)

BANDWIDTH_USER_LEVEL = "userLevel"
BANDWIDTH_FIXED = "fixed"
BANDWIDTH_TYPES: frozenset[str] = frozenset({BANDWIDTH_USER_LEVEL, BANDWIDTH_FIXED})


@dataclass(frozen=True, slots=True)
class Policy:
    """
    One catalog row. Segment, cycle type and device count accept their string
    forms ("enterprise", "Monthly", "3") and are stored as enum / int.
    """

    segment: Segment
    speed: str
    data_volume: str
    device_count: int
    cycle_type: CycleType
    policy_id: str
    connection_type: str = CONNECTION_TYPE
    license_limit: int | None = None

    def __post_init__(self) -> None:
        seg = Segment.parse(self.segment)
        if seg is None:
            raise InvalidPolicyAttribute("segment", self.segment)
        object.__setattr__(self, "segment", seg)
        object.__setattr__(self, "cycle_type", CycleType.parse(self.cycle_type))
        object.__setattr__(self, "device_count", coerce_device_count(self.device_count))

    def attribute(self, name: str) -> str | int:
        """Value of one dimension (speed, data_volume or device_count)."""
        if name not in DIMENSIONS:
            raise KeyError(f"Unknown dimension={name!r}")
        return getattr(self, name)

    @property
    def key(self) -> tuple[Segment, str, str, int, CycleType]:
        return (self.segment, self.speed, self.data_volume, self.device_count, self.cycle_type)


@dataclass(frozen=True, slots=True)
class SitePolicyCatalog:
    """
    Policies provisioned for one (site, segment) pair.

    Read-only snapshot for the lifetime of a form session. Only membership and
    attribute projection are used, so insertion order carries no meaning
    beyond the order options are listed in.
    """

    site_id: str
    segment: Segment
    policies: tuple[Policy, ...] = ()

    def __iter__(self) -> Iterator[Policy]:
        return iter(self.policies)

    def __len__(self) -> int:
        return len(self.policies)

    def for_cycle(self, cycle_type: CycleType) -> tuple[Policy, ...]:
        cycle = CycleType.parse(cycle_type)
        return tuple(p for p in self.policies if p.cycle_type is cycle)

    def find(
        self, speed: str, data_volume: str, device_count: int, cycle_type: CycleType
    ) -> Policy | None:
        cycle = CycleType.parse(cycle_type)
        for p in self.policies:
            if (p.speed, p.data_volume, p.device_count, p.cycle_type) == (
                speed,
                data_volume,
                device_count,
                cycle,
            ):
                return p
        return None

    def find_policy_id(
        self, speed: str, data_volume: str, device_count: int, cycle_type: CycleType
    ) -> str | None:
        """Stored ID of the row matching a full selection, None when not provisioned."""
        policy = self.find(speed, data_volume, device_count, cycle_type)
        return policy.policy_id if policy is not None else None

    def get(self, policy_id: str, cycle_type: CycleType | None = None) -> Policy | None:
        cycle = None if cycle_type is None else CycleType.parse(cycle_type)
        for p in self.policies:
            if p.policy_id == policy_id and (cycle is None or p.cycle_type is cycle):
                return p
        return None


@dataclass(frozen=True, slots=True)
class SiteSettings:
    """Site provisioning data the engine reads (never writes)."""

    site_id: str
    segment: Segment
    catalog: SitePolicyCatalog
    bandwidth_type: str = BANDWIDTH_USER_LEVEL
    max_bandwidth: int = 200
    data_cycle_type: CycleType | None = None  # site-provisioned cycle (miscellaneous)
    total_license_limit: int = 0

    @property
    def is_fixed_bandwidth(self) -> bool:
        return self.bandwidth_type == BANDWIDTH_FIXED
