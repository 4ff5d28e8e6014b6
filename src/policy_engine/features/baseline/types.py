from __future__ import annotations

from dataclasses import dataclass

from policy_engine.core.types import (
    DATA_VOLUME,
    DEVICE_COUNT,
    SPEED,
    CycleType,
    mbps_of,
)

DEFAULT_SPEEDS: tuple[str, ...] = ("10Mbps", "20Mbps", "30Mbps", "50Mbps", "Unlimited")
DEFAULT_DATA_VOLUMES: tuple[str, ...] = ("10GB", "20GB", "50GB", "100GB", "Unlimited")
DEFAULT_DEVICE_COUNTS: tuple[int, ...] = (1, 2, 3, 4, 5)


@dataclass(frozen=True, slots=True)
class CycleOptions:
    speeds: tuple[str, ...] = DEFAULT_SPEEDS
    data_volumes: tuple[str, ...] = DEFAULT_DATA_VOLUMES


@dataclass(frozen=True, slots=True)
class BaselineOptionSets:
    """
    Segment-agnostic default domains, keyed only by cycle type.

    Used whenever a site catalog cannot supply a dimension, so a dropdown is
    never left empty. Accessors hand out fresh lists; the tuples stay frozen.
    """

    daily: CycleOptions = CycleOptions()
    monthly: CycleOptions = CycleOptions()
    device_counts: tuple[int, ...] = DEFAULT_DEVICE_COUNTS

    def _for(self, cycle_type: CycleType) -> CycleOptions:
        return self.daily if CycleType.parse(cycle_type) is CycleType.DAILY else self.monthly

    def speed_options_for(self, cycle_type: CycleType) -> list[str]:
        return list(self._for(cycle_type).speeds)

    def data_options_for(self, cycle_type: CycleType) -> list[str]:
        return list(self._for(cycle_type).data_volumes)

    def device_options_for(self) -> list[int]:
        return list(self.device_counts)

    def options_for(self, dimension: str, cycle_type: CycleType) -> list:
        if dimension == SPEED:
            return self.speed_options_for(cycle_type)
        if dimension == DATA_VOLUME:
            return self.data_options_for(cycle_type)
        if dimension == DEVICE_COUNT:
            return self.device_options_for()
        raise KeyError(f"Unknown dimension={dimension!r}")

    def contains(self, dimension: str, value: object, cycle_type: CycleType) -> bool:
        return value in self.options_for(dimension, cycle_type)

    def speed_options_with_max_bandwidth(
        self, cycle_type: CycleType, max_bandwidth: int
    ) -> list[str]:
        """
        Speeds for fixed-bandwidth sites: every tier up to max_bandwidth Mbps.
        Unlimited is always kept.
        """
        out: list[str] = []
        for speed in self.speed_options_for(cycle_type):
            mbps = mbps_of(speed)
            if mbps is None or mbps <= int(max_bandwidth):
                out.append(speed)
        return out
