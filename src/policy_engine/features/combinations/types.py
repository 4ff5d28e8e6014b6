from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from policy_engine.core.types import DATA_VOLUME, DEVICE_COUNT, DIMENSIONS, SPEED


def _open_if_blank(value: Any) -> Any:
    # Forms send "" for an untouched dropdown
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


@dataclass(frozen=True, slots=True)
class PinnedAttributes:
    """
    Dimensions the user already picked. None means open.

    Values are not checked against any catalog: a stale pin (e.g. left over
    from another cycle type) simply matches nothing.
    """

    speed: str | None = None
    data_volume: str | None = None
    device_count: int | str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, SPEED, _open_if_blank(self.speed))
        object.__setattr__(self, DATA_VOLUME, _open_if_blank(self.data_volume))

        devices = _open_if_blank(self.device_count)
        if isinstance(devices, str) and devices.strip().isdigit():
            devices = int(devices.strip())
        object.__setattr__(self, DEVICE_COUNT, devices)

    @classmethod
    def from_mapping(cls, values: dict[str, Any] | None) -> PinnedAttributes:
        values = values or {}
        unknown = set(values) - set(DIMENSIONS)
        if unknown:
            raise KeyError(f"Unknown dimension(s): {sorted(unknown)}")
        return cls(**values)

    def pinned(self) -> dict[str, Any]:
        return {d: getattr(self, d) for d in DIMENSIONS if getattr(self, d) is not None}

    def open_dimensions(self) -> tuple[str, ...]:
        return tuple(d for d in DIMENSIONS if getattr(self, d) is None)

    def without(self, dimension: str) -> PinnedAttributes:
        values = self.pinned()
        values.pop(dimension, None)
        return PinnedAttributes(**values)


@dataclass(frozen=True, slots=True)
class ResolvedOptions:
    """
    Legal values per open dimension.

    Pinned dimensions are None. `fallbacks` names the open dimensions whose
    catalog projection was empty and were filled from the baseline sets.
    """

    speeds: list[str] | None
    data_volumes: list[str] | None
    device_counts: list[int] | None
    fallbacks: frozenset[str] = field(default_factory=frozenset)

    def for_dimension(self, dimension: str) -> list | None:
        if dimension == SPEED:
            return self.speeds
        if dimension == DATA_VOLUME:
            return self.data_volumes
        if dimension == DEVICE_COUNT:
            return self.device_counts
        raise KeyError(f"Unknown dimension={dimension!r}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "speeds": self.speeds,
            "data_volumes": self.data_volumes,
            "device_counts": self.device_counts,
            "fallbacks": sorted(self.fallbacks),
        }
