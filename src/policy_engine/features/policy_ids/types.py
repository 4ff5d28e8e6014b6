from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType

from policy_engine.core.types import Segment

# Static and injective: no two segments share a code.
SEGMENT_CODES: MappingProxyType[Segment, str] = MappingProxyType(
    {
        Segment.ENTERPRISE: "ENT",
        Segment.OFFICE: "OFF",
        Segment.CO_LIVING: "COL",
        Segment.CO_WORKING: "COW",
        Segment.HOTEL: "HTL",
        Segment.PG: "PG",
        Segment.MISCELLANEOUS: "MIS",
    }
)

# {SEGMENT_CODE}_WIFI_{SPEED}_{DATA}_{DEVICES}Devices
POLICY_ID_PATTERN = re.compile(
    r"^(?P<code>[A-Z]+)_WIFI_(?P<speed>\d+Mbps|Unlimited)_(?P<data>\d+GB|Unlimited)"
    r"_(?P<devices>[1-5])Devices$"
)


@dataclass(frozen=True, slots=True)
class PolicyIdParts:
    segment: Segment
    speed: str
    data_volume: str
    device_count: int
