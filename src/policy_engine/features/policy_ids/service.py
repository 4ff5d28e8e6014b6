from __future__ import annotations

import re

from policy_engine.core.errors import InvalidPolicyAttribute
from policy_engine.core.types import (
    CONNECTION_TYPE,
    DATA_VOLUME,
    DEVICE_COUNT,
    SPEED,
    UNLIMITED,
    CycleType,
    Segment,
    coerce_device_count,
    is_data_token,
    is_speed_token,
)
from policy_engine.features.baseline.service import DEFAULT_OPTION_SETS
from policy_engine.features.baseline.types import BaselineOptionSets
from policy_engine.features.policy_ids.types import (
    POLICY_ID_PATTERN,
    SEGMENT_CODES,
    PolicyIdParts,
)

_CODE_TO_SEGMENT: dict[str, Segment] = {code: seg for seg, code in SEGMENT_CODES.items()}

_SPEED_LABEL_RE = re.compile(r"^Upto\s+(\d+)\s*Mbps$", re.IGNORECASE)
_DATA_LABEL_RE = re.compile(r"^(\d+)\s*GB$", re.IGNORECASE)


def segment_code(segment: Segment | str) -> str:
    seg = Segment.parse(segment)
    if seg is None:
        raise InvalidPolicyAttribute("segment", segment)
    return SEGMENT_CODES[seg]


def segment_for_code(code: str) -> Segment:
    seg = _CODE_TO_SEGMENT.get(code)
    if seg is None:
        raise InvalidPolicyAttribute("segment_code", code)
    return seg


def generate_policy_id(
    segment: Segment | str,
    speed: str,
    data_volume: str,
    device_count: int | str,
    cycle_type: CycleType | str,
    *,
    options: BaselineOptionSets | None = DEFAULT_OPTION_SETS,
) -> str:
    """
    Canonical Policy ID for one (segment, speed, data, devices, cycle) tuple.

    Format: {SEGMENT_CODE}_WIFI_{SPEED}_{DATA}_{DEVICES}Devices
    e.g.    ENT_WIFI_50Mbps_Unlimited_3Devices

    The cycle type is validated but is not part of the token layout.
    Every input must belong to its domain (`options` for the given cycle);
    anything else raises InvalidPolicyAttribute instead of emitting a
    malformed ID. With `options=None` only the token format is checked
    (speed, data volume, 1-5 devices). The ID is an internal key and is
    never shown to end users.
    """
    code = segment_code(segment)
    cycle = CycleType.parse(cycle_type)

    if not is_speed_token(speed):
        raise InvalidPolicyAttribute(SPEED, speed, "malformed")
    if not is_data_token(data_volume):
        raise InvalidPolicyAttribute(DATA_VOLUME, data_volume, "malformed")
    devices = coerce_device_count(device_count)

    if options is not None:
        if not options.contains(SPEED, speed, cycle):
            raise InvalidPolicyAttribute(SPEED, speed, f"not offered for {cycle.value}")
        if not options.contains(DATA_VOLUME, data_volume, cycle):
            raise InvalidPolicyAttribute(
                DATA_VOLUME, data_volume, f"not offered for {cycle.value}"
            )
        if not options.contains(DEVICE_COUNT, devices, cycle):
            raise InvalidPolicyAttribute(DEVICE_COUNT, device_count, "not offered")

    return f"{code}_{CONNECTION_TYPE}_{speed}_{data_volume}_{devices}Devices"


def parse_policy_id(policy_id: str) -> PolicyIdParts:
    """Inverse of generate_policy_id (the cycle type cannot be recovered)."""
    if not isinstance(policy_id, str):
        raise InvalidPolicyAttribute("policy_id", policy_id)
    m = POLICY_ID_PATTERN.match(policy_id)
    if m is None:
        raise InvalidPolicyAttribute("policy_id", policy_id, "malformed")

    return PolicyIdParts(
        segment=segment_for_code(m.group("code")),
        speed=m.group("speed"),
        data_volume=m.group("data"),
        device_count=int(m.group("devices")),
    )


# ----- display labels (dropdown text / CSV import columns) -----
def speed_label(speed: str) -> str:
    """50Mbps -> 'Upto 50 Mbps'."""
    if speed == UNLIMITED:
        return UNLIMITED
    if not is_speed_token(speed):
        raise InvalidPolicyAttribute(SPEED, speed)
    return f"Upto {speed[:-4]} Mbps"


def data_label(data_volume: str) -> str:
    """100GB -> '100 GB'."""
    if data_volume == UNLIMITED:
        return UNLIMITED
    if not is_data_token(data_volume):
        raise InvalidPolicyAttribute(DATA_VOLUME, data_volume)
    return f"{data_volume[:-2]} GB"


def normalize_speed(value: str) -> str:
    """Accepts a token ('50Mbps') or a label ('Upto 50 Mbps')."""
    text = str(value).strip()
    if is_speed_token(text):
        return text
    m = _SPEED_LABEL_RE.match(text)
    if m is None:
        raise InvalidPolicyAttribute(SPEED, value)
    return f"{int(m.group(1))}Mbps"


def normalize_data_volume(value: str) -> str:
    """Accepts a token ('100GB') or a label ('100 GB')."""
    text = str(value).strip()
    if is_data_token(text):
        return text
    m = _DATA_LABEL_RE.match(text)
    if m is None:
        raise InvalidPolicyAttribute(DATA_VOLUME, value)
    return f"{int(m.group(1))}GB"
