from __future__ import annotations

import re
from enum import Enum

from policy_engine.core.errors import InvalidPolicyAttribute

CONNECTION_TYPE = "WIFI"
UNLIMITED = "Unlimited"

# Wire tokens as they appear inside a policy ID
SPEED_TOKEN_RE = re.compile(r"^(?:\d+Mbps|Unlimited)$")
DATA_TOKEN_RE = re.compile(r"^(?:\d+GB|Unlimited)$")

MIN_DEVICES = 1
MAX_DEVICES = 5

SPEED = "speed"
DATA_VOLUME = "data_volume"
DEVICE_COUNT = "device_count"
DIMENSIONS: tuple[str, ...] = (SPEED, DATA_VOLUME, DEVICE_COUNT)


class Segment(str, Enum):
    """Customer vertical a site is provisioned for."""

    ENTERPRISE = "enterprise"
    OFFICE = "office"
    CO_LIVING = "coLiving"
    CO_WORKING = "coWorking"
    HOTEL = "hotel"
    PG = "pg"
    MISCELLANEOUS = "miscellaneous"

    @classmethod
    def parse(cls, value: object) -> Segment | None:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class CycleType(str, Enum):
    """Whether a user's data allowance resets daily or monthly."""

    DAILY = "Daily"
    MONTHLY = "Monthly"

    @classmethod
    def parse(cls, value: object) -> CycleType:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidPolicyAttribute("cycle_type", value) from None


def is_speed_token(value: object) -> bool:
    return isinstance(value, str) and SPEED_TOKEN_RE.match(value) is not None


def is_data_token(value: object) -> bool:
    return isinstance(value, str) and DATA_TOKEN_RE.match(value) is not None


def coerce_device_count(value: object) -> int:
    """
    Accepts 3 or "3" (CSV/form input is stringly typed).
    Raises InvalidPolicyAttribute for anything outside [1, 5].
    """
    if isinstance(value, bool):
        raise InvalidPolicyAttribute(DEVICE_COUNT, value)
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and value.strip().isdigit():
        n = int(value.strip())
    else:
        raise InvalidPolicyAttribute(DEVICE_COUNT, value)
    if not (MIN_DEVICES <= n <= MAX_DEVICES):
        raise InvalidPolicyAttribute(
            DEVICE_COUNT, value, f"must be in [{MIN_DEVICES}, {MAX_DEVICES}]"
        )
    return n


def mbps_of(speed: str) -> int | None:
    """50Mbps -> 50; Unlimited -> None."""
    if speed == UNLIMITED:
        return None
    return int(speed[: -len("Mbps")])
