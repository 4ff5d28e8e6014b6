from __future__ import annotations

import dataclasses
from typing import Any

from policy_engine.core.errors import InvalidPolicyAttribute
from policy_engine.core.types import CycleType, Segment

from .types import DERIVED_CYCLE_RULES, DerivedCycleRule


def derived_rule_for(segment: Segment | str) -> DerivedCycleRule | None:
    seg = Segment.parse(segment)
    if seg is None:
        return None
    return DERIVED_CYCLE_RULES.get(seg)


def derive_cycle_type(segment: Segment | str, value: str | None) -> CycleType | None:
    """
    coLiving residentType / coWorking memberType -> cycle type.

    None when the segment has no derived rule or the driver is unset.
    """
    rule = derived_rule_for(segment)
    if rule is None or value is None or value == "":
        return None
    cycle = rule.mapping.get(value)
    if cycle is None:
        raise InvalidPolicyAttribute(
            rule.attribute, value, f"expected one of {list(rule.values())}"
        )
    return cycle


def apply_derived_cycle(state: Any) -> Any:
    """
    Overwrites state.cycle_type from the segment's driving attribute.

    Works on any dataclass carrying `segment`, `cycle_type` and the driver
    field. Idempotent; returns the same object when nothing changes.
    """
    rule = derived_rule_for(state.segment)
    if rule is None:
        return state

    cycle = derive_cycle_type(state.segment, getattr(state, rule.state_field))
    if cycle is None or cycle is state.cycle_type:
        return state
    return dataclasses.replace(state, cycle_type=cycle)
