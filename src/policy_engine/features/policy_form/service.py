from __future__ import annotations

from typing import Any

from policy_engine.core.errors import InvalidPolicyAttribute
from policy_engine.core.types import (
    DATA_VOLUME,
    DEVICE_COUNT,
    DIMENSIONS,
    SPEED,
    CycleType,
    Segment,
    coerce_device_count,
)
from policy_engine.features.baseline.service import DEFAULT_OPTION_SETS
from policy_engine.features.baseline.types import BaselineOptionSets
from policy_engine.features.catalog.types import SitePolicyCatalog, SiteSettings
from policy_engine.features.combinations.service import CombinationResolver
from policy_engine.features.combinations.types import PinnedAttributes
from policy_engine.features.cycle_rules.service import CycleRuleResolver, overrides_for_site
from policy_engine.features.cycle_rules.types import CycleTypeResolution
from policy_engine.features.derived_attributes.service import (
    apply_derived_cycle,
    derive_cycle_type,
    derived_rule_for,
)
from policy_engine.features.policy_ids.service import generate_policy_id

from .types import (
    CYCLE_TYPE,
    MEMBER_TYPE_FIELD,
    RESIDENT_TYPE_FIELD,
    FormOptions,
    PolicySubmission,
    SelectionState,
)


class PolicyFormService:
    """
    Everything the user create/edit form asks of the engine.

    Flow:
      - initial_state() once per form open (segment cycle rule + defaults)
      - options_for(state) on every change to re-render the three dropdowns
      - change(state, field, value) to apply a user pick (derivations included)
      - submit(state) once, producing the Policy ID

    Holds only immutable collaborators; the selection itself always travels
    in and out as a SelectionState.
    """

    def __init__(
        self,
        *,
        segment: Segment | str | None = None,
        site: SiteSettings | None = None,
        options: BaselineOptionSets = DEFAULT_OPTION_SETS,
        cycle_rules: CycleRuleResolver | None = None,
        logger: Any | None = None,
    ) -> None:
        if segment is None and site is None:
            raise ValueError("segment or site must be provided")
        self.site = site
        self.segment: Segment | str = site.segment if site is not None else segment
        self.options = options
        self.cycle_rules = cycle_rules or CycleRuleResolver(logger=logger)
        self.combinations = CombinationResolver(options=options, logger=logger)
        self._logger = logger

    @property
    def catalog(self) -> SitePolicyCatalog | None:
        return self.site.catalog if self.site is not None else None

    # ----------------------------
    # Public API
    # ----------------------------
    def cycle_resolution(self, *, editing: bool = False) -> CycleTypeResolution:
        return self.cycle_rules.resolve(
            self.segment, overrides_for_site(self.site), editing=editing
        )

    def options_for(self, state: SelectionState) -> FormOptions:
        cycle = self.cycle_resolution(editing=state.editing)

        if self.site is not None and self.site.is_fixed_bandwidth:
            # fixed bandwidth: speed capped by the site, no catalog narrowing
            return FormOptions(
                cycle=cycle,
                speeds=self.options.speed_options_with_max_bandwidth(
                    state.cycle_type, self.site.max_bandwidth
                ),
                data_volumes=self.options.data_options_for(state.cycle_type),
                device_counts=self.options.device_options_for(),
            )

        resolved = self.combinations.dropdown_options(self.catalog, state.pins(), state.cycle_type)
        return FormOptions(
            cycle=cycle,
            speeds=resolved.speeds or [],
            data_volumes=resolved.data_volumes or [],
            device_counts=resolved.device_counts or [],
            fallbacks=resolved.fallbacks,
        )

    def initial_state(
        self, *, editing: bool = False, existing: SelectionState | None = None
    ) -> SelectionState:
        """
        New user: segment default cycle, first offered value per dimension,
        each narrowed by the values picked before it.
        Existing user: the stored selection, with derived cycle re-applied.
        """
        if existing is not None:
            return apply_derived_cycle(existing.replace(segment=self.segment, editing=True))

        rule = derived_rule_for(self.segment)
        driver_field = rule.state_field if rule is not None else None
        resident = rule.initial if driver_field == RESIDENT_TYPE_FIELD else None
        member = rule.initial if driver_field == MEMBER_TYPE_FIELD else None

        cycle = self.cycle_resolution(editing=editing).default_cycle_type
        if rule is not None:
            cycle = derive_cycle_type(self.segment, rule.initial) or cycle

        state = SelectionState(
            segment=self.segment,
            cycle_type=cycle,
            resident_type=resident,
            member_type=member,
            editing=editing,
        )
        for dimension in DIMENSIONS:
            offered = self._offered(state, dimension)
            state = state.replace(**{dimension: offered[0]})
        return state

    def change(self, state: SelectionState, field: str, value: Any) -> SelectionState:
        if field in DIMENSIONS:
            return state.replace(**{field: self._dimension_value(field, value)})

        if field == CYCLE_TYPE:
            cycle = CycleType.parse(value)
            resolution = self.cycle_resolution(editing=state.editing)
            if not resolution.editable or resolution.derived_from is not None:
                raise InvalidPolicyAttribute(
                    CYCLE_TYPE, value, f"cycle type is not editable for {self._segment_name()}"
                )
            if cycle not in resolution.allowed:
                raise InvalidPolicyAttribute(CYCLE_TYPE, value, "not allowed for segment")
            return state.replace(cycle_type=cycle)

        if field in (RESIDENT_TYPE_FIELD, MEMBER_TYPE_FIELD):
            rule = derived_rule_for(self.segment)
            if rule is None or rule.state_field != field:
                raise InvalidPolicyAttribute(field, value, f"not used by {self._segment_name()}")
            # validates the driver value before storing it
            derive_cycle_type(self.segment, value)
            return apply_derived_cycle(state.replace(**{field: value}))

        raise KeyError(f"Unknown form field={field!r}")

    def submit(self, state: SelectionState) -> PolicySubmission:
        for dimension in DIMENSIONS:
            if getattr(state, dimension) is None:
                raise InvalidPolicyAttribute(dimension, None, "required")

        state = apply_derived_cycle(state)
        resolution = self.cycle_resolution(editing=state.editing)
        if state.cycle_type not in resolution.allowed:
            raise InvalidPolicyAttribute(CYCLE_TYPE, state.cycle_type, "not allowed for segment")

        policy = None
        if self.catalog is not None:
            policy = self.catalog.find(
                state.speed, state.data_volume, state.device_count, state.cycle_type
            )

        # a provisioned row may carry a tier outside the baseline sets
        if policy is not None:
            policy_id = policy.policy_id
        else:
            policy_id = generate_policy_id(
                self.segment,
                state.speed,
                state.data_volume,
                state.device_count,
                state.cycle_type,
                options=self.options,
            )

        if self._logger is not None:
            self._logger.info(
                "policy selected",
                extra={
                    "feature": "policy_form",
                    "segment": self._segment_name(),
                    "site_id": self.site.site_id if self.site is not None else None,
                    "cycle_type": state.cycle_type.value,
                },
            )
        return PolicySubmission(policy_id=policy_id, cycle_type=state.cycle_type, policy=policy)

    # ----------------------------
    # Internal helpers
    # ----------------------------
    def _offered(self, state: SelectionState, dimension: str) -> list:
        if self.site is not None and self.site.is_fixed_bandwidth:
            return getattr(self.options_for(state), _LIST_FIELD[dimension])
        resolved = self.combinations.valid_combinations(
            self.catalog, PinnedAttributes(**_pinned_before(state, dimension)), state.cycle_type
        )
        return resolved.for_dimension(dimension) or []

    @staticmethod
    def _dimension_value(dimension: str, value: Any) -> Any:
        if value is None or value == "":
            return None
        if dimension == DEVICE_COUNT:
            return coerce_device_count(value)
        if not isinstance(value, str):
            raise InvalidPolicyAttribute(dimension, value)
        return value

    def _segment_name(self) -> str:
        return self.segment.value if isinstance(self.segment, Segment) else str(self.segment)


_LIST_FIELD = {SPEED: "speeds", DATA_VOLUME: "data_volumes", DEVICE_COUNT: "device_counts"}


def _pinned_before(state: SelectionState, dimension: str) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for d in DIMENSIONS:
        if d == dimension:
            break
        out[d] = getattr(state, d)
    return out
