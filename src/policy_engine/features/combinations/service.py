from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from policy_engine.core.types import DIMENSIONS, CycleType
from policy_engine.features.baseline.service import DEFAULT_OPTION_SETS
from policy_engine.features.baseline.types import BaselineOptionSets
from policy_engine.features.catalog.types import Policy, SitePolicyCatalog

from .types import PinnedAttributes, ResolvedOptions

CatalogLike = SitePolicyCatalog | Iterable[Policy] | None


def _distinct(values: Iterable[Any]) -> list[Any]:
    # first-seen order, de-duplicated
    seen: set[Any] = set()
    out: list[Any] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


def _as_pins(fixed: PinnedAttributes | dict[str, Any] | None) -> PinnedAttributes:
    if isinstance(fixed, PinnedAttributes):
        return fixed
    return PinnedAttributes.from_mapping(fixed)


@dataclass(frozen=True)
class CombinationResolver:
    """
    Domain reduction over a flat catalog relation.

    For a cycle type and a set of pinned attributes, every open dimension is
    projected from the *same* filtered row set (cycle + all pins). Results
    therefore depend only on which values are pinned, never on the order the
    user pinned them in. A dimension whose projection is empty falls back to
    the baseline option sets so a dropdown is never left empty.

    Stateless: every call returns a fresh result and nothing is cached.
    """

    options: BaselineOptionSets = DEFAULT_OPTION_SETS
    logger: Any | None = None

    def valid_combinations(
        self,
        catalog: CatalogLike,
        fixed: PinnedAttributes | dict[str, Any] | None,
        cycle_type: CycleType | str,
    ) -> ResolvedOptions:
        cycle = CycleType.parse(cycle_type)
        pins = _as_pins(fixed)
        pinned = pins.pinned()

        # steps 1 + 2: one filter for all open dimensions
        matching = [
            p
            for p in self._rows(catalog)
            if p.cycle_type is cycle and all(p.attribute(d) == v for d, v in pinned.items())
        ]

        projected: dict[str, list | None] = {}
        fallbacks: set[str] = set()
        for dimension in DIMENSIONS:
            if dimension in pinned:
                projected[dimension] = None
                continue
            values = _distinct(p.attribute(dimension) for p in matching)
            if not values:
                values = self._empty_catalog_projection(dimension, cycle, catalog)
                fallbacks.add(dimension)
            projected[dimension] = values

        return ResolvedOptions(
            speeds=projected["speed"],
            data_volumes=projected["data_volume"],
            device_counts=projected["device_count"],
            fallbacks=frozenset(fallbacks),
        )

    def dropdown_options(
        self,
        catalog: CatalogLike,
        selection: PinnedAttributes | dict[str, Any] | None,
        cycle_type: CycleType | str,
    ) -> ResolvedOptions:
        """
        Options for all three dropdowns at once.

        Each dimension is re-derived with the other two selected values pinned
        (its own current value is ignored), so all three lists are returned.
        """
        pins = _as_pins(selection)
        lists: dict[str, list] = {}
        fallbacks: set[str] = set()
        for dimension in DIMENSIONS:
            r = self.valid_combinations(catalog, pins.without(dimension), cycle_type)
            lists[dimension] = r.for_dimension(dimension) or []
            if dimension in r.fallbacks:
                fallbacks.add(dimension)

        return ResolvedOptions(
            speeds=lists["speed"],
            data_volumes=lists["data_volume"],
            device_counts=lists["device_count"],
            fallbacks=frozenset(fallbacks),
        )

    def available_options(
        self, catalog: CatalogLike, cycle_type: CycleType | str
    ) -> ResolvedOptions:
        """Everything the catalog offers for a cycle type (nothing pinned)."""
        return self.valid_combinations(catalog, PinnedAttributes(), cycle_type)

    # ----------------------------
    # Internal helpers
    # ----------------------------
    @staticmethod
    def _rows(catalog: CatalogLike) -> Iterable[Policy]:
        if catalog is None:
            return ()
        return catalog

    def _empty_catalog_projection(
        self, dimension: str, cycle: CycleType, catalog: CatalogLike
    ) -> list:
        """No catalog row satisfies the pins for this dimension: use the baseline set."""
        if self.logger is not None:
            self.logger.debug(
                "empty catalog projection, using baseline options",
                extra={
                    "feature": "combinations",
                    "dimension": dimension,
                    "cycle_type": cycle.value,
                    "site_id": getattr(catalog, "site_id", None),
                },
            )
        return self.options.options_for(dimension, cycle)


_DEFAULT_RESOLVER = CombinationResolver()


def valid_combinations(
    catalog: CatalogLike,
    fixed: PinnedAttributes | dict[str, Any] | None,
    cycle_type: CycleType | str,
) -> ResolvedOptions:
    return _DEFAULT_RESOLVER.valid_combinations(catalog, fixed, cycle_type)


def dropdown_options(
    catalog: CatalogLike,
    selection: PinnedAttributes | dict[str, Any] | None,
    cycle_type: CycleType | str,
) -> ResolvedOptions:
    return _DEFAULT_RESOLVER.dropdown_options(catalog, selection, cycle_type)


def available_options(catalog: CatalogLike, cycle_type: CycleType | str) -> ResolvedOptions:
    return _DEFAULT_RESOLVER.available_options(catalog, cycle_type)
