from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from policy_engine.core.errors import UnknownSegment
from policy_engine.core.types import Segment
from policy_engine.features.catalog.types import SiteSettings

from .types import DEFAULT_CYCLE_RULES, CycleRuleTable, CycleTypeResolution, SiteOverrides


def overrides_for_site(site: SiteSettings | None) -> SiteOverrides | None:
    if site is None:
        return None
    return SiteOverrides(data_cycle_type=site.data_cycle_type)


@dataclass(frozen=True)
class CycleRuleResolver:
    """
    Decides which cycle types a segment offers and whether the form may
    change it. Fixed policy from the rule table, never from catalog data.

    Unknown segments get the table's generic rule (Daily + Monthly, editable)
    unless `strict` is set, in which case UnknownSegment is raised.
    """

    rules: CycleRuleTable = DEFAULT_CYCLE_RULES
    strict: bool = False
    logger: Any | None = None

    def resolve(
        self,
        segment: Segment | str,
        site_overrides: SiteOverrides | None = None,
        *,
        editing: bool = False,
    ) -> CycleTypeResolution:
        seg = Segment.parse(segment)
        if seg is None:
            if self.strict:
                raise UnknownSegment(segment)
            if self.logger is not None:
                self.logger.warning(
                    "unknown segment, using generic cycle rule",
                    extra={"feature": "cycle_rules", "segment": str(segment)},
                )
            rule = self.rules.fallback
        else:
            rule = self.rules.get(seg)

        allowed = rule.allowed
        if rule.site_configured and site_overrides is not None:
            if site_overrides.data_cycle_type is not None:
                allowed = (site_overrides.data_cycle_type,)

        editable = rule.editable_on_edit if editing else rule.editable_on_create
        return CycleTypeResolution(
            allowed=allowed, editable=editable, derived_from=rule.derived_from
        )


_DEFAULT_RESOLVER = CycleRuleResolver()


def resolve_cycle_types(
    segment: Segment | str,
    site_overrides: SiteOverrides | None = None,
    *,
    editing: bool = False,
) -> CycleTypeResolution:
    return _DEFAULT_RESOLVER.resolve(segment, site_overrides, editing=editing)
