from __future__ import annotations

import logging
from dataclasses import dataclass

from policy_engine.core.config import EngineConfig
from policy_engine.core.logging import get_logger
from policy_engine.features.baseline.service import BaselineOptionsFactory
from policy_engine.features.baseline.types import BaselineOptionSets
from policy_engine.features.catalog.service import CatalogFactory
from policy_engine.features.catalog.types import SiteSettings
from policy_engine.features.combinations.service import CombinationResolver
from policy_engine.features.cycle_rules.service import CycleRuleResolver
from policy_engine.features.policy_form.service import PolicyFormService


@dataclass(frozen=True)
class EngineContext:
    options: BaselineOptionSets
    cycle_rules: CycleRuleResolver
    combinations: CombinationResolver
    sites: dict[str, SiteSettings]
    logger: logging.Logger

    def site(self, site_id: str) -> SiteSettings:
        site = self.sites.get(site_id)
        if site is None:
            raise KeyError(f"Unknown site_id={site_id!r}")
        return site

    def form_for(self, site_id: str) -> PolicyFormService:
        return PolicyFormService(
            site=self.site(site_id),
            options=self.options,
            cycle_rules=self.cycle_rules,
            logger=self.logger,
        )


def bootstrap_engine(cfg: EngineConfig) -> EngineContext:
    logger = get_logger("policy_engine", cfg.logging.level)

    options = BaselineOptionsFactory().build(cfg.options)
    sites = CatalogFactory(options=options, strict=cfg.engine.strict_catalog).build(cfg.sites)

    for site in sites.values():
        logger.info(
            "site catalog loaded",
            extra={
                "feature": "bootstrap",
                "site_id": site.site_id,
                "segment": site.segment.value,
            },
        )

    return EngineContext(
        options=options,
        cycle_rules=CycleRuleResolver(strict=cfg.engine.strict_segments, logger=logger),
        combinations=CombinationResolver(options=options, logger=logger),
        sites=sites,
        logger=logger,
    )
