from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from policy_engine.core.errors import CatalogError, InvalidPolicyAttribute
from policy_engine.core.types import CycleType, Segment, coerce_device_count
from policy_engine.features.baseline.service import DEFAULT_OPTION_SETS
from policy_engine.features.baseline.types import BaselineOptionSets
from policy_engine.features.catalog.types import (
    BANDWIDTH_TYPES,
    BANDWIDTH_USER_LEVEL,
    Policy,
    SitePolicyCatalog,
    SiteSettings,
)
from policy_engine.features.policy_ids.service import (
    generate_policy_id,
    normalize_data_volume,
    normalize_speed,
    parse_policy_id,
)


def make_policy(
    segment: Segment | str,
    speed: str,
    data_volume: str,
    device_count: int | str,
    cycle_type: CycleType | str,
    *,
    license_limit: int | None = None,
    options: BaselineOptionSets | None = DEFAULT_OPTION_SETS,
) -> Policy:
    """Builds a Policy whose ID is derived from its attributes (see generate_policy_id)."""
    seg = Segment.parse(segment)
    if seg is None:
        raise InvalidPolicyAttribute("segment", segment)
    cycle = CycleType.parse(cycle_type)
    devices = coerce_device_count(device_count)
    policy_id = generate_policy_id(seg, speed, data_volume, devices, cycle, options=options)
    return Policy(
        segment=seg,
        speed=speed,
        data_volume=data_volume,
        device_count=devices,
        cycle_type=cycle,
        policy_id=policy_id,
        license_limit=license_limit,
    )


def build_catalog(
    site_id: str,
    segment: Segment | str,
    policies: Iterable[Policy],
    *,
    options: BaselineOptionSets | None = DEFAULT_OPTION_SETS,
) -> SitePolicyCatalog:
    """
    Freezes policies into a catalog.

    Enforces one policy per (segment, speed, data, devices, cycle) tuple, the
    catalog segment on every row, and that each stored ID is the one the
    generator derives (no drift between the ID format and the catalog).
    `options=None` checks token format only, not baseline membership.
    """
    seg = Segment.parse(segment)
    if seg is None:
        raise CatalogError(f"site {site_id!r}: unknown segment {segment!r}")

    seen: dict[tuple, str] = {}
    out: list[Policy] = []
    for idx, p in enumerate(policies):
        where = f"site {site_id!r} policy[{idx}]"
        if p.segment is not seg:
            raise CatalogError(f"{where}: segment {p.segment.value} != {seg.value}")
        try:
            expected = generate_policy_id(
                p.segment, p.speed, p.data_volume, p.device_count, p.cycle_type, options=options
            )
        except InvalidPolicyAttribute as e:
            raise CatalogError(f"{where}: {e}") from e
        if p.policy_id != expected:
            raise CatalogError(f"{where}: policy_id {p.policy_id!r} != derived {expected!r}")
        if p.key in seen:
            raise CatalogError(f"{where}: duplicates {seen[p.key]!r} ({p.cycle_type.value})")
        seen[p.key] = p.policy_id
        out.append(p)

    return SitePolicyCatalog(site_id=site_id, segment=seg, policies=tuple(out))


@dataclass(frozen=True)
class CatalogFactory:
    """
    Builds SiteSettings from the YAML config structure:

    sites:
      - site_id: hq
        segment: enterprise
        bandwidth_type: userLevel      # or "fixed"
        max_bandwidth: 200
        data_cycle_type: Monthly       # optional, site-provisioned cycle
        total_license_limit: 100
        policies:
          - {speed: 50Mbps, data_volume: Unlimited, device_count: 3, cycle_type: Monthly}
          - {policy_id: ENT_WIFI_20Mbps_50GB_2Devices, cycle_type: Daily, license_limit: 10}

    Speeds and data volumes may also be written the way the portal displays
    them ("Upto 50 Mbps", "100 GB").

    Non-strict (default) accepts any well-formed token, e.g. a 75Mbps tier a
    site was provisioned with. Strict additionally requires every value to be
    in the baseline option sets for the row's cycle type.
    """

    options: BaselineOptionSets = DEFAULT_OPTION_SETS
    strict: bool = False

    @property
    def _domain(self) -> BaselineOptionSets | None:
        return self.options if self.strict else None

    def build(self, cfg_sites: list[dict[str, Any]] | None) -> dict[str, SiteSettings]:
        sites_cfg = cfg_sites or []
        if not isinstance(sites_cfg, list):
            raise TypeError("sites must be a list")

        out: dict[str, SiteSettings] = {}
        for idx, site_any in enumerate(sites_cfg):
            site = self._parse_site(idx, site_any)
            if site.site_id in out:
                raise ValueError(f"sites[{idx}].site_id {site.site_id!r} is duplicated")
            out[site.site_id] = site
        return out

    def _parse_site(self, idx: int, raw: Any) -> SiteSettings:
        path = f"sites[{idx}]"
        if not isinstance(raw, dict):
            raise TypeError(f"{path} must be a mapping/dict")

        site_id = raw.get("site_id")
        if not isinstance(site_id, str) or not site_id:
            raise ValueError(f"{path}.site_id must be a non-empty string")

        segment = Segment.parse(raw.get("segment"))
        if segment is None:
            raise ValueError(f"{path}.segment {raw.get('segment')!r} is not a known segment")

        bandwidth_type = str(raw.get("bandwidth_type", BANDWIDTH_USER_LEVEL))
        if bandwidth_type not in BANDWIDTH_TYPES:
            raise ValueError(f"{path}.bandwidth_type must be one of {sorted(BANDWIDTH_TYPES)}")

        try:
            max_bandwidth = int(raw.get("max_bandwidth", 200))
            total_limit = int(raw.get("total_license_limit", 0))
        except (TypeError, ValueError) as e:
            raise TypeError(f"{path}.max_bandwidth/total_license_limit must be integers") from e
        if max_bandwidth <= 0:
            raise ValueError(f"{path}.max_bandwidth must be > 0")
        if total_limit < 0:
            raise ValueError(f"{path}.total_license_limit must be >= 0")

        site_cycle: CycleType | None = None
        if raw.get("data_cycle_type") is not None:
            try:
                site_cycle = CycleType.parse(raw["data_cycle_type"])
            except InvalidPolicyAttribute as e:
                raise ValueError(f"{path}.data_cycle_type must be Daily or Monthly") from e

        policies_raw = raw.get("policies") or []
        if not isinstance(policies_raw, list):
            raise TypeError(f"{path}.policies must be a list")

        policies = [
            self._parse_policy(f"{path}.policies[{j}]", segment, site_cycle, p)
            for j, p in enumerate(policies_raw)
        ]

        return SiteSettings(
            site_id=site_id,
            segment=segment,
            catalog=build_catalog(site_id, segment, policies, options=self._domain),
            bandwidth_type=bandwidth_type,
            max_bandwidth=max_bandwidth,
            data_cycle_type=site_cycle,
            total_license_limit=total_limit,
        )

    def _parse_policy(
        self, path: str, segment: Segment, site_cycle: CycleType | None, raw: Any
    ) -> Policy:
        if not isinstance(raw, dict):
            raise TypeError(f"{path} must be a mapping/dict")

        cycle_raw = raw.get("cycle_type", site_cycle)
        if cycle_raw is None:
            raise ValueError(f"{path}.cycle_type is required when the site has no data_cycle_type")

        license_limit = raw.get("license_limit")
        if license_limit is not None:
            if isinstance(license_limit, bool) or not isinstance(license_limit, int):
                raise TypeError(f"{path}.license_limit must be an integer")
            if license_limit < 0:
                raise ValueError(f"{path}.license_limit must be >= 0")

        policy_id = raw.get("policy_id")
        try:
            if policy_id is not None:
                parts = parse_policy_id(policy_id)
                if parts.segment is not segment:
                    raise CatalogError(
                        f"{path}.policy_id {policy_id!r} belongs to segment {parts.segment.value}"
                    )
                speed = normalize_speed(raw.get("speed", parts.speed))
                data = normalize_data_volume(raw.get("data_volume", parts.data_volume))
                devices = coerce_device_count(raw.get("device_count", parts.device_count))
            else:
                for key in ("speed", "data_volume", "device_count"):
                    if key not in raw:
                        raise ValueError(f"{path}.{key} is required without policy_id")
                speed = normalize_speed(raw["speed"])
                data = normalize_data_volume(raw["data_volume"])
                devices = coerce_device_count(raw["device_count"])

            policy = make_policy(
                segment,
                speed,
                data,
                devices,
                cycle_raw,
                license_limit=license_limit,
                options=self._domain,
            )
        except InvalidPolicyAttribute as e:
            raise CatalogError(f"{path}: {e}") from e

        if policy_id is not None and policy.policy_id != policy_id:
            raise CatalogError(f"{path}.policy_id {policy_id!r} != derived {policy.policy_id!r}")
        return policy
