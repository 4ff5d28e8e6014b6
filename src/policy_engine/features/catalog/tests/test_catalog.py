from __future__ import annotations

import pytest

from policy_engine.core.errors import CatalogError, InvalidPolicyAttribute
from policy_engine.core.types import CycleType, Segment
from policy_engine.features.catalog.service import CatalogFactory, build_catalog, make_policy
from policy_engine.features.catalog.types import Policy


def _cfg_sites() -> list[dict]:
    return [
        {
            "site_id": "hq",
            "segment": "enterprise",
            "total_license_limit": 10,
            "policies": [
                {
                    "speed": "50Mbps",
                    "data_volume": "Unlimited",
                    "device_count": 3,
                    "cycle_type": "Monthly",
                    "license_limit": 4,
                },
                {"policy_id": "ENT_WIFI_20Mbps_50GB_2Devices", "cycle_type": "Daily"},
                {
                    "speed": "Upto 10 Mbps",
                    "data_volume": "10 GB",
                    "device_count": "1",
                    "cycle_type": "Daily",
                },
            ],
        },
        {"site_id": "pg-1", "segment": "pg", "bandwidth_type": "fixed", "max_bandwidth": 30},
    ]


def test_factory_builds_sites_and_generates_ids() -> None:
    sites = CatalogFactory().build(_cfg_sites())

    hq = sites["hq"]
    assert hq.segment is Segment.ENTERPRISE
    assert [p.policy_id for p in hq.catalog] == [
        "ENT_WIFI_50Mbps_Unlimited_3Devices",
        "ENT_WIFI_20Mbps_50GB_2Devices",
        "ENT_WIFI_10Mbps_10GB_1Devices",
    ]
    assert hq.catalog.policies[0].license_limit == 4
    assert hq.catalog.policies[1].cycle_type is CycleType.DAILY
    assert hq.catalog.policies[1].device_count == 2
    assert all(p.connection_type == "WIFI" for p in hq.catalog)

    pg = sites["pg-1"]
    assert pg.is_fixed_bandwidth
    assert pg.max_bandwidth == 30
    assert len(pg.catalog) == 0


def test_catalog_lookups() -> None:
    catalog = CatalogFactory().build(_cfg_sites())["hq"].catalog

    assert len(catalog.for_cycle(CycleType.DAILY)) == 2
    found = catalog.find("20Mbps", "50GB", 2, CycleType.DAILY)
    assert found is not None and found.policy_id == "ENT_WIFI_20Mbps_50GB_2Devices"
    assert catalog.find("20Mbps", "50GB", 2, CycleType.MONTHLY) is None
    assert catalog.get("ENT_WIFI_50Mbps_Unlimited_3Devices") is not None
    assert catalog.get("ENT_WIFI_50Mbps_Unlimited_3Devices", CycleType.DAILY) is None


def test_duplicate_tuple_rejected() -> None:
    p = make_policy("hotel", "10Mbps", "10GB", 1, "Daily")
    with pytest.raises(CatalogError, match="duplicates"):
        build_catalog("h1", "hotel", [p, p])


def test_same_attributes_on_both_cycles_are_distinct_rows() -> None:
    daily = make_policy("hotel", "10Mbps", "10GB", 1, "Daily")
    monthly = make_policy("hotel", "10Mbps", "10GB", 1, "Monthly")
    catalog = build_catalog("h1", "hotel", [daily, monthly])
    assert daily.policy_id == monthly.policy_id
    assert len(catalog) == 2


def test_policy_id_drift_rejected() -> None:
    drifted = Policy(
        segment=Segment.HOTEL,
        speed="10Mbps",
        data_volume="10GB",
        device_count=1,
        cycle_type=CycleType.DAILY,
        policy_id="HTL_WIFI_20Mbps_10GB_1Devices",
    )
    with pytest.raises(CatalogError, match="!= derived"):
        build_catalog("h1", "hotel", [drifted])

    cfg = [
        {
            "site_id": "x",
            "segment": "hotel",
            "policies": [
                {
                    "policy_id": "HTL_WIFI_20Mbps_10GB_1Devices",
                    "speed": "10Mbps",
                    "cycle_type": "Daily",
                }
            ],
        }
    ]
    with pytest.raises(CatalogError, match="!= derived"):
        CatalogFactory().build(cfg)


def test_segment_mismatch_rejected() -> None:
    cfg = [
        {
            "site_id": "x",
            "segment": "hotel",
            "policies": [{"policy_id": "ENT_WIFI_20Mbps_10GB_1Devices", "cycle_type": "Daily"}],
        }
    ]
    with pytest.raises(CatalogError, match="belongs to segment enterprise"):
        CatalogFactory().build(cfg)

    with pytest.raises(CatalogError, match="segment enterprise != hotel"):
        build_catalog("x", "hotel", [make_policy("enterprise", "10Mbps", "10GB", 1, "Daily")])


def _off_baseline_cfg(speed: str) -> list[dict]:
    return [
        {
            "site_id": "x",
            "segment": "office",
            "policies": [
                {"speed": speed, "data_volume": "10GB", "device_count": 1, "cycle_type": "Daily"}
            ],
        }
    ]


def test_non_strict_factory_accepts_well_formed_off_baseline_tier() -> None:
    site = CatalogFactory().build(_off_baseline_cfg("75Mbps"))["x"]
    assert site.catalog.find_policy_id("75Mbps", "10GB", 1, "Daily") == (
        "OFF_WIFI_75Mbps_10GB_1Devices"
    )


def test_strict_factory_rejects_off_baseline_tier() -> None:
    with pytest.raises(CatalogError, match=r"sites\[0\].policies\[0\].*not offered for Daily"):
        CatalogFactory(strict=True).build(_off_baseline_cfg("75Mbps"))


@pytest.mark.parametrize("strict", [False, True])
def test_malformed_token_rejected_in_both_modes(strict) -> None:
    with pytest.raises(CatalogError, match="invalid speed: 'fast'"):
        CatalogFactory(strict=strict).build(_off_baseline_cfg("fast"))


def test_cycle_type_defaults_to_site_cycle() -> None:
    cfg = [
        {
            "site_id": "m",
            "segment": "miscellaneous",
            "data_cycle_type": "Daily",
            "policies": [{"speed": "10Mbps", "data_volume": "10GB", "device_count": 1}],
        }
    ]
    site = CatalogFactory().build(cfg)["m"]
    assert site.data_cycle_type is CycleType.DAILY
    assert site.catalog.policies[0].cycle_type is CycleType.DAILY

    cfg[0].pop("data_cycle_type")
    with pytest.raises(ValueError, match="cycle_type is required"):
        CatalogFactory().build(cfg)


def test_site_validation_messages() -> None:
    with pytest.raises(ValueError, match="site_id must be a non-empty string"):
        CatalogFactory().build([{"segment": "pg"}])

    with pytest.raises(ValueError, match="is not a known segment"):
        CatalogFactory().build([{"site_id": "a", "segment": "casino"}])

    with pytest.raises(ValueError, match="bandwidth_type must be one of"):
        CatalogFactory().build([{"site_id": "a", "segment": "pg", "bandwidth_type": "shared"}])

    with pytest.raises(ValueError, match="is duplicated"):
        CatalogFactory().build(
            [{"site_id": "a", "segment": "pg"}, {"site_id": "a", "segment": "hotel"}]
        )

    with pytest.raises(TypeError, match="policies must be a list"):
        CatalogFactory().build([{"site_id": "a", "segment": "pg", "policies": "none"}])


def test_find_policy_id() -> None:
    catalog = CatalogFactory().build(_cfg_sites())["hq"].catalog

    assert catalog.find_policy_id("50Mbps", "Unlimited", 3, "Monthly") == (
        "ENT_WIFI_50Mbps_Unlimited_3Devices"
    )
    # same attributes, other cycle: not provisioned
    assert catalog.find_policy_id("50Mbps", "Unlimited", 3, "Daily") is None


def test_policy_from_plain_strings_is_normalised() -> None:
    row = Policy(
        segment="enterprise",
        speed="50Mbps",
        data_volume="Unlimited",
        device_count="3",
        cycle_type="Monthly",
        policy_id="ENT_WIFI_50Mbps_Unlimited_3Devices",
    )
    assert row.segment is Segment.ENTERPRISE
    assert row.cycle_type is CycleType.MONTHLY
    assert row.device_count == 3

    catalog = build_catalog("hq", "enterprise", [row])
    assert catalog.find("50Mbps", "Unlimited", 3, CycleType.MONTHLY) is row

    with pytest.raises(CatalogError, match="segment enterprise != hotel"):
        build_catalog("h1", "hotel", [row])


def test_policy_rejects_unknown_enum_values() -> None:
    base = {
        "speed": "10Mbps",
        "data_volume": "10GB",
        "device_count": 1,
        "policy_id": "HTL_WIFI_10Mbps_10GB_1Devices",
    }
    with pytest.raises(InvalidPolicyAttribute) as exc:
        Policy(segment="casino", cycle_type="Daily", **base)
    assert exc.value.attribute == "segment"

    with pytest.raises(InvalidPolicyAttribute):
        Policy(segment="hotel", cycle_type="Weekly", **base)
    with pytest.raises(InvalidPolicyAttribute):
        Policy(segment="hotel", cycle_type="Daily", **{**base, "device_count": 9})


def test_policy_attribute_is_limited_to_dimensions() -> None:
    row = make_policy("pg", "20Mbps", "50GB", 2, "Monthly")
    assert [row.attribute(d) for d in ("speed", "data_volume", "device_count")] == [
        "20Mbps",
        "50GB",
        2,
    ]
    with pytest.raises(KeyError, match="Unknown dimension"):
        row.attribute("policy_id")
