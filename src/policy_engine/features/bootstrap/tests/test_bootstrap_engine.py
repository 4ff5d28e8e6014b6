from __future__ import annotations

import pytest

from policy_engine.core.config import parse_config
from policy_engine.core.errors import CatalogError, UnknownSegment
from policy_engine.core.types import CycleType
from policy_engine.features.bootstrap.service import bootstrap_engine


def _cfg_dict(**engine) -> dict:
    return {
        "logging": {"level": "WARNING"},
        "engine": engine,
        "options": {"daily": {"speeds": ["10Mbps", "20Mbps"], "data_volumes": ["10GB"]}},
        "sites": [
            {
                "site_id": "hq",
                "segment": "enterprise",
                "policies": [
                    {
                        "speed": "50Mbps",
                        "data_volume": "Unlimited",
                        "device_count": 3,
                        "cycle_type": "Monthly",
                    }
                ],
            },
            {"site_id": "kiosk", "segment": "miscellaneous", "data_cycle_type": "Daily"},
        ],
    }


def test_bootstrap_builds_sites_with_configured_options() -> None:
    engine = bootstrap_engine(parse_config(_cfg_dict()))

    assert set(engine.sites) == {"hq", "kiosk"}
    assert engine.options.speed_options_for(CycleType.DAILY) == ["10Mbps", "20Mbps"]
    assert len(engine.site("hq").catalog) == 1


def test_form_for_site_uses_engine_collaborators() -> None:
    engine = bootstrap_engine(parse_config(_cfg_dict()))

    kiosk = engine.form_for("kiosk")
    state = kiosk.initial_state()
    # site-provisioned cycle, empty catalog -> configured Daily options
    assert state.cycle_type is CycleType.DAILY
    assert kiosk.options_for(state).speeds == ["10Mbps", "20Mbps"]
    assert kiosk.submit(state).policy_id == "MIS_WIFI_10Mbps_10GB_1Devices"


def test_unknown_site_raises_key_error() -> None:
    engine = bootstrap_engine(parse_config(_cfg_dict()))
    with pytest.raises(KeyError, match="nowhere"):
        engine.site("nowhere")


def test_strict_segments_flag_reaches_cycle_rules() -> None:
    lenient = bootstrap_engine(parse_config(_cfg_dict()))
    assert lenient.cycle_rules.resolve("casino").editable is True

    strict = bootstrap_engine(parse_config(_cfg_dict(strict_segments=True)))
    with pytest.raises(UnknownSegment):
        strict.cycle_rules.resolve("casino")


def test_strict_catalog_flag_reaches_catalog_factory() -> None:
    cfg = _cfg_dict()
    cfg["sites"][0]["policies"].append(
        {"speed": "75Mbps", "data_volume": "Unlimited", "device_count": 3, "cycle_type": "Monthly"}
    )

    lenient = bootstrap_engine(parse_config(cfg))
    assert lenient.site("hq").catalog.find_policy_id("75Mbps", "Unlimited", 3, "Monthly") == (
        "ENT_WIFI_75Mbps_Unlimited_3Devices"
    )

    cfg["engine"] = {"strict_catalog": True}
    with pytest.raises(CatalogError, match="not offered for Monthly"):
        bootstrap_engine(parse_config(cfg))
