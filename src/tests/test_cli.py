import json
from pathlib import Path

from policy_engine.app.cli import main

SAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "config" / "engine.yaml"


def _last_json(out):
    # engine log lines share stdout; the command result is printed last
    return json.loads(out.strip().splitlines()[-1])


def _write_config(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text(
        "logging:\n"
        "  level: WARNING\n"
        "sites:\n"
        "  - site_id: h1\n"
        "    segment: hotel\n"
        "    policies:\n"
        "      - {speed: 50Mbps, data_volume: Unlimited, device_count: 3, cycle_type: Monthly}\n"
        "      - {speed: 20Mbps, data_volume: 20GB, device_count: 2, cycle_type: Monthly}\n"
        "      - {speed: 10Mbps, data_volume: 10GB, device_count: 1, cycle_type: Daily}\n"
        "  - site_id: c1\n"
        "    segment: coLiving\n"
    )
    return str(path)


def test_policy_id_command(capsys):
    rc = main(
        [
            "policy-id",
            "--segment",
            "enterprise",
            "--speed",
            "50Mbps",
            "--data",
            "Unlimited",
            "--devices",
            "3",
            "--cycle",
            "Monthly",
        ]
    )
    assert rc == 0
    assert _last_json(capsys.readouterr().out) == {
        "policy_id": "ENT_WIFI_50Mbps_Unlimited_3Devices"
    }


def test_parse_id_command(capsys):
    assert main(["parse-id", "PG_WIFI_10Mbps_10GB_2Devices"]) == 0
    assert _last_json(capsys.readouterr().out) == {
        "segment": "pg",
        "speed": "10Mbps",
        "data_volume": "10GB",
        "device_count": 2,
    }


def test_options_command_narrows_by_pins(tmp_path, capsys):
    config = _write_config(tmp_path)
    rc = main(
        ["options", "--config", config, "--site", "h1", "--cycle", "Monthly", "--speed", "20Mbps"]
    )
    assert rc == 0

    out = _last_json(capsys.readouterr().out)
    assert out["cycle_type"] == "Monthly"
    assert out["speeds"] == ["50Mbps", "20Mbps"]
    assert out["data_volumes"] == ["20GB"]
    assert out["device_counts"] == [2]
    assert out["cycle"]["editable"] is True


def test_options_command_applies_resident_type(tmp_path, capsys):
    config = _write_config(tmp_path)
    rc = main(["options", "--config", config, "--site", "c1", "--resident-type", "Short-Term"])
    assert rc == 0

    out = _last_json(capsys.readouterr().out)
    assert out["cycle_type"] == "Daily"
    assert out["cycle"]["derived_from"] == "residentType"
    assert out["fallbacks"] == ["data_volume", "device_count", "speed"]


def test_errors_exit_with_code_2(tmp_path, capsys):
    config = _write_config(tmp_path)

    assert main(["options", "--config", config, "--site", "nowhere"]) == 2
    assert "Unknown site_id" in capsys.readouterr().err

    assert main(["parse-id", "ENT_WIFI_fast"]) == 2
    assert capsys.readouterr().err.startswith("error: invalid")

    rc = main(["options", "--config", config, "--site", "h1", "--editing", "--cycle", "Daily"])
    assert rc == 2
    assert "not editable for hotel" in capsys.readouterr().err


def test_validate_sample_config(capsys):
    assert main(["validate", "--config", str(SAMPLE_CONFIG)]) == 0
    out = _last_json(capsys.readouterr().out)
    assert out == {"sites": 5, "policies": 9}
