from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class EngineSettings:
    # Unknown segments: widen to the generic rule (False) or raise UnknownSegment (True)
    strict_segments: bool = False
    # Catalog rows: any well-formed token (False) or baseline option sets only (True)
    strict_catalog: bool = False


@dataclass(frozen=True)
class EngineConfig:
    logging: LoggingConfig
    engine: EngineSettings
    options: dict[str, Any]
    sites: list[dict[str, Any]]
    raw: dict[str, Any]  # original parsed YAML (for debugging)


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    data = yaml.safe_load(p.read_text())
    if not isinstance(data, dict):
        raise ValueError("Config YAML must parse to a dict at the top level.")
    return data


def parse_config(data: dict[str, Any]) -> EngineConfig:
    logging_cfg = data.get("logging") or {}
    engine = data.get("engine") or {}
    options = data.get("options") or {}
    sites = data.get("sites") or []

    if not isinstance(logging_cfg, dict):
        raise TypeError("logging must be a mapping/dict")
    if not isinstance(engine, dict):
        raise TypeError("engine must be a mapping/dict")
    if not isinstance(options, dict):
        raise TypeError("options must be a mapping/dict")
    if not isinstance(sites, list):
        raise TypeError("sites must be a list")

    log_cfg = LoggingConfig(level=str(logging_cfg.get("level", "INFO")).upper())

    settings = EngineSettings(
        strict_segments=bool(engine.get("strict_segments", False)),
        strict_catalog=bool(engine.get("strict_catalog", False)),
    )

    return EngineConfig(logging=log_cfg, engine=settings, options=options, sites=sites, raw=data)


def load_config(path: str | Path) -> EngineConfig:
    data = load_yaml(path)
    return parse_config(data)
