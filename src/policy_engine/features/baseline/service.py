from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from policy_engine.core.errors import InvalidPolicyAttribute
from policy_engine.core.types import coerce_device_count, is_data_token, is_speed_token
from policy_engine.features.baseline.types import (
    DEFAULT_DATA_VOLUMES,
    DEFAULT_DEVICE_COUNTS,
    DEFAULT_SPEEDS,
    BaselineOptionSets,
    CycleOptions,
)

DEFAULT_OPTION_SETS = BaselineOptionSets()


@dataclass(frozen=True)
class BaselineOptionsFactory:
    """
    Builds BaselineOptionSets from the YAML config structure:

    options:
      device_counts: [1, 2, 3, 4, 5]
      daily:
        speeds: [10Mbps, 20Mbps, Unlimited]
        data_volumes: [10GB, Unlimited]
      monthly:
        speeds: [10Mbps, 50Mbps, Unlimited]
        data_volumes: [50GB, 100GB, Unlimited]

    Any missing section keeps the built-in five-tier defaults.
    """

    def build(self, cfg_options: dict[str, Any] | None) -> BaselineOptionSets:
        cfg = cfg_options or {}
        if not isinstance(cfg, dict):
            raise TypeError("options must be a mapping/dict")

        daily = self._parse_cycle("daily", cfg.get("daily"))
        monthly = self._parse_cycle("monthly", cfg.get("monthly"))
        devices = self._parse_devices(cfg.get("device_counts"))
        return BaselineOptionSets(daily=daily, monthly=monthly, device_counts=devices)

    @staticmethod
    def _parse_cycle(name: str, raw: Any) -> CycleOptions:
        if raw is None:
            return CycleOptions()
        if not isinstance(raw, dict):
            raise TypeError(f"options.{name} must be a mapping/dict")

        speeds = BaselineOptionsFactory._parse_tokens(
            f"options.{name}.speeds", raw.get("speeds"), DEFAULT_SPEEDS, is_speed_token
        )
        data = BaselineOptionsFactory._parse_tokens(
            f"options.{name}.data_volumes",
            raw.get("data_volumes"),
            DEFAULT_DATA_VOLUMES,
            is_data_token,
        )
        return CycleOptions(speeds=speeds, data_volumes=data)

    @staticmethod
    def _parse_tokens(path: str, raw: Any, default: tuple[str, ...], check) -> tuple[str, ...]:
        if raw is None:
            return default
        if not isinstance(raw, list):
            raise TypeError(f"{path} must be a list")
        if not raw:
            raise ValueError(f"{path} must not be empty")

        out: list[str] = []
        for idx, item in enumerate(raw):
            if not check(item):
                raise ValueError(f"{path}[{idx}] has invalid value {item!r}")
            if item in out:
                raise ValueError(f"{path}[{idx}] duplicates {item!r}")
            out.append(item)
        return tuple(out)

    @staticmethod
    def _parse_devices(raw: Any) -> tuple[int, ...]:
        if raw is None:
            return DEFAULT_DEVICE_COUNTS
        if not isinstance(raw, list):
            raise TypeError("options.device_counts must be a list")
        if not raw:
            raise ValueError("options.device_counts must not be empty")

        out: list[int] = []
        for idx, item in enumerate(raw):
            try:
                n = coerce_device_count(item)
            except InvalidPolicyAttribute as e:
                raise ValueError(f"options.device_counts[{idx}] must be in [1, 5]") from e
            if n in out:
                raise ValueError(f"options.device_counts[{idx}] duplicates {n}")
            out.append(n)
        return tuple(out)
