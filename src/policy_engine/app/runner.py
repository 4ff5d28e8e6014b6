from __future__ import annotations

from policy_engine.core.config import load_config
from policy_engine.features.bootstrap.service import EngineContext, bootstrap_engine


def load_engine(config_path: str) -> EngineContext:
    cfg = load_config(config_path)
    return bootstrap_engine(cfg)
