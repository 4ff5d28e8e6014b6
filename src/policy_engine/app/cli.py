from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from policy_engine.app.runner import load_engine
from policy_engine.core.errors import PolicyEngineError
from policy_engine.features.baseline.service import DEFAULT_OPTION_SETS
from policy_engine.features.policy_ids.service import generate_policy_id, parse_policy_id

DEFAULT_CONFIG = "config/engine.yaml"


def _print(obj: dict[str, Any]) -> None:
    print(json.dumps(obj, sort_keys=True, default=str))


def _cmd_options(args: argparse.Namespace) -> int:
    engine = load_engine(args.config)
    form = engine.form_for(args.site)

    state = form.initial_state(editing=args.editing)
    state = state.replace(speed=None, data_volume=None, device_count=None)
    for field, value in (
        ("resident_type", args.resident_type),
        ("member_type", args.member_type),
        ("cycle_type", args.cycle),
        ("speed", args.speed),
        ("data_volume", args.data),
        ("device_count", args.devices),
    ):
        if value is not None:
            state = form.change(state, field, value)

    out = form.options_for(state).as_dict()
    out["cycle_type"] = state.cycle_type.value
    _print(out)
    return 0


def _cmd_policy_id(args: argparse.Namespace) -> int:
    options = load_engine(args.config).options if args.config else DEFAULT_OPTION_SETS
    policy_id = generate_policy_id(
        args.segment, args.speed, args.data, args.devices, args.cycle, options=options
    )
    _print({"policy_id": policy_id})
    return 0


def _cmd_parse_id(args: argparse.Namespace) -> int:
    parts = parse_policy_id(args.policy_id)
    _print(
        {
            "segment": parts.segment.value,
            "speed": parts.speed,
            "data_volume": parts.data_volume,
            "device_count": parts.device_count,
        }
    )
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    engine = load_engine(args.config)
    _print(
        {
            "sites": len(engine.sites),
            "policies": sum(len(s.catalog) for s in engine.sites.values()),
        }
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="policy-engine")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_opts = sub.add_parser("options", help="Dropdown options for a site selection")
    p_opts.add_argument("--config", default=DEFAULT_CONFIG)
    p_opts.add_argument("--site", required=True)
    p_opts.add_argument("--cycle")
    p_opts.add_argument("--speed")
    p_opts.add_argument("--data")
    p_opts.add_argument("--devices")
    p_opts.add_argument("--resident-type")
    p_opts.add_argument("--member-type")
    p_opts.add_argument("--editing", action="store_true")
    p_opts.set_defaults(func=_cmd_options)

    p_id = sub.add_parser("policy-id", help="Generate a Policy ID")
    p_id.add_argument("--config", default=None)
    p_id.add_argument("--segment", required=True)
    p_id.add_argument("--speed", required=True)
    p_id.add_argument("--data", required=True)
    p_id.add_argument("--devices", required=True)
    p_id.add_argument("--cycle", required=True)
    p_id.set_defaults(func=_cmd_policy_id)

    p_parse = sub.add_parser("parse-id", help="Split a Policy ID into its attributes")
    p_parse.add_argument("policy_id")
    p_parse.set_defaults(func=_cmd_parse_id)

    p_val = sub.add_parser("validate", help="Load and check a config file")
    p_val.add_argument("--config", default=DEFAULT_CONFIG)
    p_val.set_defaults(func=_cmd_validate)

    args = parser.parse_args(argv)

    try:
        return int(args.func(args))
    except (PolicyEngineError, KeyError, ValueError, TypeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
