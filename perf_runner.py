# perf_runner.py — v1.0.0
# Command-line runner: one calculation per invocation, JSON on stdout.
#
#   p2002-perf takeoff --inputs inputs.json --debug
#   p2002-perf climb --weight-kg 580 --oat-c 15 --elevation-ft 0
#   p2002-perf cruise --oat-c 10 --elevation-ft 4000 --input-mode rpm --rpm 2200

from __future__ import annotations
import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from perf_core import CALCULATIONS, PerformanceError, __version__, run_calculation

logger = logging.getLogger("perf_runner")

# flag -> payload key (only flags given on the command line are forwarded)
FIELD_FLAGS = {
    "weight_kg": float,
    "oat_c": float,
    "elevation_ft": float,
    "qnh_hpa": float,
    "runway_surface": str,
    "runway_heading_deg": float,
    "wind_direction_deg": float,
    "wind_speed_kt": float,
    "runway_slope_pct": float,
    "input_mode": str,
    "kias": float,
    "ktas": float,
    "rpm": float,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="p2002-perf",
                                     description="P2002JF takeoff, landing, climb and cruise performance")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("kind", choices=CALCULATIONS, help="Calculation to run")
    parser.add_argument("--inputs", "-i", type=str, default=None,
                        help="JSON file with the input fields; flags below override it")
    for name, typ in FIELD_FLAGS.items():
        parser.add_argument("--" + name.replace("_", "-"), dest=name, type=typ, default=None)
    parser.add_argument("--debug", action="store_true", help="Include the lookup trace in the output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log lookup details to stderr")
    return parser


def load_payload(args: argparse.Namespace) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if args.inputs:
        with open(args.inputs, "r", encoding="utf-8") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError(f"{args.inputs}: expected a JSON object")
    for name in FIELD_FLAGS:
        value = getattr(args, name)
        if value is not None:
            payload[name] = value
    return payload


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    try:
        payload = load_payload(args)
        result = run_calculation(args.kind, payload, debug=args.debug)
    except (PerformanceError, OSError, ValueError) as e:
        logger.error("%s failed: %s", args.kind, e)
        return 2
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
