"""Command-line utilities for carbon_edge."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import logging.handlers
import sys

from .errors import CarbonEdgeError
from .geo import Coordinate
from .logging_pipeline import configure_structured_logging, shutdown_listeners
from .orchestrator import DualGridOrchestrator
from .selection import DEFAULT_MAX_RESULTS
from .weighting import CONTENT_TYPE_WEIGHTS, DEFAULT_CONTENT_TYPE


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="carbon-edge",
        description="Dual-grid carbon intensity and CDN edge selection.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Emit structured JSON logs to stderr at this level.",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Overall request deadline in seconds.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    dual = commands.add_parser("dual-grid", help="Compute a dual-grid result.")
    dual.add_argument("user_location")
    dual.add_argument("edge_location")
    _add_content_type(dual)
    dual.add_argument("--cdn-provider", default=None)
    _add_user_coordinate(dual)

    optimal = commands.add_parser("optimal-edge", help="Select the best edge.")
    optimal.add_argument("user_location")
    optimal.add_argument("--cdn-provider", required=True)
    _add_content_type(optimal)
    _add_user_coordinate(optimal)

    alternatives = commands.add_parser(
        "alternatives", help="List lower-carbon alternatives to an edge."
    )
    alternatives.add_argument("user_location")
    alternatives.add_argument("current_edge")
    alternatives.add_argument("--cdn-provider", required=True)
    _add_content_type(alternatives)
    alternatives.add_argument(
        "--max-results",
        type=int,
        default=DEFAULT_MAX_RESULTS,
        help="Number of alternatives, clamped into [1, 20].",
    )
    _add_user_coordinate(alternatives)

    commands.add_parser("providers", help="List supported CDN providers.")
    return parser


def _add_content_type(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--content-type",
        default=DEFAULT_CONTENT_TYPE,
        help=f"One of: {', '.join(CONTENT_TYPE_WEIGHTS)}.",
    )


def _add_user_coordinate(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", type=float, default=None, help="User latitude.")
    parser.add_argument("--lon", type=float, default=None, help="User longitude.")


def _user_coordinate(args: argparse.Namespace) -> Coordinate | None:
    if args.lat is None and args.lon is None:
        return None
    if args.lat is None or args.lon is None:
        raise ValueError("--lat and --lon must be given together.")
    return Coordinate(args.lat, args.lon)


async def _run(args: argparse.Namespace, orchestrator: DualGridOrchestrator) -> object:
    if args.command == "providers":
        return [item.model_dump_json_ready() for item in orchestrator.list_providers()]
    if args.command == "dual-grid":
        result = await orchestrator.compute_dual_grid(
            args.user_location,
            args.edge_location,
            args.content_type,
            args.cdn_provider,
            deadline_seconds=args.deadline,
            user_coordinate=_user_coordinate(args),
        )
        return result.model_dump_json_ready()
    if args.command == "optimal-edge":
        edge = await orchestrator.optimal_edge(
            args.user_location,
            args.cdn_provider,
            args.content_type,
            deadline_seconds=args.deadline,
            user_coordinate=_user_coordinate(args),
        )
        return edge.model_dump_json_ready()
    found = await orchestrator.alternatives(
        args.user_location,
        args.current_edge,
        args.cdn_provider,
        args.content_type,
        args.max_results,
        deadline_seconds=args.deadline,
        user_coordinate=_user_coordinate(args),
    )
    return [item.model_dump_json_ready() for item in found]


def main(argv: list[str] | None = None) -> int:
    """Run a carbon-edge command and print its JSON result."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    listeners: list[logging.handlers.QueueListener] = []
    if args.log_level:
        listeners.append(
            configure_structured_logging(
                logging.getLogger("carbon_edge"),
                level=getattr(logging, args.log_level),
            )
        )

    try:
        payload = asyncio.run(_run(args, DualGridOrchestrator.from_settings()))
    except (CarbonEdgeError, ValueError) as exc:
        status = getattr(exc, "status_code", 400)
        print(
            json.dumps({"error": str(exc), "statusCode": status}),
            file=sys.stderr,
        )
        return 1
    finally:
        shutdown_listeners(listeners)

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
