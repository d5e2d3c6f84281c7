from __future__ import annotations

import argparse
import asyncio
import json
import logging

from sysmcp.aggregator import SystemMonitor
from sysmcp.config import load_config
from sysmcp.logging_utils import configure_logging, resolve_log_level
from sysmcp.schema import validate_payload
from sysmcp.server import build_server
from sysmcp.tools import ToolBoundary

OVERVIEW_TOOL = "get_system_overview"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="sysmcp host telemetry MCP server")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CFG configuration file (defaults are used when omitted)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable debug logging (-v) or trace logging (-vv)",
    )
    parser.add_argument(
        "--once",
        nargs="?",
        const=OVERVIEW_TOOL,
        metavar="TOOL",
        help=f"Run a single tool, print its result and exit (default: {OVERVIEW_TOOL})",
    )
    parser.add_argument(
        "--dump-json",
        metavar="PATH",
        help="Write the JSON payload of the single run to a file",
    )
    return parser


def run_once(boundary: ToolBoundary, tool: str, dump_json: str | None, pretty: bool) -> int:
    logger = logging.getLogger("sysmcp")
    result = asyncio.run(boundary.call(tool))
    if not result.ok:
        logger.error("%s failed: %s", tool, result.error)
        print(result.to_text())
        return 1

    if tool == OVERVIEW_TOOL:
        schema_errors = validate_payload(result.payload)
        if schema_errors:
            logger.warning("Schema validation failed with %s errors.", len(schema_errors))
            logger.debug("Schema errors: %s", schema_errors)
        else:
            logger.info("Schema validation passed.")

    if dump_json:
        payload_json = json.dumps(result.payload, indent=2) if pretty else json.dumps(result.payload)
        with open(dump_json, "w", encoding="utf-8") as handle:
            handle.write(payload_json)
        logger.info("Wrote %s payload to %s", tool, dump_json)

    print(result.to_text())
    return 0


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    level = resolve_log_level(args.verbose, args.log_level)
    configure_logging(level)
    logger = logging.getLogger("sysmcp")
    config = load_config(args.config)

    monitor = SystemMonitor(config)
    boundary = ToolBoundary(monitor)
    logger.debug("Using %s probe set.", monitor.probe_set.family)

    tool = args.once or (OVERVIEW_TOOL if args.dump_json else None)
    if tool:
        logger.info("Single-run mode enabled; running %s.", tool)
        raise SystemExit(run_once(boundary, tool, args.dump_json, level <= logging.DEBUG))

    server = build_server(boundary, config.server)
    logger.info("sysmcp server %s started over %s.", config.server.name, config.server.transport)
    try:
        server.run(transport=config.server.transport)
    except KeyboardInterrupt:
        logger.info("sysmcp server stopped.")


if __name__ == "__main__":
    main()
