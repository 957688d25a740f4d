"""Command line helpers for inspecting and testing Accumulo settings."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .client.instance import AccumuloError
from .config import Configuration, ConfigurationError, load_configuration, parse_overrides
from .parameters import ConnectionParameters

LOG = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STORE_ERROR = 1
EXIT_CONFIG_ERROR = 2


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="accumulo-handler",
        description="Resolve Accumulo connection settings from configuration.",
    )
    parser.add_argument("--config", help="TOML file with accumulo.* settings")
    parser.add_argument(
        "-D",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a configuration value (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("command", choices=("describe", "connect"))
    return parser.parse_args(argv)


def build_configuration(args: argparse.Namespace) -> Configuration:
    conf = load_configuration(args.config) if args.config else Configuration()
    conf.update(parse_overrides(args.overrides))
    return conf


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        conf = build_configuration(args)
    except (ConfigurationError, OSError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    try:
        params = ConnectionParameters(conf)
        if args.command == "describe":
            print(json.dumps(params.describe(), indent=2))
            return EXIT_OK
        connector = params.get_connector()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except AccumuloError as exc:
        LOG.debug("Connection attempt failed", exc_info=True)
        print(f"Connection failed: {exc}", file=sys.stderr)
        return EXIT_STORE_ERROR
    try:
        print(f"Connected to {connector.instance.instance_name} as {connector.whoami()}")
    finally:
        connector.close()
    return EXIT_OK


__all__ = ["main", "parse_args"]
