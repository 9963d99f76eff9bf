"""Command-line interface for resolving references."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

import yaml

from secretref.core.config.base import OutputFormat
from secretref.core.config.evaluate import evaluate_config
from secretref.core.config.loader import load_from_file
from secretref.core.config.resolver import ResolverConfig
from secretref.core.errors import SecretRefError
from secretref.core.resolver import ReferenceResolver

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secretref",
        description="Resolve secret references against their backends.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a HOCON resolver configuration file.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the logging level (default: from --config, else INFO).",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    get = commands.add_parser("get", help="Print the scalar value of a reference.")
    get.add_argument("reference", help="Reference string, e.g. ssm://app/db-password.")

    mapping = commands.add_parser("map", help="Print the mapping a reference resolves to.")
    mapping.add_argument("reference", help="Reference string, e.g. ssm://app/prod.")
    _add_output_argument(mapping)

    evaluate = commands.add_parser(
        "eval", help="Resolve every ref+ value in a YAML or JSON document."
    )
    evaluate.add_argument("file", help="Path to the YAML or JSON document.")
    _add_output_argument(evaluate)

    return parser


def _add_output_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.YAML.value,
        help="Output format (default: yaml).",
    )


def _render(data: Any, output: str) -> str:
    if OutputFormat(output) is OutputFormat.JSON:
        return json.dumps(data, indent=2, default=str)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip("\n")


def _load_document(path: str) -> Any:
    with open(path, encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for resolving references.

    Args:
        argv: Command-line arguments. Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code: 0 for success, 1 for failure.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = ResolverConfig()
    if args.config:
        try:
            config = load_from_file(args.config)
        except Exception as exc:
            logger.error("Failed to load configuration: %s", exc)
            print(f"error: failed to load configuration: {exc}", file=sys.stderr)
            return 1

    logging.basicConfig(
        level=args.log_level or config.logging.level.value,
        format=config.logging.format,
    )

    resolver = ReferenceResolver(config=config)

    document: Any = None
    if args.command == "eval":
        try:
            document = _load_document(args.file)
        except (OSError, yaml.YAMLError) as exc:
            print(f"error: failed to read {args.file}: {exc}", file=sys.stderr)
            return 1

    try:
        if args.command == "get":
            print(resolver.resolve_scalar(args.reference))
        elif args.command == "map":
            print(_render(resolver.resolve_mapping(args.reference), args.output))
        else:
            print(_render(evaluate_config(document, resolver), args.output))
    except SecretRefError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
