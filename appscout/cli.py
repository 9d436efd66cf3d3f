"""
Command-line interface for AppScout.

Usage:
    appscout app --arg id=553834731
    appscout gp_reviews --arg appId=com.spotify.music
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from appscout.config import get_settings


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="appscout",
        description="App Store and Google Play data extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # App Store lookup by trackId
  appscout app --arg id=553834731

  # Search with several arguments
  appscout search --arg term=minecraft --arg num=10

  # Google Play permissions, names only
  appscout gp_permissions --json '{"appId": "com.spotify.music", "short": true}'

  # Show every tool
  appscout --list-tools
        """,
    )

    parser.add_argument(
        "tool",
        nargs="?",
        help="Tool to run (see --list-tools)",
    )

    parser.add_argument(
        "--arg", "-a",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Tool argument (repeatable). Values are parsed as JSON when possible",
    )

    parser.add_argument(
        "--json",
        dest="json_args",
        default="",
        help="Tool arguments as a JSON object (merged before --arg values)",
    )

    parser.add_argument(
        "--list-tools",
        action="store_true",
        help="List available tools and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def build_tool_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge --json and --arg values into one argument dict."""
    tool_args: Dict[str, Any] = {}
    if args.json_args:
        parsed = json.loads(args.json_args)
        if not isinstance(parsed, dict):
            raise ValueError("--json must be a JSON object")
        tool_args.update(parsed)

    for item in args.arg:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid --arg {item!r}, expected KEY=VALUE")
        tool_args[key.strip()] = _parse_value(value)
    return tool_args


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def async_main(args: argparse.Namespace) -> int:
    """Async entry point."""
    from appscout.tools import TOOLS, call_tool, list_tools

    if args.list_tools or not args.tool:
        for t in list_tools():
            required = f" (required: {', '.join(t['required'])})" if t["required"] else ""
            print(f"  {t['name']:<16} {t['description']}{required}")
        return 0 if args.list_tools else 2

    if args.tool not in TOOLS:
        print(f"Error: unknown tool {args.tool!r}", file=sys.stderr)
        return 2

    try:
        tool_args = build_tool_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    payload = await call_tool(args.tool, tool_args)
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 1 if payload.get("isError") else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
