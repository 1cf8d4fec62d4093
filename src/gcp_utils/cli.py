"""CLI for gcp-utils - Google Cloud access from the shell.

Usage:
    gcp-utils status                                      # Show configuration status
    gcp-utils token [--self-signed]                       # Print an access token
    gcp-utils sheets get <id> <sheet> <range>             # Read a range
    gcp-utils sheets find <id> <sheet> -f col=value       # First record matching filters
    gcp-utils sheets append <id> <sheet> -s col=value     # Append a record
    gcp-utils sheets append <id> <sheet> -s ... --unique-id
    gcp-utils sheets get-or-create <id> <sheet> -f ... -s ...
    gcp-utils sheets update <id> <sheet> <range> <value>...
    gcp-utils pubsub publish <topic> '<json>'             # Publish a JSON message
    gcp-utils pubsub receive <subscription>               # Pull and ack messages
    gcp-utils monitoring query <project> '<mql>'          # Query time series

Configuration comes from the environment (GOOGLE_SERVICE_ACCOUNT_KEY, GCP_SCOPES,
GCP_PROJECT_ID, PUBSUB_EMULATOR_HOST), a .env file, or the global options.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from gcp_utils.config import GcpConfig, get_config_status, parse_scopes
from gcp_utils.gcp import Gcp
from gcp_utils.google.exceptions import GcpError


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def parse_pairs(pairs: list[str] | None) -> dict[str, str]:
    """Parse ``column=value`` arguments into a dict."""
    result = {}
    for pair in pairs or []:
        column, sep, value = pair.partition("=")
        if not sep or not column.strip():
            raise ValueError(f"Expected column=value, got '{pair}'")
        result[column.strip()] = value
    return result


def build_config(args: argparse.Namespace) -> GcpConfig:
    """Build configuration from the environment and global options."""
    config = GcpConfig.from_env(args.env_file)
    if args.key:
        config.key = args.key
    if args.scopes:
        config.scopes = parse_scopes(args.scopes)
    if args.project:
        config.project_id = args.project
    if args.emulator_host:
        config.emulator_host = args.emulator_host
    return config


def cmd_status(config: GcpConfig) -> int:
    """Show configuration status."""
    status = get_config_status(config)

    print("=" * 60)
    print("GCP-UTILS CONFIGURATION")
    print("=" * 60)
    print()
    print(f"  service account key:  {status['key'] or '[ ] not configured'}")
    print(f"  scopes:               {', '.join(status['scopes']) or 'cloud-platform (default)'}")
    print(f"  project:              {status['project_id'] or 'from key'}")
    print(f"  pubsub emulator:      {status['emulator_host'] or '-'}")
    print()

    if not config.key:
        return 0

    gcp = Gcp(config)
    print(f"  [✓] {gcp.auth.email} ({gcp.project_id})")
    return 0


def cmd_token(gcp: Gcp, self_signed: bool = False) -> int:
    """Print an OAuth2 access token."""
    token = gcp.get_oauth2_id_token() if self_signed else gcp.get_oauth2_access_token()
    _print_json(token.to_dict())
    return 0


def cmd_sheets(gcp: Gcp, args: argparse.Namespace) -> int:
    """Run a sheets subcommand."""
    if args.sheets_command == "get":
        _print_json(gcp.spreadsheet_get(args.spreadsheet_id, args.sheet, args.range))
    elif args.sheets_command == "records":
        _print_json(gcp.spreadsheet_get_records(args.spreadsheet_id, args.sheet))
    elif args.sheets_command == "find":
        record = gcp.spreadsheet_get_row_by_filters(
            args.spreadsheet_id, args.sheet, parse_pairs(args.filter)
        )
        if record is None:
            print("No row matches filters")
            return 1
        _print_json(record)
    elif args.sheets_command == "append":
        record = parse_pairs(args.set)
        if args.unique_id:
            print(gcp.spreadsheet_append_with_unique_id(args.spreadsheet_id, args.sheet, record))
        else:
            print(gcp.spreadsheet_append_record(args.spreadsheet_id, args.sheet, record))
    elif args.sheets_command == "get-or-create":
        print(
            gcp.spreadsheet_get_or_create(
                args.spreadsheet_id,
                args.sheet,
                parse_pairs(args.filter),
                parse_pairs(args.set),
            )
        )
    elif args.sheets_command == "update":
        updated = gcp.spreadsheet_update(args.spreadsheet_id, args.sheet, args.range, args.values)
        print(f"Updated {updated} cells")
    return 0


def cmd_pubsub(gcp: Gcp, args: argparse.Namespace) -> int:
    """Run a pubsub subcommand."""
    if args.pubsub_command == "publish":
        try:
            message = json.loads(args.message)
        except json.JSONDecodeError as e:
            print(f"Error: Invalid JSON: {e}")
            return 1
        print(gcp.pubsub_publish(gcp.pubsub_topic(args.topic), message))
    elif args.pubsub_command == "receive":
        messages = gcp.pubsub_receive(
            gcp.pubsub_subscription(args.subscription),
            max_messages=args.max,
            timeout=args.timeout,
        )
        _print_json([m.to_dict() for m in messages])
    return 0


def cmd_monitoring(gcp: Gcp, args: argparse.Namespace) -> int:
    """Run a monitoring subcommand."""
    _print_json(gcp.query_time_series(args.project_id, args.query))
    return 0


def _add_spreadsheet_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("spreadsheet_id", help="Spreadsheet ID")
    parser.add_argument("sheet", help="Sheet name")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="gcp-utils",
        description="Google Cloud tokens, Sheets records, Pub/Sub and Monitoring",
    )
    parser.add_argument("--env-file", default=".env", help="Load variables from this file")
    parser.add_argument("--key", help="Service account key (path or JSON)")
    parser.add_argument("--scopes", help="Comma-separated scopes")
    parser.add_argument("--project", help="Project ID")
    parser.add_argument("--emulator-host", help="Pub/Sub emulator host:port")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # status command
    subparsers.add_parser("status", help="Show configuration status")

    # token command
    token_parser = subparsers.add_parser("token", help="Print an access token")
    token_parser.add_argument(
        "--self-signed",
        action="store_true",
        help="Create a self-signed JWT instead of calling the token endpoint",
    )

    # sheets subcommand
    sheets_parser = subparsers.add_parser("sheets", help="Spreadsheet records")
    sheets_subparsers = sheets_parser.add_subparsers(dest="sheets_command", help="Command")

    get_parser = sheets_subparsers.add_parser("get", help="Read a range")
    _add_spreadsheet_args(get_parser)
    get_parser.add_argument("range", help="A1 range (e.g., A:Z, 1:1)")

    records_parser = sheets_subparsers.add_parser("records", help="Read all records")
    _add_spreadsheet_args(records_parser)

    find_parser = sheets_subparsers.add_parser("find", help="Find first matching record")
    _add_spreadsheet_args(find_parser)
    find_parser.add_argument("-f", "--filter", action="append", help="column=value")

    append_parser = sheets_subparsers.add_parser("append", help="Append a record")
    _add_spreadsheet_args(append_parser)
    append_parser.add_argument("-s", "--set", action="append", help="column=value")
    append_parser.add_argument(
        "--unique-id",
        action="store_true",
        help="Assign the next id in the first column",
    )

    goc_parser = sheets_subparsers.add_parser(
        "get-or-create", help="Get id of matching record, appending if absent"
    )
    _add_spreadsheet_args(goc_parser)
    goc_parser.add_argument("-f", "--filter", action="append", help="column=value")
    goc_parser.add_argument("-s", "--set", action="append", help="column=value")

    update_parser = sheets_subparsers.add_parser("update", help="Overwrite a range")
    _add_spreadsheet_args(update_parser)
    update_parser.add_argument("range", help="A1 range (e.g., A2:C2)")
    update_parser.add_argument("values", nargs="+", help="Cell values")

    # pubsub subcommand
    pubsub_parser = subparsers.add_parser("pubsub", help="Pub/Sub messaging")
    pubsub_subparsers = pubsub_parser.add_subparsers(dest="pubsub_command", help="Command")

    publish_parser = pubsub_subparsers.add_parser("publish", help="Publish a JSON message")
    publish_parser.add_argument("topic", help="Topic name")
    publish_parser.add_argument("message", help="JSON object")

    receive_parser = pubsub_subparsers.add_parser("receive", help="Receive messages")
    receive_parser.add_argument("subscription", help="Subscription name")
    receive_parser.add_argument("--max", type=int, default=10, help="Maximum messages")
    receive_parser.add_argument("--timeout", type=float, default=10.0, help="Seconds to wait")

    # monitoring subcommand
    monitoring_parser = subparsers.add_parser("monitoring", help="Cloud Monitoring")
    monitoring_subparsers = monitoring_parser.add_subparsers(
        dest="monitoring_command", help="Command"
    )
    query_parser = monitoring_subparsers.add_parser("query", help="Query time series")
    query_parser.add_argument("project_id", help="Project ID")
    query_parser.add_argument("query", help="Monitoring Query Language query")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    subcommand_parsers = {
        "sheets": (sheets_parser, "sheets_command"),
        "pubsub": (pubsub_parser, "pubsub_command"),
        "monitoring": (monitoring_parser, "monitoring_command"),
    }
    if args.command in subcommand_parsers:
        sub_parser, dest = subcommand_parsers[args.command]
        if getattr(args, dest) is None:
            sub_parser.print_help()
            return 0

    try:
        config = build_config(args)

        if args.command == "status":
            return cmd_status(config)

        with Gcp(config) as gcp:
            if args.command == "token":
                return cmd_token(gcp, args.self_signed)
            if args.command == "sheets":
                return cmd_sheets(gcp, args)
            if args.command == "pubsub":
                return cmd_pubsub(gcp, args)
            if args.command == "monitoring":
                return cmd_monitoring(gcp, args)
    except (GcpError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
