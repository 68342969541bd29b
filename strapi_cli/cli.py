"""
Strapi CLI - Opinionated command-line interface.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing (including compact filter expressions)
- TTY detection for human vs machine output
- Pretty formatting for human output
- JSON output for piping/automation
"""

import argparse
import json
import logging
import sys
import urllib.parse
from typing import Any

from dotenv import find_dotenv, load_dotenv

from strapi_cli.core.client import APIError, StrapiError, ValidationError
from strapi_cli.core.types import Condition, LogicOperator, Pagination, StrapiResult
from strapi_cli.sdk import StrapiClient

# =============================================================================
# Output Helpers
# =============================================================================


def is_tty() -> bool:
    """Check if stdout is a TTY (human) or pipe (LLM/machine)."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Print JSON output."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: StrapiError) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


def success_output(data: Any) -> None:
    """Print success output."""
    json_output(data)


def table_output(
    headers: list[str],
    rows: list[list[str]],
    widths: list[int],
) -> None:
    """Print a formatted table for human output."""
    # Header
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    # Rows
    for row in rows:
        row_line = "  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths))
        print(row_line)


def result_output(result: StrapiResult) -> None:
    """Print a collection result as a table (TTY) or as the raw envelope."""
    if not is_tty() or not isinstance(result.data, list):
        success_output(result.to_dict())
        return

    if not result.data:
        print("No entries found.")
        return

    table_output(
        ["ID", "Document ID", "Attributes"],
        [_entry_row(entry) for entry in result.data],
        [8, 26, 60],
    )

    pagination = result.meta.get("pagination") if isinstance(result.meta, dict) else None
    if pagination:
        print(
            f"\nPage {pagination.get('page')} of {pagination.get('pageCount')}"
            f" ({pagination.get('total')} entries)"
        )


def _entry_row(entry: Any) -> list[str]:
    if not isinstance(entry, dict):
        return ["", "", str(entry)]
    # Strapi v4 nests fields under 'attributes'; v5 returns them flat
    attributes = entry.get("attributes") or {
        k: v for k, v in entry.items() if k not in ("id", "documentId")
    }
    return [str(entry.get("id", "")), str(entry.get("documentId", "")), json.dumps(attributes, default=str)]


# =============================================================================
# Argument Parsing Helpers
# =============================================================================


def parse_filter(expression: str, logic_operator: LogicOperator | None = None) -> Condition:
    """
    Parse a ``PATH:OPERATOR:VALUE`` filter expression.

    ``PATH`` is dot-separated (``author.name``). ``VALUE`` may itself contain
    colons. Values that parse as JSON (numbers, booleans, lists) are decoded.
    Strings are percent-encoded, since the query builder interpolates them raw.

    Example:
        parse_filter("author.id:eq:5")  # filters[author][id][$eq]=5

    """
    parts = expression.split(":", 2)
    if len(parts) < 2 or not parts[0]:
        raise argparse.ArgumentTypeError(f"Invalid filter '{expression}', expected PATH:OPERATOR[:VALUE]")

    path, operator = parts[0], parts[1]
    raw_value = parts[2] if len(parts) == 3 else None
    try:
        value = json.loads(raw_value) if raw_value is not None else None
    except json.JSONDecodeError:
        value = raw_value

    try:
        return Condition(
            fields=path.split("."),
            operator=operator,
            value=_encode_value(value),
            logic_operator=logic_operator,
        )
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid filter '{expression}': {e}")


def _encode_value(value: Any) -> Any:
    if isinstance(value, str):
        return urllib.parse.quote(value, safe=",:")
    if isinstance(value, list):
        return [_encode_value(v) for v in value]
    return value


def _or_filter(expression: str) -> Condition:
    return parse_filter(expression, LogicOperator.OR)


def _and_filter(expression: str) -> Condition:
    return parse_filter(expression, LogicOperator.AND)


def load_body(raw: str | None) -> Any:
    """Parse a JSON body from an argument or stdin (``-``)."""
    if raw is None:
        return {}
    try:
        if raw == "-":
            return json.load(sys.stdin)
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in --body: {e}")


def apply_query_args(client: StrapiClient, args: argparse.Namespace) -> StrapiClient:
    """Feed the shared query flags into the client's builder."""
    client.from_(args.collection)
    if args.populate:
        client.select(args.populate)
    if args.filters:
        client.where(args.filters)
    if args.sort:
        client.sort(args.sort)
    if args.page is not None or args.page_size is not None:
        client.pagination(Pagination(page=args.page, page_size=args.page_size or 25))
    if args.params:
        client.add_custom_query_params(args.params)
    return client


# =============================================================================
# CLI Commands
# =============================================================================


def cmd_find(client: StrapiClient, args: argparse.Namespace) -> None:
    """Query a collection."""
    try:
        apply_query_args(client, args)
        if args.dry_run:
            request = client.prepare_find()
            success_output({"method": request.method.value, "url": request.url})
            return
        result_output(client.find())
    except StrapiError as e:
        error_output(e)


def cmd_find_one(client: StrapiClient, args: argparse.Namespace) -> None:
    """Fetch a single entry."""
    try:
        apply_query_args(client, args)
        if args.dry_run:
            request = client.prepare_find_one(args.entry_id)
            success_output({"method": request.method.value, "url": request.url})
            return
        success_output(client.find_one(args.entry_id).to_dict())
    except StrapiError as e:
        error_output(e)


def cmd_get(client: StrapiClient, args: argparse.Namespace) -> None:
    """GET an arbitrary endpoint."""
    try:
        success_output(client.get_any(args.endpoint))
    except APIError as e:
        error_output(e)


def cmd_post(client: StrapiClient, args: argparse.Namespace) -> None:
    """POST to an arbitrary endpoint."""
    try:
        success_output(client.post_any(args.endpoint, load_body(args.body)))
    except StrapiError as e:
        error_output(e)


def cmd_put(client: StrapiClient, args: argparse.Namespace) -> None:
    """PUT to an arbitrary endpoint."""
    try:
        success_output(client.put(args.endpoint, load_body(args.body)).to_dict())
    except StrapiError as e:
        error_output(e)


def cmd_delete(client: StrapiClient, args: argparse.Namespace) -> None:
    """DELETE an arbitrary endpoint."""
    try:
        success_output(client.delete(args.endpoint))
    except APIError as e:
        error_output(e)


def cmd_register(client: StrapiClient, args: argparse.Namespace) -> None:
    """Register a new user."""
    try:
        success_output(client.create_user(load_body(args.body)))
    except StrapiError as e:
        error_output(e)


def cmd_login(client: StrapiClient, args: argparse.Namespace) -> None:
    """Log in and print the JWT."""
    try:
        token = client.login(args.email, args.password)
        if is_tty():
            print(f"Token: {token.token}")
            if isinstance(token.user, dict):
                print(f"User: {token.user.get('username', '')} <{token.user.get('email', '')}>")
        else:
            success_output({"token": token.token, "user": token.user})
    except APIError as e:
        error_output(e)


def cmd_forgot_password(client: StrapiClient, args: argparse.Namespace) -> None:
    """Request a password reset email."""
    try:
        success_output(client.forgot_password(args.email))
    except APIError as e:
        error_output(e)


def cmd_reset_password(client: StrapiClient, args: argparse.Namespace) -> None:
    """Reset a password with the emailed code."""
    try:
        success_output(client.reset_password(args.password, args.password_confirmation, args.code))
    except APIError as e:
        error_output(e)


def cmd_download(client: StrapiClient, args: argparse.Namespace) -> None:
    """Open an uploaded file in the browser."""
    client.download(args.path)


# =============================================================================
# Main CLI
# =============================================================================


def _add_query_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("collection", help="Collection API ID (e.g. articles)")
    parser.add_argument(
        "--populate",
        "-p",
        action="append",
        metavar="RELATION",
        help="Relation to populate (repeatable, '*' for all)",
    )
    parser.add_argument(
        "--filter",
        "-f",
        dest="filters",
        action="append",
        type=parse_filter,
        metavar="PATH:OP:VALUE",
        help="Filter condition (repeatable), e.g. author.id:eq:5",
    )
    parser.add_argument(
        "--or",
        dest="filters",
        action="append",
        type=_or_filter,
        metavar="PATH:OP:VALUE",
        help="Filter condition inside an $or group",
    )
    parser.add_argument(
        "--and",
        dest="filters",
        action="append",
        type=_and_filter,
        metavar="PATH:OP:VALUE",
        help="Filter condition inside an $and group",
    )
    parser.add_argument("--sort", "-s", action="append", metavar="KEY", help="Sort key (repeatable), e.g. title:desc")
    parser.add_argument("--page", type=int, help="Page number (default 1)")
    parser.add_argument("--page-size", type=int, help="Page size (default 25)")
    parser.add_argument("--params", help="Raw, pre-encoded query string appended to the URL")
    parser.add_argument("--dry-run", action="store_true", help="Print the request URL without sending it")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Strapi CLI - Command-line interface for the Strapi REST API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output Modes:
  TTY (human):  Pretty tables
  Pipe (LLM):   Full JSON envelopes

Examples:
  strapi find articles -p '*' --sort title
  strapi find posts -f author.id:eq:5 --page 2 --page-size 10
  strapi find posts --or title:containsi:news --or title:containsi:blog --dry-run
  strapi find-one articles 12 -p author
  strapi login jane@example.com secret
""",
    )
    parser.add_argument("--endpoint", "-e", help="API base URL (overrides STRAPI_ENDPOINT)")
    parser.add_argument("--token", "-t", help="API token (overrides STRAPI_TOKEN)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log HTTP requests to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Queries ==========
    find = subparsers.add_parser("find", help="Query a collection")
    _add_query_arguments(find)
    find.set_defaults(func=cmd_find)

    find_one = subparsers.add_parser("find-one", help="Fetch a single entry")
    _add_query_arguments(find_one)
    find_one.add_argument("entry_id", help="Entry ID")
    find_one.set_defaults(func=cmd_find_one)

    # ========== Direct Verbs ==========
    get = subparsers.add_parser("get", help="GET an endpoint")
    get.add_argument("endpoint", help="Endpoint relative to the base URL")
    get.set_defaults(func=cmd_get)

    post = subparsers.add_parser("post", help="POST to an endpoint")
    post.add_argument("endpoint", help="Endpoint relative to the base URL")
    post.add_argument("--body", "-b", help="JSON body (or - for stdin)")
    post.set_defaults(func=cmd_post)

    put = subparsers.add_parser("put", help="PUT to an endpoint")
    put.add_argument("endpoint", help="Endpoint relative to the base URL")
    put.add_argument("--body", "-b", help="JSON body (or - for stdin)")
    put.set_defaults(func=cmd_put)

    delete = subparsers.add_parser("delete", help="DELETE an endpoint")
    delete.add_argument("endpoint", help="Endpoint relative to the base URL")
    delete.set_defaults(func=cmd_delete)

    # ========== Auth ==========
    register = subparsers.add_parser("register", help="Register a user")
    register.add_argument("--body", "-b", required=True, help="JSON with username, email, password (or -)")
    register.set_defaults(func=cmd_register)

    login = subparsers.add_parser("login", help="Log in and print the JWT")
    login.add_argument("email", help="Email or username")
    login.add_argument("password", help="Password")
    login.set_defaults(func=cmd_login)

    forgot = subparsers.add_parser("forgot-password", help="Send a password reset email")
    forgot.add_argument("email", help="Account email")
    forgot.set_defaults(func=cmd_forgot_password)

    reset = subparsers.add_parser("reset-password", help="Reset a password with the emailed code")
    reset.add_argument("password", help="New password")
    reset.add_argument("password_confirmation", help="New password again")
    reset.add_argument("code", help="Reset code from the email")
    reset.set_defaults(func=cmd_reset_password)

    # ========== Uploads ==========
    download = subparsers.add_parser("download", help="Open an uploaded file in the browser")
    download.add_argument("path", help="Upload URL, e.g. /uploads/photo.png")
    download.set_defaults(func=cmd_download)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_dotenv(find_dotenv(usecwd=True))

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    # Create client
    client = StrapiClient(endpoint=args.endpoint, token=args.token)

    args.func(client, args)


if __name__ == "__main__":
    main()
