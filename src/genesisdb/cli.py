"""GenesisDB command-line interface.

Connection settings come from options or GENESISDB_* environment variables.

Usage:
    genesisdb ping                                  # Health check
    genesisdb audit                                 # Print the audit trail
    genesisdb stream /customer/42                   # Events of a subject
    genesisdb stream /customer/42 --format json     # ... as JSON
    genesisdb query 'FROM e IN events ...'          # Raw query rows
    genesisdb query '...' --events                  # Rows mapped to events
    genesisdb commit --source S --subject /x --type T --data '{"k": 1}'
    genesisdb commit --file events.json             # JSON array of events
    genesisdb erase /customer/42                    # Erase subject data
    genesisdb config                                # Show configuration
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

import click

from .client import GenesisDBClient
from .config import (
    DEFAULT_TIMEOUT,
    ENV_API_URL,
    ENV_API_VERSION,
    ENV_AUTH_TOKEN,
    ENV_TIMEOUT,
    ClientConfig,
)
from .errors import ConfigurationError, GenesisDBError
from .types import CloudEvent

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"


# Event table columns: (header, width)
EVENT_COLUMNS = (("ID", 38), ("Type", 40), ("Subject", 25), ("Time", 19))


def _row(*cells: str | None) -> str:
    """Lay out one event table row; long cells end in an ellipsis, empty ones show "-"."""
    parts = []
    for value, (_, width) in zip(cells, EVENT_COLUMNS, strict=True):
        text = value or "-"
        if len(text) > width:
            text = text[: width - 1] + "\u2026"
        parts.append(text.ljust(width))
    return " ".join(parts).rstrip()


def parse_json_option(value: str | None, option_name: str) -> Any:
    """Parse a JSON-valued option, reporting errors against the option."""
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON ({e})", param_hint=option_name) from e


@click.group()
@click.option("--url", envvar=ENV_API_URL, default="", help=f"Server base URL [env: {ENV_API_URL}]")
@click.option(
    "--api-version", envvar=ENV_API_VERSION, default="", help=f"API version [env: {ENV_API_VERSION}]"
)
@click.option("--token", envvar=ENV_AUTH_TOKEN, default="", help=f"Auth token [env: {ENV_AUTH_TOKEN}]")
@click.option(
    "--timeout",
    envvar=ENV_TIMEOUT,
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help=f"Request timeout in seconds [env: {ENV_TIMEOUT}]",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, url: str, api_version: str, token: str, timeout: float, verbose: bool) -> None:
    """GenesisDB client - commit, stream and query events."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    ctx.ensure_object(dict)
    ctx.obj.update(url=url, api_version=api_version, token=token, timeout=timeout)


def _load_config(ctx: click.Context) -> ClientConfig:
    try:
        return ClientConfig(
            base_url=ctx.obj["url"],
            api_version=ctx.obj["api_version"],
            auth_token=ctx.obj["token"],
            timeout=ctx.obj["timeout"],
        )
    except ConfigurationError as e:
        raise click.UsageError(str(e), ctx=ctx) from e


def _create_client(ctx: click.Context) -> GenesisDBClient:
    """Create a client; an httpx.Client in ctx.obj["http_client"] is reused."""
    return GenesisDBClient.from_config(_load_config(ctx), http_client=ctx.obj.get("http_client"))


def _fail(error: GenesisDBError) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _print_events(events: list[CloudEvent], output_format: str) -> None:
    if output_format == FORMAT_JSON:
        click.echo(
            json.dumps([e.model_dump(mode="json") for e in events], indent=2, ensure_ascii=False)
        )
        return

    if not events:
        click.echo("No events found.")
        return

    header = _row(*(name for name, _ in EVENT_COLUMNS))
    click.echo(header)
    click.echo("-" * len(header))

    for event in events:
        timestamp = event.timestamp
        click.echo(
            _row(
                event.id,
                event.type,
                event.subject,
                timestamp.strftime("%Y-%m-%d %H:%M:%S") if timestamp else None,
            )
        )

    click.echo(f"\nTotal: {len(events)} event(s)")


# =============================================================================
# Status Commands
# =============================================================================


@main.command()
@click.pass_context
def ping(ctx: click.Context) -> None:
    """Check that the server is reachable."""
    with _create_client(ctx) as client:
        try:
            click.echo(client.ping())
        except GenesisDBError as e:
            _fail(e)


@main.command()
@click.pass_context
def audit(ctx: click.Context) -> None:
    """Print the server's audit trail."""
    with _create_client(ctx) as client:
        try:
            click.echo(client.audit())
        except GenesisDBError as e:
            _fail(e)


@main.command("config")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show_config(ctx: click.Context, output_json: bool) -> None:
    """Show the resolved connection configuration (token masked)."""
    config = _load_config(ctx)
    info = {
        "base_url": config.base_url,
        "api_version": config.api_version,
        "auth_token": config.masked_token,
        "timeout": config.timeout,
    }

    if output_json:
        click.echo(json.dumps(info, indent=2))
        return

    click.echo("GenesisDB Configuration")
    click.echo("-" * 40)
    click.echo(f"Base URL:     {info['base_url']}")
    click.echo(f"API version:  {info['api_version']}")
    click.echo(f"Auth token:   {info['auth_token']}")
    click.echo(f"Timeout:      {info['timeout']}s")


# =============================================================================
# Read Commands
# =============================================================================


@main.command()
@click.argument("subject")
@click.option("--lower-bound", help="Event id to start from")
@click.option(
    "--include-lower-bound/--exclude-lower-bound",
    default=None,
    help="Whether the lower bound event itself is returned",
)
@click.option("--latest-by-event-type", help="Only the latest event of this type")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.pass_context
def stream(
    ctx: click.Context,
    subject: str,
    lower_bound: str | None,
    include_lower_bound: bool | None,
    latest_by_event_type: str | None,
    output_format: str,
) -> None:
    """Print the events of SUBJECT in stream order.

    Examples:

        # All events of a customer
        genesisdb stream /customer/42

        # Events after (and including) a known event, as JSON
        genesisdb stream /customer/42 --lower-bound 2d6d4141 --include-lower-bound -f json
    """
    with _create_client(ctx) as client:
        try:
            events = client.stream_events(
                subject,
                lower_bound=lower_bound,
                include_lower_bound_event=include_lower_bound,
                latest_by_event_type=latest_by_event_type,
            )
        except GenesisDBError as e:
            _fail(e)
            return

    _print_events(events, output_format)


@main.command()
@click.argument("query")
@click.option("--events", "as_events", is_flag=True, help="Map result rows to events")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_JSON,
    help="Output format (table requires --events)",
)
@click.pass_context
def query(ctx: click.Context, query: str, as_events: bool, output_format: str) -> None:
    """Run QUERY and print the result rows.

    Examples:

        genesisdb query 'FROM e IN events WHERE e.type == "io.genesisdb.app.customer-added" PROJECT INTO e'
    """
    if output_format == FORMAT_TABLE and not as_events:
        raise click.UsageError("--format table requires --events", ctx=ctx)

    with _create_client(ctx) as client:
        try:
            if as_events:
                events = client.query_events(query)
            else:
                rows = client.q(query)
        except GenesisDBError as e:
            _fail(e)
            return

    if as_events:
        _print_events(events, output_format)
    else:
        click.echo(json.dumps(rows, indent=2, ensure_ascii=False))


# =============================================================================
# Write Commands
# =============================================================================


@main.command()
@click.option("--source", help="Event source, e.g. io.genesisdb.app")
@click.option("--subject", help="Event subject, e.g. /customer/42")
@click.option("--type", "event_type", help="Event type")
@click.option("--data", help="Event data as JSON")
@click.option("--options", "event_options", help="Event options as JSON")
@click.option("--preconditions", help="Commit preconditions as JSON")
@click.option(
    "--file",
    "events_file",
    type=click.File("r", encoding="utf-8"),
    help="JSON file holding an array of events (use - for stdin)",
)
@click.pass_context
def commit(
    ctx: click.Context,
    source: str | None,
    subject: str | None,
    event_type: str | None,
    data: str | None,
    event_options: str | None,
    preconditions: str | None,
    events_file: Any,
) -> None:
    """Commit one event from options, or many from --file.

    Examples:

        genesisdb commit --source io.genesisdb.app --subject /customer/42 \\
            --type io.genesisdb.app.customer-added --data '{"firstName": "Bruce"}'

        genesisdb commit --file events.json --preconditions '{"expectedVersion": 5}'
    """
    if events_file is not None:
        if any(v is not None for v in (source, subject, event_type, data, event_options)):
            raise click.UsageError("--file cannot be combined with single-event options", ctx=ctx)
        try:
            events = json.load(events_file)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"not valid JSON ({e})", param_hint="--file") from e
        if not isinstance(events, list):
            raise click.BadParameter("must hold a JSON array of events", param_hint="--file")
    else:
        if not (source and subject and event_type):
            raise click.UsageError("--source, --subject and --type are required without --file", ctx=ctx)
        event: dict[str, Any] = {
            "source": source,
            "subject": subject,
            "type": event_type,
            "data": parse_json_option(data, "--data"),
        }
        if event_options is not None:
            event["options"] = parse_json_option(event_options, "--options")
        events = [event]

    parsed_preconditions = parse_json_option(preconditions, "--preconditions")

    with _create_client(ctx) as client:
        try:
            client.commit_events(events, parsed_preconditions)
        except GenesisDBError as e:
            _fail(e)
            return

    click.echo(f"Committed {len(events)} event(s)")


@main.command()
@click.argument("subject")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def erase(ctx: click.Context, subject: str, yes: bool) -> None:
    """Erase the stored data of SUBJECT.

    Examples:

        # Erase with confirmation
        genesisdb erase /customer/42

        # Skip confirmation
        genesisdb erase /customer/42 --yes
    """
    if not yes and not click.confirm(f"Erase all data of {subject}?"):
        click.echo("Cancelled.")
        return

    with _create_client(ctx) as client:
        try:
            client.erase_data(subject)
        except GenesisDBError as e:
            _fail(e)
            return

    click.echo(f"Erased data of {subject}")


if __name__ == "__main__":
    main()
