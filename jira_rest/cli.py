"""CLI interface for the Jira REST client."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import click

from jira_rest import __version__
from jira_rest.utils.logging import configure_logging, get_logger


def parse_value(raw: str) -> Any:
    """Interpret a command line value as JSON, falling back to the raw string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def parse_options(options: tuple[str, ...]) -> dict[str, Any]:
    """Parse ``key=value`` pairs into keyword arguments."""
    kwargs = {}
    for option in options:
        key, sep, value = option.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value, got {option!r}", param_hint="-o")
        kwargs[key] = parse_value(value)
    return kwargs


def _load_config():
    from jira_rest.config import get_config
    from jira_rest.errors import ConfigError

    try:
        return get_config()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        click.echo(
            "Ensure JIRA_HOST and at most one credential scheme are set.",
            err=True,
        )
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override log level from config",
)
@click.pass_context
def main(ctx: click.Context, version: bool, log_level: Optional[str]) -> None:
    """jira-rest - An async client for the Jira REST API."""
    if version:
        click.echo(f"jira-rest v{__version__}")
        sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check Jira connection and configuration."""
    from jira_rest.client import JiraClient

    configure_logging(ctx.obj.get("log_level") or "INFO")

    click.echo("Checking Jira configuration...")

    config = _load_config()
    click.echo(f"  Jira URL: {config.server_url}")
    click.echo(f"  API version: {config.api_version}")
    click.echo(f"  Auth method: {config.auth_scheme}")
    click.echo(f"  SSL verification: {config.strict_ssl}")
    click.echo(f"  Timeout: {config.timeout}s")

    click.echo("\nTesting Jira connection...")

    async def test_connection() -> bool:
        async with JiraClient(config) as client:
            try:
                user = await client.get_current_user()
            except Exception as e:
                click.echo(f"  Connection failed: {e}", err=True)
                return False
            click.echo(f"  Connected as: {user.get('displayName', 'Unknown')}")
            click.echo(f"  Email: {user.get('emailAddress', 'N/A')}")
            return True

    if asyncio.run(test_connection()):
        click.echo("\nConnection successful!")
        sys.exit(0)
    else:
        click.echo("\nConnection failed!", err=True)
        sys.exit(1)


@main.command()
def endpoints() -> None:
    """List available Jira operations."""
    from jira_rest.client import JiraClient

    table = JiraClient.endpoints()
    by_family: dict[str, list[tuple[str, str]]] = {}
    for name, endpoint in table.items():
        by_family.setdefault(endpoint.family.value, []).append((name, endpoint.describe()))

    click.echo("Available Jira operations:\n")
    for family, entries in by_family.items():
        click.echo(f"  {family}:")
        for name, description in sorted(entries):
            click.echo(f"    - {name}: {description}")
        click.echo()

    composite = [name for name in JiraClient.operations() if name not in table]
    click.echo("  composite:")
    for name in composite:
        click.echo(f"    - {name}")
    click.echo()

    click.echo(f"Total: {len(table) + len(composite)} operations")


@main.command()
@click.argument("name")
@click.argument("args", nargs=-1)
@click.option("-o", "--opt", "options", multiple=True, help="Keyword argument as key=value")
def url(name: str, args: tuple[str, ...], options: tuple[str, ...]) -> None:
    """Print the URL an endpoint would request."""
    from jira_rest.client import JiraClient, UrlBuilder

    endpoint = JiraClient.endpoints().get(name)
    if endpoint is None:
        raise click.BadParameter(f"Unknown endpoint: {name}", param_hint="NAME")

    config = _load_config()
    try:
        arguments = endpoint.bind(*map(parse_value, args), **parse_options(options))
    except TypeError as e:
        raise click.UsageError(str(e)) from e

    request = endpoint.build_request(UrlBuilder(config), arguments)
    click.echo(f"{request.method} {request.url}")


@main.command()
@click.argument("name")
@click.argument("args", nargs=-1)
@click.option("-o", "--opt", "options", multiple=True, help="Keyword argument as key=value")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write binary downloads to this file",
)
@click.pass_context
def call(
    ctx: click.Context,
    name: str,
    args: tuple[str, ...],
    options: tuple[str, ...],
    output: Optional[Path],
) -> None:
    """Call a Jira operation and print its JSON result.

    Arguments and option values are parsed as JSON when they are valid JSON.
    """
    from jira_rest.client import Download, JiraClient
    from jira_rest.errors import JiraError

    configure_logging(ctx.obj.get("log_level") or "WARNING")
    logger = get_logger()

    if name not in JiraClient.operations():
        raise click.BadParameter(f"Unknown operation: {name}", param_hint="NAME")

    config = _load_config()
    arguments = [parse_value(arg) for arg in args]
    kwargs = parse_options(options)

    async def run() -> Any:
        async with JiraClient(config) as client:
            return await client.call(name, *arguments, **kwargs)

    try:
        result = asyncio.run(run())
    except TypeError as e:
        raise click.UsageError(str(e)) from e
    except JiraError as e:
        logger.debug(f"{name} failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if isinstance(result, Download):
        if output is None:
            click.echo(
                f"Binary response ({result.mime_type}, {len(result.content)} bytes); "
                "use --output to save it",
                err=True,
            )
            sys.exit(1)
        output.write_bytes(result.content)
        click.echo(f"Saved {len(result.content)} bytes to {output}")
        return

    click.echo(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
