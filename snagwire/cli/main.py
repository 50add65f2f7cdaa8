"""
snagwire CLI

Command-line tools for checking a notifier configuration.

Usage:
    snagwire [OPTIONS] COMMAND [ARGS]...

Commands:
    notify    Send a test event and wait for delivery
    config    Show the effective configuration
"""

import click
import logging
import sys
from dotenv import load_dotenv

from ..client import Client
from ..config import Configuration
from ..models import Severity

# Load .env file
load_dotenv()


def setup_logging(verbose: bool):
    """Configure logging to output to stdout."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(message)s',  # Simple format for CLI
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def _mask(value):
    if not value:
        return "(not set)"
    return value[:4] + "*" * max(0, len(value) - 4)


@click.group()
@click.option('--release-stage', default=None, help='Override SNAGWIRE_RELEASE_STAGE')
@click.option('-v', '--verbose', is_flag=True, help='Verbose output (show DEBUG logs)')
@click.option('-q', '--quiet', is_flag=True, help='Quiet mode (only show warnings/errors)')
@click.pass_context
def cli(ctx, release_stage, verbose, quiet):
    """snagwire - Error and session notifier."""
    # Configure logging based on verbosity
    if quiet:
        logging.basicConfig(level=logging.WARNING, format='%(message)s')
    else:
        setup_logging(verbose)

    config = Configuration.from_env()
    if release_stage:
        config = config.with_changes(release_stage=release_stage)

    ctx.ensure_object(dict)
    ctx.obj['config'] = config
    ctx.obj['verbose'] = verbose


@cli.command()
@click.option('--message', default='snagwire test event', help='Exception message')
@click.option('--severity', type=click.Choice([s.value for s in Severity]), default='warning')
@click.option('--timeout', default=5.0, type=float, help='Seconds to wait for delivery')
@click.pass_context
def notify(ctx, message, severity, timeout):
    """Send a test event and wait for delivery."""
    config = ctx.obj['config']
    if not config.enabled:
        click.echo("SNAGWIRE_API_KEY is not set", err=True)
        sys.exit(1)

    client = Client(config)
    try:
        raise RuntimeError(message)
    except RuntimeError as e:
        queued = client.notify(e, severity=Severity(severity))

    if not queued:
        click.echo("Event was not queued (ignored, muted release stage or suppressed)")
        client.stop(0)
        sys.exit(1)

    dropped = client.stop(grace_period=timeout)
    if dropped:
        click.echo(f"{dropped} payload(s) not delivered within {timeout:.1f}s", err=True)
        sys.exit(1)
    click.echo(f"Sent test event to {config.endpoints.notify}")


@cli.command('config')
@click.pass_context
def show_config(ctx):
    """Show the effective configuration."""
    config = ctx.obj['config']
    rows = [
        ("api_key", _mask(config.api_key)),
        ("release_stage", config.release_stage),
        ("app_version", config.app_version or "(not set)"),
        ("app_type", config.app_type or "(not set)"),
        ("project_packages", ", ".join(config.project_packages) or "(none)"),
        ("ignore_classes", ", ".join(config.ignore_classes) or "(none)"),
        ("notify_release_stages", ", ".join(config.notify_release_stages) or "(all)"),
        ("filters", ", ".join(config.filters) or "(none)"),
        ("notify_endpoint", config.endpoints.notify),
        ("session_endpoint", config.endpoints.sessions),
        ("proxy", config.proxy.address if config.proxy else "(none)"),
        ("worker_count", config.worker_count),
        ("shutdown_grace_period", f"{config.shutdown_grace_period:.1f}s"),
        ("session_window", f"{config.session_window}s"),
    ]
    width = max(len(name) for name, _ in rows)
    for name, value in rows:
        click.echo(f"{name.ljust(width)}  {value}")


if __name__ == '__main__':
    cli()
