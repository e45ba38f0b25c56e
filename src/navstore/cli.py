"""
Command-line interface for the navigation content store.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from . import __version__
from .config import ConfigManager, AppConfig
from .error_handling import StoreError, ErrorHandler
from .logging import setup_logging, close_logging, get_logger, LoggerConfig
from .models import Credential
from .store import ContentStore

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONCURRENT_EDIT = 2


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config', '-c',
    type=click.Path(exists=True, path_type=Path),
    help='Path to configuration file'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Increase verbosity (use -v or -vv)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int) -> None:
    """
    Navigation content store - read and update JSON content kept in a
    GitHub repository, with conflict-safe commits.
    """
    ctx.ensure_object(dict)

    try:
        app_config = ConfigManager(config).load_config()
    except StoreError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(EXIT_FAILURE)

    setup_logging(LoggerConfig.from_app_config(app_config.logging, level=_verbosity_level(verbose)))
    ctx.call_on_close(close_logging)

    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose
    ctx.obj['config'] = app_config


@cli.command()
@click.argument('path')
@click.option('--raw', is_flag=True, help='Print the blob bytes as stored instead of re-serialized JSON')
@click.pass_context
def show(ctx: click.Context, path: str, raw: bool) -> None:
    """
    Print the content stored at PATH.

    Missing content prints the fallback value for that path.
    """
    store = _build_store(ctx)
    try:
        result = store.fetch(path, raw=raw)
        if raw and result.exists:
            click.echo(result.text())
        else:
            click.echo(json.dumps(result.json(), indent=2, ensure_ascii=False))
        if not result.exists:
            click.echo(f"(no content at {path}; showing fallback)", err=True)
    except StoreError as e:
        _fail(e)
    finally:
        store.close()


@cli.command()
@click.argument('path')
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    '--token',
    envvar='GITHUB_TOKEN',
    required=True,
    help='Access token with write permission (or set GITHUB_TOKEN)'
)
@click.option('--message', '-m', default=None, help='Commit message')
@click.option('--expect', default=None, help='Revision token the edit was based on')
@click.pass_context
def commit(
    ctx: click.Context,
    path: str,
    file: Path,
    token: str,
    message: Optional[str],
    expect: Optional[str]
) -> None:
    """
    Commit the JSON in FILE to PATH.

    The write is conditioned on the revision read just before it; concurrent
    edits are retried a bounded number of times.
    """
    store = _build_store(ctx)
    try:
        result = store.committer.commit(
            path,
            file.read_bytes(),
            message or f"Update {path}",
            Credential(token),
            expected_revision_token=expect
        )
        if not result.changed:
            click.echo(f"No changes to {path} (revision {result.new_revision_token})")
        else:
            action = "Created" if result.created else "Updated"
            click.echo(f"{action} {path}: revision {result.new_revision_token} after {result.attempts} attempt(s)")
    except StoreError as e:
        _fail(e)
    finally:
        store.close()


@cli.command()
@click.option(
    '--format', '-f',
    type=click.Choice(['table', 'json'], case_sensitive=False),
    default='table',
    help='Output format for statistics'
)
@click.pass_context
def stats(ctx: click.Context, format: str) -> None:
    """
    Display category and site counts for the navigation data.
    """
    store = _build_store(ctx)
    try:
        result = store.get_navigation_stats()
        if format == 'json':
            click.echo(json.dumps(result.to_dict(), indent=2))
        else:
            click.echo(f"Parent categories: {result.parent_categories}")
            click.echo(f"Sub-categories:    {result.sub_categories}")
            click.echo(f"Total categories:  {result.total_categories}")
            click.echo(f"Total sites:       {result.total_sites}")
    except StoreError as e:
        _fail(e)
    finally:
        store.close()


@cli.command()
@click.option(
    '--format', '-f',
    type=click.Choice(['table', 'json', 'yaml'], case_sensitive=False),
    default='table',
    help='Output format for configuration display'
)
@click.pass_context
def config(ctx: click.Context, format: str) -> None:
    """
    Display current configuration settings.

    Shows defaults merged with file settings and environment overrides.
    """
    app_config: AppConfig = ctx.obj['config']
    config_dict = app_config.to_dict()

    if format == 'json':
        click.echo(json.dumps(config_dict, indent=2, default=str))
    elif format == 'yaml':
        click.echo(yaml.safe_dump(config_dict, default_flow_style=False, sort_keys=False))
    else:
        display_config_table(config_dict)


def _verbosity_level(verbose: int) -> Optional[str]:
    """Map -v count to a log level; None keeps the configured level."""
    if verbose == 1:
        return "INFO"
    if verbose >= 2:
        return "DEBUG"
    return None


def _build_store(ctx: click.Context) -> ContentStore:
    """
    Wire a store from the loaded configuration.

    A ``session`` or ``sleep`` placed in ``ctx.obj`` by the caller replaces the
    HTTP session and the retry sleep.
    """
    try:
        kwargs = {'session': ctx.obj.get('session')}
        if ctx.obj.get('sleep') is not None:
            kwargs['sleep'] = ctx.obj['sleep']
        return ContentStore.from_config(ctx.obj['config'], **kwargs)
    except StoreError as e:
        _fail(e)


def _fail(error: StoreError) -> None:
    handler = ErrorHandler(logger)
    _, message = handler.describe(error)
    click.echo(f"Error: {message}", err=True)
    if handler.is_concurrent_edit(error):
        sys.exit(EXIT_CONCURRENT_EDIT)
    click.echo(f"Details: {error}", err=True)
    sys.exit(EXIT_FAILURE)


def display_config_table(config_dict: dict) -> None:
    """Display configuration in table format."""
    click.echo("\nCurrent Configuration:")
    click.echo("-" * 50)

    for section_name, section in config_dict.items():
        click.echo(f"\n[{section_name}]")
        for key, value in section.items():
            if 'token' in key and value:
                value = '*' * 8
            click.echo(f"  {key}: {value}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
