#!/usr/bin/env python3
"""Storefront session - CLI entry point."""

import asyncio
import json
import logging
import os
import signal
import sys
from pathlib import Path

import click
import sentry_sdk
import structlog
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from . import __version__
from .config import SessionConfig, load_config
from .exceptions import StorefrontClientError
from .http_client import ApiClient
from .refresher import PeriodicRefresher
from .route_guard import cookie_reader_from_mapping, evaluate_route
from .session import StorefrontSession


def _init_sentry() -> bool:
    """Report errors to Sentry when SENTRY_DSN is set."""
    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=os.environ.get("ENVIRONMENT", "development"),
        release=f"storefront-session@{__version__}",
        integrations=[
            AsyncioIntegration(),
            HttpxIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        send_default_pii=False,
    )
    return True


_sentry_enabled = _init_sentry()


def _configure_logging(level: str) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def _parse_cookies(values: tuple[str, ...]) -> dict[str, str]:
    cookies: dict[str, str] = {}
    for value in values:
        name, sep, cookie = value.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected NAME=VALUE, got {value!r}", param_hint="--cookie")
        cookies[name.strip()] = cookie
    return cookies


cookie_option = click.option(
    "--cookie",
    "cookies",
    multiple=True,
    metavar="NAME=VALUE",
    help="Session cookie to send (repeatable)",
)


@click.group()
@click.version_option(version=__version__, prog_name="storefront-session")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, path_type=Path),
    help="Path to config file",
)
@click.option(
    "--url",
    envvar="STOREFRONT_API_URL",
    default=None,
    help="Storefront API URL (overrides config file)",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Path | None, url: str | None) -> None:
    """Storefront session tools.

    Check which pages the route guard lets through, refresh a session, or
    keep one alive in the background.
    """
    config = load_config(config_file)
    if url:
        config = config.model_copy(update={"api_url": url.rstrip("/")})
    _configure_logging(config.log_level)
    ctx.obj = config


@cli.command("check-route")
@click.argument("path")
@cookie_option
@click.pass_obj
def check_route(config: SessionConfig, path: str, cookies: tuple[str, ...]) -> None:
    """Show what the route guard does with PATH."""
    decision = evaluate_route(path, cookie_reader_from_mapping(_parse_cookies(cookies)), config)
    if decision.allow:
        click.echo(click.style("allow", fg="green"))
    else:
        click.echo(click.style("redirect", fg="yellow") + f" -> {decision.redirect_to}")


@cli.command()
@cookie_option
@click.pass_obj
def refresh(config: SessionConfig, cookies: tuple[str, ...]) -> None:
    """Refresh the session once."""

    async def _refresh() -> None:
        async with ApiClient(config, cookies=_parse_cookies(cookies)) as client:
            await client.refresh_session()

    try:
        asyncio.run(_refresh())
    except StorefrontClientError as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + e.message, err=True)
        sys.exit(1)
    click.echo(click.style("Session refreshed", fg="green"))


@cli.command()
@cookie_option
@click.pass_obj
def hydrate(config: SessionConfig, cookies: tuple[str, ...]) -> None:
    """Hydrate user, cart and wishlist state and print it as JSON."""

    async def _hydrate() -> dict[str, object]:
        async with StorefrontSession(config, cookies=_parse_cookies(cookies)) as session:
            user = session.users.user
            return {
                "user": user.model_dump(by_alias=True) if user else None,
                "cart": session.cart.cart.model_dump(by_alias=True) if session.cart.cart else None,
                "cartSummary": session.cart.summary().model_dump(by_alias=True),
                "wishlist": [item.model_dump(by_alias=True) for item in session.wishlist.items],
            }

    click.echo(json.dumps(asyncio.run(_hydrate()), indent=2))


@cli.command()
@cookie_option
@click.option(
    "--interval",
    type=float,
    default=None,
    help="Seconds between refreshes (overrides config)",
)
@click.pass_obj
def keepalive(config: SessionConfig, cookies: tuple[str, ...], interval: float | None) -> None:
    """Keep a session alive until interrupted."""
    if interval is not None and interval <= 0:
        raise click.BadParameter("must be positive", param_hint="--interval")

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    shutdown_event = asyncio.Event()

    def signal_handler() -> None:
        click.echo("\nShutting down...")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    async def _keepalive() -> None:
        async with ApiClient(config, cookies=_parse_cookies(cookies)) as client:
            async with PeriodicRefresher(client, interval).running():
                await shutdown_event.wait()

    click.echo(
        click.style("Keeping session alive ", fg="cyan", bold=True)
        + f"every {interval or config.refresh_interval:g}s against {config.api_url}"
    )
    try:
        loop.run_until_complete(_keepalive())
    except KeyboardInterrupt:
        pass
    finally:
        if _sentry_enabled:
            sentry_sdk.flush(timeout=2.0)
        loop.close()

    click.echo("Stopped.")


if __name__ == "__main__":
    cli()
