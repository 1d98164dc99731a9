#!/usr/bin/env python3
"""
SaneRSS - AI-Filtered RSS Feeds
===============================

Main application entry point with CLI interface for running and inspecting
the service.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py serve                     # Run poller and HTTP server
    python main.py poll-once                 # Run a single poll cycle
    python main.py fetch-feed URL            # Fetch and parse one feed
    python main.py known-items               # Show persisted known items
    python main.py test-ai                   # Check the AI provider credentials
"""

import sys
import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from sanerss.ai.providers import create_provider
from sanerss.config.settings import SaneRSSSettings, load_settings
from sanerss.ingestion.feed_fetcher import FeedFetcher
from sanerss.services.feed_service import FeedFilterService
from sanerss.storage.known_items import KnownItemCache
from sanerss.utils.logging import configure_application_logging
from sanerss.utils.exceptions import SaneRSSError, get_user_friendly_message

console = Console()
logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option('--config', '-c', help='Configuration file path')
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, config, debug):
    """SaneRSS - AI-filtered RSS feeds."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        # Show help if no subcommand provided
        click.echo(ctx.get_help())


def _load_settings(ctx, validate: bool = True) -> SaneRSSSettings:
    """Load settings and configure logging, exiting on configuration errors."""
    try:
        settings = load_settings(ctx.obj['config_path'], validate=validate)
    except SaneRSSError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)

    if ctx.obj['debug']:
        settings.debug = True

    configure_application_logging(
        log_level=settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )
    return settings


@cli.command()
@click.pass_context
def check_config(ctx):
    """Validate configuration file and environment variables."""
    console.print("[bold blue]🔧 Checking SaneRSS Configuration[/bold blue]")

    settings = _load_settings(ctx, validate=False)

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    checks = [
        ("Feeds", _check_feeds_config),
        ("Polling", _check_polling_config),
        ("AI Provider", _check_ai_config),
        ("Server", _check_server_config),
        ("Known Items", _check_known_items_config),
        ("Logging", _check_logging_config),
    ]

    all_passed = True
    for name, check_func in checks:
        status, details = check_func(settings)
        table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
        if not status:
            all_passed = False

    console.print(table)

    try:
        settings.validate_configuration()
    except SaneRSSError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        all_passed = False

    if all_passed:
        console.print("[bold green]✅ All configuration checks passed![/bold green]")
        sys.exit(0)
    else:
        console.print("[bold red]❌ Configuration validation failed[/bold red]")
        sys.exit(1)


@cli.command()
@click.pass_context
def serve(ctx):
    """Prime all feeds, then serve them while polling in the background."""
    settings = _load_settings(ctx)
    console.print(
        f"[bold blue]📡 Starting SaneRSS with {len(settings.feeds)} feeds on "
        f"http://{settings.server.host}:{settings.server.port}/feeds[/bold blue]"
    )

    try:
        asyncio.run(FeedFilterService(settings).run())
    except SaneRSSError as e:
        logger.error(f"Service failed: {e}")
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    console.print("[yellow]👋 SaneRSS stopped[/yellow]")


@cli.command()
@click.pass_context
def poll_once(ctx):
    """Run a single poll cycle and persist the known items."""
    settings = _load_settings(ctx)
    console.print(f"[bold blue]🔄 Polling {len(settings.feeds)} feeds[/bold blue]")

    try:
        result = asyncio.run(FeedFilterService(settings).poll_once())
    except SaneRSSError as e:
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    results_table = Table(title="Poll Results")
    results_table.add_column("Feed", style="cyan")
    results_table.add_column("Status", style="green")
    results_table.add_column("Fetched", style="yellow")
    results_table.add_column("New")
    results_table.add_column("Accepted")
    results_table.add_column("Rejected")

    for feed_result in result.feed_results:
        status = "✅ Success" if feed_result.success else f"❌ {feed_result.error[:50]}"
        results_table.add_row(
            feed_result.feed_name,
            status,
            str(feed_result.items_fetched),
            str(feed_result.new_items),
            str(feed_result.accepted),
            str(feed_result.rejected),
        )

    console.print(results_table)
    console.print(
        f"\n[bold blue]📊 Summary: {result.successful_feeds} successful, "
        f"{result.failed_feeds} failed[/bold blue]"
    )
    console.print(f"⏱️ Processing time: {result.duration_seconds:.2f} seconds")

    if not result.persisted:
        console.print("[yellow]⚠️ Known items were not saved[/yellow]")

    if result.failed_feeds > 0:
        sys.exit(1)


@cli.command()
@click.pass_context
def test_ai(ctx):
    """Check that the configured AI provider accepts the API key."""
    settings = _load_settings(ctx, validate=False)
    provider_name = settings.ai.provider.value

    try:
        provider = create_provider(settings.ai, timeout=settings.limits.ai_timeout)
    except SaneRSSError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)

    if provider is None:
        console.print(f"[bold red]❌ No API key configured for {provider_name}[/bold red]")
        sys.exit(1)

    console.print(f"[bold blue]🤖 Testing {provider}[/bold blue]")
    if asyncio.run(provider.test_connection()):
        console.print(f"[bold green]✅ {provider_name} connection successful[/bold green]")
    else:
        console.print(f"[bold red]❌ {provider_name} connection failed[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--timeout', default=30, help='Request timeout in seconds (default: 30)')
def fetch_feed(url, timeout):
    """Manually fetch and parse a single RSS feed."""
    console.print(f"[bold blue]📡 Fetching RSS Feed: {url}[/bold blue]")

    async def run_fetch():
        async with FeedFetcher(timeout=timeout) as fetcher:
            return await fetcher.fetch("manual", url)

    try:
        parsed = asyncio.run(run_fetch())
    except SaneRSSError as e:
        console.print(f"[bold red]❌ Feed fetch error: {e.user_message}[/bold red]")
        sys.exit(1)

    console.print("[bold green]✅ Feed fetched successfully![/bold green]")

    info_table = Table(title="Feed Information")
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")

    info_table.add_row("Title", parsed.title or "Unknown")
    description = parsed.description or "None"
    if len(description) > 100:
        description = description[:97] + "..."
    info_table.add_row("Description", description)
    info_table.add_row("Items Found", str(parsed.item_count))
    info_table.add_row("Feed URL", url)

    console.print(info_table)

    if parsed.items:
        console.print("\n[bold blue]📰 Sample Items (showing first 3):[/bold blue]")
        for i, item in enumerate(parsed.items[:3], 1):
            console.print(f"\n{i}. [bold]{item.title or 'Untitled'}[/bold]")
            console.print(f"   📅 Published: {item.published or 'No date'}")
            console.print(f"   🔗 Link: {item.link or 'No link'}")


@cli.command()
@click.pass_context
def known_items(ctx):
    """Show how many item identities are remembered per feed."""
    settings = _load_settings(ctx, validate=False)
    cache = KnownItemCache(
        capacity=settings.polling.known_items_capacity,
        path=settings.known_items_file,
    )

    async def run_load():
        await cache.load()
        return [(name, await cache.count(name)) for name in await cache.feed_names()]

    try:
        counts = asyncio.run(run_load())
    except SaneRSSError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)

    if not counts:
        console.print(f"[yellow]No known items in {settings.known_items_file}[/yellow]")
        return

    table = Table(title=f"Known Items ({settings.known_items_file})")
    table.add_column("Feed", style="cyan")
    table.add_column("Identities", style="green")
    table.add_column("Configured", style="yellow")

    for name, count in sorted(counts):
        table.add_row(name, str(count), "yes" if name in settings.feeds else "no")

    console.print(table)


# Helper functions for configuration checks
def _check_feeds_config(settings) -> tuple[bool, str]:
    """Check feed definitions."""
    if not settings.feeds:
        return False, "No feeds configured"
    filtered = sum(1 for feed in settings.feeds.values() if not feed.filters.is_empty())
    return True, f"{len(settings.feeds)} feeds, {filtered} with own filters"


def _check_polling_config(settings) -> tuple[bool, str]:
    """Check polling configuration."""
    polling = settings.polling
    return True, (
        f"Interval: {polling.interval_seconds}s, Max items: {polling.max_items_per_feed}, "
        f"Known items: {polling.known_items_capacity}, Parallel: {polling.parallel_feeds}"
    )


def _check_ai_config(settings) -> tuple[bool, str]:
    """Check AI provider configuration."""
    provider = settings.ai.provider.value
    if settings.ai.get_api_key():
        return True, f"Provider: {provider}, Model: {settings.ai.model or 'default'}"

    has_filters = not settings.global_filters.is_empty() or any(
        not feed.filters.is_empty() for feed in settings.feeds.values()
    )
    if has_filters:
        return False, f"No API key for {provider}"
    return True, "No filters configured, AI not needed"


def _check_server_config(settings) -> tuple[bool, str]:
    """Check server configuration."""
    return True, f"http://{settings.server.host}:{settings.server.port}"


def _check_known_items_config(settings) -> tuple[bool, str]:
    """Check the known items file location."""
    try:
        path = Path(settings.known_items_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        state = "exists" if path.exists() else "will be created"
        return True, f"{path} ({state})"
    except OSError as e:
        return False, str(e)


def _check_logging_config(settings) -> tuple[bool, str]:
    """Check logging configuration."""
    try:
        if settings.logging.file_path:
            log_path = Path(settings.logging.file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, Console: {settings.logging.console_logging}"
    except OSError as e:
        return False, str(e)


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 SaneRSS interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Unexpected error: {e}[/bold red]")
        sys.exit(1)
