import asyncio
import sys
from datetime import date
import click
from loguru import logger
from pydantic import ValidationError
from .config import Config, ConfigManager
from .models import SearchCriteria
from .monitor import AvailabilityMonitor
from .notifier import Notifier
from .prober import AvailabilityProber

DEFAULT_CHECK_IN = "2026-03-13"
DEFAULT_CHECK_OUT = "2026-03-14"

BANNER = """
╔══════════════════════════════════════════════════╗
║    Barrett Cove Campground Availability Bot      ║
║       Lake McClure - Campspot Powered            ║
╚══════════════════════════════════════════════════╝
"""

def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    logger.remove()

    level = "DEBUG" if verbose else "INFO"

    # Console logging
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        colorize=True
    )

    # File logging
    logger.add(
        "campsite_checker.log",
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
        rotation="10 MB",
        retention="7 days"
    )

def build_criteria(check_in: date, check_out: date, rv_type: str, rv_length: int,
                   guests: int) -> SearchCriteria:
    """Validate CLI input into search criteria. Empty type / zero length skip that filter."""
    try:
        return SearchCriteria(
            check_in=check_in,
            check_out=check_out,
            rv_type=rv_type.strip() or None,
            rv_length=rv_length or None,
            guests=guests,
        )
    except ValidationError as e:
        messages = "; ".join(err['msg'] for err in e.errors())
        raise click.ClickException(f"Invalid search: {messages}")

async def run_checker(config: Config, criteria: SearchCriteria, loop: bool, interval: int,
                      notify: bool):
    """Run one check, or keep checking until the process is stopped."""
    prober = AvailabilityProber(config)
    notifier = Notifier(enable_desktop=notify, webhook_url=config.webhook_url)
    monitor = AvailabilityMonitor(
        prober,
        notifier,
        notify=notify,
        screenshot_path=config.screenshot_path,
    )

    if loop:
        await monitor.run_forever(criteria, interval)
    else:
        await monitor.check_once(criteria)

@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """Campsite Checker - Watch Barrett Cove (Lake McClure) for open campsites."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    setup_logging(verbose)

@cli.command()
@click.option('--check-in', type=click.DateTime(formats=['%Y-%m-%d']), default=DEFAULT_CHECK_IN,
              show_default=True, help='Check-in date (YYYY-MM-DD)')
@click.option('--check-out', type=click.DateTime(formats=['%Y-%m-%d']), default=DEFAULT_CHECK_OUT,
              show_default=True, help='Check-out date (YYYY-MM-DD)')
@click.option('--rv-type', default='travel trailer', show_default=True,
              help='Way to stay / RV type to select ("" to skip)')
@click.option('--rv-length', type=click.IntRange(min=0), default=30, show_default=True,
              help='RV length in feet (0 to skip)')
@click.option('--guests', type=click.IntRange(min=1), default=1, show_default=True,
              help='Number of adults')
@click.option('--loop', is_flag=True, help='Keep checking periodically')
@click.option('--interval', type=click.IntRange(min=1), default=15, show_default=True,
              help='Minutes between checks')
@click.option('--notify', is_flag=True, help='Desktop notification when sites are found')
@click.option('--headless/--no-headless', default=None,
              help='Hide or show the browser window (default from config)')
@click.option('--deep', is_flag=True, help='Also scrape site cards and API responses')
@click.pass_context
def check(ctx, check_in, check_out, rv_type, rv_length, guests, loop, interval, notify,
          headless, deep):
    """Check campsite availability for the given dates."""

    criteria = build_criteria(check_in.date(), check_out.date(), rv_type, rv_length, guests)

    config = ConfigManager().get_config()
    overrides = {}
    if headless is not None:
        overrides['headless'] = headless
    if deep:
        overrides['deep_inspection'] = True
    config = config.model_copy(update=overrides)

    click.echo(BANNER)
    logger.debug(f"Booking page: {config.base_url}")

    try:
        asyncio.run(run_checker(config, criteria, loop, interval, notify))
    except KeyboardInterrupt:
        logger.warning("Stopped by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Checker failed: {e}")
        sys.exit(1)

@cli.command()
@click.option('--base-url', help='Set booking page URL')
@click.option('--results-wait', type=click.IntRange(min=0), help='Set results wait in milliseconds')
@click.option('--settle-delay', type=click.IntRange(min=0), help='Set post-load settle delay in milliseconds')
@click.option('--page-timeout', type=click.IntRange(min=1), help='Set page load timeout in milliseconds')
@click.option('--screenshot-path', help='Set screenshot file path')
@click.option('--webhook-url', help='Set webhook URL for alerts')
@click.option('--show', is_flag=True, help='Show current configuration')
def config(base_url, results_wait, settle_delay, page_timeout, screenshot_path, webhook_url, show):
    """Manage configuration settings."""

    config_manager = ConfigManager()

    if show:
        current_config = config_manager.get_config()
        click.echo("Current configuration:")
        click.echo(f"  Booking page: {current_config.base_url}")
        click.echo(f"  Headless: {current_config.headless}")
        click.echo(f"  Page timeout: {current_config.page_timeout_ms}ms")
        click.echo(f"  Settle delay: {current_config.settle_delay_ms}ms")
        click.echo(f"  Results wait: {current_config.results_wait_ms}ms")
        click.echo(f"  Screenshot: {current_config.screenshot_path}")
        click.echo(f"  Deep inspection: {current_config.deep_inspection}")
        click.echo(f"  Webhook: {current_config.webhook_url or '-'}")
        return

    updates = {}
    if base_url:
        updates['base_url'] = base_url
    if results_wait is not None:
        updates['results_wait_ms'] = results_wait
    if settle_delay is not None:
        updates['settle_delay_ms'] = settle_delay
    if page_timeout:
        updates['page_timeout_ms'] = page_timeout
    if screenshot_path:
        updates['screenshot_path'] = screenshot_path
    if webhook_url:
        updates['webhook_url'] = webhook_url

    if updates:
        config_manager.update_config(**updates)
        click.echo("Configuration updated successfully!")
    else:
        click.echo("No configuration changes specified. Use --show to view current config.")

def main():
    """Main entry point."""
    cli()

if __name__ == '__main__':
    main()
