"""CLI interface for Recurra"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click

from recurra.application.registry import RecurringPullRegistry
from recurra.domain.config import RecurringPullEntry
from recurra.domain.duration import resolve_duration
from recurra.domain.models.events import END, FAILED, PAID
from recurra.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from recurra.infrastructure.executor.base import PullExecutor
from recurra.infrastructure.executor.factory import PullExecutorFactory
from recurra.infrastructure.notifications import NotificationChannel

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _select_pulls(config_manager: ConfigManager, only: Sequence[str]) -> List[RecurringPullEntry]:
    """Pick the configured pulls to run

    Args:
        config_manager: Configuration manager
        only: Ids to keep (all pulls if empty)

    Returns:
        Selected pulls in file order

    Raises:
        click.ClickException: If an id in ``only`` is not configured
    """
    pulls = config_manager.get_pulls()
    if not only:
        return pulls
    known = {pull.id for pull in pulls}
    unknown = [pull_id for pull_id in only if pull_id not in known]
    if unknown:
        _die(f"Unknown pull id(s): {', '.join(unknown)}")
    return [pull for pull in pulls if pull.id in only]


def _create_executor(
    config_manager: ConfigManager,
    executor_override: Optional[str],
    verbose: bool,
) -> PullExecutor:
    """Create pull executor from config

    Args:
        config_manager: Configuration manager
        executor_override: Optional executor type from CLI
        verbose: Verbose mode for error reporting

    Returns:
        PullExecutor instance
    """
    executor_config = config_manager.get_executor_config()
    executor_type = executor_override or executor_config.type
    logger.info(f"Using pull executor: {executor_type}")

    config = executor_config.model_dump(exclude={"type"})
    config["retry"] = config_manager.get_retry_config().model_dump()

    try:
        return PullExecutorFactory.create(executor_type, config)
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)


def _echo_events(notifications: NotificationChannel) -> None:
    """Print lifecycle events as they arrive"""
    notifications.subscribe(PAID, lambda e: click.echo(f"[paid] {e.id}: received {e.total_received}"))
    notifications.subscribe(FAILED, lambda e: click.echo(f"[failed] {e.id}: received {e.partial_amount}"))
    notifications.subscribe(END, lambda e: click.echo(f"[end] {e.id}"))


async def run_schedule(executor: PullExecutor, pulls: Sequence[RecurringPullEntry]) -> int:
    """Start the given pulls and wait until all of them have ended

    Args:
        executor: Pull executor
        pulls: Recurring pulls to start

    Returns:
        Number of pulls whose first payment succeeded
    """
    registry = RecurringPullRegistry(executor)
    _echo_events(registry.notifications)

    results = await asyncio.gather(*(registry.start(pull.id, pull.to_spec()) for pull in pulls))
    started = [pull.id for pull, ok in zip(pulls, results) if ok]
    for pull, ok in zip(pulls, results):
        if not ok:
            click.echo(f"{pull.id}: first payment failed, not scheduled", err=True)

    try:
        await asyncio.gather(*(registry.wait(pull_id) for pull_id in started))
    finally:
        registry.stop_all()
    return len(started)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .recurra.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """Recurra - recurring pull payment scheduler"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.pass_context
def check(ctx):
    """Validate the configuration and list the scheduled pulls."""
    config_manager = _load_config(ctx)
    pulls = config_manager.get_pulls()
    if not pulls:
        click.echo("No recurring pulls configured.")
        return

    for pull in pulls:
        cycles = pull.cycles if pull.cycles is not None else "unbounded"
        click.echo(f"{pull.id}: pull {pull.amount} from {pull.pointer}")
        click.echo(f"  interval: {resolve_duration(pull.interval):g} ms, cycles: {cycles}")
        if pull.timeout is not None:
            click.echo(f"  timeout: {resolve_duration(pull.timeout):g} ms")
        if pull.retry is not None:
            click.echo(
                f"  retry: {pull.retry.attempts} attempts every "
                f"{resolve_duration(pull.retry.interval):g} ms"
            )
        if pull.cycles is not None and pull.cycles < 2:
            click.echo("  warning: fewer than 2 cycles, this pull will be rejected", err=True)

    click.echo(f"\n{len(pulls)} recurring pull(s) configured")


@cli.command()
@click.option(
    "--executor",
    type=click.Choice(["mock", "http"], case_sensitive=False),
    help="Pull executor to use. Overrides config.",
)
@click.option("--only", multiple=True, help="Run only this pull id (repeatable)")
@click.pass_context
def run(ctx, executor: Optional[str], only: Sequence[str]):
    """Run the configured recurring pulls until all of them end."""
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    pulls = _select_pulls(config_manager, only)
    if not pulls:
        _die("No recurring pulls configured")
    invalid = [pull.id for pull in pulls if pull.cycles is not None and pull.cycles < 2]
    if invalid:
        _die(f"Recurring pulls need at least 2 cycles: {', '.join(invalid)}")

    pull_executor = _create_executor(config_manager, executor, verbose)

    try:
        started = asyncio.run(run_schedule(pull_executor, pulls))
    except KeyboardInterrupt:
        click.echo("\nInterrupted, all recurring pulls stopped.", err=True)
        return
    except click.ClickException:
        raise
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)

    if started == 0:
        click.echo("No recurring pull could be started.", err=True)
        sys.exit(1)
    click.echo(f"\nAll {started} recurring pull(s) ended.")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
