"""
CloudKeeper CLI - AWS lifecycle automation

Main entry point for the command-line interface.
"""

import sys
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .cleaners.ami_cleaner import AmiCleaner
from .cleaners.instance_backup import InstanceBackup
from .cleaners.instance_stopper import InstanceStopper
from .cleaners.results import MutationSummary
from .core.aws_client import AWSClient
from .core.config import (
    AUTOSTOP_TAG,
    BACKUP_TAG,
    DEFAULT_GRACE_PERIOD,
    DEFAULT_MAX_WORKERS,
    DEFAULT_RATE_LIMIT,
    DEFAULT_SETTLE_PERIOD,
    LEGACY_DAY_SECONDS,
    RunConfig,
)
from .core.exceptions import (
    AWSClientError,
    CleanerError,
    CloudKeeperError,
    ScannerError,
    ValidationError,
)
from .core.logging import level_for, setup_logging
from .reporters.cli_reporter import CLIReporter
from .reporters.csv_reporter import CSVReporter
from .scanners.image_scanner import ImageScanner
from .scanners.instance_scanner import InstanceScanner


console = Console()


def _fail(ctx: click.Context, error: Exception) -> None:
    """Print an error the way its category calls for and exit."""
    if isinstance(error, ValidationError):
        console.print(f"\n[red bold]Error:[/red bold] {error.message}")
        console.print(ctx.get_usage(), markup=False, highlight=False)
    elif isinstance(error, AWSClientError):
        console.print(f"\n[red bold]AWS Error:[/red bold] {error}")
    elif isinstance(error, ScannerError):
        console.print(f"\n[red bold]Fetch Error:[/red bold] {error}")
    elif isinstance(error, CleanerError):
        console.print(f"\n[red bold]Mutation Error:[/red bold] {error}")
    else:
        console.print(f"\n[red bold]Error:[/red bold] {error}")
    sys.exit(1)


def _connect(config: RunConfig) -> AWSClient:
    client = AWSClient.from_config(config)
    client.validate_credentials()
    return client


def _finish(
    summary: MutationSummary,
    reporter: CLIReporter,
    title: str,
    command: str,
    region: str,
    output: Optional[str],
) -> None:
    """Print the summary and write the optional CSV export."""
    reporter.report(summary, title=title)
    output_file = None
    if output:
        try:
            output_file = CSVReporter(output_path=output).report(
                summary, command=command, region=region
            )
        except OSError as e:
            raise CloudKeeperError(
                f"Could not write results to {output}: {e}",
                details={"path": output},
            ) from e
    reporter.print_completion_message(output_file)


@click.group(context_settings={"auto_envvar_prefix": "CLOUDKEEPER"})
@click.version_option(version=__version__, prog_name="cloudkeeper")
@click.option(
    "--region",
    "-r",
    envvar=["CLOUDKEEPER_REGION", "AWS_REGION", "AWS_DEFAULT_REGION"],
    default="us-east-1",
    show_default=True,
    help="AWS region to operate in",
)
@click.option(
    "--profile",
    "-p",
    envvar=["CLOUDKEEPER_PROFILE", "AWS_PROFILE"],
    default=None,
    help="AWS profile name from ~/.aws/credentials",
)
@click.option("--verbose", "-v", is_flag=True, help="Show per-resource progress logs")
@click.option("--log-file", default=None, help="Also write logs to this file")
@click.pass_context
def cli(ctx: click.Context, region: str, profile: Optional[str], verbose: bool, log_file: Optional[str]):
    """
    CloudKeeper: tag-driven AWS lifecycle automation

    Expires tagged AMIs, backs up tagged instances, and stops tagged
    instances. Every command supports --dry-run.
    """
    setup_logging(level=level_for(verbose=verbose), log_file=log_file)
    ctx.obj = RunConfig(region=region, profile=profile)


@cli.command("ami-cleanup")
@click.option("--image-id", "-i", default=None, help="Deregister only this AMI (it must still carry the autocleanup tag)")
@click.option("--age", "-a", "age_days", type=click.IntRange(min=0), default=None, help="Deregister tagged AMIs older than this many days")
@click.option("--dry-run", is_flag=True, default=False, help="Log what would be done without changing anything")
@click.option("--workers", default=DEFAULT_MAX_WORKERS, type=click.IntRange(min=1), show_default=True, help="Parallel API calls")
@click.option("--rate-limit", default=DEFAULT_RATE_LIMIT, type=click.FloatRange(min=0, min_open=True), show_default=True, help="Mutating calls per second")
@click.option("--day-seconds", default=LEGACY_DAY_SECONDS, type=click.IntRange(min=1), show_default=True, help="Seconds counted as one day in the age check")
@click.option("--grace-period", default=DEFAULT_GRACE_PERIOD, type=click.FloatRange(min=0), show_default=True, help="Seconds to wait before deleting snapshots")
@click.option("--output", "-o", default=None, help="Write results to this CSV file")
@click.pass_obj
def ami_cleanup(
    config: RunConfig,
    image_id: Optional[str],
    age_days: Optional[int],
    dry_run: bool,
    workers: int,
    rate_limit: float,
    day_seconds: int,
    grace_period: float,
    output: Optional[str],
):
    """
    Deregister expired AMIs and delete their snapshots.

    An AMI is expired when its autocleanup tag, a Unix timestamp, is older
    than the given number of days.

    Examples:

        # Preview what would be removed
        cloudkeeper ami-cleanup -a 30 --dry-run

        # Remove AMIs older than 30 days
        cloudkeeper ami-cleanup -a 30

        # Remove one tagged AMI regardless of age
        cloudkeeper ami-cleanup -i ami-0123456789abcdef0
    """
    ctx = click.get_current_context()
    reporter = CLIReporter(console)

    try:
        # -a 0 means no threshold was given
        if bool(image_id) == bool(age_days):
            raise ValidationError("Specify exactly one of --image-id/-i or --age/-a (days, at least 1)")

        config = config.with_options(
            dry_run=dry_run,
            max_workers=workers,
            rate_limit=rate_limit,
            day_seconds=day_seconds,
            grace_period=grace_period,
        )
        reporter.print_mode_banner(dry_run, "AMI Cleanup")

        client = _connect(config)
        images = ImageScanner(client, image_id=image_id).scan()
        if not images:
            console.print("\n[green]No tagged AMIs found. Nothing to do.[/green]")
            return

        cleaner = AmiCleaner(
            client,
            config,
            threshold_days=0 if image_id else age_days,
            progress_callback=reporter.print_progress,
        )
        summary = cleaner.run(images)
        _finish(summary, reporter, "AMI Cleanup", "ami-cleanup", config.region, output)

    except CloudKeeperError as e:
        _fail(ctx, e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user.[/yellow]")
        sys.exit(130)


@cli.command("snapshot")
@click.option("--instance-id", "-i", default=None, help="Back up only this instance")
@click.option("--all", "-a", "all_tagged", is_flag=True, default=False, help="Back up every instance tagged autobkup")
@click.option("--force-reboot", is_flag=True, default=False, help="Allow EC2 to reboot instances for a consistent image")
@click.option("--dry-run", is_flag=True, default=False, help="Log what would be done without changing anything")
@click.option("--workers", default=DEFAULT_MAX_WORKERS, type=click.IntRange(min=1), show_default=True, help="Parallel API calls")
@click.option("--rate-limit", default=DEFAULT_RATE_LIMIT, type=click.FloatRange(min=0, min_open=True), show_default=True, help="Mutating calls per second")
@click.option("--settle-period", default=DEFAULT_SETTLE_PERIOD, type=click.FloatRange(min=0), show_default=True, help="Seconds to wait before tagging new AMIs")
@click.option("--output", "-o", default=None, help="Write results to this CSV file")
@click.pass_obj
def snapshot(
    config: RunConfig,
    instance_id: Optional[str],
    all_tagged: bool,
    force_reboot: bool,
    dry_run: bool,
    workers: int,
    rate_limit: float,
    settle_period: float,
    output: Optional[str],
):
    """
    Create AMI backups of instances.

    New AMIs are tagged autocleanup=<now> so that ami-cleanup can expire
    them later.

    Examples:

        # Back up every instance tagged autobkup
        cloudkeeper snapshot -a

        # Back up one instance, rebooting it first
        cloudkeeper snapshot -i i-0123456789abcdef0 --force-reboot
    """
    ctx = click.get_current_context()
    reporter = CLIReporter(console)

    try:
        if bool(instance_id) == all_tagged:
            raise ValidationError("Specify exactly one of --instance-id/-i or --all/-a")

        config = config.with_options(
            dry_run=dry_run,
            max_workers=workers,
            rate_limit=rate_limit,
            settle_period=settle_period,
        )
        reporter.print_mode_banner(dry_run, "Instance Backup")

        client = _connect(config)
        instances = InstanceScanner(client, instance_id=instance_id, tag_key=BACKUP_TAG).scan()
        if not instances:
            console.print(f"\n[green]No instances tagged {BACKUP_TAG} found. Nothing to do.[/green]")
            return

        backup = InstanceBackup(
            client,
            config,
            instance_id=instance_id,
            force_reboot=force_reboot,
            progress_callback=reporter.print_progress,
        )
        summary = backup.run(instances)
        _finish(summary, reporter, "Instance Backup", "snapshot", config.region, output)

    except CloudKeeperError as e:
        _fail(ctx, e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user.[/yellow]")
        sys.exit(130)


@cli.command("autostop")
@click.option("--quiet", "-q", is_flag=True, default=False, help="Print nothing when no instance qualifies")
@click.option("--dry-run", is_flag=True, default=False, help="Log what would be done without changing anything")
@click.pass_obj
def autostop(config: RunConfig, quiet: bool, dry_run: bool):
    """
    Stop running instances tagged autostop.

    Examples:

        # Suitable for a nightly cron job
        cloudkeeper autostop -q
    """
    ctx = click.get_current_context()
    reporter = CLIReporter(console)

    try:
        config = config.with_options(dry_run=dry_run)
        if not quiet:
            reporter.print_mode_banner(dry_run, "Autostop")

        client = _connect(config)
        instances = InstanceScanner(client, tag_key=AUTOSTOP_TAG, states=["running"]).scan()

        stopper = InstanceStopper(
            client,
            config,
            progress_callback=None if quiet else reporter.print_progress,
        )
        summary = stopper.run(instances)

        if summary.mutation_count == 0:
            if not quiet:
                console.print(f"\n[green]No running instances tagged {AUTOSTOP_TAG}. Nothing to do.[/green]")
            return

        reporter.report(summary, title="Autostop")

    except CloudKeeperError as e:
        _fail(ctx, e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user.[/yellow]")
        sys.exit(130)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
