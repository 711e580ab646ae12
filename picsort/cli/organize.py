"""
CLI command for sorting files into date folders.

Relocates media files under ROOT into ROOT/<output>/<date>/ based on the
capture date in their metadata.
"""

import os
import sys
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..core.config import RunConfig, Settings
from ..core.errors import ConfigurationError, ProvisioningError
from ..core.types import RunSummary, Verbosity
from ..organization.pipeline import PipelineCoordinator
from ..shared.media_utils import format_bytes, format_duration, setup_logging
from ..version import get_version_string

console = Console()


def _print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"picsort version {get_version_string()}")
    ctx.exit()


@click.command()
@click.argument("root", required=False, type=click.Path(file_okay=False))
@click.option(
    "-d",
    "--directory",
    type=click.Path(file_okay=False),
    help="Directory to organize (alternative to ROOT)",
)
@click.option(
    "-t",
    "--output-folder",
    help="Name of the folder created under ROOT [default: generated]",
)
@click.option(
    "-f",
    "--granularity",
    type=click.Choice(["day", "month", "ymd", "ym"], case_sensitive=False),
    help="Date folder granularity: day (YYYYMMDD) or month (YYYYMM)",
)
@click.option(
    "-g",
    "--transfer",
    type=click.Choice(["copy", "move"], case_sensitive=False),
    help="copy (keeps originals) or move [default: move]",
)
@click.option(
    "-m",
    "--concurrency",
    type=click.Choice(["sequential", "parallel", "seq", "con"], case_sensitive=False),
    help="Relocate files one at a time or with a worker pool",
)
@click.option(
    "-w",
    "--workers",
    type=click.IntRange(min=1),
    help="Worker threads in parallel mode [default: CPU count]",
)
@click.option(
    "--strategy",
    type=click.Choice(["eager", "streaming"], case_sensitive=False),
    help="eager (scan everything first) or streaming (bounded batches)",
)
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    help="Records per batch in streaming mode [default: 100]",
)
@click.option(
    "--max-inflight",
    type=click.IntRange(min=1),
    help="Cap on concurrently open transfers [default: 2 x workers]",
)
@click.option(
    "--on-conflict",
    type=click.Choice(["error", "skip", "overwrite"], case_sensitive=False),
    help="What to do when the destination file exists [default: error]",
)
@click.option(
    "--backend",
    type=click.Choice(["pillow", "exiftool"], case_sensitive=False),
    help="Metadata library [default: pillow]",
)
@click.option(
    "-v",
    "--verbosity",
    type=click.IntRange(0, 2),
    default=0,
    show_default=True,
    help="0 = errors only, 1 = per-file progress, 2 = summary",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Preview changes without executing",
)
@click.option(
    "--version",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_print_version,
    help="Print version information and exit",
)
def organize(
    root: Optional[str],
    directory: Optional[str],
    output_folder: Optional[str],
    granularity: Optional[str],
    transfer: Optional[str],
    concurrency: Optional[str],
    workers: Optional[int],
    strategy: Optional[str],
    batch_size: Optional[int],
    max_inflight: Optional[int],
    on_conflict: Optional[str],
    backend: Optional[str],
    verbosity: int,
    dry_run: bool,
) -> None:
    """
    Sort media files under ROOT into date folders.

    Every file with a readable capture date is copied or moved to
    ROOT/<output>/<YYYYMMDD>/<name> (or <YYYYMM> with --granularity month).
    Files without a date stay where they are.

    \b
    Examples:
        # Preview first
        picsort ~/Pictures --dry-run -v 2

        # Copy into monthly folders with 8 workers
        picsort ~/Pictures -g copy -f month -m parallel -w 8

        # Huge trees: bounded memory
        picsort /mnt/photos --strategy streaming --batch-size 100

    \b
    Defaults can be set with PICSORT_* environment variables, e.g.
    PICSORT_OUTPUT_FOLDER_NAME=sorted or PICSORT_TRANSFER_MODE=copy.
    """
    level = Verbosity(verbosity)
    setup_logging(verbose=level == Verbosity.PROGRESS, quiet=level == Verbosity.OFF)

    if root and directory and os.path.abspath(root) != os.path.abspath(directory):
        raise click.UsageError("ROOT and --directory name different folders; give one")

    try:
        settings = Settings.load()
        config = RunConfig.validated(
            root_path=root or directory,
            output_folder_name=output_folder or settings.output_folder_name,
            granularity=granularity or settings.granularity,
            transfer_mode=transfer or settings.transfer_mode,
            concurrency_mode=concurrency or settings.concurrency_mode,
            worker_count=workers or settings.worker_count,
            scan_strategy=strategy or settings.scan_strategy,
            batch_size=batch_size or settings.batch_size,
            max_inflight=max_inflight or settings.max_inflight,
            conflict_policy=on_conflict or settings.conflict_policy,
            metadata_backend=backend or settings.metadata_backend,
            hidden_prefix=settings.hidden_prefix,
            reserved_prefix=settings.reserved_prefix,
            verbosity=level,
            dry_run=dry_run,
        )
    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration error: {e}[/red]")
        if not (root or directory):
            console.print("Please define a path with ROOT or -d, and --help for help")
        sys.exit(1)

    if level == Verbosity.SUMMARY:
        _display_config(config)

    try:
        if level == Verbosity.SUMMARY:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TextColumn("{task.completed} files"),
                TimeElapsedColumn(),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task("Organizing files...", total=None)
                coordinator = PipelineCoordinator(
                    config, on_outcome=lambda _: progress.advance(task)
                )
                summary = coordinator.run()
        else:
            summary = PipelineCoordinator(config).run()
    except (ConfigurationError, ProvisioningError) as e:
        console.print(f"\n[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if level == Verbosity.SUMMARY:
        _display_result(summary)
    elif summary.files_failed:
        console.print(
            f"[yellow]{summary.files_failed} file(s) could not be relocated[/yellow]"
        )


def _display_config(config: RunConfig) -> None:
    """Display run configuration."""
    console.print("\n[cyan]Organization Configuration:[/cyan]")
    console.print(f"  Root: {config.root_path}")
    console.print(f"  Output: {config.output_root}")
    console.print(f"  Granularity: {config.granularity.value}")
    console.print(f"  Transfer: {config.transfer_mode.value}")
    console.print(f"  Concurrency: {config.concurrency_mode.value}")
    console.print(f"  Strategy: {config.scan_strategy.value}")
    console.print(f"  On conflict: {config.conflict_policy.value}")
    console.print(f"  Dry run: {'YES' if config.dry_run else 'NO'}")

    if config.dry_run:
        console.print("\n[yellow]⚠ DRY RUN MODE - No files will be modified[/yellow]")
    console.print()


def _display_result(summary: RunSummary) -> None:
    """Display run summary."""
    console.print("\n[green]✓ Organization complete![/green]\n")

    table = Table(title="Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")

    table.add_row("Files scanned", str(summary.files_scanned))
    table.add_row("Files with date", str(summary.files_classified))
    if summary.dry_run:
        table.add_row("Planned", str(summary.files_planned))
    else:
        table.add_row("Relocated", str(summary.files_relocated))
    table.add_row("Skipped", str(summary.files_skipped))
    table.add_row("Failed", str(summary.files_failed))
    table.add_row("Folders created", str(summary.folders_created))
    table.add_row("Data transferred", format_bytes(summary.bytes_transferred))
    table.add_row("Elapsed", format_duration(summary.elapsed_seconds))

    console.print(table)

    if summary.dry_run:
        console.print("\n[yellow]This was a DRY RUN - no files were modified[/yellow]")
        console.print("Run without --dry-run to execute the organization.")

    if summary.errors:
        console.print("\n[red]Errors:[/red]")
        for error in summary.errors[:10]:
            console.print(f"  [red]• {error}[/red]")
        if summary.files_failed > 10:
            console.print(f"  [dim]... and {summary.files_failed - 10} more[/dim]")


if __name__ == "__main__":
    organize()
