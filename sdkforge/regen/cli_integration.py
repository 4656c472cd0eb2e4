"""
CLI integration for the regeneration engine.

Provides the ``regen``, ``status``, ``untrack`` and ``families`` subcommands.
"""

import argparse
import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..logging_config import get_logger, setup_logging
from ..utils import ManifestError, load_manifest
from . import (
    ChangeClassifier,
    ContentFamily,
    ContentStore,
    FileOutcome,
    PipelineDriver,
    RegenConfig,
    RunReport,
    load_config,
)
from .core.config import ConfigError, get_config_manager
from .core.errors import UnsafePathError
from .core.hooks import HookError, run_hook
from .core.families import EXTENSION_FAMILIES
from .registry import RegistryError, list_all_parser_info

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFLICTS = 2


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


console = Console()


OUTCOME_STYLES = {
    FileOutcome.WRITTEN_CLEAN: "green",
    FileOutcome.WRITTEN_MERGED: "cyan",
    FileOutcome.WRITTEN_WITH_CONFLICT: "bold yellow",
    FileOutcome.SKIPPED_ERROR: "bold red",
}


def create_regen_subparsers(subparsers) -> None:
    """
    Register the regeneration subcommands.

    Args:
        subparsers: Subparser group from the main parser
    """
    regen = subparsers.add_parser(
        "regen",
        help="Reconcile generated files with manual edits",
        description="Apply a generation manifest to an output directory, "
        "preserving manual edits made since the previous run",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sdkforge regen manifest.json -o sdk
  sdkforge regen --url https://ci.example.com/manifest.json -o sdk --workers 4
  sdkforge regen manifest.json -o sdk --config regen.json --verbose
        """.strip(),
    )

    input_group = regen.add_mutually_exclusive_group(required=True)
    input_group.add_argument(
        "manifest", nargs="?", help="JSON manifest (relative path -> generated text)"
    )
    input_group.add_argument("--url", help="URL to fetch the manifest from")

    _add_output_arg(regen)
    regen.add_argument("--config", help="Configuration file path (JSON)")
    regen.add_argument(
        "--workers", type=int, metavar="N", help="Number of files reconciled in parallel"
    )
    regen.add_argument(
        "--timeout",
        type=int,
        default=30,
        help="Request timeout in seconds for --url (default: 30)",
    )
    regen.add_argument(
        "--verbose", "-v", action="store_true", help="Show every file and debug logs"
    )
    regen.set_defaults(func=_handle_regen)

    status = subparsers.add_parser(
        "status", help="Show tracked files and whether they were edited"
    )
    _add_output_arg(status)
    status.add_argument("--config", help="Configuration file path (JSON)")
    status.set_defaults(func=_handle_status)

    untrack = subparsers.add_parser(
        "untrack", help="Stop managing files (they are left on disk)"
    )
    untrack.add_argument("paths", nargs="+", metavar="PATH", help="Relative paths")
    _add_output_arg(untrack)
    untrack.add_argument("--config", help="Configuration file path (JSON)")
    untrack.set_defaults(func=_handle_untrack)

    families = subparsers.add_parser(
        "families", help="List content families and source parsers"
    )
    families.set_defaults(func=_handle_families)


def _add_output_arg(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--output",
        "-o",
        metavar="DIR",
        help="Output directory holding the generated SDK (default: config or .)",
    )


def _build_config(args: argparse.Namespace) -> RegenConfig:
    """Build configuration from the config file and CLI overrides."""
    overrides = {}

    if getattr(args, "output", None):
        overrides["output_dir"] = args.output

    if getattr(args, "workers", None) is not None:
        overrides["max_workers"] = args.workers

    try:
        config = load_config(
            custom_config=overrides, config_file=getattr(args, "config", None)
        )
    except ConfigError as e:
        raise CLIError(f"Configuration error: {e}")

    for warning in get_config_manager().validate_config(config):
        console.print(f"[yellow]⚠️  {warning}[/yellow]")

    return config


def _handle_regen(args: argparse.Namespace) -> int:
    """Handle the regen subcommand."""
    if args.verbose:
        setup_logging(logging.DEBUG)

    try:
        config = _build_config(args)
        source, files = load_manifest(
            file_path=args.manifest, url=args.url, timeout=args.timeout
        )
    except (CLIError, ManifestError, FileNotFoundError) as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        return EXIT_FAILED

    console.print(f"📄 Loaded: {source} ({len(files)} file(s))")

    try:
        run_hook("pre_generate", config)
    except HookError as e:
        console.print(f"[red]✗ Hook failed:[/red] {e}")
        return EXIT_FAILED

    with cancel_on_interrupt() as cancel, Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"[cyan]Reconciling into {config.output_path}...", total=None)
        report = PipelineDriver(config).run(files, cancel)

    if not report.cancelled:
        try:
            run_hook("post_generate", config)
        except HookError as e:
            report.warnings.append(str(e))
            logger.error("%s", e)
            _print_report(report, verbose=args.verbose)
            return EXIT_FAILED

    logger.info("Run finished: %s", report.counts)
    _print_report(report, verbose=args.verbose)
    return exit_code_for(report)


@contextmanager
def cancel_on_interrupt() -> Iterator[threading.Event]:
    """
    Turn Ctrl-C into a cancel request for the duration of a run.

    Files already being reconciled finish; the rest are left untouched and
    reported as pending. Outside the main thread no handler is installed.
    """
    cancel = threading.Event()

    def _interrupt(signum, frame):
        if not cancel.is_set():
            logger.warning("Interrupted; finishing files in progress")
        cancel.set()

    try:
        previous = signal.signal(signal.SIGINT, _interrupt)
    except ValueError:
        # Not the main thread
        installed = False
    else:
        installed = True

    try:
        yield cancel
    finally:
        if installed:
            signal.signal(signal.SIGINT, previous or signal.default_int_handler)


def exit_code_for(report: RunReport) -> int:
    """Map a run report to a process exit code."""
    if not report.success:
        return EXIT_FAILED
    if report.conflicted_paths:
        return EXIT_CONFLICTS
    return EXIT_OK


def _print_report(report: RunReport, verbose: bool = False):
    """Print run summary, per-file details and warnings."""
    if verbose:
        files_table = Table(
            title="📁 Files", box=box.SIMPLE, show_header=True, header_style="bold cyan"
        )
        files_table.add_column("Path", style="bold")
        files_table.add_column("Outcome")

        for path, outcome in sorted(report.outcomes.items()):
            style = OUTCOME_STYLES[outcome]
            files_table.add_row(path, f"[{style}]{outcome.value}[/{style}]")

        console.print()
        console.print(files_table)

    summary = Table(
        title="📊 Regeneration Summary", box=box.ROUNDED, title_style="bold cyan"
    )
    summary.add_column("Outcome", style="bold")
    summary.add_column("Files", justify="right")

    for outcome in FileOutcome:
        style = OUTCOME_STYLES[outcome]
        summary.add_row(
            f"[{style}]{outcome.value}[/{style}]", str(report.counts[outcome.value])
        )

    console.print()
    console.print(summary)

    if report.conflicted_paths:
        console.print(
            Panel(
                "\n".join(report.conflicted_paths),
                title="⚠️  Resolve conflict markers in",
                border_style="yellow",
            )
        )

    if report.errors:
        console.print(
            Panel(
                "\n".join(f"{path}: {error}" for path, error in sorted(report.errors.items())),
                title="✗ Failed",
                border_style="red",
            )
        )

    if report.stale_paths:
        console.print("\n[dim]Tracked but no longer generated:[/dim]")
        for path in report.stale_paths:
            console.print(f"  [dim]•[/dim] {path}")

    if report.pending_paths:
        console.print(
            f"\n[yellow]⚠️  Cancelled; {len(report.pending_paths)} file(s) not processed[/yellow]"
        )

    if report.warnings:
        console.print("\n[yellow]⚠️  Warnings:[/yellow]")
        for warning in report.warnings:
            console.print(f"  [yellow]•[/yellow] {warning}")
        console.print()


def _handle_status(args: argparse.Namespace) -> int:
    """Handle the status subcommand."""
    try:
        config = _build_config(args)
    except CLIError as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        return EXIT_FAILED

    store = ContentStore(config.state_path, config.encoding)
    classifier = ChangeClassifier(store, config.output_path)
    tracked = store.tracked_paths()

    if not tracked:
        console.print(f"[yellow]No tracked files in {config.output_path}[/yellow]")
        return EXIT_OK

    table = Table(
        title=f"📋 Tracked files in {config.output_path}",
        box=box.ROUNDED,
        title_style="bold cyan",
    )
    table.add_column("Path", style="bold")
    table.add_column("State")

    for path in tracked:
        table.add_row(path, describe_state(store, classifier, path))

    console.print()
    console.print(table)

    orphans = [path for path in store.cached_paths() if path not in tracked]
    if orphans:
        console.print("\n[dim]Snapshots without a tracked file:[/dim]")
        for path in orphans:
            console.print(f"  [dim]•[/dim] {path}")

    return EXIT_OK


def describe_state(
    store: ContentStore, classifier: ChangeClassifier, path: str
) -> str:
    """Human-readable state of a tracked path."""
    if not classifier.working_path(path).is_file():
        return "[red]missing file[/red]"
    if store.get_snapshot(path) is None:
        return "[yellow]missing snapshot[/yellow]"
    if classifier.has_manual_edit(path):
        return "[cyan]edited[/cyan]"
    return "[green]clean[/green]"


def _handle_untrack(args: argparse.Namespace) -> int:
    """Handle the untrack subcommand."""
    try:
        config = _build_config(args)
    except CLIError as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        return EXIT_FAILED

    store = ContentStore(config.state_path, config.encoding)
    exit_code = EXIT_OK

    for path in args.paths:
        try:
            if not store.is_tracked(path):
                console.print(f"[yellow]⚠️  Not tracked:[/yellow] {path}")
                continue
            store.untrack(path)
            console.print(f"[green]✓[/green] Untracked [cyan]{path}[/cyan]")
        except UnsafePathError as e:
            console.print(f"[red]✗ {path}:[/red] {e}")
            exit_code = EXIT_FAILED

    return exit_code


def _handle_families(args: argparse.Namespace) -> int:
    """List extension -> family mapping and the registered parsers."""
    table = Table(title="📋 Content Families", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Family", style="bold green", no_wrap=True)
    table.add_column("Extensions", style="cyan")

    for family in ContentFamily:
        extensions = sorted(e for e, f in EXTENSION_FAMILIES.items() if f == family)
        if family == ContentFamily.FREE_TEXT:
            extensions.append("[dim](anything else)[/dim]")
        table.add_row(family.value, ", ".join(extensions))

    console.print()
    console.print(table)

    try:
        parser_info = list_all_parser_info()
    except RegistryError as e:
        console.print(f"[red]✗ Error listing parsers:[/red] {e}")
        return EXIT_FAILED

    parsers = Table(title="🔧 Source Parsers", box=box.SIMPLE, header_style="bold cyan")
    parsers.add_column("Language", style="bold")
    parsers.add_column("Extensions", style="cyan")
    parsers.add_column("Parser Class", style="dim")

    for language, info in sorted(parser_info.items()):
        parsers.add_row(language, ", ".join(info["extensions"]), info["class"])

    console.print()
    console.print(parsers)
    console.print(
        Panel(
            "[bold]Override:[/bold] add [cyan]\"family_overrides\": "
            "{\".lock\": \"structured-data\"}[/cyan] to the config file",
            title="💡 Tip",
            border_style="blue",
        )
    )
    return EXIT_OK
