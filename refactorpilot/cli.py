#!/usr/bin/env python3
"""
Command-line interface for refactorpilot.
"""

import signal
import sys
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from . import __version__
from .analysis import AnalysisCache, AnalysisProgress
from .backlog import CandidatesTracker
from .command import MODES, SCOPES, RefactorCommand
from .config import Config
from .constants import STATE_FILE
from .duplication import DuplicationDetector
from .exceptions import RefactorPilotError
from .execution import GitCheckpointManager, RefactorExecutor, ShellTestRunner, Workspace
from .files import ProjectFiles
from .interaction import (
    SKIP_MODELS,
    AutoApproveDecider,
    PromptDecider,
    PromptModelSelector,
    StaticModelSelector,
)
from .models import Tier
from .state import JsonStateRepository
from .utils import logger

console = Console()


def _resolve(config: Config, path: str) -> Path:
    candidate = Path(path)
    return candidate if candidate.is_absolute() else config.project_root / candidate


def build_detector(config: Config) -> DuplicationDetector:
    detection = config.config.detection
    return DuplicationDetector(
        min_lines=detection.min_lines,
        max_block_lines=detection.max_block_lines,
        min_block_chars=detection.min_block_chars,
        similarity_threshold=detection.similarity_threshold,
        ignore_imports=detection.ignore_imports,
        maximal_blocks_only=detection.maximal_blocks_only,
    )


def build_command(config: Config, mode: str, test_command=None, no_models=False, on_progress=None) -> RefactorCommand:
    """Wire a ``RefactorCommand`` from configuration."""
    settings = config.config
    root = config.project_root
    project_files = ProjectFiles(root, settings.analysis.extensions, settings.analysis.exclude)
    interactive = mode == 'interactive'

    if no_models:
        model_selector = StaticModelSelector([SKIP_MODELS])
    elif interactive:
        model_selector = PromptModelSelector(settings.analysis.models)
    else:
        model_selector = StaticModelSelector(settings.analysis.models)

    decider = PromptDecider() if interactive else AutoApproveDecider()

    def make_executor():
        return RefactorExecutor(
            checkpoint_manager=GitCheckpointManager(root),
            test_runner=ShellTestRunner(
                test_command or settings.execution.test_command,
                cwd=root,
                timeout=settings.execution.test_timeout,
            ),
            workspace=Workspace(root),
            decider=decider,
            max_autofix_attempts=settings.execution.max_autofix_attempts,
        )

    return RefactorCommand(
        duplication_detector=build_detector(config),
        executor_factory=make_executor,
        candidates_tracker=CandidatesTracker(_resolve(config, settings.backlog.path)),
        progress=AnalysisProgress(AnalysisCache(_resolve(config, settings.analysis.cache_file))),
        decider=decider,
        model_selector=model_selector,
        state_repository=JsonStateRepository(root / STATE_FILE),
        get_changed_files=project_files.get_changed_files,
        get_all_files=project_files.get_all_files,
        get_files_by_path=project_files.get_files_by_path,
        on_progress=on_progress,
        complexity_threshold=settings.analysis.complexity_threshold,
        length_threshold=settings.analysis.length_threshold,
    )


@contextmanager
def cancel_on_interrupt(command: RefactorCommand):
    """Turn the first Ctrl-C during analysis into a cancel of the run.

    Analysis stops after the current file and the partial result is
    returned. Outside analysis, or on a second Ctrl-C, the interrupt is
    raised as usual.
    """
    def handler(signum, frame):
        if command.get_progress().remaining > 0 and not command.progress.is_cancelled():
            console.print("[yellow]Stopping after the current file...[/yellow]")
            command.cancel()
        else:
            raise KeyboardInterrupt

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True), help='Config file path')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Quiet output')
@click.version_option(__version__, prog_name='refactorpilot')
@click.pass_context
def cli(ctx, config, verbose, quiet):
    """refactorpilot - find, rank and safely apply refactorings"""
    ctx.ensure_object(dict)
    ctx.obj['config'] = Config(config)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet

    if verbose:
        logger.setLevel('DEBUG')
    elif quiet:
        logger.setLevel('ERROR')
    else:
        logger.setLevel(ctx.obj['config'].config.logging.level.upper())


@cli.command()
@click.option('--mode', '-m', type=click.Choice(MODES), default='interactive', help='How eligible refactorings are applied')
@click.option('--scope', '-s', type=click.Choice(SCOPES), default='changed', help='Which files to analyze')
@click.option('--target', '-t', help='File or directory for the file/directory scopes')
@click.option('--format', '-f', 'output_format', type=click.Choice(['markdown', 'json', 'html']),
              default='markdown', help='Report format')
@click.option('--output', '-o', type=click.Path(), help='Write the report to a file')
@click.option('--dry-run', is_flag=True, help='Show what would be applied without changing files')
@click.option('--test-command', help='Command that gates each refactoring')
@click.option('--no-models', is_flag=True, help='Skip semantic analysis')
@click.pass_context
def run(ctx, mode, scope, target, output_format, output, dry_run, test_command, no_models):
    """Analyze code and apply refactorings."""
    config = ctx.obj['config']

    if scope in ('file', 'directory') and not target:
        raise click.UsageError(f"--target is required for the {scope} scope")

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
        disable=ctx.obj['quiet'] or mode == 'interactive',
    ) as progress:
        task = progress.add_task("Analyzing...", total=None)

        def on_progress(info):
            progress.update(task, total=info['total'], completed=info['completed'])

        command = build_command(config, mode, test_command, no_models, on_progress)
        try:
            with cancel_on_interrupt(command):
                result = command.run(
                    mode=mode,
                    scope=scope,
                    target=target,
                    format=output_format,
                    use_multi_model=not no_models,
                    dry_run=dry_run,
                )
        except KeyboardInterrupt:
            console.print("[yellow]Cancelled[/yellow]")
            sys.exit(130)

    if result.error:
        console.print(f"[red]Error:[/red] {result.error}")
        sys.exit(1)

    table = Table(title="Refactor Run")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Files analyzed", str(result.analyzed))
    table.add_row("Opportunities", str(len(result.opportunities)))
    table.add_row("Would apply" if dry_run else "Applied", str(len(result.applied)))
    table.add_row("Skipped", str(len(result.skipped)))
    table.add_row("Failed", str(len(result.failed)))
    console.print(table)

    if result.cancelled:
        console.print("[yellow]Analysis cancelled; results are partial[/yellow]")
    if result.rolled_back:
        console.print(f"[red]Rolled back {len(result.reverted) + len(result.failed)} refactoring(s)[/red]")
        for failure in result.failed:
            console.print(f"  • {failure.error}")

    if result.report:
        if output:
            Path(output).write_text(result.report, encoding='utf-8')
            console.print(f"[green]Report saved to: {output}[/green]")
        elif output_format == 'markdown':
            console.print(result.report)
        else:
            click.echo(result.report)


@cli.command()
@click.option('--tier', type=click.Choice([t.value for t in Tier]), help='Only show one priority tier')
@click.option('--all', 'show_all', is_flag=True, help='Include completed entries')
@click.pass_context
def candidates(ctx, tier, show_all):
    """Show the refactor backlog."""
    config = ctx.obj['config']
    tracker = CandidatesTracker(_resolve(config, config.config.backlog.path))
    backlog = tracker.load()

    tiers = [Tier(tier)] if tier else [Tier.HIGH, Tier.MEDIUM, Tier.LOW]
    rows = [
        (t, entry) for t in tiers for entry in backlog.tier(t)
        if show_all or not entry.completed
    ]

    if not rows:
        console.print("[yellow]No refactor candidates[/yellow]")
        return

    table = Table(title="Refactor Candidates")
    table.add_column("Tier", style="magenta")
    table.add_column("Location", style="cyan")
    table.add_column("Impact", justify="right")
    table.add_column("Description")
    if show_all:
        table.add_column("Done")

    for t, entry in rows:
        lines = f"{entry.start_line}-{entry.end_line}" if entry.end_line != entry.start_line else str(entry.start_line)
        row = [t.value, f"{entry.file}:{lines}", str(entry.impact), entry.description]
        if show_all:
            row.append("✓" if entry.completed else "")
        table.add_row(*row)

    console.print(table)


@cli.command()
@click.argument('path', type=click.Path(exists=True), default='.')
@click.option('--min-lines', type=int, help='Smallest duplicate block to report')
@click.option('--similar/--no-similar', default=True, help='Also list near-duplicate file pairs')
@click.pass_context
def duplicates(ctx, path, min_lines, similar):
    """Find duplicated code under PATH."""
    config = ctx.obj['config']
    if min_lines is not None:
        config.set('detection.min_lines', min_lines)

    analysis = config.config.analysis
    project_files = ProjectFiles(config.project_root, analysis.extensions, analysis.exclude)
    files = project_files.get_files_by_path(Path(path).resolve())
    report = build_detector(config).detect(files)

    summary = report.summary
    console.print(
        f"[blue]{summary.total_files} files, {summary.total_duplicate_blocks} duplicate blocks, "
        f"{summary.files_with_duplication} files with duplication[/blue]"
    )

    if report.duplicates:
        table = Table(title="Duplicate Blocks")
        table.add_column("Lines", justify="right")
        table.add_column("Locations", style="cyan")
        for block in report.duplicates:
            locations = ", ".join(f"{loc.path}:{loc.start_line}-{loc.end_line}" for loc in block.locations)
            table.add_row(str(block.line_count), locations)
        console.print(table)
    else:
        console.print("[green]✓[/green] No duplicate blocks found")

    if similar and report.similar:
        table = Table(title="Similar Files")
        table.add_column("File 1", style="cyan")
        table.add_column("File 2", style="cyan")
        table.add_column("Similarity", justify="right")
        for pair in report.similar:
            table.add_row(pair.file1, pair.file2, f"{pair.similarity:.0%}")
        console.print(table)


@cli.group()
def cache():
    """Manage the analysis cache."""
    pass


@cache.command('clear')
@click.pass_context
def cache_clear(ctx):
    """Delete cached analysis results."""
    config = ctx.obj['config']
    AnalysisCache(_resolve(config, config.config.analysis.cache_file)).clear()
    console.print("[green]✓[/green] Analysis cache cleared")


def main():
    """Main entry point."""
    try:
        cli(obj={})
    except RefactorPilotError as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
