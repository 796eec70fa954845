"""
gbvm-bench CLI.

Commands:
- profile: Replay an observation log and build the call trace
- regions: Show the address regions built from a .noi file
- report: Per-symbol durations for a window of an exported profile
- demo: Generate a synthetic observation log and symbol file
- config: Configuration management
- version: Show version information
"""

import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..config import BenchConfig, load_config, generate_default_config
from ..core.errors import BenchError, ErrorCode
from ..demo import default_program, frame_end_times, ProgramGenerator
from ..exporters import SpeedscopeExporter, load_speedscope
from ..hosts import ReplayHost, write_observation_log
from ..regions import RegionBuilder
from ..session import BenchmarkSession
from ..symbols import SymbolTable, load_noi
from ..trace import report_window


app = typer.Typer(
    name="gbvm-bench",
    help="Call-stack profiler for banked GBVM runs",
    add_completion=False,
)
console = Console()


class OutputFormat(str, Enum):
    json = "json"
    table = "table"


class CaptureMode(str, Enum):
    all = "all"
    exit = "exit"
    none = "none"


def _configure_logging(verbose: bool) -> None:
    """Route call-trace and frame-report logging to stderr when verbose."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )


def _load_symbols(path: Optional[Path], cfg: BenchConfig, quiet: bool) -> SymbolTable:
    if path is None:
        if not quiet:
            console.print("[yellow]Warning:[/] no symbol file given, trace will be empty")
        return SymbolTable()
    try:
        return load_noi(path, fixed_end=cfg.memory.switchable_start)
    except FileNotFoundError:
        console.print(f"[yellow]Warning:[/] {BenchError(ErrorCode.E1001_MISSING_SYMBOL_DATA, {'path': str(path)}).message}")
        return SymbolTable()


def _report_invalid(errors) -> None:
    error = BenchError(ErrorCode.E3001_INVALID_CONFIG)
    console.print(f"[red]{error.code.value} {error.message}:[/]")
    for e in errors:
        console.print(f"  - {e}")


def _print_summary(session: BenchmarkSession, top: int) -> None:
    """Print run summary and the costliest symbols."""
    recorder = session.recorder
    stats = session.tracker.summary()

    console.print()
    table = Table(title="Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Frames", f"{session.frames_run:,}")
    table.add_row("Instructions", f"{stats['observed']:,}")
    table.add_row("Untracked", f"{stats['unresolved']:,}")
    table.add_row("Calls", f"{stats['calls']:,}")
    table.add_row("Returns", f"{stats['returns']:,}")
    table.add_row("Events", f"{len(recorder.events):,}")
    table.add_row("End", f"{recorder.end_value:,} cycles")
    table.add_row("Cache hit rate", f"{session.index.stats()['hit_rate']:.2%}")
    console.print(table)

    entries = report_window(recorder, 0, recorder.end_value)[:top]
    if entries:
        total = recorder.end_value or 1
        hot = Table(title=f"Top {len(entries)} symbols")
        hot.add_column("Symbol")
        hot.add_column("Cycles", justify="right")
        hot.add_column("Share", justify="right")
        for entry in entries:
            hot.add_row(entry.symbol, f"{entry.duration:,}", f"{entry.duration / total:.1%}")
        console.print(hot)


# === PROFILE COMMAND ===

@app.command()
def profile(
    log_file: Path = typer.Argument(..., help="Observation log (CSV)", exists=True),
    symbols: Optional[Path] = typer.Option(None, "-s", "--symbols", help=".noi symbol file"),
    export: Optional[Path] = typer.Option(None, "-e", "--export", help="Directory to export results to"),
    frames: Optional[int] = typer.Option(None, "-f", "--frames", help="Number of frames to process"),
    capture: Optional[CaptureMode] = typer.Option(None, "-c", "--capture", help="Capture mode"),
    template: Optional[Path] = typer.Option(None, "--template", help="HTML viewer template", exists=True),
    config_path: Optional[Path] = typer.Option(None, "--config"),
    top: int = typer.Option(10, "--top", help="Symbols to list in the summary"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable verbose call trace output"),
    quiet: bool = typer.Option(False, "-q", "--quiet"),
):
    """Replay an observation log and reconstruct the call trace."""
    _configure_logging(verbose)

    try:
        cfg = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    if frames is not None:
        cfg.run.frames = frames
    if capture is not None:
        cfg.run.capture = capture.value

    errors = cfg.validate()
    if errors:
        _report_invalid(errors)
        raise typer.Exit(1)

    if not quiet:
        console.print(f"[bold blue]gbvm-bench v{__version__}[/]")
        console.print(f"Replaying: {log_file}")

    table = _load_symbols(symbols, cfg, quiet)
    session = BenchmarkSession(ReplayHost(log_file), table, cfg, export_dir=export)

    try:
        session.run()
    except ValueError as e:
        error = BenchError(ErrorCode.E4002_INVALID_OBSERVATION_LOG, {'error': str(e)})
        console.print(f"[red]Error:[/] {error.message}")
        raise typer.Exit(1)

    recorder = session.finish()

    if export:
        exporter = SpeedscopeExporter(export)
        try:
            path = exporter.write(recorder)
            if template and cfg.run.capture == CaptureMode.all.value:
                exporter.write_html(recorder, template)
        except (OSError, ValueError) as e:
            console.print(f"[red]Error:[/] {e}")
            raise typer.Exit(1)
        if not quiet:
            console.print(f"[green]Written to:[/] {path}")

    if not quiet:
        _print_summary(session, top)


# === REGIONS COMMAND ===

@app.command()
def regions(
    symbols: Path = typer.Argument(..., help=".noi symbol file", exists=True),
    bank: Optional[int] = typer.Option(None, "-b", "--bank", help="Only show this bank"),
    format: OutputFormat = typer.Option(OutputFormat.table, "-f", "--format"),
    config_path: Optional[Path] = typer.Option(None, "--config"),
):
    """Show the address regions built from a symbol file."""
    try:
        cfg = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    table = load_noi(symbols, fixed_end=cfg.memory.switchable_start)
    region_map = RegionBuilder(cfg.memory).build(table)

    banks = sorted(region_map) if bank is None else [bank]
    selected = [r for b in banks for r in region_map.get(b, [])]

    if format == OutputFormat.json:
        console.print_json(json.dumps([r.to_dict() for r in selected]))
        return

    out = Table(title=f"Regions ({len(selected)})")
    out.add_column("Bank", justify="right")
    out.add_column("Start")
    out.add_column("End")
    out.add_column("Size", justify="right")
    out.add_column("Symbol")
    for r in selected:
        out.add_row(f"{r.bank:02X}", f"0x{r.start:04X}", f"0x{r.end:04X}", str(r.size), r.name)
    console.print(out)


# === REPORT COMMAND ===

@app.command()
def report(
    profile_file: Path = typer.Argument(..., help="Exported speedscope.json", exists=True),
    start: int = typer.Option(0, "--start", help="Window start (inclusive)"),
    end: Optional[int] = typer.Option(None, "--end", help="Window end (exclusive), default end of trace"),
    format: OutputFormat = typer.Option(OutputFormat.table, "-f", "--format"),
):
    """Per-symbol durations inside [start, end) of an exported profile."""
    try:
        recorder = load_speedscope(profile_file)
    except (ValueError, json.JSONDecodeError) as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    end = recorder.end_value if end is None else end
    if end < start:
        console.print(f"[red]Error:[/] window end {end} is before start {start}")
        raise typer.Exit(1)

    entries = report_window(recorder, start, end)

    if format == OutputFormat.json:
        console.print_json(json.dumps({
            'start': start,
            'end': end,
            'entries': [e.to_dict() for e in entries],
        }))
        return

    out = Table(title=f"Window [{start}, {end})")
    out.add_column("Symbol")
    out.add_column("Duration", justify="right")
    for entry in entries:
        out.add_row(entry.symbol, str(entry.duration))
    console.print(out)


# === DEMO COMMAND ===

@app.command()
def demo(
    output_dir: Path = typer.Option(Path("./demo_output"), "-o", "--output-dir"),
    frames: int = typer.Option(3, "-f", "--frames"),
    seed: int = typer.Option(42, "--seed"),
):
    """Generate a synthetic observation log and matching .noi file."""
    cfg = BenchConfig()
    program = default_program()
    generator = ProgramGenerator(seed=seed, cycles_per_frame=cfg.timing.cycles_per_frame)
    observed = generator.generate(program, frames)

    output_dir.mkdir(parents=True, exist_ok=True)
    noi_path = output_dir / "demo.noi"
    log_path = output_dir / "demo_observations.csv"
    noi_path.write_text(program.to_noi())
    count = write_observation_log(
        log_path, observed, frame_end_times(frames, cfg.timing.cycles_per_frame),
    )

    console.print(f"[green]Symbols:[/] {noi_path}")
    console.print(f"[green]Observations:[/] {log_path} ({count:,} instructions, {frames} frames)")
    console.print()
    console.print(f"Next: gbvm-bench profile {log_path} -s {noi_path} -e {output_dir / 'export'}")


# === CONFIG COMMAND ===

@app.command("config")
def config_cmd(
    action: str = typer.Argument(..., help="Action: init|validate|dump"),
    path: Optional[Path] = typer.Argument(None, help="Config file path"),
):
    """Configuration management."""
    if action == "init":
        console.print(generate_default_config())

    elif action == "validate":
        if not path:
            console.print("[red]Path required for validate[/]")
            raise typer.Exit(1)
        try:
            cfg = BenchConfig.load(path)
        except Exception as e:
            console.print(f"[red]Error:[/] {e}")
            raise typer.Exit(1)
        errors = cfg.validate()
        if errors:
            _report_invalid(errors)
            raise typer.Exit(1)
        console.print(f"[green]Valid:[/] {path}")

    elif action == "dump":
        cfg = BenchConfig.load(path) if path else load_config()
        console.print(cfg.to_yaml())

    else:
        console.print(f"[red]Unknown action:[/] {action}")
        console.print("Valid actions: init, validate, dump")
        raise typer.Exit(1)


# === VERSION COMMAND ===

@app.command()
def version():
    """Show version information."""
    console.print(f"[bold blue]gbvm-bench v{__version__}[/]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
