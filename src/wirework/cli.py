"""Command line interface for analysing, fixing and drawing component wiring."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from wirework.analysis import analyze, build_fix
from wirework.analyzer import detect_cycles, find_orphans
from wirework.catalog import make_catalog
from wirework.collaborator import run_collaborator
from wirework.config import WireworkConfig, load_config
from wirework.errors import WiringError
from wirework.layout import layout_graph
from wirework.payload import AnalysisPayload, AnalysisReport, dump_model, load_payload
from wirework.render import render_graph

__all__ = ["app", "main"]

LOGGER = logging.getLogger(__name__)

app = typer.Typer(
    name="wirework",
    help="Find components that provide missing capabilities and show how they depend on each other.",
    no_args_is_help=True,
)


@dataclass
class _State:
    config: WireworkConfig
    verbose: bool


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _read_payload(source: str) -> AnalysisPayload:
    if source == "-":
        text = typer.get_text_stream("stdin").read()
    else:
        path = Path(source).expanduser()
        if not path.is_file():
            raise typer.BadParameter(f"Payload file not found: {path}")
        text = path.read_text(encoding="utf-8")
    return load_payload(text)


def _parse_selections(values: Optional[list[str]]) -> dict[str, str]:
    selections: dict[str, str] = {}
    for value in values or []:
        capability, separator, component = value.partition("=")
        if not separator or not capability or not component:
            raise typer.BadParameter(f"Expected CAPABILITY=COMPONENT, got '{value}'")
        selections[capability.strip()] = component.strip()
    return selections


def _fail(console: Console, exc: WiringError):
    LOGGER.debug("Command failed", exc_info=exc)
    console.print(f"[bold red]Error:[/] {exc}", highlight=False)
    raise typer.Exit(code=1) from exc


PAYLOAD_ARGUMENT = typer.Argument(..., metavar="PAYLOAD", help="Payload JSON file, or - for stdin.")
SELECT_OPTION = typer.Option(
    None,
    "--select",
    "-s",
    metavar="CAPABILITY=COMPONENT",
    help="Use COMPONENT to provide CAPABILITY. May be repeated.",
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="TOML configuration file (a pyproject.toml works)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
):
    _configure_logging(verbose)
    try:
        config = load_config(config_path or Path("pyproject.toml"))
    except WiringError as exc:
        _fail(Console(stderr=True), exc)
    LOGGER.debug("Loaded configuration %s", config)
    ctx.obj = _State(config, verbose)


@app.command("analyze")
def analyze_command(
    ctx: typer.Context,
    payload: str = PAYLOAD_ARGUMENT,
    select: Optional[list[str]] = SELECT_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON."),
):
    """Resolve every missing capability reported in PAYLOAD."""
    console = Console()
    try:
        report = analyze(_read_payload(payload), _parse_selections(select))
    except WiringError as exc:
        if json_output:
            typer.echo(dump_model(AnalysisReport(status="error", errors=[str(exc)])))
            raise typer.Exit(code=1) from exc
        _fail(console, exc)

    if json_output:
        typer.echo(dump_model(report))
        return

    if not report.missing:
        console.print("[green]No missing capabilities found![/]")
        return

    console.print(f"Missing: {', '.join(report.missing)}", highlight=False)
    console.print(f"Resolved: {' -> '.join(report.resolution_order)}", highlight=False)

    table = Table(title="Candidates", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Capability", style="cyan")
    table.add_column("Component", style="magenta")
    table.add_column("Location")
    table.add_column("Requires", style="green")
    for candidate in report.candidates:
        if not candidate.layers:
            table.add_row(candidate.service, "[red]none[/]", "-", "-")
        for layer in candidate.layers:
            table.add_row(candidate.service, layer.name, f"{layer.file}:{layer.line}", ", ".join(layer.requires) or "-")
    console.print(table)

    for diagnostic in report.diagnostics:
        if diagnostic.kind != "unsatisfiable":
            console.print(f"[yellow]Warning:[/] {diagnostic.message}", highlight=False)
    if report.still_missing:
        console.print(f"[red]Still missing:[/] {', '.join(report.still_missing)}", highlight=False)
    console.print(f"\nComposition:\n{report.expression}", markup=False, highlight=False)


@app.command("fix")
def fix_command(
    ctx: typer.Context,
    payload: str = PAYLOAD_ARGUMENT,
    select: Optional[list[str]] = SELECT_OPTION,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the fix JSON to this file."),
):
    """Build the fix that wires in the selected components."""
    console = Console(stderr=True)
    try:
        source = _read_payload(payload)
        requirements = source.requirements()
        outcome = build_fix(
            make_catalog(source.definitions()),
            requirements[0] if requirements else None,
            _parse_selections(select),
        )
    except WiringError as exc:
        _fail(console, exc)

    for message in outcome.messages:
        console.print(f"[yellow]Warning:[/] {message}", highlight=False)
    for diagnostic in outcome.diagnostics:
        if diagnostic.kind != "unsatisfiable":
            console.print(f"[yellow]Warning:[/] {diagnostic.message}", highlight=False)
    if outcome.still_missing:
        console.print(f"[red]Still missing:[/] {', '.join(outcome.still_missing)}", highlight=False)
    if outcome.fix is None:
        return

    document = dump_model(outcome.fix)
    if output is None:
        typer.echo(document)
    else:
        output.write_text(document + "\n", encoding="utf-8")
        console.print(f"Wrote fix for {', '.join(outcome.fix.component_names)} to {output}", highlight=False)


@app.command("graph")
def graph_command(
    ctx: typer.Context,
    payload: str = PAYLOAD_ARGUMENT,
    width: Optional[int] = typer.Option(None, "--width", "-w", min=1, help="Maximum line width."),
    select_node: Optional[str] = typer.Option(None, "--select-node", help="Component to highlight."),
):
    """Draw the dependency graph of every component in PAYLOAD."""
    state: _State = ctx.obj
    console = Console()
    try:
        catalog = make_catalog(_read_payload(payload).definitions())
    except WiringError as exc:
        _fail(console, exc)

    cycles = detect_cycles(catalog)
    orphans = find_orphans(catalog)
    console.print(f"Dependency Graph ({len(catalog)} components)", highlight=False)
    if cycles:
        console.print(f"[red]* {len(cycles)} circular dependenc{'ies' if len(cycles) > 1 else 'y'}[/]")
        for cycle in cycles:
            console.print(f"  {' <-> '.join(cycle)}", markup=False, highlight=False)
    if orphans:
        console.print(f"[yellow]? {len(orphans)} orphan{'s' if len(orphans) > 1 else ''}[/]")
    if not cycles and not orphans:
        console.print("[green]No issues detected[/]")
    console.print("Legend: * cycle  ? orphan  > selected  ▼ provides to", markup=False, highlight=False)
    typer.echo("")

    layout = layout_graph(catalog, state.config.layout)
    for line in render_graph(layout, width, select_node, state.config.render):
        typer.echo(line)


@app.command("collect", context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def collect_command(
    ctx: typer.Context,
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Seconds before giving up."),
):
    """Run the static-analysis command and print its payload.

    The command comes from the arguments after ``--`` or, failing that, from
    the ``collaborator.command`` configuration setting.
    """
    state: _State = ctx.obj
    command = list(ctx.args) or state.config.collaborator.command
    try:
        payload = run_collaborator(command, timeout or state.config.collaborator.timeout)
    except WiringError as exc:
        _fail(Console(stderr=True), exc)
    typer.echo(dump_model(payload))


def main():
    app()
