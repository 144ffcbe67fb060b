#!/usr/bin/env python3
"""
c14 pipeline - command line entry point.

Usage:
    python -m c14pipeline.main dedupe dates.csv --apply --output clean.csv
    python -m c14pipeline.main inspect dates.csv
    python -m c14pipeline.main countries dates.csv --output dates_countries.csv
    python -m c14pipeline.main list-sources
"""

import json
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from c14pipeline.config import C14_DATABASES, SOURCE_PRIORITY, settings
from c14pipeline.date_list import EXPORT_FORMATS, fuse, read_c14, write_c14
from c14pipeline.deduplication import (
    ResolutionPolicy,
    SelectionRule,
    Verdict,
    remove_duplicates,
)
from c14pipeline.deduplication.policy import preference_table
from c14pipeline.exceptions import C14PipelineError


console = Console()

VERDICT_STYLES = {
    Verdict.KEEP_ONE: "[green]keep one[/green]",
    Verdict.KEEP_ALL_MARKED: "[yellow]marked[/yellow]",
    Verdict.KEEP_NONE: "[red]dropped[/red]",
}


def _fmt(value, spec: str = "") -> str:
    if value is None:
        return "-"
    try:
        return format(value, spec)
    except (TypeError, ValueError):
        return str(value)


def _print_groups(summaries, limit: int | None = None):
    """Print one table row per group member."""
    table = Table()
    table.add_column("Lab number")
    table.add_column("Source")
    table.add_column("Site")
    table.add_column("Age BP", justify="right")
    table.add_column("Std", justify="right")
    table.add_column("Verdict")
    table.add_column("Reason")

    shown = summaries if limit is None else summaries[:limit]
    for summary in shown:
        for member in summary.members:
            if member.candidate:
                marker = "[bold green]*[/bold green] " if member.kept else "[bold]*[/bold] "
            else:
                marker = "  " if member.kept else "[dim]x[/dim] "
            table.add_row(
                marker + (member.labnr or "-"),
                member.sourcedb or "-",
                _fmt(member.site)[:30],
                _fmt(member.c14age, ".0f"),
                _fmt(member.c14std, ".0f"),
                VERDICT_STYLES[summary.verdict] + (" [red]![/red]" if summary.irreconcilable else ""),
                summary.reason.value,
            )
        table.add_section()

    console.print(table)
    if limit is not None and len(summaries) > limit:
        console.print(f"[dim]Showing {limit} of {len(summaries)} groups[/dim]")


def _print_result_summary(result):
    table = Table()
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Input dates", str(result.n_input))
    table.add_row("Duplicate groups", str(result.n_groups))
    table.add_row("Irreconcilable groups", str(result.n_irreconcilable))
    table.add_row("Removed dates", str(result.n_removed))
    table.add_row("Output dates", str(result.n_output))
    console.print(table)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(debug):
    """c14 pipeline - radiocarbon date list tools"""
    if debug:
        from c14pipeline.utils.logging import setup_logging
        setup_logging(level="DEBUG")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write the resolved date list here")
@click.option("--apply/--mark-only", "apply_", default=None, help="Remove duplicates, or only report them")
@click.option("--rule", type=click.Choice([r.value for r in SelectionRule]), default=None, help="Survivor selection rule")
@click.option("--tolerance", type=float, default=None, help="Age conflict threshold in combined sigmas")
@click.option("--strict", is_flag=True, help="Drop groups with conflicting ages entirely")
@click.option("--prefer", multiple=True, help="Source database in order of preference (repeatable)")
@click.option("--numeric-labnr", is_flag=True, help="Ignore leading zeros in lab numbers")
@click.option("--report", "report_path", type=click.Path(dir_okay=False, path_type=Path), help="Write group report as JSON")
def dedupe(input_path, output, apply_, rule, tolerance, strict, prefer, numeric_labnr, report_path):
    """
    Find and resolve duplicate dates in a date list CSV.

    Without --apply only the duplicate groups are reported.
    """
    try:
        overrides = {
            "mark_only": None if apply_ is None else not apply_,
            "selection_rule": rule,
            "conflict_tolerance": tolerance,
            "drop_irreconcilable": True if strict else None,
            "numeric_labnr": True if numeric_labnr else None,
        }
        if prefer:
            overrides["source_priority_table"] = preference_table(prefer)
            if rule is None:
                overrides["selection_rule"] = SelectionRule.SOURCE_PRIORITY
        policy = ResolutionPolicy.from_settings(settings.dedup, **overrides)

        df = read_c14(input_path)
        result = remove_duplicates(df, policy)
    except C14PipelineError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    console.print(f"\n[bold blue]Duplicate check: {input_path.name}[/bold blue]\n")
    _print_result_summary(result)

    if output:
        write_c14(result.data, output)
        console.print(f"[green]Wrote {result.n_output} dates to {output}[/green]")

    if report_path:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, "w", encoding="utf-8") as f:
            json.dump([s.to_dict() for s in result.summaries], f, ensure_ascii=False, indent=2)
        console.print(f"[green]Wrote report for {result.n_groups} groups to {report_path}[/green]")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--limit", type=int, default=20, help="Number of groups to show")
@click.option("--numeric-labnr", is_flag=True, help="Ignore leading zeros in lab numbers")
def inspect(input_path, limit, numeric_labnr):
    """Show duplicate groups without changing anything."""
    try:
        policy = ResolutionPolicy.from_settings(settings.dedup, mark_only=True, numeric_labnr=numeric_labnr or None)
        result = remove_duplicates(read_c14(input_path), policy)
    except C14PipelineError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    console.print(f"\n[bold blue]Duplicate groups: {input_path.name}[/bold blue]\n")

    if not result.summaries:
        console.print("[green]No duplicate lab numbers found[/green]")
        return

    _print_groups(result.summaries, limit=limit)


@cli.command("fuse")
@click.argument("input_paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False, path_type=Path))
def fuse_cmd(input_paths, output):
    """Combine several date list CSVs into one."""
    fused = fuse(*[read_c14(p) for p in input_paths])
    write_c14(fused, output)
    console.print(f"[green]Wrote {len(fused)} dates from {len(input_paths)} files to {output}[/green]")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--boundaries", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
              help="Country boundaries GeoJSON (defaults to the configured file)")
def countries(input_path, output, boundaries):
    """Attribute countries to dates from their coordinates."""
    from c14pipeline.spatial import determine_country_by_coordinate
    from c14pipeline.utils.country_lookup import CountryLookup

    df = determine_country_by_coordinate(read_c14(input_path), CountryLookup(boundaries))
    write_c14(df, output)

    found = int(df["country_coord"].notna().sum())
    console.print(f"[green]Attributed {found} of {len(df)} dates, wrote {output}[/green]")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--format", "fmt", type=click.Choice(EXPORT_FORMATS), default="csv")
def export(input_path, output, fmt):
    """Convert a date list CSV to another format."""
    df = read_c14(input_path)
    write_c14(df, output, fmt=fmt)
    console.print(f"[green]Wrote {len(df)} dates to {output} ({fmt})[/green]")


@cli.command()
@click.option("--force", is_flag=True, help="Download even if the file exists")
def boundaries(force):
    """Download country boundaries used by the countries command."""
    from c14pipeline.utils.country_lookup import download_country_boundaries

    try:
        path = download_country_boundaries(force=force)
    except Exception as e:
        logger.exception("Boundary download failed")
        console.print(f"[red]Download failed: {e}[/red]")
        raise SystemExit(1)

    console.print(f"[green]Boundaries saved to {path}[/green]")


@cli.command()
def list_sources():
    """List known radiocarbon source databases."""
    console.print("\n[bold blue]Radiocarbon Source Databases[/bold blue]\n")

    table = Table()
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Priority", justify="right")
    table.add_column("License")
    table.add_column("Description")

    for source_id, info in C14_DATABASES.items():
        description = info.get("description", "")
        if len(description) > 50:
            description = description[:50] + "..."

        table.add_row(
            source_id,
            info.get("name", source_id),
            str(SOURCE_PRIORITY.get(source_id, 0)),
            info.get("license", "-"),
            description,
        )

    console.print(table)


if __name__ == "__main__":
    cli()
