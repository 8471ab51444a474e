"""Command-line interface for WorkTrack."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from worktrack.importer import import_work_track
from worktrack.log import configure_logging
from worktrack.models import FilterSettings, Settings
from worktrack.parsing import TextFileContent
from worktrack.tree.nodes import FileEntry, get_managers

app = typer.Typer(
    name="worktrack",
    help="Code-change activity trees - parse, filter and weigh work-tracking exports",
    add_completion=False,
)
console = Console()


@app.callback()
def setup() -> None:
    """Configure logging from the environment."""
    settings = Settings()
    configure_logging(settings.log_level, json=settings.log_json)


def _load_settings(
    filters: Optional[Path],
    path_include: Optional[str],
    path_exclude: Optional[str],
    weight_stat: Optional[str],
) -> FilterSettings:
    settings = FilterSettings.from_json_file(filters) if filters else FilterSettings()
    overrides = {}
    if path_include is not None:
        overrides["path_include"] = path_include
    if path_exclude is not None:
        overrides["path_exclude"] = path_exclude
    if weight_stat is not None:
        overrides["weight_stat"] = weight_stat
    return settings.model_copy(update=overrides) if overrides else settings


def _format_stat(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def _add_to_rich_tree(branch: Tree, node: FileEntry, depth: int, max_depth: int, show_diffs: bool) -> None:
    for child in node.sorted_children():
        label = (
            f"[bold]{escape(child.name)}[/bold] "
            f"[yellow]w={_format_stat(child.stats.get('weight', 0))}[/yellow] "
            f"[dim]files={_format_stat(child.stats.get('fileCount', 0))} "
            f"edits={_format_stat(child.stats.get('editCount', 0))}[/dim]"
        )
        managers = get_managers(child.managers_by_diff)
        if managers:
            label += f" [cyan]{escape(managers)}[/cyan]"
        sub = branch.add(label)
        if show_diffs:
            for diff in child.diffs:
                closed = datetime.fromtimestamp(diff.date_closed).strftime("%Y-%m-%d")
                sub.add(
                    f"[green]D{diff.id}[/green] {closed} {escape(diff.title)} "
                    f"[dim]by {escape(diff.author)}[/dim]"
                )
        if depth + 1 < max_depth:
            _add_to_rich_tree(sub, child, depth + 1, max_depth, show_diffs)


@app.command()
def tree(
    export_path: Path = typer.Argument(..., help="Path to a work-tracking CSV export"),
    filters: Optional[Path] = typer.Option(None, "--filters", "-f", help="JSON file with filter settings"),
    path_include: Optional[str] = typer.Option(None, "--path-include", help="Path include patterns"),
    path_exclude: Optional[str] = typer.Option(None, "--path-exclude", help="Path exclude patterns"),
    weight_stat: Optional[str] = typer.Option(None, "--weight-stat", help="Stat used as weight"),
    max_depth: int = typer.Option(4, "--depth", "-d", help="Maximum depth to print"),
    show_diffs: bool = typer.Option(False, "--diffs", help="Show the most recent changes per node"),
) -> None:
    """Print the filtered path tree."""
    try:
        settings = _load_settings(filters, path_include, path_exclude, weight_stat)
        content = TextFileContent.from_path(export_path)
        result = import_work_track(content, export_path.name, settings)

        root = result.tree.root
        rich_tree = Tree(
            f"[bold magenta]{escape(root.name)}[/bold magenta] "
            f"[yellow]w={_format_stat(result.tree.total_weight)}[/yellow]"
        )
        _add_to_rich_tree(rich_tree, root, 0, max_depth, show_diffs)
        console.print(rich_tree)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def profile(
    export_path: Path = typer.Argument(..., help="Path to a work-tracking CSV export"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file"),
    filters: Optional[Path] = typer.Option(None, "--filters", "-f", help="JSON file with filter settings"),
    weight_stat: Optional[str] = typer.Option(None, "--weight-stat", help="Stat used as weight"),
) -> None:
    """Emit the weighted call-tree profile as JSON."""
    try:
        settings = _load_settings(filters, None, None, weight_stat)
        content = TextFileContent.from_path(export_path)
        result = import_work_track(content, export_path.name, settings)
        data = result.group.model_dump(mode="json")

        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            with open(output, "w") as f:
                json.dump(data, f, indent=2)
            console.print(f"[bold green]✓[/bold green] Saved profile to {escape(str(output))}")
        else:
            console.print_json(data=data)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def stats(
    export_path: Path = typer.Argument(..., help="Path to a work-tracking CSV export"),
) -> None:
    """Show record counts of a parsed export."""
    try:
        content = TextFileContent.from_path(export_path)
        work = content.work_content()

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Section", style="cyan")
        table.add_column("Records", justify="right", style="yellow")
        table.add_row("Changes", str(len(work.changes)))
        table.add_row("Tasks", str(len(work.tasks)))
        table.add_row("Files", str(len(work.files)))
        table.add_row(
            "Linked tasks",
            str(sum(len(change.tasks) for change in work.changes.values())),
        )
        console.print(table)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from worktrack import __version__

    console.print(f"[bold]WorkTrack[/bold] version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
