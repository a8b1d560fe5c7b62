"""jsunmask CLI - unmask disguised module loads in JavaScript packages."""
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table

from jsunmask.analyzer.analysis import SourceAnalysis
from jsunmask.analyzer.manifest import PackageManifest
from jsunmask.analyzer.source_analyzer import SourceAnalyzer, iter_source_files
from jsunmask.config import __version__, get_config
from jsunmask.utils.logger import severity_icon
from jsunmask.utils.safe_console import SafeConsole

app = typer.Typer(
    name="jsunmask",
    help="Find obfuscated and dynamically-built module loads in JavaScript packages",
    add_completion=False
)
console = SafeConsole()


def _display_path(file_path: str, root: Path) -> str:
    try:
        return str(Path(file_path).relative_to(root))
    except ValueError:
        return file_path


def _dependency_kind(dependency) -> str:
    if dependency.auto_warning:
        return "eval"
    return "dynamic" if dependency.dynamic else "static"


def _print_dependencies(results: List[SourceAnalysis], root: Path):
    table = Table(title="Dependencies")
    table.add_column("File", style="cyan", no_wrap=False)
    table.add_column("Line", style="green", justify="right")
    table.add_column("Specifier", style="magenta", overflow="fold")
    table.add_column("Kind", style="yellow")

    for analysis in results:
        for dependency in analysis.dependencies:
            line = str(dependency.location.start_line) if dependency.location else "-"
            table.add_row(
                escape(_display_path(analysis.file_path, root)),
                line,
                escape(dependency.specifier),
                _dependency_kind(dependency)
            )

    console.print(table)


def _print_warnings(results: List[SourceAnalysis], root: Path):
    table = Table(title="Warnings")
    table.add_column("File", style="cyan", no_wrap=False)
    table.add_column("Line", style="green", justify="right")
    table.add_column("Kind", style="red")
    table.add_column("Severity", style="yellow")

    for analysis in results:
        for warning in analysis.warnings:
            line = str(warning.location.start_line) if warning.location else "-"
            table.add_row(
                escape(_display_path(analysis.file_path, root)),
                line,
                warning.kind,
                f"{severity_icon(warning.severity)} {warning.severity}"
            )

    console.print(table)


def _print_report(results: List[SourceAnalysis], root: Path, undeclared: List[str],
                  skipped: int, show_dependencies: bool):
    dependency_count = sum(len(a.dependencies) for a in results)
    warning_count = sum(len(a.warnings) for a in results)

    if show_dependencies and dependency_count:
        _print_dependencies(results, root)
        console.print()

    if warning_count:
        _print_warnings(results, root)
        console.print()
    else:
        console.print("[bold green]✓ No unsafe imports found[/bold green]\n")

    if undeclared:
        console.print("[bold yellow]⚠ Undeclared in package.json:[/bold yellow]")
        for specifier in undeclared:
            console.print(f"  • {escape(specifier)}")
        console.print()

    broken = [a for a in results if a.has_syntax_errors]

    console.print("[bold yellow]Summary:[/bold yellow]")
    console.print(f"  Files analyzed: {len(results)}")
    console.print(f"  Files skipped: {skipped}")
    console.print(f"  Files with syntax errors: {len(broken)}")
    console.print(f"  Dependencies: {dependency_count}")
    console.print(f"  Unsafe imports: {warning_count}")


@app.command()
def scan(
    project_path: str = typer.Argument(".", help="Package directory or single file to scan"),
    json_output: bool = typer.Option(False, "--json", help="Print machine-readable JSON instead of tables"),
    fail_on_warning: bool = typer.Option(False, "--fail-on-warning", help="Exit with status 1 when unsafe imports are found"),
    show_dependencies: bool = typer.Option(True, "--show-dependencies/--hide-dependencies", help="Display the Dependencies table"),
):
    """Scan a package and report the modules it loads."""
    project_path = Path(project_path).resolve()

    if not project_path.exists():
        console.print(f"[bold red]Error:[/bold red] Path does not exist: {escape(str(project_path))}")
        raise typer.Exit(1)

    try:
        get_config()
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    root = project_path if project_path.is_dir() else project_path.parent
    files = list(iter_source_files(project_path))
    analyzer = SourceAnalyzer()

    if not json_output:
        console.print(f"[bold blue]🔍 Scanning:[/bold blue] {escape(str(project_path))}\n")

    results: List[SourceAnalysis] = []
    skipped = 0
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
        disable=json_output,
    ) as progress:
        task = progress.add_task("Analyzing sources...", total=len(files))
        for file_path in files:
            analysis = analyzer.analyze_file(file_path)
            if analysis is None:
                skipped += 1
            else:
                results.append(analysis)
            progress.advance(task)

    manifest = PackageManifest.from_directory(root)
    discovered = [name for analysis in results for name in analysis.dependency_names]
    undeclared = manifest.undeclared(discovered) if manifest is not None else []

    if json_output:
        typer.echo(json.dumps({
            'root': str(root),
            'files': [
                dict(a.to_dict(), file=_display_path(a.file_path, root)) for a in results
            ],
            'undeclared': undeclared,
            'skipped': skipped,
        }, indent=2))
    else:
        _print_report(results, root, undeclared, skipped, show_dependencies)

    if fail_on_warning and any(a.warnings for a in results):
        raise typer.Exit(1)


@app.command()
def inspect(
    file_path: str = typer.Argument(..., help="JavaScript/TypeScript file to analyze"),
):
    """Show every dependency and warning of a single file."""
    path = Path(file_path).resolve()

    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] Not a file: {escape(str(path))}")
        raise typer.Exit(1)

    with console.status("Analyzing..."):
        analysis: Optional[SourceAnalysis] = SourceAnalyzer().analyze_file(path)

    if analysis is None:
        console.print(f"[bold red]Error:[/bold red] Unsupported or unreadable file: {escape(str(path))}")
        raise typer.Exit(1)

    _print_report([analysis], path.parent, [], 0, show_dependencies=True)


@app.command()
def version():
    """Print the jsunmask version."""
    typer.echo(__version__)


@app.callback()
def main():
    """jsunmask - find disguised module loads in JavaScript packages."""
    pass


if __name__ == "__main__":
    app()
