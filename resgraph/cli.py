"""
resgraph CLI entry point.
"""
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from resgraph import __version__, config as config_mod
from resgraph import engine
from resgraph.detect import detect_format
from resgraph.errors import ConfigError, DeclarationError
from resgraph.models.resource import Declaration
from resgraph.parsers import declaration, terraform
from resgraph.reporters import html_reporter, json_reporter, markdown, sarif_reporter

console = Console(stderr=True)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_INPUT = 2


def _collect_files(paths: Tuple[str, ...]) -> List[str]:
    """Expand directories into file paths, keeping a stable order."""
    files = []
    for p in paths:
        if os.path.isfile(p):
            files.append(p)
        elif os.path.isdir(p):
            for root, dirs, fnames in os.walk(p):
                dirs.sort()
                for fname in sorted(fnames):
                    files.append(os.path.join(root, fname))
        else:
            console.print(f"[yellow]Warning:[/yellow] '{p}' does not exist, skipping.")
    return files


def _parse_files(file_paths: List[str]) -> Tuple[List[Declaration], Dict[str, Any]]:
    declarations: List[Declaration] = []
    provider: Dict[str, Any] = {}
    for fp in file_paths:
        fmt = detect_format(fp)
        if fmt == "terraform":
            found, settings = terraform.parse_file(fp)
        elif fmt == "declaration":
            found, settings = declaration.parse_file(fp)
        else:
            console.print(f"[dim]Skipping unsupported file:[/dim] {fp}")
            continue
        declarations.extend(found)
        provider.update(settings)
    return declarations, provider


def _load(paths: Tuple[str, ...], config_path: Optional[str], stderr: Console) -> engine.ValidationResult:
    """Parse PATHS and run one validation; exits with code 2 on input errors."""
    try:
        cfg = config_mod.load(config_path)
    except ConfigError as exc:
        stderr.print(f"[red]Config error:[/red] {exc}")
        sys.exit(EXIT_INPUT)

    with stderr.status("[bold]Collecting files…"):
        file_paths = _collect_files(paths)

    if not file_paths:
        stderr.print("[red]No files found.[/red]")
        sys.exit(EXIT_INPUT)

    with stderr.status(f"[bold]Parsing {len(file_paths)} file(s)…"):
        try:
            declarations, provider = _parse_files(file_paths)
        except DeclarationError as exc:
            stderr.print(f"[red]Parse error:[/red] {exc}")
            sys.exit(EXIT_INPUT)

    if not declarations:
        stderr.print("[yellow]No resource declarations found in the provided paths.[/yellow]")
        sys.exit(EXIT_OK)

    stderr.print(f"Found [bold]{len(declarations)}[/bold] resources.")

    with stderr.status("[bold]Resolving references…"):
        return engine.check(
            declarations,
            schemas=cfg.schemas,
            aliases=cfg.aliases,
            provider=cfg.provider_for(provider),
        )


def _print_diagnostic(result: engine.ValidationResult, stderr: Console) -> None:
    d = result.diagnostic
    stderr.print(f"[bold red]{d.error}[/bold red]: {d.message}")
    if d.path:
        stderr.print("  cycle: " + " -> ".join(d.path + d.path[:1]))
    if d.source_file:
        stderr.print(f"  [dim]in {d.source_file}[/dim]")


def _print_order_table(result: engine.ValidationResult) -> None:
    """Print a rich create-order table to stderr."""
    tbl = Table(title="Create Order", show_header=True, header_style="bold")
    tbl.add_column("#", style="dim", width=4)
    tbl.add_column("Resource", width=40)
    tbl.add_column("Declared As", width=32)
    tbl.add_column("Depends On")

    deps: Dict[str, List[str]] = {}
    for e in result.edges:
        targets = deps.setdefault(e.source, [])
        if e.target not in targets:
            targets.append(e.target)

    for i, r in enumerate(result.order, 1):
        tbl.add_row(str(i), r.qualified_name, r.declared_type, ", ".join(deps.get(r.qualified_name, [])))

    Console(stderr=True).print(tbl)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__)
@click.pass_context
def cli(ctx):
    """resgraph — validate declarative infrastructure resource graphs."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


_config_option = click.option(
    "--config", "config_path",
    type=click.Path(),
    default=None,
    help="Config file (default: ./resgraph.yaml when present).",
)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option(
    "--format", "output_format",
    type=click.Choice(["markdown", "json", "sarif", "html"], case_sensitive=False),
    default="markdown",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write report to this file (default: stdout).",
)
@click.option(
    "--summary",
    is_flag=True,
    default=False,
    help="Print terminal summary only, do not write a full report.",
)
@click.option(
    "--ascii",
    is_flag=True,
    default=False,
    help="Use ASCII-only status indicators (no emojis).",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable rich terminal color output.",
)
@_config_option
def validate(
    paths: Tuple[str, ...],
    output_format: str,
    output: Optional[str],
    summary: bool,
    ascii: bool,
    no_color: bool,
    config_path: Optional[str],
) -> None:
    """
    Validate the resource graph declared in PATHS.

    PATHS can be files or directories; multiple values accepted.
    Exits 1 when the graph is invalid, 2 when the input cannot be read.
    """
    stderr = Console(stderr=True, no_color=no_color)
    result = _load(paths, config_path, stderr)

    if result.ok:
        stderr.print(
            f"[green]Valid:[/green] {len(result.order)} resources, {len(result.edges)} references."
        )
    else:
        _print_diagnostic(result, stderr)

    if result.ok and (summary or output):
        _print_order_table(result)

    if not summary:
        fmt = output_format.lower()
        source_label = ", ".join(paths)
        if fmt == "json":
            report_content = json_reporter.build_report(result, source_label)
        elif fmt == "sarif":
            report_content = sarif_reporter.build_report(result, source_label)
        elif fmt == "html":
            report_content = html_reporter.build_report(result, source_label)
        else:
            report_content = markdown.build_report(result, source_label, ascii_mode=ascii)

        if output:
            with open(output, "w", encoding="utf-8", newline="\n") as fh:
                fh.write(report_content)
            stderr.print(f"Report written to [bold]{output}[/bold]")
        else:
            click.echo(report_content)

    sys.exit(EXIT_OK if result.ok else EXIT_INVALID)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option("--destroy", is_flag=True, default=False, help="Print the destroy order instead.")
@_config_option
def order(paths: Tuple[str, ...], destroy: bool, config_path: Optional[str]) -> None:
    """Print one resource per line in create (or destroy) order."""
    stderr = Console(stderr=True)
    result = _load(paths, config_path, stderr)
    if not result.ok:
        _print_diagnostic(result, stderr)
        sys.exit(EXIT_INVALID)

    for r in (result.destroy_order if destroy else result.order):
        click.echo(r.qualified_name)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option("--dot", is_flag=True, default=False, help="Emit Graphviz DOT instead of Mermaid.")
@_config_option
def graph(paths: Tuple[str, ...], dot: bool, config_path: Optional[str]) -> None:
    """Print the dependency diagram of PATHS."""
    stderr = Console(stderr=True)
    result = _load(paths, config_path, stderr)
    if not result.ok:
        _print_diagnostic(result, stderr)
        sys.exit(EXIT_INVALID)

    click.echo(markdown.build_dot(result) if dot else markdown.build_mermaid(result))


@cli.command()
@_config_option
def schemas(config_path: Optional[str]) -> None:
    """List the resource kinds and their schemas."""
    try:
        cfg = config_mod.load(config_path)
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(EXIT_INPUT)

    tbl = Table(title="Resource Kinds", show_header=True, header_style="bold")
    tbl.add_column("Kind", style="bold", no_wrap=True)
    tbl.add_column("Aliases")
    tbl.add_column("Required")
    tbl.add_column("Outputs")

    for kind, schema in cfg.schemas.items():
        tbl.add_row(
            kind,
            ", ".join(schema.aliases),
            ", ".join(f"{k}:{v.value}" for k, v in schema.required.items()),
            ", ".join(sorted(schema.outputs)),
        )

    Console().print(tbl)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
