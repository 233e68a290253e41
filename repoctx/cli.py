"""repoctx CLI: Typer + Rich terminal interface.

Commands: load, score, optimize, chunk, tokens, strategies, config.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from repoctx import __version__
from repoctx.aggregator import ContextAggregator
from repoctx.cache import create_cache
from repoctx.config import CONFIG_DIR, default_options, load_config
from repoctx.context.optimizer import ContextOptimizer
from repoctx.context.patterns import is_ignored_name
from repoctx.context.scorer import RelevanceScorer
from repoctx.errors import ContextError
from repoctx.filesystem import LocalFileSystem
from repoctx.schemas.config import AggregatorConfig
from repoctx.schemas.context import Context
from repoctx.schemas.optimizer import OptimizationStrategy
from repoctx.schemas.scoring import ScoringCriteria

console = Console()
err_console = Console(stderr=True)

# ── App and sub-apps ─────────────────────────────────────────────

app = typer.Typer(
    name="repoctx",
    help="Select, rank, and fit a source tree into a token budget.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    name="config",
    help="Show repoctx configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")


# ── Version callback ─────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"repoctx {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log progress to stderr.",
    ),
) -> None:
    """repoctx: context loading and optimization for source trees."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ── Helpers ──────────────────────────────────────────────────────


def _load_config() -> AggregatorConfig:
    """Load defaults, exit on error."""
    try:
        return load_config()
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _read_input(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Cannot read {path}:[/red] {e}")
        raise typer.Exit(1) from None


def _list_files(root: Path) -> list[str]:
    """Every non-ignored file under root, as sorted '/'-relative paths."""
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not is_ignored_name(d))
        for name in filenames:
            if not name.startswith("."):
                found.append(Path(dirpath, name).relative_to(root).as_posix())
    return sorted(found)


def _display_context(context: Context) -> None:
    console.print(Panel(context.summary, title="Context", border_style="cyan"))

    table = Table(title="Loaded Files")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Path", style="bold")
    table.add_column("Chars", justify="right")
    for i, (path, content) in enumerate(context.files.items(), 1):
        table.add_row(str(i), path, f"{len(content):,}")
    console.print(table)

    if context.optimized is not None:
        opt = context.optimized.metadata.get("optimization", {})
        console.print(
            f"\n[green]Optimized[/green] with {opt.get('strategy')}: "
            f"{opt.get('original_tokens')} → {opt.get('optimized_tokens')} tokens "
            f"({opt.get('reduction', 0.0):.1f}% reduction)"
        )


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def load(
    root: Path = typer.Argument(..., help="Project root directory"),
    strategy: str = typer.Option(None, "--strategy", "-s", help="Loading strategy"),
    max_tokens: int = typer.Option(None, "--max-tokens", "-t", help="Token budget"),
    max_depth: int = typer.Option(None, "--max-depth", "-d", help="Traversal depth limit"),
    query: str = typer.Option(None, "--query", "-q", help="Focus query"),
    include: list[str] = typer.Option(None, "--include", "-i", help="Include glob (repeatable)"),
    exclude: list[str] = typer.Option(None, "--exclude", "-e", help="Exclude glob (repeatable)"),
    file_type: list[str] = typer.Option(None, "--type", help="Extension filter, e.g. .py"),
    optimize: bool = typer.Option(False, "--optimize", help="Optimize the loaded files"),
    optimization: OptimizationStrategy = typer.Option(
        None, "--optimization", help="summarize, selective, or compress"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the context as JSON"),
) -> None:
    """Load a token-bounded context from a project."""
    config = _load_config()
    options = default_options(
        config,
        strategy=strategy,
        max_tokens=max_tokens,
        max_depth=max_depth,
        query=query,
        include_patterns=list(include) if include else None,
        exclude_patterns=list(exclude) if exclude else None,
        file_types=list(file_type) if file_type else None,
        optimize=optimize,
        optimization_strategy=optimization,
    )

    async def _aggregate() -> Context:
        cache = create_cache(config.cache)
        aggregator = ContextAggregator(cache=cache)
        try:
            return await aggregator.aggregate_context(str(root.resolve()), options)
        finally:
            if cache is not None:
                await cache.close()

    try:
        context = asyncio.run(_aggregate())
    except ContextError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if as_json:
        typer.echo(context.model_dump_json(indent=2))
    else:
        _display_context(context)


@app.command()
def score(
    root: Path = typer.Argument(..., help="Project root directory"),
    query: str = typer.Option(None, "--query", "-q", help="Query to score against"),
    threshold: float = typer.Option(None, "--threshold", help="Minimum score"),
    limit: int = typer.Option(20, "--limit", "-n", help="Rows to show"),
) -> None:
    """Rank every file under a directory by relevance."""
    if not root.is_dir():
        err_console.print(f"[red]Not a directory:[/red] {root}")
        raise typer.Exit(1)

    root = root.resolve()
    scorer = RelevanceScorer(LocalFileSystem())
    criteria = ScoringCriteria(query=query, context_path=str(root), threshold=threshold)
    results = asyncio.run(scorer.score_files(_list_files(root), criteria))

    table = Table(title=f"Relevance ({len(results)} files)")
    table.add_column("Score", justify="right", style="bold cyan")
    table.add_column("Path")
    table.add_column("Reason", style="dim")
    for r in results[:limit]:
        table.add_row(f"{r.score:.1f}", r.path, r.reason)
    console.print(table)


@app.command()
def optimize(
    file: Path = typer.Argument(..., help="Text file to optimize"),
    strategy: OptimizationStrategy = typer.Option(
        OptimizationStrategy.SELECTIVE, "--strategy", "-s", help="Optimization strategy"
    ),
    max_tokens: int = typer.Option(None, "--max-tokens", "-t", help="Token budget"),
    output: Path = typer.Option(None, "--output", "-o", help="Write result to a file"),
) -> None:
    """Shrink a text file toward a token budget."""
    content = _read_input(file)
    result = asyncio.run(ContextOptimizer().optimize_context(content, strategy, max_tokens))

    if output:
        output.write_text(result.optimized_content, encoding="utf-8")
    else:
        typer.echo(result.optimized_content)

    err_console.print(
        f"[dim]{result.strategy}: {result.original_tokens} → "
        f"{result.optimized_tokens} tokens ({result.reduction:.1f}% reduction)[/dim]"
    )


@app.command()
def chunk(
    file: Path = typer.Argument(..., help="Text file to chunk"),
    size: int = typer.Option(None, "--size", help="Max tokens per chunk (default 2000)"),
) -> None:
    """Split a text file into overlapping chunks."""
    content = _read_input(file)
    chunks = asyncio.run(ContextOptimizer().chunk_context(content, size))

    table = Table(title=f"Chunks ({len(chunks)})")
    table.add_column("#", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Code")
    table.add_column("Docs")
    table.add_column("Language", style="dim")
    table.add_column("Starts with", max_width=50)
    for c in chunks:
        first = c.content[len(c.overlap):].lstrip().split("\n", 1)[0]
        table.add_row(
            str(c.index),
            str(c.token_count),
            "yes" if c.metadata.has_code else "-",
            "yes" if c.metadata.has_documentation else "-",
            c.metadata.language,
            first[:50],
        )
    console.print(table)


@app.command()
def tokens(
    file: Path = typer.Argument(..., help="Text file to measure"),
) -> None:
    """Show token estimates and content breakdown for a file."""
    content = _read_input(file)
    info = asyncio.run(ContextOptimizer().get_token_info(content))

    table = Table(title=f"Tokens: {file.name}", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Total tokens", f"{info.total_tokens:,}")
    for category, pct in info.breakdown.items():
        table.add_row(f"  {category}", f"{pct:.1f}%")
    table.add_row("Estimated cost", f"${info.estimated_cost:.4f}")
    table.add_row(
        "Within 8000 limit", "[green]yes[/green]" if info.within_limit else "[red]no[/red]"
    )
    console.print(table)


@app.command()
def strategies() -> None:
    """List registered loading strategies."""
    for name in ContextAggregator().get_strategies():
        console.print(f"  [cyan]{name}[/cyan]")


# ── repoctx config ───────────────────────────────────────────────


@config_app.command("show")
def config_show(
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
) -> None:
    """Show current defaults."""
    config = _load_config()
    if as_json:
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))
        return

    table = Table(title="repoctx Configuration", show_header=False, show_lines=True)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Default Strategy", config.default_strategy)
    table.add_row("Max Tokens", f"{config.max_tokens:,}")
    table.add_row("Max Depth", str(config.max_depth) if config.max_depth is not None else "(strategy default)")
    table.add_row("Optimization", str(config.optimization_strategy))
    table.add_row("Cache Backend", str(config.cache.backend))
    table.add_row("Cache TTL", f"{config.cache.ttl}s")
    table.add_row("Cache DB Path", config.cache.db_path)
    console.print(table)


@config_app.command("path")
def config_path() -> None:
    """Show the defaults file location."""
    path = CONFIG_DIR / "defaults.toml"
    status = "[green]found[/green]" if path.exists() else "[red]missing[/red]"
    console.print(f"Defaults: {path} {status}", soft_wrap=True)
