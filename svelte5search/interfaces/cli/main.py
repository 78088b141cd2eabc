"""
CLI Main - Typer-based command-line interface.

Usage:
    svelte5-search load
    svelte5-search search knowledge "effect cleanup"
    svelte5-search boost examples "counter"
    svelte5-search status
    svelte5-search verify --rebuild
    svelte5-search serve
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from svelte5search.config import Svelte5SearchError, get_settings
from svelte5search.domains.corpus import ItemKind, load_corpus
from svelte5search.domains.search import create_search_engine

app = typer.Typer(
    name="svelte5-search",
    help="Svelte 5 Search - Knowledge and code-pattern search",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for every command."""
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _render_highlight(text: str) -> str:
    return escape(text).replace("<mark>", "[bold yellow]").replace("</mark>", "[/bold yellow]")


def _truncate(text: str, width: int = 120) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 3] + "..."


@app.command()
def load(
    knowledge: Path | None = typer.Option(None, "--knowledge", "-k", help="Knowledge corpus file"),
    examples: Path | None = typer.Option(None, "--examples", "-e", help="Examples corpus file"),
    data_version: str | None = typer.Option(None, "--data-version", help="Declared corpus version"),
    force: bool = typer.Option(False, "--force", "-f", help="Ignore the version fast path"),
) -> None:
    """Sync corpus files into the search index."""
    asyncio.run(_load_async(knowledge, examples, data_version, force))


async def _load_async(
    knowledge_path: Path | None,
    examples_path: Path | None,
    data_version: str | None,
    force: bool,
) -> None:
    settings = get_settings()
    knowledge_path = knowledge_path or settings.knowledge_path
    examples_path = examples_path or settings.examples_path
    version = None if force else (data_version or settings.data_version)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Reading corpus...", total=None)

        try:
            knowledge, examples = load_corpus(knowledge_path, examples_path)
            progress.update(task, description="Syncing index...")
            engine = await create_search_engine(settings)
            try:
                report = await engine.load(
                    knowledge,
                    examples,
                    data_version=version,
                    source_name=settings.source_name,
                )
            finally:
                await engine.close()
        except (Svelte5SearchError, OSError, ValueError) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    table = Table(title="Sync Report")
    table.add_column("Kind", style="cyan")
    table.add_column("Inserted", justify="right", style="green")
    table.add_column("Updated", justify="right", style="yellow")
    table.add_column("Skipped", justify="right", style="dim")

    for kind in ItemKind:
        counts = report.counts(kind)
        table.add_row(kind.value, str(counts.inserted), str(counts.updated), str(counts.skipped))

    console.print(table)

    if report.up_to_date:
        console.print("[dim]Corpus already up to date[/dim]")

    for rejected in report.rejected:
        console.print(
            f"[yellow]Rejected[/yellow] {rejected.kind.value}[{rejected.index}]: "
            f"{rejected.error.get('message', '')}"
        )


@app.command()
def search(
    kind: ItemKind = typer.Argument(..., help="knowledge or examples"),
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(5, "--limit", "-n", help="Number of results"),
) -> None:
    """Search the indexed corpus."""
    asyncio.run(_search_async(kind, query, limit))


async def _search_async(kind: ItemKind, query: str, limit: int) -> None:
    settings = get_settings()

    engine = await create_search_engine(settings)
    try:
        if settings.search_backend == "fuzzy":
            knowledge, examples = load_corpus(settings.knowledge_path, settings.examples_path)
            await engine.load(knowledge, examples, source_name=settings.source_name)
        response = await engine.search(kind, query, limit)
    finally:
        await engine.close()

    if response.status == "error":
        console.print(
            Panel(
                escape(response.error["message"]) if response.error else "Search failed",
                title="Search Error",
                style="red",
            )
        )
        raise typer.Exit(1)

    console.print(f"\n[yellow]Query:[/yellow] {escape(query)}")
    console.print(f"[dim]{len(response.search_variations)} variations[/dim]\n")

    if not response.results:
        console.print("[dim]No results[/dim]")
        return

    for rank, hit in enumerate(response.results, 1):
        if kind is ItemKind.KNOWLEDGE:
            title, body = hit.highlighted_question, hit.highlighted_answer
        else:
            title, body = hit.highlighted_instruction, hit.highlighted_output
        console.print(
            Panel(
                _render_highlight(_truncate(body, 400)),
                title=f"{rank}. {_render_highlight(title)}",
                subtitle=f"relevance {hit.relevance_score:.3f}",
            )
        )


@app.command()
def boost(
    kind: ItemKind = typer.Argument(..., help="knowledge or examples"),
    query: str = typer.Argument(..., help="Search query"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Number of results"),
    primary_field_boost: float | None = typer.Option(
        None, "--primary-boost", help="Strong-match multiplier"
    ),
    code_boost: float | None = typer.Option(None, "--code-boost", help="Code-content term"),
) -> None:
    """Search with field and code boosts. Omitted options use the configured defaults."""
    overrides = {
        "limit": limit,
        "primary_field_boost": primary_field_boost,
        "code_boost": code_boost,
    }
    asyncio.run(_boost_async(kind, query, overrides))


async def _boost_async(kind: ItemKind, query: str, overrides: dict[str, float | None]) -> None:
    settings = get_settings()

    engine = await create_search_engine(settings)
    try:
        if settings.search_backend == "fuzzy":
            knowledge, examples = load_corpus(settings.knowledge_path, settings.examples_path)
            await engine.load(knowledge, examples, source_name=settings.source_name)
        try:
            options = engine.default_options.merged(**overrides)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        response = await engine.search_with_boost(kind, query, options)
    finally:
        await engine.close()

    if response.status == "error":
        console.print(
            Panel(
                escape(response.error["message"]) if response.error else "Boosted search failed",
                title="Search Error",
                style="red",
            )
        )
        raise typer.Exit(1)

    hits = response.results
    table = Table(title=f"Boosted: {escape(query)}")
    table.add_column("#", justify="right")
    table.add_column("Entry", style="cyan")
    table.add_column("Native", justify="right")
    table.add_column("Score", justify="right", style="green")

    for rank, hit in enumerate(hits, 1):
        key = hit.record.question if kind is ItemKind.KNOWLEDGE else hit.record.instruction
        table.add_row(
            str(rank),
            escape(_truncate(key, 80)),
            f"{hit.native_rank:.3f}",
            f"{hit.custom_score:.3f}",
        )

    console.print(table)


@app.command()
def status() -> None:
    """Show sync metadata and row counts."""
    asyncio.run(_status_async())


async def _status_async() -> None:
    settings = get_settings()

    engine = await create_search_engine(settings)
    try:
        metadata = await engine.metadata()
    finally:
        await engine.close()

    table = Table(title="Index Status")
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("backend", engine.name)
    table.add_row("database", str(settings.db_path))
    for key, value in metadata.model_dump().items():
        table.add_row(key, "-" if value is None else str(value))

    console.print(table)


@app.command()
def verify(
    rebuild: bool = typer.Option(False, "--rebuild", "-r", help="Rebuild the index if it diverged"),
) -> None:
    """Check the full-text index against its rows."""
    asyncio.run(_verify_async(rebuild))


async def _verify_async(rebuild: bool) -> None:
    from svelte5search.adapters.sqlite import SQLiteIndexStore
    from svelte5search.domains.search import load_synonyms

    settings = get_settings()
    store = SQLiteIndexStore(settings.db_path)

    try:
        await store.initialize(load_synonyms(settings).as_dict())
        try:
            await store.verify_index()
        except Svelte5SearchError as e:
            console.print(f"[red]Index inconsistent:[/red] {e.message}")
            if not rebuild:
                raise typer.Exit(1)
            await store.rebuild_index()
            await store.verify_index()
            console.print("[green]Index rebuilt[/green]")
            return
    finally:
        await store.close()

    console.print("[green]Index consistent[/green]")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting Svelte 5 Search API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "svelte5search.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from svelte5search import __version__

    console.print(f"Svelte 5 Search v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
