"""CLI command implementations"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Awaitable, Callable, List, Optional, TypeVar

import typer

from docstore.config import Settings, load_config
from docstore.core.errors import DocsStoreError
from docstore.core.store import DocsStore
from docstore.log import setup_logging


T = TypeVar("T")

RootOption = Annotated[Optional[str], typer.Option("--root", help="Store root directory")]
CategoryOption = Annotated[Optional[str], typer.Option("--category", help="Filter by category")]
TagOption = Annotated[Optional[str], typer.Option("--tag", help="Filter by tag")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config and configure logging, with standard CLI error handling."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    setup_logging(settings.log_level, settings.log_format)
    return settings


def _run(settings: Settings, action: Callable[[DocsStore], Awaitable[T]]) -> T:
    """Run action against a one-shot store (auto-backup never starts) and tear it down."""
    async def _with_store() -> T:
        store = DocsStore.from_settings(settings)
        try:
            return await action(store)
        finally:
            await store.destroy()

    try:
        return asyncio.run(_with_store())
    except DocsStoreError as e:
        _fail(str(e))


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def save_cmd(
    url: Annotated[str, typer.Argument(help="Document URL")],
    file: Annotated[Optional[Path], typer.Option("--file", exists=True, dir_okay=False, help="Read content from file instead of stdin")] = None,
    title: Annotated[Optional[str], typer.Option("--title", help="Display title")] = None,
    name: Annotated[Optional[str], typer.Option("--name", help="Document name")] = None,
    description: Annotated[Optional[str], typer.Option("--description", help="Short description")] = None,
    category: Annotated[Optional[str], typer.Option("--category", help="Document category")] = None,
    tags: Annotated[Optional[List[str]], typer.Option("--tag", help="Tag (repeatable)")] = None,
    root: RootOption = None,
    ):
    """Store content and metadata for a document URL."""
    settings = _settings(overrides={"storage_path": root})
    content = file.read_text(encoding="utf-8") if file else typer.get_text_stream("stdin").read()
    metadata = {
        k: v for k, v in {
            "title": title, "name": name, "description": description,
            "category": category, "tags": tags or None,
        }.items() if v is not None
    }
    try:
        doc = _run(settings, lambda store: store.save_doc(url, content, metadata))
    except ValueError as e:
        _fail("Invalid metadata", e)
    typer.echo(doc.model_dump_json(indent=2))


def get_cmd(
    url: Annotated[str, typer.Argument(help="Document URL")],
    content: Annotated[bool, typer.Option("--content", help="Print the document body instead of metadata")] = False,
    root: RootOption = None,
    ):
    """Show a stored document."""
    settings = _settings(overrides={"storage_path": root})
    if content:
        body = _run(settings, lambda store: store.get_content(url))
        if body is None:
            _fail(f"Documentation not found: {url}")
        typer.echo(body)
        return
    doc = _run(settings, lambda store: store.get_doc(url))
    if doc is None:
        _fail(f"Documentation not found: {url}")
    typer.echo(doc.model_dump_json(indent=2))


def list_cmd(category: CategoryOption = None, tag: TagOption = None, root: RootOption = None):
    """List stored documents, optionally filtered by category or tag."""
    settings = _settings(overrides={"storage_path": root})
    try:
        docs = _run(settings, lambda store: store.list_docs(category=category, tag=tag))
    except ValueError as e:
        _fail("Invalid filter", e)
    _echo_json([d.model_dump(mode="json") for d in docs])


def search_cmd(
    query: Annotated[str, typer.Argument(help="Text to search for (case-insensitive)")],
    category: CategoryOption = None,
    tag: TagOption = None,
    root: RootOption = None,
    ):
    """Search document bodies."""
    settings = _settings(overrides={"storage_path": root})
    try:
        hits = _run(settings, lambda store: store.search_docs(query, category=category, tag=tag))
    except ValueError as e:
        _fail("Invalid filter", e)
    _echo_json([h.model_dump(mode="json") for h in hits])


def remove_cmd(url: Annotated[str, typer.Argument(help="Document URL")], root: RootOption = None):
    """Remove a stored document."""
    settings = _settings(overrides={"storage_path": root})
    if not _run(settings, lambda store: store.remove_doc(url)):
        _fail(f"Documentation not found: {url}")
    typer.echo(f"Removed documentation: {url}")


def backup_cmd(root: RootOption = None):
    """Snapshot the store and prune old snapshots."""
    settings = _settings(overrides={"storage_path": root})
    stamp = _run(settings, lambda store: store.create_backup())
    typer.echo(f"Created backup {stamp}")


def backups_cmd(root: RootOption = None):
    """List snapshot timestamps, oldest first."""
    settings = _settings(overrides={"storage_path": root})
    stamps = _run(settings, lambda store: store.list_backups())
    if not stamps:
        typer.echo("No backups found.")
        return
    for stamp in stamps:
        typer.echo(stamp)


def restore_cmd(
    timestamp: Annotated[Optional[str], typer.Argument(help="Snapshot timestamp; newest if omitted")] = None,
    root: RootOption = None,
    ):
    """Restore a snapshot over the live store."""
    settings = _settings(overrides={"storage_path": root})
    stamp = _run(settings, lambda store: store.restore_from_backup(timestamp))
    typer.echo(f"Restored backup {stamp}")
