"""Watch command - keep schemas loaded and report changes as they happen."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..service import FileClassService
from ..watcher import run_watch_loop


def run_watch(vault_path: Path, *, write_orders: bool = False) -> None:
    """
    Watch the class folder and re-resolve schemas on every change.

    This is a blocking command that runs until interrupted (Ctrl+C).
    With `write_orders`, stale `fieldsOrder` lists are rewritten in the background.
    """
    console = Console(stderr=True)
    service = FileClassService(vault_path, autoflush=write_orders, persist_orders=write_orders)
    failures = service.start()

    console.print(f"[bold]Watching[/bold] {service.store.class_dir}")
    console.print(f"  Schemas: {len(service.registry)}")
    console.print(f"  Order rewrites: {'on' if write_orders else 'off'}")
    for failure in failures:
        console.print(f"[red]{failure}[/red]")
    console.print()
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    change_count = 0

    def on_change(kind: str, name: str) -> None:
        nonlocal change_count
        change_count += 1
        timestamp = datetime.now().strftime("%H:%M:%S")
        if kind == "deleted" or name not in service.registry:
            console.print(f"[dim]{timestamp}[/dim] - {name}")
            return
        attributes = service.order(name)
        console.print(f"[dim]{timestamp}[/dim] ~ {name} ({len(attributes)} attributes)")
        for issue in service.registry.issues(name):
            if issue.level != "info":
                console.print(f"    [yellow]{issue}[/yellow]")
        for child in service.registry.children_of(name):
            console.print(f"    [dim]dependent: {child.name}[/dim]")

    try:
        run_watch_loop(service, on_change=on_change)
    finally:
        service.shutdown()
        console.print()
        console.print(f"[bold]Stopped.[/bold] Applied {change_count} changes.")
