"""Commands that write schema or note documents."""

from __future__ import annotations

import json
from pathlib import Path

import frontmatter
from rich.console import Console

from ..errors import SchemaError
from ..ordering import Direction, compute_order
from ..service import FileClassService
from ..store import write_document
from ..suggest import add_schema_tag, suggest_tag_schemas, note_tags, target_path


def run_order(vault_path: Path, name: str, *, write: bool = False, output_json: bool = False) -> int:
    """Compute a schema's display order, persisting it with `write`."""
    console = Console(stderr=True)
    with FileClassService(vault_path, persist_orders=write) as service:
        try:
            definition = service.registry.require(name)
            resolved = service.registry.resolved_attributes(name)
            result = compute_order(resolved, definition.options.fields_order)
            ordered = service.order(name)
        except SchemaError as e:
            console.print(f"[red]{e}[/red]")
            return 1
        failures = service.persister.flush_pending() if write else []

    if output_json:
        print(json.dumps({"name": name, "fieldsOrder": [a.id for a in ordered], "changed": result.changed}))
    else:
        for attr in ordered:
            print(f"{'  ' * attr.level}{attr.name} ({attr.id})")

    if result.malformed:
        console.print("Hierarchy is malformed; showing the stored order", style="bold red")
        return 1
    if failures:
        for issue in failures:
            console.print(str(issue), style="bold red")
        return 1
    if result.changed:
        console.print("fieldsOrder updated" if write else "fieldsOrder is stale (use --write)", style="yellow")
    return 0


def run_move(vault_path: Path, name: str, attribute_id: str, direction: Direction) -> int:
    console = Console(stderr=True)
    with FileClassService(vault_path) as service:
        try:
            ids = service.move_attribute(name, attribute_id, direction)
        except SchemaError as e:
            console.print(f"[red]{e}[/red]")
            return 1
    console.print(f"fieldsOrder: {', '.join(ids)}", style="dim")
    return 0


def run_extends(vault_path: Path, name: str, parent: str | None) -> int:
    console = Console(stderr=True)
    with FileClassService(vault_path) as service:
        try:
            service.set_parent(name, parent)
            ancestors = service.registry.ancestors_of(name)
        except SchemaError as e:
            console.print(f"[red]{e}[/red]")
            return 1
    console.print(f"{name} > {' > '.join(ancestors) or '(no parent)'}")
    return 0


def run_exclude(vault_path: Path, name: str, attribute_name: str, *, remove: bool = False) -> int:
    console = Console(stderr=True)
    with FileClassService(vault_path) as service:
        try:
            if remove:
                definition = service.remove_exclude(name, attribute_name)
            else:
                definition = service.add_exclude(name, attribute_name)
        except SchemaError as e:
            console.print(f"[red]{e}[/red]")
            return 1
    console.print(f"excludes: {', '.join(definition.options.excludes) or '(none)'}")
    return 0


def run_tag(vault_path: Path, note: Path, name: str, *, move: bool = True) -> int:
    """Tag a note with a schema and file it in the schema's folder."""
    console = Console(stderr=True)
    if not note.is_file():
        console.print(f"[red]No note at {note}[/red]")
        return 1

    with FileClassService(vault_path, persist_orders=False) as service:
        post = frontmatter.load(note)
        if name not in service.registry:
            console.print(f"[red]Unknown schema: {name}[/red]")
            return 1
        allowed = suggest_tag_schemas(service.registry, note_tags(post.metadata) - {name})
        if name not in allowed:
            console.print(f"[red]{name} cannot be added: the note already has a folder schema[/red]")
            return 1
        destination = target_path(service.registry, name, note, vault_path) if move else None

    if add_schema_tag(post.metadata, name):
        write_document(note, post)
        console.print(f"Tagged {note.name} with {name}")

    if destination is not None:
        if destination.exists():
            console.print(f"[red]Failed to move file: {destination} exists[/red]")
            return 1
        destination.parent.mkdir(parents=True, exist_ok=True)
        note.rename(destination)
        console.print(f"Moved to {destination.relative_to(vault_path)}")
    return 0
