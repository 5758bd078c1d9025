"""Read-only schema commands: list, show, children."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from ..errors import SchemaError
from ..models import AttributeRecord
from ..service import FileClassService
from ..version import classify


def _attribute_to_dict(attr: AttributeRecord) -> dict:
    return {
        "id": attr.id,
        "name": attr.name,
        "type": attr.type,
        "schema": attr.schema,
        "path": list(attr.path),
        "level": attr.level,
    }


def run_list(vault_path: Path, *, output_json: bool = False) -> int:
    """List every schema with its parent, attribute count and version status."""
    console = Console()
    with FileClassService(vault_path, persist_orders=False) as service:
        rows = []
        for definition in sorted(service.registry.definitions(), key=lambda d: d.name):
            rows.append(
                {
                    "name": definition.name,
                    "extends": definition.parent,
                    "ancestors": service.registry.ancestors_of(definition.name),
                    "attributes": len(service.registry.resolved_attributes(definition.name)),
                    "own_attributes": len(definition.attributes),
                    "version": definition.version,
                    "status": classify(definition.version).status.value,
                    "folder": definition.options.folder,
                    "icon": service.icon(definition.name),
                }
            )

    if output_json:
        print(json.dumps(rows, indent=2))
        return 0

    if not rows:
        console.print("[dim]No schemas found.[/dim]")
        return 0

    table = Table(title="FileClasses")
    table.add_column("Name", style="bold")
    table.add_column("Extends")
    table.add_column("Attributes", justify="right")
    table.add_column("Version")
    table.add_column("Folder")
    for row in rows:
        chain = " > ".join(row["ancestors"]) if row["ancestors"] else ""
        version = row["version"] or "-"
        if row["status"] != "current":
            version = f"[yellow]{version} ({row['status']})[/yellow]"
        table.add_row(
            row["name"],
            chain,
            f"{row['attributes']} ({row['own_attributes']} own)",
            version,
            row["folder"] or "",
        )
    console.print(table)
    return 0


def run_show(vault_path: Path, name: str, *, output_json: bool = False) -> int:
    """Show a schema's attributes in display order, nested by path."""
    console = Console()
    with FileClassService(vault_path, persist_orders=False) as service:
        try:
            ordered = service.order(name)
            excluded = service.excluded_attributes(name)
            ancestors = service.registry.ancestors_of(name)
        except SchemaError as e:
            console.print(f"[red]{e}[/red]")
            return 1
        issues = service.registry.issues(name)

    if output_json:
        output = {
            "name": name,
            "ancestors": ancestors,
            "attributes": [_attribute_to_dict(a) for a in ordered],
            "excluded": [_attribute_to_dict(a) for a in excluded],
            "issues": [i.to_dict() for i in issues],
        }
        print(json.dumps(output, indent=2))
        return 0

    title = name if not ancestors else f"{name} [dim](extends {' > '.join(ancestors)})[/dim]"
    tree = Tree(f"[bold]{title}[/bold]")
    nodes: dict[str, Tree] = {}
    for attr in ordered:
        label = f"{attr.name} [dim]{attr.type} · {attr.id}[/dim]"
        if attr.schema != name:
            label += f" [cyan](from {attr.schema})[/cyan]"
        parent = nodes.get(attr.parent_id) if attr.parent_id else None
        nodes[attr.id] = (parent or tree).add(label)
    console.print(tree)

    if excluded:
        console.print(f"[dim]Excluded: {', '.join(a.name for a in excluded)}[/dim]")
    for issue in issues:
        if issue.level != "info":
            console.print(f"[yellow]{issue}[/yellow]")
    return 0


def run_children(vault_path: Path, name: str) -> int:
    """List schemas inheriting from `name`."""
    console = Console()
    with FileClassService(vault_path, persist_orders=False) as service:
        try:
            children = service.children(name)
        except SchemaError as e:
            console.print(f"[red]{e}[/red]")
            return 1

    if not children:
        console.print(f"[dim]No schema extends {name}.[/dim]")
        return 0

    for child in sorted(children, key=lambda c: c.path):
        console.print(" > ".join([name, *child.path]))
    return 0
