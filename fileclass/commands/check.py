"""Check command - report degraded schema configurations."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..errors import SchemaIssue
from ..service import FileClassService


def collect_issues(service: FileClassService) -> list[SchemaIssue]:
    """Issues for every schema, after exercising resolution and ordering."""
    for name in service.registry.names():
        # Ordering surfaces malformed hierarchies; nothing is written here
        service.orderer.order(name)

    results = list(service.load_failures)
    results.extend(service.registry.issues())
    for name in service.registry.migration_candidates():
        definition = service.registry.lookup(name)
        results.append(
            SchemaIssue(
                "warning",
                "legacy-version",
                name,
                "Legacy schema needs migration for this application version",
                definition.path if definition else None,
            )
        )
    return results


def run_check(
    vault_path: Path,
    *,
    fail_on: str = "error",
    output_json: bool = False,
    show_info: bool = False,
) -> int:
    """Report issues across all schemas.

    Returns:
        Exit code (0 = success, 1 = failures found)
    """
    console = Console(stderr=True)
    console.print(f"Loading schemas from {vault_path}...", style="dim")

    with FileClassService(vault_path, persist_orders=False) as service:
        results = collect_issues(service)
        schema_count = len(service.registry)

    level_order = {"error": 0, "warning": 1, "info": 2}
    results.sort(key=lambda r: (level_order.get(r.level, 99), r.schema))
    counts = {"error": 0, "warning": 0, "info": 0}
    for r in results:
        counts[r.level] = counts.get(r.level, 0) + 1

    if output_json:
        output = {
            "issues": [r.to_dict() for r in results],
            "summary": {"schemas": schema_count, **counts},
        }
        print(json.dumps(output, indent=2))
    else:
        shown = [r for r in results if show_info or r.level != "info"]
        if shown:
            table = Table(title="Schema issues")
            table.add_column("Level")
            table.add_column("Kind")
            table.add_column("Schema", style="bold")
            table.add_column("Message")
            styles = {"error": "red", "warning": "yellow", "info": "dim"}
            for r in shown:
                style = styles.get(r.level, "")
                table.add_row(f"[{style}]{r.level}[/{style}]", r.kind, r.schema, r.message)
            Console().print(table)
        console.print(
            f"{counts['error']} errors, {counts['warning']} warnings, {counts['info']} info",
            style="bold red" if counts["error"] else "bold green",
        )

    if fail_on == "warning":
        return 1 if counts["error"] or counts["warning"] else 0
    return 1 if counts["error"] else 0
