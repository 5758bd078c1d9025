"""Choice helpers for editors: parents, exclusions, and schema tags on notes."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any

from .config import Settings
from .parser import parse_tags
from .registry import SchemaRegistry


def _matches(name: str, query: str) -> bool:
    return query.lower() in name.lower()


def suggest_parents(registry: SchemaRegistry, name: str, query: str = "") -> list[str]:
    """Schemas `name` could extend (every other schema), sorted."""
    return [n for n in sorted(registry.names()) if n != name and _matches(n, query)]


def suggest_excludes(registry: SchemaRegistry, name: str, query: str = "") -> list[str]:
    """Inherited attribute names that `name` does not exclude yet.

    The query filters on the declaring schema's name.
    """
    definition = registry.lookup(name)
    if definition is None:
        return []
    excluded = set(definition.options.excludes)
    return [
        attr.name
        for attr in registry.resolved_attributes(name)
        if attr.schema != name and _matches(attr.schema, query) and attr.name not in excluded
    ]


def note_tags(metadata: dict[str, Any]) -> set[str]:
    return set(parse_tags(metadata.get("tags")))


def suggest_tag_schemas(registry: SchemaRegistry, existing_tags: set[str], query: str = "") -> list[str]:
    """Schemas that can still be added to a note as a tag.

    A note already carrying a folder-bound schema is not offered another one.
    """
    folder_names = {d.name for d in registry.folder_binding.values()}
    has_folder_schema = any(tag in folder_names for tag in existing_tags)
    return sorted(
        name
        for name in registry.tag_binding
        if name not in existing_tags
        and not (has_folder_schema and name in folder_names)
        and _matches(name, query)
    )


def suggest_new_note_schemas(registry: SchemaRegistry, query: str = "") -> list[str]:
    """Folder-bound schemas, for filing a new note."""
    return sorted(d.name for d in registry.folder_binding.values() if _matches(d.name, query))


def add_schema_tag(metadata: dict[str, Any], name: str) -> bool:
    """Add `name` to a note's tags in place; returns False if already present."""
    tags = metadata.get("tags")
    if not tags:
        metadata["tags"] = [name]
        return True
    if isinstance(tags, list):
        if name in tags:
            return False
        tags.append(name)
        return True
    tag_list = [t.strip() for t in str(tags).split(",")]
    if name in tag_list:
        return False
    metadata["tags"] = [*tag_list, name]
    return True


def target_path(registry: SchemaRegistry, name: str, note_path: Path, vault_path: Path) -> Path | None:
    """Where a note should live once tagged with `name`, if the schema binds a folder."""
    definition = registry.lookup(name)
    folder = definition.options.folder if definition is not None else None
    if not folder:
        return None
    new_path = vault_path / folder.strip("/") / note_path.name
    return None if new_path.resolve() == note_path.resolve() else new_path


def schemas_for_note(
    registry: SchemaRegistry,
    metadata: dict[str, Any],
    note_path: Path,
    vault_path: Path,
    settings: Settings,
) -> list[str]:
    """Schemas that apply to a note, in discovery order.

    A note is classified by its `fileClass` key, by tags naming a schema, and
    by the folder it lives in.
    """
    found: list[str] = []

    def add(name: str) -> None:
        if name in registry and name not in found:
            found.append(name)

    declared = metadata.get(settings.fileclass_alias)
    for name in parse_tags(declared):
        add(name)

    for tag in parse_tags(metadata.get("tags")):
        if tag in registry.tag_binding:
            add(tag)

    try:
        folder = str(PurePosixPath(*note_path.parent.relative_to(vault_path).parts))
    except ValueError:
        folder = None
    if folder:
        bound = registry.folder_binding.get(folder)
        if bound is not None:
            add(bound.name)

    return found
