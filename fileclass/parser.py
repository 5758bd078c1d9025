"""Frontmatter parsing for schema documents.

Schema documents are hand edited, so every field is coerced here and the
rest of the package only ever sees typed records.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any

from .config import Settings
from .errors import SchemaIssue
from .models import PATH_SEPARATOR, AttributeRecord, SavedView, SchemaDefinition, SchemaOptions

logger = logging.getLogger(__name__)


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip() != "":
        return value.strip()
    return None


def parse_excludes(value: Any) -> list[str]:
    """Extract excluded attribute names.

    Frontmatter excludes can be:
    - List of names: ["status", "owner"]
    - Comma-separated string: "status, owner"
    """
    if isinstance(value, list):
        names = [str(v).strip() for v in value if v is not None]
    elif isinstance(value, str):
        names = [part.strip() for part in value.split(",")]
    else:
        return []
    return [name for name in names if name]


def parse_path(value: Any) -> tuple[str, ...]:
    """Parse an attribute path ("id1____id2" or a list of ids)."""
    if isinstance(value, str):
        parts = value.split(PATH_SEPARATOR)
    elif isinstance(value, list):
        parts = [str(v) for v in value if v is not None]
    else:
        return ()
    return tuple(part.strip() for part in parts if part.strip())


def parse_tags(value: Any) -> list[str]:
    """Parse a frontmatter tags value into bare tag names."""
    if isinstance(value, list):
        tags = [str(t) for t in value if t is not None]
    elif isinstance(value, str):
        tags = value.split(",")
    else:
        return []
    return [t.strip().lstrip("#") for t in tags if t.strip().lstrip("#")]


def parse_attribute(raw: Any, schema: str) -> AttributeRecord | None:
    """Parse one `fields` entry; returns None when it has no id or name."""
    if not isinstance(raw, dict):
        return None

    attribute_id = raw.get("id")
    name = raw.get("name")
    if attribute_id is None or str(attribute_id).strip() == "" or not isinstance(name, str) or not name.strip():
        return None

    command = raw.get("command")
    style = raw.get("style")
    return AttributeRecord(
        id=str(attribute_id).strip(),
        name=name.strip(),
        type=str(raw.get("type") or "Input"),
        schema=schema,
        options=raw.get("options"),
        command=command if isinstance(command, dict) else None,
        display=_optional_str(raw.get("display")),
        style=style if isinstance(style, dict) else None,
        path=parse_path(raw.get("path")),
    )


def parse_saved_views(value: Any) -> tuple[SavedView, ...]:
    if not isinstance(value, list):
        return ()
    views = []
    for raw in value:
        raw = _coerce_dict(raw)
        name = _optional_str(raw.get("name"))
        if name is None:
            continue
        children = raw.get("children")
        children = tuple(str(c) for c in children) if isinstance(children, list) else ()
        views.append(SavedView(name=name, children=children, config=dict(raw)))
    return tuple(views)


def parse_options(metadata: dict[str, Any], settings: Settings) -> SchemaOptions:
    """Parse option fields, falling back to configured defaults."""
    limit = metadata.get("limit")
    if not isinstance(limit, int) or isinstance(limit, bool):
        limit = settings.table_view_max_records

    icon = metadata.get("icon")
    if not isinstance(icon, str):
        icon = settings.fileclass_icon

    fields_order = metadata.get("fieldsOrder")
    fields_order = tuple(str(i) for i in fields_order if i is not None) if isinstance(fields_order, list) else ()

    return SchemaOptions(
        limit=limit,
        icon=icon,
        parent=_optional_str(metadata.get("extends")),
        excludes=tuple(parse_excludes(metadata.get("excludes"))),
        saved_views=parse_saved_views(metadata.get("savedViews")),
        favorite_view=_optional_str(metadata.get("favoriteView")),
        fields_order=fields_order,
        folder=_optional_str(metadata.get("folder")),
    )


def parse_schema(
    name: str,
    metadata: dict[str, Any],
    settings: Settings,
    path: Path | None = None,
    issues: list[SchemaIssue] | None = None,
) -> SchemaDefinition:
    """Parse a schema document's frontmatter into a SchemaDefinition.

    Malformed `fields` entries are skipped; when `issues` is given they are
    reported there as well as logged.
    """
    metadata = _coerce_dict(metadata)

    attributes = []
    raw_fields = metadata.get("fields")
    for index, raw in enumerate(raw_fields if isinstance(raw_fields, list) else []):
        attr = parse_attribute(raw, name)
        if attr is None:
            message = f"Skipping field #{index + 1}: an attribute needs an id and a name"
            logger.warning("%s: %s", name, message)
            if issues is not None:
                issues.append(SchemaIssue("warning", "invalid-attribute", name, message, path))
            continue
        attributes.append(attr)

    version = metadata.get("version")
    return SchemaDefinition(
        name=name,
        options=parse_options(metadata, settings),
        attributes=tuple(attributes),
        version=str(version).strip() if version is not None else None,
        path=path,
    )


def schema_name_from_path(path: Path, class_dir: Path) -> str | None:
    """Derive a schema name from a document inside the class folder.

    Nested documents keep their subfolder: Fileclasses/work/task.md -> "work/task".
    """
    if path.suffix.lower() != ".md":
        return None
    try:
        rel = path.relative_to(class_dir)
    except ValueError:
        return None
    if any(part.startswith(".") for part in rel.parts):
        return None
    return str(PurePosixPath(*rel.parts).with_suffix(""))
