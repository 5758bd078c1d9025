"""Data models for FileClass schemas and their attributes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

# Separator used when an attribute path is persisted as a single string
PATH_SEPARATOR = "____"


@dataclass(frozen=True)
class AttributeRecord:
    """One attribute declared by a schema.

    Records are immutable; editing an attribute produces a new schema revision.
    """

    id: str
    name: str
    type: str
    schema: str  # name of the declaring schema
    options: Any = None
    command: dict[str, Any] | None = None
    display: str | None = None
    style: dict[str, Any] | None = None
    path: tuple[str, ...] = ()  # ancestor attribute ids, outermost first

    @property
    def level(self) -> int:
        return len(self.path)

    @property
    def is_root(self) -> bool:
        return not self.path

    @property
    def parent_id(self) -> str | None:
        """Id of the attribute this one is nested under."""
        return self.path[-1] if self.path else None

    @property
    def encoded_path(self) -> str:
        return PATH_SEPARATOR.join(self.path)

    def to_frontmatter(self) -> dict[str, Any]:
        """Serialize to the `fields` entry shape of a schema document."""
        d: dict[str, Any] = {"name": self.name, "type": self.type, "id": self.id}
        if self.options is not None:
            d["options"] = self.options
        if self.command is not None:
            d["command"] = self.command
        if self.display is not None:
            d["display"] = self.display
        if self.style is not None:
            d["style"] = self.style
        if self.path:
            d["path"] = self.encoded_path
        return d


@dataclass(frozen=True)
class SavedView:
    """A named table view configuration stored on a schema."""

    name: str
    children: tuple[str, ...] = ()  # child schema names shown with this view
    config: dict[str, Any] = field(default_factory=dict)  # raw entry, round-tripped


@dataclass(frozen=True)
class SchemaOptions:
    """Display and inheritance options of a schema."""

    limit: int
    icon: str
    parent: str | None = None  # name of the schema this one extends
    excludes: tuple[str, ...] = ()  # inherited attribute names hidden by this schema
    saved_views: tuple[SavedView, ...] = ()
    favorite_view: str | None = None
    fields_order: tuple[str, ...] = ()  # attribute ids in display order
    folder: str | None = None

    def to_frontmatter(self) -> dict[str, Any]:
        """Serialize to frontmatter keys.

        Empty values are written as null so stale keys are cleared.
        """
        return {
            "limit": self.limit,
            "icon": self.icon or "file-spreadsheet",
            "excludes": list(self.excludes) if self.excludes else None,
            "extends": self.parent or None,
            "savedViews": [view.config or {"name": view.name} for view in self.saved_views],
            "favoriteView": self.favorite_view or None,
            "fieldsOrder": list(self.fields_order),
            "folder": self.folder or None,
        }


@dataclass(frozen=True)
class SchemaDefinition:
    """A parsed schema document: one revision of a FileClass."""

    name: str
    options: SchemaOptions
    attributes: tuple[AttributeRecord, ...] = ()
    version: str | None = None
    path: Path | None = None

    @property
    def parent(self) -> str | None:
        return self.options.parent

    def attribute(self, attribute_id: str) -> AttributeRecord | None:
        for attr in self.attributes:
            if attr.id == attribute_id:
                return attr
        return None

    def with_options(self, **changes: Any) -> "SchemaDefinition":
        return replace(self, options=replace(self.options, **changes))


@dataclass(frozen=True)
class SchemaChild:
    """A descendant of a schema, with the names leading down to it."""

    name: str
    path: tuple[str, ...]  # from the direct child of the ancestor to `name`
    definition: SchemaDefinition
