"""Display order reconstruction for schema attributes.

The persisted `fieldsOrder` is only a hint: attributes may have been added,
removed or re-parented since it was written. Ordering happens in three steps:

1. Seed: sort by position in the hint; unknown ids keep their relative order
   after every known one.
2. Rebuild: place root attributes, then repeatedly insert each child right
   after its parent's subtree, one child per parent per pass.
3. Persist: if the resulting id sequence differs from the hint, ask for it to
   be written back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, Sequence

from .errors import SchemaIssue
from .models import AttributeRecord

if TYPE_CHECKING:
    from .registry import SchemaRegistry

logger = logging.getLogger(__name__)

Direction = Literal["upwards", "downwards"]


class OrderPersister(Protocol):
    def request(self, name: str, fields_order: Sequence[str]) -> bool: ...

    def pending(self, name: str) -> tuple[str, ...] | None: ...


@dataclass
class OrderResult:
    attributes: list[AttributeRecord]
    changed: bool  # id sequence differs from the preset
    malformed: bool = False

    @property
    def ids(self) -> list[str]:
        return [attr.id for attr in self.attributes]


def seed_order(attributes: Sequence[AttributeRecord], preset: Sequence[str]) -> list[AttributeRecord]:
    """Sort by preset position, then by original position."""
    position = {}
    for index, attribute_id in enumerate(preset):
        position.setdefault(attribute_id, index)
    missing = len(attributes) + len(preset)
    keyed = sorted(
        enumerate(attributes),
        key=lambda item: (position.get(item[1].id, missing), item[0]),
    )
    return [attr for _, attr in keyed]


def rebuild_hierarchy(seeded: Sequence[AttributeRecord]) -> list[AttributeRecord] | None:
    """Nest children under their parents, keeping seeded order among siblings.

    Returns None when some attribute can never be placed (dangling or cyclic path).
    """
    placed = [index for index, attr in enumerate(seeded) if attr.is_root]
    unplaced = [index for index, attr in enumerate(seeded) if not attr.is_root]

    while unplaced:
        progress = False
        for parent_index in list(placed):
            parent = seeded[parent_index]
            child_index = next((i for i in unplaced if seeded[i].parent_id == parent.id), None)
            if child_index is None:
                continue

            position = placed.index(parent_index)
            insert_at = len(placed)
            for offset, other in enumerate(placed[position + 1 :], start=position + 1):
                if seeded[other].level <= parent.level:
                    insert_at = offset
                    break

            placed.insert(insert_at, child_index)
            unplaced.remove(child_index)
            progress = True

        if not progress:
            return None

    return [seeded[index] for index in placed]


def compute_order(attributes: Sequence[AttributeRecord], preset: Sequence[str]) -> OrderResult:
    seeded = seed_order(attributes, preset)
    rebuilt = rebuild_hierarchy(seeded)
    if rebuilt is None:
        return OrderResult(attributes=seeded, changed=False, malformed=True)
    ids = [attr.id for attr in rebuilt]
    return OrderResult(attributes=rebuilt, changed=ids != list(preset))


def _subtree_end(attributes: Sequence[AttributeRecord], index: int) -> int:
    """Index just past the attribute at `index` and its nested attributes."""
    level = attributes[index].level
    end = index + 1
    while end < len(attributes) and attributes[end].level > level:
        end += 1
    return end


def moved_order(attributes: Sequence[AttributeRecord], attribute_id: str, direction: Direction) -> list[str]:
    """Swap an attribute, with its nested attributes, and its nearest sibling in `direction`.

    `attributes` must already be in display order. Returns the new id sequence,
    unchanged when there is nothing to swap with.
    """
    ids = [attr.id for attr in attributes]
    start = next((i for i, attr in enumerate(attributes) if attr.id == attribute_id), None)
    if start is None:
        return ids

    this = attributes[start]
    end = _subtree_end(attributes, start)
    if direction == "upwards":
        for j in range(start - 1, -1, -1):
            if attributes[j].level < this.level:
                break
            if attributes[j].path == this.path:
                return ids[:j] + ids[start:end] + ids[j:start] + ids[end:]
        return ids

    if end < len(attributes) and attributes[end].path == this.path:
        sibling_end = _subtree_end(attributes, end)
        return ids[:start] + ids[end:sibling_end] + ids[start:end] + ids[sibling_end:]
    return ids


class HierarchyOrderer:
    """Produces display orders and requests `fieldsOrder` writes on change."""

    def __init__(self, registry: "SchemaRegistry", persister: OrderPersister | None = None):
        self.registry = registry
        self.persister = persister

    def order(
        self,
        name: str,
        resolved: Sequence[AttributeRecord] | None = None,
        preset: Sequence[str] | None = None,
    ) -> list[AttributeRecord]:
        definition = self.registry.require(name)
        if resolved is None:
            resolved = self.registry.resolved_attributes(name)
        if preset is None:
            preset = definition.options.fields_order

        result = compute_order(resolved, preset)
        if result.malformed:
            message = "Impossible to restore field hierarchy, check the fileclass configuration"
            logger.error("%s: %s", name, message)
            self.registry.report(SchemaIssue("error", "malformed-hierarchy", name, message, definition.path))
            return result.attributes

        self.registry.clear_reports(name, "malformed-hierarchy")
        if result.changed and self.persister is not None:
            ids = tuple(result.ids)
            if self.persister.pending(name) != ids:
                self.persister.request(name, ids)
        return result.attributes

    def sorted_root_attributes(self, name: str) -> list[AttributeRecord]:
        return [attr for attr in self.order(name) if attr.is_root]
