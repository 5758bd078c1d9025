"""Effective attribute sets across the inheritance chain."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import SchemaIssue
from .models import AttributeRecord, SchemaDefinition

if TYPE_CHECKING:
    from .registry import SchemaRegistry

logger = logging.getLogger(__name__)


def _walk_chain(registry: "SchemaRegistry", name: str) -> list[SchemaDefinition]:
    """Definitions from `name` outwards, skipping gaps and stopping on a repeat."""
    definitions = []
    seen: set[str] = set()
    for schema_name in [name, *registry.ancestors_of(name)]:
        if schema_name in seen:
            message = f"Schema '{schema_name}' appears twice in the ancestor chain; chain truncated"
            logger.warning("%s: %s", name, message)
            registry.report(SchemaIssue("error", "cyclic-ancestry", name, message))
            break
        seen.add(schema_name)
        definition = registry.lookup(schema_name)
        if definition is not None:
            definitions.append(definition)
    return definitions


def _exclusion_steps(chain: list[SchemaDefinition]) -> list[set[str]]:
    """Excluded names in force when each schema of the chain is reached.

    The resolved schema filters with its own excludes; every ancestor filters
    with the excludes of everything nearer than itself.
    """
    if not chain:
        return []
    excluded = set(chain[0].options.excludes)
    steps = [set(excluded)]
    for definition in chain[1:]:
        steps.append(set(excluded))
        excluded |= set(definition.options.excludes)
    return steps


def resolve(registry: "SchemaRegistry", name: str) -> list[AttributeRecord]:
    """Compute the effective attributes of a schema.

    The nearest declaration of a name wins; inherited duplicates are dropped.
    Order is declaration order within a schema, chain order across schemas.
    """
    chain = _walk_chain(registry, name)
    result: list[AttributeRecord] = []
    seen_names: set[str] = set()

    for definition, excluded in zip(chain, _exclusion_steps(chain)):
        for attr in definition.attributes:
            if attr.name in excluded or attr.name in seen_names:
                continue
            seen_names.add(attr.name)
            result.append(attr)

    return result


def excluded_attributes(registry: "SchemaRegistry", name: str) -> list[AttributeRecord]:
    """Inherited attributes hidden from `name`, one per name.

    Includes attributes hidden by an intermediate ancestor, so a schema can
    show that a grandparent field is excluded even if its parent keeps it.
    """
    chain = _walk_chain(registry, name)
    hidden: list[AttributeRecord] = []
    hidden_names: set[str] = set()

    for definition, excluded in zip(chain[1:], _exclusion_steps(chain)[1:]):
        for attr in definition.attributes:
            if attr.name in excluded and attr.name not in hidden_names:
                hidden_names.add(attr.name)
                hidden.append(attr)

    return hidden


def resolve_icon(registry: "SchemaRegistry", name: str, default: str | None = None) -> str:
    """First icon set explicitly along the chain, else the configured default."""
    fallback = default or registry.settings.fileclass_icon
    for definition in _walk_chain(registry, name):
        icon = definition.options.icon
        if icon and icon != fallback:
            return icon
    return fallback
