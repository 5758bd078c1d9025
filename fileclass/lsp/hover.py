"""
Hover information for schema documents.

Hovering an `extends:` value shows what the parent contributes.
"""

from __future__ import annotations

from ..registry import SchemaRegistry
from ..resolver import excluded_attributes


def get_hover_info(registry: SchemaRegistry, name: str) -> str | None:
    """
    Markdown summary of a schema: ancestry and resolved attributes.

    Returns None if the schema is not registered.
    """
    definition = registry.lookup(name)
    if definition is None:
        return None

    lines = [f"## {name}", ""]

    ancestors = registry.ancestors_of(name)
    if ancestors:
        lines.append(f"**Extends:** {' > '.join(f'`{a}`' for a in ancestors)}")
        lines.append("")

    attributes = registry.resolved_attributes(name)
    if attributes:
        lines.append("**Attributes:**")
        for attr in attributes[:15]:
            origin = "" if attr.schema == name else f" *(from {attr.schema})*"
            lines.append(f"{'  ' * attr.level}- `{attr.name}` {attr.type}{origin}")
        if len(attributes) > 15:
            lines.append(f"- ... and {len(attributes) - 15} more")
    else:
        lines.append("**Attributes:** none")
    lines.append("")

    hidden = excluded_attributes(registry, name)
    if hidden:
        lines.append(f"**Excluded:** {', '.join(f'`{a.name}`' for a in hidden)}")
        lines.append("")

    if definition.path is not None:
        lines.append(f"*{definition.path.name}*")

    return "\n".join(lines)
