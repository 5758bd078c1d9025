"""
Schema issues as editor diagnostics.

Checks a single schema document, using the rest of the class folder as
context, so the buffer being edited is what gets resolved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import frontmatter
import yaml

from ..config import Settings, load_settings
from ..errors import SchemaIssue
from ..ordering import HierarchyOrderer
from ..parser import parse_schema
from ..registry import SchemaRegistry
from ..store import SchemaStore


@dataclass
class SchemaDiagnostic:
    """A single diagnostic for LSP."""

    line: int
    column: int
    length: int
    message: str
    severity: str  # "error", "warning", "info"
    kind: str


# Frontmatter key each issue kind points at
ISSUE_KEYS = {
    "cyclic-ancestry": "extends",
    "missing-schema-file": "extends",
    "invalid-version": "version",
    "legacy-version": "version",
    "malformed-hierarchy": "fields",
    "invalid-attribute": "fields",
    "persistence-failure": "fieldsOrder",
}


def _key_position(content: str, key: str) -> tuple[int, int]:
    """(line, length) of a top-level frontmatter key, or (0, 0)."""
    pattern = re.compile(rf"^{re.escape(key)}\s*:")
    for i, line in enumerate(content.split("\n")):
        if pattern.match(line):
            return i, len(line.rstrip())
    return 0, 0


def check_schema_document(
    file_path: Path,
    vault_path: Path,
    content: str | None = None,
    settings: Settings | None = None,
) -> list[SchemaDiagnostic]:
    """
    Check one schema document against the schemas around it.

    Args:
        file_path: Path of the schema document
        vault_path: Path to vault root
        content: Buffer content (if None, reads from disk)

    Returns:
        Diagnostics for this document (empty when it is not a schema document)
    """
    settings = settings or load_settings(vault_path)
    store = SchemaStore(vault_path, settings)
    name = store.name_for(file_path)
    if name is None:
        return []

    if content is None:
        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError:
            return []

    try:
        post = frontmatter.loads(content)
    except yaml.YAMLError as e:
        return [SchemaDiagnostic(0, 0, 3, f"Frontmatter does not parse: {e}", "error", "missing-schema-file")]

    registry = SchemaRegistry(settings)
    loaded, _ = store.load_all()
    for definition, issues in loaded:
        if definition.name != name:
            registry.register(definition.name, definition, issues)

    parse_issues: list[SchemaIssue] = []
    definition = parse_schema(name, post.metadata, settings, path=file_path, issues=parse_issues)
    registry.register(name, definition, parse_issues)
    HierarchyOrderer(registry).order(name)

    diagnostics = []
    for issue in registry.issues(name):
        line, length = _key_position(content, ISSUE_KEYS.get(issue.kind, ""))
        diagnostics.append(
            SchemaDiagnostic(
                line=line,
                column=0,
                length=length,
                message=issue.message,
                severity=issue.level,
                kind=issue.kind,
            )
        )
    return diagnostics
