"""Error types and reportable schema issues."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

IssueKind = Literal[
    "missing-schema-file",
    "cyclic-ancestry",
    "malformed-hierarchy",
    "invalid-version",
    "invalid-attribute",
    "legacy-version",
    "persistence-failure",
]


class SchemaError(Exception):
    """Base class for schema errors raised across the package."""


class MissingSchemaFile(SchemaError):
    """A schema name has no backing document at the expected location."""

    def __init__(self, name: str, path: Path | None = None):
        self.name = name
        self.path = path
        where = f" in <{path.parent}>" if path is not None else ""
        super().__init__(f"no file named <{name}.md>{where}")


class PersistenceFailure(SchemaError):
    """Writing a schema document failed; nothing was applied."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"failed to update schema '{name}': {reason}")


@dataclass
class SchemaIssue:
    """A degraded-but-usable condition found on one schema."""

    level: Literal["error", "warning", "info"]
    kind: IssueKind
    schema: str
    message: str
    path: Path | None = None

    def __str__(self) -> str:
        loc = self.path.name if self.path is not None else self.schema
        return f"{self.level.upper()}: [{self.kind}] {loc} - {self.message}"

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "kind": self.kind,
            "schema": self.schema,
            "message": self.message,
            "path": str(self.path) if self.path is not None else None,
        }
