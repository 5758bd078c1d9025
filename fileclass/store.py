"""Schema document loading and transactional writes."""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Callable

import frontmatter
import yaml

from .config import Settings
from .errors import MissingSchemaFile, PersistenceFailure, SchemaIssue
from .models import SchemaDefinition
from .parser import parse_schema, schema_name_from_path
from .version import bump_version

logger = logging.getLogger(__name__)

# Mutates a copy of a document's frontmatter in place
Transaction = Callable[[dict[str, Any]], None]


def write_document(path: Path, post: frontmatter.Post) -> None:
    """Replace a document in one step (temp file, then rename)."""
    text = frontmatter.dumps(post, sort_keys=False)
    if not text.endswith("\n"):
        text += "\n"
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


class SchemaStore:
    """Reads schema documents from the class folder and writes them back."""

    def __init__(self, vault_path: Path, settings: Settings | None = None):
        self.vault_path = vault_path
        self.settings = settings or Settings()

    @property
    def class_dir(self) -> Path:
        return self.settings.class_dir(self.vault_path)

    def path_for(self, name: str) -> Path:
        return self.class_dir / f"{name}.md"

    def name_for(self, path: Path) -> str | None:
        return schema_name_from_path(path, self.class_dir)

    def load(self, path: Path) -> tuple[SchemaDefinition, list[SchemaIssue]]:
        """Load one schema document."""
        name = self.name_for(path)
        if name is None:
            raise ValueError(f"{path} is not a schema document under {self.class_dir}")
        if not path.is_file():
            raise MissingSchemaFile(name, path)

        post = frontmatter.load(path)
        issues: list[SchemaIssue] = []
        definition = parse_schema(name, post.metadata, self.settings, path=path, issues=issues)
        return definition, issues

    def read(self, name: str) -> SchemaDefinition:
        definition, _ = self.load(self.path_for(name))
        return definition

    def load_all(self) -> tuple[list[tuple[SchemaDefinition, list[SchemaIssue]]], list[SchemaIssue]]:
        """Load every schema document; one unreadable document never stops the rest.

        Returns (loaded definitions with their parse issues, load failures).
        """
        loaded = []
        failures = []
        if not self.class_dir.is_dir():
            logger.warning("Class folder %s does not exist", self.class_dir)
            return loaded, failures

        for md_file in sorted(self.class_dir.rglob("*.md")):
            if self.name_for(md_file) is None:
                continue
            try:
                loaded.append(self.load(md_file))
            except (OSError, ValueError, yaml.YAMLError) as e:
                name = self.name_for(md_file) or md_file.stem
                logger.warning("Failed to load %s: %s", md_file, e)
                failures.append(SchemaIssue("error", "missing-schema-file", name, f"Failed to load: {e}", md_file))

        return loaded, failures

    def transact(
        self,
        name: str,
        mutate: Transaction,
        issues: list[SchemaIssue] | None = None,
    ) -> SchemaDefinition:
        """Apply `mutate` to a schema's frontmatter and bump its version, in one write.

        Either every change lands (including the version) or PersistenceFailure
        is raised and the document is left as it was. Parse issues of the new
        revision are appended to `issues` when given.
        """
        path = self.path_for(name)
        if not path.is_file():
            raise MissingSchemaFile(name, path)

        try:
            post = frontmatter.load(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise PersistenceFailure(name, f"cannot read {path.name}: {e}") from e

        metadata = copy.deepcopy(post.metadata)
        mutate(metadata)
        metadata["version"] = bump_version(post.metadata.get("version"))
        post.metadata = metadata

        try:
            write_document(path, post)
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceFailure(name, str(e)) from e

        logger.info("Updated schema %s (version %s)", name, metadata["version"])
        return parse_schema(name, metadata, self.settings, path=path, issues=issues)

    def create(self, name: str, metadata: dict[str, Any] | None = None) -> SchemaDefinition:
        """Write a new schema document at the current format version."""
        path = self.path_for(name)
        metadata = {"fields": [], **(metadata or {})}
        metadata.setdefault("version", bump_version(None))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            write_document(path, frontmatter.Post("", **metadata))
        except OSError as e:
            raise PersistenceFailure(name, str(e)) from e
        return parse_schema(name, metadata, self.settings, path=path)
