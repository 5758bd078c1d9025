"""FileClass service: owns the registry for one vault and applies mutations."""

from __future__ import annotations

import logging
import secrets
import string
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from .config import Settings, load_settings
from .errors import MissingSchemaFile, SchemaError, SchemaIssue
from .models import AttributeRecord, SchemaChild, SchemaDefinition
from .ordering import Direction, HierarchyOrderer, moved_order
from .persistence import PersistenceQueue
from .registry import SchemaRegistry
from .resolver import excluded_attributes, resolve_icon
from .store import SchemaStore

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_letters + string.digits
ID_LENGTH = 6


class FileClassService:
    """Lifecycle and mutation entrypoint for a vault's schemas.

    Typical use:

        with FileClassService(vault_path) as service:
            service.order("book")

    Mutations write the schema document first and only update the registry
    once the write succeeded.
    """

    def __init__(
        self,
        vault_path: Path,
        settings: Settings | None = None,
        *,
        autoflush: bool = False,
        persist_orders: bool = True,
    ):
        self.vault_path = vault_path
        self.settings = settings or load_settings(vault_path)
        self.store = SchemaStore(vault_path, self.settings)
        self.registry = SchemaRegistry(self.settings)
        self.persister = PersistenceQueue(self._write_fields_order, on_issue=self.registry.report)
        self.orderer = HierarchyOrderer(self.registry, self.persister if persist_orders else None)
        self.load_failures: list[SchemaIssue] = []
        self._schema_locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._autoflush = autoflush
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> list[SchemaIssue]:
        """Load every schema document and register it. Returns load failures."""
        loaded, self.load_failures = self.store.load_all()
        for definition, issues in loaded:
            self.registry.register(definition.name, definition, issues)
        logger.info("Loaded %d schemas from %s", len(loaded), self.store.class_dir)
        if self._autoflush:
            self.persister.start(self.settings.flush_interval)
        self._started = True
        return list(self.load_failures)

    def shutdown(self) -> None:
        """Flush pending writes and drop all state."""
        self.persister.stop(flush=True)
        self.registry.clear()
        self._started = False

    def __enter__(self) -> "FileClassService":
        if not self._started:
            self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Change hooks
    # ------------------------------------------------------------------

    def on_document_changed(self, path: Path) -> str | None:
        """Re-read a changed document; returns the schema name if it was one."""
        name = self.store.name_for(path)
        if name is None:
            return None
        try:
            definition, issues = self.store.load(path)
        except MissingSchemaFile:
            self.registry.unregister(name)
            return name
        except (OSError, ValueError, yaml.YAMLError) as e:
            # Keep the last good revision until the document parses again
            logger.warning("Failed to reload %s: %s", path, e)
            self.registry.report(SchemaIssue("error", "missing-schema-file", name, f"Failed to load: {e}", path))
            return name

        self.registry.register(name, definition, issues)
        self.load_failures = [f for f in self.load_failures if f.schema != name]
        return name

    def on_document_deleted(self, path: Path) -> str | None:
        name = self.store.name_for(path)
        if name is not None:
            self.registry.unregister(name)
        return name

    def on_document_renamed(self, old_path: Path, new_path: Path) -> None:
        self.on_document_deleted(old_path)
        self.on_document_changed(new_path)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> list[AttributeRecord]:
        self.registry.require(name)
        return self.registry.resolved_attributes(name)

    def order(self, name: str) -> list[AttributeRecord]:
        return self.orderer.order(name)

    def excluded_attributes(self, name: str) -> list[AttributeRecord]:
        self.registry.require(name)
        return excluded_attributes(self.registry, name)

    def icon(self, name: str) -> str:
        self.registry.require(name)
        return resolve_icon(self.registry, name)

    def children(self, name: str) -> list[SchemaChild]:
        self.registry.require(name)
        return self.registry.children_of(name)

    def view_children(self, name: str, view: str | None) -> list[SchemaChild]:
        """Children listed by a saved view of `name`."""
        if not view:
            return []
        definition = self.registry.require(name)
        saved = next((v for v in definition.options.saved_views if v.name == view), None)
        wanted = saved.children if saved is not None else ()
        return [child for child in self.registry.children_of(name) if child.name in wanted]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _schema_lock(self, name: str) -> threading.RLock:
        """Lock serializing every write to one schema document."""
        with self._locks_guard:
            lock = self._schema_locks.get(name)
            if lock is None:
                lock = self._schema_locks[name] = threading.RLock()
            return lock

    def _commit(self, name: str, mutate) -> SchemaDefinition:
        with self._schema_lock(name):
            issues: list[SchemaIssue] = []
            definition = self.store.transact(name, mutate, issues)
            # Pending orders were computed from the previous revision
            self.persister.discard(name)
            self.registry.register(name, definition, issues)
            return definition

    def update_options(self, name: str, **changes: Any) -> SchemaDefinition:
        """Rewrite every option field of a schema in one transaction."""
        # Held across read and write so a concurrent fieldsOrder write is not lost
        with self._schema_lock(name):
            current = self.registry.require(name)
            options = replace(current.options, **changes)

            def mutate(metadata: dict[str, Any]) -> None:
                metadata.update(options.to_frontmatter())

            return self._commit(name, mutate)

    def set_parent(self, name: str, parent: str | None) -> SchemaDefinition:
        if parent is not None:
            if parent == name:
                raise SchemaError(f"schema '{name}' cannot extend itself")
            self.registry.require(parent)
        return self.update_options(name, parent=parent)

    def add_exclude(self, name: str, attribute_name: str) -> SchemaDefinition:
        current = self.registry.require(name)
        if attribute_name in current.options.excludes:
            return current
        inherited = set()
        for ancestor in self.registry.ancestors_of(name):
            inherited.update(attr.name for attr in self.registry.require(ancestor).attributes)
        if attribute_name not in inherited:
            raise SchemaError(f"'{attribute_name}' is not inherited by schema '{name}'")
        return self.update_options(name, excludes=(*current.options.excludes, attribute_name))

    def remove_exclude(self, name: str, attribute_name: str) -> SchemaDefinition:
        current = self.registry.require(name)
        excludes = tuple(n for n in current.options.excludes if n != attribute_name)
        return self.update_options(name, excludes=excludes)

    def new_attribute_id(self) -> str:
        existing = self.registry.all_attribute_ids()
        while True:
            candidate = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            if candidate not in existing:
                return candidate

    def _declaring_schema(self, name: str, attribute_id: str) -> str:
        for attr in self.registry.resolved_attributes(name):
            if attr.id == attribute_id:
                return attr.schema
        for attr in self.registry.require(name).attributes:
            if attr.id == attribute_id:
                return name
        raise SchemaError(f"schema '{name}' has no attribute with id '{attribute_id}'")

    def upsert_attribute(
        self,
        name: str,
        *,
        attribute_name: str,
        attribute_type: str,
        options: Any = None,
        command: dict[str, Any] | None = None,
        display: str | None = None,
        style: dict[str, Any] | None = None,
        path: str | None = None,
        attribute_id: str | None = None,
    ) -> AttributeRecord:
        """Add an attribute to `name`, or update one it declares or inherits.

        Inherited attributes are updated on the schema that declares them.
        """
        self.registry.require(name)
        target = self._declaring_schema(name, attribute_id) if attribute_id else name
        new_id = attribute_id or self.new_attribute_id()

        def mutate(metadata: dict[str, Any]) -> None:
            fields = metadata.get("fields")
            if not isinstance(fields, list):
                fields = []
            metadata["fields"] = fields
            entry = next((f for f in fields if isinstance(f, dict) and str(f.get("id")) == new_id), None)
            if entry is None:
                entry = {"id": new_id}
                fields.append(entry)
            entry["type"] = attribute_type
            if attribute_name:
                entry["name"] = attribute_name
            if options is not None:
                entry["options"] = options
            if command is not None:
                entry["command"] = command
            if display is not None:
                entry["display"] = display
            if style is not None:
                entry["style"] = style
            if path is not None:
                entry["path"] = path

        definition = self._commit(target, mutate)
        record = definition.attribute(new_id)
        if record is None:
            raise SchemaError(f"attribute '{attribute_name}' could not be parsed after writing")
        return record

    def remove_attribute(self, name: str, attribute_id: str) -> SchemaDefinition:
        target = self._declaring_schema(name, attribute_id)

        def mutate(metadata: dict[str, Any]) -> None:
            fields = metadata.get("fields")
            if isinstance(fields, list):
                metadata["fields"] = [f for f in fields if not (isinstance(f, dict) and str(f.get("id")) == attribute_id)]

        return self._commit(target, mutate)

    def move_attribute(self, name: str, attribute_id: str, direction: Direction) -> list[str]:
        """Swap an attribute with its nearest sibling and persist the order."""
        ordered = self.order(name)
        ids = moved_order(ordered, attribute_id, direction)
        if ids != list(self.registry.require(name).options.fields_order):
            self.update_options(name, fields_order=tuple(ids))
        return ids

    def _write_fields_order(self, name: str, fields_order: tuple[str, ...]) -> None:
        def mutate(metadata: dict[str, Any]) -> None:
            metadata["fieldsOrder"] = list(fields_order)

        self._commit(name, mutate)
