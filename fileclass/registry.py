"""Process-wide index of schemas and their derived maps."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from .config import Settings
from .errors import MissingSchemaFile, SchemaIssue
from .models import AttributeRecord, SchemaChild, SchemaDefinition
from .resolver import resolve
from .version import VersionStatus, classify, is_valid_version, needs_migration

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Schemas by name, plus ancestor chains, resolved attributes and bindings.

    All mutations rebuild the derived maps into fresh dicts and swap them in
    under the lock, so readers see either the old state or the new one.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self._lock = threading.RLock()
        self._by_name: dict[str, SchemaDefinition] = {}
        self._ancestors: dict[str, tuple[str, ...]] = {}
        self._resolved: dict[str, tuple[AttributeRecord, ...]] = {}
        self._tag_binding: dict[str, SchemaDefinition] = {}
        self._folder_binding: dict[str, SchemaDefinition] = {}
        # Issues derived from the current definitions (chains, versions)
        self._derived_issues: dict[str, list[SchemaIssue]] = {}
        # Issues handed in by loaders and reported by resolver/orderer/writers
        self._reported: dict[str, list[SchemaIssue]] = {}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def register(
        self,
        name: str,
        definition: SchemaDefinition,
        issues: list[SchemaIssue] | None = None,
    ) -> None:
        """Insert or replace a schema; dependents observe it on their next read."""
        with self._lock:
            by_name = dict(self._by_name)
            by_name[name] = definition
            self._reported[name] = list(issues or [])
            self._swap(by_name, touched=name)
        logger.debug("Registered schema %s", name)

    def unregister(self, name: str) -> None:
        """Drop a schema and everything derived from it."""
        with self._lock:
            if name not in self._by_name:
                return
            by_name = dict(self._by_name)
            del by_name[name]
            self._reported.pop(name, None)
            self._swap(by_name, touched=name)
        logger.debug("Unregistered schema %s", name)

    def clear(self) -> None:
        with self._lock:
            self._reported = {}
            self._swap({}, touched=None)

    def report(self, issue: SchemaIssue) -> None:
        """Record a condition found while using a schema (deduplicated)."""
        with self._lock:
            existing = self._reported.setdefault(issue.schema, [])
            if any(i.kind == issue.kind and i.message == issue.message for i in existing):
                return
            existing.append(issue)

    def clear_reports(self, name: str, kind: str | None = None) -> None:
        with self._lock:
            if kind is None:
                self._reported.pop(name, None)
            elif name in self._reported:
                self._reported[name] = [i for i in self._reported[name] if i.kind != kind]

    def _swap(self, by_name: dict[str, SchemaDefinition], touched: str | None) -> None:
        ancestors: dict[str, tuple[str, ...]] = {}
        derived_issues: dict[str, list[SchemaIssue]] = {}
        for name, definition in by_name.items():
            chain, issues = self._build_chain(name, by_name)
            ancestors[name] = chain
            issues.extend(self._version_issues(definition))
            if issues:
                derived_issues[name] = issues

        resolved = {}
        for name, attrs in self._resolved.items():
            if name not in by_name or name == touched:
                continue
            if ancestors[name] != self._ancestors.get(name) or touched in ancestors[name]:
                continue
            resolved[name] = attrs

        tag_binding: dict[str, SchemaDefinition] = {}
        folder_binding: dict[str, SchemaDefinition] = {}
        for name, definition in by_name.items():
            if " " not in name:
                tag_binding[name] = definition
            folder = definition.options.folder
            if folder:
                key = folder.strip("/")
                if key and key not in folder_binding:
                    folder_binding[key] = definition

        self._by_name = by_name
        self._ancestors = ancestors
        self._resolved = resolved
        self._derived_issues = derived_issues
        self._tag_binding = tag_binding
        self._folder_binding = folder_binding
        self._reported = {k: v for k, v in self._reported.items() if k in by_name}

    def _build_chain(
        self, name: str, by_name: dict[str, SchemaDefinition]
    ) -> tuple[tuple[str, ...], list[SchemaIssue]]:
        """Follow `extends` links nearest first, stopping at a gap or a loop."""
        definition = by_name[name]
        chain: list[str] = []
        issues: list[SchemaIssue] = []
        seen = {name}
        current = definition

        while current.parent is not None:
            parent = current.parent
            if parent in seen:
                if parent == name:
                    loop = " -> ".join([name, *chain, name])
                    message = f"Ancestry loops back to itself ({loop}); chain truncated"
                    logger.warning("%s: %s", name, message)
                    issues.append(SchemaIssue("error", "cyclic-ancestry", name, message, definition.path))
                break
            parent_definition = by_name.get(parent)
            if parent_definition is None:
                if current is definition:
                    message = f"Parent schema '{parent}' is not registered; treated as having no parent"
                    issues.append(SchemaIssue("warning", "missing-schema-file", name, message, definition.path))
                break
            chain.append(parent)
            seen.add(parent)
            current = parent_definition

        return tuple(chain), issues

    def _version_issues(self, definition: SchemaDefinition) -> list[SchemaIssue]:
        version = definition.version
        issues = []
        if version is not None and version.strip() != "" and not is_valid_version(version):
            issues.append(
                SchemaIssue(
                    "warning",
                    "invalid-version",
                    definition.name,
                    f"Version '{version}' is not major.minor; treated as legacy",
                    definition.path,
                )
            )
        vclass = classify(version)
        if vclass.is_legacy:
            label = "no version" if vclass.status is VersionStatus.ABSENT else f"version '{version}'"
            issues.append(
                SchemaIssue(
                    "info",
                    "legacy-version",
                    definition.name,
                    f"Schema has {label}; it predates the current format",
                    definition.path,
                )
            )
        return issues

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup(self, name: str | None) -> SchemaDefinition | None:
        if name is None:
            return None
        with self._lock:
            return self._by_name.get(name)

    def require(self, name: str) -> SchemaDefinition:
        definition = self.lookup(name)
        if definition is None:
            raise MissingSchemaFile(name)
        return definition

    def lookup_path(self, path: Path) -> SchemaDefinition | None:
        """Find the schema backed by a document path."""
        resolved = Path(path).resolve()
        with self._lock:
            for definition in self._by_name.values():
                if definition.path is not None and definition.path.resolve() == resolved:
                    return definition
        return None

    def names(self) -> list[str]:
        with self._lock:
            return list(self._by_name)

    def definitions(self) -> list[SchemaDefinition]:
        with self._lock:
            return list(self._by_name.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._by_name

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_name)

    def ancestors_of(self, name: str) -> list[str]:
        """Ancestor names, nearest first."""
        with self._lock:
            return list(self._ancestors.get(name, ()))

    def resolved_attributes(self, name: str) -> list[AttributeRecord]:
        """Effective attributes of a schema, computed on first read after a change."""
        with self._lock:
            cached = self._resolved.get(name)
            if cached is None:
                if name not in self._by_name:
                    return []
                cached = tuple(resolve(self, name))
                self._resolved[name] = cached
            return list(cached)

    def children_of(self, name: str) -> list[SchemaChild]:
        """Schemas whose ancestor chain contains `name`."""
        children = []
        with self._lock:
            for child_name, chain in self._ancestors.items():
                if name not in chain:
                    continue
                index = chain.index(name)
                path = (*reversed(chain[:index]), child_name)
                children.append(SchemaChild(name=child_name, path=path, definition=self._by_name[child_name]))
        return children

    def all_attribute_ids(self) -> set[str]:
        with self._lock:
            return {attr.id for definition in self._by_name.values() for attr in definition.attributes}

    @property
    def tag_binding(self) -> Mapping[str, SchemaDefinition]:
        with self._lock:
            return MappingProxyType(self._tag_binding)

    @property
    def folder_binding(self) -> Mapping[str, SchemaDefinition]:
        with self._lock:
            return MappingProxyType(self._folder_binding)

    def legacy_names(self) -> list[str]:
        with self._lock:
            return [name for name, d in self._by_name.items() if classify(d.version).is_legacy]

    def migration_candidates(self) -> list[str]:
        """Legacy schemas that migration tooling should rewrite for this app version."""
        with self._lock:
            return [
                name
                for name, d in self._by_name.items()
                if needs_migration(d.version, self.settings.app_version, self.settings.migration_threshold)
            ]

    def issues(self, name: str | None = None) -> list[SchemaIssue]:
        with self._lock:
            names = [name] if name is not None else list(self._by_name)
            result = []
            for n in names:
                result.extend(self._derived_issues.get(n, []))
                result.extend(self._reported.get(n, []))
            return result
