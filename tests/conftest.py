"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from fileclass.config import Settings
from fileclass.models import AttributeRecord, SchemaDefinition, SchemaOptions


def field(attribute_id: str, name: str, *, type: str = "Input", path: str | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": name, "type": type, "id": attribute_id}
    if path is not None:
        entry["path"] = path
    return entry


def attr(attribute_id: str, name: str | None = None, *, schema: str = "S", path: tuple[str, ...] = ()) -> AttributeRecord:
    return AttributeRecord(id=attribute_id, name=name or f"f{attribute_id}", type="Input", schema=schema, path=path)


def definition(
    name: str,
    *attributes: AttributeRecord,
    parent: str | None = None,
    excludes: tuple[str, ...] = (),
    version: str | None = "2.0",
    folder: str | None = None,
    fields_order: tuple[str, ...] = (),
) -> SchemaDefinition:
    return SchemaDefinition(
        name=name,
        options=SchemaOptions(
            limit=20,
            icon="file-spreadsheet",
            parent=parent,
            excludes=excludes,
            folder=folder,
            fields_order=fields_order,
        ),
        attributes=attributes,
        version=version,
    )


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """An empty vault with a class folder."""
    root = tmp_path / "vault"
    (root / "Fileclasses").mkdir(parents=True)
    return root


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def write_schema(vault: Path) -> Callable[..., Path]:
    """Write a schema document into the vault's class folder."""

    def _write(name: str, body: str = "", **metadata: Any) -> Path:
        path = vault / "Fileclasses" / f"{name}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(metadata, sort_keys=False) if metadata else ""
        path.write_text(f"---\n{text}---\n{body}", encoding="utf-8")
        return path

    return _write
