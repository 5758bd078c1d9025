import threading
from pathlib import Path

import frontmatter
import pytest

from conftest import field
from fileclass.errors import MissingSchemaFile, SchemaError
from fileclass.service import FileClassService


@pytest.fixture
def media_vault(vault: Path, write_schema) -> Path:
    write_schema("media", version="2.0", fields=[field("m1", "rating"), field("m2", "year")])
    write_schema(
        "book",
        version="2.0",
        extends="media",
        fields=[field("b1", "author"), field("b2", "publisher", path="b1")],
        fieldsOrder=["b1", "b2", "m1", "m2"],
        savedViews=[{"name": "all", "children": ["novel"]}],
    )
    write_schema("novel", version="2.0", extends="book")
    return vault


def _metadata(vault: Path, name: str) -> dict:
    return frontmatter.load(vault / "Fileclasses" / f"{name}.md").metadata


def test_start_registers_every_document(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        assert sorted(service.registry.names()) == ["book", "media", "novel"]
        assert [a.id for a in service.resolve("novel")] == ["b1", "b2", "m1", "m2"]
        assert sorted(c.name for c in service.children("media")) == ["book", "novel"]
        assert [c.name for c in service.view_children("book", "all")] == ["novel"]
        assert service.view_children("book", None) == []


def test_upsert_adds_attribute_with_fresh_id(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        record = service.upsert_attribute("book", attribute_name="isbn", attribute_type="Number")

        assert len(record.id) == 6
        assert record.id.isalnum()
        assert record.schema == "book"
        assert "isbn" in [a.name for a in service.resolve("novel")]

    metadata = _metadata(media_vault, "book")
    assert metadata["version"] == "2.1"
    assert {"id": record.id, "type": "Number", "name": "isbn"} in metadata["fields"]


def test_upsert_inherited_attribute_updates_declaring_schema(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        record = service.upsert_attribute(
            "novel", attribute_name="stars", attribute_type="Select", attribute_id="m1", options={"valuesList": {}}
        )

        assert record.schema == "media"
        assert [a.name for a in service.resolve("novel")][2] == "stars"

    assert _metadata(media_vault, "media")["version"] == "2.1"
    assert _metadata(media_vault, "novel")["version"] == "2.0"


def test_remove_attribute(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        service.remove_attribute("book", "m2")
        assert [a.id for a in service.resolve("book")] == ["b1", "b2", "m1"]

        with pytest.raises(SchemaError):
            service.remove_attribute("book", "nope")

    assert [f["id"] for f in _metadata(media_vault, "media")["fields"]] == ["m1"]


def test_set_parent(media_vault: Path, write_schema) -> None:
    write_schema("article", version="2.0", fields=[field("a1", "journal")])
    with FileClassService(media_vault) as service:
        with pytest.raises(SchemaError):
            service.set_parent("article", "article")
        with pytest.raises(MissingSchemaFile):
            service.set_parent("article", "ghost")

        service.set_parent("article", "media")
        assert service.registry.ancestors_of("article") == ["media"]

        service.set_parent("article", None)
        assert service.registry.ancestors_of("article") == []

    assert _metadata(media_vault, "article")["extends"] is None


def test_add_and_remove_exclude(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        with pytest.raises(SchemaError):
            service.add_exclude("novel", "nonexistent")

        service.add_exclude("novel", "rating")
        assert "rating" not in [a.name for a in service.resolve("novel")]
        assert [a.id for a in service.excluded_attributes("novel")] == ["m1"]

        service.remove_exclude("novel", "rating")
        assert "rating" in [a.name for a in service.resolve("novel")]

    assert _metadata(media_vault, "novel")["excludes"] is None


def test_stale_order_is_persisted_on_flush(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        ordered = service.order("novel")
        assert [a.id for a in ordered] == ["b1", "b2", "m1", "m2"]

        service.persister.flush_pending()

        assert service.registry.lookup("novel").options.fields_order == ("b1", "b2", "m1", "m2")
        service.order("novel")
        assert len(service.persister) == 0

    metadata = _metadata(media_vault, "novel")
    assert metadata["fieldsOrder"] == ["b1", "b2", "m1", "m2"]
    assert metadata["version"] == "2.1"


def test_in_sync_order_is_not_rewritten(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        service.order("book")
        assert service.persister.pending("book") is None

    assert _metadata(media_vault, "book")["version"] == "2.0"


def test_move_attribute_persists_new_order(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        ids = service.move_attribute("book", "m2", "upwards")

        assert ids == ["b1", "b2", "m2", "m1"]
        assert service.persister.pending("book") is None

    assert _metadata(media_vault, "book")["fieldsOrder"] == ["b1", "b2", "m2", "m1"]


def test_broken_edit_keeps_last_good_revision(media_vault: Path) -> None:
    path = media_vault / "Fileclasses" / "media.md"
    with FileClassService(media_vault) as service:
        path.write_text("---\nfields: [unclosed\n---\n", encoding="utf-8")

        assert service.on_document_changed(path) == "media"
        assert [a.id for a in service.resolve("media")] == ["m1", "m2"]
        assert any(i.kind == "missing-schema-file" for i in service.registry.issues("media"))


def test_delete_and_rename(media_vault: Path) -> None:
    class_dir = media_vault / "Fileclasses"
    with FileClassService(media_vault) as service:
        (class_dir / "novel.md").unlink()
        assert service.on_document_deleted(class_dir / "novel.md") == "novel"
        assert "novel" not in service.registry

        (class_dir / "book.md").rename(class_dir / "volume.md")
        service.on_document_renamed(class_dir / "book.md", class_dir / "volume.md")
        assert "book" not in service.registry
        assert service.registry.ancestors_of("volume") == ["media"]

        assert service.on_document_changed(media_vault / "notes.md") is None


def test_option_update_keeps_parse_issues(vault: Path, write_schema) -> None:
    write_schema("book", version="2.0", fields=[field("a1", "title"), {"name": "no id"}])

    with FileClassService(vault, persist_orders=False) as service:
        assert [i.kind for i in service.registry.issues("book")] == ["invalid-attribute"]

        service.update_options("book", limit=5)

        assert service.registry.require("book").options.limit == 5
        assert [i.kind for i in service.registry.issues("book")] == ["invalid-attribute"]


def test_order_write_waits_for_schema_edit(media_vault: Path) -> None:
    with FileClassService(media_vault) as service:
        service.persister.request("novel", ["b1", "b2", "m1", "m2"])
        flusher = threading.Thread(target=service.persister.flush_pending)

        with service._schema_lock("novel"):
            flusher.start()
            flusher.join(timeout=0.2)
            assert flusher.is_alive()
            service.update_options("novel", icon="book")

        flusher.join()

    metadata = _metadata(media_vault, "novel")
    assert metadata["icon"] == "book"
    assert metadata["fieldsOrder"] == ["b1", "b2", "m1", "m2"]
    assert metadata["version"] == "2.2"
