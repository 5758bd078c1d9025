import pytest

from conftest import attr, definition
from fileclass.errors import MissingSchemaFile, SchemaIssue
from fileclass.registry import SchemaRegistry


def test_parent_registered_after_child() -> None:
    registry = SchemaRegistry()
    registry.register("book", definition("book", attr("b1", schema="book"), parent="media"))

    assert registry.ancestors_of("book") == []
    assert any(i.kind == "missing-schema-file" for i in registry.issues("book"))

    registry.register("media", definition("media", attr("m1", schema="media")))

    assert registry.ancestors_of("book") == ["media"]
    assert [a.id for a in registry.resolved_attributes("book")] == ["b1", "m1"]
    assert not any(i.kind == "missing-schema-file" for i in registry.issues("book"))


def test_ancestors_nearest_first() -> None:
    registry = SchemaRegistry()
    registry.register("a", definition("a"))
    registry.register("b", definition("b", parent="a"))
    registry.register("c", definition("c", parent="b"))

    assert registry.ancestors_of("c") == ["b", "a"]
    assert registry.ancestors_of("a") == []


def test_cycle_is_truncated_and_reported() -> None:
    registry = SchemaRegistry()
    registry.register("a", definition("a", attr("x", schema="a"), parent="b"))
    registry.register("b", definition("b", attr("y", schema="b"), parent="a"))
    registry.register("c", definition("c", parent="a"))

    assert registry.ancestors_of("a") == ["b"]
    assert registry.ancestors_of("b") == ["a"]
    assert registry.ancestors_of("c") == ["a", "b"]
    assert [i.kind for i in registry.issues("a")].count("cyclic-ancestry") == 1
    assert not any(i.kind == "cyclic-ancestry" for i in registry.issues("c"))
    assert [a.name for a in registry.resolved_attributes("a")] == ["fx", "fy"]


def test_self_parent_is_a_cycle() -> None:
    registry = SchemaRegistry()
    registry.register("a", definition("a", parent="a"))

    assert registry.ancestors_of("a") == []
    assert any(i.kind == "cyclic-ancestry" for i in registry.issues("a"))


def test_unregister_drops_derived_state() -> None:
    registry = SchemaRegistry()
    registry.register("media", definition("media", attr("m1", schema="media")))
    registry.register("book", definition("book", parent="media"))
    assert [a.id for a in registry.resolved_attributes("book")] == ["m1"]

    registry.unregister("media")

    assert "media" not in registry
    assert registry.ancestors_of("book") == []
    assert registry.resolved_attributes("book") == []
    assert registry.resolved_attributes("media") == []


def test_require_raises_for_unknown_schema() -> None:
    registry = SchemaRegistry()
    with pytest.raises(MissingSchemaFile) as exc_info:
        registry.require("ghost")
    assert "ghost.md" in str(exc_info.value)


def test_children_paths() -> None:
    registry = SchemaRegistry()
    registry.register("a", definition("a"))
    registry.register("b", definition("b", parent="a"))
    registry.register("c", definition("c", parent="b"))
    registry.register("d", definition("d"))

    children = {child.name: child.path for child in registry.children_of("a")}

    assert children == {"b": ("b",), "c": ("b", "c")}
    assert [child.name for child in registry.children_of("c")] == []


def test_parent_change_invalidates_dependents() -> None:
    registry = SchemaRegistry()
    registry.register("a", definition("a", attr("a1", "status", schema="a")))
    registry.register("b", definition("b", parent="a"))
    registry.register("c", definition("c", parent="b"))
    assert [x.id for x in registry.resolved_attributes("c")] == ["a1"]

    registry.register("a", definition("a", attr("a1", "status", schema="a"), attr("a2", "owner", schema="a")))

    assert [x.id for x in registry.resolved_attributes("c")] == ["a1", "a2"]


def test_folder_binding_first_registered_wins() -> None:
    registry = SchemaRegistry()
    registry.register("book", definition("book", folder="Library/"))
    registry.register("novel", definition("novel", folder="Library"))

    assert registry.folder_binding["Library"].name == "book"


def test_tag_binding_skips_names_with_spaces() -> None:
    registry = SchemaRegistry()
    registry.register("book", definition("book"))
    registry.register("reading list", definition("reading list"))

    assert set(registry.tag_binding) == {"book"}


def test_version_issues() -> None:
    registry = SchemaRegistry()
    registry.register("old", definition("old", version=None))
    registry.register("odd", definition("odd", version="v2"))
    registry.register("new", definition("new", version="2.4"))

    assert [i.kind for i in registry.issues("old")] == ["legacy-version"]
    assert {i.kind for i in registry.issues("odd")} == {"invalid-version", "legacy-version"}
    assert registry.issues("new") == []
    assert sorted(registry.legacy_names()) == ["odd", "old"]


def test_report_is_deduplicated() -> None:
    registry = SchemaRegistry()
    registry.register("book", definition("book"))
    issue = SchemaIssue("error", "persistence-failure", "book", "disk full")
    registry.report(issue)
    registry.report(SchemaIssue("error", "persistence-failure", "book", "disk full"))

    assert registry.issues("book") == [issue]

    registry.clear_reports("book", "persistence-failure")
    assert registry.issues("book") == []
