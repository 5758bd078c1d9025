from conftest import attr, definition
from fileclass.models import SchemaDefinition, SchemaOptions
from fileclass.registry import SchemaRegistry
from fileclass.resolver import excluded_attributes, resolve, resolve_icon


def _chain(a_excludes=(), b_excludes=()) -> SchemaRegistry:
    """A extends B extends C; C declares x and y, B declares z, A declares w."""
    registry = SchemaRegistry()
    registry.register("C", definition("C", attr("c1", "x", schema="C"), attr("c2", "y", schema="C")))
    registry.register("B", definition("B", attr("b1", "z", schema="B"), parent="C", excludes=b_excludes))
    registry.register("A", definition("A", attr("a1", "w", schema="A"), parent="B", excludes=a_excludes))
    return registry


def test_chain_order_nearest_first() -> None:
    registry = _chain()
    assert [a.name for a in resolve(registry, "A")] == ["w", "z", "x", "y"]


def test_inherited_attribute_appears_once_across_branches() -> None:
    registry = _chain()
    registry.register("D", definition("D", attr("d1", "v", schema="D"), parent="C"))

    names = [a.name for a in resolve(registry, "A")]
    assert names.count("x") == 1
    assert [a.name for a in resolve(registry, "D")] == ["v", "x", "y"]


def test_descendant_exclusion_reaches_grandparent() -> None:
    registry = _chain(a_excludes=("x",))

    assert [a.name for a in resolve(registry, "A")] == ["w", "z", "y"]
    assert [a.name for a in resolve(registry, "B")] == ["z", "x", "y"]
    assert [a.id for a in excluded_attributes(registry, "A")] == ["c1"]


def test_ancestor_exclusion_is_inherited() -> None:
    registry = _chain(b_excludes=("y",))

    assert [a.name for a in resolve(registry, "A")] == ["w", "z", "x"]
    assert [a.id for a in excluded_attributes(registry, "A")] == ["c2"]


def test_ancestor_exclusion_does_not_hide_nearer_declaration() -> None:
    registry = _chain(b_excludes=("w",))

    assert [a.name for a in resolve(registry, "A")] == ["w", "z", "x", "y"]


def test_nearest_declaration_wins() -> None:
    registry = SchemaRegistry()
    registry.register("C", definition("C", attr("c1", "status", schema="C"), attr("c2", "owner", schema="C")))
    registry.register("A", definition("A", attr("a1", "status", schema="A"), parent="C"))

    resolved = resolve(registry, "A")
    assert [a.id for a in resolved] == ["a1", "c2"]
    assert resolved[0].schema == "A"


def test_missing_schema_resolves_empty() -> None:
    assert resolve(SchemaRegistry(), "ghost") == []


def test_cyclic_chain_resolves_without_looping() -> None:
    registry = SchemaRegistry()
    registry.register("a", definition("a", attr("a1", "x", schema="a"), parent="b"))
    registry.register("b", definition("b", attr("b1", "y", schema="b"), parent="a"))

    assert [a.id for a in resolve(registry, "a")] == ["a1", "b1"]
    assert [a.id for a in resolve(registry, "b")] == ["b1", "a1"]


def test_resolve_icon_takes_nearest_explicit_icon() -> None:
    registry = SchemaRegistry()
    registry.register(
        "media",
        SchemaDefinition(name="media", options=SchemaOptions(limit=20, icon="film")),
    )
    registry.register("book", definition("book", parent="media"))

    assert resolve_icon(registry, "book") == "film"
    assert resolve_icon(registry, "media") == "film"
    registry.register("plain", definition("plain"))
    assert resolve_icon(registry, "plain") == "file-spreadsheet"
