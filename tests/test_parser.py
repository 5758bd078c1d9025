from pathlib import Path

from fileclass.config import Settings
from fileclass.errors import SchemaIssue
from fileclass.parser import (
    parse_attribute,
    parse_excludes,
    parse_path,
    parse_schema,
    parse_tags,
    schema_name_from_path,
)


def test_parse_excludes_accepts_list_or_comma_string() -> None:
    assert parse_excludes(["status", " owner ", None]) == ["status", "owner"]
    assert parse_excludes("status, owner,") == ["status", "owner"]
    assert parse_excludes(None) == []


def test_parse_path_splits_on_separator() -> None:
    assert parse_path("a1____b2") == ("a1", "b2")
    assert parse_path(["a1", "b2"]) == ("a1", "b2")
    assert parse_path("") == ()
    assert parse_path(None) == ()


def test_parse_tags_strips_hash() -> None:
    assert parse_tags("#book, movie") == ["book", "movie"]
    assert parse_tags(["#book", None]) == ["book"]


def test_parse_attribute_requires_id_and_name() -> None:
    assert parse_attribute({"name": "title"}, "book") is None
    assert parse_attribute({"id": "a1"}, "book") is None
    assert parse_attribute("title", "book") is None

    attr = parse_attribute({"id": 12, "name": "title", "path": "x____y"}, "book")
    assert attr is not None
    assert attr.id == "12"
    assert attr.type == "Input"
    assert attr.schema == "book"
    assert attr.path == ("x", "y")
    assert attr.parent_id == "y"
    assert attr.level == 2


def test_parse_schema_defaults_and_issues() -> None:
    settings = Settings(table_view_max_records=50, fileclass_icon="box")
    issues: list[SchemaIssue] = []
    metadata = {
        "extends": "media",
        "excludes": "rating",
        "fieldsOrder": ["a1", "a2"],
        "version": 2.1,
        "fields": [
            {"id": "a1", "name": "title", "type": "Input"},
            {"name": "no id"},
            {"id": "a2", "name": "author", "type": "File", "path": "a1"},
        ],
    }

    definition = parse_schema("book", metadata, settings, issues=issues)

    assert definition.parent == "media"
    assert definition.options.excludes == ("rating",)
    assert definition.options.limit == 50
    assert definition.options.icon == "box"
    assert definition.options.fields_order == ("a1", "a2")
    assert definition.version == "2.1"
    assert [a.id for a in definition.attributes] == ["a1", "a2"]
    assert len(issues) == 1
    assert issues[0].kind == "invalid-attribute"


def test_parse_schema_tolerates_garbage() -> None:
    definition = parse_schema("odd", {"fields": "nope", "limit": "ten", "extends": ""}, Settings())
    assert definition.attributes == ()
    assert definition.options.limit == 20
    assert definition.parent is None


def test_schema_name_from_path(tmp_path: Path) -> None:
    class_dir = tmp_path / "Fileclasses"
    assert schema_name_from_path(class_dir / "book.md", class_dir) == "book"
    assert schema_name_from_path(class_dir / "work" / "task.md", class_dir) == "work/task"
    assert schema_name_from_path(class_dir / "book.txt", class_dir) is None
    assert schema_name_from_path(class_dir / ".trash" / "book.md", class_dir) is None
    assert schema_name_from_path(tmp_path / "notes" / "book.md", class_dir) is None
