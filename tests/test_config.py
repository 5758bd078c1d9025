from pathlib import Path

from fileclass.config import Settings, load_settings


def test_defaults_without_settings_file(tmp_path: Path) -> None:
    assert load_settings(tmp_path) == Settings()


def test_settings_section_and_coercion(tmp_path: Path) -> None:
    (tmp_path / "fileclass.toml").write_text(
        "\n".join(
            [
                "[fileclass]",
                'class_files_path = "Meta/Classes"',
                "table_view_max_records = -3",
                'fileclass_icon = "box"',
                "flush_interval = 2",
                'unknown = "ignored"',
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(tmp_path)

    assert settings.class_files_path == "Meta/Classes/"
    assert settings.class_dir(tmp_path) == tmp_path / "Meta" / "Classes"
    assert settings.table_view_max_records == 20
    assert settings.fileclass_icon == "box"
    assert settings.flush_interval == 2.0
