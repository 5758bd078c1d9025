from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from . import __version__

SETTINGS_FILE = "fileclass.toml"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings for a vault."""

    class_files_path: str = "Fileclasses/"
    table_view_max_records: int = 20
    fileclass_icon: str = "file-spreadsheet"
    fileclass_alias: str = "fileClass"
    app_version: str = __version__
    migration_threshold: str = "0.6.0"
    flush_interval: float = 1.0

    def class_dir(self, vault_path: Path) -> Path:
        return vault_path / self.class_files_path.strip("/")


def _coerce(value: Any, default: Any) -> Any:
    if isinstance(default, bool):
        return value if isinstance(value, bool) else default
    if isinstance(default, int) and not isinstance(default, bool):
        return value if isinstance(value, int) and not isinstance(value, bool) and value > 0 else default
    if isinstance(default, float):
        return float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0 else default
    if isinstance(default, str):
        value = str(value).strip() if isinstance(value, (str, int, float)) else ""
        return value or default
    return default


def load_settings(vault_path: Path) -> Settings:
    """
    Load settings from `fileclass.toml` at the vault root.

    Missing file, unknown keys, and malformed values all fall back to defaults.
    The class folder always ends with a slash.
    """
    import tomllib

    path = vault_path / SETTINGS_FILE
    if not path.exists():
        return Settings()

    data = tomllib.loads(path.read_text(encoding="utf-8"))
    section = data.get("fileclass", data)
    if not isinstance(section, dict):
        return Settings()

    defaults = Settings()
    values = {}
    for f in fields(Settings):
        if f.name in section:
            values[f.name] = _coerce(section[f.name], getattr(defaults, f.name))

    settings = Settings(**values)
    if not settings.class_files_path.endswith("/"):
        settings = Settings(**{**values, "class_files_path": settings.class_files_path + "/"})
    return settings
