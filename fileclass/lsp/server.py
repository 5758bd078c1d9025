"""
LSP server for schema documents.

Provides:
- Diagnostics for cyclic ancestry, missing parents, malformed field hierarchies
- Hover info for `extends:` values (ancestry, resolved attributes)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.parse import unquote, urlparse

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .. import __version__
from ..config import SETTINGS_FILE, Settings, load_settings
from ..service import FileClassService
from .diagnostics import check_schema_document
from .hover import get_hover_info

logger = logging.getLogger(__name__)

EXTENDS_PATTERN = re.compile(r"^extends\s*:\s*[\"']?([^\"'#]+?)[\"']?\s*$")


class FileClassLanguageServer(LanguageServer):
    """Language server for FileClass schema documents."""

    def __init__(self, vault_path: Path | None = None):
        super().__init__(name="fileclass-lsp", version=__version__)
        self.vault_path = vault_path
        self.service: FileClassService | None = None
        if vault_path:
            self._load_service()

    def set_vault_path(self, path: Path) -> None:
        self.vault_path = path
        self._load_service()

    def _load_service(self) -> None:
        if not self.vault_path:
            return
        if self.service is not None:
            self.service.shutdown()
        self.service = FileClassService(self.vault_path, persist_orders=False)
        failures = self.service.start()
        for failure in failures:
            logger.warning("%s", failure)


def uri_to_path(uri: str) -> Path:
    """Convert a file URI to a Path."""
    parsed = urlparse(uri)
    path = unquote(parsed.path)
    if path.startswith("/") and len(path) > 2 and path[2] == ":":
        path = path[1:]  # Remove leading slash for Windows paths
    return Path(path)


def find_vault(path: Path) -> Path | None:
    """
    Find the vault root holding the schema document at `path`.

    A directory with `fileclass.toml` is a root when its configured class
    folder contains `path`. Otherwise the parent of the default class folder is.
    """
    for parent in path.parents:
        if (parent / SETTINGS_FILE).is_file() and path.is_relative_to(load_settings(parent).class_dir(parent)):
            return parent
    first = Settings().class_files_path.strip("/").split("/")[0]
    for parent in path.parents:
        if parent.name == first:
            return parent.parent
    return None


def _detect_vault(server: FileClassLanguageServer, path: Path) -> Path | None:
    if server.vault_path:
        return server.vault_path
    vault_path = find_vault(path)
    if vault_path is not None:
        server.set_vault_path(vault_path)
    return vault_path


def create_server(vault_path: Path | None = None) -> FileClassLanguageServer:
    """Create and configure the LSP server."""
    server = FileClassLanguageServer(vault_path)

    @server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
    def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
        _validate_document(server, params.text_document.uri, params.text_document.text)

    @server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
    def did_save(params: lsp.DidSaveTextDocumentParams) -> None:
        path = uri_to_path(params.text_document.uri)
        if server.service is not None:
            server.service.on_document_changed(path)
        if path.exists():
            _validate_document(server, params.text_document.uri, path.read_text(encoding="utf-8"))

    @server.feature(lsp.TEXT_DOCUMENT_HOVER)
    def hover(params: lsp.HoverParams) -> lsp.Hover | None:
        if server.service is None:
            return None
        document = server.workspace.get_text_document(params.text_document.uri)
        lines = document.source.split("\n")
        if params.position.line >= len(lines):
            return None

        line = lines[params.position.line]
        match = EXTENDS_PATTERN.match(line)
        if not match:
            return None

        info = get_hover_info(server.service.registry, match.group(1).strip())
        if info is None:
            return None
        return lsp.Hover(
            contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=info),
            range=lsp.Range(
                start=lsp.Position(line=params.position.line, character=match.start(1)),
                end=lsp.Position(line=params.position.line, character=match.end(1)),
            ),
        )

    return server


def _validate_document(server: FileClassLanguageServer, uri: str, content: str) -> None:
    """Check a schema document and publish diagnostics."""
    path = uri_to_path(uri)
    if path.suffix.lower() != ".md":
        return

    vault_path = _detect_vault(server, path)
    if not vault_path:
        return

    diagnostics = check_schema_document(path, vault_path, content)

    lsp_diagnostics = []
    for diag in diagnostics:
        severity = {
            "error": lsp.DiagnosticSeverity.Error,
            "warning": lsp.DiagnosticSeverity.Warning,
            "info": lsp.DiagnosticSeverity.Information,
        }.get(diag.severity, lsp.DiagnosticSeverity.Warning)

        lsp_diagnostics.append(
            lsp.Diagnostic(
                range=lsp.Range(
                    start=lsp.Position(line=diag.line, character=diag.column),
                    end=lsp.Position(line=diag.line, character=diag.column + diag.length),
                ),
                message=diag.message,
                severity=severity,
                source="fileclass",
                code=diag.kind,
            )
        )

    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=lsp_diagnostics)
    )


def start_server(vault_path: Path | None = None, transport: str = "stdio") -> None:
    """Start the LSP server.

    Args:
        vault_path: Path to vault root
        transport: Transport method ("stdio" or "tcp")
    """
    server = create_server(vault_path)

    if transport == "stdio":
        server.start_io()
    else:
        # TCP transport for debugging
        server.start_tcp("localhost", 2087)
