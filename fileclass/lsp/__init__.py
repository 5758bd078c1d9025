"""
LSP server for schema documents.

This module provides:
- LSP server for Obsidian/VSCode integration
- Diagnostics for schema issues as documents are opened and saved
- Hover information for `extends:` values
"""

from .server import create_server, start_server

__all__ = ["create_server", "start_server"]
