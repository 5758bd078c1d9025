"""fileclass - inheritable frontmatter schemas for Markdown vaults."""

__version__ = "0.1.0"
