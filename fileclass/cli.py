"""CLI entrypoint for fileclass."""

import logging
import sys
from pathlib import Path

import click
from rich.logging import RichHandler

from . import __version__
from .config import SETTINGS_FILE


def _auto_detect_vault(start: Path) -> Path | None:
    """Find a vault root (holding fileclass.toml or Fileclasses/) by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / SETTINGS_FILE).is_file() or (p / "Fileclasses").is_dir():
            return p
    return None


@click.group()
@click.version_option(__version__, prog_name="fileclass")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to vault root (defaults to auto-detected from the current directory)",
)
@click.option("--verbose", is_flag=True, help="Log registry and persistence activity")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, verbose: bool) -> None:
    """fileclass - Schema inheritance and attribute ordering for note vaults.

    Resolve, check, and edit the FileClass documents in your vault.
    """
    ctx.ensure_object(dict)
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )

    if vault is None:
        detected = _auto_detect_vault(Path.cwd())
        if detected is None:
            raise click.ClickException("Vault not found. Pass --vault /path/to/vault or run from inside it.")
        vault = detected

    if not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault / -v")

    ctx.obj["vault"] = vault.resolve()


# -----------------------------------------------------------------------------
# Read-only commands
# -----------------------------------------------------------------------------


@cli.command("list")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def list_schemas(ctx: click.Context, output_json: bool) -> None:
    """List every schema with its ancestry and version status."""
    from .commands.schemas import run_list

    sys.exit(run_list(ctx.obj["vault"], output_json=output_json))


@cli.command()
@click.argument("name")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def show(ctx: click.Context, name: str, output_json: bool) -> None:
    """Show the resolved attributes of a schema in display order.

    Examples:

        fileclass show Book

        fileclass show "Projects/Task" --json
    """
    from .commands.schemas import run_show

    sys.exit(run_show(ctx.obj["vault"], name, output_json=output_json))


@cli.command()
@click.argument("name")
@click.pass_context
def children(ctx: click.Context, name: str) -> None:
    """List the schemas that inherit from NAME."""
    from .commands.schemas import run_children

    sys.exit(run_children(ctx.obj["vault"], name))


@cli.command()
@click.option(
    "--fail-on",
    type=click.Choice(["error", "warning"]),
    default="error",
    help="Exit with error if this level or higher found",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option("--info", "show_info", is_flag=True, help="Include info-level issues")
@click.pass_context
def check(ctx: click.Context, fail_on: str, output_json: bool, show_info: bool) -> None:
    """Check schemas for cycles, missing parents, and malformed hierarchies.

    Nothing is written: stale field orders are reported, not fixed.
    """
    from .commands.check import run_check

    sys.exit(run_check(ctx.obj["vault"], fail_on=fail_on, output_json=output_json, show_info=show_info))


# -----------------------------------------------------------------------------
# Editing commands
# -----------------------------------------------------------------------------


@cli.command()
@click.argument("name")
@click.option("--write", is_flag=True, help="Persist the computed fieldsOrder")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def order(ctx: click.Context, name: str, write: bool, output_json: bool) -> None:
    """Compute the display order of a schema's attributes."""
    from .commands.edit import run_order

    sys.exit(run_order(ctx.obj["vault"], name, write=write, output_json=output_json))


@cli.command()
@click.argument("name")
@click.argument("attribute_id")
@click.argument("direction", type=click.Choice(["upwards", "downwards"]))
@click.pass_context
def move(ctx: click.Context, name: str, attribute_id: str, direction: str) -> None:
    """Move an attribute one slot among its siblings."""
    from .commands.edit import run_move

    sys.exit(run_move(ctx.obj["vault"], name, attribute_id, direction))


@cli.command()
@click.argument("name")
@click.argument("parent", required=False)
@click.pass_context
def extends(ctx: click.Context, name: str, parent: str | None) -> None:
    """Set (or with no PARENT, clear) the parent of a schema."""
    from .commands.edit import run_extends

    sys.exit(run_extends(ctx.obj["vault"], name, parent))


@cli.command()
@click.argument("name")
@click.argument("attribute_name")
@click.option("--remove", is_flag=True, help="Stop excluding the attribute")
@click.pass_context
def exclude(ctx: click.Context, name: str, attribute_name: str, remove: bool) -> None:
    """Hide an inherited attribute from a schema and its descendants."""
    from .commands.edit import run_exclude

    sys.exit(run_exclude(ctx.obj["vault"], name, attribute_name, remove=remove))


@cli.command()
@click.argument("note", type=click.Path(exists=False, dir_okay=False, path_type=Path))
@click.argument("name")
@click.option("--no-move", is_flag=True, help="Do not move the note into the schema folder")
@click.pass_context
def tag(ctx: click.Context, note: Path, name: str, no_move: bool) -> None:
    """Tag NOTE with schema NAME and file it in the schema's folder."""
    from .commands.edit import run_tag

    sys.exit(run_tag(ctx.obj["vault"], note, name, move=not no_move))


# -----------------------------------------------------------------------------
# Long-running commands
# -----------------------------------------------------------------------------


@cli.command()
@click.option("--write-orders", is_flag=True, help="Rewrite stale fieldsOrder lists in the background")
@click.pass_context
def watch(ctx: click.Context, write_orders: bool) -> None:
    """Watch the class folder and re-resolve schemas as they change.

    Examples:

        fileclass watch

        fileclass -v ~/notes watch --write-orders
    """
    from .commands.watch_cmd import run_watch

    run_watch(ctx.obj["vault"], write_orders=write_orders)


@cli.command("lsp")
@click.option(
    "--transport",
    type=click.Choice(["stdio", "tcp"]),
    default="stdio",
    show_default=True,
    help="Transport method (stdio for editors, tcp for debugging)",
)
@click.pass_context
def lsp(ctx: click.Context, transport: str) -> None:
    """Start the LSP server for schema documents.

    The LSP server provides:

    \b
    - Schema diagnostics (on open and save)
    - Hover info for `extends:` values

    For VSCode, configure the extension to use:

        fileclass lsp --transport stdio
    """
    from .lsp import start_server

    vault_path = ctx.obj.get("vault")
    start_server(vault_path=vault_path, transport=transport)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
