"""nutty CLI: identifiers, fractional indices and the block store.

Commands:
    nutty init [NAME] [--timezone Z] create nutty.toml
    nutty id new [-n N]            print fresh wire ids
    nutty id inspect ID            show uuid / nid / timestamp of a wire id or nid
    nutty id check NID             validate a bare short code
    nutty index between A B        print an index strictly between A and B
    nutty index sort KEYS...       print keys in sibling order
    nutty block add TEXT           append a block
    nutty block list               print the block tree
    nutty block move ID            reposition a block
    nutty block links ID           show outgoing [[nid]] links and backlinks
    nutty block rm ID              delete a block and its children
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TypeVar

import click

from nutty.config import ConfigError, NuttyConfig, init_config, load_config
from nutty.errors import NuttyError
from nutty.fractional_index import FractionalIndex
from nutty.models import CONTENT_KINDS, BlockContent
from nutty.nutty_id import DissociatedNuttyId, NuttyId, parse_any
from nutty.store import BlockNotFoundError, BlockStore

T = TypeVar("T")

logger = logging.getLogger("nutty.cli")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg(root: Path | None = None) -> NuttyConfig:
    """Config for root (or the nearest nutty.toml above cwd), as a usage error if broken."""
    try:
        return load_config(root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _ok(result: T | NuttyError) -> T:
    """Turn a returned error value into a ClickException."""
    if isinstance(result, NuttyError):
        raise click.ClickException(result.message)
    return result


def _index(text: str) -> FractionalIndex:
    return _ok(FractionalIndex.from_string(text))


def _store(cfg: NuttyConfig) -> BlockStore:
    return BlockStore(cfg.store_path)


def _block_id(store: BlockStore, text: str) -> NuttyId:
    """Accept a full wire id or a bare nid (looked up in the store)."""
    parsed = _ok(parse_any(text))
    if isinstance(parsed, NuttyId):
        return parsed
    resolved = store.resolve(parsed)
    if resolved is None:
        raise click.ClickException(f"No block with nid {parsed.nid}")
    logger.debug("resolved nid %s to %s", parsed.nid, resolved.uuid)
    return resolved


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="nutty")
@click.option("-v", "--verbose", is_flag=True, help="Log at INFO level")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """nutty: short ids and fractional indices for content blocks."""
    ctx.ensure_object(dict)
    cfg = _load_cfg()
    ctx.obj["cfg"] = cfg
    level = logging.INFO if verbose else getattr(logging, cfg.logging.level)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")


# ---------------------------------------------------------------------------
# nutty init
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("name", required=False)
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
@click.option("--timezone", default=None, help="IANA zone for id timestamps (default: local)")
def init(name: str | None, root: str, timezone: str | None) -> None:
    """Create nutty.toml in the current project."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path, name=name, timezone=timezone)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("nutty.toml already exists, skipping init")
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    cfg = _load_cfg(root_path)
    click.echo(f"Block store : {cfg.store_path}")


# ---------------------------------------------------------------------------
# nutty id
# ---------------------------------------------------------------------------


@cli.group("id")
def id_group() -> None:
    """Generate and inspect Nutty IDs."""


@id_group.command("new")
@click.option("-n", "--count", default=1, show_default=True, type=click.IntRange(min=1))
@click.pass_obj
def id_new(obj: dict, count: int) -> None:
    """Print COUNT freshly generated wire ids."""
    tz = obj["cfg"].tzinfo
    for _ in range(count):
        click.echo(NuttyId.now(tz=tz).to_wire())


@id_group.command("inspect")
@click.argument("text")
@click.pass_obj
def id_inspect(obj: dict, text: str) -> None:
    """Show the parts of a wire id (or a bare nid)."""
    from rich.console import Console
    from rich.table import Table

    parsed = _ok(parse_any(text, tz=obj["cfg"].tzinfo))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Field", style="dim", no_wrap=True)
    table.add_column("Value")

    if isinstance(parsed, DissociatedNuttyId):
        table.title = "Dissociated Nutty ID"
        table.add_row("nid", parsed.nid)
        table.add_row("uuid", "[dim]unknown (a bare nid cannot be reversed)[/dim]")
    else:
        table.title = "Nutty ID"
        table.add_row("nid", parsed.nid)
        table.add_row("uuid", str(parsed.uuid))
        table.add_row("version", str(parsed.uuid.version))
        table.add_row("wire", parsed.to_wire())
        try:
            table.add_row("timestamp", parsed.timestamp.isoformat())
        except OverflowError:
            table.add_row("timestamp", "[yellow]out of range[/yellow]")

    Console().print(table)


@id_group.command("check")
@click.argument("nid")
def id_check(nid: str) -> None:
    """Validate a bare 7-character short code."""
    parsed = _ok(DissociatedNuttyId.parse(nid))
    click.echo(f"{parsed.nid}: ok")


# ---------------------------------------------------------------------------
# nutty index
# ---------------------------------------------------------------------------


@cli.group("index")
def index_group() -> None:
    """Work with fractional indices."""


@index_group.command("between")
@click.argument("before")
@click.argument("after")
def index_between(before: str, after: str) -> None:
    """Print an index strictly between BEFORE and AFTER."""
    middle = _ok(FractionalIndex.between(_index(before), _index(after)))
    click.echo(middle.value)


@index_group.command("sort")
@click.argument("keys", nargs=-1, required=True)
def index_sort(keys: tuple[str, ...]) -> None:
    """Print KEYS in sibling order, one per line."""
    for idx in sorted(_index(k) for k in keys):
        click.echo(idx.value)


# ---------------------------------------------------------------------------
# nutty block
# ---------------------------------------------------------------------------


@cli.group("block")
def block_group() -> None:
    """Add, list, move and delete content blocks."""


@block_group.command("add")
@click.argument("text")
@click.option("--kind", type=click.Choice(CONTENT_KINDS), default="paragraph", show_default=True)
@click.option("--parent", "parent", default=None, help="Parent block id or nid")
@click.option("--after", "after", default=None, help="Insert right after this sibling")
@click.pass_obj
def block_add(obj: dict, text: str, kind: str, parent: str | None, after: str | None) -> None:
    """Append a block (or insert it after a sibling)."""
    store = _store(obj["cfg"])
    parent_id = _block_id(store, parent) if parent else None
    after_id = _block_id(store, after) if after else None
    try:
        block = store.add(BlockContent(kind, text), parent_id=parent_id, after=after_id)
    except (BlockNotFoundError, NuttyError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(block.nutty_id.to_wire())


@block_group.command("list")
@click.pass_obj
def block_list(obj: dict) -> None:
    """Print the block tree with nids and indices."""
    from rich.console import Console
    from rich.markup import escape

    store = _store(obj["cfg"])
    console = Console()
    n = 0
    for depth, block in store.iter_tree():
        n += 1
        indent = "  " * depth
        console.print(
            f"{indent}[bold]{block.nid}[/bold] [dim]{escape(block.f_index.value)}[/dim] "
            f"{escape(block.content.text)}"
        )
    if n == 0:
        console.print("[dim]no blocks; add one with `nutty block add`[/dim]")


@block_group.command("move")
@click.argument("block")
@click.option("--after", default=None, help="New previous sibling")
@click.option("--before", default=None, help="New next sibling")
@click.option("--parent", default=None, help="New parent (block goes last)")
@click.pass_obj
def block_move(obj: dict, block: str, after: str | None, before: str | None, parent: str | None) -> None:
    """Reposition BLOCK; its siblings keep their indices."""
    store = _store(obj["cfg"])
    try:
        moved = store.move(
            _block_id(store, block),
            after=_block_id(store, after) if after else None,
            before=_block_id(store, before) if before else None,
            parent_id=_block_id(store, parent) if parent else None,
        )
    except (BlockNotFoundError, NuttyError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"{moved.nid} -> {moved.f_index.value}")


@block_group.command("links")
@click.argument("block")
@click.pass_obj
def block_links(obj: dict, block: str) -> None:
    """Show the blocks BLOCK tags with [[nid]] and the blocks that tag it."""
    store = _store(obj["cfg"])
    nutty_id = _block_id(store, block)
    try:
        references = store.references(nutty_id)
        backlinks = store.backlinks(nutty_id)
    except BlockNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Links to ({len(references)}):")
    for target in references:
        click.echo(f"  [[{target.nid}]] {target.content.text}")
    click.echo(f"Referenced by ({len(backlinks)}):")
    for source in backlinks:
        click.echo(f"  [[{source.nid}]] {source.content.text}")


@block_group.command("rm")
@click.argument("block")
@click.pass_obj
def block_rm(obj: dict, block: str) -> None:
    """Delete BLOCK and everything below it."""
    store = _store(obj["cfg"])
    nutty_id = _block_id(store, block)
    try:
        store.delete(nutty_id)
    except BlockNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Deleted {nutty_id.nid}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
