"""
cmtree CLI - Command Line Interface for content-addressed Merkle trees

Main entry point for all CLI commands.
"""

import json
import logging
from contextlib import contextmanager

import click

from cmtree.utils.logger import setup_logging, get_logger


def parse_leaf_value(value_hex: str) -> bytes:
    """
    Decode a hex leaf value and pad it to the 64-byte leaf size.

    Raises:
        click.BadParameter: if the value is not hex or longer than 64 bytes
    """
    from cmtree.crypto import hex_to_bytes
    from cmtree.core.tree import LEAF_BYTES

    try:
        value = hex_to_bytes(value_hex)
    except ValueError:
        raise click.BadParameter(f"not a hex string: {value_hex!r}")

    if len(value) > LEAF_BYTES:
        raise click.BadParameter(f"leaf value is {len(value)} bytes, max {LEAF_BYTES}")
    return value.ljust(LEAF_BYTES, b"\x00")


@contextmanager
def open_tree(ctx, depth=None, create=False):
    """
    Open the configured store and restore the tree.

    Only `init` passes create=True; every other command fails on an unknown
    tree name instead of persisting a fresh one.
    """
    from cmtree.crypto import get_hasher
    from cmtree.core.errors import MerkleTreeError
    from cmtree.core.storage import SQLiteAdapter
    from cmtree.core.tree import MerkleTree

    config = ctx.obj["config"]
    logger = get_logger("cli")

    store = None
    try:
        store = SQLiteAdapter(config.db_path)
        if not create and not MerkleTree.exists(store, config.tree_name):
            raise click.ClickException(
                f"No tree named {config.tree_name!r} in {config.db_path}, run `cmtree init` first"
            )
        tree = MerkleTree.new(
            store,
            config.tree_name,
            depth=depth if depth is not None else config.depth,
            hasher=get_hasher(config.hasher),
        )
        yield tree
    except MerkleTreeError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise click.ClickException(f"{type(e).__name__}: {e}")
    except IndexError as e:
        raise click.BadParameter(str(e), param_hint="INDEX")
    finally:
        if store is not None:
            store.close()


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (default: $CMTREE_DATA_DIR or ./data)")
@click.option("--tree", "tree_name", default=None, help="Tree name (default: $CMTREE_TREE_NAME or 'default')")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Load settings from this .env file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, tree_name, env_file):
    """Content-addressed fixed-depth Merkle trees"""
    from cmtree.core.config import load_config
    from cmtree.core.errors import InvalidConfiguration

    try:
        config = load_config(env_file, data_dir=data_dir, tree_name=tree_name)
    except InvalidConfiguration as e:
        raise click.ClickException(str(e))

    level = logging.DEBUG if debug else logging.INFO
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    config.data_dir.mkdir(parents=True, exist_ok=True)


# =============================================================================
# Tree Commands
# =============================================================================


@cli.command("init")
@click.option("--depth", type=click.IntRange(1, 32), default=None, help="Tree depth for a new tree")
@click.pass_context
def init(ctx, depth):
    """Create the tree, or restore it if it already exists"""
    with open_tree(ctx, depth=depth, create=True) as tree:
        click.echo(f"✓ Tree: {tree.name}")
        click.echo(f"  Depth: {tree.depth} ({tree.capacity} leaves)")
        click.echo(f"  Root: {tree.get_root().hex()}")


@cli.command("root")
@click.pass_context
def root(ctx):
    """Print the current root"""
    with open_tree(ctx) as tree:
        click.echo(tree.get_root().hex())


@cli.command("update")
@click.argument("index", type=int)
@click.argument("value_hex")
@click.pass_context
def update(ctx, index, value_hex):
    """Set leaf INDEX to VALUE_HEX and print the new root"""
    value = parse_leaf_value(value_hex)
    with open_tree(ctx) as tree:
        new_root = tree.update_element(index, value)
        click.echo(new_root.hex())


@cli.command("path")
@click.argument("index", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def path(ctx, index, as_json):
    """Print the hash path for leaf INDEX (leaf level first)"""
    with open_tree(ctx) as tree:
        hash_path = tree.get_hash_path(index)
        if as_json:
            click.echo(json.dumps({
                "index": index,
                "root": tree.get_root().hex(),
                "path": hash_path.to_hex(),
            }, indent=2))
            return

        for level, (left, right) in enumerate(hash_path):
            click.echo(f"{level:>2}: {left.hex()} {right.hex()}")


@cli.command("verify")
@click.argument("index", type=int)
@click.argument("value_hex")
@click.pass_context
def verify(ctx, index, value_hex):
    """Check that leaf INDEX holds VALUE_HEX under the current root"""
    value = parse_leaf_value(value_hex)
    with open_tree(ctx) as tree:
        hash_path = tree.get_hash_path(index)
        ok = hash_path.verify(value, index, tree.get_root(), tree.hasher)

    if ok:
        click.echo(f"✓ Leaf {index} verified")
    else:
        click.echo(f"✗ Leaf {index} does not match the current root")
        ctx.exit(1)


if __name__ == "__main__":
    cli()
