"""
Tests for the cmtree command line interface.
"""

import json

import click
import pytest
from click.testing import CliRunner

from cmtree.cli.main import cli, parse_leaf_value
from cmtree.core.storage import MemoryAdapter, SQLiteAdapter
from cmtree.core.tree import MerkleTree


def last_line(output):
    return output.strip().splitlines()[-1].strip()


@pytest.fixture
def run(clean_env, tmp_path):
    """Invoke the CLI against a throwaway data directory."""
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, ["--data-dir", str(tmp_path), "--tree", "cli-test", *args])

    return invoke


class TestParseLeafValue:
    """Tests for hex leaf parsing."""

    def test_pads_to_64_bytes(self):
        assert parse_leaf_value("01") == b"\x01" + bytes(63)

    def test_full_length_kept(self):
        assert parse_leaf_value("ab" * 64) == b"\xab" * 64

    def test_prefix_accepted(self):
        assert parse_leaf_value("0x01") == parse_leaf_value("01")

    def test_too_long_rejected(self):
        with pytest.raises(click.BadParameter):
            parse_leaf_value("00" * 65)

    def test_not_hex_rejected(self):
        with pytest.raises(click.BadParameter):
            parse_leaf_value("xyz")


class TestCommands:
    """End-to-end command tests."""

    def test_init_creates_tree(self, run, tmp_path):
        result = run("init", "--depth", "4")

        assert result.exit_code == 0, result.output
        assert "Depth: 4 (16 leaves)" in result.output

        store = SQLiteAdapter(tmp_path / "tree.db")
        tree = MerkleTree.new(store, "cli-test", depth=4)
        assert tree.get_root().hex() in result.output
        store.close()

    def test_init_is_idempotent(self, run):
        first = run("init", "--depth", "4")
        second = run("init", "--depth", "4")

        assert first.exit_code == 0
        assert second.exit_code == 0
        assert last_line(first.output) == last_line(second.output)

    def test_init_rejects_bad_depth(self, run):
        result = run("init", "--depth", "40")
        assert result.exit_code == 2

    def test_update_changes_root(self, run):
        run("init", "--depth", "4")
        before = last_line(run("root").output)

        result = run("update", "5", "01")
        after = last_line(run("root").output)

        assert result.exit_code == 0, result.output
        assert last_line(result.output) == after
        assert before != after
        assert len(after) == 64

    def test_update_matches_library(self, run):
        run("init", "--depth", "4")
        result = run("update", "5", "01")

        expected = MerkleTree.new(MemoryAdapter(), "x", depth=4)
        expected.update_element(5, b"\x01" + bytes(63))
        assert last_line(result.output) == expected.get_root().hex()

    def test_verify(self, run):
        run("init", "--depth", "4")
        run("update", "5", "01")

        ok = run("verify", "5", "01")
        wrong_value = run("verify", "5", "02")
        untouched = run("verify", "6", "00")

        assert ok.exit_code == 0
        assert "verified" in ok.output
        assert wrong_value.exit_code == 1
        assert untouched.exit_code == 0

    def test_path_json(self, run):
        run("init", "--depth", "3")
        run("update", "2", "ff")
        result = run("path", "2", "--json")

        assert result.exit_code == 0, result.output
        start = result.output.index("{")
        payload = json.loads(result.output[start:])
        assert payload["index"] == 2
        assert len(payload["path"]) == 3
        assert all(len(pair) == 2 for pair in payload["path"])

    def test_path_text(self, run):
        run("init", "--depth", "3")
        result = run("path", "0")

        assert result.exit_code == 0, result.output
        assert " 0: " in result.output
        assert " 2: " in result.output

    def test_index_out_of_range(self, run):
        run("init", "--depth", "3")
        result = run("update", "8", "01")
        assert result.exit_code == 2

    def test_bad_hex(self, run):
        run("init", "--depth", "3")
        result = run("update", "1", "nothex")
        assert result.exit_code == 2

    def test_tree_name_from_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / "tree.env"
        env_file.write_text(f"CMTREE_DATA_DIR={tmp_path}\nCMTREE_TREE_NAME=envtree\nCMTREE_DEPTH=2\n")

        result = CliRunner().invoke(cli, ["--env-file", str(env_file), "init"])

        assert result.exit_code == 0, result.output
        assert "Tree: envtree" in result.output
        assert "Depth: 2" in result.output

    def test_bad_env_config(self, clean_env, tmp_path):
        clean_env.setenv("CMTREE_DEPTH", "0")
        result = CliRunner().invoke(cli, ["--data-dir", str(tmp_path), "root"])
        assert result.exit_code == 1


class TestUnknownTree:
    """Commands other than init refuse to create a tree."""

    @pytest.mark.parametrize("args", [
        ("root",),
        ("path", "0"),
        ("verify", "0", "00"),
        ("update", "0", "01"),
    ])
    def test_unknown_tree_rejected(self, run, tmp_path, args):
        result = run(*args)

        assert result.exit_code == 1
        assert "run `cmtree init` first" in result.output

        store = SQLiteAdapter(tmp_path / "tree.db")
        assert not MerkleTree.exists(store, "cli-test")
        assert store.count() == 0
        store.close()

    def test_other_tree_untouched(self, run, tmp_path):
        """An existing tree does not make a different name resolvable."""
        run("init", "--depth", "3")
        result = CliRunner().invoke(
            cli, ["--data-dir", str(tmp_path), "--tree", "missing", "root"]
        )

        assert result.exit_code == 1
        store = SQLiteAdapter(tmp_path / "tree.db")
        assert not MerkleTree.exists(store, "missing")
        store.close()
