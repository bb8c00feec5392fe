from __future__ import annotations

import pytest
from click.testing import CliRunner

from nutty.cli import cli
from nutty.nutty_id import WIRE_PATTERN

KNOWN_WIRE = "1CNjZEV7a6mVR14vf8UtLA:jzBBXYW"


@pytest.fixture
def runner(tmp_path, monkeypatch) -> CliRunner:
    monkeypatch.chdir(tmp_path)
    return CliRunner()


def test_init(runner: CliRunner, tmp_path):
    result = runner.invoke(cli, ["init", "notes"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "nutty.toml").exists()

    again = runner.invoke(cli, ["init"])
    assert again.exit_code == 0
    assert "already exists" in again.output


def test_id_new(runner: CliRunner):
    result = runner.invoke(cli, ["id", "new", "-n", "3"])
    assert result.exit_code == 0, result.output
    lines = result.output.split()
    assert len(lines) == 3
    assert all(WIRE_PATTERN.fullmatch(line) for line in lines)


def test_id_inspect_wire(runner: CliRunner):
    result = runner.invoke(cli, ["id", "inspect", KNOWN_WIRE])
    assert result.exit_code == 0, result.output
    assert "jzBBXYW" in result.output
    assert "0196934a-2c78-7e03-884f-bd7d01cb50ab" in result.output


def test_id_inspect_bare_nid(runner: CliRunner):
    result = runner.invoke(cli, ["id", "inspect", "jzBBXYW"])
    assert result.exit_code == 0, result.output
    assert "Dissociated" in result.output


def test_id_inspect_checksum_failure(runner: CliRunner):
    result = runner.invoke(cli, ["id", "inspect", "1CNjZEV7a6mVR14vf8UtLA:jzBBXYX"])
    assert result.exit_code != 0
    assert "NID mismatch" in result.output


def test_id_check(runner: CliRunner):
    assert runner.invoke(cli, ["id", "check", "zmM9z4E"]).exit_code == 0
    bad = runner.invoke(cli, ["id", "check", "zzzzzzz"])
    assert bad.exit_code != 0
    assert "Invalid Nutty ID format" in bad.output


def test_index_between(runner: CliRunner):
    result = runner.invoke(cli, ["index", "between", "!", "~"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "OP"


def test_index_between_identical(runner: CliRunner):
    result = runner.invoke(cli, ["index", "between", "a", "a!"])
    assert result.exit_code != 0
    assert "Identical indices" in result.output


def test_index_sort(runner: CliRunner):
    result = runner.invoke(cli, ["index", "sort", "b", "a~", "a", "a!b"])
    assert result.exit_code == 0, result.output
    assert result.output.split() == ["a", "a!b", "a~", "b"]


def test_index_rejects_invalid(runner: CliRunner):
    result = runner.invoke(cli, ["index", "between", "a b", "c"])
    assert result.exit_code != 0
    assert "Invalid character" in result.output


def test_block_workflow(runner: CliRunner):
    page = runner.invoke(cli, ["block", "add", "Inbox", "--kind", "page"])
    assert page.exit_code == 0, page.output
    page_id = page.output.strip()
    page_nid = page_id.split(":")[1]

    first = runner.invoke(cli, ["block", "add", "first", "--parent", page_nid]).output.strip()
    second = runner.invoke(cli, ["block", "add", "second", "--parent", page_id]).output.strip()

    moved = runner.invoke(cli, ["block", "move", second, "--before", first])
    assert moved.exit_code == 0, moved.output

    listing = runner.invoke(cli, ["block", "list"])
    assert listing.exit_code == 0, listing.output
    out = listing.output
    assert out.index("Inbox") < out.index("second") < out.index("first")

    removed = runner.invoke(cli, ["block", "rm", page_nid])
    assert removed.exit_code == 0, removed.output
    assert "no blocks" in runner.invoke(cli, ["block", "list"]).output


def test_block_unknown_nid(runner: CliRunner):
    result = runner.invoke(cli, ["block", "rm", "1111111"])
    assert result.exit_code != 0
    assert "No block with nid" in result.output


def test_block_links(runner: CliRunner):
    target = runner.invoke(cli, ["block", "add", "Homework", "--kind", "page"]).output.strip()
    target_nid = target.split(":")[1]
    source = runner.invoke(cli, ["block", "add", f"due friday [[{target_nid}|hw]]"])
    assert source.exit_code == 0, source.output
    source_nid = source.output.strip().split(":")[1]

    outgoing = runner.invoke(cli, ["block", "links", source_nid])
    assert outgoing.exit_code == 0, outgoing.output
    assert "Links to (1):" in outgoing.output
    assert f"[[{target_nid}]] Homework" in outgoing.output
    assert "Referenced by (0):" in outgoing.output

    incoming = runner.invoke(cli, ["block", "links", target])
    assert incoming.exit_code == 0, incoming.output
    assert "Links to (0):" in incoming.output
    assert "Referenced by (1):" in incoming.output
    assert f"[[{source_nid}]] due friday" in incoming.output


def test_block_move_rejects_non_adjacent_pair(runner: CliRunner):
    a, b, c = (runner.invoke(cli, ["block", "add", t]).output.strip() for t in "abc")
    result = runner.invoke(cli, ["block", "move", a, "--after", c, "--before", b])
    assert result.exit_code != 0
    assert "not directly before" in result.output


def test_init_with_timezone(runner: CliRunner, tmp_path):
    result = runner.invoke(cli, ["init", "--timezone", "Europe/Berlin"])
    assert result.exit_code == 0, result.output
    assert 'timezone = "Europe/Berlin"' in (tmp_path / "nutty.toml").read_text()


def test_init_rejects_unknown_timezone(runner: CliRunner, tmp_path):
    result = runner.invoke(cli, ["init", "--timezone", "Mars/Olympus_Mons"])
    assert result.exit_code != 0
    assert "unknown timezone" in result.output
    assert not (tmp_path / "nutty.toml").exists()
