from __future__ import annotations

from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from nutty.config import ConfigError, init_config, load_config


def test_defaults_without_file(tmp_path: Path):
    cfg = load_config(tmp_path)
    assert cfg.root == tmp_path
    assert cfg.name == tmp_path.name
    assert cfg.store_path == tmp_path / ".nutty" / "blocks.jsonl"
    assert cfg.tzinfo is None
    assert cfg.logging.level == "WARNING"


def test_init_then_load(tmp_path: Path):
    path = init_config(tmp_path, name="notes")
    assert path == tmp_path / "nutty.toml"
    cfg = load_config(tmp_path)
    assert cfg.name == "notes"
    assert cfg.config_path == path


def test_init_refuses_to_overwrite(tmp_path: Path):
    init_config(tmp_path)
    with pytest.raises(FileExistsError):
        init_config(tmp_path)


def test_values_from_file(tmp_path: Path):
    (tmp_path / "nutty.toml").write_text(
        '[nutty]\nname = "x"\nstore_path = "data/b.jsonl"\n'
        '[time]\ntimezone = "Asia/Tokyo"\n'
        '[logging]\nlevel = "debug"\n'
    )
    cfg = load_config(tmp_path)
    assert cfg.store_path == tmp_path / "data" / "b.jsonl"
    assert cfg.tzinfo == ZoneInfo("Asia/Tokyo")
    assert cfg.logging.level == "DEBUG"


def test_found_by_walking_up(tmp_path: Path):
    init_config(tmp_path, name="up")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert load_config(nested).root == tmp_path


@pytest.mark.parametrize(
    "body",
    [
        '[time]\ntimezone = "Mars/Olympus_Mons"\n',
        '[logging]\nlevel = "LOUD"\n',
        "[nutty\n",
    ],
)
def test_bad_config(tmp_path: Path, body: str):
    (tmp_path / "nutty.toml").write_text(body)
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_init_pins_timezone(tmp_path: Path):
    init_config(tmp_path, timezone="Asia/Tokyo")
    assert load_config(tmp_path).tzinfo == ZoneInfo("Asia/Tokyo")


def test_init_rejects_unknown_timezone(tmp_path: Path):
    with pytest.raises(ConfigError):
        init_config(tmp_path, timezone="Mars/Olympus_Mons")
    assert not (tmp_path / "nutty.toml").exists()


def test_init_escapes_project_name(tmp_path: Path):
    init_config(tmp_path, name='my "quoted" notes')
    assert load_config(tmp_path).name == 'my "quoted" notes'
