from __future__ import annotations

import random
from pathlib import Path

import pytest

from nutty.fractional_index import MAX_CHAR, MIN_CHAR
from nutty.store import BlockStore

# 2025-05-02T23:17:13.976Z, the timestamp inside 0196934a-2c78-7e03-884f-bd7d01cb50ab
FIXED_MS = 1746227833976


@pytest.fixture
def rng() -> random.Random:
    return random.Random(20250502)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_MS


@pytest.fixture
def store(tmp_path: Path) -> BlockStore:
    return BlockStore(tmp_path / ".nutty" / "blocks.jsonl")


def random_index(rng: random.Random, max_len: int = 10) -> str:
    """A random valid fractional index string of 1..max_len characters."""
    n = rng.randint(1, max_len)
    return "".join(chr(rng.randint(MIN_CHAR, MAX_CHAR)) for _ in range(n))
