import random

import pytest

from utils.recency import DEFAULT_HISTORY_SIZE, RecencyBuffer, select_image


def test_default_capacity_is_fifty():
    assert RecencyBuffer().capacity == DEFAULT_HISTORY_SIZE == 50


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        RecencyBuffer(0)


def test_append_evicts_oldest_first():
    history = RecencyBuffer(3)
    for name in ["a.png", "b.png", "c.png", "d.png", "e.png"]:
        history.append(name)
        assert len(history) <= 3
    assert history.snapshot() == ["c.png", "d.png", "e.png"]
    assert "a.png" not in history


def test_clear_empties_buffer():
    history = RecencyBuffer(3)
    history.append("a.png")
    history.clear()
    assert len(history) == 0


def test_select_never_returns_recent_image():
    rng = random.Random(7)
    snapshot = {f"{i}.png" for i in range(10)}
    history = {"0.png", "1.png", "2.png", "3.png"}
    for _ in range(200):
        chosen = select_image(snapshot, history, rng=rng)
        assert chosen in snapshot - history


def test_select_returns_none_when_everything_is_recent():
    assert select_image({"a.png"}, ["a.png"]) is None
    assert select_image(set(), []) is None


def test_history_entries_missing_from_disk_are_ignored():
    assert select_image({"a.png"}, ["gone.png"]) == "a.png"
