"""Tests for termline.history.History -- scroll-back store and persistence."""

from __future__ import annotations

import pytest

from termline.history import History


class TestHistoryEntries:
    """Adding and reading entries, newest first."""

    def test_get_is_newest_first(self) -> None:
        history = History()
        for line in ("a", "b", "c"):
            history.add(line)
        assert history.get(0) == "c"
        assert history.get(1) == "b"
        assert history.get(2) == "a"

    def test_get_out_of_range_is_empty(self) -> None:
        history = History()
        history.add("a")
        assert history.get(1) == ""
        assert history.get(-1) == ""

    def test_add_none_stores_empty_string(self) -> None:
        history = History()
        history.add(None)
        assert len(history) == 1
        assert history.get(0) == ""

    def test_add_unique_skips_repeat_of_newest(self) -> None:
        history = History()
        history.add_unique("ls")
        history.add_unique("ls")
        history.add_unique("pwd")
        history.add_unique("ls")
        assert history.entries() == ["ls", "pwd", "ls"]

    def test_set_replaces_in_place(self) -> None:
        history = History()
        history.add("a")
        history.add("b")
        history.set(1, "A")
        assert history.entries() == ["A", "b"]

    def test_set_out_of_range_is_noop(self) -> None:
        history = History()
        history.add("a")
        history.set(5, "x")
        assert history.entries() == ["a"]

    def test_iter_is_oldest_first(self) -> None:
        history = History()
        history.add("a")
        history.add("b")
        assert list(history) == ["a", "b"]

    def test_clear(self) -> None:
        history = History()
        history.add("a")
        history.clear()
        assert len(history) == 0


class TestHistoryCapacity:
    """max_size bounds the store by evicting the oldest entries."""

    def test_oldest_is_evicted(self) -> None:
        history = History(max_size=2)
        for line in ("x", "y", "z"):
            history.add(line)
        assert history.get(0) == "z"
        assert history.get(1) == "y"
        assert history.get(2) == ""
        assert len(history) == 2

    def test_zero_is_unbounded(self) -> None:
        history = History(max_size=0)
        for i in range(100):
            history.add(str(i))
        assert len(history) == 100

    def test_shrinking_trims_oldest(self) -> None:
        history = History()
        for line in ("a", "b", "c", "d"):
            history.add(line)
        history.max_size = 2
        assert history.entries() == ["c", "d"]

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            History(max_size=-1)
        history = History(max_size=3)
        with pytest.raises(ValueError):
            history.max_size = -5
        assert history.max_size == 3


class TestHistoryBrowse:
    """browse_up / browse_down walk the entries and keep the draft."""

    def make_history(self) -> History:
        history = History()
        for line in ("first", "second", "third"):
            history.add(line)
        return history

    def test_browse_up_walks_back_in_time(self) -> None:
        history = self.make_history()
        assert history.browse_up("draft") == "third"
        assert history.browse_up("third") == "second"
        assert history.browse_up("second") == "first"
        assert history.browse_position == 2

    def test_browse_up_at_oldest_is_idempotent(self) -> None:
        history = self.make_history()
        for _ in range(3):
            history.browse_up("")
        assert history.browse_up("first") is None
        assert history.browse_up("first") is None
        assert history.browse_position == 2

    def test_browse_up_with_empty_history(self) -> None:
        history = History()
        assert history.browse_up("typed") is None
        assert history.is_browsing is False

    def test_browse_down_returns_draft_past_newest(self) -> None:
        history = self.make_history()
        history.browse_up("half typed")
        history.browse_up("")
        assert history.browse_down() == "third"
        assert history.browse_down() == "half typed"
        assert history.is_browsing is False

    def test_browse_down_when_not_browsing(self) -> None:
        history = self.make_history()
        assert history.browse_down() is None

    def test_reset_browse(self) -> None:
        history = self.make_history()
        history.browse_up("x")
        history.reset_browse()
        assert history.browse_position == -1
        assert history.draft == ""


class TestHistoryPersistence:
    """save / load through a plain text file."""

    def test_round_trip(self, tmp_path) -> None:
        path = tmp_path / "history"
        history = History()
        for line in ("a", "b", "c"):
            history.add(line)
        history.save(path)

        loaded = History()
        loaded.load(path)
        assert loaded.get(0) == "c"
        assert loaded.get(1) == "b"
        assert loaded.get(2) == "a"

    def test_file_is_oldest_first(self, tmp_path) -> None:
        path = tmp_path / "history"
        history = History()
        history.add("old")
        history.add("new")
        history.save(path)
        assert path.read_text(encoding="utf-8") == "old\nnew\n"

    def test_save_overwrites(self, tmp_path) -> None:
        path = tmp_path / "history"
        path.write_text("stale\nstale\nstale\n", encoding="utf-8")
        history = History()
        history.add("fresh")
        history.save(path)
        assert path.read_text(encoding="utf-8") == "fresh\n"

    def test_load_replaces_entries(self, tmp_path) -> None:
        path = tmp_path / "history"
        path.write_text("one\ntwo\n", encoding="utf-8")
        history = History()
        history.add("existing")
        history.load(path)
        assert history.entries() == ["one", "two"]

    def test_load_respects_max_size(self, tmp_path) -> None:
        path = tmp_path / "history"
        path.write_text("1\n2\n3\n4\n", encoding="utf-8")
        history = History(max_size=2)
        history.load(path)
        assert history.entries() == ["3", "4"]

    def test_load_accepts_crlf(self, tmp_path) -> None:
        path = tmp_path / "history"
        path.write_bytes(b"one\r\ntwo\r\n")
        history = History()
        history.load(path)
        assert history.entries() == ["one", "two"]

    def test_load_keeps_blank_lines(self, tmp_path) -> None:
        path = tmp_path / "history"
        path.write_text("a\n\nb\n", encoding="utf-8")
        history = History()
        history.load(path)
        assert history.entries() == ["a", "", "b"]

    def test_load_missing_file_raises(self, tmp_path) -> None:
        history = History()
        history.add("kept")
        with pytest.raises(FileNotFoundError):
            history.load(tmp_path / "nope")
        assert history.entries() == ["kept"]

    def test_load_resets_browse(self, tmp_path) -> None:
        path = tmp_path / "history"
        path.write_text("x\n", encoding="utf-8")
        history = History()
        history.add("a")
        history.browse_up("")
        history.load(path)
        assert history.is_browsing is False
