"""Tests for termline.buffer.EditBuffer -- edit buffer and repaint."""

from __future__ import annotations

import pytest

from termline.buffer import EditBuffer, char_width, render_char

from .virtual_terminal import VirtualTerminal


def make_buffer(prompt: str = "", **kwargs) -> tuple[EditBuffer, VirtualTerminal]:
    term = VirtualTerminal()
    if prompt:
        term.write(prompt)
    buf = EditBuffer(term.write, start_column=len(prompt), **kwargs)
    return buf, term


def assert_consistent(buf: EditBuffer, term: VirtualTerminal) -> None:
    """Logical cursor, cell widths and screen column all agree."""
    assert 0 <= buf.cursor <= len(buf)
    assert buf.column == buf.start_column + sum(buf.widths[: buf.cursor])
    assert term.cursor == (0, buf.column)


# ---------------------------------------------------------------------------
# Rendering rules
# ---------------------------------------------------------------------------


class TestRenderRules:
    """Width and rendering of single characters."""

    def test_printable_is_one_column(self) -> None:
        assert char_width("a", 0) == 1
        assert render_char("a", 0) == "a"

    def test_tab_advances_to_next_stop(self) -> None:
        assert char_width("\t", 0) == 8
        assert char_width("\t", 3) == 5
        assert char_width("\t", 8) == 8
        assert render_char("\t", 5) == "   "

    def test_control_char_renders_caret(self) -> None:
        assert char_width("\x01", 0) == 2
        assert render_char("\x01", 0) == "^A"
        assert render_char("\x1b", 0) == "^["

    def test_del_renders_caret_question(self) -> None:
        assert char_width("\x7f", 0) == 2
        assert render_char("\x7f", 0) == "^?"


# ---------------------------------------------------------------------------
# Insertion
# ---------------------------------------------------------------------------


class TestInsert:
    """insert_char / insert_text keep screen and buffer in step."""

    def test_insert_text_appends(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("hello")
        assert buf.text == "hello"
        assert buf.cursor == 5
        assert term.current_line == "hello"
        assert_consistent(buf, term)

    def test_insert_mid_line_shifts_tail(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("abc")
        buf.move_left()
        buf.move_left()
        buf.insert_char("X")
        assert buf.text == "aXbc"
        assert buf.cursor == 2
        assert term.current_line == "aXbc"
        assert_consistent(buf, term)

    def test_each_operation_is_one_write(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("abc")
        buf.move_home()
        term.clear_buffer()
        buf.insert_char("X")
        assert term.write_count == 1
        assert term.output == "Xabc\b\b\b"

    @pytest.mark.parametrize(
        "operation",
        [
            lambda buf: buf.insert_text("xyz"),
            lambda buf: buf.set_text("other"),
            lambda buf: buf.backspace(),
            lambda buf: buf.erase_word(),
            lambda buf: buf.erase_to_start(),
            lambda buf: buf.clear(),
            lambda buf: buf.redraw(1),
            lambda buf: buf.end_line(),
        ],
    )
    def test_composite_operations_are_one_write(self, operation) -> None:
        buf, term = make_buffer()
        buf.insert_text("ab cd")
        term.clear_buffer()
        operation(buf)
        assert term.write_count == 1

    def test_batched_output_joins_nested_blocks(self) -> None:
        buf, term = make_buffer()
        with buf.batched_output():
            buf.insert_text("ab")
            with buf.batched_output():
                buf.move_home()
            assert term.write_count == 0
        assert term.write_count == 1
        assert term.output == "ab\b\b"

    def test_tab_at_column_3_takes_five(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("abc\t")
        assert buf.widths == [1, 1, 1, 5]
        assert buf.column == 8
        assert_consistent(buf, term)

    def test_tab_at_column_8_takes_eight(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("abcdefgh\t")
        assert buf.widths[-1] == 8
        assert buf.column == 16
        assert_consistent(buf, term)

    def test_tab_width_counts_prompt(self) -> None:
        buf, term = make_buffer("> ")
        buf.insert_char("\t")
        assert buf.widths == [6]
        assert buf.column == 8
        assert_consistent(buf, term)

    def test_tab_width_recomputed_after_insert_before_it(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("ab\tc")
        assert buf.widths[2] == 6
        buf.move_home()
        buf.insert_char("x")
        assert buf.widths[3] == 5
        buf.move_end()
        assert buf.column == 9
        assert term.current_line == "xab     c"
        assert_consistent(buf, term)

    def test_control_char_is_two_columns(self) -> None:
        buf, term = make_buffer()
        buf.insert_char("\x01")
        assert buf.widths == [2]
        assert buf.column == 2
        assert term.current_line == "^A"
        assert_consistent(buf, term)

    def test_overwrite_replaces_under_cursor(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("abc")
        buf.move_home()
        buf.overwrite = True
        buf.insert_char("X")
        assert buf.text == "Xbc"
        assert buf.cursor == 1
        assert term.current_line == "Xbc"

    def test_overwrite_at_end_appends(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("ab")
        buf.overwrite = True
        buf.insert_char("c")
        assert buf.text == "abc"


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


class TestDelete:
    """delete / backspace repaint the shorter tail and erase leftovers."""

    def test_control_char_round_trips_through_delete(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("a\x01b")
        assert sum(buf.widths) == 4
        buf.move_to(1)
        assert buf.delete() is True
        assert len(buf) == 2
        assert sum(buf.widths) == 2
        assert term.current_line == "ab"
        assert_consistent(buf, term)

    def test_backspace_erases_control_char_from_screen(self) -> None:
        buf, term = make_buffer()
        buf.insert_char("\x01")
        assert buf.backspace() is True
        assert buf.text == ""
        assert term.current_line == ""
        assert_consistent(buf, term)

    def test_delete_at_end_is_noop(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("ab")
        term.clear_buffer()
        assert buf.delete() is False
        assert buf.text == "ab"
        assert term.write_count == 0

    def test_backspace_at_start_is_noop(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("ab")
        buf.move_home()
        assert buf.backspace() is False
        assert buf.text == "ab"

    def test_delete_count_is_clamped(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("hello")
        buf.move_to(3)
        buf.delete(10)
        assert buf.text == "hel"
        assert term.current_line == "hel"
        assert_consistent(buf, term)

    def test_shrink_is_erased_with_spaces(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("hello")
        buf.move_home()
        buf.delete(5)
        assert term.current_line == ""
        assert buf.last_column == 0
        assert_consistent(buf, term)

    def test_deleting_before_tab_widens_it(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("ab\tc")
        buf.move_home()
        buf.delete()
        assert buf.widths == [1, 7, 1]
        assert term.current_line == "b       c"
        assert_consistent(buf, term)

    def test_clear_blanks_the_line(self) -> None:
        buf, term = make_buffer("> ")
        buf.insert_text("some text")
        buf.move_to(4)
        buf.clear()
        assert buf.text == ""
        assert term.current_line == ">"
        assert_consistent(buf, term)

    def test_set_text_replaces_longer_line(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("a long line")
        buf.set_text("short")
        assert buf.text == "short"
        assert term.current_line == "short"
        assert_consistent(buf, term)


# ---------------------------------------------------------------------------
# Erase helpers
# ---------------------------------------------------------------------------


class TestErase:
    """Erase operations return what they removed."""

    def test_erase_to_end(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("hello world")
        buf.move_to(5)
        assert buf.erase_to_end() == " world"
        assert buf.text == "hello"
        assert term.current_line == "hello"
        assert_consistent(buf, term)

    def test_erase_to_end_at_end_returns_empty(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("abc")
        assert buf.erase_to_end() == ""

    def test_erase_to_start(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("hello world")
        buf.move_to(6)
        assert buf.erase_to_start() == "hello "
        assert buf.text == "world"
        assert buf.cursor == 0
        assert term.current_line == "world"
        assert_consistent(buf, term)

    def test_erase_to_start_at_start_returns_none(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("abc")
        buf.move_home()
        assert buf.erase_to_start() is None

    def test_erase_word_is_whitespace_delimited(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("cd foo/bar  ")
        assert buf.erase_word() == "foo/bar  "
        assert buf.text == "cd "
        assert_consistent(buf, term)

    def test_erase_to_start_word_stops_at_punctuation(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("cd foo/bar")
        assert buf.erase_to_start_word() == "bar"
        assert buf.text == "cd foo/"

    def test_erase_to_end_word(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("one two three")
        buf.move_to(3)
        assert buf.erase_to_end_word() == " two"
        assert buf.text == "one three"
        assert_consistent(buf, term)

    def test_erase_to_end_word_at_end_returns_none(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("one")
        assert buf.erase_to_end_word() is None


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------


class TestMovement:
    """Cursor movement is clamped and walks the screen cursor."""

    def test_move_left_right_bounds(self) -> None:
        buf, _ = make_buffer()
        assert buf.move_left() is False
        assert buf.move_right() is False
        buf.insert_text("ab")
        assert buf.move_right() is False
        assert buf.move_left() is True

    def test_go_back_over_tab_emits_one_backspace_per_column(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("\t")
        term.clear_buffer()
        buf.go_back(1)
        assert term.output == "\b" * 8

    def test_move_right_repaints_character(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("ab")
        buf.move_home()
        term.clear_buffer()
        buf.move_right()
        assert term.output == "a"

    def test_move_to_is_clamped(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("abc")
        buf.move_to(-5)
        assert buf.cursor == 0
        buf.move_to(99)
        assert buf.cursor == 3
        assert_consistent(buf, term)

    def test_move_by(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("a\tb\x02c")
        buf.move_by(-3)
        assert buf.cursor == 2
        assert_consistent(buf, term)
        buf.move_by(2)
        assert buf.cursor == 4
        assert_consistent(buf, term)

    def test_move_end_then_left_keeps_column(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("a\tb")
        buf.move_home()
        buf.move_end()
        assert buf.column == 9
        buf.move_left()
        assert buf.column == 8
        assert_consistent(buf, term)

    def test_word_movement(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("one, two three")
        buf.move_backward_word()
        assert buf.cursor == 9
        buf.move_backward_word()
        assert buf.cursor == 5
        buf.move_backward_word()
        assert buf.cursor == 0
        buf.move_forward_word()
        assert buf.cursor == 3
        buf.move_forward_word()
        assert buf.cursor == 8
        assert_consistent(buf, term)


# ---------------------------------------------------------------------------
# Redraw / end of line / reset
# ---------------------------------------------------------------------------


class TestRedraw:
    """Whole-line repaint and line termination."""

    def test_redraw_restores_line_and_cursor(self) -> None:
        buf, term = make_buffer("> ")
        buf.insert_text("a\tb\x03")
        buf.move_to(2)
        term.write("\r> ")
        buf.redraw()
        assert buf.cursor == 2
        assert term.current_line == "> a     b^C"
        assert_consistent(buf, term)

    def test_redraw_to_explicit_cursor(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("hello")
        term.write("\r")
        buf.redraw(1)
        assert buf.cursor == 1
        assert_consistent(buf, term)

    def test_redraw_keeps_overwrite_mode(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("abc")
        buf.overwrite = True
        term.write("\r")
        buf.redraw()
        assert buf.text == "abc"
        assert buf.overwrite is True

    def test_end_line_moves_to_end_and_newline(self) -> None:
        buf, term = make_buffer()
        buf.insert_text("hello")
        buf.move_home()
        buf.end_line()
        assert term.output.endswith("\r\n")
        assert term.screen_lines[0] == "hello"
        assert term.cursor == (1, 0)

    def test_reset_starts_empty_line(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("abc")
        buf.overwrite = True
        buf.reset(4)
        assert buf.text == ""
        assert buf.column == 4
        assert buf.start_column == 4
        assert buf.overwrite is False


# ---------------------------------------------------------------------------
# Word tracking
# ---------------------------------------------------------------------------


class TestWordTracking:
    """current_word holds the text back to the nearest word break."""

    def test_word_after_space(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("git che")
        assert buf.current_word == "che"

    def test_word_follows_cursor(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("git checkout")
        buf.move_to(2)
        assert buf.collect_word() == "gi"

    def test_custom_break_chars(self) -> None:
        buf, _ = make_buffer(word_break_chars=" /")
        buf.insert_text("cd src/ter")
        assert buf.current_word == "ter"

    def test_clear_word(self) -> None:
        buf, _ = make_buffer()
        buf.insert_text("abc")
        buf.clear_word()
        assert buf.current_word == ""


# ---------------------------------------------------------------------------
# Invariant over mixed edits
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "ops",
    [
        ["ins:a\tb", "left", "left", "ins:\x01", "del", "home", "ins:\t"],
        ["ins:hello world", "to:5", "kill", "ins:\x7f\t", "bs", "end"],
        ["ins:\t\t", "home", "ins:abc", "right", "bs", "to:1", "del"],
    ],
)
def test_column_invariant_holds_after_every_operation(ops: list[str]) -> None:
    buf, term = make_buffer("$ ")
    for op in ops:
        name, _, arg = op.partition(":")
        if name == "ins":
            buf.insert_text(arg)
        elif name == "left":
            buf.move_left()
        elif name == "right":
            buf.move_right()
        elif name == "home":
            buf.move_home()
        elif name == "end":
            buf.move_end()
        elif name == "to":
            buf.move_to(int(arg))
        elif name == "del":
            buf.delete()
        elif name == "bs":
            buf.backspace()
        elif name == "kill":
            buf.erase_to_end()
        assert_consistent(buf, term)
