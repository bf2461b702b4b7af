"""Edit buffer for a single line of terminal input, with incremental repaint.

The buffer keeps three coordinate systems in step: the logical cursor index,
the on-screen width of every character (tabs expand to the next tab stop,
control characters render as two-column ``^X``), and the absolute screen
column of the cursor. Every mutation repaints only the tail of the line from
the edit point and then walks the terminal cursor back with backspaces.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from termline.options import DEFAULT_WORD_BREAK_CHARS

TAB_WIDTH = 8
BACKSPACE = "\b"


@dataclass
class Cell:
    """One character of the line and the columns it took at its last render."""

    char: str
    width: int = 0


def char_width(ch: str, column: int) -> int:
    """Number of columns *ch* occupies when painted at *column*."""
    if ch == "\t":
        return TAB_WIDTH - (column % TAB_WIDTH)
    code = ord(ch)
    if code < 0x20 or code == 0x7F:
        return 2
    return 1


def render_char(ch: str, column: int) -> str:
    """Text written to the terminal for *ch* painted at *column*."""
    if ch == "\t":
        return " " * char_width(ch, column)
    code = ord(ch)
    if code == 0x7F:
        return "^?"
    if code < 0x20:
        return "^" + chr(code + 0x40)
    return ch


def _is_word_char(ch: str) -> bool:
    return ch.isalnum()


class EditBuffer:
    """Line contents, cursor/column bookkeeping and the repaint algorithm.

    Args:
        write: Sink for terminal output (normally ``Terminal.write``).
        word_break_chars: Characters that delimit the completion word.
        start_column: Screen column where the editable text begins, i.e.
            the width of the prompt.
    """

    def __init__(
        self,
        write: Callable[[str], None],
        word_break_chars: str = DEFAULT_WORD_BREAK_CHARS,
        start_column: int = 0,
    ) -> None:
        self._write = write
        self.word_break_chars = word_break_chars
        self.overwrite: bool = False

        self._cells: list[Cell] = []
        self._cursor: int = 0
        self._start_column: int = start_column
        self._column: int = start_column
        self._last_column: int = start_column
        self._current_word: str = ""
        self._pending: list[str] | None = None

    # -- state ----------------------------------------------------------------

    @property
    def text(self) -> str:
        return "".join(cell.char for cell in self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def column(self) -> int:
        return self._column

    @property
    def last_column(self) -> int:
        return self._last_column

    @property
    def start_column(self) -> int:
        return self._start_column

    @property
    def widths(self) -> list[int]:
        return [cell.width for cell in self._cells]

    @property
    def current_word(self) -> str:
        return self._current_word

    def reset(self, start_column: int = 0) -> None:
        """Start a fresh, empty line whose text begins at *start_column*."""
        self._cells = []
        self._cursor = 0
        self._start_column = start_column
        self._column = start_column
        self._last_column = start_column
        self.overwrite = False
        self._current_word = ""

    # -- word tracking ----------------------------------------------------------

    def collect_word(self) -> str:
        """Cache and return the text between the last word break and the cursor."""
        start = self._cursor
        while start > 0 and self._cells[start - 1].char not in self.word_break_chars:
            start -= 1
        self._current_word = "".join(
            cell.char for cell in self._cells[start : self._cursor]
        )
        return self._current_word

    def clear_word(self) -> None:
        self._current_word = ""

    # -- painting ---------------------------------------------------------------

    def _repaint(self, *, step: bool = False, move_to_end: bool = False) -> None:
        """Repaint from the cursor to the end of the line.

        Recomputes the width of every repainted cell, blanks columns left over
        from a longer previous render, then backspaces to the target column:
        the cursor itself, one cell past it (*step*), or the end of the line
        (*move_to_end*).
        """
        out: list[str] = []
        column = self._column
        for cell in self._cells[self._cursor :]:
            cell.width = char_width(cell.char, column)
            out.append(render_char(cell.char, column))
            column += cell.width

        if column > self._last_column:
            self._last_column = column
        elif column < self._last_column:
            out.append(" " * (self._last_column - column))
            column, self._last_column = self._last_column, column

        if move_to_end:
            back = column - self._last_column
            self._cursor = len(self._cells)
            self._column = self._last_column
        elif step:
            target = self._column + self._cells[self._cursor].width
            back = column - target
            self._column = target
            self._cursor += 1
        else:
            back = column - self._column

        out.append(BACKSPACE * back)
        self._emit(out)

    def _emit(self, out: list[str]) -> None:
        data = "".join(out)
        if self._pending is not None:
            self._pending.append(data)
        elif data:
            self._write(data)

    @contextmanager
    def batched_output(self) -> Iterator[None]:
        """Hold back painting inside the block and write it as one chunk.

        Nested blocks join the outermost one.
        """
        if self._pending is not None:
            yield
            return
        self._pending = []
        try:
            yield
        finally:
            data = "".join(self._pending)
            self._pending = None
            if data:
                self._write(data)

    def redraw(self, cursor: int | None = None) -> None:
        """Repaint the whole line from the start column.

        The terminal cursor must already sit at the start column (right after
        the prompt). Leaves the logical cursor at *cursor*, default the
        current position.
        """
        text = self.text
        target = self._cursor if cursor is None else max(0, min(cursor, len(text)))
        saved_overwrite = self.overwrite
        self.overwrite = False

        self._cells = []
        self._cursor = 0
        self._column = self._start_column
        self._last_column = self._start_column
        with self.batched_output():
            self.insert_text(text)
            self.go_back(len(self._cells) - target)

        self.overwrite = saved_overwrite

    def end_line(self) -> None:
        """Move past the end of the line and emit a line terminator."""
        with self.batched_output():
            self._repaint(move_to_end=True)
            self._emit(["\r\n"])

    # -- insertion --------------------------------------------------------------

    def insert_char(self, ch: str) -> None:
        """Insert (or, in overwrite mode, replace) one character at the cursor."""
        if self.overwrite and self._cursor < len(self._cells):
            self._cells[self._cursor] = Cell(ch)
        else:
            self._cells.insert(self._cursor, Cell(ch))
        self._repaint(step=True)
        self.collect_word()

    def insert_text(self, text: str) -> None:
        with self.batched_output():
            for ch in text:
                self.insert_char(ch)

    def set_text(self, text: str) -> None:
        """Replace the whole line with *text*, cursor at the end."""
        with self.batched_output():
            self.clear()
            self.insert_text(text)

    # -- deletion ---------------------------------------------------------------

    def delete(self, count: int = 1) -> bool:
        """Delete up to *count* characters at the cursor. False if nothing was deleted."""
        count = min(count, len(self._cells) - self._cursor)
        if count <= 0:
            return False
        del self._cells[self._cursor : self._cursor + count]
        self._repaint()
        self.collect_word()
        return True

    def backspace(self) -> bool:
        """Delete the character before the cursor. False at the start of the line."""
        if self._cursor == 0:
            return False
        with self.batched_output():
            self.go_back(1)
            self.delete(1)
        return True

    def clear(self) -> None:
        """Erase the whole line from the screen and the buffer."""
        with self.batched_output():
            self.go_back(self._cursor)
            self._cells = []
            self._repaint()
        self._current_word = ""

    def erase_to_start(self) -> str | None:
        """Erase everything before the cursor and return it, or None if at start."""
        if self._cursor == 0:
            return None
        erased = self.text[: self._cursor]
        count = self._cursor
        with self.batched_output():
            self.go_back(count)
            self.delete(count)
        return erased

    def erase_to_end(self) -> str:
        """Erase from the cursor to the end of the line and return it."""
        erased = self.text[self._cursor :]
        del self._cells[self._cursor :]
        self._repaint()
        self._current_word = ""
        return erased

    def erase_word(self) -> str | None:
        """Erase the whitespace-delimited word before the cursor."""
        start = self._cursor
        while start > 0 and self._cells[start - 1].char.isspace():
            start -= 1
        while start > 0 and not self._cells[start - 1].char.isspace():
            start -= 1
        return self._erase_back_to(start)

    def erase_to_start_word(self) -> str | None:
        """Erase back to the start of the current (alphanumeric) word."""
        return self._erase_back_to(self._word_start())

    def erase_to_end_word(self) -> str | None:
        """Erase forward to the end of the current (alphanumeric) word."""
        end = self._word_end()
        if end <= self._cursor:
            return None
        erased = self.text[self._cursor : end]
        self.delete(end - self._cursor)
        return erased

    def _erase_back_to(self, start: int) -> str | None:
        if start >= self._cursor:
            return None
        count = self._cursor - start
        erased = self.text[start : self._cursor]
        with self.batched_output():
            self.go_back(count)
            self.delete(count)
        return erased

    # -- movement ---------------------------------------------------------------

    def go_back(self, count: int) -> None:
        """Move the cursor left by *count* characters, clamped at the start."""
        count = min(count, self._cursor)
        out: list[str] = []
        for _ in range(count):
            self._cursor -= 1
            width = self._cells[self._cursor].width
            self._column -= width
            out.append(BACKSPACE * width)
        self._emit(out)

    def go_forward(self, count: int) -> None:
        """Move the cursor right by *count* characters by repainting them in place."""
        count = min(count, len(self._cells) - self._cursor)
        out: list[str] = []
        for _ in range(count):
            cell = self._cells[self._cursor]
            out.append(render_char(cell.char, self._column))
            self._column += cell.width
            self._cursor += 1
        self._emit(out)

    def move_left(self) -> bool:
        if self._cursor == 0:
            return False
        self.go_back(1)
        return True

    def move_right(self) -> bool:
        if self._cursor >= len(self._cells):
            return False
        self.go_forward(1)
        return True

    def move_home(self) -> None:
        self.go_back(self._cursor)

    def move_end(self) -> None:
        self._repaint(move_to_end=True)

    def move_to(self, index: int) -> None:
        """Move the cursor to *index*, clamped to ``[0, len(self)]``."""
        index = max(0, min(index, len(self._cells)))
        if index < self._cursor:
            self.go_back(self._cursor - index)
        else:
            self.go_forward(index - self._cursor)

    def move_by(self, delta: int) -> None:
        self.move_to(self._cursor + delta)

    def move_forward_word(self) -> None:
        self.move_to(self._word_end())

    def move_backward_word(self) -> None:
        self.move_to(self._word_start())

    def _word_start(self) -> int:
        pos = self._cursor
        while pos > 0 and not _is_word_char(self._cells[pos - 1].char):
            pos -= 1
        while pos > 0 and _is_word_char(self._cells[pos - 1].char):
            pos -= 1
        return pos

    def _word_end(self) -> int:
        pos = self._cursor
        while pos < len(self._cells) and not _is_word_char(self._cells[pos].char):
            pos += 1
        while pos < len(self._cells) and _is_word_char(self._cells[pos].char):
            pos += 1
        return pos
