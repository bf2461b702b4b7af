"""Terminal driver abstraction for blocking, one-key-at-a-time input.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that manages raw mode on a POSIX tty, frames escape
sequences, decodes them into :class:`~termline.keys.KeyEvent` records, and
reports window-resize / process-resume signals.

Signals are never acted on inside the signal handler. They are queued and
the queue is drained from :meth:`ProcessTerminal.read_key`, so callbacks run
between key presses and never in the middle of an edit.
"""

from __future__ import annotations

import codecs
import logging
import os
import select
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from termline.keys import KeyEvent, parse_key_event
from termline.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_CLEAR_SCREEN = "\x1b[2J\x1b[H"
_SET_CURSOR_FMT = "\x1b[{};{}H"
_BELL = "\x07"

# Seconds to wait for the rest of an escape sequence before flushing it
_ESCAPE_TIMEOUT = 0.05
# Poll interval while blocked on input, so queued signals get delivered
_POLL_INTERVAL = 0.1


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for the terminal driver the line editor runs on."""

    def start(
        self,
        on_resize: Callable[[], None],
        on_resume: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def read_key(self, intercept: bool = True) -> KeyEvent:
        """Block until one key is available.

        Raises ``EOFError`` when the input stream is exhausted.
        """
        ...

    def write(self, data: str) -> None: ...

    def beep(self) -> None: ...

    def clear_screen(self) -> None: ...

    @property
    def columns(self) -> int: ...

    def set_cursor(self, column: int, row: int) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """POSIX terminal on the process's own ``sys.stdin`` and ``sys.stdout``.

    Manages raw mode via :mod:`tty` and :mod:`termios` and converts
    SIGWINCH / SIGCONT into resize / resume callbacks.
    """

    def __init__(self) -> None:
        self._resize_handler: Callable[[], None] | None = None
        self._resume_handler: Callable[[], None] | None = None
        self._original_termios: list | None = None
        self._prev_handlers: dict[int, object] = {}
        self._pending_signals: list[int] = []
        self._stdin_buffer = StdinBuffer()
        self._sequences: list[str] = []
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._write_log_path: str = os.environ.get("TERMLINE_WRITE_LOG", "")

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_resize: Callable[[], None],
        on_resume: Callable[[], None],
    ) -> None:
        """Enable raw mode and install the SIGWINCH / SIGCONT handlers."""
        self._resize_handler = on_resize
        self._resume_handler = on_resume

        fd = sys.stdin.fileno()
        if os.isatty(fd):
            self._original_termios = termios.tcgetattr(fd)
            tty.setraw(fd)

        for signum in (signal.SIGWINCH, signal.SIGCONT):
            self._prev_handlers[signum] = signal.getsignal(signum)
            signal.signal(signum, self._on_signal)
        logger.debug("terminal started (raw=%s)", self._original_termios is not None)

    def stop(self) -> None:
        """Leave raw mode and put the previous signal handlers back."""
        for signum, handler in self._prev_handlers.items():
            signal.signal(signum, handler)
        self._prev_handlers.clear()

        if self._original_termios is not None:
            termios.tcsetattr(
                sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios
            )
            self._original_termios = None

        self._resize_handler = None
        self._resume_handler = None
        self._pending_signals.clear()
        logger.debug("terminal stopped")

    # -- input --------------------------------------------------------------

    def read_key(self, intercept: bool = True) -> KeyEvent:
        """Block until a recognised key arrives and return it."""
        while True:
            self._deliver_signals()
            if not self._sequences:
                self._fill_sequences()
                continue
            event = parse_key_event(self._sequences.pop(0))
            if event is None:
                continue
            if not intercept and event.char and event.char.isprintable():
                self.write(event.char)
            return event

    def _fill_sequences(self) -> None:
        fd = sys.stdin.fileno()
        timeout = _ESCAPE_TIMEOUT if self._stdin_buffer.pending else _POLL_INTERVAL
        try:
            readable, _, _ = select.select([fd], [], [], timeout)
        except InterruptedError:
            return
        if not readable:
            if self._stdin_buffer.pending:
                self._sequences.extend(self._stdin_buffer.flush())
            return

        raw = os.read(fd, 1024)
        if not raw:
            self._sequences.extend(self._stdin_buffer.flush())
            if not self._sequences:
                raise EOFError("terminal input closed")
            return
        data = self._decoder.decode(raw)
        self._sequences.extend(self._stdin_buffer.process(data))

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        """Send *data* to stdout, mirroring it to ``TERMLINE_WRITE_LOG`` when set."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError:
                logger.debug("cannot append to write log %s", self._write_log_path)

    def beep(self) -> None:
        self._raw_write(_BELL)

    def clear_screen(self) -> None:
        self._raw_write(_CLEAR_SCREEN)

    def set_cursor(self, column: int, row: int) -> None:
        """Move the cursor to a zero-based (column, row) position."""
        self._raw_write(_SET_CURSOR_FMT.format(row + 1, column + 1))

    # -- private: signals ---------------------------------------------------

    def _on_signal(self, signum: int, frame: object) -> None:
        self._pending_signals.append(signum)

    def _deliver_signals(self) -> None:
        while self._pending_signals:
            signum = self._pending_signals.pop(0)
            logger.debug("delivering signal %d", signum)
            if signum == signal.SIGWINCH and self._resize_handler is not None:
                self._resize_handler()
            elif signum == signal.SIGCONT:
                self._restore_raw_mode()
                if self._resume_handler is not None:
                    self._resume_handler()

    def _restore_raw_mode(self) -> None:
        """Re-enter raw mode; job control resets the tty while stopped."""
        if self._original_termios is not None:
            tty.setraw(sys.stdin.fileno())

    # -- private: raw write -------------------------------------------------

    def _raw_write(self, data: str) -> None:
        """Write and flush immediately; output failures are only logged."""
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            logger.debug("stdout write failed", exc_info=True)
