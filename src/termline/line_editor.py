"""LineEditor - reads one line of input with Emacs-style editing.

The editor pulls one key at a time from a :class:`~termline.terminal.Terminal`,
decodes it into a :class:`~termline.keybindings.Command` and runs it through
:meth:`LineEditor.dispatch`. Each command makes at most one state transition:

    none        nothing typed yet (also after Ctrl-U / Escape)
    moreInput   a line is in progress
    completing  Tab was pressed and the completion provider is being consulted
    done        the line is finished; ``read_line`` returns

Finished lines are not added to the history automatically; callers decide
what to keep (usually ``editor.history.add_unique(line)``).
"""

from __future__ import annotations

import logging
from typing import Callable, Literal

from termline.buffer import EditBuffer
from termline.completion import (
    CompletionProvider,
    CompletionRequest,
    CompletionResult,
    display_width,
    format_alternatives,
)
from termline.history import History
from termline.keybindings import (
    Command,
    EditorAction,
    EditorKeybindingsManager,
    decode_command,
)
from termline.keys import KeyEvent
from termline.options import EditorOptions
from termline.terminal import Terminal
from termline.yank_span import YankSpan

logger = logging.getLogger(__name__)

ReadState = Literal["none", "moreInput", "completing", "done"]
ReadStatus = Literal["line", "eof", "interrupt"]

# Commands that leave a pending completion sequence alone
_KEEPS_COMPLETION: frozenset[EditorAction] = frozenset(
    {"tab", "bell", "redraw", "toggleOverwrite", "literalNext"}
)


class LineEditor:
    """Interactive line reader bound to one terminal.

    Args:
        terminal: Driver the editor reads keys from and writes output to.
        options: Behaviour switches; a default ``EditorOptions`` if omitted.
        history: History store to browse. When omitted the editor creates
            its own, bounded by ``options.history_size``.
        keybindings: Key to action mapping; the defaults if omitted.
    """

    def __init__(
        self,
        terminal: Terminal,
        options: EditorOptions | None = None,
        history: History | None = None,
        keybindings: EditorKeybindingsManager | None = None,
    ) -> None:
        self.terminal = terminal
        self.options = options if options is not None else EditorOptions()
        self.history = (
            history if history is not None else History(self.options.history_size)
        )
        self.keybindings = (
            keybindings if keybindings is not None else EditorKeybindingsManager()
        )
        self.completion_provider: CompletionProvider | None = None

        self.buffer = EditBuffer(terminal.write, self.options.word_break_chars)
        self.yank_span = YankSpan()
        self.state: ReadState = "none"
        self.last_status: ReadStatus = "line"
        self.prompt: str = ""

        self._result: str | None = None
        self._literal_next: bool = False
        self._active: bool = False

        # Completion sequence
        self._fragment: str = ""
        self._attempt: int = 0
        self._inserted_count: int = 0

        self._interrupt_handlers: list[Callable[[], None]] = []
        self._resize_handlers: list[Callable[[], None]] = []
        self._resume_handlers: list[Callable[[], None]] = []

        self._actions: dict[EditorAction, Callable[[Command], None]] = {
            "insertChar": self._insert_char,
            "cursorLeft": self._cursor_left,
            "cursorRight": self._cursor_right,
            "cursorWordLeft": lambda _: self.buffer.move_backward_word(),
            "cursorWordRight": lambda _: self.buffer.move_forward_word(),
            "cursorLineStart": lambda _: self.buffer.move_home(),
            "cursorLineEnd": lambda _: self.buffer.move_end(),
            "deleteCharBackward": self._delete_char_backward,
            "deleteCharForward": self._delete_char_forward,
            "deleteCharOrEof": self._delete_char_or_eof,
            "deleteWordBackward": lambda _: self._kill(self.buffer.erase_word()),
            "deleteToWordEnd": lambda _: self._kill(self.buffer.erase_to_end_word()),
            "deleteToWordStart": lambda _: self._kill(
                self.buffer.erase_to_start_word()
            ),
            "deleteToLineStart": self._delete_to_line_start,
            "deleteToLineEnd": lambda _: self._kill(self.buffer.erase_to_end()),
            "clearLine": self._clear_line,
            "yank": self._yank,
            "historyPrevious": self._history_previous,
            "historyNext": self._history_next,
            "literalNext": self._set_literal_next,
            "toggleOverwrite": self._toggle_overwrite,
            "submit": self._submit,
            "tab": self._tab,
            "redraw": self._redraw,
            "interrupt": self._interrupt,
            "endOfFile": self._end_of_file,
            "bell": lambda _: self.terminal.beep(),
        }

    # -- handlers -------------------------------------------------------------

    def on_interrupt(self, handler: Callable[[], None]) -> None:
        """Call *handler* when Ctrl-C ends input (``ctrl_c_interrupts``)."""
        self._interrupt_handlers.append(handler)

    def on_resize(self, handler: Callable[[], None]) -> None:
        """Call *handler* after the line is redrawn for a window resize."""
        self._resize_handlers.append(handler)

    def on_resume(self, handler: Callable[[], None]) -> None:
        """Call *handler* after the line is redrawn when the process resumes."""
        self._resume_handlers.append(handler)

    def set_history_size(self, size: int) -> None:
        """Change ``options.history_size`` and trim the history to match."""
        self.options.history_size = size
        self.history.max_size = size

    # -- public API -----------------------------------------------------------

    def read_line(self, prompt: str = "") -> str | None:
        """Read one line of input.

        Returns the finished line, or ``None`` on end of input or interrupt;
        ``last_status`` tells which.

        Raises:
            RuntimeError: if called while another read on this editor is
                still in progress.
        """
        self._enter()
        try:
            self.terminal.start(self._handle_resize, self._handle_resume)
            self.begin(prompt)
            while self.state != "done":
                try:
                    event = self.terminal.read_key()
                except EOFError:
                    logger.debug("input stream closed")
                    self._finish(None, "eof")
                    break
                self.feed(event)
            return self._completed_line()
        finally:
            self.terminal.stop()
            self._active = False

    def read_password(self, prompt: str = "") -> str | None:
        """Read a line without echoing it; each character shows as ``*``.

        Only backspace editing is supported. Returns ``None`` if input ends
        or is interrupted before Enter.
        """
        self._enter()
        try:
            self.terminal.start(self._notify_resize, self._notify_resume)
            self.last_status = "line"
            self.terminal.write(prompt)
            chars: list[str] = []
            while True:
                try:
                    event = self.terminal.read_key()
                except EOFError:
                    self.last_status = "eof"
                    return None

                if self.keybindings.matches(event, "submit"):
                    self.terminal.write("\r\n")
                    return "".join(chars)
                if self.keybindings.matches(event, "deleteCharBackward"):
                    if chars:
                        chars.pop()
                        self.terminal.write("\b \b")
                    else:
                        self.terminal.beep()
                elif (
                    self.keybindings.matches(event, "interrupt")
                    and self.options.ctrl_c_interrupts
                ):
                    self.terminal.write("\r\n")
                    self.last_status = "interrupt"
                    self._notify(self._interrupt_handlers)
                    return None
                elif (
                    event.char
                    and event.char.isprintable()
                    and not (event.ctrl or event.alt)
                ):
                    chars.append(event.char)
                    self.terminal.write("*")
        finally:
            self.terminal.stop()
            self._active = False

    def begin(self, prompt: str = "") -> None:
        """Write *prompt* and start a fresh line.

        ``read_line`` calls this itself; it is public so a caller can drive
        the editor with :meth:`feed` from its own event loop.
        """
        self.prompt = prompt
        self.terminal.write(prompt)
        self.buffer.word_break_chars = self.options.word_break_chars
        self.buffer.reset(display_width(self._prompt_tail))
        self.history.reset_browse()
        self._reset_completion()
        self._literal_next = False
        self._result = None
        self.state = "none"
        self.last_status = "line"

    def feed(self, event: KeyEvent) -> None:
        """Decode one key event and dispatch it."""
        literal_next, self._literal_next = self._literal_next, False
        command = decode_command(event, self.keybindings, literal_next)
        if command is not None:
            self.dispatch(command)

    def dispatch(self, command: Command) -> None:
        """Run one editing command against the current line."""
        if self.state == "done":
            return
        if command.action not in _KEEPS_COMPLETION and self.state == "completing":
            self._reset_completion()
            self.state = "moreInput"
        self._actions[command.action](command)

    @property
    def line(self) -> str | None:
        """The finished line once state is ``done``, else ``None``."""
        return self._completed_line() if self.state == "done" else None

    # -- private: session -----------------------------------------------------

    @property
    def _prompt_tail(self) -> str:
        return self.prompt.rsplit("\n", 1)[-1]

    def _enter(self) -> None:
        if self._active:
            raise RuntimeError("LineEditor is already reading a line")
        self._active = True

    def _finish(self, line: str | None, status: ReadStatus) -> None:
        self._result = line
        self.last_status = status
        self.state = "done"

    def _completed_line(self) -> str | None:
        if self.last_status != "line" or self._result is None:
            return None
        if not self._result and self.options.enter_is_duplicate and len(self.history):
            return self.history.get(0)
        return self._result

    def _cancel_line(self) -> None:
        self.buffer.end_line()
        self.terminal.write(self.prompt)
        self.buffer.reset(display_width(self._prompt_tail))
        self.history.reset_browse()
        self.state = "none"

    @staticmethod
    def _notify(handlers: list[Callable[[], None]]) -> None:
        for handler in list(handlers):
            handler()

    def _notify_resize(self) -> None:
        self._notify(self._resize_handlers)

    def _notify_resume(self) -> None:
        self._notify(self._resume_handlers)

    def _repaint_line(self) -> None:
        self.terminal.write("\r" + self._prompt_tail)
        self.buffer.redraw()

    def _handle_resize(self) -> None:
        self._repaint_line()
        self._notify_resize()

    def _handle_resume(self) -> None:
        self._repaint_line()
        self._notify_resume()

    # -- private: editing commands --------------------------------------------

    def _insert_char(self, command: Command) -> None:
        self.buffer.insert_char(command.char)
        self.state = "moreInput"

    def _cursor_left(self, command: Command) -> None:
        if not self.buffer.move_left():
            self.terminal.beep()

    def _cursor_right(self, command: Command) -> None:
        if not self.buffer.move_right():
            self.terminal.beep()

    def _delete_char_backward(self, command: Command) -> None:
        if self.buffer.backspace():
            self.state = "moreInput"
        else:
            self.terminal.beep()

    def _delete_char_forward(self, command: Command) -> None:
        if self.buffer.delete():
            self.state = "moreInput"
        else:
            self.terminal.beep()

    def _delete_char_or_eof(self, command: Command) -> None:
        if self.options.ctrl_d_is_eof and len(self.buffer) == 0:
            self.buffer.clear_word()
            self.buffer.end_line()
            logger.debug("end of file (ctrl+d)")
            self._finish(None, "eof")
        else:
            self._delete_char_forward(command)

    def _kill(self, erased: str | None) -> None:
        self.yank_span.store(erased)
        if erased:
            self.state = "moreInput"

    def _delete_to_line_start(self, command: Command) -> None:
        self.yank_span.store(self.buffer.erase_to_start())
        self.buffer.clear_word()
        self.state = "none"

    def _clear_line(self, command: Command) -> None:
        self.buffer.clear()
        self.buffer.clear_word()
        self.state = "none"

    def _yank(self, command: Command) -> None:
        if not self.yank_span.length:
            self.terminal.beep()
            return
        self.buffer.insert_text(self.yank_span.peek())
        self.state = "moreInput"

    def _history_previous(self, command: Command) -> None:
        line = self.history.browse_up(self.buffer.text)
        if line is None:
            self.terminal.beep()
            return
        self.buffer.set_text(line)
        self.state = "moreInput"

    def _history_next(self, command: Command) -> None:
        line = self.history.browse_down()
        if line is None:
            self.terminal.beep()
            return
        self.buffer.set_text(line)
        self.state = "moreInput"

    def _set_literal_next(self, command: Command) -> None:
        self._literal_next = True

    def _toggle_overwrite(self, command: Command) -> None:
        self.buffer.overwrite = not self.buffer.overwrite

    def _submit(self, command: Command) -> None:
        self.buffer.end_line()
        self.buffer.clear_word()
        self._finish(self.buffer.text, "line")

    def _redraw(self, command: Command) -> None:
        self.terminal.clear_screen()
        self.terminal.write(self.prompt)
        self.buffer.redraw()

    def _interrupt(self, command: Command) -> None:
        if not self.options.ctrl_c_interrupts:
            self._cancel_line()
            self.buffer.clear_word()
            return
        self.buffer.end_line()
        logger.debug("interrupted (ctrl+c)")
        self._finish(None, "interrupt")
        self._notify(self._interrupt_handlers)

    def _end_of_file(self, command: Command) -> None:
        if self.options.ctrl_z_is_eof and len(self.buffer) == 0:
            self.buffer.end_line()
            logger.debug("end of file (ctrl+z)")
            self._finish(None, "eof")

    # -- private: completion --------------------------------------------------

    def _reset_completion(self) -> None:
        self._fragment = ""
        self._attempt = 0
        self._inserted_count = 0

    def _tab(self, command: Command) -> None:
        provider = self.completion_provider
        if provider is None:
            self.buffer.insert_char("\t")
            self.state = "moreInput"
            return

        if self.state != "completing":
            self._reset_completion()
            self._fragment = self.buffer.collect_word()
            self.state = "completing"
        else:
            self._attempt += 1

        request = CompletionRequest(self._fragment, self._attempt)
        result = provider(request)
        if result is None:
            result = CompletionResult()
        logger.debug(
            "completion attempt %d for %r: insert=%r alternatives=%d error=%s",
            request.attempt,
            request.text,
            result.insert,
            len(result.alternatives or ()),
            result.error,
        )

        if result.insert is not None:
            self._insert_completion(result.insert)
        if result.alternatives:
            self._show_alternatives(result.alternatives)
        if result.insert is not None or result.alternatives:
            return

        if result.error:
            self._reset_completion()
            self.state = "moreInput"
        self.terminal.beep()

    def _insert_completion(self, text: str) -> None:
        """Splice *text* in, replacing what the previous attempt inserted."""
        overwrite, self.buffer.overwrite = self.buffer.overwrite, False
        try:
            with self.buffer.batched_output():
                if self._inserted_count:
                    self.buffer.go_back(self._inserted_count)
                    self.buffer.delete(self._inserted_count)
                self.buffer.insert_text(text)
        finally:
            self.buffer.overwrite = overwrite
        self._inserted_count = len(text)

    def _show_alternatives(self, alternatives: list[str]) -> None:
        cursor = self.buffer.cursor
        self.buffer.end_line()
        self.terminal.write(format_alternatives(alternatives, self.terminal.columns))
        self.terminal.write(self.prompt)
        self.buffer.redraw(cursor)
