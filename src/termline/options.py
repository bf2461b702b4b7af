"""Line editor configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

DEFAULT_WORD_BREAK_CHARS = " \n"


def _default_ctrl_z_is_eof() -> bool:
    return os.sep == "\\"


def _default_ctrl_c_interrupts() -> bool:
    return os.sep == "/"


@dataclass
class EditorOptions:
    """Behaviour switches for :class:`~termline.line_editor.LineEditor`.

    Values are validated on construction and on every assignment; invalid
    values raise ``ValueError`` and leave the previous value in place.

    Attributes:
        word_break_chars: Characters that delimit the word handed to the
            completion provider. Must not be empty.
        ctrl_d_is_eof: Ctrl-D on an empty line ends input. When off, or when
            the line is not empty, Ctrl-D deletes the character under the
            cursor.
        ctrl_z_is_eof: Ctrl-Z on an empty line ends input. Defaults on where
            the path separator is a backslash.
        ctrl_c_interrupts: Ctrl-C ends input and notifies interrupt
            handlers. When off, Ctrl-C cancels the current line. Defaults on
            where the path separator is a slash.
        enter_is_duplicate: Enter on an empty line returns the most recent
            history entry.
        history_size: Maximum number of history entries, 0 for no limit.
    """

    word_break_chars: str = DEFAULT_WORD_BREAK_CHARS
    ctrl_d_is_eof: bool = True
    ctrl_z_is_eof: bool = field(default_factory=_default_ctrl_z_is_eof)
    ctrl_c_interrupts: bool = field(default_factory=_default_ctrl_c_interrupts)
    enter_is_duplicate: bool = False
    history_size: int = 0

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "word_break_chars":
            if not value:
                raise ValueError("word_break_chars must not be empty")
            value = "".join(value)
        elif name == "history_size":
            if value < 0:
                raise ValueError(f"history_size must be >= 0, got {value}")
        super().__setattr__(name, value)
