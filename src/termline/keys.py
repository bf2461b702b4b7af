"""Keyboard input decoding for the line editor.

Turns one complete terminal input sequence (a single character, a control
code, or an escape sequence) into a ``KeyEvent`` carrying the character the
key produced, a key identifier and a modifier bit set. Key identifiers use
the ``"ctrl+a"`` / ``"alt+backspace"`` / ``"up"`` format that the
keybindings manager matches against.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    clear = "clear"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"

    @staticmethod
    def ctrl_alt(key: str) -> str:
        return f"ctrl+alt+{key}"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

SHIFT = MODIFIERS["shift"]
ALT = MODIFIERS["alt"]
CTRL = MODIFIERS["ctrl"]

ESC = "\x1b"
DEL = "\x7f"

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[4~": "end",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1b[E": "clear",
}

LEGACY_SHIFT_SEQUENCES: dict[str, str] = {
    "\x1b[1;2A": "up",
    "\x1b[1;2B": "down",
    "\x1b[1;2C": "right",
    "\x1b[1;2D": "left",
    "\x1b[1;2H": "home",
    "\x1b[1;2F": "end",
    "\x1b[3;2~": "delete",
    "\x1b[Z": "tab",
}

LEGACY_ALT_SEQUENCES: dict[str, str] = {
    "\x1b[1;3A": "up",
    "\x1b[1;3B": "down",
    "\x1b[1;3C": "right",
    "\x1b[1;3D": "left",
    "\x1b[1;3H": "home",
    "\x1b[1;3F": "end",
    "\x1b[3;3~": "delete",
    "\x1b\x1b[3~": "delete",
}

LEGACY_CTRL_SEQUENCES: dict[str, str] = {
    "\x1b[1;5A": "up",
    "\x1b[1;5B": "down",
    "\x1b[1;5C": "right",
    "\x1b[1;5D": "left",
    "\x1b[1;5H": "home",
    "\x1b[1;5F": "end",
    "\x1b[3;5~": "delete",
}

_LEGACY_TABLES: list[tuple[dict[str, str], int]] = [
    (LEGACY_CTRL_SEQUENCES, CTRL),
    (LEGACY_SHIFT_SEQUENCES, SHIFT),
    (LEGACY_ALT_SEQUENCES, ALT),
    (LEGACY_KEY_SEQUENCES, 0),
]

# Control codes with a dedicated key name instead of "ctrl+<letter>"
_NAMED_CONTROL_CODES: dict[str, str] = {
    "\x1b": "escape",
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x08": "backspace",
    DEL: "backspace",
}


# ---------------------------------------------------------------------------
# KeyEvent
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """One decoded key press.

    ``char`` is the character the key produced (empty for pure function keys
    such as arrows), ``key`` the key name and ``modifiers`` a bit set built
    from :data:`MODIFIERS`.
    """

    char: str = ""
    key: KeyId = ""
    modifiers: int = 0

    @property
    def ctrl(self) -> bool:
        return bool(self.modifiers & CTRL)

    @property
    def alt(self) -> bool:
        return bool(self.modifiers & ALT)

    @property
    def shift(self) -> bool:
        return bool(self.modifiers & SHIFT)

    @property
    def key_id(self) -> KeyId:
        """Key identifier with modifier prefixes, e.g. ``"ctrl+alt+h"``."""
        prefix = ""
        if self.ctrl:
            prefix += "ctrl+"
        if self.shift:
            prefix += "shift+"
        if self.alt:
            prefix += "alt+"
        return prefix + self.key

    @classmethod
    def from_char(cls, ch: str) -> KeyEvent:
        """Build the event a terminal would report for a single character."""
        event = parse_key_event(ch)
        if event is None:
            raise ValueError(f"not a single key character: {ch!r}")
        return event


def is_control_char(ch: str) -> bool:
    """True for the C0 codes 0x01-0x1f and DEL, the characters ``^X`` renders."""
    if len(ch) != 1:
        return False
    code = ord(ch)
    return 0x01 <= code <= 0x1F or code == 0x7F


def _control_key_name(ch: str) -> str:
    """Letter or symbol a control code is typed with (0x01 -> "a", 0x1c -> "\\")."""
    return chr(ord(ch) + 0x40).lower()


# ---------------------------------------------------------------------------
# parse_key_event
# ---------------------------------------------------------------------------


def parse_key_event(data: str) -> KeyEvent | None:  # noqa: C901
    """Decode one complete input sequence, or return ``None`` if unrecognised."""
    if not data:
        return None

    # --- Legacy escape sequences ---
    for table, modifiers in _LEGACY_TABLES:
        name = table.get(data)
        if name is not None:
            return KeyEvent(char="", key=name, modifiers=modifiers)

    # --- Single characters ---
    if len(data) == 1:
        name = _NAMED_CONTROL_CODES.get(data)
        if name is not None:
            return KeyEvent(char=data, key=name)
        code = ord(data)
        if code == 0:
            return KeyEvent(char=data, key="space", modifiers=CTRL)
        if code < 0x20:
            return KeyEvent(char=data, key=_control_key_name(data), modifiers=CTRL)
        if data == " ":
            return KeyEvent(char=data, key="space")
        if data.isprintable():
            return KeyEvent(char=data, key=data)
        return None

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == ESC:
        ch = data[1]
        if ch == ESC:
            return KeyEvent(key="escape", modifiers=ALT)
        if ch in ("\r", "\n"):
            return KeyEvent(key="enter", modifiers=ALT)
        if ch == "\t":
            return KeyEvent(key="tab", modifiers=ALT)
        if ch == " ":
            return KeyEvent(key="space", modifiers=ALT)
        if ch in (DEL, "\x08"):
            return KeyEvent(key="backspace", modifiers=ALT)
        if 1 <= ord(ch) <= 26:
            return KeyEvent(key=_control_key_name(ch), modifiers=CTRL | ALT)
        if ch.isupper():
            return KeyEvent(key=ch.lower(), modifiers=SHIFT | ALT)
        if ch.isprintable():
            return KeyEvent(key=ch.lower(), modifiers=ALT)

    return None
