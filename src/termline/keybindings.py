"""Line editor keybindings and key-to-command decoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from termline.keys import KeyEvent, KeyId, is_control_char

EditorAction = Literal[
    # Cursor movement
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteCharOrEof",
    "deleteWordBackward",
    "deleteToWordEnd",
    "deleteToWordStart",
    "deleteToLineStart",
    "deleteToLineEnd",
    "clearLine",
    # Kill ring
    "yank",
    # History
    "historyPrevious",
    "historyNext",
    # Text input
    "insertChar",
    "literalNext",
    "toggleOverwrite",
    "submit",
    "tab",
    # Session
    "redraw",
    "interrupt",
    "endOfFile",
    "bell",
]

EditorKeybindingsConfig = dict[EditorAction, KeyId | list[KeyId]]

DEFAULT_EDITOR_KEYBINDINGS: dict[EditorAction, KeyId | list[KeyId]] = {
    # Cursor movement
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorWordLeft": "alt+b",
    "cursorWordRight": "alt+f",
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    # Deletion
    "deleteCharBackward": "backspace",
    "deleteCharForward": "delete",
    "deleteCharOrEof": "ctrl+d",
    "deleteWordBackward": "ctrl+w",
    "deleteToWordEnd": "alt+d",
    "deleteToWordStart": ["alt+backspace", "alt+delete"],
    "deleteToLineStart": "ctrl+u",
    "deleteToLineEnd": "ctrl+k",
    "clearLine": "escape",
    # Kill ring
    "yank": "ctrl+y",
    # History
    "historyPrevious": ["up", "ctrl+p"],
    "historyNext": ["down", "ctrl+n"],
    # Text input
    "literalNext": "ctrl+v",
    "toggleOverwrite": "insert",
    "submit": "enter",
    "tab": "tab",
    # Session
    "redraw": "ctrl+l",
    "interrupt": "ctrl+c",
    "endOfFile": "ctrl+z",
    "bell": "ctrl+g",
}


@dataclass(frozen=True)
class Command:
    """A decoded editing command; ``char`` is set for ``insertChar``."""

    action: EditorAction
    char: str = ""


class EditorKeybindingsManager:
    """Resolves key ids to editor actions, with per-action user overrides."""

    def __init__(self, config: EditorKeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[EditorAction, list[KeyId]] = {}
        self._key_to_action: dict[KeyId, EditorAction] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: EditorKeybindingsConfig) -> None:
        merged = {**DEFAULT_EDITOR_KEYBINDINGS, **config}
        self._action_to_keys = {
            action: list(keys) if isinstance(keys, list) else [keys]
            for action, keys in merged.items()
        }

        # A key named in the user config leaves every default action
        claimed = {key for action in config for key in self._action_to_keys[action]}
        for action, keys in self._action_to_keys.items():
            if action not in config:
                keys[:] = [key for key in keys if key not in claimed]

        self._key_to_action = {}
        for action, keys in self._action_to_keys.items():
            for key in keys:
                self._key_to_action.setdefault(key, action)

    def action_for(self, event: KeyEvent) -> EditorAction | None:
        """Action bound to the key in *event*, if any."""
        return self._key_to_action.get(event.key_id)

    def matches(self, event: KeyEvent, action: EditorAction) -> bool:
        return event.key_id in self._action_to_keys.get(action, [])

    def get_keys(self, action: EditorAction) -> list[KeyId]:
        return self._action_to_keys.get(action, [])

    def set_config(self, config: EditorKeybindingsConfig) -> None:
        """Replace the user overrides and rebuild both lookup maps."""
        self._build_maps(config)


def decode_command(
    event: KeyEvent,
    keybindings: EditorKeybindingsManager,
    literal_next: bool = False,
) -> Command | None:
    """Turn a key event into the command the editor should run.

    After Ctrl-V (*literal_next*), a control character is inserted as-is
    instead of running its binding. Unbound printable characters insert
    themselves; anything else decodes to ``None`` and is ignored.
    """
    if literal_next and event.char and is_control_char(event.char):
        return Command("insertChar", event.char)

    action = keybindings.action_for(event)
    if action is not None:
        return Command(action)

    if event.char and not event.ctrl and not event.alt and event.char.isprintable():
        return Command("insertChar", event.char)
    return None
