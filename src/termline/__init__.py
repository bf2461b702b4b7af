"""termline: interactive line editing for text terminals."""

# Edit buffer
from termline.buffer import Cell, EditBuffer

# Tab completion
from termline.completion import (
    CompletionError,
    CompletionProvider,
    CompletionRequest,
    CompletionResult,
    PathCompleter,
    WordListCompleter,
    format_alternatives,
)

# History
from termline.history import History

# Keybindings
from termline.keybindings import (
    DEFAULT_EDITOR_KEYBINDINGS,
    Command,
    EditorAction,
    EditorKeybindingsManager,
    decode_command,
)

# Keyboard input handling
from termline.keys import Key, KeyEvent, KeyId, parse_key_event

# Line editor
from termline.line_editor import LineEditor, ReadState, ReadStatus

# Configuration
from termline.options import EditorOptions

# Input framing
from termline.stdin_buffer import StdinBuffer

# Terminal
from termline.terminal import ProcessTerminal, Terminal

# Kill/yank
from termline.yank_span import YankSpan

__all__ = [
    # Edit buffer
    "Cell",
    "EditBuffer",
    # Tab completion
    "CompletionError",
    "CompletionProvider",
    "CompletionRequest",
    "CompletionResult",
    "PathCompleter",
    "WordListCompleter",
    "format_alternatives",
    # History
    "History",
    # Keybindings
    "DEFAULT_EDITOR_KEYBINDINGS",
    "Command",
    "EditorAction",
    "EditorKeybindingsManager",
    "decode_command",
    # Keyboard input handling
    "Key",
    "KeyEvent",
    "KeyId",
    "parse_key_event",
    # Line editor
    "LineEditor",
    "ReadState",
    "ReadStatus",
    # Configuration
    "EditorOptions",
    # Input framing
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Kill/yank
    "YankSpan",
]
