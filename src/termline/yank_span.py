"""Single-slot store for Emacs-style kill/yank."""

from __future__ import annotations


class YankSpan:
    """Holds the most recently erased run of characters.

    Every erase overwrites the slot; there is no ring to cycle through.
    """

    def __init__(self) -> None:
        self._text: str | None = None

    def store(self, text: str | None) -> None:
        """Replace the slot. ``None`` means nothing was erased and is ignored."""
        if text is None:
            return
        self._text = text

    def peek(self) -> str | None:
        """Get the stored text without modifying the slot."""
        return self._text

    @property
    def length(self) -> int:
        return len(self._text) if self._text else 0
