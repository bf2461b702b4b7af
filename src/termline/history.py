"""Scroll-back history of entered lines, with browsing and plain-text persistence."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


class History:
    """Ordered list of past input lines.

    Entries are stored oldest first; every index-taking method counts from
    the newest entry (index 0). ``max_size`` of 0 means unbounded, otherwise
    the oldest entry is evicted when a new one would overflow.

    The store also tracks a browse position for Up/Down navigation: -1 means
    the user is editing a fresh line, and the line being typed when browsing
    started is kept as the draft so it can be restored.
    """

    def __init__(self, max_size: int = 0) -> None:
        self._entries: list[str] = []
        self._max_size = 0
        self.max_size = max_size

        self._browse_position: int = -1
        self._draft: str = ""

    # -- capacity -----------------------------------------------------------

    @property
    def max_size(self) -> int:
        return self._max_size

    @max_size.setter
    def max_size(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"max_size must be >= 0, got {value}")
        self._max_size = value
        if value and len(self._entries) > value:
            del self._entries[: len(self._entries) - value]

    # -- entries ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        """Iterate oldest first."""
        return iter(list(self._entries))

    def entries(self) -> list[str]:
        """Copy of all entries, oldest first."""
        return list(self._entries)

    def add(self, line: str | None) -> None:
        """Append a line, evicting the oldest entry when at capacity."""
        if line is None:
            line = ""
        if self._max_size and len(self._entries) >= self._max_size:
            del self._entries[0]
        self._entries.append(line)

    def add_unique(self, line: str | None) -> None:
        """Append a line unless it equals the most recent entry."""
        if line is None:
            line = ""
        if not self._entries or self._entries[-1] != line:
            self.add(line)

    def get(self, index: int) -> str:
        """Entry at *index* counted from the newest, or ``""`` when out of range."""
        if 0 <= index < len(self._entries):
            return self._entries[len(self._entries) - index - 1]
        return ""

    def set(self, index: int, line: str | None) -> None:
        """Replace the entry at *index* counted from the newest; no-op out of range."""
        if line is None:
            line = ""
        if 0 <= index < len(self._entries):
            self._entries[len(self._entries) - index - 1] = line

    def clear(self) -> None:
        self._entries.clear()
        self.reset_browse()

    # -- browsing -----------------------------------------------------------

    @property
    def browse_position(self) -> int:
        return self._browse_position

    @property
    def draft(self) -> str:
        return self._draft

    @property
    def is_browsing(self) -> bool:
        return self._browse_position != -1

    def reset_browse(self) -> None:
        self._browse_position = -1
        self._draft = ""

    def browse_up(self, current: str) -> str | None:
        """Step to the next older entry and return it.

        The first step saves *current* as the draft. Returns ``None`` at the
        oldest entry (or with an empty history) without changing anything.
        """
        if self._browse_position == -1:
            if not self._entries:
                return None
            self._draft = current
            self._browse_position = 0
            return self.get(0)
        if self._browse_position + 1 < len(self._entries):
            self._browse_position += 1
            return self.get(self._browse_position)
        return None

    def browse_down(self) -> str | None:
        """Step to the next newer entry and return it.

        Stepping past the newest entry returns the saved draft and ends
        browsing. Returns ``None`` when not browsing.
        """
        if self._browse_position == 0:
            draft = self._draft
            self.reset_browse()
            return draft
        if self._browse_position > 0:
            self._browse_position -= 1
            return self.get(self._browse_position)
        return None

    # -- persistence --------------------------------------------------------

    def load(self, path: str | os.PathLike[str]) -> None:
        """Replace all entries with the lines of *path*, oldest line first.

        Raises ``FileNotFoundError`` if *path* does not exist. The store is
        only cleared once the whole file has been read.
        """
        file = Path(path)
        if not file.is_file():
            raise FileNotFoundError(f"history file not found: {file}")

        # Universal newlines: "\r\n" and "\r" already arrive as "\n"
        lines = file.read_text(encoding="utf-8").split("\n")
        if lines[-1] == "":
            lines.pop()

        self.clear()
        for line in lines:
            self.add(line)
        logger.debug("loaded %d history entries from %s", len(self._entries), file)

    def save(self, path: str | os.PathLike[str]) -> None:
        """Write all entries to *path*, oldest first, replacing any existing file.

        Entries containing newlines cannot be represented and will read back
        as several entries.
        """
        file = Path(path)
        with file.open("w", encoding="utf-8", newline="\n") as f:
            for line in self._entries:
                f.write(line + "\n")
        logger.debug("saved %d history entries to %s", len(self._entries), file)
