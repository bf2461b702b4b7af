"""Tab-completion protocol and stock completion providers.

A provider is called once per Tab press with the word fragment before the
cursor and a zero-based attempt counter. Successive Tabs on the same
fragment re-send it with a higher attempt, so a provider can first extend
the word and then, when there is nothing more to extend, list the
candidates.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

from wcwidth import wcswidth

# Gap between columns when listing alternatives
ALTERNATIVES_GAP = 7


class CompletionError(ValueError):
    """A provider answered with text that does not extend the fragment."""


@dataclass
class CompletionResult:
    """A provider's answer.

    Attributes:
        insert: Text to splice in at the cursor.
        alternatives: Candidates to list below the line.
        error: Stop completing this fragment; the next Tab starts over.
    """

    insert: str | None = None
    alternatives: list[str] | None = None
    error: bool = False


@dataclass(frozen=True)
class CompletionRequest:
    """The word fragment before the cursor and the attempt number."""

    text: str
    attempt: int = 0

    def complete_to(self, output: str) -> CompletionResult:
        """Build a result that turns the fragment into *output*.

        Raises ``CompletionError`` if *output* is shorter than the fragment
        or does not start with it (compared case-insensitively).
        """
        if len(output) < len(self.text):
            raise CompletionError(
                f"completion {output!r} is shorter than fragment {self.text!r}"
            )
        if output[: len(self.text)].casefold() != self.text.casefold():
            raise CompletionError(
                f"completion {output!r} does not extend fragment {self.text!r}"
            )
        return CompletionResult(insert=output[len(self.text) :])


class CompletionProvider(Protocol):
    """Anything callable with a request; ``None`` is treated as no answer."""

    def __call__(self, request: CompletionRequest) -> CompletionResult | None: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def common_prefix(words: Iterable[str]) -> str:
    """Longest prefix shared by every word."""
    words = list(words)
    if not words:
        return ""
    return os.path.commonprefix(words)


def display_width(text: str) -> int:
    """Terminal columns *text* occupies; non-printables count one each."""
    width = wcswidth(text)
    return width if width >= 0 else len(text)


def format_alternatives(alternatives: list[str], width: int) -> str:
    """Lay *alternatives* out in columns that fit a terminal *width* wide.

    Every entry is padded to the widest one plus a fixed gap; rows end with
    ``"\\r\\n"``.
    """
    if not alternatives:
        return ""

    widths = [display_width(alt) for alt in alternatives]
    max_width = max(widths)
    if max_width > width - ALTERNATIVES_GAP:
        columns = 1
    else:
        columns = width // (max_width + ALTERNATIVES_GAP)

    out: list[str] = []
    column = 0
    for alt, alt_width in zip(alternatives, widths):
        out.append(alt)
        out.append(" " * (max_width - alt_width + ALTERNATIVES_GAP))
        column += 1
        if column >= columns:
            out.append("\r\n")
            column = 0
    if column:
        out.append("\r\n")
    return "".join(out)


def _complete_from(
    request: CompletionRequest,
    prefix: str,
    candidates: list[str],
    *,
    suffix_for: dict[str, str],
) -> CompletionResult | None:
    """Shared extend-then-list policy.

    *prefix* is the part of the fragment the candidates are matched against
    and *suffix_for* maps a candidate to what follows it on a unique match.
    """
    matches = [c for c in candidates if c.startswith(prefix)]
    if not matches:
        return None

    head = request.text[: len(request.text) - len(prefix)]
    if len(matches) == 1:
        match = matches[0]
        return request.complete_to(head + match + suffix_for.get(match, " "))

    if request.attempt == 0:
        shared = common_prefix(matches)
        if len(shared) > len(prefix):
            return request.complete_to(head + shared)
        return CompletionResult()
    return CompletionResult(alternatives=matches)


# ---------------------------------------------------------------------------
# Stock providers
# ---------------------------------------------------------------------------


class WordListCompleter:
    """Completes against a fixed list of words."""

    def __init__(self, words: Iterable[str]) -> None:
        self.words: list[str] = sorted(set(words))

    def __call__(self, request: CompletionRequest) -> CompletionResult | None:
        return _complete_from(request, request.text, self.words, suffix_for={})


class PathCompleter:
    """Completes file system paths relative to *base_path* (default: cwd).

    Directories are listed first and completed with a trailing ``/``; a
    leading ``~`` is expanded to the home directory when listing.
    """

    def __init__(self, base_path: str | os.PathLike[str] | None = None) -> None:
        self.base_path = Path(base_path) if base_path is not None else None

    def _resolve_dir(self, dir_part: str) -> Path:
        directory = Path(os.path.expanduser(dir_part)) if dir_part else Path(".")
        if not directory.is_absolute() and self.base_path is not None:
            directory = self.base_path / directory
        return directory

    def __call__(self, request: CompletionRequest) -> CompletionResult | None:
        text = request.text
        slash = text.rfind("/")
        if slash == -1 and text.startswith("~"):
            # "~user" on its own is not expanded; complete nothing
            return None
        dir_part, name_part = text[: slash + 1], text[slash + 1 :]

        directory = self._resolve_dir(dir_part)
        try:
            with os.scandir(directory) as it:
                entries = [
                    (entry.name, entry.is_dir())
                    for entry in it
                    if entry.name.startswith(name_part)
                    and (name_part.startswith(".") or not entry.name.startswith("."))
                ]
        except OSError:
            return None

        entries.sort(key=lambda e: (not e[1], e[0]))
        names = [name for name, _ in entries]
        suffix_for = {name: "/" if is_dir else " " for name, is_dir in entries}

        result = _complete_from(request, name_part, names, suffix_for=suffix_for)
        if result is not None and result.alternatives:
            result.alternatives = [
                name + "/" if suffix_for[name] == "/" else name
                for name in result.alternatives
            ]
        return result
