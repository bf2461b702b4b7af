"""StdinBuffer buffers raw input and splits it into complete key sequences.

Terminal reads can return partial escape sequences, especially over slow
links. Without buffering, ``ESC [`` followed later by ``A`` would be read as
an Escape key press and two literal characters instead of the Up arrow.
The caller feeds raw text with :meth:`StdinBuffer.process` and, once no more
input arrives within a short timeout, calls :meth:`StdinBuffer.flush` to
release whatever is left (a lone Escape, typically).
"""

from __future__ import annotations

import re

ESC = "\x1b"

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def _is_complete_sequence(data: str) -> str:
    """Classify *data* as ``complete``, ``incomplete`` or ``not-escape``."""
    if data[:1] != ESC:
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    body = data[1:]
    introducer = body[0]

    if introducer == "[":
        # X10 mouse: ESC [ M plus three raw bytes
        if body[:2] == "[M":
            return "complete" if len(body) >= 5 else "incomplete"
        return _is_complete_csi_sequence(data)

    if introducer == "O":
        return "complete" if len(body) >= 2 else "incomplete"

    # Alt + Delete arrives as ESC ESC [ 3 ~; a bare ESC ESC waits for flush
    if introducer == ESC:
        if len(body) == 1:
            return "incomplete"
        return _is_complete_sequence(body)

    # ESC + one character is a meta key
    return "complete"


def _is_complete_csi_sequence(data: str) -> str:
    if data[:2] != ESC + "[":
        return "complete"
    if len(data) < 3:
        return "incomplete"

    params = data[2:]
    final = params[-1]
    if not 0x40 <= ord(final) <= 0x7E:
        return "incomplete"
    # SGR mouse reports carry '<' and end in M/m only once complete
    if params[0] == "<":
        return "complete" if _SGR_MOUSE_RE.match(params) else "incomplete"
    return "complete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Return the complete sequences at the front of *buffer* and the unframed tail."""
    found: list[str] = []
    start = 0

    while start < len(buffer):
        if buffer[start] != ESC:
            found.append(buffer[start])
            start += 1
            continue

        end = start + 1
        while end <= len(buffer):
            if _is_complete_sequence(buffer[start:end]) != "incomplete":
                break
            end += 1
        else:
            return found, buffer[start:]
        found.append(buffer[start:end])
        start = end

    return found, ""


class StdinBuffer:
    """Accumulates raw terminal text until key sequences are whole."""

    def __init__(self) -> None:
        self._buffer: str = ""

    def process(self, data: str) -> list[str]:
        """Append *data*; return every sequence that is now complete."""
        self._buffer += data
        sequences, self._buffer = _extract_complete_sequences(self._buffer)
        return sequences

    def flush(self) -> list[str]:
        """Release any buffered partial sequence as-is."""
        held, self._buffer = self._buffer, ""
        return [held] if held else []

    @property
    def pending(self) -> bool:
        return bool(self._buffer)
