"""Terminal input: raw mode and splitting input into key presses."""

from __future__ import annotations

import os
import termios
import tty
from collections.abc import Iterator
from contextlib import contextmanager

ESC = 0x1B
# Raw mode stops the terminal from turning Ctrl+C into SIGINT, so the
# byte itself has to be treated as the interrupt.
INTERRUPT_KEY = b"\x03"
# Longest CSI sequence held while waiting for its final byte.
MAX_CSI_LENGTH = 32


@contextmanager
def raw_mode(fd: int) -> Iterator[bool]:
    """Put the TTY on *fd* into raw mode for the duration of the block.

    Yields True if raw mode was applied.  Pipes and regular files are
    left alone and yield False.
    """
    if not os.isatty(fd):
        yield False
        return

    saved = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        yield True
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4 if lead < 0xF8 else 1
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


class KeyDecoder:
    """Incremental splitter from raw terminal input to key sequences.

    Recognises CSI sequences (``ESC [ ... final``), SS3 sequences
    (``ESC O x``), meta keys (``ESC x``) and multi-byte UTF-8
    characters; any other byte is a key on its own.  A sequence cut off
    at the end of a chunk is held until the next :meth:`feed`, except a
    trailing lone ESC, which terminals deliver as the Escape key.

    A control byte never ends up inside another key: a UTF-8 lead byte
    followed by anything but a continuation byte, or an escape sequence
    interrupted by a control byte, is split before it.  CSI sequences
    longer than ``MAX_CSI_LENGTH`` are cut off at that length.
    """

    def __init__(self) -> None:
        self._pending = b""

    def feed(self, data: bytes) -> list[bytes]:
        buf = self._pending + data
        keys: list[bytes] = []
        i = 0
        n = len(buf)
        while i < n:
            end = self._key_end(buf, i)
            if end is None:
                break
            keys.append(buf[i:end])
            i = end
        self._pending = buf[i:]
        return keys

    def flush(self) -> list[bytes]:
        """Return held bytes as a final key (used at end of input)."""
        held, self._pending = self._pending, b""
        return [held] if held else []

    @property
    def pending(self) -> bytes:
        return self._pending

    @staticmethod
    def _key_end(buf: bytes, i: int) -> int | None:
        """End offset of the key starting at *i*, or None if incomplete."""
        n = len(buf)
        b = buf[i]

        if b == ESC:
            if i + 1 >= n:
                return n
            nxt = buf[i + 1]
            if nxt == ord("["):
                return _csi_end(buf, i)
            if nxt == ord("O"):
                if i + 2 >= n:
                    return None
                return i + 3 if _printable(buf[i + 2]) else i + 2
            if not _printable(nxt):
                return i + 1
            return i + 2

        length = _utf8_length(b)
        for j in range(i + 1, min(i + length, n)):
            if not _continuation(buf[j]):
                # Malformed UTF-8: the lead byte stands alone, so a control
                # byte after it is still seen as its own key.
                return i + 1
        if i + length > n:
            return None
        return i + length


def _printable(byte: int) -> bool:
    return 0x20 <= byte <= 0x7E


def _continuation(byte: int) -> bool:
    return 0x80 <= byte <= 0xBF


def _csi_end(buf: bytes, i: int) -> int | None:
    """End offset of the CSI sequence at *i*, or None if it may continue."""
    n = len(buf)
    for j in range(i + 2, min(n, i + MAX_CSI_LENGTH)):
        if 0x40 <= buf[j] <= 0x7E:
            return j + 1
        if not 0x20 <= buf[j] <= 0x3F:
            # Not a parameter or intermediate byte: cut the sequence here.
            return j
    if n >= i + MAX_CSI_LENGTH:
        return i + MAX_CSI_LENGTH
    return None
