"""Keystroke timing jitter as a source of entropy bits.

Each key press is stamped with the monotonic clock at the moment its
handler runs, and the parity of the stamp in 100 ns units becomes one
bit.  The stamp is handler time, not the physical key-press instant, so
scheduling makes it partly predictable.  We cannot read the keyboard
driver the way the kernel does.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from keystroke_entropy.terminal import INTERRUPT_KEY

TICK_NS = 100


def timing_bit(timestamp_ns: int) -> bool:
    """Entropy bit for a monotonic timestamp in nanoseconds."""
    return (timestamp_ns // TICK_NS) % 2 == 0


@dataclass(frozen=True)
class KeyPress:
    """One decoded key press and the time its handler saw it."""

    sequence: bytes
    timestamp_ns: int

    @classmethod
    def now(cls, sequence: bytes, clock: Callable[[], int] = time.monotonic_ns) -> KeyPress:
        return cls(sequence=sequence, timestamp_ns=clock())

    @property
    def bit(self) -> bool:
        return timing_bit(self.timestamp_ns)

    @property
    def is_interrupt(self) -> bool:
        return self.sequence == INTERRUPT_KEY
