"""Bounded bit buffer that packs keystroke entropy into a pull-driven byte stream.

Architecture:
1. Timing bits arrive one at a time via ``ingest``
2. Bits queue up in a bounded FIFO (``MAX_BITS``); overflow is dropped
3. The consumer pulls with ``request_more``
4. Every run of 8 queued bits becomes one byte, oldest bit as MSB
5. The sink's ``emit`` return value pauses emission until the next pull
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Protocol

BITS_PER_BYTE = 8
MAX_BITS = 1024

logger = logging.getLogger(__name__)


class ByteSink(Protocol):
    """Consumer side of an :class:`EntropyStream`."""

    def emit(self, byte: int) -> bool:
        """Accept one byte. Return False to pause until ``request_more``."""
        ...


class EntropyStream:
    """Pull-based byte stream fed by entropy bits.

    Usage::

        stream = EntropyStream(sink)
        stream.request_more()          # consumer is ready
        stream.ingest(timing_bit(ts))  # emits once 8 bits are queued

    Parameters
    ----------
    sink:
        Receives packed bytes. ``emit`` returning False means "pause,
        I will call ``request_more`` when ready".
    max_bits:
        Capacity of the bit buffer. Bits arriving while it is full are
        discarded, so an unread stream never grows past this bound.
    """

    def __init__(self, sink: ByteSink, max_bits: int = MAX_BITS) -> None:
        if max_bits < 1:
            raise ValueError(f"max_bits must be positive, got {max_bits}")
        self._sink = sink
        self._max_bits = max_bits
        self._bits: deque[bool] = deque()
        self._reading = False
        self._bits_dropped = 0
        self._bytes_emitted = 0

    # ── inbound ──

    def ingest(self, bit: bool) -> None:
        """Queue one entropy bit, flushing right away if the consumer is reading."""
        if len(self._bits) >= self._max_bits:
            self._bits_dropped += 1
            return

        self._bits.append(bool(bit))
        assert len(self._bits) <= self._max_bits, "bit buffer exceeded its capacity"
        if len(self._bits) == self._max_bits and not self._reading:
            logger.debug("bit buffer full at %d bits, dropping new input", self._max_bits)

        if self._reading:
            self._flush_bits()

    def request_more(self) -> None:
        """Consumer pull signal: resume emitting bytes as bits become available."""
        if not self._reading:
            logger.debug("consumer ready, %d bits queued", len(self._bits))
        self._reading = True
        self._flush_bits()

    # ── outbound ──

    def _flush_bits(self) -> None:
        while len(self._bits) >= BITS_PER_BYTE:
            byte = 0
            for _ in range(BITS_PER_BYTE):
                byte = byte << 1 | self._bits.popleft()

            self._bytes_emitted += 1
            if not self._sink.emit(byte):
                logger.debug("consumer paused after %d bytes", self._bytes_emitted)
                self._reading = False
                return

    # ── inspection ──

    @property
    def max_bits(self) -> int:
        return self._max_bits

    @property
    def pending_bits(self) -> int:
        return len(self._bits)

    @property
    def reading(self) -> bool:
        return self._reading

    @property
    def saturated(self) -> bool:
        return len(self._bits) >= self._max_bits

    @property
    def bits_dropped(self) -> int:
        return self._bits_dropped

    @property
    def bytes_emitted(self) -> int:
        return self._bytes_emitted

    def bits(self) -> list[bool]:
        """Snapshot of the queued bits, oldest first."""
        return list(self._bits)

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} pending={len(self._bits)}/{self._max_bits} "
            f"reading={self._reading}>"
        )
