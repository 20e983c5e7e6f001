"""Wire terminal key presses into an EntropyStream and pipe its bytes out.

Everything runs on one thread: a ``selectors`` loop dispatches input and
output readiness, and each handler runs to completion before the next.
"""

from __future__ import annotations

import logging
import os
import select
import selectors
import time
from collections.abc import Callable

from keystroke_entropy.stream import MAX_BITS, EntropyStream
from keystroke_entropy.terminal import KeyDecoder
from keystroke_entropy.timing import KeyPress

DEFAULT_HIGH_WATER_MARK = 16384
READ_SIZE = 1024
WRITE_SIZE = select.PIPE_BUF

logger = logging.getLogger(__name__)


class BufferedSink:
    """Byte buffer between an EntropyStream and the output file.

    ``emit`` always keeps the byte; it returns False once the buffer
    reaches *high_water_mark*, telling the stream to pause until the
    writer has caught up.
    """

    def __init__(self, high_water_mark: int = DEFAULT_HIGH_WATER_MARK) -> None:
        if high_water_mark < 1:
            raise ValueError(f"high_water_mark must be positive, got {high_water_mark}")
        self.high_water_mark = high_water_mark
        self._buffer = bytearray()

    def emit(self, byte: int) -> bool:
        self._buffer.append(byte)
        return len(self._buffer) < self.high_water_mark

    def peek(self, n: int) -> bytes:
        return bytes(self._buffer[:n])

    def consume(self, n: int) -> None:
        del self._buffer[:n]

    @property
    def needs_more(self) -> bool:
        return len(self._buffer) < self.high_water_mark

    def __len__(self) -> int:
        return len(self._buffer)


class KeystrokePump:
    """Event loop feeding key-press timing into *stream* and draining *sink*.

    Parameters
    ----------
    stream:
        Stream whose sink is *sink*.
    sink:
        Buffer written to *output_fd* as it becomes writable.
    input_fd, output_fd:
        File descriptors for key presses and entropy bytes.
    clock:
        Nanosecond monotonic clock used to stamp key presses.
    """

    def __init__(
        self,
        stream: EntropyStream,
        sink: BufferedSink,
        input_fd: int,
        output_fd: int,
        clock: Callable[[], int] = time.monotonic_ns,
    ) -> None:
        self.stream = stream
        self.sink = sink
        self.input_fd = input_fd
        self.output_fd = output_fd
        self._clock = clock
        self._decoder = KeyDecoder()
        self._eof = False
        self.keys_seen = 0

    @classmethod
    def for_stdio(
        cls,
        max_bits: int = MAX_BITS,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
    ) -> KeystrokePump:
        """Pump reading keys from stdin and writing bytes to stdout."""
        sink = BufferedSink(high_water_mark)
        stream = EntropyStream(sink, max_bits=max_bits)
        return cls(stream, sink, input_fd=0, output_fd=1)

    @property
    def finished(self) -> bool:
        return self._eof and len(self.sink) == 0

    # ── handlers ──

    def start(self) -> None:
        """First pull from the consumer side."""
        self.stream.request_more()

    def handle_input(self, data: bytes) -> None:
        """Turn a chunk of raw input into entropy bits.

        Empty *data* marks end of input.  Raises KeyboardInterrupt on the
        interrupt key; keys after it in the same chunk are not ingested.
        """
        if not data:
            self._eof = True
            keys = self._decoder.flush()
        else:
            keys = self._decoder.feed(data)

        for seq in keys:
            key = KeyPress.now(seq, self._clock)
            if key.is_interrupt:
                logger.debug("interrupt key after %d key presses", self.keys_seen)
                raise KeyboardInterrupt
            self.keys_seen += 1
            self.stream.ingest(key.bit)

    def handle_output(self) -> int:
        """Write one chunk of buffered bytes; pull more if there is room."""
        chunk = self.sink.peek(WRITE_SIZE)
        written = os.write(self.output_fd, chunk) if chunk else 0
        self.sink.consume(written)
        if self.sink.needs_more:
            self.stream.request_more()
        return written

    # ── loop ──

    def run(self) -> None:
        """Dispatch input and output events until input ends and output drains."""
        # epoll refuses regular files, which stdin and stdout may be redirected to.
        sel = selectors.SelectSelector()
        sel.register(self.input_fd, selectors.EVENT_READ)
        writing = False
        self.start()
        try:
            while not self.finished:
                if len(self.sink) and not writing:
                    sel.register(self.output_fd, selectors.EVENT_WRITE)
                    writing = True
                elif not len(self.sink) and writing:
                    sel.unregister(self.output_fd)
                    writing = False

                for key, events in sel.select():
                    if key.fd == self.output_fd and events & selectors.EVENT_WRITE:
                        self.handle_output()
                    elif key.fd == self.input_fd and events & selectors.EVENT_READ:
                        data = os.read(self.input_fd, READ_SIZE)
                        if not data:
                            sel.unregister(self.input_fd)
                        self.handle_input(data)
        finally:
            sel.close()
