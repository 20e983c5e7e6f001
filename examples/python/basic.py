#!/usr/bin/env python3
"""Drive an EntropyStream by hand, without a terminal.

Feeds timing bits from a run of simulated key presses into a stream
whose consumer pauses every 4 bytes, then resumes it.

Usage:
    pip install -e .
    python examples/python/basic.py
"""

import time

from keystroke_entropy import EntropyStream, KeyPress, __version__


class PausingSink:
    """Takes 4 bytes per pull, then asks the stream to wait."""

    def __init__(self):
        self.received = bytearray()
        self.batch = 0

    def emit(self, byte):
        self.received.append(byte)
        self.batch += 1
        return self.batch < 4


print(f"keystroke-entropy v{__version__}")

sink = PausingSink()
stream = EntropyStream(sink)
stream.request_more()

for _ in range(128):
    key = KeyPress.now(b"x")
    stream.ingest(key.bit)
    time.sleep(0.0001)

print(f"\nFirst pull: {len(sink.received)} bytes, {stream.pending_bits} bits still queued")
print(f"Reading: {stream.reading}")

while stream.pending_bits >= 8:
    sink.batch = 0
    stream.request_more()

print(f"After resuming: {len(sink.received)} bytes: {sink.received.hex()}")
print(f"Bits dropped: {stream.bits_dropped}")
