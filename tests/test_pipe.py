"""Tests for the stdout sink and the keystroke pump."""

import itertools
import os

import pytest

from keystroke_entropy.pipe import BufferedSink, KeystrokePump
from keystroke_entropy.stream import EntropyStream

# Alternating stamps: 0 ns -> True, 100 ns -> False, 200 ns -> True, ...
ALTERNATING = [0, 100]


def _clock(stamps):
    it = itertools.cycle(stamps)
    return lambda: next(it)


def _read_all(fd):
    chunks = []
    while True:
        chunk = os.read(fd, 4096)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


@pytest.fixture
def fds():
    in_r, in_w = os.pipe()
    out_r, out_w = os.pipe()
    yield in_r, in_w, out_r, out_w
    for fd in (in_r, in_w, out_r, out_w):
        try:
            os.close(fd)
        except OSError:
            pass


def _pump(fds, stamps=ALTERNATING, high_water_mark=16384, max_bits=1024):
    in_r, _, _, out_w = fds
    sink = BufferedSink(high_water_mark)
    stream = EntropyStream(sink, max_bits=max_bits)
    return KeystrokePump(stream, sink, in_r, out_w, clock=_clock(stamps))


class TestBufferedSink:
    def test_emit_until_high_water_mark(self):
        sink = BufferedSink(high_water_mark=3)
        assert sink.emit(1) is True
        assert sink.emit(2) is True
        assert sink.emit(3) is False
        assert len(sink) == 3
        assert not sink.needs_more

    def test_consume_frees_room(self):
        sink = BufferedSink(high_water_mark=2)
        sink.emit(7)
        sink.emit(8)
        assert sink.peek(10) == b"\x07\x08"
        sink.consume(1)
        assert sink.peek(10) == b"\x08"
        assert sink.needs_more

    def test_rejects_nonpositive_mark(self):
        with pytest.raises(ValueError):
            BufferedSink(high_water_mark=0)


class TestHandlers:
    def test_eight_keys_make_one_byte(self, fds):
        pump = _pump(fds)
        pump.start()
        pump.handle_input(b"abcdefgh")
        assert pump.sink.peek(10) == bytes([0b10101010])
        assert pump.keys_seen == 8

    def test_escape_sequence_counts_once(self, fds):
        pump = _pump(fds)
        pump.start()
        pump.handle_input(b"\x1b[A" * 8)
        assert pump.keys_seen == 8
        assert len(pump.sink) == 1

    def test_interrupt_stops_ingest(self, fds):
        pump = _pump(fds)
        pump.start()
        with pytest.raises(KeyboardInterrupt):
            pump.handle_input(b"abcd\x03efgh")
        assert pump.keys_seen == 4
        assert pump.stream.pending_bits == 4
        assert len(pump.sink) == 0

    def test_interrupt_after_stray_lead_byte(self, fds):
        pump = _pump(fds)
        pump.start()
        pump.handle_input(b"\xc3")
        assert pump.keys_seen == 0
        with pytest.raises(KeyboardInterrupt):
            pump.handle_input(b"\x03")
        assert pump.keys_seen == 1

    def test_interrupt_inside_escape_sequence(self, fds):
        pump = _pump(fds)
        pump.start()
        with pytest.raises(KeyboardInterrupt):
            pump.handle_input(b"\x1b[1;\x03abcdefgh")
        assert pump.keys_seen == 1
        assert len(pump.sink) == 0

    def test_interrupt_with_full_buffer(self, fds):
        pump = _pump(fds, max_bits=8)
        pump.handle_input(b"abcdefghij")
        assert pump.stream.saturated
        with pytest.raises(KeyboardInterrupt):
            pump.handle_input(b"\x03")
        assert pump.stream.bytes_emitted == 0

    def test_output_resumes_paused_stream(self, fds):
        _, _, out_r, _ = fds
        pump = _pump(fds, high_water_mark=1)
        pump.start()
        pump.handle_input(b"x" * 24)
        # The first byte hits the high-water mark and pauses the stream.
        assert len(pump.sink) == 1
        assert pump.stream.pending_bits == 16
        assert not pump.stream.reading

        assert pump.handle_output() == 1
        assert len(pump.sink) == 1
        assert pump.stream.pending_bits == 8
        pump.handle_output()
        pump.handle_output()
        assert pump.stream.pending_bits == 0
        assert os.read(out_r, 10) == bytes([170, 170, 170])


class TestRun:
    def test_run_until_eof(self, fds):
        _, in_w, out_r, out_w = fds
        pump = _pump(fds)
        os.write(in_w, b"0123456789abcdef" + b"xyz")
        os.close(in_w)
        pump.run()
        os.close(out_w)
        assert _read_all(out_r) == bytes([170, 170])
        assert pump.stream.pending_bits == 3
        assert pump.finished

    def test_run_raises_on_interrupt(self, fds):
        _, in_w, out_r, out_w = fds
        pump = _pump(fds)
        os.write(in_w, b"abcdefgh\x03ijklmnop")
        with pytest.raises(KeyboardInterrupt):
            pump.run()
        assert pump.keys_seen == 8
        assert pump.stream.bytes_emitted == 1
