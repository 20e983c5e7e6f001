"""Tests for the CLI."""

import logging

import numpy as np
from click.testing import CliRunner

from keystroke_entropy import __version__
from keystroke_entropy.cli import configure_logging, main


class TestCLI:
    def test_version(self):
        r = CliRunner().invoke(main, ["--version"])
        assert r.exit_code == 0
        assert __version__ in r.output

    def test_analyze(self, tmp_path):
        path = tmp_path / "keys.bin"
        path.write_bytes(np.random.randint(0, 256, 2000, dtype=np.uint8).tobytes())
        r = CliRunner().invoke(main, ["analyze", str(path)])
        assert r.exit_code == 0
        assert "Byte entropy" in r.output
        assert "Bit bias" in r.output
        assert "chi2 =" in r.output

    def test_analyze_short_capture(self, tmp_path):
        path = tmp_path / "keys.bin"
        path.write_bytes(bytes([170, 85, 3, 200]))
        r = CliRunner().invoke(main, ["analyze", str(path)])
        assert r.exit_code == 0
        assert "32 key presses" in r.output
        assert "needs 1,280 bytes" in r.output

    def test_analyze_empty(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        r = CliRunner().invoke(main, ["analyze", str(path)])
        assert r.exit_code == 1

    def test_analyze_missing(self, tmp_path):
        r = CliRunner().invoke(main, ["analyze", str(tmp_path / "nope.bin")])
        assert r.exit_code != 0

    def test_stream_stops_on_interrupt(self, monkeypatch):
        from keystroke_entropy import pipe

        ran = []

        def fake_run(self):
            ran.append(self)
            raise KeyboardInterrupt

        monkeypatch.setattr(pipe.KeystrokePump, "run", fake_run)
        monkeypatch.setattr("keystroke_entropy.terminal.os.isatty", lambda fd: False)
        r = CliRunner().invoke(main, [])
        assert r.exit_code == 0
        assert len(ran) == 1


def test_log_level_from_env(monkeypatch):
    monkeypatch.setenv("KEYSTROKE_ENTROPY_LOG_LEVEL", "debug")
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers = []
    try:
        configure_logging()
        assert root.level == logging.DEBUG
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
