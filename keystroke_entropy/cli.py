"""CLI for keystroke-entropy."""

from __future__ import annotations

import logging
import os
import sys

import click

from keystroke_entropy import __version__

LOG_LEVEL_ENV = "KEYSTROKE_ENTROPY_LOG_LEVEL"


def configure_logging(level: str | None = None) -> None:
    """Log to stderr; stdout carries nothing but entropy bytes."""
    level = level or os.environ.get(LOG_LEVEL_ENV, "WARNING")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group(invoke_without_command=True)
@click.version_option(__version__)
@click.pass_context
def main(ctx: click.Context) -> None:
    """Type on the keyboard, get random bytes on stdout.

    With no command, reads key presses from the terminal and streams raw
    entropy bytes, like reading from /dev/random. Ctrl+C stops it.

        keystroke-entropy | xxd

        keystroke-entropy > /tmp/keys.bin
    """
    configure_logging()
    if ctx.invoked_subcommand is None:
        stream()


# ────────────────────────────────────────────────────────────
# Stream: keystroke entropy to stdout
# ────────────────────────────────────────────────────────────


def stream() -> None:
    """Run the keystroke pump on stdin/stdout until interrupted."""
    from keystroke_entropy.pipe import KeystrokePump
    from keystroke_entropy.terminal import raw_mode

    pump = KeystrokePump.for_stdio()
    logger = logging.getLogger(__name__)

    try:
        with raw_mode(pump.input_fd) as raw:
            logger.info("reading key presses (raw mode: %s)", raw)
            pump.run()
    except (BrokenPipeError, KeyboardInterrupt):
        pass
    finally:
        logger.info(
            "%d key presses, %d bytes emitted, %d bits dropped",
            pump.keys_seen, pump.stream.bytes_emitted, pump.stream.bits_dropped,
        )


# ────────────────────────────────────────────────────────────
# Analyze: statistics over a captured stream
# ────────────────────────────────────────────────────────────


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def analyze(path: str) -> None:
    """Show quality statistics for a captured byte file.

    Example:

        keystroke-entropy > /tmp/keys.bin

        keystroke-entropy analyze /tmp/keys.bin
    """
    from keystroke_entropy.stats import MIN_UNIFORMITY_BYTES, full_report, load_capture

    data = load_capture(path)
    if len(data) == 0:
        click.echo(f"Error: {path} is empty.", err=True)
        sys.exit(1)

    r = full_report(data, label=os.path.basename(path))
    click.echo(f"Capture: {r['label']}")
    click.echo(f"  Grade:              {r['grade']} ({r['quality_score']:.1f}/100)")
    click.echo(f"  Bytes:              {r['bytes']:,} ({r['bits']:,} key presses)")
    click.echo(f"  Bit bias:           {r['bit_bias']:.4f}")
    click.echo(f"  Bit runs:           {r['bit_runs']:,} (z = {r['runs_z']:+.2f})")
    click.echo(f"  Serial correlation: {r['bit_serial_correlation']:+.4f}")
    click.echo(f"  Byte entropy:       {r['byte_entropy']:.4f} / 8.0 bits")
    uniformity = r["byte_uniformity"]
    if uniformity is None:
        click.echo(f"  Byte uniformity:    (needs {MIN_UNIFORMITY_BYTES:,} bytes)")
    else:
        verdict = "uniform" if uniformity["uniform"] else "non-uniform"
        click.echo(f"  Byte uniformity:    chi2 = {uniformity['chi2']:.1f} ({verdict})")
