"""
keystroke-entropy: /dev/random from the rhythm of your typing.

Turns the timing jitter of key presses into entropy bits and packs them
into a pull-driven, backpressure-aware byte stream.
"""

__version__ = "0.1.0"

from keystroke_entropy.stream import BITS_PER_BYTE, MAX_BITS, ByteSink, EntropyStream
from keystroke_entropy.timing import KeyPress, timing_bit

__all__ = [
    "BITS_PER_BYTE",
    "MAX_BITS",
    "ByteSink",
    "EntropyStream",
    "KeyPress",
    "timing_bit",
    "__version__",
]
