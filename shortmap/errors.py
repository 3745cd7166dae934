"""
Exception types raised by shortmap.

A missing code is not an error: `resolve` returns None and `delete` returns
False. Exhaustion of the code space and a half-linked record are.
"""

__all__ = [
    "ShortmapError",
    "CapacityExhausted",
    "IndexInconsistency",
    "EngineClosed",
    "ScrambleRangeError",
]


class ShortmapError(Exception):
    """Base class for engine-level failures."""


class CapacityExhausted(ShortmapError, RuntimeError):
    """Every identity in the scramble space belongs to a live record."""

    def __init__(self, modulus: int, live: int):
        super().__init__(f"code space exhausted: {live} live records for modulus {modulus}")
        self.modulus = modulus
        self.live = live


class IndexInconsistency(ShortmapError, AssertionError):
    """A record is reachable from one table but not the other. Fatal."""


class EngineClosed(ShortmapError, RuntimeError):
    """The engine was used after shutdown()."""


class ScrambleRangeError(ValueError):
    """A value outside [0, modulus) was passed to the scramble step."""
