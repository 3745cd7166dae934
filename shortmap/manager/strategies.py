"""
Strategies for short-code generation in shortmap.

Provided strategies:
- ScrambledSequenceStrategy: counter -> (seq mod M) * P mod M -> fixed-length Base62
- SequentialStrategy: same pipeline with P = 1 (plain padded counter, handy when debugging)

Common helpers:
- encode_fixed / decode_fixed: integer <-> 7-character Base62 string, most significant digit first
- get_strategy_from_config: resolve a constructed strategy from settings

Configuration (via shortmap.config.settings):
- CODE_STRATEGY: "scrambled" (default) or "sequential"
- MODULUS: scramble space M, a power of two no larger than 62**7 (default 2**40)
- MULTIPLIER: odd multiplier P (default 36779219)
- SEQ_START: first sequence number (default 1)

Notes:
- With M a power of two and P odd, P is invertible mod M, so the scramble step is a
  bijection on [0, M). Distinct sequence numbers within one period never share a code.
- Strategies hold no index state; collision checks belong to the engine.

LLM Prompt Example:
    "Explain why multiplying by an odd constant modulo a power of two permutes the
    residues, and how that hides the ordering of sequential ids in short codes."
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Type

from shortmap.config import settings
from shortmap.errors import ScrambleRangeError

logger = logging.getLogger(__name__)

BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_BASE62_BASE = len(BASE62_ALPHABET)
_BASE62_INDEX = {ch: i for i, ch in enumerate(BASE62_ALPHABET)}

CODE_LENGTH = 7
CODE_SPACE = _BASE62_BASE ** CODE_LENGTH


def encode_fixed(num: int, length: int = CODE_LENGTH) -> str:
    """
    Convert a non-negative integer to a Base62 string of exactly `length` characters.
    0 -> "0000000", 61 -> "000000Z", 62 -> "0000010"

    Raises:
        ValueError: If num is negative or does not fit in `length` digits.
    """
    if num < 0:
        raise ValueError("num must be non-negative")
    if num >= _BASE62_BASE ** length:
        raise ValueError(f"{num} does not fit in {length} Base62 digits")
    out = [BASE62_ALPHABET[0]] * length
    for i in range(length - 1, -1, -1):
        num, rem = divmod(num, _BASE62_BASE)
        out[i] = BASE62_ALPHABET[rem]
    return "".join(out)


def decode_fixed(code: str) -> int:
    """Inverse of encode_fixed. Raises ValueError on characters outside the alphabet."""
    value = 0
    for ch in code:
        try:
            value = value * _BASE62_BASE + _BASE62_INDEX[ch]
        except KeyError:
            raise ValueError(f"invalid Base62 character {ch!r}") from None
    return value


def is_valid_code(code: str) -> bool:
    """True if `code` is exactly CODE_LENGTH characters from the Base62 alphabet."""
    return len(code) == CODE_LENGTH and all(ch in _BASE62_INDEX for ch in code)


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


class BaseStrategy(ABC):
    """Abstract base for code generation strategies."""

    @abstractmethod
    def next_code(self) -> str:
        """Advance the strategy's counter and return the next candidate code."""
        raise NotImplementedError


@dataclass
class ScrambledSequenceStrategy(BaseStrategy):
    """
    Sequential ids rendered as non-sequential-looking codes.

    Each call draws the next sequence number, reduces it mod `modulus`, multiplies
    by `multiplier` mod `modulus` and encodes the result as 7 Base62 characters.

    Properties:
    - Collision-free within one modulus period (the scramble is a bijection)
    - Fixed-length output; `modulus` never exceeds the 62**7 code space
    - Counter is process-local and never rolled back, even when a candidate is rejected
    """
    modulus: int = 1 << 40
    multiplier: int = 36_779_219
    start: int = 1
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)
    _next_seq: int = field(default=0, init=False, repr=False, compare=False)

    def __post_init__(self):
        if not _is_power_of_two(self.modulus):
            raise ValueError(f"modulus must be a power of two, got {self.modulus}")
        if self.modulus > CODE_SPACE:
            raise ValueError(f"modulus {self.modulus} exceeds the {CODE_LENGTH}-character code space")
        if self.multiplier % 2 == 0:
            raise ValueError(f"multiplier must be odd, got {self.multiplier}")
        if self.start < 0:
            raise ValueError("start must be non-negative")
        self._next_seq = self.start

    @property
    def next_sequence(self) -> int:
        """Sequence number the next call to next_code() will consume."""
        return self._next_seq

    def scramble(self, value: int) -> int:
        """
        Map a value in [0, modulus) to its scrambled counterpart.

        Raises:
            ScrambleRangeError: If value lies outside [0, modulus). Callers reduce
            mod modulus first, so this only fires on a caller bug.
        """
        if not 0 <= value < self.modulus:
            raise ScrambleRangeError(f"{value} is outside [0, {self.modulus})")
        return (value * self.multiplier) % self.modulus

    def unscramble(self, value: int) -> int:
        """Inverse of scramble()."""
        if not 0 <= value < self.modulus:
            raise ScrambleRangeError(f"{value} is outside [0, {self.modulus})")
        return (value * pow(self.multiplier, -1, self.modulus)) % self.modulus

    def code_for(self, sequence: int) -> str:
        """Code that `sequence` maps to, without touching the counter."""
        return encode_fixed(self.scramble(sequence % self.modulus))

    def next_code(self) -> str:
        with self._lock:
            seq = self._next_seq
            self._next_seq += 1
        return self.code_for(seq)


@dataclass
class SequentialStrategy(ScrambledSequenceStrategy):
    """Unscrambled variant: the code is the left-padded Base62 sequence number."""
    multiplier: int = 1


# Strategy registry and factory
STRATEGY_REGISTRY: Dict[str, Type[ScrambledSequenceStrategy]] = {
    "scrambled": ScrambledSequenceStrategy,
    "scramble": ScrambledSequenceStrategy,
    "sequential": SequentialStrategy,
    "seq": SequentialStrategy,
}


def get_strategy_from_config(
    name: Optional[str] = None,
    *,
    modulus: Optional[int] = None,
    multiplier: Optional[int] = None,
    start: Optional[int] = None,
) -> ScrambledSequenceStrategy:
    """
    Resolve the active strategy from parameter or settings.CODE_STRATEGY.
    Explicit keyword arguments override the matching settings values.
    """
    key = (name or settings.CODE_STRATEGY or "scrambled").strip().lower()
    cls = STRATEGY_REGISTRY.get(key)
    if cls is None:
        logger.warning("Unknown code strategy %r, falling back to 'scrambled'", key)
        cls = ScrambledSequenceStrategy
    logger.debug("Using code strategy: %s -> %s", key, cls.__name__)

    kwargs = {
        "modulus": settings.MODULUS if modulus is None else modulus,
        "start": settings.SEQ_START if start is None else start,
    }
    if cls is ScrambledSequenceStrategy:
        kwargs["multiplier"] = settings.MULTIPLIER if multiplier is None else multiplier
    return cls(**kwargs)
