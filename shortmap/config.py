"""
Runtime configuration for shortmap
==================================

Simple settings module that reads from environment variables (only here),
and exposes a stable `settings` object for the rest of the codebase.
Avoid reading env vars anywhere else; import from this module instead.

Code generation
---------------
- SHORTMAP_CODE_STRATEGY  : "scrambled" (default) or "sequential"
- SHORTMAP_MODULUS_BITS   : size of the scramble space as a power of two (default 40; clamped to [1, 41])
- SHORTMAP_MULTIPLIER     : odd multiplier used by the scramble step (default 36779219)
- SHORTMAP_SEQ_START      : first sequence number handed out (default 1)

Index
-----
- SHORTMAP_BUCKETS        : bucket count of each hash table (default 1009)

Shell
-----
- SHORTMAP_URL_MAX_LENGTH : longest URL accepted by `gen` (default 1023)
- SHORTMAP_LOG_LEVEL      : logging level name (default "WARNING")
"""

import os

# 2**41 is the largest power of two that still fits in 62**7 codes.
MAX_MODULUS_BITS = 41


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


class _Settings:
    # -------- Code generation --------
    CODE_STRATEGY: str = os.getenv("SHORTMAP_CODE_STRATEGY", "scrambled").strip().lower()

    MODULUS_BITS: int = max(1, min(MAX_MODULUS_BITS, _get_int("SHORTMAP_MODULUS_BITS", 40)))
    MODULUS: int = 1 << MODULUS_BITS

    MULTIPLIER: int = _get_int("SHORTMAP_MULTIPLIER", 36_779_219)

    SEQ_START: int = max(1, _get_int("SHORTMAP_SEQ_START", 1))

    # -------- Index --------
    # Prime bucket count spreads djb2 values more evenly
    BUCKETS: int = max(1, _get_int("SHORTMAP_BUCKETS", 1009))

    # -------- Shell --------
    URL_MAX_LENGTH: int = max(1, _get_int("SHORTMAP_URL_MAX_LENGTH", 1023))
    LOG_LEVEL: str = os.getenv("SHORTMAP_LOG_LEVEL", "WARNING").strip().upper()


settings = _Settings()
