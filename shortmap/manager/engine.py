"""
MappingEngine module for shortmap.

Responsibilities:
    - Hand out one canonical short code per long URL
    - Resolve codes back to URLs
    - Delete mappings from both lookup directions at once
    - Enumerate live mappings and report bucket occupancy

Design notes:
    - Dedupe by long URL: asking again for a live URL returns its existing code.
    - New codes come from a scrambled sequence; a candidate already owned by a
      live record is skipped and the counter moves on (it never rolls back).
    - The index and the strategy are injected; `create_engine()` builds both
      from settings.
    - A single re-entrant lock covers every read and write, including the
      counter advance, so lookup-then-insert is atomic.

LLM Prompt Example:
    "Explain how a counter-based code generator plus a URL dedupe index gives
    idempotent shortening, and why the counter must advance under the same lock
    as the index mutation."
"""

import logging
import threading
from typing import Iterator, List, Optional, Tuple

from shortmap.errors import CapacityExhausted, EngineClosed
from shortmap.storage.base import BaseIndex, Record
from shortmap.storage.dual_index import DualIndex
from .strategies import ScrambledSequenceStrategy, get_strategy_from_config

logger = logging.getLogger(__name__)


class MappingEngine:
    """
    Coordinates code generation and the dual index.

    LLM Prompt Example:
        "Show how dependency injection of the index and strategy keeps the engine
        testable with tiny scramble spaces and single-bucket tables."
    """

    def __init__(
        self,
        index: Optional[BaseIndex] = None,
        strategy: Optional[ScrambledSequenceStrategy] = None,
    ):
        """
        Initialize the engine with an index and a code strategy.

        Args:
            index (Optional[BaseIndex]): Dual index; a fresh DualIndex by default.
            strategy (Optional[ScrambledSequenceStrategy]): Code generator; resolved
                from settings when omitted.
        """
        self.index = index if index is not None else DualIndex()
        self.strategy = strategy if strategy is not None else get_strategy_from_config()
        self._lock = threading.RLock()
        self._closed = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise EngineClosed("engine has been shut down")

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def generate_or_get(self, url: str) -> str:
        """
        Return the code for `url`, creating a mapping if none is live.

        Rules:
            - Live URL -> its existing code (idempotent).
            - Otherwise draw candidates until one is not owned by a live record.
              Every draw advances the counter, rejected or not.

        Raises:
            CapacityExhausted: If live records already fill the scramble space,
                or a full period of candidates was rejected.
        """
        with self._lock:
            self._ensure_open()
            existing = self.index.lookup_by_url(url)
            if existing is not None:
                return existing.code

            modulus = self.strategy.modulus
            if len(self.index) >= modulus:
                logger.error("Code space exhausted: %d live records, modulus %d", len(self.index), modulus)
                raise CapacityExhausted(modulus, len(self.index))

            for _ in range(modulus):
                code = self.strategy.next_code()
                if self.index.lookup_by_code(code) is None:
                    record = Record(code=code, url=url)
                    self.index.insert(record)
                    logger.debug("Created mapping %s -> %s", code, url)
                    return code
                logger.debug("Candidate %s already live, drawing again", code)

            logger.error("No free code after %d attempts", modulus)
            raise CapacityExhausted(modulus, len(self.index))

    def resolve(self, code: str) -> Optional[str]:
        """Return the URL mapped to `code`, or None."""
        with self._lock:
            self._ensure_open()
            record = self.index.lookup_by_code(code)
            return None if record is None else record.url

    def delete(self, code: str) -> bool:
        """
        Delete the mapping for `code` from both directions.

        Returns:
            bool: False if no live mapping uses `code`.
        """
        with self._lock:
            self._ensure_open()
            record = self.index.lookup_by_code(code)
            if record is None:
                return False
            removed = self.index.remove(record)
            logger.info("Deleted mapping %s -> %s", record.code, record.url)
            return removed

    def delete_by_url(self, url: str) -> bool:
        """Delete the mapping whose long URL is `url`. False if there is none."""
        with self._lock:
            self._ensure_open()
            record = self.index.lookup_by_url(url)
            if record is None:
                return False
            removed = self.index.remove(record)
            logger.info("Deleted mapping %s -> %s", record.code, record.url)
            return removed

    def iter_records(self) -> Iterator[Record]:
        """Lazily yield live records from a snapshot taken under the lock."""
        with self._lock:
            self._ensure_open()
            snapshot = list(self.index.for_each())
        yield from snapshot

    def list(self) -> List[Tuple[str, str]]:
        """Return every live mapping as (code, url), in code-table order."""
        return [(record.code, record.url) for record in self.iter_records()]

    def occupancy(self) -> Tuple[int, int]:
        """Return (non-empty code buckets, non-empty url buckets)."""
        with self._lock:
            self._ensure_open()
            return self.index.occupancy()

    live_bucket_count = occupancy

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------
    def shutdown(self) -> None:
        """Release every record. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            dropped = len(self.index)
            self.index.clear()
            self._closed = True
            logger.info("Engine shut down, released %d mappings", dropped)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "MappingEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def __len__(self) -> int:
        with self._lock:
            return len(self.index)

    def __contains__(self, code: str) -> bool:
        return self.resolve(code) is not None


def create_engine(
    strategy: Optional[str] = None,
    *,
    modulus: Optional[int] = None,
    multiplier: Optional[int] = None,
    start: Optional[int] = None,
    buckets: Optional[int] = None,
) -> MappingEngine:
    """
    Build a MappingEngine from settings, with optional per-call overrides.

    Returns:
        MappingEngine: A fresh engine owning its own index and counter.
    """
    code_strategy = get_strategy_from_config(strategy, modulus=modulus, multiplier=multiplier, start=start)
    return MappingEngine(index=DualIndex(buckets), strategy=code_strategy)
