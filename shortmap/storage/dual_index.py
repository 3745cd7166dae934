"""
Dual index module for shortmap (in-memory implementation).

Responsibilities:
    - Hold every live Record exactly once
    - Look records up by short code and by long URL in average O(1)
    - Insert into and remove from both lookup directions as one step
    - Enumerate records and report bucket occupancy

Design:
    - Records live in an arena keyed by an integer handle.
    - Two tables of `bucket_count` chains each (code-keyed and url-keyed) store
      handles, so one record is shared by both tables without being copied.
    - Keys are bucketed with djb2; chains are walked with exact string
      comparison since many keys share a bucket.
    - New handles go to the head of their chains.

LLM Prompt Example:
    "Show how storing arena handles in two hash tables lets a record be removed
     from both directions without ever leaving a dangling reference."
"""

import itertools
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from shortmap.config import settings
from shortmap.errors import IndexInconsistency
from .base import BaseIndex, Record

logger = logging.getLogger(__name__)

_DJB2_SEED = 5381
_MASK64 = (1 << 64) - 1


def djb2(key: str) -> int:
    """
    djb2 string hash over the UTF-8 bytes of `key`, wrapped to 64 bits.

    h = h * 33 + byte, starting from 5381.
    """
    h = _DJB2_SEED
    for byte in key.encode("utf-8"):
        h = ((h << 5) + h + byte) & _MASK64
    return h


class DualIndex(BaseIndex):
    def __init__(self, bucket_count: Optional[int] = None):
        """
        Initialize empty tables.

        Internal schema:
            self._records    = {handle: Record}
            self._code_table = [[handle, ...], ...]   # bucket_for(record.code)
            self._url_table  = [[handle, ...], ...]   # bucket_for(record.url)
        """
        if bucket_count is None:
            bucket_count = settings.BUCKETS
        if bucket_count < 1:
            raise ValueError("bucket_count must be at least 1")
        self.bucket_count = bucket_count
        self._records: Dict[int, Record] = {}
        self._code_table: List[List[int]] = [[] for _ in range(bucket_count)]
        self._url_table: List[List[int]] = [[] for _ in range(bucket_count)]
        self._handles = itertools.count(1)

    def bucket_for(self, key: str) -> int:
        return djb2(key) % self.bucket_count

    # ---------------------------------------------------------------------
    # Lookups
    # ---------------------------------------------------------------------
    def _find(self, table: List[List[int]], key: str, attr: str) -> Optional[int]:
        for handle in table[self.bucket_for(key)]:
            if getattr(self._records[handle], attr) == key:
                return handle
        return None

    def lookup_by_code(self, code: str) -> Optional[Record]:
        handle = self._find(self._code_table, code, "code")
        return None if handle is None else self._records[handle]

    def lookup_by_url(self, url: str) -> Optional[Record]:
        handle = self._find(self._url_table, url, "url")
        return None if handle is None else self._records[handle]

    # ---------------------------------------------------------------------
    # Mutation
    # ---------------------------------------------------------------------
    def insert(self, record: Record) -> None:
        handle = next(self._handles)
        self._records[handle] = record
        self._code_table[self.bucket_for(record.code)].insert(0, handle)
        self._url_table[self.bucket_for(record.url)].insert(0, handle)

    def _position(self, chain: List[int], record: Record) -> Optional[int]:
        for pos, handle in enumerate(chain):
            if self._records.get(handle) is record:
                return pos
        return None

    def remove(self, record: Record) -> bool:
        """
        Unlink the exact `record` (by identity) from both tables and free its slot.

        Both chain positions are located before either chain is touched, so a
        half-linked record raises without modifying anything.
        """
        code_chain = self._code_table[self.bucket_for(record.code)]
        url_chain = self._url_table[self.bucket_for(record.url)]
        code_pos = self._position(code_chain, record)
        url_pos = self._position(url_chain, record)

        if code_pos is None and url_pos is None:
            return False
        if code_pos is None or url_pos is None:
            side = "url" if code_pos is None else "code"
            raise IndexInconsistency(f"record {record.code!r} is linked only in the {side} table")

        handle = code_chain[code_pos]
        if url_chain[url_pos] != handle:
            raise IndexInconsistency(f"record {record.code!r} has different handles in the two tables")

        del code_chain[code_pos]
        del url_chain[url_pos]
        del self._records[handle]
        return True

    def clear(self) -> None:
        for chain in self._code_table:
            chain.clear()
        for chain in self._url_table:
            chain.clear()
        self._records.clear()

    # ---------------------------------------------------------------------
    # Enumeration / diagnostics
    # ---------------------------------------------------------------------
    def for_each(self) -> Iterator[Record]:
        # Walk a snapshot of handles; records removed meanwhile are skipped.
        snapshot = [handle for chain in self._code_table for handle in chain]
        for handle in snapshot:
            record = self._records.get(handle)
            if record is not None:
                yield record

    def occupancy(self) -> Tuple[int, int]:
        code_buckets = sum(1 for chain in self._code_table if chain)
        url_buckets = sum(1 for chain in self._url_table if chain)
        return code_buckets, url_buckets

    def verify(self) -> None:
        """
        Check that both tables link exactly the arena's handles, each in its
        correct bucket.

        Raises:
            IndexInconsistency: On the first mismatch found.
        """
        for table, attr in ((self._code_table, "code"), (self._url_table, "url")):
            seen = set()
            for bucket, chain in enumerate(table):
                for handle in chain:
                    record = self._records.get(handle)
                    if record is None:
                        raise IndexInconsistency(f"{attr} table links freed handle {handle}")
                    if self.bucket_for(getattr(record, attr)) != bucket:
                        raise IndexInconsistency(f"handle {handle} is in the wrong {attr} bucket")
                    seen.add(handle)
            if seen != set(self._records):
                raise IndexInconsistency(f"{attr} table does not link every live record")

    def __len__(self) -> int:
        return len(self._records)
