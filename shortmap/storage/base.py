"""
Base index interface for shortmap.

Purpose:
    Define the small contract the mapping engine relies on: lookups from either
    direction, paired insert/remove, enumeration and an occupancy diagnostic.
    The engine owns locking and uniqueness checks; implementations do neither.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple


@dataclass(frozen=True, eq=False)
class Record:
    """
    One code/URL mapping. Write-once.

    Equality is identity: two records with the same fields are still distinct
    entries as far as an index is concerned.
    """
    code: str
    url: str


class BaseIndex(ABC):
    """Abstract base class for dual (code <-> url) indexes."""

    @abstractmethod  # pragma: no cover
    def lookup_by_code(self, code: str) -> Optional[Record]:
        """Return the record whose code is `code`, or None."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def lookup_by_url(self, url: str) -> Optional[Record]:
        """Return the record whose url is `url`, or None."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def insert(self, record: Record) -> None:
        """
        Link `record` into both tables.

        The caller guarantees neither key is present yet.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def remove(self, record: Record) -> bool:
        """
        Unlink `record` from both tables.

        Returns:
            bool: False if the record is linked in neither table.

        Raises:
            IndexInconsistency: If it is linked in exactly one table.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def for_each(self) -> Iterator[Record]:
        """Yield every live record in code-table order."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def occupancy(self) -> Tuple[int, int]:
        """Return (non-empty code buckets, non-empty url buckets)."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def clear(self) -> None:
        """Drop every record from both tables."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def __len__(self) -> int:
        raise NotImplementedError
