from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from voter_profile.config import BUCKET_INITIAL_CAPACITY
from voter_profile.core.records import VoterProfileRecord


class Bucket:
    """
    Append-only, order-preserving collection of records sharing one index key.

    Backed by a fixed-size slot list that doubles when full. Slots past
    len(self) are never exposed.
    """

    __slots__ = ("_slots", "_count")

    def __init__(self, capacity: int = BUCKET_INITIAL_CAPACITY) -> None:
        self._slots: List[Optional[VoterProfileRecord]] = [None] * max(1, int(capacity))
        self._count = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def append(self, record: VoterProfileRecord) -> None:
        if self._count >= len(self._slots):
            grown: List[Optional[VoterProfileRecord]] = [None] * (len(self._slots) * 2)
            grown[: self._count] = self._slots
            self._slots = grown
        self._slots[self._count] = record
        self._count += 1

    def first(self) -> Optional[VoterProfileRecord]:
        return self._slots[0] if self._count else None

    def as_slice(self) -> Tuple[VoterProfileRecord, ...]:
        return tuple(self._slots[: self._count])  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[VoterProfileRecord]:
        for i in range(self._count):
            yield self._slots[i]  # type: ignore[misc]

    def __repr__(self) -> str:
        return f"Bucket(len={self._count}, capacity={len(self._slots)})"
