"""Word pool scheduler: the rotating supply of words a player can grab.

Every tick pops one catalog key from a shuffled per-cycle queue and offers
a fresh instance of that word. The queue is rebuilt only when it runs dry,
so each catalog word comes round once per cycle and nothing starves. A
word the player dismisses skips the next rebuild, unless skipping would
leave nothing to show, in which case the dismissals are forgiven.
"""

from __future__ import annotations

import itertools
import random
import time
import uuid
from typing import Optional, Sequence

from .session import Phase, PoolEntry, Session
from .tokenizer import Phrase, WordToken


DEFAULT_CAPACITY = 10
DEFAULT_BASE_INTERVAL_MS = 1500
DEFAULT_MIN_GAP_MS = 100


def fisher_yates(items: Sequence, rng=None) -> list:
    """Return a shuffled copy; ``rng`` only needs a ``random()`` method."""
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def seeded_shuffle(items: Sequence, seed: int) -> list:
    return fisher_yates(items, random.Random(seed))


def build_catalog(target: Phrase, facsimile: Phrase) -> tuple[WordToken, ...]:
    return tuple(target.tokens) + tuple(facsimile.tokens)


class WordPoolScheduler:
    def __init__(
        self,
        catalog: Sequence[WordToken],
        capacity: int = DEFAULT_CAPACITY,
        base_interval_ms: float = DEFAULT_BASE_INTERVAL_MS,
        min_gap_ms: float = DEFAULT_MIN_GAP_MS,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = tuple(catalog)
        self.capacity = capacity
        self.base_interval_ms = base_interval_ms
        self.min_gap_ms = min_gap_ms
        self._rng = rng
        self._by_key = {t.catalog_key: t for t in self.catalog}
        self._seq = itertools.count(1)

    @classmethod
    def from_phrases(cls, target: Phrase, facsimile: Phrase, seed: Optional[int] = None, **kwargs):
        rng = random.Random(seed) if seed is not None else None
        return cls(build_catalog(target, facsimile), rng=rng, **kwargs)

    def interval_ms(self, speed: float) -> Optional[float]:
        if not speed or speed <= 0:
            return None
        return self.base_interval_ms / speed

    def is_suspended(self, session: Session) -> bool:
        return session.paused or session.phase != Phase.COLLECTING or not session.speed or session.speed <= 0

    def tick(self, session: Session, now_ms: Optional[float] = None) -> Optional[PoolEntry]:
        """Emit the next word unless suspended or too close to the previous tick."""
        if self.is_suspended(session):
            return None
        if now_ms is None:
            now_ms = time.monotonic() * 1000.0
        if session.last_tick_ms is not None and now_ms - session.last_tick_ms < self.min_gap_ms:
            return None
        session.last_tick_ms = now_ms
        return self._emit(session)

    def prime(self, session: Session, count: int) -> list[PoolEntry]:
        """Fill the pool with ``count`` words at session start, bypassing cadence."""
        if session.phase != Phase.COLLECTING:
            return []
        emitted = []
        for _ in range(max(0, count)):
            entry = self._emit(session)
            if entry is None:
                break
            emitted.append(entry)
        return emitted

    def find(self, session: Session, instance_id: str) -> Optional[PoolEntry]:
        return next((e for e in session.working_set if e.instance_id == instance_id), None)

    def withdraw(self, session: Session, instance_id: str) -> Optional[PoolEntry]:
        entry = self.find(session, instance_id)
        if entry is not None:
            session.working_set.remove(entry)
        return entry

    def dismiss(self, session: Session, instance_id: str) -> bool:
        entry = self.withdraw(session, instance_id)
        if entry is None:
            return False
        session.dismissed.add(entry.token.catalog_key)
        return True

    def reinstate(self, session: Session, token: WordToken) -> PoolEntry:
        """Put a word taken back from a container into the pool as a new instance."""
        entry = self._mint(token)
        self._offer(session, entry)
        return entry

    def _emit(self, session: Session) -> Optional[PoolEntry]:
        if not self.catalog:
            return None
        if not session.pending_queue:
            self._rebuild_queue(session)
        key = session.pending_queue.pop(0)
        entry = self._mint(self._by_key[key])
        session.total_words_emitted += 1
        self._offer(session, entry)
        return entry

    def _rebuild_queue(self, session: Session) -> None:
        keys = [t.catalog_key for t in self.catalog if t.catalog_key not in session.dismissed]
        if not keys:
            keys = [t.catalog_key for t in self.catalog]
        # Dismissals only last for the rebuild that follows them
        session.dismissed.clear()
        session.pending_queue = fisher_yates(keys, self._rng)

    def _offer(self, session: Session, entry: PoolEntry) -> None:
        if len(session.working_set) >= self.capacity:
            session.working_set.pop(0)
        session.working_set.append(entry)

    def _mint(self, token: WordToken) -> PoolEntry:
        instance_id = f"{token.key}-{next(self._seq)}-{uuid.uuid4().hex[:8]}"
        return PoolEntry(instance_id=instance_id, token=token)
