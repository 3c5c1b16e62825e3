"""Mutable per-player session state.

A ``Session`` is a plain handle: the word pool scheduler and the assembly
state machine both receive it explicitly and mutate it in place. Nothing
in here decides game rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from .tokenizer import WordToken


Container = Literal['target', 'facsimile']
HintKind = Literal['unnecessary', 'correct_string', 'next_word']
HINT_KINDS: tuple[str, ...] = ('unnecessary', 'correct_string', 'next_word')
CONTAINERS: tuple[str, ...] = ('target', 'facsimile')


class Phase(str, Enum):
    COLLECTING = 'collecting'
    PHASE1_PENDING = 'phase1_pending'
    REORDERING = 'reordering'
    PHASE2_PENDING = 'phase2_pending'
    FINISHED = 'finished'


PHASE_ORDER: tuple[Phase, ...] = tuple(Phase)


@dataclass
class PoolEntry:
    instance_id: str
    token: WordToken

    @property
    def text(self) -> str:
        return self.token.text

    def to_dict(self) -> dict:
        return {
            'id': self.instance_id,
            'word': self.token.text,
            'belongs_to': self.token.owner,
            'source_index': self.token.source_index,
        }


@dataclass
class PlacedWord:
    instance_id: str
    text: str
    container: Container
    position: int
    token: WordToken
    status: str = 'none'  # none | correct | extra, set when phase 2 completes

    def to_dict(self) -> dict:
        return {
            'id': self.instance_id,
            'word': self.text,
            'container': self.container,
            'position': self.position,
            'source_index': self.token.source_index,
            'belongs_to': self.token.owner,
            'status': self.status,
        }


@dataclass
class ScoreRecord:
    phase1_score: float
    phase2_score: float
    final_score: float
    star_rating: int
    bonus_correct: Optional[bool] = None

    def to_dict(self) -> dict:
        return {
            'phase1_score': self.phase1_score,
            'phase2_score': self.phase2_score,
            'final_score': self.final_score,
            'stars': self.star_rating,
            'bonus_correct': self.bonus_correct,
        }


@dataclass
class Session:
    speed: float = 1.0
    seed: Optional[int] = None
    phase: Phase = Phase.COLLECTING
    total_words_emitted: int = 0
    working_set: list[PoolEntry] = field(default_factory=list)
    target_words: list[PlacedWord] = field(default_factory=list)
    facsimile_words: list[PlacedWord] = field(default_factory=list)
    pending_queue: list[str] = field(default_factory=list)
    dismissed: set[str] = field(default_factory=set)
    hints_used: dict[str, int] = field(default_factory=lambda: {kind: 0 for kind in HINT_KINDS})
    active_hint: Optional[tuple[str, tuple[str, ...]]] = None
    moves: int = 0
    paused: bool = False
    last_tick_ms: Optional[float] = None
    min_speed: Optional[float] = None
    max_speed: Optional[float] = None
    # Fixed once collection completes; later speed changes do not touch it
    phase1_score: Optional[float] = None
    score: Optional[ScoreRecord] = None
    bonus_answered: bool = False

    def __post_init__(self):
        if self.min_speed is None:
            self.min_speed = self.speed
        if self.max_speed is None:
            self.max_speed = self.speed

    @property
    def hints_total(self) -> int:
        return sum(self.hints_used.values())

    def words_in(self, container: str) -> list[PlacedWord]:
        return self.target_words if container == 'target' else self.facsimile_words

    def advance_to(self, phase: Phase) -> bool:
        """Step to ``phase`` if it directly follows the current one."""
        if PHASE_ORDER.index(phase) != PHASE_ORDER.index(self.phase) + 1:
            return False
        self.phase = phase
        return True

    def record_speed(self, speed: float) -> None:
        self.speed = speed
        self.min_speed = min(self.min_speed, speed)
        self.max_speed = max(self.max_speed, speed)
