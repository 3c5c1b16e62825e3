"""One player's run through one puzzle.

``PlaySession`` wires a ``Session`` to the scheduler and state machine
built for its puzzle and exposes the calls the UI layer makes, plus a
JSON-ready snapshot for rendering.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .assembly import DEFAULT_SHUFFLE_ATTEMPTS, AssemblyStateMachine
from .pool import DEFAULT_BASE_INTERVAL_MS, DEFAULT_CAPACITY, DEFAULT_MIN_GAP_MS, WordPoolScheduler
from .session import PlacedWord, PoolEntry, ScoreRecord, Session
from .tokenizer import build_phrases, unique_word_count


class PlaySession:
    def __init__(
        self,
        target_text: str,
        facsimile_text: str,
        speed: float = 1.0,
        seed: Optional[int] = None,
        capacity: int = DEFAULT_CAPACITY,
        base_interval_ms: float = DEFAULT_BASE_INTERVAL_MS,
        min_gap_ms: float = DEFAULT_MIN_GAP_MS,
        initial_pool_size: int = 0,
        shuffle_attempts: int = DEFAULT_SHUFFLE_ATTEMPTS,
        puzzle_id: Optional[int] = None,
    ):
        self.puzzle_id = puzzle_id
        self.target, self.facsimile = build_phrases(target_text, facsimile_text)
        self.unique_word_count = unique_word_count(self.target, self.facsimile)
        self.session = Session(speed=speed, seed=seed)
        self.scheduler = WordPoolScheduler.from_phrases(
            self.target,
            self.facsimile,
            seed=seed,
            capacity=capacity,
            base_interval_ms=base_interval_ms,
            min_gap_ms=min_gap_ms,
        )
        self.machine = AssemblyStateMachine(
            self.target,
            self.facsimile,
            self.scheduler,
            self.unique_word_count,
            shuffle_attempts=shuffle_attempts,
        )
        if initial_pool_size:
            self.scheduler.prime(self.session, initial_pool_size)

    @classmethod
    def from_config(cls, target_text: str, facsimile_text: str, config, **kwargs) -> 'PlaySession':
        return cls(
            target_text,
            facsimile_text,
            capacity=int(config.get('WORKING_SET_CAPACITY', DEFAULT_CAPACITY)),
            base_interval_ms=float(config.get('WORD_TICK_BASE_MS', DEFAULT_BASE_INTERVAL_MS)),
            min_gap_ms=float(config.get('WORD_TICK_MIN_GAP_MS', DEFAULT_MIN_GAP_MS)),
            initial_pool_size=int(config.get('INITIAL_POOL_SIZE', 0)),
            shuffle_attempts=int(config.get('REORDER_SHUFFLE_ATTEMPTS', DEFAULT_SHUFFLE_ATTEMPTS)),
            **kwargs,
        )

    @property
    def phase(self):
        return self.session.phase

    def interval_ms(self) -> Optional[float]:
        if self.scheduler.is_suspended(self.session):
            return None
        return self.scheduler.interval_ms(self.session.speed)

    def tick(self, now_ms: Optional[float] = None) -> Optional[PoolEntry]:
        return self.scheduler.tick(self.session, now_ms)

    def place(self, instance_id: str, container: str) -> Optional[PlacedWord]:
        return self.machine.place(self.session, instance_id, container)

    def remove(self, instance_id: str, container: str) -> Optional[PoolEntry]:
        return self.machine.remove(self.session, instance_id, container)

    def dismiss(self, instance_id: str) -> bool:
        return self.scheduler.dismiss(self.session, instance_id)

    def reorder(self, new_order: Sequence[str]) -> bool:
        return self.machine.reorder(self.session, new_order)

    def move(self, instance_id: str, to_index: int) -> bool:
        return self.machine.move(self.session, instance_id, to_index)

    def hint(self, kind: str) -> Optional[tuple[str, ...]]:
        return self.machine.hint(self.session, kind)

    def confirm(self) -> bool:
        """Confirm whichever phase is waiting for confirmation."""
        return self.machine.confirm_phase1(self.session) or self.machine.confirm_phase2(self.session)

    def answer_bonus(self, correct: Optional[bool]) -> Optional[ScoreRecord]:
        return self.machine.answer_bonus(self.session, correct)

    def skip_bonus(self) -> Optional[ScoreRecord]:
        return self.machine.skip_bonus(self.session)

    def set_speed(self, speed: float) -> None:
        self.session.record_speed(speed)

    def pause(self) -> None:
        self.session.paused = True

    def resume(self) -> None:
        self.session.paused = False

    def snapshot(self) -> dict:
        s = self.session
        return {
            'puzzle_id': self.puzzle_id,
            'phase': s.phase.value,
            'paused': s.paused,
            'speed': s.speed,
            'min_speed': s.min_speed,
            'max_speed': s.max_speed,
            'interval_ms': self.interval_ms(),
            'total_words_emitted': s.total_words_emitted,
            'unique_word_count': self.unique_word_count,
            'target_word_count': len(self.target),
            'facsimile_slots': len(self.facsimile),
            'working_set': [e.to_dict() for e in s.working_set],
            'target_words': [p.to_dict() for p in s.target_words],
            'facsimile_words': [p.to_dict() for p in s.facsimile_words],
            'moves': s.moves,
            'hints_used': dict(s.hints_used),
            'active_hint': {'type': s.active_hint[0], 'word_ids': list(s.active_hint[1])} if s.active_hint else None,
            'live_scores': self.machine.live_scores(s),
            'score': s.score.to_dict() if s.score else None,
            'bonus_answered': s.bonus_answered,
        }
