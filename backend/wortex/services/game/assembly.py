"""Two-phase assembly: collect the quote's words, then put them in order.

Phase 1 (collecting) takes words from the pool into two containers. The
target container accepts anything and only counts words; the facsimile
container auto-assembles, slotting each word where it belongs. Phase 1 is
done once the target container holds at least as many of every quote word
as the quote needs.

Phase 2 (reordering) lets the player rearrange the target container until
its leading words spell the quote. Moves and hints feed the phase 2 score.

Every public method is safe to call in any phase; calls that do not apply
to the current phase are ignored.
"""

from __future__ import annotations

import random
from collections import Counter
from typing import Optional, Sequence

from . import scoring
from .pool import WordPoolScheduler, fisher_yates
from .session import CONTAINERS, HINT_KINDS, Phase, PlacedWord, PoolEntry, ScoreRecord, Session
from .tokenizer import Phrase


DEFAULT_SHUFFLE_ATTEMPTS = 100


def open_slot(expected: Sequence[str], placed: Sequence[PlacedWord], word: str) -> Optional[int]:
    """Lowest unfilled position in ``expected`` that ``word`` fits, if any."""
    key = word.lower()
    filled = {p.position for p in placed}
    for position, expected_key in enumerate(expected):
        if expected_key == key and position not in filled:
            return position
    return None


def has_required_words(required: Sequence[str], placed: Sequence[PlacedWord]) -> bool:
    needed = Counter(required)
    have = Counter(p.text.lower() for p in placed)
    return all(have[key] >= count for key, count in needed.items())


def matches_prefix(expected: Sequence[str], placed: Sequence[PlacedWord]) -> bool:
    if len(placed) < len(expected):
        return False
    return all(p.text.lower() == key for p, key in zip(placed, expected))


def correct_prefix(expected: Sequence[str], placed: Sequence[PlacedWord]) -> list[PlacedWord]:
    prefix = []
    for p, key in zip(placed, expected):
        if p.text.lower() != key:
            break
        prefix.append(p)
    return prefix


def first_unnecessary(required: Sequence[str], placed: Sequence[PlacedWord]) -> Optional[PlacedWord]:
    needed = Counter(required)
    seen: Counter = Counter()
    for p in placed:
        key = p.text.lower()
        if seen[key] >= needed[key]:
            return p
        seen[key] += 1
    return None


def next_needed(expected: Sequence[str], placed: Sequence[PlacedWord]) -> Optional[PlacedWord]:
    done = len(correct_prefix(expected, placed))
    if done >= len(expected):
        return None
    key = expected[done]
    return next((p for p in placed[done:] if p.text.lower() == key), None)


class AssemblyStateMachine:
    def __init__(
        self,
        target: Phrase,
        facsimile: Phrase,
        scheduler: WordPoolScheduler,
        unique_word_count: int,
        shuffle_attempts: int = DEFAULT_SHUFFLE_ATTEMPTS,
    ):
        self.target = target
        self.facsimile = facsimile
        self.scheduler = scheduler
        self.unique_word_count = unique_word_count
        self.shuffle_attempts = shuffle_attempts
        self.expected = target.keys
        self.expected_facsimile = facsimile.keys

    # -- phase 1 -------------------------------------------------------

    def place(self, session: Session, instance_id: str, container: str) -> Optional[PlacedWord]:
        """Move a pool word into a container.

        Returns the placed word, or None when nothing was placed; an entry
        the facsimile container cannot use stays in the pool.
        """
        if session.phase != Phase.COLLECTING or container not in CONTAINERS:
            return None
        entry = self.scheduler.find(session, instance_id)
        if entry is None:
            return None

        if container == 'target':
            position = len(session.target_words)
        else:
            position = open_slot(self.expected_facsimile, session.facsimile_words, entry.text)
            if position is None:
                return None

        self.scheduler.withdraw(session, instance_id)
        placed = PlacedWord(
            instance_id=entry.instance_id,
            text=entry.text,
            container=container,
            position=position,
            token=entry.token,
        )
        words = session.words_in(container)
        words.append(placed)
        words.sort(key=lambda p: p.position)

        if has_required_words(self.expected, session.target_words):
            if session.advance_to(Phase.PHASE1_PENDING):
                session.phase1_score = self._phase1_now(session)
        return placed

    def remove(self, session: Session, instance_id: str, container: str) -> Optional[PoolEntry]:
        """Take a placed word back out; it returns to the pool as a new instance."""
        if session.phase != Phase.COLLECTING or container not in CONTAINERS:
            return None
        words = session.words_in(container)
        placed = next((p for p in words if p.instance_id == instance_id), None)
        if placed is None:
            return None
        words.remove(placed)
        if container == 'target':
            _renumber(words)
        return self.scheduler.reinstate(session, placed.token)

    def confirm_phase1(self, session: Session) -> bool:
        if session.phase != Phase.PHASE1_PENDING:
            return False
        session.advance_to(Phase.REORDERING)
        if session.seed is not None:
            session.target_words = self._replay_shuffle(session.target_words, session.seed)
            _renumber(session.target_words)
        self._check_phase2(session)
        return True

    def _replay_shuffle(self, words: list[PlacedWord], seed: int) -> list[PlacedWord]:
        # Keep reshuffling until phase 2 actually needs a move; give up after
        # shuffle_attempts and take whatever came out last.
        rng = random.Random(seed)
        shuffled = list(words)
        for _ in range(max(1, self.shuffle_attempts)):
            shuffled = fisher_yates(words, rng)
            if not matches_prefix(self.expected, shuffled):
                break
        return shuffled

    # -- phase 2 -------------------------------------------------------

    def reorder(self, session: Session, new_order: Sequence[str]) -> bool:
        """Replace the target ordering; True when the order actually changed."""
        if session.phase != Phase.REORDERING:
            return False
        current = [p.instance_id for p in session.target_words]
        new_order = list(new_order)
        if len(new_order) != len(current) or set(new_order) != set(current):
            return False
        if new_order == current:
            return False

        by_id = {p.instance_id: p for p in session.target_words}
        session.target_words = [by_id[i] for i in new_order]
        _renumber(session.target_words)
        session.moves += 1
        session.active_hint = None
        self._check_phase2(session)
        return True

    def move(self, session: Session, instance_id: str, to_index: int) -> bool:
        order = [p.instance_id for p in session.target_words]
        if instance_id not in order:
            return False
        order.remove(instance_id)
        to_index = max(0, min(int(to_index), len(order)))
        order.insert(to_index, instance_id)
        return self.reorder(session, order)

    def confirm_phase2(self, session: Session) -> bool:
        if session.phase != Phase.PHASE2_PENDING:
            return False
        session.target_words = [p for p in session.target_words if p.status != 'extra']
        session.active_hint = None
        session.advance_to(Phase.FINISHED)
        return True

    def _check_phase2(self, session: Session) -> None:
        if not matches_prefix(self.expected, session.target_words):
            return
        n = len(self.expected)
        for index, placed in enumerate(session.target_words):
            placed.status = 'correct' if index < n else 'extra'
        session.score = self.score_record(session)
        session.advance_to(Phase.PHASE2_PENDING)

    # -- hints ---------------------------------------------------------

    def hint(self, session: Session, kind: str) -> Optional[tuple[str, ...]]:
        """Highlight words for a hint and charge for it.

        Asking again for the highlight that is already showing is free.
        Returns the highlighted instance ids, or None if there is nothing
        to show.
        """
        if session.phase != Phase.REORDERING or kind not in HINT_KINDS:
            return None
        words = session.target_words
        if kind == 'unnecessary':
            found = first_unnecessary(self.expected, words)
            ids = (found.instance_id,) if found else ()
        elif kind == 'correct_string':
            ids = tuple(p.instance_id for p in correct_prefix(self.expected, words))
        else:
            found = next_needed(self.expected, words)
            ids = (found.instance_id,) if found else ()
        if not ids:
            return None

        highlight = (kind, ids)
        if session.active_hint != highlight:
            session.hints_used[kind] += 1
            session.active_hint = highlight
        return ids

    # -- scoring -------------------------------------------------------

    def _phase1_now(self, session: Session) -> float:
        return scoring.phase1_score(session.total_words_emitted, self.unique_word_count, session.speed)

    def live_scores(self, session: Session) -> dict:
        phase1 = session.phase1_score
        if phase1 is None:
            phase1 = self._phase1_now(session)
        phase2 = scoring.phase2_score(session.moves, session.hints_total)
        return {'phase1_score': phase1, 'phase2_score': phase2}

    def score_record(self, session: Session, bonus_correct: Optional[bool] = None) -> ScoreRecord:
        live = self.live_scores(session)
        phase1, phase2 = live['phase1_score'], live['phase2_score']
        return ScoreRecord(
            phase1_score=phase1,
            phase2_score=phase2,
            final_score=scoring.final_score(phase1, phase2, bool(bonus_correct)),
            star_rating=scoring.final_stars(phase1, phase2, len(self.expected)),
            bonus_correct=bonus_correct,
        )

    def answer_bonus(self, session: Session, correct: Optional[bool]) -> Optional[ScoreRecord]:
        """Apply the bonus question result once the game is finished.

        ``correct=None`` means the player skipped the question.
        """
        if session.phase != Phase.FINISHED or session.bonus_answered or session.score is None:
            return None
        record = session.score
        bonus = bool(correct)
        record.bonus_correct = bonus
        record.final_score = scoring.final_score(record.phase1_score, record.phase2_score, bonus)
        session.bonus_answered = True
        return record

    def skip_bonus(self, session: Session) -> Optional[ScoreRecord]:
        return self.answer_bonus(session, None)


def _renumber(words: list[PlacedWord]) -> None:
    for index, placed in enumerate(words):
        placed.position = index
