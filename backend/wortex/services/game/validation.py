"""Server-side score validation.

The client reports its own scores, so nothing it sends is trusted as-is.
The puzzle is re-tokenized here, every derived value is recomputed, and
submissions that fall outside what the game can produce are rejected.
Softer oddities only produce warnings; the stored final score and stars
are always the server's own.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from . import scoring
from .tokenizer import build_phrases, unique_word_count


MAX_TIME_SEC = 24 * 60 * 60
SLOW_TIME_SEC = 60 * 60
MIN_TIME_SEC = 5
MIN_SPEED = 0.0
MAX_SPEED = 2.0
PHASE1_WARN_ABOVE = 100.0
MAX_MOVES_PER_WORD = 3
FINAL_SCORE_TOLERANCE = 0.01
DUPLICATE_WINDOW_SEC = 5 * 60


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


@dataclass
class ScoreSubmission:
    phase1_score: Any
    phase2_score: Any
    final_score: Any
    bonus_correct: Any
    time_taken_seconds: Any
    speed: Any = 1.0
    min_speed: Any = None
    max_speed: Any = None
    stars: Any = None
    user_id: Optional[str] = None
    puzzle_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'ScoreSubmission':
        final = data.get('final_score')
        if final is None:
            final = data.get('score')
        return cls(
            phase1_score=data.get('phase1_score'),
            phase2_score=data.get('phase2_score'),
            final_score=final,
            bonus_correct=_or_default(data.get('bonus_correct'), False),
            time_taken_seconds=data.get('time_taken_seconds'),
            speed=_or_default(data.get('speed'), 1.0),
            min_speed=data.get('min_speed'),
            max_speed=data.get('max_speed'),
            stars=data.get('stars'),
            user_id=data.get('user_id'),
            puzzle_id=data.get('puzzle_id'),
        )


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        payload: dict = {'valid': self.valid}
        if self.error:
            payload['error'] = self.error
        if self.warnings:
            payload['warnings'] = list(self.warnings)
        return payload


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _reject(error: str) -> ValidationResult:
    return ValidationResult(valid=False, error=error)


def is_multiple_of_move_cost(score: float) -> bool:
    try:
        return Decimal(str(score)) % Decimal(str(scoring.MOVE_COST)) == 0
    except InvalidOperation:
        return False


def _check_bounds(sub: ScoreSubmission) -> Optional[str]:
    for name in ('final_score', 'phase1_score', 'phase2_score', 'speed', 'time_taken_seconds'):
        if not _is_number(getattr(sub, name)):
            return f'{name} must be a number'
    for name in ('min_speed', 'max_speed', 'stars'):
        value = getattr(sub, name)
        if value is not None and not _is_number(value):
            return f'{name} must be a number'

    if sub.final_score < 0:
        return 'Score cannot be negative'
    if sub.phase1_score < 0 or sub.phase2_score < 0:
        return 'Phase scores cannot be negative'
    if sub.time_taken_seconds < 0:
        return 'Time cannot be negative'
    if sub.time_taken_seconds > MAX_TIME_SEC:
        return 'Time taken exceeds reasonable limit'
    if not MIN_SPEED <= sub.speed <= MAX_SPEED:
        return f'Speed must be between {MIN_SPEED} and {MAX_SPEED}'
    if sub.min_speed is not None and not MIN_SPEED <= sub.min_speed <= MAX_SPEED:
        return f'Min speed must be between {MIN_SPEED} and {MAX_SPEED}'
    if sub.max_speed is not None and not MIN_SPEED <= sub.max_speed <= MAX_SPEED:
        return f'Max speed must be between {MIN_SPEED} and {MAX_SPEED}'
    if sub.min_speed is not None and sub.max_speed is not None and sub.min_speed > sub.max_speed:
        return 'Min speed cannot exceed max speed'
    if not isinstance(sub.bonus_correct, bool):
        return 'Bonus correct must be a boolean value'
    return None


def validate_score_submission(sub: ScoreSubmission, target_text: str, facsimile_text: str) -> ValidationResult:
    error = _check_bounds(sub)
    if error:
        return _reject(error)

    target, facsimile = build_phrases(target_text or '', facsimile_text or '')
    if not len(target):
        return _reject('Invalid puzzle data')
    unique_words = unique_word_count(target, facsimile)
    quote_word_count = len(target)
    warnings: list[str] = []

    if sub.phase1_score > PHASE1_WARN_ABOVE:
        warnings.append(
            f'Phase 1 score is very high ({sub.phase1_score}). User may have left game idle.'
        )

    max_phase2 = quote_word_count * MAX_MOVES_PER_WORD * scoring.MOVE_COST
    if sub.phase2_score > max_phase2:
        return _reject(
            f'Phase 2 score too high ({sub.phase2_score}). Maximum for {quote_word_count} words is {max_phase2}'
        )
    if not is_multiple_of_move_cost(sub.phase2_score):
        warnings.append(
            f'Phase 2 score ({sub.phase2_score}) is not a multiple of {scoring.MOVE_COST}. '
            'This may indicate score manipulation.'
        )

    expected_final = scoring.final_score(sub.phase1_score, sub.phase2_score, sub.bonus_correct)
    if abs(sub.final_score - expected_final) > FINAL_SCORE_TOLERANCE:
        return _reject(f'Final score mismatch. Expected {expected_final}, got {sub.final_score}')

    if sub.stars is not None:
        if sub.stars < 1 or sub.stars > 5:
            return _reject('Stars must be between 1 and 5')
        expected_stars = scoring.final_stars(sub.phase1_score, sub.phase2_score, quote_word_count)
        if sub.stars != expected_stars:
            warnings.append(
                f'Star count mismatch. Expected {expected_stars}, got {sub.stars}. Using calculated value.'
            )

    min_time = max(MIN_TIME_SEC, unique_words)
    if sub.time_taken_seconds < min_time:
        warnings.append(
            f'Time taken ({sub.time_taken_seconds}s) seems suspiciously fast for {unique_words} unique words. '
            f'Minimum expected: {min_time}s'
        )
    if sub.time_taken_seconds > SLOW_TIME_SEC:
        warnings.append(
            f'Time taken ({sub.time_taken_seconds}s) exceeds {SLOW_TIME_SEC}s. User may have left game open.'
        )

    return ValidationResult(valid=True, warnings=warnings)


def sanitize_score_submission(sub: ScoreSubmission, quote_word_count: int) -> ScoreSubmission:
    """Recompute derived values and round everything for storage.

    Only call this on a submission that passed validation.
    """
    phase1 = scoring.round2(sub.phase1_score)
    phase2 = scoring.round2(sub.phase2_score)
    return replace(
        sub,
        phase1_score=phase1,
        phase2_score=phase2,
        final_score=scoring.round2(scoring.final_score(sub.phase1_score, sub.phase2_score, sub.bonus_correct)),
        stars=scoring.final_stars(sub.phase1_score, sub.phase2_score, quote_word_count),
        speed=scoring.round2(sub.speed),
        min_speed=scoring.round2(sub.min_speed) if sub.min_speed is not None else None,
        max_speed=scoring.round2(sub.max_speed) if sub.max_speed is not None else None,
        time_taken_seconds=scoring.round2(sub.time_taken_seconds),
    )


def is_recent_duplicate(
    stored_score: Optional[float],
    stored_at: Optional[datetime],
    final_score: float,
    now: datetime,
    window_sec: int = DUPLICATE_WINDOW_SEC,
) -> bool:
    """True if the same final score was stored for this (user, puzzle) inside the window."""
    if stored_score is None or stored_at is None or not _is_number(final_score):
        return False
    if stored_at < now - timedelta(seconds=window_sec):
        return False
    return scoring.round2(stored_score) == scoring.round2(final_score)
