from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError

from wortex import db
from wortex.models import Score
from wortex.services.game.validation import DUPLICATE_WINDOW_SEC, ScoreSubmission, is_recent_duplicate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_score(user_id: str, puzzle_id: int) -> Optional[Score]:
    return Score.query.filter_by(user_id=str(user_id), puzzle_id=puzzle_id).first()


def check_duplicate_submission(user_id: str, puzzle_id: int, final_score: float,
                               window_sec: int = DUPLICATE_WINDOW_SEC,
                               now: Optional[datetime] = None) -> bool:
    """Flag a resubmission of the score already stored within the window."""
    existing = get_score(user_id, puzzle_id)
    if existing is None:
        return False
    return is_recent_duplicate(existing.score, existing.updated_at, final_score, now or _utcnow(), window_sec)


def _apply(row: Score, sub: ScoreSubmission) -> None:
    row.score = sub.final_score
    row.phase1_score = sub.phase1_score
    row.phase2_score = sub.phase2_score
    row.bonus_correct = sub.bonus_correct
    row.time_taken_seconds = sub.time_taken_seconds
    row.speed = sub.speed
    row.min_speed = sub.min_speed
    row.max_speed = sub.max_speed
    row.stars = sub.stars
    row.updated_at = _utcnow()


def upsert_score(sub: ScoreSubmission) -> Score:
    """Store a sanitized submission; a replay replaces the previous row.

    ``first_play_of_day`` is decided on insert and left alone on overwrite.
    """
    row = get_score(sub.user_id, sub.puzzle_id)
    if row is None:
        row = Score(user_id=str(sub.user_id), puzzle_id=sub.puzzle_id, first_play_of_day=True)
        _apply(row, sub)
        db.session.add(row)
        try:
            db.session.commit()
            return row
        except IntegrityError:
            # Lost an insert race on (user_id, puzzle_id); overwrite the winner instead
            db.session.rollback()
            row = get_score(sub.user_id, sub.puzzle_id)
            if row is None:
                raise
    _apply(row, sub)
    db.session.add(row)
    db.session.commit()
    return row
