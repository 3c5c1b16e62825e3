from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from wortex.models import Puzzle


@dataclass(frozen=True)
class PuzzleRecord:
    date: str
    target_text: str
    facsimile_text: str
    difficulty: int = 1
    id: Optional[int] = None


TUTORIAL_DATE = 'tutorial'

TUTORIAL_PUZZLE = PuzzleRecord(
    date=TUTORIAL_DATE,
    target_text='Less is more',
    facsimile_text='Minimalist design philosophy',
    difficulty=1,
)

SAMPLE_PUZZLES = [
    PuzzleRecord(
        date='2025-01-01',
        target_text='To be, or not to be, that is the question.',
        facsimile_text='Existence or nonexistence: the dilemma.',
        difficulty=2,
    ),
    PuzzleRecord(
        date='2025-01-02',
        target_text='An investment in knowledge pays the best interest.',
        facsimile_text='Learning returns the highest dividends.',
        difficulty=2,
    ),
]


def to_record(puzzle: Puzzle) -> PuzzleRecord:
    return PuzzleRecord(
        id=puzzle.id,
        date=puzzle.date,
        target_text=puzzle.target_phrase,
        facsimile_text=puzzle.facsimile_phrase,
        difficulty=puzzle.difficulty or 1,
    )


def current_date_for_timezone(tz_name: str = 'UTC', now: Optional[datetime] = None) -> str:
    """Today's date (YYYY-MM-DD) as seen from ``tz_name``; unknown zones fall back to UTC."""
    try:
        tz = ZoneInfo(tz_name or 'UTC')
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo('UTC')
    moment = now.astimezone(tz) if now else datetime.now(tz)
    return moment.strftime('%Y-%m-%d')


def get_puzzle_by_date(date: str) -> Optional[Puzzle]:
    return Puzzle.query.filter_by(date=date, approved=True).first()


def get_daily_puzzle(tz_name: str = 'UTC') -> Optional[Puzzle]:
    return get_puzzle_by_date(current_date_for_timezone(tz_name))


def replay_seed_for(date: str) -> Optional[int]:
    """Archive dates replay with a seed derived from the date itself."""
    digits = ''.join(ch for ch in date if ch.isdigit())
    return int(digits) if digits else None
