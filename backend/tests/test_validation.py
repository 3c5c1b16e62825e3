from datetime import datetime, timedelta

import pytest

from wortex.services.game.validation import (
    ScoreSubmission,
    is_multiple_of_move_cost,
    is_recent_duplicate,
    sanitize_score_submission,
    validate_score_submission,
)


TARGET = 'To be or not to be'
FACSIMILE = 'Existence is the question'


def _submission(**overrides):
    data = {
        'phase1_score': 2.0,
        'phase2_score': 1.5,
        'final_score': 3.5,
        'bonus_correct': False,
        'time_taken_seconds': 120,
        'speed': 1.0,
    }
    data.update(overrides)
    return ScoreSubmission.from_dict(data)


def _validate(**overrides):
    return validate_score_submission(_submission(**overrides), TARGET, FACSIMILE)


def test_valid_submission_without_warnings():
    result = _validate()
    assert result.valid
    assert result.error is None
    assert result.warnings == []
    assert result.to_dict() == {'valid': True}


def test_bonus_discount_is_checked():
    assert _validate(bonus_correct=True, final_score=3.15).valid
    result = _validate(bonus_correct=True, final_score=3.5)
    assert not result.valid
    assert 'Final score mismatch' in result.error


def test_final_score_within_tolerance():
    assert _validate(final_score=3.51).valid
    assert not _validate(final_score=3.52).valid


@pytest.mark.parametrize('field, value, message', [
    ('final_score', -1, 'Score cannot be negative'),
    ('phase1_score', -0.5, 'Phase scores cannot be negative'),
    ('phase2_score', -0.25, 'Phase scores cannot be negative'),
    ('time_taken_seconds', -1, 'Time cannot be negative'),
    ('time_taken_seconds', 86401, 'Time taken exceeds reasonable limit'),
    ('speed', 2.5, 'Speed must be between'),
    ('min_speed', -0.1, 'Min speed must be between'),
    ('max_speed', 3, 'Max speed must be between'),
    ('bonus_correct', 'yes', 'Bonus correct must be a boolean value'),
    ('phase1_score', 'abc', 'phase1_score must be a number'),
    ('speed', True, 'speed must be a number'),
    ('final_score', float('nan'), 'final_score must be a number'),
])
def test_out_of_range_values_are_rejected(field, value, message):
    result = _validate(**{field: value})
    assert not result.valid
    assert message in result.error


def test_min_speed_above_max_speed():
    result = _validate(min_speed=1.5, max_speed=1.0)
    assert result.error == 'Min speed cannot exceed max speed'


def test_empty_puzzle_is_invalid():
    result = validate_score_submission(_submission(), '', FACSIMILE)
    assert result.error == 'Invalid puzzle data'


def test_phase2_cap_depends_on_quote_length():
    # 6 words * 3 moves * 0.25
    assert _validate(phase2_score=4.5, final_score=6.5).valid
    result = _validate(phase2_score=4.75, final_score=6.75)
    assert not result.valid
    assert 'Phase 2 score too high' in result.error


def test_phase2_off_the_move_grid_only_warns():
    result = _validate(phase2_score=1.3, final_score=3.3)
    assert result.valid
    assert any('not a multiple of 0.25' in w for w in result.warnings)


def test_high_phase1_only_warns():
    result = _validate(phase1_score=150, final_score=151.5)
    assert result.valid
    assert any('Phase 1 score is very high' in w for w in result.warnings)


def test_stars_are_checked():
    assert not _validate(stars=0).valid
    assert not _validate(stars=6).valid
    # phase 1 = 2.0 -> 4 stars, phase 2 = 1.5 -> 5 stars
    assert _validate(stars=5).warnings == []
    result = _validate(stars=3)
    assert result.valid
    assert any('Star count mismatch' in w for w in result.warnings)


def test_time_warnings():
    fast = _validate(time_taken_seconds=3)
    assert fast.valid
    assert any('suspiciously fast' in w for w in fast.warnings)
    slow = _validate(time_taken_seconds=4000)
    assert slow.valid
    assert any('User may have left game open' in w for w in slow.warnings)


def test_from_dict_accepts_score_alias():
    sub = ScoreSubmission.from_dict({'score': 4.0, 'user_id': 'u1', 'puzzle_id': 3})
    assert sub.final_score == 4.0
    assert sub.bonus_correct is False
    assert sub.speed == 1.0


def test_null_bonus_and_speed_fall_back_to_defaults():
    result = _validate(bonus_correct=None, speed=None)
    assert result.valid
    sub = _submission(bonus_correct=None, speed=None)
    assert sub.bonus_correct is False
    assert sub.speed == 1.0
    # an explicit zero speed is kept
    assert _submission(speed=0).speed == 0


def test_sanitize_recomputes_final_score_and_stars():
    sub = _submission(phase1_score=1.234, phase2_score=0.5, final_score=1.74, stars=1, time_taken_seconds=61.236)
    clean = sanitize_score_submission(sub, quote_word_count=6)
    assert clean.phase1_score == 1.23
    assert clean.phase2_score == 0.5
    assert clean.final_score == 1.73
    assert clean.stars == 5
    assert clean.time_taken_seconds == 61.24
    assert clean.min_speed is None
    # input submission is left as-is
    assert sub.stars == 1


def test_move_cost_grid():
    assert is_multiple_of_move_cost(0)
    assert is_multiple_of_move_cost(2.75)
    assert not is_multiple_of_move_cost(0.3)


def test_recent_duplicate_window():
    now = datetime(2025, 3, 14, 12, 0, 0)
    assert is_recent_duplicate(3.5, now - timedelta(seconds=60), 3.5, now, window_sec=300)
    assert is_recent_duplicate(3.5, now - timedelta(seconds=60), 3.501, now, window_sec=300)
    assert not is_recent_duplicate(3.5, now - timedelta(seconds=60), 3.25, now, window_sec=300)
    assert not is_recent_duplicate(3.5, now - timedelta(seconds=301), 3.5, now, window_sec=300)
    assert not is_recent_duplicate(None, None, 3.5, now)
