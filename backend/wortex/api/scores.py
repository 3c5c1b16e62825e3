from flask import Blueprint, jsonify, request, current_app
from wortex import db, limiter
from wortex.models import Puzzle
from wortex.services.game.tokenizer import build_phrases
from wortex.services.game.validation import ScoreSubmission, sanitize_score_submission, validate_score_submission
from wortex.services.scores import check_duplicate_submission, get_score, upsert_score


scores = Blueprint('scores', __name__)

SCORE_SUBMIT_LIMIT_MESSAGE = 'Too many score submissions. Please slow down.'


def _score_submit_limit():
    return current_app.config.get('SCORE_SUBMIT_RATE_LIMIT', '10 per minute')


@scores.route('/submit', methods=['POST'])
@limiter.limit(_score_submit_limit, error_message=SCORE_SUBMIT_LIMIT_MESSAGE)
def submit_score():
    data = request.get_json(silent=True) or {}
    submission = ScoreSubmission.from_dict(data)
    if not submission.user_id or submission.puzzle_id is None \
            or submission.final_score is None or submission.time_taken_seconds is None:
        return jsonify({'error': 'Missing required fields'}), 400
    if submission.phase1_score is None or submission.phase2_score is None:
        return jsonify({'error': 'Phase 1 and Phase 2 scores are required'}), 400

    puzzle = Puzzle.query.filter_by(id=submission.puzzle_id).first()
    if not puzzle:
        return jsonify({'error': 'Puzzle not found'}), 404
    submission.puzzle_id = puzzle.id

    window = int(current_app.config.get('DUPLICATE_WINDOW_SEC', 300))
    if check_duplicate_submission(submission.user_id, puzzle.id, submission.final_score, window_sec=window):
        current_app.logger.warning(
            f"[score-submit] duplicate user={submission.user_id} puzzle={puzzle.id} score={submission.final_score}"
        )
        return jsonify({'error': 'Duplicate score submission detected. Please wait before submitting again.'}), 429

    result = validate_score_submission(submission, puzzle.target_phrase, puzzle.facsimile_phrase)
    if not result.valid:
        current_app.logger.warning(
            f"[score-submit] rejected user={submission.user_id} puzzle={puzzle.id} error={result.error}"
        )
        return jsonify({'error': result.error or 'Invalid score submission'}), 400
    if result.warnings:
        current_app.logger.warning(
            f"[score-submit] warnings user={submission.user_id} puzzle={puzzle.id} warnings={result.warnings}"
        )

    target, _ = build_phrases(puzzle.target_phrase, puzzle.facsimile_phrase)
    sanitized = sanitize_score_submission(submission, len(target))
    try:
        row = upsert_score(sanitized)
    except Exception as exc:
        db.session.rollback()
        current_app.logger.error(f"[score-submit] store failed user={submission.user_id} puzzle={puzzle.id}: {exc}")
        return jsonify({'error': 'Failed to submit score'}), 500

    current_app.logger.info(
        f"[score-submit] stored user={row.user_id} puzzle={row.puzzle_id} score={row.score} stars={row.stars}"
    )
    return jsonify({'success': True, 'score': row.to_dict(), 'warnings': result.warnings or None})


@scores.route('/<int:puzzle_id>/<string:user_id>', methods=['GET'])
def get_user_score(puzzle_id, user_id):
    row = get_score(user_id, puzzle_id)
    if not row:
        return jsonify({'error': 'Score not found'}), 404
    return jsonify(row.to_dict())
