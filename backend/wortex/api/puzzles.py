from flask import Blueprint, jsonify, request
from wortex.services.puzzles import get_daily_puzzle, get_puzzle_by_date, current_date_for_timezone


puzzles = Blueprint('puzzles', __name__)


@puzzles.route('/daily', methods=['GET'])
def daily_puzzle():
    tz_name = request.args.get('tz') or 'UTC'
    puzzle = get_daily_puzzle(tz_name)
    if not puzzle:
        return jsonify({'error': f'No puzzle for {current_date_for_timezone(tz_name)}'}), 404
    return jsonify(puzzle.to_dict())


@puzzles.route('/<string:date>', methods=['GET'])
def puzzle_by_date(date):
    puzzle = get_puzzle_by_date(date)
    if not puzzle:
        return jsonify({'error': 'Puzzle not found'}), 404
    return jsonify(puzzle.to_dict())
