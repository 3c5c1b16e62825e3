from flask import Blueprint, jsonify, request, current_app
from wortex.models import Puzzle
from wortex.services import live as live_sessions
from wortex.services.game.play import PlaySession
from wortex.services.game.session import CONTAINERS, HINT_KINDS
from wortex.services.game.validation import MAX_SPEED, MIN_SPEED
from wortex.services.puzzles import TUTORIAL_PUZZLE, TUTORIAL_DATE, get_puzzle_by_date, replay_seed_for, to_record


sessions = Blueprint('sessions', __name__)


def _parse_speed(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not MIN_SPEED <= value <= MAX_SPEED:
        return None
    return float(value)


def _session_response(live, **extra):
    payload = {'session_id': live.id, 'state': live.play.snapshot()}
    payload.update(extra)
    return jsonify(payload)


def _missing_session(session_id):
    return jsonify({'error': f'Session {session_id} not found'}), 404


def _resolve_puzzle(data):
    """Pick the puzzle record and replay seed a new session should use."""
    seed = data.get('seed')
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        return None, None, 'seed must be an integer'

    if data.get('tutorial'):
        row = get_puzzle_by_date(TUTORIAL_DATE)
        record = to_record(row) if row else TUTORIAL_PUZZLE
        return record, current_app.config.get('TUTORIAL_SEED', 0), None

    puzzle_id = data.get('puzzle_id')
    date = data.get('date')
    if puzzle_id is not None:
        row = Puzzle.query.filter_by(id=puzzle_id, approved=True).first()
    elif date:
        row = get_puzzle_by_date(date)
    else:
        return None, None, 'puzzle_id, date or tutorial is required'
    if not row:
        return None, None, None
    if seed is None and data.get('archive'):
        seed = replay_seed_for(row.date)
    return to_record(row), seed, None


@sessions.route('', methods=['POST'])
def create_session():
    data = request.get_json(silent=True) or {}
    record, seed, error = _resolve_puzzle(data)
    if error:
        return jsonify({'error': error}), 400
    if record is None:
        return jsonify({'error': 'Puzzle not found'}), 404

    speed = _parse_speed(data.get('speed', 1.0))
    if speed is None:
        return jsonify({'error': f'Speed must be between {MIN_SPEED} and {MAX_SPEED}'}), 400

    play = PlaySession.from_config(
        record.target_text,
        record.facsimile_text,
        current_app.config,
        speed=speed,
        seed=seed,
        puzzle_id=record.id,
    )
    evicted = live_sessions.sweep(
        idle_ttl_sec=float(current_app.config.get('SESSION_IDLE_TTL_SEC', 1800)),
        finished_ttl_sec=float(current_app.config.get('FINISHED_SESSION_TTL_SEC', 600)),
    )
    if evicted:
        current_app.logger.info(f"[session-sweep] evicted={len(evicted)}")
    live = live_sessions.register(play)
    current_app.logger.info(
        f"[session-start] session={live.id} puzzle={record.id} date={record.date} speed={speed} seed={seed}"
    )
    live_sessions.start_ticker(current_app._get_current_object(), live.id)
    return _session_response(live), 201


@sessions.route('/<string:session_id>', methods=['GET'])
def get_session(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    return _session_response(live)


@sessions.route('/<string:session_id>', methods=['DELETE'])
def end_session(session_id):
    if not live_sessions.get(session_id):
        return _missing_session(session_id)
    live_sessions.discard(session_id)
    return jsonify({'ok': True})


@sessions.route('/<string:session_id>/tick', methods=['POST'])
def tick(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    data = request.get_json(silent=True) or {}
    now_ms = data.get('now_ms')
    if now_ms is not None and (isinstance(now_ms, bool) or not isinstance(now_ms, (int, float))):
        return jsonify({'error': 'now_ms must be a number'}), 400
    with live.lock:
        entry = live.play.tick(now_ms)
    if entry is not None:
        live_sessions.broadcast(live)
    return _session_response(live, emitted=entry.to_dict() if entry else None)


@sessions.route('/<string:session_id>/place', methods=['POST'])
def place_word(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    data = request.get_json(silent=True) or {}
    instance_id = data.get('instance_id')
    container = data.get('container')
    if not instance_id or container not in CONTAINERS:
        return jsonify({'error': 'instance_id and a container (target or facsimile) are required'}), 400
    with live.lock:
        placed = live.play.place(instance_id, container)
    live_sessions.broadcast(live)
    return _session_response(live, placed=placed.to_dict() if placed else None)


@sessions.route('/<string:session_id>/remove', methods=['POST'])
def remove_word(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    data = request.get_json(silent=True) or {}
    instance_id = data.get('instance_id')
    container = data.get('container')
    if not instance_id or container not in CONTAINERS:
        return jsonify({'error': 'instance_id and a container (target or facsimile) are required'}), 400
    with live.lock:
        entry = live.play.remove(instance_id, container)
    live_sessions.broadcast(live)
    return _session_response(live, returned=entry.to_dict() if entry else None)


@sessions.route('/<string:session_id>/dismiss', methods=['POST'])
def dismiss_word(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    data = request.get_json(silent=True) or {}
    instance_id = data.get('instance_id')
    if not instance_id:
        return jsonify({'error': 'instance_id is required'}), 400
    with live.lock:
        dismissed = live.play.dismiss(instance_id)
    live_sessions.broadcast(live)
    return _session_response(live, dismissed=dismissed)


@sessions.route('/<string:session_id>/reorder', methods=['POST'])
def reorder_words(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    data = request.get_json(silent=True) or {}
    order = data.get('order')
    instance_id = data.get('instance_id')
    to_index = data.get('to_index')
    if order is not None:
        if not isinstance(order, list):
            return jsonify({'error': 'order must be a list of instance ids'}), 400
        with live.lock:
            moved = live.play.reorder(order)
    elif instance_id and isinstance(to_index, int) and not isinstance(to_index, bool):
        with live.lock:
            moved = live.play.move(instance_id, to_index)
    else:
        return jsonify({'error': 'order, or instance_id with to_index, is required'}), 400
    live_sessions.broadcast(live)
    return _session_response(live, moved=moved)


@sessions.route('/<string:session_id>/hint', methods=['POST'])
def request_hint(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    data = request.get_json(silent=True) or {}
    kind = data.get('kind')
    if kind not in HINT_KINDS:
        return jsonify({'error': f"kind must be one of {', '.join(HINT_KINDS)}"}), 400
    with live.lock:
        ids = live.play.hint(kind)
    live_sessions.broadcast(live)
    return _session_response(live, highlighted=list(ids) if ids else [])


@sessions.route('/<string:session_id>/confirm', methods=['POST'])
def confirm_phase(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    with live.lock:
        confirmed = live.play.confirm()
    if confirmed:
        current_app.logger.info(f"[session-confirm] session={session_id} phase={live.play.phase.value}")
    live_sessions.broadcast(live)
    return _session_response(live, confirmed=confirmed)


@sessions.route('/<string:session_id>/speed', methods=['POST'])
def change_speed(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    data = request.get_json(silent=True) or {}
    speed = _parse_speed(data.get('speed'))
    if speed is None:
        return jsonify({'error': f'Speed must be between {MIN_SPEED} and {MAX_SPEED}'}), 400
    with live.lock:
        live.play.set_speed(speed)
    live_sessions.broadcast(live)
    return _session_response(live)


@sessions.route('/<string:session_id>/pause', methods=['POST'])
def pause_session(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    with live.lock:
        live.play.pause()
    live_sessions.broadcast(live)
    return _session_response(live)


@sessions.route('/<string:session_id>/resume', methods=['POST'])
def resume_session(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    with live.lock:
        live.play.resume()
    live_sessions.broadcast(live)
    return _session_response(live)


@sessions.route('/<string:session_id>/bonus', methods=['POST'])
def answer_bonus(session_id):
    live = live_sessions.get(session_id)
    if not live:
        return _missing_session(session_id)
    data = request.get_json(silent=True) or {}
    correct = data.get('correct')
    if correct is not None and not isinstance(correct, bool):
        return jsonify({'error': 'correct must be true, false or null'}), 400
    with live.lock:
        record = live.play.skip_bonus() if correct is None else live.play.answer_bonus(correct)
    if record is None:
        return jsonify({'error': 'Bonus is only available once, after the puzzle is finished'}), 400
    live_sessions.broadcast(live)
    return _session_response(live)
