import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from wortex import socketio
from wortex.services.game.play import PlaySession
from wortex.services.game.session import Phase


@dataclass
class LiveSession:
    id: str
    play: PlaySession
    lock: threading.Lock = field(default_factory=threading.Lock)
    started_at: float = field(default_factory=time.time)
    last_active: float = field(default_factory=time.time)


_sessions: Dict[str, LiveSession] = {}
_running_tickers: Set[str] = set()


def register(play: PlaySession) -> LiveSession:
    live = LiveSession(id=uuid.uuid4().hex, play=play)
    _sessions[live.id] = live
    return live


def get(session_id: str) -> Optional[LiveSession]:
    """Look up a session on behalf of a player; counts as activity."""
    live = _sessions.get(session_id)
    if live is not None:
        live.last_active = time.time()
    return live


def discard(session_id: str) -> None:
    _sessions.pop(session_id, None)
    _running_tickers.discard(session_id)


def sweep(idle_ttl_sec: float, finished_ttl_sec: float, now: Optional[float] = None) -> List[str]:
    """Drop sessions nobody has touched for a while.

    Finished sessions go after `finished_ttl_sec` of inactivity, any other
    session after `idle_ttl_sec`. Returns the evicted ids.
    """
    now = time.time() if now is None else now
    evicted = []
    for session_id, live in list(_sessions.items()):
        ttl = finished_ttl_sec if live.play.phase == Phase.FINISHED else idle_ttl_sec
        if now - live.last_active >= ttl:
            discard(session_id)
            evicted.append(session_id)
    return evicted


def room_for(session_id: str) -> str:
    return f"session:{session_id}"


def broadcast(live: LiveSession) -> None:
    socketio.emit('state_update', {'session_id': live.id, 'state': live.play.snapshot()},
                  to=room_for(live.id), namespace='/ws')


def start_ticker(app, session_id: str) -> None:
    """Run the word pool for a session in the background.

    - No-ops in TESTING mode unless ENABLE_TICKER_IN_TESTS is set
    - Ensures a single ticker per session
    - Stops for good once the session leaves the collecting phase
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_TICKER_IN_TESTS'):
        return
    live = _sessions.get(session_id)
    if live is None or session_id in _running_tickers:
        try:
            app.logger.info(f"[ticker-skip] session={session_id} missing or already running")
        except Exception:
            pass
        return
    _running_tickers.add(session_id)
    try:
        app.logger.info(f"[ticker-set] session={session_id} interval={live.play.interval_ms()}ms")
    except Exception:
        pass
    socketio.start_background_task(_worker, app, session_id)


def _worker(app, session_id: str) -> None:
    poll_sec = max(0.05, int(app.config.get('TICKER_POLL_MS', 250)) / 1000.0)
    try:
        hb = int(app.config.get('TICKER_HEARTBEAT_SEC', 0))
    except Exception:
        hb = 0
    last_hb = time.time()
    try:
        while True:
            live = _sessions.get(session_id)
            if live is None or live.play.phase != Phase.COLLECTING:
                break
            # Cadence is read once per tick; a speed change applies from the next one.
            # Ticks are not player activity, so bypass get()
            interval = live.play.interval_ms()
            socketio.sleep(interval / 1000.0 if interval else poll_sec)

            live = _sessions.get(session_id)
            if live is None:
                break
            with live.lock:
                entry = live.play.tick()
            if entry is not None:
                broadcast(live)
            if hb and time.time() - last_hb >= hb:
                last_hb = time.time()
                try:
                    app.logger.info(
                        f"[ticker-heartbeat] session={session_id} emitted={live.play.session.total_words_emitted}"
                    )
                except Exception:
                    pass
    finally:
        _running_tickers.discard(session_id)
        try:
            app.logger.info(f"[ticker-stop] session={session_id}")
        except Exception:
            pass
