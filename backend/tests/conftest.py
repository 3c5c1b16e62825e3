import os
import sys
import pytest

# Ensure the backend root (containing the `wortex` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from wortex import create_app, db, limiter, socketio


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    INITIAL_POOL_SIZE = 3
    TUTORIAL_SEED = 7


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    limiter.reset()
    with application.app_context():
        # Ensure models are imported so tables are created
        import wortex.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def puzzle(flask_app):
    from wortex.models import Puzzle
    row = Puzzle(
        date='2025-03-14',
        target_phrase='To be or not to be',
        facsimile_phrase='Existence is the question',
        difficulty=2,
        approved=True,
    )
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture()
def tutorial_puzzle(flask_app):
    from wortex.models import Puzzle
    from wortex.services.puzzles import TUTORIAL_PUZZLE
    row = Puzzle(
        date=TUTORIAL_PUZZLE.date,
        target_phrase=TUTORIAL_PUZZLE.target_text,
        facsimile_phrase=TUTORIAL_PUZZLE.facsimile_text,
        approved=True,
    )
    db.session.add(row)
    db.session.commit()
    return row
