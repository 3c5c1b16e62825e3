from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)
limiter = Limiter(key_func=get_remote_address)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)
    limiter.init_app(flask_app)

    @flask_app.errorhandler(429)
    def rate_limited(e):
        return jsonify({'error': getattr(e, 'description', None) or 'Too many requests'}), 429

    from wortex.api.puzzles import puzzles
    flask_app.register_blueprint(puzzles, url_prefix='/api/puzzles')

    from wortex.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    from wortex.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api/scores')

    from wortex.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from wortex.models import Puzzle
        from wortex.services.puzzles import TUTORIAL_PUZZLE, SAMPLE_PUZZLES
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for record in [TUTORIAL_PUZZLE, *SAMPLE_PUZZLES]:
                db.session.add(Puzzle(
                    date=record.date,
                    target_phrase=record.target_text,
                    facsimile_phrase=record.facsimile_text,
                    difficulty=record.difficulty,
                    approved=True,
                ))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
