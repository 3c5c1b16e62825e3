from datetime import datetime, timezone
from wortex import db


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Puzzle(db.Model):
    __tablename__ = 'puzzle'
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.String(16), unique=True, nullable=False, index=True)  # YYYY-MM-DD, or 'tutorial'
    target_phrase = db.Column(db.Text, nullable=False)
    facsimile_phrase = db.Column(db.Text, nullable=False)
    difficulty = db.Column(db.Integer, default=1)
    approved = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    scores = db.relationship('Score', back_populates='puzzle', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date,
            'target_phrase': self.target_phrase,
            'facsimile_phrase': self.facsimile_phrase,
            'difficulty': self.difficulty,
            'approved': self.approved,
        }


class Score(db.Model):
    """One row per (user, puzzle); replays overwrite it."""
    __tablename__ = 'score'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'puzzle_id', name='uq_score_user_puzzle'),
    )
    id = db.Column(db.Integer, primary_key=True)
    # Opaque identifier handed over by the external auth layer
    user_id = db.Column(db.String(64), nullable=False, index=True)
    puzzle_id = db.Column(db.Integer, db.ForeignKey('puzzle.id'), nullable=False)
    score = db.Column(db.Float, nullable=False)
    phase1_score = db.Column(db.Float, nullable=False)
    phase2_score = db.Column(db.Float, nullable=False)
    bonus_correct = db.Column(db.Boolean, default=False, nullable=False)
    time_taken_seconds = db.Column(db.Float, nullable=False)
    speed = db.Column(db.Float, default=1.0, nullable=False)
    min_speed = db.Column(db.Float, nullable=True)
    max_speed = db.Column(db.Float, nullable=True)
    stars = db.Column(db.Integer, nullable=False)
    first_play_of_day = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
    puzzle = db.relationship('Puzzle', back_populates='scores')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'puzzle_id': self.puzzle_id,
            'score': self.score,
            'phase1_score': self.phase1_score,
            'phase2_score': self.phase2_score,
            'bonus_correct': self.bonus_correct,
            'time_taken_seconds': self.time_taken_seconds,
            'speed': self.speed,
            'min_speed': self.min_speed,
            'max_speed': self.max_speed,
            'stars': self.stars,
            'first_play_of_day': self.first_play_of_day,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
