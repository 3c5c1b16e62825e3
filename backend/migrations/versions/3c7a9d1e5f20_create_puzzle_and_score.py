"""create puzzle and score tables

Revision ID: 3c7a9d1e5f20
Revises:
Create Date: 2025-11-02 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7a9d1e5f20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'puzzle' not in existing_tables:
        op.create_table(
            'puzzle',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('date', sa.String(length=16), nullable=False),
            sa.Column('target_phrase', sa.Text(), nullable=False),
            sa.Column('facsimile_phrase', sa.Text(), nullable=False),
            sa.Column('difficulty', sa.Integer(), nullable=True),
            sa.Column('approved', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_puzzle_date', 'puzzle', ['date'], unique=True)

    if 'score' not in existing_tables:
        op.create_table(
            'score',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.String(length=64), nullable=False),
            sa.Column('puzzle_id', sa.Integer(), sa.ForeignKey('puzzle.id'), nullable=False),
            sa.Column('score', sa.Float(), nullable=False),
            sa.Column('phase1_score', sa.Float(), nullable=False),
            sa.Column('phase2_score', sa.Float(), nullable=False),
            sa.Column('bonus_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('time_taken_seconds', sa.Float(), nullable=False),
            sa.Column('speed', sa.Float(), nullable=False, server_default='1.0'),
            sa.Column('min_speed', sa.Float(), nullable=True),
            sa.Column('max_speed', sa.Float(), nullable=True),
            sa.Column('stars', sa.Integer(), nullable=False),
            sa.Column('first_play_of_day', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('user_id', 'puzzle_id', name='uq_score_user_puzzle'),
        )
        op.create_index('ix_score_user_id', 'score', ['user_id'])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())
    if 'score' in existing_tables:
        op.drop_index('ix_score_user_id', table_name='score')
        op.drop_table('score')
    if 'puzzle' in existing_tables:
        op.drop_index('ix_puzzle_date', table_name='puzzle')
        op.drop_table('puzzle')
