"""create_election_tables

Revision ID: 4f2a9c7e1b30
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f2a9c7e1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'elections',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pid', sa.String(length=128), nullable=False),
        sa.Column('topic', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('opens', sa.DateTime(timezone=True), nullable=False),
        sa.Column('closes', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False),
        sa.Column('hide_results', sa.Boolean(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('voting_group', sa.Integer(), nullable=False),
        sa.Column('results_group', sa.Integer(), nullable=False),
        sa.Column('mod_allowed', sa.Integer(), nullable=False),
        sa.Column('randomize_questions', sa.Boolean(), nullable=False),
        sa.Column('declares_winner', sa.Boolean(), nullable=False),
        sa.Column('show_remarks', sa.Boolean(), nullable=False),
        sa.Column('cookie_key', sa.String(length=32), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('closes >= opens', name='ck_election_window'),
        sa.CheckConstraint('status IN (0, 1, 2)', name='ck_election_status'),
    )
    op.create_index('ix_elections_pid', 'elections', ['pid'], unique=True)

    op.create_table(
        'questions',
        sa.Column('election_id', sa.Integer(), nullable=False),
        sa.Column('qid', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('text', sa.String(length=255), nullable=False),
        sa.Column('answer_sort', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['election_id'], ['elections.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('election_id', 'qid'),
    )

    op.create_table(
        'answers',
        sa.Column('election_id', sa.Integer(), nullable=False),
        sa.Column('qid', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('aid', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('text', sa.String(length=255), nullable=False),
        sa.Column('remark', sa.String(length=255), nullable=False),
        sa.Column('votes', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ['election_id', 'qid'],
            ['questions.election_id', 'questions.qid'],
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('election_id', 'qid', 'aid'),
        sa.CheckConstraint('votes >= 0', name='ck_answer_votes_nonnegative'),
    )

    op.create_table(
        'voters',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('election_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=False),
        sa.Column('voted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('vote_data', sa.Text(), nullable=False),
        sa.Column('vote_records', sa.Text(), nullable=False),
        sa.Column('public_key', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['election_id'], ['elections.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('election_id', 'user_id', name='uq_election_user'),
    )
    op.create_index('idx_voters_election', 'voters', ['election_id'])
    op.create_index('idx_voters_election_ip', 'voters', ['election_id', 'ip_address'])

    op.create_table(
        'votes',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('election_id', sa.Integer(), nullable=False),
        sa.Column('qid', sa.Integer(), nullable=False),
        sa.Column('aid', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['election_id'], ['elections.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_votes_election_answer', 'votes', ['election_id', 'qid', 'aid'])


def downgrade():
    op.drop_index('idx_votes_election_answer', table_name='votes')
    op.drop_table('votes')
    op.drop_index('idx_voters_election_ip', table_name='voters')
    op.drop_index('idx_voters_election', table_name='voters')
    op.drop_table('voters')
    op.drop_table('answers')
    op.drop_table('questions')
    op.drop_index('ix_elections_pid', table_name='elections')
    op.drop_table('elections')
