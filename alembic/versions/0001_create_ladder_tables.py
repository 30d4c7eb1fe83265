"""create players, matches and elo_changes

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("matches", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_players_id", "players", ["id"])
    op.create_index("ix_players_name_lower", "players", [sa.text("lower(name)")], unique=True)
    op.create_index("ix_players_email_lower", "players", [sa.text("lower(email)")], unique=True)

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("winner", sa.String(5), nullable=False),
        sa.Column("team1_player1", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("team1_player2", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("team2_player1", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("team2_player2", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
    )
    op.create_index("ix_matches_id", "matches", ["id"])

    op.create_table(
        "elo_changes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("matches.id"), nullable=False),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("elo_change", sa.Integer(), nullable=False),
        sa.UniqueConstraint("match_id", "player_id"),
    )
    op.create_index("ix_elo_changes_id", "elo_changes", ["id"])
    op.create_index("ix_elo_changes_match_id", "elo_changes", ["match_id"])


def downgrade():
    op.drop_table("elo_changes")
    op.drop_table("matches")
    op.drop_table("players")
