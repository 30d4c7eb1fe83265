from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base

INITIAL_RATING = 1000


def utcnow():
    return datetime.now(timezone.utc)


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    rating = Column(Integer, nullable=False, default=INITIAL_RATING)
    matches = Column(Integer, nullable=False, default=0)
    wins = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # ✅ Name and email are unique regardless of case
    __table_args__ = (
        Index("ix_players_name_lower", func.lower(name), unique=True),
        Index("ix_players_email_lower", func.lower(email), unique=True),
    )


class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    winner = Column(String(5), nullable=False)  # "team1" or "team2"
    team1_player1 = Column(Integer, ForeignKey("players.id"), nullable=False)
    team1_player2 = Column(Integer, ForeignKey("players.id"), nullable=False)
    team2_player1 = Column(Integer, ForeignKey("players.id"), nullable=False)
    team2_player2 = Column(Integer, ForeignKey("players.id"), nullable=False)

    elo_changes = relationship("EloChange", back_populates="match")


class EloChange(Base):
    __tablename__ = "elo_changes"

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    elo_change = Column(Integer, nullable=False)

    match = relationship("Match", back_populates="elo_changes")

    __table_args__ = (UniqueConstraint("match_id", "player_id"),)
