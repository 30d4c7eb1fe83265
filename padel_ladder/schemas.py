import re
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

Winner = Literal["team1", "team2"]
WINNERS = ("team1", "team2")


class PlayerCreate(BaseModel):
    name: str
    email: str

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Name and email are required")
        value = value.strip()
        if len(value) < 2 or len(value) > 50:
            raise ValueError("Name must be between 2 and 50 characters")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Name and email are required")
        value = value.strip()
        if not EMAIL_RE.match(value):
            raise ValueError("Invalid email format")
        return value


class PlayerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    rating: int
    matches: int
    wins: int


def _check_team(value):
    if not isinstance(value, list) or len(value) != 2:
        raise ValueError("Each team must have exactly 2 players")
    for player_id in value:
        # bool is an int subclass, and "7" should not sneak through either
        if isinstance(player_id, bool) or not isinstance(player_id, int):
            raise ValueError("Invalid player id")
    return value


class MatchCreate(BaseModel):
    """Body of POST /matches: two fixed-size teams and the winning side."""

    team1: List[int]
    team2: List[int]
    winner: Winner

    @field_validator("team1", "team2", mode="before")
    @classmethod
    def check_team(cls, value):
        return _check_team(value)

    @field_validator("winner", mode="before")
    @classmethod
    def check_winner(cls, value):
        if value not in WINNERS:
            raise ValueError("Invalid winner value")
        return value


class MatchOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    date: Optional[datetime] = None
    team1: List[Optional[PlayerOut]]
    team2: List[Optional[PlayerOut]]
    winner: Winner
    elo_changes: Dict[int, int] = Field(default_factory=dict, alias="eloChanges")


class PartialMatchOut(BaseModel):
    """207 body: the match exists, some follow-up writes did not land."""

    model_config = ConfigDict(populate_by_name=True)

    error: Optional[str] = None
    warning: Optional[str] = None
    match_id: int = Field(alias="matchId")
