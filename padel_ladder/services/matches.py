"""
Recording and listing padel matches.

Recording a match is a short saga of separate store writes:

1. insert the ``matches`` row (gives us the match id),
2. insert one ``elo_changes`` row per player,
3. update the four ``players`` rows concurrently.

The store has no transaction spanning these calls. A failure at step 1 aborts
with nothing written. A failure after it leaves the match in place (no
compensating delete) and comes back as ``MatchPartiallyRecorded`` carrying the
match id, so it is never mistaken for a full success.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from padel_ladder.config import PLAYER_UPDATE_MAX_ATTEMPTS, STORE_WRITE_TIMEOUT_SECONDS
from padel_ladder.elo import compute_delta, team_average
from padel_ladder.errors import ClientInputError, ServiceUnavailableError
from padel_ladder.schemas import WINNERS
from padel_ladder.services.players import PlayerRegistry
from padel_ladder.store import StoreError, eq, in_

logger = logging.getLogger(__name__)

PLAYERS = "players"
MATCHES = "matches"
ELO_CHANGES = "elo_changes"

SLOTS = ("team1_player1", "team1_player2", "team2_player1", "team2_player2")

MATCH_INSERT = "match_insert"
ELO_CHANGES_INSERT = "elo_changes_insert"

ELO_CHANGES_FAILED = "Match recorded, but ELO rankings couldn't be updated"
PLAYER_UPDATES_FAILED = "Match recorded, but player statistics may not be fully updated"


def player_update_step(player_id):
    return f"player_update:{player_id}"


class InvalidMatchError(ClientInputError):
    pass


class MatchAbortedError(ServiceUnavailableError):
    """Nothing was written; ``step`` names where the saga stopped."""

    def __init__(self, detail, step):
        super().__init__(detail)
        self.step = step


class HistoryUnavailableError(ServiceUnavailableError):
    pass


class StaleRowError(Exception):
    """The player row kept changing under us (or vanished) while updating it."""


@dataclass
class MatchRecorded:
    match_id: int
    date: Optional[datetime]
    team1: List[dict]
    team2: List[dict]
    winner: str
    elo_changes: Dict[int, int]


@dataclass
class MatchPartiallyRecorded:
    match_id: int
    failed_steps: List[str]
    message: str
    # "error" when the rating deltas are missing, "warning" when only player stats lag
    kind: str = "warning"
    elo_changes: Dict[int, int] = field(default_factory=dict)


class MatchRecorder:
    def __init__(
        self,
        store,
        write_timeout=STORE_WRITE_TIMEOUT_SECONDS,
        max_update_attempts=PLAYER_UPDATE_MAX_ATTEMPTS,
    ):
        self.store = store
        self.registry = PlayerRegistry(store)
        self.write_timeout = write_timeout
        self.max_update_attempts = max(1, max_update_attempts)

    async def _call(self, aw):
        # A timeout is treated exactly like the call failing
        return await asyncio.wait_for(aw, timeout=self.write_timeout)

    def _validate(self, team1, team2, winner):
        if len(team1) != 2 or len(team2) != 2:
            raise InvalidMatchError("Each team must have exactly 2 players")
        if winner not in WINNERS:
            raise InvalidMatchError("Invalid winner value")
        if len(set(team1 + team2)) != 4:
            raise InvalidMatchError("A player cannot appear twice in the same match")

    async def _load_players(self, player_ids):
        try:
            players = await self._call(self.registry.get_by_ids(player_ids))
        except (StoreError, asyncio.TimeoutError) as e:
            logger.error(f"Database error while fetching players for match: {e!r}")
            raise MatchAbortedError("Unable to verify player information", step="player_lookup") from e

        by_id = {p["id"]: p for p in players}
        if len(by_id) != 4 or any(pid not in by_id for pid in player_ids):
            raise InvalidMatchError("One or more players not found")
        return by_id

    async def record(self, team1, team2, winner):
        team1, team2 = list(team1), list(team2)
        self._validate(team1, team2, winner)

        player_ids = team1 + team2
        players = await self._load_players(player_ids)

        winners, losers = (team1, team2) if winner == "team1" else (team2, team1)

        # ✅ Ratings as read just now; concurrent recordings may move them on
        delta = compute_delta(
            team_average(players[pid]["rating"] for pid in winners),
            team_average(players[pid]["rating"] for pid in losers),
        )
        elo_changes = {pid: delta for pid in winners}
        elo_changes.update({pid: -delta for pid in losers})

        match = await self._insert_match(team1, team2, winner)
        match_id = match["id"]
        logger.info(f"Match {match_id} recorded: {winner} won, delta {delta}")

        try:
            await self._call(
                self.store.insert(
                    ELO_CHANGES,
                    [
                        {"match_id": match_id, "player_id": pid, "elo_change": change}
                        for pid, change in elo_changes.items()
                    ],
                )
            )
        except (StoreError, asyncio.TimeoutError) as e:
            logger.error(f"Database error while inserting ELO changes for match {match_id}: {e!r}")
            return MatchPartiallyRecorded(
                match_id=match_id,
                failed_steps=[ELO_CHANGES_INSERT],
                message=ELO_CHANGES_FAILED,
                kind="error",
                elo_changes=elo_changes,
            )

        results = await asyncio.gather(
            *(
                self._apply_result(players[pid], elo_changes[pid], pid in winners)
                for pid in player_ids
            ),
            return_exceptions=True,
        )

        updated = {}
        failed_steps = []
        for pid, result in zip(player_ids, results):
            if isinstance(result, BaseException):
                logger.error(f"Player update failed for player {pid} in match {match_id}: {result!r}")
                failed_steps.append(player_update_step(pid))
            else:
                updated[pid] = result

        if failed_steps:
            logger.error(f"Failed player updates for match {match_id} ({len(failed_steps)}): {failed_steps}")
            return MatchPartiallyRecorded(
                match_id=match_id,
                failed_steps=failed_steps,
                message=PLAYER_UPDATES_FAILED,
                kind="warning",
                elo_changes=elo_changes,
            )

        return MatchRecorded(
            match_id=match_id,
            date=match.get("date"),
            team1=[updated[pid] for pid in team1],
            team2=[updated[pid] for pid in team2],
            winner=winner,
            elo_changes=elo_changes,
        )

    async def _insert_match(self, team1, team2, winner):
        row = dict(zip(SLOTS, team1 + team2))
        row.update(date=datetime.now(timezone.utc), winner=winner)
        try:
            rows = await self._call(self.store.insert(MATCHES, [row]))
        except (StoreError, asyncio.TimeoutError) as e:
            logger.error(f"Database error while inserting match: {e!r}")
            raise MatchAbortedError("Unable to record match", step=MATCH_INSERT) from e

        if not rows:
            logger.error("Match insert returned no row, match id unknown")
            raise MatchAbortedError("Unable to record match", step=MATCH_INSERT)
        return rows[0]

    async def _apply_result(self, player, change, won):
        """Apply one match to one player with a compare-and-swap update.

        The update only lands if the row still holds the values we read. On a
        miss the row is re-read and the same change is applied on top, so two
        matches recorded at once add up instead of one overwriting the other.
        """
        player_id = player["id"]
        current = player
        for attempt in range(1, self.max_update_attempts + 1):
            values = {
                "rating": current["rating"] + change,
                "matches": current["matches"] + 1,
                "wins": current["wins"] + (1 if won else 0),
            }
            rows = await self._call(
                self.store.update(
                    PLAYERS,
                    values,
                    where=[
                        eq("id", player_id),
                        eq("rating", current["rating"]),
                        eq("matches", current["matches"]),
                        eq("wins", current["wins"]),
                    ],
                )
            )
            if rows:
                return rows[0]

            logger.info(f"Player {player_id} changed during update (attempt {attempt}), re-reading")
            fresh = await self._call(self.store.select(PLAYERS, where=[eq("id", player_id)]))
            if not fresh:
                raise StaleRowError(f"Player {player_id} no longer exists")
            current = fresh[0]

        raise StaleRowError(
            f"Player {player_id} still changing after {self.max_update_attempts} attempts"
        )


class MatchHistory:
    def __init__(self, store):
        self.store = store

    async def list(self):
        """Every match, newest first, with players and rating changes resolved."""
        try:
            matches = await self.store.select(MATCHES, order_by="date", descending=True)
        except StoreError as e:
            logger.error(f"Database error while fetching matches: {e}")
            raise HistoryUnavailableError("Unable to retrieve match data") from e

        if not matches:
            return []

        match_ids = [m["id"] for m in matches]
        player_ids = {m[slot] for m in matches for slot in SLOTS}
        try:
            changes, players = await asyncio.gather(
                self.store.select(ELO_CHANGES, where=[in_("match_id", match_ids)]),
                self.store.select(PLAYERS, where=[in_("id", player_ids)]),
            )
        except StoreError as e:
            logger.error(f"Database error while fetching ELO changes: {e}")
            raise HistoryUnavailableError("Unable to retrieve complete match data") from e

        players_by_id = {p["id"]: p for p in players}
        changes_by_match = {}
        for change in changes:
            changes_by_match.setdefault(change["match_id"], {})[change["player_id"]] = change["elo_change"]

        return [
            {
                "id": m["id"],
                "date": m["date"],
                "team1": [players_by_id.get(m["team1_player1"]), players_by_id.get(m["team1_player2"])],
                "team2": [players_by_id.get(m["team2_player1"]), players_by_id.get(m["team2_player2"])],
                "winner": m["winner"],
                "elo_changes": changes_by_match.get(m["id"], {}),
            }
            for m in matches
        ]
