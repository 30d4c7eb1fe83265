import asyncio
import logging

from padel_ladder.errors import ClientInputError, ConflictError, ServiceUnavailableError
from padel_ladder.models import INITIAL_RATING
from padel_ladder.store import StoreError, UniqueViolation, ilike, in_

logger = logging.getLogger(__name__)

PLAYERS = "players"


class DuplicatePlayerError(ClientInputError):
    pass


class PlayerConflictError(ConflictError):
    def __init__(self):
        super().__init__("This player already exists in our system")


class PlayerRegistry:
    def __init__(self, store):
        self.store = store

    async def list(self):
        """All players, best rated first."""
        try:
            return await self.store.select(PLAYERS, order_by="rating", descending=True)
        except StoreError as e:
            logger.error(f"Error fetching players: {e}")
            raise ServiceUnavailableError("Unable to retrieve player data") from e

    async def get_by_ids(self, ids):
        return await self.store.select(PLAYERS, where=[in_("id", set(ids))])

    async def create(self, name, email):
        try:
            same_name, same_email = await asyncio.gather(
                self.store.select(PLAYERS, where=[ilike("name", name)]),
                self.store.select(PLAYERS, where=[ilike("email", email)]),
            )
        except StoreError as e:
            logger.error(f"Database error while checking for duplicates: {e}")
            raise ServiceUnavailableError("Unable to validate player information") from e

        if same_name:
            raise DuplicatePlayerError("A player with this name already exists")
        if same_email:
            raise DuplicatePlayerError("A player with this email already exists")

        try:
            rows = await self.store.insert(
                PLAYERS,
                [{"name": name, "email": email, "rating": INITIAL_RATING, "matches": 0, "wins": 0}],
            )
        except UniqueViolation as e:
            # Lost a race with another registration between the check and the insert
            logger.warning(f"Unique constraint rejected new player {name!r}: {e}")
            raise PlayerConflictError() from e
        except StoreError as e:
            logger.error(f"Database error while adding player: {e}")
            raise ServiceUnavailableError("Unable to add player at this time") from e

        player = rows[0]
        logger.info(f"Player {player['name']} registered (ID: {player['id']})")
        return player
