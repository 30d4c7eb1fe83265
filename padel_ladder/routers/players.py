from typing import List

from fastapi import APIRouter, Depends
import logging

from padel_ladder.schemas import PlayerCreate, PlayerOut
from padel_ladder.services.players import PlayerRegistry
from padel_ladder.store import get_store

router = APIRouter()
logger = logging.getLogger(__name__)


def get_registry(store=Depends(get_store)):
    return PlayerRegistry(store)


@router.get("/", response_model=List[PlayerOut])
@router.get("", response_model=List[PlayerOut], include_in_schema=False)
async def get_players(registry: PlayerRegistry = Depends(get_registry)):
    return await registry.list()


@router.post("/", response_model=PlayerOut)
@router.post("", response_model=PlayerOut, include_in_schema=False)
async def add_player(player: PlayerCreate, registry: PlayerRegistry = Depends(get_registry)):
    logger.info(f"Registering player {player.name!r}")
    return await registry.create(player.name, player.email)
