from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging

from padel_ladder.config import PLAYER_UPDATE_MAX_ATTEMPTS, STORE_WRITE_TIMEOUT_SECONDS
from padel_ladder.schemas import MatchCreate, MatchOut, PartialMatchOut
from padel_ladder.services.matches import MatchHistory, MatchPartiallyRecorded, MatchRecorder
from padel_ladder.store import get_store

router = APIRouter()
logger = logging.getLogger(__name__)


def get_recorder(store=Depends(get_store)):
    return MatchRecorder(
        store,
        write_timeout=STORE_WRITE_TIMEOUT_SECONDS,
        max_update_attempts=PLAYER_UPDATE_MAX_ATTEMPTS,
    )


def get_history(store=Depends(get_store)):
    return MatchHistory(store)


@router.get("/", response_model=List[MatchOut])
@router.get("", response_model=List[MatchOut], include_in_schema=False)
async def get_matches(history: MatchHistory = Depends(get_history)):
    return await history.list()


@router.post(
    "/",
    response_model=MatchOut,
    responses={status.HTTP_207_MULTI_STATUS: {"model": PartialMatchOut}},
)
@router.post("", response_model=MatchOut, include_in_schema=False)
async def submit_match(result: MatchCreate, recorder: MatchRecorder = Depends(get_recorder)):
    logger.info("Received match submission: %s", result.model_dump())

    outcome = await recorder.record(result.team1, result.team2, result.winner)

    # ✅ Match exists but follow-up writes failed: tell the caller, don't hide it
    if isinstance(outcome, MatchPartiallyRecorded):
        body = PartialMatchOut(match_id=outcome.match_id, **{outcome.kind: outcome.message})
        return JSONResponse(
            status_code=status.HTTP_207_MULTI_STATUS,
            content=jsonable_encoder(body, by_alias=True, exclude_none=True),
        )

    return MatchOut(
        id=outcome.match_id,
        date=outcome.date,
        team1=outcome.team1,
        team2=outcome.team2,
        winner=outcome.winner,
        elo_changes=outcome.elo_changes,
    )
