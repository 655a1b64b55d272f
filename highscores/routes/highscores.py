from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ..errors import ValidationError
from ..schemas import HighScoresResponse, MessageResponse, SubmitScoreResponse
from ..services.score_store import REQUIRED_FIELDS_MESSAGE, ScoreStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["High scores"])

FETCH_ERROR_MESSAGE = "Server error fetching high scores"
UPDATE_ERROR_MESSAGE = "Server error updating high score"


def get_store(request: Request) -> ScoreStore:
    return request.app.state.store


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code)


@router.get(
    "/highscores",
    response_model=HighScoresResponse,
    responses={500: {"model": MessageResponse}},
    summary="Get the best scores for every level and image",
)
def get_highscores(store: ScoreStore = Depends(get_store)):
    try:
        return store.get_all().to_response()
    except Exception:
        logger.exception("Error fetching high scores")
        return _message(500, FETCH_ERROR_MESSAGE)


@router.post(
    "/highscores",
    response_model=SubmitScoreResponse,
    responses={400: {"model": MessageResponse}, 500: {"model": MessageResponse}},
    summary="Submit a score; stored only if it beats the current best",
)
async def post_highscore(request: Request, store: ScoreStore = Depends(get_store)):
    try:
        payload: Any = await request.json()
    except ValueError:
        return _message(400, REQUIRED_FIELDS_MESSAGE)
    if not isinstance(payload, dict):
        return _message(400, REQUIRED_FIELDS_MESSAGE)

    try:
        result = await run_in_threadpool(
            store.submit_score,
            payload.get("level"),
            payload.get("imageName"),
            payload.get("moves"),
        )
    except ValidationError as e:
        return _message(400, e.message)
    except Exception:
        logger.exception("Error updating high score")
        return _message(500, UPDATE_ERROR_MESSAGE)

    return SubmitScoreResponse(message=result.message, isNewHighScore=result.accepted)
