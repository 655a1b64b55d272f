from __future__ import annotations

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field


class Level(str, Enum):
    VERY_EASY = "veryEasy"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def values(cls) -> List[str]:
        return [level.value for level in cls]


class ImageScore(BaseModel):
    moves: int = Field(..., ge=1)


class HighScoresResponse(BaseModel):
    levelScores: Dict[str, Dict[str, ImageScore]]


class SubmitScoreResponse(BaseModel):
    message: str
    isNewHighScore: bool


class MessageResponse(BaseModel):
    message: str
