"""
Score store: the single high score document and the rules for updating it.

The document holds, for every difficulty level, a mapping from sanitized image
name to the fewest moves recorded for that image. A score only replaces the
stored one when it is strictly lower.

Stored documents are normalized once, right after they are read. Anything that
does not fit the expected shape is dropped or replaced by an empty default and
a warning is logged; callers always receive a well-formed ``ScoreTable``.
"""
from __future__ import annotations

import copy
import logging
import math
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import DataShapeError, ValidationError
from ..schemas import Level

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Level, image name, and positive moves are required."
INVALID_LEVEL_MESSAGE = "Invalid level provided."

# DynamoDB numbers carry at most 38 significant digits
MAX_MOVES = 10 ** 38
REPAIR_ATTEMPTS = 2


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def sanitize_image_name(image_name: str) -> str:
    """Make an image name usable as a document key ("cat.png" -> "cat_png")."""
    return image_name.replace(".", "_")


@dataclass
class LevelEntry:
    image_scores: Dict[str, int] = field(default_factory=dict)


@dataclass
class ScoreTable:
    level_scores: Dict[Level, LevelEntry]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def default(cls, now: Optional[str] = None) -> "ScoreTable":
        return cls(
            level_scores={level: LevelEntry() for level in Level},
            created_at=now,
            updated_at=now,
        )

    def best(self, level: Level, image_key: str) -> Union[int, float]:
        """Best move count for a cell, or infinity when nothing is recorded."""
        return self.level_scores[level].image_scores.get(image_key, math.inf)

    def record(self, level: Level, image_key: str, moves: int, now: Optional[str] = None) -> None:
        self.level_scores[level].image_scores[image_key] = moves
        if now:
            self.updated_at = now

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "levelScores": {
                level.value: {
                    "imageScores": {
                        key: {"moves": moves} for key, moves in entry.image_scores.items()
                    }
                }
                for level, entry in self.level_scores.items()
            }
        }
        if self.created_at:
            document["createdAt"] = self.created_at
        if self.updated_at:
            document["updatedAt"] = self.updated_at
        return document

    def to_response(self) -> Dict[str, Any]:
        return {
            "levelScores": {
                level.value: {
                    key: {"moves": moves} for key, moves in self.level_scores[level].image_scores.items()
                }
                for level in Level
            }
        }


@dataclass
class ScoreSubmission:
    level: Level
    image_name: str
    moves: int

    @property
    def image_key(self) -> str:
        return sanitize_image_name(self.image_name)


@dataclass
class SubmitResult:
    accepted: bool
    message: str


def _as_positive_int(value: Any) -> Optional[int]:
    # bool is an int subclass; true/false are not move counts
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value <= 0 or value >= MAX_MOVES or value != int(value):
        return None
    return int(value)


def validate_submission(level: Any, image_name: Any, moves: Any) -> ScoreSubmission:
    """Check a raw submission and return it typed.

    Raises ``ValidationError`` with the client-facing message.
    """
    parsed_moves = _as_positive_int(moves)
    if not level or not image_name or not isinstance(image_name, str) or parsed_moves is None:
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)
    if not isinstance(level, str) or level not in Level.values():
        raise ValidationError(INVALID_LEVEL_MESSAGE)
    return ScoreSubmission(level=Level(level), image_name=image_name, moves=parsed_moves)


def parse_document(document: Dict[str, Any]) -> ScoreTable:
    """Strictly parse a stored document. Raises ``DataShapeError`` on any deviation."""
    level_scores = document.get("levelScores")
    if not isinstance(level_scores, dict):
        raise DataShapeError("levelScores is missing or not a mapping")

    levels: Dict[Level, LevelEntry] = {}
    for level in Level:
        entry = level_scores.get(level.value)
        if not isinstance(entry, dict) or not isinstance(entry.get("imageScores"), dict):
            raise DataShapeError(f"level '{level.value}' is missing or malformed")
        image_scores: Dict[str, int] = {}
        for key, value in entry["imageScores"].items():
            moves = _as_positive_int(value.get("moves")) if isinstance(value, dict) else None
            if moves is None:
                raise DataShapeError(f"score for '{level.value}/{key}' is malformed")
            image_scores[str(key)] = moves
        levels[level] = LevelEntry(image_scores=image_scores)

    return ScoreTable(
        level_scores=levels,
        created_at=document.get("createdAt"),
        updated_at=document.get("updatedAt"),
    )


def _repair_document(document: Dict[str, Any]) -> Tuple[ScoreTable, List[str]]:
    problems: List[str] = []
    table = ScoreTable.default()
    table.created_at = document.get("createdAt")
    table.updated_at = document.get("updatedAt")

    level_scores = document.get("levelScores")
    if not isinstance(level_scores, dict):
        problems.append("levelScores reset")
        return table, problems

    for level in Level:
        entry = level_scores.get(level.value)
        image_scores = entry.get("imageScores") if isinstance(entry, dict) else None
        if not isinstance(image_scores, dict):
            problems.append(f"{level.value} reset")
            continue
        for key, value in image_scores.items():
            moves = _as_positive_int(value.get("moves")) if isinstance(value, dict) else None
            if moves is None:
                problems.append(f"{level.value}/{key} dropped")
                continue
            table.level_scores[level].image_scores[str(key)] = moves

    return table, problems


def normalize_document(document: Any) -> Tuple[ScoreTable, bool]:
    """Return a well-formed table for ``document`` and whether it had to be repaired."""
    if not isinstance(document, dict):
        logger.warning("Fixing malformed high score document: not a mapping")
        return ScoreTable.default(), True
    try:
        return parse_document(document), False
    except DataShapeError as e:
        table, problems = _repair_document(document)
        logger.warning(f"Fixing malformed levelScores structure: {e} ({', '.join(problems)})")
        return table, True


class ScoreStore(ABC):
    """Shared read and update rules. Backends only move documents in and out."""

    @abstractmethod
    def _load_document(self) -> Optional[Dict[str, Any]]:
        """Return the raw stored document, or None when it does not exist."""

    @abstractmethod
    def _create_document(self, table: ScoreTable) -> bool:
        """Store ``table`` if no document exists yet. False when one already did."""

    @abstractmethod
    def _replace_document(self, table: ScoreTable, expected_updated_at: Optional[str]) -> bool:
        """Overwrite the document unless it changed since ``expected_updated_at``."""

    @abstractmethod
    def _record_if_better(self, submission: ScoreSubmission, now: str) -> bool:
        """Write the score only if it beats the stored one. True when written."""

    def get_all(self) -> ScoreTable:
        document = self._load_document()
        if document is None:
            logger.info("Creating new high score document.")
            table = ScoreTable.default(utc_now())
            if self._create_document(table):
                return table
            # Another request created it first
            document = self._load_document()

        for _ in range(REPAIR_ATTEMPTS):
            table, repaired = normalize_document(document)
            if not repaired:
                return table
            expected = table.updated_at
            table.updated_at = utc_now()
            if self._replace_document(table, expected):
                return table
            # Someone wrote in between; their copy may already be whole
            document = self._load_document()

        logger.warning(
            "High score document changed while being repaired; repair skipped. "
            "Score updates may fail until it is repaired."
        )
        return table

    def submit_score(self, level: Any, image_name: Any, moves: Any) -> SubmitResult:
        submission = validate_submission(level, image_name, moves)
        level_name = submission.level.value

        table = self.get_all()
        current_best = table.best(submission.level, submission.image_key)

        if submission.moves < current_best and self._record_if_better(submission, utc_now()):
            logger.info(
                f"New high score {level_name}/{submission.image_key}: "
                f"{submission.moves} moves (previous: {current_best})"
            )
            return SubmitResult(
                accepted=True,
                message=(
                    f"New high score for {level_name} level on "
                    f"{submission.image_name}: {submission.moves} moves."
                ),
            )

        return SubmitResult(
            accepted=False,
            message=f"Score not high enough for {level_name} level on {submission.image_name}.",
        )


class InMemoryScoreStore(ScoreStore):
    """Process-local store for development and tests.

    The lock stands in for the per-item atomicity a real document store gives.
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None) -> None:
        self._lock = threading.Lock()
        self._document = copy.deepcopy(document) if document is not None else None

    @property
    def document(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._document)

    def _load_document(self) -> Optional[Dict[str, Any]]:
        return self.document

    def _create_document(self, table: ScoreTable) -> bool:
        with self._lock:
            if self._document is not None:
                return False
            self._document = table.to_document()
            return True

    def _replace_document(self, table: ScoreTable, expected_updated_at: Optional[str]) -> bool:
        with self._lock:
            current = self._document.get("updatedAt") if isinstance(self._document, dict) else None
            if current != expected_updated_at:
                return False
            self._document = table.to_document()
            return True

    def _record_if_better(self, submission: ScoreSubmission, now: str) -> bool:
        with self._lock:
            table, _ = normalize_document(self._document)
            if submission.moves >= table.best(submission.level, submission.image_key):
                return False
            table.record(submission.level, submission.image_key, submission.moves, now)
            if table.created_at is None:
                table.created_at = now
            self._document = table.to_document()
            return True
