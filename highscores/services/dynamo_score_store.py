"""
DynamoDB backend for the score store.

The whole score table lives in a single item keyed by ``score_id``. Scores are
written with a conditional update on the nested cell, so two concurrent
improvements for the same image cannot overwrite a lower stored value.
"""
from __future__ import annotations

import logging
import time
from decimal import DecimalException
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import PersistenceError
from .score_store import ScoreStore, ScoreSubmission, ScoreTable

logger = logging.getLogger(__name__)

HASH_KEY = "score_id"


def _error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "Unknown")


class DynamoScoreStore(ScoreStore):
    def __init__(self, table, document_id: str = "global", client=None) -> None:
        self._table = table
        self._document_id = document_id
        self._client = client

    @property
    def key(self) -> Dict[str, str]:
        return {HASH_KEY: self._document_id}

    def _load_document(self) -> Optional[Dict[str, Any]]:
        try:
            response = self._table.get_item(Key=self.key, ConsistentRead=True)
        except ClientError as e:
            code = _error_code(e)
            if code == "ResourceNotFoundException":
                logger.error(f"High scores table doesn't exist: {self._table.name}")
            else:
                logger.error(f"Error reading high scores: {code} - {str(e)}")
            raise PersistenceError(f"Could not read high scores: {code}") from e
        except BotoCoreError as e:
            logger.error(f"Error reading high scores: {type(e).__name__}: {str(e)}")
            raise PersistenceError("Could not read high scores") from e
        return response.get("Item")

    def _create_document(self, table: ScoreTable) -> bool:
        item = {HASH_KEY: self._document_id, **table.to_document()}
        try:
            # Only create if the document doesn't exist
            self._table.put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(score_id)",
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            logger.error(f"Error creating high score document: {_error_code(e)} - {str(e)}")
            raise PersistenceError("Could not create high score document") from e
        except BotoCoreError as e:
            logger.error(f"Error creating high score document: {type(e).__name__}: {str(e)}")
            raise PersistenceError("Could not create high score document") from e
        return True

    def _replace_document(self, table: ScoreTable, expected_updated_at: Optional[str]) -> bool:
        item = {HASH_KEY: self._document_id, **table.to_document()}
        if expected_updated_at is None:
            condition = {"ConditionExpression": "attribute_not_exists(updatedAt)"}
        else:
            # Only overwrite if nobody wrote since we read it
            condition = {
                "ConditionExpression": "updatedAt = :existing_updated_at",
                "ExpressionAttributeValues": {":existing_updated_at": expected_updated_at},
            }
        try:
            self._table.put_item(Item=item, **condition)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            logger.error(f"Error repairing high score document: {_error_code(e)} - {str(e)}")
            raise PersistenceError("Could not repair high score document") from e
        except BotoCoreError as e:
            logger.error(f"Error repairing high score document: {type(e).__name__}: {str(e)}")
            raise PersistenceError("Could not repair high score document") from e
        return True

    def _record_if_better(self, submission: ScoreSubmission, now: str) -> bool:
        cell = "levelScores.#level.imageScores.#image"
        try:
            self._table.update_item(
                Key=self.key,
                UpdateExpression=f"SET {cell} = :entry, updatedAt = :updated_at",
                ConditionExpression=f"attribute_not_exists({cell}) OR {cell}.moves > :moves",
                ExpressionAttributeNames={
                    "#level": submission.level.value,
                    "#image": submission.image_key,
                },
                ExpressionAttributeValues={
                    ":entry": {"moves": submission.moves},
                    ":moves": submission.moves,
                    ":updated_at": now,
                },
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                logger.debug(
                    f"Score for {submission.level.value}/{submission.image_key} "
                    "was beaten by a concurrent submission"
                )
                return False
            if _error_code(e) == "ValidationException":
                logger.error(
                    f"High score document has no {submission.level.value} level to update; "
                    f"score not recorded: {str(e)}"
                )
            else:
                logger.error(f"Error updating high score: {_error_code(e)} - {str(e)}")
            raise PersistenceError(f"Could not update high score: {_error_code(e)}") from e
        except (BotoCoreError, DecimalException) as e:
            logger.error(f"Error updating high score: {type(e).__name__}: {str(e)}")
            raise PersistenceError("Could not update high score") from e
        return True

    def ensure_table(self, wait_seconds: float = 20.0) -> bool:
        """Create the backing table when it is missing. Returns True if created."""
        if self._client is None:
            raise PersistenceError("A DynamoDB client is required to create the table")
        name = self._table.name
        try:
            existing = set(self._client.list_tables().get("TableNames", []))
            if name in existing:
                return False
            logger.info(f"Creating DynamoDB table {name}")
            self._client.create_table(
                TableName=name,
                AttributeDefinitions=[{"AttributeName": HASH_KEY, "AttributeType": "S"}],
                KeySchema=[{"AttributeName": HASH_KEY, "KeyType": "HASH"}],
                BillingMode="PAY_PER_REQUEST",
            )
            deadline = time.monotonic() + wait_seconds
            while time.monotonic() < deadline:
                status = self._client.describe_table(TableName=name)["Table"]["TableStatus"]
                if status == "ACTIVE":
                    return True
                time.sleep(0.5)
        except ClientError as e:
            if _error_code(e) == "ResourceInUseException":
                return False
            logger.error(f"Error creating table {name}: {_error_code(e)} - {str(e)}")
            raise PersistenceError(f"Could not create table {name}") from e
        except BotoCoreError as e:
            logger.error(f"Error creating table {name}: {type(e).__name__}: {str(e)}")
            raise PersistenceError(f"Could not create table {name}") from e
        raise PersistenceError(f"DynamoDB table {name} not ACTIVE in time")
