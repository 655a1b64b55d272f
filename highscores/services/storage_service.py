"""
Builds the score store backend selected by configuration.
"""
import logging

from ..aws_clients import dynamodb_client, highscores_table
from ..config import Settings
from .dynamo_score_store import DynamoScoreStore
from .score_store import InMemoryScoreStore, ScoreStore

logger = logging.getLogger(__name__)


def get_score_store(settings: Settings) -> ScoreStore:
    """Return a new store for ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory score store; scores are lost on restart")
        return InMemoryScoreStore()

    endpoint = settings.aws_endpoint_url or "default AWS endpoint"
    logger.info(
        f"Initializing DynamoDB score store (table={settings.table_name}, "
        f"region={settings.aws_region}, endpoint={endpoint})"
    )
    store = DynamoScoreStore(
        highscores_table(settings),
        document_id=settings.document_id,
        client=dynamodb_client(settings),
    )
    if settings.create_table:
        store.ensure_table()
    return store
