"""
Unit tests for score store backend selection
"""
from unittest.mock import MagicMock, patch

from highscores.aws_clients import highscores_table
from highscores.config import Settings
from highscores.services.dynamo_score_store import DynamoScoreStore
from highscores.services.score_store import InMemoryScoreStore
from highscores.services.storage_service import get_score_store


class TestGetScoreStore:
    def test_memory_backend(self):
        assert isinstance(get_score_store(Settings(storage_backend="memory")), InMemoryScoreStore)

    @patch("highscores.services.storage_service.dynamodb_client")
    @patch("highscores.services.storage_service.highscores_table")
    def test_dynamodb_backend(self, mock_table_factory, mock_client_factory):
        settings = Settings(document_id="season-3")

        store = get_score_store(settings)

        assert isinstance(store, DynamoScoreStore)
        assert store.key == {"score_id": "season-3"}
        mock_table_factory.assert_called_once_with(settings)
        mock_client_factory.assert_called_once_with(settings)

    @patch("highscores.services.storage_service.dynamodb_client")
    @patch("highscores.services.storage_service.highscores_table")
    @patch.object(DynamoScoreStore, "ensure_table")
    def test_creates_table_when_configured(self, mock_ensure, mock_table_factory, mock_client_factory):
        get_score_store(Settings(create_table=True))
        mock_ensure.assert_called_once_with()

    @patch("highscores.services.storage_service.dynamodb_client")
    @patch("highscores.services.storage_service.highscores_table")
    @patch.object(DynamoScoreStore, "ensure_table")
    def test_table_not_created_by_default(self, mock_ensure, mock_table_factory, mock_client_factory):
        get_score_store(Settings())
        mock_ensure.assert_not_called()


class TestAwsClients:
    @patch("highscores.aws_clients.boto3")
    def test_endpoint_override(self, mock_boto3):
        settings = Settings(aws_region="eu-west-1", aws_endpoint_url="http://localhost:4566", table_name="t")

        highscores_table(settings)

        mock_boto3.resource.assert_called_once_with(
            "dynamodb", region_name="eu-west-1", endpoint_url="http://localhost:4566"
        )
        mock_boto3.resource.return_value.Table.assert_called_once_with("t")

    @patch("highscores.aws_clients.boto3")
    def test_default_endpoint(self, mock_boto3):
        highscores_table(Settings())
        mock_boto3.resource.assert_called_once_with("dynamodb", region_name="us-east-1")

    def test_existing_resource_reused(self):
        resource = MagicMock()
        highscores_table(Settings(table_name="scores"), resource)
        resource.Table.assert_called_once_with("scores")
