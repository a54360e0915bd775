"""Unit tests for the Lambda entry point."""

import json
import os
from unittest.mock import Mock, patch

import pytest

from feed_ingest.config import Config
from feed_ingest.lambda_handler import build_storage, lambda_handler
from feed_ingest.models import RefreshReport, Source
from feed_ingest.storage import DynamoStorage, MemoryStorage


def make_context():
    context = Mock()
    context.aws_request_id = "req-123"
    context.function_name = "feed-ingest"
    return context


class TestLambdaHandler:
    """Unit tests for lambda_handler."""

    def test_successful_refresh(self):
        with (
            patch.dict(os.environ, {}, clear=True),
            patch("feed_ingest.lambda_handler.build_storage") as mock_build_storage,
            patch("feed_ingest.lambda_handler.RefreshOrchestrator") as mock_orchestrator_class,
        ):
            mock_orchestrator_class.return_value.refresh_all.return_value = RefreshReport(
                new_articles=4, warnings=["Failed to refresh source 'Beta': HTTP 500"]
            )

            response = lambda_handler({}, make_context())

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["message"] == "Refresh completed. Added 4 new articles."
        assert body["newArticles"] == 4
        assert body["warnings"] == ["Failed to refresh source 'Beta': HTTP 500"]
        assert body["execution_id"].startswith("lambda_")

        args, kwargs = mock_orchestrator_class.call_args
        assert args[0] is mock_build_storage.return_value
        assert kwargs["max_workers"] == 1

    def test_refresh_failure_returns_500(self):
        with (
            patch("feed_ingest.lambda_handler.build_storage"),
            patch("feed_ingest.lambda_handler.RefreshOrchestrator") as mock_orchestrator_class,
        ):
            mock_orchestrator_class.return_value.refresh_all.side_effect = RuntimeError(
                "table unavailable"
            )

            response = lambda_handler({}, make_context())

        assert response["statusCode"] == 500
        body = json.loads(response["body"])
        assert body["message"] == "Failed to refresh feeds"
        assert "table unavailable" in body["error"]

    def test_storage_setup_failure_returns_500(self):
        with patch(
            "feed_ingest.lambda_handler.build_storage",
            side_effect=FileNotFoundError("Sources file not found: sources.json"),
        ):
            response = lambda_handler({}, None)

        assert response["statusCode"] == 500
        assert "Sources file not found" in json.loads(response["body"])["error"]


class TestBuildStorage:
    """Unit tests for storage backend selection."""

    def test_memory_backend_uses_seed_sources(self):
        seeds = [Source(1, "Alpha", "https://a.com/rss", "Tech")]
        with (
            patch.dict(os.environ, {"STORAGE_BACKEND": "memory"}, clear=True),
            patch.object(Config, "get_seed_sources", return_value=seeds),
        ):
            storage = build_storage(Config())

        assert isinstance(storage, MemoryStorage)
        assert [s.name for s in storage.get_sources()] == ["Alpha"]

    def test_dynamodb_backend(self):
        env = {
            "STORAGE_BACKEND": "dynamodb",
            "SOURCES_TABLE": "sources",
            "ARTICLES_TABLE": "articles",
            "CURRENT_AWS_REGION": "eu-west-1",
        }
        with patch.dict(os.environ, env, clear=True), patch("boto3.resource") as mock_resource:
            storage = build_storage(Config())

        assert isinstance(storage, DynamoStorage)
        mock_resource.assert_called_once_with("dynamodb", region_name="eu-west-1")
        mock_resource.return_value.Table.assert_any_call("sources")
        mock_resource.return_value.Table.assert_any_call("articles")

    def test_unknown_backend(self):
        with patch.dict(os.environ, {"STORAGE_BACKEND": "postgres"}, clear=True):
            with pytest.raises(ValueError, match="Unknown storage backend"):
                build_storage(Config())
