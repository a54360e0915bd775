"""Unit tests for configuration management."""

import json
import os
from unittest.mock import patch

import pytest

from feed_ingest.config import (
    DEFAULT_FULL_CONTENT_DOMAINS,
    Config,
    FetchConfig,
    ParserConfig,
)


class TestConfigUnit:
    """Unit tests for Config class."""

    def test_defaults_without_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

        assert config.fetch_full_page is False
        assert config.enable_image_fetch is False
        assert config.http_timeout == 5.0
        assert config.max_redirects == 3
        assert config.refresh_workers == 1
        assert config.full_content_domains == DEFAULT_FULL_CONTENT_DOMAINS
        assert config.storage_backend == "memory"
        assert config.aws_region == "us-east-1"
        assert config.log_level == "INFO"

    def test_environment_overrides(self):
        env = {
            "FEED_FETCH_FULL_PAGE": "true",
            "FEED_ENABLE_IMAGE_FETCH": "1",
            "FEED_HTTP_TIMEOUT": "2.5",
            "FEED_MAX_REDIRECTS": "5",
            "FEED_REFRESH_WORKERS": "4",
            "FEED_FULL_CONTENT_DOMAINS": " Example.com , news.example.org ,",
            "STORAGE_BACKEND": "DynamoDB",
            "SOURCES_TABLE": "my-sources",
            "ARTICLES_TABLE": "my-articles",
            "AWS_DEFAULT_REGION": "eu-central-1",
        }
        with patch.dict(os.environ, env, clear=True):
            config = Config()

        assert config.fetch_full_page is True
        assert config.enable_image_fetch is True
        assert config.full_content_domains == ("example.com", "news.example.org")
        assert config.storage_backend == "dynamodb"
        assert config.sources_table == "my-sources"
        assert config.articles_table == "my-articles"
        assert config.aws_region == "eu-central-1"

        fetch_config = config.get_fetch_config()
        assert fetch_config == FetchConfig(timeout=2.5, max_redirects=5)

        parser_config = config.get_parser_config()
        assert parser_config.fetch_full_page is True
        assert parser_config.enable_image_fetch is True
        assert parser_config.full_content_domains == ("example.com", "news.example.org")

    def test_current_region_takes_precedence(self):
        env = {"CURRENT_AWS_REGION": "eu-west-1", "AWS_DEFAULT_REGION": "us-west-2"}
        with patch.dict(os.environ, env, clear=True):
            assert Config().aws_region == "eu-west-1"

    def test_flag_parsing(self):
        for value, expected in [("yes", True), ("ON", True), ("false", False), ("0", False), ("", False)]:
            with patch.dict(os.environ, {"FEED_FETCH_FULL_PAGE": value}, clear=True):
                assert Config().fetch_full_page is expected, f"Failed for value: {value!r}"

    def test_worker_count_is_at_least_one(self):
        with patch.dict(os.environ, {"FEED_REFRESH_WORKERS": "0"}, clear=True):
            assert Config().refresh_workers == 1

    def test_parser_config_defaults(self):
        config = ParserConfig()
        assert config.untitled_title == "Untitled"
        assert "habr.com" in config.full_content_domains
        assert "tass.ru" in config.page_image_domains


class TestSeedSources:
    """Unit tests for loading seed sources."""

    def test_loads_sources_file(self, tmp_path):
        sources_file = tmp_path / "sources.json"
        sources_file.write_text(
            json.dumps(
                {
                    "sources": [
                        {"id": 10, "name": "Alpha", "url": "https://a.com/rss", "category": "Tech"},
                        {"name": "Beta", "url": "https://b.com/rss", "enabled": False},
                        {"name": "No URL"},
                    ]
                }
            ),
            encoding="utf-8",
        )

        with patch.object(Config, "SOURCES_FILE", str(sources_file)):
            sources = Config().get_seed_sources()

        assert [s.name for s in sources] == ["Alpha", "Beta"]
        assert sources[0].id == 10
        assert sources[0].category == "Tech"
        assert sources[1].id == 2
        assert sources[1].category == "General"
        assert sources[1].is_active is False

    def test_missing_sources_file(self, tmp_path):
        with patch.object(Config, "SOURCES_FILE", str(tmp_path / "absent.json")):
            with pytest.raises(FileNotFoundError):
                Config().get_seed_sources()

    def test_invalid_json(self, tmp_path):
        sources_file = tmp_path / "sources.json"
        sources_file.write_text("{not json", encoding="utf-8")

        with patch.object(Config, "SOURCES_FILE", str(sources_file)):
            with pytest.raises(ValueError, match="Invalid JSON"):
                Config().get_seed_sources()
