"""Storage adapters consumed by the refresh orchestrator."""

import threading
from dataclasses import asdict, replace
from datetime import datetime
from typing import Protocol

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from .logging_config import create_execution_logger
from .models import Article, Source


class ArticleConflictError(Exception):
    """An article with the same URL already exists in storage."""


class Storage(Protocol):
    """The four storage operations the engine depends on."""

    def get_sources(self) -> list[Source]: ...

    def get_article_by_url(self, url: str) -> Article | None: ...

    def create_article(self, article: Article) -> Article: ...

    def update_source(self, source_id: int, *, last_fetched: datetime) -> None: ...


class MemoryStorage:
    """Thread-safe in-process storage, enforcing article URL uniqueness."""

    def __init__(self, sources: list[Source] | None = None):
        self._lock = threading.Lock()
        self._sources: dict[int, Source] = {}
        self._articles: dict[str, Article] = {}
        self._next_article_id = 1
        for source in sources or []:
            self.add_source(source)

    def add_source(self, source: Source) -> Source:
        with self._lock:
            self._sources[source.id] = source
        return source

    def get_sources(self) -> list[Source]:
        with self._lock:
            return [replace(source) for source in self._sources.values()]

    def get_source(self, source_id: int) -> Source | None:
        with self._lock:
            source = self._sources.get(source_id)
            return replace(source) if source else None

    def get_article_by_url(self, url: str) -> Article | None:
        with self._lock:
            return self._articles.get(url)

    def list_articles(self) -> list[Article]:
        with self._lock:
            return list(self._articles.values())

    def create_article(self, article: Article) -> Article:
        with self._lock:
            if article.url in self._articles:
                raise ArticleConflictError(f"Article already exists: {article.url}")
            stored = replace(article, id=self._next_article_id)
            self._next_article_id += 1
            self._articles[stored.url] = stored

            source = self._sources.get(stored.source_id)
            if source is not None:
                source.article_count += 1
            return stored

    def update_source(self, source_id: int, *, last_fetched: datetime) -> None:
        with self._lock:
            source = self._sources.get(source_id)
            if source is not None:
                source.last_fetched = last_fetched


class DynamoStorage:
    """DynamoDB-backed storage: a sources table keyed by id, articles keyed by url."""

    def __init__(
        self,
        sources_table: str,
        articles_table: str,
        aws_region: str = "us-east-1",
        execution_id: str | None = None,
    ):
        """Initialize DynamoStorage with DynamoDB configuration.

        Args:
            sources_table: Name of the DynamoDB table holding sources
            articles_table: Name of the DynamoDB table holding articles
            aws_region: AWS region for DynamoDB client
            execution_id: Execution ID for logging context
        """
        self.logger = create_execution_logger("storage", execution_id)
        self.dynamodb = boto3.resource("dynamodb", region_name=aws_region)
        self.sources = self.dynamodb.Table(sources_table)
        self.articles = self.dynamodb.Table(articles_table)

        self.logger.info(
            "DynamoStorage initialized",
            sources_table=sources_table,
            articles_table=articles_table,
            aws_region=aws_region,
        )

    def get_sources(self) -> list[Source]:
        """Scan the sources table, following pagination."""
        items = []
        kwargs = {}
        while True:
            response = self.sources.scan(**kwargs)
            items.extend(response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                break
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

        return [_source_from_item(item) for item in items]

    def get_article_by_url(self, url: str) -> Article | None:
        response = self.articles.get_item(Key={"url": url})
        item = response.get("Item")
        return _article_from_item(item) if item else None

    def create_article(self, article: Article) -> Article:
        """Insert ``article`` unless its URL is already stored.

        Raises:
            ArticleConflictError: If an article with the same URL exists
        """
        item = {k: v for k, v in asdict(article).items() if v is not None}
        item["published_at"] = article.published_at.isoformat()
        item.pop("id", None)

        try:
            self.articles.put_item(
                Item=item, ConditionExpression=Attr("url").not_exists()
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise ArticleConflictError(
                    f"Article already exists: {article.url}"
                ) from e
            self.logger.error(
                f"Error storing article {article.url}: {e}",
                item_link=article.url,
                error=str(e),
            )
            raise

        self.logger.debug("Stored article", item_link=article.url)
        return article

    def update_source(self, source_id: int, *, last_fetched: datetime) -> None:
        self.sources.update_item(
            Key={"id": source_id},
            UpdateExpression="SET last_fetched = :last_fetched",
            ExpressionAttributeValues={":last_fetched": last_fetched.isoformat()},
        )


def _parse_timestamp(value) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value))


def _source_from_item(item: dict) -> Source:
    return Source(
        id=int(item["id"]),
        name=item.get("name", ""),
        url=item["url"],
        category=item.get("category", "General"),
        is_active=bool(item.get("is_active", True)),
        last_fetched=_parse_timestamp(item.get("last_fetched")),
        article_count=int(item.get("article_count", 0)),
    )


def _article_from_item(item: dict) -> Article:
    return Article(
        title=item.get("title", ""),
        content=item.get("content", ""),
        excerpt=item.get("excerpt", ""),
        url=item["url"],
        image_url=item.get("image_url"),
        category=item.get("category", ""),
        source_id=int(item.get("source_id", 0)),
        source_name=item.get("source_name", ""),
        published_at=_parse_timestamp(item.get("published_at")),
        views=int(item.get("views", 0)),
        comments=int(item.get("comments", 0)),
        shares=int(item.get("shares", 0)),
        likes=int(item.get("likes", 0)),
    )
