"""Refresh of every active source into stored articles."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from .diagnostics import WarningCollector
from .logging_config import create_execution_logger
from .mapper import to_article
from .models import RefreshReport, Source
from .parser import FeedParser
from .storage import ArticleConflictError, Storage


class RefreshOrchestrator:
    """Runs the parser over all active sources and stores new articles."""

    def __init__(
        self,
        storage: Storage,
        parser: FeedParser,
        max_workers: int = 1,
        execution_id: str | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            storage: Source and article storage
            parser: Feed parser used for every source
            max_workers: Sources refreshed concurrently (1 means sequential)
            execution_id: Execution ID for logging context
        """
        self.storage = storage
        self.parser = parser
        self.max_workers = max(1, max_workers)
        self.logger = create_execution_logger("refresh", execution_id)
        self._counter_lock = threading.Lock()

    def refresh_all(self) -> RefreshReport:
        """Refresh every active source.

        A failing source only contributes a warning; the others proceed.
        Only a failure to list the sources propagates.
        """
        self.logger.log_execution_start()
        sources = [s for s in self.storage.get_sources() if s.is_active]
        warnings = WarningCollector()
        totals = {"new_articles": 0}

        def run(source: Source) -> None:
            created = self._refresh_source(source, warnings)
            with self._counter_lock:
                totals["new_articles"] += created

        if self.max_workers == 1:
            for source in sources:
                run(source)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                list(executor.map(run, sources))

        report = RefreshReport(
            new_articles=totals["new_articles"], warnings=warnings.messages
        )
        self.logger.log_metrics(
            {
                "sources_processed": len(sources),
                "new_articles": report.new_articles,
                "warnings": len(report.warnings),
            }
        )
        self.logger.log_execution_end(success=True)
        return report

    def _refresh_source(self, source: Source, warnings: WarningCollector) -> int:
        try:
            result = self.parser.parse_feed(
                source.url, source_id=source.id, source_name=source.name
            )
        except Exception as e:
            message = f"Failed to refresh source '{source.name}': {e}"
            warnings.add(message)
            self.logger.error(
                message, source_name=source.name, feed_url=source.url, error=str(e)
            )
            return 0

        warnings.extend(result.warnings)

        created = 0
        for item in result.items:
            try:
                article = to_article(item, source.id, source.name, source.category)
                # Look up by the stored (truncated) URL
                if self.storage.get_article_by_url(article.url):
                    continue
                self.storage.create_article(article)
                created += 1
            except ArticleConflictError:
                self.logger.debug(
                    "Article created concurrently, skipping",
                    source_name=source.name,
                    item_link=item.link,
                )
            except Exception as e:
                message = f"Failed to store article {item.link} from '{source.name}': {e}"
                warnings.add(message)
                self.logger.error(
                    message, source_name=source.name, item_link=item.link, error=str(e)
                )

        try:
            self.storage.update_source(source.id, last_fetched=datetime.now(UTC))
        except Exception as e:
            message = f"Failed to update source '{source.name}': {e}"
            warnings.add(message)
            self.logger.error(message, source_name=source.name, error=str(e))

        self.logger.info(
            f"Source '{source.name}' refreshed: {created} new articles",
            source_name=source.name,
            feed_url=source.url,
            new_articles=created,
        )
        return created
