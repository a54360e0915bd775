"""Lambda entry point running one refresh over all active sources."""

import json
import os
from datetime import UTC, datetime
from typing import Any

from .config import Config
from .fetcher import RedirectFetcher
from .logging_config import create_execution_logger, setup_structured_logging
from .parser import FeedParser
from .refresh import RefreshOrchestrator
from .storage import DynamoStorage, MemoryStorage, Storage

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))


def build_storage(config: Config, execution_id: str | None = None) -> Storage:
    """Create the storage backend selected by ``STORAGE_BACKEND``."""
    if config.storage_backend == "dynamodb":
        return DynamoStorage(
            sources_table=config.sources_table,
            articles_table=config.articles_table,
            aws_region=config.aws_region,
            execution_id=execution_id,
        )
    if config.storage_backend == "memory":
        return MemoryStorage(config.get_seed_sources())
    raise ValueError(f"Unknown storage backend: {config.storage_backend}")


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Refresh all active feed sources.

    A completed refresh always answers 200, even when some sources failed;
    their problems are listed in ``warnings``. Only a refresh that could not
    run at all (configuration or source listing failure) answers 500.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with status, new article count and warnings
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    try:
        config = Config()
        storage = build_storage(config, execution_id)
        fetcher = RedirectFetcher(config.get_fetch_config(), execution_id=execution_id)
        parser = FeedParser(
            config.get_parser_config(), fetcher=fetcher, execution_id=execution_id
        )
        orchestrator = RefreshOrchestrator(
            storage,
            parser,
            max_workers=config.refresh_workers,
            execution_id=execution_id,
        )

        report = orchestrator.refresh_all()

        main_logger.log_execution_end(
            success=True,
            new_articles=report.new_articles,
            warnings_count=len(report.warnings),
        )

        return {
            "statusCode": 200,
            "body": json.dumps(
                {
                    "message": f"Refresh completed. Added {report.new_articles} new articles.",
                    "execution_id": execution_id,
                    **report.to_dict(),
                },
                ensure_ascii=False,
            ),
        }

    except Exception as e:
        error_msg = f"Failed to refresh feeds: {str(e)}"
        main_logger.error(error_msg, error=str(e))
        main_logger.log_execution_end(success=False, error=error_msg)

        return {
            "statusCode": 500,
            "body": json.dumps(
                {
                    "message": "Failed to refresh feeds",
                    "execution_id": execution_id,
                    "error": error_msg,
                }
            ),
        }
