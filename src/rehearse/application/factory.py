"""
Review Service Factory
Centralizes the logic for selecting the storage adapter and building the service.
"""

import logging
from datetime import datetime

from rehearse.application.config import AppConfig
from rehearse.application.service import ReviewService
from rehearse.domain.ports import ReviewStore
from rehearse.infrastructure.adapters.memory_store import InMemoryReviewStore
from rehearse.infrastructure.adapters.sqlite_store import SqliteReviewStore

logger = logging.getLogger(__name__)


def get_review_store(config: AppConfig) -> ReviewStore:
    """
    Returns the ReviewStore implementation selected by config.backend.
    """
    if config.backend == "memory":
        logger.info("Backend: in-memory (nothing is persisted)")
        return InMemoryReviewStore()

    logger.debug(f"Backend: SQLite at {config.db_path}")
    return SqliteReviewStore(config.db_path)


def build_review_service(config: AppConfig, store: ReviewStore | None = None) -> ReviewService:
    """
    Build the single ReviewService for this process.

    The service clock reports local time in config.timezone so that
    "today" and "this week" follow the user's calendar.
    """
    tz = config.tz

    def clock() -> datetime:
        return datetime.now(tz)

    return ReviewService(
        store or get_review_store(config),
        cache_ttl_seconds=config.cache_ttl_seconds,
        clock=clock,
    )
