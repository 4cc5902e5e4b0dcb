"""
Card Store Factory
Centralizes the logic for selecting the appropriate store adapter.
"""

import logging

from lingosrs.application.config import AppConfig
from lingosrs.application.review.service import ReviewService
from lingosrs.domain.review.ports import CardStore
from lingosrs.infrastructure.stores.memory import InMemoryCardStore
from lingosrs.infrastructure.stores.sqlite import SqliteCardStore

logger = logging.getLogger(__name__)


def get_card_store(config: AppConfig) -> CardStore:
    """
    Returns the CardStore implementation named by config.store_backend.
    """
    if config.store_backend == "memory":
        logger.debug("Store: in-memory")
        return InMemoryCardStore()

    logger.debug(f"Store: sqlite at {config.store_path}")
    return SqliteCardStore(config.store_path)


def get_review_service(config: AppConfig) -> ReviewService:
    return ReviewService(
        get_card_store(config),
        max_write_retries=config.max_write_retries,
    )
