"""
Repository Factory
Centralizes the logic for selecting the configured storage adapter.
"""

import logging

from noetica.application.config import AppConfig
from noetica.application.review_service import ReviewService
from noetica.application.session_stats import SessionStatsService
from noetica.domain.ports import CardRepository, Clock
from noetica.infrastructure.adapters.memory_repository import InMemoryCardRepository
from noetica.infrastructure.adapters.yaml_repository import YamlCardRepository

logger = logging.getLogger(__name__)


def get_card_repository(config: AppConfig) -> CardRepository:
    """
    Returns the CardRepository implementation selected by config.backend.
    """
    if config.backend == "memory":
        logger.debug("Backend: in-memory")
        return InMemoryCardRepository()

    logger.debug(f"Backend: YAML store at {config.store_path}")
    return YamlCardRepository(config.store_path)


def get_review_service(
    config: AppConfig, repository: CardRepository, clock: Clock
) -> ReviewService:
    return ReviewService(
        repository,
        clock,
        retries=config.persist_retries,
        retry_delay=config.retry_delay,
    )


def get_stats_service(config: AppConfig, repository: CardRepository) -> SessionStatsService:
    return SessionStatsService(repository, new_card_limit=config.new_card_limit)
