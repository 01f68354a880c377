"""
Celery tasks - search index upkeep and the hourly start-date sweep.
"""

import asyncio
import logging

from lendoo.db.repositories import ItemRepository, LoanRepository, UserRepository
from lendoo.db.session import async_session_maker
from lendoo.queue.celery_app import celery_app
from lendoo.search.elasticsearch_client import (
    ensure_items_index_sync,
    index_item_sync,
    remove_item_sync,
)
from lendoo.services.catalog_service import CatalogService
from lendoo.services.loan_service import LoanService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def index_item_task(self, item_doc: dict):
    """Index item after create/update/availability change."""
    try:
        ensure_items_index_sync()
        index_item_sync(item_doc)
    except Exception as exc:
        raise self.retry(exc=exc, countdown=5)


@celery_app.task(bind=True, max_retries=3)
def remove_item_task(self, item_id: int):
    """Drop a soft-removed item from search."""
    try:
        remove_item_sync(item_id)
    except Exception as exc:
        raise self.retry(exc=exc, countdown=5)


async def _start_due_loans() -> int:
    async with async_session_maker() as session:
        catalog = CatalogService(ItemRepository(session), UserRepository(session))
        started = await LoanService(LoanRepository(session), catalog).start_due_loans()
        await session.commit()
    return started


@celery_app.task(bind=True, max_retries=3)
def start_due_loans_task(self):
    """Flip approved loans to active once their start date has come."""
    try:
        started = asyncio.run(_start_due_loans())
    except Exception as exc:
        raise self.retry(exc=exc, countdown=60)
    logger.info("start-date sweep activated %d loan(s)", started)
    return started
