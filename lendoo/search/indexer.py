"""
Search indexer - publishes item changes to the Celery queue.
The request path never waits on Elasticsearch; a broker outage only delays search freshness.
"""

import logging

from lendoo.db.models import Item

logger = logging.getLogger(__name__)


def item_to_doc(item: Item) -> dict:
    """Convert ORM model to the search document."""
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description or "",
        "category": item.category,
        "location": item.location,
        "daily_price": float(item.daily_price),
        "owner_id": item.owner_id,
        "available": bool(item.is_active and item.available_quantity > 0),
        "created_at": item.created_at.isoformat() if item.created_at else None,
    }


class SearchIndexer:
    """Enqueues index/remove tasks for items."""

    def item_changed(self, item: Item) -> None:
        from lendoo.queue.tasks import index_item_task

        try:
            index_item_task.delay(item_to_doc(item))
        except Exception as e:
            logger.warning("could not enqueue index for item %s: %s", item.id, e)

    def item_removed(self, item_id: int) -> None:
        from lendoo.queue.tasks import remove_item_task

        try:
            remove_item_task.delay(item_id)
        except Exception as e:
            logger.warning("could not enqueue removal for item %s: %s", item_id, e)
