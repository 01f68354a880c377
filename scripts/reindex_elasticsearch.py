#!/usr/bin/env python3
"""
Reindex every listed item from the database into Elasticsearch via Celery.
Use this after fixing the worker or when the index was lost; no data is created.
Requires: database reachable. Celery worker must be running to process the queue.

If Elasticsearch answers 503 / no_shard_available, delete the broken index and reindex:
  python scripts/reindex_elasticsearch.py --reset-index

  python scripts/reindex_elasticsearch.py
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from lendoo.db.models import Item
from lendoo.db.session import async_session_maker
from lendoo.queue.tasks import index_item_task, remove_item_task
from lendoo.search.elasticsearch_client import ITEMS_INDEX, _sync_es_client
from lendoo.search.indexer import item_to_doc


def delete_items_index():
    """Delete the items index; the first Celery task recreates it."""
    es = _sync_es_client()
    if es.indices.exists(index=ITEMS_INDEX):
        es.indices.delete(index=ITEMS_INDEX)
        print(f"Deleted index '{ITEMS_INDEX}'. Celery will recreate it when processing the first task.")
    else:
        print(f"Index '{ITEMS_INDEX}' does not exist (already deleted or never created).")


async def enqueue_all() -> tuple[int, int]:
    indexed = removed = 0
    async with async_session_maker() as session:
        result = await session.stream_scalars(select(Item).order_by(Item.id))
        async for item in result:
            if item.is_active:
                index_item_task.delay(item_to_doc(item))
                indexed += 1
            else:
                remove_item_task.delay(item.id)
                removed += 1
    return indexed, removed


def main():
    ap = argparse.ArgumentParser(description="Enqueue all items for Elasticsearch reindex")
    ap.add_argument("--reset-index", action="store_true", help="Delete the items index first, then enqueue")
    args = ap.parse_args()

    if args.reset_index:
        delete_items_index()
        print()

    indexed, removed = asyncio.run(enqueue_all())
    if not indexed and not removed:
        print("No items in DB. Run seed_data.py first.")
        return
    print(f"Enqueued {indexed} items for indexing and {removed} removed items for deletion.")
    print("Wait a few seconds, then: curl -s 'http://localhost:9200/items/_count?pretty'")


if __name__ == "__main__":
    main()
