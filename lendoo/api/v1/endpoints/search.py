"""
Search endpoint - Elasticsearch full-text search over listed items.
Returns no hits rather than failing when ES is down.
"""

from fastapi import APIRouter, Query

from lendoo.config import get_settings
from lendoo.search.elasticsearch_client import search_items

router = APIRouter()
settings = get_settings()


@router.get("/items")
async def search_items_endpoint(
    q: str = Query(..., min_length=1),
    category: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    hits = await search_items(query=q, category=category, skip=skip, limit=limit)
    return {"query": q, "results": hits, "count": len(hits)}
