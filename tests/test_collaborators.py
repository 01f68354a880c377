"""
Collaborator tests - blob storage client over a mock transport, search documents.
"""

from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest

from lendoo.core.exceptions import TransientError, ValidationError
from lendoo.db.models import Item
from lendoo.search.indexer import item_to_doc
from lendoo.storage.blob_client import BlobStorage


def _storage(handler) -> BlobStorage:
    return BlobStorage(
        base_url="https://blobs.test/",
        bucket="item-images",
        api_key="service-key",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_upload_returns_public_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["type"] = request.headers["Content-Type"]
        seen["body"] = request.content
        return httpx.Response(200, json={"Key": "item-images/x"})

    url = await _storage(handler).upload(b"png-bytes", "image/png")

    assert seen["path"].startswith("/storage/v1/object/item-images/item_")
    assert seen["path"].endswith(".png")
    assert seen["auth"] == "Bearer service-key"
    assert seen["type"] == "image/png"
    assert seen["body"] == b"png-bytes"
    name = seen["path"].rsplit("/", 1)[1]
    assert url == f"https://blobs.test/storage/v1/object/public/item-images/{name}"


@pytest.mark.asyncio
async def test_upload_server_error_is_transient():
    storage = _storage(lambda request: httpx.Response(503))
    with pytest.raises(TransientError):
        await storage.upload(b"jpeg", "image/jpeg")


@pytest.mark.asyncio
async def test_upload_connection_error_is_transient():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransientError):
        await _storage(handler).upload(b"jpeg", "image/jpeg")


@pytest.mark.asyncio
async def test_upload_rejections_are_validation_errors():
    storage = _storage(lambda request: httpx.Response(400, text="bad object"))
    with pytest.raises(ValidationError):
        await storage.upload(b"jpeg", "image/jpeg")
    with pytest.raises(ValidationError):
        await storage.upload(b"gif", "image/gif")
    with pytest.raises(ValidationError):
        await storage.upload(b"", "image/jpeg")


def test_search_document():
    item = Item(
        id=7,
        owner_id=3,
        name="Kayak",
        description="Sit-on-top kayak",
        daily_price=Decimal("30.00"),
        deposit_amount=Decimal("200.00"),
        category="outdoor",
        location="Nantes",
        total_quantity=2,
        available_quantity=0,
        is_active=True,
        created_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
    )
    doc = item_to_doc(item)
    assert doc == {
        "id": 7,
        "name": "Kayak",
        "description": "Sit-on-top kayak",
        "category": "outdoor",
        "location": "Nantes",
        "daily_price": 30.0,
        "owner_id": 3,
        "available": False,
        "created_at": "2026-10-01T00:00:00+00:00",
    }
