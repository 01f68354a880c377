"""
FastAPI dependencies - injection for DB, auth, clock and collaborators.
Every service is built per request from these, so tests override one function to swap a collaborator.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lendoo.cache.redis_client import ItemCache
from lendoo.core.clock import Clock, utcnow
from lendoo.core.security import decode_access_token
from lendoo.db.repositories import (
    CartRepository,
    ItemRepository,
    LoanRepository,
    UserRepository,
)
from lendoo.db.session import DbSession
from lendoo.search.indexer import SearchIndexer
from lendoo.services.cart_service import CartService
from lendoo.services.catalog_service import CatalogService
from lendoo.services.loan_service import LoanService
from lendoo.services.reconciliation_service import ReconciliationService
from lendoo.storage.blob_client import BlobStorage

security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    session: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> int:
    """Resolve JWT to user id. Raises 401 if missing or invalid."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from None
    repo = UserRepository(session)
    user = await repo.get_by_id(user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user.id


CurrentUserId = Annotated[int, Depends(get_current_user_id)]


def get_clock() -> Clock:
    return utcnow


def get_item_cache() -> ItemCache | None:
    return ItemCache()


def get_search_indexer() -> SearchIndexer | None:
    return SearchIndexer()


def get_blob_storage() -> BlobStorage | None:
    return BlobStorage()


def get_catalog_service(
    session: DbSession,
    cache: Annotated[ItemCache | None, Depends(get_item_cache)],
    indexer: Annotated[SearchIndexer | None, Depends(get_search_indexer)],
    storage: Annotated[BlobStorage | None, Depends(get_blob_storage)],
) -> CatalogService:
    return CatalogService(
        ItemRepository(session),
        UserRepository(session),
        storage=storage,
        cache=cache,
        indexer=indexer,
    )


def get_loan_service(
    session: DbSession,
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> LoanService:
    return LoanService(LoanRepository(session), catalog, clock=clock)


def get_cart_service(
    session: DbSession,
    loans: Annotated[LoanService, Depends(get_loan_service)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> CartService:
    return CartService(CartRepository(session), ItemRepository(session), loans, clock=clock)


def get_reconciliation_service(
    session: DbSession,
    clock: Annotated[Clock, Depends(get_clock)],
) -> ReconciliationService:
    return ReconciliationService(LoanRepository(session), clock=clock)


Catalog = Annotated[CatalogService, Depends(get_catalog_service)]
Loans = Annotated[LoanService, Depends(get_loan_service)]
Cart = Annotated[CartService, Depends(get_cart_service)]
Reconciliation = Annotated[ReconciliationService, Depends(get_reconciliation_service)]
