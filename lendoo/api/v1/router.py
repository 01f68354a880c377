"""
API v1 router - aggregates all endpoint modules.
"""

from fastapi import APIRouter

from lendoo.api.v1.endpoints import cart, health, items, loans, search, users

api_router = APIRouter(prefix="/v1")

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(items.router, prefix="/items", tags=["items"])
api_router.include_router(cart.router, prefix="/cart", tags=["cart"])
api_router.include_router(loans.router, prefix="/loans", tags=["loans"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
