"""
Cart endpoints - staging loan requests and submitting them.
Mutations answer with the whole cart so clients re-render totals from one response.
"""

from fastapi import APIRouter

from lendoo.core.dependencies import Cart, CurrentUserId
from lendoo.schemas.cart import CartAdd, CartDurationUpdate, CartResponse, CheckoutReport

router = APIRouter()


@router.get("", response_model=CartResponse)
async def get_cart(cart: Cart, user_id: CurrentUserId):
    return await cart.list_cart(user_id)


@router.post("", response_model=CartResponse)
async def add_to_cart(cart: Cart, data: CartAdd, user_id: CurrentUserId):
    await cart.add_to_cart(user_id, data.item_id, data.days)
    return await cart.list_cart(user_id)


@router.patch("/{entry_id}", response_model=CartResponse)
async def update_duration(cart: Cart, entry_id: int, data: CartDurationUpdate, user_id: CurrentUserId):
    """Change rental length; fewer than one day removes the entry."""
    await cart.update_duration(user_id, entry_id, data.days)
    return await cart.list_cart(user_id)


@router.delete("/{entry_id}", response_model=CartResponse)
async def remove_from_cart(cart: Cart, entry_id: int, user_id: CurrentUserId):
    await cart.remove_from_cart(user_id, entry_id)
    return await cart.list_cart(user_id)


@router.post("/checkout", response_model=CheckoutReport)
async def checkout(cart: Cart, user_id: CurrentUserId):
    """Submit every entry as a loan request. Always 200; failures are listed per entry."""
    return await cart.checkout_all(user_id)
