#!/usr/bin/env python3
"""
Seed script: creates users, listings and a few loans directly in the database.
Goes through the catalog, cart and loan services so inventory counts stay consistent.
Prints a development JWT per user for trying the API (tokens are signed with SECRET_KEY).
  python scripts/seed_data.py
  python scripts/seed_data.py --users 20 --items-per-user 10 --loans 15
"""

import argparse
import asyncio
import random
import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from lendoo.core.exceptions import LendooError
from lendoo.core.logging import setup_logging
from lendoo.core.security import create_access_token
from lendoo.db.models import User
from lendoo.db.repositories import (
    CartRepository,
    ItemRepository,
    LoanRepository,
    UserRepository,
)
from lendoo.db.session import async_session_maker
from lendoo.schemas.item import ItemCreate
from lendoo.search.indexer import SearchIndexer
from lendoo.services.cart_service import CartService
from lendoo.services.catalog_service import CatalogService
from lendoo.services.loan_service import LoanService

# (name, category, daily price, deposit)
LISTINGS = [
    ("Cordless drill", "tools", "8.00", "40.00"),
    ("Pressure washer", "tools", "15.00", "80.00"),
    ("Ladder 3m", "tools", "5.00", "30.00"),
    ("Two person tent", "camping", "12.00", "60.00"),
    ("Camping stove", "camping", "4.50", "20.00"),
    ("Sleeping bag", "camping", "3.00", "15.00"),
    ("Projector", "electronics", "18.00", "150.00"),
    ("DSLR camera", "electronics", "25.00", "300.00"),
    ("Bluetooth speaker", "electronics", "6.00", "40.00"),
    ("Stand mixer", "kitchen", "7.00", "50.00"),
    ("Raclette grill", "kitchen", "5.00", "25.00"),
    ("Kayak", "outdoor", "30.00", "200.00"),
    ("Mountain bike", "outdoor", "20.00", "150.00"),
    ("Board game pack", "games", "2.00", "10.00"),
]

CITIES = ["Paris", "Lyon", "Marseille", "Lille", "Nantes", "Bordeaux"]


async def seed(users: int, items_per_user: int, loans: int, index: bool) -> list[User]:
    async with async_session_maker() as session:
        user_repo = UserRepository(session)
        catalog = CatalogService(
            ItemRepository(session),
            user_repo,
            indexer=SearchIndexer() if index else None,
        )
        loan_service = LoanService(LoanRepository(session), catalog)
        cart = CartService(CartRepository(session), ItemRepository(session), loan_service)

        created = []
        for i in range(users):
            email = f"user{i + 1}@example.com"
            user = await user_repo.get_by_email(email)
            if user is None:
                user = await user_repo.add(User(email=email, display_name=f"User {i + 1}"))
            created.append(user)

        items = []
        for user in created:
            for _ in range(items_per_user):
                name, category, price, deposit = random.choice(LISTINGS)
                item = await catalog.add_item(
                    user.id,
                    ItemCreate(
                        name=name,
                        description=f"{name} in good condition, pick up in town.",
                        daily_price=Decimal(price),
                        deposit_amount=Decimal(deposit),
                        category=category,
                        location=random.choice(CITIES),
                        quantity=random.choice([1, 1, 1, 2, 3]),
                    ),
                )
                items.append(item)

        submitted = 0
        for _ in range(loans):
            if len(created) < 2 or not items:
                break
            item = random.choice(items)
            borrower = random.choice([u for u in created if u.id != item.owner_id])
            try:
                await cart.add_to_cart(borrower.id, item.id, days=random.randint(1, 7))
                report = await cart.checkout_all(borrower.id)
            except LendooError as e:
                print(f"  skipped loan on item {item.id}: {e.message}")
                continue
            submitted += len(report.submitted)

        await session.commit()
        print(f"Users: {len(created)}, items listed: {len(items)}, loan requests: {submitted}")
        return created


def main():
    ap = argparse.ArgumentParser(description="Seed users, items and loans")
    ap.add_argument("--users", type=int, default=10, help="Number of users to create")
    ap.add_argument("--items-per-user", type=int, default=5, help="Items per user")
    ap.add_argument("--loans", type=int, default=10, help="Loan requests to submit")
    ap.add_argument("--no-index", action="store_true", help="Do not enqueue Elasticsearch indexing")
    args = ap.parse_args()

    setup_logging("WARNING")
    users = asyncio.run(seed(args.users, args.items_per_user, args.loans, not args.no_index))
    print("\nDevelopment tokens:")
    for user in users[:5]:
        print(f"  {user.email}: {create_access_token(user.id)}")
    print("\nTip: Run the Celery worker to index items in Elasticsearch, then use /api/v1/search/items.")


if __name__ == "__main__":
    main()
