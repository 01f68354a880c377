# Repository pattern: all queries and conditional writes live here

from lendoo.db.repositories.cart_repository import CartRepository
from lendoo.db.repositories.item_repository import ItemRepository
from lendoo.db.repositories.loan_repository import LoanRepository
from lendoo.db.repositories.user_repository import UserRepository

__all__ = ["UserRepository", "ItemRepository", "CartRepository", "LoanRepository"]
