# ORM models; importing this package registers every table on Base.metadata

from lendoo.db.models.user import User
from lendoo.db.models.item import Item
from lendoo.db.models.cart_entry import CartEntry
from lendoo.db.models.loan import Loan

__all__ = ["User", "Item", "CartEntry", "Loan"]
