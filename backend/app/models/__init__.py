"""Database models"""
from app.models.database import Base, get_db
from app.models.coin import Coin
from app.models.transaction import Transaction, TransactionType
from app.models.reply import Reply, ANONYMOUS_USER_ID
from app.models.user import User
from app.models.token_metadata import TokenMetadata

__all__ = [
    "Base",
    "get_db",
    "Coin",
    "Transaction",
    "TransactionType",
    "Reply",
    "ANONYMOUS_USER_ID",
    "User",
    "TokenMetadata",
]
