"""Transaction models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from app.models.database import Base


class TransactionType:
    """Trade directions accepted by the ledger"""
    BUY = "buy"
    SELL = "sell"

    ALL = (BUY, SELL)


class Transaction(Base):
    """Immutable buy/sell ledger entry"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    coin_id = Column(Integer, ForeignKey("coins.id"), nullable=False, index=True)
    type = Column(String(8), nullable=False)  # buy, sell
    amount = Column(String(64), nullable=False)  # token units
    sol_amount = Column(String(64), nullable=False)  # settlement units
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Transaction {self.type} {self.amount} (coin_id={self.coin_id})>"
