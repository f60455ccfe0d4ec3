"""Coin models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, BigInteger, Boolean, DateTime, JSON

from app.models.database import Base


DEFAULT_PRICE = "0.001"


class Coin(Base):
    """A token listed on the site, either issued by the Metal registry or simulated locally"""
    __tablename__ = "coins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String(32), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    image = Column(Text, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    created_by = Column(String(100), nullable=False, default="Unknown")

    # Market stats
    market_cap = Column(BigInteger, nullable=False, default=0)
    holder_count = Column(Integer, nullable=False, default=0)
    previous_holder_count = Column(Integer, nullable=False, default=0)  # snapshot for growth
    price = Column(String(32), nullable=False, default=DEFAULT_PRICE)
    price_change_24h = Column(String(32), nullable=False, default="0")
    volume_24h = Column(String(32), nullable=False, default="0")
    reply_count = Column(Integer, nullable=False, default=0)

    # Lifecycle flags
    is_migrated = Column(Boolean, nullable=False, default=False)
    is_trending = Column(Boolean, nullable=False, default=False)
    is_withdrawn = Column(Boolean, nullable=False, default=False)
    withdrawn_at = Column(DateTime, nullable=True)

    # Registry linkage. The JSON bag is what clients see; the two columns mirror
    # its address/jobId keys so they can be constrained and indexed.
    token_metadata = Column("metadata", JSON, nullable=True)
    registry_address = Column(String(64), unique=True, nullable=True)
    job_id = Column(String(64), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_updated = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def holder_growth(self) -> int:
        return (self.holder_count or 0) - (self.previous_holder_count or 0)

    @property
    def is_pending(self) -> bool:
        return bool((self.token_metadata or {}).get("pendingTokenCreation"))

    def __repr__(self):
        return f"<Coin {self.symbol} (ID: {self.id})>"
