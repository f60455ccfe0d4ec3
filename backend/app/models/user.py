"""User models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON

from app.models.database import Base


class User(Base):
    """Site account with its social graph.

    Relationship sets (friends, likes, holdings) are stored as lists of
    string-encoded ids: they record membership, not ownership.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # scrypt hash "hex.salt"
    display_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    avatar = Column(Text, nullable=True)
    metal_address = Column(String(64), nullable=True)

    holding_ids = Column(JSON, nullable=False, default=list)
    friend_ids = Column(JSON, nullable=False, default=list)
    liked_coin_ids = Column(JSON, nullable=False, default=list)
    liked_reply_ids = Column(JSON, nullable=False, default=list)
    coin_ids = Column(JSON, nullable=False, default=list)

    # Phone verification
    phone_number = Column(String(32), nullable=True, index=True)
    phone_verified = Column(Boolean, nullable=False, default=False)
    phone_verification_code = Column(String(6), nullable=True)
    phone_verification_expiry = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User {self.username} (ID: {self.id})>"
