"""Reply models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey

from app.models.database import Base


ANONYMOUS_USER_ID = "anonymous"


class Reply(Base):
    """Comment on a coin. Threading is a flat parent reference."""
    __tablename__ = "replies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coin_id = Column(Integer, ForeignKey("coins.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    username = Column(String(100), nullable=True)
    user_avatar = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    parent_id = Column(Integer, nullable=True, index=True)
    like_count = Column(Integer, nullable=False, default=0)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Reply {self.id} (coin_id={self.coin_id}, parent_id={self.parent_id})>"
