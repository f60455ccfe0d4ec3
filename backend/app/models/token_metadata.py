"""Token metadata models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON

from app.models.database import Base


class TokenMetadata(Base):
    """Descriptive data the registry does not store, keyed by registry token id"""
    __tablename__ = "token_metadata"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_id = Column(String(64), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)
    metal_address = Column(String(64), nullable=True)
    merchant_address = Column(String(64), nullable=True)
    additional_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<TokenMetadata {self.token_id}>"
