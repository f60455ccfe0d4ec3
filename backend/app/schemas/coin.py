"""Coin schemas"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import AliasChoices, BaseModel, Field


class CoinCreate(BaseModel):
    """Request to create a locally simulated coin"""
    name: str = Field(..., min_length=1, max_length=100)
    symbol: str = Field(..., min_length=1, max_length=32)
    description: str = ""
    image: str = ""
    tags: List[str] = Field(default_factory=list)
    created_by: Optional[str] = None
    is_migrated: bool = False
    is_trending: bool = False


class CoinResponse(BaseModel):
    id: int
    name: str
    symbol: str
    description: str
    image: str
    tags: List[str]
    created_by: str
    market_cap: int
    holder_count: int
    previous_holder_count: int
    price: str
    price_change_24h: str
    volume_24h: str
    reply_count: int
    is_migrated: bool
    is_trending: bool
    is_withdrawn: bool
    withdrawn_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias=AliasChoices("token_metadata", "metadata"))
    is_pending: bool = False  # placeholder awaiting its creation job
    created_at: datetime
    last_updated: datetime

    class Config:
        from_attributes = True
