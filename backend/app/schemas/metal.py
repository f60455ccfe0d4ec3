"""Metal registry proxy schemas"""
from typing import Dict, Any, List
from pydantic import BaseModel, Field


class CreateTokenRequest(BaseModel):
    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1, max_length=32)
    merchant_address: str = Field(..., min_length=1)
    can_distribute: bool = True
    can_lp: bool = True


class CreateLiquidityRequest(BaseModel):
    token_address: str = Field(..., min_length=1)


class DistributeRequest(BaseModel):
    token_address: str = Field(..., min_length=1)
    send_to: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)


class SyncStats(BaseModel):
    found: int
    created: int
    updated: int
    skipped: int
    errors: int


class MetalTokensResponse(BaseModel):
    """Registry listing, with completed tokens enriched by their details"""
    tokens: List[Dict[str, Any]] = Field(default_factory=list)
    stats: SyncStats

    class Config:
        extra = "allow"  # pass through any other registry listing fields
