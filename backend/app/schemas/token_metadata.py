"""Token metadata schemas"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel


class TokenMetadataCreate(BaseModel):
    token_id: str
    description: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[List[str]] = None
    metal_address: Optional[str] = None
    merchant_address: Optional[str] = None
    additional_data: Optional[Dict[str, Any]] = None


class TokenMetadataUpdate(BaseModel):
    description: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[List[str]] = None
    metal_address: Optional[str] = None
    merchant_address: Optional[str] = None
    additional_data: Optional[Dict[str, Any]] = None


class TokenMetadataResponse(BaseModel):
    id: int
    token_id: str
    description: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[List[str]] = None
    metal_address: Optional[str] = None
    merchant_address: Optional[str] = None
    additional_data: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True
