"""Descriptive metadata for registry tokens"""
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.token_metadata import TokenMetadata
from app.services.errors import ValidationError

logger = structlog.get_logger()

UPDATABLE_FIELDS = {"description", "image", "tags", "metal_address", "merchant_address", "additional_data"}


class TokenMetadataStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, token_id: str) -> Optional[TokenMetadata]:
        result = await self.db.execute(select(TokenMetadata).where(TokenMetadata.token_id == token_id))
        return result.scalar_one_or_none()

    async def create(
        self,
        token_id: str,
        description: Optional[str] = None,
        image: Optional[str] = None,
        tags: Optional[List[str]] = None,
        metal_address: Optional[str] = None,
        merchant_address: Optional[str] = None,
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> TokenMetadata:
        if await self.get(token_id) is not None:
            raise ValidationError(
                f"Metadata for token {token_id} already exists",
                errors=[{"loc": ["token_id"], "msg": "already exists"}],
            )
        metadata = TokenMetadata(
            token_id=token_id,
            description=description,
            image=image,
            tags=tags,
            metal_address=metal_address,
            merchant_address=merchant_address,
            additional_data=additional_data,
        )
        self.db.add(metadata)
        await self.db.flush()
        logger.info("Saved token metadata", token_id=token_id)
        return metadata

    async def update(self, token_id: str, **updates: Any) -> Optional[TokenMetadata]:
        metadata = await self.get(token_id)
        if metadata is None:
            return None
        for key, value in updates.items():
            if key in UPDATABLE_FIELDS:
                setattr(metadata, key, value)
        await self.db.flush()
        return metadata
