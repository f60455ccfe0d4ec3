"""Token metadata API endpoints"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database import get_db
from app.schemas.token_metadata import TokenMetadataCreate, TokenMetadataUpdate, TokenMetadataResponse
from app.services.token_metadata import TokenMetadataStore

router = APIRouter()


@router.get("/{token_id}", response_model=TokenMetadataResponse)
async def get_token_metadata(token_id: str, db: AsyncSession = Depends(get_db)):
    metadata = await TokenMetadataStore(db).get(token_id)
    if not metadata:
        raise HTTPException(status_code=404, detail="Token metadata not found")
    return TokenMetadataResponse.model_validate(metadata)


@router.post("", response_model=TokenMetadataResponse, status_code=201)
async def create_token_metadata(request: TokenMetadataCreate, db: AsyncSession = Depends(get_db)):
    metadata = await TokenMetadataStore(db).create(**request.model_dump())
    return TokenMetadataResponse.model_validate(metadata)


@router.patch("/{token_id}", response_model=TokenMetadataResponse)
async def update_token_metadata(
    token_id: str,
    request: TokenMetadataUpdate,
    db: AsyncSession = Depends(get_db),
):
    metadata = await TokenMetadataStore(db).update(token_id, **request.model_dump(exclude_unset=True))
    if not metadata:
        raise HTTPException(status_code=404, detail="Token metadata not found")
    return TokenMetadataResponse.model_validate(metadata)
