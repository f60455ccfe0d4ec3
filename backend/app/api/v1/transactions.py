"""Transaction ledger API endpoints"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database import get_db
from app.schemas.transaction import TransactionCreate, TransactionResponse
from app.services.ledger import TransactionLedger

router = APIRouter()


@router.post("", response_model=TransactionResponse, status_code=201)
async def create_transaction(request: TransactionCreate, db: AsyncSession = Depends(get_db)):
    """Append a buy or sell; the coin's market stats move with it"""
    tx = await TransactionLedger(db).append(
        user_id=request.user_id,
        coin_id=request.coin_id,
        tx_type=request.type,
        amount=request.amount,
        sol_amount=request.sol_amount,
    )
    return TransactionResponse.model_validate(tx)
