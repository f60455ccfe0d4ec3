"""API v1 router aggregation"""
from fastapi import APIRouter

from app.api.v1 import auth, coins, transactions, replies, users, metal, token_metadata

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(coins.router, prefix="/coins", tags=["Coins"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])
api_router.include_router(replies.router, prefix="/replies", tags=["Replies"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(users.phone_router, prefix="/phone-verification", tags=["Users"])
api_router.include_router(metal.router, prefix="/metal", tags=["Metal"])
api_router.include_router(token_metadata.router, prefix="/token-metadata", tags=["Token Metadata"])
