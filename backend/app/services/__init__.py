"""metal.fun backend services"""
from .metal_client import MetalClient
from .coin_store import CoinStore
from .reconciliation import TokenReconciler
from .ledger import TransactionLedger
from .pricing import PriceModel, RandomWalkPriceModel, FixedStepPriceModel
from .replies import ReplyGraph, ReplyNode
from .users import UserDirectory
from .token_metadata import TokenMetadataStore

__all__ = [
    "MetalClient",
    "CoinStore",
    "TokenReconciler",
    "TransactionLedger",
    # Price models
    "PriceModel",
    "RandomWalkPriceModel",
    "FixedStepPriceModel",
    "ReplyGraph",
    "ReplyNode",
    "UserDirectory",
    "TokenMetadataStore",
]
