"""Upstream pool API clients and normalizers."""

from .normalizer import (
    FALLBACK_VERIFIED_TOKENS,
    build_dexscreener_snapshot,
    build_snapshot,
    normalize_damm_v2,
    normalize_dexscreener,
    normalize_dlmm,
    normalize_raydium_clmm,
    parse_verified_tokens,
)
from .pool_api import PoolApiClient
from .transaction_stream import (
    TransactionStreamClient,
    parse_transaction,
    parse_transaction_message,
)

__all__ = [
    "FALLBACK_VERIFIED_TOKENS",
    "PoolApiClient",
    "TransactionStreamClient",
    "build_dexscreener_snapshot",
    "build_snapshot",
    "normalize_damm_v2",
    "normalize_dexscreener",
    "normalize_dlmm",
    "normalize_raydium_clmm",
    "parse_transaction",
    "parse_transaction_message",
    "parse_verified_tokens",
]
