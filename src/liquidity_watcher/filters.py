"""Pool list filters and search used by the dashboard views."""

from dataclasses import dataclass
from typing import Literal

from .pools import Pool

PoolType = Literal["all", "dlmm", "damm", "raydium"]
SortKey = Literal["score", "tvl", "volume", "apr", "fees", "fees1h", "feeTvl1h", "feeTvl"]

POOL_TYPE_PROTOCOLS: dict[str, str] = {
    "dlmm": "Meteora DLMM",
    "damm": "Meteora DAMM v2",
    "raydium": "Raydium CLMM",
}

SORT_KEYS = {
    "score": lambda pool: pool.score,
    "tvl": lambda pool: pool.tvl,
    "volume": lambda pool: pool.volume,
    "apr": lambda pool: pool.apr_value,
    "fees": lambda pool: pool.fees,
    "fees1h": lambda pool: pool.fees_1h,
    "feeTvl1h": lambda pool: pool.fee_tvl_ratio_1h,
    "feeTvl": lambda pool: pool.fee_tvl_ratio,
}

SEARCH_LIMIT = 50


@dataclass
class FilterState:
    """User-selected filters for the pool list."""

    min_tvl: float = 0
    min_volume: float = 0
    safe_only: bool = False
    farm_only: bool = False
    pool_type: PoolType = "all"
    sort_by: SortKey = "score"
    search_query: str = ""


def apply_filters(pools: list[Pool], filters: FilterState, hide_danger: bool = True) -> list[Pool]:
    """
    Filter and sort pools for the main list.

    Pools without trading volume are always dropped. ``hide_danger`` removes
    pools classified as danger. Unknown sort keys fall back to score.
    """
    filtered = [pool for pool in pools if pool.volume > 0]

    if hide_danger:
        filtered = [pool for pool in filtered if pool.safety != "danger"]
    if filters.min_tvl > 0:
        filtered = [pool for pool in filtered if pool.tvl >= filters.min_tvl]
    if filters.min_volume > 0:
        filtered = [pool for pool in filtered if pool.volume >= filters.min_volume]
    if filters.safe_only:
        filtered = [pool for pool in filtered if pool.safety == "safe"]
    if filters.farm_only:
        filtered = [pool for pool in filtered if pool.farm_active]
    if filters.pool_type != "all":
        protocol = POOL_TYPE_PROTOCOLS.get(filters.pool_type)
        filtered = [pool for pool in filtered if pool.protocol == protocol]

    sort_key = SORT_KEYS.get(filters.sort_by, SORT_KEYS["score"])
    filtered.sort(key=sort_key, reverse=True)
    return filtered


def search_pools(pools: list[Pool], query: str, limit: int = SEARCH_LIMIT) -> list[Pool]:
    """Case-insensitive substring search over name, address and mints."""
    q = query.strip().lower()
    if not q:
        return []

    results = []
    for pool in pools:
        haystack = (pool.name, pool.address, pool.mint_x, pool.mint_y)
        if any(q in (field or "").lower() for field in haystack):
            results.append(pool)
            if len(results) >= limit:
                break
    return results
