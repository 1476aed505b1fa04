"""Pool snapshot records shared by the scoring, detection and alerting layers."""

import math
from dataclasses import dataclass, field
from typing import Literal

Safety = Literal["safe", "warning", "danger"]
PoolProtocol = Literal["Meteora DLMM", "Meteora DAMM v2", "Raydium CLMM"]
TxType = Literal["add", "remove", "swap"]

SAFETY_LEVELS: tuple[str, ...] = ("safe", "warning", "danger")


def to_float(value, default: float = 0.0) -> float:
    """Coerce an upstream value to a finite float, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def parse_apr(apr: str | float | None) -> float:
    """Parse the textual APR carried on a pool."""
    return to_float(apr)


@dataclass
class Pool:
    """
    A normalized liquidity pool as of one refresh.

    Every optional metric has a concrete default, so consumers never need to
    check whether a field was present upstream.
    """

    id: str
    address: str
    name: str
    protocol: PoolProtocol
    mint_x: str
    mint_y: str
    tvl: float
    volume: float
    apr: str  # Two-decimal text, e.g. "42.50"
    fees: float
    safety: Safety
    score: int
    fee_bps: float = 0.0
    current_price: float = 1.0
    fees_1h: float = 0.0
    fees_24h: float = 0.0
    fee_tvl_ratio: float = 0.0
    fee_tvl_ratio_1h: float = 0.0
    has_farm: bool = False
    farm_active: bool = False
    farm_apr: float = 0.0
    is_verified: bool = False
    is_blacklisted: bool = False
    permanent_lock_liquidity: float = 0.0
    is_hot: bool = False
    tags: list[str] = field(default_factory=list)

    @property
    def apr_value(self) -> float:
        """APR as a number; malformed text reads as 0."""
        return parse_apr(self.apr)

    @property
    def volume_to_tvl(self) -> float:
        if self.tvl <= 0:
            return 0.0
        return self.volume / self.tvl


@dataclass
class PoolTransaction:
    """A recent liquidity or swap transaction seen on a pool."""

    signature: str
    type: TxType
    amount: str
    timestamp: int  # epoch milliseconds


def is_hot_pool(fees_1h: float, fees_24h: float) -> bool:
    """A pool is hot when the last hour's fee pace beats 1.5x the daily fees."""
    if fees_1h <= 0 or fees_24h <= 0:
        return False
    return fees_1h * 24 > fees_24h * 1.5
