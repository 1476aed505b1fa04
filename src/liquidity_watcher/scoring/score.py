"""Score engine - combines liquidity, activity, yield and safety into one number."""

import math
from dataclasses import dataclass

from ..pools import Safety, to_float


@dataclass
class ScoringConfig:
    """Bounds of the pool score and the safety TVL floor."""

    min_score: int = 10
    max_score: int = 99
    base_score: int = 50
    unverified_min_tvl: float = 10_000


# (threshold, bonus) pairs, highest tier first; only the first match applies
TVL_TIERS = ((500_000, 20), (100_000, 15), (10_000, 10))
VOLUME_TIERS = ((100_000, 15), (10_000, 10), (1_000, 5))
APR_TIERS = ((100, 10), (50, 7), (20, 4))

SAFETY_ADJUSTMENT = {"safe": 5, "warning": 0, "danger": -15}

FARM_BONUS = 3
FARM_ACTIVE_BONUS = 5
LOCKED_LIQUIDITY_BONUS = 3
API_VERIFIED_BONUS = 3


def _tier_bonus(value: float, tiers, inclusive: bool) -> int:
    for threshold, bonus in tiers:
        if value >= threshold if inclusive else value > threshold:
            return bonus
    return 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_score(
    tvl: float,
    volume: float,
    apr: float,
    safety: Safety,
    has_farm: bool = False,
    farm_active: bool = False,
    permanent_lock_liquidity: float = 0.0,
    api_verified: bool = False,
    config: ScoringConfig | None = None,
) -> int:
    """
    Score a pool between ``min_score`` and ``max_score``.

    TVL and volume tiers are inclusive (>=), APR tiers are strict (>).
    Non-numeric inputs count as zero.
    """
    config = config or ScoringConfig()

    score = config.base_score
    score += _tier_bonus(to_float(tvl), TVL_TIERS, inclusive=True)
    score += _tier_bonus(to_float(volume), VOLUME_TIERS, inclusive=True)
    score += _tier_bonus(to_float(apr), APR_TIERS, inclusive=False)
    score += SAFETY_ADJUSTMENT.get(safety, 0)

    if has_farm:
        score += FARM_BONUS
    if farm_active:
        score += FARM_ACTIVE_BONUS
    if to_float(permanent_lock_liquidity) > 0:
        score += LOCKED_LIQUIDITY_BONUS
    if api_verified:
        score += API_VERIFIED_BONUS

    return min(config.max_score, max(config.min_score, _round_half_up(score)))
