"""Opportunity detector - filters and ranks safe pools worth acting on."""

import logging
from dataclasses import dataclass
from typing import Literal

from ..formatting import format_large_number, format_percent
from ..pools import Pool

logger = logging.getLogger(__name__)

OppType = Literal["hot", "active", "standard"]

OPP_TYPE_PRIORITY: dict[str, int] = {"hot": 0, "active": 1, "standard": 2}


@dataclass
class OpportunityConfig:
    """Configuration for the opportunity detector."""

    max_opportunities: int = 12
    hot_min_tvl: float = 5_000  # Fee-spike pools need at least this TVL
    active_fee_ratio: float = 0.001  # 1h fees / TVL for "active" pools
    volume_ratio_min: float = 0.3  # Volume / TVL to qualify
    volume_ratio_min_tvl: float = 20_000
    apr_min: float = 30
    apr_min_score: int = 65
    elite_score: int = 80
    farm_min_tvl: float = 10_000
    fee_tvl_ratio_min: float = 0.01
    high_volume_ratio: float = 0.5  # Volume / TVL for the "high volume" reason
    high_apr: float = 50  # APR for the "high APR" reason


@dataclass
class Opportunity:
    """A pool surfaced as an opportunity, with the reason it was picked."""

    pool: Pool
    reason: str
    opp_type: OppType

    @property
    def id(self) -> str:
        return self.pool.id


class OpportunityDetector:
    """
    Picks opportunities out of the current pool snapshot.

    A pool qualifies when it is safe and shows at least one signal:
    1. A fee spike (hot pool) with enough TVL
    2. Active fee generation in the last hour relative to TVL
    3. High volume relative to TVL
    4. Strong APR with a good score
    5. An elite score
    6. An active farm with enough TVL
    7. An efficient 24h fee/TVL ratio

    The first ``max_opportunities`` qualifying pools are kept in input order,
    explained, and grouped hot -> active -> standard.
    """

    def __init__(self, config: OpportunityConfig | None = None):
        self.config = config or OpportunityConfig()

    def detect(self, pools: list[Pool]) -> list[Opportunity]:
        """
        Build the opportunity list for a pool snapshot.

        Args:
            pools: The full current pool set, already scored

        Returns:
            Ordered opportunities, at most ``max_opportunities`` long
        """
        qualifying: list[Pool] = []
        for pool in pools:
            try:
                if self.qualifies(pool):
                    qualifying.append(pool)
            except (TypeError, ValueError, ZeroDivisionError, AttributeError) as e:
                logger.warning(f"Skipping malformed pool {getattr(pool, 'id', '?')}: {e}")

            if len(qualifying) >= self.config.max_opportunities:
                break

        opportunities: list[Opportunity] = []
        for pool in qualifying:
            try:
                reason, opp_type = self.explain(pool)
            except (TypeError, ValueError, ZeroDivisionError, AttributeError) as e:
                logger.warning(f"Skipping malformed pool {getattr(pool, 'id', '?')}: {e}")
                continue
            opportunities.append(Opportunity(pool=pool, reason=reason, opp_type=opp_type))

        # list.sort is stable, so pools of the same type keep their input order
        opportunities.sort(key=lambda opp: OPP_TYPE_PRIORITY[opp.opp_type])

        logger.debug(
            f"Detected {len(opportunities)} opportunities from {len(pools)} pools"
        )
        return opportunities

    def qualifies(self, pool: Pool) -> bool:
        """Check whether a pool passes any eligibility signal."""
        if pool.safety != "safe":
            return False

        cfg = self.config
        return (
            (pool.is_hot and pool.tvl > cfg.hot_min_tvl)
            or self._is_fee_active(pool)
            or (pool.volume_to_tvl > cfg.volume_ratio_min and pool.tvl > cfg.volume_ratio_min_tvl)
            or (pool.apr_value > cfg.apr_min and pool.score >= cfg.apr_min_score)
            or pool.score >= cfg.elite_score
            or (pool.farm_active and pool.tvl > cfg.farm_min_tvl)
            or pool.fee_tvl_ratio > cfg.fee_tvl_ratio_min
        )

    def explain(self, pool: Pool) -> tuple[str, OppType]:
        """Return the reason and type of the first matching explanation."""
        cfg = self.config

        if pool.is_hot:
            projected = pool.fees_1h * 24
            return (
                f"FEE SPIKE: 1h fees {format_large_number(pool.fees_1h)} -> "
                f"projected {format_large_number(projected)}/day",
                "hot",
            )

        if self._is_fee_active(pool):
            return (
                f"ACTIVE: {format_large_number(pool.fees_1h)} fees in last hour "
                f"({format_percent(pool.fees_1h / pool.tvl, 3)} of TVL)",
                "active",
            )

        if pool.farm_active:
            return (
                f"FARM: {pool.apr}% APR + farm rewards ({pool.farm_apr:.2f}% bonus)",
                "standard",
            )

        if pool.volume_to_tvl > cfg.high_volume_ratio:
            return (
                f"HIGH VOLUME: {format_percent(pool.volume_to_tvl, 0)} vol/TVL ratio",
                "standard",
            )

        if pool.apr_value > cfg.high_apr:
            return f"HIGH APR: {pool.apr}% with score {pool.score}", "standard"

        if pool.fee_tvl_ratio > cfg.fee_tvl_ratio_min:
            return (
                f"EFFICIENT: {format_percent(pool.fee_tvl_ratio)} fee/TVL ratio",
                "standard",
            )

        return f"TOP SCORER: {pool.score} points", "standard"

    def _is_fee_active(self, pool: Pool) -> bool:
        return (
            pool.fees_1h > 0
            and pool.tvl > 0
            and pool.fees_1h / pool.tvl > self.config.active_fee_ratio
        )
