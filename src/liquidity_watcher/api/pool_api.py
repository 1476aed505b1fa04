"""Client for the upstream pool and token-list APIs."""

import asyncio
import logging

import httpx

from ..config import ApiConfig
from ..pools import Pool
from ..scoring import ScoringConfig
from .normalizer import build_dexscreener_snapshot, build_snapshot, parse_verified_tokens

logger = logging.getLogger(__name__)


class PoolApiClient:
    """
    Fetches raw pool lists from Meteora, Raydium and DexScreener.

    Every fetch logs and returns an empty result on failure, so one broken
    source never takes down a refresh. There is no retry; the next refresh
    cycle simply tries again.
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        scoring: ScoringConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config or ApiConfig()
        self.scoring = scoring or ScoringConfig()
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout_seconds)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def _get_json(self, source: str, url: str, params: dict | None = None):
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"{source} returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"{source} request failed: {e}")
        except ValueError as e:
            logger.warning(f"{source} returned invalid JSON: {e}")
        return None

    async def fetch_dlmm(self) -> list[dict]:
        """Fetch all DLMM pairs."""
        data = await self._get_json("DLMM", self.config.dlmm_url)
        return data if isinstance(data, list) else []

    async def fetch_damm_v2(self) -> list[dict]:
        """Fetch DAMM v2 pools ordered by TVL."""
        data = await self._get_json(
            "DAMM v2",
            self.config.damm_v2_url,
            params={"limit": self.config.pool_limit, "order_by": "tvl", "order": "desc"},
        )
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            return data["data"]
        return []

    async def fetch_raydium_clmm(self) -> list[dict]:
        """Fetch Raydium concentrated-liquidity pools ordered by volume."""
        data = await self._get_json("Raydium CLMM", self.config.raydium_clmm_url)
        if isinstance(data, dict):
            inner = data.get("data")
            if isinstance(inner, dict) and isinstance(inner.get("data"), list):
                return inner["data"]
        return []

    async def fetch_dexscreener(self) -> list[dict]:
        """Fetch DexScreener pairs for the fallback snapshot."""
        data = await self._get_json("DexScreener", self.config.dexscreener_url)
        if isinstance(data, dict) and isinstance(data.get("pairs"), list):
            return data["pairs"]
        return []

    async def fetch_verified_tokens(self) -> set[str]:
        """Fetch verified mints, falling back to well-known mints."""
        data = await self._get_json("Jupiter tokens", self.config.jupiter_tokens_url)
        return parse_verified_tokens(data)

    async def fetch_snapshot(self) -> tuple[list[Pool], set[str]]:
        """
        Fetch and normalize one full pool snapshot.

        Returns:
            (pools, verified_tokens) tuple; pools may be empty if every
            source failed
        """
        verified_tokens = await self.fetch_verified_tokens()

        dlmm, damm_v2, raydium = await asyncio.gather(
            self.fetch_dlmm(),
            self.fetch_damm_v2(),
            self.fetch_raydium_clmm(),
        )

        pools = build_snapshot(
            dlmm,
            damm_v2,
            raydium,
            verified_tokens,
            config=self.scoring,
            pool_limit=self.config.pool_limit,
        )

        if not pools:
            logger.warning("All primary sources empty, falling back to DexScreener")
            pairs = await self.fetch_dexscreener()
            pools = build_dexscreener_snapshot(pairs, verified_tokens, config=self.scoring)

        if not pools:
            logger.error("No pools from any source")

        return pools, verified_tokens
