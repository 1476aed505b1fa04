import pytest

from liquidity_watcher.pools import Pool

SOL = "So11111111111111111111111111111111111111112"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


@pytest.fixture
def make_pool():
    """Build a safe pool that matches no opportunity signal unless overridden."""

    def _make(pool_id: str = "pool-1", **overrides) -> Pool:
        values = dict(
            id=pool_id,
            address=pool_id,
            name=f"{pool_id.upper()}/USDC",
            protocol="Meteora DLMM",
            mint_x=SOL,
            mint_y=USDC,
            tvl=1_000.0,
            volume=0.0,
            apr="0.00",
            fees=0.0,
            safety="safe",
            score=50,
        )
        values.update(overrides)
        return Pool(**values)

    return _make
