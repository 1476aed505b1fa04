"""Safety classifier - labels a pool from token verification and liquidity."""

from collections.abc import Container

from ..pools import Safety

# Pools where neither token is verified need at least this much TVL to avoid "danger"
UNVERIFIED_MIN_TVL = 10_000


def classify_safety(
    mint_x: str,
    mint_y: str,
    tvl: float,
    verified_tokens: Container[str],
    api_verified: bool | None = None,
    is_blacklisted: bool | None = None,
    unverified_min_tvl: float = UNVERIFIED_MIN_TVL,
) -> Safety:
    """
    Classify a pool as safe, warning or danger.

    Precedence: blacklist, then verification, then the TVL floor.

    Args:
        mint_x: First token mint
        mint_y: Second token mint
        tvl: Pool TVL in USD
        verified_tokens: Mints currently considered verified
        api_verified: Verified flag reported by the pool's own API
        is_blacklisted: Blacklist flag reported upstream
        unverified_min_tvl: TVL floor for pools with no verified token

    Returns:
        The safety label
    """
    if is_blacklisted:
        return "danger"

    x_verified = mint_x in verified_tokens
    y_verified = mint_y in verified_tokens

    if api_verified or (x_verified and y_verified):
        return "safe"

    if not x_verified and not y_verified and tvl < unverified_min_tvl:
        return "danger"

    return "warning"
