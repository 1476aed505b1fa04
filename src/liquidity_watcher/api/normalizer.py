"""Normalizers - map raw upstream pool payloads onto Pool records."""

import logging
from collections.abc import Callable, Container, Iterable

from ..pools import Pool, is_hot_pool, to_float
from ..scoring import ScoringConfig, calculate_score, classify_safety

logger = logging.getLogger(__name__)

# Well-known verified mints used when the token list is unavailable
FALLBACK_VERIFIED_TOKENS = frozenset(
    {
        "So11111111111111111111111111111111111111112",  # SOL
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",  # USDC
        "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",  # USDT
        "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",  # JUP
        "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",  # BONK
    }
)

MIN_POOL_TVL = 100
DEXSCREENER_LIMIT = 150
DEXSCREENER_FEE_RATE = 0.003
DEFAULT_RAYDIUM_FEE_BPS = 0.25


def _nested(raw: dict, key: str, inner: str):
    value = raw.get(key)
    if isinstance(value, dict):
        return value.get(inner)
    return None


def _score_and_safety(
    mint_x: str,
    mint_y: str,
    tvl: float,
    volume: float,
    apr: float,
    verified_tokens: Container[str],
    config: ScoringConfig,
    api_verified: bool = False,
    is_blacklisted: bool = False,
    has_farm: bool = False,
    farm_active: bool = False,
    permanent_lock_liquidity: float = 0.0,
):
    safety = classify_safety(
        mint_x,
        mint_y,
        tvl,
        verified_tokens,
        api_verified=api_verified,
        is_blacklisted=is_blacklisted,
        unverified_min_tvl=config.unverified_min_tvl,
    )
    score = calculate_score(
        tvl,
        volume,
        apr,
        safety,
        has_farm=has_farm,
        farm_active=farm_active,
        permanent_lock_liquidity=permanent_lock_liquidity,
        api_verified=api_verified,
        config=config,
    )
    return safety, score


def normalize_dlmm(
    raw: dict,
    verified_tokens: Container[str],
    config: ScoringConfig | None = None,
) -> Pool:
    """Normalize a Meteora DLMM pair."""
    config = config or ScoringConfig()

    tvl = to_float(raw.get("liquidity"))
    volume = to_float(raw.get("trade_volume_24h"))
    apr = to_float(raw.get("apr"))
    fees = to_float(raw.get("fees_24h"))
    mint_x = raw.get("mint_x") or ""
    mint_y = raw.get("mint_y") or ""

    api_verified = raw.get("is_verified") is True
    is_blacklisted = bool(raw.get("is_blacklisted"))

    farm_apr = to_float(raw.get("farm_apr"))
    farm_apy = to_float(raw.get("farm_apy"))
    has_farm = (
        farm_apr > 0
        or farm_apy > 0
        or bool(raw.get("reward_mint_x"))
        or bool(raw.get("reward_mint_y"))
    )
    farm_active = farm_apr > 0

    fees_1h = to_float(_nested(raw, "fees", "hour_1"))

    safety, score = _score_and_safety(
        mint_x,
        mint_y,
        tvl,
        volume,
        apr,
        verified_tokens,
        config,
        api_verified=api_verified,
        is_blacklisted=is_blacklisted,
        has_farm=has_farm,
        farm_active=farm_active,
    )

    address = raw["address"]
    return Pool(
        id=address,
        address=address,
        name=raw.get("name") or "Unknown",
        protocol="Meteora DLMM",
        mint_x=mint_x,
        mint_y=mint_y,
        tvl=tvl,
        volume=volume,
        apr=f"{apr:.2f}",
        fees=fees,
        safety=safety,
        score=score,
        fee_bps=to_float(raw.get("base_fee_percentage")),
        current_price=to_float(raw.get("current_price"), default=1.0) or 1.0,
        fees_1h=fees_1h,
        fees_24h=fees,
        fee_tvl_ratio=to_float(_nested(raw, "fee_tvl_ratio", "hour_24")),
        fee_tvl_ratio_1h=to_float(_nested(raw, "fee_tvl_ratio", "hour_1")),
        has_farm=has_farm,
        farm_active=farm_active,
        farm_apr=farm_apr,
        is_verified=api_verified,
        is_blacklisted=is_blacklisted,
        is_hot=is_hot_pool(fees_1h, fees),
        tags=list(raw.get("tags") or []),
    )


def normalize_damm_v2(
    raw: dict,
    verified_tokens: Container[str],
    config: ScoringConfig | None = None,
) -> Pool:
    """Normalize a Meteora DAMM v2 pool."""
    config = config or ScoringConfig()

    tvl = to_float(raw.get("tvl"))
    volume = to_float(raw.get("volume24h"))
    apr = to_float(raw.get("apr"))
    fees = to_float(raw.get("fee24h"))
    mint_x = raw.get("token_a_mint") or ""
    mint_y = raw.get("token_b_mint") or ""

    api_verified = bool(raw.get("tokens_verified"))
    has_farm = bool(raw.get("has_farm"))
    farm_active = bool(raw.get("farm_active"))
    locked = to_float(raw.get("permanent_lock_liquidity"))

    safety, score = _score_and_safety(
        mint_x,
        mint_y,
        tvl,
        volume,
        apr,
        verified_tokens,
        config,
        api_verified=api_verified,
        has_farm=has_farm,
        farm_active=farm_active,
        permanent_lock_liquidity=locked,
    )

    address = raw["pool_address"]
    name = raw.get("pool_name") or (
        f"{raw.get('token_a_symbol') or '?'}/{raw.get('token_b_symbol') or '?'}"
    )
    return Pool(
        id=address,
        address=address,
        name=name,
        protocol="Meteora DAMM v2",
        mint_x=mint_x,
        mint_y=mint_y,
        tvl=tvl,
        volume=volume,
        apr=f"{apr:.2f}",
        fees=fees,
        safety=safety,
        score=score,
        fee_bps=to_float(raw.get("base_fee")),
        current_price=to_float(raw.get("pool_price"), default=1.0) or 1.0,
        fees_24h=fees,
        fee_tvl_ratio=to_float(raw.get("fee_tvl_ratio")),
        has_farm=has_farm,
        farm_active=farm_active,
        is_verified=api_verified,
        permanent_lock_liquidity=locked,
    )


def normalize_raydium_clmm(
    raw: dict,
    verified_tokens: Container[str],
    config: ScoringConfig | None = None,
) -> Pool:
    """Normalize a Raydium concentrated-liquidity pool."""
    config = config or ScoringConfig()

    tvl = to_float(raw.get("tvl"))
    volume = to_float(_nested(raw, "day", "volume"))
    fees = to_float(_nested(raw, "day", "volumeFee"))
    apr = to_float(_nested(raw, "day", "apr"))
    if not apr and tvl > 0:
        apr = fees / tvl * 365 * 100

    mint_a = raw.get("mintA") or {}
    mint_b = raw.get("mintB") or {}
    mint_x = mint_a.get("address") or ""
    mint_y = mint_b.get("address") or ""

    farm_count = int(to_float(raw.get("farmCount")))

    safety, score = _score_and_safety(mint_x, mint_y, tvl, volume, apr, verified_tokens, config)

    address = raw["id"]
    return Pool(
        id=address,
        address=address,
        name=f"{mint_a.get('symbol') or '?'}/{mint_b.get('symbol') or '?'}",
        protocol="Raydium CLMM",
        mint_x=mint_x,
        mint_y=mint_y,
        tvl=tvl,
        volume=volume,
        apr=f"{apr:.2f}",
        fees=fees,
        safety=safety,
        score=score,
        fee_bps=to_float(raw.get("feeRate"), default=DEFAULT_RAYDIUM_FEE_BPS) or DEFAULT_RAYDIUM_FEE_BPS,
        current_price=to_float(raw.get("price"), default=1.0) or 1.0,
        fees_24h=fees,
        fee_tvl_ratio=fees / tvl if tvl > 0 else 0.0,
        has_farm=farm_count > 0,
        farm_active=farm_count > 0,
    )


def normalize_dexscreener(
    raw: dict,
    verified_tokens: Container[str],
    config: ScoringConfig | None = None,
) -> Pool:
    """Normalize a DexScreener pair. APR and fees are estimated from volume."""
    config = config or ScoringConfig()

    tvl = to_float(_nested(raw, "liquidity", "usd"))
    volume = to_float(_nested(raw, "volume", "h24"))
    fees = volume * DEXSCREENER_FEE_RATE
    apr = volume / tvl * 365 * DEXSCREENER_FEE_RATE * 100 if tvl > 0 else 0.0

    base = raw.get("baseToken") or {}
    quote = raw.get("quoteToken") or {}
    mint_x = base.get("address") or ""
    mint_y = quote.get("address") or ""

    labels = raw.get("labels") or []
    if "CLMM" in labels:
        protocol = "Raydium CLMM"
    elif "v2" in labels or "DAMM" in labels:
        protocol = "Meteora DAMM v2"
    else:
        protocol = "Meteora DLMM"

    safety, score = _score_and_safety(mint_x, mint_y, tvl, volume, apr, verified_tokens, config)

    address = raw["pairAddress"]
    return Pool(
        id=address,
        address=address,
        name=f"{base.get('symbol') or '?'}/{quote.get('symbol') or '?'}",
        protocol=protocol,
        mint_x=mint_x,
        mint_y=mint_y,
        tvl=tvl,
        volume=volume,
        apr=f"{apr:.2f}",
        fees=fees,
        safety=safety,
        score=score,
        fee_bps=0.3,
        current_price=to_float(raw.get("priceUsd"), default=1.0) or 1.0,
        fees_24h=fees,
        fee_tvl_ratio=fees / tvl if tvl > 0 else 0.0,
    )


def _keep_dlmm(raw: dict) -> bool:
    return (
        bool(raw.get("name"))
        and bool(raw.get("address"))
        and not raw.get("hide")
        and not raw.get("is_blacklisted")
        and to_float(raw.get("liquidity")) > MIN_POOL_TVL
    )


def _keep_damm_v2(raw: dict) -> bool:
    return bool(raw.get("pool_address")) and to_float(raw.get("tvl")) > MIN_POOL_TVL


def _keep_raydium(raw: dict) -> bool:
    return bool(raw.get("id")) and to_float(raw.get("tvl")) > MIN_POOL_TVL


def _keep_dexscreener(raw: dict) -> bool:
    return (
        raw.get("dexId") == "meteora"
        and to_float(_nested(raw, "liquidity", "usd")) > MIN_POOL_TVL
    )


def _normalize_source(
    source: str,
    records: list | None,
    keep: Callable[[dict], bool],
    normalize: Callable[..., Pool],
    verified_tokens: Container[str],
    config: ScoringConfig,
    limit: int,
) -> list[Pool]:
    pools: list[Pool] = []
    skipped = 0

    for raw in records or []:
        if len(pools) >= limit:
            break
        try:
            if not keep(raw):
                continue
            pools.append(normalize(raw, verified_tokens, config))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            skipped += 1
            logger.debug(f"Skipping malformed {source} record: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} malformed {source} records")
    return pools


def build_snapshot(
    dlmm: list | None,
    damm_v2: list | None,
    raydium: list | None,
    verified_tokens: Container[str],
    config: ScoringConfig | None = None,
    pool_limit: int = 500,
) -> list[Pool]:
    """
    Merge the primary sources into one snapshot.

    Sources are taken in order DLMM, DAMM v2, Raydium CLMM; each is filtered
    and capped at ``pool_limit`` before merging, and the first pool seen for
    an address wins.
    """
    config = config or ScoringConfig()

    sources = (
        ("DLMM", dlmm, _keep_dlmm, normalize_dlmm),
        ("DAMM v2", damm_v2, _keep_damm_v2, normalize_damm_v2),
        ("Raydium CLMM", raydium, _keep_raydium, normalize_raydium_clmm),
    )

    snapshot: list[Pool] = []
    seen: set[str] = set()
    counts = []

    for source, records, keep, normalize in sources:
        added = 0
        for pool in _normalize_source(
            source, records, keep, normalize, verified_tokens, config, pool_limit
        ):
            if pool.address in seen:
                continue
            seen.add(pool.address)
            snapshot.append(pool)
            added += 1
        counts.append(f"{source}:{added}")

    logger.info(f"Built snapshot of {len(snapshot)} pools ({', '.join(counts)})")
    return snapshot


def build_dexscreener_snapshot(
    pairs: list | None,
    verified_tokens: Container[str],
    config: ScoringConfig | None = None,
    limit: int = DEXSCREENER_LIMIT,
) -> list[Pool]:
    """Snapshot from DexScreener pairs, used when every primary source is empty."""
    config = config or ScoringConfig()

    snapshot: list[Pool] = []
    seen: set[str] = set()
    for pool in _normalize_source(
        "DexScreener",
        pairs,
        _keep_dexscreener,
        normalize_dexscreener,
        verified_tokens,
        config,
        limit,
    ):
        if pool.address not in seen:
            seen.add(pool.address)
            snapshot.append(pool)
    return snapshot


def parse_verified_tokens(payload) -> set[str]:
    """
    Extract verified mints from a token-list payload.

    Accepts a list (or a dict with a ``tokens`` list) of mint strings or
    objects carrying ``address``, ``mint`` or ``id``. Falls back to
    well-known mints when nothing usable is found.
    """
    if isinstance(payload, dict):
        payload = payload.get("tokens") or []

    tokens: set[str] = set()
    if isinstance(payload, Iterable) and not isinstance(payload, (str, bytes)):
        for entry in payload:
            if isinstance(entry, str):
                mint = entry
            elif isinstance(entry, dict):
                mint = entry.get("address") or entry.get("mint") or entry.get("id")
            else:
                mint = None
            if mint:
                tokens.add(mint)

    if not tokens:
        logger.warning("No verified tokens in payload, using fallback list")
        return set(FALLBACK_VERIFIED_TOKENS)
    return tokens
