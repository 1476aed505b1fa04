from liquidity_watcher.filters import FilterState, apply_filters, search_pools


def ids(pools):
    return [pool.id for pool in pools]


def test_zero_volume_pools_are_dropped(make_pool):
    pools = [make_pool("idle", volume=0), make_pool("busy", volume=1)]
    assert ids(apply_filters(pools, FilterState())) == ["busy"]


def test_danger_shield(make_pool):
    pools = [make_pool("d", volume=1, safety="danger"), make_pool("s", volume=1)]
    assert ids(apply_filters(pools, FilterState(), hide_danger=True)) == ["s"]
    assert set(ids(apply_filters(pools, FilterState(), hide_danger=False))) == {"d", "s"}


def test_min_tvl_and_volume_are_inclusive(make_pool):
    pools = [
        make_pool("small", tvl=999, volume=100),
        make_pool("edge", tvl=1_000, volume=100),
        make_pool("quiet", tvl=5_000, volume=50),
    ]
    result = apply_filters(pools, FilterState(min_tvl=1_000, min_volume=100))
    assert ids(result) == ["edge"]


def test_farm_only_uses_active_farms(make_pool):
    pools = [
        make_pool("farm", volume=1, has_farm=True, farm_active=True),
        make_pool("stale", volume=1, has_farm=True),
    ]
    assert ids(apply_filters(pools, FilterState(farm_only=True))) == ["farm"]


def test_pool_type(make_pool):
    pools = [
        make_pool("dlmm", volume=1),
        make_pool("damm", volume=1, protocol="Meteora DAMM v2"),
        make_pool("ray", volume=1, protocol="Raydium CLMM"),
    ]
    assert ids(apply_filters(pools, FilterState(pool_type="damm"))) == ["damm"]
    assert ids(apply_filters(pools, FilterState(pool_type="raydium"))) == ["ray"]
    assert len(apply_filters(pools, FilterState(pool_type="all"))) == 3


def test_sort_keys(make_pool):
    pools = [
        make_pool("a", volume=10, tvl=300, apr="5.00", fees_1h=1, fee_tvl_ratio=0.3),
        make_pool("b", volume=30, tvl=100, apr="50.00", fees_1h=3, fee_tvl_ratio=0.1),
        make_pool("c", volume=20, tvl=200, apr="9.00", fees_1h=2, fee_tvl_ratio=0.2),
    ]
    assert ids(apply_filters(pools, FilterState(sort_by="tvl"))) == ["a", "c", "b"]
    assert ids(apply_filters(pools, FilterState(sort_by="volume"))) == ["b", "c", "a"]
    # APR sorts numerically, not as text
    assert ids(apply_filters(pools, FilterState(sort_by="apr"))) == ["b", "c", "a"]
    assert ids(apply_filters(pools, FilterState(sort_by="fees1h"))) == ["b", "c", "a"]
    assert ids(apply_filters(pools, FilterState(sort_by="feeTvl"))) == ["a", "c", "b"]


def test_unknown_sort_falls_back_to_score(make_pool):
    pools = [make_pool("low", volume=1, score=20), make_pool("high", volume=1, score=90)]
    assert ids(apply_filters(pools, FilterState(sort_by="nonsense"))) == ["high", "low"]


def test_search_matches_name_address_and_mints(make_pool):
    pools = [
        make_pool("addr-1", name="BONK/SOL"),
        make_pool("addr-2", name="JUP/USDC", mint_x="JupMint"),
    ]
    assert ids(search_pools(pools, "bonk")) == ["addr-1"]
    assert ids(search_pools(pools, "ADDR-2")) == ["addr-2"]
    assert ids(search_pools(pools, "jupmint")) == ["addr-2"]


def test_blank_query_returns_nothing(make_pool):
    assert search_pools([make_pool()], "   ") == []


def test_search_is_limited(make_pool):
    pools = [make_pool(f"p{n}") for n in range(60)]
    assert len(search_pools(pools, "p")) == 50
    assert len(search_pools(pools, "p", limit=5)) == 5
