import logging

from liquidity_watcher.detection import OpportunityConfig, OpportunityDetector


def test_pool_without_signals_does_not_qualify(make_pool):
    assert OpportunityDetector().detect([make_pool()]) == []


def test_only_safe_pools_qualify(make_pool):
    pools = [
        make_pool("warn", safety="warning", score=99),
        make_pool("danger", safety="danger", score=99),
    ]
    assert OpportunityDetector().detect(pools) == []


def test_each_signal_qualifies_a_safe_pool(make_pool):
    detector = OpportunityDetector()
    assert detector.qualifies(make_pool(is_hot=True, tvl=5_001))
    assert detector.qualifies(make_pool(fees_1h=20, tvl=10_000))
    assert detector.qualifies(make_pool(volume=7_000, tvl=21_000))
    assert detector.qualifies(make_pool(apr="30.01", score=65))
    assert detector.qualifies(make_pool(score=80))
    assert detector.qualifies(make_pool(farm_active=True, tvl=10_001))
    assert detector.qualifies(make_pool(fee_tvl_ratio=0.0101))


def test_signal_thresholds_are_strict(make_pool):
    detector = OpportunityDetector()
    assert not detector.qualifies(make_pool(is_hot=True, tvl=5_000))
    assert not detector.qualifies(make_pool(fees_1h=10, tvl=10_000))
    assert not detector.qualifies(make_pool(volume=6_000, tvl=20_000))
    assert not detector.qualifies(make_pool(apr="30.00", score=79))
    assert not detector.qualifies(make_pool(apr="45.00", score=64))
    assert not detector.qualifies(make_pool(farm_active=True, tvl=10_000))
    assert not detector.qualifies(make_pool(fee_tvl_ratio=0.01))


def test_caps_in_input_order_before_classifying(make_pool):
    pools = [make_pool(f"p{i}", score=85) for i in range(20)]
    # A hot pool after the cap is never considered
    pools.append(make_pool("late-hot", is_hot=True, tvl=50_000, fees_1h=500))

    opportunities = OpportunityDetector().detect(pools)

    assert [opp.id for opp in opportunities] == [f"p{i}" for i in range(12)]


def test_cap_is_configurable(make_pool):
    pools = [make_pool(f"p{i}", score=85) for i in range(5)]
    detector = OpportunityDetector(OpportunityConfig(max_opportunities=3))
    assert len(detector.detect(pools)) == 3


def test_orders_hot_then_active_then_standard_stably(make_pool):
    pools = [
        make_pool("standard-1", score=85),
        make_pool("active-1", fees_1h=20, tvl=10_000),
        make_pool("hot-1", is_hot=True, tvl=6_000),
        make_pool("standard-2", score=90),
        make_pool("hot-2", is_hot=True, tvl=7_000),
        make_pool("active-2", fees_1h=30, tvl=10_000),
    ]

    opportunities = OpportunityDetector().detect(pools)

    assert [opp.id for opp in opportunities] == [
        "hot-1",
        "hot-2",
        "active-1",
        "active-2",
        "standard-1",
        "standard-2",
    ]
    assert [opp.opp_type for opp in opportunities] == [
        "hot",
        "hot",
        "active",
        "active",
        "standard",
        "standard",
    ]


def test_reason_fee_spike(make_pool):
    pool = make_pool(is_hot=True, tvl=6_000, fees_1h=100)
    assert OpportunityDetector().explain(pool) == (
        "FEE SPIKE: 1h fees $100.00 -> projected $2.4K/day",
        "hot",
    )


def test_reason_active(make_pool):
    pool = make_pool(fees_1h=20, tvl=10_000)
    assert OpportunityDetector().explain(pool) == (
        "ACTIVE: $20.00 fees in last hour (0.200% of TVL)",
        "active",
    )


def test_reason_farm(make_pool):
    pool = make_pool(farm_active=True, tvl=20_000, apr="12.00", farm_apr=5.5)
    assert OpportunityDetector().explain(pool) == (
        "FARM: 12.00% APR + farm rewards (5.50% bonus)",
        "standard",
    )


def test_reason_high_volume(make_pool):
    pool = make_pool(volume=30_000, tvl=30_000)
    assert OpportunityDetector().explain(pool) == (
        "HIGH VOLUME: 100% vol/TVL ratio",
        "standard",
    )


def test_reason_high_apr(make_pool):
    pool = make_pool(apr="60.00", score=70)
    assert OpportunityDetector().explain(pool) == (
        "HIGH APR: 60.00% with score 70",
        "standard",
    )


def test_reason_efficient(make_pool):
    pool = make_pool(fee_tvl_ratio=0.02)
    assert OpportunityDetector().explain(pool) == (
        "EFFICIENT: 2.00% fee/TVL ratio",
        "standard",
    )


def test_reason_top_scorer_fallback(make_pool):
    pool = make_pool(score=85)
    assert OpportunityDetector().explain(pool) == ("TOP SCORER: 85 points", "standard")


def test_first_matching_reason_wins(make_pool):
    # Hot and farm-active at once: hot comes first
    pool = make_pool(is_hot=True, farm_active=True, tvl=20_000, fees_1h=5)
    reason, opp_type = OpportunityDetector().explain(pool)
    assert opp_type == "hot"
    assert reason.startswith("FEE SPIKE")


def test_malformed_pool_is_excluded_and_logged(make_pool, caplog):
    pools = [
        make_pool("broken", tvl="not-a-number"),
        make_pool("good", score=85),
    ]

    with caplog.at_level(logging.WARNING):
        opportunities = OpportunityDetector().detect(pools)

    assert [opp.id for opp in opportunities] == ["good"]
    assert "broken" in caplog.text


def test_output_is_rebuilt_from_scratch(make_pool):
    detector = OpportunityDetector()
    assert len(detector.detect([make_pool("a", score=85)])) == 1
    assert detector.detect([make_pool("b")]) == []
