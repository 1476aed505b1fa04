import pytest

from liquidity_watcher.alerting import Alert, AlertMonitor
from liquidity_watcher.alerting.monitor import condition_holds, metric_value
from liquidity_watcher.state import TriggeredAlertLog

T0 = 1_700_000_000_000
WINDOW = 600_000


def make_alert(alert_id="a1", pool_id="pool-1", metric="tvl", condition="above", value=500.0, **kw):
    return Alert(
        id=alert_id,
        pool_id=pool_id,
        pool_name="POOL-1/USDC",
        metric=metric,
        condition=condition,
        value=value,
        created_at=T0,
        **kw,
    )


def test_fires_when_condition_holds(make_pool):
    log = TriggeredAlertLog()
    alert = make_alert()

    triggered = AlertMonitor().evaluate([alert], [make_pool(tvl=1_000)], log, now=T0)

    assert len(triggered) == 1
    event = triggered[0]
    assert event.alert == alert
    assert event.alert is not alert
    assert event.triggered_at == T0
    assert event.current_value == 1_000
    assert event.read is False
    assert log.entries() == [event]


def test_comparisons_are_strict(make_pool):
    monitor = AlertMonitor()
    pools = [make_pool(tvl=500)]
    assert monitor.evaluate([make_alert(condition="above")], pools, TriggeredAlertLog(), now=T0) == []
    assert monitor.evaluate([make_alert(condition="below")], pools, TriggeredAlertLog(), now=T0) == []


def test_below_condition(make_pool):
    triggered = AlertMonitor().evaluate(
        [make_alert(metric="score", condition="below", value=60)],
        [make_pool(score=40)],
        TriggeredAlertLog(),
        now=T0,
    )
    assert [t.current_value for t in triggered] == [40.0]


def test_fires_at_most_once_per_cooldown_window(make_pool):
    monitor = AlertMonitor(cooldown_ms=WINDOW)
    log = TriggeredAlertLog()
    alerts = [make_alert()]
    pools = [make_pool(tvl=1_000)]

    assert len(monitor.evaluate(alerts, pools, log, now=T0)) == 1
    for offset in (1, 60_000, WINDOW - 1):
        assert monitor.evaluate(alerts, pools, log, now=T0 + offset) == []

    # The window is strict: exactly 10 minutes later the rule may fire again
    assert len(monitor.evaluate(alerts, pools, log, now=T0 + WINDOW)) == 1
    assert len(log) == 2


def test_cooldown_is_per_rule(make_pool):
    log = TriggeredAlertLog()
    monitor = AlertMonitor()
    pools = [make_pool(tvl=1_000)]

    monitor.evaluate([make_alert("a1")], pools, log, now=T0)
    triggered = monitor.evaluate([make_alert("a1"), make_alert("a2")], pools, log, now=T0 + 1)

    assert [t.alert.id for t in triggered] == ["a2"]


def test_duplicate_rule_in_one_cycle_fires_once(make_pool):
    alert = make_alert()
    triggered = AlertMonitor().evaluate([alert, alert], [make_pool(tvl=1_000)], TriggeredAlertLog(), now=T0)
    assert len(triggered) == 1


def test_disabled_rules_are_skipped(make_pool):
    alert = make_alert(enabled=False)
    assert AlertMonitor().evaluate([alert], [make_pool(tvl=1_000)], TriggeredAlertLog(), now=T0) == []


def test_missing_pool_is_skipped_silently(make_pool):
    alerts = [make_alert(pool_id="gone")]
    assert AlertMonitor().evaluate(alerts, [make_pool(tvl=1_000)], TriggeredAlertLog(), now=T0) == []
    assert alerts[0].enabled


def test_apr_is_parsed_from_text(make_pool):
    assert metric_value(make_pool(apr="42.50"), "apr") == 42.5
    assert metric_value(make_pool(apr="garbage"), "apr") == 0.0


def test_metric_values(make_pool):
    pool = make_pool(tvl=1.0, volume=2.0, fees=3.0, score=77)
    assert metric_value(pool, "tvl") == 1.0
    assert metric_value(pool, "volume") == 2.0
    assert metric_value(pool, "fees") == 3.0
    assert metric_value(pool, "score") == 77.0


def test_condition_holds():
    assert condition_holds("above", 2, 1)
    assert not condition_holds("above", 1, 1)
    assert condition_holds("below", 0, 1)
    assert not condition_holds("below", 1, 1)


def test_triggered_log_is_newest_first_and_capped(make_pool):
    log = TriggeredAlertLog(max_entries=50)
    monitor = AlertMonitor()
    pools = [make_pool(tvl=1_000)]
    alerts = [make_alert(f"a{i}") for i in range(60)]

    monitor.evaluate(alerts, pools, log, now=T0)

    assert len(log) == 50
    assert log.entries()[0].alert.id == "a59"
    assert log.entries()[-1].alert.id == "a10"


def test_stats_count_cycles_and_triggers(make_pool):
    monitor = AlertMonitor()
    log = TriggeredAlertLog()
    monitor.evaluate([make_alert()], [make_pool(tvl=1_000)], log, now=T0)
    monitor.evaluate([make_alert()], [make_pool(tvl=1_000)], log, now=T0 + 1)
    assert monitor.stats == {"evaluations": 2, "alerts_triggered": 1}


def test_invalid_metric_is_rejected():
    with pytest.raises(ValueError):
        make_alert(metric="price")
    with pytest.raises(ValueError):
        make_alert(condition="equals")


def test_create_generates_unique_ids(make_pool):
    pool = make_pool()
    first = Alert.create(pool, "tvl", "above", 10)
    second = Alert.create(pool, "tvl", "above", 10)
    assert first.id != second.id
    assert first.pool_id == pool.id
    assert first.pool_name == pool.name
    assert first.enabled is True


def test_clearing_the_log_keeps_cooldown(make_pool):
    monitor = AlertMonitor(cooldown_ms=WINDOW)
    log = TriggeredAlertLog()
    alerts = [make_alert()]
    pools = [make_pool(tvl=1_000)]

    assert len(monitor.evaluate(alerts, pools, log, now=T0)) == 1
    log.clear()

    assert monitor.evaluate(alerts, pools, log, now=T0 + 60_000) == []
    assert len(monitor.evaluate(alerts, pools, log, now=T0 + WINDOW)) == 1


def test_log_cap_does_not_reset_cooldown(make_pool):
    monitor = AlertMonitor(cooldown_ms=WINDOW)
    log = TriggeredAlertLog(max_entries=50)
    alerts = [make_alert(f"a{i}") for i in range(60)]
    pools = [make_pool(tvl=1_000)]

    assert len(monitor.evaluate(alerts, pools, log, now=T0)) == 60
    assert monitor.evaluate(alerts, pools, log, now=T0 + 60_000) == []


def test_deleted_rule_forgets_its_cooldown(make_pool):
    monitor = AlertMonitor(cooldown_ms=WINDOW)
    log = TriggeredAlertLog()
    pools = [make_pool(tvl=1_000)]

    monitor.evaluate([make_alert("a1")], pools, log, now=T0)
    monitor.evaluate([], pools, log, now=T0 + 1)

    assert not monitor.in_cooldown("a1", T0 + 2)


def test_restore_seeds_cooldown_from_previous_entries(make_pool):
    earlier = AlertMonitor(cooldown_ms=WINDOW)
    log = TriggeredAlertLog()
    alerts = [make_alert()]
    pools = [make_pool(tvl=1_000)]
    earlier.evaluate(alerts, pools, log, now=T0)

    restarted = AlertMonitor(cooldown_ms=WINDOW)
    restarted.restore(log.entries())

    assert restarted.in_cooldown("a1", T0 + 60_000)
    assert restarted.evaluate(alerts, pools, TriggeredAlertLog(), now=T0 + 60_000) == []
    assert len(restarted.evaluate(alerts, pools, TriggeredAlertLog(), now=T0 + WINDOW)) == 1


def test_triggered_entry_is_a_snapshot_of_the_rule(make_pool):
    alert = make_alert()
    log = TriggeredAlertLog()

    AlertMonitor().evaluate([alert], [make_pool(tvl=1_000)], log, now=T0)
    alert.enabled = False
    alert.value = 9_999.0

    entry = log.entries()[0]
    assert entry.alert.enabled is True
    assert entry.alert.value == 500.0
