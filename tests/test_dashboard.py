from liquidity_watcher.alerting import Alert, TriggeredAlert
from liquidity_watcher.analysis.dashboard import (
    create_bar,
    print_opportunities,
    print_pool_history,
    print_pool_table,
    print_snapshot_summary,
    print_triggered_alerts,
    truncate,
)
from liquidity_watcher.db import PoolSnapshot
from liquidity_watcher.detection import Opportunity

T0 = 1_700_000_000_000


def test_create_bar():
    assert create_bar(5, 10, width=10) == "█" * 5 + "░" * 5
    assert create_bar(20, 10, width=4) == "████"
    assert create_bar(1, 0, width=3) == "   "


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("a much longer pool name", 10) == "a much ..."


def test_snapshot_summary_counts_safety(make_pool, capsys):
    print_snapshot_summary([make_pool("a"), make_pool("b", safety="danger")])
    out = capsys.readouterr().out

    assert "POOLS" in out
    assert "Meteora DLMM" in out
    assert "DANGER" in out


def test_opportunities_list_reasons(make_pool, capsys):
    print_opportunities([Opportunity(pool=make_pool("a"), reason="Fee spike", opp_type="hot")])
    out = capsys.readouterr().out

    assert "OPPORTUNITIES (1)" in out
    assert "A/USDC [HOT]" in out
    assert "Fee spike" in out


def test_no_opportunities(capsys):
    print_opportunities([])
    assert "No pools qualify right now." in capsys.readouterr().out


def test_pool_table_respects_limit(make_pool, capsys):
    print_pool_table([make_pool("a"), make_pool("b"), make_pool("c")], limit=2)
    out = capsys.readouterr().out

    assert "showing 2 of 3" in out
    assert "A/USDC" in out
    assert "C/USDC" not in out


def test_triggered_alerts_marks_unread(capsys):
    alert = Alert(
        id="a1",
        pool_id="a",
        pool_name="A/USDC",
        metric="apr",
        condition="above",
        value=25,
        created_at=T0,
    )
    print_triggered_alerts([TriggeredAlert(alert=alert, triggered_at=T0, current_value=30)])
    out = capsys.readouterr().out

    assert "TRIGGERED ALERTS (1)" in out
    assert "● " in out
    assert "apr above 25.00 (now 30.00)" in out

    print_triggered_alerts([])
    assert capsys.readouterr().out == ""


def test_pool_history(capsys):
    snapshots = [
        PoolSnapshot("addr", "A/USDC", "Meteora DLMM", tvl, 500.0, "12.00", 1.0, 60, "safe", T0 + i)
        for i, tvl in enumerate((1_000.0, 2_000.0))
    ]

    print_pool_history("addr", snapshots)
    out = capsys.readouterr().out

    assert "HISTORY: A/USDC (2 snapshots)" in out
    assert "$2.0K" in out
    assert "█" * 20 in out

    print_pool_history("addr", [])
    out = capsys.readouterr().out
    assert "HISTORY: addr (0 snapshots)" in out
    assert "No snapshots recorded" in out
