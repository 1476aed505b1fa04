import logging

from liquidity_watcher.alerting import Alert, AlertFormatter, AlertLogger, TriggeredAlert

T0 = 1_700_000_000_000


def make_triggered(alert_id="a1", current_value=2_500.5):
    alert = Alert(
        id=alert_id,
        pool_id="pool-1",
        pool_name="SOL/USDC",
        metric="tvl",
        condition="above",
        value=1_000,
        created_at=T0,
    )
    return TriggeredAlert(alert=alert, triggered_at=T0, current_value=current_value)


def test_formatter_renders_alert_block():
    record = logging.LogRecord("alerts", logging.WARNING, "", 0, "Alert triggered", (), None)
    record.triggered = make_triggered()

    text = AlertFormatter().format(record)

    assert "| ALERT | TVL ABOVE" in text
    assert "Pool:        SOL/USDC" in text
    assert "Pool ID:     pool-1" in text
    assert "Threshold:   1,000.00" in text
    assert "Current:     2,500.50" in text
    assert "Rule:        a1" in text


def test_formatter_falls_back_for_plain_records():
    record = logging.LogRecord("alerts", logging.INFO, "", 0, "plain message", (), None)
    assert AlertFormatter().format(record) == "plain message"


def test_alert_written_to_console_and_file(tmp_path, capsys):
    log_file = tmp_path / "logs" / "alerts.log"
    alert_logger = AlertLogger(log_file=log_file)

    alert_logger.log_alert(make_triggered())
    alert_logger.close()

    assert "Pool:        SOL/USDC" in capsys.readouterr().out
    assert "Pool:        SOL/USDC" in log_file.read_text()


def test_file_rotates_and_keeps_backup_count(tmp_path):
    log_file = tmp_path / "alerts.log"
    # Roughly half a kilobyte, smaller than one alert block
    alert_logger = AlertLogger(log_file=log_file, max_file_size_mb=0.0005, backup_count=2)

    for i in range(5):
        alert_logger.log_alert(make_triggered(alert_id=f"a{i}"))
    alert_logger.close()

    assert (tmp_path / "alerts.log.1").exists()
    assert not (tmp_path / "alerts.log.3").exists()
    assert "Rule:        a4" in log_file.read_text()


def test_close_detaches_handlers(tmp_path):
    alert_logger = AlertLogger(log_file=tmp_path / "alerts.log")
    alert_logger.close()

    assert logging.getLogger("liquidity_watcher.alerts").handlers == []
