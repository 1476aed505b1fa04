import pytest

from liquidity_watcher.config import Config, load_config, scoring_config
from liquidity_watcher.detection import OpportunityConfig


def test_defaults():
    config = Config()

    assert config.alerts.cooldown_ms == 600_000
    assert config.alerts.max_triggered == 50
    assert config.history.max_tracked_pools == 8
    assert config.history.max_transactions_per_pool == 15
    assert config.detection.max_opportunities == 12
    assert config.refresh.hide_danger is True


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "alerts:\n"
        "  cooldown_ms: 60000\n"
        "detection:\n"
        "  max_opportunities: 5\n"
        "  elite_score: 90\n"
        "logging:\n"
    )

    config = load_config(path)

    assert config.alerts.cooldown_ms == 60_000
    assert config.alerts.max_triggered == 50
    assert config.detection.max_opportunities == 5
    assert config.detection.elite_score == 90
    assert config.detection.apr_min == 30
    assert config.logging.level == "INFO"


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")

    assert load_config(path) == Config()


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_unknown_key_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("alerts:\n  cooldown: 5\n")

    with pytest.raises(TypeError):
        load_config(path)


def test_component_configs():
    config = Config()
    config.detection.hot_min_tvl = 7_500
    config.scoring.max_score = 95

    opp = config.detection
    scoring = scoring_config(config)

    assert isinstance(opp, OpportunityConfig)
    assert opp.hot_min_tvl == 7_500
    assert opp.max_opportunities == 12
    assert scoring.max_score == 95
    assert scoring.min_score == 10
