"""Configuration loader for Liquidity Watcher."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .detection.opportunities import OpportunityConfig
from .scoring import ScoringConfig


@dataclass
class ScoringSection:
    min_score: int = 10
    max_score: int = 99
    unverified_min_tvl: float = 10_000


@dataclass
class AlertsConfig:
    cooldown_ms: int = 600_000
    max_triggered: int = 50


@dataclass
class HistoryConfig:
    max_tracked_pools: int = 8
    max_transactions_per_pool: int = 15


@dataclass
class RefreshConfig:
    interval_seconds: int = 60
    hide_danger: bool = True


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = "logs/alerts.log"
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass
class ApiConfig:
    dlmm_url: str = "https://dlmm-api.meteora.ag/pair/all"
    damm_v2_url: str = "https://dammv2-api.meteora.ag/pools"
    raydium_clmm_url: str = (
        "https://api-v3.raydium.io/pools/info/list"
        "?poolType=concentrated&poolSortField=volume24h&sortType=desc&pageSize=500&page=1"
    )
    dexscreener_url: str = "https://api.dexscreener.com/latest/dex/search?q=meteora"
    jupiter_tokens_url: str = "https://lite-api.jup.ag/tokens/v2/tag?query=verified"
    transaction_ws_url: str = "ws://localhost:3000/ws"
    timeout_seconds: float = 30.0
    pool_limit: int = 500


@dataclass
class DatabaseConfig:
    path: str = "data/liquidity_watcher.db"
    snapshot_retention_hours: float = 24
    cleanup_interval_seconds: int = 3600


@dataclass
class Config:
    scoring: ScoringSection = field(default_factory=ScoringSection)
    detection: OpportunityConfig = field(default_factory=OpportunityConfig)
    alerts: AlertsConfig = field(default_factory=AlertsConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def load_config(config_path: str | Path = "config.yaml") -> Config:
    """Load configuration from YAML file. Missing sections keep their defaults."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    return Config(
        scoring=ScoringSection(**(raw.get("scoring") or {})),
        detection=OpportunityConfig(**(raw.get("detection") or {})),
        alerts=AlertsConfig(**(raw.get("alerts") or {})),
        history=HistoryConfig(**(raw.get("history") or {})),
        refresh=RefreshConfig(**(raw.get("refresh") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
        api=ApiConfig(**(raw.get("api") or {})),
        database=DatabaseConfig(**(raw.get("database") or {})),
    )


def scoring_config(config: Config) -> ScoringConfig:
    """Build the score engine bounds from the scoring section."""
    return ScoringConfig(
        min_score=config.scoring.min_score,
        max_score=config.scoring.max_score,
        unverified_min_tvl=config.scoring.unverified_min_tvl,
    )
