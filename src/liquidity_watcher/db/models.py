"""SQLite database schema."""

SCHEMA = """
-- User-defined threshold alerts
CREATE TABLE IF NOT EXISTS user_alerts (
    id TEXT PRIMARY KEY,
    pool_id TEXT NOT NULL,
    pool_name TEXT NOT NULL,
    metric TEXT NOT NULL CHECK (metric IN ('apr', 'tvl', 'volume', 'score', 'fees')),
    condition TEXT NOT NULL CHECK (condition IN ('above', 'below')),
    value REAL NOT NULL,
    enabled INTEGER NOT NULL DEFAULT 1,
    created_at INTEGER NOT NULL
);

-- Log of alerts that fired, with the metric value at trigger time
CREATE TABLE IF NOT EXISTS triggered_alerts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    alert_id TEXT NOT NULL,
    pool_id TEXT NOT NULL,
    pool_name TEXT NOT NULL,
    metric TEXT NOT NULL,
    condition TEXT NOT NULL,
    value REAL NOT NULL,
    enabled INTEGER NOT NULL DEFAULT 1,
    alert_created_at INTEGER NOT NULL,
    current_value REAL NOT NULL,
    triggered_at INTEGER NOT NULL,
    read INTEGER NOT NULL DEFAULT 0
);

-- Pool metrics captured every refresh cycle for trend analysis
CREATE TABLE IF NOT EXISTS pool_snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    pool_address TEXT NOT NULL,
    pool_name TEXT NOT NULL,
    protocol TEXT NOT NULL,
    tvl REAL NOT NULL,
    volume REAL NOT NULL,
    apr TEXT NOT NULL,
    fees REAL NOT NULL,
    score INTEGER NOT NULL,
    safety TEXT NOT NULL,
    captured_at INTEGER NOT NULL
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_user_alerts_pool ON user_alerts(pool_id);
CREATE INDEX IF NOT EXISTS idx_triggered_alerts_time ON triggered_alerts(triggered_at DESC);
CREATE INDEX IF NOT EXISTS idx_pool_snapshots_address ON pool_snapshots(pool_address, captured_at DESC);
"""
