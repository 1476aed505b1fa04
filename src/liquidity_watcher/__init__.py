"""Liquidity Watcher - pool scoring, opportunity detection and threshold alerts."""

__version__ = "0.1.0"
