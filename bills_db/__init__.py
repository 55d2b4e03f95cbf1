"""
bills_db

Top-level package initializer for the bills database layer.

Submodules include:
    - db/        backends, connection pool, query helpers
    - registry/  BillRecord and the read-only bill registry
    - apis/      dashboard statistics and graph sources

This root package exports only the global config loader for convenience.
"""

from .config import BillsDBConfig, load_config

__all__ = [
    "BillsDBConfig",
    "load_config",
]
