"""DuckDB connection for the local cost store."""

from __future__ import annotations

from pathlib import Path

import duckdb


def get_connection(
    db_path: str = ":memory:", read_only: bool = False
) -> duckdb.DuckDBPyConnection:
    """Open the cost store, creating parent directories for new files."""
    if db_path == ":memory:":
        return duckdb.connect(db_path)
    if not read_only:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(db_path, read_only=read_only)
