"""Shared application context for reusable dependencies."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

import psycopg2

if TYPE_CHECKING:  # pragma: no cover
    from .app.config import StintLabConfig

_get_conn: Optional[Callable[[], Any]] = None


def configure(*, get_conn: Callable[[], Any]) -> None:
    """Register the connection factory used by the PostgreSQL adapters."""

    global _get_conn
    _get_conn = get_conn


def configure_from(config: "StintLabConfig") -> None:
    """Register a ``psycopg2`` connection factory built from ``config``."""

    db_config = config.db_config

    def _connect() -> Any:
        return psycopg2.connect(**db_config)

    configure(get_conn=_connect)


def reset() -> None:
    global _get_conn
    _get_conn = None


def _require(value: Optional[Any], name: str) -> Any:
    if value is None:
        raise RuntimeError(f"Application context has not been configured yet: {name}")
    return value


def get_conn() -> Any:
    conn_factory = _require(_get_conn, "get_conn")
    return conn_factory()
