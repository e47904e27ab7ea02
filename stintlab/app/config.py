"""Environment driven configuration for the access and garage core."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .entitlements.models import EnforcementPhase
from .garage.models import DeletePolicy


@dataclass(frozen=True)
class StintLabConfig:
    """Runtime settings shared by the resolver, evaluator and garage adapters."""

    enforcement_phase: EnforcementPhase
    beta_channel: bool
    garage_delete_policy: DeletePolicy
    role_lookup_timeout: float
    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str

    @property
    def db_config(self) -> Dict[str, Any]:
        """Keyword arguments accepted by ``psycopg2.connect`` and ``asyncpg``."""

        return {
            "host": self.db_host,
            "port": self.db_port,
            "database": self.db_name,
            "user": self.db_user,
            "password": self.db_password,
        }


def _to_bool(name: str, value: Optional[str], *, default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _to_int(name: str, value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _to_float(name: str, value: Optional[str], *, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _to_phase(value: Optional[str]) -> EnforcementPhase:
    raw = (value or EnforcementPhase.OPEN.value).strip().lower()
    try:
        return EnforcementPhase(raw)
    except ValueError as exc:
        raise ValueError(f"STINTLAB_ENFORCEMENT_PHASE must be one of open/enforced, got {value!r}") from exc


def _to_delete_policy(value: Optional[str]) -> DeletePolicy:
    raw = (value or DeletePolicy.CASCADE.value).strip().lower()
    try:
        return DeletePolicy(raw)
    except ValueError as exc:
        raise ValueError(f"STINTLAB_GARAGE_DELETE_POLICY must be cascade or reject, got {value!r}") from exc


def load_config(env: Optional[Mapping[str, str]] = None) -> StintLabConfig:
    """Load :class:`StintLabConfig` from environment variables.

    When ``env`` is omitted the process environment is used, after merging
    any ``.env`` file found by :func:`dotenv.load_dotenv`.
    """

    if env is None:
        load_dotenv()
        env_mapping: Mapping[str, str] = os.environ
    else:
        env_mapping = env

    timeout = _to_float(
        "STINTLAB_ROLE_LOOKUP_TIMEOUT",
        env_mapping.get("STINTLAB_ROLE_LOOKUP_TIMEOUT"),
        default=5.0,
    )
    if timeout <= 0:
        raise ValueError("STINTLAB_ROLE_LOOKUP_TIMEOUT must be positive")

    return StintLabConfig(
        enforcement_phase=_to_phase(env_mapping.get("STINTLAB_ENFORCEMENT_PHASE")),
        beta_channel=_to_bool("STINTLAB_BETA_CHANNEL", env_mapping.get("STINTLAB_BETA_CHANNEL"), default=False),
        garage_delete_policy=_to_delete_policy(env_mapping.get("STINTLAB_GARAGE_DELETE_POLICY")),
        role_lookup_timeout=timeout,
        db_host=env_mapping.get("DB_HOST", "127.0.0.1"),
        db_port=_to_int("DB_PORT", env_mapping.get("DB_PORT"), default=5432),
        db_name=env_mapping.get("DB_NAME", "stintlab"),
        db_user=env_mapping.get("DB_USER", "stintlab"),
        db_password=env_mapping.get("DB_PASSWORD", ""),
    )
