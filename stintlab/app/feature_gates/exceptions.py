"""Custom exceptions used for feature gating enforcement."""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import status

from ..errors import DomainError


@dataclass
class FeatureGateError(DomainError):
    """Represents an access refusal surfaced to API callers."""

    status_code: int = status.HTTP_403_FORBIDDEN
