"""Scoring and waiting-period evaluation."""

from __future__ import annotations

from .engine import EligibilityEngine, waiting_period_satisfied
from .models import COMPLETION_THRESHOLD, WAITING_PERIOD, EligibilityVerdict

__all__ = [
    "COMPLETION_THRESHOLD",
    "WAITING_PERIOD",
    "EligibilityEngine",
    "EligibilityVerdict",
    "waiting_period_satisfied",
]
