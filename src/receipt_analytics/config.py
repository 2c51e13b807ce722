"""Tunable thresholds for the analytics engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace

logger = logging.getLogger(__name__)

ENV_PREFIX = "RECEIPT_ANALYTICS_"


@dataclass(frozen=True)
class AnalyticsConfig:
    top_n: int = 20
    label_length: int = 35
    return_window_days: int = 90
    urgent_window_days: int = 14
    repeat_min_count: int = 2
    staple_min_count: int = 3
    high_return_rate_pct: float = 5.0
    healthy_savings_rate_pct: float = 5.0
    trend_months: int = 3

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AnalyticsConfig":
        """
        Build a config from RECEIPT_ANALYTICS_<FIELD> environment variables.

        Unset variables keep their defaults. A value that can't be converted
        to the field's type is logged and ignored.
        """
        environ = os.environ if environ is None else environ
        config = cls()
        overrides = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or not raw.strip():
                continue
            current = getattr(config, f.name)
            try:
                overrides[f.name] = type(current)(raw.strip())
            except ValueError:
                logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, f.name.upper(), raw)
        return replace(config, **overrides)
