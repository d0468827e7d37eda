from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_EMAIL_DOMAIN,
    DEFAULT_RESPONSE_ERROR_LIMIT,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_RETRY_MAX_ATTEMPTS,
    DEFAULT_STALE_UPLOAD_MINUTES,
    DEFAULT_TX_MAX_WAIT_SECONDS,
    DEFAULT_TX_TIMEOUT_SECONDS,
)

ENV_PREFIX = "IMPORT_"


def _coerce(default: Any, value: Any) -> Any:
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
    return type(default)(value)


@dataclass(frozen=True)
class ImportConfig:
    """Tuning knobs of the ingestion pipeline.

    Settings modules declare ``IMPORT_CONFIG`` with the keys they change;
    ``IMPORT_<KEY>`` environment variables win over both.
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    tx_max_wait_seconds: int = DEFAULT_TX_MAX_WAIT_SECONDS
    tx_timeout_seconds: int = DEFAULT_TX_TIMEOUT_SECONDS
    retry_max_attempts: int = DEFAULT_RETRY_MAX_ATTEMPTS
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    response_error_limit: int = DEFAULT_RESPONSE_ERROR_LIMIT
    stale_upload_minutes: int = DEFAULT_STALE_UPLOAD_MINUTES
    reconcile_on_startup: bool = False
    default_email_domain: str = DEFAULT_EMAIL_DOMAIN

    @classmethod
    def from_dict(
        cls, import_config: Optional[Mapping[str, Any]], *, environ: Optional[Mapping[str, str]] = None
    ) -> "ImportConfig":
        c = dict(import_config or {})
        env = os.environ if environ is None else environ
        defaults = cls()

        values = {}
        for f in fields(cls):
            default = getattr(defaults, f.name)
            raw = env.get(f"{ENV_PREFIX}{f.name.upper()}", "")
            if raw.strip():
                values[f.name] = _coerce(default, raw)
            elif f.name in c:
                values[f.name] = _coerce(default, c[f.name])

        values["batch_size"] = max(1, values.get("batch_size", defaults.batch_size))
        values["retry_max_attempts"] = max(1, values.get("retry_max_attempts", defaults.retry_max_attempts))
        return cls(**values)
