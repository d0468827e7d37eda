from __future__ import annotations

from src.workforce.workforce.core import constants
from src.workforce.workforce.core.settings import ImportConfig


def test_defaults_come_from_constants():
    cfg = ImportConfig.from_dict({}, environ={})

    assert cfg.batch_size == constants.DEFAULT_BATCH_SIZE
    assert cfg.tx_max_wait_seconds == constants.DEFAULT_TX_MAX_WAIT_SECONDS
    assert cfg.tx_timeout_seconds == constants.DEFAULT_TX_TIMEOUT_SECONDS
    assert cfg.retry_backoff_seconds == constants.DEFAULT_RETRY_BACKOFF_SECONDS
    assert cfg.default_email_domain == constants.DEFAULT_EMAIL_DOMAIN
    assert cfg.reconcile_on_startup is False


def test_settings_values_then_environment_override():
    cfg = ImportConfig.from_dict(
        {"batch_size": 50, "reconcile_on_startup": True, "retry_backoff_seconds": 0.0},
        environ={"IMPORT_BATCH_SIZE": "200", "IMPORT_RECONCILE_ON_STARTUP": "false", "IMPORT_STALE_UPLOAD_MINUTES": " "},
    )

    assert cfg.batch_size == 200
    assert cfg.reconcile_on_startup is False
    assert cfg.retry_backoff_seconds == 0.0
    assert cfg.stale_upload_minutes == constants.DEFAULT_STALE_UPLOAD_MINUTES


def test_batch_size_and_attempts_have_a_floor():
    cfg = ImportConfig.from_dict({"batch_size": 0, "retry_max_attempts": "0"}, environ={})

    assert cfg.batch_size == 1
    assert cfg.retry_max_attempts == 1


def test_settings_modules_only_declare_overrides():
    import config.development
    import config.testing

    assert ImportConfig.from_dict(config.development.IMPORT_CONFIG, environ={}).reconcile_on_startup is True
    assert ImportConfig.from_dict(config.testing.IMPORT_CONFIG, environ={}).batch_size == 50
