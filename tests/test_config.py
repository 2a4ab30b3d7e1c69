# tests/test_config.py
import logging

from course_engine.core import observability
from course_engine.core.config import Settings, validate_settings
from course_engine.core.observability import (
    ObservabilityService,
    get_observability_service,
    get_structured_logger,
)


def test_defaults_are_valid(settings):
    assert validate_settings(settings) == []
    assert settings.sync_max_attempts == 3
    assert settings.sync_base_delay_seconds == 1.0
    assert settings.default_user_id == "anonymous-user"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SYNC_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co/")
    settings = Settings()
    assert settings.sync_max_attempts == 5
    assert settings.rest_base_url == "https://project.supabase.co/rest/v1"


def test_validation_issues():
    settings = Settings(
        supabase_url="ftp://nowhere",
        supabase_anon_key=" ",
        sync_max_attempts=0,
        sync_base_delay_seconds=-1,
        log_level="LOUD",
    )
    issues = validate_settings(settings)
    assert len(issues) == 5


def test_rest_headers(settings):
    headers = settings.rest_headers()
    assert headers["apikey"] == "test-key"
    assert headers["Authorization"] == "Bearer test-key"


def test_metrics_snapshot_lists_engine_metrics():
    text = get_observability_service().metrics_snapshot()
    assert "sync_attempts_total" in text
    assert "answers_recorded_total" in text


def test_structured_logger_is_configured_once():
    logger = get_structured_logger()
    assert logger.name == "course_engine"
    assert len(logger.handlers) == 1
    assert get_structured_logger().handlers == logger.handlers


def test_disabled_metrics_record_nothing(monkeypatch):
    monkeypatch.setenv("ENABLE_METRICS", "false")
    monkeypatch.setattr(observability, "_observability_service", None)
    service = get_observability_service()
    assert service.enabled is False

    before = observability.REGISTRY.get_sample_value("answers_recorded_total", {"outcome": "disabled-check"})
    service.record_answer("disabled-check")
    after = observability.REGISTRY.get_sample_value("answers_recorded_total", {"outcome": "disabled-check"})
    assert before is None
    assert after is None


def test_enabled_metrics_are_recorded():
    service = ObservabilityService(enabled=True)
    service.record_answer("enabled-check")
    assert observability.REGISTRY.get_sample_value("answers_recorded_total", {"outcome": "enabled-check"}) == 1.0


def test_structured_logger_applies_level():
    logger = get_structured_logger("debug")
    assert logger.level == logging.DEBUG
    get_structured_logger("INFO")
