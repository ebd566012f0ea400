"""Tests for configuration and the audit logger."""

import logging
from decimal import Decimal
from pathlib import Path

import pytest

from tripsplit.audit import AuditLogger, configure_logging, create_correlation_id
from tripsplit.config import (
    AppSettings,
    PaymentSettings,
    get_settings,
    validate_all_settings,
)
from tripsplit.models.audit import AuditEventBuilder
from tripsplit.orchestrator import create_app_components
from tripsplit.services.storage import InMemoryAuditStorage


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_defaults(self, monkeypatch):
        """Test the built-in defaults."""
        monkeypatch.delenv("TRIPSPLIT_SETTLEMENT_THRESHOLD", raising=False)
        settings = AppSettings()
        assert settings.settlement_threshold == Decimal("0.01")
        assert settings.embedded_members_field == "_embeddedMembers"
        assert "~" not in str(settings.state_file)

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test TRIPSPLIT_ variables."""
        monkeypatch.setenv("TRIPSPLIT_STATE_FILE", str(tmp_path / "s.json"))
        monkeypatch.setenv("TRIPSPLIT_SETTLEMENT_THRESHOLD", "0.5")
        settings = get_settings().app
        assert settings.state_file == Path(tmp_path / "s.json")
        assert settings.settlement_threshold == Decimal("0.5")

    def test_payment_environment_overrides(self, monkeypatch):
        """Test TRIPSPLIT_PAYMENT_ variables."""
        monkeypatch.setenv("TRIPSPLIT_PAYMENT_CURRENCY_CODE", "840")
        assert get_settings().payment.currency_code == "840"

    @pytest.mark.parametrize("debug,level", [(True, logging.DEBUG), (False, logging.INFO)])
    def test_debug_mode_sets_engine_log_level(self, monkeypatch, tmp_path, debug, level):
        """Test TRIPSPLIT_DEBUG_MODE reaches the tripsplit loggers."""
        engine_logger = logging.getLogger("tripsplit")
        previous = engine_logger.level
        monkeypatch.setenv("TRIPSPLIT_DEBUG_MODE", "true" if debug else "false")
        try:
            create_app_components(state_file=tmp_path / "state.json")
            assert engine_logger.level == level
            assert logging.getLogger("tripsplit.sync.codec").isEnabledFor(logging.DEBUG) is debug
        finally:
            engine_logger.setLevel(previous)

    def test_invalid_values_rejected(self):
        """Test field constraints."""
        with pytest.raises(ValueError):
            PaymentSettings(currency_code="THB")
        with pytest.raises(ValueError):
            AppSettings(settlement_threshold=Decimal("0"))

    def test_validate_all_settings(self, monkeypatch):
        """Test the startup check reports per section."""
        monkeypatch.setenv("TRIPSPLIT_PAYMENT_COUNTRY", "thailand")
        results = validate_all_settings()
        assert results["app"] is True
        assert results["payment"] is False
        assert "payment_error" in results


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_persists_to_storage(self):
        """Test events reach the configured storage."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        logger.log_trip_created(trip_id="t1", name="Pai")
        assert len(storage.events) == 1
        assert storage.events[0].entity_id == "t1"

    def test_without_storage(self):
        """Test local-only logging succeeds."""
        assert AuditLogger().log(AuditEventBuilder.state_saved(trip_count=1, friend_count=2)) is True

    def test_storage_failure_does_not_raise(self):
        """Test that a broken audit backend never breaks the caller."""

        class BrokenStorage(InMemoryAuditStorage):
            def append_event(self, event):
                raise RuntimeError("boom")

        logger = AuditLogger(BrokenStorage())
        assert logger.log(AuditEventBuilder.save_failed(error_message="x")) is False

    def test_configure_logging(self):
        """Test the level switch on its own."""
        engine_logger = logging.getLogger("tripsplit")
        previous = engine_logger.level
        try:
            configure_logging(debug=True)
            assert engine_logger.level == logging.DEBUG
            configure_logging()
            assert engine_logger.level == logging.INFO
        finally:
            engine_logger.setLevel(previous)

    def test_correlation_ids_are_unique(self):
        """Test create_correlation_id."""
        assert create_correlation_id() != create_correlation_id()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
