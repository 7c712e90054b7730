from pydantic import ValidationError
import pytest

from marketplace.core.config import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.mark.unit
class TestBookingRuleDefaults:
    def test_defaults(self):
        config = _settings()
        assert config.default_booking_duration_minutes == 120
        assert config.allow_overnight_availability is False
        assert config.cancellation_notice_hours == 24
        assert config.modification_notice_hours == 24

    @pytest.mark.parametrize("value", [0, -30])
    def test_default_duration_must_be_positive(self, value):
        with pytest.raises(ValidationError):
            _settings(default_booking_duration_minutes=value)

    def test_negative_lock_wait_rejected(self):
        with pytest.raises(ValidationError):
            _settings(booking_lock_wait_seconds=-1)

    @pytest.mark.parametrize("name", ["cancellation_notice_hours", "modification_notice_hours"])
    def test_negative_notice_rejected(self, name):
        with pytest.raises(ValidationError):
            _settings(**{name: -1})

    def test_overnight_flag_from_environment(self, monkeypatch):
        monkeypatch.setenv("ALLOW_OVERNIGHT_AVAILABILITY", "true")
        assert _settings().allow_overnight_availability is True


@pytest.mark.unit
class TestDerivedValues:
    @pytest.mark.parametrize("url,enabled", [("", False), ("   ", False), ("redis://r:6379/1", True)])
    def test_booking_lock_enabled_follows_redis_url(self, url, enabled):
        assert _settings(redis_url=url).booking_lock_enabled is enabled

    def test_broker_falls_back_to_redis_url(self):
        assert _settings(redis_url="redis://cache:6379/2").get_celery_broker_url() == (
            "redis://cache:6379/2"
        )
        assert (
            _settings(redis_url="redis://cache:6379/2", celery_broker_url="amqp://mq//")
            .get_celery_broker_url()
            == "amqp://mq//"
        )

    def test_log_level_is_normalized(self):
        assert _settings(log_level=" debug ").log_level == "DEBUG"
        assert _settings(log_level="").log_level == "INFO"

    def test_test_database_url_wins_while_testing(self, monkeypatch):
        monkeypatch.setenv("TEST_DATABASE_URL", "sqlite:///./test-only.db")
        config = _settings(database_url="postgresql://prod/db", is_testing=True)
        assert config.get_database_url() == "sqlite:///./test-only.db"
