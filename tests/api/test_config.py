"""Tests for configuration classes."""

import dataclasses
import os
from unittest.mock import patch

import pytest

from config import (
    AppConfig,
    CORSConfig,
    GameConfig,
    RateLimitConfig,
    RedisConfig,
    SecurityConfig,
    StoreConfig,
    _parse_cors_origins,
)


class TestCORSConfig:
    """Tests for CORSConfig class."""

    def test_default_origins(self):
        with patch.dict(os.environ, {}, clear=True):
            assert CORSConfig().allowed_origins == ["http://localhost:8000"]

    def test_origins_from_env(self):
        with patch.dict(os.environ, {"CORS_ORIGINS": " http://a.test , http://b.test ,"}):
            assert _parse_cors_origins() == ["http://a.test", "http://b.test"]


class TestRateLimitConfig:
    """Tests for RateLimitConfig class."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = RateLimitConfig()
            assert config.enabled is True
            assert config.requests_per_minute == 60

    @pytest.mark.parametrize("value", ["false", "0", "no"])
    def test_only_true_enables(self, value):
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": value}):
            assert RateLimitConfig().enabled is False


class TestSecurityConfig:
    """Tests for SecurityConfig class."""

    def test_generated_secret(self):
        with patch.dict(os.environ, {}, clear=True):
            config = SecurityConfig()
            assert config.secret_key
            assert config.token_ttl == 7 * 24 * 3600

    def test_from_env(self):
        with patch.dict(os.environ, {"SECRET_KEY": "s3cret", "TOKEN_TTL": "60"}):
            config = SecurityConfig()
            assert config.secret_key == "s3cret"
            assert config.token_ttl == 60


class TestRedisConfig:
    """Tests for RedisConfig class."""

    def test_url_without_password(self):
        with patch.dict(os.environ, {}, clear=True):
            assert RedisConfig().url == "redis://localhost:6379/0"

    def test_url_with_password(self):
        with patch.dict(os.environ, {"REDIS_PASSWORD": "pw", "REDIS_DB": "2"}, clear=True):
            assert RedisConfig().url == "redis://:pw@localhost:6379/2"


class TestStoreConfig:
    """Tests for StoreConfig class."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = StoreConfig()
            assert config.backend == "memory"
            assert config.key_prefix == "blackjack:"

    def test_redis_backend(self):
        with patch.dict(os.environ, {"STORE_BACKEND": "redis"}):
            assert StoreConfig().backend == "redis"


class TestGameConfig:
    """Tests for GameConfig class."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = GameConfig()
            assert config.decks_amount == 1
            assert config.max_decks == 8
            assert config.dealer_stand_threshold == 16
            assert config.max_seats == 7

    def test_from_env(self):
        with patch.dict(os.environ, {"DEALER_STAND_THRESHOLD": "17", "MAX_SEATS": "4"}):
            config = GameConfig()
            assert config.dealer_stand_threshold == 17
            assert config.max_seats == 4

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            GameConfig().max_seats = 9  # type: ignore[misc]


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig()
            assert config.debug is False
            assert config.port == 8000
            assert config.log_level == "INFO"
            assert config.leave_on_disconnect is True

    def test_log_level_is_upper_cased(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            assert AppConfig().log_level == "DEBUG"

    def test_leave_on_disconnect_from_env(self):
        with patch.dict(os.environ, {"LEAVE_ON_DISCONNECT": "false"}):
            assert AppConfig().leave_on_disconnect is False
