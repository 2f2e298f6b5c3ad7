"""Tests for settings and config constants."""

import pytest
from pydantic import ValidationError

from freightdesk.config import Settings, UserRole


@pytest.mark.unit
class TestUserRole:
    def test_roles_defined(self) -> None:
        assert UserRole.CUSTOMER == "customer"
        assert UserRole.PILOT == "pilot"
        assert UserRole.ADMINISTRATOR == "administrator"

    def test_all_values_unique(self) -> None:
        assert len(UserRole.ALL) == len(set(UserRole.ALL)) == 3


@pytest.mark.unit
class TestSettings:
    def _settings(self, **overrides: object) -> Settings:
        values: dict[str, object] = {
            "SECRET_KEY": "k" * 40,
            "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)  # type: ignore[arg-type]

    def test_refresh_defaults(self) -> None:
        s = self._settings()

        assert s.REFRESH_TOKEN_EXPIRE_DAYS == 30
        assert s.REFRESH_TOKEN_BYTES == 32
        assert s.REFRESH_TOKEN_RETENTION_EXPIRED_DAYS == 7
        assert s.REFRESH_TOKEN_RETENTION_DEACTIVATED_DAYS == 7
        assert s.ACCESS_TOKEN_EXPIRE_MINUTES == 15

    def test_cors_origins_from_comma_separated_string(self) -> None:
        s = self._settings(CORS_ORIGINS="https://a.example, https://b.example")
        assert s.CORS_ORIGINS == ["https://a.example", "https://b.example"]

    def test_refresh_entropy_floor_enforced(self) -> None:
        with pytest.raises(ValidationError):
            self._settings(REFRESH_TOKEN_BYTES=16)

    def test_unknown_environment_rejected(self) -> None:
        with pytest.raises(ValidationError):
            self._settings(ENVIRONMENT="qa")
