"""Tests for client configuration."""
from bazaar.core.config import DEFAULT_PROTECTED_PREFIXES, Settings


class TestProtectedPrefixesParsing:
    """Tests for protected prefix parsing from environment variables."""

    def test_default_protected_prefixes(self) -> None:
        """Defaults cover dashboards, checkout and orders."""
        settings = Settings(_env_file=None)
        assert settings.protected_prefixes == DEFAULT_PROTECTED_PREFIXES

    def test_parse_comma_separated(self) -> None:
        """Comma-separated prefixes are split."""
        settings = Settings(_env_file=None, protected_prefixes="/dashboard,/checkout")
        assert settings.protected_prefixes == ["/dashboard", "/checkout"]

    def test_parse_with_whitespace_and_trailing_comma(self) -> None:
        """Whitespace is stripped and empty entries dropped."""
        settings = Settings(_env_file=None, protected_prefixes="  /dashboard , /checkout ,")
        assert settings.protected_prefixes == ["/dashboard", "/checkout"]

    def test_list_passthrough(self) -> None:
        """A list is passed through unchanged."""
        settings = Settings(_env_file=None, protected_prefixes=["/account"])
        assert settings.protected_prefixes == ["/account"]


class TestEnvironment:
    """Tests for BAZAAR_ prefixed environment variables."""

    def test_reads_prefixed_env_vars(self, monkeypatch) -> None:  # noqa: ANN001
        """Settings come from BAZAAR_* variables."""
        monkeypatch.setenv("BAZAAR_API_BASE_URL", "https://api.example.com")
        monkeypatch.setenv("BAZAAR_REDIS_ENABLED", "true")
        monkeypatch.setenv("BAZAAR_DEFAULT_STALE_TIME", "15")
        settings = Settings(_env_file=None)
        assert settings.api_base_url == "https://api.example.com"
        assert settings.redis_enabled is True
        assert settings.default_stale_time == 15.0

    def test_defaults(self) -> None:
        """Redis is off and data is immediately stale by default."""
        settings = Settings(_env_file=None)
        assert settings.redis_enabled is False
        assert settings.default_stale_time == 0.0
        assert settings.login_path == "/auth"
        assert settings.landing_path == "/"
