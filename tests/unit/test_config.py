"""
Tests for configuration loading
"""


class TestConfigManager:
    """Tests for YAML config and cache policies"""

    def test_cache_policy_for_known_query(self, config):
        """Configured queries return their own stale/cache times"""
        assert config.get_cache_policy("agents", "voices") == {"stale_time": 86400.0, "cache_time": 172800.0}

    def test_cache_policy_falls_back_to_defaults(self, config):
        """Unknown queries use cache.defaults"""
        assert config.get_cache_policy("agents", "unknown") == {"stale_time": 0.0, "cache_time": 300.0}

    def test_dot_notation(self, config):
        """Nested values are reachable with dotted keys"""
        assert config.get("session.refresh_interval") == 300
        assert config.get("upload.max_attempts") == 60
        assert config.get("missing.key", "fallback") == "fallback"

    def test_environment_override(self, tmp_path):
        """<env>.yaml is merged over default.yaml"""
        from voiceai_console.core.config import ConfigManager

        (tmp_path / "default.yaml").write_text("session:\n  refresh_interval: 300\n  refresh_threshold: 300\n")
        (tmp_path / "staging.yaml").write_text("session:\n  refresh_interval: 60\n")

        config = ConfigManager(env="staging", config_dir=str(tmp_path))

        assert config.get("session.refresh_interval") == 60
        assert config.get("session.refresh_threshold") == 300

    def test_env_var_substitution(self, tmp_path, monkeypatch):
        """${VAR} values are read from the environment"""
        from voiceai_console.core.config import ConfigManager

        monkeypatch.setenv("CONSOLE_POLL_INTERVAL", "5")
        (tmp_path / "default.yaml").write_text("upload:\n  poll_interval: ${CONSOLE_POLL_INTERVAL}\n")

        assert ConfigManager(config_dir=str(tmp_path)).get("upload.poll_interval") == "5"


class TestSettings:
    """Tests for environment settings"""

    def test_prefixed_environment_variables(self, monkeypatch):
        """VOICEAI_* variables configure the console"""
        from voiceai_console.core.config import Settings

        monkeypatch.setenv("VOICEAI_API_URL", "https://api.voiceai.test/api/v1")
        monkeypatch.setenv("VOICEAI_ENVIRONMENT", "production")

        settings = Settings()

        assert settings.api_url == "https://api.voiceai.test/api/v1"
        assert settings.is_development is False

    def test_log_level_from_environment(self, monkeypatch):
        """VOICEAI_LOG_LEVEL sets the configured log level"""
        from voiceai_console.core.config import Settings

        monkeypatch.setenv("VOICEAI_LOG_LEVEL", "debug")

        assert Settings().log_level.upper() == "DEBUG"

    def test_environment_selects_login_route(self):
        """Only development consoles log in through test-login"""
        import httpx
        from voiceai_console.context import ConsoleContext
        from voiceai_console.core.config import Settings

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404)))

        production = ConsoleContext(settings=Settings(environment="production"), http_client=http_client)
        development = ConsoleContext(settings=Settings(environment="development"), http_client=http_client)

        assert production.session.dev_login is False
        assert development.session.dev_login is True
