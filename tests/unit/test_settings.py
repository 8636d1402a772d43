"""Unit tests for SessionSettings."""

import pytest

from retail_session.config.settings import SessionSettings


class TestSessionSettings:
    def test_defaults_are_correct(self):
        settings = SessionSettings()

        assert settings.log_level == "INFO"
        assert settings.log_json is True
        assert settings.proxy_config_path == "config/proxies.json"
        assert settings.proxy_mode == "none"
        assert settings.optimize == "balanced"
        assert settings.optimization_preset == "balanced"
        assert settings.block_rules_path is None
        assert settings.landing_url == "https://www.coupang.com"
        assert settings.target_page_pattern == "/np/search"
        assert settings.landing_page_pattern is None
        assert settings.blocked_log_limit == 5
        assert settings.phase_trigger == "request"
        assert settings.navigation_timeout_ms == 60000
        assert settings.headless is False
        assert settings.browser_channel is None

    def test_env_prefix_is_retail_session(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RETAIL_SESSION_PROXY_MODE", "sequential")
        monkeypatch.setenv("RETAIL_SESSION_HEADLESS", "true")
        monkeypatch.setenv("RETAIL_SESSION_BLOCKED_LOG_LIMIT", "10")

        settings = SessionSettings()
        assert settings.proxy_mode == "sequential"
        assert settings.headless is True
        assert settings.blocked_log_limit == 10

    @pytest.mark.parametrize("value", ["off", "false", "", "none"])
    def test_optimization_can_be_disabled(self, monkeypatch: pytest.MonkeyPatch, value):
        monkeypatch.setenv("RETAIL_SESSION_OPTIMIZE", value)
        settings = SessionSettings()
        assert settings.optimize == "off"
        assert settings.optimization_preset is None

    def test_optimize_preset_is_normalized(self):
        assert SessionSettings(optimize="Maximum").optimization_preset == "maximum"
        assert SessionSettings(optimize="true").optimization_preset == "balanced"

    def test_unknown_preset_rejected(self):
        with pytest.raises(Exception):
            SessionSettings(optimize="turbo")

    def test_invalid_pattern_rejected(self):
        with pytest.raises(Exception):
            SessionSettings(target_page_pattern="([unclosed")
        with pytest.raises(Exception):
            SessionSettings(landing_page_pattern="*bad")

    def test_phase_trigger_validation(self):
        assert SessionSettings(phase_trigger="navigation").phase_trigger == "navigation"
        with pytest.raises(Exception):
            SessionSettings(phase_trigger="timer")

    def test_negative_log_limit_rejected(self):
        with pytest.raises(Exception):
            SessionSettings(blocked_log_limit=-1)

    def test_navigation_timeout_validation(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RETAIL_SESSION_NAVIGATION_TIMEOUT_MS", "10")
        with pytest.raises(Exception):
            SessionSettings()
