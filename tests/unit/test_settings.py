"""
Configuration Unit Tests
========================

Tests TOML loading, environment overrides and validation rules.
"""

import pytest

from sanerss.config.settings import (
    AIProvider,
    FilterRules,
    PollingSettings,
    SaneRSSSettings,
    get_settings,
    load_settings,
)
from sanerss.utils.exceptions import ConfigurationError, ErrorCode

SAMPLE_CONFIG = """
known_items_file = "state/known.json"

[polling]
interval_seconds = 120
max_items_per_feed = 20
known_items_capacity = 200

[ai]
provider = "groq"

[global_filters]
reject = ["sponsored"]

[feeds.tech]
url = "https://example.com/tech.xml"

[feeds.tech.filters]
accept = ["rust", "  "]
reject = ["crypto"]

[feeds.news]
url = "https://example.com/news.xml"
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


class TestLoadSettings:
    def test_load_toml(self, config_file):
        settings = load_settings(str(config_file))

        assert settings.polling.interval_seconds == 120
        assert settings.polling.parallel_feeds == 5
        assert settings.ai.provider == AIProvider.GROQ
        assert set(settings.feeds) == {"tech", "news"}
        assert settings.feeds["tech"].filters.accept == ["rust"]
        assert settings.feeds["news"].filters.is_empty()

    def test_known_items_relative_to_config(self, config_file):
        settings = load_settings(str(config_file))

        assert settings.known_items_file == config_file.parent / "state" / "known.json"
        assert settings.known_items_file.parent.is_dir()

    def test_env_overrides_toml(self, config_file, monkeypatch):
        monkeypatch.setenv("SANERSS_POLLING__INTERVAL_SECONDS", "42")

        assert load_settings(str(config_file)).polling.interval_seconds == 42

    def test_config_path_from_env(self, config_file, monkeypatch):
        monkeypatch.setenv("SANERSS_CONFIG_FILE", str(config_file))

        assert set(load_settings().feeds) == {"tech", "news"}

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(str(tmp_path / "nope.toml"))
        assert exc_info.value.error_code == ErrorCode.CONFIG_MISSING

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[polling\ninterval_seconds = ", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(str(path))
        assert exc_info.value.error_code in (ErrorCode.CONFIG_PARSE_ERROR, ErrorCode.CONFIG_INVALID)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[feeds.tech]\nurl = "ftp://example.com/feed"\n', encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(str(path))
        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID

    def test_filters_require_api_key(self, config_file, monkeypatch):
        monkeypatch.delenv("SANERSS_AI__GROQ_API_KEY", raising=False)

        with pytest.raises(ConfigurationError, match="no API key"):
            load_settings(str(config_file))

        assert load_settings(str(config_file), validate=False).ai.groq_api_key is None

    def test_get_settings_caches(self, config_file):
        first = get_settings(reload=True, config_path=str(config_file))
        assert get_settings() is first
        assert get_settings(reload=True, config_path=str(config_file)) is not first


class TestSettingsModels:
    def test_defaults(self):
        polling = PollingSettings()
        assert polling.interval_seconds == 300
        assert polling.max_items_per_feed == 60
        assert polling.known_items_capacity == 1000
        assert polling.parallel_feeds == 5
        assert polling.prime_on_startup is True

    def test_known_capacity_must_cover_feed_capacity(self):
        with pytest.raises(ValueError, match="known_items_capacity"):
            PollingSettings(max_items_per_feed=100, known_items_capacity=50)

    def test_filter_rules_normalized(self):
        rules = FilterRules(accept=None, reject=[" crypto ", ""])
        assert rules.accept == []
        assert rules.reject == ["crypto"]

    @pytest.mark.parametrize("name", ["a/b", " padded", ""])
    def test_invalid_feed_names(self, name, tmp_path):
        with pytest.raises(ValueError):
            SaneRSSSettings(
                known_items_file=tmp_path / "k.json",
                feeds={name: {"url": "https://example.com/feed"}},
            )

    def test_filters_for_merges_global_first(self, make_settings):
        settings = make_settings(
            global_filters={"accept": ["ai"], "reject": ["ads"]},
            feeds={
                "tech": {
                    "url": "https://example.com/tech.xml",
                    "filters": {"accept": ["rust"]},
                }
            },
        )

        assert settings.filters_for("tech") == (["ai", "rust"], ["ads"])
        assert settings.filters_for("unknown") == (["ai"], ["ads"])

    def test_debug_forces_debug_level(self, make_settings):
        assert make_settings(debug=True).get_effective_log_level() == "DEBUG"
        assert make_settings().get_effective_log_level() == "INFO"
