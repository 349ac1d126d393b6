"""Tests for configuration loading."""

from increment.config import IncrementConfig, get_config, load_config
from increment.ingestion import derive_channels, performance_channels


class TestConfig:
    """Test config defaults and YAML handling."""

    def test_defaults(self):
        """Defaults carry the standard keys and window lengths."""
        config = IncrementConfig()

        assert config.channels.reserved_keys == ("date", "baseline", "unattributed")
        assert config.windows.last_3m == 13
        assert config.windows.last_6m == 26
        assert config.windows.last_12m == 52
        assert "Fta Tv" in config.channels.non_performance

    def test_yaml_round_trip(self, tmp_path):
        """Config written to YAML loads back identically."""
        config = IncrementConfig()
        config.channels.non_performance = ["Radio"]
        path = tmp_path / "config.yaml"

        config.to_yaml(path)
        loaded = IncrementConfig.from_yaml(path)

        assert loaded == config

    def test_partial_yaml_keeps_defaults(self, tmp_path):
        """Sections missing from the file fall back to defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("windows:\n  last_3m: 4\n")

        config = IncrementConfig.from_yaml(path)

        assert config.windows.last_3m == 4
        assert config.windows.last_6m == 26
        assert config.server.api_port == 8000

    def test_load_config_searches_working_dir(self, tmp_path, monkeypatch):
        """load_config() picks up config/config.yaml and installs it globally."""
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("project_name: Acme\n")
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.project_name == "Acme"
        assert get_config() is config

    def test_load_config_defaults(self, tmp_path, monkeypatch):
        """No file anywhere means defaults."""
        monkeypatch.chdir(tmp_path)

        assert load_config() == IncrementConfig()

    def test_denylist_from_config(self, tmp_path):
        """The non-performance list is configurable."""
        path = tmp_path / "config.yaml"
        path.write_text("channels:\n  non_performance: [Display]\n")
        config = IncrementConfig.from_yaml(path)

        channels = derive_channels([{"date": "W1", "Display": 1, "TV": 2}], config.channels)

        assert performance_channels(channels, config.channels) == ["TV"]
