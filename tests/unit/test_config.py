"""
Unit tests for ServerConfig.
"""

import pytest

from hike.config import ConfigurationError, ServerConfig


class TestDefaults:

    def test_defaults(self):
        config = ServerConfig()

        assert config.root_dir == "."
        assert config.default_page == "index.html"
        assert config.debug is False
        assert config.buffer_size == 512
        assert config.single_read is False
        assert config.reject_malformed is False
        assert config.confine_to_root is True

    def test_defaults_validate(self):
        ServerConfig().validate()


class TestValidate:

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 70000},
        {"min_workers": 0},
        {"min_workers": 4, "max_workers": 2},
        {"queue_size": 0},
        {"buffer_size": 0},
        {"buffer_size": 1024, "max_request_size": 512},
        {"timeout": 0},
        {"log_format": "xml"},
    ])
    def test_rejects(self, overrides):
        with pytest.raises(ConfigurationError):
            ServerConfig(**overrides).validate()

    def test_port_zero_allowed(self):
        ServerConfig(port=0).validate()

    def test_no_timeout_allowed(self):
        ServerConfig(timeout=None).validate()

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestFromEnv:

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("HIKE_HOST", "0.0.0.0")
        monkeypatch.setenv("HIKE_PORT", "3000")
        monkeypatch.setenv("HIKE_ROOT_DIR", "/srv/www")
        monkeypatch.setenv("HIKE_DEFAULT_PAGE", "home.htm")
        monkeypatch.setenv("HIKE_DEBUG", "yes")
        monkeypatch.setenv("HIKE_WORKERS", "32")
        monkeypatch.setenv("HIKE_TIMEOUT", "2.5")
        monkeypatch.setenv("HIKE_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 3000
        assert config.root_dir == "/srv/www"
        assert config.default_page == "home.htm"
        assert config.debug is True
        assert config.max_workers == 32
        assert config.timeout == 2.5
        assert config.log_format == "json"

    def test_small_worker_count_is_valid(self, monkeypatch):
        monkeypatch.setenv("HIKE_WORKERS", "2")

        config = ServerConfig.from_env()
        config.validate()

        assert config.min_workers == 2
        assert config.max_workers == 2

    def test_large_worker_count_keeps_min_workers(self, monkeypatch):
        monkeypatch.setenv("HIKE_WORKERS", "32")
        assert ServerConfig.from_env().min_workers == 4

    def test_falls_back_to_defaults(self, monkeypatch):
        for name in ("HIKE_HOST", "HIKE_PORT", "HIKE_DEBUG", "HIKE_ROOT_DIR"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.root_dir == "."
        assert config.debug is False

    @pytest.mark.parametrize("value", ["0", "false", "no", "off", ""])
    def test_debug_false_values(self, monkeypatch, value):
        monkeypatch.setenv("HIKE_DEBUG", value)
        assert ServerConfig.from_env().debug is False
