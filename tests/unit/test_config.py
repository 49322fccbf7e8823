"""Unit tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from dlcheck.config import (
    BrowserSettings,
    DataLayerSettings,
    RunnerConfig,
    find_config_file,
    load_config
)

CONFIG_YAML = """
base_url: https://shop.example.com
verbose: false
browser:
  engine: chrome
  headless: true
data_layer:
  variable_name: customDataLayer
environments:
  staging:
    base_url: https://staging.shop.example.com
    browser:
      headless: false
"""


@pytest.fixture(autouse=True)
def no_env(monkeypatch):
    monkeypatch.delenv("DLCHECK_ENV", raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "dlcheck.yaml"
    path.write_text(CONFIG_YAML)
    return path


class TestRunnerConfig:
    """Tests for RunnerConfig defaults and validation."""

    def test_defaults(self):
        config = RunnerConfig()

        assert config.base_url == "http://localhost:3000"
        assert config.timeout_ms == 30000
        assert config.test_match == "**/*.dltest.py"
        assert config.capture_events_on_failure is True
        assert config.browser.engine == "chromium"
        assert config.browser.headless is True
        assert config.data_layer.variable_name == "dataLayer"
        assert config.data_layer.wait_timeout_ms == 5000
        assert config.network.ga4_timeout_ms == 5000

    @pytest.mark.parametrize("alias,engine", [
        ("chrome", "chromium"),
        ("Safari", "webkit"),
        ("firefox", "firefox"),
    ])
    def test_engine_aliases(self, alias, engine):
        assert BrowserSettings(engine=alias).engine == engine

    def test_unknown_engine(self):
        with pytest.raises(ValidationError):
            BrowserSettings(engine="netscape")

    @pytest.mark.parametrize("name", ["dataLayer", "_dl", "$layer", "dl2"])
    def test_valid_variable_names(self, name):
        assert DataLayerSettings(variable_name=name).variable_name == name

    @pytest.mark.parametrize("name", ["2dl", "data-layer", "window.dl"])
    def test_invalid_variable_names(self, name):
        with pytest.raises(ValidationError):
            DataLayerSettings(variable_name=name)

    def test_non_positive_timeouts(self):
        with pytest.raises(ValidationError):
            RunnerConfig(timeout_ms=0)
        with pytest.raises(ValidationError):
            DataLayerSettings(poll_interval_ms=-1)
        with pytest.raises(ValidationError):
            RunnerConfig(network={"ga4_timeout_ms": 0})

    def test_for_environment_merges_nested(self):
        config = RunnerConfig(
            browser={"engine": "firefox"},
            environments={"ci": {"browser": {"headless": False}, "verbose": True}},
        )

        ci = config.for_environment("ci")

        assert ci.browser.engine == "firefox"
        assert ci.browser.headless is False
        assert ci.verbose is True
        assert ci.environments == config.environments

    def test_unknown_environment_returns_base(self):
        config = RunnerConfig()

        assert config.for_environment("nope") is config
        assert config.for_environment(None) is config


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_yaml(self, config_file):
        config = load_config(config_file)

        assert config.base_url == "https://shop.example.com"
        assert config.browser.engine == "chromium"
        assert config.data_layer.variable_name == "customDataLayer"

    def test_explicit_environment(self, config_file):
        config = load_config(config_file, environment="staging")

        assert config.base_url == "https://staging.shop.example.com"
        assert config.browser.headless is False
        assert config.data_layer.variable_name == "customDataLayer"

    def test_environment_from_env_var(self, config_file, monkeypatch):
        monkeypatch.setenv("DLCHECK_ENV", "staging")

        assert load_config(config_file).base_url == "https://staging.shop.example.com"

    def test_overrides_take_precedence(self, config_file):
        config = load_config(
            config_file, verbose=True, base_url=None, browser={"headless": False}
        )

        assert config.verbose is True
        assert config.base_url == "https://shop.example.com"
        assert config.browser.headless is False
        assert config.browser.engine == "chromium"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("base_url: [unclosed")

        with pytest.raises(yaml.YAMLError):
            load_config(path)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(path) == RunnerConfig()

    def test_default_file_discovered_in_cwd(self, config_file, monkeypatch):
        monkeypatch.chdir(config_file.parent)

        assert find_config_file().resolve() == config_file.resolve()
        assert load_config().base_url == "https://shop.example.com"

    def test_no_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert find_config_file() is None
        assert load_config().base_url == "http://localhost:3000"
