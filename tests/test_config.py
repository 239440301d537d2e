"""
Tests for the config module.

Tests configuration loading, validation, API key resolution and generation
of the default configuration file.
"""

import os
import stat
from unittest.mock import patch

import pytest
import yaml

from keap_contacts.config.generator import generate_default_config, save_config_file
from keap_contacts.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    ConfigLoader,
    resolve_api_key,
)
from keap_contacts.utils.paths import DEFAULT_CONFIG_DIR


class TestConfigLoaderInitialization:
    """Tests for ConfigLoader initialization."""

    def test_default_config_dir(self, monkeypatch):
        """Test that default config dir is used when no argument provided."""
        monkeypatch.delenv("KEAP_CONTACTS_CONFIG_DIR", raising=False)
        loader = ConfigLoader()
        assert loader.config_dir == DEFAULT_CONFIG_DIR.resolve()

    def test_config_dir_from_environment_variable(self, tmp_path, monkeypatch):
        """Test that config dir can be set via environment variable."""
        monkeypatch.setenv("KEAP_CONTACTS_CONFIG_DIR", str(tmp_path))
        assert ConfigLoader().config_dir == tmp_path.resolve()

    def test_config_path(self, tmp_path):
        """Test config_path joins directory and file name."""
        loader = ConfigLoader(config_dir=tmp_path, config_file="custom.yaml")
        assert loader.config_path == tmp_path.resolve() / "custom.yaml"

    def test_default_config_file_name(self, tmp_path):
        """Test that default config file name is set correctly."""
        assert ConfigLoader(config_dir=tmp_path).config_file == DEFAULT_CONFIG_FILE


class TestConfigLoading:
    """Tests for configuration file loading."""

    @pytest.fixture
    def loader(self, tmp_path):
        """Create a ConfigLoader instance with temp config dir."""
        return ConfigLoader(config_dir=tmp_path)

    def test_load_nonexistent_file_returns_empty_dict(self, loader):
        """Test loading non-existent config file returns empty dict."""
        assert loader.load() == {}

    def test_load_valid_yaml_file(self, loader, tmp_path):
        """Test loading a valid YAML configuration file."""
        config_data = {"verbose": True, "timeout": 10, "api_key_env": "MY_KEY"}
        (tmp_path / DEFAULT_CONFIG_FILE).write_text(
            yaml.dump(config_data), encoding="utf-8"
        )

        assert loader.load() == config_data

    def test_load_from_file_with_string_path(self, loader, tmp_path):
        """Test load_from_file accepts string paths."""
        config_path = tmp_path / "other.yaml"
        config_path.write_text("max_retries: 5\n", encoding="utf-8")

        assert loader.load_from_file(str(config_path)) == {"max_retries": 5}

    def test_load_yaml_with_only_comments_returns_empty_dict(self, loader, tmp_path):
        """Test loading the generated template returns empty dict."""
        (tmp_path / DEFAULT_CONFIG_FILE).write_text(
            generate_default_config(), encoding="utf-8"
        )
        assert loader.load() == {}

    def test_load_invalid_yaml_raises_config_error(self, loader, tmp_path):
        """Test loading invalid YAML raises ConfigError."""
        (tmp_path / DEFAULT_CONFIG_FILE).write_text(
            "invalid: yaml: {{{", encoding="utf-8"
        )

        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            loader.load()

    def test_load_non_dict_yaml_raises_config_error(self, loader, tmp_path):
        """Test loading YAML that is not a dict raises ConfigError."""
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("- list\n- items\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="must contain a YAML dictionary"):
            loader.load()

    @patch("builtins.open", side_effect=OSError("Permission denied"))
    def test_load_permission_error_raises_config_error(
        self, mock_open, loader, tmp_path
    ):
        """Test loading file with permission error raises ConfigError."""
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("verbose: true", encoding="utf-8")

        with pytest.raises(ConfigError, match="Failed to read configuration file"):
            loader.load()

    def test_load_and_validate(self, loader, tmp_path):
        """Test load_and_validate rejects a bad value."""
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("max_retries: 0\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="max_retries"):
            loader.load_and_validate()


class TestConfigValidation:
    """Tests for configuration validation."""

    @pytest.fixture
    def loader(self, tmp_path):
        return ConfigLoader(config_dir=tmp_path)

    def test_validate_empty_config(self, loader):
        """Test that an empty config is valid."""
        loader.validate({})

    def test_validate_full_config(self, loader):
        """Test a config using every option."""
        loader.validate(
            {
                "base_url": "https://api.infusionsoft.com/crm/rest",
                "api_key_env": "KEAP_API_KEY",
                "timeout": 12.5,
                "max_retries": 4,
                "initial_retry_delay": 1,
                "max_retry_delay": 20.0,
                "verbose": False,
                "log_dir": "~/logs",
                "log_retention_count": 0,
            }
        )

    def test_validate_non_dict_raises_error(self, loader):
        """Test that non-dict config raises ConfigError."""
        with pytest.raises(ConfigError, match="must be a dictionary"):
            loader.validate(["verbose"])

    def test_validate_unknown_keys_are_allowed(self, loader):
        """Test unknown keys are ignored."""
        loader.validate({"future_option": 1})

    @pytest.mark.parametrize(
        "key,value",
        [
            ("verbose", "yes"),
            ("timeout", "30"),
            ("max_retries", 2.5),
            ("max_retries", True),
            ("base_url", 42),
            ("log_dir", ["a"]),
        ],
    )
    def test_validate_wrong_type_raises_error(self, loader, key, value):
        """Test values of the wrong type are rejected."""
        with pytest.raises(ConfigError, match=f"Invalid type for '{key}'"):
            loader.validate({key: value})

    def test_validate_base_url_scheme(self, loader):
        """Test base_url must be http(s)."""
        with pytest.raises(ConfigError, match="base_url"):
            loader.validate({"base_url": "ftp://example.com"})

    @pytest.mark.parametrize(
        "key,value",
        [
            ("max_retries", 0),
            ("log_retention_count", -1),
            ("timeout", 0),
            ("initial_retry_delay", -1.0),
            ("max_retry_delay", 0),
        ],
    )
    def test_validate_out_of_range(self, loader, key, value):
        """Test numeric options outside their range are rejected."""
        with pytest.raises(ConfigError, match=key):
            loader.validate({key: value})


class TestResolveApiKey:
    """Tests for resolve_api_key."""

    def test_key_from_config(self, monkeypatch):
        """Test api_key in config wins."""
        monkeypatch.setenv("KEAP_API_KEY", "from-env")
        assert resolve_api_key({"api_key": "from-config"}) == "from-config"

    def test_key_from_named_env_var(self, monkeypatch):
        """Test api_key_env names the variable to read."""
        monkeypatch.setenv("MY_KEAP_KEY", "named")
        monkeypatch.setenv("KEAP_API_KEY", "default")
        assert resolve_api_key({"api_key_env": "MY_KEAP_KEY"}) == "named"

    def test_key_from_default_env_var(self, monkeypatch):
        """Test KEAP_API_KEY is used by default."""
        monkeypatch.setenv("KEAP_API_KEY", "default")
        assert resolve_api_key({}) == "default"

    def test_missing_key_raises(self, monkeypatch):
        """Test a missing key names the variable to set."""
        monkeypatch.delenv("KEAP_API_KEY", raising=False)
        with pytest.raises(ConfigError, match="KEAP_API_KEY"):
            resolve_api_key({})

    def test_named_env_var_not_set(self, monkeypatch):
        """Test the error names the configured variable."""
        monkeypatch.delenv("OTHER_KEY", raising=False)
        with pytest.raises(ConfigError, match="OTHER_KEY"):
            resolve_api_key({"api_key_env": "OTHER_KEY"})


class TestConfigGenerator:
    """Tests for default configuration generation."""

    def test_generate_default_config_is_valid_yaml(self):
        """Test the template parses to nothing since all options are commented."""
        assert yaml.safe_load(generate_default_config()) is None

    def test_generate_default_config_documents_options(self):
        """Test every option is mentioned."""
        content = generate_default_config()
        for key in (
            "api_key_env",
            "base_url",
            "timeout",
            "max_retries",
            "initial_retry_delay",
            "max_retry_delay",
            "verbose",
            "log_dir",
            "log_retention_count",
        ):
            assert f"# {key}:" in content


class TestSaveConfigFile:
    """Tests for save_config_file."""

    def test_save_config_file_creates_file(self, tmp_path):
        """Test the file and its parent directories are created."""
        config_path = tmp_path / "nested" / "config.yaml"

        success, error = save_config_file(config_path)

        assert success is True
        assert error is None
        assert config_path.read_text() == generate_default_config()

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_save_config_file_sets_secure_permissions(self, tmp_path):
        """Test the file is readable by its owner only."""
        config_path = tmp_path / "config.yaml"
        save_config_file(config_path)
        assert stat.S_IMODE(config_path.stat().st_mode) == 0o600

    def test_existing_file_without_overwrite(self, tmp_path):
        """Test an existing file is kept unless overwrite is set."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("verbose: true\n")

        success, error = save_config_file(config_path)

        assert success is False
        assert "already exists" in error
        assert config_path.read_text() == "verbose: true\n"

    def test_existing_file_with_overwrite(self, tmp_path):
        """Test overwrite replaces the file."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("verbose: true\n")

        success, _ = save_config_file(config_path, overwrite=True)

        assert success is True
        assert config_path.read_text() == generate_default_config()

    @patch("pathlib.Path.write_text", side_effect=OSError("disk full"))
    def test_write_error_reported(self, mock_write, tmp_path):
        """Test write failures are returned, not raised."""
        success, error = save_config_file(tmp_path / "config.yaml")

        assert success is False
        assert "disk full" in error
