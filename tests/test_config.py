# tests/test_config.py
"""Test configuration loading"""

from pathlib import Path

import pytest

from ncm_tagfix.core.config import Config, load_config
from ncm_tagfix.core.exceptions import ConfigError


class TestLoadConfig:
    """Test load_config()"""

    def test_defaults_without_file(self, temp_dir, monkeypatch):
        """Test a missing config.yaml in the working directory means defaults"""
        monkeypatch.chdir(temp_dir)
        config = load_config()
        assert config == Config()
        assert config.repair.threads == 16
        assert config.repair.skip_marker_extension == ".ncm"
        assert config.artwork.enabled
        assert config.artwork.timeout == 30.0
        assert config.output.log_directory is None

    def test_full_file(self, temp_dir):
        """Test every section is read"""
        path = temp_dir / "config.yaml"
        path.write_text(
            "repair:\n"
            "  threads: 4\n"
            "  skip_marker_extension: .lock\n"
            "artwork:\n"
            "  enabled: false\n"
            "  timeout: 5\n"
            "  user_agent: custom/2.0\n"
            "output:\n"
            f"  log_directory: {temp_dir / 'logs'}\n",
            encoding="utf-8"
        )
        config = load_config(path)
        assert config.repair.threads == 4
        assert config.repair.skip_marker_extension == ".lock"
        assert not config.artwork.enabled
        assert config.artwork.timeout == 5.0
        assert config.artwork.user_agent == "custom/2.0"
        assert config.output.log_directory == (temp_dir / "logs").resolve()

    def test_empty_file(self, temp_dir):
        """Test an empty file means defaults"""
        path = temp_dir / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == Config()

    def test_explicit_missing_file(self, temp_dir):
        """Test an explicit path must exist"""
        with pytest.raises(ConfigError):
            load_config(temp_dir / "missing.yaml")

    @pytest.mark.parametrize("content", [
        "repair: [1, 2\n",
        "- just\n- a list\n",
        "repair: 3\n",
        "repair:\n  threads: 0\n",
        "repair:\n  threads: true\n",
        "repair:\n  skip_marker_extension: ncm\n",
        "artwork:\n  timeout: -1\n",
        "artwork:\n  enabled: maybe\n",
    ])
    def test_invalid(self, temp_dir, content):
        """Test invalid YAML and invalid values raise ConfigError"""
        path = temp_dir / "config.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_example_config_is_valid(self):
        """Test the shipped example file loads"""
        example = Path(__file__).resolve().parent.parent / "config.example.yaml"
        assert load_config(example) == Config()
