"""Unit tests for tradejournal.cli.commands.common."""

import pytest

from tradejournal.cli.commands.common import setup_system
from tradejournal.system import LoggerFactory, get_system_config


@pytest.fixture
def config_file(tmp_path):
    config = tmp_path / "system.yaml"
    config.write_text(
        """
logging:
  level: WARNING
  enable_file: false
"""
    )
    return config


class TestSetupSystem:
    def test_log_level_override_configures_logging(self, config_file):
        result = setup_system(config_file, "debug")

        assert result.logging.level == "DEBUG"
        assert LoggerFactory.get_config().level == "DEBUG"

    def test_log_level_override_leaves_cached_config_alone(self, config_file):
        setup_system(config_file, "DEBUG")

        assert get_system_config().logging.level == "WARNING"

    def test_without_override_uses_file_level(self, config_file):
        result = setup_system(config_file, None)

        assert result.logging.level == "WARNING"
        assert result is get_system_config()
        assert LoggerFactory.get_config().level == "WARNING"
