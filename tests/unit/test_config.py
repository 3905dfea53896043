"""Tests for configuration validation"""
import pytest
from unittest.mock import patch

from quest_engine import config
from quest_engine.exceptions import ConfigurationError


class TestConfigValidation:
    """Test validate_config() against policy settings"""

    def test_defaults_are_valid(self):
        """Default settings pass validation"""
        config.validate_config()

    def test_default_values(self):
        assert config.XP_CURVE_BASE == 100
        assert config.XP_CURVE_EXPONENT == 1.5
        assert config.XP_CURVE_LINEAR == 50
        assert config.STREAK_WARNING_HOURS == 4

    def test_priority_order_enforced(self):
        with patch.object(config, "XP_PRIORITY_MEDIUM", 30):
            with pytest.raises(ConfigurationError):
                config.validate_config()

    def test_flat_curve_rejected(self):
        with patch.object(config, "XP_CURVE_BASE", 0), patch.object(config, "XP_CURVE_LINEAR", 0):
            with pytest.raises(ConfigurationError):
                config.validate_config()

    def test_non_positive_exponent_rejected(self):
        with patch.object(config, "XP_CURVE_EXPONENT", 0):
            with pytest.raises(ConfigurationError):
                config.validate_config()

    def test_warning_hours_range(self):
        with patch.object(config, "STREAK_WARNING_HOURS", 0):
            with pytest.raises(ConfigurationError):
                config.validate_config()

    def test_unknown_timezone_rejected(self):
        with patch.object(config, "DEFAULT_TIMEZONE", "Mars/Olympus_Mons"):
            with pytest.raises(ConfigurationError):
                config.validate_config()
