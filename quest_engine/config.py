"""Configuration management"""
import os
from dotenv import load_dotenv
import pytz

from quest_engine.exceptions import ConfigurationError

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Time handling
# Calendar-day streak math runs in the timezone of the completion timestamp;
# naive timestamps coming from collaborators are interpreted in this zone.
DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Level curve: xp_for_level(n) = round(BASE * (n-1)^EXPONENT + LINEAR * (n-1))
XP_CURVE_BASE: float = float(os.getenv("XP_CURVE_BASE", "100"))
XP_CURVE_EXPONENT: float = float(os.getenv("XP_CURVE_EXPONENT", "1.5"))
XP_CURVE_LINEAR: float = float(os.getenv("XP_CURVE_LINEAR", "50"))

# Base XP per task priority
XP_PRIORITY_LOW: int = int(os.getenv("XP_PRIORITY_LOW", "10"))
XP_PRIORITY_MEDIUM: int = int(os.getenv("XP_PRIORITY_MEDIUM", "15"))
XP_PRIORITY_HIGH: int = int(os.getenv("XP_PRIORITY_HIGH", "25"))

# Streaks
STREAK_WARNING_HOURS: int = int(os.getenv("STREAK_WARNING_HOURS", "4"))


# Validation
def validate_config() -> None:
    """Validate progression policy settings"""
    if XP_CURVE_BASE < 0 or XP_CURVE_LINEAR < 0:
        raise ConfigurationError("XP curve coefficients must be non-negative")
    if XP_CURVE_BASE + XP_CURVE_LINEAR <= 0:
        raise ConfigurationError("XP curve must be strictly increasing (BASE + LINEAR > 0)")
    if XP_CURVE_EXPONENT <= 0:
        raise ConfigurationError("XP_CURVE_EXPONENT must be positive")
    if not (0 <= XP_PRIORITY_LOW < XP_PRIORITY_MEDIUM < XP_PRIORITY_HIGH):
        raise ConfigurationError(
            "Priority XP must satisfy 0 <= LOW < MEDIUM < HIGH "
            f"(got {XP_PRIORITY_LOW}/{XP_PRIORITY_MEDIUM}/{XP_PRIORITY_HIGH})"
        )
    if not (0 < STREAK_WARNING_HOURS <= 24):
        raise ConfigurationError("STREAK_WARNING_HOURS must be between 1 and 24")
    try:
        pytz.timezone(DEFAULT_TIMEZONE)
    except pytz.exceptions.UnknownTimeZoneError:
        raise ConfigurationError(f"Unknown DEFAULT_TIMEZONE: {DEFAULT_TIMEZONE}")
