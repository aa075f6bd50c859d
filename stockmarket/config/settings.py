"""
Configuration settings for the stock market.

Every option is read from an environment variable with a default, so
the command runner and the servers can be configured without flags.
"""

import logging
import os
from typing import Optional, Dict, Any, List

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings:
    """
    Stock market configuration.

    Groups:
    - market: command file, strictness, order limits
    - servers: REST and WebSocket bind addresses and keepalive
    - logging: level, main log file and trade audit file
    """

    def __init__(self):
        # Market
        self.input_file = _env_str("INPUT_FILE", "input.txt")
        self.strict_input = _env_bool("STRICT_INPUT", False)
        self.echo_commands = _env_bool("ECHO_COMMANDS", True)
        self.max_quantity = _env_int("MAX_QUANTITY", 1000000)
        self.max_price = _env_float("MAX_PRICE", 10000000.0)

        # Servers
        self.rest_host = _env_str("REST_HOST", "0.0.0.0")
        self.rest_port = _env_int("REST_PORT", 5000)
        self.websocket_host = _env_str("WEBSOCKET_HOST", "localhost")
        self.websocket_port = _env_int("WEBSOCKET_PORT", 8765)
        self.websocket_ping_interval = _env_int("WEBSOCKET_PING_INTERVAL", 20)
        self.websocket_ping_timeout = _env_int("WEBSOCKET_PING_TIMEOUT", 10)
        self.enable_cors = _env_bool("ENABLE_CORS", True)
        self.cors_origins = _env_list("CORS_ORIGINS", "*")
        self.debug = _env_bool("DEBUG", False)

        # Logging and monitoring
        self.log_level = _env_str("LOG_LEVEL", "INFO").upper()
        self.log_file = _env_str("LOG_FILE", "logs/stock_market.log")
        self.audit_log_file = _env_str("AUDIT_LOG_FILE", "logs/audit.log")
        self.enable_performance_monitoring = _env_bool("ENABLE_PERFORMANCE_MONITORING", True)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary of every option, for the statistics endpoint and logs."""
        return dict(vars(self))

    def validate(self) -> None:
        """
        Check option ranges.

        Raises:
            ValueError: Listing every invalid option at once
        """
        problems = []

        for label, port in (("REST", self.rest_port), ("WebSocket", self.websocket_port)):
            if not 1 <= port <= 65535:
                problems.append(f"{label} port out of range: {port}")

        if self.max_quantity <= 0:
            problems.append(f"MAX_QUANTITY must be positive: {self.max_quantity}")
        if self.max_price <= 0:
            problems.append(f"MAX_PRICE must be positive: {self.max_price}")

        if self.websocket_ping_interval <= 0 or self.websocket_ping_timeout <= 0:
            problems.append(
                f"WebSocket keepalive must be positive: "
                f"interval={self.websocket_ping_interval} timeout={self.websocket_ping_timeout}"
            )

        if not isinstance(logging.getLevelName(self.log_level), int):
            problems.append(f"Unknown LOG_LEVEL: {self.log_level}")

        if problems:
            raise ValueError("Invalid configuration: " + "; ".join(problems))


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Cached settings, read and validated on first use."""
    global _settings
    if _settings is None:
        _settings = reload_settings()
    return _settings


def reload_settings() -> Settings:
    """
    Re-read the environment and replace the cached settings.

    Raises:
        ValueError: If the new settings are invalid; the cache keeps the
            previous instance
    """
    global _settings
    settings = Settings()
    settings.validate()
    _settings = settings
    return settings
