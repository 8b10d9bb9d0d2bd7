"""
Beautiful logging system with colors, emojis, and structured formatting.
"""

import logging
import os
import sys
from datetime import datetime
from typing import Optional


class HealthCheckFilter(logging.Filter):
    """Filter to suppress health check access logs from Uvicorn."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Uvicorn access records carry (client, method, path, version, status)
        if record.args and isinstance(record.args, tuple) and len(record.args) >= 3:
            path = record.args[2]
            if isinstance(path, str) and path.startswith("/health"):
                return False

        if isinstance(record.msg, str) and "GET /health" in record.msg:
            return False

        return True


class ColorFormatter(logging.Formatter):
    """Custom formatter with colors and emojis for beautiful terminal output."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
        "BOLD": "\033[1m",  # Bold
        "DIM": "\033[2m",  # Dim
    }

    # Emojis for different log levels
    EMOJIS = {
        "DEBUG": "🔍",
        "INFO": "✅",
        "WARNING": "⚠️",
        "ERROR": "❌",
        "CRITICAL": "🚨",
    }

    # Component emojis
    COMPONENT_EMOJIS = {
        "knowledge": "📚",
        "sport": "🏟️",
        "extract": "🃏",
        "player": "👤",
        "api": "🌐",
        "scheduler": "⏰",
        "httpx": "✈️ ",
        "supabase": "💾",
    }

    def format(self, record):
        level_color = self.COLORS.get(record.levelname, "")
        reset = self.COLORS["RESET"]
        bold = self.COLORS["BOLD"]
        dim = self.COLORS["DIM"]

        emoji = self.EMOJIS.get(record.levelname, "📝")

        # Component emoji (detect from logger name)
        component_emoji = ""
        for component, comp_emoji in self.COMPONENT_EMOJIS.items():
            if component in record.name.lower():
                component_emoji = f"{comp_emoji}"
                break

        timestamp = datetime.now().strftime("%H:%M:%S")

        # Level name padded to 8 chars
        level = f"{record.levelname:<8}"

        logger_name = record.name.split(".")[-1][:12]

        formatted_msg = (
            f"{dim}[{timestamp}]{reset} "
            f"{emoji} {level_color}{bold}{level}{reset} "
            f"{dim}│{reset} "
            f"{component_emoji} {bold}{logger_name:<12}{reset} "
            f"{dim}│{reset} "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            formatted_msg += f"\n{self.formatException(record.exc_info)}"

        return formatted_msg


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Setup a beautiful logger with colors and emojis.

    Args:
        name: Logger name (usually "cardex.<component>")
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the LOG_LEVEL environment variable, then INFO.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level, logging.INFO))
    handler.setFormatter(ColorFormatter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def log_api_request(
    logger: logging.Logger, method: str, endpoint: str, params: Optional[dict] = None
):
    """Log API request in a beautiful format."""
    params_str = f" {params}" if params else ""
    logger.info(f"🌐 {method} {endpoint}{params_str}")


def log_database_operation(
    logger: logging.Logger, operation: str, count: int, table: str
):
    """Log database operation in a beautiful format."""
    logger.info(f"💾 {operation} {count} records to {table}")


# Module-level loggers
api_logger = setup_logger("cardex.api")
knowledge_logger = setup_logger("cardex.knowledge")
sport_logger = setup_logger("cardex.sport")
extract_logger = setup_logger("cardex.extract")
player_logger = setup_logger("cardex.player")
scheduler_logger = setup_logger("cardex.scheduler")
httpx_logger = setup_logger("cardex.httpx")
supabase_logger = setup_logger("cardex.supabase")


def log_success(logger: logging.Logger, message: str):
    """Log a successful outcome with an explicit [OK] tag."""
    logger.info(f"[OK] {message}")


def log_failure(logger: logging.Logger, message: str):
    """Log a failed outcome with an explicit [FAIL] tag."""
    logger.error(f"[FAIL] {message}")


def set_log_level(level: str):
    """Apply a log level to every cardex logger and its handlers."""
    value = getattr(logging, (level or "INFO").upper(), logging.INFO)
    for logger in (
        api_logger,
        knowledge_logger,
        sport_logger,
        extract_logger,
        player_logger,
        scheduler_logger,
        httpx_logger,
        supabase_logger,
    ):
        logger.setLevel(value)
        for handler in logger.handlers:
            handler.setLevel(value)
