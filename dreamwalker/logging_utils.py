"""Logging utilities for Dreamwalker sessions.

Provides color-coded output to distinguish deterministic world logic from
collaborator events (movement feeds, persistence) and failures.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # Deterministic operations (grid, interactions)
    YELLOW = "\033[93m"    # Timed phases (victory, reset)
    RED = "\033[91m"       # Errors and fallbacks
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata
    GRAY = "\033[90m"      # Debug detail

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if DREAMWALKER_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("DREAMWALKER_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"  # Deterministic operation
LOG_TAG_TIMER = "[⏱]"           # Scheduled phase
LOG_TAG_ERROR = "[!]"          # Error/fallback
LOG_TAG_SUCCESS = "[✓]"        # Success
LOG_TAG_INFO = "[i]"           # Information


def debug_enabled() -> bool:
    """Return True when LOG_LEVEL asks for debug output."""
    return os.getenv("LOG_LEVEL", "INFO").upper() == "DEBUG"


def log_deterministic(message: str) -> None:
    """Log a deterministic operation (blue)."""
    print(colored(f"{LOG_TAG_DETERMINISTIC} {message}", Color.BLUE))


def log_timer(message: str) -> None:
    """Log a scheduled phase transition (yellow)."""
    print(colored(f"{LOG_TAG_TIMER} {message}", Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error or fallback (red)."""
    print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    print(colored(f"{LOG_TAG_SUCCESS} {message}", Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(f"{LOG_TAG_INFO} {message}", Color.CYAN))


def log_debug(message: str) -> None:
    """Log debug detail (gray), only when LOG_LEVEL=DEBUG."""
    if debug_enabled():
        print(colored(f"  {message}", Color.GRAY))
