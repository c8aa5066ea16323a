"""
Dreamwalker Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Game configuration loaded from environment variables."""

    # Grid geometry (degrees of latitude/longitude)
    CELL_SIZE_DEG: float = float(os.getenv("DREAMWALKER_CELL_SIZE_DEG", "0.0001"))
    RADIUS_CELLS: int = int(os.getenv("DREAMWALKER_RADIUS_CELLS", "3"))

    # Victory
    VICTORY_VALUE: int = int(os.getenv("DREAMWALKER_VICTORY_VALUE", "32"))
    WIN_MESSAGE_SECONDS: float = float(os.getenv("DREAMWALKER_WIN_MESSAGE_SECONDS", "2.5"))
    # Measured from the triggering merge, not from the end of the win message
    RESET_DELAY_SECONDS: float = float(os.getenv("DREAMWALKER_RESET_DELAY_SECONDS", "5.0"))

    # Starting position fallback (the classroom the game was first played in)
    ORIGIN_LAT: float = float(os.getenv("DREAMWALKER_ORIGIN_LAT", "36.997936938057016"))
    ORIGIN_LNG: float = float(os.getenv("DREAMWALKER_ORIGIN_LNG", "-122.05703507501151"))
    POSITION_TIMEOUT_SECONDS: float = float(
        os.getenv("DREAMWALKER_POSITION_TIMEOUT_SECONDS", "5.0")
    )

    # Persistence. The key carries the format version; bump it to orphan old saves.
    SAVE_KEY: str = os.getenv("DREAMWALKER_SAVE_KEY", "dreamwalker-save-v1")
    SAVE_DIR: Path = Path(
        os.getenv("DREAMWALKER_SAVE_DIR", str(Path.home() / ".dreamwalker"))
    ).expanduser()

    # Movement mode for a fresh session ("button" or "geo")
    MOVEMENT_MODE: str = os.getenv("DREAMWALKER_MOVEMENT_MODE", "button")

    # Feedback formatting
    TEXT_DECIMALS: int = int(os.getenv("DREAMWALKER_TEXT_DECIMALS", "5"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors on values the game cannot run with."""
        if cls.CELL_SIZE_DEG <= 0:
            raise ValueError(
                "DREAMWALKER_CELL_SIZE_DEG must be positive (the original game uses 0.0001)"
            )

        if cls.RADIUS_CELLS < 0:
            raise ValueError("DREAMWALKER_RADIUS_CELLS cannot be negative")

        if cls.VICTORY_VALUE < 2:
            raise ValueError(
                "DREAMWALKER_VICTORY_VALUE must be at least 2 so that a merge can reach it"
            )

        if cls.WIN_MESSAGE_SECONDS < 0 or cls.RESET_DELAY_SECONDS < cls.WIN_MESSAGE_SECONDS:
            raise ValueError(
                "DREAMWALKER_RESET_DELAY_SECONDS must be >= DREAMWALKER_WIN_MESSAGE_SECONDS >= 0"
            )

        if cls.MOVEMENT_MODE not in ("button", "geo"):
            raise ValueError(
                f"DREAMWALKER_MOVEMENT_MODE must be 'button' or 'geo', got '{cls.MOVEMENT_MODE}'"
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Dreamwalker Configuration:",
            f"  Cell size: {cls.CELL_SIZE_DEG}°",
            f"  Interaction radius: {cls.RADIUS_CELLS} cells",
            f"  Victory value: {cls.VICTORY_VALUE}",
            f"  Victory timing: {cls.WIN_MESSAGE_SECONDS}s / {cls.RESET_DELAY_SECONDS}s",
            f"  Origin: ({cls.ORIGIN_LAT}, {cls.ORIGIN_LNG})",
            f"  Save slot: {cls.SAVE_KEY} in {cls.SAVE_DIR}",
            f"  Movement mode: {cls.MOVEMENT_MODE}",
        ]
        return "\n".join(lines)
