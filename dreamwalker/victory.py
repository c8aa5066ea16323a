"""Victory signal sinks.

Sinks are told about the victory sequence for audio/visual acknowledgment.
The engine never reads anything back from them.
"""

from __future__ import annotations

from .logging_utils import Color, colored

VICTORY_MESSAGE = "🌟 You Restored the Dream! 🌟"
NEW_DREAM_MESSAGE = "🌙 A new dream begins..."


class VictorySink:
    """Base sink with no-op hooks; override what you need."""

    def on_victory(self, value: int) -> None:
        """Called once per merge that reaches the victory value."""

    def on_victory_phase(self, message: str) -> None:
        """Called with the message to display for each victory phase."""

    def on_reset(self) -> None:
        """Called after a full reset (timer-driven or new game) completes."""


class ConsoleVictorySink(VictorySink):
    """Prints the victory banner to the terminal."""

    def on_victory(self, value: int) -> None:
        print(colored(f"\n  Spirit of value {value} formed!", Color.GREEN, bold=True))

    def on_victory_phase(self, message: str) -> None:
        print(colored(f"\n  {message}\n", Color.YELLOW, bold=True))

    def on_reset(self) -> None:
        print(colored("  The dream has been reset.", Color.CYAN))
