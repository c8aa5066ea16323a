"""
Terminal Dreamwalker
====================

WHAT THIS SHOWS:
- Wiring GameEngine with a file-backed save slot
- Discrete-step movement from typed keys (w/a/s/d)
- Continuous-tracking movement from a ManualPositionFeed ("goto lat lng")
- Activating cells relative to the player ("c di dj")
- The victory sequence and "new game"

The ASCII window stands in for the map renderer: north is up, "@" is the
Dreamwalker, numbers are spirits, dots are empty cells within reach.

RUN:
    uv run python examples/terminal/run.py
    uv run python examples/terminal/run.py --memory --victory 8
"""

import argparse
import asyncio

from dreamwalker import (
    ConsoleVictorySink,
    FeedStartingPosition,
    GameEngine,
    InMemorySlot,
    InteractionRules,
    JsonFileSlot,
    ManualPositionFeed,
    MovementMode,
)
from dreamwalker.config import Config
from dreamwalker.engine import outcome_counts

HELP = """Commands:
  w/a/s/d          step one cell (button mode)
  c DI DJ          activate the cell DI rows north, DJ columns east of you
  goto LAT LNG     feed a GPS position (geo mode)
  mode geo|button  switch movement source
  new              start a new game
  help             show this text
  q                quit"""


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Play Dreamwalker in the terminal")
    parser.add_argument("--memory", action="store_true", help="Do not write a save file")
    parser.add_argument("--victory", type=int, help="Override the victory value")
    parser.add_argument("--radius", type=int, default=5, help="Cells shown around the player")
    return parser.parse_args()


def show(engine: GameEngine, radius: int) -> None:
    print()
    print(engine.render_ascii(radius))
    print(f"\n  {engine.status_text()}")


async def main(args: argparse.Namespace) -> None:
    Config.validate()
    print(Config.display())
    print()

    feed = ManualPositionFeed()
    slot = InMemorySlot() if args.memory else JsonFileSlot()
    engine = GameEngine(
        slot=slot,
        rules=InteractionRules(victory_value=args.victory),
        # No GPS fix is pushed before the first prompt, so this falls back to the origin
        position_provider=FeedStartingPosition(feed, timeout=0.1),
        geo_feed=feed,
        victory_sinks=[ConsoleVictorySink()],
    )
    await engine.start()
    print(HELP)
    show(engine, args.radius)

    results = []
    try:
        while True:
            line = (await asyncio.to_thread(input, "\n> ")).strip()
            if not line:
                continue
            command, *rest = line.split()
            command = command.lower()

            if command in ("q", "quit", "exit"):
                break
            if command == "help":
                print(HELP)
                continue

            try:
                numbers = [float(value) for value in rest] if command in ("c", "goto") else []
            except ValueError:
                print("  Expected numbers (type 'help').")
                continue

            if command == "c" and len(rest) == 2:
                here = engine.grid.to_cell_index(engine.player.lat, engine.player.lng)
                result = engine.activate(here.i + int(numbers[0]), here.j + int(numbers[1]))
                results.append(result)
                print(f"  {result.message}")
            elif command == "goto" and len(rest) == 2:
                feed.push(numbers[0], numbers[1])
            elif command == "mode" and len(rest) == 1 and rest[0] in ("geo", "button"):
                engine.set_movement_mode(MovementMode(rest[0]))
            elif command == "new":
                await engine.new_game()
            elif not engine.press_key(command):
                print("  Unknown command (type 'help').")
                continue

            # Let victory phases print before redrawing
            await asyncio.sleep(0)
            show(engine, args.radius)
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await engine.stop()

    if results:
        print("\nSession summary:")
        for outcome, count in outcome_counts(results):
            print(f"  {outcome.value}: {count}")


if __name__ == "__main__":
    asyncio.run(main(parse_args()))
