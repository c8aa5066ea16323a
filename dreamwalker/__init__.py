"""
Dreamwalker - a location-based spirit merging game engine.

The player walks an infinite grid laid over real-world coordinates, picking
up spirits from nearby cells and merging equal spirits until one reaches the
victory value.

No renderer, no global state. The engine owns one session; storage, position
sources, and victory feedback are all injected.
"""

__version__ = "0.1.0"

# Main engine
from .engine import GameEngine, MoveUpdate, SessionNotStartedError

# Interaction rules and session state
from .interaction import InteractionRules
from .session import SessionState

# Movement and positioning
from .movement import (
    ActiveMovement,
    ButtonMovementController,
    GeoMovementController,
    MovementController,
)
from .positioning import (
    FeedStartingPosition,
    FixedStartingPosition,
    ManualPositionFeed,
    PositionFeed,
    PositionUnavailableError,
    StartingPositionProvider,
)

# Persistence
from .persistence import (
    GamePersistence,
    InMemorySlot,
    JsonFileSlot,
    KeyValueSlot,
    PersistenceWriteError,
    SaveCodec,
    SaveLoadError,
)

# Victory feedback
from .victory import ConsoleVictorySink, VictorySink

# Schemas
from .schemas import InteractionOutcome, InteractionResult, MovementMode, SaveState

# World tier
from .world import (
    CellBounds,
    CellGrid,
    CellIndex,
    CellMemory,
    CellView,
    LatLng,
    cell_key,
    describe_cells,
    parse_cell_key,
    render_ascii_window,
    spirit_value,
)

__all__ = [
    # Main class
    "GameEngine",
    "MoveUpdate",
    "SessionNotStartedError",
    # Rules and state
    "InteractionRules",
    "SessionState",
    # Movement
    "ActiveMovement",
    "ButtonMovementController",
    "GeoMovementController",
    "MovementController",
    # Positioning
    "FeedStartingPosition",
    "FixedStartingPosition",
    "ManualPositionFeed",
    "PositionFeed",
    "PositionUnavailableError",
    "StartingPositionProvider",
    # Persistence
    "GamePersistence",
    "InMemorySlot",
    "JsonFileSlot",
    "KeyValueSlot",
    "PersistenceWriteError",
    "SaveCodec",
    "SaveLoadError",
    # Victory
    "ConsoleVictorySink",
    "VictorySink",
    # Schemas
    "InteractionOutcome",
    "InteractionResult",
    "MovementMode",
    "SaveState",
    # World
    "CellBounds",
    "CellGrid",
    "CellIndex",
    "CellMemory",
    "CellView",
    "LatLng",
    "cell_key",
    "describe_cells",
    "parse_cell_key",
    "render_ascii_window",
    "spirit_value",
]
