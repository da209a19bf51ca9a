"""Type definitions for the Minesweeper server."""
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple, Union
from enum import Enum

if TYPE_CHECKING:
    from minesweeper_server.board import Board

Coord = Tuple[int, int]


class GameStatus(str, Enum):
    """Possible game states."""
    IN_PROGRESS = 'InProgress'
    WON = 'Won'
    LOST = 'Lost'


@dataclass
class Tile:
    """Represents a single tile on the minesweeper board."""
    is_mine: bool = False
    adjacent_count: int = 0
    exposed: bool = False
    flagged: bool = False


@dataclass(frozen=True)
class TileView:
    """What the client is allowed to see of a tile."""
    exposed: bool
    flagged: bool
    value: Optional[str] = None  # 'bomb', '0'..'8', or None while hidden


@dataclass(frozen=True)
class BoardSnapshot:
    """Visible state of a board, safe to hand to a client."""
    size: int
    mine_count: int
    status: GameStatus
    tiles: List[List[TileView]]

    @classmethod
    def empty(cls, size: int, mine_count: int) -> 'BoardSnapshot':
        """All-hidden board for a session whose mines are not placed yet."""
        hidden = TileView(exposed=False, flagged=False)
        return cls(
            size=size,
            mine_count=mine_count,
            status=GameStatus.IN_PROGRESS,
            tiles=[[hidden for _ in range(size)] for _ in range(size)],
        )


@dataclass(frozen=True)
class PendingGame:
    """Session created but waiting for the first click to place mines."""
    size: int
    mine_count: int


@dataclass(frozen=True)
class ActiveGame:
    """Session with a live board."""
    board: 'Board'


GameSlot = Union[PendingGame, ActiveGame]


@dataclass
class Session:
    """One independent game addressed by an opaque identifier."""
    id: str
    game: GameSlot
    last_activity: float = field(default_factory=time.monotonic)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def is_pending(self) -> bool:
        return isinstance(self.game, PendingGame)

    @property
    def size(self) -> int:
        if isinstance(self.game, PendingGame):
            return self.game.size
        return self.game.board.size

    @property
    def mine_count(self) -> int:
        if isinstance(self.game, PendingGame):
            return self.game.mine_count
        return self.game.board.mine_count

    def touch(self) -> None:
        self.last_activity = time.monotonic()


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a reveal or flag action."""
    success: bool
    message: str
    snapshot: BoardSnapshot
    error: Optional[str] = None  # error code when success is False


@dataclass
class GameConfig:
    """Configuration for creating a new game."""
    size: int
    mine_count: int
    first_click_safe: bool = True

