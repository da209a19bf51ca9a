"""Failures raised by the board engine and the session registry."""


class MinesweeperError(Exception):
    """Base class for recoverable game errors."""
    code = 'Error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidConfig(MinesweeperError):
    """Bad board size, mine count or mine layout."""
    code = 'InvalidConfig'


class OutOfBounds(MinesweeperError):
    """Coordinates outside the grid."""
    code = 'OutOfBounds'

    def __init__(self, x: int, y: int, size: int):
        super().__init__(f"Tile ({x}, {y}) is outside the {size}x{size} board")
        self.x = x
        self.y = y


class TileFlagged(MinesweeperError):
    """Reveal attempted on a flagged tile."""
    code = 'TileFlagged'


class TileExposed(MinesweeperError):
    """Flag attempted on an exposed tile."""
    code = 'TileExposed'


class GameOver(MinesweeperError):
    """Mutating action after the game was won or lost."""
    code = 'GameOver'


class GameNotStarted(MinesweeperError):
    """Flag attempted before the first reveal placed the mines."""
    code = 'GameNotStarted'


class NotFound(MinesweeperError):
    """Unknown session id."""
    code = 'NotFound'

    def __init__(self, session_id: str):
        super().__init__(f"Game {session_id} not found")
        self.session_id = session_id
