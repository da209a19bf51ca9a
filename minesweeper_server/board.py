"""Board engine: mine layout, reveal flood fill, flags and win/loss state."""
import random
from collections import deque
from typing import Iterable, Iterator, List, Optional

from minesweeper_server.errors import GameOver, InvalidConfig, OutOfBounds, TileExposed, TileFlagged
from minesweeper_server.types import BoardSnapshot, Coord, GameStatus, Tile, TileView


def neighbors(x: int, y: int, size: int) -> Iterator[Coord]:
    """Yield the in-bounds coordinates around (x, y)."""
    for dx in [-1, 0, 1]:
        for dy in [-1, 0, 1]:
            if dx == 0 and dy == 0:
                continue
            nx = x + dx
            ny = y + dy
            if 0 <= nx < size and 0 <= ny < size:
                yield nx, ny


def count_neighbor_mines(tiles: List[List[Tile]], x: int, y: int, size: int) -> int:
    """Count the number of mines in neighboring tiles."""
    count = 0
    for nx, ny in neighbors(x, y, size):
        if tiles[nx][ny].is_mine:
            count += 1
    return count


def validate_config(size: int, mine_count: int) -> None:
    """Check that a board of this size can hold mine_count mines and one safe tile."""
    if size < 1:
        raise InvalidConfig(f"Board size must be positive, got {size}")
    if mine_count < 0:
        raise InvalidConfig(f"Mine count cannot be negative, got {mine_count}")
    if mine_count >= size * size:
        raise InvalidConfig(f"Too many mines for a {size}x{size} board (max {size * size - 1})")


class Board:
    """
    A square Minesweeper board.

    Tiles are addressed as (x, y) with x selecting the row. Use the
    ``with_mines``, ``with_first_click`` or ``with_random_mines`` constructors
    rather than calling ``Board()`` directly.
    """

    def __init__(self, size: int, mine_positions: Iterable[Coord]):
        self.size = size
        self.tiles: List[List[Tile]] = [[Tile() for _ in range(size)] for _ in range(size)]
        self.status = GameStatus.IN_PROGRESS
        self.mine_count = 0
        self.exposed_count = 0

        for x, y in mine_positions:
            self.tiles[x][y].is_mine = True
            self.mine_count += 1

        # Calculate neighbor mine counts
        for x in range(size):
            for y in range(size):
                if not self.tiles[x][y].is_mine:
                    self.tiles[x][y].adjacent_count = count_neighbor_mines(self.tiles, x, y, size)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def with_mines(cls, size: int, mine_positions: Iterable[Coord],
                   mine_count: Optional[int] = None) -> 'Board':
        """Build a board with mines at exactly the given coordinates."""
        positions = [tuple(p) for p in mine_positions]
        if size < 1:
            raise InvalidConfig(f"Board size must be positive, got {size}")

        seen = set()
        for x, y in positions:
            if not (0 <= x < size and 0 <= y < size):
                raise InvalidConfig(f"Mine at ({x}, {y}) is outside the {size}x{size} board")
            if (x, y) in seen:
                raise InvalidConfig(f"Mine at ({x}, {y}) is listed more than once")
            seen.add((x, y))

        if mine_count is not None and mine_count != len(seen):
            raise InvalidConfig(f"Expected {mine_count} mines but {len(seen)} were placed")
        validate_config(size, len(seen))

        return cls(size, positions)

    @classmethod
    def with_first_click(cls, size: int, mine_count: int, first_click: Coord,
                         rng: Optional[random.Random] = None,
                         protect_neighbors: bool = False) -> 'Board':
        """
        Build a random board that is guaranteed safe at first_click, then reveal it.

        With protect_neighbors the tiles around the click are kept mine-free too,
        provided there is still room for every mine.
        """
        validate_config(size, mine_count)
        fx, fy = first_click
        if not (0 <= fx < size and 0 <= fy < size):
            raise OutOfBounds(fx, fy, size)

        rng = rng or random.Random()
        excluded = {(fx, fy)}
        if protect_neighbors:
            widened = excluded | set(neighbors(fx, fy, size))
            if size * size - len(widened) >= mine_count:
                excluded = widened

        candidates = [(x, y) for x in range(size) for y in range(size) if (x, y) not in excluded]
        board = cls(size, rng.sample(candidates, mine_count))
        board.reveal(fx, fy)
        return board

    @classmethod
    def with_random_mines(cls, size: int, mine_count: int, rng: Optional[random.Random] = None) -> 'Board':
        """Build a board with a uniformly random layout and no first-click guarantee."""
        validate_config(size, mine_count)
        rng = rng or random.Random()

        # Place mines randomly using Fisher-Yates shuffle
        positions = [(x, y) for x in range(size) for y in range(size)]
        rng.shuffle(positions)
        return cls(size, positions[:mine_count])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def tile_at(self, x: int, y: int) -> Optional[Tile]:
        """Get the tile at (x, y), or None if out of bounds."""
        if not self.in_bounds(x, y):
            return None
        return self.tiles[x][y]

    @property
    def is_over(self) -> bool:
        return self.status != GameStatus.IN_PROGRESS

    @property
    def flag_count(self) -> int:
        return sum(1 for row in self.tiles for tile in row if tile.flagged)

    @property
    def safe_tiles(self) -> int:
        return self.size * self.size - self.mine_count

    def mine_positions(self) -> List[Coord]:
        return [(x, y) for x in range(self.size) for y in range(self.size) if self.tiles[x][y].is_mine]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _check_coords(self, x: int, y: int) -> Tile:
        if not self.in_bounds(x, y):
            raise OutOfBounds(x, y, self.size)
        return self.tiles[x][y]

    def _expose(self, tile: Tile) -> None:
        tile.exposed = True
        tile.flagged = False
        if not tile.is_mine:
            self.exposed_count += 1

    def reveal(self, x: int, y: int) -> List[Coord]:
        """
        Reveal the tile at (x, y) and cascade through zero-count regions.

        Returns the coordinates exposed by this call, in exposure order. An
        already exposed tile is a no-op and returns an empty list.

        Raises:
            OutOfBounds: (x, y) is not on the board.
            GameOver: the game is already won or lost.
            TileFlagged: the tile is flagged and must be unflagged first.
        """
        tile = self._check_coords(x, y)
        if self.is_over:
            raise GameOver(f"Game is already {self.status.value}")
        if tile.flagged:
            raise TileFlagged(f"Tile ({x}, {y}) is flagged; unflag it before revealing")
        if tile.exposed:
            return []

        if tile.is_mine:
            self._expose(tile)
            self.status = GameStatus.LOST
            revealed = [(x, y)]
            # Reveal all mines
            for mx, my in self.mine_positions():
                if not self.tiles[mx][my].exposed:
                    self._expose(self.tiles[mx][my])
                    revealed.append((mx, my))
            return revealed

        revealed = self._flood_fill(x, y)
        if self.exposed_count == self.safe_tiles:
            self.status = GameStatus.WON
        return revealed

    def _flood_fill(self, x: int, y: int) -> List[Coord]:
        """Expose (x, y) and every tile reachable through zero-count tiles."""
        revealed: List[Coord] = []
        pending = deque([(x, y)])
        self._expose(self.tiles[x][y])
        revealed.append((x, y))

        while pending:
            cx, cy = pending.popleft()
            if self.tiles[cx][cy].adjacent_count != 0:
                continue
            for nx, ny in neighbors(cx, cy, self.size):
                neighbor = self.tiles[nx][ny]
                if neighbor.exposed or neighbor.flagged or neighbor.is_mine:
                    continue
                self._expose(neighbor)
                revealed.append((nx, ny))
                pending.append((nx, ny))

        return revealed

    def toggle_flag(self, x: int, y: int) -> bool:
        """
        Toggle flag on the tile at (x, y).

        Returns the new flagged state.

        Raises:
            OutOfBounds: (x, y) is not on the board.
            GameOver: the game is already won or lost.
            TileExposed: the tile has been revealed.
        """
        tile = self._check_coords(x, y)
        if self.is_over:
            raise GameOver(f"Game is already {self.status.value}")
        if tile.exposed:
            raise TileExposed(f"Tile ({x}, {y}) is already revealed")

        tile.flagged = not tile.flagged
        return tile.flagged

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def snapshot(self) -> BoardSnapshot:
        """Visible board state; hidden tiles never carry a value."""
        rows = []
        for x in range(self.size):
            row = []
            for y in range(self.size):
                tile = self.tiles[x][y]
                value = None
                if tile.exposed:
                    value = 'bomb' if tile.is_mine else str(tile.adjacent_count)
                row.append(TileView(exposed=tile.exposed, flagged=tile.flagged, value=value))
            rows.append(row)

        return BoardSnapshot(
            size=self.size,
            mine_count=self.mine_count,
            status=self.status,
            tiles=rows,
        )

    def __repr__(self) -> str:
        return f"Board(size={self.size}, mine_count={self.mine_count}, status={self.status.value})"
