"""In-memory registry of game sessions."""
import logging
import random
import secrets
import string
import threading
import time
from typing import Dict, Optional, Tuple

from minesweeper_server.board import Board, validate_config
from minesweeper_server.errors import GameNotStarted, MinesweeperError, NotFound
from minesweeper_server.types import ActionResult, ActiveGame, BoardSnapshot, GameStatus, PendingGame, Session

logger = logging.getLogger(__name__)

SESSION_ID_ALPHABET = string.ascii_letters + string.digits
SESSION_ID_LENGTH = 8


def generate_session_id(length: int = SESSION_ID_LENGTH) -> str:
    """Random alphanumeric identifier."""
    return ''.join(secrets.choice(SESSION_ID_ALPHABET) for _ in range(length))


class GameRegistry:
    """
    Maps session ids to games.

    The registry lock only guards the session map. Engine work for a session
    runs under that session's own lock, so actions on one game are serialized
    while different games proceed in parallel.
    """

    def __init__(self, rng: Optional[random.Random] = None, protect_neighbors: bool = False,
                 id_length: int = SESSION_ID_LENGTH):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._rng = rng
        self.protect_neighbors = protect_neighbors
        self.id_length = id_length

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _store(self, game) -> Session:
        with self._lock:
            session_id = generate_session_id(self.id_length)
            while session_id in self._sessions:
                session_id = generate_session_id(self.id_length)
            session = Session(id=session_id, game=game)
            self._sessions[session_id] = session
        return session

    def create_deferred(self, size: int, mine_count: int) -> str:
        """Create a session whose mines are placed on the first reveal."""
        validate_config(size, mine_count)
        session = self._store(PendingGame(size=size, mine_count=mine_count))
        logger.info(f"Created game {session.id} ({size}x{size}, {mine_count} mines, deferred)")
        return session.id

    def create_immediate(self, size: int, mine_count: int) -> Tuple[str, Board]:
        """Create a session with a fully random layout and no first-click guarantee."""
        board = Board.with_random_mines(size, mine_count, rng=self._rng)
        session = self._store(ActiveGame(board=board))
        logger.info(f"Created game {session.id} ({size}x{size}, {mine_count} mines, immediate)")
        return session.id, board

    def get(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise NotFound(session_id)
        return session

    def remove(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise NotFound(session_id)
        logger.info(f"Removed game {session_id}")

    def evict_idle(self, max_idle: float, now: Optional[float] = None) -> int:
        """Drop sessions with no activity for max_idle seconds. Returns the number dropped."""
        now = time.monotonic() if now is None else now
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if now - s.last_activity >= max_idle]
            for sid in stale:
                del self._sessions[sid]

        if stale:
            logger.info(f"Evicted {len(stale)} idle game(s)")
        return len(stale)

    # ------------------------------------------------------------------
    # Game actions
    # ------------------------------------------------------------------

    @staticmethod
    def _visible(session: Session) -> BoardSnapshot:
        if isinstance(session.game, PendingGame):
            return BoardSnapshot.empty(session.game.size, session.game.mine_count)
        return session.game.board.snapshot()

    def snapshot(self, session_id: str) -> BoardSnapshot:
        """Current visible board of a session."""
        session = self.get(session_id)
        with session.lock:
            return self._visible(session)

    def reveal(self, session_id: str, x: int, y: int) -> ActionResult:
        """Reveal a tile, placing the mines first if this is the opening click."""
        session = self.get(session_id)
        with session.lock:
            session.touch()
            try:
                if isinstance(session.game, PendingGame):
                    board = Board.with_first_click(
                        session.game.size,
                        session.game.mine_count,
                        (x, y),
                        rng=self._rng,
                        protect_neighbors=self.protect_neighbors,
                    )
                    session.game = ActiveGame(board=board)
                    logger.info(f"Game {session_id} started at ({x}, {y})")
                    message = "First click processed! Game board generated."
                else:
                    board = session.game.board
                    message = "Success" if board.reveal(x, y) else "Tile already revealed"
            except MinesweeperError as error:
                return ActionResult(success=False, message=error.message,
                                    snapshot=self._visible(session), error=error.code)

            if board.status != GameStatus.IN_PROGRESS:
                logger.info(f"Game {session_id} finished: {board.status.value}")
            return ActionResult(success=True, message=message, snapshot=board.snapshot())

    def toggle_flag(self, session_id: str, x: int, y: int) -> ActionResult:
        """Flag or unflag a tile. Not allowed before the first reveal."""
        session = self.get(session_id)
        with session.lock:
            session.touch()
            try:
                if isinstance(session.game, PendingGame):
                    raise GameNotStarted("Make your first click before flagging!")
                flagged = session.game.board.toggle_flag(x, y)
            except MinesweeperError as error:
                return ActionResult(success=False, message=error.message,
                                    snapshot=self._visible(session), error=error.code)

            message = "Flag placed" if flagged else "Flag removed"
            return ActionResult(success=True, message=message, snapshot=session.game.board.snapshot())
