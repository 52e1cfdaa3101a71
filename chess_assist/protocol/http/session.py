from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ...engine.board import Board


class InMemorySessionStore:
    """Thread-safe in-memory store of one Board per session.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Hand out exclusive leases on a session's Board (make/undo and search
      mutate it in place, so only one request may hold it at a time)
    - Replace or delete sessions
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._boards: Dict[str, Board] = {}
        self._leases: Dict[str, threading.Lock] = {}

    def create(self, board: Optional[Board] = None) -> str:
        """Create a new session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if board is None:
            board = Board.startpos()
        with self._lock:
            self._boards[gid] = board
            self._leases[gid] = threading.Lock()
        return gid

    def get(self, game_id: str) -> Optional[Board]:
        with self._lock:
            return self._boards.get(game_id)

    @contextmanager
    def lease(self, game_id: str) -> Iterator[Optional[Board]]:
        """Hold the session's Board exclusively; yields None for unknown ids."""
        with self._lock:
            lock = self._leases.get(game_id)
        if lock is None:
            yield None
            return
        with lock:
            yield self.get(game_id)

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._boards.pop(game_id, None)
            self._leases.pop(game_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._boards)
