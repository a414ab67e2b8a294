from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from .errors import LockError
from .generation import successor
from .locks import DEFAULT_TIMEOUT, ReadWriteLock
from .space import Region

logger = logging.getLogger(__name__)


class CellRegion(Region):
    """Region used by :meth:`Cell.update`: each location answers for its own store."""

    def state(self, location: "Cell", generation: Any) -> Optional[Any]:
        return location.state(generation)


class Cell:
    """Graph node holding one value per generation and a set of neighbor cells.

    State entries are write-once: a generation that already has a value is never
    recomputed or overwritten. Reads (state lookups, neighbor snapshots) take the
    shared side of a per-cell lock; commits and joins take the exclusive side.

    Parameters
    ----------
    generation:
        Generation of the initial value.
    state:
        Initial value.
    rule:
        Object with ``update(region, location, generation)``; defaults to
        ``type(state)`` so the payload class carries its own update rule.
    lock_timeout:
        Seconds to wait for a lock before raising :class:`LockError`.
    """

    __slots__ = ("_id", "_rule", "_states", "_neighbors", "_state_lock", "_neighbor_lock", "__weakref__")

    def __init__(self, generation: Any, state: Any, *, rule: Any = None,
                 lock_timeout: Optional[float] = DEFAULT_TIMEOUT):
        self._id = str(uuid.uuid4())
        self._rule = type(state) if rule is None else rule
        self._states: Dict[Any, Any] = {generation: state}
        # dict keeps join order, so neighbor snapshots are deterministic
        self._neighbors: Dict[str, Cell] = {}
        self._state_lock = ReadWriteLock(f"state of {self._id}", timeout=lock_timeout)
        self._neighbor_lock = ReadWriteLock(f"neighbors of {self._id}", timeout=lock_timeout)

    @property
    def id(self) -> str:
        return self._id

    @property
    def rule(self) -> Any:
        return self._rule

    def __hash__(self) -> int:
        return hash(self._id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return self._id == other._id

    def __repr__(self) -> str:
        with self._state_lock.read():
            gens = sorted(self._states, key=_sort_key)
        return f"Cell(id={self._id!r}, generations={gens!r}, degree={self.degree})"

    # --- neighbors ---

    def join(self, other: "Cell") -> None:
        """Insert a symmetric neighbor edge between ``self`` and ``other`` (idempotent).

        If the second half of the edge cannot be inserted, the first half is removed
        again before the LockError propagates.
        """
        if other is self:
            return
        added = _connect(self, other)
        try:
            _connect(other, self)
        except LockError:
            if added:
                _disconnect(self, other)
            raise
        logger.debug("Joined: [%s] <=> [%s]", self._id, other._id)

    def neighbors(self) -> Tuple["Cell", ...]:
        """Point-in-time snapshot of the neighbor set."""
        with self._neighbor_lock.read():
            return tuple(self._neighbors.values())

    def is_neighbor(self, other: "Cell") -> bool:
        with self._neighbor_lock.read():
            return other._id in self._neighbors

    @property
    def degree(self) -> int:
        with self._neighbor_lock.read():
            return len(self._neighbors)

    # --- state ---

    def state(self, generation: Any) -> Optional[Any]:
        """Stored value for ``generation``, or None if it has not been computed."""
        with self._state_lock.read():
            return self._states.get(generation)

    def has_state(self, generation: Any) -> bool:
        with self._state_lock.read():
            return generation in self._states

    def generations(self) -> List[Any]:
        with self._state_lock.read():
            return sorted(self._states, key=_sort_key)

    def update(self, generation: Any) -> None:
        """Compute the value for ``successor(generation)`` unless it already exists."""
        next_gen = successor(generation)
        if self.has_state(next_gen):
            return
        logger.debug("Update: [%s] %r -> %r", self._id, generation, next_gen)
        new_state = self._rule.update(CellRegion(), self, generation)
        with self._state_lock.write():
            # a concurrent sweep may have committed first; keep the first value
            self._states.setdefault(next_gen, new_state)


def _connect(this: Cell, that: Cell) -> bool:
    try:
        with this._neighbor_lock.write():
            if that._id in this._neighbors:
                return False
            this._neighbors[that._id] = that
            return True
    except LockError as e:
        raise LockError(f"Could not connect {this._id} => {that._id}: {e}") from e


def _disconnect(this: Cell, that: Cell) -> None:
    with this._neighbor_lock.write():
        this._neighbors.pop(that._id, None)


def _sort_key(generation: Any) -> Tuple[int, Any]:
    # generations of one run share a type; fall back to repr for unorderable mixes
    try:
        return (0, int(generation))
    except (TypeError, ValueError):
        return (1, repr(generation))
