from __future__ import annotations

"""
Topology abstraction: a *Location* has neighbors, a *Region* can look up any of its
locations' state at a generation, and a *Space* owns one or more regions.

A State implementation only ever calls ``region.state(...)`` and ``location.neighbors()``,
so the same update rule runs unmodified over any topology implementing these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, Protocol, Tuple, TypeVar, runtime_checkable

A = TypeVar("A")


@runtime_checkable
class Location(Protocol):
    """A node of a topology: stable identity plus a neighbor snapshot."""

    @property
    def id(self) -> str: ...

    def neighbors(self) -> Tuple["Location", ...]: ...


class Region(ABC):
    """Read-only projection answering "what is the state of L at generation G"."""

    @abstractmethod
    def state(self, location: Any, generation: Any) -> Optional[Any]:
        """Return the value of ``location`` at ``generation``, or None if not yet computed."""

    def locations(self) -> Iterable[Any]:
        return ()


class Space(ABC):
    """The full topology: composes regions and supports an order-independent fold."""

    @abstractmethod
    def regions(self) -> Iterable[Region]:
        ...

    def reduce(self, init: A, f: Callable[[Region, Any, A], A]) -> A:
        """Fold ``f(region, location, accumulator)`` over every (region, location) pair.

        The visitation order is fixed but implementation-defined; only commutative and
        associative folds (counts, sums, extrema) should be expressed with it.
        """
        acc = init
        for region in self.regions():
            for location in region.locations():
                acc = f(region, location, acc)
        return acc


class State(ABC):
    """Payload simulated per cell; defines the local update rule.

    ``update`` must be a pure function of what is observable through ``region`` and
    ``location`` at ``generation``: replaying the same inputs yields the same output.
    """

    @classmethod
    @abstractmethod
    def update(cls, region: Region, location: Any, generation: Any) -> "State":
        ...

    def to_char(self) -> str:
        return str(self)


class GrayScale(ABC):
    """Optional capability: map a value to a gray level 0..255 given a normalization context."""

    @abstractmethod
    def gray_value(self, context: Any) -> int:
        ...
