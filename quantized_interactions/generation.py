from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Generation(Protocol):
    """Discrete simulation time step: hashable, ordered, advanced by ``successor``."""

    def __hash__(self) -> int: ...

    def successor(self) -> "Generation": ...


@dataclass(frozen=True, order=True)
class Tick:
    """Explicit generation counter; plain ``int`` works just as well."""

    value: int = 0

    def __post_init__(self) -> None:
        if int(self.value) < 0:
            raise ValueError(f"Tick must be nonnegative, got {self.value!r}")

    def successor(self) -> "Tick":
        return Tick(self.value + 1)

    def __int__(self) -> int:
        return int(self.value)

    def __str__(self) -> str:
        return str(self.value)


def successor(generation: Any) -> Any:
    """Return the generation after ``generation``.

    Objects with a ``successor()`` method use it; integers advance by one.
    """
    step = getattr(generation, "successor", None)
    if callable(step):
        return step()
    if isinstance(generation, bool) or not isinstance(generation, int):
        raise TypeError(f"Not a generation: {generation!r}")
    return generation + 1


def generation_number(generation: Any) -> int:
    """Integer view of a generation, used for naming exported frames."""
    return int(generation)
