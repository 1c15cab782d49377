from __future__ import annotations

from typing import Callable, Dict

from .collective import CollectiveProgram
from .idle_cycle import IdleCycleProgram
from .interface import ControlProgram

__all__ = [
    "CollectiveProgram",
    "ControlProgram",
    "IdleCycleProgram",
    "PROGRAM_REGISTRY",
    "get_program",
]


PROGRAM_REGISTRY: Dict[str, Callable[..., ControlProgram]] = {
    "collective": CollectiveProgram,
    "idle_cycle": IdleCycleProgram,
}


def get_program(name: str, **kwargs) -> ControlProgram:
    factory = PROGRAM_REGISTRY.get(name.lower())
    if factory is None:
        raise ValueError(f"Unknown program '{name}'. Available: {', '.join(PROGRAM_REGISTRY)}")
    try:
        return factory(**kwargs)
    except TypeError as exc:
        raise ValueError(f"Invalid options for program '{name}': {exc}") from exc
