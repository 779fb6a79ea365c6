"""Explicit scope chain used by the evaluator."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Dict

from sia.errors import UndefinedVariableError
from sia.source_map import SourceSpan
from sia.values import Value


Frame = Dict[str, Value]


class ScopeChain:
    """Ordered stack of frames, innermost last.

    The global frame is created with the chain and is never popped.
    Lookups walk every frame from the top down, so code running in a pushed
    frame sees all bindings of the frames beneath it. Assignment always
    writes into the top frame.
    """

    def __init__(self) -> None:
        self._frames: list[Frame] = [{}]

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def frames(self) -> tuple[Frame, ...]:
        """Snapshot of the frames, global frame first."""
        return tuple(dict(frame) for frame in self._frames)

    @property
    def globals(self) -> Frame:
        return self._frames[0]

    @property
    def current(self) -> Frame:
        return self._frames[-1]

    def push(self) -> None:
        self._frames.append({})

    def pop(self) -> None:
        if len(self._frames) == 1:
            raise RuntimeError("cannot pop the global frame")
        self._frames.pop()

    @contextmanager
    def frame(self) -> Iterator[Frame]:
        """Push a frame for the duration of the block, popping it on every exit."""
        self.push()
        try:
            yield self.current
        finally:
            self.pop()

    def get(self, name: str, span: SourceSpan | None = None) -> Value:
        for frame in reversed(self._frames):
            if name in frame:
                return frame[name]
        raise UndefinedVariableError(name, span=span)

    def set(self, name: str, value: Value) -> None:
        self._frames[-1][name] = value

    def contains(self, name: str) -> bool:
        return any(name in frame for frame in self._frames)
