"""Error taxonomy for observable evaluation and storage access.

Every error is raised at the call that detects the violation and is never
recovered internally; the propagation driver decides whether to abort the
run or skip the step.
"""

from __future__ import annotations

from typing import Any


class PropstoreError(Exception):
    """Base class for all errors raised by this package."""


class UnsupportedObservableSignature(PropstoreError, TypeError):
    """An observable accepts neither `(state)` nor `(state, tlist, i)`."""

    def __init__(self, observable: Any, message: str | None = None) -> None:
        self.observable = observable
        if message is None:
            message = (
                f"The observable {observable!r} must take either the single argument "
                "`state`, or the three arguments `state`, `tlist`, and `i`."
            )
        super().__init__(message)


class ShapeMismatch(PropstoreError, ValueError):
    """A sample (or output buffer) does not fit the container layout."""

    def __init__(self, message: str, *, expected: Any = None, got: Any = None) -> None:
        self.expected = expected
        self.got = got
        super().__init__(message)


class SampleLayoutDrift(ShapeMismatch):
    """The sample layout of an observable collection changed between steps."""


class IndexOutOfRange(PropstoreError, IndexError):
    """A slot index lies outside `[1, count]`."""

    def __init__(self, index: Any, count: int) -> None:
        self.index = index
        self.count = count
        super().__init__(f"index {index!r} is outside the valid slot range [1, {count}]")
