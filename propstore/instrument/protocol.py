"""Instrument protocol for propagation loops.

An instrument is handed the (post-step) state once per time step.
"""

from typing import Any, Protocol


class InstrumentProtocol(Protocol):
    def update(self, state: Any) -> None:
        """Update the instrument with the state at the next time index."""
        raise NotImplementedError("Subclasses must implement this method")
