"""Per-step observable recording for propagation loops."""

from __future__ import annotations

from typing import Any, Iterator, Optional

from propstore.config import DEFAULT_CONFIG, StorageConfig
from propstore.console import console
from propstore.errors import IndexOutOfRange
from propstore.observables.aggregate import ObservableCollection
from propstore.storage.access import fetch, read, write
from propstore.storage.allocate import allocate
from propstore.storage.containers import StorageContainer
from propstore.types import FIRST_INDEX, describe


class ObservableRecorder:
    """Record one sample per point of `tlist`.

    Each `update(state)` stores the next sample: the aggregated observables
    when `observables` is given, otherwise the state itself. Storage is
    allocated on the first update, sized from that first sample.

    Example:
        recorder = ObservableRecorder(tlist, (sigma_z, population))
        for psi in propagate(psi0, tlist):
            recorder.update(psi)
        z = recorder.storage.data[0]
    """

    def __init__(
        self,
        tlist: Any,
        observables: Any = None,
        config: Optional[StorageConfig] = None,
    ) -> None:
        self.tlist = tlist
        self.config = config if config is not None else DEFAULT_CONFIG
        self.observables = (
            ObservableCollection(observables, self.config) if observables is not None else None
        )
        self.storage: Optional[StorageContainer] = None
        self.index = 0  # number of recorded steps

    @property
    def nt(self) -> int:
        return len(self.tlist)

    @property
    def done(self) -> bool:
        return self.index == self.nt

    def update(self, state: Any) -> None:
        i = self.index + FIRST_INDEX
        if self.index >= self.nt:
            raise IndexOutOfRange(i, self.nt)
        if self.observables is not None:
            sample = self.observables.aggregate(self.tlist, i, state)
        else:
            sample = state
        if self.storage is None:
            if self.config.verbose:
                console.header(
                    "Recording",
                    steps=str(self.nt),
                    observables=str(len(self.observables)) if self.observables is not None else "state",
                    sample=describe(sample),
                )
            self.storage = allocate(sample, self.nt, self.config)
        write(self.storage, i, sample)
        self.index += 1
        if self.done and self.config.verbose:
            console.success("Recording complete", detail=f"{self.nt} samples")

    def _recorded(self) -> StorageContainer:
        if self.storage is None:
            raise IndexOutOfRange(FIRST_INDEX, 0)
        return self.storage

    def _check_recorded(self, i: int) -> None:
        if not FIRST_INDEX <= i < FIRST_INDEX + self.index:
            raise IndexOutOfRange(i, self.index)

    def read(self, out: Any, i: int) -> None:
        """Copy the sample recorded at index `i` into `out`."""
        storage = self._recorded()
        self._check_recorded(i)
        read(out, storage, i)

    def fetch(self, i: int) -> Any:
        storage = self._recorded()
        self._check_recorded(i)
        return fetch(storage, i)

    def samples(self) -> Iterator[Any]:
        """Iterate over copies of all recorded samples, in time order."""
        for i in range(FIRST_INDEX, FIRST_INDEX + self.index):
            yield self.fetch(i)
