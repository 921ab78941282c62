from .protocol import InstrumentProtocol
from .recorder import ObservableRecorder

__all__ = ["InstrumentProtocol", "ObservableRecorder"]
