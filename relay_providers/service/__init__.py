"""HTTP and WebSocket transport for the relay (FastAPI)."""

from .transport import RelayOutcome, TransportSink

__all__ = ["RelayOutcome", "TransportSink"]
