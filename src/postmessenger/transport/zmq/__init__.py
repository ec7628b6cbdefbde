"""ZeroMQ one-way transport: PUSH to a peer's PULL socket."""

from .framing import PROTOCOL_VERSION
from .port import Endpoint, Port, endpoint
