"""Transport layer: the contract for one-way primitives, the adapter that
puts envelopes on them, and the bundled implementations."""

from .base import (
    ANY_ORIGIN,
    SAME_ORIGIN,
    InboundEvent,
    Transport,
    TransportError,
    TransportClosed,
    TransportPortError,
    origin_matches,
)

from . import session
from . import local
from . import zmq

from .session import Sender
