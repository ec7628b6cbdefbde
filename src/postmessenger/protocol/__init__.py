"""
postmessenger protocol layer
============================

This package defines the transport-agnostic vocabulary of the handshake and
routing protocol: the envelope model, and the text form an envelope takes on
the wire.

The protocol layer MUST NOT depend on any transport implementation.

---------------------------------------------------------------------

Wire envelope
-------------

    {"type": "SYN" | "SYN-ACK" | "APP", "payload": <optional JSON value>}

SYN / SYN-ACK
    Handshake envelopes. A SYN is answered with a SYN-ACK by any
    participant, unconditionally. Neither carries a payload.

APP
    Application data. The only envelope type that carries a caller payload.

Any other type is legal on the wire but is not routed anywhere.

---------------------------------------------------------------------
"""

from . import fields
from . import message
from . import wire

from .fields import APP, SYN, SYN_ACK
from .message import Envelope, Event
from .wire import DecodeError, pack, unpack


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
