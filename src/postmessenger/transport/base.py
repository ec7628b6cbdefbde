"""Transport interface.

This is the (small) contract that one-way message primitives should follow.
It lives outside :mod:`postmessenger.protocol` so the protocol remains
transport-agnostic.

A primitive offers no delivery or ordering acknowledgment: a message handed
to :meth:`Transport.post_message` either shows up at the receiver or it does
not, and the sender never finds out which.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, NamedTuple


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportClosed(TransportError):
    """The local end of the transport has been closed."""


class TransportPortError(TransportError):
    """No suitable port could be bound or connected."""


ANY_ORIGIN = "*"
SAME_ORIGIN = "/"


class InboundEvent(NamedTuple):
    """One raw message as raised by a primitive.

    ``data`` is either text (a ``str`` or ``bytes``) or an already structured
    object; ``source`` is the endpoint that sent it, and ``origin`` is the
    sender's origin string.
    """

    data: Any
    source: Any
    origin: str


Listener = Callable[[InboundEvent], None]


def origin_matches(target_origin: str, sender_origin: str, receiver_origin: str) -> bool:
    """Return True if a message addressed to ``target_origin`` may be
    delivered to a receiver whose origin is ``receiver_origin``.

    ``'*'`` matches any receiver, ``'/'`` matches a receiver sharing the
    sender's origin, anything else must match the receiver's origin exactly.
    """

    if target_origin == ANY_ORIGIN:
        return True
    if target_origin == SAME_ORIGIN:
        return sender_origin == receiver_origin
    return target_origin == receiver_origin


class Transport(ABC):
    """Minimal contract for a one-way, fire-and-forget transport.

    Each instance represents one execution context: it is the inbound event
    source for that context, and the handle through which the context sends
    to other endpoints.
    """

    origin: str = ""

    @abstractmethod
    def post_message(self, receiver: Any, data: Any, target_origin: str) -> None:
        """Hand ``data`` to the primitive for delivery to ``receiver``."""

    @abstractmethod
    def add_listener(self, callback: Listener) -> None:
        """Invoke ``callback`` with an :class:`InboundEvent` per arrival."""

    @abstractmethod
    def remove_listener(self, callback: Listener) -> None:
        """Stop invoking a callback registered with :meth:`add_listener`."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection/socket."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently usable."""
        return False
