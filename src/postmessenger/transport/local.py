"""In-process one-way transport.

Each :class:`Port` stands in for an independent execution context living in
the same process, such as one of several components that must not share
state. A port is both the inbound event source for its context and the
endpoint other ports address when sending to it.
"""

from __future__ import annotations

import copy
import threading
import traceback
from typing import Any, List

from .base import InboundEvent, Listener, Transport, TransportClosed, origin_matches


class Port(Transport):
    """In-process execution context.

    Delivery happens synchronously on the sending thread, straight into the
    receiver's listeners; listeners are expected to hand the event off
    rather than process it inline. Textual data is delivered as-is; anything
    else is deep-copied, the way a structured clone would be.
    """

    def __init__(self, origin: str = "local"):
        self.origin = origin
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()
        self._open = True

    def __repr__(self) -> str:
        return f"local.Port({self.origin!r}, id={id(self):#x})"

    @property
    def is_open(self) -> bool:
        return self._open

    def add_listener(self, callback: Listener) -> None:
        if not callable(callback):
            raise TypeError("callback must be callable")

        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

    def close(self) -> None:
        self._open = False
        with self._lock:
            self._listeners.clear()

    def post_message(self, receiver: Any, data: Any, target_origin: str) -> None:
        if not self._open:
            raise TransportClosed(f"{self!r} is closed")

        if not isinstance(receiver, Port):
            raise TypeError(f"cannot send to {receiver!r}, not a local.Port")

        if not isinstance(data, (str, bytes)):
            data = copy.deepcopy(data)

        receiver._deliver(InboundEvent(data, self, self.origin), target_origin)

    def _deliver(self, event: InboundEvent, target_origin: str) -> None:
        # Undeliverable messages vanish without a trace, same as any other
        # fire-and-forget primitive.
        if not self._open:
            return
        if not origin_matches(target_origin, event.origin, self.origin):
            return

        with self._lock:
            listeners = tuple(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                traceback.print_exc()
