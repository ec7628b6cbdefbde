"""ZeroMQ one-way transport.

Each :class:`Port` binds a PULL socket; sending to another port means
pushing to that port's address through a PUSH socket cached per address.
Nothing comes back over these sockets, so the sender never learns whether a
message arrived.
"""

from __future__ import annotations

import atexit
import socket as pysocket
import threading
import traceback
import weakref
from typing import Any, Dict, List, Optional

import zmq

from ..base import InboundEvent, Listener, Transport, TransportClosed, TransportPortError, origin_matches
from .framing import from_frames, to_frames

minimum_port = 10139
maximum_port = 13679
high_water_mark = 1000
zmq_context = zmq.Context()


class Endpoint:
    """Address of a remote :class:`Port`.

    Use :func:`endpoint` rather than instantiating this class directly: it
    guarantees one instance per address, so that endpoints can be compared
    by identity.
    """

    __slots__ = ("address", "__weakref__")

    def __init__(self, address: str):
        self.address = address

    def __repr__(self) -> str:
        return f"zmq.Endpoint({self.address!r})"


_endpoint_cache: "weakref.WeakValueDictionary[str, Endpoint]" = weakref.WeakValueDictionary()
_endpoint_lock = threading.Lock()


def endpoint(address: str) -> Endpoint:
    """Return the one :class:`Endpoint` for ``address``, e.g.
    ``tcp://hostname:10139``. The cache holds endpoints weakly: an address
    nobody refers to any more is forgotten, and a later call builds a new
    instance."""

    with _endpoint_lock:
        instance = _endpoint_cache.get(address)
        if instance is None:
            instance = Endpoint(address)
            _endpoint_cache[address] = instance
        return instance


class Port(Transport):
    """One execution context reachable over ZeroMQ.

    The default behavior is to listen on all available network interfaces on
    the first available port in the default range. The *avoid* set
    enumerates port numbers that should not be automatically assigned; this
    is ignored if a fixed *port* is specified. The advertised address uses
    *hostname*, which defaults to the local hostname; the *origin* defaults
    to ``tcp://`` plus that hostname, so that ports on the same host share an
    origin.

    :ivar address: The address other ports use to reach this one.
    :ivar endpoint: The :class:`Endpoint` for ``address``.
    """

    def __init__(
        self,
        port: Optional[int] = None,
        hostname: Optional[str] = None,
        origin: Optional[str] = None,
        avoid: Optional[set] = None,
    ):
        avoid = avoid or set()

        if hostname is None:
            hostname = pysocket.gethostname()
        if origin is None:
            origin = f"tcp://{hostname}"

        self.hostname = hostname
        self.origin = origin

        self.socket = zmq_context.socket(zmq.PULL)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.port = self._bind(port, avoid)

        self.address = f"tcp://{hostname}:{self.port}"
        self.endpoint = endpoint(self.address)

        self._listeners: List[Listener] = []
        self._listener_lock = threading.Lock()

        # PUSH sockets are only touched while holding the lock; a ZeroMQ
        # socket is not safe to share between threads otherwise.
        self._senders: Dict[str, zmq.Socket] = {}
        self._sender_lock = threading.Lock()

        self.shutdown = False
        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()

        _ports.add(self)

    def __repr__(self) -> str:
        return f"zmq.Port({self.address!r})"

    def _bind(self, port: Optional[int], avoid: set) -> int:
        if port is not None:
            port = int(port)
            try:
                self.socket.bind(f"tcp://*:{port}")
            except zmq.ZMQError as exc:
                self.socket.close()
                raise TransportPortError(f"port already in use: {port}") from exc
            return port

        for trial in range(minimum_port, maximum_port + 1):
            if trial in avoid:
                continue
            try:
                self.socket.bind(f"tcp://*:{trial}")
            except zmq.ZMQError:
                continue
            return trial

        self.socket.close()
        raise TransportPortError(f"no ports available in range {minimum_port}:{maximum_port}")

    @property
    def is_open(self) -> bool:
        return not self.shutdown

    def add_listener(self, callback: Listener) -> None:
        if not callable(callback):
            raise TypeError("callback must be callable")

        with self._listener_lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        with self._listener_lock:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

    def post_message(self, receiver: Any, data: Any, target_origin: str) -> None:
        if self.shutdown:
            raise TransportClosed(f"{self!r} is closed")

        if not isinstance(receiver, Endpoint):
            raise TypeError(f"cannot send to {receiver!r}, not a zmq.Endpoint")

        frames = to_frames(data, target_origin, self.address, self.origin)

        with self._sender_lock:
            sender = self._sender(receiver.address)
            try:
                sender.send_multipart(frames, flags=zmq.NOBLOCK)
            except zmq.Again:
                # The queue toward this peer is full. Fire-and-forget means
                # this message is simply gone.
                pass

    def _sender(self, address: str) -> zmq.Socket:
        sender = self._senders.get(address)
        if sender is None:
            sender = zmq_context.socket(zmq.PUSH)
            sender.setsockopt(zmq.LINGER, 0)
            sender.setsockopt(zmq.SNDHWM, high_water_mark)
            sender.connect(address)
            self._senders[address] = sender
        return sender

    def close(self) -> None:
        if self.shutdown:
            return

        self.shutdown = True

        with self._sender_lock:
            for sender in self._senders.values():
                sender.close()
            self._senders.clear()

        with self._listener_lock:
            self._listeners.clear()

        if threading.current_thread() is not self.thread:
            self.thread.join()

        _ports.discard(self)

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(100):
                if active == self.socket:
                    parts = self.socket.recv_multipart()
                    try:
                        self._incoming(parts)
                    except Exception:
                        # One bad message must not stop the receive thread.
                        traceback.print_exc()

        self.socket.close()

    def _incoming(self, parts: List[bytes]) -> None:
        try:
            target_origin, source_address, source_origin, data = from_frames(parts)
        except ValueError:
            traceback.print_exc()
            return

        if not origin_matches(target_origin, source_origin, self.origin):
            return

        event = InboundEvent(data, endpoint(source_address), source_origin)

        with self._listener_lock:
            listeners = tuple(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                traceback.print_exc()


_ports: "weakref.WeakSet[Port]" = weakref.WeakSet()


def _cleanup() -> None:
    for port in list(_ports):
        port.close()

    try:
        zmq_context.term()
    except zmq.ZMQError:
        pass


atexit.register(_cleanup)
