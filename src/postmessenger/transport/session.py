"""Transport adapter: the outbound half of the protocol."""

from __future__ import annotations

from typing import Any, Optional

from .. import config
from ..protocol import wire
from ..protocol.message import Envelope
from .base import Transport


class Sender:
    """Serialize envelopes and hand them to a one-way primitive.

    There is no return value and no delivery confirmation. A ``target_origin``
    is passed through to the primitive, which is responsible for dropping
    anything addressed to the wrong origin.
    """

    def __init__(self, transport: Transport, configuration: Optional[config.Configuration] = None):
        if configuration is None:
            configuration = config.default

        self.transport = transport
        self.config = configuration

    def send_message(
        self,
        receiver: Any,
        type: str,
        payload: Any = None,
        target_origin: Optional[str] = None,
    ) -> None:
        envelope = Envelope.create(type, payload)
        self.send(receiver, envelope, target_origin)

    def send(self, receiver: Any, envelope: Envelope, target_origin: Optional[str] = None) -> None:
        if target_origin is None:
            target_origin = self.config.default_target_origin

        serialized = wire.pack(envelope)
        self.transport.post_message(receiver, serialized, target_origin)
