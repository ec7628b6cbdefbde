""" Class representations of the units exchanged by the protocol: the
    :class:`Envelope` that goes on the wire, and the :class:`Event` that
    pairs an arrived envelope with whoever sent it.
"""

from . import fields


class Envelope:
    """ The :class:`Envelope` is a very thin encapsulation of what it means
        to be a message in this protocol: a *type* discriminator and an
        optional *payload*. Handshake envelopes never carry a payload;
        attempting to construct one with a payload raises a
        :class:`ValueError`.

        Envelopes decoded from the wire may have any *type*, including None,
        if the sender is not speaking this protocol. Such envelopes are legal
        but are never routed anywhere. Use :func:`create` to build an
        envelope for sending, which restricts the *type* to the known set.

        :ivar type: The message type, usually one of the
            :mod:`postmessenger.protocol.fields` constants.
        :ivar payload: The caller-provided data, if any, for an APP message.
    """

    valid_types = fields.TYPES

    def __init__(self, type, payload=None):

        if type in fields.HANDSHAKE and payload is not None:
            raise ValueError(type + ' envelopes do not carry a payload')

        self.type = type
        self.payload = payload


    def __eq__(self, other):

        if isinstance(other, Envelope):
            pass
        else:
            return NotImplemented

        return self.type == other.type and self.payload == other.payload


    def __repr__(self):
        return 'Envelope(%r, %r)' % (self.type, self.payload)


    @classmethod
    def create(cls, type, payload=None):
        """ Build an outbound envelope. Only the protocol types are allowed.
        """

        if isinstance(type, str) and type in cls.valid_types:
            pass
        else:
            raise ValueError('invalid envelope type: ' + repr(type))

        return cls(type, payload)


    @property
    def is_handshake(self):
        return self.type in fields.HANDSHAKE


    def to_dict(self):
        """ Return the dictionary form of this envelope, as it appears on the
            wire. The payload key is omitted if there is no payload.
        """

        block = dict()
        block['type'] = self.type

        if self.payload is not None:
            block['payload'] = self.payload

        return block


# end of class Envelope



class Event:
    """ An :class:`Event` is an arrived :class:`Envelope` together with the
        endpoint that sent it. Endpoints are opaque; the only meaningful
        operation on the *source* is an identity comparison.

        :ivar data: The decoded :class:`Envelope`.
        :ivar source: The endpoint that sent the envelope.
        :ivar origin: The origin string reported by the transport.
    """

    __slots__ = ('data', 'source', 'origin')

    def __init__(self, data, source, origin=None):
        self.data = data
        self.source = source
        self.origin = origin


    def __repr__(self):
        return 'Event(%r, source=%r, origin=%r)' % (self.data, self.source, self.origin)


    @property
    def payload(self):
        return self.data.payload


    @property
    def type(self):
        return self.data.type


    def is_from(self, source, type):
        """ Return True if this event is of the given *type* and was sent
            by the given *source*.
        """

        return self.source is source and self.data.type == type


# end of class Event


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
