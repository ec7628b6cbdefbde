""" Translation between an :class:`Envelope` and the text handed to, or
    received from, the underlying one-way transport.
"""

from .. import json
from . import fields
from .message import Envelope


class DecodeError(ValueError):
    """ Inbound text could not be decoded as JSON.
    """
    pass



def pack(envelope):
    """ Serialize an :class:`Envelope` to the wire text format.
    """

    return json.dumps(envelope.to_dict()).decode()



def unpack(data):
    """ Interpret inbound *data* as an :class:`Envelope`. Textual data (a
        string or bytes) is parsed as JSON; anything else is assumed to be
        structured already, as if a transport delivered a cloned object.

        A :class:`DecodeError` is raised if textual data is not valid JSON.
        Data that decodes fine but is not an envelope, such as a bare number
        or an object with no recognizable type, is returned as an envelope
        with a type of None: it is not an error, but it will not be routed.
    """

    if isinstance(data, (str, bytes, bytearray, memoryview)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise DecodeError('invalid JSON envelope: ' + str(e)) from e

    return from_dict(data)



def from_dict(block):
    """ Build an :class:`Envelope` from a structured, already decoded object.
    """

    if isinstance(block, dict):
        pass
    else:
        return Envelope(None)

    type = block.get('type')
    payload = block.get('payload')

    if isinstance(type, str):
        pass
    else:
        type = None

    # Handshake envelopes are not supposed to carry a payload; if a peer
    # sent one anyway it is meaningless and gets dropped here.

    if type in fields.HANDSHAKE:
        payload = None

    return Envelope(type, payload)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
