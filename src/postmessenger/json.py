''' Wrapper module around msgspec to provide the equivalent of
    :func:`json.loads` and :func:`json.dumps` for everything put on, or taken
    off, the wire.
'''

import msgspec


# The msgspec 'encode' operation returns bytes. Anything that needs text,
# such as the serialized envelope handed to a transport, decodes the result.

encoder = msgspec.json.Encoder()
decoder = msgspec.json.Decoder()

dumps = encoder.encode
DecodeError = msgspec.DecodeError


def loads(encoded):
    ''' Decode the supplied JSON, which can be bytes or a string. Any failure
        to decode is raised as a :class:`ValueError`, regardless of the
        underlying library; this includes input nested too deeply to decode.
    '''

    try:
        return decoder.decode(encoded)
    except DecodeError as e:
        raise ValueError(str(e)) from e
    except RecursionError as e:
        raise ValueError('JSON nested too deeply to decode') from e


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
