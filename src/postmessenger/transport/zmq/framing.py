"""ZMQ multipart framing for one-way messages.

PUSH -> PULL
    version, target_origin, source_address, source_origin, kind, body

``kind`` is ``text`` when the body is the caller's text, sent verbatim, or
``object`` when the caller handed over a structured object, in which case the
body is its JSON encoding and the receiver gets the decoded object back.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

from ... import json


PROTOCOL_VERSION = b"1"
TEXT = b"text"
OBJECT = b"object"


def to_frames(data: Any, target_origin: str, source_address: str, source_origin: str) -> Tuple[bytes, ...]:
    """Encode one message as multipart frames."""

    if isinstance(data, str):
        kind = TEXT
        body = data.encode()
    elif isinstance(data, bytes):
        kind = TEXT
        body = data
    else:
        kind = OBJECT
        body = json.dumps(data)

    return (
        PROTOCOL_VERSION,
        target_origin.encode(),
        source_address.encode(),
        source_origin.encode(),
        kind,
        body,
    )


def from_frames(parts: Sequence[bytes]) -> Tuple[str, str, str, Any]:
    """Decode multipart frames.

    Returns ``(target_origin, source_address, source_origin, data)``. Raises
    ValueError for anything that is not a frame set this module produced.
    """

    if len(parts) != 6:
        raise ValueError(f"expected 6 frames, received {len(parts)}")

    version, target_origin, source_address, source_origin, kind, body = parts

    if version != PROTOCOL_VERSION:
        raise ValueError(f"frames are protocol {version!r}, recipient expects {PROTOCOL_VERSION!r}")

    if kind == TEXT:
        # Undecodable text is passed along as bytes; it is up to the
        # consumer to decide what to make of it.
        try:
            data = body.decode()
        except UnicodeDecodeError:
            data = bytes(body)
    elif kind == OBJECT:
        data = json.loads(body)
    else:
        raise ValueError(f"unknown body kind: {kind!r}")

    return (target_origin.decode(), source_address.decode(), source_origin.decode(), data)
