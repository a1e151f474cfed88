"""Pack salt, IV and ciphertext into one blob and split it up again.

Layout (all integers big-endian unsigned 32 bit)::

    [salt length][salt][iv length][iv][ciphertext ...]

There is no magic header and no version field. Blobs stored by earlier
releases must keep decoding, so the layout must never change.

"""

import struct
from typing import NamedTuple

from envput import MalformedEnvelopeError

LENGTH = struct.Struct(">I")
HEADER_MIN_SIZE = 2 * LENGTH.size


class Envelope(NamedTuple):
    salt: bytes
    iv: bytes
    ciphertext: bytes


def pack(salt: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    return b"".join(
        [
            LENGTH.pack(len(salt)),
            salt,
            LENGTH.pack(len(iv)),
            iv,
            ciphertext,
        ]
    )


def unpack(blob: bytes) -> Envelope:
    """Split a blob into its salt, IV and ciphertext.

    The declared lengths are checked against the actual size of the blob
    instead of letting slicing truncate quietly.

    """
    blob = bytes(blob)
    if len(blob) < HEADER_MIN_SIZE:
        raise MalformedEnvelopeError.from_context(
            f"expected at least {HEADER_MIN_SIZE} bytes, got {len(blob)}"
        )

    offset = 0
    (salt_length,) = LENGTH.unpack_from(blob, offset)
    offset += LENGTH.size
    # The IV length field has to fit behind the salt, too.
    if offset + salt_length + LENGTH.size > len(blob):
        raise MalformedEnvelopeError.from_context(
            f"salt length {salt_length} exceeds the available "
            f"{len(blob) - offset - LENGTH.size} bytes"
        )
    salt = blob[offset : offset + salt_length]
    offset += salt_length

    (iv_length,) = LENGTH.unpack_from(blob, offset)
    offset += LENGTH.size
    if offset + iv_length > len(blob):
        raise MalformedEnvelopeError.from_context(
            f"IV length {iv_length} exceeds the available "
            f"{len(blob) - offset} bytes"
        )
    iv = blob[offset : offset + iv_length]
    offset += iv_length

    return Envelope(salt=salt, iv=iv, ciphertext=blob[offset:])
