import struct

import pytest

from envput import MalformedEnvelopeError
from envput.envelope import Envelope, pack, unpack


def test_pack_writes_lengths_big_endian_in_front_of_each_field():
    blob = pack(b"SALT", b"IV", b"ciphertext")
    assert blob == (
        b"\x00\x00\x00\x04SALT" b"\x00\x00\x00\x02IV" b"ciphertext"
    )


def test_pack_has_no_padding_or_trailer():
    salt, iv, ciphertext = b"s" * 16, b"i" * 16, b"c" * 48
    assert len(pack(salt, iv, ciphertext)) == 4 + 16 + 4 + 16 + 48


@pytest.mark.parametrize(
    "salt, iv, ciphertext",
    [
        (b"s" * 16, b"i" * 16, b"c" * 32),
        (b"", b"", b""),
        (b"", b"iv", b"data"),
        (b"salt", b"", b"data"),
        (b"salt", b"iv", b""),
        # Content that looks like length fields must not confuse parsing.
        (b"\x00\x00\x00\x10", b"\xff\xff\xff\xff", b"\x00\x00\x00\x04"),
    ],
)
def test_unpack_restores_what_pack_wrote(salt, iv, ciphertext):
    assert unpack(pack(salt, iv, ciphertext)) == (salt, iv, ciphertext)


def test_unpack_returns_envelope_with_named_fields():
    envelope = unpack(pack(b"salt", b"iv", b"data"))
    assert isinstance(envelope, Envelope)
    assert envelope.salt == b"salt"
    assert envelope.iv == b"iv"
    assert envelope.ciphertext == b"data"


def test_unpack_accepts_bytearray_and_memoryview():
    blob = pack(b"salt", b"iv", b"data")
    assert unpack(bytearray(blob)) == (b"salt", b"iv", b"data")
    assert unpack(memoryview(blob)) == (b"salt", b"iv", b"data")


@pytest.mark.parametrize("size", range(8))
def test_unpack_rejects_blobs_shorter_than_both_length_fields(size):
    with pytest.raises(MalformedEnvelopeError) as e:
        unpack(b"\x00" * size)
    assert "at least 8 bytes" in str(e.value)


def test_unpack_accepts_minimal_blob():
    assert unpack(b"\x00" * 8) == (b"", b"", b"")


def test_unpack_rejects_salt_length_beyond_end():
    blob = struct.pack(">I", 100) + b"salt" + struct.pack(">I", 0)
    with pytest.raises(MalformedEnvelopeError) as e:
        unpack(blob)
    assert "salt length 100" in str(e.value)


def test_unpack_rejects_salt_length_leaving_no_room_for_iv_length():
    # 4 bytes of salt declared and present, but the IV length is cut off.
    blob = struct.pack(">I", 4) + b"salt" + b"\x00\x00"
    with pytest.raises(MalformedEnvelopeError):
        unpack(blob)


def test_unpack_rejects_iv_length_beyond_end():
    blob = struct.pack(">I", 4) + b"salt" + struct.pack(">I", 16) + b"short"
    with pytest.raises(MalformedEnvelopeError) as e:
        unpack(blob)
    assert "IV length 16 exceeds the available 5 bytes" in str(e.value)


def test_unpack_rejects_huge_declared_lengths():
    blob = b"\xff\xff\xff\xff" + b"\x00" * 20
    with pytest.raises(MalformedEnvelopeError):
        unpack(blob)


def test_malformed_envelope_is_reported(output, capsys):
    with pytest.raises(MalformedEnvelopeError) as e:
        unpack(b"abc")
    e.value.report()
    out, _ = capsys.readouterr()
    assert out.startswith("ERROR: Stored data is not a valid envelope\n")
