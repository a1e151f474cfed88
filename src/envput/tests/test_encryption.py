import mock
import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from envput import DecryptionError, MalformedEnvelopeError
from envput.encryption import (
    IV_LENGTH,
    KEY_LENGTH,
    SALT_LENGTH,
    decrypt,
    decrypt_text,
    derive_key,
    encrypt,
    seal,
    unseal,
)
from envput.envelope import pack, unpack

CLEARTEXT = "DATABASE_URL=postgres://localhost/db"
PASSPHRASE = "correct-horse-battery-staple"


def test_derive_key_is_deterministic():
    salt = b"0123456789abcdef"
    key = derive_key(PASSPHRASE, salt)
    assert len(key) == KEY_LENGTH
    assert key == derive_key(PASSPHRASE, salt)


def test_derive_key_depends_on_salt_and_passphrase():
    key = derive_key(PASSPHRASE, b"0123456789abcdef")
    assert key != derive_key(PASSPHRASE, b"fedcba9876543210")
    assert key != derive_key("wrong-password", b"0123456789abcdef")


def test_derive_key_uses_pbkdf2_sha256_with_100000_iterations():
    # Known answer computed with hashlib.pbkdf2_hmac.
    import hashlib

    salt = b"\x00" * 16
    expected = hashlib.pbkdf2_hmac(
        "sha256", PASSPHRASE.encode("utf-8"), salt, 100000, 32
    )
    assert derive_key(PASSPHRASE, salt) == expected


def test_encrypt_generates_fresh_salt_and_iv():
    result = encrypt(CLEARTEXT, PASSPHRASE)
    assert len(result.salt) == SALT_LENGTH
    assert len(result.iv) == IV_LENGTH
    assert len(result.ciphertext) % 16 == 0
    assert CLEARTEXT.encode("utf-8") not in result.ciphertext


def test_encrypt_twice_gives_different_results():
    first = encrypt(CLEARTEXT, PASSPHRASE)
    second = encrypt(CLEARTEXT, PASSPHRASE)
    assert first.salt != second.salt
    assert first.iv != second.iv
    assert first.ciphertext != second.ciphertext


def test_encrypt_uses_os_urandom():
    with mock.patch("os.urandom", side_effect=lambda n: b"\x01" * n):
        result = encrypt(CLEARTEXT, PASSPHRASE)
    assert result.salt == b"\x01" * 16
    assert result.iv == b"\x01" * 16


@pytest.mark.parametrize(
    "cleartext",
    [
        b"",
        b"A=1",
        b"x" * 15,
        b"x" * 16,
        b"x" * 17,
        "ÄÖÜ=ß\n".encode("utf-8"),
    ],
)
def test_decrypt_restores_cleartext(cleartext):
    salt, iv, ciphertext = encrypt(cleartext, PASSPHRASE)
    assert decrypt(ciphertext, iv, salt, PASSPHRASE) == cleartext


def test_encrypt_accepts_str_as_utf8():
    salt, iv, ciphertext = encrypt("KEY=välue", PASSPHRASE)
    assert decrypt(ciphertext, iv, salt, PASSPHRASE) == "KEY=välue".encode(
        "utf-8"
    )


def test_empty_cleartext_still_produces_one_block():
    assert len(encrypt(b"", PASSPHRASE).ciphertext) == 16


@pytest.mark.parametrize("size", [0, 1, 15, 17, 31])
def test_decrypt_rejects_partial_blocks(size):
    with pytest.raises(DecryptionError) as e:
        decrypt(b"x" * size, b"i" * 16, b"s" * 16, PASSPHRASE)
    assert "not a positive multiple of 16" in str(e.value)


def test_decrypt_rejects_wrong_iv_size():
    salt, iv, ciphertext = encrypt(CLEARTEXT, PASSPHRASE)
    with pytest.raises(DecryptionError):
        decrypt(ciphertext, iv[:8], salt, PASSPHRASE)


def test_decrypt_rejects_invalid_padding():
    # A block of zeros ends in a zero byte, which is never valid PKCS#7.
    salt, iv = b"s" * 16, b"i" * 16
    key = derive_key(PASSPHRASE, salt)
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(b"\x00" * 16) + encryptor.finalize()
    with pytest.raises(DecryptionError) as e:
        decrypt(ciphertext, iv, salt, PASSPHRASE)
    assert str(e.value).startswith("Failed to decrypt: ")


def test_decrypt_text_rejects_non_utf8():
    salt, iv, ciphertext = encrypt(b"\xff\xfe\xfd", PASSPHRASE)
    with pytest.raises(DecryptionError) as e:
        decrypt_text(ciphertext, iv, salt, PASSPHRASE)
    assert "not valid UTF-8" in str(e.value)


def test_decrypt_text_with_wrong_passphrase_fails():
    salt, iv, ciphertext = encrypt(CLEARTEXT, PASSPHRASE)
    with pytest.raises(DecryptionError):
        decrypt_text(ciphertext, iv, salt, "wrong-password")


def test_full_round_trip_through_envelope():
    blob = pack(*encrypt(CLEARTEXT, PASSPHRASE))
    salt, iv, ciphertext = unpack(blob)
    assert decrypt_text(ciphertext, iv, salt, PASSPHRASE) == CLEARTEXT


def test_seal_and_unseal():
    blob = seal(CLEARTEXT, PASSPHRASE)
    assert unseal(blob, PASSPHRASE) == CLEARTEXT
    with pytest.raises(DecryptionError):
        unseal(blob, "wrong-password")


def test_unseal_rejects_malformed_blob():
    with pytest.raises(MalformedEnvelopeError):
        unseal(b"\x00\x00", PASSPHRASE)


def test_unseal_detects_truncated_ciphertext():
    blob = seal(CLEARTEXT, PASSPHRASE)
    with pytest.raises(DecryptionError):
        unseal(blob[:-1], PASSPHRASE)


def test_decryption_error_report_hints_at_passphrase(output, capsys):
    with pytest.raises(DecryptionError) as e:
        decrypt(b"", b"i" * 16, b"s" * 16, PASSPHRASE)
    e.value.report()
    out, _ = capsys.readouterr()
    assert out.splitlines()[0] == (
        "ERROR: Could not decrypt: check your passphrase or the stored "
        "data may be corrupted."
    )
