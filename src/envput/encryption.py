"""Passphrase based encryption of environment files.

The key is stretched from the passphrase with PBKDF2-HMAC-SHA256 and a
random salt, the payload is encrypted with AES-256-CBC and a random IV.

Note that there is no MAC: the only tamper detection is the PKCS#7 padding
check. Corrupted data that happens to end in valid padding decrypts to
garbage without an error. Adding authentication would break every blob
stored so far, so this stays a known limitation.

"""

import logging
import os
from typing import Union

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from envput import DecryptionError
from envput.envelope import Envelope, pack, unpack

logger = logging.getLogger(__name__)

SALT_LENGTH = 16
IV_LENGTH = 16
KEY_LENGTH = 32
# Lowering this weakens every file uploaded from then on.
ITERATIONS = 100000
BLOCK_SIZE = algorithms.AES.block_size  # bits


def derive_key(passphrase: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))


def encrypt(plaintext: Union[bytes, str], passphrase: str) -> Envelope:
    """Encrypt `plaintext` with a key derived from `passphrase`.

    Salt and IV are fresh random values for every call, so encrypting the
    same data twice never gives the same result.

    """
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)
    key = derive_key(passphrase, salt)

    padder = padding.PKCS7(BLOCK_SIZE).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    logger.debug(
        "Encrypted %d bytes into %d bytes", len(plaintext), len(ciphertext)
    )
    return Envelope(salt=salt, iv=iv, ciphertext=ciphertext)


def decrypt(
    ciphertext: bytes, iv: bytes, salt: bytes, passphrase: str
) -> bytes:
    block_bytes = BLOCK_SIZE // 8
    if not ciphertext or len(ciphertext) % block_bytes:
        raise DecryptionError.from_context(
            f"ciphertext length {len(ciphertext)} is not a positive "
            f"multiple of {block_bytes}"
        )
    if len(iv) != block_bytes:
        raise DecryptionError.from_context(
            f"IV must be {block_bytes} bytes, got {len(iv)}"
        )
    key = derive_key(passphrase, salt)

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(BLOCK_SIZE).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise DecryptionError.from_context(str(e)) from e


def decrypt_text(
    ciphertext: bytes, iv: bytes, salt: bytes, passphrase: str
) -> str:
    """Decrypt and decode the result as UTF-8.

    A wrong passphrase yields valid padding now and then. Random bytes
    almost never form valid UTF-8, so the strict decode catches those.

    """
    data = decrypt(ciphertext, iv, salt, passphrase)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError.from_context(
            "decrypted data is not valid UTF-8 text"
        ) from e


def seal(plaintext: Union[bytes, str], passphrase: str) -> bytes:
    """Encrypt and pack into a blob ready for storage."""
    return pack(*encrypt(plaintext, passphrase))


def unseal(blob: bytes, passphrase: str) -> str:
    envelope = unpack(blob)
    return decrypt_text(
        envelope.ciphertext, envelope.iv, envelope.salt, passphrase
    )
