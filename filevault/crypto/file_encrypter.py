"""
Streaming AES-CBC file encryption.

File format:
    [16-byte IV | AES-CBC ciphertext, PKCS#7 padding on the final block]

No header, cipher id or integrity tag is stored; the reader must know the
key and cipher. Data is moved in fixed-size chunks so neither the source nor
the destination is ever fully held in memory.
"""

import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

from cryptography.hazmat.primitives import padding as sym_padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from filevault.core.exceptions import (
    DestinationUnavailable,
    FileVaultError,
    InvalidKeyLength,
    MalformedCiphertext,
    OperationCancelled,
    PaddingError,
    SourceUnavailable,
    StorageError,
    TruncatedInput,
    UnsupportedCipher,
    WriteFailure,
)
from filevault.core.logging_config import decryption_logger, encryption_logger, error_logger
from filevault.core.settings import BLOCK_SIZE, CHUNK_SIZE, DEFAULT_CIPHER, KEY_SIZES
from filevault.storage.local_disk import LocalDisk


# ============================================================
# CIPHER CONFIGURATION
# ============================================================
class CipherId(Enum):
    AES_128_CBC = "AES-128-CBC"
    AES_256_CBC = "AES-256-CBC"

    @property
    def key_size(self) -> int:
        return KEY_SIZES[self.value]

    @classmethod
    def parse(cls, value) -> "CipherId":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnsupportedCipher(
                f"Unsupported cipher '{value}', expected one of {', '.join(c.value for c in cls)}"
            ) from None


@dataclass(frozen=True)
class CipherConfig:
    """Key + cipher pair, validated once and never mutated."""

    key: bytes = field(repr=False)
    cipher_id: CipherId = CipherId.AES_256_CBC

    def __post_init__(self):
        cipher_id = CipherId.parse(self.cipher_id)
        if not isinstance(self.key, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"Key must be bytes-like, got {type(self.key).__name__} (decode text keys with decode_key)"
            )
        key = bytes(self.key)

        if len(key) != cipher_id.key_size:
            raise InvalidKeyLength(cipher_id.value, cipher_id.key_size, len(key))

        object.__setattr__(self, "cipher_id", cipher_id)
        object.__setattr__(self, "key", key)


def generate_key(cipher=DEFAULT_CIPHER) -> bytes:
    """Create a new random key for the given cipher."""
    return os.urandom(CipherId.parse(cipher).key_size)


def generate_iv() -> bytes:
    return os.urandom(BLOCK_SIZE)


# ============================================================
# STREAM HELPERS
# ============================================================
def _read_chunk(reader, size: int) -> bytes:
    """Read exactly `size` bytes unless the stream ends first."""
    buf = bytearray()
    try:
        while len(buf) < size:
            data = reader.read(size - len(buf))
            if not data:
                break
            buf += data
    except (OSError, StorageError) as e:
        raise SourceUnavailable(f"Read from source failed: {e}") from e
    return bytes(buf)


def _write(writer, data: bytes):
    if not data:
        return
    try:
        writer.write(data)
    except (OSError, ValueError, StorageError) as e:
        raise WriteFailure(f"Write to destination failed: {e}") from e


def _check_cancelled(cancel_event):
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelled("Operation cancelled")


def _strip_padding(data: bytes) -> bytes:
    unpadder = sym_padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    try:
        return unpadder.update(data) + unpadder.finalize()
    except ValueError as e:
        raise PaddingError("Invalid PKCS#7 padding, wrong key/cipher or corrupted data") from e


# ============================================================
# ENGINE
# ============================================================
class FileEncrypter:
    """
    Encrypt / decrypt files between two locations of a storage disk.

    The engine holds nothing but its immutable CipherConfig, so one instance
    can serve several threads as long as each uses its own stream pair.

    Example:
        >>> engine = FileEncrypter(generate_key(), "AES-256-CBC")
        >>> engine.encrypt("report.pdf", "report.pdf.enc")
        >>> engine.decrypt("report.pdf.enc", "report.pdf")
    """

    def __init__(self, key, cipher=DEFAULT_CIPHER, disk=None, chunk_size=CHUNK_SIZE):
        if chunk_size <= 0 or chunk_size % BLOCK_SIZE:
            raise ValueError(f"chunk_size must be a positive multiple of {BLOCK_SIZE}")

        self.config = CipherConfig(key, CipherId.parse(cipher))
        self.disk = disk if disk is not None else LocalDisk(".")
        self.chunk_size = chunk_size

    @property
    def cipher(self) -> CipherId:
        return self.config.cipher_id

    @staticmethod
    def generate_key(cipher=DEFAULT_CIPHER) -> bytes:
        return generate_key(cipher)

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self.config.key), modes.CBC(iv))

    # --------------------------------------------------------
    # Stream transfer loop
    # --------------------------------------------------------
    def encrypt_stream(self, reader, writer, cancel_event=None) -> int:
        """
        Encrypt `reader` into `writer`, returning the ciphertext size.

        Intermediate chunks are block aligned so they pass through the
        encryptor without padding; only the short (possibly empty) last
        chunk is padded.
        """
        iv = generate_iv()
        _write(writer, iv)
        written = len(iv)

        encryptor = self._cipher(iv).encryptor()

        while True:
            _check_cancelled(cancel_event)
            chunk = _read_chunk(reader, self.chunk_size)

            if len(chunk) < self.chunk_size:
                padder = sym_padding.PKCS7(BLOCK_SIZE * 8).padder()
                padded = padder.update(chunk) + padder.finalize()
                out = encryptor.update(padded) + encryptor.finalize()
                _write(writer, out)
                return written + len(out)

            out = encryptor.update(chunk)
            _write(writer, out)
            written += len(out)

    def decrypt_stream(self, reader, writer, cancel_event=None) -> int:
        """
        Decrypt `reader` into `writer`, returning the plaintext size.

        The latest decrypted chunk stays pending until the next read proves
        it was not the last one; padding is only stripped from the chunk
        that ends the stream.
        """
        iv = _read_chunk(reader, BLOCK_SIZE)
        if len(iv) < BLOCK_SIZE:
            raise TruncatedInput(f"Ciphertext too short: {len(iv)} bytes, IV needs {BLOCK_SIZE}")

        decryptor = self._cipher(iv).decryptor()
        pending = None
        consumed = 0
        written = 0

        while True:
            _check_cancelled(cancel_event)
            chunk = _read_chunk(reader, self.chunk_size)
            if not chunk:
                break

            consumed += len(chunk)
            if len(chunk) % BLOCK_SIZE:
                raise MalformedCiphertext(
                    f"Ciphertext length {consumed} is not a multiple of {BLOCK_SIZE}"
                )

            plain = decryptor.update(chunk)
            if pending is not None:
                _write(writer, pending)
                written += len(pending)
            pending = plain

            if len(chunk) < self.chunk_size:
                break

        tail = decryptor.finalize()

        if pending is None:
            # IV only: empty plaintext
            return 0

        last = _strip_padding(pending + tail)
        _write(writer, last)
        return written + len(last)

    # --------------------------------------------------------
    # Scoped streams
    # --------------------------------------------------------
    @contextmanager
    def _open_source(self, location):
        try:
            reader = self.disk.open_read(location)
        except (StorageError, OSError) as e:
            raise SourceUnavailable(f"Cannot open source '{location}': {e}") from e

        with reader:
            yield reader

    @contextmanager
    def _open_dest(self, location):
        try:
            writer = self.disk.open_write(location)
        except (StorageError, OSError) as e:
            raise DestinationUnavailable(f"Cannot open destination '{location}': {e}") from e

        try:
            with writer:
                yield writer
        except (StorageError, OSError) as e:
            raise WriteFailure(f"Cannot finish writing '{location}': {e}") from e

    # --------------------------------------------------------
    # Operations
    # --------------------------------------------------------
    def encrypt(self, source, dest, cancel_event=None) -> bool:
        """Encrypt `source` into `dest` (IV first, then ciphertext)."""
        start = time.perf_counter()
        encryption_logger.info(
            f"START encrypt | source={source} | dest={dest} | cipher={self.cipher.value}"
        )

        try:
            with self._open_source(source) as reader, self._open_dest(dest) as writer:
                size = self.encrypt_stream(reader, writer, cancel_event)
        except FileVaultError as e:
            error_logger.error(f"FAIL encrypt | {source} | {e}", exc_info=True)
            raise

        elapsed = time.perf_counter() - start
        encryption_logger.info(f"SUCCESS | {source} -> {dest} | {size} bytes | {elapsed:.2f}s")
        return True

    def decrypt(self, source, dest, cancel_event=None) -> bool:
        """Decrypt `source` into a newly written `dest`."""
        start = time.perf_counter()
        decryption_logger.info(
            f"START decrypt | source={source} | dest={dest} | cipher={self.cipher.value}"
        )

        try:
            with self._open_source(source) as reader, self._open_dest(dest) as writer:
                size = self.decrypt_stream(reader, writer, cancel_event)
        except FileVaultError as e:
            error_logger.error(f"FAIL decrypt | {source} | {e}", exc_info=True)
            raise

        elapsed = time.perf_counter() - start
        decryption_logger.info(f"SUCCESS | {source} -> {dest} | {size} bytes | {elapsed:.2f}s")
        return True

    def stream_decrypt(self, source, sink, cancel_event=None) -> bool:
        """
        Decrypt `source` into an already open sink (HTTP body, stdout...).

        The sink is only appended to: it is never seeked, truncated or closed.
        """
        start = time.perf_counter()
        decryption_logger.info(f"START stream_decrypt | source={source}")

        try:
            with self._open_source(source) as reader:
                size = self.decrypt_stream(reader, sink, cancel_event)
        except FileVaultError as e:
            error_logger.error(f"FAIL stream_decrypt | {source} | {e}", exc_info=True)
            raise

        elapsed = time.perf_counter() - start
        decryption_logger.info(f"SUCCESS stream | {source} | {size} bytes | {elapsed:.2f}s")
        return True
