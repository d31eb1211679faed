"""
Error hierarchy for the file vault.

Every error raised by the cipher engine, the storage backends and the
vault facade derives from FileVaultError so callers can catch one type.
"""


class FileVaultError(Exception):
    """Base class for all file vault errors."""


# ============================================================
# CONFIGURATION
# ============================================================

class InvalidKeyLength(FileVaultError):
    """Key length does not match the selected cipher."""

    def __init__(self, cipher: str, expected: int, actual: int):
        self.cipher = cipher
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{cipher} requires a {expected}-byte key, got {actual} bytes"
        )


class UnsupportedCipher(FileVaultError):
    """Cipher identifier is not one of the supported AES-CBC variants."""


# ============================================================
# STORAGE
# ============================================================

class StorageError(FileVaultError):
    """A storage backend could not complete a request."""

    def __init__(self, message: str, location: str = None):
        self.location = location
        super().__init__(message)


class NotFound(StorageError):
    pass


class AccessDenied(StorageError):
    pass


class SourceUnavailable(FileVaultError):
    """Source stream could not be opened or read."""


class DestinationUnavailable(FileVaultError):
    """Destination stream could not be opened."""


class WriteFailure(FileVaultError):
    """Writing to the destination failed part way through."""


class SourceDeletionError(FileVaultError):
    """Source removal failed after a successful transform."""


# ============================================================
# CIPHERTEXT
# ============================================================

class TruncatedInput(FileVaultError):
    """Ciphertext is shorter than one IV."""


class MalformedCiphertext(FileVaultError):
    """Ciphertext after the IV is not a multiple of the block size."""


class PaddingError(FileVaultError):
    """Final block does not carry valid PKCS#7 padding (wrong key or corrupted data)."""


class OperationCancelled(FileVaultError):
    pass
