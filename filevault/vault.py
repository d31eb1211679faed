"""
FileVault - encrypt and decrypt files stored on a configured disk.

    vault = FileVault.from_config()
    vault.encrypt("contracts/2024.pdf")            # -> contracts/2024.pdf.enc, source removed
    vault.decrypt_copy("contracts/2024.pdf.enc")   # -> contracts/2024.pdf, source kept
    vault.disk("s3").stream_decrypt("report.csv.enc", response_body)

Selecting another disk or key returns a new FileVault; an instance is never
changed after construction.
"""

import os
import sys
from dataclasses import dataclass, replace
from functools import cached_property
from typing import Optional

from filevault.core.config_manager import VaultConfig, get_vault_config, load_config
from filevault.core.exceptions import SourceDeletionError, StorageError
from filevault.core.logging_config import error_logger, system_logger
from filevault.crypto.file_encrypter import FileEncrypter, generate_key
from filevault.crypto.key_management import decode_key
from filevault.storage.disks import get_disk
from filevault.utils.file_utils import decrypted_name, encrypted_name


@dataclass
class VaultResult:
    source: str
    destination: str
    source_deleted: bool = False
    deletion_error: Optional[SourceDeletionError] = None


class FileVault:

    def __init__(self, config: VaultConfig = None, disk_backend=None):
        self.config = config if config is not None else VaultConfig()
        self._disk_backend = disk_backend

    @classmethod
    def from_config(cls, path=None) -> "FileVault":
        return cls(get_vault_config(load_config(path)))

    # --------------------------------------------------------
    # Selection (each returns a new vault)
    # --------------------------------------------------------
    def disk(self, name: str, backend=None) -> "FileVault":
        return FileVault(replace(self.config, disk=name), backend)

    def key(self, key) -> "FileVault":
        return FileVault(
            replace(self.config, key=decode_key(key, self.config.cipher)),
            self._disk_backend,
        )

    def generate_key(self) -> bytes:
        """Create a new random key for the configured cipher."""
        return generate_key(self.config.cipher)

    @cached_property
    def storage(self):
        if self._disk_backend is not None:
            return self._disk_backend
        return get_disk(self.config.disk, self.config.disks)

    def _encrypter(self) -> FileEncrypter:
        return FileEncrypter(self.config.key, self.config.cipher, disk=self.storage)

    # --------------------------------------------------------
    # Operations
    # --------------------------------------------------------
    def encrypt(self, source: str, dest: str = None, delete_source: bool = True,
                cancel_event=None) -> VaultResult:
        """
        Encrypt `source` into `dest` (default: "<source>.enc").

        The source is deleted only after the encryption succeeded.
        """
        dest = dest or encrypted_name(source)
        self._check_distinct(source, dest)
        self._encrypter().encrypt(source, dest, cancel_event)
        return self._finish(source, dest, delete_source)

    def encrypt_copy(self, source: str, dest: str = None, cancel_event=None) -> VaultResult:
        return self.encrypt(source, dest, delete_source=False, cancel_event=cancel_event)

    def decrypt(self, source: str, dest: str = None, delete_source: bool = True,
                cancel_event=None) -> VaultResult:
        """
        Decrypt `source` into `dest`.

        Default destination drops a trailing ".enc", otherwise ".dec" is appended.
        """
        dest = dest or decrypted_name(source)
        self._check_distinct(source, dest)
        self._encrypter().decrypt(source, dest, cancel_event)
        return self._finish(source, dest, delete_source)

    def decrypt_copy(self, source: str, dest: str = None, cancel_event=None) -> VaultResult:
        return self.decrypt(source, dest, delete_source=False, cancel_event=cancel_event)

    def stream_decrypt(self, source: str, sink=None, cancel_event=None) -> bool:
        if sink is None:
            sink = sys.stdout.buffer
        return self._encrypter().stream_decrypt(source, sink, cancel_event)

    def _check_distinct(self, source, dest):
        # opening dest truncates it before source is read
        if os.path.normpath(self.storage.path(source)) == os.path.normpath(self.storage.path(dest)):
            raise StorageError(f"Source and destination are the same location: {source}", source)

    def _finish(self, source, dest, delete_source) -> VaultResult:
        result = VaultResult(source=source, destination=dest)
        if not delete_source:
            return result

        try:
            self.storage.delete(source)
        except (StorageError, OSError) as e:
            error = SourceDeletionError(f"'{dest}' written but '{source}' could not be deleted: {e}")
            error.__cause__ = e
            error_logger.error(f"FAIL delete | {source} | {e}")
            result.deletion_error = error
            return result

        result.source_deleted = True
        system_logger.info(f"Source removed | {source}")
        return result
