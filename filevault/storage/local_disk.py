from pathlib import Path

from filevault.core.exceptions import AccessDenied, NotFound, StorageError
from filevault.core.logging_config import storage_logger


class LocalDisk:
    """Local filesystem disk, locations are relative to `root`."""

    name = "local"

    def __init__(self, root="."):
        self.root = Path(root)

    def path(self, location) -> str:
        return str(self.root / location)

    def exists(self, location) -> bool:
        return (self.root / location).is_file()

    def open_read(self, location):
        try:
            return open(self.root / location, "rb")
        except FileNotFoundError as e:
            raise NotFound(f"File not found: {self.path(location)}", location) from e
        except PermissionError as e:
            raise AccessDenied(f"Permission denied: {self.path(location)}", location) from e
        except IsADirectoryError as e:
            raise StorageError(f"Not a file: {self.path(location)}", location) from e

    def open_write(self, location):
        target = self.root / location
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            return open(target, "wb")
        except PermissionError as e:
            raise AccessDenied(f"Permission denied: {target}", location) from e
        except OSError as e:
            raise StorageError(f"Cannot open {target} for writing: {e}", location) from e

    def delete(self, location):
        target = self.root / location
        try:
            target.unlink()
        except FileNotFoundError as e:
            raise NotFound(f"File not found: {target}", location) from e
        except PermissionError as e:
            raise AccessDenied(f"Permission denied: {target}", location) from e

        storage_logger.info(f"DELETED | disk=local | file={target}")

    def __repr__(self):
        return f"LocalDisk(root={str(self.root)!r})"
