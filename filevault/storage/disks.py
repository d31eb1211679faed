from filevault.core.exceptions import StorageError
from filevault.storage.local_disk import LocalDisk
from filevault.storage.s3_disk import S3Disk


def _build_local(options: dict):
    return LocalDisk(options.get("root", "."))


def _build_s3(options: dict):
    return S3Disk(
        bucket=options.get("bucket"),
        prefix=options.get("prefix", ""),
        region=options.get("region"),
    )


DRIVERS = {
    "local": _build_local,
    "s3": _build_s3,
}


def get_disk(name: str, disks_config: dict = None):
    """
    Build the storage backend for a disk name.

    Each entry of `disks_config` may name its backend with a "driver" key,
    otherwise the disk name itself is used as the driver ("local" / "s3").
    """
    disks_config = disks_config or {}
    options = dict(disks_config.get(name) or {})
    driver = options.pop("driver", name)

    if driver not in DRIVERS:
        raise StorageError(f"Disk '{name}' uses unknown driver '{driver}'")

    return DRIVERS[driver](options)
