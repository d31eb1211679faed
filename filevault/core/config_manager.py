import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from filevault.core.logging_config import system_logger
from filevault.core.settings import CONFIG_FILE, DEFAULT_CIPHER
from filevault.crypto.key_management import decode_key

DEFAULT_CONFIG = {
    "disk": "local",
    "key": "",
    "cipher": DEFAULT_CIPHER,
    "disks": {
        "local": {"root": "."},
        "s3": {"bucket": "", "prefix": "", "region": None},
    },
}

# environment variable -> config entry
ENV_OVERRIDES = {
    "FILE_VAULT_KEY": ("key",),
    "FILE_VAULT_CIPHER": ("cipher",),
    "FILE_VAULT_DISK": ("disk",),
    "FILE_VAULT_BUCKET": ("disks", "s3", "bucket"),
}


@dataclass(frozen=True)
class VaultConfig:
    disk: str = "local"
    key: bytes = field(default=b"", repr=False)
    cipher: str = DEFAULT_CIPHER
    disks: dict = field(default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG["disks"]))


def _read_config(path: Path) -> dict:
    if not path.exists():
        system_logger.warning(f"{path.name} not found. Creating default config.")
        save_config(DEFAULT_CONFIG, path)
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _apply_env(config: dict) -> dict:
    for var, keys in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if not value:
            continue

        node = config
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}  # missing or null entry
            node = node[key]
        node[keys[-1]] = value

    return config


def load_config(path=None) -> dict:
    """Read config.json (created with defaults when missing) plus env overrides."""
    path = Path(path) if path else CONFIG_FILE
    return _apply_env(_read_config(path))


def save_config(config: dict, path=None):
    path = Path(path) if path else CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def update_config(new_data: dict, path=None):
    path = Path(path) if path else CONFIG_FILE
    config = _read_config(path)
    config.update(new_data)
    save_config(config, path)


def get_vault_config(config: dict = None) -> VaultConfig:
    """Turn a config dict into the immutable settings the vault runs with."""
    if config is None:
        config = load_config()

    cipher = config.get("cipher") or DEFAULT_CIPHER
    disks = copy.deepcopy(DEFAULT_CONFIG["disks"])
    for name, options in (config.get("disks") or {}).items():
        disks[name] = {**disks.get(name, {}), **(options or {})}

    return VaultConfig(
        disk=config.get("disk") or "local",
        key=decode_key(config.get("key"), cipher),
        cipher=cipher,
        disks=disks,
    )
