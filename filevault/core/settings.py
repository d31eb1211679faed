import os
from pathlib import Path


# ============================================================
# BASE DIRECTORIES
# ============================================================

APP_HOME = Path(os.environ.get("FILEVAULT_HOME", Path.home() / ".filevault"))

LOG_DIR     = APP_HOME / "logs"
CONFIG_FILE = APP_HOME / "config.json"


# ============================================================
# INIT REQUIRED DIRECTORIES
# ============================================================

LOG_DIR.mkdir(parents=True, exist_ok=True)


# ============================================================
# CIPHER PARAMETERS
# ============================================================

# AES-CBC
BLOCK_SIZE = 16          # 128-bit block, also the IV length
KEY_SIZES = {
    "AES-128-CBC": 16,   # 128-bit
    "AES-256-CBC": 32,   # 256-bit
}
DEFAULT_CIPHER = "AES-256-CBC"

# streaming / chunking
CHUNK_SIZE = 1024 * 1024             # 1MB, must stay a multiple of BLOCK_SIZE

# S3 multipart
S3_PART_SIZE = 5 * 1024 * 1024       # 5MB minimum part size


# ============================================================
# DEFAULT DESTINATION NAMING
# ============================================================

ENCRYPTED_SUFFIX = ".enc"
DECRYPTED_SUFFIX = ".dec"


if __name__ == "__main__":
    print("APP_HOME    :", APP_HOME)
    print("LOG_DIR     :", LOG_DIR)
    print("CONFIG_FILE :", CONFIG_FILE)
