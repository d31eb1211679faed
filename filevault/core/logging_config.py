import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from filevault.core.settings import LOG_DIR


def setup_logger(name: str, log_file: str, level=logging.INFO) -> logging.Logger:
    """Setup logger with rotating file and console handlers"""
    log_path = Path(LOG_DIR) / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()  # avoid duplicate handlers on re-import

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


# Initialize all loggers
encryption_logger = setup_logger("filevault.encryption", "crypto/encryption.log")
decryption_logger = setup_logger("filevault.decryption", "crypto/decryption.log")
storage_logger = setup_logger("filevault.storage", "storage/storage.log")
system_logger = setup_logger("filevault.system", "system/system.log")
error_logger = setup_logger("filevault.error", "error/error.log", level=logging.ERROR)
