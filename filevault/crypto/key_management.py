import base64
import binascii

from filevault.crypto.file_encrypter import CipherId

KEY_PREFIX = "base64:"


# ============================================================
# HELPERS
# ============================================================
def key_size_for(cipher) -> int:
    return CipherId.parse(cipher).key_size


# ============================================================
# CONFIG ENCODING
# ============================================================
def encode_key(key: bytes) -> str:
    """Encode raw key bytes for config.json / environment variables."""
    return KEY_PREFIX + base64.b64encode(key).decode("ascii")


def decode_key(value, cipher: str = None) -> bytes:
    """
    Decode a key read from config.

    Accepted forms:
    - raw bytes (returned as is)
    - "base64:<data>"
    - hex string, when it decodes to the cipher's key length
    - bare base64

    Length is NOT validated here, the cipher engine does that.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)

    value = (value or "").strip()
    if not value:
        return b""

    if value.startswith(KEY_PREFIX):
        return base64.b64decode(value[len(KEY_PREFIX):], validate=True)

    if cipher:
        try:
            raw = bytes.fromhex(value)
            if len(raw) == key_size_for(cipher):
                return raw
        except ValueError:
            pass

    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error:
        raise ValueError("Key is neither 'base64:' prefixed, hex nor base64") from None
